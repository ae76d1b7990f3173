import logging
import sys
from typing import Optional

from .configuration import LoggerConfig

logger = logging.getLogger(__name__)

DEFAULT_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

_LEVEL_ALIASES = {
    "warn": "WARNING",
    "err": "ERROR",
    "fatal": "CRITICAL",
    "trace": "DEBUG",
}


def parse_level(name: Optional[str], default: int = logging.INFO) -> int:
    """Map a case-insensitive level name ("info", "WARN", ...) to a logging level."""
    if not name:
        return default
    key = name.strip()
    key = _LEVEL_ALIASES.get(key.lower(), key.upper())
    level = getattr(logging, key, None)
    if isinstance(level, int):
        return level
    logger.warning("Unknown log level %r, using %s", name, logging.getLevelName(default))
    return default


def build_formatter(
    template: Optional[str] = None, timestamp_format: Optional[str] = None
) -> logging.Formatter:
    """
    Build a formatter from a record template and a strftime timestamp format.

    Templates may use ``%(name)s`` or ``{name}`` fields. Templates that
    reference no record field fall back to the default format.
    """
    datefmt = timestamp_format or None
    if not template:
        return logging.Formatter(DEFAULT_LOG_FORMAT, datefmt=datefmt)
    style = "%" if "%(" in template else "{"
    try:
        return logging.Formatter(template, datefmt=datefmt, style=style, validate=True)
    except ValueError as exc:
        logger.warning("Invalid log template %r (%s), using default format", template, exc)
        return logging.Formatter(DEFAULT_LOG_FORMAT, datefmt=datefmt)


def configure_logging(
    logger_config: Optional[LoggerConfig] = None,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """
    Apply a logger section to the root logger.

    Replaces the root handlers with a stdout handler at ``stdout_level`` and,
    when ``log_file`` is given, a file handler at ``file_log_level``.
    """
    logger_config = logger_config or LoggerConfig()
    formatter = build_formatter(logger_config.log_template, logger_config.timestamp_format)

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setLevel(parse_level(logger_config.stdout_level))
    stream_handler.setFormatter(formatter)
    root.addHandler(stream_handler)
    levels = [stream_handler.level]

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(parse_level(logger_config.file_log_level))
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
        levels.append(file_handler.level)

    root.setLevel(min(levels))
    return root
