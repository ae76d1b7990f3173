import json
import logging
import os
import sys

import fire
import yaml

from pipeline_config.configuration import PipelineConfig
from pipeline_config.loader import load_from_file, to_flat_map
from pipeline_config.logging_setup import parse_level

DEFAULT_CONFIG_FILE = "config.json"


def _disable_fire_pager() -> None:
    if "PAGER" not in os.environ:
        os.environ["PAGER"] = "cat"


def format_summary(config_file: str, config: PipelineConfig) -> str:
    lines = [f"Configuration loaded from: {config_file}"]
    if config.data_paths is not None:
        paths = config.data_paths
        lines.extend(
            [
                "Paths:",
                f" - derivatives_root: {paths.derivatives_root}",
                f" - spot_root: {paths.spot_root}",
                f" - export_root: {paths.export_root}",
                f" - log_root: {paths.log_root}",
            ]
        )
    if config.data_scope is not None:
        scope = config.data_scope
        lines.extend(
            [
                "Data scope:",
                f" - underlyings count: {len(scope.underlyings)}",
                f" - date_from: {scope.date_from}",
                f" - date_to: {scope.date_to}",
            ]
        )
    if config.symbol_registry is not None:
        lines.append(f"Symbol registry groups: {len(config.symbol_registry.mappings)}")
    lines.append("Done.")
    return "\n".join(lines)


def run_cli(
    config_file: str = DEFAULT_CONFIG_FILE,
    flat: bool = False,
    schema: bool = False,
    log_level: str = "WARNING",
) -> None:
    """
    Load a pipeline configuration and print a summary.

    Exits with status 1 and a diagnostic on stderr when the file cannot be
    loaded. ``--flat`` prints every field as YAML instead of the summary and
    ``--schema`` prints the JSON schema of the configuration model.
    """
    logging.basicConfig(
        level=parse_level(str(log_level), logging.WARNING),
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    if schema:
        print(json.dumps(PipelineConfig.model_json_schema(), indent=2))
        return

    config_file = str(config_file)
    result = load_from_file(config_file)
    if not result.ok:
        print(
            f"Failed to load configuration: {result.error}",
            file=sys.stderr,
        )
        raise SystemExit(1)

    if flat:
        print(yaml.safe_dump(to_flat_map(result.config), sort_keys=False), end="")
    else:
        print(format_summary(config_file, result.config))


def main():
    _disable_fire_pager()
    fire.Fire(run_cli)


if __name__ == "__main__":
    main()
