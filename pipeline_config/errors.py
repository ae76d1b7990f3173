from typing import Optional


class LoadError(Exception):
    """
    Base class for configuration load failures.

    Instances are returned inside a ``LoadResult`` rather than raised by the
    load functions; ``LoadResult.unwrap()`` raises them on demand.
    """

    kind = "load"

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.source = source

    def __str__(self) -> str:
        if self.source:
            return f"{self.source}: {self.message}"
        return self.message


class FileOpenError(LoadError):
    """The configuration file does not exist or cannot be opened for reading."""

    kind = "file_open"

    def __init__(self, message: str, path: str):
        super().__init__(message, source=path)
        self.path = path


class ParseError(LoadError):
    """The input text is not well-formed JSON."""

    kind = "parse"

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        lineno: Optional[int] = None,
        colno: Optional[int] = None,
        pos: Optional[int] = None,
    ):
        super().__init__(message, source=source)
        self.lineno = lineno
        self.colno = colno
        self.pos = pos


class SchemaError(LoadError):
    """A recognized key held a JSON value of the wrong shape."""

    kind = "schema"

    def __init__(
        self,
        message: str,
        section: Optional[str] = None,
        source: Optional[str] = None,
    ):
        super().__init__(message, source=source)
        self.section = section
