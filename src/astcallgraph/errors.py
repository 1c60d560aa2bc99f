"""Domain-specific errors for astcallgraph."""

from __future__ import annotations


class AstCallGraphError(Exception):
    """Base error for astcallgraph."""


class ManifestNotFoundError(AstCallGraphError):
    """Raised when the go.mod manifest cannot be found or read."""


class ManifestParseError(AstCallGraphError):
    """Raised when the go.mod manifest is malformed."""

    def __init__(self, message: str, *, path: str, line: int | None = None):
        self.path = path
        self.line = line
        where = f"{path}:{line}" if line is not None else path
        super().__init__(f"{where}: {message}")


class PathDerivationError(AstCallGraphError):
    """Raised when a file cannot be mapped to a package path under the module root."""


class DirectoryError(AstCallGraphError):
    """Raised when the directory to analyze cannot be traversed."""


class FileReadError(AstCallGraphError):
    """Raised when a source file cannot be read."""


class GoSyntaxError(AstCallGraphError):
    """Raised when a Go source file does not parse cleanly."""

    def __init__(self, message: str, *, path: str, line: int, column: int):
        self.path = path
        self.line = line
        self.column = column
        super().__init__(f"{path}:{line}:{column}: {message}")


class DecodeError(AstCallGraphError):
    """Raised when an encoded analysis document cannot be decoded."""
