"""
Error taxonomy for depdrift.

Missing dependencies and version drift are never errors; they are the
results the tool reports. Only unreadable or unparseable required inputs
raise.
"""

from pathlib import Path
from typing import Optional, Union


class DepdriftError(Exception):
    """
    Base class for fatal depdrift errors.

    Attributes:
        exit_code: Process exit code the CLI uses for this error.
    """

    exit_code: int = 2


class ManifestIOError(DepdriftError):
    """
    Raised when a manifest file or a node_modules directory cannot be read.

    Attributes:
        path: The path that could not be read.
        reason: Human-readable cause.
    """

    def __init__(self, path: Union[str, Path], reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Cannot read {self.path}: {reason}")


class MalformedManifestError(DepdriftError):
    """
    Raised when a manifest is not well-formed or lacks required fields.

    Attributes:
        source: Where the manifest came from (a path, or None for raw text).
        reason: Human-readable cause.
    """

    def __init__(self, reason: str, source: Optional[Union[str, Path]] = None):
        self.source = source
        self.reason = reason
        where = f" in {source}" if source is not None else ""
        super().__init__(f"Malformed manifest{where}: {reason}")


class ConfigurationError(DepdriftError):
    """Raised when depdrift.toml is invalid."""
