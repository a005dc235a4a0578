"""Exception hierarchy for settings access and storage."""

from __future__ import annotations


class SettingsError(Exception):
    """Base class for every error raised by the settings store."""


class ValidationError(SettingsError, ValueError):
    """Invalid argument: bad path, bad option, or non-JSON value."""


class TypeConflictError(SettingsError, TypeError):
    """A dot-path traversal met a non-mapping where a mapping is required."""

    def __init__(self, path: str, segment: str, found: object) -> None:
        self.path = path
        self.segment = segment
        self.found_type = type(found).__name__
        super().__init__(
            f"Cannot traverse '{path}': '{segment}' holds a {self.found_type}, not a mapping"
        )


class NotFoundError(SettingsError, KeyError):
    """Strict lookup of a dot-path that does not resolve."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(path)

    def __str__(self) -> str:
        return f"Key does not exist: '{self.path}'"


class StorageIOError(SettingsError, OSError):
    """Filesystem or path-provider failure other than a missing file."""


class ParseError(SettingsError, ValueError):
    """Stored content is not a JSON document with a mapping root."""

    def __init__(self, source: str, reason: str) -> None:
        self.source = source
        super().__init__(f"Invalid settings content in {source}: {reason}")


class BackendError(SettingsError):
    """Opaque failure reported by, or while reaching, a remote backend."""

    def __init__(self, operation: str, reason: str) -> None:
        self.operation = operation
        super().__init__(f"Remote backend '{operation}' failed: {reason}")


class NotInitializedError(SettingsError, RuntimeError):
    """A manager operation was used before ``initialize()`` completed."""
