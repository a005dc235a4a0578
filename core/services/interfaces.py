"""Core service interfaces and shared data structures.

This module defines the storage contract used by the settings manager, the
dataclasses storage operations return, and the protocols for the external
collaborators (path-provider, filesystem, remote transport).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Protocol

from core.models import Config, JsonObject


class StorageStatus(str, Enum):
    """Whether `ensure` had to create the settings file."""

    CREATED = "created"
    EXISTS = "exists"


@dataclass
class EnsureResult:
    """Outcome of making sure the settings document exists.

    Attributes:
        status: CREATED when a fresh empty document was written.
        handle: File path (local) or backend id (remote).
        raw_content: Serialized document as found or as written.
    """

    status: StorageStatus
    handle: Any
    raw_content: str


@dataclass
class ReadResult:
    """Deserialized settings document plus where it came from."""

    settings: JsonObject
    handle: Any
    status: StorageStatus


class ISettingsStorage:
    """Interface for durable whole-document settings storage."""

    async def ensure(self, config: Config) -> EnsureResult:
        """Create the settings document if absent and return its raw content."""
        raise NotImplementedError

    async def read_all(self, config: Config) -> ReadResult:
        """Ensure the document exists and return it deserialized."""
        raise NotImplementedError

    async def write_all(self, settings: JsonObject, handle: Any, config: Config) -> None:
        """Replace the whole stored document with `settings`."""
        raise NotImplementedError


class PathProvider(Protocol):
    """Protocol for resolving the platform config directory."""

    def resolve_app_config_dir(self) -> str | Path:
        """Return the directory settings files live in by default."""
        ...


class FilesystemProvider(Protocol):
    """Protocol for the raw filesystem primitives storage relies on."""

    async def create_dir_recursive(self, path: str | Path) -> None:
        """Create `path` and any missing parents; existing is not an error."""
        ...

    async def read_dir(self, path: str | Path) -> list[str]:
        """List entry names; raise FileNotFoundError if `path` is absent."""
        ...

    async def read_text_file(self, path: str | Path) -> str:
        """Read UTF-8 text; raise FileNotFoundError if `path` is absent."""
        ...

    async def write_file(self, path: str | Path, contents: str) -> None:
        """Replace the contents of `path` with `contents`."""
        ...


class RemoteTransport(Protocol):
    """Protocol for the request/response channel to a remote backend."""

    async def request(self, operation: str, payload: dict[str, Any]) -> Any:
        """Send one named operation and return its result."""
        ...
