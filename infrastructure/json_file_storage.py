"""JSON file persistence for settings documents.

Every write replaces the whole document; there is no partial patching and no
locking, so concurrent writers race and the last completed write wins.
"""

from __future__ import annotations

from collections.abc import Mapping
import json
from pathlib import Path
from typing import Any

from loguru import logger

from core.errors import ParseError, StorageIOError, ValidationError
from core.models import Config, JsonObject
from core.services.interfaces import (
    EnsureResult,
    FilesystemProvider,
    ISettingsStorage,
    PathProvider,
    ReadResult,
    StorageStatus,
)
from infrastructure.filesystem import LocalFilesystem
from infrastructure.paths import PlatformPathProvider


def serialize_settings(settings: Mapping[str, Any], config: Config) -> str:
    """Serialize `settings` honoring `prettify` and `indent_width`.

    Raises:
        ValidationError: If the root is not a mapping or a value is not JSON.
    """
    if not isinstance(settings, Mapping):
        raise ValidationError(
            f"Settings root must be a mapping, got {type(settings).__name__}"
        )
    try:
        if config.prettify and config.indent_width:
            return json.dumps(
                settings, indent=config.indent_width, ensure_ascii=False, allow_nan=False
            )
        return json.dumps(settings, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as ex:
        raise ValidationError(f"Settings are not JSON-serializable: {ex}") from ex


def deserialize_settings(raw: str, source: str) -> JsonObject:
    """Parse `raw` into a mapping.

    Raises:
        ParseError: If `raw` is not JSON or its root is not an object.
    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as ex:
        raise ParseError(source, str(ex)) from ex
    if not isinstance(data, dict):
        raise ParseError(source, f"root must be a mapping, got {type(data).__name__}")
    return data


def settings_file_name(config: Config) -> str:
    """Return the on-disk file name, scoped by `file_identifier` when set."""
    if config.file_identifier is None:
        return config.file_name
    return f"{config.stem}-{config.file_identifier}.json"


class JsonFileStorage(ISettingsStorage):
    """Load and save a settings document as a local JSON file."""

    def __init__(
        self,
        path_provider: PathProvider | None = None,
        filesystem: FilesystemProvider | None = None,
    ) -> None:
        """Create a JsonFileStorage.

        Args:
            path_provider: Resolves the default directory (defaults to
                `PlatformPathProvider`).
            filesystem: Raw file primitives (defaults to `LocalFilesystem`).
        """
        self._paths = path_provider or PlatformPathProvider()
        self._fs = filesystem or LocalFilesystem()

    def resolve_directory(self, config: Config) -> Path:
        """Return `config.directory` or ask the path-provider."""
        if config.directory is not None:
            return Path(config.directory)
        try:
            return Path(self._paths.resolve_app_config_dir())
        except Exception as ex:  # pylint: disable=broad-exception-caught
            logger.error("Config directory lookup failed: {}", ex)
            raise StorageIOError(f"Cannot resolve config directory: {ex}") from ex

    async def _ensure_directory(self, directory: Path) -> None:
        try:
            await self._fs.read_dir(directory)
            return
        except FileNotFoundError:
            logger.debug("Creating settings directory {}", directory)
        except OSError as ex:
            raise StorageIOError(f"Cannot list {directory}: {ex}") from ex
        try:
            await self._fs.create_dir_recursive(directory)
        except FileExistsError:
            pass
        except OSError as ex:
            logger.error("Create directory failed for {}: {}", directory, ex)
            raise StorageIOError(f"Cannot create {directory}: {ex}") from ex

    async def ensure(self, config: Config) -> EnsureResult:
        """Make sure the settings file exists, writing ``{}`` if it does not."""
        directory = self.resolve_directory(config)
        await self._ensure_directory(directory)
        path = directory / settings_file_name(config)
        try:
            raw = await self._fs.read_text_file(path)
        except FileNotFoundError:
            raw = serialize_settings({}, config)
            try:
                await self._fs.write_file(path, raw)
            except OSError as ex:
                logger.error("Create settings file failed for {}: {}", path, ex)
                raise StorageIOError(f"Cannot create {path}: {ex}") from ex
            logger.info("Created settings file {}", path)
            return EnsureResult(status=StorageStatus.CREATED, handle=path, raw_content=raw)
        except UnicodeDecodeError as ex:
            raise ParseError(str(path), f"not UTF-8 text ({ex.reason})") from ex
        except OSError as ex:
            logger.error("Read settings file failed for {}: {}", path, ex)
            raise StorageIOError(f"Cannot read {path}: {ex}") from ex
        return EnsureResult(status=StorageStatus.EXISTS, handle=path, raw_content=raw)

    async def read_all(self, config: Config) -> ReadResult:
        """Return the deserialized settings document."""
        ensured = await self.ensure(config)
        settings = deserialize_settings(ensured.raw_content, str(ensured.handle))
        return ReadResult(settings=settings, handle=ensured.handle, status=ensured.status)

    async def write_all(self, settings: JsonObject, handle: Any, config: Config) -> None:
        """Replace the file at `handle` with the serialized `settings`."""
        raw = serialize_settings(settings, config)
        try:
            await self._fs.write_file(handle, raw)
        except OSError as ex:
            logger.error("Write settings file failed for {}: {}", handle, ex)
            raise StorageIOError(f"Cannot write {handle}: {ex}") from ex
        logger.debug("Saved {} top-level keys to {}", len(settings), handle)
