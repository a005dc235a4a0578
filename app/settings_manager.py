"""Settings manager coordinating durable storage and the in-memory cache.

Durable operations (`get`, `set`, `has`, `get_all`, `set_all`) go through the
storage backend and refresh the cache. Cache operations (`get_cache`,
`set_cache`, `has_cache`) never touch storage; `sync_cache` is the only way to
make them durable.

Durable `set` is a read-modify-write of the whole document with no lock or
version check. Overlapping calls, from this manager or any other writer of
the same file, can lose updates: the last completed write wins.
"""

from __future__ import annotations

from collections.abc import Mapping
import copy
from typing import Any

from loguru import logger

from core.config import parse_options
from core.dot_path import get_path, has_path, set_path, split_path
from core.errors import NotFoundError, NotInitializedError, ValidationError
from core.models import NOT_FOUND, Config, JsonObject
from core.services.interfaces import (
    FilesystemProvider,
    ISettingsStorage,
    PathProvider,
    RemoteTransport,
    StorageStatus,
)
from infrastructure.storage_factory import create_storage


class SettingsManager:
    """Dot-path settings backed by a storage backend and an in-memory cache.

    Usage::

        manager = SettingsManager({"theme": {"mode": "dark"}}, {"prettify": True})
        await manager.initialize()
        manager.get_cache("theme.mode")
        await manager.set("theme.mode", "light")
    """

    def __init__(
        self,
        defaults: Mapping[str, Any] | None = None,
        config: Config | Mapping[str, Any] | None = None,
        *,
        storage: ISettingsStorage | None = None,
        transport: RemoteTransport | None = None,
        path_provider: PathProvider | None = None,
        filesystem: FilesystemProvider | None = None,
    ) -> None:
        """Create a SettingsManager.

        Args:
            defaults: Default settings; a deep copy is kept for the lifetime
                of the manager.
            config: A resolved `Config` or an options mapping for
                `parse_options`.
            storage: Storage backend (defaults to the one `config` selects).
            transport: Remote transport, required for the remote backend.
            path_provider: Directory resolver for the local backend.
            filesystem: File primitives for the local backend.
        """
        if defaults is None:
            defaults = {}
        if not isinstance(defaults, Mapping):
            raise ValidationError(f"defaults must be a mapping, got {type(defaults).__name__}")
        self._defaults: JsonObject = copy.deepcopy(dict(defaults))
        self._config = config if isinstance(config, Config) else parse_options(config)
        if storage is None:
            storage = create_storage(
                self._config,
                transport=transport,
                path_provider=path_provider,
                filesystem=filesystem,
            )
        self._storage = storage
        self._cache: JsonObject | None = None
        self._handle: Any = None

    @property
    def defaults(self) -> JsonObject:
        """Copy of the default settings."""
        return copy.deepcopy(self._defaults)

    @property
    def config(self) -> Config:
        """The resolved configuration."""
        return self._config

    @property
    def handle(self) -> Any:
        """File path or remote id bound by `initialize`, else None."""
        return self._handle

    @property
    def is_initialized(self) -> bool:
        """Whether `initialize` has completed."""
        return self._cache is not None

    @property
    def cache(self) -> JsonObject:
        """Copy of the whole cache."""
        return copy.deepcopy(self._require_cache())

    def _require_cache(self) -> JsonObject:
        if self._cache is None:
            raise NotInitializedError("SettingsManager.initialize() has not completed")
        return self._cache

    def _reconcile(self, loaded: JsonObject) -> JsonObject:
        # Top-level keys only: a loaded value replaces the default wholesale.
        merged = copy.deepcopy(self._defaults)
        merged.update(loaded)
        return merged

    # Lifecycle -----------------------------------------------------------

    async def initialize(self) -> JsonObject:
        """Load settings, reconcile with defaults and fill the cache.

        A freshly created store is filled with the defaults and written back
        immediately. Storage errors propagate and leave the manager
        uninitialized.

        Returns:
            A copy of the populated cache.
        """
        result = await self._storage.read_all(self._config)
        if result.status is StorageStatus.CREATED:
            cache = copy.deepcopy(self._defaults)
            await self._storage.write_all(cache, result.handle, self._config)
            logger.info("Materialized defaults into new settings store {}", result.handle)
        else:
            cache = self._reconcile(result.settings)
            logger.info(
                "Loaded settings from {} ({} top-level keys)", result.handle, len(result.settings)
            )
        self._handle = result.handle
        self._cache = cache
        return copy.deepcopy(cache)

    async def load_cache(self) -> JsonObject:
        """Discard the cache and reload it from storage, reconciled with defaults."""
        self._require_cache()
        return await self.initialize()

    async def sync_cache(self) -> JsonObject:
        """Write the whole cache to storage and return a copy of it."""
        cache = self._require_cache()
        await self._storage.write_all(cache, self._handle, self._config)
        logger.info("Synced cache to {}", self._handle)
        return copy.deepcopy(cache)

    # Cache-only access ---------------------------------------------------

    def has_cache(self, path: str) -> bool:
        """Return True if `path` resolves in the cache."""
        return has_path(self._require_cache(), path)

    def get_cache(self, path: str, *, strict: bool = False) -> Any:
        """Return the cached value at `path`.

        Returns `NOT_FOUND` for an absent path, or raises `NotFoundError` when
        `strict` is set.
        """
        value = get_path(self._require_cache(), path)
        if value is NOT_FOUND:
            if strict:
                raise NotFoundError(path)
            return NOT_FOUND
        return copy.deepcopy(value)

    def set_cache(self, path: str, value: Any) -> Any:
        """Set `path` in the cache only and return `value`."""
        set_path(self._require_cache(), path, copy.deepcopy(value))
        return value

    # Durable access ------------------------------------------------------

    async def has(self, path: str) -> bool:
        """Return True if `path` resolves in the stored settings."""
        self._require_cache()
        split_path(path)
        result = await self._storage.read_all(self._config)
        return has_path(result.settings, path)

    async def get(self, path: str, *, strict: bool = False) -> Any:
        """Read `path` from storage and refresh the cache at `path`.

        Returns `NOT_FOUND` for an absent path (cache untouched), or raises
        `NotFoundError` when `strict` is set.
        """
        self._require_cache()
        split_path(path)
        result = await self._storage.read_all(self._config)
        value = get_path(result.settings, path)
        if value is NOT_FOUND:
            if strict:
                raise NotFoundError(path)
            return NOT_FOUND
        set_path(self._require_cache(), path, copy.deepcopy(value))
        return value

    async def set(self, path: str, value: Any) -> None:
        """Write `value` at `path` to storage, then mirror it into the cache."""
        self._require_cache()
        split_path(path)
        result = await self._storage.read_all(self._config)
        set_path(result.settings, path, value)
        await self._storage.write_all(result.settings, result.handle, self._config)
        logger.debug("Persisted {} to {}", path, result.handle)
        set_path(self._require_cache(), path, copy.deepcopy(value))

    async def get_all(self) -> JsonObject:
        """Read the whole stored document and make it the cache."""
        self._require_cache()
        result = await self._storage.read_all(self._config)
        self._cache = copy.deepcopy(result.settings)
        return result.settings

    async def set_all(self, settings: Mapping[str, Any]) -> None:
        """Replace the whole stored document with `settings` and the cache too."""
        self._require_cache()
        if not isinstance(settings, Mapping):
            raise ValidationError(f"settings must be a mapping, got {type(settings).__name__}")
        snapshot = copy.deepcopy(dict(settings))
        await self._storage.write_all(snapshot, self._handle, self._config)
        self._cache = snapshot
        logger.info("Overwrote settings in {}", self._handle)
