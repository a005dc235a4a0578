"""Settings storage proxied to a remote backend.

The backend keeps its own cache and file per registered id. Every call is an
independent request; the only session state is the opaque id returned by
``add_config``. Any failure, whatever its cause, surfaces as `BackendError`.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import asdict
from typing import Any

from loguru import logger

from core.errors import BackendError, SettingsError, ValidationError
from core.models import Config, JsonObject
from core.services.interfaces import (
    EnsureResult,
    ISettingsStorage,
    ReadResult,
    RemoteTransport,
    StorageStatus,
)
from infrastructure.json_file_storage import serialize_settings


def config_to_payload(config: Config) -> dict[str, Any]:
    """Return `config` as a JSON-ready dict."""
    payload = asdict(config)
    payload["backend_selector"] = config.backend_selector.value
    return payload


class RemoteStorage(ISettingsStorage):
    """`ISettingsStorage` over a request/response `RemoteTransport`."""

    def __init__(self, transport: RemoteTransport) -> None:
        self._transport = transport
        self._ids: dict[Config, Any] = {}

    async def _call(self, operation: str, **payload: Any) -> Any:
        logger.debug("Remote call {} ({})", operation, ", ".join(sorted(payload)))
        try:
            return await self._transport.request(operation, payload)
        except BackendError:
            raise
        except Exception as ex:  # pylint: disable=broad-exception-caught
            logger.error("Remote call {} failed: {}", operation, ex)
            raise BackendError(operation, str(ex)) from ex

    # Protocol operations -------------------------------------------------

    async def add_config(
        self, config: Config, defaults: JsonObject
    ) -> tuple[Any, JsonObject, bool]:
        """Register `config` and return ``(id, settings, was_created)``.

        The backend answers ``[id, settings]`` or ``[id, settings, was_created]``.
        """
        result = await self._call(
            "add_config", config=config_to_payload(config), defaults=defaults
        )
        if (
            not isinstance(result, Sequence)
            or isinstance(result, str)
            or len(result) not in (2, 3)
        ):
            raise BackendError("add_config", f"unexpected response: {result!r}")
        backend_id, settings = result[0], result[1]
        was_created = bool(result[2]) if len(result) == 3 else False
        if not isinstance(settings, dict):
            raise BackendError("add_config", "settings root must be a mapping")
        return backend_id, settings, was_created

    async def has(self, key: str, backend_id: Any) -> bool:
        """Durable existence check on the backend."""
        return bool(await self._call("has", key=key, id=backend_id))

    async def get(self, key: str, backend_id: Any) -> Any:
        """Durable read of `key` on the backend."""
        return await self._call("get", key=key, id=backend_id)

    async def set(self, key: str, value: Any, backend_id: Any) -> None:
        """Durable write of `key` on the backend."""
        await self._call("set", key=key, value=value, id=backend_id)

    async def has_cache(self, key: str, backend_id: Any) -> bool:
        """Existence check against the backend's cache."""
        return bool(await self._call("has_cache", key=key, id=backend_id))

    async def get_cache(self, key: str, backend_id: Any) -> Any:
        """Read `key` from the backend's cache."""
        return await self._call("get_cache", key=key, id=backend_id)

    async def set_cache(self, key: str, value: Any, backend_id: Any) -> None:
        """Write `key` into the backend's cache only."""
        await self._call("set_cache", key=key, value=value, id=backend_id)

    async def cache_to_file(self, backend_id: Any) -> None:
        """Flush the backend's cache to its file."""
        await self._call("cache_to_file", id=backend_id)

    async def file_to_cache(self, backend_id: Any) -> JsonObject:
        """Reload the backend's cache from its file and return it."""
        result = await self._call("file_to_cache", id=backend_id)
        if not isinstance(result, dict):
            raise BackendError("file_to_cache", "settings root must be a mapping")
        return result

    # ISettingsStorage ----------------------------------------------------

    async def _load(self, config: Config) -> tuple[Any, JsonObject, StorageStatus]:
        if config.file_identifier is not None:
            backend_id = config.file_identifier
        else:
            backend_id = self._ids.get(config)
        if backend_id is not None:
            return backend_id, await self.file_to_cache(backend_id), StorageStatus.EXISTS

        backend_id, settings, was_created = await self.add_config(config, {})
        self._ids[config] = backend_id
        logger.info("Registered remote settings id {}", backend_id)
        status = StorageStatus.CREATED if was_created else StorageStatus.EXISTS
        return backend_id, settings, status

    async def ensure(self, config: Config) -> EnsureResult:
        """Register or reload the remote document and return it serialized."""
        backend_id, settings, status = await self._load(config)
        return EnsureResult(
            status=status, handle=backend_id, raw_content=serialize_settings(settings, config)
        )

    async def read_all(self, config: Config) -> ReadResult:
        """Return the remote document."""
        backend_id, settings, status = await self._load(config)
        return ReadResult(settings=settings, handle=backend_id, status=status)

    async def write_all(self, settings: JsonObject, handle: Any, config: Config) -> None:
        """Replace the remote document with `settings`.

        The protocol can set keys but not delete them, so a document that
        drops a top-level key the backend holds is refused with `BackendError`
        before any key is pushed. Top-level keys containing ``.`` are refused
        too, since the backend reads each key as a dot-path.

        Raises:
            ValidationError: `settings` is not JSON or has a dotted top-level key.
            BackendError: A key would be left behind, or a call failed.
        """
        try:
            serialize_settings(settings, config)
        except SettingsError:
            logger.error("Refusing to send non-JSON settings to remote id {}", handle)
            raise
        dotted = sorted(key for key in settings if isinstance(key, str) and "." in key)
        if dotted:
            raise ValidationError(f"top-level keys cannot contain '.': {dotted}")

        current = await self.file_to_cache(handle)
        dropped = sorted(key for key in current if key not in settings)
        if dropped:
            logger.error("Remote id {} would keep removed keys {}", handle, dropped)
            raise BackendError("write_all", f"backend cannot remove keys {dropped}")

        for key, value in settings.items():
            await self.set_cache(key, value, handle)
        await self.cache_to_file(handle)
