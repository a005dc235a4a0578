"""Pick the storage backend a `Config` asks for."""

from __future__ import annotations

from core.errors import ValidationError
from core.models import BackendSelector, Config
from core.services.interfaces import (
    FilesystemProvider,
    ISettingsStorage,
    PathProvider,
    RemoteTransport,
)
from infrastructure.json_file_storage import JsonFileStorage
from infrastructure.remote_storage import RemoteStorage


def create_storage(
    config: Config,
    *,
    transport: RemoteTransport | None = None,
    path_provider: PathProvider | None = None,
    filesystem: FilesystemProvider | None = None,
) -> ISettingsStorage:
    """Return a local or remote storage for `config.backend_selector`.

    Raises:
        ValidationError: If the remote backend is selected without a transport.
    """
    if config.backend_selector is BackendSelector.REMOTE:
        if transport is None:
            raise ValidationError("backend_selector 'remote' requires a transport")
        return RemoteStorage(transport)
    return JsonFileStorage(path_provider=path_provider, filesystem=filesystem)
