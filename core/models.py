"""Core domain models for the settings store.

Settings are plain JSON values: ``dict``/``list``/``str``/``int``/``float``/
``bool``/``None``. The root of every stored document is a ``dict``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

JsonValue = Union[None, bool, int, float, str, list[Any], dict[str, Any]]
JsonObject = dict[str, Any]


class _NotFound:
    """Marker returned when a dot-path does not resolve."""

    _instance: _NotFound | None = None

    def __new__(cls) -> _NotFound:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NOT_FOUND"

    def __copy__(self) -> _NotFound:
        return self

    def __deepcopy__(self, memo: dict) -> _NotFound:
        return self

    def __reduce__(self) -> str:
        return "NOT_FOUND"


NOT_FOUND = _NotFound()


class BackendSelector(str, Enum):
    """Which storage backend a manager talks to."""

    LOCAL = "local"
    REMOTE = "remote"


@dataclass(frozen=True)
class Config:
    """Resolved settings-file configuration.

    Attributes:
        file_name: File name with a ``.json`` extension.
        directory: Target directory; ``None`` asks the path-provider.
        prettify: Pretty-print JSON on write.
        indent_width: Spaces per indent level when ``prettify`` is set.
        backend_selector: Local file or remote backend.
        file_identifier: Optional scope for multiple settings files.
    """

    file_name: str = "settings.json"
    directory: str | None = None
    prettify: bool = False
    indent_width: int = 2
    backend_selector: BackendSelector = BackendSelector.LOCAL
    file_identifier: str | int | None = None

    @property
    def stem(self) -> str:
        """File name without the ``.json`` extension."""
        return self.file_name.removesuffix(".json")
