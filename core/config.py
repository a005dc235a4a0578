"""Resolution of caller options into a `Config`."""

from __future__ import annotations

from collections.abc import Mapping
import os
from typing import Any

from core.errors import ValidationError
from core.models import BackendSelector, Config

CONFIG_DEFAULTS: dict[str, Any] = {
    "file_name": "settings",
    "directory": None,
    "prettify": False,
    "indent_width": 2,
    "backend_selector": BackendSelector.LOCAL,
    "file_identifier": None,
}


def normalize_file_name(file_name: Any) -> str:
    """Drop everything from the first ``.`` on and append ``.json``."""
    if not isinstance(file_name, str) or not file_name:
        raise ValidationError("file_name must be a non-empty string")
    stem = file_name.split(".")[0]
    if not stem:
        raise ValidationError(f"file_name has no usable stem: {file_name!r}")
    return stem + ".json"


def _coerce_backend(value: Any) -> BackendSelector:
    try:
        return BackendSelector(value)
    except ValueError as ex:
        allowed = ", ".join(b.value for b in BackendSelector)
        raise ValidationError(f"backend_selector must be one of: {allowed}") from ex


def parse_options(options: Mapping[str, Any] | None = None, **overrides: Any) -> Config:
    """Overlay `options` and `overrides` onto `CONFIG_DEFAULTS`.

    Pure function, no I/O. Unknown option names and ill-typed values raise
    `ValidationError`.
    """
    merged = dict(CONFIG_DEFAULTS)
    for source in (options or {}, overrides):
        unknown = sorted(set(source) - set(CONFIG_DEFAULTS))
        if unknown:
            raise ValidationError(f"Unknown config options: {unknown}")
        merged.update(source)

    directory = merged["directory"]
    if directory is not None:
        if not isinstance(directory, (str, os.PathLike)):
            raise ValidationError("directory must be a path or None")
        directory = os.fspath(directory)

    prettify = merged["prettify"]
    if not isinstance(prettify, bool):
        raise ValidationError("prettify must be a bool")

    indent_width = merged["indent_width"]
    if isinstance(indent_width, bool) or not isinstance(indent_width, int) or indent_width < 0:
        raise ValidationError("indent_width must be a non-negative int")

    file_identifier = merged["file_identifier"]
    if file_identifier is not None and (
        isinstance(file_identifier, bool) or not isinstance(file_identifier, (str, int))
    ):
        raise ValidationError("file_identifier must be a str, an int or None")

    return Config(
        file_name=normalize_file_name(merged["file_name"]),
        directory=directory,
        prettify=prettify,
        indent_width=indent_width,
        backend_selector=_coerce_backend(merged["backend_selector"]),
        file_identifier=file_identifier,
    )
