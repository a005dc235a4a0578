"""Dot-path traversal over nested JSON mappings.

A dot-path such as ``"theme.mode"`` addresses ``root["theme"]["mode"]``. Each
segment is a mapping key; list indices are not supported and there is no way
to escape a literal ``.`` inside a key.
"""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping
from typing import Any

from core.errors import TypeConflictError, ValidationError
from core.models import NOT_FOUND


def split_path(path: Any) -> list[str]:
    """Return the segments of `path`.

    Raises:
        ValidationError: If `path` is not a string or is empty.
    """
    if not isinstance(path, str):
        raise ValidationError(f"Path must be a string, got {type(path).__name__}")
    if not path:
        raise ValidationError("Path must not be empty")
    return path.split(".")


def get_path(root: Mapping[str, Any], path: str) -> Any:
    """Return the value at `path`, or `NOT_FOUND` if any segment is missing.

    A stored ``None`` is returned as ``None``; only an unresolvable path yields
    the sentinel.
    """
    node: Any = root
    for segment in split_path(path):
        if isinstance(node, Mapping) and segment in node:
            node = node[segment]
        else:
            return NOT_FOUND
    return node


def has_path(root: Mapping[str, Any], path: str) -> bool:
    """Return True if `path` resolves in `root`."""
    return get_path(root, path) is not NOT_FOUND


def set_path(root: MutableMapping[str, Any], path: str, value: Any) -> None:
    """Assign `value` at `path`, creating missing intermediate mappings.

    The final segment is overwritten whatever it held before.

    Raises:
        ValidationError: If `path` is not a string or is empty.
        TypeConflictError: If an intermediate segment holds a non-mapping.
    """
    segments = split_path(path)
    node: MutableMapping[str, Any] = root
    for depth, segment in enumerate(segments[:-1]):
        if segment not in node:
            node[segment] = {}
        child = node[segment]
        if not isinstance(child, MutableMapping):
            raise TypeConflictError(path, ".".join(segments[: depth + 1]), child)
        node = child
    node[segments[-1]] = value
