"""Local filesystem primitives exposed as awaitables.

Blocking calls run in a worker thread so every primitive is a suspension point
for the event loop. Errors are raised unmodified (``FileNotFoundError``,
``PermissionError`` and other ``OSError`` subclasses).
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path

from loguru import logger


def _write_replace(path: Path, contents: str) -> None:
    tmp = path.with_suffix(path.suffix + ".tmp")
    try:
        with tmp.open("w", encoding="utf-8", newline="") as f:
            f.write(contents)
        os.replace(tmp, path)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise


class LocalFilesystem:
    """Filesystem provider backed by `pathlib`."""

    async def create_dir_recursive(self, path: str | Path) -> None:
        """Create `path` with parents; an existing directory is fine."""
        await asyncio.to_thread(Path(path).mkdir, parents=True, exist_ok=True)

    async def read_dir(self, path: str | Path) -> list[str]:
        """Return the entry names in `path`."""
        return await asyncio.to_thread(os.listdir, Path(path))

    async def read_text_file(self, path: str | Path) -> str:
        """Return the UTF-8 text of `path`."""
        return await asyncio.to_thread(Path(path).read_text, encoding="utf-8")

    async def write_file(self, path: str | Path, contents: str) -> None:
        """Replace `path` with `contents` through a sibling temp file."""
        target = Path(path)
        await asyncio.to_thread(_write_replace, target, contents)
        logger.debug("Wrote {} chars to {}", len(contents), target)
