"""
JSON File Card Storage: Infrastructure adapter for on-disk blobs.

Implements CardStorage with one file per key inside a data directory.
File I/O runs in a worker thread so the event loop is never blocked.
"""

import asyncio
import logging
import os
import re
import tempfile
from pathlib import Path

from leitbox.domain.ports import CardStorage

logger = logging.getLogger(__name__)

_UNSAFE = re.compile(r"[^A-Za-z0-9._-]")


class JsonFileCardStorage(CardStorage):
    """
    Stores each key as ``<data_dir>/<sanitized key>.json``.

    Writes go to a temp file in the same directory and are moved into
    place with ``os.replace``, so readers see either the old or the new
    blob, never a partial one.
    """

    def __init__(self, data_dir: Path):
        self.data_dir = data_dir

    def path_for(self, key: str) -> Path:
        return self.data_dir / f"{_UNSAFE.sub('_', key)}.json"

    async def load(self, key: str) -> str | None:
        return await asyncio.to_thread(self._read, self.path_for(key))

    async def save(self, key: str, raw: str) -> None:
        await asyncio.to_thread(self._write, self.path_for(key), raw)

    def _read(self, path: Path) -> str | None:
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def _write(self, path: Path, raw: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(raw)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug(f"Wrote {len(raw)} chars to {path}")
