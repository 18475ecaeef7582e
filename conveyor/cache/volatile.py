"""Cache driver backed by the system temporary directory."""

from __future__ import annotations

import asyncio
import tempfile
from pathlib import Path
from typing import Optional

from .base import CacheDriver

_VOLATILE_DIR = "__conveyor_volatile__"


class VolatileDriver(CacheDriver):
    """Keeps content for the lifetime of the temp directory only."""

    def __init__(self, base_dir: Path | None = None) -> None:
        self.base_dir = Path(base_dir) if base_dir else Path(tempfile.gettempdir()) / _VOLATILE_DIR

    @property
    def name(self) -> str:
        return "volatile"

    async def get(self, key: str) -> Optional[bytes]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._read, self._storage_file(key))

    async def put(self, key: str, content: bytes | str) -> None:
        data = content.encode("utf-8") if isinstance(content, str) else content
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._write, self._storage_file(key), data)

    def _storage_file(self, key: str) -> Path:
        target = (self.base_dir / key).resolve()
        if self.base_dir.resolve() not in target.parents:
            raise ValueError(f"Cache key escapes the storage directory: {key}")
        return target

    @staticmethod
    def _read(path: Path) -> Optional[bytes]:
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None

    @staticmethod
    def _write(path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
