"""A configured asset source processed by the emit component."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Iterator

from .. import events
from ..container import Container
from ..emitter import Emitter
from ..logging import get_logger
from ..models import AssetPayload, AssetStats
from .matching import AssetMatcher

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    "__pycache__",
    ".pytest_cache",
    ".mypy_cache",
}


class EmitModule:
    """Walks one module root and announces matching files as blocking events."""

    def __init__(self, name: str, container: Container, emitter: Emitter, logger=None) -> None:
        self.name = name
        self.container = container
        self.emitter = emitter
        self.logger = logger or get_logger(f"modules.{name}")
        self.stats = AssetStats()

    @property
    def root(self) -> Path:
        return Path(self.container.get("root", "."))

    async def check(self) -> "EmitModule":
        root = self.root
        if not root.exists():
            raise FileNotFoundError(f"Module root not found: {root}")
        if not root.is_dir():
            raise NotADirectoryError(f"Module root is not a directory: {root}")
        return self

    async def process(self, main_container: Container) -> "EmitModule":
        """Emit ``module.emit.asset`` for each matching file, one round-trip at a time."""
        matcher = AssetMatcher(
            patterns=main_container.get("pattern", []),
            ignore=main_container.get("ignore", []),
            stats=self.stats,
        )
        root = self.root
        metadata = self._metadata()
        for path in _iter_files(root):
            rel_path = path.relative_to(root).as_posix()
            if not matcher.match(rel_path):
                continue
            payload = AssetPayload(
                file=rel_path,
                file_abs=str(path),
                module=self.name,
                metadata=dict(metadata),
            )
            await self.emitter.emit_blocking(events.MODULE_EMIT_ASSET, payload, self)
        return self

    def dump_stats(self) -> str:
        return f"{self.name}: {self.stats.dump()}"

    def _metadata(self) -> Dict[str, Any]:
        data = self.container.as_dict()
        data.pop("root", None)
        return data

    def __repr__(self) -> str:
        return f"EmitModule(name={self.name!r}, root={str(self.root)!r})"


def _iter_files(root: Path) -> Iterator[Path]:
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(name for name in dirnames if name not in _EXCLUDED_DIRS)
        current = Path(dirpath)
        for filename in sorted(filenames):
            yield current / filename


__all__ = ["EmitModule"]
