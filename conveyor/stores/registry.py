"""Per-namespace record of externally resolved components."""

from __future__ import annotations

import asyncio
import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from ..models import RegistryEntry

_REGISTRY_VERSION = 1

DEFAULT_STORAGE_PATH = Path.home() / ".conveyor" / "registry"


class ComponentRegistry:
    """Stores component identifiers and the config files they contribute.

    Each namespace (``unit``, ``e2e``, ``generic`` ...) lives in its own JSON
    file under ``storage_path``. A missing file is an empty registry.
    """

    def __init__(self, storage_path: Path, namespace: str) -> None:
        self.storage_path = Path(storage_path)
        self.namespace = namespace
        self._entries: Dict[str, RegistryEntry] = {}
        self._dirty = False

    @classmethod
    def create(cls, storage_path: Path | str | None = None, namespace: str = "generic") -> "ComponentRegistry":
        return cls(Path(storage_path) if storage_path else DEFAULT_STORAGE_PATH, namespace.lower())

    @property
    def registry_file(self) -> Path:
        return self.storage_path / f"{self.namespace}.json"

    async def load(self) -> "ComponentRegistry":
        loop = asyncio.get_running_loop()
        self._entries = await loop.run_in_executor(None, self._read, self.registry_file)
        self._dirty = False
        return self

    def list_keys(self) -> List[str]:
        return list(self._entries.keys())

    def get(self, key: str) -> Optional[RegistryEntry]:
        return self._entries.get(key)

    @property
    def configs(self) -> List[str]:
        """Config files of every entry, in entry order, without duplicates."""
        seen: Dict[str, None] = {}
        for entry in self._entries.values():
            for config in entry.configs:
                seen.setdefault(config, None)
        return list(seen)

    def add(self, key: str, configs: Iterable[str] = ()) -> RegistryEntry:
        entry = RegistryEntry(key=key, configs=[str(config) for config in configs])
        self._entries[key] = entry
        self._dirty = True
        return entry

    def remove(self, key: str) -> bool:
        if self._entries.pop(key, None) is None:
            return False
        self._dirty = True
        return True

    async def persist(self) -> None:
        if not self._dirty:
            return
        payload = {
            "version": _REGISTRY_VERSION,
            "namespace": self.namespace,
            "updated_at": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "components": {
                key: {"configs": list(entry.configs)} for key, entry in self._entries.items()
            },
        }
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._write, self.registry_file, payload)
        self._dirty = False

    # ------------------------------------------------------------------
    # Internal helpers

    @staticmethod
    def _read(path: Path) -> Dict[str, RegistryEntry]:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError):
            return {}
        if not isinstance(data, dict) or data.get("version") != _REGISTRY_VERSION:
            return {}
        components = data.get("components")
        if not isinstance(components, dict):
            return {}
        entries: Dict[str, RegistryEntry] = {}
        for key, raw in components.items():
            if not isinstance(key, str) or not isinstance(raw, dict):
                continue
            configs = raw.get("configs", [])
            if not isinstance(configs, list):
                configs = []
            entries[key] = RegistryEntry(
                key=key, configs=[item for item in configs if isinstance(item, str)]
            )
        return entries

    @staticmethod
    def _write(path: Path, payload: Dict[str, object]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")


__all__ = ["DEFAULT_STORAGE_PATH", "ComponentRegistry"]
