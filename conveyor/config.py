"""Configuration loading for conveyor (.conveyor.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping

import yaml

from .errors import ConfigError

CONFIG_FILE_NAME = ".conveyor.yml"
MAIN_CONFIG_KEY = "$"


@dataclass
class LoadedConfig:
    """Merged configuration document and the files it was read from."""

    file: Path
    data: Dict[str, Any]
    extra_files: List[Path] = field(default_factory=list)

    @property
    def main(self) -> Dict[str, Any]:
        section = self.data.get(MAIN_CONFIG_KEY)
        return section if isinstance(section, dict) else {}

    @property
    def module_keys(self) -> List[str]:
        return [key for key in self.data if key != MAIN_CONFIG_KEY]


def load_config(config_path: Path | str, *extra: Path | str) -> LoadedConfig:
    """Load the main configuration file and deep-merge ``extra`` files onto it."""
    config_file = resolve_config_path(Path(config_path))
    if not config_file.exists():
        raise ConfigError(f"Configuration file not found: {config_file}")

    data = read_config(config_file)
    extra_files: List[Path] = []
    for item in extra:
        extra_file = Path(item).expanduser().resolve()
        if not extra_file.exists():
            raise ConfigError(f"Component configuration file not found: {extra_file}")
        data = merge_config(data, read_config(extra_file))
        extra_files.append(extra_file)

    return LoadedConfig(file=config_file, data=data, extra_files=extra_files)


def resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILE_NAME).resolve()
    return config_path.resolve()


def read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"{path.name} must contain a mapping at the root")
    return loaded


def merge_config(base: Mapping[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    """Recursively merge mappings; lists and scalars from ``override`` win."""
    merged: Dict[str, Any] = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = merge_config(current, value)
        else:
            merged[key] = value
    return merged


def drop_modules(data: Mapping[str, Any], keys: Iterable[str]) -> Dict[str, Any]:
    """Return ``data`` without the given module keys. The main section always stays."""
    skipped = {key for key in keys if key != MAIN_CONFIG_KEY}
    return {key: value for key, value in data.items() if key not in skipped}


__all__ = [
    "CONFIG_FILE_NAME",
    "MAIN_CONFIG_KEY",
    "LoadedConfig",
    "drop_modules",
    "load_config",
    "merge_config",
    "read_config",
    "resolve_config_path",
]
