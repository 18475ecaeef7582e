"""Cache storage drivers, looked up by the name used in configuration."""

from typing import Any

from ..errors import ConfigError
from .base import CacheDriver
from .volatile import VolatileDriver

DRIVER_REGISTRY: dict[str, type[CacheDriver]] = {
    "volatile": VolatileDriver,
}


def create_driver(name: str, **options: Any) -> CacheDriver:
    driver_class = DRIVER_REGISTRY.get(name.lower())
    if driver_class is None:
        known = ", ".join(sorted(DRIVER_REGISTRY))
        raise ConfigError(f"Unknown cache driver '{name}' (available: {known})")
    try:
        return driver_class(**options)
    except TypeError as exc:
        raise ConfigError(f"Invalid options for cache driver '{name}': {exc}") from exc


__all__ = ["CacheDriver", "DRIVER_REGISTRY", "VolatileDriver", "create_driver"]
