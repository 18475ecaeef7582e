"""Contract for cache storage drivers."""

from abc import ABC, abstractmethod
from typing import Optional


class CacheDriver(ABC):
    """Stores opaque content blobs keyed by name."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Short identifier used in configuration."""

    @abstractmethod
    async def get(self, key: str) -> Optional[bytes]:
        """Return stored content, or None when nothing is stored under ``key``."""

    @abstractmethod
    async def put(self, key: str, content: bytes | str) -> None:
        """Store ``content`` under ``key``, replacing earlier content."""
