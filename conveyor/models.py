"""Core data models shared across conveyor components."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List


class ComponentState(Enum):
    """Lifecycle states of a pipeline component."""

    CREATED = "created"
    CONFIG_PENDING = "config_pending"
    CONFIG_READY = "config_ready"
    SKIPPED = "skipped"
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"


@dataclass
class AssetPayload:
    """One file discovered by a module."""

    file: str
    file_abs: str
    module: str
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class AssetStats:
    """Counters kept while matching assets."""

    total: int = 0
    processed: int = 0
    ignored: int = 0

    def dump(self) -> str:
        return f"total={self.total} processed={self.processed} ignored={self.ignored}"


@dataclass
class RegistryEntry:
    """A previously resolved external component."""

    key: str
    configs: List[str] = field(default_factory=list)
