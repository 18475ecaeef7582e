"""Component-based test and build pipeline orchestrator."""

from .container import Container, ContainerTransformer
from .emitter import DEFAULT_PRIORITY, Emitter
from .pipeline import Pipeline, RunResult
from .sequential import run_in_sequence

__version__ = "0.1.0"

__all__ = [
    "Container",
    "ContainerTransformer",
    "DEFAULT_PRIORITY",
    "Emitter",
    "Pipeline",
    "RunResult",
    "run_in_sequence",
]
