"""Exception hierarchy shared by the pipeline and its components."""

from __future__ import annotations


class ConveyorError(RuntimeError):
    """Base class for every fatal pipeline error."""


class ConfigError(ConveyorError):
    """Raised when configuration is missing, unreadable or fails a transformer."""


class ContainerLockedError(ConfigError):
    """Raised when a locked container is mutated."""


class DependencyResolutionError(ConveyorError):
    """Raised when a declared dependency is absent from the active component set."""

    def __init__(self, component: str, missing: list[str]) -> None:
        names = ", ".join(missing)
        super().__init__(f"Component '{component}' depends on missing component(s): {names}")
        self.component = component
        self.missing = list(missing)


class HandlerError(ConveyorError):
    """Wraps a failure raised by a non-blocking handler. Logged, never raised to callers."""

    def __init__(self, event: str, cause: BaseException) -> None:
        super().__init__(f"Handler for '{event}' failed: {cause}")
        self.event = event
        self.cause = cause


class ModuleProcessingError(ConveyorError):
    """Raised when a module fails its check or processing stage."""

    def __init__(self, module: str, stage: str, cause: BaseException) -> None:
        super().__init__(f"Module '{module}' failed during {stage}: {cause}")
        self.module = module
        self.stage = stage


class AssetRunError(ConveyorError):
    """Raised when a runner component's command exits unsuccessfully."""


__all__ = [
    "AssetRunError",
    "ConfigError",
    "ContainerLockedError",
    "ConveyorError",
    "DependencyResolutionError",
    "HandlerError",
    "ModuleProcessingError",
]
