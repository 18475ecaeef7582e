"""Component implementations and the identifier -> factory registry."""

from __future__ import annotations

from functools import partial
from importlib import metadata
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from .base import Component, ConfigWaiter, DependencyGate
from .emit import EmitComponent
from .emit_module import EmitModule
from .matching import AssetMatcher
from .runner import RunnerComponent

_ENTRY_POINT_GROUP = "conveyor.components"

ComponentFactory = Callable[[], Component]

BUILTIN_FACTORIES: Dict[str, ComponentFactory] = {
    "emit": EmitComponent,
    "test": partial(RunnerComponent, "test"),
    "e2e": partial(RunnerComponent, "e2e"),
}

NAMESPACE_COMPONENTS: Dict[str, List[str]] = {
    "unit": ["emit", "test"],
    "e2e": ["emit", "e2e"],
    "generic": ["emit"],
}


def component_factories() -> Dict[str, ComponentFactory]:
    """Return builtin factories merged with ``conveyor.components`` entry points."""
    factories: Dict[str, ComponentFactory] = dict(BUILTIN_FACTORIES)
    for entry in _iter_entry_points():
        if entry.name in factories:
            continue
        factories[entry.name] = partial(_load_entry_point, entry)
    return factories


def create_component(
    identifier: str, factories: Optional[Dict[str, ComponentFactory]] = None
) -> Component:
    """Instantiate the component registered under ``identifier``."""
    registry = factories if factories is not None else component_factories()
    factory = registry.get(identifier.lower())
    if factory is None:
        raise KeyError(f"Unknown component '{identifier}'")
    instance = factory()
    if not isinstance(instance, Component):
        raise TypeError(f"Component factory for '{identifier}' did not return a Component instance")
    return instance


def namespace_components(
    namespace: str, disabled: Sequence[str] = ()
) -> List[str]:
    skip = {name.lower() for name in disabled}
    return [name for name in NAMESPACE_COMPONENTS.get(namespace, []) if name not in skip]


def _load_entry_point(entry: metadata.EntryPoint) -> Component:
    try:
        loaded = entry.load()
    except Exception as exc:
        raise RuntimeError(f"Failed to load component entry point '{entry.name}': {exc}") from exc
    return _coerce_component(loaded)


def _coerce_component(obj: object) -> Component:
    if isinstance(obj, Component):
        return obj
    if callable(obj):
        instance = obj()
        if isinstance(instance, Component):
            return instance
    raise TypeError("Component entry point must be a Component subclass or factory")


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    return metadata.entry_points().select(group=_ENTRY_POINT_GROUP)


__all__ = [
    "AssetMatcher",
    "BUILTIN_FACTORIES",
    "ComponentFactory",
    "Component",
    "ConfigWaiter",
    "DependencyGate",
    "EmitComponent",
    "EmitModule",
    "NAMESPACE_COMPONENTS",
    "RunnerComponent",
    "component_factories",
    "create_component",
    "namespace_components",
]
