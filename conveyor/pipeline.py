"""Pipeline host: wires components to one emitter and one root container."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from . import events
from .components import (
    Component,
    ComponentFactory,
    component_factories,
    create_component,
    namespace_components,
)
from .config import CONFIG_FILE_NAME, LoadedConfig, drop_modules, load_config
from .container import Container
from .emitter import Emitter
from .errors import ConfigError, DependencyResolutionError
from .logging import get_logger
from .sequential import run_in_sequence
from .stores import ComponentRegistry


@dataclass
class RunResult:
    """Outcome of a successful pipeline run."""

    config_file: Path
    completed: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)


class Pipeline:
    """Runs a set of components that coordinate purely through the emitter.

    There is no scheduler: ordering between components comes from blocking
    events and dependency gates. ``run`` fails on the first fatal error.
    """

    CONFIG_FILE_NAME = CONFIG_FILE_NAME

    def __init__(self, emitter: Emitter | None = None) -> None:
        self.emitter = emitter or Emitter()
        self.logger = get_logger("pipeline")
        self._components: List[Component] = []
        self._config_file: Optional[Path] = None
        self._extra_configs: List[Path] = []
        self._skipped_modules: List[str] = []

    def components(self, *components: Component) -> "Pipeline":
        self._components.extend(components)
        return self

    @property
    def registered(self) -> List[Component]:
        return list(self._components)

    def configure(self, config_file: Path | str, *extra: Path | str) -> "Pipeline":
        self._config_file = Path(config_file)
        self._extra_configs = [Path(item) for item in extra]
        return self

    def skip_modules(self, keys: Iterable[str]) -> "Pipeline":
        self._skipped_modules.extend(key for key in keys if key)
        return self

    def validate(self) -> None:
        """Fail fast on duplicate names or dependencies outside the active set."""
        seen: Dict[str, Component] = {}
        for component in self._components:
            if component.name in seen:
                raise ConfigError(f"Duplicate component name '{component.name}'")
            seen[component.name] = component
        _check_dependencies(self._components)

    async def run(self) -> RunResult:
        self.validate()
        loaded = self._load()

        data = drop_modules(loaded.data, self._skipped_modules)
        if self._skipped_modules:
            self.logger.info("Skipping modules - %s", ", ".join(self._skipped_modules))
        self.emitter.container = Container(data).lock()

        for component in self._components:
            component.subscribe(self.emitter)

        self.logger.debug("Loading configuration from %s", loaded.file)
        await self.emitter.emit_blocking(events.CONFIG_LOAD, data, loaded.file)

        active: List[Component] = []
        skipped: List[str] = []
        for component in self._components:
            if await component.wait_config(self.emitter) is None:
                skipped.append(component.name)
            else:
                active.append(component)
        _check_dependencies(active)

        self.logger.info("Running components - %s", ", ".join(c.name for c in active) or "none")
        await self._run_components(active)
        await self.emitter.wait_pending()

        return RunResult(
            config_file=loaded.file,
            completed=[component.name for component in active],
            skipped=skipped,
        )

    def _load(self) -> LoadedConfig:
        if self._config_file is None:
            raise ConfigError("Pipeline has no configuration file; call configure() first")
        if self._extra_configs:
            self.logger.debug(
                "Loading component configurations - %s",
                ", ".join(str(path) for path in self._extra_configs),
            )
        return load_config(self._config_file, *self._extra_configs)

    async def _run_components(self, components: Sequence[Component]) -> None:
        if not components:
            return
        # Every task is created before any of them starts, so listeners
        # registered at the top of ``run`` are in place before emission begins.
        tasks = [
            asyncio.create_task(component.run(self.emitter), name=f"conveyor-{component.name}")
            for component in components
        ]
        try:
            await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        finally:
            pending = [task for task in tasks if not task.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        for component, task in zip(components, tasks):
            if task.cancelled():
                continue
            error = task.exception()
            if error is not None:
                self.logger.error("Component %s failed: %s", component.name, error)
                raise error


def resolve_namespace(name: str, additional: Sequence[str] = ()) -> tuple[str, List[str]]:
    """Map a run name onto a namespace; unknown names become additional components."""
    extra = list(additional)
    lowered = name.lower()
    if lowered in ("unit", "e2e"):
        return lowered, extra
    extra.append(name)
    return "generic", extra


async def resolve_components(
    identifiers: Sequence[str],
    factories: Dict[str, ComponentFactory],
) -> List[Component]:
    """Instantiate additional components one at a time, skipping unknown ones."""
    logger = get_logger("pipeline")
    instances: List[Component] = []

    def _step(identifier: str):
        async def _resolve(_: object) -> List[Component]:
            try:
                instances.append(create_component(identifier, factories))
            except (KeyError, TypeError, RuntimeError) as exc:
                logger.warning("Error initializing component %s: %s", identifier, exc)
            return instances

        return _resolve

    await run_in_sequence([_step(identifier) for identifier in identifiers])
    return instances


async def run_namespace(
    name: str,
    path: Path | str = ".",
    *,
    disabled: Sequence[str] = (),
    additional: Sequence[str] = (),
    skip_modules: Sequence[str] = (),
    registry_path: Path | str | None = None,
    factories: Optional[Dict[str, ComponentFactory]] = None,
) -> RunResult:
    """Assemble the component set for ``name`` and run it against ``path``."""
    logger = get_logger("pipeline")
    namespace, extra = resolve_namespace(name, additional)

    registry = ComponentRegistry.create(registry_path, namespace)
    logger.debug("Initialize components registry in %s", registry.registry_file)
    await registry.load()
    extra.extend(key for key in registry.list_keys() if key not in extra)

    registry_factories = factories if factories is not None else component_factories()
    builtin = [
        create_component(identifier, registry_factories)
        for identifier in namespace_components(namespace, disabled)
    ]
    builtin_names = {component.name for component in builtin}
    additional_instances = await resolve_components(
        [identifier for identifier in extra if identifier.lower() not in builtin_names],
        registry_factories,
    )

    pipeline = (
        Pipeline()
        .components(*builtin, *additional_instances)
        .configure(Path(path) / CONFIG_FILE_NAME, *registry.configs)
        .skip_modules(skip_modules)
    )
    return await pipeline.run()


def _check_dependencies(components: Sequence[Component]) -> None:
    names = [component.name for component in components]
    for component in components:
        missing = component.gate.missing(names)
        if missing:
            raise DependencyResolutionError(component.name, missing)


__all__ = ["Pipeline", "RunResult", "resolve_components", "resolve_namespace", "run_namespace"]
