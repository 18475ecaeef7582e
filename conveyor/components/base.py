"""Component lifecycle and the behaviours components are composed from."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Awaitable, Callable, Iterable, List, Mapping, Optional, Sequence, Set

from .. import events
from ..config import MAIN_CONFIG_KEY
from ..container import Container, ContainerTransformer
from ..emitter import Emitter
from ..errors import ConfigError
from ..logging import get_logger
from ..models import ComponentState

Prepare = Callable[[Mapping[str, Any], Path], Awaitable[Container]]


class ConfigWaiter:
    """Blocks readiness until the ``$.<key>`` section arrives and is prepared."""

    def __init__(self, key: str, prepare: Prepare, *, mandatory: bool = False) -> None:
        self.key = key
        self.mandatory = mandatory
        self._prepare = prepare
        self._loaded = asyncio.Event()
        self._container: Optional[Container] = None
        self._error: Optional[BaseException] = None

    def attach(self, emitter: Emitter) -> None:
        emitter.on_blocking(events.CONFIG_LOAD, self._on_config_load)

    async def wait(self) -> Optional[Container]:
        await self._loaded.wait()
        if self._error is not None:
            raise self._error
        return self._container

    async def _on_config_load(self, config: Mapping[str, Any], config_file: Path) -> None:
        main = config.get(MAIN_CONFIG_KEY)
        section = main.get(self.key) if isinstance(main, dict) else None
        try:
            if section is None:
                if self.mandatory:
                    raise ConfigError(
                        f"Missing mandatory configuration section '{MAIN_CONFIG_KEY}.{self.key}'"
                    )
            else:
                if not isinstance(section, dict):
                    raise ConfigError(
                        f"Configuration section '{MAIN_CONFIG_KEY}.{self.key}' must be a mapping"
                    )
                self._container = await self._prepare(section, Path(config_file))
        except Exception as exc:
            self._error = exc
            raise
        finally:
            self._loaded.set()


class DependencyGate:
    """Blocks ``run`` until every dependency has emitted ``component.ready``."""

    def __init__(self, dependencies: Sequence[str]) -> None:
        self.dependencies: List[str] = list(dependencies)
        self._seen: Set[str] = set()
        self._open = asyncio.Event()
        if not self.dependencies:
            self._open.set()

    def attach(self, emitter: Emitter) -> None:
        if self.dependencies:
            emitter.on_blocking(events.COMPONENT_READY, self._on_ready)

    def missing(self, available: Iterable[str]) -> List[str]:
        names = set(available)
        return [name for name in self.dependencies if name not in names]

    @property
    def satisfied(self) -> bool:
        return self._open.is_set()

    async def wait(self) -> None:
        await self._open.wait()

    def _on_ready(self, component: Any) -> None:
        name = getattr(component, "name", component)
        if name in self.dependencies:
            self._seen.add(name)
        if self._seen.issuperset(self.dependencies):
            self._open.set()


class Component:
    """A named pipeline stage.

    The lifecycle is ``subscribe`` (register listeners), ``wait_config``
    (configuration arrives, ``component.ready`` is emitted) and ``run``
    (dependencies observed, then ``execute``). Subclasses customise
    ``build_transformer``, ``configure`` and ``execute``.
    """

    def __init__(
        self,
        name: str,
        *,
        dependencies: Sequence[str] = (),
        mandatory: bool = False,
    ) -> None:
        self.name = name
        self.dependencies = list(dependencies)
        self.container: Optional[Container] = None
        self.state = ComponentState.CREATED
        self.logger = get_logger(f"components.{name}")
        self._config = ConfigWaiter(name, self.prepare_config, mandatory=mandatory)
        self._gate = DependencyGate(self.dependencies)

    @property
    def mandatory(self) -> bool:
        return self._config.mandatory

    @property
    def gate(self) -> DependencyGate:
        return self._gate

    def subscribe(self, emitter: Emitter) -> None:
        self._config.attach(emitter)
        self._gate.attach(emitter)
        self.state = ComponentState.CONFIG_PENDING

    async def wait_config(self, emitter: Emitter) -> Optional[Container]:
        """Return the prepared container, or ``None`` when the component is skipped."""
        try:
            container = await self._config.wait()
            if container is None:
                self.state = ComponentState.SKIPPED
                self.logger.info("Skipping component %s: no configuration found", self.name)
                return None
            self.container = container
            await self.configure(emitter, container)
        except Exception:
            self.state = ComponentState.FAILED
            raise
        self.state = ComponentState.CONFIG_READY
        await emitter.emit_blocking(events.COMPONENT_READY, self)
        return container

    async def prepare_config(self, config: Mapping[str, Any], config_file: Path) -> Container:
        container = self.create_container(config)
        container.set("__dir", str(Path(config_file).parent))
        return await self.build_transformer(container).transform()

    def create_container(self, config: Mapping[str, Any] | None) -> Container:
        return Container(config or {})

    def build_transformer(self, container: Container) -> ContainerTransformer:
        return ContainerTransformer(container)

    async def configure(self, emitter: Emitter, container: Container) -> None:
        """Hook run once the container is ready, before ``component.ready``."""

    async def run(self, emitter: Emitter) -> None:
        await self._gate.wait()
        self.state = ComponentState.RUNNING
        try:
            await self.execute(emitter)
        except Exception:
            self.state = ComponentState.FAILED
            raise
        self.state = ComponentState.DONE

    async def execute(self, emitter: Emitter) -> None:
        raise NotImplementedError(f"{type(self).__name__}.execute() not implemented")

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, state={self.state.value})"


__all__ = ["Component", "ConfigWaiter", "DependencyGate"]
