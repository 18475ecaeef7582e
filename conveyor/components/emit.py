"""Emit component: turns configured modules into a stream of asset events."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Awaitable, Callable, List, Mapping

from .. import events
from ..config import MAIN_CONFIG_KEY
from ..container import Container, ContainerTransformer
from ..emitter import Emitter
from ..errors import ConfigError, ModuleProcessingError
from ..sequential import run_in_sequence
from .base import Component
from .emit_module import EmitModule


class EmitComponent(Component):
    """Drives every module through ``check`` and ``process``, one module at a time."""

    def __init__(self) -> None:
        super().__init__("emit")
        self.modules: List[EmitModule] = []

    def build_transformer(self, container: Container) -> ContainerTransformer:
        return (
            super()
            .build_transformer(container)
            .add_pattern("pattern")
            .add_pattern("ignore")
        )

    async def configure(self, emitter: Emitter, container: Container) -> None:
        root = emitter.container
        if root is None:
            raise ConfigError("Emitter has no root container; modules cannot be discovered")

        module_keys = [key for key in root.list_keys() if key != MAIN_CONFIG_KEY]
        for key in module_keys:
            module_config = root.section(key)
            if not isinstance(module_config, dict):
                raise ConfigError(f"Module '{key}' must be a mapping")
            module_container = await self.prepare_module_config(module_config, container)
            self.modules.append(EmitModule(key, module_container, emitter, self.logger))

        if module_keys:
            self.logger.info("Modules to emit - %s", ", ".join(module_keys))

    async def prepare_module_config(
        self, module_config: Mapping[str, Any], main_container: Container
    ) -> Container:
        container = self.create_container(module_config)
        if container.get("root") is None:
            container.set("root", ".")
        base_dir = main_container.get("__dir", str(Path.cwd()))
        return await ContainerTransformer(container).add_path("root", base_dir).transform()

    async def execute(self, emitter: Emitter) -> None:
        self._register_debuggers(emitter)

        emitter.emit(events.MODULES_PROCESS_START, self.modules, self.container)
        # Let listeners attached by components started in the same batch register first.
        await emitter.barrier()

        await run_in_sequence([self._module_step(emitter, module) for module in self.modules])

        await emitter.barrier()
        emitter.emit(events.MODULES_PROCESS_END, self.modules, self.container)

    def _module_step(
        self, emitter: Emitter, module: EmitModule
    ) -> Callable[[Any], Awaitable[EmitModule]]:
        async def _step(_: Any) -> EmitModule:
            try:
                await module.check()
            except Exception as exc:
                raise ModuleProcessingError(module.name, "check", exc) from exc
            await emitter.emit_blocking(events.MODULE_PROCESS_START, module, self.container)
            try:
                await module.process(self.container)
            except Exception as exc:
                raise ModuleProcessingError(module.name, "process", exc) from exc
            await emitter.emit_blocking(events.MODULE_PROCESS_END, module)
            return module

        return _step

    def _register_debuggers(self, emitter: Emitter) -> None:
        def _modules_start(modules: List[EmitModule], container: Container) -> None:
            names = ", ".join(module.name for module in modules)
            self.logger.info("Start processing modules%s", f" - {names}" if names else "")
            self.logger.debug(container.dump())

        def _modules_end(modules: List[EmitModule], _container: Container) -> None:
            names = ", ".join(module.name for module in modules)
            self.logger.info("Finish processing modules%s", f" - {names}" if names else "")

        def _module_start(module: EmitModule, _container: Container) -> None:
            self.logger.debug("Start processing module %s", module.name)
            self.logger.debug(module.container.dump())

        def _module_end(module: EmitModule) -> None:
            self.logger.debug("Finish processing module %s", module.name)
            self.logger.debug(module.dump_stats())

        emitter.on(events.MODULES_PROCESS_START, _modules_start)
        emitter.on(events.MODULES_PROCESS_END, _modules_end)
        emitter.on(events.MODULE_PROCESS_START, _module_start)
        emitter.on(events.MODULE_PROCESS_END, _module_end)


__all__ = ["EmitComponent"]
