"""Event names forming the contract between the core and components."""

CONFIG_LOAD = "config.load"
COMPONENT_READY = "component.ready"

MODULES_PROCESS_START = "modules.process.start"
MODULES_PROCESS_END = "modules.process.end"
MODULE_PROCESS_START = "module.process.start"
MODULE_PROCESS_END = "module.process.end"
MODULE_EMIT_ASSET = "module.emit.asset"


def asset_add(component: str) -> str:
    return f"{component}.asset.add"


def asset_skip(component: str) -> str:
    return f"{component}.asset.skip"


def assets_start(component: str) -> str:
    return f"{component}.assets.start"


def assets_end(component: str) -> str:
    return f"{component}.assets.end"
