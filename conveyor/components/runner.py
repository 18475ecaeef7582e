"""Runner components collecting emitted assets and executing them as one batch."""

from __future__ import annotations

import asyncio
import json
import sys
import time
from dataclasses import asdict
from pathlib import Path
from typing import Awaitable, Callable, List, Optional, Sequence
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from .. import events
from ..cache import CacheDriver, create_driver
from ..container import Container, ContainerTransformer
from ..emitter import Emitter
from ..errors import AssetRunError, ConfigError
from ..models import AssetPayload
from .base import Component
from .matching import AssetMatcher

CommandRunner = Callable[[Sequence[str], Path], Awaitable[int]]
UriChecker = Callable[[str], bool]


class RunnerComponent(Component):
    """Accumulates matching assets, then runs ``command`` over all of them.

    Configuration (``$.<name>``)::

        pattern: ["*.e2e.py"]
        ignore: ["skip/"]
        command: ["python", "-m", "pytest"]
        wait:
          uri: ["http://localhost:8080"]
          timeout: 15000
          interval: 200
        cache:
          driver: volatile
          base_dir: .conveyor-cache

    With a ``cache`` section the outcome of each run is stored as JSON under
    ``<name>/last-run.json`` through the named cache driver.
    """

    DEFAULT_PRIORITY = 10
    DEFAULT_WAIT_TIMEOUT = 15000
    DEFAULT_WAIT_INTERVAL = 200

    def __init__(
        self,
        name: str,
        *,
        dependencies: Sequence[str] = ("emit",),
        command_runner: CommandRunner | None = None,
        uri_checker: UriChecker | None = None,
    ) -> None:
        super().__init__(name, dependencies=dependencies)
        self.assets: List[str] = []
        self.matcher = AssetMatcher()
        self._modules_done = asyncio.Event()
        self._command_runner = command_runner or _run_command
        self._uri_checker = uri_checker or _uri_available
        self.cache: Optional[CacheDriver] = None

    @property
    def stats(self):
        return self.matcher.stats

    def build_transformer(self, container: Container) -> ContainerTransformer:
        return (
            super()
            .build_transformer(container)
            .add_pattern("pattern")
            .add_pattern("ignore")
        )

    async def configure(self, emitter: Emitter, container: Container) -> None:
        self.matcher = AssetMatcher(
            patterns=container.get("pattern", []),
            ignore=container.get("ignore", []),
        )
        self.cache = self._create_cache(container)

    @property
    def report_key(self) -> str:
        return f"{self.name}/last-run.json"

    async def execute(self, emitter: Emitter) -> None:
        async def _on_asset(payload: AssetPayload, *_: object) -> None:
            if not self.matcher.match(payload.file):
                await emitter.emit_blocking(events.asset_skip(self.name), payload)
                return
            await emitter.emit_blocking(events.asset_add(self.name), payload)
            self.assets.append(payload.file_abs)

        emitter.on_blocking(events.MODULE_EMIT_ASSET, _on_asset, self.DEFAULT_PRIORITY)
        emitter.on(events.MODULES_PROCESS_END, lambda *_: self._modules_done.set())

        await self._modules_done.wait()

        if self.assets:
            await self._run_assets(emitter)

        self.logger.info("Finished processing %d %s assets", self.stats.processed, self.name)
        self.logger.debug(self.stats.dump())

    async def _run_assets(self, emitter: Emitter) -> None:
        await self._wait_uris()
        await emitter.emit_blocking(events.assets_start(self.name), list(self.assets))

        command = self._command()
        cwd = Path(self.container.get("__dir", ".")) if self.container else Path.cwd()
        self.logger.debug("Running %s over %d assets", " ".join(command), len(self.assets))
        returncode = await self._command_runner([*command, *self.assets], cwd)

        await emitter.emit_blocking(events.assets_end(self.name), returncode)
        await self._store_report(returncode)
        if returncode != 0:
            raise AssetRunError(
                f"{self.name} command exited with code {returncode} for {len(self.assets)} assets"
            )

    def _create_cache(self, container: Container) -> Optional[CacheDriver]:
        options = container.get("cache")
        if options is None:
            return None
        if not isinstance(options, dict) or not options.get("driver"):
            raise ConfigError(f"'{self.name}.cache' needs a 'driver' name")
        options = dict(options)
        driver = str(options.pop("driver"))
        if options.get("base_dir"):
            options["base_dir"] = Path(container.get("__dir", ".")) / str(options["base_dir"])
        return create_driver(driver, **options)

    async def _store_report(self, returncode: int) -> None:
        if self.cache is None:
            return
        report = {
            "component": self.name,
            "returncode": returncode,
            "assets": list(self.assets),
            "stats": asdict(self.stats),
        }
        await self.cache.put(self.report_key, json.dumps(report, indent=2))
        self.logger.debug("Stored run report in %s cache as %s", self.cache.name, self.report_key)

    def _command(self) -> List[str]:
        command = self.container.get("command") if self.container else None
        if command is None:
            return [sys.executable, "-m", "pytest"]
        if isinstance(command, str):
            return command.split()
        if not isinstance(command, list) or not command:
            raise ConfigError(f"'{self.name}.command' must be a non-empty list or string")
        return [str(part) for part in command]

    async def _wait_uris(self) -> None:
        uris = self.container.get("wait.uri", []) if self.container else []
        if isinstance(uris, str):
            uris = [uris]
        if not uris:
            return
        self.logger.info("Waiting for URIs to be available: %s", ", ".join(uris))
        await asyncio.gather(*(self._wait_uri(uri) for uri in uris))
        self.logger.info("All URIs are available")

    async def _wait_uri(self, uri: str) -> None:
        timeout = int(self.container.get("wait.timeout", self.DEFAULT_WAIT_TIMEOUT))
        interval = int(self.container.get("wait.interval", self.DEFAULT_WAIT_INTERVAL))
        deadline = time.monotonic() + timeout / 1000
        loop = asyncio.get_running_loop()

        while True:
            if await loop.run_in_executor(None, self._uri_checker, uri):
                return
            if time.monotonic() >= deadline:
                raise AssetRunError(f"{uri} not available: max timeout of {timeout} ms reached")
            await asyncio.sleep(interval / 1000)


async def _run_command(command: Sequence[str], cwd: Path) -> int:
    try:
        process = await asyncio.create_subprocess_exec(*command, cwd=str(cwd))
    except FileNotFoundError as exc:
        raise AssetRunError(f"Unable to locate '{command[0]}'") from exc
    return await process.wait()


def _uri_available(uri: str, timeout: Optional[float] = 5.0) -> bool:
    request = Request(uri, method="HEAD")
    try:
        with urlopen(request, timeout=timeout) as response:
            return response.status < 400
    except HTTPError as exc:
        return exc.code < 400
    except (URLError, OSError, ValueError):
        return False


__all__ = ["RunnerComponent"]
