"""Event bus used by components to coordinate a pipeline run."""

from __future__ import annotations

import asyncio
import inspect
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Deque, Dict, List, Optional, Set, Tuple, TYPE_CHECKING

from .errors import HandlerError
from .logging import get_logger

if TYPE_CHECKING:  # pragma: no cover - typing aid
    from .container import Container

Handler = Callable[..., Any]

DEFAULT_PRIORITY = 100


@dataclass
class Listener:
    """A registered handler. Lower priority values run earlier."""

    handler: Handler
    priority: int
    blocking: bool
    sequence: int


class Emitter:
    """Publish/subscribe bus with blocking and fire-and-forget dispatch.

    ``emit_blocking`` awaits every handler in turn, which lets an upstream
    component wait until all interested components finished reacting before it
    continues. ``emit`` only schedules handlers and logs their failures.
    """

    def __init__(self, container: "Container | None" = None) -> None:
        self.container = container
        self.logger = get_logger("emitter")
        self._listeners: Dict[str, List[Listener]] = {}
        self._sequence = 0
        self._pending: Set[asyncio.Future[Any]] = set()
        self._deferred: Deque[Tuple[Callable[..., Any], Tuple[Any, ...]]] = deque()
        self._flush_scheduled = False

    def on(self, event: str, handler: Handler, priority: int = DEFAULT_PRIORITY) -> None:
        self._register(event, handler, priority, blocking=False)

    def on_blocking(self, event: str, handler: Handler, priority: int = DEFAULT_PRIORITY) -> None:
        self._register(event, handler, priority, blocking=True)

    def off(self, event: str, handler: Handler) -> None:
        listeners = self._listeners.get(event)
        if not listeners:
            return
        self._listeners[event] = [item for item in listeners if item.handler is not handler]

    def listeners(self, event: str, *, blocking: Optional[bool] = None) -> List[Listener]:
        """Return listeners for ``event`` in dispatch order."""
        listeners = sorted(
            self._listeners.get(event, []),
            key=lambda item: (item.priority, item.sequence),
        )
        if blocking is None:
            return listeners
        return [item for item in listeners if item.blocking is blocking]

    def emit(self, event: str, *payload: Any) -> None:
        """Invoke non-blocking handlers without waiting for them."""
        for listener in self.listeners(event, blocking=False):
            try:
                result = listener.handler(*payload)
            except Exception as exc:
                self._log_failure(event, exc)
                continue
            if inspect.isawaitable(result):
                self._schedule(event, result)

    async def emit_blocking(self, event: str, *payload: Any) -> None:
        """Invoke every handler in priority order, awaiting each before the next."""
        for listener in self.listeners(event):
            result = listener.handler(*payload)
            if inspect.isawaitable(result):
                await result

    def defer(self, callback: Callable[..., Any], *args: Any) -> None:
        """Queue ``callback`` to run after the currently scheduled batch drains."""
        self._deferred.append((callback, args))
        if self._flush_scheduled:
            return
        self._flush_scheduled = True
        asyncio.get_running_loop().call_soon(self._flush)

    async def barrier(self) -> None:
        """Suspend until the deferred queue reaches this point."""
        future: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self.defer(_resolve, future)
        await future

    async def wait_pending(self) -> None:
        """Wait for scheduled non-blocking handlers. Failures are already logged."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _register(self, event: str, handler: Handler, priority: int, *, blocking: bool) -> None:
        self._sequence += 1
        self._listeners.setdefault(event, []).append(
            Listener(handler=handler, priority=priority, blocking=blocking, sequence=self._sequence)
        )

    def _schedule(self, event: str, awaitable: Any) -> None:
        try:
            future = asyncio.ensure_future(awaitable)
        except RuntimeError as exc:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            self._log_failure(event, exc)
            return
        self._pending.add(future)
        future.add_done_callback(lambda done: self._settle(event, done))

    def _settle(self, event: str, future: asyncio.Future[Any]) -> None:
        self._pending.discard(future)
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            self._log_failure(event, exc)

    def _log_failure(self, event: str, exc: BaseException) -> None:
        error = HandlerError(event, exc)
        self.logger.error("%s", error, exc_info=(type(exc), exc, exc.__traceback__))

    def _flush(self) -> None:
        self._flush_scheduled = False
        while self._deferred:
            callback, args = self._deferred.popleft()
            try:
                callback(*args)
            except Exception as exc:
                self._log_failure("deferred", exc)


def _resolve(future: asyncio.Future[None]) -> None:
    if not future.done():
        future.set_result(None)


__all__ = ["DEFAULT_PRIORITY", "Emitter", "Listener"]
