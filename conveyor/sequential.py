"""Ordered execution of asynchronous steps."""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Sequence

Step = Callable[[Any], Awaitable[Any]]


async def run_in_sequence(steps: Sequence[Step], seed: Any = None) -> Any:
    """Run ``steps`` one after another, feeding each the previous result.

    The first step receives ``seed``. The result of the last step is returned,
    or ``seed`` itself when there are no steps. A failing step stops the chain.
    """
    result = seed
    for step in list(steps):
        result = await step(result)
    return result


__all__ = ["run_in_sequence"]
