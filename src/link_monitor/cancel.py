from __future__ import annotations

import asyncio
import contextlib
from typing import Awaitable, TypeVar

T = TypeVar("T")


class Stopped(Exception):
    """Raised by until_stopped when the stop event wins the race."""


async def until_stopped(aw: Awaitable[T], stop_event: asyncio.Event) -> T:
    """Await ``aw`` unless ``stop_event`` is set first.

    When the stop event wins, the pending work is cancelled and awaited so
    in-flight requests are torn down before Stopped is raised.
    """
    work = asyncio.ensure_future(aw)
    stopper = asyncio.ensure_future(stop_event.wait())
    try:
        await asyncio.wait({work, stopper}, return_when=asyncio.FIRST_COMPLETED)
    except BaseException:
        work.cancel()
        raise
    finally:
        stopper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await stopper
    if work.done():
        return work.result()
    work.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await work
    raise Stopped()


async def sleep_or_stop(stop_event: asyncio.Event, seconds: float) -> bool:
    """Sleep for ``seconds``; return True early if ``stop_event`` gets set."""
    try:
        await asyncio.wait_for(stop_event.wait(), timeout=max(0.0, seconds))
    except asyncio.TimeoutError:
        return False
    return True
