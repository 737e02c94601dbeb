"""
Fan-in coordination for concurrent preparation steps.

``FanInBarrier`` counts outstanding operations and fires exactly one
terminal continuation: success after the last completion, or failure on
the first error. Later reports are ignored.

The counter and latch are plain attributes. All calls happen on the
event loop thread (task done-callbacks run there even when the work
itself ran in ``asyncio.to_thread``), so no two completions can observe
the barrier mid-update. Calling ``decrement``/``fail`` from other threads
requires guarding both with a lock.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, TypeVar

import structlog

logger = structlog.get_logger()

T = TypeVar("T")


class FanInBarrier:
    """Single-fire completion barrier over ``expected`` operations."""

    def __init__(
        self,
        expected: int,
        on_success: Callable[[], None],
        on_failure: Callable[[BaseException], None],
    ) -> None:
        if expected < 0:
            raise ValueError(f"expected count must be >= 0, got {expected}")
        self._remaining = expected
        self._on_success = on_success
        self._on_failure = on_failure
        self._fired = False
        self._failed = False
        if expected == 0:
            self._fire_success()

    @property
    def remaining(self) -> int:
        return self._remaining

    @property
    def fired(self) -> bool:
        return self._fired

    @property
    def failed(self) -> bool:
        return self._failed

    def decrement(self) -> None:
        """Record one successful completion."""
        if self._fired:
            return
        self._remaining -= 1
        if self._remaining <= 0:
            self._remaining = 0
            self._fire_success()

    def fail(self, error: BaseException) -> None:
        """Record a failure; only the first one is reported."""
        if self._fired:
            return
        self._fired = True
        self._failed = True
        self._on_failure(error)

    def _fire_success(self) -> None:
        self._fired = True
        self._on_success()


def barrier_future(expected: int) -> tuple[FanInBarrier, asyncio.Future]:
    """Create a barrier whose terminal event resolves a future on the running loop."""
    future: asyncio.Future = asyncio.get_running_loop().create_future()

    def succeed() -> None:
        if not future.done():
            future.set_result(None)

    def fail(error: BaseException) -> None:
        if not future.done():
            future.set_exception(error)

    return FanInBarrier(expected, succeed, fail), future


def track(
    task: asyncio.Future,
    barrier: FanInBarrier,
    on_result: Callable[[Any], None],
) -> None:
    """Report ``task``'s outcome to ``barrier`` once it completes.

    ``on_result`` receives the task's result before the barrier is
    decremented, so the success continuation sees every recorded result.
    """

    def done(t: asyncio.Future) -> None:
        if t.cancelled():
            barrier.fail(asyncio.CancelledError())
            return
        error = t.exception()
        if error is not None:
            barrier.fail(error)
            return
        try:
            on_result(t.result())
        except Exception as e:
            barrier.fail(e)
            return
        barrier.decrement()

    task.add_done_callback(done)


class TaskTracker:
    """Keeps in-flight tasks alive so losers of a fail-fast race finish their work."""

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task] = set()

    def spawn(self, coro: Awaitable[T]) -> "asyncio.Task[T]":
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every spawned task; outcomes are logged and discarded."""
        while self._tasks:
            tasks = list(self._tasks)
            results = await asyncio.gather(*tasks, return_exceptions=True)
            self._tasks.difference_update(tasks)
            for result in results:
                if isinstance(result, BaseException):
                    logger.warning("discarded_task_failure", error=str(result))
