"""Bounded worker pool shared by every pipeline stage.

A single ``Workforce`` is created per process and passed to the archive,
checksum and upload stages. Each stage starts its own ``Runner`` (one batch
of tasks) and waits for it; the workforce's executor caps how many tasks run
at once across all batches.

Usage:
    with Workforce(num_workers=4) as workforce:
        runner, ctx = workforce.start(Context())
        for path in paths:
            runner.run(lambda path=path: build_one(ctx, path))
        result = runner.wait()
"""

from __future__ import annotations

import os
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from types import TracebackType

from relpipe.core.cancel import Context
from relpipe.core.errors import PipelineError
from relpipe.core.result import Err, Ok, Result

__all__ = ["Task", "Runner", "Workforce"]

type Task = Callable[[], Result[None, PipelineError]]


class Runner:
    """One batch of tasks scheduled on a workforce.

    Tasks run in no particular order. ``wait`` lets every submitted task
    finish, then reports the first failure by completion order.
    """

    def __init__(self, executor: ThreadPoolExecutor, ctx: Context) -> None:
        self._executor = executor
        self._ctx = ctx
        self._futures: list[Future[Result[None, PipelineError]]] = []

    def run(self, task: Task) -> None:
        self._futures.append(self._executor.submit(self._call, task))

    def _call(self, task: Task) -> Result[None, PipelineError]:
        check = self._ctx.check()
        if isinstance(check, Err):
            return check
        try:
            return task()
        except Exception as e:  # noqa: BLE001
            return Err(
                PipelineError(
                    kind="io_failed",
                    message=f"task failed: {e}",
                    hint=type(e).__name__,
                )
            )

    def wait(self) -> Result[None, PipelineError]:
        first: Err[PipelineError] | None = None
        futures, self._futures = self._futures, []
        for future in as_completed(futures):
            if future.cancelled():
                result: Result[None, PipelineError] = Err(
                    PipelineError(kind="cancelled", message="task cancelled before it started")
                )
            else:
                result = future.result()
            if isinstance(result, Err) and first is None:
                first = result
        if first is not None:
            return first
        return Ok(None)


class Workforce:
    """Process-wide worker pool.

    Attributes:
        num_workers: Maximum number of tasks running at the same time.
    """

    def __init__(self, num_workers: int = 0) -> None:
        self.num_workers = num_workers if num_workers > 0 else (os.cpu_count() or 1)
        self._executor = ThreadPoolExecutor(
            max_workers=self.num_workers,
            thread_name_prefix="relpipe-worker",
        )

    def start(self, ctx: Context) -> tuple[Runner, Context]:
        """Start a new batch.

        Returns the runner and a child context; cancelling ``ctx`` cancels the
        child, so tasks should check the returned context.
        """
        child = ctx.child()
        return Runner(self._executor, child), child

    def shutdown(self, *, cancel_pending: bool = False) -> None:
        self._executor.shutdown(wait=True, cancel_futures=cancel_pending)

    def __enter__(self) -> Workforce:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.shutdown(cancel_pending=exc_type is not None)
