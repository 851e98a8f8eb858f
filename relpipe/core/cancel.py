"""Cancellation contexts shared between the pipeline and its worker tasks."""

from __future__ import annotations

import threading

from .errors import PipelineError
from .result import Err, Ok, Result

__all__ = ["Context"]


class Context:
    """A cancellation signal that propagates from parent to children.

    Tasks call ``check()`` at each blocking boundary (before opening a file,
    between upload attempts) and return its error when the context is done.
    """

    def __init__(self, parent: Context | None = None) -> None:
        self._event = threading.Event()
        self._parent = parent
        self._reason: str | None = None

    def child(self) -> Context:
        """Create a context cancelled whenever this one is."""
        return Context(parent=self)

    def cancel(self, reason: str = "cancelled") -> None:
        if not self._event.is_set():
            self._reason = reason
            self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._parent is not None and self._parent.cancelled

    @property
    def reason(self) -> str:
        if self._event.is_set():
            return self._reason or "cancelled"
        if self._parent is not None:
            return self._parent.reason
        return ""

    def check(self) -> Result[None, PipelineError]:
        if self.cancelled:
            return Err(PipelineError(kind="cancelled", message=f"operation {self.reason}"))
        return Ok(None)

    def wait(self, timeout: float) -> bool:
        """Sleep up to ``timeout`` seconds; return True if cancelled meanwhile."""
        if self._parent is None:
            return self._event.wait(timeout)
        # Poll so that a parent cancellation also wakes us up.
        step = min(timeout, 0.05) if timeout > 0 else 0
        remaining = timeout
        while remaining > 0:
            if self.cancelled:
                return True
            self._event.wait(step)
            remaining -= step
        return self.cancelled
