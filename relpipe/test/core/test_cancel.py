from __future__ import annotations

import threading
import time

from relpipe.core.cancel import Context
from relpipe.core.result import Err, Ok


def test_fresh_context_is_not_cancelled() -> None:
    ctx = Context()
    assert not ctx.cancelled
    assert ctx.check() == Ok(None)
    assert ctx.reason == ""


def test_cancel_sets_reason_and_check_fails() -> None:
    ctx = Context()
    ctx.cancel("interrupted")
    assert ctx.cancelled
    result = ctx.check()
    assert isinstance(result, Err)
    assert result.error.kind == "cancelled"
    assert "interrupted" in result.error.message


def test_first_reason_sticks() -> None:
    ctx = Context()
    ctx.cancel("first")
    ctx.cancel("second")
    assert ctx.reason == "first"


def test_parent_cancel_propagates_to_child() -> None:
    parent = Context()
    child = parent.child()
    grandchild = child.child()
    parent.cancel("stop")
    assert child.cancelled
    assert grandchild.cancelled
    assert grandchild.reason == "stop"


def test_child_cancel_does_not_affect_parent() -> None:
    parent = Context()
    child = parent.child()
    child.cancel()
    assert not parent.cancelled


def test_wait_returns_false_on_timeout() -> None:
    assert Context().wait(0.01) is False
    assert Context().child().wait(0.01) is False


def test_wait_wakes_up_on_parent_cancel() -> None:
    parent = Context()
    child = parent.child()
    timer = threading.Timer(0.05, parent.cancel)
    timer.start()
    try:
        start = time.monotonic()
        assert child.wait(5.0) is True
        assert time.monotonic() - start < 2.0
    finally:
        timer.cancel()
