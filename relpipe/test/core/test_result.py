"""Tests for relpipe.core.result module."""

import pytest

from relpipe.core.errors import PipelineError
from relpipe.core.result import Err, Ok, Result


def test_equality_and_repr() -> None:
    assert Ok(1) == Ok(1)
    assert Ok(1) != Err(1)
    assert repr(Ok("a")) == "Ok('a')"
    assert repr(Err(2)) == "Err(2)"


def test_frozen() -> None:
    result = Ok(1)
    with pytest.raises(AttributeError):
        result.value = 2  # type: ignore[misc]


def test_pattern_matching_on_pipeline_errors() -> None:
    def describe(result: Result[int, PipelineError]) -> str:
        match result:
            case Ok(value):
                return f"ok {value}"
            case Err(PipelineError(kind="cancelled")):
                return "cancelled"
            case Err(error):
                return f"err {error.kind}"

    assert describe(Ok(1)) == "ok 1"
    assert describe(Err(PipelineError(kind="cancelled", message="x"))) == "cancelled"
    assert describe(Err(PipelineError(kind="io_failed", message="x"))) == "err io_failed"
