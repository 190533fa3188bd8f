"""Tests for the error taxonomy and its classification."""

import pytest

from pyagentflow.core.errors import (
    CommandNotFoundError,
    DependencyUnsatisfiedError,
    InvalidParamsError,
    PermissionDeniedError,
    PlanInvalidError,
    TaskTimeoutError,
    ToolError,
    ToolExecutionError,
    ToolNotFoundError,
    classify_error,
)
from pyagentflow.models import ErrorKind


@pytest.mark.parametrize(
    ("error", "kind", "retryable"),
    [
        (ToolNotFoundError("x"), ErrorKind.TOOL_NOT_FOUND, False),
        (InvalidParamsError("x"), ErrorKind.INVALID_PARAMS, False),
        (ToolExecutionError("boom"), ErrorKind.EXECUTION, True),
        (ToolExecutionError("boom", retryable=False), ErrorKind.EXECUTION, False),
        (TaskTimeoutError(250), ErrorKind.TIMEOUT, True),
        (CommandNotFoundError("nope"), ErrorKind.COMMAND_NOT_FOUND, False),
        (PermissionDeniedError("denied"), ErrorKind.PERMISSION_DENIED, False),
        (PermissionError("os says no"), ErrorKind.PERMISSION_DENIED, False),
        (TimeoutError(), ErrorKind.TIMEOUT, True),
        (ValueError("anything else"), ErrorKind.EXECUTION, True),
    ],
)
def test_classify_error(error, kind, retryable):
    assert classify_error(error) == (kind, retryable)


def test_error_messages():
    assert str(ToolNotFoundError("git")) == "Tool not found: git"
    assert str(InvalidParamsError("shell")) == "Invalid params for tool: shell"
    assert str(InvalidParamsError("shell", "empty command")) == (
        "Invalid params for tool: shell (empty command)"
    )
    assert str(TaskTimeoutError(250)) == "Task timeout after 250ms"
    assert str(PlanInvalidError(["a", "b"])) == "Invalid workflow plan: a, b"
    assert "waiting on a, b" in str(DependencyUnsatisfiedError("c", ["a", "b"]))


def test_tool_error_kind_override():
    error = ToolError("busy", kind=ErrorKind.TIMEOUT)

    assert error.kind is ErrorKind.TIMEOUT
    assert error.is_retryable()
    assert "kind=TIMEOUT" in repr(error)
