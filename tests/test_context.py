"""Tests for ExecutionContext and its read-only tool view."""

import dataclasses

import pytest

from pyagentflow.core import ExecutionContext
from pyagentflow.core.context import DEFAULT_TIMEOUT_MS, StateStore


def test_context_seeds_state_with_session():
    context = ExecutionContext(working_directory="/tmp", environment={}, state={"user": "x"})

    assert context.state.get("session_id") == context.run_id
    assert "start_time" in context.state
    assert context.state["user"] == "x"


def test_context_defaults():
    context = ExecutionContext()

    assert context.working_directory
    assert context.effective_timeout == DEFAULT_TIMEOUT_MS
    assert context.history == ()
    assert ExecutionContext().run_id != context.run_id


def test_view_is_read_only_and_live(context):
    view = context.view()

    with pytest.raises(TypeError):
        view.state["step_1"] = "tampered"
    with pytest.raises(dataclasses.FrozenInstanceError):
        view.working_directory = "/elsewhere"

    context.state.set("step_1", {"type": "echo"})

    assert view.state["step_1"] == {"type": "echo"}
    assert view.timeout == 1000


def test_environment_is_a_snapshot():
    env = {"A": "1"}
    context = ExecutionContext(environment=env)
    env["A"] = "2"

    assert context.environment["A"] == "1"
    with pytest.raises(TypeError):
        context.environment["B"] = "3"


def test_history_appends_in_order(context):
    context.record_history("a", {"n": 1}, 5.0)
    context.record_history("b", {"n": 2}, 7.0)

    assert [entry.step_id for entry in context.history] == ["a", "b"]
    assert context.history[1].duration == 7.0


def test_state_store_snapshot_is_detached():
    store = StateStore({"k": 1})
    snapshot = store.snapshot()
    store.set("k", 2)

    assert snapshot == {"k": 1}
    assert len(store) == 1
    assert list(store) == ["k"]
