"""Tests for the data models: steps, plans, results and retry policy."""

import dataclasses

import pytest

from pyagentflow.models import (
    ErrorKind,
    FailureAction,
    OutputResult,
    RetryPolicy,
    RunStage,
    TaskResult,
    ValidationReport,
    WorkflowPlan,
    WorkflowStep,
    validate_result,
)


def test_step_dependencies_are_deduplicated_in_order():
    step = WorkflowStep(id="a", name="A", tool="echo", dependencies=("x", "y", "x"))

    assert step.dependencies == ("x", "y")
    assert step.depends_on("y")
    assert not step.depends_on("a")


def test_step_with_dependencies_returns_copy():
    step = WorkflowStep(id="a", name="A", tool="echo", dependencies=("x",))

    extended = step.with_dependencies("y", "x")

    assert extended.dependencies == ("x", "y")
    assert step.dependencies == ("x",)


def test_step_is_frozen():
    step = WorkflowStep(id="a", name="A", tool="echo")

    with pytest.raises(dataclasses.FrozenInstanceError):
        step.id = "b"  # type: ignore[misc]


def test_plan_lookup_and_serialization():
    steps = (
        WorkflowStep(id="a", name="A", tool="echo", params={"k": 1}),
        WorkflowStep(id="b", name="B", tool="echo", dependencies=("a",)),
    )
    plan = WorkflowPlan(goal="goal", steps=steps, estimated_duration=2.5)

    assert len(plan) == 2
    assert plan.step_ids == ["a", "b"]
    assert plan.get_step("b") is steps[1]
    assert plan.get_step("missing") is None

    data = plan.to_dict()
    assert data["goal"] == "goal"
    assert data["steps"][0]["params"] == {"k": 1}
    assert data["steps"][1]["dependencies"] == ["a"]


def test_validation_report_truthiness():
    assert ValidationReport().is_valid
    assert ValidationReport()

    report = ValidationReport(["one", "two"])
    assert not report.is_valid
    assert not report
    assert report.issues == ("one", "two")


class TestRetryPolicy:
    def test_defaults(self):
        policy = RetryPolicy()

        assert policy.max_retries == 3
        assert policy.backoff_ms == 1000
        assert policy.exponential_backoff is True
        assert policy.max_attempts == 4

    def test_exponential_delays(self):
        policy = RetryPolicy(max_retries=3, backoff_ms=100, exponential_backoff=True)

        assert [policy.delay_for_attempt(i) for i in range(3)] == [100, 200, 400]
        assert policy.delay_for_attempt(3) is None

    def test_flat_delays(self):
        policy = RetryPolicy(max_retries=2, backoff_ms=50, exponential_backoff=False)

        assert policy.delay_for_attempt(0) == 50
        assert policy.delay_for_attempt(1) == 50
        assert policy.delay_for_attempt(2) is None

    def test_none_preset_makes_single_attempt(self):
        assert RetryPolicy.NONE.max_attempts == 1
        assert RetryPolicy.NONE.delay_for_attempt(0) is None

    @pytest.mark.parametrize("kwargs", [{"max_retries": -1}, {"backoff_ms": -5}])
    def test_rejects_negative_values(self, kwargs):
        with pytest.raises(ValueError):
            RetryPolicy(**kwargs)


class TestTaskResult:
    def test_ok_result_is_consistent(self):
        result = TaskResult.ok("s", "echo", {"x": 1}, duration=3.0)

        assert result.success
        assert result.error is None
        assert result.attempts == 1
        assert validate_result(result) == []

    def test_failure_result_carries_kind(self):
        result = TaskResult.failure("s", "echo", "boom", kind=ErrorKind.TIMEOUT)

        assert not result.success
        assert result.error_kind is ErrorKind.TIMEOUT
        assert result.to_dict()["error_kind"] == "TIMEOUT"
        assert validate_result(result) == []

    def test_negative_duration_is_clamped(self):
        assert TaskResult.ok("s", "echo", None, duration=-4).duration == 0.0

    def test_validate_result_reports_every_inconsistency(self):
        result = TaskResult(step_id="s", tool="echo", success=False, duration=-1)

        issues = validate_result(result)

        assert "Failed result must have an error message" in issues
        assert "Duration cannot be negative" in issues

    def test_success_with_error_is_flagged(self):
        result = TaskResult(step_id="s", tool="echo", success=True, error="oops")

        assert validate_result(result) == ["Successful result should not have an error message"]


def test_output_result_failed_results_and_dict():
    results = [
        TaskResult.ok("a", "echo", 1),
        TaskResult.failure("b", "echo", "bad"),
    ]
    output = OutputResult(success=False, message="m", results=results, run_id="r1")

    assert [r.step_id for r in output.failed_results] == ["b"]
    data = output.to_dict()
    assert data["run_id"] == "r1"
    assert data["stage"] == "DONE"
    assert len(data["results"]) == 2


def test_enum_string_forms():
    assert str(RunStage.EXECUTING) == "EXECUTING"
    assert RunStage.ABORTED.is_terminal
    assert not RunStage.PLANNING.is_terminal
    assert ErrorKind.TIMEOUT.is_retryable
    assert not ErrorKind.INVALID_PARAMS.is_retryable
    assert FailureAction("skip") is FailureAction.SKIP
