"""Execution result models.

TaskResult is the outcome of executing one step. OutputResult is the
aggregated outcome of one orchestration run, returned to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from pyagentflow.models.status import ErrorKind, RunStage
from pyagentflow.models.step import WorkflowPlan


def _now() -> datetime:
    return datetime.now(UTC)


@dataclass
class TaskResult:
    """Output of executing one step.

    Exactly one of result/error is meaningful: result when success is
    True, error (and error_kind) when it is False. Use the success() and
    failure() constructors, and validate_result() to check a result built
    elsewhere.

    Attributes:
        step_id: Id of the executed step
        tool: Tool name the step used
        success: Whether the step produced a result
        result: Tool payload (success only)
        error: Human-readable failure message (failure only)
        error_kind: Typed failure classification (failure only)
        duration: Wall time in milliseconds, >= 0
        timestamp: When execution started
        attempts: Number of attempts made (0 if the tool was never called)
    """

    step_id: str
    tool: str
    success: bool
    result: Any = None
    error: str | None = None
    error_kind: ErrorKind | None = None
    duration: float = 0.0
    timestamp: datetime = field(default_factory=_now)
    attempts: int = 0

    @classmethod
    def ok(
        cls,
        step_id: str,
        tool: str,
        result: Any,
        duration: float = 0.0,
        timestamp: datetime | None = None,
        attempts: int = 1,
    ) -> TaskResult:
        return cls(
            step_id=step_id,
            tool=tool,
            success=True,
            result=result,
            duration=max(duration, 0.0),
            timestamp=timestamp or _now(),
            attempts=attempts,
        )

    @classmethod
    def failure(
        cls,
        step_id: str,
        tool: str,
        error: str,
        kind: ErrorKind = ErrorKind.EXECUTION,
        duration: float = 0.0,
        timestamp: datetime | None = None,
        attempts: int = 0,
    ) -> TaskResult:
        return cls(
            step_id=step_id,
            tool=tool,
            success=False,
            error=error,
            error_kind=kind,
            duration=max(duration, 0.0),
            timestamp=timestamp or _now(),
            attempts=attempts,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "step_id": self.step_id,
            "tool": self.tool,
            "success": self.success,
            "result": self.result,
            "error": self.error,
            "error_kind": self.error_kind.value if self.error_kind else None,
            "duration": self.duration,
            "timestamp": self.timestamp.isoformat(),
            "attempts": self.attempts,
        }


def validate_result(result: TaskResult) -> list[str]:
    """Check the result/error exclusivity and duration invariants.

    Returns:
        List of issues; empty if the result is consistent
    """
    issues: list[str] = []

    if not result.success and not result.error:
        issues.append("Failed result must have an error message")

    if result.success and result.error:
        issues.append("Successful result should not have an error message")

    if result.duration < 0:
        issues.append("Duration cannot be negative")

    return issues


@dataclass(frozen=True)
class HistoryEntry:
    """One successful step execution recorded in ExecutionContext.history."""

    step_id: str
    timestamp: datetime
    result: Any
    duration: float


@dataclass(frozen=True)
class Artifact:
    """Something a run produced that the caller may want to keep.

    Artifacts are extracted by convention from result payloads, so
    everything but kind and name is optional.
    """

    kind: str
    name: str
    path: str | None = None
    content: Any = None
    step_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "name": self.name,
            "path": self.path,
            "content": self.content,
            "step_id": self.step_id,
        }


@dataclass
class OutputResult:
    """Aggregated outcome of one orchestration run.

    A plan rejected before execution carries its validation issues in
    `issues` and an empty `results` list, so callers can tell "bad plan"
    apart from "plan executed but some steps failed".
    """

    success: bool
    message: str
    plan: WorkflowPlan | None = None
    results: list[TaskResult] = field(default_factory=list)
    artifacts: list[Artifact] = field(default_factory=list)
    issues: list[str] = field(default_factory=list)
    stage: RunStage = RunStage.DONE
    duration: float = 0.0
    timestamp: datetime = field(default_factory=_now)
    run_id: str | None = None

    @property
    def failed_results(self) -> list[TaskResult]:
        return [r for r in self.results if not r.success]

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "success": self.success,
            "message": self.message,
            "plan": self.plan.to_dict() if self.plan else None,
            "results": [r.to_dict() for r in self.results],
            "artifacts": [a.to_dict() for a in self.artifacts],
            "issues": list(self.issues),
            "stage": self.stage.value,
            "duration": self.duration,
            "timestamp": self.timestamp.isoformat(),
        }
