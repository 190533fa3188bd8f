"""Plan and step models.

A WorkflowPlan is an ordered, dependency-annotated set of WorkflowSteps
derived from a natural-language goal. Both are immutable: execution state
lives in ExecutionContext and TaskResult, never on the plan.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any


def _dedupe(ids: Iterable[str]) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for step_id in ids:
        seen.setdefault(step_id, None)
    return tuple(seen)


@dataclass(frozen=True)
class WorkflowStep:
    """One atomic invocation of a named tool with a parameter map.

    Attributes:
        id: Unique identifier within a plan
        name: Human-readable label
        tool: Key into the ToolRegistry
        params: Opaque parameters, interpreted only by the tool
        dependencies: Ids of steps that must complete before this one runs.
            Stored as an ordered tuple without duplicates so traversal order
            stays deterministic.
    """

    id: str
    name: str
    tool: str
    params: Mapping[str, Any] = field(default_factory=dict)
    dependencies: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "dependencies", _dedupe(self.dependencies))

    def depends_on(self, step_id: str) -> bool:
        """Check if this step directly depends on step_id."""
        return step_id in self.dependencies

    def with_dependencies(self, *step_ids: str) -> WorkflowStep:
        """Return a copy with extra dependencies appended."""
        return replace(self, dependencies=self.dependencies + tuple(step_ids))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "tool": self.tool,
            "params": dict(self.params),
            "dependencies": list(self.dependencies),
        }


@dataclass(frozen=True)
class WorkflowPlan:
    """Plan produced by the WorkflowPlanner for one goal.

    Attributes:
        goal: Source natural-language goal
        steps: Steps in planner order (not necessarily execution order)
        estimated_duration: Advisory estimate in minutes
    """

    goal: str
    steps: tuple[WorkflowStep, ...] = ()
    estimated_duration: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "steps", tuple(self.steps))

    @property
    def step_ids(self) -> list[str]:
        return [step.id for step in self.steps]

    def get_step(self, step_id: str) -> WorkflowStep | None:
        return next((s for s in self.steps if s.id == step_id), None)

    def __len__(self) -> int:
        return len(self.steps)

    def to_dict(self) -> dict[str, Any]:
        return {
            "goal": self.goal,
            "steps": [step.to_dict() for step in self.steps],
            "estimated_duration": self.estimated_duration,
        }


@dataclass(frozen=True)
class ValidationReport:
    """Outcome of a structural check (plan or result validation).

    Several issues can be reported at once; valid iff there are none.
    """

    issues: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "issues", tuple(self.issues))

    @property
    def is_valid(self) -> bool:
        return not self.issues

    def __bool__(self) -> bool:
        return self.is_valid
