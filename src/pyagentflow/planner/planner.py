"""Goal to plan: decomposition, dependency inference, estimation, validation."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence

from pyagentflow.models import ValidationReport, WorkflowPlan, WorkflowStep
from pyagentflow.planner import graph
from pyagentflow.planner.decomposition import PlanDecomposer, fallback_steps, parse_steps
from pyagentflow.planner.rules import DEFAULT_RULES, DependencyRule, infer_dependencies

logger = logging.getLogger(__name__)

__all__ = ["WorkflowPlanner", "DEFAULT_TOOL_NAMES", "TOOL_DURATIONS"]

DEFAULT_TOOL_NAMES: tuple[str, ...] = ("command_suggest", "file_system", "shell", "prd_generator")

TOOL_DURATIONS: Mapping[str, float] = {
    "prd_generator": 2.0,
    "file_system": 0.5,
    "shell": 1.0,
    "command_suggest": 1.0,
}
"""Base minutes per step by tool; unknown tools count 1 minute."""

PARAM_COMPLEXITY_MINUTES = 0.2


class WorkflowPlanner:
    """
    Turns goals into validated, dependency-annotated plans.

    Example:
        ```python
        planner = WorkflowPlanner(decomposer=my_llm_decomposer)
        plan = await planner.create_plan("Build a todo app")
        report = planner.validate_plan(plan)
        if report.is_valid:
            for step in planner.get_execution_order(plan.steps):
                ...
        ```
    """

    def __init__(
        self,
        decomposer: PlanDecomposer | None = None,
        available_tools: Iterable[str] = DEFAULT_TOOL_NAMES,
        rules: Sequence[DependencyRule] = DEFAULT_RULES,
    ):
        """
        Args:
            decomposer: Goal decomposition backend; None always plans the fallback
            available_tools: Tool names offered to the decomposer and accepted
                by validate_plan()
            rules: Implicit dependency rules, applied in order
        """
        self.decomposer = decomposer
        self.available_tools: tuple[str, ...] = tuple(available_tools)
        self.rules = tuple(rules)

    async def create_plan(self, goal: str) -> WorkflowPlan:
        """
        Build a plan for goal. Never raises.

        Decomposer errors, a missing decomposer and unparseable responses
        all produce the fixed fallback plan. The returned plan is not
        validated; call validate_plan() before executing it.
        """
        steps = await self._decompose(goal)
        steps = infer_dependencies(steps, self.rules)
        plan = WorkflowPlan(
            goal=goal,
            steps=tuple(steps),
            estimated_duration=self.estimate_duration(steps),
        )
        logger.info(f"Planned {len(plan)} steps for goal (~{plan.estimated_duration:.1f} min)")
        return plan

    async def _decompose(self, goal: str) -> list[WorkflowStep]:
        if self.decomposer is None:
            logger.info("No decomposer configured, using fallback plan")
            return fallback_steps(goal)

        try:
            response = await self.decomposer.decompose(goal, self.available_tools)
            return parse_steps(response)
        except Exception as e:
            logger.warning(f"Goal decomposition failed, falling back to simplified plan: {e}")
            return fallback_steps(goal)

    def estimate_duration(self, steps: Iterable[WorkflowStep]) -> float:
        """Advisory estimate in minutes: tool base time plus 0.2 per parameter."""
        return sum(
            TOOL_DURATIONS.get(step.tool, 1.0) + len(step.params) * PARAM_COMPLEXITY_MINUTES
            for step in steps
        )

    def validate_plan(self, plan: WorkflowPlan) -> ValidationReport:
        """
        Check a plan's structure, reporting every issue found.

        Checks:
        - Dependency cycles (reported once)
        - Dependencies on steps that are not in the plan (one per reference)
        - Tools outside available_tools (one per step)
        - Duplicate step ids
        """
        issues: list[str] = []

        if graph.has_cycle(plan.steps):
            issues.append("Circular dependencies detected in workflow steps")

        for step_id, dep in graph.find_missing_dependencies(plan.steps):
            issues.append(f"Step {step_id} depends on missing step {dep}")

        valid_tools = set(self.available_tools)
        for step in plan.steps:
            if step.tool not in valid_tools:
                issues.append(f"Step {step.id} uses invalid tool: {step.tool}")

        for step_id in graph.find_duplicate_ids(plan.steps):
            issues.append(f"Duplicate step id: {step_id}")

        if issues:
            logger.debug(f"Plan validation found {len(issues)} issue(s)")
        return ValidationReport(tuple(issues))

    def get_execution_order(self, steps: Sequence[WorkflowStep]) -> list[WorkflowStep]:
        return graph.execution_order(steps)

    def execution_levels(self, steps: Sequence[WorkflowStep]) -> list[list[WorkflowStep]]:
        return graph.execution_levels(steps)

    def level_graph(self, steps: Sequence[WorkflowStep]) -> str:
        return graph.level_graph(steps)
