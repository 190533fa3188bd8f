"""Dependency graph algorithms over workflow steps.

All functions take steps in planner order and treat that order as the
tie-breaker, so results are deterministic for a given plan.
"""

from __future__ import annotations

from collections.abc import Sequence

from pyagentflow.models import WorkflowStep

__all__ = [
    "has_cycle",
    "find_missing_dependencies",
    "find_duplicate_ids",
    "execution_order",
    "calculate_depths",
    "execution_levels",
    "level_graph",
]


def has_cycle(steps: Sequence[WorkflowStep]) -> bool:
    """
    Detect a dependency cycle using DFS with a recursion stack.

    A dependency already on the current recursion stack closes a cycle.
    References to steps outside the plan are ignored here; they are
    reported by find_missing_dependencies().
    """
    by_id = {step.id: step for step in steps}
    visited: set[str] = set()
    rec_stack: set[str] = set()

    def visit(step_id: str) -> bool:
        visited.add(step_id)
        rec_stack.add(step_id)

        step = by_id.get(step_id)
        if step:
            for dep in step.dependencies:
                if dep not in by_id:
                    continue
                if dep not in visited:
                    if visit(dep):
                        return True
                elif dep in rec_stack:
                    return True

        rec_stack.remove(step_id)
        return False

    return any(step.id not in visited and visit(step.id) for step in steps)


def find_missing_dependencies(steps: Sequence[WorkflowStep]) -> list[tuple[str, str]]:
    """(step_id, dependency) pairs whose dependency is not in the plan."""
    step_ids = {step.id for step in steps}
    return [(step.id, dep) for step in steps for dep in step.dependencies if dep not in step_ids]


def find_duplicate_ids(steps: Sequence[WorkflowStep]) -> list[str]:
    """Step ids that occur more than once, in first-repeat order."""
    seen: set[str] = set()
    duplicates: list[str] = []
    for step in steps:
        if step.id in seen and step.id not in duplicates:
            duplicates.append(step.id)
        seen.add(step.id)
    return duplicates


def execution_order(steps: Sequence[WorkflowStep]) -> list[WorkflowStep]:
    """
    Topological order by DFS post-order, dependencies first.

    Input order supplies the DFS roots, so independent steps keep their
    relative order. Dependencies missing from the plan are skipped. A step
    is marked visited before its dependencies are explored, which bounds
    the walk on cyclic input (such plans are rejected by validation, the
    order returned for them is merely finite).
    """
    by_id = {step.id: step for step in steps}
    visited: set[str] = set()
    ordered: list[WorkflowStep] = []

    def visit(step: WorkflowStep) -> None:
        if step.id in visited:
            return
        visited.add(step.id)

        for dep in step.dependencies:
            dep_step = by_id.get(dep)
            if dep_step is not None:
                visit(dep_step)

        ordered.append(step)

    for step in steps:
        visit(step)

    return ordered


def calculate_depths(steps: Sequence[WorkflowStep]) -> dict[str, int]:
    """
    Depth of each step (distance from a root).

    Roots (no in-plan dependencies) have depth 0; every other step sits
    one level below its deepest dependency. Steps on or behind a cycle
    never get a depth and are absent from the result.
    """
    step_ids = {step.id for step in steps}
    depths: dict[str, int] = {}

    changed = True
    while changed:
        changed = False
        for step in steps:
            if step.id in depths:
                continue

            dep_depths = [depths.get(dep) for dep in step.dependencies if dep in step_ids]
            if all(d is not None for d in dep_depths):
                depths[step.id] = max(dep_depths, default=-1) + 1
                changed = True

    return depths


def execution_levels(steps: Sequence[WorkflowStep]) -> list[list[WorkflowStep]]:
    """
    Group steps into levels that can run concurrently.

    Steps within a level never depend on each other, and every step's
    dependencies sit in earlier levels. Within a level, input order is
    kept.
    """
    depths = calculate_depths(steps)
    if not depths:
        return []

    levels: list[list[WorkflowStep]] = [[] for _ in range(max(depths.values()) + 1)]
    for step in steps:
        depth = depths.get(step.id)
        if depth is not None:
            levels[depth].append(step)
    return levels


def level_graph(steps: Sequence[WorkflowStep]) -> str:
    """
    Render execution levels as text.

    Example output:
    ```
    Execution Levels (3 steps):

    Level 0: [step_1]
             ↓
    Level 1: [step_2] [step_3] (2 parallel steps)
    ```
    """
    levels = execution_levels(steps)
    output = f"Execution Levels ({len(steps)} steps):\n\n"

    for level, members in enumerate(levels):
        ids = [step.id for step in members]
        parallel_note = f" ({len(ids)} parallel steps)" if len(ids) > 1 else ""
        output += f"Level {level}: [{'] ['.join(ids)}]{parallel_note}\n"
        if level < len(levels) - 1:
            output += "         ↓\n"

    placed = {step.id for members in levels for step in members}
    unresolved = [step.id for step in steps if step.id not in placed]
    if unresolved:
        output += f"\nUnresolved (cyclic): [{'] ['.join(unresolved)}]\n"

    return output
