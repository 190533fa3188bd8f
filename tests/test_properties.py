"""
Property-based tests for pyagentflow using Hypothesis.

Covers the structural guarantees of planning and scheduling:
- Topological order puts every dependency first
- Cycle detection agrees with the construction of the graph
- One validation issue per dangling reference
- Execution levels never group dependent steps
- Retry delays follow the policy
"""

import pytest
from conftest import acyclic_steps, cyclic_steps, make_step
from hypothesis import given
from hypothesis import strategies as st

from pyagentflow.executor import TaskExecutor
from pyagentflow.models import RetryPolicy, WorkflowPlan
from pyagentflow.planner import WorkflowPlanner, graph
from pyagentflow.tools import ToolRegistry

CYCLE_ISSUE = "Circular dependencies detected in workflow steps"


@pytest.mark.property
@given(steps=acyclic_steps())
def test_execution_order_is_topological(steps):
    """Property: every step appears after all of its dependencies, exactly once."""
    order = graph.execution_order(steps)
    position = {step.id: index for index, step in enumerate(order)}

    assert sorted(position) == sorted(step.id for step in steps)
    for step in order:
        for dep in step.dependencies:
            assert position[dep] < position[step.id]


@pytest.mark.property
@given(steps=acyclic_steps())
def test_acyclic_plans_validate(steps):
    """Property: a DAG over known tools has no issues."""
    planner = WorkflowPlanner(available_tools=["echo"])

    assert planner.validate_plan(WorkflowPlan(goal="g", steps=steps)).is_valid


@pytest.mark.property
@given(steps=cyclic_steps())
def test_cycles_are_always_detected(steps):
    """Property: a plan containing a cycle is reported exactly once as circular."""
    planner = WorkflowPlanner(available_tools=["echo"])

    issues = planner.validate_plan(WorkflowPlan(goal="g", steps=steps)).issues

    assert issues.count(CYCLE_ISSUE) == 1


@pytest.mark.property
@given(steps=cyclic_steps())
def test_execution_order_terminates_on_cyclic_input(steps):
    """Property: even for invalid plans the order is finite and complete."""
    order = graph.execution_order(steps)

    assert sorted(step.id for step in order) == sorted(step.id for step in steps)


@pytest.mark.property
@given(
    steps=acyclic_steps(max_steps=6),
    missing=st.lists(st.sampled_from(["ghost1", "ghost2", "ghost3"]), unique=True, min_size=1),
)
def test_one_issue_per_dangling_reference(steps, missing):
    """Property: each reference to an unknown step produces its own issue."""
    broken = make_step("broken", deps=tuple(missing))
    planner = WorkflowPlanner(available_tools=["echo"])

    issues = planner.validate_plan(WorkflowPlan(goal="g", steps=[*steps, broken])).issues

    assert len(issues) == len(missing)
    for dep in missing:
        assert f"Step broken depends on missing step {dep}" in issues


@pytest.mark.property
@given(steps=acyclic_steps())
def test_levels_partition_and_respect_dependencies(steps):
    """Property: levels cover every step once and deps sit in earlier levels."""
    levels = graph.execution_levels(steps)
    level_of = {step.id: index for index, level in enumerate(levels) for step in level}

    assert sorted(level_of) == sorted(step.id for step in steps)
    for step in steps:
        for dep in step.dependencies:
            assert level_of[dep] < level_of[step.id]


@pytest.mark.property
@given(steps=acyclic_steps())
def test_ready_frontier_is_mutually_independent(steps):
    """Property: no step in the ready frontier depends on another step in it."""
    executor = TaskExecutor(ToolRegistry())
    completed: set[str] = set()

    while True:
        ready = executor.get_executable_steps(steps, completed)
        if not ready:
            break
        ready_ids = {step.id for step in ready}
        for step in ready:
            assert not ready_ids.intersection(step.dependencies)
        completed |= ready_ids

    assert completed == {step.id for step in steps}


@pytest.mark.property
@given(
    max_retries=st.integers(min_value=0, max_value=10),
    backoff_ms=st.integers(min_value=0, max_value=10_000),
    exponential=st.booleans(),
)
def test_retry_delays_follow_policy(max_retries, backoff_ms, exponential):
    """Property: one delay between each pair of attempts, none after the last."""
    policy = RetryPolicy(
        max_retries=max_retries, backoff_ms=backoff_ms, exponential_backoff=exponential
    )

    delays = [policy.delay_for_attempt(i) for i in range(policy.max_attempts)]

    assert delays[-1] is None
    assert len([d for d in delays if d is not None]) == max_retries
    for attempt, delay in enumerate(delays[:-1]):
        expected = backoff_ms * 2**attempt if exponential else backoff_ms
        assert delay == expected
