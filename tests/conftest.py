"""
Pytest configuration and fixtures for pyagentflow tests.

Provides fake tools, execution contexts, run history backends and
hypothesis strategies for plan graphs.
"""

import asyncio
from collections.abc import AsyncGenerator, Mapping
from typing import Any

import pytest
from hypothesis import strategies as st

from pyagentflow.core import ExecutionContext, ToolContext
from pyagentflow.models import RetryPolicy, WorkflowStep
from pyagentflow.storage import InMemoryRunHistory, SqliteRunHistory
from pyagentflow.tools import FunctionTool, Tool, ToolRegistry

FAST_RETRY = RetryPolicy(max_retries=2, backoff_ms=0, exponential_backoff=False)


def make_step(step_id: str, tool: str = "echo", deps: tuple[str, ...] = (), **params: Any):
    """Build a WorkflowStep with a readable default name."""
    return WorkflowStep(
        id=step_id,
        name=f"Step {step_id}",
        tool=tool,
        params=params,
        dependencies=deps,
    )


class ScriptedTool(Tool):
    """Tool that raises the scripted errors in order, then succeeds.

    Records every call so tests can assert on attempts and the context
    tools were given.
    """

    description = "Scripted test tool"

    def __init__(self, name: str, errors: list[BaseException] | None = None, delay: float = 0.0):
        self.name = name
        self.errors = list(errors or [])
        self.delay = delay
        self.calls: list[Mapping[str, Any]] = []
        self.contexts: list[ToolContext] = []

    def validate(self, params: Mapping[str, Any]) -> bool:
        return not params.get("invalid", False)

    async def execute(self, params: Mapping[str, Any], context: ToolContext) -> Any:
        self.calls.append(params)
        self.contexts.append(context)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.errors:
            raise self.errors.pop(0)
        return {"type": "scripted", "tool": self.name, "call": len(self.calls)}


async def _echo(params: Mapping[str, Any], context: ToolContext) -> Any:
    return {"type": "echo", "params": dict(params)}


@pytest.fixture
def context(tmp_path) -> ExecutionContext:
    """Execution context rooted in a temporary directory with a 1s timeout."""
    return ExecutionContext(working_directory=str(tmp_path), environment={}, timeout=1000)


@pytest.fixture
def echo_tool() -> FunctionTool:
    return FunctionTool("echo", _echo, description="Echo params back")


@pytest.fixture
def registry(echo_tool) -> ToolRegistry:
    """Registry with a single always-succeeding echo tool."""
    return ToolRegistry([echo_tool])


@pytest.fixture
def fast_retry() -> RetryPolicy:
    """Three attempts with no backoff delay."""
    return FAST_RETRY


@pytest.fixture
async def memory_history() -> AsyncGenerator[InMemoryRunHistory, None]:
    history = InMemoryRunHistory()
    yield history
    await history.reset()


@pytest.fixture
async def sqlite_history() -> AsyncGenerator[SqliteRunHistory, None]:
    """SQLite in-memory run history with automatic cleanup."""
    history = await SqliteRunHistory.in_memory()
    yield history
    await history.close()


# Hypothesis strategies for plan graphs


@st.composite
def acyclic_steps(draw, max_steps: int = 12):
    """Steps whose dependencies form a DAG, listed in a random order."""
    count = draw(st.integers(min_value=0, max_value=max_steps))
    steps = []
    for index in range(count):
        earlier = [f"s{i}" for i in range(index)]
        deps = draw(st.lists(st.sampled_from(earlier), unique=True)) if earlier else []
        steps.append(make_step(f"s{index}", deps=tuple(deps)))
    return draw(st.permutations(steps))


@st.composite
def cyclic_steps(draw, max_steps: int = 10):
    """A DAG plus one back edge, which always closes a cycle."""
    count = draw(st.integers(min_value=1, max_value=max_steps))
    ids = [f"s{i}" for i in range(count)]
    deps: dict[str, list[str]] = {step_id: [] for step_id in ids}
    for index in range(1, count):
        deps[ids[index]] = draw(st.lists(st.sampled_from(ids[:index]), unique=True))

    # Force a chain s0 <- s1 <- ... <- s_{hi}, then let s_lo depend on s_hi
    lo = draw(st.integers(min_value=0, max_value=count - 1))
    hi = draw(st.integers(min_value=lo, max_value=count - 1))
    for index in range(lo + 1, hi + 1):
        if ids[index - 1] not in deps[ids[index]]:
            deps[ids[index]].append(ids[index - 1])
    deps[ids[lo]].append(ids[hi])

    steps = [make_step(step_id, deps=tuple(deps[step_id])) for step_id in ids]
    return draw(st.permutations(steps))
