"""Goal decomposition: the collaborator that proposes steps for a goal.

A PlanDecomposer turns a natural-language goal into a JSON array of step
objects, typically by asking a language model. The planner owns parsing
and falls back to a fixed plan when the decomposer fails, so decomposers
may raise freely.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
import time
from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

import xxhash

from pyagentflow.core.errors import PlanParseError
from pyagentflow.models import WorkflowStep

logger = logging.getLogger(__name__)

__all__ = [
    "PlanDecomposer",
    "StaticDecomposer",
    "CachingDecomposer",
    "build_decomposition_prompt",
    "parse_steps",
    "fallback_steps",
]

_CODE_FENCE = re.compile(r"```(?:json)?\n?")


@runtime_checkable
class PlanDecomposer(Protocol):
    """
    Protocol for goal decomposition backends.

    **Contract**:
    Return the raw response text; it should contain a JSON array of
    objects with `id`, `name`, `tool`, `params` and `dependencies` keys
    (all optional). Raising any exception makes the planner use its
    fallback plan.

    **Usage**:
    ```python
    class LLMDecomposer:
        async def decompose(self, goal: str, available_tools: Sequence[str]) -> str:
            prompt = build_decomposition_prompt(goal, available_tools)
            return await llm_client.complete(prompt)

    planner = WorkflowPlanner(decomposer=LLMDecomposer())
    ```
    """

    async def decompose(self, goal: str, available_tools: Sequence[str]) -> str: ...


class StaticDecomposer:
    """Decomposer that always returns the same response text."""

    def __init__(self, response: str | Sequence[dict[str, Any]]):
        if isinstance(response, str):
            self.response = response
        else:
            self.response = json.dumps(list(response))
        self.calls = 0

    async def decompose(self, goal: str, available_tools: Sequence[str]) -> str:
        self.calls += 1
        return self.response


class CachingDecomposer:
    """
    Wrap a decomposer with an in-memory response cache.

    Identical (goal, tool list) requests within `ttl_seconds` reuse the
    previous response instead of calling the wrapped decomposer again.
    Failed calls are not cached.

    Example:
        ```python
        decomposer = CachingDecomposer(LLMDecomposer(), ttl_seconds=600)
        ```
    """

    def __init__(
        self,
        inner: PlanDecomposer,
        ttl_seconds: float = 300.0,
        max_entries: int = 128,
    ):
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds must be non-negative")
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.inner = inner
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._entries: dict[int, tuple[float, str]] = {}
        self._lock = asyncio.Lock()
        self.hits = 0
        self.misses = 0

    @staticmethod
    def cache_key(goal: str, available_tools: Sequence[str]) -> int:
        payload = "\x1f".join([goal, *sorted(available_tools)])
        return xxhash.xxh64(payload.encode("utf-8")).intdigest()

    async def decompose(self, goal: str, available_tools: Sequence[str]) -> str:
        key = self.cache_key(goal, available_tools)

        async with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                stored_at, response = entry
                if time.monotonic() - stored_at <= self.ttl_seconds:
                    self.hits += 1
                    logger.debug(f"Decomposition cache hit for key {key:x}")
                    return response
                del self._entries[key]

        self.misses += 1
        response = await self.inner.decompose(goal, available_tools)

        async with self._lock:
            if len(self._entries) >= self.max_entries:
                oldest = min(self._entries, key=lambda k: self._entries[k][0])
                del self._entries[oldest]
            self._entries[key] = (time.monotonic(), response)

        return response

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


def build_decomposition_prompt(goal: str, available_tools: Sequence[str]) -> str:
    """Prompt asking a language model to decompose goal into tool steps."""
    tool_lines = "\n".join(f"- {name}" for name in available_tools)
    example = json.dumps(
        [
            {
                "id": "step_1",
                "name": "Generate PRD for the application",
                "tool": "prd_generator",
                "params": {"request": goal, "include_specs": True},
            },
            {
                "id": "step_2",
                "name": "Create project directory structure",
                "tool": "file_system",
                "params": {"action": "create_dir", "path": "./project-name"},
                "dependencies": ["step_1"],
            },
        ],
        indent=2,
    )
    return (
        "Decompose this goal into executable steps for a coding agent:\n\n"
        f"Goal: {goal}\n\n"
        f"Available tools:\n{tool_lines}\n\n"
        "Requirements:\n"
        "1. Break down the goal into specific, actionable steps\n"
        "2. Each step should use one of the available tools\n"
        "3. Steps should be ordered logically with dependencies\n\n"
        f"Output JSON array format:\n{example}\n\n"
        "Respond with ONLY the JSON array, no other text."
    )


def parse_steps(response: str) -> list[WorkflowStep]:
    """
    Parse a decomposer response into steps.

    Markdown code fences are stripped before parsing. Missing fields get
    positional defaults: id `step_<n>`, name `Step <n>`, tool `unknown`,
    empty params and no dependencies.

    Raises:
        PlanParseError: Response is not a JSON array of objects
    """
    cleaned = _CODE_FENCE.sub("", response).strip()

    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise PlanParseError(f"Response is not valid JSON: {e}") from e

    if not isinstance(parsed, list):
        raise PlanParseError("Response is not an array")

    steps: list[WorkflowStep] = []
    for index, item in enumerate(parsed):
        if not isinstance(item, dict):
            raise PlanParseError(f"Step {index + 1} is not an object")

        params = item.get("params") or {}
        dependencies = item.get("dependencies") or []
        if not isinstance(params, dict) or not isinstance(dependencies, list):
            raise PlanParseError(f"Step {index + 1} has malformed params or dependencies")

        steps.append(
            WorkflowStep(
                id=str(item.get("id") or f"step_{index + 1}"),
                name=str(item.get("name") or f"Step {index + 1}"),
                tool=str(item.get("tool") or "unknown"),
                params=params,
                dependencies=tuple(str(dep) for dep in dependencies),
            )
        )

    return steps


def fallback_steps(goal: str) -> list[WorkflowStep]:
    """Fixed two-step plan used when decomposition is unavailable or fails."""
    return [
        WorkflowStep(
            id="step_1",
            name="Generate basic PRD",
            tool="prd_generator",
            params={"request": goal or "Create a basic application", "include_specs": True},
        ),
        WorkflowStep(
            id="step_2",
            name="Create project structure",
            tool="file_system",
            params={"action": "create_dir", "path": "./new-project"},
            dependencies=("step_1",),
        ),
    ]
