"""Single-step execution with validation, timeout and retry.

Handles the three ways a step can end:
- Caller error (unknown tool, invalid params): fail immediately, no retry
- Transient fault (exception, timeout): retry with backoff up to the policy bound
- Success: record history and return at once

Design: Information Hiding (Parnas)
Retry, backoff and timeout logic is isolated here, so the orchestrator's
driving loop only ever sees TaskResult values.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Collection, Iterable, Sequence
from datetime import UTC, datetime

from pyagentflow.core.context import ExecutionContext, ToolContext
from pyagentflow.core.errors import (
    InvalidParamsError,
    TaskTimeoutError,
    ToolError,
    ToolNotFoundError,
    classify_error,
)
from pyagentflow.models import (
    ErrorKind,
    RetryPolicy,
    TaskResult,
    ValidationReport,
    WorkflowStep,
    validate_result,
)
from pyagentflow.tools.base import Tool
from pyagentflow.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

__all__ = ["TaskExecutor"]


class TaskExecutor:
    """Executes workflow steps against the tools in a registry.

    Example:
        ```python
        executor = TaskExecutor(registry, retry_policy=RetryPolicy(max_retries=1))
        result = await executor.execute(step, context)
        if not result.success:
            print(result.error_kind, result.error)
        ```
    """

    def __init__(self, registry: ToolRegistry, retry_policy: RetryPolicy | None = None):
        """
        Args:
            registry: Tools available to steps
            retry_policy: Policy for every execute() call; RetryPolicy.DEFAULT if None
        """
        self._registry = registry
        self._retry_policy = retry_policy

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    async def execute(
        self,
        step: WorkflowStep,
        context: ExecutionContext,
        retry_policy: RetryPolicy | None = None,
    ) -> TaskResult:
        """Execute one step, retrying transient failures.

        Args:
            step: Step to run
            context: Run context; receives a history entry on success
            retry_policy: Override for this call only

        Returns:
            Success result with the tool's payload, or a failure result
            carrying the last error's message and kind. Never raises for
            tool failures.
        """
        loop = asyncio.get_running_loop()
        started = loop.time()
        timestamp = datetime.now(UTC)

        def elapsed_ms() -> float:
            return (loop.time() - started) * 1000

        try:
            tool = self._resolve_tool(step)
        except ToolError as e:
            logger.error(f"Step {step.id}: {e}")
            return TaskResult.failure(
                step.id,
                step.tool,
                str(e),
                kind=e.kind,
                duration=elapsed_ms(),
                timestamp=timestamp,
            )

        policy = retry_policy or self._retry_policy or RetryPolicy()
        timeout_ms = context.effective_timeout
        tool_context = context.view()

        last_error = "Unknown error"
        last_kind = ErrorKind.EXECUTION
        attempts = 0

        for attempt in range(policy.max_attempts):
            attempts = attempt + 1
            logger.info(f"Executing step: {step.name} (attempt {attempts}/{policy.max_attempts})")

            try:
                result = await self._attempt(tool, step, tool_context, timeout_ms)
            except Exception as e:
                last_kind, retryable = classify_error(e)
                last_error = str(e) or type(e).__name__
                logger.warning(f"Step {step.id} failed (attempt {attempts}): {last_error}")

                if not retryable:
                    logger.debug(f"Step {step.id}: {last_kind} is not retryable")
                    break

                delay = policy.delay_for_attempt(attempt)
                if delay is None:
                    break
                if delay > 0:
                    logger.info(f"Retrying step {step.id} in {delay}ms...")
                    await asyncio.sleep(delay / 1000)
                continue

            duration = elapsed_ms()
            context.record_history(step.id, result, duration)
            return TaskResult.ok(
                step.id,
                step.tool,
                result,
                duration=duration,
                timestamp=timestamp,
                attempts=attempts,
            )

        logger.error(f"Step {step.id} failed after {attempts} attempt(s): {last_error}")
        return TaskResult.failure(
            step.id,
            step.tool,
            last_error,
            kind=last_kind,
            duration=elapsed_ms(),
            timestamp=timestamp,
            attempts=attempts,
        )

    async def execute_parallel(
        self, steps: Sequence[WorkflowStep], context: ExecutionContext
    ) -> list[TaskResult]:
        """Execute mutually independent steps concurrently.

        Settle-all semantics: one step's exception never prevents the
        others' results from being collected. The caller must ensure no
        dependency edges exist within the batch; none are checked here.

        Returns:
            One TaskResult per input step, in input order
        """
        logger.info(f"Executing {len(steps)} steps in parallel")

        outcomes = await asyncio.gather(
            *(self.execute(step, context) for step in steps),
            return_exceptions=True,
        )

        results: list[TaskResult] = []
        for step, outcome in zip(steps, outcomes):
            if isinstance(outcome, BaseException):
                kind, _ = classify_error(outcome)
                results.append(
                    TaskResult.failure(
                        step.id,
                        step.tool,
                        str(outcome) or "Parallel execution failed",
                        kind=kind,
                    )
                )
            else:
                results.append(outcome)
        return results

    def check_dependencies(self, step: WorkflowStep, completed: Collection[str]) -> bool:
        """True iff every dependency of step is in completed (vacuously true)."""
        return all(dep in completed for dep in step.dependencies)

    def get_executable_steps(
        self, steps: Iterable[WorkflowStep], completed: Collection[str]
    ) -> list[WorkflowStep]:
        """Steps not yet completed whose dependencies are all satisfied.

        This is the ready frontier of the scheduler: every returned step
        can be dispatched now, and no returned step depends on another one
        (a dependency of a returned step is, by definition, completed).
        """
        return [
            step
            for step in steps
            if step.id not in completed and self.check_dependencies(step, completed)
        ]

    def can_execute(self, step: WorkflowStep) -> bool:
        """True if the step's tool exists and accepts its params."""
        try:
            self._resolve_tool(step)
        except ToolError:
            return False
        return True

    def validate_result(self, result: TaskResult) -> ValidationReport:
        """Check a result's result/error exclusivity and duration."""
        return ValidationReport(tuple(validate_result(result)))

    def _resolve_tool(self, step: WorkflowStep) -> Tool:
        """Look up step's tool and check its params.

        Raises:
            ToolNotFoundError: No tool is registered under step.tool
            InvalidParamsError: The tool rejected step.params
        """
        tool = self._registry.get_tool(step.tool)
        if tool is None:
            raise ToolNotFoundError(step.tool)
        if not self._validate(tool, step):
            raise InvalidParamsError(step.tool)
        return tool

    @staticmethod
    def _validate(tool: Tool, step: WorkflowStep) -> bool:
        try:
            return bool(tool.validate(step.params))
        except Exception as e:
            logger.warning(f"Tool {tool.name} validate() raised for step {step.id}: {e}")
            return False

    @staticmethod
    async def _attempt(
        tool: Tool, step: WorkflowStep, tool_context: ToolContext, timeout_ms: int
    ) -> object:
        try:
            return await asyncio.wait_for(
                tool.execute(step.params, tool_context), timeout=timeout_ms / 1000
            )
        except TimeoutError:
            raise TaskTimeoutError(timeout_ms) from None
