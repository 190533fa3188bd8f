"""
Workflow orchestrator: goal in, aggregated result out.

Design Pattern: Façade
WorkflowOrchestrator hides planning, validation, approval, dependency
scheduling, failure handling and artifact collection behind one call:

    orchestrator = WorkflowOrchestrator(config=OrchestratorConfig().with_approval(False))
    output = await orchestrator.process_request("Create a todo app")

Run stages:
    PLANNING -> VALIDATING -> APPROVAL -> EXECUTING -> AGGREGATING -> DONE
                                          EXECUTING -> ABORTED

Expected failures (invalid plan, rejected approval, failed steps) are
returned as OutputResult values. process_request() only lets
cancellation propagate.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, replace
from datetime import UTC, datetime

from pyagentflow.config import OrchestratorConfig
from pyagentflow.core.context import ExecutionContext
from pyagentflow.core.errors import (
    DependencyUnsatisfiedError,
    PlanInvalidError,
    StorageError,
    classify_error,
)
from pyagentflow.executor.approval import ApprovalProvider, AutoApproval
from pyagentflow.executor.artifacts import collect_artifacts
from pyagentflow.executor.failure_policy import FailurePolicy
from pyagentflow.executor.task_executor import TaskExecutor
from pyagentflow.models import (
    ErrorKind,
    FailureAction,
    OutputResult,
    RunStage,
    TaskResult,
    ValidationReport,
    WorkflowPlan,
    WorkflowStep,
)
from pyagentflow.planner import CachingDecomposer, PlanDecomposer, WorkflowPlanner
from pyagentflow.storage.base import RunHistoryLog, RunRecord
from pyagentflow.tools import ToolRegistry, default_tools

logger = logging.getLogger(__name__)

__all__ = ["WorkflowOrchestrator", "PlanPreview", "ExecutionStatus"]


@dataclass(frozen=True)
class PlanPreview:
    """A planned and validated goal that has not been executed."""

    plan: WorkflowPlan
    report: ValidationReport
    execution_order: tuple[WorkflowStep, ...]
    level_graph: str

    @property
    def is_valid(self) -> bool:
        return self.report.is_valid

    @property
    def issues(self) -> tuple[str, ...]:
        return self.report.issues


@dataclass(frozen=True)
class ExecutionStatus:
    """Snapshot of what the orchestrator is doing right now."""

    is_executing: bool
    stage: RunStage
    current_step: str | None = None
    run_id: str | None = None


class WorkflowOrchestrator:
    """
    Plans, approves and executes goals.

    One orchestrator runs one goal at a time; status reflects the most
    recent call to process_request().
    """

    def __init__(
        self,
        registry: ToolRegistry | None = None,
        config: OrchestratorConfig | None = None,
        planner: WorkflowPlanner | None = None,
        decomposer: PlanDecomposer | None = None,
        approval: ApprovalProvider | None = None,
        failure_policy: FailurePolicy | None = None,
        history: RunHistoryLog | None = None,
        working_directory: str | None = None,
    ):
        """
        Args:
            registry: Tools steps may use; the four built-in tools if None
            config: Orchestrator settings; defaults if None
            planner: Planner to use; built from decomposer and the registry's
                tool names if None
            decomposer: Decomposition backend for the default planner. Wrapped
                in a CachingDecomposer when config.cache_ttl > 0
            approval: Approval gate used when config.require_approval is set;
                AutoApproval if None
            failure_policy: Step failure rules; FailurePolicy() if None
            history: Where finished runs are recorded; not recorded if None
            working_directory: Directory tools run in; the process cwd if None
        """
        self.config = config or OrchestratorConfig()

        if registry is None:
            registry = ToolRegistry(default_tools())
            logger.debug(f"Registered {len(registry)} built-in tools")
        self.registry = registry

        if planner is None:
            if decomposer is not None and self.config.cache_ttl > 0:
                decomposer = CachingDecomposer(decomposer, ttl_seconds=self.config.cache_ttl)
            planner = WorkflowPlanner(decomposer, available_tools=registry.get_tool_names())
        self.planner = planner

        self.executor = TaskExecutor(registry, retry_policy=self.config.retry_policy)
        self.approval = approval or AutoApproval()
        self.failure_policy = failure_policy or FailurePolicy()
        self.history = history
        self.working_directory = working_directory

        self._stage = RunStage.IDLE
        self._current_step: str | None = None
        self._run_id: str | None = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def process_request(
        self, goal: str, context: ExecutionContext | None = None
    ) -> OutputResult:
        """
        Plan, validate, approve and execute goal.

        Args:
            goal: Natural-language goal
            context: Execution context to run in; a fresh one if None

        Returns:
            OutputResult with success iff every produced result succeeded
        """
        loop = asyncio.get_running_loop()
        started = loop.time()
        timestamp = datetime.now(UTC)

        if context is None:
            context = ExecutionContext(
                working_directory=self.working_directory,
                timeout=self.config.step_timeout_ms,
            )
        self._run_id = context.run_id
        self._current_step = None

        plan: WorkflowPlan | None = None
        logger.info(f"Processing request: {goal!r} (run {context.run_id})")

        def finish(output: OutputResult) -> OutputResult:
            output.duration = loop.time() - started
            output.timestamp = timestamp
            output.run_id = context.run_id
            return output

        try:
            self._set_stage(RunStage.PLANNING)
            plan = await self.planner.create_plan(goal)

            self._set_stage(RunStage.VALIDATING)
            self._check_plan(plan)

            if self.config.require_approval and not await self._request_approval(plan):
                output = finish(
                    OutputResult(
                        success=False,
                        message="User cancelled execution",
                        plan=plan,
                        stage=RunStage.APPROVAL,
                    )
                )
            else:
                self._set_stage(RunStage.EXECUTING)
                results, aborted = await self._execute_plan(plan, context)

                self._set_stage(RunStage.AGGREGATING)
                artifacts = collect_artifacts(results)
                failed = [r for r in results if not r.success]
                success = not failed

                if success:
                    message = f"Successfully executed {len(results)} steps"
                else:
                    message = f"Execution failed - {len(failed)} of {len(results)} steps failed"

                output = finish(
                    OutputResult(
                        success=success,
                        message=message,
                        plan=plan,
                        results=results,
                        artifacts=artifacts,
                        stage=RunStage.ABORTED if aborted else RunStage.DONE,
                    )
                )
                logger.info(
                    f"Execution {'completed' if success else 'failed'} in {output.duration:.2f}s"
                )
        except PlanInvalidError as e:
            logger.warning(f"Plan rejected: {', '.join(e.issues)}")
            output = finish(
                OutputResult(
                    success=False,
                    message=str(e),
                    plan=plan,
                    issues=list(e.issues),
                    stage=RunStage.VALIDATING,
                )
            )
        except Exception as e:
            logger.exception(f"Orchestration failed for run {context.run_id}")
            output = finish(
                OutputResult(
                    success=False,
                    message=f"Orchestration failed: {e}",
                    plan=plan,
                    stage=RunStage.ABORTED,
                )
            )
        finally:
            self._current_step = None

        self._stage = output.stage
        await self._record(output, goal)
        return output

    def handle_step_failure(self, step: WorkflowStep, result: TaskResult) -> FailureAction:
        """Decide how the run proceeds after step failed."""
        logger.error(
            f"Step {step.name!r} failed: {result.error} "
            f"(tool={step.tool}, kind={result.error_kind})"
        )
        action = self.failure_policy.decide(step, result)
        logger.info(f"Failure action for step {step.id}: {action}")
        return action

    async def preview_plan(self, goal: str) -> PlanPreview:
        """Plan and validate goal without executing anything."""
        plan = await self.planner.create_plan(goal)
        return PlanPreview(
            plan=plan,
            report=self.planner.validate_plan(plan),
            execution_order=tuple(self.planner.get_execution_order(plan.steps)),
            level_graph=self.planner.level_graph(plan.steps),
        )

    def get_execution_status(self) -> ExecutionStatus:
        return ExecutionStatus(
            is_executing=self._stage is RunStage.EXECUTING,
            stage=self._stage,
            current_step=self._current_step,
            run_id=self._run_id,
        )

    def get_available_tools(self) -> list[str]:
        return self.registry.get_tool_names()

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def _set_stage(self, stage: RunStage) -> None:
        logger.debug(f"Stage: {self._stage} -> {stage}")
        self._stage = stage

    def _check_plan(self, plan: WorkflowPlan) -> None:
        report = self.planner.validate_plan(plan)
        if not report.is_valid:
            raise PlanInvalidError(list(report.issues))

    async def _request_approval(self, plan: WorkflowPlan) -> bool:
        self._set_stage(RunStage.APPROVAL)
        try:
            approved = await asyncio.wait_for(
                self.approval.request_approval(plan), timeout=self.config.approval_timeout
            )
        except TimeoutError:
            logger.warning(f"No approval within {self.config.approval_timeout}s, cancelling")
            return False

        if not approved:
            logger.info("Plan rejected by approval provider")
        return bool(approved)

    async def _execute_plan(
        self, plan: WorkflowPlan, context: ExecutionContext
    ) -> tuple[list[TaskResult], bool]:
        """Run plan steps. Returns (results, aborted)."""
        order = self.planner.get_execution_order(plan.steps)
        deadline = asyncio.get_running_loop().time() + self.config.max_execution_seconds

        if self.config.allow_parallel_execution:
            return await self._execute_batches(order, context, deadline)
        return await self._execute_sequential(order, context, deadline)

    async def _execute_sequential(
        self, order: Sequence[WorkflowStep], context: ExecutionContext, deadline: float
    ) -> tuple[list[TaskResult], bool]:
        results: list[TaskResult] = []
        completed: set[str] = set()

        for index, step in enumerate(order):
            if self._past_deadline(deadline):
                results.extend(self._deadline_failures(order[index:]))
                return results, True

            self._current_step = step.id
            logger.info(f"Executing: {step.name}")

            try:
                if not self.executor.check_dependencies(step, completed):
                    missing = [dep for dep in step.dependencies if dep not in completed]
                    raise DependencyUnsatisfiedError(step.id, missing)
                result = await self.executor.execute(step, context)
            except DependencyUnsatisfiedError as e:
                result = TaskResult.failure(
                    step.id, step.tool, str(e), kind=ErrorKind.DEPENDENCY_UNSATISFIED
                )
            except Exception as e:
                logger.exception(f"Unexpected error in step {step.name!r}")
                kind, _ = classify_error(e)
                result = TaskResult.failure(step.id, step.tool, str(e) or "Unknown error", kind=kind)

            action = await self._settle(step, result, context, completed, results)
            if action is FailureAction.ABORT:
                logger.warning(f"Execution aborted after step {step.id}")
                return results, True

        return results, False

    async def _execute_batches(
        self, order: Sequence[WorkflowStep], context: ExecutionContext, deadline: float
    ) -> tuple[list[TaskResult], bool]:
        """
        Dispatch the ready frontier concurrently, batch by batch.

        When no pending step is ready, the first pending step in execution
        order is failed as dependency-unsatisfied and handed to the failure
        policy, exactly as the sequential path would.
        """
        results: list[TaskResult] = []
        completed: set[str] = set()
        pending = list(order)

        while pending:
            if self._past_deadline(deadline):
                results.extend(self._deadline_failures(pending))
                return results, True

            ready = self.executor.get_executable_steps(pending, completed)
            if not ready:
                step = pending.pop(0)
                missing = [dep for dep in step.dependencies if dep not in completed]
                failure = TaskResult.failure(
                    step.id,
                    step.tool,
                    str(DependencyUnsatisfiedError(step.id, missing)),
                    kind=ErrorKind.DEPENDENCY_UNSATISFIED,
                )
                action = await self._settle(step, failure, context, completed, results)
                if action is FailureAction.ABORT:
                    return results, True
                continue

            ready_ids = {step.id for step in ready}
            pending = [step for step in pending if step.id not in ready_ids]
            self._current_step = ", ".join(step.id for step in ready)

            batch = await self.executor.execute_parallel(ready, context)

            aborted = False
            for step, result in zip(ready, batch):
                action = await self._settle(step, result, context, completed, results)
                aborted = aborted or action is FailureAction.ABORT
            if aborted:
                logger.warning("Execution aborted during parallel batch")
                return results, True

        return results, False

    # ------------------------------------------------------------------
    # Step outcome handling
    # ------------------------------------------------------------------

    async def _settle(
        self,
        step: WorkflowStep,
        result: TaskResult,
        context: ExecutionContext,
        completed: set[str],
        results: list[TaskResult],
    ) -> FailureAction | None:
        """
        Record a step's result and apply the failure policy.

        Returns the failure action taken, or None when the step (possibly
        after a rerun) succeeded.
        """
        action: FailureAction | None = None

        if not result.success:
            action = self.handle_step_failure(step, result)
            if action is FailureAction.RETRY:
                result, action = await self._rerun(step, result, context)

        results.append(result)

        if result.success:
            logger.info(f"Step {step.name!r} completed successfully")
            completed.add(step.id)
            context.state.set(step.id, result)
            return None

        if action is FailureAction.SKIP:
            logger.info(f"Skipping failed step {step.id}")
            completed.add(step.id)
        return action

    async def _rerun(
        self, step: WorkflowStep, failed: TaskResult, context: ExecutionContext
    ) -> tuple[TaskResult, FailureAction]:
        """Rerun step for the RETRY action; a rerun that still fails continues."""
        if not self.config.auto_retry or self.config.max_step_reruns == 0:
            logger.info(f"Rerun of step {step.id} disabled, continuing")
            return failed, FailureAction.CONTINUE
        if failed.error_kind is ErrorKind.DEPENDENCY_UNSATISFIED:
            return failed, FailureAction.CONTINUE

        attempts = failed.attempts
        result = failed
        for rerun in range(1, self.config.max_step_reruns + 1):
            logger.info(f"Rerunning step {step.id} ({rerun}/{self.config.max_step_reruns})")
            result = await self.executor.execute(step, context)
            attempts += result.attempts
            if result.success:
                break

        return replace(result, attempts=attempts), FailureAction.CONTINUE

    def _past_deadline(self, deadline: float) -> bool:
        return asyncio.get_running_loop().time() > deadline

    def _deadline_failures(self, steps: Sequence[WorkflowStep]) -> list[TaskResult]:
        message = f"Run exceeded max execution time of {self.config.max_execution_time} minutes"
        logger.warning(f"{message}, aborting {len(steps)} remaining step(s)")
        return [
            TaskResult.failure(step.id, step.tool, message, kind=ErrorKind.TIMEOUT) for step in steps
        ]

    async def _record(self, output: OutputResult, goal: str) -> None:
        if self.history is None:
            return
        try:
            await self.history.record_run(RunRecord.from_output(output, goal))
        except StorageError as e:
            logger.warning(f"Failed to record run {output.run_id}: {e}")
