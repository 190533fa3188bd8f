"""
Executor module - runtime engine for workflow plans.

- task_executor: single-step execution with timeout and retry
- failure_policy: what to do with a run when a step fails
- approval: plan approval gate
- artifacts: artifact extraction from step results
- orchestrator: the façade tying planning and execution together
"""

from pyagentflow.executor.approval import (
    ApprovalProvider,
    AutoApproval,
    ConsoleApproval,
    format_plan,
)
from pyagentflow.executor.artifacts import collect_artifacts
from pyagentflow.executor.failure_policy import (
    DEFAULT_FAILURE_RULES,
    FailurePolicy,
    FailureRule,
)
from pyagentflow.executor.orchestrator import (
    ExecutionStatus,
    PlanPreview,
    WorkflowOrchestrator,
)
from pyagentflow.executor.task_executor import TaskExecutor

__all__ = [
    "TaskExecutor",
    "FailurePolicy",
    "FailureRule",
    "DEFAULT_FAILURE_RULES",
    "ApprovalProvider",
    "AutoApproval",
    "ConsoleApproval",
    "format_plan",
    "collect_artifacts",
    "WorkflowOrchestrator",
    "PlanPreview",
    "ExecutionStatus",
]
