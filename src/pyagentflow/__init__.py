"""
pyagentflow: agent workflow orchestration for Python.

Turns a natural-language goal into a plan of tool invocations, validates
the plan's dependency structure, and executes it with per-attempt
timeouts, retry with backoff, optional parallel batches and a
step-failure policy.

Design Pattern: Façade
This module re-exports the public surface so callers import from one
place.

Example:
    ```python
    import asyncio
    from pyagentflow import OrchestratorConfig, StaticDecomposer, WorkflowOrchestrator

    steps = '[{"id": "mk", "name": "Make dir", "tool": "file_system",'
    steps += ' "params": {"action": "create_dir", "path": "out"}}]'

    async def main():
        orchestrator = WorkflowOrchestrator(
            config=OrchestratorConfig().with_approval(False),
            decomposer=StaticDecomposer(steps),
        )
        output = await orchestrator.process_request("Create an output directory")
        print(output.message)

    asyncio.run(main())
    ```
"""

from pyagentflow.config import OrchestratorConfig
from pyagentflow.core import (
    AgentFlowError,
    CommandNotFoundError,
    ConfigError,
    DependencyUnsatisfiedError,
    ExecutionContext,
    InvalidParamsError,
    PermissionDeniedError,
    PlanInvalidError,
    PlanParseError,
    StateStore,
    StorageError,
    TaskTimeoutError,
    ToolContext,
    ToolError,
    ToolExecutionError,
    ToolNotFoundError,
)
from pyagentflow.executor import (
    ApprovalProvider,
    AutoApproval,
    ConsoleApproval,
    ExecutionStatus,
    FailurePolicy,
    FailureRule,
    PlanPreview,
    TaskExecutor,
    WorkflowOrchestrator,
    collect_artifacts,
)
from pyagentflow.models import (
    Artifact,
    ErrorKind,
    FailureAction,
    HistoryEntry,
    OutputResult,
    RetryPolicy,
    RunStage,
    TaskResult,
    ValidationReport,
    WorkflowPlan,
    WorkflowStep,
)
from pyagentflow.planner import (
    CachingDecomposer,
    DependencyRule,
    PlanDecomposer,
    StaticDecomposer,
    WorkflowPlanner,
)
from pyagentflow.storage import RunHistoryLog, RunRecord
from pyagentflow.tools import (
    CommandSuggestTool,
    FileSystemTool,
    FunctionTool,
    PRDGeneratorTool,
    ShellTool,
    Tool,
    ToolRegistry,
    default_tools,
)

__version__ = "0.1.0"

__all__ = [
    # Orchestration
    "WorkflowOrchestrator",
    "OrchestratorConfig",
    "PlanPreview",
    "ExecutionStatus",
    "TaskExecutor",
    "FailurePolicy",
    "FailureRule",
    "ApprovalProvider",
    "AutoApproval",
    "ConsoleApproval",
    "collect_artifacts",
    # Planning
    "WorkflowPlanner",
    "PlanDecomposer",
    "StaticDecomposer",
    "CachingDecomposer",
    "DependencyRule",
    # Models
    "WorkflowStep",
    "WorkflowPlan",
    "ValidationReport",
    "TaskResult",
    "HistoryEntry",
    "Artifact",
    "OutputResult",
    "RetryPolicy",
    "ErrorKind",
    "FailureAction",
    "RunStage",
    # Context
    "ExecutionContext",
    "ToolContext",
    "StateStore",
    # Tools
    "Tool",
    "FunctionTool",
    "ToolRegistry",
    "CommandSuggestTool",
    "PRDGeneratorTool",
    "ShellTool",
    "FileSystemTool",
    "default_tools",
    # Storage
    "RunHistoryLog",
    "RunRecord",
    # Errors
    "AgentFlowError",
    "ToolError",
    "ToolNotFoundError",
    "InvalidParamsError",
    "ToolExecutionError",
    "TaskTimeoutError",
    "CommandNotFoundError",
    "PermissionDeniedError",
    "DependencyUnsatisfiedError",
    "PlanInvalidError",
    "PlanParseError",
    "StorageError",
    "ConfigError",
    "__version__",
]
