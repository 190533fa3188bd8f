"""
Core types for the pyagentflow orchestration engine.

This module contains the fundamental runtime types:
- ExecutionContext: Run-scoped mutable state (state store, history)
- ToolContext: Read-only view of the context handed to tools
- StateStore: Typed key/value store for step outputs
- Error taxonomy: ToolError and friends, with typed ErrorKind
"""

from pyagentflow.core.context import (
    DEFAULT_TIMEOUT_MS,
    ExecutionContext,
    StateStore,
    ToolContext,
)
from pyagentflow.core.errors import (
    AgentFlowError,
    CommandNotFoundError,
    ConfigError,
    DependencyUnsatisfiedError,
    InvalidParamsError,
    PermissionDeniedError,
    PlanInvalidError,
    PlanParseError,
    StorageError,
    TaskTimeoutError,
    ToolError,
    ToolExecutionError,
    ToolNotFoundError,
    classify_error,
)

__all__ = [
    "DEFAULT_TIMEOUT_MS",
    "ExecutionContext",
    "StateStore",
    "ToolContext",
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
    "classify_error",
]
