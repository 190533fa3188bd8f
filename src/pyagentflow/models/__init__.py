"""Core data models for workflow orchestration.

Defines plans and steps, execution results, retry behavior and the
status enumerations used across the engine.

Design: Dependency-Free Models
These types have no dependencies on core, tools or storage modules to
prevent circular imports and enable clean layering.
"""

from pyagentflow.models.result import (
    Artifact,
    HistoryEntry,
    OutputResult,
    TaskResult,
    validate_result,
)
from pyagentflow.models.retry import RetryPolicy
from pyagentflow.models.status import ErrorKind, FailureAction, RunStage
from pyagentflow.models.step import ValidationReport, WorkflowPlan, WorkflowStep

__all__ = [
    "WorkflowStep",
    "WorkflowPlan",
    "ValidationReport",
    "TaskResult",
    "HistoryEntry",
    "Artifact",
    "OutputResult",
    "validate_result",
    "RetryPolicy",
    "ErrorKind",
    "FailureAction",
    "RunStage",
]
