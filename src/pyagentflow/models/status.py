"""Status enumerations for orchestration runs.

Defines the lifecycle stages of a single orchestration run, the
typed error classification carried by failed step results, and the
decisions the failure policy can make about a failed step.
"""

from enum import Enum


class RunStage(Enum):
    """Stage of a single orchestration run.

    Lifecycle:
        PLANNING → VALIDATING → APPROVAL → EXECUTING → AGGREGATING → DONE

    ABORTED is terminal. It is reached when the failure policy or the
    execution time budget stops the run early, or when a stage raises.
    """

    IDLE = "IDLE"
    """No run in progress."""

    PLANNING = "PLANNING"
    """Goal is being decomposed into a plan."""

    VALIDATING = "VALIDATING"
    """Plan graph is being checked for cycles and dangling references."""

    APPROVAL = "APPROVAL"
    """Waiting for the approval collaborator."""

    EXECUTING = "EXECUTING"
    """Steps are being dispatched to the executor."""

    AGGREGATING = "AGGREGATING"
    """Results are being collected into artifacts."""

    DONE = "DONE"
    """Run finished (successfully or not)."""

    ABORTED = "ABORTED"
    """Run stopped before all steps were attempted."""

    @property
    def is_terminal(self) -> bool:
        """Check if this stage ends the run."""
        return self in (RunStage.DONE, RunStage.ABORTED)

    def __str__(self) -> str:
        return self.value


class ErrorKind(Enum):
    """Typed classification of a step failure.

    Validation kinds (TOOL_NOT_FOUND, INVALID_PARAMS, PLAN_INVALID) are
    caller errors and are never retried. EXECUTION and TIMEOUT are
    treated as transient faults.
    """

    TOOL_NOT_FOUND = "TOOL_NOT_FOUND"
    INVALID_PARAMS = "INVALID_PARAMS"
    EXECUTION = "EXECUTION"
    TIMEOUT = "TIMEOUT"
    DEPENDENCY_UNSATISFIED = "DEPENDENCY_UNSATISFIED"
    PLAN_INVALID = "PLAN_INVALID"
    COMMAND_NOT_FOUND = "COMMAND_NOT_FOUND"
    PERMISSION_DENIED = "PERMISSION_DENIED"

    @property
    def is_retryable(self) -> bool:
        """Check if failures of this kind are worth another attempt."""
        return self in (ErrorKind.EXECUTION, ErrorKind.TIMEOUT)

    def __str__(self) -> str:
        return self.value


class FailureAction(Enum):
    """Decision taken by the failure policy for a failed step."""

    CONTINUE = "continue"
    """Move on without marking the step completed (dependents will fail)."""

    RETRY = "retry"
    """Re-dispatch the step immediately."""

    SKIP = "skip"
    """Mark the step completed anyway, unblocking its dependents."""

    ABORT = "abort"
    """Stop the run; remaining steps are not attempted."""

    def __str__(self) -> str:
        return self.value
