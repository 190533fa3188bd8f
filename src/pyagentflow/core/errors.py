"""Exception taxonomy for the orchestration engine.

Tools signal failures by raising ToolError subclasses. Each carries a
typed ErrorKind and a retryability flag, so the executor decides whether
to try again and the failure policy decides what to do with the step
without matching on error text.

Exceptions that are not ToolErrors are classified as ErrorKind.EXECUTION
(retryable) by the executor.
"""

from pyagentflow.models import ErrorKind

__all__ = [
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


class AgentFlowError(Exception):
    """Base class for all pyagentflow errors."""

    pass


class ToolError(AgentFlowError):
    """
    Failure raised by a tool, carrying its own classification.

    Example:
        # Transient error - the executor will retry
        raise ToolError("Upstream busy", kind=ErrorKind.EXECUTION)

        # Permanent error - the executor gives up immediately
        raise ToolError("Disk full", kind=ErrorKind.EXECUTION, retryable=False)

    Attributes:
        kind: Typed classification used by the failure policy
        message: Human-readable message
        _retryable: Whether another attempt may succeed
    """

    default_kind = ErrorKind.EXECUTION

    def __init__(
        self,
        message: str,
        kind: ErrorKind | None = None,
        retryable: bool | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.kind = kind or self.default_kind
        self._retryable = self.kind.is_retryable if retryable is None else retryable

    def is_retryable(self) -> bool:
        """
        Returns True if this error is transient and the attempt should be repeated.

        - True: transient fault (timeout, busy service). The executor retries
          up to the retry policy's bound.
        - False: permanent fault (bad input, missing binary). The executor
          surfaces the failure immediately.
        """
        return self._retryable

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(message={self.message!r}, "
            f"kind={self.kind.value}, retryable={self._retryable})"
        )


class ToolNotFoundError(ToolError):
    """Step names a tool that is not registered."""

    default_kind = ErrorKind.TOOL_NOT_FOUND

    def __init__(self, tool_name: str):
        super().__init__(f"Tool not found: {tool_name}")
        self.tool_name = tool_name


class InvalidParamsError(ToolError):
    """Step parameters were rejected by the tool's validate()."""

    default_kind = ErrorKind.INVALID_PARAMS

    def __init__(self, tool_name: str, detail: str | None = None):
        message = f"Invalid params for tool: {tool_name}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
        self.tool_name = tool_name


class ToolExecutionError(ToolError):
    """Generic transient failure inside a tool."""

    default_kind = ErrorKind.EXECUTION


class TaskTimeoutError(ToolError):
    """A single attempt did not settle within the configured timeout."""

    default_kind = ErrorKind.TIMEOUT

    def __init__(self, timeout_ms: int):
        super().__init__(f"Task timeout after {timeout_ms}ms")
        self.timeout_ms = timeout_ms


class CommandNotFoundError(ToolError):
    """A shell command or external binary does not exist."""

    default_kind = ErrorKind.COMMAND_NOT_FOUND


class PermissionDeniedError(ToolError):
    """The tool was not allowed to touch a resource."""

    default_kind = ErrorKind.PERMISSION_DENIED


class DependencyUnsatisfiedError(AgentFlowError):
    """A step was reached before all of its dependencies completed."""

    def __init__(self, step_id: str, missing: list[str]):
        super().__init__(
            f"Dependencies not satisfied for step: {step_id} (waiting on {', '.join(missing)})"
        )
        self.step_id = step_id
        self.missing = missing


class PlanInvalidError(AgentFlowError):
    """Plan failed structural validation; carries every issue found."""

    def __init__(self, issues: list[str]):
        super().__init__(f"Invalid workflow plan: {', '.join(issues)}")
        self.issues = issues


class PlanParseError(AgentFlowError):
    """Decomposition response could not be parsed into steps."""

    pass


class StorageError(AgentFlowError):
    """
    Storage operation failed.

    Custom exception with context, not generic Exception.
    """

    pass


class ConfigError(AgentFlowError):
    """Configuration value could not be parsed."""

    pass


def classify_error(error: BaseException) -> tuple[ErrorKind, bool]:
    """Return the (kind, retryable) pair for an exception raised by a tool.

    ToolErrors classify themselves; the builtin PermissionError and
    TimeoutError map onto their typed counterparts; anything else is a
    retryable EXECUTION fault.
    """
    if isinstance(error, ToolError):
        return error.kind, error.is_retryable()
    if isinstance(error, PermissionError):
        return ErrorKind.PERMISSION_DENIED, False
    if isinstance(error, TimeoutError):
        return ErrorKind.TIMEOUT, True
    return ErrorKind.EXECUTION, True
