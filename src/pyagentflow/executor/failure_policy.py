"""What to do with the rest of a run when a step fails.

Decisions are driven by the failed result's typed ErrorKind and the
step's tool, never by matching on error text.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from pyagentflow.models import ErrorKind, FailureAction, TaskResult, WorkflowStep

__all__ = ["FailureRule", "FailurePolicy", "DEFAULT_FAILURE_RULES"]


@dataclass(frozen=True)
class FailureRule:
    """
    Map a (tool, error kind) pair to a FailureAction.

    A None tool or kind matches anything, so FailureRule(None, None, X)
    is a catch-all.
    """

    tool: str | None
    kind: ErrorKind | None
    action: FailureAction

    def matches(self, step: WorkflowStep, result: TaskResult) -> bool:
        if self.tool is not None and step.tool != self.tool:
            return False
        if self.kind is not None and result.error_kind != self.kind:
            return False
        return True


DEFAULT_FAILURE_RULES: tuple[FailureRule, ...] = (
    FailureRule("shell", ErrorKind.COMMAND_NOT_FOUND, FailureAction.SKIP),
    FailureRule("file_system", ErrorKind.PERMISSION_DENIED, FailureAction.ABORT),
)


class FailurePolicy:
    """
    Ordered rule table; the first matching rule decides.

    With no matching rule the policy returns `default` (CONTINUE).

    Example:
        ```python
        policy = FailurePolicy.with_rules(
            FailureRule("shell", ErrorKind.TIMEOUT, FailureAction.RETRY),
        )
        policy.decide(step, result)
        ```
    """

    def __init__(
        self,
        rules: Iterable[FailureRule] = DEFAULT_FAILURE_RULES,
        default: FailureAction = FailureAction.CONTINUE,
    ):
        self.rules: tuple[FailureRule, ...] = tuple(rules)
        self.default = default

    @classmethod
    def with_rules(cls, *rules: FailureRule) -> FailurePolicy:
        """Default policy with custom rules taking precedence."""
        return cls(rules=(*rules, *DEFAULT_FAILURE_RULES))

    def prepend(self, *rules: FailureRule) -> FailurePolicy:
        return FailurePolicy(rules=(*rules, *self.rules), default=self.default)

    def decide(self, step: WorkflowStep, result: TaskResult) -> FailureAction:
        for rule in self.rules:
            if rule.matches(step, result):
                return rule.action
        return self.default
