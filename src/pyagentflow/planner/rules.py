"""Implicit dependency inference.

Decomposed steps often omit ordering constraints that follow from what
the tools do: a shell command usually runs inside something a file
system step created. Each DependencyRule captures one such pattern.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from pyagentflow.models import WorkflowStep

logger = logging.getLogger(__name__)

__all__ = ["DependencyRule", "DEFAULT_RULES", "infer_dependencies"]

StepPredicate = Callable[[WorkflowStep], bool]


@dataclass(frozen=True)
class DependencyRule:
    """
    Add a dependency on the nearest preceding provider step.

    When `applies_to(step)` holds, the closest earlier step for which
    `provider(candidate)` holds becomes a dependency of step. Nothing is
    added when there is no such earlier step.

    Attributes:
        name: Label used in debug logs
        applies_to: Selects steps that need the implicit dependency
        provider: Selects the steps that satisfy it
    """

    name: str
    applies_to: StepPredicate
    provider: StepPredicate

    def find_provider(self, preceding: Sequence[WorkflowStep]) -> WorkflowStep | None:
        return next((s for s in reversed(preceding) if self.provider(s)), None)


def _is_tool(tool: str) -> StepPredicate:
    return lambda step: step.tool == tool


def _is_action(tool: str, action: str) -> StepPredicate:
    return lambda step: step.tool == tool and step.params.get("action") == action


DEFAULT_RULES: tuple[DependencyRule, ...] = (
    DependencyRule(
        name="shell-after-file-system",
        applies_to=_is_tool("shell"),
        provider=_is_tool("file_system"),
    ),
    DependencyRule(
        name="write-after-create-dir",
        applies_to=_is_action("file_system", "write"),
        provider=_is_action("file_system", "create_dir"),
    ),
)


def infer_dependencies(
    steps: Sequence[WorkflowStep], rules: Sequence[DependencyRule] = DEFAULT_RULES
) -> list[WorkflowStep]:
    """
    Return steps with implicit dependencies appended.

    Rules are applied in order, each looking only at the steps that
    precede the current one in the input. Explicit dependencies are kept
    and never duplicated.
    """
    inferred: list[WorkflowStep] = []

    for index, step in enumerate(steps):
        preceding = steps[:index]
        extra: list[str] = []

        for rule in rules:
            if not rule.applies_to(step):
                continue
            provider = rule.find_provider(preceding)
            if provider is None or provider.id in step.dependencies or provider.id in extra:
                continue
            logger.debug(f"Rule {rule.name}: {step.id} depends on {provider.id}")
            extra.append(provider.id)

        inferred.append(step.with_dependencies(*extra) if extra else step)

    return inferred
