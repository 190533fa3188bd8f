"""Plan approval gate between validation and execution."""

from __future__ import annotations

import asyncio
import logging
import os
import sys
import threading
from collections.abc import Callable
from typing import Protocol, TextIO, runtime_checkable

from pyagentflow.models import WorkflowPlan

logger = logging.getLogger(__name__)

__all__ = [
    "ApprovalProvider",
    "AutoApproval",
    "ConsoleApproval",
    "format_plan",
    "read_stdin_line",
]


@runtime_checkable
class ApprovalProvider(Protocol):
    """Decides whether a validated plan may execute. True approves."""

    async def request_approval(self, plan: WorkflowPlan) -> bool: ...


class AutoApproval:
    """Approve (or reject) every plan without asking. For unattended runs."""

    def __init__(self, approve: bool = True):
        self.approve = approve
        self.requests: list[WorkflowPlan] = []

    async def request_approval(self, plan: WorkflowPlan) -> bool:
        self.requests.append(plan)
        logger.info(f"Plan auto-{'approved' if self.approve else 'rejected'}")
        return self.approve


def format_plan(plan: WorkflowPlan, ordered_steps=None) -> str:
    """Human-readable plan summary, one numbered line per step."""
    lines = [
        f"Goal: {plan.goal}",
        f"Steps: {len(plan)}",
        f"Estimated Duration: {plan.estimated_duration:.1f} minutes",
        "",
    ]
    for index, step in enumerate(ordered_steps or plan.steps, start=1):
        deps = f" (depends on: {', '.join(step.dependencies)})" if step.dependencies else ""
        lines.append(f"  {index}. {step.name} (using {step.tool}){deps}")
    return "\n".join(lines)


APPROVAL_PROMPT = "Execute this plan? [y/N] "


def read_stdin_line(prompt: str, output: TextIO | None = None) -> str:
    """Print prompt and read one line from the stdin file descriptor.

    Reads the raw descriptor rather than sys.stdin, so a thread left
    blocked here holds no interpreter-level stream lock.

    Raises:
        EOFError: stdin closed before any input arrived
    """
    out = output or sys.stdout
    out.write(prompt)
    out.flush()

    fd = sys.stdin.fileno()
    data = bytearray()
    while not data.endswith(b"\n"):
        chunk = os.read(fd, 1)
        if not chunk:
            break
        data += chunk
    if not data:
        raise EOFError("stdin closed")
    return data.decode("utf-8", errors="replace").rstrip("\r\n")


class ConsoleApproval:
    """
    Show the plan and ask a yes/no question on the terminal.

    The blocking read runs in a daemon thread so the event loop stays
    responsive. When the orchestrator's approval timeout fires, the
    abandoned reader never delays interpreter shutdown.
    """

    def __init__(
        self,
        input_func: Callable[[str], str] | None = None,
        output: TextIO | None = None,
    ):
        self._input = input_func or (lambda prompt: read_stdin_line(prompt, output))
        self._output = output

    async def request_approval(self, plan: WorkflowPlan) -> bool:
        out = self._output or sys.stdout
        print(format_plan(plan), file=out)
        try:
            answer = await self._ask(APPROVAL_PROMPT)
        except EOFError:
            logger.warning("No input available for approval, rejecting plan")
            return False
        return answer.strip().lower() in ("y", "yes")

    async def _ask(self, prompt: str) -> str:
        loop = asyncio.get_running_loop()
        answer: asyncio.Future[str] = loop.create_future()

        def deliver(value: str | None, error: BaseException | None) -> None:
            if answer.done():
                return
            if error is not None:
                answer.set_exception(error)
            else:
                answer.set_result(value)

        def read() -> None:
            try:
                value, error = self._input(prompt), None
            except Exception as e:
                value, error = None, e
            try:
                loop.call_soon_threadsafe(deliver, value, error)
            except RuntimeError:
                logger.debug("Approval answer arrived after the event loop closed")

        threading.Thread(target=read, name="pyagentflow-approval", daemon=True).start()
        return await answer
