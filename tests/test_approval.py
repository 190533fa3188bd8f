"""Tests for the plan approval providers."""

import asyncio
import io
import os
import threading

import pytest
from conftest import make_step

from pyagentflow.executor import ApprovalProvider, AutoApproval, ConsoleApproval, format_plan
from pyagentflow.executor.approval import read_stdin_line
from pyagentflow.models import WorkflowPlan

PLAN = WorkflowPlan(
    goal="Scaffold app",
    steps=(make_step("dir", tool="file_system"), make_step("run", tool="shell", deps=("dir",))),
    estimated_duration=2.5,
)


def test_format_plan_lists_steps_and_dependencies():
    text = format_plan(PLAN)

    assert text.splitlines()[:3] == [
        "Goal: Scaffold app",
        "Steps: 2",
        "Estimated Duration: 2.5 minutes",
    ]
    assert "  1. Step dir (using file_system)" in text
    assert "  2. Step run (using shell) (depends on: dir)" in text


def test_providers_satisfy_protocol():
    assert isinstance(AutoApproval(), ApprovalProvider)
    assert isinstance(ConsoleApproval(), ApprovalProvider)


@pytest.mark.asyncio
async def test_auto_approval_records_requests():
    provider = AutoApproval(approve=False)

    assert await provider.request_approval(PLAN) is False
    assert provider.requests == [PLAN]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("answer", "expected"),
    [("y", True), (" YES ", True), ("n", False), ("", False), ("maybe", False)],
)
async def test_console_approval_answers(answer, expected):
    prompts = []
    out = io.StringIO()

    def fake_input(prompt):
        prompts.append(prompt)
        return answer

    approved = await ConsoleApproval(input_func=fake_input, output=out).request_approval(PLAN)

    assert approved is expected
    assert prompts == ["Execute this plan? [y/N] "]
    assert "Goal: Scaffold app" in out.getvalue()


@pytest.mark.asyncio
async def test_console_approval_rejects_on_eof():
    def closed_stdin(prompt):
        raise EOFError

    provider = ConsoleApproval(input_func=closed_stdin, output=io.StringIO())

    assert await provider.request_approval(PLAN) is False


@pytest.mark.asyncio
async def test_console_approval_timeout_leaves_only_a_daemon_reader():
    release = threading.Event()

    def blocked_input(prompt):
        release.wait(5)
        return "y"

    provider = ConsoleApproval(input_func=blocked_input, output=io.StringIO())

    with pytest.raises(TimeoutError):
        await asyncio.wait_for(provider.request_approval(PLAN), timeout=0.1)

    readers = [t for t in threading.enumerate() if t.name == "pyagentflow-approval"]
    assert readers
    assert all(t.daemon for t in readers)
    release.set()


def test_read_stdin_line_uses_the_file_descriptor(monkeypatch):
    read_fd, write_fd = os.pipe()
    os.write(write_fd, b"yes\nignored")
    os.close(write_fd)
    out = io.StringIO()

    with os.fdopen(read_fd) as pipe:
        monkeypatch.setattr("sys.stdin", pipe)
        assert read_stdin_line("Go? ", out) == "yes"

    assert out.getvalue() == "Go? "


def test_read_stdin_line_raises_eof_on_closed_input(monkeypatch):
    read_fd, write_fd = os.pipe()
    os.close(write_fd)

    with os.fdopen(read_fd) as pipe:
        monkeypatch.setattr("sys.stdin", pipe)
        with pytest.raises(EOFError):
            read_stdin_line("Go? ", io.StringIO())
