"""Subprocess helper shared by the shell and command-suggestion tools.

Runs an argv list (never through a shell) with asyncio subprocesses,
bounds it by a timeout, caps captured output and maps the usual failure
modes onto typed ToolErrors.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from pyagentflow.core.errors import (
    CommandNotFoundError,
    PermissionDeniedError,
    TaskTimeoutError,
    ToolExecutionError,
)

logger = logging.getLogger(__name__)

MAX_OUTPUT_BYTES = 1024 * 1024

# Conventional shell exit status for "command not found"
EXIT_COMMAND_NOT_FOUND = 127


@dataclass(frozen=True)
class ProcessOutput:
    argv: tuple[str, ...]
    cwd: str
    returncode: int
    stdout: str
    stderr: str
    duration: float


def _decode(data: bytes) -> str:
    if len(data) > MAX_OUTPUT_BYTES:
        data = data[:MAX_OUTPUT_BYTES]
    return data.decode("utf-8", errors="replace")


async def run_process(
    argv: Sequence[str],
    cwd: str,
    env: Mapping[str, str] | None = None,
    timeout_ms: int = 30_000,
) -> ProcessOutput:
    """Run argv to completion and capture its output.

    Raises:
        CommandNotFoundError: Executable does not exist (or exit status 127)
        ToolExecutionError: cwd is not an existing directory (not retried)
        PermissionDeniedError: Executable or cwd is not accessible
        TaskTimeoutError: Process did not finish within timeout_ms; it is killed
    """
    if not Path(cwd).is_dir():
        raise ToolExecutionError(f"Working directory does not exist: {cwd}", retryable=False)

    loop = asyncio.get_running_loop()
    started = loop.time()

    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            cwd=cwd,
            env=dict(env) if env is not None else None,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as e:
        raise CommandNotFoundError(f"{argv[0]}: command not found") from e
    except PermissionError as e:
        raise PermissionDeniedError(f"{argv[0]}: permission denied") from e

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout_ms / 1000)
    except TimeoutError:
        logger.warning(f"Process {argv[0]} exceeded {timeout_ms}ms, killing it")
        proc.kill()
        await proc.wait()
        raise TaskTimeoutError(timeout_ms) from None

    output = ProcessOutput(
        argv=tuple(argv),
        cwd=cwd,
        returncode=proc.returncode if proc.returncode is not None else -1,
        stdout=_decode(stdout),
        stderr=_decode(stderr),
        duration=(loop.time() - started) * 1000,
    )

    if output.returncode == EXIT_COMMAND_NOT_FOUND:
        raise CommandNotFoundError(f"{argv[0]}: command not found")

    return output
