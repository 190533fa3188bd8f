"""Shell command execution tool.

Commands are split with shlex and executed directly (no shell), so
pipes, redirections and builtins like `cd` are not available. Only an
allow-list of executables may run, and a short list of destructive
command patterns is rejected at validation time.
"""

from __future__ import annotations

import logging
import shlex
from collections.abc import Mapping
from typing import Any

from pyagentflow.core.context import ToolContext
from pyagentflow.core.errors import PermissionDeniedError, ToolExecutionError
from pyagentflow.tools.base import Tool
from pyagentflow.tools.process import run_process

logger = logging.getLogger(__name__)

__all__ = ["ShellTool", "DEFAULT_ALLOWED_COMMANDS"]

DEFAULT_ALLOWED_COMMANDS = frozenset(
    {
        "ls", "pwd", "echo", "cat", "head", "tail", "grep", "find", "wc",
        "mkdir", "touch", "cp", "mv", "rm", "chmod",
        "git", "npm", "node", "python", "python3", "pip", "which",
        "du", "df", "ps", "true", "false", "sleep",
    }
)

DANGEROUS_PATTERNS = (
    "rm -rf /",
    "rm -rf *",
    "format",
    "del /f /s /q",
    "shutdown",
    "reboot",
    "halt",
)


class ShellTool(Tool):
    """Execute allow-listed commands in the run's working directory.

    Params:
        command: Command line (required, non-empty)
        cwd: Directory to run in (defaults to the context working directory)
        timeout: Per-command timeout in milliseconds (default 30000)

    Returns:
        {"type": "shell_result", "command", "cwd", "stdout", "stderr",
         "exit_code", "duration"}

    Raises:
        CommandNotFoundError: Executable missing
        PermissionDeniedError: Executable not in the allow-list
        ToolExecutionError: Non-zero exit status (not retried)
    """

    name = "shell"
    description = "Execute shell commands in the system"

    def __init__(self, allowed_commands: frozenset[str] | set[str] | None = None):
        self.allowed_commands = frozenset(
            DEFAULT_ALLOWED_COMMANDS if allowed_commands is None else allowed_commands
        )

    def validate(self, params: Mapping[str, Any]) -> bool:
        command = params.get("command") if params else None
        if not isinstance(command, str) or not command.strip():
            return False

        lowered = command.lower().strip()
        for pattern in DANGEROUS_PATTERNS:
            if pattern in lowered:
                logger.warning(f"Blocked potentially dangerous command: {command}")
                return False

        try:
            shlex.split(command)
        except ValueError:
            return False

        return True

    async def execute(self, params: Mapping[str, Any], context: ToolContext) -> Any:
        argv = shlex.split(params["command"])
        executable = argv[0]
        if executable not in self.allowed_commands:
            raise PermissionDeniedError(
                f"Command '{executable}' not allowed for security reasons. "
                f"Allowed: {', '.join(sorted(self.allowed_commands))}"
            )

        cwd = params.get("cwd") or context.working_directory
        timeout = int(params.get("timeout") or context.timeout)

        logger.info(f"Executing command: {params['command']} (cwd={cwd})")
        output = await run_process(argv, cwd=cwd, env=context.environment, timeout_ms=timeout)

        if output.returncode != 0:
            raise ToolExecutionError(
                f"Command failed with exit code {output.returncode}: "
                f"{output.stderr.strip() or output.stdout.strip()}",
                retryable=False,
            )

        return {
            "type": "shell_result",
            "command": params["command"],
            "cwd": cwd,
            "stdout": output.stdout,
            "stderr": output.stderr,
            "exit_code": output.returncode,
            "duration": output.duration,
        }
