"""Command suggestion tool.

Delegates to an external suggestion CLI (GitHub Copilot CLI by default)
and returns its output. The command line is configurable so any
suggestion backend with a `<command> <action> <prompt>` shape works.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from pyagentflow.core.context import ToolContext
from pyagentflow.core.errors import ToolExecutionError
from pyagentflow.tools.base import Tool
from pyagentflow.tools.process import run_process

logger = logging.getLogger(__name__)

__all__ = ["CommandSuggestTool"]

ACTION_RESULT_TYPES = {
    "suggest": "suggestion",
    "explain": "explanation",
}


class CommandSuggestTool(Tool):
    """Get command suggestions and explanations from a suggestion CLI.

    Params:
        action: "suggest" or "explain" (required)
        prompt: What to suggest or explain (required)

    Returns:
        {"type": "suggestion" | "explanation", "content": str, "source": str}

    Raises:
        CommandNotFoundError: Suggestion CLI is not installed
        ToolExecutionError: CLI exited with an error (retried)
    """

    name = "command_suggest"
    description = "Get command suggestions and explanations from a suggestion CLI"

    def __init__(self, command: Sequence[str] = ("gh", "copilot")):
        self.command = tuple(command)

    def validate(self, params: Mapping[str, Any]) -> bool:
        if not params:
            return False
        action = params.get("action")
        prompt = params.get("prompt")
        return (
            isinstance(action, str)
            and action in ACTION_RESULT_TYPES
            and isinstance(prompt, str)
            and len(prompt) > 0
        )

    async def execute(self, params: Mapping[str, Any], context: ToolContext) -> Any:
        argv = [*self.command, params["action"], params["prompt"]]
        logger.debug(f"Requesting {params['action']} from {self.command[0]}")

        output = await run_process(
            argv,
            cwd=context.working_directory,
            env=context.environment,
            timeout_ms=context.timeout,
        )
        if output.returncode != 0:
            raise ToolExecutionError(
                f"{self.command[0]} exited with code {output.returncode}: {output.stderr.strip()}"
            )

        return {
            "type": ACTION_RESULT_TYPES[params["action"]],
            "content": output.stdout.strip(),
            "source": self.command[0],
        }
