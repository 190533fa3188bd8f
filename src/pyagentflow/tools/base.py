"""Tool capability contract.

A tool is a pluggable unit of work exposing validate() and execute().
The executor calls validate() once per step and, if it passes, races
execute() against the per-attempt timeout.

Tools report failure by raising (ideally a ToolError subclass so the
failure carries a typed ErrorKind); they never mutate the execution
context, which they only receive as a read-only ToolContext.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from pyagentflow.core.context import ToolContext

__all__ = ["Tool", "FunctionTool"]


class Tool(ABC):
    """Abstract tool capability.

    Subclasses set `name` (the registry key) and `description`, and
    implement validate() and execute().

    Example:
        ```python
        class EchoTool(Tool):
            name = "echo"
            description = "Return the message parameter"

            def validate(self, params):
                return isinstance(params.get("message"), str)

            async def execute(self, params, context):
                return {"type": "echo", "message": params["message"]}
        ```
    """

    name: str = ""
    description: str = ""

    @abstractmethod
    def validate(self, params: Mapping[str, Any]) -> bool:
        """Return True if params are acceptable for execute()."""

    @abstractmethod
    async def execute(self, params: Mapping[str, Any], context: ToolContext) -> Any:
        """Perform the work and return a result payload, or raise."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class FunctionTool(Tool):
    """Adapt a plain async callable into a Tool.

    Useful for embedding ad-hoc capabilities and for tests.

    Example:
        ```python
        async def fetch(params, context):
            return {"type": "fetched", "url": params["url"]}

        registry.register(FunctionTool("fetch", fetch, validator=lambda p: "url" in p))
        ```
    """

    def __init__(
        self,
        name: str,
        func: Callable[[Mapping[str, Any], ToolContext], Awaitable[Any]],
        validator: Callable[[Mapping[str, Any]], bool] | None = None,
        description: str = "",
    ):
        self.name = name
        self.description = description or f"Function tool {name}"
        self._func = func
        self._validator = validator

    def validate(self, params: Mapping[str, Any]) -> bool:
        if self._validator is None:
            return True
        return bool(self._validator(params))

    async def execute(self, params: Mapping[str, Any], context: ToolContext) -> Any:
        return await self._func(params, context)
