"""Registry mapping tool names to tool capabilities.

A plain lookup table with no state beyond registration. Registration
happens once at orchestrator construction, before any concurrent use,
so the registry does no locking.
"""

import logging

from pyagentflow.tools.base import Tool

logger = logging.getLogger(__name__)

__all__ = ["ToolRegistry"]


class ToolRegistry:
    """Registry mapping tool names to tool instances.

    Registering a tool under a name that is already taken replaces the
    previous tool (last write wins, no error).

    Example:
        ```python
        registry = ToolRegistry()
        registry.register(ShellTool())
        registry.register(FileSystemTool())

        tool = registry.get_tool("shell")
        registry.get_tool_names()  # ["shell", "file_system"]
        ```
    """

    def __init__(self, tools: list[Tool] | None = None):
        """Create a registry, optionally pre-populated."""
        self._tools: dict[str, Tool] = {}
        for tool in tools or []:
            self.register(tool)

    def register(self, tool: Tool) -> None:
        """Register a tool under its declared name."""
        if tool.name in self._tools:
            logger.debug(f"Replacing registered tool: {tool.name}")
        self._tools[tool.name] = tool
        logger.debug(f"Registered tool: {tool.name}")

    def get_tool(self, name: str) -> Tool | None:
        """Get a tool by name.

        Returns:
            The tool if registered, None otherwise
        """
        return self._tools.get(name)

    def list_tools(self) -> list[Tool]:
        """Return all registered tools in registration order."""
        return list(self._tools.values())

    def get_tool_names(self) -> list[str]:
        """Return all registered tool names in registration order."""
        return list(self._tools.keys())

    def get_tools_for_capability(self, capability: str) -> list[Tool]:
        """Return tools whose description mentions the capability (case-insensitive)."""
        needle = capability.lower()
        return [tool for tool in self._tools.values() if needle in tool.description.lower()]

    def unregister(self, name: str) -> bool:
        """Remove a tool.

        Returns:
            True if a tool was removed, False if the name was unknown
        """
        removed = self._tools.pop(name, None) is not None
        if removed:
            logger.debug(f"Unregistered tool: {name}")
        return removed

    def clear(self) -> None:
        """Remove all tools."""
        self._tools.clear()
        logger.debug("Cleared all tools from registry")

    def has_tools(self) -> bool:
        """Returns True if at least one tool is registered."""
        return bool(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        """Returns the number of registered tools."""
        return len(self._tools)

    def __repr__(self) -> str:
        return f"ToolRegistry(tools={self.get_tool_names()})"
