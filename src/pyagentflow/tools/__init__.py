"""Tool capabilities and the registry that maps names to them.

Built-in tools:
    - command_suggest: CommandSuggestTool (external suggestion CLI)
    - prd_generator: PRDGeneratorTool (requirements document)
    - shell: ShellTool (allow-listed commands)
    - file_system: FileSystemTool (file and directory operations)
"""

from pyagentflow.tools.base import FunctionTool, Tool
from pyagentflow.tools.command_suggest import CommandSuggestTool
from pyagentflow.tools.file_system import FileSystemTool
from pyagentflow.tools.prd_generator import PRDGeneratorTool
from pyagentflow.tools.registry import ToolRegistry
from pyagentflow.tools.shell import ShellTool


def default_tools() -> list[Tool]:
    """Fresh instances of the four built-in tools, in registration order."""
    return [CommandSuggestTool(), PRDGeneratorTool(), ShellTool(), FileSystemTool()]


__all__ = [
    "Tool",
    "FunctionTool",
    "ToolRegistry",
    "CommandSuggestTool",
    "PRDGeneratorTool",
    "ShellTool",
    "FileSystemTool",
    "default_tools",
]
