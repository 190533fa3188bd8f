"""Tests for ToolRegistry."""

from pyagentflow.tools import FunctionTool, ToolRegistry, default_tools


async def _noop(params, context):
    return None


def test_register_and_lookup():
    registry = ToolRegistry()
    tool = FunctionTool("fs", _noop, description="File operations")

    registry.register(tool)

    assert registry.get_tool("fs") is tool
    assert registry.get_tool("missing") is None
    assert "fs" in registry
    assert len(registry) == 1
    assert registry.has_tools()


def test_register_is_last_write_wins():
    registry = ToolRegistry()
    first = FunctionTool("fs", _noop)
    second = FunctionTool("fs", _noop)

    registry.register(first)
    registry.register(second)

    assert registry.get_tool("fs") is second
    assert registry.get_tool_names() == ["fs"]


def test_names_keep_registration_order():
    registry = ToolRegistry([FunctionTool(name, _noop) for name in ("b", "a", "c")])

    assert registry.get_tool_names() == ["b", "a", "c"]
    assert [t.name for t in registry.list_tools()] == ["b", "a", "c"]


def test_unregister_and_clear():
    registry = ToolRegistry([FunctionTool("a", _noop), FunctionTool("b", _noop)])

    assert registry.unregister("a") is True
    assert registry.unregister("a") is False
    assert registry.get_tool_names() == ["b"]

    registry.clear()
    assert not registry.has_tools()
    assert len(registry) == 0


def test_capability_search_is_case_insensitive():
    registry = ToolRegistry(default_tools())

    names = [tool.name for tool in registry.get_tools_for_capability("DIRECTORIES")]

    assert names == ["file_system"]


def test_default_tools_names():
    registry = ToolRegistry(default_tools())

    assert registry.get_tool_names() == ["command_suggest", "prd_generator", "shell", "file_system"]
