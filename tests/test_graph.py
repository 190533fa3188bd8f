"""Tests for the dependency graph algorithms."""

from conftest import make_step

from pyagentflow.planner import graph


def _ids(steps):
    return [step.id for step in steps]


def test_execution_order_puts_dependencies_first():
    steps = [
        make_step("c", deps=("b",)),
        make_step("b", deps=("a",)),
        make_step("a"),
    ]

    assert _ids(graph.execution_order(steps)) == ["a", "b", "c"]


def test_execution_order_preserves_input_order_for_independent_steps():
    steps = [make_step("x"), make_step("y"), make_step("z")]

    assert _ids(graph.execution_order(steps)) == ["x", "y", "z"]


def test_execution_order_diamond():
    steps = [
        make_step("d", deps=("b", "c")),
        make_step("b", deps=("a",)),
        make_step("c", deps=("a",)),
        make_step("a"),
    ]

    assert _ids(graph.execution_order(steps)) == ["a", "b", "c", "d"]


def test_execution_order_ignores_missing_dependencies():
    steps = [make_step("a", deps=("ghost",)), make_step("b")]

    assert _ids(graph.execution_order(steps)) == ["a", "b"]


def test_execution_order_terminates_on_cycles():
    steps = [make_step("a", deps=("b",)), make_step("b", deps=("a",))]

    assert sorted(_ids(graph.execution_order(steps))) == ["a", "b"]


def test_has_cycle():
    assert not graph.has_cycle([make_step("a"), make_step("b", deps=("a",))])
    assert graph.has_cycle([make_step("a", deps=("a",))])
    assert graph.has_cycle(
        [make_step("a", deps=("c",)), make_step("b", deps=("a",)), make_step("c", deps=("b",))]
    )
    assert not graph.has_cycle([make_step("a", deps=("missing",))])


def test_find_missing_and_duplicates():
    steps = [make_step("a", deps=("x",)), make_step("a"), make_step("b", deps=("a", "y"))]

    assert graph.find_missing_dependencies(steps) == [("a", "x"), ("b", "y")]
    assert graph.find_duplicate_ids(steps) == ["a"]


def test_execution_levels_group_independent_steps():
    steps = [
        make_step("root"),
        make_step("left", deps=("root",)),
        make_step("right", deps=("root",)),
        make_step("join", deps=("left", "right")),
    ]

    levels = graph.execution_levels(steps)

    assert [_ids(level) for level in levels] == [["root"], ["left", "right"], ["join"]]


def test_level_graph_rendering():
    steps = [make_step("a"), make_step("b", deps=("a",)), make_step("c", deps=("a",))]

    rendered = graph.level_graph(steps)

    assert "Execution Levels (3 steps)" in rendered
    assert "Level 0: [a]" in rendered
    assert "Level 1: [b] [c] (2 parallel steps)" in rendered
    assert "Unresolved" not in rendered


def test_level_graph_lists_cyclic_steps_as_unresolved():
    steps = [make_step("a"), make_step("b", deps=("c",)), make_step("c", deps=("b",))]

    rendered = graph.level_graph(steps)

    assert "Level 0: [a]" in rendered
    assert "Unresolved (cyclic): [b] [c]" in rendered


def test_empty_plan():
    assert graph.execution_order([]) == []
    assert graph.execution_levels([]) == []
    assert not graph.has_cycle([])
