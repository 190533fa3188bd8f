"""
Workflow planning: goal decomposition and plan structure checks.

- WorkflowPlanner: goal -> WorkflowPlan, validation, execution order
- PlanDecomposer: protocol for decomposition backends
- DependencyRule: pluggable implicit-dependency inference
- graph: cycle detection, topological order, execution levels
"""

from pyagentflow.planner.decomposition import (
    CachingDecomposer,
    PlanDecomposer,
    StaticDecomposer,
    build_decomposition_prompt,
    fallback_steps,
    parse_steps,
)
from pyagentflow.planner.planner import DEFAULT_TOOL_NAMES, TOOL_DURATIONS, WorkflowPlanner
from pyagentflow.planner.rules import DEFAULT_RULES, DependencyRule, infer_dependencies

__all__ = [
    "WorkflowPlanner",
    "DEFAULT_TOOL_NAMES",
    "TOOL_DURATIONS",
    "PlanDecomposer",
    "StaticDecomposer",
    "CachingDecomposer",
    "build_decomposition_prompt",
    "parse_steps",
    "fallback_steps",
    "DependencyRule",
    "DEFAULT_RULES",
    "infer_dependencies",
]
