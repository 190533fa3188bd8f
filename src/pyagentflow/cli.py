"""Command line interface.

    pyagentflow plan "Create a todo app"            # show plan, levels, validation
    pyagentflow agent "Create a todo app" --yes     # plan and execute
    pyagentflow history --search todo               # list recorded runs

Plans come from a JSON steps file (--steps) when given, otherwise from
the built-in fallback plan. Exit code is 1 when a run fails or a plan is
invalid, 2 for usage and configuration errors, 0 otherwise.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any

from pyagentflow.config import ENV_PREFIX, OrchestratorConfig
from pyagentflow.core.errors import AgentFlowError, ConfigError
from pyagentflow.executor.approval import AutoApproval, ConsoleApproval
from pyagentflow.executor.orchestrator import PlanPreview, WorkflowOrchestrator
from pyagentflow.models import OutputResult
from pyagentflow.planner import StaticDecomposer
from pyagentflow.storage.sqlite import SqliteRunHistory

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_DB = "~/.pyagentflow/history.db"


def _history_path(args: argparse.Namespace) -> str:
    return args.db or os.environ.get(f"{ENV_PREFIX}HISTORY_DB") or DEFAULT_HISTORY_DB


def _load_config(args: argparse.Namespace) -> OrchestratorConfig:
    config = OrchestratorConfig.from_env()
    if getattr(args, "yes", False):
        config = config.with_approval(False)
    if getattr(args, "parallel", False):
        config = config.with_parallel_execution()
    if getattr(args, "timeout_ms", None) is not None:
        config = config.with_step_timeout(args.timeout_ms)
    if args.log_level:
        config = config.with_log_level(args.log_level)
    return config


def _build_orchestrator(
    args: argparse.Namespace,
    config: OrchestratorConfig,
    history: SqliteRunHistory | None = None,
) -> WorkflowOrchestrator:
    decomposer = None
    if args.steps:
        decomposer = StaticDecomposer(Path(args.steps).read_text(encoding="utf-8"))
    approval = AutoApproval() if not config.require_approval else ConsoleApproval()
    return WorkflowOrchestrator(
        config=config,
        decomposer=decomposer,
        approval=approval,
        history=history,
        working_directory=args.working_dir,
    )


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, default=str))


def _print_preview(preview: PlanPreview) -> None:
    plan = preview.plan
    print(f"Goal: {plan.goal}")
    print(f"Steps: {len(plan)} (~{plan.estimated_duration:.1f} minutes)\n")
    for index, step in enumerate(preview.execution_order, start=1):
        deps = f" (depends on: {', '.join(step.dependencies)})" if step.dependencies else ""
        print(f"  {index}. [{step.id}] {step.name} (using {step.tool}){deps}")
    print()
    print(preview.level_graph)
    if preview.is_valid:
        print("Plan is valid.")
    else:
        print("Plan is INVALID:")
        for issue in preview.issues:
            print(f"  - {issue}")


def _print_output(output: OutputResult) -> None:
    marker = "OK" if output.success else "FAILED"
    print(f"[{marker}] {output.message}")
    print(f"Run {output.run_id} finished in {output.duration:.2f}s (stage {output.stage})")
    for result in output.results:
        status = "ok" if result.success else f"failed: {result.error}"
        print(f"  - {result.step_id} ({result.tool}, {result.duration:.0f}ms): {status}")
    if output.artifacts:
        print("Artifacts:")
        for artifact in output.artifacts:
            location = f" -> {artifact.path}" if artifact.path else ""
            print(f"  - {artifact.kind}: {artifact.name}{location}")


async def _plan(args: argparse.Namespace, config: OrchestratorConfig) -> int:
    orchestrator = _build_orchestrator(args, config)
    preview = await orchestrator.preview_plan(args.goal)
    if args.json:
        _print_json(
            {
                "plan": preview.plan.to_dict(),
                "valid": preview.is_valid,
                "issues": list(preview.issues),
                "execution_order": [step.id for step in preview.execution_order],
            }
        )
    else:
        _print_preview(preview)
    return 0 if preview.is_valid else 1


async def _agent(args: argparse.Namespace, config: OrchestratorConfig) -> int:
    history = None
    if not args.no_history:
        history = SqliteRunHistory(_history_path(args))
        await history.connect()
    try:
        orchestrator = _build_orchestrator(args, config, history)
        output = await orchestrator.process_request(args.goal)
    finally:
        if history is not None:
            await history.close()

    if args.json:
        _print_json(output.to_dict())
    else:
        _print_output(output)
    return 0 if output.success else 1


async def _history(args: argparse.Namespace, config: OrchestratorConfig) -> int:
    history = SqliteRunHistory(_history_path(args))
    await history.connect()
    try:
        if args.search:
            records = await history.search_runs(args.search, limit=args.limit)
        else:
            records = await history.recent_runs(limit=args.limit)
    finally:
        await history.close()

    if args.json:
        _print_json([record.payload for record in records])
        return 0

    if not records:
        print("No recorded runs.")
    for record in records:
        marker = "OK" if record.success else "FAILED"
        when = record.timestamp.strftime("%Y-%m-%d %H:%M:%S")
        print(f"{when}  {record.run_id}  [{marker}] {record.goal} - {record.message}")
    return 0


def cmd_plan(args: argparse.Namespace) -> int:
    return _run(_plan, args)


def cmd_agent(args: argparse.Namespace) -> int:
    return _run(_agent, args)


def cmd_history(args: argparse.Namespace) -> int:
    return _run(_history, args)


def _run(command, args: argparse.Namespace) -> int:
    try:
        config = _load_config(args)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return asyncio.run(command(args, config))
    except (AgentFlowError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--log-level", default=None, help="Logging level (default WARNING)")
    parser.add_argument("--json", action="store_true", help="Print machine-readable JSON")


def _add_planning(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("goal", help="Natural-language goal")
    parser.add_argument(
        "--steps",
        default=None,
        help="JSON file with the decomposed steps (default: built-in fallback plan)",
    )
    parser.add_argument("--working-dir", default=None, help="Directory tools run in")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pyagentflow", description="Plan and execute agent workflows"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    plan = sub.add_parser("plan", help="Show the plan for a goal without executing it")
    _add_planning(plan)
    _add_common(plan)
    plan.set_defaults(func=cmd_plan)

    agent = sub.add_parser("agent", help="Plan and execute a goal")
    _add_planning(agent)
    _add_common(agent)
    agent.add_argument("--yes", "-y", action="store_true", help="Skip plan approval")
    agent.add_argument(
        "--parallel", action="store_true", help="Run independent steps concurrently"
    )
    agent.add_argument("--timeout-ms", type=int, default=None, help="Per-attempt step timeout")
    agent.add_argument("--db", default=None, help=f"Run history database ({DEFAULT_HISTORY_DB})")
    agent.add_argument("--no-history", action="store_true", help="Do not record this run")
    agent.set_defaults(func=cmd_agent)

    history = sub.add_parser("history", help="List recorded runs")
    _add_common(history)
    history.add_argument("--db", default=None, help=f"Run history database ({DEFAULT_HISTORY_DB})")
    history.add_argument("--search", default=None, help="Only runs whose goal contains this")
    history.add_argument("--limit", type=int, default=20)
    history.set_defaults(func=cmd_history)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
