"""Run-scoped execution state.

ExecutionContext is created at the start of one orchestration run and
discarded at its end. It is owned by that run and never shared across
concurrent runs.

Design: Read/Write Ownership
    The orchestrator and executor write to the context (state store and
    history). Tools only ever see a ToolContext: a frozen, read-only view
    of the same data. Tools return results instead of mutating the
    context, and the types make that structural rather than conventional.
"""

from __future__ import annotations

import os
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Any

from uuid_extensions import uuid7

from pyagentflow.models import HistoryEntry

DEFAULT_TIMEOUT_MS = 30_000
"""Per-attempt timeout applied when the context does not set one."""


class StateStore:
    """Typed key/value store for passing step outputs to later steps.

    Keys are written once per key by convention (the orchestrator stores
    each successful step's result under its step id). Overwrites are
    allowed so a rerun step can replace its own entry.

    Usage:
        ```python
        store = StateStore({"session_id": "abc"})
        store.set("step_1", result)
        store.get("step_1")
        view = store.view()  # read-only, reflects later writes
        ```
    """

    def __init__(self, initial: Mapping[str, Any] | None = None):
        self._values: dict[str, Any] = dict(initial or {})

    def set(self, key: str, value: Any) -> None:
        self._values[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def view(self) -> Mapping[str, Any]:
        """Read-only live view of the store."""
        return MappingProxyType(self._values)

    def snapshot(self) -> dict[str, Any]:
        """Shallow copy of the current contents."""
        return dict(self._values)

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"StateStore(keys={sorted(self._values)})"


@dataclass(frozen=True)
class ToolContext:
    """Read-only view of an ExecutionContext handed to tools.

    Attributes:
        run_id: Identifier of the orchestration run
        working_directory: Directory relative paths resolve against
        environment: Environment snapshot taken at run start
        state: Live read-only view of the run's state store
        timeout: Per-attempt timeout in milliseconds
    """

    run_id: str
    working_directory: str
    environment: Mapping[str, str]
    state: Mapping[str, Any]
    timeout: int


class ExecutionContext:
    """Mutable state for one orchestration run.

    Attributes:
        run_id: Unique run identifier (uuid7, time-ordered)
        working_directory: Directory tools resolve relative paths against
        environment: Read-only environment snapshot for tools
        state: StateStore used to pass step outputs to later steps
        history: Append-only log of successful step executions
        timeout: Optional per-attempt timeout in milliseconds
    """

    def __init__(
        self,
        working_directory: str | None = None,
        environment: Mapping[str, str] | None = None,
        state: Mapping[str, Any] | None = None,
        timeout: int | None = None,
        run_id: str | None = None,
    ):
        self.run_id = run_id or str(uuid7())
        self.working_directory = working_directory or os.getcwd()
        self.environment: Mapping[str, str] = MappingProxyType(
            dict(os.environ if environment is None else environment)
        )
        self.state = StateStore(
            {
                "session_id": self.run_id,
                "start_time": datetime.now(UTC).isoformat(),
                **(state or {}),
            }
        )
        self.timeout = timeout
        self._history: list[HistoryEntry] = []

    @property
    def effective_timeout(self) -> int:
        """Per-attempt timeout in milliseconds, falling back to the default."""
        return self.timeout if self.timeout is not None else DEFAULT_TIMEOUT_MS

    @property
    def history(self) -> tuple[HistoryEntry, ...]:
        return tuple(self._history)

    def record_history(self, step_id: str, result: Any, duration: float) -> HistoryEntry:
        """Append a successful execution to the history log."""
        entry = HistoryEntry(
            step_id=step_id,
            timestamp=datetime.now(UTC),
            result=result,
            duration=duration,
        )
        self._history.append(entry)
        return entry

    def view(self) -> ToolContext:
        """Build the read-only view passed to tool.execute()."""
        return ToolContext(
            run_id=self.run_id,
            working_directory=self.working_directory,
            environment=self.environment,
            state=self.state.view(),
            timeout=self.effective_timeout,
        )

    def __repr__(self) -> str:
        return (
            f"ExecutionContext(run_id={self.run_id!r}, "
            f"working_directory={self.working_directory!r}, "
            f"history={len(self._history)})"
        )
