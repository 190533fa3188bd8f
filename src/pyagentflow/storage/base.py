"""
RunHistoryLog - abstract interface for run history backends.

Design Pattern: Adapter Pattern
RunHistoryLog defines the target interface; the in-memory and SQLite
backends adapt to it. The orchestrator depends only on this interface.

Only finished runs are recorded. Nothing in-flight is ever persisted,
so a crashed process loses its current run and nothing else.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from pyagentflow.models import OutputResult


@dataclass(frozen=True)
class RunRecord:
    """
    Summary of one finished orchestration run.

    Attributes:
        run_id: Run identifier (uuid7, so ids sort by start time)
        goal: Goal the run was planned for
        success: Overall outcome
        message: Outcome message returned to the caller
        stage: Final RunStage value
        step_count: Number of results produced
        failed_count: Number of failed results
        duration: Run wall time in seconds
        timestamp: When the run started
        payload: Full OutputResult.to_dict() for detailed inspection
    """

    run_id: str
    goal: str
    success: bool
    message: str
    stage: str
    step_count: int
    failed_count: int
    duration: float
    timestamp: datetime
    payload: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_output(cls, output: OutputResult, goal: str) -> RunRecord:
        if output.run_id is None:
            raise ValueError("Cannot record a run without a run_id")
        return cls(
            run_id=output.run_id,
            goal=goal,
            success=output.success,
            message=output.message,
            stage=output.stage.value,
            step_count=len(output.results),
            failed_count=len(output.failed_results),
            duration=output.duration,
            timestamp=output.timestamp,
            payload=output.to_dict(),
        )


class RunHistoryLog(ABC):
    """
    Abstract storage interface for finished runs.

    Clients program to this interface, so tests use InMemoryRunHistory and
    the CLI uses SqliteRunHistory without either knowing the difference.

    Backends report every failure as StorageError, never as a driver
    exception.
    """

    @abstractmethod
    async def record_run(self, record: RunRecord) -> None:
        """Store a finished run. Recording the same run_id again replaces it."""
        ...

    @abstractmethod
    async def get_run(self, run_id: str) -> RunRecord | None:
        ...

    @abstractmethod
    async def recent_runs(self, limit: int = 20) -> list[RunRecord]:
        """Most recent runs first."""
        ...

    @abstractmethod
    async def search_runs(self, term: str, limit: int = 20) -> list[RunRecord]:
        """Runs whose goal contains term (case-insensitive), most recent first."""
        ...

    @abstractmethod
    async def reset(self) -> None:
        """Delete all records (for tests and demos)."""
        ...

    async def close(self) -> None:
        """Release backend resources. No-op by default."""
        return None
