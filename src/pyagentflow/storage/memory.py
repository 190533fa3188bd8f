"""In-memory run history.

Instance is immediately usable after __init__. Contents die with the
process.
"""

from __future__ import annotations

import asyncio

from pyagentflow.storage.base import RunHistoryLog, RunRecord


class InMemoryRunHistory(RunHistoryLog):
    """Run history kept in a dict, for tests and one-shot CLI runs."""

    def __init__(self):
        self._runs: dict[str, RunRecord] = {}
        self._lock = asyncio.Lock()

    def __repr__(self) -> str:
        return f"InMemoryRunHistory(runs={len(self._runs)})"

    def _newest_first(self) -> list[RunRecord]:
        return sorted(self._runs.values(), key=lambda r: (r.timestamp, r.run_id), reverse=True)

    async def record_run(self, record: RunRecord) -> None:
        async with self._lock:
            self._runs[record.run_id] = record

    async def get_run(self, run_id: str) -> RunRecord | None:
        async with self._lock:
            return self._runs.get(run_id)

    async def recent_runs(self, limit: int = 20) -> list[RunRecord]:
        async with self._lock:
            return self._newest_first()[:limit]

    async def search_runs(self, term: str, limit: int = 20) -> list[RunRecord]:
        needle = term.lower()
        async with self._lock:
            return [r for r in self._newest_first() if needle in r.goal.lower()][:limit]

    async def reset(self) -> None:
        async with self._lock:
            self._runs.clear()
