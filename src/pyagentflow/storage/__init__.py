"""Run history backends.

Provides implementations behind a common interface:
    - RunHistoryLog: Abstract interface
    - InMemoryRunHistory: In-memory history for tests and one-shot runs
    - SqliteRunHistory: SQLite-backed history (aiosqlite)

Design: Adapter Pattern + Dependency Inversion
    The orchestrator depends on RunHistoryLog, not on a backend.
"""

from pyagentflow.storage.base import RunHistoryLog, RunRecord

# Backends load lazily so importing the package does not import aiosqlite


def __getattr__(name: str):
    """Lazy import storage implementations."""
    if name == "InMemoryRunHistory":
        from pyagentflow.storage.memory import InMemoryRunHistory

        return InMemoryRunHistory
    elif name == "SqliteRunHistory":
        from pyagentflow.storage.sqlite import SqliteRunHistory

        return SqliteRunHistory
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "RunHistoryLog",
    "RunRecord",
    "InMemoryRunHistory",
    "SqliteRunHistory",
]
