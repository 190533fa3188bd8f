"""SQLite-backed run history.

Design Pattern: Adapter Pattern
SqliteRunHistory adapts an SQLite database to the RunHistoryLog interface.

Implementation details:
- aiosqlite for async operations
- WAL mode for concurrent reads
- INTEGER millisecond timestamps, indexed for recency queries
- Full run payload stored as JSON text
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from pathlib import Path

import aiosqlite

from pyagentflow.core.errors import StorageError
from pyagentflow.storage.base import RunHistoryLog, RunRecord

logger = logging.getLogger(__name__)

_COLUMNS = (
    "run_id, goal, success, message, stage, step_count, failed_count, duration, timestamp, payload"
)


class SqliteRunHistory(RunHistoryLog):
    """SQLite-backed run history.

    After __init__, the instance is not yet usable. Call connect() first.

    Usage:
        history = SqliteRunHistory("~/.pyagentflow/history.db")
        await history.connect()
        try:
            await history.record_run(record)
        finally:
            await history.close()
    """

    def __init__(self, db_path: str):
        """
        Args:
            db_path: Path to the SQLite database file (":memory:" for tests)
        """
        self.db_path = db_path if db_path == ":memory:" else str(Path(db_path).expanduser())
        self._connection: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()

    @classmethod
    async def in_memory(cls) -> SqliteRunHistory:
        """
        Create a connected in-memory history for testing.

        Example:
            history = await SqliteRunHistory.in_memory()
        """
        instance = cls(":memory:")
        await instance.connect()
        return instance

    def __repr__(self) -> str:
        if self.db_path == ":memory:":
            return "SqliteRunHistory(in-memory)"
        return f"SqliteRunHistory({self.db_path})"

    async def connect(self) -> None:
        """Open the connection and create the schema. Idempotent."""
        if self._connection is not None:
            return

        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        try:
            self._connection = await aiosqlite.connect(
                self.db_path,
                timeout=5.0,
                isolation_level=None,
            )

            # In-memory databases report "memory" and don't support WAL
            cursor = await self._connection.execute("PRAGMA journal_mode=WAL")
            result = await cursor.fetchone()
            await cursor.close()
            if result and result[0].upper() not in ("WAL", "MEMORY"):
                raise StorageError(f"Failed to enable WAL mode, got: {result[0]}")

            await self._connection.execute("PRAGMA busy_timeout=5000")
            await self._create_schema()
        except aiosqlite.Error as e:
            raise StorageError(f"Failed to open run history at {self.db_path}: {e}") from e

        logger.debug(f"Connected to run history {self!r}")

    async def _create_schema(self) -> None:
        await self._connection.execute("""
            CREATE TABLE IF NOT EXISTS run_history (
                run_id TEXT PRIMARY KEY,
                goal TEXT NOT NULL,
                success INTEGER NOT NULL,
                message TEXT NOT NULL,
                stage TEXT NOT NULL,
                step_count INTEGER NOT NULL,
                failed_count INTEGER NOT NULL,
                duration REAL NOT NULL,
                timestamp INTEGER NOT NULL,
                payload TEXT NOT NULL
            )
        """)

        await self._connection.execute("""
            CREATE INDEX IF NOT EXISTS idx_run_history_timestamp
            ON run_history(timestamp)
        """)

    def _check_connected(self) -> aiosqlite.Connection:
        if self._connection is None:
            raise StorageError("Not connected. Call connect() first.")
        return self._connection

    @asynccontextmanager
    async def _session(self, action: str) -> AsyncIterator[aiosqlite.Connection]:
        """Serialize access to the connection and wrap driver errors.

        Raises:
            StorageError: Not connected, or the query failed
        """
        conn = self._check_connected()
        async with self._lock:
            try:
                yield conn
            except aiosqlite.Error as e:
                raise StorageError(f"Failed to {action} in {self.db_path}: {e}") from e

    @staticmethod
    def _row_to_record(row: tuple) -> RunRecord:
        return RunRecord(
            run_id=row[0],
            goal=row[1],
            success=bool(row[2]),
            message=row[3],
            stage=row[4],
            step_count=row[5],
            failed_count=row[6],
            duration=row[7],
            timestamp=datetime.fromtimestamp(row[8] / 1000, tz=UTC),
            payload=json.loads(row[9]),
        )

    async def record_run(self, record: RunRecord) -> None:
        try:
            payload = json.dumps(record.payload, default=str)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Run payload is not serializable: {e}") from e

        async with self._session(f"record run {record.run_id}") as conn:
            await conn.execute(
                f"INSERT OR REPLACE INTO run_history ({_COLUMNS}) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    record.run_id,
                    record.goal,
                    int(record.success),
                    record.message,
                    record.stage,
                    record.step_count,
                    record.failed_count,
                    record.duration,
                    int(record.timestamp.timestamp() * 1000),
                    payload,
                ),
            )

    async def get_run(self, run_id: str) -> RunRecord | None:
        async with self._session(f"read run {run_id}") as conn:
            cursor = await conn.execute(
                f"SELECT {_COLUMNS} FROM run_history WHERE run_id = ?", (run_id,)
            )
            row = await cursor.fetchone()
            await cursor.close()
        return self._row_to_record(row) if row else None

    async def recent_runs(self, limit: int = 20) -> list[RunRecord]:
        async with self._session("list runs") as conn:
            cursor = await conn.execute(
                f"SELECT {_COLUMNS} FROM run_history "
                "ORDER BY timestamp DESC, run_id DESC LIMIT ?",
                (limit,),
            )
            rows = await cursor.fetchall()
            await cursor.close()
        return [self._row_to_record(row) for row in rows]

    async def search_runs(self, term: str, limit: int = 20) -> list[RunRecord]:
        escaped = term.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        async with self._session("search runs") as conn:
            cursor = await conn.execute(
                f"SELECT {_COLUMNS} FROM run_history "
                "WHERE lower(goal) LIKE ? ESCAPE '\\' "
                "ORDER BY timestamp DESC, run_id DESC LIMIT ?",
                (f"%{escaped}%", limit),
            )
            rows = await cursor.fetchall()
            await cursor.close()
        return [self._row_to_record(row) for row in rows]

    async def reset(self) -> None:
        async with self._session("reset run history") as conn:
            await conn.execute("DELETE FROM run_history")

    async def close(self) -> None:
        """Close the connection. Safe to call twice."""
        if self._connection is not None:
            await self._connection.close()
            self._connection = None
