"""Tests for the run history backends.

Every behavioural test runs against both InMemoryRunHistory and
SqliteRunHistory so the two stay interchangeable.
"""

from datetime import UTC, datetime, timedelta

import pytest

from pyagentflow.core.errors import StorageError
from pyagentflow.models import OutputResult, RunStage, TaskResult
from pyagentflow.storage import InMemoryRunHistory, RunRecord, SqliteRunHistory

BASE_TIME = datetime(2026, 1, 1, 12, 0, 0, tzinfo=UTC)


def _record(run_id: str, goal: str, minutes: int = 0, success: bool = True) -> RunRecord:
    return RunRecord(
        run_id=run_id,
        goal=goal,
        success=success,
        message="Successfully executed 1 steps" if success else "Execution failed",
        stage=RunStage.DONE.value,
        step_count=1,
        failed_count=0 if success else 1,
        duration=0.5,
        timestamp=BASE_TIME + timedelta(minutes=minutes),
        payload={"run_id": run_id, "results": []},
    )


@pytest.fixture(params=["memory", "sqlite"])
async def history(request):
    if request.param == "memory":
        backend = InMemoryRunHistory()
    else:
        backend = await SqliteRunHistory.in_memory()
    yield backend
    await backend.close()


@pytest.mark.asyncio
async def test_record_and_get(history):
    record = _record("r1", "Build a todo app")

    await history.record_run(record)

    assert await history.get_run("r1") == record
    assert await history.get_run("missing") is None


@pytest.mark.asyncio
async def test_recording_same_run_replaces_it(history):
    await history.record_run(_record("r1", "first"))
    await history.record_run(_record("r1", "second", success=False))

    stored = await history.get_run("r1")

    assert stored.goal == "second"
    assert stored.success is False
    assert len(await history.recent_runs()) == 1


@pytest.mark.asyncio
async def test_recent_runs_newest_first_with_limit(history):
    for minutes, run_id in enumerate(["a", "b", "c"]):
        await history.record_run(_record(run_id, f"goal {run_id}", minutes=minutes))

    recent = await history.recent_runs(limit=2)

    assert [r.run_id for r in recent] == ["c", "b"]


@pytest.mark.asyncio
async def test_search_is_case_insensitive(history):
    await history.record_run(_record("a", "Build a TODO app", minutes=0))
    await history.record_run(_record("b", "Deploy service", minutes=1))
    await history.record_run(_record("c", "todo cleanup", minutes=2))

    found = await history.search_runs("todo")

    assert [r.run_id for r in found] == ["c", "a"]


@pytest.mark.asyncio
async def test_search_treats_wildcards_literally(history):
    await history.record_run(_record("a", "100% coverage"))
    await history.record_run(_record("b", "some_name", minutes=1))
    await history.record_run(_record("c", "plain goal", minutes=2))

    assert [r.run_id for r in await history.search_runs("%")] == ["a"]
    assert [r.run_id for r in await history.search_runs("_")] == ["b"]


@pytest.mark.asyncio
async def test_reset(history):
    await history.record_run(_record("a", "goal"))

    await history.reset()

    assert await history.recent_runs() == []


# =============================================================================
# RunRecord
# =============================================================================


def test_record_from_output():
    output = OutputResult(
        success=False,
        message="Execution failed - 1 of 2 steps failed",
        results=[
            TaskResult.ok("a", "echo", {"type": "echo"}),
            TaskResult.failure("b", "echo", "boom"),
        ],
        stage=RunStage.DONE,
        duration=1.25,
        run_id="run-1",
    )

    record = RunRecord.from_output(output, "do things")

    assert record.run_id == "run-1"
    assert record.goal == "do things"
    assert record.step_count == 2
    assert record.failed_count == 1
    assert record.stage == "DONE"
    assert record.payload["message"] == output.message


def test_record_requires_run_id():
    with pytest.raises(ValueError):
        RunRecord.from_output(OutputResult(success=True, message="ok"), "goal")


# =============================================================================
# SQLite specifics
# =============================================================================


@pytest.mark.asyncio
async def test_sqlite_requires_connect():
    history = SqliteRunHistory(":memory:")

    with pytest.raises(StorageError, match="Not connected"):
        await history.recent_runs()


@pytest.mark.asyncio
async def test_sqlite_persists_across_connections(tmp_path):
    db_path = str(tmp_path / "nested" / "history.db")

    first = SqliteRunHistory(db_path)
    await first.connect()
    await first.record_run(_record("a", "persisted goal"))
    await first.close()

    second = SqliteRunHistory(db_path)
    await second.connect()
    try:
        stored = await second.get_run("a")
    finally:
        await second.close()

    assert stored.goal == "persisted goal"
    assert stored.timestamp == BASE_TIME


@pytest.mark.asyncio
async def test_sqlite_close_is_idempotent(sqlite_history):
    await sqlite_history.close()
    await sqlite_history.close()

    with pytest.raises(StorageError):
        await sqlite_history.get_run("a")


@pytest.mark.asyncio
async def test_sqlite_driver_errors_become_storage_errors(sqlite_history):
    await sqlite_history._connection.execute("DROP TABLE run_history")

    with pytest.raises(StorageError, match="record run a"):
        await sqlite_history.record_run(_record("a", "goal"))
    with pytest.raises(StorageError):
        await sqlite_history.get_run("a")
    with pytest.raises(StorageError):
        await sqlite_history.recent_runs()
    with pytest.raises(StorageError):
        await sqlite_history.search_runs("goal")
    with pytest.raises(StorageError):
        await sqlite_history.reset()
