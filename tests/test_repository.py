# tests/test_repository.py

from __future__ import annotations

import asyncio
import time
from datetime import datetime, timezone

import asyncpg
import pytest

from core.db import Database
from core.errors import NotFoundError, StorageError, ValidationError
from tasks import repository as repo_module
from tasks.domain import TaskEntity, TaskPatchSpec
from tasks.repository import TaskRepository, build_patch_query

from .fakes import FakeConnection, FakeDatabase, FakePool, task_row


def test_build_patch_query_name_only() -> None:
    sql, args = build_patch_query(TaskPatchSpec(id="t1", name="new"))
    assert "SET last_modified_at = now(), name = $1\n" in sql
    assert "WHERE id = $2\n" in sql
    assert "is_active" not in sql.split("RETURNING")[0]
    assert args == ["new", "t1"]


def test_build_patch_query_active_only() -> None:
    sql, args = build_patch_query(TaskPatchSpec(id="t1", is_active=False))
    assert "SET last_modified_at = now(), is_active = $1\n" in sql
    assert "WHERE id = $2\n" in sql
    assert args == [False, "t1"]


def test_build_patch_query_both_fields_keep_order() -> None:
    sql, args = build_patch_query(TaskPatchSpec(id="t1", name="n", is_active=True))
    assert sql.startswith("UPDATE tasks\nSET last_modified_at = now(), name = $1, is_active = $2\nWHERE id = $3\n")
    assert sql.endswith("RETURNING id, name, created_at, last_modified_at, is_active")
    assert args == ["n", True, "t1"]


def test_build_patch_query_no_fields_only_refreshes_timestamp() -> None:
    sql, args = build_patch_query(TaskPatchSpec(id="t1"))
    assert "SET last_modified_at = now()\nWHERE id = $1" in sql
    assert args == ["t1"]


@pytest.mark.asyncio
async def test_fetch_returns_entities_in_row_order() -> None:
    rows = [task_row(id="a", name="first"), task_row(id="b", name="second")]
    db = FakeDatabase(rows)
    repo = TaskRepository(db, timeout=10.0)

    entities = await repo.fetch()

    assert [e.id for e in entities] == ["a", "b"]
    assert "ORDER BY created_at ASC" in db.calls[0].sql
    assert db.calls[0].timeout == 10.0


@pytest.mark.asyncio
async def test_fetch_empty_is_empty_list() -> None:
    assert await TaskRepository(FakeDatabase([])).fetch() == []


@pytest.mark.asyncio
async def test_fetch_by_id_missing_row_is_not_found() -> None:
    with pytest.raises(NotFoundError):
        await TaskRepository(FakeDatabase(None)).fetch_by_id("missing")


@pytest.mark.asyncio
async def test_fetch_by_id_converts_naive_timestamps_to_utc() -> None:
    naive = datetime(2024, 5, 1, 12, 0)
    db = FakeDatabase(task_row(created_at=naive))

    entity = await TaskRepository(db).fetch_by_id("a" * 24)

    assert entity.created_at == naive.replace(tzinfo=timezone.utc)
    assert entity.last_modified_at is None
    assert db.calls[0].args == ("a" * 24,)


@pytest.mark.asyncio
async def test_store_passes_id_and_name_only() -> None:
    db = FakeDatabase(task_row(id="abc", name="n"))

    stored = await TaskRepository(db).store(TaskEntity(id="abc", name="n"))

    assert stored.id == "abc"
    assert stored.created_at is not None
    assert stored.is_active is True
    assert db.calls[0].args == ("abc", "n")
    assert "RETURNING" in db.calls[0].sql


@pytest.mark.asyncio
async def test_store_duplicate_name_is_storage_error() -> None:
    db = FakeDatabase(asyncpg.UniqueViolationError("duplicate key value violates unique constraint"))

    with pytest.raises(StorageError, match="already taken: dup"):
        await TaskRepository(db).store(TaskEntity(id="abc", name="dup"))


@pytest.mark.asyncio
async def test_query_timeout_is_storage_error() -> None:
    db = FakeDatabase(asyncio.TimeoutError())

    with pytest.raises(StorageError, match="failed to fetch tasks"):
        await TaskRepository(db).fetch()


@pytest.mark.asyncio
async def test_patch_without_fields_never_touches_database() -> None:
    db = FakeDatabase()

    with pytest.raises(ValidationError, match="no fields to patch"):
        await TaskRepository(db).patch(TaskPatchSpec(id="t1"))

    assert db.calls == []


@pytest.mark.asyncio
async def test_patch_sends_built_query() -> None:
    modified = datetime(2024, 5, 2, tzinfo=timezone.utc)
    db = FakeDatabase(task_row(id="t1", name="new", last_modified_at=modified))
    spec = TaskPatchSpec(id="t1", name="new")

    patched = await TaskRepository(db).patch(spec)

    sql, args = build_patch_query(spec)
    assert db.calls[0].sql == sql
    assert db.calls[0].args == tuple(args)
    assert patched.last_modified_at == modified


@pytest.mark.asyncio
async def test_patch_unknown_id_is_not_found() -> None:
    with pytest.raises(NotFoundError):
        await TaskRepository(FakeDatabase(None)).patch(TaskPatchSpec(id="t1", is_active=False))


@pytest.mark.asyncio
async def test_destroy_by_id() -> None:
    db = FakeDatabase("DELETE 1")
    await TaskRepository(db).destroy_by_id("t1")
    assert db.calls[0].method == "execute"
    assert db.calls[0].args == ("t1",)


@pytest.mark.asyncio
async def test_destroy_zero_rows_is_not_found() -> None:
    with pytest.raises(NotFoundError, match="task with id: t1 not found"):
        await TaskRepository(FakeDatabase("DELETE 0")).destroy_by_id("t1")


@pytest.mark.asyncio
async def test_migrate_creates_table_idempotently() -> None:
    db = FakeDatabase("CREATE TABLE")
    await repo_module.migrate(db)
    assert "CREATE TABLE IF NOT EXISTS tasks" in db.calls[0].sql
    assert "name TEXT UNIQUE NOT NULL" in db.calls[0].sql


@pytest.mark.asyncio
async def test_stalled_pool_acquire_is_storage_error_within_timeout() -> None:
    database = Database("postgresql://unused", pool=FakePool(stall=True))
    repo = TaskRepository(database, timeout=0.1)

    started = time.perf_counter()
    with pytest.raises(StorageError, match="failed to fetch tasks"):
        # The outer bound turns a hang into a failure instead of a stuck run.
        await asyncio.wait_for(repo.fetch(), 2.0)

    assert time.perf_counter() - started < 1.0


@pytest.mark.asyncio
async def test_query_runs_on_acquired_connection() -> None:
    con = FakeConnection([task_row(id="a")])
    pool = FakePool(con)
    repo = TaskRepository(Database("postgresql://unused", pool=pool), timeout=5.0)

    entities = await repo.fetch()

    assert [e.id for e in entities] == ["a"]
    assert con.timeouts == [5.0]
    assert pool.released == 1
