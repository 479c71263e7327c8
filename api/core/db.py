"""
Async database access helpers (raw SQL) using asyncpg.

`Database` owns the connection pool. The FastAPI lifespan hook connects it on
startup and closes it on shutdown (see `api/main.py`).

SQL parameter style:
- asyncpg uses positional placeholders: $1, $2, $3, ...
"""

from __future__ import annotations

import asyncio
import os
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import asyncpg

from . import config


def _sanitize_database_url(url: str) -> str:
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = [(k, v) for (k, v) in parse_qsl(parts.query, keep_blank_values=True) if k != "sslmode"]
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def database_url() -> str:
    url = os.environ.get("DATABASE_URL", "").strip()
    if not url:
        raise RuntimeError("DATABASE_URL is not set.")
    return _sanitize_database_url(url)


def rows_affected(status: str) -> int:
    """
    Parse the row count out of a command tag such as "DELETE 3" or "INSERT 0 1".
    """
    tail = (status or "").strip().rsplit(" ", 1)[-1]
    try:
        return int(tail)
    except ValueError:
        return 0


def _record_to_dict(record: asyncpg.Record) -> dict[str, Any]:
    return dict(record)


class Database:
    """
    Process-wide handle around one asyncpg pool.
    """

    def __init__(self, dsn: str | None = None, *, pool: asyncpg.Pool | None = None) -> None:
        self._dsn = dsn
        self._pool: asyncpg.Pool | None = pool

    @property
    def is_connected(self) -> bool:
        return self._pool is not None

    async def connect(self) -> None:
        if self._pool is not None:
            return None
        self._pool = await asyncpg.create_pool(
            dsn=self._dsn or database_url(),
            min_size=config.pool_min_size(),
            max_size=config.pool_max_size(),
            command_timeout=30,
        )

    async def close(self) -> None:
        if self._pool is None:
            return None
        await self._pool.close()
        self._pool = None

    def pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise RuntimeError("DB pool is not initialized. Call connect() on startup.")
        return self._pool

    async def _run(self, method: str, sql: str, args: tuple[Any, ...], timeout: float | None) -> Any:
        # One budget covers waiting for a free connection, connecting, and the query.
        async def call() -> Any:
            async with self.pool().acquire() as con:
                return await getattr(con, method)(sql, *args, timeout=timeout)

        if timeout is None:
            return await call()
        return await asyncio.wait_for(call(), timeout)

    async def fetch_one(self, sql: str, *args: Any, timeout: float | None = None) -> dict[str, Any] | None:
        """
        Run a query and return a single row as a dict (or None).
        """
        row = await self._run("fetchrow", sql, args, timeout)
        return _record_to_dict(row) if row is not None else None

    async def fetch_all(self, sql: str, *args: Any, timeout: float | None = None) -> list[dict[str, Any]]:
        """
        Run a query and return all rows as a list of dicts.
        """
        rows = await self._run("fetch", sql, args, timeout)
        return [_record_to_dict(r) for r in rows]

    async def execute(self, sql: str, *args: Any, timeout: float | None = None) -> str:
        """
        Run a statement (INSERT/UPDATE/DELETE/DDL) and return its command tag.
        """
        return await self._run("execute", sql, args, timeout)
