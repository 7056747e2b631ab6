"""
Pytest configuration for plugin-asyncmysql.

Provides fixtures for:
- In-memory stand-ins for the driver connection pools
- A default DatabaseConfig
- A connected AsyncMySQL instance
"""

from __future__ import annotations

import asyncio
import threading
from typing import Any, Dict, List, Optional, Tuple

import aiomysql
import asyncmy
import pytest

from plugin_asyncmysql import AsyncMySQL, DatabaseConfig


class FakeCursor:
    def __init__(self, pool: "FakePool"):
        self._pool = pool
        self.rowcount = -1

    async def __aenter__(self) -> "FakeCursor":
        return self

    async def __aexit__(self, *exc) -> None:
        return None

    async def execute(self, query: str, args: Optional[Tuple[Any, ...]] = None) -> int:
        with self._pool.lock:
            self._pool.executed.append((query, args))
        if self._pool.fail_on and self._pool.fail_on in query:
            raise RuntimeError(f"You have an error in your SQL syntax near '{self._pool.fail_on}'")
        if self._pool.hang_on and self._pool.hang_on in query:
            await asyncio.Event().wait()
        self.rowcount = len(self._pool.rows)
        return self.rowcount

    async def fetchall(self) -> List[Tuple[Any, ...]]:
        return list(self._pool.rows)


class FakeConnection:
    def __init__(self, pool: "FakePool"):
        self._pool = pool

    def cursor(self) -> FakeCursor:
        return FakeCursor(self._pool)


class _Acquire:
    def __init__(self, pool: "FakePool"):
        self._pool = pool

    async def __aenter__(self) -> FakeConnection:
        self._pool.acquired += 1
        return FakeConnection(self._pool)

    async def __aexit__(self, *exc) -> None:
        self._pool.released += 1


class FakePool:
    """Mimics the slice of the aiomysql/asyncmy Pool API the plugin touches."""

    def __init__(self, minsize: int = 1, maxsize: int = 10):
        self.minsize = minsize
        self.maxsize = maxsize
        self.lock = threading.Lock()
        self.executed: List[Tuple[str, Optional[Tuple[Any, ...]]]] = []
        self.rows: List[Tuple[Any, ...]] = []
        self.fail_on: Optional[str] = None
        self.hang_on: Optional[str] = None
        self.acquired = 0
        self.released = 0
        self.closed = False

    @property
    def size(self) -> int:
        return self.minsize

    @property
    def freesize(self) -> int:
        return self.minsize

    def acquire(self) -> _Acquire:
        return _Acquire(self)

    def close(self) -> None:
        self.closed = True

    async def wait_closed(self) -> None:
        # the real pools block until every acquired connection is released
        while self.released < self.acquired:
            await asyncio.sleep(0.01)


class FakeDriver:
    def __init__(self):
        self.pool: Optional[FakePool] = None
        self.kwargs: Dict[str, Any] = {}
        self.error: Optional[Exception] = None
        self.calls = 0

    async def create_pool(self, **kwargs) -> FakePool:
        self.calls += 1
        self.kwargs = kwargs
        if self.error is not None:
            raise self.error
        self.pool = FakePool(minsize=kwargs["minsize"], maxsize=kwargs["maxsize"])
        return self.pool


@pytest.fixture
def fake_driver(monkeypatch) -> FakeDriver:
    """Replace both drivers' create_pool with an in-memory pool factory."""
    driver = FakeDriver()
    monkeypatch.setattr(aiomysql, "create_pool", driver.create_pool)
    monkeypatch.setattr(asyncmy, "create_pool", driver.create_pool)
    return driver


@pytest.fixture
def db_config() -> DatabaseConfig:
    return DatabaseConfig(
        host="127.0.0.1",
        user="overview",
        password="secret",
        database="network",
    )


@pytest.fixture
def mysql(fake_driver: FakeDriver, db_config: DatabaseConfig):
    api = AsyncMySQL()
    api.connect(db_config)
    try:
        yield api
    finally:
        api.close()
