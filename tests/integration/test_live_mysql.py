"""
Integration tests against a real MySQL server.

Set MYSQL_TEST_HOST (and optionally MYSQL_TEST_PORT, MYSQL_TEST_USER,
MYSQL_TEST_PASSWORD, MYSQL_TEST_DATABASE) to run them; otherwise they skip.
"""

from __future__ import annotations

import os
import threading
import time
import uuid

import pytest

from plugin_asyncmysql import AsyncMySQL, DatabaseConfig

pytestmark = pytest.mark.integration


@pytest.fixture(params=["aiomysql", "asyncmy"])
def live_mysql(request):
    host = os.getenv("MYSQL_TEST_HOST")
    if not host:
        pytest.skip("MYSQL_TEST_HOST not set; live MySQL not available")

    config = DatabaseConfig(
        host=host,
        port=int(os.getenv("MYSQL_TEST_PORT", "3306")),
        user=os.getenv("MYSQL_TEST_USER", "root"),
        password=os.getenv("MYSQL_TEST_PASSWORD", ""),
        database=os.getenv("MYSQL_TEST_DATABASE", "test"),
        driver=request.param,
    )
    api = AsyncMySQL()
    api.connect(config)
    try:
        yield api
    finally:
        api.close()


def _wait_for_table(live_mysql, table, timeout=10.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        answered = threading.Event()
        found = []

        def on_rows(result):
            found.extend(result)
            answered.set()

        live_mysql.select(
            "SELECT COUNT(*) FROM information_schema.tables WHERE table_schema = DATABASE() AND table_name = %s",
            on_rows,
            table,
        )
        if answered.wait(timeout) and found and found[0][0] == 1:
            return True
        time.sleep(0.1)
    return False


def test_create_insert_select_roundtrip(live_mysql):
    table = f"players_{uuid.uuid4().hex[:8]}"
    inserted = threading.Event()
    selected = threading.Event()
    rows = []

    live_mysql.create_table(table, "uuid VARCHAR(36) NOT NULL PRIMARY KEY, name VARCHAR(16)")
    assert _wait_for_table(live_mysql, table)

    live_mysql.execute(
        f"INSERT INTO {table} (uuid, name) VALUES (%s, %s)",
        "069a79f4-44e9-4726-a5be-fca90e38aaf5",
        "Notch",
        callback=inserted.set,
    )
    assert inserted.wait(10)

    def on_rows(result):
        rows.extend(result)
        selected.set()

    live_mysql.select(f"SELECT name FROM {table} WHERE uuid = %s", on_rows, "069a79f4-44e9-4726-a5be-fca90e38aaf5")
    assert selected.wait(10)
    assert [tuple(row) for row in rows] == [("Notch",)]

    dropped = threading.Event()
    live_mysql.execute(f"DROP TABLE {table}", callback=dropped.set)
    assert dropped.wait(10)
