import threading

import pytest

from plugin_asyncmysql.core.loop import EventLoopThread
from plugin_asyncmysql.exceptions import DatabaseRuntimeError


@pytest.fixture
def loop_thread():
    thread = EventLoopThread(name="test-loop")
    thread.start()
    try:
        yield thread
    finally:
        thread.stop()


def test_run_executes_on_background_thread(loop_thread):
    async def whoami():
        return threading.current_thread().name

    assert loop_thread.run(whoami()) == "test-loop"


def test_run_propagates_coroutine_errors(loop_thread):
    async def boom():
        raise KeyError("missing")

    with pytest.raises(KeyError):
        loop_thread.run(boom())


def test_start_is_idempotent(loop_thread):
    loop = loop_thread.loop
    loop_thread.start()
    assert loop_thread.loop is loop


def test_blocking_from_own_thread_is_rejected(loop_thread):
    async def inner():
        return 1

    async def outer():
        return loop_thread.run(inner())

    with pytest.raises(DatabaseRuntimeError):
        loop_thread.run(outer())


def test_submit_after_stop_raises():
    thread = EventLoopThread()
    thread.start()
    thread.stop()
    thread.stop()

    async def noop():
        return None

    assert not thread.is_running
    with pytest.raises(DatabaseRuntimeError):
        thread.submit(noop())
