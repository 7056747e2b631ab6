"""
后台事件循环模块
在独立的守护线程中运行 asyncio 事件循环，供同步调用方投递数据库任务
"""

import asyncio
import logging
import threading
from concurrent.futures import Future
from typing import Any, Coroutine, Optional

from ..exceptions.database import DatabaseRuntimeError

logger = logging.getLogger(__name__)


class EventLoopThread:
    """持有连接池所在事件循环的后台线程"""

    def __init__(self, name: str = "asyncmysql-loop"):
        self.name = name
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._started = threading.Event()

    @property
    def loop(self) -> Optional[asyncio.AbstractEventLoop]:
        return self._loop

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def in_loop_thread(self) -> bool:
        """当前线程是否就是后台循环线程"""
        return self._thread is not None and threading.current_thread() is self._thread

    def start(self) -> None:
        """启动后台线程，重复调用无副作用"""
        if self.is_running:
            return

        self._loop = asyncio.new_event_loop()
        self._started.clear()
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()
        self._started.wait()
        logger.debug(f"Background event loop '{self.name}' started")

    def _run(self) -> None:
        loop = self._loop
        asyncio.set_event_loop(loop)
        loop.call_soon(self._started.set)
        try:
            loop.run_forever()
        finally:
            loop.run_until_complete(loop.shutdown_asyncgens())
            loop.run_until_complete(loop.shutdown_default_executor())
            loop.close()

    def submit(self, coro: Coroutine[Any, Any, Any]) -> Future:
        """
        向后台循环投递协程

        Args:
            coro: 要执行的协程

        Returns:
            Future: 可跨线程等待的结果

        Raises:
            DatabaseRuntimeError: 后台循环未运行
        """
        if not self.is_running:
            coro.close()
            raise DatabaseRuntimeError(f"Background event loop '{self.name}' is not running")
        return asyncio.run_coroutine_threadsafe(coro, self._loop)

    def run(self, coro: Coroutine[Any, Any, Any], timeout: Optional[float] = None) -> Any:
        """投递协程并阻塞等待结果，协程内的异常原样抛出"""
        if self.in_loop_thread():
            coro.close()
            raise DatabaseRuntimeError("Cannot block on the background event loop from its own thread")
        return self.submit(coro).result(timeout)

    def stop(self) -> None:
        """停止事件循环并等待线程退出"""
        if not self.is_running:
            return
        if self.in_loop_thread():
            raise DatabaseRuntimeError("Cannot stop the background event loop from its own thread")

        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join()
        self._thread = None
        self._loop = None
        logger.debug(f"Background event loop '{self.name}' stopped")
