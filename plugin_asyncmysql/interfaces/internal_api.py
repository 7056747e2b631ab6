"""
内部公共API接口模块
提供插件内部使用的非HTTP公共接口：连接池建立以及建表、更新、查询的
即发即弃（fire-and-forget）调用，所有调用都在后台事件循环中执行，
不阻塞调用方线程，失败时只记录警告日志
"""

import asyncio
import inspect
import logging
import threading
from concurrent.futures import Future, wait
from concurrent.futures import TimeoutError as FutureTimeoutError
from contextlib import asynccontextmanager
from typing import Any, Callable, Dict, Optional, Sequence, Set

from ..config.settings import DatabaseConfig
from ..core.connection import AsyncConnectionPool
from ..core.loop import EventLoopThread
from ..exceptions.database import (
    DatabaseError,
    DatabaseConnectionError,
    DatabaseRuntimeError
)


class AsyncMySQL:
    """
    异步MySQL访问接口

    每次调用都作为独立任务投递到后台事件循环，调用之间没有顺序保证，
    也不会把错误或结果返回给调用方。
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Args:
            logger: 所属插件的日志记录器，默认使用本模块的记录器
        """
        self.logger = logger or logging.getLogger(__name__)
        self._loop = EventLoopThread()
        self._pool: Optional[AsyncConnectionPool] = None
        self._pending: Set[Future] = set()
        self._pending_lock = threading.Lock()
        self._callback_state = threading.local()

    # ========== 连接池生命周期 ==========

    def connect(self, config: DatabaseConfig) -> None:
        """
        建立连接池

        Args:
            config: 数据库配置

        Raises:
            DatabaseConnectionError: 连接池创建失败
        """
        if self._pool is not None:
            raise DatabaseConnectionError("Database pool is already initialized")

        pool = AsyncConnectionPool(config)
        self._loop.start()
        try:
            self._loop.run(pool.initialize())
        except DatabaseError:
            self._loop.stop()
            raise
        except Exception as e:
            self._loop.stop()
            raise DatabaseConnectionError(f"Failed to connect to the database: {e}", original_error=e) from e

        self._pool = pool
        self.logger.info(f'Connected to the database with username: "{config.user}".')

    def is_initiated(self) -> bool:
        """连接池是否已建立"""
        return self._pool is not None

    def close(self, timeout: Optional[float] = None) -> None:
        """
        等待进行中的调用结束后关闭连接池并停止后台循环，可重复调用

        超时后仍未结束的调用会被取消，关闭连接池本身同样最多等待 ``timeout`` 秒，
        因此总阻塞时间不超过约两倍的 ``timeout``。

        Args:
            timeout: 等待的最长秒数，None 表示一直等待
        """
        if self._pool is None:
            return
        if self._loop.in_loop_thread() or getattr(self._callback_state, "active", False):
            raise DatabaseRuntimeError("Cannot close the database from a database callback")

        with self._pending_lock:
            pending = list(self._pending)
        if pending:
            _, not_done = wait(pending, timeout=timeout)
            if not_done:
                self.logger.warning(
                    f"{len(not_done)} database call(s) still running after {timeout}s, cancelling."
                )
                for future in not_done:
                    future.cancel()

        pool, self._pool = self._pool, None
        try:
            self._loop.run(pool.close(), timeout=timeout)
        except FutureTimeoutError:
            self.logger.warning(f"Connection pool did not close within {timeout}s, abandoning it.")
        finally:
            self._loop.stop()

    @asynccontextmanager
    async def get_connection(self):
        """
        获取连接池中的原始连接（上下文管理器），仅可在后台事件循环中使用，
        例如在协程回调中

        Yields:
            Any: 驱动的连接对象
        """
        if self._pool is None:
            raise DatabaseConnectionError("Database pool is not initialized")
        async with self._pool.get_connection() as connection:
            yield connection

    @property
    def stats(self) -> Dict[str, Any]:
        """连接池统计信息以及进行中的调用数"""
        with self._pending_lock:
            pending = len(self._pending)
        if self._pool is None:
            return {"is_initialized": False, "pending_calls": pending}
        stats = dict(self._pool.stats)
        stats["pending_calls"] = pending
        return stats

    # ========== 即发即弃调用 ==========

    def create_table(self, name: str, info: str) -> None:
        """
        创建数据表（不存在时）

        Args:
            name: 表名，原样拼入语句
            info: 括号内的列定义
        """
        self._dispatch(self._create_table(name, info))

    def execute(self, query: str, *values: Any, callback: Optional[Callable[[], Any]] = None) -> None:
        """
        执行更新语句

        Args:
            query: SQL语句，占位符为 %s
            *values: 按位置绑定的参数
            callback: 成功后调用一次的无参回调
        """
        self._dispatch(self._execute(query, values, callback))

    def select(self, query: str, callback: Callable[[Sequence[Any]], Any], *values: Any) -> None:
        """
        执行查询语句

        Args:
            query: SQL语句，占位符为 %s
            callback: 成功后以结果行调用一次的回调
            *values: 按位置绑定的参数
        """
        self._dispatch(self._select(query, values, callback))

    def _dispatch(self, coro) -> None:
        if self._pool is None:
            coro.close()
            raise DatabaseConnectionError("Database pool is not initialized")

        future = self._loop.submit(coro)
        with self._pending_lock:
            self._pending.add(future)
        future.add_done_callback(self._discard)

    def _discard(self, future: Future) -> None:
        with self._pending_lock:
            self._pending.discard(future)

    async def _create_table(self, name: str, info: str) -> None:
        try:
            await self._pool.execute(f"CREATE TABLE IF NOT EXISTS {name}({info});")
        except Exception:
            self.logger.warning(f"An error occurred while creating database table {name}.", exc_info=True)

    async def _execute(self, query: str, values: Sequence[Any], callback: Optional[Callable]) -> None:
        try:
            await self._pool.execute(query, values)
        except Exception:
            self.logger.warning("An error occurred while executing an update on the database.")
            self.logger.warning(f"MySQL#execute : {query}", exc_info=True)
            return

        if callback is not None:
            await self._invoke("execute", callback)

    async def _select(self, query: str, values: Sequence[Any], callback: Callable) -> None:
        try:
            rows = await self._pool.fetch_all(query, values)
        except Exception:
            self.logger.warning("An error occurred while executing a query on the database.")
            self.logger.warning(f"MySQL#select : {query}", exc_info=True)
            return

        await self._invoke("select", callback, rows)

    async def _invoke(self, operation: str, callback: Callable, *args: Any) -> None:
        # 同步回调放到默认线程池执行，避免阻塞事件循环上的其他查询
        try:
            if inspect.iscoroutinefunction(callback):
                await callback(*args)
            else:
                await asyncio.get_running_loop().run_in_executor(None, self._run_callback, callback, *args)
        except Exception:
            self.logger.warning(f"An error occurred in the {operation} callback.", exc_info=True)

    def _run_callback(self, callback: Callable, *args: Any) -> Any:
        # close() 会等待本次调用结束，回调线程内禁止调用
        self._callback_state.active = True
        try:
            return callback(*args)
        finally:
            self._callback_state.active = False


# 全局内部API实例
_internal_api: Optional[AsyncMySQL] = None


def get_internal_api() -> AsyncMySQL:
    """
    获取全局内部API实例

    Raises:
        DatabaseError: 如果API未初始化
    """
    if _internal_api is None:
        raise DatabaseError("数据库内部API未初始化")
    return _internal_api


def init_internal_api(config: DatabaseConfig, owner_logger: Optional[logging.Logger] = None) -> AsyncMySQL:
    """
    初始化全局内部API并建立连接池

    Args:
        config: 数据库配置
        owner_logger: 所属插件的日志记录器

    Returns:
        AsyncMySQL: 已连接的内部API实例

    Raises:
        DatabaseRuntimeError: 全局实例已存在，需先关闭
    """
    global _internal_api
    if _internal_api is not None:
        raise DatabaseRuntimeError("数据库内部API已初始化，请先关闭现有实例")
    api = AsyncMySQL(owner_logger)
    api.connect(config)
    _internal_api = api
    return api


def reset_internal_api() -> Optional[AsyncMySQL]:
    """清除全局实例并返回原实例，供插件关闭时使用"""
    global _internal_api
    api, _internal_api = _internal_api, None
    return api
