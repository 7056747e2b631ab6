"""
数据库连接管理模块
封装 aiomysql / asyncmy 连接池的创建、连接获取和基础语句执行
连接池的大小、回收和健康检查均由驱动自身负责
"""

import logging
from typing import Optional, Dict, Any, AsyncGenerator, Sequence
from contextlib import asynccontextmanager

import aiomysql
import asyncmy

from ..config import DatabaseConfig
from ..exceptions.database import (
    DatabaseConnectionError,
    DatabaseQueryError
)

logger = logging.getLogger(__name__)


class AsyncConnectionPool:
    """异步MySQL连接池封装类"""

    def __init__(self, config: DatabaseConfig):
        """
        初始化连接池封装

        Args:
            config: 数据库配置
        """
        self.config = config
        self._pool = None

    async def initialize(self) -> None:
        """创建底层连接池，失败时抛出 DatabaseConnectionError"""
        if self._pool is not None:
            return

        kwargs = self.config.pool_kwargs()
        try:
            if self.config.driver == "aiomysql":
                self._pool = await aiomysql.create_pool(**kwargs)
            elif self.config.driver == "asyncmy":
                self._pool = await asyncmy.create_pool(**kwargs)
            else:
                raise DatabaseConnectionError(f"Unsupported database driver: {self.config.driver}")
        except DatabaseConnectionError:
            raise
        except Exception as e:
            raise DatabaseConnectionError(
                f"Failed to create connection pool for {self.config.host}:{self.config.port}: {e}",
                original_error=e
            ) from e

        logger.info(
            f"Connection pool initialized ({self.config.driver}, "
            f"{self.config.min_size}-{self.config.pool_size} connections)"
        )

    @asynccontextmanager
    async def get_connection(self) -> AsyncGenerator[Any, None]:
        """
        获取数据库连接上下文管理器，退出时连接归还连接池

        Yields:
            Any: 驱动的连接对象

        Raises:
            DatabaseConnectionError: 连接池未初始化
        """
        if self._pool is None:
            raise DatabaseConnectionError("Connection pool is not initialized")

        async with self._pool.acquire() as connection:
            yield connection

    async def execute(self, query: str, params: Optional[Sequence[Any]] = None) -> int:
        """
        执行不返回结果集的语句

        Args:
            query: SQL语句，占位符为 %s
            params: 按位置绑定的参数

        Returns:
            int: 影响的行数

        Raises:
            DatabaseQueryError: 语句执行失败
        """
        try:
            async with self.get_connection() as conn:
                async with conn.cursor() as cursor:
                    await cursor.execute(query, tuple(params) if params else None)
                    return cursor.rowcount
        except DatabaseConnectionError:
            raise
        except Exception as e:
            raise DatabaseQueryError(f"Failed to execute query: {e}", original_error=e) from e

    async def fetch_all(self, query: str, params: Optional[Sequence[Any]] = None) -> Sequence[Any]:
        """
        执行查询并返回驱动给出的原始结果行

        Raises:
            DatabaseQueryError: 查询执行失败
        """
        try:
            async with self.get_connection() as conn:
                async with conn.cursor() as cursor:
                    await cursor.execute(query, tuple(params) if params else None)
                    return await cursor.fetchall()
        except DatabaseConnectionError:
            raise
        except Exception as e:
            raise DatabaseQueryError(f"Failed to execute query: {e}", original_error=e) from e

    async def close(self) -> None:
        """关闭连接池中的所有连接"""
        if self._pool is None:
            return

        pool, self._pool = self._pool, None
        pool.close()
        await pool.wait_closed()
        logger.info("Connection pool closed")

    @property
    def stats(self) -> Dict[str, Any]:
        """获取连接池统计信息"""
        if self._pool is None:
            return {"driver": self.config.driver, "is_initialized": False}
        return {
            "driver": self.config.driver,
            "is_initialized": True,
            "minsize": self._pool.minsize,
            "maxsize": self._pool.maxsize,
            "size": self._pool.size,
            "freesize": self._pool.freesize
        }
