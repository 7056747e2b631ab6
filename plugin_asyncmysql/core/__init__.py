"""
核心模块 - 数据库连接和后台调度
提供异步MySQL连接池封装以及承载连接池的后台事件循环线程
"""

from .connection import AsyncConnectionPool
from .loop import EventLoopThread

__all__ = ['AsyncConnectionPool', 'EventLoopThread']
