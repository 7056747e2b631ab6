"""异常模块初始化文件"""

from .database import (
    DatabaseError,
    DatabaseConnectionError,
    DatabaseQueryError,
    DatabaseConfigError,
    DatabaseRuntimeError
)

__all__ = [
    'DatabaseError',
    'DatabaseConnectionError',
    'DatabaseQueryError',
    'DatabaseConfigError',
    'DatabaseRuntimeError'
]
