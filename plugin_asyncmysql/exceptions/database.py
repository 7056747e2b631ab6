"""数据库异常模块"""

from typing import Optional


class DatabaseError(Exception):
    """数据库基础异常类"""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.message = message
        self.original_error = original_error
        super().__init__(message)


class DatabaseConnectionError(DatabaseError):
    """数据库连接错误"""
    pass


class DatabaseQueryError(DatabaseError):
    """查询执行错误"""
    pass


class DatabaseConfigError(DatabaseError):
    """配置错误"""
    pass


class DatabaseRuntimeError(DatabaseError):
    """运行时错误（后台事件循环状态异常等）"""
    pass
