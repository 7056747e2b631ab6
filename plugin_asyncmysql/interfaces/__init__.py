"""
接口模块初始化文件
导出内部公共API接口和相关功能
"""

from .internal_api import (
    AsyncMySQL,
    get_internal_api,
    init_internal_api,
    reset_internal_api
)

__all__ = [
    'AsyncMySQL',
    'get_internal_api',
    'init_internal_api',
    'reset_internal_api'
]
