"""配置模块初始化文件"""

from .settings import DatabaseConfig, DatabaseConfigManager, config_manager

__all__ = [
    'DatabaseConfig',
    'DatabaseConfigManager',
    'config_manager'
]
