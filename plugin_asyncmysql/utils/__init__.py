"""工具模块初始化文件"""

from .env_validator import EnvVarType, SimpleEnvValidator, get_env_validator

__all__ = ['EnvVarType', 'SimpleEnvValidator', 'get_env_validator']
