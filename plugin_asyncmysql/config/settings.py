"""数据库配置设置模块"""

import ssl
from ssl import SSLContext
from dataclasses import dataclass
from typing import Dict, Any, Optional
from urllib.parse import quote_plus

from ..exceptions.database import DatabaseConfigError
from ..utils.env_validator import get_env_validator, EnvVarType

DEFAULT_PORT = 3306
SUPPORTED_DRIVERS = ("aiomysql", "asyncmy")


@dataclass
class DatabaseConfig:
    """数据库配置数据类"""
    host: str
    user: str
    password: str
    database: str
    port: Optional[int] = DEFAULT_PORT
    ssl: bool = False
    ssl_verify: bool = True
    pool_size: int = 10
    min_size: int = 1
    pool_recycle: int = 3600
    connect_timeout: int = 10
    charset: str = "utf8mb4"
    driver: str = "aiomysql"

    def __post_init__(self):
        if self.port is None:
            self.port = DEFAULT_PORT
        try:
            self.port = int(self.port)
        except (TypeError, ValueError) as e:
            raise DatabaseConfigError(f"Invalid MySQL port: {self.port!r}", original_error=e) from e
        if not 1 <= self.port <= 65535:
            raise DatabaseConfigError(f"Invalid MySQL port: {self.port}")
        if self.driver not in SUPPORTED_DRIVERS:
            raise DatabaseConfigError(f"Unsupported database driver: {self.driver}")
        if self.min_size < 0 or self.pool_size < 1 or self.min_size > self.pool_size:
            raise DatabaseConfigError(
                f"Invalid pool bounds: min_size={self.min_size}, pool_size={self.pool_size}"
            )

    @property
    def connection_url(self) -> str:
        """生成数据库连接URL"""
        host = self.host
        # IPv6 地址需要方括号
        if ":" in host and not host.startswith("["):
            host = f"[{host}]"
        return (
            f"mysql+{self.driver}://{quote_plus(self.user)}:{quote_plus(self.password)}"
            f"@{host}:{self.port}/{self.database}"
            f"?charset={self.charset}&ssl={'true' if self.ssl else 'false'}"
        )

    def ssl_context(self) -> Optional[SSLContext]:
        """根据TLS开关构造SSL上下文，未开启时返回None"""
        if not self.ssl:
            return None
        context = ssl.create_default_context()
        if not self.ssl_verify:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        return context

    def pool_kwargs(self) -> Dict[str, Any]:
        """
        生成连接池创建参数

        aiomysql 使用 ``db`` 指定库名，asyncmy 使用 ``database``。
        始终开启自动提交，插件不做事务管理。

        Returns:
            Dict[str, Any]: 传给驱动 ``create_pool`` 的关键字参数
        """
        kwargs = {
            "host": self.host,
            "port": self.port,
            "user": self.user,
            "password": self.password,
            "charset": self.charset,
            "autocommit": True,
            "connect_timeout": self.connect_timeout,
            "minsize": self.min_size,
            "maxsize": self.pool_size,
            "pool_recycle": self.pool_recycle,
            "ssl": self.ssl_context(),
        }
        if self.driver == "aiomysql":
            kwargs["db"] = self.database
        else:
            kwargs["database"] = self.database
        return kwargs


class DatabaseConfigManager:
    """数据库配置管理器"""

    def __init__(self):
        self.validator = get_env_validator()
        self._default_config: Optional[DatabaseConfig] = None

    def get_env_schema(self, prefix: str = "") -> Dict[str, Any]:
        """获取环境变量验证模式"""
        base_schema = {
            f"{prefix}HOST": {
                "type": EnvVarType.STRING,
                "required": True,
                "description": "MySQL数据库主机地址"
            },
            f"{prefix}PORT": {
                "type": EnvVarType.INTEGER,
                "required": False,
                "default": DEFAULT_PORT,
                "min": 1,
                "max": 65535,
                "description": "MySQL数据库端口"
            },
            f"{prefix}USER": {
                "type": EnvVarType.STRING,
                "required": True,
                "description": "MySQL数据库用户名"
            },
            f"{prefix}PASSWORD": {
                "type": EnvVarType.STRING,
                "required": True,
                "description": "MySQL数据库密码"
            },
            f"{prefix}DATABASE": {
                "type": EnvVarType.STRING,
                "required": True,
                "description": "MySQL数据库名称"
            },
            f"{prefix}SSL": {
                "type": EnvVarType.BOOLEAN,
                "required": False,
                "default": False,
                "description": "是否使用TLS连接"
            },
            f"{prefix}SSL_VERIFY": {
                "type": EnvVarType.BOOLEAN,
                "required": False,
                "default": True,
                "description": "TLS连接是否校验服务端证书"
            },
            f"{prefix}POOL_SIZE": {
                "type": EnvVarType.INTEGER,
                "required": False,
                "default": 10,
                "min": 1,
                "max": 100,
                "description": "连接池大小"
            },
            f"{prefix}MIN_SIZE": {
                "type": EnvVarType.INTEGER,
                "required": False,
                "default": 1,
                "min": 0,
                "max": 100,
                "description": "连接池最小连接数"
            },
            f"{prefix}POOL_RECYCLE": {
                "type": EnvVarType.INTEGER,
                "required": False,
                "default": 3600,
                "description": "连接回收时间（秒）"
            },
            f"{prefix}CONNECT_TIMEOUT": {
                "type": EnvVarType.INTEGER,
                "required": False,
                "default": 10,
                "min": 1,
                "description": "连接超时时间（秒）"
            },
            f"{prefix}CHARSET": {
                "type": EnvVarType.STRING,
                "required": False,
                "default": "utf8mb4",
                "description": "数据库字符集"
            },
            f"{prefix}DRIVER": {
                "type": EnvVarType.STRING,
                "required": False,
                "default": "aiomysql",
                "enum": list(SUPPORTED_DRIVERS),
                "description": "异步MySQL驱动"
            }
        }
        return base_schema

    def load_config(self, prefix: str = "MYSQL_") -> DatabaseConfig:
        """加载数据库配置"""
        env_schema = self.get_env_schema(prefix)
        env_vars = self.validator.validate_env_vars("mysqldb", env_schema)

        return DatabaseConfig(
            host=env_vars[f"{prefix}HOST"],
            port=env_vars[f"{prefix}PORT"],
            user=env_vars[f"{prefix}USER"],
            password=env_vars[f"{prefix}PASSWORD"],
            database=env_vars[f"{prefix}DATABASE"],
            ssl=env_vars[f"{prefix}SSL"],
            ssl_verify=env_vars[f"{prefix}SSL_VERIFY"],
            pool_size=env_vars[f"{prefix}POOL_SIZE"],
            min_size=env_vars[f"{prefix}MIN_SIZE"],
            pool_recycle=env_vars[f"{prefix}POOL_RECYCLE"],
            connect_timeout=env_vars[f"{prefix}CONNECT_TIMEOUT"],
            charset=env_vars[f"{prefix}CHARSET"],
            driver=env_vars[f"{prefix}DRIVER"]
        )

    def get_default_config(self) -> DatabaseConfig:
        """获取默认数据库配置"""
        if self._default_config is None:
            self._default_config = self.load_config("MYSQL_")
        return self._default_config


# 全局配置管理器实例
config_manager = DatabaseConfigManager()
