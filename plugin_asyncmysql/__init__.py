"""
plugin-asyncmysql - 异步MySQL访问插件
为游戏服务器插件提供不阻塞主线程的MySQL访问：建立连接池，
并以即发即弃的方式执行建表、更新和查询
"""

import os
import asyncio
import logging
from typing import Optional

from dotenv import load_dotenv

from .config.settings import DatabaseConfig, DatabaseConfigManager, config_manager
from .interfaces.internal_api import (
    AsyncMySQL,
    get_internal_api,
    init_internal_api,
    reset_internal_api
)
from .exceptions.database import (
    DatabaseError,
    DatabaseConnectionError,
    DatabaseQueryError,
    DatabaseConfigError,
    DatabaseRuntimeError
)

# 加载环境变量
env_path = os.path.join(os.path.dirname(__file__), '.env')
if os.path.exists(env_path):
    load_dotenv(env_path)

__all__ = [
    'AsyncMySQL',
    'DatabaseConfig',
    'DatabaseConfigManager',
    'DatabaseError',
    'DatabaseConnectionError',
    'DatabaseQueryError',
    'DatabaseConfigError',
    'DatabaseRuntimeError',
    'get_database',
    'register',
    'shutdown'
]


def get_database() -> AsyncMySQL:
    """
    获取已注册的数据库接口实例

    Returns:
        AsyncMySQL: 数据库接口实例

    Raises:
        DatabaseError: 插件尚未注册
    """
    return get_internal_api()


def register(app, **dependencies):
    """
    插件注册函数
    读取环境变量配置并建立连接池

    Args:
        app: 宿主框架的应用对象
        **dependencies: 宿主框架的依赖容器，可提供 ``logger``
    """
    logger: logging.Logger = dependencies.get('logger') or logging.getLogger(__name__)

    try:
        config: Optional[DatabaseConfig] = dependencies.get('db_config')
        if config is None:
            config = config_manager.get_default_config()

        mysql = init_internal_api(config, owner_logger=logger)

        logger.info("MySQL数据库插件已成功注册")
        logger.info(f"数据库配置: {config.host}:{config.port}/{config.database}")

        # 将数据库接口添加到依赖项中
        dependencies['mysql'] = mysql
        dependencies['db_config_manager'] = config_manager
        return mysql

    except Exception as e:
        logger.error(f"MySQL数据库插件注册失败: {e}")
        raise


async def shutdown():
    """插件关闭时的清理操作"""
    mysql = reset_internal_api()
    if mysql:
        # close 会阻塞等待进行中的调用，放到线程中执行以免阻塞宿主事件循环
        await asyncio.to_thread(mysql.close)
        logger = logging.getLogger(__name__)
        logger.info("MySQL数据库插件已关闭，连接池已清理")
