"""
Connection pools for PostgreSQL, MySQL, Oracle and SQL Server.

PoolManager keeps one pool per (engine, database) pair; drivers are psycopg,
pymysql, oracledb and pymssql, pooled through SQLAlchemy's QueuePool.
"""

from .connect import connect_datasource, connect_url
from .factory import ConnectionPool, PoolConfig, build_pool_config, create_pool
from .manager import PoolManager, get_pool_manager, pool_key

__all__ = [
    "connect_url",
    "connect_datasource",
    "PoolConfig",
    "build_pool_config",
    "ConnectionPool",
    "create_pool",
    "PoolManager",
    "get_pool_manager",
    "pool_key",
]
