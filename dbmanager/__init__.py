"""Pooled connections to several relational databases from one entry point."""

from dbmanager.core.exceptions import BackendError, ConfigurationError, DBManagerError
from dbmanager.core.pool import PoolManager, get_pool_manager, pool_key
from dbmanager.models import CredentialsBuilder, DatabaseCredentials, DatabaseTypeEnum

__all__ = [
    "DatabaseTypeEnum",
    "DatabaseCredentials",
    "CredentialsBuilder",
    "PoolManager",
    "get_pool_manager",
    "pool_key",
    "DBManagerError",
    "ConfigurationError",
    "BackendError",
]
