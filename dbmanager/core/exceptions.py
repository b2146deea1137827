"""
Error taxonomy for dbmanager.

ConfigurationError: bad or missing input, raised before any pool is touched.
BackendError: the pool library or a database driver failed.
"""


class DBManagerError(Exception):
    """Base class for dbmanager errors."""

    pass


class ConfigurationError(DBManagerError, ValueError):
    """Raised when credentials or pool settings are missing or invalid."""

    pass


class BackendError(DBManagerError):
    """Raised when a pool cannot be opened or cannot hand out a connection."""

    pass
