"""
Pool configuration assembly and the pool handle kept by the registry.

build_pool_config() maps credentials onto one of two shapes:
- URL mode (engine has no native data source, i.e. MySQL): jdbc_url + username/password.
- DataSource mode (PostgreSQL, Oracle, SQL Server): data-source id + property map.

ConnectionPool wraps SQLAlchemy's QueuePool with a fixed size and no overflow.
"""

import logging
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from sqlalchemy import event
from sqlalchemy.pool import QueuePool

from dbmanager.core.exceptions import BackendError, ConfigurationError
from dbmanager.models import DatabaseCredentials

from .connect import connect_datasource, connect_url

_log = logging.getLogger(__name__)


class PoolConfig(BaseModel):
    """Everything the pool library needs to open a pool. Exactly one mode is set."""

    model_config = ConfigDict(frozen=True)

    # URL mode
    jdbc_url: str | None = None
    username: str | None = None
    password: str | None = Field(default=None, repr=False)
    # DataSource mode
    datasource_class_id: str | None = None
    datasource_properties: dict[str, Any] = Field(default_factory=dict, repr=False)
    # Sizing
    maximum_pool_size: int = Field(default=1, ge=1)
    minimum_idle: int = Field(default=1, ge=0)
    connection_timeout: float = Field(default=30.0, gt=0)
    pool_name: str | None = None

    @model_validator(mode="after")
    def _check_mode_and_sizing(self) -> "PoolConfig":
        if (self.jdbc_url is None) == (self.datasource_class_id is None):
            raise ValueError("exactly one of jdbc_url or datasource_class_id must be set")
        if self.minimum_idle > self.maximum_pool_size:
            raise ValueError("minimum_idle cannot exceed maximum_pool_size")
        return self

    @property
    def uses_datasource(self) -> bool:
        return self.datasource_class_id is not None


def build_pool_config(
    credentials: DatabaseCredentials,
    *,
    maximum_pool_size: int = 1,
    minimum_idle: int = 1,
    connection_timeout: float = 30.0,
    pool_name: str | None = None,
) -> PoolConfig:
    """Assemble a PoolConfig for *credentials*; raise ConfigurationError if invalid."""
    datasource_id = credentials.database_type.native_datasource_id
    sizing: dict[str, Any] = {
        "maximum_pool_size": maximum_pool_size,
        "minimum_idle": minimum_idle,
        "connection_timeout": connection_timeout,
        "pool_name": pool_name,
    }
    try:
        if datasource_id is None:
            return PoolConfig(
                jdbc_url=credentials.connection_url,
                username=credentials.username,
                password=credentials.password,
                **sizing,
            )
        # The driver composes its own address from these; jdbc_url stays unset.
        return PoolConfig(
            datasource_class_id=datasource_id,
            datasource_properties={
                "serverName": credentials.host,
                "portNumber": credentials.port,
                "databaseName": credentials.database,
                "user": credentials.username,
                "password": credentials.password,
            },
            **sizing,
        )
    except ValidationError as e:
        raise ConfigurationError(f"Invalid pool configuration: {e}") from e


def _make_creator(config: PoolConfig) -> Callable[[], Any]:
    if config.uses_datasource:
        datasource_id = config.datasource_class_id or ""
        properties = dict(config.datasource_properties)

        def datasource_creator() -> Any:
            return connect_datasource(datasource_id, properties)

        return datasource_creator

    jdbc_url = config.jdbc_url or ""

    def url_creator() -> Any:
        return connect_url(jdbc_url, config.username, config.password)

    return url_creator


class ConnectionPool:
    """
    Fixed-size pool of DB-API connections for one registry key.

    borrow() returns a pool-proxied connection; calling close() on it returns the
    connection to the pool. close() on the pool itself disposes all idle connections;
    connections still checked out are closed when they come back.
    """

    def __init__(
        self,
        config: PoolConfig,
        *,
        creator: Callable[[], Any] | None = None,
    ) -> None:
        self.config = config
        self.name = config.pool_name or "pool"
        self._closed = False
        self._pool = QueuePool(
            creator or _make_creator(config),
            pool_size=config.maximum_pool_size,
            max_overflow=0,
            timeout=config.connection_timeout,
            logging_name=self.name,
        )
        event.listen(self._pool, "checkin", self._on_checkin)
        self._fill_idle()

    def _on_checkin(self, dbapi_connection: Any, connection_record: Any) -> None:
        if self._closed and dbapi_connection is not None:
            connection_record.invalidate()

    def _fill_idle(self) -> None:
        """Open minimum_idle connections now so a bad configuration fails here."""
        opened = []
        try:
            for _ in range(self.config.minimum_idle):
                opened.append(self._pool.connect())
        except Exception:
            for conn in opened:
                conn.close()
            self._pool.dispose()
            raise
        for conn in opened:
            conn.close()

    @property
    def closed(self) -> bool:
        return self._closed

    def borrow(self) -> Any:
        if self._closed:
            raise BackendError(f"Pool {self.name!r} is closed")
        conn = self._pool.connect()
        # close() may have run between the check above and the checkout.
        if self._closed:
            conn.invalidate()
            raise BackendError(f"Pool {self.name!r} is closed")
        return conn

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._pool.dispose()

    def status(self) -> dict[str, int]:
        return {
            "checked_out": self._pool.checkedout(),
            "idle": self._pool.checkedin(),
        }


def create_pool(config: PoolConfig) -> ConnectionPool:
    """Default pool factory used by PoolManager."""
    _log.debug(
        "Opening pool %s (%s mode, max=%d, min_idle=%d)",
        config.pool_name,
        "datasource" if config.uses_datasource else "url",
        config.maximum_pool_size,
        config.minimum_idle,
    )
    return ConnectionPool(config)
