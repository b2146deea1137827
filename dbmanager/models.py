"""
Connection models: supported database engines and immutable credentials.

DatabaseTypeEnum carries the per-engine URL grammar and the optional native
data-source factory; DatabaseCredentials bundles one target database and
derives its connection URL once, at construction.
"""

from enum import Enum
from typing import Any, NamedTuple

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    ValidationError,
    computed_field,
)

from dbmanager.core.exceptions import ConfigurationError

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class _EngineSpec(NamedTuple):
    url_prefix: str
    url_template: str  # str.format with prefix, host, port, database
    datasource_id: str | None
    default_port: int


class DatabaseTypeEnum(str, Enum):
    """Supported database engines (postgresql, mysql, oracle, sqlserver)."""

    POSTGRESQL = "postgresql"
    MYSQL = "mysql"
    ORACLE = "oracle"
    SQLSERVER = "sqlserver"

    @property
    def variant_name(self) -> str:
        """Stable identifier used in pool keys, e.g. ``POSTGRESQL``."""
        return self.name

    @property
    def url_prefix(self) -> str:
        return _ENGINE_SPECS[self].url_prefix

    @property
    def native_datasource_id(self) -> str | None:
        """
        Driver factory used to open connections from discrete properties.

        None means the engine is reached through its connection URL instead (MySQL).
        """
        return _ENGINE_SPECS[self].datasource_id

    @property
    def default_port(self) -> int:
        return _ENGINE_SPECS[self].default_port

    def assemble_url(self, host: str, port: int, database: str) -> str:
        """
        Build the connection URL for this engine.

        host and database are inserted verbatim (no escaping): names containing
        ``;``, ``/`` or whitespace produce malformed URLs.
        """
        spec = _ENGINE_SPECS[self]
        return spec.url_template.format(
            prefix=spec.url_prefix, host=host, port=int(port), database=database
        )


_ENGINE_SPECS: dict[DatabaseTypeEnum, _EngineSpec] = {
    DatabaseTypeEnum.POSTGRESQL: _EngineSpec(
        "jdbc:postgresql://", "{prefix}{host}:{port:d}/{database}", "psycopg.connect", 5432
    ),
    DatabaseTypeEnum.MYSQL: _EngineSpec(
        "jdbc:mysql://", "{prefix}{host}:{port:d}/{database}", None, 3306
    ),
    DatabaseTypeEnum.ORACLE: _EngineSpec(
        "jdbc:oracle:thin:@", "{prefix}//{host}:{port:d}/{database}", "oracledb.connect", 1521
    ),
    DatabaseTypeEnum.SQLSERVER: _EngineSpec(
        "jdbc:sqlserver://",
        "{prefix}{host}:{port:d};databaseName={database}",
        "pymssql.connect",
        1433,
    ),
}


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------


class DatabaseCredentials(BaseModel):
    """Credentials and location of one target database. Immutable."""

    model_config = ConfigDict(frozen=True)

    database_type: DatabaseTypeEnum
    host: str = "localhost"
    port: int = Field(default=5432, ge=1, le=65535)
    username: str = ""
    password: str = Field(default="", repr=False)
    database: str = Field(min_length=1)

    _connection_url: str = PrivateAttr(default="")

    def model_post_init(self, __context: Any) -> None:
        self._connection_url = self.database_type.assemble_url(
            self.host, self.port, self.database
        )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def connection_url(self) -> str:
        return self._connection_url

    @classmethod
    def builder(cls) -> "CredentialsBuilder":
        return CredentialsBuilder()


class CredentialsBuilder:
    """
    Fluent builder for DatabaseCredentials.

    Starts with host="localhost" and port=5432; database_type and database
    must be set before build().
    """

    _REQUIRED = ("database_type", "database")

    def __init__(self) -> None:
        self._values: dict[str, Any] = {"host": "localhost", "port": 5432}

    def with_database_type(self, database_type: DatabaseTypeEnum) -> "CredentialsBuilder":
        self._values["database_type"] = database_type
        return self

    def with_host(self, host: str) -> "CredentialsBuilder":
        self._values["host"] = host
        return self

    def with_port(self, port: int) -> "CredentialsBuilder":
        self._values["port"] = port
        return self

    def with_username(self, username: str) -> "CredentialsBuilder":
        self._values["username"] = username
        return self

    def with_password(self, password: str) -> "CredentialsBuilder":
        self._values["password"] = password
        return self

    def with_database(self, database: str) -> "CredentialsBuilder":
        self._values["database"] = database
        return self

    def build(self) -> DatabaseCredentials:
        """Return a new DatabaseCredentials; raise ConfigurationError if incomplete."""
        for name in self._REQUIRED:
            if self._values.get(name) in (None, ""):
                raise ConfigurationError(f"{name} is required")
        try:
            return DatabaseCredentials(**self._values)
        except ValidationError as e:
            details = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                for err in e.errors()
            )
            raise ConfigurationError(f"Invalid credentials: {details}") from e
