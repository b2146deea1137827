"""
Driver adapters used by the pool to open physical connections.

Two shapes, matching the two pool configuration modes:
- URL mode: a ``jdbc:``-style URL plus username/password (MySQL via pymysql).
- DataSource mode: a native data-source id plus a property map
  (serverName, portNumber, databaseName, user, password) for psycopg,
  oracledb or pymssql.
"""

from collections.abc import Callable, Mapping
from typing import Any

import oracledb
import psycopg
import pymssql
import pymysql
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

from dbmanager.core.config import settings
from dbmanager.core.exceptions import ConfigurationError

_JDBC_MARKER = "jdbc:"

DATASOURCE_PROPERTIES = ("serverName", "portNumber", "databaseName", "user", "password")


# ---------------------------------------------------------------------------
# URL mode
# ---------------------------------------------------------------------------


def _connect_mysql(
    host: str, port: int | None, database: str, username: str, password: str
) -> Any:
    return pymysql.connect(
        host=host,
        port=port or 3306,
        database=database,
        user=username,
        password=password,
        connect_timeout=settings.EXTERNAL_DB_CONNECT_TIMEOUT,
    )


_URL_CONNECTORS: dict[str, Callable[..., Any]] = {
    "mysql": _connect_mysql,
}


def connect_url(jdbc_url: str, username: str | None, password: str | None) -> Any:
    """
    Open a connection from a connection URL such as ``jdbc:mysql://host:3306/db``.

    The ``jdbc:`` marker is optional. Raises ConfigurationError when the URL
    cannot be parsed or names a backend without a URL connector.
    """
    raw = jdbc_url[len(_JDBC_MARKER):] if jdbc_url.startswith(_JDBC_MARKER) else jdbc_url
    try:
        url = make_url(raw)
    except ArgumentError as e:
        raise ConfigurationError(f"Could not parse connection URL {jdbc_url!r}") from e

    backend = url.get_backend_name()
    connector = _URL_CONNECTORS.get(backend)
    if connector is None:
        raise ConfigurationError(f"No URL connector for backend {backend!r}")
    if url.host is None or url.database is None:
        raise ConfigurationError(f"Connection URL must provide host and database: {jdbc_url!r}")

    return connector(
        url.host,
        url.port,
        url.database,
        username if username is not None else "",
        password if password is not None else "",
    )


# ---------------------------------------------------------------------------
# DataSource mode
# ---------------------------------------------------------------------------


def _connect_psycopg(props: Mapping[str, Any]) -> Any:
    return psycopg.connect(
        host=props["serverName"],
        port=int(props["portNumber"]),
        dbname=props["databaseName"],
        user=props["user"],
        password=props["password"],
        connect_timeout=settings.EXTERNAL_DB_CONNECT_TIMEOUT,
    )


def _connect_oracledb(props: Mapping[str, Any]) -> Any:
    return oracledb.connect(
        user=props["user"],
        password=props["password"],
        host=props["serverName"],
        port=int(props["portNumber"]),
        service_name=props["databaseName"],
        tcp_connect_timeout=float(settings.EXTERNAL_DB_CONNECT_TIMEOUT),
    )


def _connect_pymssql(props: Mapping[str, Any]) -> Any:
    return pymssql.connect(
        server=props["serverName"],
        port=str(props["portNumber"]),
        database=props["databaseName"],
        user=props["user"],
        password=props["password"],
        login_timeout=settings.EXTERNAL_DB_CONNECT_TIMEOUT,
    )


_DATASOURCE_CONNECTORS: dict[str, Callable[[Mapping[str, Any]], Any]] = {
    "psycopg.connect": _connect_psycopg,
    "oracledb.connect": _connect_oracledb,
    "pymssql.connect": _connect_pymssql,
}


def connect_datasource(datasource_class_id: str, properties: Mapping[str, Any]) -> Any:
    """
    Open a connection through a native data-source factory.

    - datasource_class_id: one of the ids exposed by DatabaseTypeEnum.native_datasource_id.
    - properties: serverName, portNumber, databaseName, user, password.
    """
    connector = _DATASOURCE_CONNECTORS.get(datasource_class_id)
    if connector is None:
        raise ConfigurationError(f"Unsupported data source: {datasource_class_id!r}")
    missing = [name for name in DATASOURCE_PROPERTIES if name not in properties]
    if missing:
        raise ConfigurationError(
            f"Data source {datasource_class_id!r} is missing properties: {', '.join(missing)}"
        )
    return connector(properties)
