#!/usr/bin/env python3
"""
Check pooled connections against a live database.

Opens N connections in parallel for one set of credentials and prints the pool
statistics. All N share a single pool (one per engine + database name).

Usage:
  python scripts/check_connection.py --type postgresql --database mat --user postgres --password x
  Or set env: DB_TYPE, DB_HOST, DB_PORT, DB_NAME, DB_USER, DB_PASSWORD, CONCURRENT
"""

import argparse
import logging
import os
import sys
from concurrent.futures import ThreadPoolExecutor, as_completed

from dbmanager import (
    DatabaseCredentials,
    DatabaseTypeEnum,
    DBManagerError,
    get_pool_manager,
)


def check_once(creds: DatabaseCredentials, index: int) -> tuple[int, str]:
    """Borrow a connection, run a no-op cursor round trip; return (index, result)."""
    pm = get_pool_manager()
    try:
        with pm.connection(creds) as conn:
            cur = conn.cursor()
            cur.execute(
                "SELECT 1 FROM DUAL"
                if creds.database_type == DatabaseTypeEnum.ORACLE
                else "SELECT 1"
            )
            cur.fetchone()
            cur.close()
        return (index, "ok")
    except Exception as e:
        return (index, f"error: {e}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Check pooled connections to one database.")
    parser.add_argument(
        "--type",
        default=os.environ.get("DB_TYPE", "postgresql"),
        choices=[t.value for t in DatabaseTypeEnum],
        help="Database engine",
    )
    parser.add_argument("--host", default=os.environ.get("DB_HOST", "localhost"))
    parser.add_argument("--port", type=int, default=int(os.environ.get("DB_PORT", "5432")))
    parser.add_argument("--database", default=os.environ.get("DB_NAME", ""))
    parser.add_argument("--user", default=os.environ.get("DB_USER", ""))
    parser.add_argument("--password", default=os.environ.get("DB_PASSWORD", ""))
    parser.add_argument(
        "--concurrent",
        type=int,
        default=int(os.environ.get("CONCURRENT", "4")),
        help="Number of parallel borrowers",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)

    try:
        creds = (
            DatabaseCredentials.builder()
            .with_database_type(DatabaseTypeEnum(args.type))
            .with_host(args.host)
            .with_port(args.port)
            .with_database(args.database)
            .with_username(args.user)
            .with_password(args.password)
            .build()
        )
    except DBManagerError as e:
        print(f"Invalid credentials: {e}", file=sys.stderr)
        sys.exit(2)

    print(f"Connecting to {creds.connection_url} with {args.concurrent} borrowers")
    results: list[tuple[int, str]] = []
    with ThreadPoolExecutor(max_workers=args.concurrent) as ex:
        futures = [ex.submit(check_once, creds, i) for i in range(args.concurrent)]
        for f in as_completed(futures):
            results.append(f.result())

    results.sort(key=lambda r: r[0])
    for index, outcome in results:
        print(f"  #{index}: {outcome}")
    print("Pool stats:", get_pool_manager().stats())
    get_pool_manager().close_pool(creds)

    if any(outcome != "ok" for _, outcome in results):
        sys.exit(1)


if __name__ == "__main__":
    main()
