"""
PostgreSQL role, database and catalog management.
"""

from contextlib import contextmanager
import logging
from typing import Generator, List, NamedTuple, Optional, Sequence, Tuple, Union

from psycopg2 import connect as psycopg2_connect, Error as Psycopg2Error
from psycopg2.errors import (DuplicateDatabase, DuplicateObject, InsufficientPrivilege,
                             InvalidCatalogName)
from psycopg2.extensions import connection as Connection, cursor as Cursor
from psycopg2.extras import NamedTupleCursor

from .common import Password, Result, State
from .errors import ProvisioningFailure


LOG = logging.getLogger(__name__)


class CatalogEntry(NamedTuple):
    """
    Read-only view of a database in the server's catalog.
    """

    name: str
    owner: str
    size: int
    pretty_size: str


def _format(sql: str, *literals: str) -> str:
    # Psycopg2 won't format values normally enclosed in double quotes, so handle these ourselves.
    if any('"' in lit for lit in literals):
        raise ValueError("Double quotes forbidden in identifiers")
    params = ('"{}"'.format(lit) for lit in literals)
    return sql.format(*params)


def connect(host: Optional[str], port: int, user: str, password: Optional[str] = None,
            db: Optional[str] = None, timeout: Optional[float] = None) -> Connection:
    """
    Create a PostgreSQL connection using Psycopg2 and namedtuple cursors, in autocommit mode.

    A `timeout` limits both the connection attempt and each statement run in the session, so
    that a statement stuck waiting on a lock fails instead of hanging.
    """
    kwargs = {}
    if password:
        kwargs["password"] = password
    if timeout:
        kwargs["connect_timeout"] = max(1, int(timeout))
        kwargs["options"] = "-c statement_timeout={}".format(int(timeout * 1000))
    conn = psycopg2_connect(host=host or None, port=port, user=user,
                            database=(db or "postgres"), cursor_factory=NamedTupleCursor,
                            **kwargs)
    conn.autocommit = True
    return conn


@contextmanager
def context(conn: Connection) -> Generator[Cursor, None, None]:
    """
    Run multiple PostgreSQL commands in a single connection, closing it afterwards:

        with context(connect(...)) as cursor:
            create_user(cursor, name, passwd)
            create_database(cursor, name, owner)
    """
    try:
        yield conn.cursor()
    finally:
        conn.close()


def query(cursor: Cursor, sql: str, *args: Union[str, Tuple[str, ...], Password]) -> None:
    """
    Run a SQL query against a database cursor.
    """
    LOG.debug("Query: %r %% %r", sql, args)
    cursor.execute(sql, [str(arg) if isinstance(arg, Password) else arg for arg in args])


def classify(ex: Psycopg2Error) -> ProvisioningFailure:
    """
    Map a server error onto a provisioning failure class by its SQLSTATE-specific type.
    """
    if isinstance(ex, DuplicateObject):
        return ProvisioningFailure.role_exists
    elif isinstance(ex, DuplicateDatabase):
        return ProvisioningFailure.database_exists
    elif isinstance(ex, InsufficientPrivilege):
        return ProvisioningFailure.permission_denied
    else:
        return ProvisioningFailure.other


def get_version(cursor: Cursor) -> str:
    """
    Return the short server version string, e.g. `PostgreSQL 16.2 on x86_64-pc-linux-gnu`.
    """
    query(cursor, "SELECT version()")
    return cursor.fetchone()[0].split(",", 1)[0].strip()


def get_databases(cursor: Cursor, exclude: Sequence[str] = ()) -> List[CatalogEntry]:
    """
    List databases with their owner and size, ordered by name.
    """
    query(cursor, "SELECT d.datname, pg_catalog.pg_get_userbyid(d.datdba), "
                  "pg_catalog.pg_database_size(d.datname), "
                  "pg_catalog.pg_size_pretty(pg_catalog.pg_database_size(d.datname)) "
                  "FROM pg_catalog.pg_database d "
                  "WHERE NOT (d.datname = ANY(%s)) ORDER BY d.datname", list(exclude))
    return [CatalogEntry(*row) for row in cursor.fetchall()]


def has_database(cursor: Cursor, name: str) -> bool:
    """
    Check if a database of the given name exists.
    """
    query(cursor, "SELECT 1 FROM pg_catalog.pg_database WHERE datname = %s", name)
    return bool(cursor.rowcount)


def count_databases(cursor: Cursor, exclude: Sequence[str] = ()) -> int:
    """
    Count databases, ignoring those named in `exclude`.
    """
    query(cursor, "SELECT COUNT(*) FROM pg_catalog.pg_database WHERE NOT (datname = ANY(%s))",
          list(exclude))
    return cursor.fetchone()[0]


def has_role(cursor: Cursor, name: str) -> bool:
    """
    Check if a role of the given name exists.
    """
    query(cursor, "SELECT 1 FROM pg_catalog.pg_roles WHERE rolname = %s", name)
    return bool(cursor.rowcount)


def create_user(cursor: Cursor, name: str, passwd: Password) -> Result[Password]:
    """
    Create a login role with the given password, without rights to create databases or roles.
    """
    query(cursor, _format("CREATE USER {} WITH ENCRYPTED PASSWORD %s "
                          "NOCREATEDB NOCREATEROLE", name), passwd)
    return Result(State.created, passwd)


def drop_user(cursor: Cursor, name: str) -> Result[None]:
    """
    Drop a PostgreSQL user.
    """
    query(cursor, _format("DROP USER IF EXISTS {}", name))
    return Result(State.success)


def create_database(cursor: Cursor, name: str, owner: str) -> Result[None]:
    """
    Create a new database owned by the given role.

    Note: this must be run outside of a transaction.
    """
    query(cursor, _format("CREATE DATABASE {} OWNER {}", name, owner))
    return Result(State.created)


def drop_database(cursor: Cursor, name: str) -> Result[None]:
    """
    Drop a database, if it exists.

    Note: this must be run outside of a transaction.
    """
    try:
        query(cursor, _format("DROP DATABASE {}", name))
    except InvalidCatalogName:
        return Result(State.unchanged)
    else:
        return Result(State.success)


def grant_database(cursor: Cursor, name: str, role: str) -> Result[None]:
    """
    Grant all database-level privileges on a database to a role.
    """
    query(cursor, _format("GRANT ALL PRIVILEGES ON DATABASE {} TO {}", name, role))
    return Result(State.success)


def grant_schema(cursor: Cursor, schema: str, role: str) -> Result[None]:
    """
    Grant all privileges on a schema of the connected database to a role.
    """
    query(cursor, _format("GRANT ALL ON SCHEMA {} TO {}", schema, role))
    return Result(State.success)
