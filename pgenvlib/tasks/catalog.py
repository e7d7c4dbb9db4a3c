"""
Read-only views of the tenant databases on the local server.
"""

from contextlib import contextmanager
import logging
from typing import Generator, List, Optional

from psycopg2 import Error as Psycopg2Error
from psycopg2.extensions import connection as Connection, cursor as Cursor

from ..plumbing import pgsql, settings
from ..plumbing.errors import CatalogUnavailableError
from ..plumbing.pgsql import CatalogEntry
from . import service


LOG = logging.getLogger(__name__)


def connect(db: Optional[str] = None) -> Connection:
    """
    Connect to the local server as the administrative user.
    """
    return pgsql.connect(settings.HOST, settings.PORT, settings.ADMIN_USER,
                         settings.ADMIN_PASSWORD, db or settings.ADMIN_DATABASE,
                         settings.COMMAND_TIMEOUT)


def context(db: Optional[str] = None):
    """
    Run multiple PostgreSQL commands in a single administrative connection:

        with context() as cursor:
            pgsql.create_user(cursor, name, passwd)
            pgsql.create_database(cursor, name, name)
    """
    return pgsql.context(connect(db))


@contextmanager
def _inspect() -> Generator[Cursor, None, None]:
    # Catalog reads fail as a whole: driver errors never produce partial answers.
    service.require_running()
    try:
        with context() as cursor:
            yield cursor
    except Psycopg2Error as ex:
        raise CatalogUnavailableError("Couldn't query the server catalog: {}"
                                      .format(str(ex).strip())) from ex


def list_databases() -> List[CatalogEntry]:
    """
    Fetch a fresh snapshot of tenant databases, excluding the built-in ones, sorted by name.
    """
    with _inspect() as cursor:
        return pgsql.get_databases(cursor, settings.RESERVED_DATABASES)


def exists(name: str) -> bool:
    """
    Check whether a tenant database of the given name exists.
    """
    if name in settings.RESERVED_DATABASES:
        return False
    with _inspect() as cursor:
        return pgsql.has_database(cursor, name)


def connection_hint(entry: CatalogEntry) -> str:
    """
    Template connection URI for a listed database, with a placeholder in place of the secret.
    """
    return "{}://{}:PASSWORD@{}:{}/{}".format(settings.SCHEME, entry.owner, settings.HOST,
                                              settings.PORT, entry.name)
