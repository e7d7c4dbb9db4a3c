"""
Configuration constants for the local PostgreSQL server and its tooling.

Values are read once at import time, from built-in defaults, then the `[pgenv]` section of an INI
file (`$PGENV_CONFIG`, or `~/.pgenv.cnf`), then `PGENV_<KEY>` environment variables.
"""

import configparser
import os
import os.path
from typing import Dict, Optional


_DEFAULTS: Dict[str, str] = {
    "service": "postgresql",
    "host": "localhost",
    "port": "5432",
    "admin_user": "postgres",
    "admin_password": "",
    "admin_database": "postgres",
    "scheme": "postgresql",
    "backup_dir": "~/pg_backups",
    "command_timeout": "30",
    "ready_timeout": "10",
    "dump_timeout": "3600",
    "secret_length": "20",
}


def load(path: Optional[str] = None) -> Dict[str, str]:
    """
    Merge configuration sources into a single mapping of raw string values.
    """
    values = dict(_DEFAULTS)
    path = os.path.expanduser(path or os.getenv("PGENV_CONFIG") or "~/.pgenv.cnf")
    parser = configparser.ConfigParser()
    parser.read(path)
    if parser.has_section("pgenv"):
        for key in _DEFAULTS:
            if parser.has_option("pgenv", key):
                values[key] = parser.get("pgenv", key)
    for key in _DEFAULTS:
        env = os.getenv("PGENV_{}".format(key.upper()))
        if env is not None:
            values[key] = env
    return values


_VALUES = load()

SERVICE = _VALUES["service"]
"""
Name of the database service known to the OS service manager.
"""

SERVICE_COMMAND = ["sudo", "service"]
"""
Prefix of the service manager command, followed by the service name and action.
"""

HOST = _VALUES["host"]
"""
Server hostname, used for administrative connections and in composed connection URIs.
"""

PORT = int(_VALUES["port"])

ADMIN_USER = _VALUES["admin_user"]
"""
Superuser role used for administrative statements and dumps.
"""

ADMIN_PASSWORD = _VALUES["admin_password"] or None

ADMIN_DATABASE = _VALUES["admin_database"]
"""
Maintenance database to connect to for catalog queries and DDL.
"""

SCHEME = _VALUES["scheme"]

BACKUP_DIR = os.path.expanduser(_VALUES["backup_dir"])

COMMAND_TIMEOUT = float(_VALUES["command_timeout"])
"""
Seconds to allow service manager commands, connection attempts and each administrative SQL
statement (as the session's `statement_timeout`).
"""

READY_TIMEOUT = float(_VALUES["ready_timeout"])
"""
Seconds to wait for a freshly started server to accept connections.
"""

DUMP_TIMEOUT = float(_VALUES["dump_timeout"])

SECRET_LENGTH = int(_VALUES["secret_length"])

RESERVED_DATABASES = ("postgres", "template0", "template1")
"""
Built-in databases, excluded from listings and not available as tenant names.
"""
