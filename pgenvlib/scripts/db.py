"""
Scripts to create, list and back up tenant databases.
"""

import os.path
from typing import Optional

from .utils import entrypoint, warn
from ..plumbing import settings
from ..tasks import backup as backups, catalog, provision


@entrypoint
def create(name: str, env_dir: Optional[str]):
    """
    Create a PostgreSQL database with a dedicated user and random password.

    The service is started first if it isn't running.  The password is shown once here and cannot
    be recovered later; pass --env-dir to also save the connection details to `DIR/.env.NAME`.

    Usage: {script} NAME [--env-dir=DIR]
    """
    result = provision.create(name, env_dir)
    tenant, uri, path = result.value
    print("Created database {!r} owned by {!r}".format(tenant.database, tenant.role))
    print()
    print("Connection URI:")
    print(uri)
    print()
    print("Host:     {}".format(settings.HOST))
    print("Port:     {}".format(settings.PORT))
    print("Database: {}".format(tenant.database))
    print("User:     {}".format(tenant.role))
    print("Password: {}".format(tenant.secret))
    if path:
        print()
        print("Environment file: {}".format(path))
    elif env_dir is not None:
        warn("Couldn't write environment file {}, save the details above manually"
             .format(os.path.join(env_dir, ".env.{}".format(tenant.database))))


@entrypoint
def list_(with_connections: bool):
    """
    List user databases with their owners and sizes.

    Usage: {script} [--with-connections]
    """
    entries = catalog.list_databases()
    for entry in entries:
        print("Database: {}".format(entry.name))
        print("   Owner: {}".format(entry.owner))
        print("    Size: {}".format(entry.pretty_size))
        if with_connections:
            print("     URI: {}".format(catalog.connection_hint(entry)))
        print()
    print("Total user databases: {}".format(len(entries)))
    if not with_connections:
        print("Tip: use --with-connections to show connection URIs")


@entrypoint
def backup(name: str, dir_: Optional[str]):
    """
    Back up a PostgreSQL database to a timestamped, compressed SQL dump.

    The service must already be running.  Backups are written to DIR, by default `~/pg_backups`.

    Usage: {script} NAME [--dir=DIR]
    """
    result = backups.backup(name, dir_)
    artifact = result.value
    print("Backed up {!r} to {}".format(artifact.database, artifact.path))
    print("Size: {} bytes".format(artifact.size))
    same, create_new, into_new = artifact.restore_recipe()
    print()
    print("To restore this backup:")
    print("  {}".format(same))
    print()
    print("To restore to a new database:")
    print("  {}".format(create_new))
    print("  {}".format(into_new))
