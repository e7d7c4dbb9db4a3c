"""
Compressed logical backups of tenant databases.
"""

from datetime import datetime
import logging
import os
import os.path
import shlex
from typing import List, NamedTuple, Optional

from ..plumbing import dump, settings
from ..plumbing.common import Collect, Result
from ..plumbing.errors import BackupError, BackupFailure, ValidationError
from . import catalog, service


LOG = logging.getLogger(__name__)


class BackupArtifact(NamedTuple):
    """
    A completed dump file for a database.
    """

    database: str
    path: str
    created: datetime
    size: int

    def restore_recipe(self, new_database: str = "new_database_name") -> List[str]:
        """
        Shell commands to restore the artifact, into the same database and into a new one.
        """
        path = shlex.quote(self.path)
        psql = "psql{}".format(_connection_flags())
        return ["gunzip -c {} | {} {}".format(path, psql, shlex.quote(self.database)),
                "createdb{} {}".format(_connection_flags(), shlex.quote(new_database)),
                "gunzip -c {} | {} {}".format(path, psql, shlex.quote(new_database))]


def _connection_flags() -> str:
    flags = []
    if settings.HOST:
        flags += ["-h", settings.HOST]
    flags += ["-p", str(settings.PORT), "-U", settings.ADMIN_USER]
    return "".join(" {}".format(shlex.quote(flag)) for flag in flags)


def _dump_env() -> Optional[dict]:
    if not settings.ADMIN_PASSWORD:
        return None
    return dict(os.environ, PGPASSWORD=settings.ADMIN_PASSWORD)


@Result.collect
def backup(name: str, target: Optional[str] = None) -> Collect[BackupArtifact]:
    """
    Dump an existing database into a new timestamped, gzipped artifact under `target` (or the
    configured backup directory).

    The service must already be running; it's never started here.  Failed artifacts are left in
    place for inspection, with their path included in the raised `BackupError`.
    """
    if not name:
        raise ValidationError("Database name is required")
    service.require_running()
    if not catalog.exists(name):
        raise BackupError("Database {!r} does not exist".format(name),
                          BackupFailure.database_missing,
                          alternatives=[entry.name for entry in catalog.list_databases()])
    target = os.path.expanduser(target or settings.BACKUP_DIR)
    now = datetime.now()
    try:
        yield dump.mkdir(target)
        path, out = dump.reserve(target, name, now)
    except OSError as ex:
        raise BackupError("Can't create artifact in {!r}: {}".format(target, ex),
                          BackupFailure.write_failed) from ex
    LOG.info("Backing up %r to %r", name, path)
    args = dump.dump_args(name, settings.HOST, settings.PORT, settings.ADMIN_USER)
    with out:
        res_dump = yield from dump.stream(args, out, settings.DUMP_TIMEOUT, _dump_env())
    size = os.path.getsize(path)
    if not res_dump.value or not size:
        raise BackupError("Dump of {!r} produced no data".format(name),
                          BackupFailure.empty_artifact, path)
    return BackupArtifact(name, path, now, size)
