"""
Exception classes raised by plumbing and tasks.

Each error carries a human-readable message naming the offending object, and optionally a `hint`
for the operator describing the next step.  Classified errors also carry a `kind`, whose value
matches the failure class reported on the command line.
"""

from enum import Enum
from typing import Iterable, Optional, Sequence


class ProvisioningFailure(Enum):
    """
    Classes of failure when creating a tenant database and role.
    """

    role_exists = "role-exists"
    database_exists = "database-exists"
    permission_denied = "permission-denied"
    other = "other"


class BackupFailure(Enum):
    """
    Classes of failure when dumping a database to an artifact.
    """

    database_missing = "database-missing"
    dump_failed = "dump-failed"
    empty_artifact = "empty-artifact"
    write_failed = "write-failed"


class PgEnvError(Exception):
    """
    Base class for all errors surfaced to callers.
    """

    def __init__(self, message: str, hint: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.hint = hint

    def describe(self) -> str:
        """
        One-line summary naming the error class, for printing on the command line.
        """
        return "{}: {}".format(self.__class__.__name__, self.message)


class ValidationError(PgEnvError):
    """
    Bad or missing identifier, detected locally without contacting the server.
    """


class ServiceControlError(PgEnvError):
    """
    Starting or stopping the service failed.  The resulting state is unknown and should be
    re-queried.
    """

    def __init__(self, message: str, hint: Optional[str] = "check the service state again"):
        super().__init__(message, hint)


class ServiceUnavailableError(PgEnvError):
    """
    The operation requires a running service, and it isn't running.
    """

    def __init__(self, message: str, hint: Optional[str] = "start the service first"):
        super().__init__(message, hint)


class CatalogUnavailableError(PgEnvError):
    """
    The server's catalog couldn't be queried.
    """


class ProvisioningError(PgEnvError):
    """
    A step of tenant creation failed.
    """

    def __init__(self, message: str, kind: ProvisioningFailure, hint: Optional[str] = None):
        super().__init__(message, hint)
        self.kind = kind

    def describe(self) -> str:
        return "{}[{}]: {}".format(self.__class__.__name__, self.kind.value, self.message)


class PartialProvisioningError(ProvisioningError):
    """
    A step of tenant creation failed after earlier steps had created objects.

    Created objects are dropped again where possible; any that couldn't be are listed in
    `leftovers` for manual cleanup.
    """

    def __init__(self, message: str, kind: ProvisioningFailure, leftovers: Iterable[str] = ()):
        self.leftovers = tuple(leftovers)
        if self.leftovers:
            hint = "drop these manually: {}".format(", ".join(self.leftovers))
        else:
            hint = "partially created objects were dropped again"
        super().__init__(message, kind, hint)


class BackupError(PgEnvError):
    """
    Dumping a database to an artifact failed.

    `path` is set if a partial artifact was left behind, and `alternatives` lists existing database
    names when the requested one was missing.
    """

    def __init__(self, message: str, kind: BackupFailure, path: Optional[str] = None,
                 alternatives: Sequence[str] = ()):
        self.kind = kind
        self.path = path
        self.alternatives = tuple(alternatives)
        if self.alternatives:
            hint = "available databases: {}".format(", ".join(self.alternatives))
        elif path:
            hint = "partial artifact left for inspection: {}".format(path)
        else:
            hint = None
        super().__init__(message, hint)

    def describe(self) -> str:
        return "{}[{}]: {}".format(self.__class__.__name__, self.kind.value, self.message)
