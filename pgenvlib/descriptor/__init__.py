"""
Credential descriptor files, giving downstream projects the connection details of a new tenant.

Descriptor templates placed inside the `templates` directory of this module are rendered with:

- `tenant`: the `Tenant` being described
- `uri`: its connection URI, as a `Password`
- `host`, `port`: server address
- `generated`: the current time

Secrets are only exposed through the `reveal` filter, which converts a `Password` to its plain value.
"""

from datetime import datetime
import logging
import os
import os.path
from typing import Any, Mapping, Optional

from jinja2 import Environment, FileSystemLoader

from ..plumbing.common import Password, Result, State


LOG = logging.getLogger(__name__)

ENV = Environment(loader=FileSystemLoader(os.path.join(os.path.dirname(__file__), "templates")),
                  trim_blocks=True, lstrip_blocks=True, keep_trailing_newline=True)

ENV.filters.update({"reveal": lambda value: str(value) if isinstance(value, Password) else value})

MODE = 0o600


def path_for(directory: str, database: str) -> str:
    """
    Location of the descriptor file for a database, e.g. `./.env.shop`.
    """
    return os.path.join(directory, ".env.{}".format(database))


def render(template: str, context: Mapping[str, Any]) -> str:
    """
    Render a descriptor template with Jinja using the provided context.
    """
    return ENV.get_template(template).render(context)


def write(directory: str, tenant: Any, uri: Password, host: str, port: int,
          template: str = "env.j2", now: Optional[datetime] = None) -> Result[str]:
    """
    Create a descriptor file for the tenant, readable only by the current user.

    An existing file is never overwritten: `FileExistsError` is raised instead.
    """
    path = path_for(directory, tenant.database)
    content = render(template, {"tenant": tenant, "uri": uri, "host": host, "port": port,
                                "generated": now or datetime.now()})
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, MODE)
    with os.fdopen(fd, "w") as out:
        out.write(content)
    LOG.debug("Wrote credentials for %r to %r", tenant.database, path)
    return Result(State.created, path)
