"""
Scripts to control the local PostgreSQL service.
"""

from typing import Optional

from .utils import entrypoint
from ..plumbing import settings
from ..plumbing.service import ServiceState
from ..tasks import service
from ..tasks.service import ServiceSummary


def _show(state: ServiceState, summary: Optional[ServiceSummary] = None):
    print("Status: {}".format(state.name.upper()))
    if summary and summary.version:
        print("Version: {}".format(summary.version))
    if summary and summary.databases is not None:
        print("Databases: {} user database(s)".format(summary.databases))


@entrypoint
def toggle():
    """
    Start the PostgreSQL service if stopped, or stop it if running.

    Usage: {script}
    """
    result = service.toggle()
    state, summary = result.value
    if state is ServiceState.running:
        print("Started service {!r}".format(settings.SERVICE))
    else:
        print("Stopped service {!r}".format(settings.SERVICE))
    _show(state, summary)


@entrypoint
def status():
    """
    Show whether the PostgreSQL service is running, with its version and database count.

    Usage: {script}
    """
    state = service.get_state()
    _show(state, service.get_summary() if state is ServiceState.running else None)
