"""
Availability of the local database service.
"""

import logging
import time
from typing import NamedTuple, Optional, Tuple

from psycopg2 import Error as Psycopg2Error

from ..plumbing import pgsql, service, settings
from ..plumbing.common import Collect, Result, State
from ..plumbing.errors import ServiceControlError, ServiceUnavailableError
from ..plumbing.service import ServiceState


LOG = logging.getLogger(__name__)

POLL_INTERVAL = 0.5


class ServiceSummary(NamedTuple):
    """
    Best-effort details of a running server; fields are `None` if they couldn't be retrieved.
    """

    version: Optional[str]
    databases: Optional[int]


def get_state() -> ServiceState:
    """
    Query the live state of the configured service.
    """
    return service.get_state(settings.SERVICE_COMMAND, settings.SERVICE, settings.COMMAND_TIMEOUT)


def is_ready(timeout: Optional[float] = None) -> bool:
    """
    Check whether the server accepts administrative connections, waiting at most `timeout` seconds
    (default: the configured command timeout) for the attempt.
    """
    try:
        conn = pgsql.connect(settings.HOST, settings.PORT, settings.ADMIN_USER,
                             settings.ADMIN_PASSWORD, settings.ADMIN_DATABASE,
                             timeout or settings.COMMAND_TIMEOUT)
    except Psycopg2Error:
        return False
    conn.close()
    return True


def wait_ready(timeout: Optional[float] = None) -> bool:
    """
    Poll the server until it accepts connections, giving up after `timeout` seconds.
    """
    deadline = time.monotonic() + (settings.READY_TIMEOUT if timeout is None else timeout)
    while True:
        remaining = deadline - time.monotonic()
        if is_ready(min(settings.COMMAND_TIMEOUT, max(1, remaining))):
            return True
        if time.monotonic() >= deadline:
            LOG.warning("Server not accepting connections after starting service %r",
                        settings.SERVICE)
            return False
        time.sleep(POLL_INTERVAL)


def get_summary() -> ServiceSummary:
    """
    Look up the server version and number of tenant databases, if the server can be reached.
    """
    version = None
    databases = None
    try:
        conn = pgsql.connect(settings.HOST, settings.PORT, settings.ADMIN_USER,
                             settings.ADMIN_PASSWORD, settings.ADMIN_DATABASE,
                             settings.COMMAND_TIMEOUT)
        with pgsql.context(conn) as cursor:
            version = pgsql.get_version(cursor)
            databases = pgsql.count_databases(cursor, settings.RESERVED_DATABASES)
    except Psycopg2Error as ex:
        LOG.warning("Couldn't fetch server summary: %s", ex)
    return ServiceSummary(version, databases)


def start() -> Result[ServiceState]:
    return service.start(settings.SERVICE_COMMAND, settings.SERVICE, settings.COMMAND_TIMEOUT)


def stop() -> Result[ServiceState]:
    return service.stop(settings.SERVICE_COMMAND, settings.SERVICE, settings.COMMAND_TIMEOUT)


@Result.collect
def toggle() -> Collect[Tuple[ServiceState, Optional[ServiceSummary]]]:
    """
    Stop the service if it's running, or start it otherwise.

    The state may be changed by others between checking and acting; callers wanting certainty
    should query `get_state` again afterwards.
    """
    if get_state() is ServiceState.running:
        res_stop = yield from stop()
        return (res_stop.value, None)
    res_start = yield from start()
    wait_ready()
    return (res_start.value, get_summary())


@Result.collect
def ensure_running() -> Collect[ServiceState]:
    """
    Start the service if it isn't already running, and wait until it accepts connections.
    """
    if get_state() is ServiceState.running:
        return ServiceState.running
    LOG.info("Service %r is not running, starting it", settings.SERVICE)
    try:
        yield start()
    except ServiceControlError as ex:
        raise ServiceUnavailableError("Service {!r} is not running and couldn't be started: {}"
                                      .format(settings.SERVICE, ex.message),
                                      "start the service manually") from ex
    if not wait_ready():
        raise ServiceUnavailableError("Service {!r} started but isn't accepting connections"
                                      .format(settings.SERVICE),
                                      "check the server logs")
    return ServiceState.running


def require_running() -> Result[ServiceState]:
    """
    Fail with `ServiceUnavailableError` unless the service is currently running.
    """
    if get_state() is not ServiceState.running:
        raise ServiceUnavailableError("Service {!r} is not running".format(settings.SERVICE))
    return Result(State.unchanged, ServiceState.running)
