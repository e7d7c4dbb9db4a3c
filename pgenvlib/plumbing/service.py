"""
OS service manager control of the database server process.
"""

from enum import Enum
import logging
import subprocess
from typing import List, Optional

from .common import command, Result, State
from .errors import ServiceControlError


LOG = logging.getLogger(__name__)

_LSB_NOT_RUNNING = 3


class ServiceState(Enum):
    """
    Whether the server process is running, as reported by the service manager.
    """

    stopped = 0
    running = 1

    def __bool__(self):
        return bool(self.value)


def _args(prefix: List[str], name: str, action: str) -> List[str]:
    return list(prefix) + [name, action]


def get_state(prefix: List[str], name: str, timeout: Optional[float] = None) -> ServiceState:
    """
    Query the service manager for the service's state.

    This never raises: if the state can't be determined, the service is assumed to be stopped and a
    warning is logged.
    """
    try:
        proc = subprocess.run(_args(prefix, name, "status"), stdout=subprocess.DEVNULL,
                              stderr=subprocess.DEVNULL, timeout=timeout)
    except (OSError, subprocess.TimeoutExpired) as ex:
        LOG.warning("Couldn't query state of service %r, assuming stopped: %s", name, ex)
        return ServiceState.stopped
    if proc.returncode == 0:
        return ServiceState.running
    elif proc.returncode != _LSB_NOT_RUNNING:
        LOG.warning("Service %r status exited %d, assuming stopped", name, proc.returncode)
    return ServiceState.stopped


def _control(prefix: List[str], name: str, action: str, timeout: Optional[float]) -> None:
    try:
        command(_args(prefix, name, action), timeout=timeout)
    except subprocess.CalledProcessError as ex:
        raise ServiceControlError("Failed to {} service {!r} (exit status {})"
                                  .format(action, name, ex.returncode)) from ex
    except subprocess.TimeoutExpired as ex:
        raise ServiceControlError("Timed out trying to {} service {!r} after {}s"
                                  .format(action, name, ex.timeout)) from ex
    except OSError as ex:
        raise ServiceControlError("Can't run service manager to {} {!r}: {}"
                                  .format(action, name, ex)) from ex


def start(prefix: List[str], name: str, timeout: Optional[float] = None) -> Result[ServiceState]:
    """
    Start the service.
    """
    _control(prefix, name, "start", timeout)
    return Result(State.success, ServiceState.running)


def stop(prefix: List[str], name: str, timeout: Optional[float] = None) -> Result[ServiceState]:
    """
    Stop the service.
    """
    _control(prefix, name, "stop", timeout)
    return Result(State.success, ServiceState.stopped)
