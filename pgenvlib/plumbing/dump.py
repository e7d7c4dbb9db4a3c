"""
Logical dumps of a database, streamed through gzip into timestamped artifact files.
"""

from datetime import datetime
import gzip
import logging
import os
import os.path
import subprocess
import threading
from typing import BinaryIO, Dict, List, Optional, Tuple

from .common import Result, State
from .errors import BackupError, BackupFailure


LOG = logging.getLogger(__name__)

SUFFIX = ".sql.gz"

TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"

CHUNK_SIZE = 64 * 1024


def artifact_name(database: str, when: datetime, seq: int = 0) -> str:
    """
    Build the file name of an artifact, e.g. `shop_20240131_235959.sql.gz`.

    A non-zero `seq` disambiguates artifacts taken within the same second, and sorts after the
    unsuffixed name.
    """
    stamp = when.strftime(TIMESTAMP_FORMAT)
    if seq:
        stamp = "{}_{}".format(stamp, seq)
    return "{}_{}{}".format(database, stamp, SUFFIX)


def mkdir(path: str) -> Result[str]:
    """
    Create a directory and any missing parents.
    """
    if os.path.isdir(path):
        return Result(State.unchanged, path)
    os.makedirs(path, exist_ok=True)
    return Result(State.created, path)


def reserve(directory: str, database: str, when: datetime) -> Tuple[str, BinaryIO]:
    """
    Exclusively create a new, empty artifact file, and return its path and open handle.

    Existing artifacts are never overwritten: a sequence number is appended until a free name is
    found.
    """
    seq = 0
    while True:
        path = os.path.join(directory, artifact_name(database, when, seq))
        try:
            return (path, open(path, "xb"))
        except FileExistsError:
            LOG.debug("Artifact %r already exists", path)
            seq += 1


def dump_args(database: str, host: Optional[str], port: int, user: str) -> List[str]:
    """
    Build a `pg_dump` command line writing a plain SQL dump to stdout.
    """
    args = ["pg_dump", "--port", str(port), "--username", user, "--no-password"]
    if host:
        args[1:1] = ["--host", host]
    return args + [database]


def stream(args: List[str], out: BinaryIO, timeout: Optional[float] = None,
           env: Optional[Dict[str, str]] = None) -> Result[int]:
    """
    Run a dump command, compressing its output into an open file, and return the number of
    uncompressed bytes written.

    The command is killed if it runs longer than `timeout` seconds.
    """
    LOG.debug("Exec: %r > %r", args, getattr(out, "name", out))
    try:
        proc = subprocess.Popen(args, stdout=subprocess.PIPE, env=env)
    except OSError as ex:
        raise BackupError("Can't run {}: {}".format(args[0], ex),
                          BackupFailure.dump_failed, getattr(out, "name", None)) from ex
    timer = None
    timed_out = threading.Event()
    if timeout:
        def kill():
            timed_out.set()
            proc.kill()
        timer = threading.Timer(timeout, kill)
        timer.start()
    total = 0
    try:
        with gzip.GzipFile(fileobj=out, mode="wb") as zipped:
            for chunk in iter(lambda: proc.stdout.read(CHUNK_SIZE), b""):
                zipped.write(chunk)
                total += len(chunk)
    except OSError as ex:
        proc.kill()
        proc.wait()
        raise BackupError("Failed writing artifact: {}".format(ex), BackupFailure.write_failed,
                          getattr(out, "name", None)) from ex
    finally:
        proc.stdout.close()
        if timer:
            timer.cancel()
    code = proc.wait()
    if timed_out.is_set():
        raise BackupError("{} timed out after {}s".format(args[0], timeout),
                          BackupFailure.dump_failed, getattr(out, "name", None))
    elif code:
        raise BackupError("{} exited with status {}".format(args[0], code),
                          BackupFailure.dump_failed, getattr(out, "name", None))
    return Result(State.created, total)
