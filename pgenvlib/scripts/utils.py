"""
Helpers for converting methods into scripts, and filling in arguments from the command line.
"""

from functools import wraps
from inspect import cleandoc, signature
import logging
import sys
from typing import Any, Callable, Dict, List, Optional, Union

from docopt import docopt

from ..plumbing.errors import PgEnvError


DocOptArgs = Dict[str, Union[bool, str, List[str], None]]

NoneType = type(None)


ENTRYPOINTS: List[str] = []


def _lookup(opts: DocOptArgs, name: str) -> Any:
    # Accept positional `NAME` / `<name>` forms, and `--long-option` forms for flags.
    bare = name.rstrip("_")
    for key in (bare.upper(), "<{}>".format(bare), "--{}".format(bare.replace("_", "-"))):
        if key in opts:
            return opts[key]
    raise KeyError(name)


def entrypoint(fn: Callable[..., Any]) -> Callable[..., Any]:
    """
    Decorator to make an entrypoint out of a generic function.

    This uses `docopt` to parse arguments according to the method docstring, and will be formatted
    with `{script}` set to the script name.  At minimum, it should contain `Usage: {script}`.

    Parameters annotated with `DocOptArgs` receive the full `dict` of parsed input.  Any other
    parameter is filled in from the usage line by name, either in upper case, surrounded by arrow
    brackets, or as a long option (e.g. `NAME`, `<name>` or `--env-dir` for `env_dir`).  A trailing
    underscore is ignored, so `dir_` reads `--dir`.

    Errors derived from `PgEnvError` are printed as a single line with their hint, and exit with
    status 1.  An example function:

        @entrypoint
        def create(name: str, env_dir: Optional[str]):
            \"""
            Create a database.

            Usage: {script} NAME [--env-dir=DIR]
            \"""
    """
    label = "pgenvlib-{}-{}".format(fn.__module__.rsplit(".", 1)[-1],
                                    fn.__qualname__.rstrip("_")).replace("_", "-")

    @wraps(fn)
    def wrap(opts: Optional[DocOptArgs] = None):
        extra: Dict[str, Any] = {}
        script = "{} [--debug]".format(label)
        if opts is None:
            doc = cleandoc(fn.__doc__.format(script=script))
            opts = docopt(doc)
        opts = dict(opts)
        if opts.pop("--debug", False):
            logging.basicConfig(level=logging.DEBUG)
        sig = signature(fn)
        for param in sig.parameters.values():
            name = param.name
            cls = param.annotation
            if cls is DocOptArgs:
                extra[name] = opts
                continue
            try:
                value = _lookup(opts, name)
            except KeyError:
                raise RuntimeError("Missing argument {!r}".format(name))
            optional = False
            # Unpick Optional[X] by reading the type object arguments and removing type(None).
            if getattr(cls, "__origin__", None) is Union:
                cls_args = cls.__args__
                if NoneType in cls_args:
                    optional = True
                    # NB. Union[X] for a single type X automatically resolves to X.
                    cls = Union[tuple(arg for arg in cls_args if arg is not NoneType)]
            if value is None and optional:
                extra[name] = None
            elif cls in (str, bool):
                extra[name] = cls(value)
            else:
                raise RuntimeError("Bad parameter {!r} type {!r}".format(name, cls))
        try:
            return fn(**extra)
        except PgEnvError as ex:
            error(ex.describe())
            if ex.hint:
                error("Hint: {}".format(ex.hint), colour="6")
            sys.exit(1)
    wrap.__doc__ = wrap.__doc__.format(script=label)
    # Create a console script line for setup.
    target = "{}:{}".format(fn.__module__, fn.__qualname__)
    ENTRYPOINTS.append("{}={}".format(label, target))
    return wrap


def error(msg: Optional[str] = None, *, exit: Optional[int] = None, colour: Optional[str] = None):
    """
    Print an error message and/or exit.
    """
    if msg:
        colour = colour or "1"
        print("\033[9{}m{}\033[0m".format(colour, msg), file=sys.stderr)
    if exit is not None:
        sys.exit(exit)


def warn(msg: str):
    """
    Print a non-fatal warning.
    """
    error(msg, colour="3")
