"""
Sextant runner: top-level invocation and fault surfacing.

run(target, argv) normalizes argv, hands it to target.__invoke__ and owns what
happens when a CommandError escapes:

- on_error given   -> on_error(error) is called and run returns None.
- shell=True       -> the error is rendered on stderr via rich and the process
                      exits with status 1 (deferred=True renders without exiting).
- shell=False      -> the error is raised to the caller.

Any other exception propagates untouched. invoke() is run() with shell=False,
convenient in scripts and tests.
"""
import shlex
import sys
from collections.abc import Iterable

from .faults import CommandError, trigger


def _tokens(argv):
    """
    Normalize argv into a list of tokens.

    - None: sys.argv[1:].
    - str: shell-like string split with shlex.split.
    - Iterable[str]: used as-is (each element must be a string).
    """
    if argv is None:
        return sys.argv[1:]
    if isinstance(argv, str):
        return shlex.split(argv)
    if isinstance(argv, Iterable):
        tokens = list(argv)
        for token in tokens:
            if not isinstance(token, str):
                raise TypeError("run() argv must be a string or an iterable of strings")
        return tokens
    raise TypeError("run() argv must be a string or an iterable of strings")


def run(target, argv=None, /, *, error_on_unknown=False, on_error=None, shell=True, colorful=True, fancy=False, deferred=False):
    """
    Run a Program or SingleProgram.

    Parameters
    - target: object implementing __invoke__(tokens, **options).
    - argv: None | str | Iterable[str] (see _tokens).
    - error_on_unknown: False to let unknown options through, True to fail on them,
      or a callable receiving the option string and returning the error message.
    - on_error: callable receiving the CommandError instead of the default surfacing.
    - shell, colorful, fancy, deferred: rendering options forwarded to trigger().

    Returns
    - the action's return value, or None when help/version was shown or an error
      was handled.
    """
    if not hasattr(target, "__invoke__") or not callable(target.__invoke__):
        raise TypeError("run() argument must implement __invoke__ method")
    if error_on_unknown is not True and error_on_unknown is not False and not callable(error_on_unknown):
        raise TypeError("run() 'error_on_unknown' must be a boolean or a callable")

    tokens = _tokens(argv)
    try:
        return target.__invoke__(tokens, error_on_unknown=error_on_unknown, colorful=colorful, fancy=fancy)
    except CommandError as error:
        if on_error is not None:
            on_error(error)
            return None
        trigger(
            error,
            shell=shell,
            colorful=colorful,
            fancy=fancy,
            deferred=deferred,
            prog=getattr(target, "name", None),
        )
        return None


def invoke(target, argv=None, /, **options):
    """
    Run target and raise any CommandError to the caller (shell=False).
    """
    return run(target, argv, **options | {"shell": False})


__all__ = (
    "run",
    "invoke",
)
