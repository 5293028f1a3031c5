"""
Sextant declaration validator.

Runs once per command, when the command is registered and before any input
exists. Every rule violation is a programmer error and raises immediately:

Arguments (in declared order)
- nothing may follow a variadic argument                  -> InvalidArgumentError
- a required argument may not follow an optional one      -> InvalidArgumentError

Flags (for every declared flag)
- char must be exactly one character                      -> InvalidFlagError
- a flag cannot take a param and be negatable             -> InvalidFlagError
- a "no-" key cannot take a param, a char, or a negation,
  and only pairs with a boolean sibling                   -> InvalidFlagError
- canonical keys and chars must be unique, and a char may
  not name another flag's canonical key                   -> InvalidFlagError

declare(args, flags) runs both passes and freezes the builders into a
Declaration; handing it already-frozen specs is accepted and never raises for
a set that was valid before.
"""
from types import MappingProxyType
from typing import NamedTuple

from .arguments import ArgStructure, FlagStructure, structure, freeze, canonical, display
from .faults import InvalidArgumentError, InvalidFlagError
from .utils import negated


class Declaration(NamedTuple):
    """
    Validated, frozen declarations of one command.

    - args: read-only mapping of argument name -> Positional, in declared order.
    - flags: read-only mapping of option name -> Switch | Parametric, in declared order.
    """
    args: MappingProxyType
    flags: MappingProxyType


def _quoted(spec, name):
    return "`" + display(spec, name) + "`"


def validate_args(args, /):
    """
    Check the ordering rules of an ordered mapping of positional arguments.
    """
    optional = False
    variadic = False

    for name, spec in args.items():
        if not isinstance(shape := structure(spec), ArgStructure):
            raise TypeError(f"argument {name!r} must be declared with arg()")
        if variadic:
            raise InvalidArgumentError(
                f"positional argument {_quoted(spec, name)} cannot appear after a variadic argument"
            )
        if shape.kind == "required" and optional:
            raise InvalidArgumentError(
                f"required positional argument {_quoted(spec, name)} cannot appear after an optional argument"
            )
        optional |= shape.kind == "optional"
        variadic |= shape.variadic


def validate_flags(flags, /):
    """
    Check the shape of every declared flag and the pairing rules between them.
    """
    keys = {}
    chars = {}

    for name, spec in flags.items():
        if not isinstance(shape := structure(spec), FlagStructure):
            raise TypeError(f"flag {name!r} must be declared with flag()")
        keys.setdefault(canonical(spec, name), name)

    for name, spec in flags.items():
        shape = structure(spec)
        key = canonical(spec, name)

        if shape.char is not None and len(shape.char) != 1:
            raise InvalidFlagError(f"option {_quoted(spec, name)} char must be 1 character")
        if shape.param is not None and shape.negation is not None:
            raise InvalidFlagError(f"negated option {name} {_quoted(spec, name)} cannot have param")

        if negated(key):
            if shape.param is not None:
                raise InvalidFlagError(f"negated option {name} {_quoted(spec, name)} cannot have param")
            if shape.char is not None:
                raise InvalidFlagError(f"negated option {name} {_quoted(spec, name)} cannot have char")
            if shape.negation is not None:
                raise InvalidFlagError(f"negated option {name} {_quoted(spec, name)} is already negated")
            if (sibling := keys.get(key[3:])) is not None and structure(flags[sibling]).param is not None:
                raise InvalidFlagError(
                    f"negated option {name} {_quoted(spec, name)} can only be used with boolean flags"
                )

        if keys[key] != name:
            raise InvalidFlagError(f"option {_quoted(spec, name)} is declared more than once")
        if shape.char is not None:
            # a char shadows any other flag whose canonical key is that same letter
            if chars.setdefault(shape.char, name) != name or keys.get(shape.char, name) != name:
                raise InvalidFlagError(f"option {_quoted(spec, name)} char is already in use")


def declare(args=None, flags=None, /):
    """
    Validate and freeze the declarations of a command.

    Parameters
    - args: ordered mapping name -> arg() builder or Positional (optional).
    - flags: ordered mapping name -> flag() builder or Switch/Parametric (optional).

    Returns
    - Declaration with read-only mappings of frozen specs.

    Raises
    - InvalidArgumentError / InvalidFlagError on the first rule violation.
    """
    args = dict(args or {})
    flags = dict(flags or {})

    validate_args(args)
    validate_flags(flags)

    return Declaration(
        MappingProxyType({name: freeze(spec) for name, spec in args.items()}),
        MappingProxyType({name: freeze(spec) for name, spec in flags.items()}),
    )


__all__ = (
    "Declaration",
    "validate_args",
    "validate_flags",
    "declare",
)
