"""
Sextant normalization engine.

Turns the tokenizer's loosely-typed RawParse into the canonical Context handed
to a command's action:

- args:  declared argument name -> str, list[str] (variadic) or None (missing optional).
- flags: Flags mapping, one value per canonical key; char aliases resolve to the
         same value instead of being stored twice.
- rest:  positional tokens no argument claimed, then the tokens after "--".

Option values are coerced per declaration:

    switch                absent -> False, any non-bool value -> True
    negation pair         base key resolves to True unless turned off; "no-*" never appears
    param (absent)        default / None, or "value is missing" when required
    param "string"        str; last element of a repeated flag; True -> "value is missing", False -> "false"
    param "number"        int/float, parsed from str; otherwise "value is not a number"
    param "array"         list of str; a bare True or a mapping -> "value is not an array"; False -> ["false"]

Errors are raised as InvalidFlagError before the action could ever see a
partially normalized Context. The engine never prints.
"""
import math
import re
from collections.abc import Mapping, Sequence
from types import MappingProxyType
from typing import NamedTuple

from .arguments import Switch, canonical, display
from .faults import InvalidFlagError
from .utils import Unset, negated

_DECIMAL = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_INTEGER = re.compile(r"[+-]?\d+")
_RADIX = re.compile(r"0[xX][0-9a-fA-F]+|0[oO][0-7]+|0[bB][01]+")


class RawParse(NamedTuple):
    """
    Tokenizer output consumed by normalize().

    - positionals: positional tokens in order.
    - options: observed option name -> True/False, a str or number, or a list (repeated flag).
    - rest: tokens that followed the "--" terminator.
    """
    positionals: tuple = ()
    options: Mapping = MappingProxyType({})
    rest: tuple = ()


class Flags(Mapping):
    """
    Read-only mapping of normalized option values.

    Values are stored once per canonical key; a declared char alias resolves to
    the value of its long key, so flags["c"] is flags["color"] always holds.
    Iteration, len() and equality only consider canonical keys.
    """
    __slots__ = ("_values", "_aliases")

    def __init__(self, values=(), aliases=(), /):
        self._values = dict(values)
        self._aliases = MappingProxyType(dict(aliases))

    @property
    def aliases(self):
        return self._aliases

    def resolve(self, key, /):
        """
        Return the value stored under a canonical key or one of its char aliases.
        """
        return self._values[self._aliases.get(key, key)]

    def __getitem__(self, key, /):
        return self.resolve(key)

    def __iter__(self):
        return iter(self._values)

    def __len__(self):
        return len(self._values)

    def __repr__(self):
        return f"Flags({self._values!r})"

    def __rich_repr__(self):
        yield from self._values.items()


class Context(NamedTuple):
    """
    Canonical result handed to a command's action.
    """
    args: dict
    flags: Flags
    rest: tuple = ()


def _stringify(value):
    if value is True:
        return ""
    if value is False:
        return "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _number(text):
    text = text.strip()
    if _RADIX.fullmatch(text):
        return int(text, 0)
    if _INTEGER.fullmatch(text):
        return int(text)
    if _DECIMAL.fullmatch(text):
        return float(text)
    if text.lstrip("+-") == "Infinity":
        return -math.inf if text.startswith("-") else math.inf
    return math.nan


def _positionals(declared, raw, /):
    tokens = list(raw.positionals)
    args = {}
    index = 0

    for name, spec in declared.items():
        if spec.variadic:
            args[name] = tokens[index:]
            index = len(tokens)
        else:
            args[name] = tokens[index] if index < len(tokens) else None
            index += 1

    return args, (*tokens[index:], *raw.rest)


def _lookup(options, key, char, /):
    value = options.pop(key, Unset)
    alias = options.pop(char, Unset) if char else Unset
    return value if value is not Unset else alias


def _switch(value):
    return value if isinstance(value, bool) else True


def _string(spec, name, value):
    if isinstance(value, str):
        return value
    if value is True:
        raise InvalidFlagError(f"option `{display(spec, name)}` value is missing")
    if isinstance(value, int | float):
        return _stringify(value)
    if isinstance(value, Sequence) and not isinstance(value, str | bytes):
        if not value:
            raise InvalidFlagError(f"option `{display(spec, name)}` value is missing")
        return _stringify(value[-1])
    raise InvalidFlagError(f"option `{display(spec, name)}` value is not a string")


def _numeric(spec, name, value):
    if isinstance(value, int | float) and not isinstance(value, bool):
        return value
    if not isinstance(value, str) or math.isnan(parsed := _number(value)):
        raise InvalidFlagError(f"option `{display(spec, name)}` value is not a number")
    return parsed


def _array(spec, name, value):
    if isinstance(value, Sequence) and not isinstance(value, str | bytes):
        return [_stringify(item) for item in value]
    if value is True or isinstance(value, Mapping) or not isinstance(value, str | int | float):
        raise InvalidFlagError(f"option `{display(spec, name)}` value is not an array")
    return [_stringify(value)]


_COERCIONS = {
    "string": _string,
    "number": _numeric,
    "array": _array,
}


def normalize(declaration, raw, /):
    """
    Produce the canonical Context of one invocation.

    Parameters
    - declaration: Declaration returned by sextant.validation.declare().
    - raw: RawParse produced by the tokenizer.

    Raises
    - InvalidFlagError when a required option is missing or a value cannot be
      coerced to its declared type. No Context is returned in that case.
    """
    args, rest = _positionals(declaration.args, raw)
    options = dict(raw.options)
    values = {}
    aliases = {}

    keys = {name: canonical(spec, name) for name, spec in declaration.flags.items()}

    # base key -> char of the positive switch, for every negation pair
    pairs = {}
    for name, spec in declaration.flags.items():
        if not isinstance(spec, Switch):
            continue
        if negated(key := keys[name]):
            pairs.setdefault(key[3:], None)
        elif spec.negation is not None:
            pairs[key] = spec.char
    for name, spec in declaration.flags.items():
        if isinstance(spec, Switch) and keys[name] in pairs:
            pairs[keys[name]] = spec.char

    for name, spec in declaration.flags.items():
        key = keys[name]
        if spec.char:
            aliases[spec.char] = key

        if isinstance(spec, Switch):
            if negated(key) or key in pairs:
                continue
            value = _lookup(options, key, spec.char)
            values[key] = False if value is Unset else _switch(value)
            continue

        if (value := _lookup(options, key, spec.char)) is Unset:
            if spec.param.required:
                raise InvalidFlagError(f"option `{display(spec, name)}` value is missing")
            if (default := spec.param.default) is Unset:
                values[key] = None
            else:
                values[key] = list(default) if spec.param.type == "array" else default
            continue

        values[key] = _COERCIONS[spec.param.type](spec, name, value)

    for base, char in pairs.items():
        value = _lookup(options, base, char)
        negative = options.pop(f"no-{base}", Unset)
        if value is not Unset:
            values[base] = _switch(value)
        elif negative is not Unset:
            values[base] = not _switch(negative)
        else:
            values[base] = True

    # options nobody declared pass through; the runner decides if they are errors
    for key, value in options.items():
        values.setdefault(key, value)

    return Context(args, Flags(values, aliases), rest)


__all__ = (
    "RawParse",
    "Flags",
    "Context",
    "normalize",
)
