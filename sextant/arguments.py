r"""
Sextant declaration model: argument and option specifications.

Overview
- Builders (mutable, authoring phase)
  • arg(): ArgumentBuilder for one positional argument; chain .optional(), .variadic(), .describe().
  • flag(descr): FlagBuilder for one option; chain .char(), .required_param(), .optional_param(),
    .with_negated(), .preserve_case().
  Builders are plain configuration bags. They are frozen into specs when a command
  registers them (see sextant.validation.declare), never mutated afterwards.

- Specs (immutable, registered phase)
  • Positional: kind ("required" | "optional") plus a variadic modifier.
  • Flag: a closed sum of two variants
      - Switch: boolean flag, optionally paired with a "--no-<name>" counterpart.
      - Parametric: flag carrying a Param(type, required, default); cannot be negated.

- Projections
  • display(spec, name): canonical display string ("<name>", "[name]", "-c, --color").
  • negated_display(spec, name): "--no-<name>" form of a negatable switch.
  • structure(spec): plain named-tuple view of a builder or spec, consumed by the validator.
  • canonical(spec, name): external option key (kebab-case unless preserve_case).

Quick example:
    >>> from sextant.arguments import arg, flag, display
    >>> display(arg().optional(), "target")
    '[target]'
    >>> display(flag("output file").char("o").required_param("string"), "outFile")
    '-o, --out-file'
"""
import functools
import operator
import re
from collections.abc import Sequence
from typing import NamedTuple

from .utils import *

KINDS = ("required", "optional")
PARAMS = ("string", "number", "array")


class Param(NamedTuple):
    """
    Parameter of a Parametric flag.

    - type: "string" | "number" | "array"
    - required: when True the option must be given a value on every invocation.
    - default: value used when the option is omitted (optional params only);
      Unset means "no default" and the normalized value is None.
    """
    type: str
    required: bool
    default: object = Unset


class ArgumentType(type):
    """
    Metaclass for frozen specs.

    Responsibilities
    - Expose every name listed in __introspectable__ as a read-only property that
      mirrors the private "_<name>" field (see utils.mirror).
    - Provide stable __repr__/__rich_repr__ implementations for diagnostics.
    - Seal concrete variants (class keyword sealed=True) against subclassing, so
      the set of flag shapes stays closed.
    """
    __introspectable__ = ()

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in type(self).__introspectable__:
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        if options.get("sealed", False):
            @rename("__init_subclass__")
            def __init_subclass__(cls, **options):  # NOQA: F-841
                raise TypeError(f"type {self.__name__!r} is not an acceptable base type")
            self.__init_subclass__ = classmethod(__init_subclass__)

        return self


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: normalize the shared 'descr' field.

    - descr: Unset | str. Trimmed; an empty description becomes None, as does Unset.

    Raises
    - TypeError: if 'descr' is neither a string nor Unset.
    """
    if not isinstance(descr := metadata["descr"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    metadata["descr"] = coalesce(descr) and descr.strip() or None


def _sanitize_named_metadata(cls, metadata, /):
    """
    Internal: validate the fields shared by both flag variants.

    - char: Unset | str. Only the type is checked here; the one-character rule is
      a declaration error reported by the validator with the option's display string.
    - preserve_case: coerced to bool.
    """
    if not isinstance(char := metadata["char"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'char' must be a string")
    metadata["char"] = coalesce(char)
    metadata["preserve_case"] = bool(metadata["preserve_case"])


def _sanitize_param(type, required, default=Unset, /):
    """
    Internal: build a Param, checking the type name and the default's shape.

    Array defaults are stored as tuples so the frozen spec cannot be mutated
    through a list the author still holds.
    """
    if type not in PARAMS:
        raise ValueError(f"param type must be one of {", ".join(map(repr, PARAMS))}")
    if default is Unset or default is None:
        return Param(type, required)
    match type:
        case "string" if not isinstance(default, str):
            raise TypeError("string param default must be a string")
        case "number" if isinstance(default, bool) or not isinstance(default, int | float):
            raise TypeError("number param default must be a number")
        case "array":
            if isinstance(default, str) or not isinstance(default, Sequence):
                raise TypeError("array param default must be a sequence of strings")
            if not all(isinstance(item, str) for item in default):
                raise TypeError("array param default must be a sequence of strings")
            default = tuple(default)
    return Param(type, required, default)


class Positional(metaclass=ArgumentType, sealed=True):
    """
    Frozen positional argument specification.

    - kind: "required" or "optional".
    - variadic: when True the argument absorbs all remaining positional tokens.
    - descr: short help text, or None.
    """

    __introspectable__ = (
        "kind",
        "variadic",
        "descr",
    )

    def __new__(cls, kind="required", /, variadic=False, descr=Unset):
        metadata = {
            "kind": kind,
            "variadic": bool(variadic),
            "descr": descr,
        }
        if kind not in KINDS:
            raise ValueError(f"{cls.__typename__} 'kind' must be 'required' or 'optional'")
        _sanitize_metadata(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @property
    def required(self):
        return self._kind == "required"

    def __eq__(self, other):
        if not isinstance(other, Positional):
            return NotImplemented
        return structure(self) == structure(other)

    def __hash__(self):
        return hash(structure(self))


class Flag(metaclass=ArgumentType):
    """
    Base of the two frozen option variants (Switch, Parametric).

    Shared fields
    - descr: help text, or None.
    - char: single-character alias, or None.
    - preserve_case: when True the declared key is used verbatim as the external name.
    """

    __introspectable__ = (
        "descr",
        "char",
        "preserve_case",
    )

    def __eq__(self, other):
        if not isinstance(other, Flag):
            return NotImplemented
        return structure(self) == structure(other)

    def __hash__(self):
        return hash(structure(self))


class Switch(Flag, sealed=True):
    """
    Boolean flag. With a negation description it also accepts "--no-<name>",
    and resolves to True unless turned off.
    """

    __introspectable__ = (
        "descr",
        "char",
        "negation",
        "preserve_case",
    )

    def __new__(cls, descr=Unset, /, char=Unset, negation=Unset, preserve_case=False):
        metadata = {
            "descr": descr,
            "char": char,
            "negation": negation,
            "preserve_case": preserve_case,
        }
        _sanitize_metadata(cls, metadata)
        _sanitize_named_metadata(cls, metadata)
        if not isinstance(negation, str | Unset):
            raise TypeError(f"{cls.__typename__} 'negation' must be a string")
        metadata["negation"] = coalesce(negation)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self


class Parametric(Flag, sealed=True):
    """
    Flag taking a value; the Param decides its type, whether it is required,
    and its default.
    """

    __introspectable__ = (
        "descr",
        "char",
        "param",
        "preserve_case",
    )

    def __new__(cls, descr=Unset, /, param=Unset, char=Unset, preserve_case=False):
        metadata = {
            "descr": descr,
            "char": char,
            "param": param,
            "preserve_case": preserve_case,
        }
        _sanitize_metadata(cls, metadata)
        _sanitize_named_metadata(cls, metadata)
        if not isinstance(param, Param):
            raise TypeError(f"{cls.__typename__} 'param' must be a Param")
        metadata["param"] = _sanitize_param(param.type, param.required, param.default)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self


class ArgumentBuilder:
    """
    Mutable authoring form of a positional argument; see arg().
    """
    __slots__ = ("_kind", "_variadic", "_descr")

    def __init__(self, descr=Unset, /):
        self._kind = "required"
        self._variadic = False
        self._descr = descr

    def optional(self):
        self._kind = "optional"
        return self

    def variadic(self):
        self._variadic = True
        return self

    def describe(self, descr, /):
        self._descr = descr
        return self

    def freeze(self):
        return Positional(self._kind, variadic=self._variadic, descr=self._descr)

    def __repr__(self):
        return f"arg({self._kind!r}, variadic={self._variadic!r})"


class FlagBuilder:
    """
    Mutable authoring form of an option; see flag().

    freeze() picks the variant: Switch when no param was configured, Parametric
    otherwise. A builder with both a param and a negation cannot be frozen; the
    validator reports it as a declaration error before freezing is attempted.
    """
    __slots__ = ("_descr", "_char", "_param", "_negation", "_preserve_case")

    def __init__(self, descr=Unset, /):
        self._descr = descr
        self._char = Unset
        self._param = Unset
        self._negation = Unset
        self._preserve_case = False

    def char(self, char, /):
        self._char = char
        return self

    def required_param(self, type, /):
        self._param = _sanitize_param(type, True)
        return self

    def optional_param(self, type, default=Unset, /):
        self._param = _sanitize_param(type, False, default)
        return self

    def with_negated(self, descr, /):
        self._negation = descr
        return self

    def preserve_case(self):
        self._preserve_case = True
        return self

    def freeze(self):
        if self._param is Unset:
            return Switch(
                self._descr,
                char=self._char,
                negation=self._negation,
                preserve_case=self._preserve_case,
            )
        if self._negation is not Unset:
            raise TypeError("a flag with a param cannot be negated")
        return Parametric(
            self._descr,
            param=self._param,
            char=self._char,
            preserve_case=self._preserve_case,
        )

    def __repr__(self):
        return f"flag({coalesce(self._descr)!r}, param={coalesce(self._param)!r})"


class ArgStructure(NamedTuple):
    kind: str
    variadic: bool
    descr: str | None


class FlagStructure(NamedTuple):
    descr: str | None
    char: str | None
    param: Param | None
    negation: str | None
    preserve_case: bool


def structure(spec, /):
    """
    Project a builder or a frozen spec onto a plain named tuple.

    The projection has no behavior; validators read it without caring whether
    the author handed over a builder or an already-frozen spec.
    """
    match spec:
        case ArgumentBuilder():
            return ArgStructure(spec._kind, spec._variadic, coalesce(spec._descr))
        case Positional():
            return ArgStructure(spec._kind, spec._variadic, spec._descr)
        case FlagBuilder():
            return FlagStructure(
                coalesce(spec._descr),
                coalesce(spec._char),
                coalesce(spec._param),
                coalesce(spec._negation),
                spec._preserve_case,
            )
        case Switch():
            return FlagStructure(spec._descr, spec._char, None, spec._negation, spec._preserve_case)
        case Parametric():
            return FlagStructure(spec._descr, spec._char, spec._param, None, spec._preserve_case)
        case _:
            raise TypeError("structure() argument must be an argument or a flag")


def freeze(spec, /):
    """
    Return the frozen form of a builder; frozen specs are returned unchanged.
    """
    if isinstance(spec, ArgumentBuilder | FlagBuilder):
        return spec.freeze()
    if isinstance(spec, Positional | Flag):
        return spec
    raise TypeError("freeze() argument must be an argument or a flag")


def canonical(spec, name, /):
    """
    External option key: the declared name verbatim when preserve_case is set,
    its kebab-case form otherwise.
    """
    if not isinstance(shape := structure(spec), FlagStructure):
        raise TypeError("canonical() argument must be a flag")
    return name if shape.preserve_case else kebab(name)


def display(spec, name, /):
    """
    Canonical display string of an argument or option.

    - required argument  -> "<name>"
    - optional argument  -> "[name]"
    - variadic argument  -> "<...name>" / "[...name]"
    - option             -> "--name", or "-c, --name" with a char alias
    """
    match structure(spec):
        case ArgStructure(kind=kind, variadic=variadic):
            label = ("..." if variadic else "") + name
            return f"<{label}>" if kind == "required" else f"[{label}]"
        case FlagStructure(char=char):
            string = f"--{canonical(spec, name)}"
            if char:
                string = f"-{char}, {string}"
            return string


def negated_display(spec, name, /):
    """
    Display string of the "--no-<name>" counterpart of a negatable switch.
    """
    return f"--no-{canonical(spec, name)}"


def arg(descr=Unset, /):
    """
    Start declaring a positional argument (required unless .optional() is chained).

    Usage
        files = arg("files to process").variadic()
    """
    return ArgumentBuilder(descr)


def flag(descr=Unset, /):
    """
    Start declaring an option (boolean unless a param is configured).

    Usage
        verbose = flag("display extra information").char("v")
        count = flag("number of retries").optional_param("number", 3)
        color = flag("colorize output").with_negated("disable colors")
    """
    return FlagBuilder(descr)


__all__ = (
    # Specs
    "Param",
    "Positional",
    "Flag",
    "Switch",
    "Parametric",

    # Builders
    "ArgumentBuilder",
    "FlagBuilder",
    "arg",
    "flag",

    # Projections
    "ArgStructure",
    "FlagStructure",
    "structure",
    "freeze",
    "canonical",
    "display",
    "negated_display",
)

del ArgumentType
