"""
Sextant utilities (internal helpers, carefully exposed)

Scope
- Core building blocks shared by the declaration, validation and normalization layers.

Overview
- UnsetType / Unset
  • Singleton sentinel to represent “value not provided” without conflating with None.
  • Falsey (bool(Unset) is False), printable as "Unset", and non-subclassable.

- coalesce(value, default=None)
  • Replace Unset with a concrete default, but preserve legitimate falsey values like None/0/""/[].

- rename(callable, name) / @rename("name")
  • Assign stable __name__/__qualname__ to generated wrappers for clean tracebacks and help.

- mirror("attr")
  • Read-only property factory exposing a private backing field (self._attr) with fresh
    copies for containers, so a frozen spec cannot be mutated through its public API.

- kebab(name) / negated(key)
  • Canonical option naming: camel-case (and snake-case) keys become kebab-case,
    and "no-" prefixed keys are recognized as negation targets.

Quick examples
    >>> coalesce(Unset, "fallback")
    'fallback'
    >>> kebab("dryRun")
    'dry-run'
    >>> negated("no-color")
    True
"""
import builtins
import functools
from collections.abc import Sequence, Mapping, Set
from typing import final


@final
class UnsetType:
    """
    Internal sentinel type representing a value that was not provided.

    This is used when None is a legitimate user value, but the API needs a way
    to distinguish “not provided” from “provided as None”. A single instance,
    Unset, is exposed for use as the default in internal parameters.

    Characteristics
    - Boolean-false: bool(Unset) is False, but it is distinct from None and 0.
    - Printable: repr(Unset) -> "Unset" for friendly diagnostics.
    - Non-subclassable: this type is sealed; do not subclass.
    - Singleton per process: UnsetType() always yields the same instance.
    """

    def __or__(self, other, /):
        """
        Support PEP 604 unions in annotations (e.g., str | UnsetType).
        """
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        """
        Support reversed PEP 604 unions when UnsetType appears on the right.
        """
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        """
        Ensure a single instance for this sentinel type.
        """
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __copy__(self):
        return self

    def __deepcopy__(self, memo, /):
        return self

    def __init_subclass__(cls, **options):
        """
        Disallow subclassing to preserve sentinel semantics.
        """
        raise TypeError("type 'UnsetType' is not an acceptable base type")


def coalesce(object, default=None, /):
    """
    Resolve an internal Unset sentinel to a concrete default.

    This returns the given object unless it is the Unset sentinel, in which case
    the provided default is returned. Falsey values like None, 0, "", or [] are
    preserved as-is; they are not treated as “unset”.

    Examples
    - coalesce("name", "fallback") -> "name"
    - coalesce(Unset, "fallback")  -> "fallback"
    - coalesce(None, "fallback")   -> None
    """
    return object if object is not Unset else default


def rename(*parameters):
    """
    Set a stable __name__/__qualname__ on a callable, or return a decorator
    that will do so later.

    Forms
    - Function form: rename(callable, name) -> callable
    - Decorator form: rename(name) -> decorator

    Notes
    - This utility does not alter behavior beyond metadata.
    - Some built-in or C-implemented callables are not updatable and will
      raise TypeError.
    """
    match len(parameters):
        case 2:
            callable, name = parameters
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            if not isinstance(name, str):
                raise TypeError("rename() second argument must be a string")
            try:
                callable.__qualname__ = name
                callable.__name__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() first argument must be a updatable callable") from None
            return callable
        case 1:
            name, = parameters
            if not isinstance(name, str):
                raise TypeError("@rename() argument must be a string")

            def wrapper(callable):
                if not builtins.callable(callable):
                    raise TypeError("@rename() must be applied to a callable")
                return rename(callable, name)

            return rename(wrapper, "rename")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def _immortalize(object):
    """
    Recursively copy container values, processing nested items.

    Behavior
    - Sequence (non-string): returns a new list with each element processed.
    - Mapping: returns a new dict with values processed (keys preserved).
    - Set: returns a new set with each element processed.
    - NamedTuple and anything else: returned as-is.
    """
    if isinstance(object, tuple) and hasattr(object, "_fields"):
        return object
    if isinstance(object, Sequence) and not isinstance(object, str):
        return list(map(_immortalize, object))
    elif isinstance(object, Mapping):
        return dict(zip(object.keys(), map(_immortalize, object.values())))
    elif isinstance(object, Set):
        return set(map(_immortalize, object))
    else:
        return object


def mirror(name, /):
    """
    Define a read-only property that mirrors a private backing attribute.

    The generated property reads "_{name}" on the instance and returns fresh
    copies of container values, so callers can never mutate a frozen spec.

    Example
    - Given self._items, declare items = mirror("items") to expose it safely.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _immortalize(getattr(self, "_" + name))

    return property(getter)


@functools.cache
def kebab(name, /):
    """
    Convert a declared key into its kebab-case external name.

    Every uppercase character after the first is lowered and prefixed with a
    hyphen; underscores become hyphens so snake-case keys read the same way.

    Examples
    - kebab("verbose")     -> "verbose"
    - kebab("dryRun")      -> "dry-run"
    - kebab("noColor")     -> "no-color"
    - kebab("dry_run")     -> "dry-run"
    - kebab("DeviceType")  -> "device-type"
    """
    if not isinstance(name, str):
        raise TypeError("kebab() argument must be a string")

    chars = []
    for index, char in enumerate(name):
        if char == "_":
            chars.append("-")
        elif index > 0 and char.lower() != char:
            chars.append("-" + char.lower())
        else:
            chars.append(char.lower())
    return "".join(chars)


def negated(key, /):
    """
    Tell whether a canonical key names a negation target ("no-" prefixed).
    """
    return key.startswith("no-")


Unset = UnsetType()
"""
Internal sentinel for “not provided”.

Notes
- Singleton: there is only one Unset instance.
- Distinct from None: equality and identity checks must not treat it as None.
- Falsey: bool(Unset) is False, but it is not equivalent to None or 0.
"""


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "mirror",
    "kebab",
    "negated",

    # Types
    "UnsetType",

    # Constants
    "Unset",
)
