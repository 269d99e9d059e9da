"""
Clic utilities shared by the declaration, parser and reporter layers.

Contents
- Unset: the "argument not given" marker, kept apart from None because None is
  a meaningful default for string targets.
- nullify(): collapse Unset into a fallback.
- rename(): decorator fixing __name__/__qualname__ of generated accessors.
- mirror(): read-only property over a "_name" backing field.
- validname(): the identifier rule every scope, parameter and argument obeys.

    >>> nullify(Unset, 0), nullify(None, 0)
    (0, None)
    >>> validname("dry-run"), validname("2fast")
    (True, False)
"""
import functools
from collections.abc import Sequence, Mapping, Set
from types import MappingProxyType
from typing import final


@final
class UnsetType:
    """
    type of the Unset marker.

    there is only ever one instance; it is falsy, prints as "Unset" and can
    take part in `X | Unset` unions for isinstance() checks.
    """

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __or__(self, other, /):
        try:
            return type(self) | other
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("UnsetType cannot be subclassed")


Unset = UnsetType()


def nullify(object, default=None, /):
    """`default` if `object` is Unset, else `object` (None and 0 are kept)."""
    return default if object is Unset else object


def rename(name, /):
    """
    decorator giving the wrapped function the public name `name`.

    generated accessors otherwise all show up as "getter" in tracebacks and
    reprs.
    """
    if not isinstance(name, str):
        raise TypeError("rename() argument must be a string")

    def decorator(function):
        function.__name__ = function.__qualname__ = name
        return function

    return decorator


def mirror(name, /):
    """
    read-only property exposing `self._<name>`.

    sequences, mappings and sets are handed out as tuple, MappingProxyType and
    frozenset so callers cannot reach into the registry through them.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        value = getattr(self, "_" + name)
        match value:
            case str():
                return value
            case Sequence():
                return tuple(value)
            case Mapping():
                return MappingProxyType(value)
            case Set():
                return frozenset(value)
        return value

    return property(getter)


def validname(name, /):
    """
    tell whether `name` is usable as a scope, parameter or argument name.

    rules
    - must be a non-empty string.
    - the first character must be alphabetic (unicode letters included).
    - every character must be alphabetic, '-' or '_'.

    examples
    - "verbose", "dry-run", "log_level", "v"  → True
    - "", "-x", "2fast", "with space", "a.b"  → False
    """
    if not isinstance(name, str) or not name or not name[0].isalpha():
        return False
    return all(char.isalpha() or char in "-_" for char in name)


__all__ = (
    # Functions
    "nullify",
    "rename",
    "mirror",
    "validname",

    # Types
    "UnsetType",

    # Constants
    "Unset",
)
