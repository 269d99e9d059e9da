r"""
Clic declarations: scopes, entries and target variables.

Overview
- Variable
  • Mutable cell standing for a caller's target variable. The parser writes
    `variable.value` directly; any object exposing a writable `value` works.

- Scope
  • The main program (id 0) or one subcommand; owns a namespace of entries.

- Entries (tagged by Kind)
  • Flag: presence-only short switch (-v), optional bit mask.
  • Bool: --name / --no-name switch with a default, optional bit mask.
  • Int: --name VALUE parameter or positional argument holding an integer.
  • String: --name VALUE parameter or positional argument holding a string,
    optionally restricted to a registered set of literals.
  Parameters are optional (required=False); named arguments are positional and
  required (required=True).

Introspection & representation
- EntryType metaclass provides stable __repr__/__rich_repr__ and exposes the
  fields declared in __introspectable__ as read-only properties.
- Concrete classes are sealed against subclassing.

Quick example:
    >>> verbose = Variable(0)
    >>> Flag(0, "v", "increase verbosity", verbose, 0)
    flag(scope=0, name='v', descr='increase verbosity', kind=<Kind.FLAG: 1>, ...)
"""
import functools
import operator
import re
from enum import IntEnum

from .utils import *


class Kind(IntEnum):
    """
    value kind of a declared entry; drives token consumption during parsing.
    """
    FLAG = 1
    BOOL = 2
    INT = 3
    STRING = 4


class Variable:
    """
    mutable cell standing for a caller-owned target variable.

    the parser writes through `value` synchronously; nothing is buffered, so
    a fault raised midway leaves the already-processed cells updated.
    """
    __slots__ = ("value",)

    def __init__(self, value=None, /):
        self.value = value

    def __repr__(self):
        return f"variable({self.value!r})"

    def __rich_repr__(self):
        yield self.value


class EntryType(type):
    """
    Metaclass for declaration records (scopes and entries).

    Responsibilities
    - Derive __typename__ from the class name for messages and help output.
    - Expose every name in __introspectable__ as a read-only property mirroring
      the private "_name" backing field.
    - Provide stable __repr__/__rich_repr__ implementations.
    - Seal classes declared with `final=True` against subclassing.
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
            return "%s(%s)" % (
                type(self).__typename__,
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__())),
            )
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in type(self).__introspectable__:
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        if options.get("final", False):
            @rename("__init_subclass__")
            def __init_subclass__(cls, **options):  # NOQA: F-841
                raise TypeError(f"type {self.__name__!r} is not an acceptable base type")
            self.__init_subclass__ = classmethod(__init_subclass__)

        return self


def _check_descr(cls, descr, /):
    if descr is not None and not isinstance(descr, str):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    return descr


def _check_variable(cls, variable, /):
    # anything with a writable `value` can stand for a target variable
    if not hasattr(variable, "value"):
        raise TypeError(f"{cls.__typename__} 'variable' must expose a 'value' attribute")
    return variable


def _check_int(cls, field, value, /):
    if not isinstance(value, int):
        raise TypeError(f"{cls.__typename__} {field!r} must be an integer")
    return value


class Scope(metaclass=EntryType, final=True):
    """
    the main program scope (id 0) or one subcommand.

    fields
    - id: int, 0 for the main program, nonzero for subcommands.
    - name: program name (main) or the token that selects the subcommand.
    - descr: optional one-line description.
    - unnamed: whether unnamed arguments may follow the named ones.
    """
    __introspectable__ = ("id", "name", "descr", "unnamed")

    def __init__(self, id, name, descr=None, unnamed=False):
        self._id = _check_int(type(self), "id", id)
        self._name = name
        self._descr = _check_descr(type(self), descr)
        self._unnamed = bool(unnamed)

    @property
    def main(self):
        return self._id == 0


class Entry(metaclass=EntryType):
    """
    common shape of a declared parameter or named argument.

    fields
    - scope: owning scope id.
    - name: lookup name ('v' for -v, 'color' for --color/--no-color).
    - descr: optional description shown in help.
    - kind: Kind tag of the concrete class.
    - required: True for positional (named) arguments, False for parameters.
    - default: value written to the target before parsing (Unset when none).
    - variable: target cell written by the parser.
    """
    __introspectable__ = ("scope", "name", "descr", "kind", "required", "default", "variable")
    _kind = Unset

    def __init__(self, scope, name, descr, variable, *, required=False, default=Unset):
        self._scope = _check_int(type(self), "scope", scope)
        self._name = name
        self._descr = _check_descr(type(self), descr)
        self._variable = _check_variable(type(self), variable)
        self._required = bool(required)
        self._default = default

    @property
    def switches(self):
        """command-line spellings that address this entry (empty for named arguments)."""
        if self._required:
            return ()
        return ("--" + self._name,)


class Flag(Entry, final=True):
    """
    presence-only short switch: `-<char>`.

    mask 0 → the target becomes 1; otherwise the mask bits are set.
    flags have no default: an absent flag leaves the target untouched.
    """
    __introspectable__ = Entry.__introspectable__ + ("mask",)
    _kind = Kind.FLAG

    def __init__(self, scope, name, descr, variable, mask=0):
        super().__init__(scope, name, descr, variable)
        self._mask = _check_int(type(self), "mask", mask)

    @property
    def switches(self):
        return ("-" + self._name,)


class Bool(Entry, final=True):
    """
    toggle: `--name` sets, `--no-name` clears (whole value or mask bits only).
    """
    __introspectable__ = Entry.__introspectable__ + ("mask",)
    _kind = Kind.BOOL

    def __init__(self, scope, name, descr, default, variable, mask=0):
        super().__init__(scope, name, descr, variable, default=_check_int(type(self), "default", default))
        self._mask = _check_int(type(self), "mask", mask)

    @property
    def switches(self):
        return ("--" + self._name, "--no-" + self._name)


class Int(Entry, final=True):
    """
    integer parameter (`--name VALUE`, with default) or named argument (required).
    """
    _kind = Kind.INT

    def __init__(self, scope, name, descr, variable, *, required=False, default=Unset):
        if default is not Unset:
            _check_int(type(self), "default", default)
        super().__init__(scope, name, descr, variable, required=required, default=default)


class String(Entry, final=True):
    """
    string parameter (`--name VALUE`, with default) or named argument (required).

    when restricted, accepted values are the literals registered afterwards
    with Parser.add_string_option().
    """
    __introspectable__ = Entry.__introspectable__ + ("restricted",)
    _kind = Kind.STRING

    def __init__(self, scope, name, descr, variable, *, required=False, default=Unset, restricted=False):
        if default is not Unset and default is not None and not isinstance(default, str):
            raise TypeError(f"{type(self).__typename__} 'default' must be a string")
        super().__init__(scope, name, descr, variable, required=required, default=default)
        self._restricted = bool(restricted)


__all__ = (
    "Kind",
    "Variable",
    "Scope",
    "Entry",
    "Flag",
    "Bool",
    "Int",
    "String",
)

# Keep the metaclass out of star-imports; it is not part of the public API.
del EntryType
