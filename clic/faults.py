"""
Clic faults: what can go wrong, and how it is shown.

Two families
- ConfigurationError: the program declared or drove the parser incorrectly
  (wrong lifecycle order, bad names, duplicates). These are bugs in the host
  program, not in the command line.
- UserInputError: the command line itself is wrong. Messages name the
  offending token and its ordinal position ("at second position") and come
  with one hint.

Every fault carries a FaultCode. Hosts may relabel codes through a __codes__
mapping in __main__ and attach longer explanations through __docs__.

Surfacing
- trigger(fault, **options) merges the parser's runtime options into the
  fault, then either raises it (shell=False) or prints it on stderr and exits
  with status 1 (shell=True).
"""
import sys
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    stable numeric identifier of every fault.

    - 111xx: parameter tokens (switches and their values).
    - 112xx: positional tokens (named and trailing arguments).
    - 211xx: parser lifecycle.
    - 212xx: declarations (names, scopes, entries).
    """
    # --- parameter tokens (111xx) ---
    UNRECOGNIZED_PARAMETER      = 11111
    MISSING_VALUE               = 11112
    INVALID_INTEGER             = 11113
    INVALID_CHOICE              = 11114

    # --- positional tokens (112xx) ---
    MISSING_ARGUMENT            = 11121
    TOO_MANY_ARGUMENTS          = 11122

    # --- lifecycle (211xx) ---
    NOT_INITIALIZED             = 21101
    ALREADY_INITIALIZED         = 21102
    ALREADY_PARSED              = 21103

    # --- declarations (212xx) ---
    INVALID_NAME                = 21201
    RESERVED_SCOPE              = 21211
    DUPLICATED_SCOPE            = 21212
    UNKNOWN_SCOPE               = 21213
    DUPLICATED_ENTRY            = 21221
    UNKNOWN_ENTRY               = 21222
    UNRESTRICTED_ENTRY          = 21223

    def normalize(self):
        """label shown for this code: __main__.__codes__[self] when present, else the number."""
        labels = getattr(__import__("__main__"), "__codes__", {})
        return str(labels.get(self, self.value))


class ClicError(Exception):
    """
    base fault: a message plus read-only rendering/context options.

    options (all optional)
    - title, code, hint, docs: what the renderer shows.
    - prog: program name shown in the header.
    - shell, fancy, colorful: runtime policy (see trigger()).
    - input, index, entry, scope, choices, suggestions: context about the
      failing token or declaration, for callers that recover from the fault.
    """
    __title__ = "error"

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(*(() if message is Unset else (message,)))
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def code(self):
        return self.options.get("code")

    def __rich__(self):
        main = __import__("__main__")
        colorful = self.options.get("colorful", False)

        palette = defaultdict(str, {
            "prog": "bold #F5F5F5",
            "code": "bold #38BDF8",
            "title": "bold #F43F5E",
            "message": "#D4D4D8",
            "arrow": "dim #86EFAC",
            "hint": "italic #86EFAC",
            "docs": "#A1A1AA",
        } | getattr(main, "__styles__", {}))

        def styled(fragment, role):
            return Text(str(fragment), palette[role] if colorful else "")

        header = Text.assemble(
            "[ ",
            styled(getattr(main, "__prog__", self.options.get("prog", "clic")), "prog"),
            *((" — ", styled(self.code.normalize(), "code")) if self.code is not None else ()),
            " | ",
            styled(self.options.get("title", self.__title__).title(), "title"),
            " ]",
        )

        body = [styled(self.message or "", "message")]
        if hint := self.options.get("hint"):
            body.append(Text.assemble(styled(" → ", "arrow"), styled(hint, "hint")))
        if docs := self.options.get("docs"):
            body.append(styled(docs, "docs"))

        if self.options.get("fancy", False):
            return Panel(Group(*body), title=header, title_align="left")
        return Group(header, *body)

    def __trigger__(self):
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        sys.exit(1)

    def __replace__(self, /, **overrides):
        """copy of this fault with `overrides` layered over its options."""
        fault = type(self)(self.message, **(dict(self.options) | overrides))
        fault.__cause__ = self.__cause__
        return fault


class ConfigurationError(ClicError):
    """the host program misused the declaration or parsing API."""
    __title__ = "configuration error"


class UserInputError(ClicError):
    """the command line is invalid; raised at the first offending token."""
    __title__ = "input error"


class NotInitializedError(ConfigurationError): ...
class AlreadyInitializedError(ConfigurationError): ...
class AlreadyParsedError(ConfigurationError): ...
class InvalidNameError(ConfigurationError): ...
class ReservedScopeError(ConfigurationError): ...
class DuplicatedScopeError(ConfigurationError): ...
class UnknownScopeError(ConfigurationError): ...
class DuplicatedEntryError(ConfigurationError): ...
class UnknownEntryError(ConfigurationError): ...
class UnrestrictedEntryError(ConfigurationError): ...

class UnrecognizedParameterError(UserInputError): ...
class MissingValueError(UserInputError): ...
class InvalidIntegerError(UserInputError): ...
class InvalidChoiceError(UserInputError): ...
class MissingArgumentError(UserInputError): ...
class TooManyArgumentsError(UserInputError): ...


def trigger(fault, /, **options):
    """
    surface `fault` once `options` (prog, shell, fancy, colorful, context...)
    have been merged into it: raise it, or print it and exit(1) in shell mode.
    """
    if not isinstance(fault, ClicError):
        raise TypeError("trigger() argument must be a clic fault")
    fault.__replace__(**options).__trigger__()


def getdoc(code, /):
    """
    longer explanation of `code` provided by the host through __main__.__docs__,
    or None.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault code")
    return getattr(__import__("__main__"), "__docs__", {}).get(code)


__all__ = (
    "ClicError",
    "ConfigurationError",
    "UserInputError",
    "NotInitializedError",
    "AlreadyInitializedError",
    "AlreadyParsedError",
    "InvalidNameError",
    "ReservedScopeError",
    "DuplicatedScopeError",
    "UnknownScopeError",
    "DuplicatedEntryError",
    "UnknownEntryError",
    "UnrestrictedEntryError",
    "UnrecognizedParameterError",
    "MissingValueError",
    "InvalidIntegerError",
    "InvalidChoiceError",
    "MissingArgumentError",
    "TooManyArgumentsError",
    "FaultCode",
    "trigger",
    "getdoc",
)
