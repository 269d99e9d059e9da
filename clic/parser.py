"""
Clic parser: declaration registry and token dispatch.

What this module provides
- Parser: a caller-owned registry with a three-state lifecycle
  (UNINITIALIZED → DECLARING → PARSED). Declarations populate it; a single
  parse() call consumes it, writes the target variables and releases it.
- State: the lifecycle states.

Command structure (uppercase parts optional)
    program SUBCOMMAND PARAMETERS NAMED_ARGUMENTS UNNAMED_ARGUMENTS

Token grammar, in precedence order
- "--"           end of parameters
- "-c"           flag 'c' (two characters, c alphabetic)
- "--no-name"    clear toggle 'name'
- "--name"       set toggle 'name', or valued parameter 'name' (value in the next token),
                 or the built-in --help / --version
- anything else  end of parameters; named arguments are taken from here

Quick start
    from clic import Parser, Variable

    verbose, count, path = Variable(0), Variable(), Variable()

    parser = Parser(shell=True)
    parser.init("demo", "1.0.0", "GPLv3", "Dumb program showcasing clic", unnamed=True)
    parser.add_param_flag(0, "v", "increase verbosity", verbose)
    parser.add_param_int(0, "count", "how many times", 1, count)
    parser.add_arg_string(0, "path", "where to look", path)
    consumed = parser.parse()          # sys.argv by default
    rest = sys.argv[1 + consumed:]     # unnamed arguments, left to the caller

Fault policy
- Every fault goes through Parser.trigger(). With shell=False (default) the
  fault is raised and parsing stops; with shell=True it is printed on stderr
  and the process exits with status 1.
- --help / --version and the dump modes print and exit with status 0.
"""
import difflib
import functools
import logging
import re
import shlex
import sys
from collections import defaultdict
from collections.abc import Iterable
from enum import IntEnum

from . import reports
from .arguments import Scope, Flag, Bool, Int, String
from .faults import *
from .utils import *

logger = logging.getLogger(__name__)

_DUMPS = (None, "synopsis", "options")


class State(IntEnum):
    """lifecycle of a Parser registry."""
    UNINITIALIZED = 0
    DECLARING = 1
    PARSED = 2


@functools.cache
def _ordinal(number):
    """
    Return a human-friendly ordinal label for a 1-based position.

    - 1..10 are rendered as words ("first"…"tenth").
    - Other numbers use numeric ordinals with correct English suffixes.
    """
    try:
        return {
            1: "first",
            2: "second",
            3: "third",
            4: "fourth",
            5: "fifth",
            6: "sixth",
            7: "seventh",
            8: "eighth",
            9: "ninth",
            10: "tenth",
        }[number]
    except KeyError:
        pass

    # 11th, 12th, 13th (and 111th, 112th, 113th, …)
    if 10 < number % 100 < 20:
        return f"{number}th"

    return f'{number}%s' % {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")


def _optional_string(field, value, /):
    if value is not None and not isinstance(value, str):
        raise TypeError(f"parser {field!r} must be a string")
    return value


class Parser:
    """
    Caller-owned declaration registry and command-line parser.

    Lifecycle
    - Parser(...) starts UNINITIALIZED; init() moves it to DECLARING.
    - add_* calls are legal only while DECLARING.
    - parse() is legal only while DECLARING and moves it to PARSED; the
      registry is released afterwards, whatever the outcome.

    Options
    - shell: print faults and exit(1) instead of raising them.
    - fancy: wrap help/version/fault output in rich panels.
    - colorful: style help/version/fault output.
    - dump: None, "synopsis" or "options"; when set, parse() prints that
      manual section and exits without reading any token.

    Notes
    - Instances are independent; nothing is shared across parsers.
    - Not thread-safe: drive init → declarations → parse from one thread.
    """
    shell = mirror("shell")
    fancy = mirror("fancy")
    colorful = mirror("colorful")
    dump = mirror("dump")
    state = mirror("state")
    version = mirror("version")
    license = mirror("license")

    def __init__(self, *, shell=False, fancy=False, colorful=True, dump=None):
        if dump not in _DUMPS:
            raise ValueError("parser 'dump' must be one of %s" % ", ".join(map(repr, _DUMPS)))
        self._shell = bool(shell)
        self._fancy = bool(fancy)
        self._colorful = bool(colorful)
        self._dump = dump

        self._state = State.UNINITIALIZED
        self._main = Unset
        self._version = None
        self._license = None
        self._subcommand = Unset

        # registry storage, released by parse()
        self._scopes = {}
        self._entries = {}
        self._choices = defaultdict(list)

    # ------------------------------------------------------------------
    # introspection
    # ------------------------------------------------------------------

    @property
    def program(self):
        """program name given to init() (None before init)."""
        return None if self._main is Unset else self._main.name

    @property
    def subcommand(self):
        """id of the scope selected by the last parse() (None before parsing)."""
        return nullify(self._subcommand, None)

    @property
    def scopes(self):
        """every declared scope, main scope first."""
        return tuple(([self._main] if self._main else []) + list(self._scopes.values()))

    @property
    def subcommands(self):
        return tuple(self._scopes.values())

    def entries(self, scope=Unset, /):
        """declared parameters and arguments in declaration order (optionally for one scope)."""
        return tuple(entry for entry in self._entries.values() if scope is Unset or entry.scope == scope)

    def choices(self, scope, name, /):
        """registered restricted values of entry `name` in `scope`, in registration order."""
        return tuple(self._choices.get((scope, name), ()))

    # ------------------------------------------------------------------
    # faults
    # ------------------------------------------------------------------

    def trigger(self, fault, /, **options):
        """
        surface `fault` with this parser's runtime options merged in.

        raises the fault (shell=False) or prints it and exits with 1 (shell=True).
        """
        trigger(
            fault,
            **options,
            prog=self.program or "clic",
            shell=self._shell,
            fancy=self._fancy,
            colorful=self._colorful,
        )

    def _check_declaring(self):
        match self._state:
            case State.UNINITIALIZED:
                self.trigger(NotInitializedError(
                    "parser has not been initialized",
                    title="not initialized",
                    code=FaultCode.NOT_INITIALIZED,
                    hint="call init() before any declaration or parse",
                    docs=getdoc(FaultCode.NOT_INITIALIZED),
                ))
            case State.PARSED:
                self.trigger(AlreadyParsedError(
                    "parser has already parsed command line arguments",
                    title="already parsed",
                    code=FaultCode.ALREADY_PARSED,
                    hint="build a new parser for another parse",
                    docs=getdoc(FaultCode.ALREADY_PARSED),
                ))

    def _check_name(self, name, /, *, what="parameter/argument"):
        if not validname(name):
            self.trigger(InvalidNameError(
                "invalid %s name %r" % (what, name),
                title="invalid name",
                code=FaultCode.INVALID_NAME,
                input=name,
                hint="start with a letter and use only letters, '-' or '_'",
                docs=getdoc(FaultCode.INVALID_NAME),
            ))

    def _check_scope(self, scope, /):
        if not isinstance(scope, int):
            raise TypeError("scope identifier must be an integer")
        if scope and scope not in self._scopes:
            self.trigger(UnknownScopeError(
                "subcommand %d has not been declared" % scope,
                title="unknown scope",
                code=FaultCode.UNKNOWN_SCOPE,
                scope=scope,
                hint="declare it with add_subcommand() first, or use 0 for the main scope",
                docs=getdoc(FaultCode.UNKNOWN_SCOPE),
            ))

    def _check_entry(self, scope, name, /, *, declared):
        if declared and (scope, name) not in self._entries:
            self.trigger(UnknownEntryError(
                "parameter/argument %r has not been declared in scope %d" % (name, scope),
                title="unknown parameter/argument",
                code=FaultCode.UNKNOWN_ENTRY,
                input=name,
                scope=scope,
                hint="declare it before registering its values",
                docs=getdoc(FaultCode.UNKNOWN_ENTRY),
            ))
        elif not declared and (scope, name) in self._entries:
            self.trigger(DuplicatedEntryError(
                "parameter/argument %r has already been declared in scope %d" % (name, scope),
                title="duplicated parameter/argument",
                code=FaultCode.DUPLICATED_ENTRY,
                input=name,
                scope=scope,
                hint="pick another name; names are unique per scope regardless of kind",
                docs=getdoc(FaultCode.DUPLICATED_ENTRY),
            ))

    # ------------------------------------------------------------------
    # declarations
    # ------------------------------------------------------------------

    def init(self, program, version=None, license=None, descr=None, unnamed=False):
        """
        establish the main scope (id 0) and the program metadata.

        must be the first call on a parser, and only once.
        """
        if self._state is not State.UNINITIALIZED:
            self.trigger(AlreadyInitializedError(
                "parser has already been initialized",
                title="already initialized",
                code=FaultCode.ALREADY_INITIALIZED,
                hint="call init() exactly once",
                docs=getdoc(FaultCode.ALREADY_INITIALIZED),
            ))
        if not isinstance(program, str):
            raise TypeError("parser 'program' must be a string")
        if not program:
            self.trigger(InvalidNameError(
                "program name cannot be empty",
                title="invalid name",
                code=FaultCode.INVALID_NAME,
                input=program,
                hint="pass the program name as shown in usage lines",
                docs=getdoc(FaultCode.INVALID_NAME),
            ))
        self._version = _optional_string("version", version)
        self._license = _optional_string("license", license)
        self._main = Scope(0, program, descr, unnamed)
        self._state = State.DECLARING
        logger.debug("initialized parser for %r (version=%r)", program, version)
        return self._main

    def add_subcommand(self, id, name, descr=None, unnamed=False):
        """declare subcommand `name` under the nonzero identifier `id`."""
        self._check_declaring()
        if not isinstance(id, int):
            raise TypeError("subcommand identifier must be an integer")
        self._check_name(name, what="subcommand")
        if not id:
            self.trigger(ReservedScopeError(
                "0 is implicitly used as the main scope identifier",
                title="reserved scope",
                code=FaultCode.RESERVED_SCOPE,
                input=name,
                hint="use a nonzero identifier for subcommands",
                docs=getdoc(FaultCode.RESERVED_SCOPE),
            ))
        if id in self._scopes or name in (scope.name for scope in self.scopes):
            self.trigger(DuplicatedScopeError(
                "subcommand %r (%d) has already been declared" % (name, id),
                title="duplicated subcommand",
                code=FaultCode.DUPLICATED_SCOPE,
                input=name,
                scope=id,
                hint="subcommand identifiers and names must be unique",
                docs=getdoc(FaultCode.DUPLICATED_SCOPE),
            ))
        self._scopes[id] = scope = Scope(id, name, descr, unnamed)
        logger.debug("declared subcommand %r (%d)", name, id)
        return scope

    def _add(self, cls, scope, name, /, *args, **kwargs):
        self._check_declaring()
        self._check_name(name)
        self._check_scope(scope)
        self._check_entry(scope, name, declared=False)
        self._entries[scope, name] = entry = cls(scope, name, *args, **kwargs)
        logger.debug("declared %s %r in scope %d", entry.__typename__, name, scope)
        return entry

    def add_param_flag(self, scope, char, descr, variable, mask=0):
        """declare flag `-<char>`: presence sets the target (or its mask bits)."""
        if isinstance(char, str) and len(char) != 1:
            self._check_declaring()
            self.trigger(InvalidNameError(
                "invalid flag name %r" % char,
                title="invalid name",
                code=FaultCode.INVALID_NAME,
                input=char,
                hint="flags are named by a single alphabetic character",
                docs=getdoc(FaultCode.INVALID_NAME),
            ))
        return self._add(Flag, scope, char, descr, variable, mask)

    def add_param_bool(self, scope, name, descr, default, variable, mask=0):
        """declare toggle `--name` / `--no-name`."""
        return self._add(Bool, scope, name, descr, default, variable, mask)

    def add_param_int(self, scope, name, descr, default, variable):
        """declare integer parameter `--name VALUE`."""
        return self._add(Int, scope, name, descr, variable, default=default)

    def add_param_string(self, scope, name, descr, default, variable, restricted=False):
        """declare string parameter `--name VALUE` (restricted values via add_string_option())."""
        return self._add(String, scope, name, descr, variable, default=default, restricted=restricted)

    def add_arg_int(self, scope, name, descr, variable):
        """declare a required positional integer argument."""
        return self._add(Int, scope, name, descr, variable, required=True)

    def add_arg_string(self, scope, name, descr, variable, restricted=False):
        """declare a required positional string argument."""
        return self._add(String, scope, name, descr, variable, required=True, restricted=restricted)

    def add_string_option(self, scope, name, value):
        """register `value` as an accepted literal of restricted string `name` in `scope`."""
        self._check_declaring()
        self._check_scope(scope)
        self._check_name(name)
        self._check_entry(scope, name, declared=True)
        entry = self._entries[scope, name]
        if not isinstance(entry, String) or not entry.restricted:
            self.trigger(UnrestrictedEntryError(
                "%s %r does not restrict its values" % (entry.__typename__, name),
                title="unrestricted parameter/argument",
                code=FaultCode.UNRESTRICTED_ENTRY,
                input=name,
                scope=scope,
                entry=entry,
                hint="declare it as a restricted string to register accepted values",
                docs=getdoc(FaultCode.UNRESTRICTED_ENTRY),
            ))
        if not isinstance(value, str):
            raise TypeError("restricted value must be a string")
        if value not in (choices := self._choices[scope, name]):
            choices.append(value)
        logger.debug("registered value %r for %r in scope %d", value, name, scope)

    # ------------------------------------------------------------------
    # parsing
    # ------------------------------------------------------------------

    def parse(self, tokens=Unset, subcommand=Unset):
        """
        parse `tokens` (argv-like, tokens[0] being the program name).

        parameters
        - tokens: Unset → sys.argv; str → shlex.split(); Iterable[str] otherwise.
        - subcommand: optional target cell receiving the selected scope id
          (also available afterwards as Parser.subcommand).

        returns
        - the number of tokens consumed after the program name (subcommand,
          parameters, "--" and named arguments); unnamed arguments start at
          tokens[1 + result].
        """
        self._check_declaring()
        if subcommand is not Unset and not hasattr(subcommand, "value"):
            raise TypeError("parse() 'subcommand' must expose a 'value' attribute")
        # dump modes never look at the token stream
        if not self._dump:
            tokens = self._tokenize(tokens)
        self._state = State.PARSED
        try:
            match self._dump:
                case "synopsis":
                    reports.synopsis(self)
                    sys.exit(0)
                case "options":
                    reports.options(self)
                    sys.exit(0)
            return self._parseargs(tokens, subcommand)
        finally:
            self._release()

    @staticmethod
    def _tokenize(tokens):
        if tokens is Unset:
            return list(sys.argv)
        if isinstance(tokens, str):
            return shlex.split(tokens)
        if isinstance(tokens, Iterable):
            tokens = list(tokens)
            if not all(isinstance(token, str) for token in tokens):
                raise TypeError("parse() argument must be a string or an iterable of strings")
            return tokens
        raise TypeError("parse() argument must be a string or an iterable of strings")

    def _release(self):
        self._scopes.clear()
        self._entries.clear()
        self._choices.clear()
        logger.debug("released parser registry")

    def _route(self, scope):
        return self.program if scope.main else "%s %s" % (self.program, scope.name)

    def _parseargs(self, tokens, subcommand):
        consumed = 0

        # subcommand detection (exact match on the first argument)
        scope = self._main
        if len(tokens) > 1:
            for candidate in self._scopes.values():
                if tokens[1] == candidate.name:
                    scope = candidate
                    consumed += 1
                    break
        self._subcommand = scope.id
        if subcommand is not Unset:
            subcommand.value = scope.id
        logger.debug("active scope %r (%d)", scope.name, scope.id)

        for entry in self.entries(scope.id):
            if not entry.required:
                self._apply_default(entry)

        # parameters
        while (position := 1 + consumed) < len(tokens):
            token = tokens[position]
            if token == "--":
                consumed += 1
                break
            if len(token) == 2 and token[0] == "-" and token[1].isalpha():
                form, name = "short", token[1]
            elif token.startswith("--no-"):
                form, name = "negative", token[5:]
            elif token.startswith("--"):
                form, name = "positive", token[2:]
            else:
                break

            if (entry := self._lookup(scope, name, form)) is None:
                if token == "--help":
                    reports.helper(self, scope)
                    sys.exit(0)
                if token == "--version" and self._version:
                    reports.versioner(self)
                    sys.exit(0)
                self._unrecognized(scope, token, position)

            logger.debug("dispatching %r to %s %r", token, entry.__typename__, entry.name)
            match entry:
                case Flag():
                    self._toggle(entry, True)
                    consumed += 1
                case Bool():
                    self._toggle(entry, form != "negative")
                    consumed += 1
                case Int() | String():
                    if position + 1 >= len(tokens):
                        self.trigger(MissingValueError(
                            "parameter %r at %s position is missing its value" % (token, _ordinal(position)),
                            title="missing value",
                            code=FaultCode.MISSING_VALUE,
                            input=token,
                            index=position,
                            entry=entry,
                            hint="add a value after the parameter (for example: %s <%s>)" % (token, entry.name),
                            docs=getdoc(FaultCode.MISSING_VALUE),
                        ))
                    self._assign(entry, tokens[position + 1], position + 1, token)
                    consumed += 2

        # named arguments, in declaration order
        for entry in self.entries(scope.id):
            if not entry.required:
                continue
            if (position := 1 + consumed) >= len(tokens):
                self.trigger(MissingArgumentError(
                    "missing required argument <%s> at %s position" % (entry.name, _ordinal(position)),
                    title="missing required argument",
                    code=FaultCode.MISSING_ARGUMENT,
                    input=entry.name,
                    index=position,
                    entry=entry,
                    hint="run '%s --help' to see expected arguments" % self._route(scope),
                    docs=getdoc(FaultCode.MISSING_ARGUMENT),
                ))
            self._assign(entry, tokens[position], position, entry.name)
            consumed += 1

        # unnamed arguments are left to the caller, when accepted
        if not scope.unnamed and 1 + consumed < len(tokens):
            self.trigger(TooManyArgumentsError(
                "too many arguments from %s position" % _ordinal(1 + consumed),
                title="too many arguments",
                code=FaultCode.TOO_MANY_ARGUMENTS,
                input=tokens[1 + consumed],
                index=1 + consumed,
                leftover=tokens[1 + consumed:],
                hint="remove the extra inputs; run '%s --help' to see valid forms" % self._route(scope),
                docs=getdoc(FaultCode.TOO_MANY_ARGUMENTS),
            ))

        logger.debug("consumed %d token(s)", consumed)
        return consumed

    def _lookup(self, scope, name, form):
        # named arguments are positional only; the token form must agree with the kind
        entry = self._entries.get((scope.id, name))
        if entry is None or entry.required:
            return None
        match form, entry:
            case "short", Flag():
                return entry
            case "negative", Bool():
                return entry
            case "positive", Bool() | Int() | String():
                return entry
        return None

    def _unrecognized(self, scope, token, position):
        switches = [switch for entry in self.entries(scope.id) for switch in entry.switches]
        switches.append("--help")
        if self._version:
            switches.append("--version")
        suggestions = difflib.get_close_matches(token, switches, 5)
        try:
            hint = "did you mean %r? you can also run '%s --help' to see valid parameters" % (
                suggestions[0], self._route(scope)
            )
        except IndexError:
            hint = "run '%s --help' to see valid parameters" % self._route(scope)
        self.trigger(UnrecognizedParameterError(
            "unrecognized parameter %r at %s position" % (token, _ordinal(position)),
            title="unrecognized parameter",
            code=FaultCode.UNRECOGNIZED_PARAMETER,
            input=token,
            index=position,
            suggestions=suggestions,
            hint=hint,
            docs=getdoc(FaultCode.UNRECOGNIZED_PARAMETER),
        ))

    @staticmethod
    def _toggle(entry, on):
        variable = entry.variable
        if not entry.mask:
            variable.value = int(on)
        elif on:
            variable.value = (variable.value or 0) | entry.mask
        else:
            variable.value = (variable.value or 0) & ~entry.mask

    def _apply_default(self, entry):
        match entry:
            case Bool():
                self._toggle(entry, bool(entry.default))
            case Int() | String() if entry.default is not Unset:
                entry.variable.value = entry.default

    def _assign(self, entry, value, position, input):
        match entry:
            case Int():
                if not re.fullmatch(r"[+-]?[0-9]+", value):
                    self.trigger(InvalidIntegerError(
                        "value %r at %s position is not a valid integer (for %r)" % (value, _ordinal(position), input),
                        title="invalid integer",
                        code=FaultCode.INVALID_INTEGER,
                        input=input,
                        index=position,
                        entry=entry,
                        hint="use a decimal integer such as 42 or -7",
                        docs=getdoc(FaultCode.INVALID_INTEGER),
                    ))
                entry.variable.value = int(value)
            case String():
                if entry.restricted and value not in (choices := self.choices(entry.scope, entry.name)):
                    self.trigger(InvalidChoiceError(
                        "value %r at %s position is not a valid choice (for %r)" % (value, _ordinal(position), input),
                        title="invalid choice",
                        code=FaultCode.INVALID_CHOICE,
                        input=input,
                        index=position,
                        entry=entry,
                        choices=choices,
                        hint="use one of: %s" % (" · ".join(choices) or "(none registered)"),
                        docs=getdoc(FaultCode.INVALID_CHOICE),
                    ))
                # stored by reference: the token object itself
                entry.variable.value = value


__all__ = (
    "Parser",
    "State",
)
