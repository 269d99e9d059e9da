"""
Clic reporter: help, version and manual-page sections.

What this module provides
- helper(parser, scope): help screen for the main program or one subcommand.
- versioner(parser): version string (plus license when declared).
- synopsis(parser): roff SYNOPSIS section covering every scope.
- options(parser): roff OPTIONS section covering every parameter and named argument.

Contract
- Reporters only print; they never consume or validate tokens. The parser
  terminates the process right after calling them.
- help/version render with rich and honor the parser's `fancy` (panel chrome)
  and `colorful` (palette) options. Palette entries can be overridden with a
  __styles__ mapping in __main__.
- synopsis/options emit plain roff meant to be pasted into a manual page; no
  styling is applied to them.
"""
from collections import defaultdict

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .arguments import Kind, Flag, Bool, Int, String


def _palette(parser):
    styles = defaultdict(str, {
        # === Head sections ===
        "usage-label": "bold #00E6FF",  # CYAN → signature info color
        "program-name": "bold #FF4D94",  # MAGENTA-PINK → brand pop
        "usage-section": "bold #36C5F0",  # SKY-BLUE → softer than cyan
        "description-section": "italic #A3A3A3",  # Neutral gray

        # === Groups / entries ===
        "group-label": "bold #FFFFFF",  # Pure white headers
        "entry-description": "#9CA3AF",  # Muted gray
        "default": "dim #9CA3AF",

        # === Names / metavars ===
        "parameter-name": "bold #00E6FF",  # CYAN for valued parameters
        "flag-name": "bold #22C55E",  # GREEN for flags and toggles
        "metavar": "bold #FFD600",  # AMBER for values
        "choice": "bold #FF4D94",  # MAGENTA → choices stand out

        # === Subcommands table ===
        "subcommand": "bold #36C5F0",
        "subcommand-description": "#9CA3AF",

        # === Version ===
        "program-version": "bold #00E6FF",
        "license-label": "bold #FFFFFF",
        "license-section": "#9CA3AF",

        # === Fancy panel ===
        "panel-title": "bold #FF4D94",
    } | getattr(__import__("__main__"), "__styles__", {}))

    def styler(style):
        return styles[style] if parser.colorful else ""

    def text(fragment, style=""):
        # Normalize to Rich Text. In non-colorful mode, strip styles; preserve existing Text spans.
        if isinstance(fragment, Text):
            return fragment if parser.colorful else Text(fragment.plain)
        return Text(str(fragment), style if parser.colorful else "")

    return styler, text


def _default(entry):
    """human-readable default for help/options output, or None when there is nothing to show."""
    match entry:
        case Flag():
            return None
        case Bool():
            return "on" if entry.default else "off"
        case Int() if not entry.required:
            return str(entry.default)
        case String() if not entry.required and entry.default is not None:
            return repr(entry.default)
    return None


def helper(parser, scope):
    """
    Render the help screen of `scope` to stdout.

    Layout
    - usage line synthesized from the scope's parameters and named arguments.
    - description of the scope.
    - subcommands table (main scope only).
    - parameters and arguments with descriptions, defaults, masks and choices.
    - version/license footer (main scope only).
    """
    console = Console()
    styler, text = _palette(parser)
    entries = parser.entries(scope.id)
    prog = parser.program if scope.main else "%s %s" % (parser.program, scope.name)

    def metavar(entry):
        if isinstance(entry, String) and entry.restricted:
            return Text.assemble("{", Text(",").join(
                text(choice, styler("choice")) for choice in parser.choices(scope.id, entry.name)
            ), "}")
        return text("<%s>" % entry.name, styler("metavar"))

    def switch(entry):
        match entry:
            case Flag():
                return text("-" + entry.name, styler("flag-name"))
            case Bool():
                return text("--[no-]" + entry.name, styler("flag-name"))
        return Text.assemble(text("--" + entry.name, styler("parameter-name")), " ", metavar(entry))

    renders = []

    # Usage: program (and subcommand) + [parameters] + named arguments + unnamed tail
    usage = Text()
    usage.append(text("usage", styler("usage-label"))).append(": ")
    usage.append(text(prog, styler("program-name")))
    if scope.main and parser.subcommands:
        usage.append(" ").append(text("[<subcommand>]", styler("usage-section")))
    for entry in entries:
        usage.append(" ")
        if entry.required:
            usage.append(metavar(entry))
        else:
            usage.append(Text.assemble("[", switch(entry), "]"))
    if scope.unnamed:
        usage.append(" ").append(text("[--] [<argument> ...]", styler("usage-section")))
    renders.append(usage)

    if scope.descr:
        renders.append(Text("\n").append(text(scope.descr, styler("description-section"))))

    if scope.main and parser.subcommands:
        table = Table.grid(padding=(0, 2))
        table.add_column(no_wrap=True)
        table.add_column()
        for subcommand in parser.subcommands:
            table.add_row(
                text("  " + subcommand.name, styler("subcommand")),
                text(subcommand.descr or "", styler("subcommand-description")),
            )
        renders.append(Text("\n").append(text("subcommands", styler("group-label"))).append(":"))
        renders.append(table)

    def describe(entry):
        description = text(entry.descr or "", styler("entry-description"))
        notes = []
        if (default := _default(entry)) is not None:
            notes.append("default: %s" % default)
        if isinstance(entry, Flag | Bool) and entry.mask:
            notes.append("mask: %#x" % entry.mask)
        if notes:
            description = Text.assemble(description, " " * bool(entry.descr), text("(%s)" % ", ".join(notes), styler("default")))
        return description

    parameters = Table.grid(padding=(0, 2))
    parameters.add_column(no_wrap=True)
    parameters.add_column()
    for entry in entries:
        if not entry.required:
            parameters.add_row(Text.assemble("  ", switch(entry)), describe(entry))
    parameters.add_row(Text.assemble("  ", text("--help", styler("flag-name"))), text("print this help and exit", styler("entry-description")))
    if parser.version:
        parameters.add_row(Text.assemble("  ", text("--version", styler("flag-name"))), text("print the version and exit", styler("entry-description")))
    renders.append(Text("\n").append(text("parameters", styler("group-label"))).append(":"))
    renders.append(parameters)

    if arguments := [entry for entry in entries if entry.required]:
        table = Table.grid(padding=(0, 2))
        table.add_column(no_wrap=True)
        table.add_column()
        for entry in arguments:
            table.add_row(Text.assemble("  ", metavar(entry)), describe(entry))
        renders.append(Text("\n").append(text("arguments", styler("group-label"))).append(":"))
        renders.append(table)

    if scope.main and (parser.version or parser.license):
        footer = Text("\n")
        if parser.version:
            footer.append("version: ").append(text(parser.version, styler("program-version")))
        if parser.version and parser.license:
            footer.append(" · ")
        if parser.license:
            footer.append(text("license", styler("license-label"))).append(": ")
            footer.append(text(parser.license, styler("license-section")))
        renders.append(footer)

    renderable = Group(*renders)
    if parser.fancy:
        renderable = Panel(
            renderable,
            title=Text.assemble("[ ", text(prog.upper() + " HELP", styler("panel-title")), " ]"),
            title_align="left",
        )

    console.print(renderable)


def versioner(parser):
    """
    Render the version string (first line) and the license when declared.
    """
    console = Console()
    styler, text = _palette(parser)

    renders = [text(parser.version, styler("program-version"))]
    if parser.license:
        license = Text()
        license.append(text("license", styler("license-label"))).append(": ")
        license.append(text(parser.license, styler("license-section")))
        renders.append(license)

    renderable = Group(*renders)
    if parser.fancy:
        renderable = Panel(
            renderable,
            title=Text.assemble("[ ", text(parser.program.upper() + " VERSION", styler("panel-title")), " ]"),
            title_align="left",
        )

    console.print(renderable)


def _roff(string):
    # roff treats '-' as a hyphen, '\' as an escape and a newline as the end of a text line
    return " ".join(string.replace("\\", "\\e").replace("-", "\\-").splitlines())


def _roff_text(string):
    """a full text line: a leading '.' or "'" would make roff read it as a request."""
    string = _roff(string)
    return "\\&" + string if string.startswith((".", "'")) else string


def _bold(string):
    return "\\fB%s\\fR" % _roff(string)


def _italic(string):
    return "\\fI%s\\fR" % _roff(string)


def _roff_metavar(parser, entry):
    if isinstance(entry, String) and entry.restricted:
        return "{%s}" % ",".join(map(_bold, parser.choices(entry.scope, entry.name)))
    return _italic(entry.name)


def _roff_switch(parser, entry):
    match entry.kind:
        case Kind.FLAG:
            return _bold("-" + entry.name)
        case Kind.BOOL:
            return "%s[%s]%s" % (_bold("--"), _bold("no-"), _bold(entry.name))
    return "%s %s" % (_bold("--" + entry.name), _roff_metavar(parser, entry))


def _print_roff(lines):
    console = Console(highlight=False)
    for line in lines:
        console.print(line, markup=False, emoji=False, soft_wrap=True)


def synopsis(parser):
    """
    Print a roff SYNOPSIS section: one invocation line per scope.
    """
    lines = [".SH SYNOPSIS"]
    for index, scope in enumerate(parser.scopes):
        if index:
            lines.append(".br")
        lines.append(".B %s" % _roff(parser.program if scope.main else "%s %s" % (parser.program, scope.name)))
        items = []
        for entry in parser.entries(scope.id):
            if entry.required:
                items.append(_roff_metavar(parser, entry))
            else:
                items.append("[%s]" % _roff_switch(parser, entry))
        if scope.unnamed:
            items.append("[%s] [%s ...]" % (_bold("--"), _italic("argument")))
        if items:
            lines.append(" ".join(items))
    _print_roff(lines)


def options(parser):
    """
    Print a roff OPTIONS section: one tagged paragraph per parameter, then one
    per named argument, with a subsection per subcommand.
    """
    lines = [".SH OPTIONS"]
    for scope in parser.scopes:
        # parameters first, named arguments after them, each in declaration order
        entries = sorted(parser.entries(scope.id), key=lambda entry: entry.required)
        if not scope.main:
            if not entries:
                continue
            lines.append(".SS %s" % _roff(scope.name))
        for entry in entries:
            lines.append(".TP")
            if entry.required:
                lines.append(_roff_metavar(parser, entry))
            else:
                lines.append(_roff_switch(parser, entry))
            description = entry.descr or ""
            if (default := _default(entry)) is not None:
                description = ("%s (default: %s)" % (description, default)).strip()
            lines.append(_roff_text(description))
        if scope.main:
            lines.extend((".TP", _bold("--help"), "print help and exit"))
            if parser.version:
                lines.extend((".TP", _bold("--version"), "print the version and exit"))
    _print_roff(lines)


__all__ = (
    "helper",
    "versioner",
    "synopsis",
    "options",
)
