"""
Argstack built-in triggers: help and version.

A trigger is a named argument whose resolution runs callback(config) and ends the
parse with a ParserExit (see argstack.arguments.Trigger). This module provides the
two every command line wants:

- help("-h", "--help"): renders the usage line, description, verbs and argument
  groups of the registry the trigger was resolved in (verbs get their own).
- version("--version"): renders "<name> — <version>".

Both print through the module-level stdout console, so hosts and tests can swap it.
Palette entries may be overridden with a __styles__ mapping in __main__.
"""
from collections import defaultdict

from rich.box import ROUNDED
from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .arguments import Argument, Constraint, Positional, Trigger
from .utils import *

console = Console()


def _palette(colorful):
    styles = defaultdict(str, {
        # === Head sections ===
        "usage-label": "bold #00E6FF",  # CYAN → signature info color
        "program-name": "bold #FF4D94",  # MAGENTA-PINK → brand pop
        "program-version": "bold #00E6FF",
        "description-section": "italic #A3A3A3",  # Neutral gray
        "epilog-section": "#737373",  # Dim footer gray

        # === Groups / arguments ===
        "group-label": "bold #FFFFFF",
        "argument-description": "#9CA3AF",
        "option-name": "bold #00E6FF",
        "flag-name": "bold #22C55E",
        "trigger-name": "bold #FF4D94",
        "metavar": "bold #FFD600",
        "required-mark": "bold #EF4444",

        # === Verbs table ===
        "verbs-title": "bold #FFFFFF",
        "verbs-table": "#4B5563",
        "verb": "bold #36C5F0",
        "verb-description": "#9CA3AF",

        # === Fancy panel ===
        "panel-title": "bold #FF4D94",
    } | getattr(__import__("__main__"), "__styles__", {}))

    def styler(style):
        return styles[style] if colorful else ""

    return styler


def _text(fragment, style="", /):
    if not fragment:
        return Text("")
    if isinstance(fragment, Text):
        return fragment if style else Text(fragment.plain)
    return Text(str(fragment), style)


def metavar(argument, /):
    """
    Return the value placeholder of a descriptor shaped by its arity, or "" for
    zero-value actions.

    - EXACTLY(n)  -> "M M ..." (n times)
    - AT_MOST(1)  -> "[M]"
    - AT_MOST(n)  -> "[M ...]"
    - AT_LEAST(n) -> "M" n times, then "[M ...]"
    """
    if not argument.consumes:
        return ""

    name = argument.metavar
    match argument.nargs:
        case (Constraint.EXACTLY, count):
            return " ".join([name] * count)
        case (Constraint.AT_MOST, 1):
            return f"[{name}]"
        case (Constraint.AT_MOST, _):
            return f"[{name} ...]"
        case (Constraint.AT_LEAST, count):
            return " ".join([name] * count + [f"[{name} ...]"])


def usage(config, /):
    """Synthesize the one-line usage of a registry (plain string)."""
    segments = [config.name or "<program>"]
    shorts = {id(x): key for key, x in reversed(config.short.items())}

    for argument in config.arguments:
        match argument:
            case Argument() | Trigger() if not argument.hidden:
                name = config.prefix + shorts[id(argument)] if id(argument) in shorts else argument.display
                segment = " ".join(filter(None, (name, metavar(argument) if isinstance(argument, Argument) else "")))
                segments.append(segment if getattr(argument, "required", False) else f"[{segment}]")

    for argument in config.positionals:
        if not argument.hidden:
            segments.append(metavar(argument))

    if verbs := [name for name, verb in config.verbs.items() if not verb.hidden]:
        segments.append("{%s} ..." % ",".join(verbs))

    return " ".join(segments)


def render_help(config, /, *, fancy=False, colorful=True):
    """
    Build the help renderable of a registry.

    Layout
    - usage line, description paragraph;
    - verbs table (name, description) when the registry has verbs;
    - one section per argument group, in declaration order, hidden descriptors skipped;
    - epilog paragraph.
    """
    styler = _palette(colorful)
    renders = []

    line = Text()
    line.append("usage", styler("usage-label")).append(": ")
    line.append(_text(usage(config), styler("program-name")))
    renders.append(line)

    if config.descr:
        renders.append(Text("\n").append(_text(config.descr, styler("description-section"))))

    if verbs := [verb for verb in config.verbs.values() if not verb.hidden]:
        table = Table(
            "name", "help",
            title=_text("verbs", styler("verbs-title")),
            box=ROUNDED,
            style=styler("verbs-table"),
            header_style=styler("verbs-title"),
        )
        for verb in verbs:
            descr = verb.descr or verb.config.descr or "no description"
            table.add_row(_text(verb.name, styler("verb")), _text(descr, styler("verb-description")))
        renders.append(table)

    groups = {}
    for argument in config.arguments:
        if isinstance(argument, Argument | Positional | Trigger) and not argument.hidden:
            groups.setdefault(argument.group, []).append(argument)

    for group, arguments in groups.items():
        section = Text("\n")
        section.append(_text(group, styler("group-label"))).append(":")

        for argument in arguments:
            if isinstance(argument, Positional):
                names = _text(argument.display, styler("metavar"))
            else:
                style = "trigger-name" if isinstance(argument, Trigger) else "option-name" if argument.consumes else "flag-name"
                names = Text(", ").join(_text(name, styler(style)) for name in sorted(argument.names, key=len))
                if isinstance(argument, Argument) and (placeholder := metavar(argument)):
                    names.append(" ").append(_text(placeholder, styler("metavar")))

            row = Text("\n  ").append(names)
            if isinstance(argument, Argument) and argument.required:
                row.append(" ").append(_text("(required)", styler("required-mark")))
            if argument.descr:
                row.append("\n      ").append(_text(argument.descr, styler("argument-description")))
            section.append(row)

        renders.append(section)

    if config.epilog:
        renders.append(Text("\n").append(_text(config.epilog, styler("epilog-section"))))

    renderable = Group(*renders)
    if fancy:
        renderable = Panel(
            renderable,
            title=Text.assemble("[ ", f"{config.name or 'program'} help".upper(), " ]", style=styler("panel-title")),
            title_align="left",
        )
    return renderable


def render_version(config, /, *, fancy=False, colorful=True):
    """Build the "<name> — <version>" renderable of a registry."""
    styler = _palette(colorful)
    renderable = Text(" — ").join((
        _text(config.name or "<program>", styler("program-name")),
        _text(config.version or "0.0.0", styler("program-version")),
    ))
    if fancy:
        renderable = Panel(
            renderable,
            title=Text.assemble("[ ", f"{config.name or 'program'} version".upper(), " ]", style=styler("panel-title")),
            title_align="left",
        )
    return renderable


def help(*names, fancy=False, colorful=True, group=Unset, descr="show this help message and exit", hidden=False):
    """
    Return a Trigger printing the help of the registry it is resolved in.

    Names default to ("-h", "--help").
    """
    @rename("help")
    def callback(config):
        console.print(render_help(config, fancy=fancy, colorful=colorful))

    return Trigger(*(names or ("-h", "--help")), callback=callback, group=group, descr=descr, hidden=hidden)


def version(*names, fancy=False, colorful=True, group=Unset, descr="show the version and exit", hidden=False):
    """
    Return a Trigger printing the name and version of the registry it is resolved in.

    Names default to ("--version",).
    """
    @rename("version")
    def callback(config):
        console.print(render_version(config, fancy=fancy, colorful=colorful))

    return Trigger(*(names or ("--version",)), callback=callback, group=group, descr=descr, hidden=hidden)


__all__ = (
    "help",
    "version",
    "render_help",
    "render_version",
    "usage",
    "metavar",
)
