"""
Argbind renderers: usage synopsis, column-aligned help, and version line.

Every renderer returns a rich Text. Its .plain form is the exact byte-for-byte
output (write_* and format_* use it); the styled form is printed through a
rich Console by print_*. Rendering never fails on a bound parser, except
render_version on a parser bound without a version (a caller error).

Usage
    usage: <program> [--opt1 V1] [--flag] POSITIONAL [VARIADIC [VARIADIC ...]]
- options in declaration order, always bracketed, --help/--version omitted
- positionals in declaration order: required bare, otherwise bracketed,
  the variadic one as "[NAME [NAME ...]]"

Help
- usage line, then "positional arguments:" (only if any), then "options:"
  with --help (and --version) last; sections are separated by a blank line.
- each row is "  <label>" followed by the description column. The column is
  shared by all rows of both sections: a label short enough to leave a
  two-space gap is padded up to it, a longer label is emitted alone and the
  description goes on the next line, indented to the same column.

Palette keys
- usage-label, program-name, section-label, option-name, positional-name,
  metavar, argument-description, default, version
Define a mapping named __styles__ in __main__ to override any palette entry.
"""
import sys
from collections import defaultdict

from rich.console import Console
from rich.text import Text

from .utils import coalesce

PADDING = 2  # leading spaces before every label
GUTTER = 2  # minimum gap between a label and its description
COLUMN = 25  # description column shared by every help row


def _styler(colorful):
    styles = defaultdict(str, {
        "usage-label": "bold #00E6FF",  # CYAN → signature info color
        "program-name": "bold #FF4D94",  # MAGENTA-PINK → brand pop
        "section-label": "bold #FFFFFF",  # Pure white headers
        "option-name": "bold #00E6FF",
        "positional-name": "bold #22C55E",
        "metavar": "bold #FFD600",  # AMBER for parameters
        "argument-description": "#9CA3AF",  # Muted gray
        "default": "italic #737373",
        "version": "bold #36C5F0",
    } | getattr(__import__("__main__"), "__styles__", {}))

    def styler(style):
        return styles[style] if colorful else ""

    return styler


def _synopsis(spec, switch, styler):
    """
    "--name NAME" for value-taking options, bare "--name" for boolean flags.
    """
    synopsis = Text(switch, styler("option-name"))
    if not spec.flag:
        synopsis.append(" ").append(spec.placeholder, styler("metavar"))
    return synopsis


def _describe(spec, styler):
    """
    Description column: help text, then "[default: X]" when a default was captured.
    """
    parts = []
    if spec.help:
        parts.append(Text(spec.help, styler("argument-description")))
    if spec.default is not None:
        parts.append(Text.assemble("[default: ", (spec.default, styler("default")), "]"))
    return Text(" ").join(parts)


def _row(label, description):
    row = Text(" " * PADDING).append(label)
    if description:
        if len(row) + GUTTER < COLUMN:
            row.append(" " * (COLUMN - len(row)))
        else:
            row.append("\n").append(" " * COLUMN)
        row.append(description)
    return row.append("\n")


def render_usage(parser, /, *, colorful=False):
    """
    One-line synopsis, newline-terminated.
    """
    styler = _styler(colorful)

    usage = Text()
    usage.append("usage", styler("usage-label")).append(":")
    usage.append(" ").append(parser.program, styler("program-name"))

    for spec in parser.options:
        if spec.synthesized:
            continue
        usage.append(" [").append(_synopsis(spec, "--" + spec.name, styler)).append("]")

    for spec in parser.positionals:
        name = Text(spec.placeholder, styler("metavar"))
        if spec.variadic:
            usage.append(" [").append(name).append(" [").append(name).append(" ...]]")
        elif spec.required:
            usage.append(" ").append(name)
        else:
            usage.append(" [").append(name).append("]")

    return usage.append("\n")


def render_help(parser, /, *, colorful=False):
    """
    Usage line plus the positional and option sections.
    """
    styler = _styler(colorful)
    help = render_usage(parser, colorful=colorful)

    if positionals := parser.positionals:
        help.append("\n").append("positional arguments", styler("section-label")).append(":\n")
        for spec in positionals:
            help.append(_row(Text(spec.name, styler("positional-name")), _describe(spec, styler)))

    help.append("\n").append("options", styler("section-label")).append(":\n")
    for spec in parser.options:
        label = Text(", ").join(_synopsis(spec, switch, styler) for switch in spec.switches)
        help.append(_row(label, _describe(spec, styler)))

    return help


def render_version(parser, /, *, colorful=False):
    """
    "<program> <version>" line.
    """
    if parser.version is None:
        raise TypeError("parser was bound without a version (use set_version() or Config(version=...))")
    styler = _styler(colorful)
    return Text.assemble(
        (parser.program, styler("program-name")),
        " ",
        (parser.version, styler("version")),
        "\n",
    )


def write(text, file, /):
    """
    Write the plain form of a rendered Text to file (sys.stdout by default).
    """
    coalesce(file, sys.stdout).write(text.plain)


def emit(text, console, /):
    """
    Print a rendered Text through a rich Console (stdout by default).
    """
    coalesce(console, Console()).print(text, end="", soft_wrap=True)


__all__ = (
    "render_usage",
    "render_help",
    "render_version",
    "COLUMN",
)
