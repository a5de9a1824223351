"""
Argbind faults (errors, interrupts, and warnings) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every user-facing issue.
  Codes are grouped by the phase that raises them so logs/searches stay predictable.
- BindException / BindWarning: base types that carry a message + options and
  know how to render themselves (rich) in a short, lowercased, actionable way.
- trigger(): central entry point to surface any fault, either raised/warned
  (library mode) or printed on a rich stderr console (shell mode).
- getdoc(): optional description lookup for a code from the host application.

Phases
- bind time (21xxx): the destination record itself is wrong; raised by bind()
  and never recoverable, no partial parser is ever returned.
- resolution time (22xxx): a supplied token or environment value is wrong, or a
  required value is missing; always attributable to one field.
- interrupts (23xxx): --help / --version were requested; not failures.
- warnings (24xxx): suspicious but accepted input.

Integration
- The binder raises faults through trigger() in library mode.
- An application entry point catches BindException and calls
  trigger(fault, shell=True) to render it; turning that into an exit code is
  the caller's business.
"""
import os.path
import sys
import warnings
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, coalesce

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the binder (stable identifiers).

    grouping (by phase)
    - bind time (211xx)
      • MALFORMED_TAG, UNSUPPORTED_FIELD_TYPE, DUPLICATE_NAME, INVALID_VARIADIC_PLACEMENT
    - resolution time (221xx)
      • CONVERSION_FAILED, MISSING_REQUIRED_VALUE, UNKNOWN_SWITCH,
        UNEXPECTED_POSITIONAL, MISSING_OPTION_VALUE
    - interrupts (231xx)
      • HELP_REQUESTED, VERSION_REQUESTED
    - warnings (241xx)
      • EMPTY_ENVIRONMENT_VALUE
    """
    # --- bind-time errors (21xxx) ---
    MALFORMED_TAG               = 21101
    UNSUPPORTED_FIELD_TYPE      = 21102
    DUPLICATE_NAME              = 21103
    INVALID_VARIADIC_PLACEMENT  = 21104

    # --- resolution-time errors (22xxx) ---
    CONVERSION_FAILED           = 22101
    MISSING_REQUIRED_VALUE      = 22102
    UNKNOWN_SWITCH              = 22111
    UNEXPECTED_POSITIONAL       = 22112
    MISSING_OPTION_VALUE        = 22113

    # --- interrupts (23xxx) ---
    HELP_REQUESTED              = 23101
    VERSION_REQUESTED           = 23102

    # --- warnings (24xxx) ---
    EMPTY_ENVIRONMENT_VALUE     = 24101

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _program():
    """
    program label used in fault headers (__prog__ in __main__, else argv[0] basename).
    """
    try:
        fallback = os.path.basename(sys.argv[0])
    except (AttributeError, IndexError):
        fallback = ""
    return getattr(__import__("__main__"), "__prog__", fallback) or "argbind"


def _render(fault, palette):
    """
    Shared rich renderer for exceptions and warnings.

    Layout
    - header: "[ prog — code | Title ]"
    - body: the message, then "→ hint" when a hint was given
    - fancy=True wraps the body in a Panel titled with the header
    """
    main = __import__("__main__")
    styles = defaultdict(str, palette | getattr(main, "__styles__", {}))
    colorful = fault.options.get("colorful", True)

    def styler(style):
        return styles[style] if colorful else ""

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if not colorful:
            return Text(str(fragment))
        if isinstance(fragment, Text):
            return fragment
        return Text(str(fragment), style)

    code = fault.options.get("code")
    header = Text.assemble(
        "[ ",
        text(_program(), styler("prog-name")),
        " — ",
        text(code.normalize() if code is not None else "?", styler("code")),
        " | ",
        text(str(fault.options.get("title", type(fault).__name__)).title(), styler("title")),
        " ]",
    )
    parts = [text(coalesce(fault.message, ""), styler("message"))]
    if hint := fault.options.get("hint"):
        parts.append(Text.assemble(text(" → ", styler("hint-arrow")), text(hint, styler("hint"))))
    if docs := fault.options.get("docs"):
        parts.append(text(docs, styler("docs")))

    if fault.options.get("fancy", False):
        return Panel(Group(*parts), title=header, title_align="left")
    return Group(header, *parts)


class BindException(Exception):
    """
    Base class of every argbind error.

    Parameters
    - message: short, lowercased, one-sentence description.
    - options: context for rendering and introspection, commonly
      title, code, hint, field, token, kind, name, colorful, fancy, shell.
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(coalesce(message, ""))
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return coalesce(self.message, "")

    @property
    def field(self):
        """
        Name of the destination field the fault is attributed to (None when not field-bound).
        """
        return self.options.get("field")

    @property
    def code(self):
        return self.options.get("code")

    def __rich__(self):
        return _render(self, {
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "title": "bold #FF4DA6",  # friendly pinky title
            "message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
            "docs": "underline #00E5FF dim",
        })

    def __trigger__(self):
        if not self.options.get("shell", False):
            raise self
        self.options.get("console", console).print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


# --- bind time ---
class MalformedTagError(BindException): ...
class UnsupportedFieldTypeError(BindException): ...
class DuplicateNameError(BindException): ...
class InvalidVariadicPlacementError(BindException): ...


# --- resolution time ---
class ConversionError(BindException):
    """
    A single token could not be converted to the kind its field declares.
    """

    @property
    def token(self):
        return self.options.get("token")

    @property
    def kind(self):
        return self.options.get("kind")


class MissingRequiredValueError(BindException): ...
class UnknownSwitchError(BindException): ...
class UnexpectedPositionalError(BindException): ...
class MissingOptionValueError(BindException): ...


# --- interrupts ---
class HelpRequested(BindException): ...
class VersionRequested(BindException): ...


class BindWarning(Warning):
    """
    Base class of every argbind warning; same message/options shape as BindException.
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(coalesce(message, ""))
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return coalesce(self.message, "")

    @property
    def field(self):
        return self.options.get("field")

    def __rich__(self):
        return _render(self, {
            "prog-name": "bold #E6E6F0",
            "code": "bold #FFB400",  # amber fault code for warnings
            "title": "bold #FFC2E0",  # softer pinky title for warnings
            "message": "#D6D6DE",
            "hint-arrow": "#B8EFAF dim",
            "hint": "italic #B8EFAF",
            "docs": "underline #FFB400 dim",
        })

    def __trigger__(self):
        if not self.options.get("shell", False):
            return warnings.warn(self, stacklevel=4)
        self.options.get("console", console).print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class EmptyEnvironmentValueWarning(BindWarning): ...


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via __replace__(**options) before triggering.
    - shell=False (default): exceptions are raised, warnings go through warnings.warn.
    - shell=True: the fault is printed on a rich console (options["console"],
      stderr by default) and control returns to the caller.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    fault.__replace__(**options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    the host application may expose a __docs__ mapping in __main__ where keys
    are FaultCode instances and values are short documentation strings.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "FaultCode",
    "BindException",
    "MalformedTagError",
    "UnsupportedFieldTypeError",
    "DuplicateNameError",
    "InvalidVariadicPlacementError",
    "ConversionError",
    "MissingRequiredValueError",
    "UnknownSwitchError",
    "UnexpectedPositionalError",
    "MissingOptionValueError",
    "HelpRequested",
    "VersionRequested",
    "BindWarning",
    "EmptyEnvironmentValueWarning",
    "trigger",
    "getdoc",
)
