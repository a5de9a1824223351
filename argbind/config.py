"""
Argbind configuration: the Config record and the process-wide version.

Config
- program: explicit program name shown in usage/help/version. When Unset, the
  name is resolved at render time from __prog__ in __main__, else from the
  base name of sys.argv[0].
- version: explicit version string for this parser. When Unset, bind() falls
  back to the process-wide version (see set_version). None disables --version.
- colorful: whether print_usage/print_help/print_version style their output.

Process-wide version
- set_version(version) stores one string for the whole process; bind()
  snapshots it, so a parser never observes later changes.
- Contract: call it once during startup, before any parser is bound.
  Concurrent set/read is not synchronized.
"""
import os.path
import sys
from dataclasses import dataclass, field

from .utils import Unset, coalesce

_version = None


def set_version(version, /):
    """
    Set (or clear, with None) the process-wide version string.

    The string is kept verbatim; an empty or blank one is rejected.
    """
    global _version
    if not isinstance(version, str | None):
        raise TypeError("set_version() argument must be a string or None")
    elif isinstance(version, str) and not version.strip():
        raise ValueError("set_version() argument cannot be empty")
    _version = version


def get_version():
    """
    Return the process-wide version string, or None when it was never set.
    """
    return _version


def _sanitize(name, object, /, *, nullable):
    if not isinstance(object, str | Unset | None if nullable else str | Unset):
        raise TypeError(f"config {name!r} must be a string")
    elif isinstance(object, str) and not (object := object.strip()):
        raise ValueError(f"config {name!r} cannot be empty")
    return object


@dataclass(frozen=True)
class Config:
    """
    Construction-time options of a parser.

    >>> Config(program="myprogram").program
    'myprogram'
    """
    program: str = field(default=Unset)
    version: str | None = field(default=Unset)
    colorful: bool = True

    def __post_init__(self):
        # frozen dataclass: normalized values go through object.__setattr__
        object.__setattr__(self, "program", _sanitize("program", self.program, nullable=False))
        object.__setattr__(self, "version", _sanitize("version", self.version, nullable=True))
        object.__setattr__(self, "colorful", bool(self.colorful))

    def resolve_version(self):
        """
        The version a parser bound now should use (explicit, else process-wide).
        """
        return coalesce(self.version, _version)

    def resolve_program(self):
        """
        The program name, resolved at call time.
        """
        if self.program:
            return str(self.program)
        if prog := getattr(__import__("__main__"), "__prog__", None):
            return str(prog)
        try:
            return os.path.basename(sys.argv[0])
        except (AttributeError, IndexError):
            return ""


__all__ = (
    "Config",
    "set_version",
    "get_version",
)
