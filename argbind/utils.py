"""
Argbind utilities (internal helpers shared by the binder and renderers)

Overview
- UnsetType / Unset
  • Singleton sentinel for “not provided”, distinct from None (None is a valid
    field value for optional scalars and a valid “no version” marker).

- coalesce(value, default=None)
  • Replace Unset with a concrete default; None/0/""/[] are preserved.

- rename(callable, name) / @rename("name")
  • Stable __name__/__qualname__ for generated methods (repr helpers, handles).

- mirror("attr")
  • Read-only property over a private backing field (self._attr). Containers
    are copied on the way out so callers cannot mutate a bound spec.

- identifier(name)
  • Field identifier to long-option name: lower-cased, underscore runs become
    a single hyphen, outer underscores stripped.

Quick examples
    >>> coalesce(Unset, "fallback")
    'fallback'
    >>> identifier("VeryLongPositionalWithHelp")
    'verylongpositionalwithhelp'
    >>> identifier("_dry__run_")
    'dry-run'
"""
import builtins
import functools
import re
from collections.abc import Mapping, Set
from typing import final


@final
class UnsetType:
    """
    Internal sentinel type representing a value that was not provided.

    Characteristics
    - Boolean-false: bool(Unset) is False, but it is distinct from None and 0.
    - Printable: repr(Unset) -> "Unset".
    - Non-subclassable and a singleton per process.
    """

    def __or__(self, other, /):
        """
        Support PEP 604 unions in isinstance checks (e.g., str | Unset).
        """
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


def coalesce(object, default=None, /):
    """
    Return object unless it is the Unset sentinel, in which case return default.

    Falsey values like None, 0, "", or [] are returned as-is.
    """
    return object if object is not Unset else default


def rename(*parameters):
    """
    Set a stable __name__/__qualname__ on a callable, or return a decorator
    that will do so later.

    - Function form: rename(callable, name) -> callable
    - Decorator form: rename(name) -> decorator
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


def _detach(object):
    """
    Copy mutable containers recursively so the copy shares no state with the source.

    Behavior
    - list: new list with each element processed.
    - tuple: new tuple with each element processed (stays immutable).
    - Mapping: new dict with the same keys and processed values.
    - Set: new set with each element processed.
    - Anything else (including str): returned as-is.
    """
    if isinstance(object, list):
        return list(map(_detach, object))
    elif type(object) is tuple:
        return tuple(map(_detach, object))
    elif isinstance(object, Mapping):
        return dict(zip(object.keys(), map(_detach, object.values())))
    elif isinstance(object, Set):
        return set(map(_detach, object))
    return object


def mirror(name, /):
    """
    Define a read-only property that mirrors the private attribute "_{name}".

    Example
    - Given self._aliases, declare aliases = mirror("aliases").
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _detach(getattr(self, "_" + name))

    return property(getter)


@functools.cache
def identifier(name, /):
    """
    Derive the long-option name of a field identifier.

    Only the casing changes and underscores map to hyphens; no hyphen is
    inserted at case boundaries, so "VeryLong" becomes "verylong".
    """
    if not isinstance(name, str):
        raise TypeError("identifier() argument must be a string")
    return re.sub(r"_+", "-", name.lower().strip("_"))


Unset = UnsetType()
"""
Internal sentinel for “not provided”.

Typical pattern: value = coalesce(user_value, default) to materialize a fallback
only when user_value is Unset (None and other falsey values are preserved).
"""


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "mirror",
    "identifier",

    # Types
    "UnsetType",

    # Constants
    "Unset",
)
