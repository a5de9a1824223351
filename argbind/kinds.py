"""
Argbind value kinds: the closed set of field types and token conversion.

Closed set
- scalars: str, int, float, bool
- optional scalars: X | None, Optional[X] (zero value None)
- sequences: list[X], List[X], Sequence[X] of a non-optional scalar (zero value [])
Anything else is rejected when the record is bound, never at first use.

Conversion rules
- int:   optional sign then base-10 digits ("+7", "-12", "42")
- float: decimal/exponent notation ("3.14", "-1e-3", ".5", "2.") plus inf/nan
- bool:  1 t T TRUE true True / 0 f F FALSE false False
- str:   passed through unchanged
Each failure is a ConversionError for exactly one token of one field.

Display
- display(value) renders a captured default for help output; zero values yield
  None (no annotation), sequences render as "[a b c]", floats in shortest form
  ("42" for 42.0, "1e+06" from a million up, "1e-05" below 1e-4), booleans as
  "true"/"false".
"""
import collections.abc
import decimal
import math
import re
import types
import typing
from typing import NamedTuple

from .faults import ConversionError, FaultCode, UnsupportedFieldTypeError, getdoc, trigger

_SCALARS = (str, int, float, bool)

_INTEGER = re.compile(r"[+-]?[0-9]+")
_FLOAT = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|[+-]?(?:inf|infinity|nan)", re.IGNORECASE)
_TRUE = frozenset(("1", "t", "T", "TRUE", "true", "True"))
_FALSE = frozenset(("0", "f", "F", "FALSE", "false", "False"))

_SEQUENCES = (list, collections.abc.Sequence, collections.abc.MutableSequence)


class Kind(NamedTuple):
    """
    Resolved shape of a field.

    - scalar: one of str, int, float, bool (element type for sequences)
    - sequence: True for list-like fields
    - optional: True when None is an accepted (zero) value
    """
    scalar: type
    sequence: bool = False
    optional: bool = False

    def __str__(self):
        name = self.scalar.__name__
        if self.sequence:
            return "list[%s]" % name
        return "%s | None" % name if self.optional else name


def _unsupported(annotation, field):
    trigger(UnsupportedFieldTypeError(
        "field %r has unsupported type %s" % (field, _typename(annotation)),
        title="unsupported field type",
        code=FaultCode.UNSUPPORTED_FIELD_TYPE,
        field=field,
        annotation=annotation,
        hint="use str, int, float, bool, an optional of these, or a list of these",
        docs=getdoc(FaultCode.UNSUPPORTED_FIELD_TYPE),
    ))


def _typename(annotation):
    if isinstance(annotation, type) and not typing.get_args(annotation):
        return annotation.__name__
    return str(annotation).replace("typing.", "")


def resolve(annotation, /, field="<field>"):
    """
    Resolve a (already evaluated) type annotation into a Kind.

    Raises
    - UnsupportedFieldTypeError for anything outside the closed set.
    """
    if annotation in _SCALARS:
        return Kind(annotation)

    origin = typing.get_origin(annotation)
    arguments = typing.get_args(annotation)

    # X | None and Optional[X]
    if origin in (typing.Union, types.UnionType):
        members = [argument for argument in arguments if argument is not type(None)]
        if len(members) == 1 and len(arguments) == 2 and members[0] in _SCALARS:
            return Kind(members[0], optional=True)
        return _unsupported(annotation, field)

    # list[X], List[X], Sequence[X]
    if origin in _SEQUENCES and len(arguments) == 1 and arguments[0] in _SCALARS:
        return Kind(arguments[0], sequence=True)

    return _unsupported(annotation, field)


def _failed(token, kind, field):
    trigger(ConversionError(
        "value %r for field %r is not a valid %s" % (token, field, kind.scalar.__name__),
        title="conversion failed",
        code=FaultCode.CONVERSION_FAILED,
        field=field,
        token=token,
        kind=kind,
        hint={
            int: "use base-10 digits with an optional sign (for example: 42)",
            float: "use decimal or exponent notation (for example: 3.14 or 1e-3)",
            bool: "use true or false",
        }.get(kind.scalar, "check the value"),
        docs=getdoc(FaultCode.CONVERSION_FAILED),
    ))


def convert(token, kind, /, field="<field>"):
    """
    Convert one token into a value of kind.scalar.

    The kind may be a sequence kind; only its element type is used here.
    """
    if not isinstance(token, str):
        raise TypeError("convert() token must be a string")
    match kind.scalar.__name__:
        case "str":
            return token
        case "int":
            if _INTEGER.fullmatch(token):
                return int(token)
        case "float":
            if _FLOAT.fullmatch(token):
                return float(token)
        case "bool":
            if token in _TRUE:
                return True
            if token in _FALSE:
                return False
    return _failed(token, kind, field)


def convert_all(tokens, kind, /, field="<field>"):
    """
    Convert an ordered list of tokens into a list value; the first bad token raises.
    """
    return [convert(token, kind, field) for token in tokens]


def zero(kind, /):
    """
    The zero value of a kind (what an untouched field holds).
    """
    if kind.sequence:
        return []
    if kind.optional:
        return None
    return kind.scalar()


def _shortest(value):
    """
    Shortest round-trip form, switching to exponent notation below 1e-4 and from 1e+06.

    >>> _shortest(42.0), _shortest(1e6), _shortest(1234567.0), _shortest(1e-05)
    ('42', '1e+06', '1.234567e+06', '1e-05')
    """
    number = decimal.Decimal(repr(value)).normalize()
    sign, digits, exponent = number.as_tuple()
    if not (-4 <= (magnitude := len(digits) - 1 + exponent) < 6):
        mantissa = "".join(map(str, digits))
        if len(mantissa) > 1:
            mantissa = mantissa[0] + "." + mantissa[1:]
        return "%s%se%s%02d" % ("-" if sign else "", mantissa, "-" if magnitude < 0 else "+", abs(magnitude))
    return format(number, "f")


def _format(value):
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isinf(value):
            return "+Inf" if value > 0 else "-Inf"
        if math.isnan(value):
            return "NaN"
        return _shortest(value)
    return str(value)


def display(value, /):
    """
    Render a captured default for help, or None when the value is a zero value.
    """
    if value is None or value is False or value == "" or (isinstance(value, int | float) and value == 0):
        return None
    if isinstance(value, list | tuple):
        if not value:
            return None
        return "[%s]" % " ".join(map(_format, value))
    return _format(value)


__all__ = (
    "Kind",
    "resolve",
    "convert",
    "convert_all",
    "zero",
    "display",
)
