r"""
Argbind tag grammar: decode one field's tag string into a Tag descriptor.

Grammar
- A tag is a comma-separated list of directives. Order is insignificant.
  • positional      bare keyword, the field is bound by position
  • -X              short alias (single dash, a letter, then letters/digits), repeatable
  • help:<text>     help text, runs to the next unescaped comma
  • env:<NAME>      environment variable consulted when no explicit value is given
  • env             bare form, the variable is the upper-cased field identifier
- "\," is a literal comma and "\\" a literal backslash inside any directive.
- The whole tag "-" marks the field as ignored by the binder.
- An empty tag means: option, derived long name, no alias, no env, no help.

Fail-closed rules
- unknown keys and bare keywords are rejected, never ignored.
- positional/help/env may appear at most once; a repeated alias collapses into one.
- "--long" tokens, empty directives, and aliases on a positional are rejected.
Every rejection is a MalformedTagError naming the field and the fragment.

Quick example
    >>> parse_tag("-w,env:WORKERS,help:number of workers to start", field="workers")
    Tag(ignored=False, positional=False, aliases=('w',), env='WORKERS', help='number of workers to start')
"""
import re
from typing import NamedTuple

from .faults import FaultCode, MalformedTagError, getdoc, trigger

_ALIAS = re.compile(r"-[^\W\d_][^\W_]*")
_ENV = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


class Tag(NamedTuple):
    """
    Structured form of a tag string.
    """
    ignored: bool = False
    positional: bool = False
    aliases: tuple[str, ...] = ()
    env: str | None = None
    help: str | None = None


def _split(tag):
    r"""
    Split on unescaped commas, unescaping "\," and "\\" on the way.

    A trailing lone backslash is kept literally.
    """
    directives = []
    current = []
    escaped = False
    for char in tag:
        if escaped:
            if char not in ",\\":
                current.append("\\")
            current.append(char)
            escaped = False
        elif char == "\\":
            escaped = True
        elif char == ",":
            directives.append("".join(current))
            current = []
        else:
            current.append(char)
    if escaped:
        current.append("\\")
    directives.append("".join(current))
    return directives


def _malformed(field, fragment, reason, hint):
    trigger(MalformedTagError(
        "field %r has a malformed tag fragment %r: %s" % (field, fragment, reason),
        title="malformed tag",
        code=FaultCode.MALFORMED_TAG,
        field=field,
        fragment=fragment,
        hint=hint,
        docs=getdoc(FaultCode.MALFORMED_TAG),
    ))


def parse_tag(tag, /, field="<tag>"):
    """
    Parse a raw tag string into a Tag.

    Parameters
    - tag: str
      The raw tag (e.g. "positional,help:list of outputs"). None and "" both
      mean “no directives”.
    - field: str
      Field identifier, used for the bare "env" form and in error messages.

    Raises
    - MalformedTagError on the first grammar violation.
    - TypeError if tag is neither a string nor None.
    """
    if tag is None:
        return Tag()
    if not isinstance(tag, str):
        raise TypeError("parse_tag() argument must be a string")
    if not tag.strip():
        return Tag()
    if tag.strip() == "-":
        return Tag(ignored=True)

    positional = False
    aliases = []
    env = None
    help = None
    seen = set()

    for directive in _split(tag):
        directive = directive.lstrip()
        if not directive:
            _malformed(field, directive, "empty directive", "remove the doubled or trailing comma")

        # Short aliases: "-v"
        if directive.startswith("-"):
            if directive.startswith("--"):
                _malformed(field, directive, "long names are derived from the field name",
                           "use a single dash for an alias (for example: -%s)" % directive.lstrip("-")[:1])
            if not _ALIAS.fullmatch(directive.rstrip()):
                _malformed(field, directive, "invalid alias",
                           "aliases are a dash followed by a letter (for example: -v)")
            if (alias := directive.rstrip()[1:]) not in aliases:
                aliases.append(alias)
            continue

        key, colon, value = directive.partition(":")
        key = key.rstrip()
        if key in seen:
            _malformed(field, directive, "duplicate %r directive" % key, "keep a single %r directive" % key)

        match key, bool(colon):
            case "positional", False:
                positional = True
            case "help", True:
                help = value
            case "env", True:
                if not _ENV.fullmatch(value := value.strip()):
                    _malformed(field, directive, "invalid environment variable name",
                               "use letters, digits and underscores (for example: env:WORKERS)")
                env = value
            case "env", False:
                env = field.upper()
            case "positional", True:
                _malformed(field, directive, "'positional' takes no value", "write it bare: positional")
            case "help", False:
                _malformed(field, directive, "'help' needs a value", "write it as help:<text>")
            case _:
                _malformed(field, directive, "unknown directive",
                           "valid directives are positional, -X, help:<text> and env[:NAME]")
        seen.add(key)

    if positional and aliases:
        _malformed(field, ",".join("-" + alias for alias in aliases), "positional arguments cannot have aliases",
                   "drop the aliases or the 'positional' directive")

    return Tag(positional=positional, aliases=tuple(aliases), env=env, help=help)


__all__ = (
    "Tag",
    "parse_tag",
)
