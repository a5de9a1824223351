"""
Argbind binder: turn a tagged dataclass instance into a Parser.

What this module provides
- ArgumentSpec: one read-only descriptor per bindable field, holding a
  writable handle onto that field of the caller's record.
- Parser: the bound result. Ordered specs (declaration order, synthesized
  --help/--version last), an O(1) name/alias index, value resolution with a
  fixed precedence, the token consumption loop, and the usage/help/version
  output surfaces (see argbind.render).
- bind(record, config): the construction entry point.
- arg(tag, ...): dataclasses.field() with the tag stored under the "arg" key.

Binding steps (per field, declaration order)
1. parse the tag (argbind.tags); a "-" tag skips the field.
2. derive the long name from the identifier (argbind.utils.identifier).
3. resolve the field annotation into a Kind (argbind.kinds); unsupported
   shapes fail right here, not at first use.
4. snapshot the current value as the displayed default.
5. claim the name and aliases; place positionals (variadic last, at most one).
The first violation aborts the whole bind; no partial parser is returned.

Precedence (resolve/parse)
- explicit command-line tokens
- the environment variable named by the env directive (converted like a token)
- the value the field held before parsing (the “default”)
- the zero value of the kind (what an untouched dataclass field holds)

Quick start
    >>> from dataclasses import dataclass
    >>> from argbind import arg, bind
    >>> @dataclass
    ... class Args:
    ...     input: str = arg("positional", default="")
    ...     verbose: bool = arg("-v,help:verbosity level", default=False)
    >>> args = Args()
    >>> bind(args).parse(["-v", "data.csv"])
    Args(input='data.csv', verbose=True)
"""
import csv
import dataclasses
import difflib
import functools
import operator
import os
import re
import typing
from collections import deque

from . import render
from .config import Config
from .faults import *
from .kinds import Kind, convert, convert_all, display, resolve, zero
from .tags import parse_tag
from .utils import *

METADATA_KEY = "arg"


class SpecType(type):
    """
    Metaclass for read-only, introspectable binder objects.

    Responsibilities
    - Expose every name listed in __introspectable__ as a read-only property
      mirroring the private "_{name}" attribute (see mirror()).
    - Provide stable __repr__/__rich_repr__ implementations; __displayable__
      (if set) narrows the fields shown.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens).
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({', '.join(map(functools.partial(operator.mod, '%s=%r'), self.__rich_repr__()))})"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


class Handle(typing.NamedTuple):
    """
    Writable link from a spec to exactly one field of the destination record.
    """
    get: typing.Callable[[], typing.Any]
    set: typing.Callable[[typing.Any], None]

    @classmethod
    def of(cls, record, name, /):
        return cls(functools.partial(getattr, record, name), functools.partial(setattr, record, name))


class ArgumentSpec(metaclass=SpecType):
    """
    Read-only description of one bindable field.

    Properties
    - field: destination field name (None for synthesized entries)
    - kind: "positional" or "option"
    - name: long name ("--name" for options, "name" row label for positionals)
    - aliases: ordered short forms, without the leading dash
    - type: the resolved Kind
    - required / variadic: positional-only properties (see bind())
    - env: environment variable consulted when no explicit value is given
    - default: textual snapshot of the field value at bind time, or None
    - help: help text, or None
    - synthesized: True for the binder-made --help/--version entries
    """

    __introspectable__ = (
        "field",
        "kind",
        "name",
        "aliases",
        "type",
        "required",
        "variadic",
        "env",
        "default",
        "help",
        "synthesized",
    )
    __displayable__ = ("field", "kind", "name", "aliases", "type", "default")

    def __init__(
            self,
            field,
            kind,
            name,
            /,
            type=Kind(bool),
            *,
            aliases=(),
            required=False,
            variadic=False,
            env=None,
            default=None,
            help=None,
            synthesized=False,
            handle=Unset,
    ):
        if kind not in ("positional", "option"):
            raise ValueError("argument-spec 'kind' must be 'positional' or 'option'")
        if not isinstance(name, str) or not name:
            raise ValueError("argument-spec 'name' must be a non-empty string")
        self._field = field
        self._kind = kind
        self._name = name
        self._type = type
        self._aliases = tuple(aliases)
        self._required = bool(required)
        self._variadic = bool(variadic)
        self._env = env
        self._default = default
        self._help = help or None
        self._synthesized = bool(synthesized)
        self._handle = handle

    @property
    def positional(self):
        return self._kind == "positional"

    @property
    def flag(self):
        """
        True for boolean options: presence alone sets them, no token is consumed.
        """
        return not self.positional and self._type.scalar is bool and not self._type.sequence

    @property
    def placeholder(self):
        return self._name.upper()

    @property
    def switches(self):
        """
        Command-line spellings of an option: ("--name", "-a", ...). Empty for positionals.
        """
        if self.positional:
            return ()
        return ("--" + self._name, *("-" + alias for alias in self._aliases))

    def value(self):
        """
        Current value of the owned field.
        """
        if not self._handle:
            raise TypeError(f"{type(self).__typename__} {self._name!r} does not own a field")
        return self._handle.get()

    def assign(self, value, /):
        """
        Write a value into the owned field of the caller's record.
        """
        if not self._handle:
            raise TypeError(f"{type(self).__typename__} {self._name!r} does not own a field")
        self._handle.set(value)


def arg(tag="", /, **kwargs):
    """
    Thin wrapper around dataclasses.field() that stores a tag.

    Parameters
    - tag: str
      The tag string (e.g. "positional,help:list of outputs").
    - kwargs: forwarded to dataclasses.field(); "metadata" is merged.

    A list given as default is turned into a default_factory producing a
    fresh copy, so ``arg("help:Values", default=[3.14, 42, 256])`` is legal.

    >>> @dataclass
    ... class Args:
    ...     workers: int = arg("-w,env:WORKERS", default=0)
    """
    if not isinstance(tag, str):
        raise TypeError("arg() tag must be a string")
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[METADATA_KEY] = tag
    if isinstance(default := kwargs.get("default"), list):
        del kwargs["default"]
        kwargs["default_factory"] = functools.partial(list, default)
    return dataclasses.field(metadata=metadata, **kwargs)


class Parser(metaclass=SpecType):
    """
    Bound parser over one destination record.

    Properties
    - specs: every spec, declaration order, synthesized entries last
    - positionals / options: the same specs split by kind, order preserved
    - record: the destination record (mutated in place by resolve/parse)
    - config: the Config used at construction
    - version: version captured at construction (None: no --version option)
    - program: program name, resolved at access time
    """

    __introspectable__ = ("specs", "positionals", "options", "version")

    def __init__(self, record, specs, config, version, /):
        self._record = record
        self._specs = tuple(specs)
        self._positionals = tuple(spec for spec in self._specs if spec.positional)
        self._options = tuple(spec for spec in self._specs if not spec.positional)
        self._config = config
        self._version = version
        self._index = {}
        for spec in self._specs:
            self._index[spec.name] = spec
            for switch in spec.switches:
                self._index[switch] = spec

    @property
    def record(self):
        return self._record

    @property
    def config(self):
        return self._config

    @property
    def program(self):
        return self._config.resolve_program()

    def lookup(self, name, /):
        """
        Find a spec by its bare name, "--name", or "-alias" (None if unknown).
        """
        return self._index.get(name)

    # --- value resolution ---

    def _explicit(self, spec, given):
        """
        Convert an explicit value (bool, one token, or a token list) for spec.
        """
        if isinstance(given, bool):
            if not spec.flag:
                raise TypeError(f"explicit value for {spec.name!r} must be given as tokens")
            return given
        if isinstance(given, str):
            given = [given]
        given = list(given)
        if spec.type.sequence:
            return convert_all(given, spec.type, spec.field)
        if not given:
            raise ValueError(f"explicit value for {spec.name!r} cannot be empty")
        return convert(given[-1], spec.type, spec.field)

    def _environment(self, spec, raw):
        """
        Convert an environment value for spec; sequences are one CSV record.
        """
        if spec.type.sequence:
            return convert_all(next(csv.reader([raw])), spec.type, spec.field)
        return convert(raw, spec.type, spec.field)

    def resolve(self, explicit=Unset, /, environ=Unset):
        """
        Write the winning value of every field into the record.

        Parameters
        - explicit: Mapping[str, bool | str | list[str]]
          Values taken from the command line, keyed by spec name. Flags may
          be given as True/False; everything else as one token or a list.
        - environ: Mapping[str, str]
          Environment to consult (os.environ by default).

        Raises
        - ConversionError for the first token (explicit or environment) that
          does not convert; MissingRequiredValueError for a required
          positional left without a value. On any failure the record is left
          untouched.
        """
        explicit = coalesce(explicit, {})
        environ = coalesce(environ, os.environ)

        for name in explicit:
            if (spec := self._index.get(name)) is None or spec.synthesized or spec.name != name:
                raise KeyError(name)

        # every value is converted before the first one is written
        winners = []
        for spec in self._specs:
            if spec.synthesized:
                continue

            if spec.name in explicit:
                winners.append((spec, self._explicit(spec, explicit[spec.name])))
                continue

            if spec.env and (raw := environ.get(spec.env)) is not None:
                if raw:
                    winners.append((spec, self._environment(spec, raw)))
                    continue
                trigger(EmptyEnvironmentValueWarning(
                    "environment variable %r for field %r is set but empty" % (spec.env, spec.field),
                    title="empty environment value",
                    code=FaultCode.EMPTY_ENVIRONMENT_VALUE,
                    field=spec.field,
                    env=spec.env,
                    hint="unset %s or give it a value" % spec.env,
                    docs=getdoc(FaultCode.EMPTY_ENVIRONMENT_VALUE),
                ))

            if spec.required:
                trigger(MissingRequiredValueError(
                    "%s is required" % spec.placeholder,
                    title="missing required value",
                    code=FaultCode.MISSING_REQUIRED_VALUE,
                    field=spec.field,
                    name=spec.name,
                    hint=(
                        "pass %s on the command line or set %s" % (spec.placeholder, spec.env)
                        if spec.env else "pass %s on the command line" % spec.placeholder
                    ),
                    docs=getdoc(FaultCode.MISSING_REQUIRED_VALUE),
                ))

        for spec, value in winners:
            spec.assign(value)
        return self._record

    # --- token consumption ---

    @staticmethod
    def _switchlike(token):
        return token.startswith("-") and token.strip("-") != ""

    def _unknown(self, name):
        suggestions = difflib.get_close_matches(name, [key for key in self._index if key.startswith("-")], 3)
        try:
            hint = "did you mean %r? try '%s --help' to see all options" % (suggestions[0], self.program)
        except IndexError:
            hint = "try '%s --help' to see all options" % self.program
        trigger(UnknownSwitchError(
            "unknown option %r" % name,
            title="unknown option",
            code=FaultCode.UNKNOWN_SWITCH,
            name=name,
            suggestions=suggestions,
            hint=hint,
            docs=getdoc(FaultCode.UNKNOWN_SWITCH),
        ))

    def parse(self, args, /, environ=Unset):
        """
        Consume command-line tokens and resolve every field.

        Token forms
        - "--name value", "--name=value", "-a value", "-a=value"
        - boolean options take no token; "--flag=false" assigns explicitly
        - sequence options consume following tokens up to the next switch
        - "--" ends option processing; remaining tokens are positional
        - positionals fill in declaration order; a variadic one takes the rest

        Raises
        - HelpRequested / VersionRequested as soon as -h/--help or --version is seen
        - UnknownSwitchError, MissingOptionValueError, UnexpectedPositionalError
        - anything resolve() raises

        Returns
        - the destination record, updated in place
        """
        if isinstance(args, str):
            raise TypeError("parse() argument must be a sequence of strings, not a string")

        tokens = deque(args)
        explicit = {}
        pending = deque(spec for spec in self._positionals if not spec.synthesized)
        switching = True

        while tokens:
            token = tokens.popleft()

            if switching and token == "--":
                switching = False
                continue

            if switching and self._switchlike(token):
                name, assigned, inline = token.partition("=")
                if (spec := self._index.get(name)) is None or spec.positional:
                    self._unknown(name)

                if spec.synthesized:
                    interrupt = HelpRequested if spec.name == "help" else VersionRequested
                    trigger(interrupt(
                        "%s requested" % name,
                        title="%s requested" % spec.name,
                        code=FaultCode.HELP_REQUESTED if spec.name == "help" else FaultCode.VERSION_REQUESTED,
                        parser=self,
                    ))

                if spec.flag:
                    explicit[spec.name] = inline if assigned else True
                    continue

                if assigned:
                    values = [inline]
                else:
                    values = []
                    while tokens and not (tokens[0] == "--" or self._switchlike(tokens[0])):
                        values.append(tokens.popleft())
                        if not spec.type.sequence:
                            break

                if not values:
                    trigger(MissingOptionValueError(
                        "option %r needs a value" % name,
                        title="missing option value",
                        code=FaultCode.MISSING_OPTION_VALUE,
                        field=spec.field,
                        name=name,
                        hint="pass it as %s %s or %s=%s" % (name, spec.placeholder, name, spec.placeholder),
                        docs=getdoc(FaultCode.MISSING_OPTION_VALUE),
                    ))

                if spec.type.sequence:
                    explicit.setdefault(spec.name, []).extend(values)
                else:
                    explicit[spec.name] = values[-1]
                continue

            # positional token
            if not pending:
                trigger(UnexpectedPositionalError(
                    "unexpected positional argument %r" % token,
                    title="unexpected positional argument",
                    code=FaultCode.UNEXPECTED_POSITIONAL,
                    token=token,
                    hint="try '%s --help' to see the expected arguments" % self.program,
                    docs=getdoc(FaultCode.UNEXPECTED_POSITIONAL),
                ))
            if pending[0].variadic:
                explicit.setdefault(pending[0].name, []).append(token)
            else:
                explicit[pending.popleft().name] = token

        return self.resolve(explicit, environ=environ)

    # --- output surfaces (see argbind.render) ---

    def format_usage(self):
        return render.render_usage(self).plain

    def format_help(self):
        return render.render_help(self).plain

    def format_version(self):
        return render.render_version(self).plain

    def write_usage(self, file=Unset, /):
        render.write(render.render_usage(self), file)

    def write_help(self, file=Unset, /):
        render.write(render.render_help(self), file)

    def write_version(self, file=Unset, /):
        render.write(render.render_version(self), file)

    def print_usage(self, console=Unset, /):
        render.emit(render.render_usage(self, colorful=self._config.colorful), console)

    def print_help(self, console=Unset, /):
        render.emit(render.render_help(self, colorful=self._config.colorful), console)

    def print_version(self, console=Unset, /):
        render.emit(render.render_version(self, colorful=self._config.colorful), console)


class _Claims:
    """
    Name and alias registry enforcing global uniqueness while binding.
    """

    def __init__(self):
        self.names = {}
        self.aliases = {}

    def claim(self, spec, /):
        keys = [(self.names, spec.name, "name %r" % spec.name)]
        keys.extend((self.aliases, alias, "alias '-%s'" % alias) for alias in spec.aliases)

        for registry, key, label in keys:
            if (owner := registry.get(key)) is None:
                continue
            if spec.synthesized:
                message = "%s of field %r is reserved for a built-in option" % (label, owner)
                field, hint = owner, "--help/-h and --version are reserved, rename the field or change its alias"
            else:
                message = "%s of field %r is already used by field %r" % (label, spec.field, owner)
                field, hint = spec.field, "rename one of the fields or change the alias"
            trigger(DuplicateNameError(
                message,
                title="duplicate name",
                code=FaultCode.DUPLICATE_NAME,
                field=field,
                owner=owner,
                hint=hint,
                docs=getdoc(FaultCode.DUPLICATE_NAME),
            ))

        self.names[spec.name] = spec.field
        self.aliases.update(dict.fromkeys(spec.aliases, spec.field))


def _variadic_misplaced(field, other, reason, hint):
    trigger(InvalidVariadicPlacementError(
        "positional %r %s (variadic positional %r)" % (field, reason, other),
        title="invalid variadic placement",
        code=FaultCode.INVALID_VARIADIC_PLACEMENT,
        field=field,
        variadic=other,
        hint=hint,
        docs=getdoc(FaultCode.INVALID_VARIADIC_PLACEMENT),
    ))


def bind(record, /, config=Unset):
    """
    Bind a dataclass instance and return its Parser.

    Parameters
    - record: a (non-frozen) dataclass instance whose fields carry tags under
      the "arg" metadata key (see arg()).
    - config: Config; defaults to Config().

    Raises
    - TypeError when record is not a mutable dataclass instance.
    - MalformedTagError, UnsupportedFieldTypeError, DuplicateNameError,
      InvalidVariadicPlacementError on the first structural violation.
    """
    config = coalesce(config, Config())
    if not isinstance(config, Config):
        raise TypeError("bind() 'config' must be a Config")
    if not dataclasses.is_dataclass(record) or isinstance(record, type):
        raise TypeError("bind() argument must be a dataclass instance")
    if type(record).__dataclass_params__.frozen:
        raise TypeError("bind() argument must not be a frozen dataclass")

    hints = typing.get_type_hints(type(record))
    claims = _Claims()
    specs = []
    variadic = None

    for field in dataclasses.fields(record):
        tag = parse_tag(field.metadata.get(METADATA_KEY), field=field.name)
        if tag.ignored:
            continue

        if not (name := identifier(field.name)):
            trigger(MalformedTagError(
                "field %r does not yield an argument name" % field.name,
                title="malformed tag",
                code=FaultCode.MALFORMED_TAG,
                field=field.name,
                fragment=field.name,
                hint="rename the field or ignore it with the tag '-'",
                docs=getdoc(FaultCode.MALFORMED_TAG),
            ))

        kind = resolve(hints.get(field.name, field.type), field=field.name)
        value = getattr(record, field.name, zero(kind))
        default = display(value)

        spec = ArgumentSpec(
            field.name,
            "positional" if tag.positional else "option",
            name,
            kind,
            aliases=tag.aliases,
            required=tag.positional and not (kind.sequence or kind.optional) and default is None,
            variadic=tag.positional and kind.sequence,
            env=tag.env,
            default=default,
            help=tag.help,
            handle=Handle.of(record, field.name),
        )
        claims.claim(spec)

        if spec.positional:
            if variadic is not None:
                if spec.variadic:
                    _variadic_misplaced(field.name, variadic, "is a second variadic positional",
                                        "keep a single list-typed positional")
                _variadic_misplaced(field.name, variadic, "follows a variadic positional",
                                    "move the variadic positional last")
            if spec.variadic:
                variadic = field.name

        specs.append(spec)

    # built-in entries, always trailing
    helper = ArgumentSpec(None, "option", "help", aliases=("h",), help="display this help and exit", synthesized=True)
    claims.claim(helper)
    specs.append(helper)

    if (version := config.resolve_version()) is not None:
        versioner = ArgumentSpec(None, "option", "version", help="output version information and exit", synthesized=True)
        claims.claim(versioner)
        specs.append(versioner)

    return Parser(record, specs, config, version)


__all__ = (
    "ArgumentSpec",
    "Parser",
    "arg",
    "bind",
    "METADATA_KEY",
)
