"""
Argloom parser contract and drivers.

Scope
- The state-machine contract every parser implements, the immutable values
  threaded through it, and the drivers that run a parser over an argument
  vector.

Contract
- priority: int, higher is offered the next token first among siblings.
- usage: tuple of usage terms (see argloom.usage).
- initial: the state before any token was seen.
- parse(context) -> Success(next, consumed) | Failure(consumed, error)
  • pure: the context is never mutated, a new Context is returned.
  • a Success with no consumed tokens means "nothing needed here" and must
    not be repeated by a caller at the same position.
- complete(state) -> Valid(value) | Invalid(error)
  • idempotent and side-effect free, callable whenever input is exhausted.
- suggest(context, prefix) -> iterator of Suggestion

Values
- Context(buffer, state, terminated=False, usage=())
  • buffer: remaining tokens (tuple). terminated: one-way latch set by "--".
  • usage: the root usage, used as candidate pool for suggestions.
- Success / Failure (step results), Valid / Invalid (completion results); each
  carries a class-level `success` flag so callers can branch uniformly.

Introspection
- ParserType derives __typename__ ("LongestMatch" -> "longest-match"), wires
  read-only properties for __introspectable__ names and provides
  __repr__/__rich_repr__ for rich.pretty.
- spellings: every option spelling a parser declares, through structural
  wrappers; commands stop the walk (their inner parser is a new namespace).
- sources: ordered (label, parser) pairs of aggregates, for duplicate detection.

Drivers
- parse(parser, args): step until the buffer is empty (at least once), then complete.
- suggest(parser, args): parse all but the last token, then complete the last one.
- run(parser, args): parse, or surface a ParseError through trigger().
"""
import functools
import itertools
import operator
import re
import sys
from collections.abc import Iterable, Mapping
from pathlib import Path
from types import MappingProxyType
from typing import NamedTuple

from .faults import FaultCode, ParseError, getdoc, trigger
from .messages import Message, ensure_message, message
from .usage import extract_option_names, format_usage
from .utils import *


class Context(NamedTuple):
    buffer: tuple
    state: object
    terminated: bool = False
    usage: tuple = ()


class Success(NamedTuple):
    next: Context
    consumed: tuple = ()
    success = True


class Failure(NamedTuple):
    consumed: int
    error: Message
    success = False


class Valid(NamedTuple):
    value: object
    success = True


class Invalid(NamedTuple):
    error: Message
    success = False


class Suggestion(NamedTuple):
    text: str
    description: Message | None = None


class ParserType(type):
    """
    Metaclass for parsers and value parsers.

    Responsibilities
    - Derive __typename__ from the class name (camel-case split with hyphens),
      used as prefix of construction errors.
    - Expose every name in __introspectable__ as a read-only property over
      self._<name> (see mirror()).
    - Provide __repr__/__rich_repr__ driven by __displayable__ (or
      __introspectable__ when unset).
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
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_errors(cls, metadata, /):
    """
    Internal: validate the 'errors' override mapping of a parser.

    - Unset becomes an empty mapping.
    - keys must be listed in cls.__errors__.
    - values must be a Message, a str, or a callable returning one of them.
    The metadata dict is updated in place with a read-only mapping.
    """
    errors = coalesce(metadata["errors"], {})
    if not isinstance(errors, Mapping):
        raise TypeError(f"{cls.__typename__} 'errors' must be a mapping")
    for key, override in errors.items():
        if key not in cls.__errors__:
            raise ValueError(f"{cls.__typename__} 'errors' got an unexpected key {key!r} (expected one of {
                ", ".join(map(repr, cls.__errors__))
            })")
        if not isinstance(override, str | Message) and not callable(override):
            raise TypeError(f"{cls.__typename__} 'errors' values must be messages, strings or callables")
    metadata["errors"] = MappingProxyType(dict(errors))


def _sanitize_parser(cls, parser, /, role="parser"):
    if not isinstance(parser, Parser):
        raise TypeError(f"{cls.__typename__} {role} must be a parser, not {type(parser).__name__!r}")
    return parser


class Parser(metaclass=ParserType):
    """
    Base class of every parser.

    Subclasses collect their configuration into a metadata dict, sanitize it,
    and hand it to Parser.__init__, which stores each entry as self._<name>.
    The 'errors' entry (when present) is validated against __errors__.
    """

    __introspectable__ = ("priority", "usage")
    __errors__ = ()
    allow_duplicates = False

    def __init__(self, /, **metadata):
        if "errors" in metadata:
            _sanitize_errors(type(self), metadata)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)

    @property
    def initial(self):
        return self._initial

    @property
    def children(self):
        return ()

    @property
    def spellings(self):
        if not self.children:
            return extract_option_names(self.usage)
        return tuple(dict.fromkeys(itertools.chain.from_iterable(child.spellings for child in self.children)))

    @property
    def sources(self):
        return ()

    def parse(self, context, /):
        raise NotImplementedError(f"{type(self).__typename__} does not implement parse()")

    def complete(self, state, /):
        raise NotImplementedError(f"{type(self).__typename__} does not implement complete()")

    def suggest(self, context, prefix, /):
        return iter(())

    def _fault(self, key, default, /, *args):
        """
        Resolve the caller's override for error 'key', or return default.

        Callable overrides receive *args (e.g. the offending token).
        """
        try:
            override = self._errors[key]
        except (AttributeError, KeyError):
            return default
        return ensure_message(override(*args) if callable(override) else override)


def _sanitize_args(function, args, /):
    if isinstance(args, str) or not isinstance(args, Iterable):
        raise TypeError(f"{function}() arguments must be an iterable of strings")
    args = tuple(args)
    if not all(isinstance(arg, str) for arg in args):
        raise TypeError(f"{function}() arguments must be an iterable of strings")
    return args


def _drive(parser, args, /):
    """
    Step parser over args and complete it; return (result, last context).

    The root is stepped at least once, even for empty input. A step that
    succeeds without shrinking a non-empty buffer stops the loop.
    """
    context = Context(args, parser.initial, False, parser.usage)
    while True:
        result = parser.parse(context)
        if not result.success:
            return Invalid(result.error), context
        previous, context = context.buffer, result.next
        if context.buffer and context.buffer == previous:
            return Invalid(message("Unexpected option or argument: {}.", context.buffer[0])), context
        if not context.buffer:
            break
    return parser.complete(context.state), context


def parse(parser, args, /):
    """
    Run parser over args; return Valid(value) or Invalid(error).
    """
    if not isinstance(parser, Parser):
        raise TypeError("parse() first argument must be a parser")
    result, _ = _drive(parser, _sanitize_args("parse", args))
    return result


def suggest(parser, args, /):
    """
    Return completion suggestions for the last element of args.

    Every token but the last is parsed first; when parsing fails the parser is
    still asked for suggestions from the state it reached.
    """
    if not isinstance(parser, Parser):
        raise TypeError("suggest() first argument must be a parser")
    args = _sanitize_args("suggest", args)
    if not args:
        raise ValueError("suggest() arguments must contain at least the prefix")
    *head, prefix = args

    context = Context(tuple(head), parser.initial, False, parser.usage)
    while context.buffer:
        result = parser.parse(context)
        if not result.success:
            break
        previous, context = context.buffer, result.next
        if context.buffer and context.buffer == previous:
            return []

    suggestions = {}
    for suggestion in parser.suggest(context, prefix):
        suggestions.setdefault(suggestion.text, suggestion)
    return list(suggestions.values())


def run(parser, args=Unset, /, *, prog=Unset, shell=False, fancy=False, colorful=True):
    """
    Parse args (defaults to sys.argv[1:]) and return the value.

    On failure a ParseError is surfaced through trigger(): raised when shell is
    False, rendered on stderr followed by exit status 1 otherwise.
    """
    if not isinstance(parser, Parser):
        raise TypeError("run() first argument must be a parser")
    args = _sanitize_args("run", coalesce(args, sys.argv[1:]))
    result, context = _drive(parser, args)
    if result.success:
        return result.value

    usage = format_usage(parser.usage)
    prog = coalesce(prog, Path(sys.argv[0]).name)
    if context.buffer:
        index = len(args) - len(context.buffer) + 1
        code = FaultCode.UNPARSABLE_INPUT
        title = "unparsable input"
        hint = "parsing stopped at %r from %s position; usage: %s %s" % (
            context.buffer[0], ordinal(index), prog, usage
        )
    else:
        index = len(args)
        code = FaultCode.INCOMPLETE_INPUT
        title = "incomplete input"
        hint = "all arguments were read but something is missing; usage: %s %s" % (prog, usage)

    trigger(
        ParseError(result.error),
        prog=prog,
        code=code,
        title=title,
        hint=hint,
        index=index,
        usage=parser.usage,
        docs=getdoc(code),
        shell=shell,
        fancy=fancy,
        colorful=colorful,
    )


__all__ = (
    # Values
    "Context",
    "Success",
    "Failure",
    "Valid",
    "Invalid",
    "Suggestion",

    # Types
    "ParserType",
    "Parser",

    # Drivers
    "parse",
    "suggest",
    "run",
)
