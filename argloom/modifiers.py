"""
Argloom modifiers: wrap a single parser and change how its result is produced.

Overview
- optional(parser)               absent -> None; usage "[...]".
- with_default(parser, default)  absent -> default (or default() when callable);
                                 a callable may raise WithDefaultError to fail.
- multiple(parser, min, max)     zero or more occurrences collected as a tuple.
- map_(parser, function)         transform the completed value.

Modifiers keep the wrapped parser's priority and are transparent to option
spelling collection (children).
"""
import copy
from typing import NamedTuple

from .faults import WithDefaultError
from .messages import message
from .parsers import Invalid, Parser, Success, Valid, _sanitize_parser
from .usage import MultipleTerm, OptionalTerm
from .utils import *


class Present(NamedTuple):
    """State of an optional parser once its inner parser took part."""
    state: object


class Optional(Parser):
    __introspectable__ = ("priority", "usage", "parser")

    def __init__(self, parser, /, **metadata):
        _sanitize_parser(type(self), parser)
        super().__init__(
            parser=parser,
            priority=parser.priority,
            usage=(OptionalTerm(parser.usage),),
            initial=None,
            **metadata,
        )

    @property
    def children(self):
        return (self._parser,)

    def _inner(self, state):
        return self._parser.initial if state is None else state.state

    def parse(self, context, /):
        inner = self._inner(context.state)
        result = self._parser.parse(copy.replace(context, state=inner))
        if result.success:
            if result.next.state is not inner or not result.consumed:
                return Success(copy.replace(result.next, state=Present(result.next.state)), result.consumed)
            return Success(copy.replace(result.next, state=context.state), result.consumed)
        # absence is fine as long as nothing was consumed
        if not result.consumed:
            return Success(context, ())
        return result

    def complete(self, state, /):
        if state is None:
            return Valid(None)
        return self._parser.complete(state.state)

    def suggest(self, context, prefix, /):
        return self._parser.suggest(copy.replace(context, state=self._inner(context.state)), prefix)


class WithDefault(Optional):
    __introspectable__ = ("priority", "usage", "parser", "default")

    def __init__(self, parser, default, /):
        super().__init__(parser, default=default)

    def complete(self, state, /):
        if state is not None:
            return self._parser.complete(state.state)
        if not callable(self._default):
            return Valid(self._default)
        try:
            return Valid(self._default())
        except WithDefaultError as error:
            return Invalid(error.message)


class Multiple(Parser):
    """
    Repeat a parser; the state is the tuple of per-occurrence states.

    A step first continues the last occurrence and falls back to starting a
    new one from the inner initial state.
    """

    __introspectable__ = ("priority", "usage", "parser", "min", "max", "errors")
    __errors__ = ("too_few", "too_many")

    def __init__(self, parser, /, min=0, max=Unset, errors=Unset):
        _sanitize_parser(type(self), parser)
        for name, bound in (("min", min), ("max", max)):
            if not isinstance(bound, int | Unset) or isinstance(bound, bool):
                raise TypeError(f"{type(self).__typename__} '{name}' must be an integer")
            if bound is not Unset and bound < 0:
                raise ValueError(f"{type(self).__typename__} '{name}' must be non-negative")
        if max is not Unset and min > max:
            raise ValueError(f"{type(self).__typename__} 'min' cannot be greater than 'max'")

        super().__init__(
            parser=parser,
            min=min,
            max=coalesce(max),
            errors=errors,
            priority=parser.priority,
            usage=(MultipleTerm(parser.usage, min),),
            initial=(),
        )

    @property
    def children(self):
        return (self._parser,)

    def parse(self, context, /):
        added = not context.state
        result = self._parser.parse(copy.replace(
            context, state=context.state[-1] if context.state else self._parser.initial
        ))
        if not result.success:
            if added:
                return result
            result = self._parser.parse(copy.replace(context, state=self._parser.initial))
            if not result.success:
                return result
            added = True

        states = (context.state if added else context.state[:-1]) + (result.next.state,)
        return Success(copy.replace(result.next, state=states), result.consumed)

    def complete(self, state, /):
        values = []
        for inner in state:
            result = self._parser.complete(inner)
            if not result.success:
                return result
            values.append(result.value)

        if len(values) < self._min:
            return Invalid(self._fault(
                "too_few", message("Expected at least {} values, but got only {}.", self._min, len(values)),
                self._min, len(values),
            ))
        if self._max is not None and len(values) > self._max:
            return Invalid(self._fault(
                "too_many", message("Expected at most {} values, but got {}.", self._max, len(values)),
                self._max, len(values),
            ))
        return Valid(tuple(values))

    def suggest(self, context, prefix, /):
        inner = context.state[-1] if context.state else self._parser.initial
        return self._parser.suggest(copy.replace(context, state=inner), prefix)


class Map(Parser):
    __introspectable__ = ("priority", "usage", "parser", "function")

    def __init__(self, parser, function, /):
        _sanitize_parser(type(self), parser)
        if not callable(function):
            raise TypeError(f"{type(self).__typename__} function must be callable")
        super().__init__(
            parser=parser,
            function=function,
            priority=parser.priority,
            usage=parser.usage,
            initial=parser.initial,
        )

    @property
    def children(self):
        return (self._parser,)

    @property
    def sources(self):
        return self._parser.sources

    def parse(self, context, /):
        return self._parser.parse(context)

    def complete(self, state, /):
        result = self._parser.complete(state)
        if not result.success:
            return result
        return Valid(self._function(result.value))

    def suggest(self, context, prefix, /):
        return self._parser.suggest(context, prefix)


def optional(parser, /):
    """Make parser optional: its value is None when it never matched."""
    return Optional(parser)


def with_default(parser, default, /):
    """
    Make parser optional with a fallback value.

    A callable default is invoked at completion time; it may raise
    WithDefaultError to fail with a message instead.
    """
    return WithDefault(parser, default)


def multiple(parser, /, min=0, max=Unset, errors=Unset):
    """Collect every occurrence of parser into a tuple, bounded by min/max."""
    return Multiple(parser, min, max, errors)


def map_(parser, function, /):
    """Apply function to the completed value of parser."""
    return Map(parser, function)


__all__ = (
    # States
    "Present",

    # Types
    "Optional",
    "WithDefault",
    "Multiple",
    "Map",

    # Factories
    "optional",
    "with_default",
    "multiple",
    "map_",
)
