"""
Argloom value parsers.

Scope
- The narrow contract the engine relies on to turn one token into a typed
  value, plus the small set of leaves the engine itself needs (string, integer,
  choice). Richer leaves (urls, hosts, ports, ...) plug in by subclassing
  ValueParser.

Contract
- metavar: non-empty display name used in usage and messages.
- parse(token) -> Valid(value) | Invalid(error)
- format(value) -> str
- suggest(prefix) -> iterator of Suggestion (optional, empty by default)

Configuration errors (an empty metavar, an empty choice list, min > max) are
authoring bugs and raise immediately at construction.
"""
import re

from .messages import Values, message
from .parsers import Invalid, ParserType, Suggestion, Valid
from .utils import *


def _sanitize_metavar(cls, metadata, /):
    if not isinstance(metavar := metadata["metavar"], str):
        raise TypeError(f"{cls.__typename__} 'metavar' must be a string")
    elif not (metavar := metavar.strip()):
        raise ValueError(f"{cls.__typename__} 'metavar' cannot be empty")
    metadata["metavar"] = metavar


class ValueParser(metaclass=ParserType):
    """
    Base class of value parsers; subclasses implement parse().
    """

    __introspectable__ = ("metavar",)

    def __init__(self, /, **metadata):
        _sanitize_metavar(type(self), metadata)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)

    def parse(self, token, /):
        raise NotImplementedError(f"{type(self).__typename__} does not implement parse()")

    def format(self, value, /):
        return str(value)

    def suggest(self, prefix, /):
        return iter(())


class String(ValueParser):
    __introspectable__ = ("metavar", "pattern")

    def __init__(self, metavar="STRING", /, pattern=Unset):
        if isinstance(pattern, str):
            pattern = re.compile(pattern)
        elif not isinstance(pattern, re.Pattern | Unset):
            raise TypeError(f"{type(self).__typename__} 'pattern' must be a string or a compiled pattern")
        super().__init__(metavar=metavar, pattern=coalesce(pattern))

    def parse(self, token, /):
        if self._pattern is not None and not self._pattern.search(token):
            return Invalid(message(
                "Expected a string matching {}, but got {}.", self._pattern.pattern, token
            ))
        return Valid(token)


class Integer(ValueParser):
    __introspectable__ = ("metavar", "min", "max")

    def __init__(self, metavar="INTEGER", /, min=Unset, max=Unset):
        for name, bound in (("min", min), ("max", max)):
            if not isinstance(bound, int | Unset) or isinstance(bound, bool):
                raise TypeError(f"{type(self).__typename__} '{name}' must be an integer")
        if min is not Unset and max is not Unset and min > max:
            raise ValueError(f"{type(self).__typename__} 'min' cannot be greater than 'max'")
        super().__init__(metavar=metavar, min=coalesce(min), max=coalesce(max))

    def parse(self, token, /):
        if not re.fullmatch(r"[+-]?\d+", token):
            return Invalid(message("Expected a valid integer, but got {}.", token))
        number = int(token)
        if self._min is not None and number < self._min:
            return Invalid(message("Expected a value greater than or equal to {}, but got {}.", self._min, token))
        if self._max is not None and number > self._max:
            return Invalid(message("Expected a value less than or equal to {}, but got {}.", self._max, token))
        return Valid(number)


class Choice(ValueParser):
    __introspectable__ = ("metavar", "choices", "case_insensitive")

    def __init__(self, choices, /, metavar="TYPE", case_insensitive=False):
        sanitized = []
        for choice in choices:
            if not isinstance(choice, str):
                raise TypeError(f"{type(self).__typename__} 'choices' must be strings")
            if choice in sanitized:
                raise ValueError(f"{type(self).__typename__} 'choices' cannot contain duplicates")
            sanitized.append(choice)
        if not sanitized:
            raise ValueError(f"{type(self).__typename__} 'choices' cannot be empty")
        super().__init__(metavar=metavar, choices=tuple(sanitized), case_insensitive=bool(case_insensitive))

    def _normalize(self, string):
        return string.lower() if self._case_insensitive else string

    def parse(self, token, /):
        for choice in self._choices:
            if self._normalize(choice) == self._normalize(token):
                return Valid(choice)
        return Invalid(message("Expected one of {}, but got {}.", Values(self._choices), token))

    def suggest(self, prefix, /):
        for choice in self._choices:
            if self._normalize(choice).startswith(self._normalize(prefix)):
                yield Suggestion(choice)


def string(metavar="STRING", /, pattern=Unset):
    """Accept any token, optionally constrained by a regular expression (searched)."""
    return String(metavar, pattern)


def integer(metavar="INTEGER", /, min=Unset, max=Unset):
    """Accept a decimal integer, optionally bounded by min/max (inclusive)."""
    return Integer(metavar, min, max)


def choice(choices, /, metavar="TYPE", case_insensitive=False):
    """Accept one of a fixed set of strings; suggests the matching ones."""
    return Choice(choices, metavar, case_insensitive)


__all__ = (
    # Types
    "ValueParser",
    "String",
    "Integer",
    "Choice",

    # Factories
    "string",
    "integer",
    "choice",
)
