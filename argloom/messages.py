"""
Argloom structured messages.

Scope
- Parse failures carry messages as values, not as preformatted strings. A
  Message is an ordered run of typed terms rendered late, when the caller knows
  whether quoting and colors are wanted.

Overview
- Terms (immutable NamedTuples)
  • Plain(text): literal prose.
  • OptionName(name) / OptionNames(names): option spellings, `--quoted`, joined by "/".
  • Metavar(metavar): value placeholder, `QUOTED`.
  • Value(value) / Values(values): user input, JSON-quoted, joined by spaces.

- Builders
  • message("Option {} requires a value.", option_name("--port")) interpolates
    terms into a template; "{}" is the only placeholder.
    Interpolated str become Value terms, numbers become Plain text and nested
    Messages are spliced in place.
  • text(), option_name(), option_names(), metavar(), value(), values() build terms.
  • ensure_message(object) accepts a Message or a str (for user overrides).

- Rendering
  • format_message(message, quotes=True, colors=False) -> str
  • render(message, ...) -> rich.text.Text, also reachable via Message.__rich__.
  • Styles default to italic option names, bold metavars and green values and
    may be overridden through a __styles__ mapping in __main__ ("option-name",
    "metavar", "value").

Quick example
    >>> error = message("Option {} requires a value, but got {}.", option_name("--port"), "x")
    >>> format_message(error)
    'Option `--port` requires a value, but got "x".'
    >>> format_message(error, quotes=False)
    'Option --port requires a value, but got x.'
"""
import itertools
import json
from collections import defaultdict
from typing import NamedTuple

from rich.console import Console
from rich.text import Text

from .utils import *


class Plain(NamedTuple):
    text: str
    kind = "text"


class OptionName(NamedTuple):
    name: str
    kind = "option-name"


class OptionNames(NamedTuple):
    names: tuple
    kind = "option-names"


class Metavar(NamedTuple):
    metavar: str
    kind = "metavar"


class Value(NamedTuple):
    value: str
    kind = "value"


class Values(NamedTuple):
    values: tuple
    kind = "values"


_TERMS = Plain | OptionName | OptionNames | Metavar | Value | Values


class Message(tuple):
    """
    Immutable sequence of message terms.

    Messages concatenate with + (str operands become Plain text), compare like
    tuples, print through format_message() and render through rich.
    """

    def __new__(cls, terms=(), /):
        terms = tuple(terms)
        for term in terms:
            if not isinstance(term, _TERMS):
                raise TypeError("message terms must be Plain, OptionName, OptionNames, Metavar, Value or Values")
        return super().__new__(cls, terms)

    def __add__(self, other, /):
        if isinstance(other, str):
            other = (Plain(other),)
        elif not isinstance(other, Message):
            return NotImplemented
        return Message((*self, *other))

    def __radd__(self, other, /):
        if not isinstance(other, str):
            return NotImplemented
        return Message((Plain(other), *self))

    def __str__(self):
        return format_message(self)

    def __repr__(self):
        return "Message(%r)" % (tuple(self),)

    def __rich__(self):
        return render(self)


def text(text, /):
    if not isinstance(text, str):
        raise TypeError("text() argument must be a string")
    return Plain(text)


def option_name(name, /):
    if not isinstance(name, str):
        raise TypeError("option_name() argument must be a string")
    return OptionName(name)


def option_names(*names):
    if not names:
        raise TypeError("option_names() takes at least one name")
    if not all(isinstance(name, str) for name in names):
        raise TypeError("option_names() arguments must be strings")
    return OptionNames(names)


def metavar(metavar, /):
    if not isinstance(metavar, str):
        raise TypeError("metavar() argument must be a string")
    return Metavar(metavar)


def value(value, /):
    if not isinstance(value, str):
        raise TypeError("value() argument must be a string")
    return Value(value)


def values(*values):
    if not all(isinstance(value, str) for value in values):
        raise TypeError("values() arguments must be strings")
    return Values(values)


def _interpolate(object, /):
    if isinstance(object, Message):
        return tuple(object)
    elif isinstance(object, _TERMS):
        return (object,)
    elif isinstance(object, str):
        return (Value(object),)
    elif isinstance(object, int | float) and not isinstance(object, bool):
        return (Plain(str(object)),)
    raise TypeError(f"message() cannot interpolate {type(object).__name__!r} objects")


def message(template, /, *values):
    """
    Build a Message from a template with "{}" placeholders.

    Raises TypeError when the number of placeholders and values differ.
    """
    if not isinstance(template, str):
        raise TypeError("message() template must be a string")
    parts = template.split("{}")
    if len(parts) - 1 != len(values):
        raise TypeError(f"message() template takes {len(parts) - 1} values but {len(values)} were given")

    terms = []
    for fragment, object in itertools.zip_longest(parts, values, fillvalue=Unset):
        if fragment:
            terms.append(Plain(fragment))
        if object is not Unset:
            terms.extend(_interpolate(object))
    return Message(terms)


def ensure_message(object, /):
    """Coerce a user-supplied override (Message or str) into a Message."""
    if isinstance(object, Message):
        return object
    elif isinstance(object, str):
        return Message((Plain(object),))
    raise TypeError(f"expected a message or a string, got {type(object).__name__!r}")


def _stylesheet():
    return defaultdict(str, {
        "option-name": "italic",
        "metavar": "bold",
        "value": "green",
        "command": "bold",
    } | getattr(__import__("__main__"), "__styles__", {}))


def _ansi(text, /):
    # force a terminal so the capture keeps escape codes even under pytest
    console = Console(force_terminal=True, color_system="standard", soft_wrap=True)
    with console.capture() as capture:
        console.print(text, end="")
    return capture.get()


def render(message, /, *, quotes=True, colors=True, style=""):
    """
    Render a Message into a rich Text.

    - quotes: wrap option names and metavars in backticks, JSON-quote values.
    - colors: apply the term styles; otherwise the Text is unstyled.
    - style: base style for plain fragments.
    """
    if not isinstance(message, Message):
        raise TypeError("render() argument must be a message")
    styles = _stylesheet() if colors else defaultdict(str)

    def quote(string, kind):
        if not quotes:
            return string
        if kind == "value":
            return json.dumps(string, ensure_ascii=False)
        return f"`{string}`"

    rendered = Text(style=style if colors else "")
    for term in message:
        match term:
            case Plain(text=fragment):
                rendered.append(fragment)
            case OptionName(name=name):
                rendered.append(quote(name, "option-name"), styles["option-name"])
            case OptionNames(names=names):
                for index, name in enumerate(names):
                    if index:
                        rendered.append("/")
                    rendered.append(quote(name, "option-name"), styles["option-name"])
            case Metavar(metavar=name):
                rendered.append(quote(name, "metavar"), styles["metavar"])
            case Value(value=string):
                rendered.append(quote(string, "value"), styles["value"])
            case Values(values=strings):
                for index, string in enumerate(strings):
                    if index:
                        rendered.append(" ")
                    rendered.append(quote(string, "value"), styles["value"])
    return rendered


def format_message(message, /, *, quotes=True, colors=False):
    """
    Format a Message as a string.

    With colors=True the result carries ANSI escape sequences produced by rich.
    """
    rendered = render(message, quotes=quotes, colors=colors)
    if not colors:
        return rendered.plain
    return _ansi(rendered)


__all__ = (
    # Terms
    "Plain",
    "OptionName",
    "OptionNames",
    "Metavar",
    "Value",
    "Values",

    # Types
    "Message",

    # Builders
    "message",
    "text",
    "option_name",
    "option_names",
    "metavar",
    "value",
    "values",
    "ensure_message",

    # Rendering
    "render",
    "format_message",
)
