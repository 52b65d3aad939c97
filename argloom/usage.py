"""
Argloom usage trees.

Scope
- A usage is a tuple of terms mirrored from the parser tree. Parsing never
  reads it; suggestions (option/command name candidates) and fault hints do.

Terms
- ArgumentTerm(metavar)              kind "argument"
- OptionTerm(names, metavar=None)    kind "option"
- CommandTerm(name)                  kind "command"
- OptionalTerm(terms)                kind "optional"   [terms]
- MultipleTerm(terms, min=0)         kind "multiple"   terms...
- ExclusiveTerm(terms)               kind "exclusive"  (a | b), terms is a tuple of usages

A usage is itself the sequence term: the terms of a plain tuple are rendered one
after another, and OptionalTerm, MultipleTerm and ExclusiveTerm nest such
tuples. object_, tuple_ and merge build their usage that way.

Helpers
- walk(usage): depth-first iteration over leaf terms.
- extract_option_names(usage) / extract_command_names(usage): ordered, unique names.
- format_usage(usage, colors=False): one-line rendering, e.g.
  "[-v/--verbose] -p/--port PORT (add | remove) FILE..."
"""
from collections import defaultdict
from typing import NamedTuple

from rich.text import Text

from .messages import _ansi, _stylesheet
from .utils import *


class ArgumentTerm(NamedTuple):
    metavar: str
    kind = "argument"


class OptionTerm(NamedTuple):
    names: tuple
    metavar: str | None = None
    kind = "option"


class CommandTerm(NamedTuple):
    name: str
    kind = "command"


class OptionalTerm(NamedTuple):
    terms: tuple
    kind = "optional"


class MultipleTerm(NamedTuple):
    terms: tuple
    min: int = 0
    kind = "multiple"


class ExclusiveTerm(NamedTuple):
    terms: tuple
    kind = "exclusive"


def walk(usage, /):
    """Yield every leaf term (argument, option, command) of a usage, depth first."""
    for term in usage:
        match term:
            case OptionalTerm(terms=terms) | MultipleTerm(terms=terms):
                yield from walk(terms)
            case ExclusiveTerm(terms=alternatives):
                for alternative in alternatives:
                    yield from walk(alternative)
            case ArgumentTerm() | OptionTerm() | CommandTerm():
                yield term
            case _:
                raise TypeError(f"unknown usage term {term!r}")


def extract_option_names(usage, /):
    names = {}
    for term in walk(usage):
        if isinstance(term, OptionTerm):
            names.update(dict.fromkeys(term.names))
    return tuple(names)


def extract_command_names(usage, /):
    return tuple(dict.fromkeys(term.name for term in walk(usage) if isinstance(term, CommandTerm)))


def _render(usage, styles, /):
    pieces = []
    for term in usage:
        piece = Text()
        match term:
            case ArgumentTerm(metavar=metavar):
                piece.append(metavar, styles["metavar"])
            case OptionTerm(names=names, metavar=metavar):
                piece.append("/".join(names), styles["option-name"])
                if metavar is not None:
                    piece.append(" ")
                    piece.append(metavar, styles["metavar"])
            case CommandTerm(name=name):
                piece.append(name, styles["command"])
            case OptionalTerm(terms=terms):
                if not terms:
                    continue
                piece.append("[")
                piece.append_text(_render(terms, styles))
                piece.append("]")
            case MultipleTerm(terms=terms, min=minimum):
                if not terms:
                    continue
                inner = _render(terms, styles)
                if len(terms) > 1:
                    inner = Text.assemble("(", inner, ")")
                inner.append("...")
                piece = inner if minimum else Text.assemble("[", inner, "]")
            case ExclusiveTerm(terms=alternatives):
                alternatives = [_render(alternative, styles) for alternative in alternatives if alternative]
                if not alternatives:
                    continue
                piece.append("(")
                piece.append_text(Text(" | ").join(alternatives))
                piece.append(")")
            case _:
                raise TypeError(f"unknown usage term {term!r}")
        pieces.append(piece)
    return Text(" ").join(pieces)


def format_usage(usage, /, *, colors=False):
    """
    Render a usage tuple on a single line.

    With colors=True, option names, metavars and commands take the "option-name",
    "metavar" and "command" styles (overridable through __main__.__styles__).
    """
    if not isinstance(usage, tuple):
        raise TypeError("format_usage() argument must be a usage tuple")
    rendered = _render(usage, _stylesheet() if colors else defaultdict(str))
    return _ansi(rendered) if colors else rendered.plain


__all__ = (
    # Terms
    "ArgumentTerm",
    "OptionTerm",
    "CommandTerm",
    "OptionalTerm",
    "MultipleTerm",
    "ExclusiveTerm",

    # Functions
    "walk",
    "extract_option_names",
    "extract_command_names",
    "format_usage",
)
