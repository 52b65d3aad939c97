"""
Argloom faults (errors) and rendering.

Scope
- FaultCode: stable numeric identifiers for the faults argloom surfaces.
- ParseError: the application-boundary error produced by run() when user input
  cannot be parsed; it carries the structured Message plus runtime options and
  knows how to render itself with rich.
- DuplicateOptionError: construction-time defect, two sources of one parser
  declare the same option spelling.
- WithDefaultError: raised by with_default() factories to report a message
  instead of a value.
- trigger(): single entry point to surface a fault (raise, or render and exit).
- getdoc(): optional documentation lookup for a code from the host application.

Two kinds of failure
- parse-time failures are values (Failure/Invalid with a Message) inside the
  engine; they only become a ParseError at the run() boundary.
- construction-time defects raise immediately (TypeError, ValueError,
  DuplicateOptionError): no input can make them correct.

UX goals
- Position-first messages: the hint names the position where parsing stopped
  ("from third position").
- Short lowercase titles, one-sentence bodies, a single hint with the usage line.
- Styles come from built-in defaults merged with __main__.__styles__.
"""
import copy
import sys
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .messages import ensure_message, format_message, render

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping
    - parsing (1110x)
      • UNPARSABLE_INPUT: a parse step failed while tokens remained.
      • INCOMPLETE_INPUT: every token was consumed but the result could not be completed.
    - construction (1120x)
      • DUPLICATE_OPTION: an option spelling is declared by more than one source.
    """
    # --- parsing errors (11xxx) ---
    UNPARSABLE_INPUT = 11101
    INCOMPLETE_INPUT = 11102

    # --- construction errors (11xxx) ---
    DUPLICATE_OPTION = 11201

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__ to
        override numeric ids with friendlier labels.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class ParseError(Exception):
    def __init__(self, message, /, **options):
        self.message = ensure_message(message)
        self.options = MappingProxyType(options)

    def __str__(self):
        return format_message(self.message)

    def __rich__(self):
        main = __import__("__main__")
        colorful = self.options.get("colorful", True)
        fancy = self.options.get("fancy", False)

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # pinky title

            # body
            "error-message": "#C8C8D0",  # soft gray message
            "hint-arrow": "#9CE19C dim",  # green arrow
            "hint": "italic #9CE19C",  # green hint text
        } | getattr(main, "__styles__", {}))

        def text(fragment, style):
            if not fragment:
                return Text("")
            return Text(str(fragment), styles[style] if colorful else "")

        code = self.options.get("code", FaultCode.UNPARSABLE_INPUT)
        header = Text.assemble(
            "[ ",
            text(getattr(main, "__prog__", self.options.get("prog", "")), "prog-name"),
            " — ",
            text(code.normalize(), "code"),
            " | ",
            text(self.options.get("title", "parse error").title(), "error-title"),
            " ]"
        )
        message = render(self.message, colors=colorful, style=styles["error-message"])
        hint = Text.assemble(text(" → ", "hint-arrow"), text(self.options.get("hint"), "hint"))

        if fancy:
            return Panel(Group(message, hint), title=header, title_align="left")
        return Group(header, message, hint)

    def __trigger__(self):
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class DuplicateOptionError(ValueError):
    """
    an option spelling is declared by two or more sources of one parser.

    attributes
    - option_name: the conflicting spelling (e.g. "-v").
    - sources: field names, or positions as strings ("0", "2"), in declaration order.
    - code: FaultCode.DUPLICATE_OPTION.
    """

    def __init__(self, option_name, sources, /):
        self.option_name = option_name
        self.sources = tuple(sources)
        self.code = FaultCode.DUPLICATE_OPTION
        super().__init__(
            "duplicate option name %r found in %s; each option name must be unique within a parser "
            "(pass allow_duplicates=True to opt out)" % (option_name, ", ".join(map(repr, self.sources)))
        )


class WithDefaultError(Exception):
    """
    raised by a with_default() factory to fail completion with a message.
    """

    def __init__(self, message, /):
        self.message = ensure_message(message)
        super().__init__(format_message(self.message))


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods.
    - options are merged into the fault via copy.replace() before triggering.
    - in shell mode the fault is rendered on stderr and the process exits;
      otherwise it is raised.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


def getdoc(code, /):
    """
    optional documentation for a fault code, read from __main__.__docs__.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    return getattr(__import__("__main__"), "__docs__", {}).get(code)


__all__ = (
    "FaultCode",
    "ParseError",
    "DuplicateOptionError",
    "WithDefaultError",
    "trigger",
    "getdoc",
)
