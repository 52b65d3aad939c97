"""
Argloom primitive parsers (leaves of the parser tree).

Overview
- constant(value)         priority 0, never consumes, completes to value.
- option(*names[, vp])    priority 10. With a value parser it consumes "NAME VALUE",
                          "--name=VALUE" or "/name:VALUE"; without one it is a
                          boolean switch (absent -> False) that also accepts
                          bundled short forms ("-abc" peels "-a", leaves "-bc").
- flag(*names)            priority 10, a boolean switch that must be present.
- argument(vp)            priority 5, one positional token; leaves option-looking
                          tokens to its siblings until "--" was seen.
- command(name, parser)   priority 15, matches a literal word then delegates to
                          its parser (a new option namespace).

Single use
- Options, flags and arguments hold one value: seeing them again fails with
  "... cannot be used multiple times." Repetition is what multiple() is for.

Terminator
- A literal "--" met by an option is consumed and latches context.terminated;
  from then on options refuse every token and arguments take tokens verbatim.

Names
- Accepted spellings: "-v", "--verbose", "/v", "+v" (no whitespace, "=" or ":").
  Names are kept in declaration order; duplicates within one option are rejected.

Error overrides
- Each parser documents the keys its 'errors' mapping accepts (__errors__);
  values are messages, strings, or callables receiving the offending input.
"""
import copy
import re
from typing import NamedTuple

from .messages import ensure_message, message, metavar, option_name, option_names
from .parsers import Context, Failure, Invalid, Parser, Success, Suggestion, Valid, _sanitize_parser
from .suggestions import create_error_with_suggestions, find_similar
from .usage import ArgumentTerm, CommandTerm, OptionalTerm, OptionTerm, extract_option_names
from .utils import *
from .valueparsers import ValueParser

_OPTION_LIKE = re.compile(r"--?[a-z0-9-]+", re.IGNORECASE)


def _sanitize_names(cls, metadata, /):
    """
    Internal: validate option spellings and keep them in declaration order.

    Raises
    - TypeError: no names, or a non-string name.
    - ValueError: malformed or repeated names.
    """
    if not metadata["names"]:
        raise TypeError(f"{cls.__typename__} must specify at least one name")

    names = []
    for name in metadata["names"]:
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} names must be strings")
        elif not re.fullmatch(r"(?:--?|/|\+)[^\s=:\-][^\s=:]*", name):
            raise ValueError(f"{cls.__typename__} name {name!r} must look like -x, --name, /name or +name")
        elif name in names:
            raise ValueError(f"{cls.__typename__} names cannot contain duplicates")
        names.append(name)
    metadata["names"] = tuple(names)


def _sanitize_value(cls, metadata, /):
    if not isinstance(value := metadata["value"], ValueParser | Unset):
        raise TypeError(f"{cls.__typename__} value parser must be a value-parser, not {type(value).__name__!r}")
    metadata["value"] = coalesce(value)


class Constant(Parser):
    __introspectable__ = ("priority", "value")

    def __init__(self, value, /):
        super().__init__(value=value, priority=0, usage=(), initial=value)

    def parse(self, context, /):
        return Success(context, ())

    def complete(self, state, /):
        return Valid(state)


class Option(Parser):
    """
    Named option, valued (with a value parser) or boolean (without one).

    States
    - boolean: Valid(False) initially, Valid(True) once seen.
    - valued: None initially, then the value parser's Valid/Invalid result;
      an invalid value is only reported at completion.
    """

    __introspectable__ = ("priority", "usage", "names", "value", "errors")
    __errors__ = (
        "terminated",
        "end_of_input",
        "duplicate",
        "no_value",
        "unexpected_value",
        "no_match",
        "missing",
        "invalid_value",
    )

    def __init__(self, *names, value=Unset, errors=Unset):
        if names and isinstance(names[-1], ValueParser):
            if value is not Unset:
                raise TypeError(f"{type(self).__typename__} got the value parser twice")
            *names, value = names

        metadata = {"names": names, "value": value, "errors": errors}
        _sanitize_names(type(self), metadata)
        _sanitize_value(type(self), metadata)
        super().__init__(priority=10, **metadata, **self._shape(metadata["names"], metadata["value"]))

    @staticmethod
    def _shape(names, value):
        if value is None:
            return {"usage": (OptionalTerm((OptionTerm(names),)),), "initial": Valid(False)}
        return {"usage": (OptionTerm(names, value.metavar),), "initial": None}

    def _taken(self, state):
        return state is not None and state.success and (self._value is not None or bool(state.value))

    def _assignment(self, name, payload):
        return message("Option {} is a Boolean flag, but got a value: {}.", option_name(name), payload)

    def _duplicate(self, name):
        return Failure(1, self._fault("duplicate", message("{} cannot be used multiple times.", option_name(name)), name))

    def parse(self, context, /):
        if context.terminated:
            return Failure(0, self._fault("terminated", message("No more options can be parsed.")))
        if not context.buffer:
            return Failure(0, self._fault("end_of_input", message("Expected an option, but got end of input.")))

        token = context.buffer[0]
        if token == "--":
            return Success(copy.replace(context, buffer=context.buffer[1:], terminated=True), (token,))

        if token in self._names:
            if self._taken(context.state):
                return self._duplicate(token)
            if self._value is None:
                return Success(copy.replace(context, buffer=context.buffer[1:], state=Valid(True)), (token,))
            if len(context.buffer) < 2:
                return Failure(1, self._fault(
                    "no_value", message("Option {} requires a value, but got no value.", option_name(token)), token
                ))
            return Success(
                copy.replace(context, buffer=context.buffer[2:], state=self._value.parse(context.buffer[1])),
                context.buffer[:2],
            )

        # attached forms: --name=value and /name:value
        for name in self._names:
            separator = ":" if name.startswith("/") else "=" if name.startswith("--") else None
            if separator is None or not token.startswith(name + separator):
                continue
            if self._taken(context.state):
                return self._duplicate(name)
            payload = token[len(name) + 1:]
            if self._value is None:
                return Failure(1, self._fault("unexpected_value", self._assignment(name, payload), name, payload))
            return Success(copy.replace(context, buffer=context.buffer[1:], state=self._value.parse(payload)), (token,))

        # bundled short switches: -abc -> -a, then -bc
        if self._value is None and token[:1] == "-" and token[1:2] != "-" and len(token) > 2:
            for name in self._names:
                if len(name) != 2 or name[0] != "-" or not token.startswith(name):
                    continue
                if self._taken(context.state):
                    return self._duplicate(name)
                return Success(
                    copy.replace(context, buffer=("-" + token[2:], *context.buffer[1:]), state=Valid(True)),
                    (name,),
                )

        if "no_match" in self._errors:
            suggestions = find_similar(token, extract_option_names(context.usage))
            return Failure(0, self._fault("no_match", None, token, suggestions))
        return Failure(0, create_error_with_suggestions(
            message("No matched option for {}.", option_name(token)), token, context.usage, "option"
        ))

    def complete(self, state, /):
        if state is None:
            return Invalid(self._fault("missing", message("Missing option {}.", option_names(*self._names))))
        if state.success:
            return state
        return Invalid(self._fault(
            "invalid_value", message("{}: {}", option_names(*self._names), state.error), state.error
        ))

    def suggest(self, context, prefix, /):
        if "=" in prefix:
            name, _, payload = prefix.partition("=")
            if name in self._names and self._value is not None:
                for suggestion in self._value.suggest(payload):
                    yield copy.replace(suggestion, text=f"{name}={suggestion.text}")
            return

        if prefix.startswith(("-", "/", "+")):
            for name in self._names:
                # a lone "-" only completes to short names
                if name.startswith(prefix) and (prefix != "-" or len(name) == 2):
                    yield Suggestion(name)

        if self._value is not None and context.buffer and context.buffer[-1] in self._names:
            yield from self._value.suggest(prefix)


class Flag(Option):
    """
    Boolean switch that must be present: completion fails while unseen.
    """

    __introspectable__ = ("priority", "usage", "names", "errors")

    def __init__(self, *names, errors=Unset):
        if any(isinstance(name, ValueParser) for name in names):
            raise TypeError(f"{type(self).__typename__} does not accept a value parser")
        super().__init__(*names, errors=errors)

    @staticmethod
    def _shape(names, value):
        return {"usage": (OptionTerm(names),), "initial": None}

    def _taken(self, state):
        return state is not None

    def _assignment(self, name, payload):
        return message("Flag {} does not accept a value, but got: {}.", option_name(name), payload)

    def complete(self, state, /):
        if state is None:
            return Invalid(self._fault("missing", message("Required flag {} is missing.", option_names(*self._names))))
        return state


class Argument(Parser):
    __introspectable__ = ("priority", "usage", "value", "errors")
    __errors__ = ("option", "end_of_input", "duplicate", "missing", "invalid_value")

    def __init__(self, value, /, *, errors=Unset):
        metadata = {"value": value, "errors": errors}
        _sanitize_value(type(self), metadata)
        if metadata["value"] is None:
            raise TypeError(f"{type(self).__typename__} requires a value parser")
        super().__init__(priority=5, usage=(ArgumentTerm(value.metavar),), initial=None, **metadata)

    def parse(self, context, /):
        index = 0
        terminated = context.terminated
        if not terminated and context.buffer:
            token = context.buffer[0]
            if token == "--":
                terminated, index = True, 1
            elif _OPTION_LIKE.fullmatch(token):
                return Failure(0, self._fault(
                    "option", message("Expected an argument, but got an option: {}.", option_name(token)), token
                ))

        if len(context.buffer) <= index:
            return Failure(index, self._fault(
                "end_of_input", message("Expected a {}, but got end of input.", metavar(self._value.metavar))
            ))
        if context.state is not None:
            return Failure(index, self._fault(
                "duplicate", message("The argument {} cannot be used multiple times.", metavar(self._value.metavar))
            ))
        return Success(
            Context(context.buffer[index + 1:], self._value.parse(context.buffer[index]), terminated, context.usage),
            context.buffer[:index + 1],
        )

    def complete(self, state, /):
        if state is None:
            return Invalid(self._fault(
                "missing", message("Expected a {}, but too few arguments.", metavar(self._value.metavar))
            ))
        if state.success:
            return state
        return Invalid(self._fault(
            "invalid_value", message("{}: {}", metavar(self._value.metavar), state.error), state.error
        ))

    def suggest(self, context, prefix, /):
        if context.state is None:
            yield from self._value.suggest(prefix)


class Matched(NamedTuple):
    name: str


class Parsing(NamedTuple):
    state: object


class Command(Parser):
    """
    Subcommand: a literal word followed by its own parser.

    States: None (not seen) -> Matched(name) -> Parsing(inner state).
    """

    __introspectable__ = ("priority", "usage", "name", "parser", "description", "errors")
    __errors__ = ("not_matched", "not_found")

    def __init__(self, name, parser, /, *, description=Unset, errors=Unset):
        if not isinstance(name, str):
            raise TypeError(f"{type(self).__typename__} name must be a string")
        elif not name or re.search(r"\s", name):
            raise ValueError(f"{type(self).__typename__} name cannot be empty or contain whitespace")
        _sanitize_parser(type(self), parser)
        if description is not Unset:
            description = ensure_message(description)

        super().__init__(
            name=name,
            parser=parser,
            description=coalesce(description),
            errors=errors,
            priority=15,
            usage=(CommandTerm(name), *parser.usage),
            initial=None,
        )

    @property
    def children(self):
        return (self._parser,)

    @property
    def spellings(self):
        return ()

    def parse(self, context, /):
        if context.state is None:
            if not context.buffer or context.buffer[0] != self._name:
                actual = context.buffer[0] if context.buffer else None
                if "not_matched" in self._errors:
                    return Failure(0, self._fault("not_matched", None, self._name, actual))
                if actual is None:
                    return Failure(0, message("Expected command {}, but got end of input.", option_name(self._name)))
                return Failure(0, create_error_with_suggestions(
                    message("Expected command {}, but got {}.", option_name(self._name), actual),
                    actual,
                    context.usage,
                    "command",
                ))
            return Success(
                copy.replace(context, buffer=context.buffer[1:], state=Matched(self._name)),
                context.buffer[:1],
            )

        inner = self._parser.initial if isinstance(context.state, Matched) else context.state.state
        result = self._parser.parse(copy.replace(context, state=inner))
        if not result.success:
            return result
        return Success(copy.replace(result.next, state=Parsing(result.next.state)), result.consumed)

    def complete(self, state, /):
        match state:
            case None:
                return Invalid(self._fault("not_found", message("Command {} was not matched.", option_name(self._name))))
            case Matched():
                return self._parser.complete(self._parser.initial)
            case Parsing(state=inner):
                return self._parser.complete(inner)

    def suggest(self, context, prefix, /):
        match context.state:
            case None:
                if self._name.startswith(prefix):
                    yield Suggestion(self._name, self._description)
            case Matched():
                yield from self._parser.suggest(copy.replace(context, state=self._parser.initial), prefix)
            case Parsing(state=inner):
                yield from self._parser.suggest(copy.replace(context, state=inner), prefix)


def constant(value, /):
    """Parser that consumes nothing and completes to value."""
    return Constant(value)


def option(*names, value=Unset, errors=Unset):
    """
    Named option. A trailing value parser (positional or value=) makes it
    valued; otherwise it is a boolean switch.

    Example
        >>> option("-v", "--verbose")
        >>> option("-p", "--port", integer())
    """
    return Option(*names, value=value, errors=errors)


def flag(*names, errors=Unset):
    """Boolean switch that is required to appear."""
    return Flag(*names, errors=errors)


def argument(value, /, *, errors=Unset):
    """Positional argument converted by the value parser."""
    return Argument(value, errors=errors)


def command(name, parser, /, *, description=Unset, errors=Unset):
    """Subcommand matching the literal name, then parsing with parser."""
    return Command(name, parser, description=description, errors=errors)


__all__ = (
    # States
    "Matched",
    "Parsing",

    # Types
    "Constant",
    "Option",
    "Flag",
    "Argument",
    "Command",

    # Factories
    "constant",
    "option",
    "flag",
    "argument",
    "command",
)
