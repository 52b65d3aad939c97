"""
Argloom constructs: parsers built from other parsers.

Overview
- Selection
  • or_(*parsers)             mutually exclusive alternatives; once a branch
                              consumed input, another branch consuming input
                              fails with "... cannot be used together."
  • longest_match(*parsers)   every branch is tried, the one with the greatest
                              cumulative consumption wins (ties: declaration order).
  • conditional(d, branches)  the value of discriminator d picks a branch.
- Aggregation
  • object_(fields)           named fields, offered each token by descending priority.
  • tuple_(parsers)           positional analogue, completes to a tuple.
  • concat(*tuples)           tuple_ over tuple parsers with a flattened result.
  • merge(*objects)           union of object parsers' fields.
  • group(label, parser)      labelled pass-through.

Duplicate detection
- object_, tuple_, concat, merge and group check at construction that no option
  spelling is declared by two of their sources and raise DuplicateOptionError
  otherwise; allow_duplicates=True opts out. Spellings are collected through
  every wrapper and construct, commands excluded.

Progress
- Aggregates only fold in child steps that consumed tokens; a zero-consumption
  success is taken at most once per position (end of input, optional children),
  so no loop here can spin without shrinking the buffer.
"""
import copy
import itertools
from collections.abc import Mapping
from types import MappingProxyType
from typing import NamedTuple

from .faults import DuplicateOptionError
from .messages import message, option_name, values
from .parsers import Failure, Invalid, Parser, Success, Valid, _sanitize_parser
from .suggestions import create_error_with_suggestions
from .usage import ExclusiveTerm
from .utils import *


class Selected(NamedTuple):
    """or_ state: the committed branch and its last successful step."""
    index: int
    result: Success


class Leading(NamedTuple):
    """longest_match state: the committed branch, its last step and its running total."""
    index: int
    result: Success
    total: int


class Slot(NamedTuple):
    """merge state key for children whose state is not a record."""
    index: int


class Pending(NamedTuple):
    discriminator: object


class Chosen(NamedTuple):
    discriminator: object
    key: object
    state: object


class Defaulted(NamedTuple):
    state: object


def _sanitize_parsers(cls, parsers, /):
    parsers = tuple(parsers)
    if not parsers:
        raise TypeError(f"{cls.__typename__} requires at least one parser")
    for parser in parsers:
        _sanitize_parser(cls, parser)
    return parsers


def _sanitize_label(cls, label, /):
    if label is Unset:
        return None
    if not isinstance(label, str):
        raise TypeError(f"{cls.__typename__} 'label' must be a string")
    elif not label.strip():
        raise ValueError(f"{cls.__typename__} 'label' cannot be empty")
    return label


def _detect_duplicates(sources, /):
    """
    Raise DuplicateOptionError for the first spelling owned by two sources.

    sources are (label, parser) pairs; spellings and labels keep their order.
    """
    owners = {}
    for label, parser in sources:
        for spelling in parser.spellings:
            labels = owners.setdefault(spelling, [])
            if label not in labels:
                labels.append(label)
    for spelling, labels in owners.items():
        if len(labels) > 1:
            raise DuplicateOptionError(spelling, labels)


def _advance(context, result, state, /):
    return copy.replace(context, buffer=result.next.buffer, terminated=result.next.terminated, state=state)


class Or(Parser):
    """
    Mutually exclusive alternatives.

    Trial order each step: the committed branch first, then declaration order.
    Failures report the branch that progressed furthest.
    """

    __introspectable__ = ("priority", "usage", "parsers", "errors")
    __errors__ = ("no_match", "unexpected_input", "suggestions")

    def __init__(self, *parsers, errors=Unset):
        parsers = _sanitize_parsers(type(self), parsers)
        super().__init__(
            parsers=parsers,
            errors=errors,
            priority=max(parser.priority for parser in parsers),
            usage=(ExclusiveTerm(tuple(parser.usage for parser in parsers)),),
            initial=None,
        )

    @property
    def children(self):
        return self._parsers

    def _branch_state(self, state, index):
        if state is not None and state.index == index:
            return state.result.next.state
        return self._parsers[index].initial

    def _unmatched(self, context):
        if not context.buffer:
            return Failure(0, self._fault("no_match", message("No matching option or command found.")))
        token = context.buffer[0]
        if "unexpected_input" in self._errors:
            return Failure(0, self._fault("unexpected_input", None, token))
        return Failure(0, create_error_with_suggestions(
            message("Unexpected option or subcommand: {}.", option_name(token)),
            token,
            context.usage,
            "both",
            self._errors.get("suggestions"),
        ))

    def parse(self, context, /):
        state = context.state
        furthest = None
        for index, parser in sorted(
                enumerate(self._parsers),
                key=lambda item: (state is None or item[0] != state.index, item[0]),
        ):
            result = parser.parse(copy.replace(context, state=self._branch_state(state, index)))
            if result.success and result.consumed:
                if state is not None and state.index != index:
                    return Failure(len(context.buffer) - len(result.next.buffer), message(
                        "{} and {} cannot be used together.", values(*state.result.consumed), values(*result.consumed)
                    ))
                return Success(_advance(context, result, Selected(index, result)), result.consumed)
            elif not result.success and result.consumed > (furthest.consumed if furthest else 0):
                furthest = result

        return furthest if furthest is not None else self._unmatched(context)

    def complete(self, state, /):
        if state is None:
            return Invalid(self._fault("no_match", message("No matching option or command found.")))
        return self._parsers[state.index].complete(state.result.next.state)

    def suggest(self, context, prefix, /):
        if context.state is None:
            for parser in self._parsers:
                yield from parser.suggest(copy.replace(context, state=parser.initial), prefix)
        else:
            parser = self._parsers[context.state.index]
            yield from parser.suggest(copy.replace(context, state=context.state.result.next.state), prefix)


class LongestMatch(Or):
    """
    Alternatives resolved by consumption.

    On its first step every branch is run ahead from the same context until it
    fails, stops consuming or runs out of input; the branch that consumed the
    most tokens in total is committed, the earlier branch on ties. Later steps
    only continue the committed branch.
    """

    @staticmethod
    def _exhaust(parser, context):
        """
        Step parser from context as far as it consumes.

        Returns (success, failure): the accumulated Success (None when nothing
        matched) and the Failure that stopped the run, if any.
        """
        current, consumed = context, []
        while True:
            result = parser.parse(current)
            if not result.success or not result.consumed:
                break
            current = result.next
            consumed.extend(result.consumed)
            if not current.buffer:
                break

        if not consumed:
            return (result, None) if result.success else (None, result)
        return Success(current, tuple(consumed)), None if result.success else result

    def parse(self, context, /):
        state = context.state
        # a branch committed on a match of nothing is reconsidered
        if state is not None and (state.total or state.result.consumed):
            result = self._parsers[state.index].parse(copy.replace(context, state=state.result.next.state))
            if not result.success:
                return result
            total = state.total + len(context.buffer) - len(result.next.buffer)
            return Success(_advance(context, result, Leading(state.index, result, total)), result.consumed)

        leading = None
        furthest = None
        for index, parser in enumerate(self._parsers):
            success, failure = self._exhaust(parser, copy.replace(context, state=parser.initial))
            if failure is not None and failure.consumed > (furthest.consumed if furthest else 0):
                furthest = failure
            if success is not None:
                total = len(context.buffer) - len(success.next.buffer)
                rank = (total, bool(success.consumed))
                if leading is None or rank > (leading.total, bool(leading.result.consumed)):
                    leading = Leading(index, success, total)

        # a branch that got further before failing beats a match of nothing
        if leading is not None and (leading.result.consumed or furthest is None):
            return Success(_advance(context, leading.result, leading), leading.result.consumed)
        return furthest if furthest is not None else self._unmatched(context)


class Object(Parser):
    """
    Named fields aggregated into a dict.

    Each step offers the buffer to the fields by descending priority (stable
    for equal priorities) and greedily folds in every child that consumes,
    until none does. At end of input it succeeds without consuming when every
    field can complete.
    """

    __introspectable__ = ("priority", "usage", "fields", "label", "errors", "allow_duplicates")
    __errors__ = ("unexpected_input", "end_of_input")

    def __init__(self, fields, /, *, label=Unset, errors=Unset, allow_duplicates=False):
        if not isinstance(fields, Mapping):
            raise TypeError(f"{type(self).__typename__} fields must be a mapping")
        for name, parser in fields.items():
            if not isinstance(name, str):
                raise TypeError(f"{type(self).__typename__} field names must be strings")
            _sanitize_parser(type(self), parser, f"field {name!r}")

        fields = MappingProxyType(dict(fields))
        self._ordered = tuple(sorted(fields.items(), key=lambda item: -item[1].priority))
        super().__init__(
            fields=fields,
            label=_sanitize_label(type(self), label),
            errors=errors,
            allow_duplicates=bool(allow_duplicates),
            priority=max((parser.priority for parser in fields.values()), default=0),
            usage=tuple(itertools.chain.from_iterable(parser.usage for _, parser in self._ordered)),
            initial=MappingProxyType({name: parser.initial for name, parser in fields.items()}),
        )
        if not allow_duplicates:
            _detect_duplicates(self.sources)

    @property
    def children(self):
        return tuple(self._fields.values())

    @property
    def sources(self):
        return tuple(self._fields.items())

    def _field_state(self, state, name):
        return state[name] if name in state else self._fields[name].initial

    def parse(self, context, /):
        current = context
        consumed = []
        furthest = None

        progressed = True
        while progressed and current.buffer:
            progressed = False
            for name, parser in self._ordered:
                result = parser.parse(copy.replace(current, state=self._field_state(current.state, name)))
                if result.success and result.consumed:
                    current = _advance(current, result, MappingProxyType(current.state | {name: result.next.state}))
                    consumed.extend(result.consumed)
                    progressed = True
                    break
                elif not result.success and result.consumed > (furthest.consumed if furthest else 0):
                    furthest = result

        if consumed:
            return Success(current, tuple(consumed))

        if not context.buffer and all(
                parser.complete(self._field_state(context.state, name)).success for name, parser in self._ordered
        ):
            return Success(context, ())

        if furthest is not None:
            return furthest
        if not context.buffer:
            return Failure(0, self._fault(
                "end_of_input", message("Expected an option or argument, but got end of input.")
            ))
        token = context.buffer[0]
        if "unexpected_input" in self._errors:
            return Failure(0, self._fault("unexpected_input", None, token))
        return Failure(0, create_error_with_suggestions(
            message("Unexpected option or argument: {}.", token), token, context.usage
        ))

    def complete(self, state, /):
        value = {}
        for name, parser in self._fields.items():
            result = parser.complete(self._field_state(state, name))
            if not result.success:
                return result
            value[name] = result.value
        return Valid(value)

    def suggest(self, context, prefix, /):
        for name, parser in self._ordered:
            yield from parser.suggest(copy.replace(context, state=self._field_state(context.state, name)), prefix)


class Tuple(Parser):
    """
    Positional aggregate completing to a tuple in declaration order.

    One step runs until every child matched: consuming children first (by
    priority), then children that succeed, or fail, without consuming.
    """

    __introspectable__ = ("priority", "usage", "parsers", "label", "allow_duplicates")

    def __init__(self, parsers, /, *, label=Unset, allow_duplicates=False):
        parsers = tuple(parsers)
        for index, parser in enumerate(parsers):
            _sanitize_parser(type(self), parser, f"item {index}")

        self._ordered = tuple(sorted(enumerate(parsers), key=lambda item: -item[1].priority))
        super().__init__(
            parsers=parsers,
            label=_sanitize_label(type(self), label),
            allow_duplicates=bool(allow_duplicates),
            priority=max((parser.priority for parser in parsers), default=0),
            usage=tuple(itertools.chain.from_iterable(parser.usage for _, parser in self._ordered)),
            initial=tuple(parser.initial for parser in parsers),
        )
        if not allow_duplicates:
            _detect_duplicates(self.sources)

    @property
    def children(self):
        return self._parsers

    @property
    def sources(self):
        return tuple((str(index), parser) for index, parser in enumerate(self._parsers))

    def parse(self, context, /):
        current = context
        consumed = []
        matched = set()

        while len(matched) < len(self._parsers):
            remaining = [(index, parser) for index, parser in self._ordered if index not in matched]
            furthest = Failure(0, message("No remaining parsers could match the input."))
            found = False

            for index, parser in remaining:
                result = parser.parse(copy.replace(current, state=current.state[index]))
                if result.success and result.consumed:
                    state = current.state[:index] + (result.next.state,) + current.state[index + 1:]
                    current = _advance(current, result, state)
                    consumed.extend(result.consumed)
                    matched.add(index)
                    found = True
                    break
                elif not result.success and furthest.consumed < result.consumed:
                    furthest = result

            if not found:
                for index, parser in remaining:
                    result = parser.parse(copy.replace(current, state=current.state[index]))
                    if result.success and not result.consumed:
                        state = current.state[:index] + (result.next.state,) + current.state[index + 1:]
                        current = copy.replace(current, state=state)
                        matched.add(index)
                        found = True
                        break
                    elif not result.success and not result.consumed:
                        # absent for now, completion decides
                        matched.add(index)
                        found = True
                        break

            if not found:
                return furthest

        return Success(current, tuple(consumed))

    def complete(self, state, /):
        value = []
        for parser, inner in zip(self._parsers, state):
            result = parser.complete(inner)
            if not result.success:
                return result
            value.append(result.value)
        return Valid(tuple(value))

    def suggest(self, context, prefix, /):
        for index, parser in self._ordered:
            yield from parser.suggest(copy.replace(context, state=context.state[index]), prefix)


class Concat(Tuple):
    def __init__(self, *parsers, label=Unset, allow_duplicates=False):
        super().__init__(parsers, label=label, allow_duplicates=allow_duplicates)

    def complete(self, state, /):
        result = super().complete(state)
        if not result.success:
            return result
        value = []
        for item in result.value:
            if isinstance(item, tuple | list):
                value.extend(item)
            else:
                value.append(item)
        return Valid(tuple(value))


class Merge(Parser):
    """
    Union of record parsers (object_, merge, or anything completing to a mapping).

    The state is one flat record: each child reads the fields it owns, and its
    new fields are written back last-writer-wins. Children whose state is not a
    record keep it under a Slot(index) key. Completion merges the children's
    mappings in priority order; non-mapping values are ignored.
    """

    __introspectable__ = ("priority", "usage", "parsers", "label", "allow_duplicates")

    def __init__(self, *parsers, label=Unset, allow_duplicates=False):
        parsers = _sanitize_parsers(type(self), parsers)
        self._ordered = tuple(sorted(enumerate(parsers), key=lambda item: -item[1].priority))

        initial = {}
        for index, parser in self._ordered:
            if isinstance(parser.initial, Mapping):
                initial |= parser.initial
            else:
                initial[Slot(index)] = parser.initial

        super().__init__(
            parsers=parsers,
            label=_sanitize_label(type(self), label),
            allow_duplicates=bool(allow_duplicates),
            priority=max(parser.priority for parser in parsers),
            usage=tuple(itertools.chain.from_iterable(parser.usage for _, parser in self._ordered)),
            initial=MappingProxyType(initial),
        )
        if not allow_duplicates:
            _detect_duplicates(self.sources)

    @property
    def children(self):
        return self._parsers

    @property
    def sources(self):
        return tuple((str(index), parser) for index, parser in enumerate(self._parsers))

    def _slice(self, state, index, parser):
        if isinstance(parser.initial, Mapping):
            return MappingProxyType({name: state.get(name, initial) for name, initial in parser.initial.items()})
        return state.get(Slot(index), parser.initial)

    def _fold(self, state, index, parser, inner):
        if isinstance(parser.initial, Mapping):
            return MappingProxyType(state | inner)
        return MappingProxyType(state | {Slot(index): inner})

    def parse(self, context, /):
        fallback = None
        for index, parser in self._ordered:
            result = parser.parse(copy.replace(context, state=self._slice(context.state, index, parser)))
            if result.success:
                next = _advance(context, result, self._fold(context.state, index, parser, result.next.state))
                if result.consumed:
                    return Success(next, result.consumed)
                if fallback is None:
                    fallback = Success(next, ())
            elif result.consumed:
                return result

        if fallback is not None:
            return fallback
        return Failure(0, message("No matching option or argument found."))

    def complete(self, state, /):
        value = {}
        for index, parser in self._ordered:
            result = parser.complete(self._slice(state, index, parser))
            if not result.success:
                return result
            if isinstance(result.value, Mapping):
                value |= result.value
        return Valid(value)

    def suggest(self, context, prefix, /):
        for index, parser in self._ordered:
            yield from parser.suggest(copy.replace(context, state=self._slice(context.state, index, parser)), prefix)


class Group(Parser):
    __introspectable__ = ("priority", "usage", "label", "parser", "allow_duplicates")

    def __init__(self, label, parser, /, *, allow_duplicates=False):
        _sanitize_parser(type(self), parser)
        super().__init__(
            label=_sanitize_label(type(self), label),
            parser=parser,
            allow_duplicates=bool(allow_duplicates),
            priority=parser.priority,
            usage=parser.usage,
            initial=parser.initial,
        )
        if not allow_duplicates and not parser.allow_duplicates:
            _detect_duplicates(parser.sources)

    @property
    def children(self):
        return (self._parser,)

    @property
    def sources(self):
        return self._parser.sources

    def parse(self, context, /):
        return self._parser.parse(context)

    def complete(self, state, /):
        return self._parser.complete(state)

    def suggest(self, context, prefix, /):
        return self._parser.suggest(context, prefix)


class Conditional(Parser):
    """
    Branch selection by a discriminator parser (usually a valued option).

    States
    - Pending(discriminator state): nothing decided yet.
    - Chosen(discriminator state, key, branch state): the discriminator completed
      to key and branches[key] now receives every token.
    - Defaulted(default state): input started without the discriminator and the
      default branch took over.

    Completes to (key, branch value), or (None, default value).
    """

    __introspectable__ = ("priority", "usage", "discriminator", "branches", "default", "errors")
    __errors__ = ("no_branch", "missing")

    def __init__(self, discriminator, branches, /, default=Unset, *, errors=Unset):
        _sanitize_parser(type(self), discriminator, "discriminator")
        if not isinstance(branches, Mapping) or not branches:
            raise TypeError(f"{type(self).__typename__} branches must be a non-empty mapping")
        for key, parser in branches.items():
            _sanitize_parser(type(self), parser, f"branch {key!r}")
        if default is not Unset:
            _sanitize_parser(type(self), default, "default")

        branches = MappingProxyType(dict(branches))
        alternatives = tuple(parser.usage for parser in branches.values())
        if default is not Unset:
            alternatives += (default.usage,)

        super().__init__(
            discriminator=discriminator,
            branches=branches,
            default=coalesce(default),
            errors=errors,
            priority=max(parser.priority for parser in (discriminator, *branches.values())),
            usage=(*discriminator.usage, ExclusiveTerm(alternatives)),
            initial=Pending(discriminator.initial),
        )

    @property
    def children(self):
        default = () if self._default is None else (self._default,)
        return (self._discriminator, *self._branches.values(), *default)

    def _step(self, parser, context, inner, wrap):
        result = parser.parse(copy.replace(context, state=inner))
        if not result.success:
            return result
        return Success(_advance(context, result, wrap(result.next.state)), result.consumed)

    def parse(self, context, /):
        match context.state:
            case Chosen(discriminator=discriminator, key=key, state=inner):
                return self._step(
                    self._branches[key], context, inner, lambda state: Chosen(discriminator, key, state)
                )
            case Defaulted(state=inner):
                return self._step(self._default, context, inner, Defaulted)

        if not context.buffer:
            return Success(context, ())

        pending = context.state.discriminator
        result = self._discriminator.parse(copy.replace(context, state=pending))
        if result.success and result.consumed:
            # the discriminator took "--" or similar without a value
            if result.next.state is pending:
                return Success(_advance(context, result, context.state), result.consumed)
            chosen = self._discriminator.complete(result.next.state)
            if not chosen.success:
                return Failure(len(result.consumed), chosen.error)
            if chosen.value not in self._branches:
                return Failure(len(result.consumed), self._fault(
                    "no_branch", message("No branch matches discriminator value {}.", str(chosen.value)), chosen.value
                ))
            branch = self._branches[chosen.value]
            return Success(
                _advance(context, result, Chosen(result.next.state, chosen.value, branch.initial)),
                result.consumed,
            )

        if self._default is not None:
            fallback = self._step(self._default, context, self._default.initial, Defaulted)
            if fallback.success and fallback.consumed:
                return fallback
            if not fallback.success and fallback.consumed > (0 if result.success else result.consumed):
                return fallback
        return result if not result.success else Failure(0, message(
            "Unexpected option or argument: {}.", context.buffer[0]
        ))

    def complete(self, state, /):
        match state:
            case Chosen(key=key, state=inner):
                result = self._branches[key].complete(inner)
                return Valid((key, result.value)) if result.success else result
            case Defaulted(state=inner):
                result = self._default.complete(inner)
                return Valid((None, result.value)) if result.success else result

        # an untouched discriminator was never given, whatever it completes to
        given = state.discriminator is not self._discriminator.initial
        chosen = self._discriminator.complete(state.discriminator)
        if chosen.success and chosen.value is not None and (given or self._default is None):
            if chosen.value not in self._branches:
                return Invalid(self._fault(
                    "no_branch", message("No branch matches discriminator value {}.", str(chosen.value)), chosen.value
                ))
            result = self._branches[chosen.value].complete(self._branches[chosen.value].initial)
            return Valid((chosen.value, result.value)) if result.success else result
        if self._default is not None:
            result = self._default.complete(self._default.initial)
            return Valid((None, result.value)) if result.success else result
        if not chosen.success:
            return Invalid(self._fault("missing", chosen.error))
        return Invalid(self._fault("missing", message("No discriminator value was given.")))

    def suggest(self, context, prefix, /):
        match context.state:
            case Chosen(key=key, state=inner):
                yield from self._branches[key].suggest(copy.replace(context, state=inner), prefix)
            case Defaulted(state=inner):
                yield from self._default.suggest(copy.replace(context, state=inner), prefix)
            case Pending(discriminator=inner):
                yield from self._discriminator.suggest(copy.replace(context, state=inner), prefix)
                if self._default is not None:
                    yield from self._default.suggest(copy.replace(context, state=self._default.initial), prefix)


def or_(*parsers, errors=Unset):
    """
    Mutually exclusive alternatives.

    Example
        >>> or_(option("-a"), option("-b"))   # "-a" or "-b", never both
    """
    return Or(*parsers, errors=errors)


def longest_match(*parsers, errors=Unset):
    """Alternatives where the branch consuming the most tokens wins."""
    return LongestMatch(*parsers, errors=errors)


def object_(fields, /, *, label=Unset, errors=Unset, allow_duplicates=False):
    """
    Aggregate named parsers into a dict.

    Example
        >>> object_({"verbose": option("-v"), "port": option("-p", integer())})
    """
    return Object(fields, label=label, errors=errors, allow_duplicates=allow_duplicates)


def tuple_(parsers, /, *, label=Unset, allow_duplicates=False):
    """Aggregate parsers positionally into a tuple."""
    return Tuple(parsers, label=label, allow_duplicates=allow_duplicates)


def concat(*parsers, label=Unset, allow_duplicates=False):
    """Run tuple parsers together and flatten their results into one tuple."""
    return Concat(*parsers, label=label, allow_duplicates=allow_duplicates)


def merge(*parsers, label=Unset, allow_duplicates=False):
    """Union the fields of several object parsers into one dict."""
    return Merge(*parsers, label=label, allow_duplicates=allow_duplicates)


def conditional(discriminator, branches, /, default=Unset, *, errors=Unset):
    """
    Select a branch parser by the value of a discriminator parser.

    Example
        >>> conditional(option("--reporter", choice(["console", "junit"])), {
        ...     "console": object_({"colors": option("--colors")}),
        ...     "junit": object_({"output": option("--output-file", string("FILE"))}),
        ... })
    """
    return Conditional(discriminator, branches, default, errors=errors)


def group(label, parser, /, *, allow_duplicates=False):
    """Label a parser for documentation; parsing passes through unchanged."""
    return Group(label, parser, allow_duplicates=allow_duplicates)


__all__ = (
    # States
    "Selected",
    "Leading",
    "Slot",
    "Pending",
    "Chosen",
    "Defaulted",

    # Types
    "Or",
    "LongestMatch",
    "Object",
    "Tuple",
    "Concat",
    "Merge",
    "Group",
    "Conditional",

    # Factories
    "or_",
    "longest_match",
    "object_",
    "tuple_",
    "concat",
    "merge",
    "conditional",
    "group",
)
