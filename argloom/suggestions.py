"""
Argloom suggestions ("did you mean ...?").

Scope
- Edit-distance ranking of option and command names, used to enrich parse
  failures. Enrichment is additive: when nothing is close enough, the base
  message is returned untouched.

Overview
- levenshtein_distance(source, target)
  • insert/delete/substitute cost 1, two-row dynamic programming.
  • symmetric, zero only for equal strings, works on code points (unicode safe).

- find_similar(input, candidates, ...)
  • exact match short-circuits to that single candidate.
  • candidates farther than max_distance, or whose distance exceeds
    max_distance_ratio * max(len(input), 1), are dropped.
  • case-insensitive by default; results keep the candidates' own casing.
  • ordered by distance, then by length difference to the input, then by name,
    capped at max_suggestions.

- create_suggestion_message(suggestions)
  • "Did you mean `--verbose`?" or "Did you mean one of these?" plus one line per name.

- create_error_with_suggestions(base, input, usage, kind="both", formatter=None)
  • searches option names, command names or both in a usage tree and appends
    the suggestion message (or the formatter's message) after a blank line.
"""
from types import MappingProxyType

from .messages import *
from .usage import extract_command_names, extract_option_names
from .utils import *

DEFAULT_FIND_OPTIONS = MappingProxyType({
    "max_distance": 3,
    "max_distance_ratio": 0.5,
    "max_suggestions": 3,
    "case_sensitive": False,
})


def levenshtein_distance(source, target, /):
    if not isinstance(source, str) or not isinstance(target, str):
        raise TypeError("levenshtein_distance() arguments must be strings")
    if source == target:
        return 0
    # iterate over the longer string so the rows stay short
    if len(source) < len(target):
        source, target = target, source
    if not target:
        return len(source)

    previous = list(range(len(target) + 1))
    for row, left in enumerate(source, 1):
        current = [row]
        for column, right in enumerate(target, 1):
            current.append(min(
                previous[column] + 1,
                current[column - 1] + 1,
                previous[column - 1] + (left != right),
            ))
        previous = current
    return previous[-1]


def find_similar(
        input,
        candidates,
        /,
        *,
        max_distance=DEFAULT_FIND_OPTIONS["max_distance"],
        max_distance_ratio=DEFAULT_FIND_OPTIONS["max_distance_ratio"],
        max_suggestions=DEFAULT_FIND_OPTIONS["max_suggestions"],
        case_sensitive=DEFAULT_FIND_OPTIONS["case_sensitive"],
):
    """
    Return up to max_suggestions candidates close to input, best first.
    """
    if not isinstance(input, str):
        raise TypeError("find_similar() first argument must be a string")
    if not isinstance(max_distance, int) or max_distance < 0:
        raise ValueError("find_similar() 'max_distance' must be a non-negative integer")
    if not isinstance(max_distance_ratio, int | float) or max_distance_ratio < 0:
        raise ValueError("find_similar() 'max_distance_ratio' must be a non-negative number")
    if not isinstance(max_suggestions, int) or max_suggestions < 1:
        raise ValueError("find_similar() 'max_suggestions' must be a positive integer")

    needle = input if case_sensitive else input.lower()
    ranked = []
    for candidate in dict.fromkeys(candidates):
        if not isinstance(candidate, str):
            raise TypeError("find_similar() candidates must be strings")
        distance = levenshtein_distance(needle, candidate if case_sensitive else candidate.lower())
        if not distance:
            return [candidate]
        if distance > max_distance or distance / max(len(input), 1) > max_distance_ratio:
            continue
        ranked.append((distance, abs(len(candidate) - len(input)), candidate))

    ranked.sort()
    return [candidate for *_, candidate in ranked[:max_suggestions]]


def create_suggestion_message(suggestions, /):
    """
    Build the "did you mean" message for ranked suggestions (empty for none).
    """
    match suggestions:
        case []:
            return Message()
        case [suggestion]:
            return message("Did you mean {}?", option_name(suggestion))
        case _:
            terms = [text("Did you mean one of these?")]
            for suggestion in suggestions:
                terms.extend((text("\n  "), option_name(suggestion)))
            return Message(terms)


def create_error_with_suggestions(base, input, usage, /, kind="both", formatter=None):
    """
    Append suggestions for input, drawn from usage, to the base error message.

    kind selects the candidate pool: "option", "command" or "both". formatter,
    when given, turns the ranked suggestions into the appended Message (an empty
    result leaves base unchanged).
    """
    if kind not in ("option", "command", "both"):
        raise ValueError("create_error_with_suggestions() 'kind' must be 'option', 'command' or 'both'")

    candidates = ()
    if kind in ("option", "both"):
        candidates += extract_option_names(usage)
    if kind in ("command", "both"):
        candidates += extract_command_names(usage)

    suggestions = find_similar(input, candidates)
    if formatter is not None:
        addition = ensure_message(formatter(suggestions))
    else:
        addition = create_suggestion_message(suggestions)
    if not addition:
        return base
    return base + "\n\n" + addition


__all__ = (
    # Constants
    "DEFAULT_FIND_OPTIONS",

    # Functions
    "levenshtein_distance",
    "find_similar",
    "create_suggestion_message",
    "create_error_with_suggestions",
)
