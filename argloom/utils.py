"""
Argloom utilities (small shared helpers)

Scope
- Building blocks shared by the parser layers: sentinels, defaulting, naming
  and read-only exposure of parser configuration.

Overview
- UnsetType / Unset
  • Sentinel for "argument not given", distinct from None (None is a legitimate
    default for optional values and a legitimate discriminator result).
  • Falsey, printable as "Unset", sealed against subclassing.

- coalesce(value, default=None)
  • Materialize Unset into a default while keeping None/0/""/() untouched.

- rename(callable, name) / @rename("name")
  • Stable __name__/__qualname__ for generated methods (reprs, tracebacks).

- mirror("attr")
  • Read-only property over self._attr; containers come back as immutable
    views (tuple, frozenset, mappingproxy) so parser configuration cannot be
    altered after construction.

- ordinal(number)
  • "first", "second", ..., "11th", "22nd": position labels for fault messages.

Quick examples
    >>> coalesce(Unset, "STRING")
    'STRING'
    >>> coalesce(None, "STRING") is None
    True
    >>> ordinal(3), ordinal(12), ordinal(23)
    ('third', '12th', '23rd')
"""
import builtins
import functools
from collections.abc import Sequence, Mapping, Set
from types import MappingProxyType
from typing import final


@final
class UnsetType:
    """
    Sentinel type for values that were not provided.

    Characteristics
    - Boolean-false, but never equal to None.
    - repr() is "Unset".
    - Singleton: UnsetType() always returns the same object.
    - Sealed: subclassing raises TypeError.
    """

    def __or__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


def coalesce(object, default=None, /):
    """
    Return object unless it is Unset, in which case return default.

    Falsey values (None, 0, "", ()) are preserved; only the sentinel is replaced.
    """
    return object if object is not Unset else default


def rename(*parameters):
    """
    Assign __name__/__qualname__ to a callable, or build a decorator doing so.

    Forms
    - rename(callable, name) -> callable (updated in place)
    - rename(name) -> decorator
    """
    match len(parameters):
        case 2:
            callable, name = parameters
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            if not isinstance(name, str):
                raise TypeError("rename() second argument must be a string")
            try:
                callable.__qualname__ = name
                callable.__name__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() first argument must be a updatable callable") from None
            return callable
        case 1:
            name, = parameters
            if not isinstance(name, str):
                raise TypeError("@rename() argument must be a string")

            def wrapper(callable):
                if not builtins.callable(callable):
                    raise TypeError("@rename() must be applied to a callable")
                return rename(callable, name)

            return rename(wrapper, "rename")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def _freeze(object):
    """
    Recursively convert containers into immutable counterparts.

    - Mapping (non-proxy): mappingproxy over a frozen copy
    - Set: frozenset
    - Sequence (non-string, non-tuple): tuple
    Tuples (including NamedTuple states and usage terms) are returned as-is:
    they are already immutable and their type carries meaning.
    """
    if isinstance(object, MappingProxyType | tuple | str | bytes):
        return object
    elif isinstance(object, Mapping):
        return MappingProxyType(dict(zip(object.keys(), map(_freeze, object.values()))))
    elif isinstance(object, Set):
        return frozenset(object)
    elif isinstance(object, Sequence):
        return tuple(map(_freeze, object))
    return object


def mirror(name, /):
    """
    Define a read-only property exposing the backing attribute "_{name}".

    Containers are returned as immutable views (see _freeze).
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _freeze(getattr(self, "_" + name))

    return property(getter)


def ordinal(number, /):
    """
    Return a human-friendly ordinal label for a 1-based position.

    1..10 are spelled out, other numbers get numeric suffixes (11th, 21st, 112th).
    """
    if not isinstance(number, int) or isinstance(number, bool):
        raise TypeError("ordinal() argument must be an integer")
    if number < 1:
        raise ValueError("ordinal() argument must be a positive integer")

    if number <= 10:
        return (
            "first", "second", "third", "fourth", "fifth",
            "sixth", "seventh", "eighth", "ninth", "tenth",
        )[number - 1]

    # teens always take "th" (11th, 112th)
    if 10 < number % 100 < 20:
        return f"{number}th"
    return f'{number}%s' % {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")


Unset = UnsetType()
"""
The single "not provided" sentinel.

Use it as a parameter default whenever None is itself a meaningful value, and
resolve it with coalesce() where a concrete value is required.
"""


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "mirror",
    "ordinal",

    # Types
    "UnsetType",

    # Constants
    "Unset",
)
