"""
Utilities behavioral tests (sentinel, coalescing, naming, mirrors, ordinals).

Scope
- Validate the Unset sentinel: singleton identity, falsy semantics, copying,
  pickling and finality.
- Validate coalesce/rename/mirror/ordinal contracts, including rejected inputs.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import copy
import pickle
import unittest
from types import MappingProxyType
from unittest import TestCase

from argloom.utils import *


class TestUnset(TestCase):
    """Semantic guarantees of the Unset sentinel."""

    def testSingletonIdentity(self):
        self.assertIs(UnsetType(), Unset)

    def testFalsyAndRepr(self):
        self.assertFalse(Unset)
        self.assertEqual(repr(Unset), "Unset")
        self.assertIsNot(Unset, None)

    def testCopiesKeepIdentity(self):
        self.assertIs(copy.copy(Unset), Unset)
        self.assertIs(copy.deepcopy(Unset), Unset)

    def testPickleRoundTripKeepsIdentity(self):
        self.assertIs(pickle.loads(pickle.dumps(Unset)), Unset)

    def testCannotBeSubclassed(self):
        with self.assertRaises(TypeError):
            type("Derived", (UnsetType,), {})

    def testUnionWithTypesWorksInIsinstance(self):
        self.assertTrue(isinstance(Unset, int | Unset))
        self.assertTrue(isinstance(3, int | Unset))
        self.assertFalse(isinstance("x", int | Unset))


class TestHelpers(TestCase):
    """coalesce, rename and mirror."""

    def testCoalesceReplacesOnlyUnset(self):
        self.assertEqual(coalesce(Unset, 3), 3)
        self.assertIsNone(coalesce(Unset))
        self.assertEqual(coalesce(0, 3), 0)
        self.assertEqual(coalesce("", "x"), "")

    def testRenameDirectForm(self):
        function = rename(lambda: 0, "renamed")
        self.assertEqual(function.__name__, "renamed")
        self.assertEqual(function.__qualname__, "renamed")

    def testRenameDecoratorForm(self):
        @rename("other")
        def function():
            pass

        self.assertEqual(function.__name__, "other")

    def testRenameRejectsBadArity(self):
        with self.assertRaises(TypeError):
            rename()
        with self.assertRaises(TypeError):
            rename(1, 2, 3)

    def testRenameRejectsNonCallable(self):
        with self.assertRaises(TypeError):
            rename(42, "name")

    def testMirrorFreezesContainers(self):
        class Holder:
            items = mirror("items")
            table = mirror("table")
            tags = mirror("tags")

            def __init__(self):
                self._items = [1, [2, 3]]
                self._table = {"a": [1]}
                self._tags = {"x"}

        holder = Holder()
        self.assertEqual(holder.items, (1, (2, 3)))
        self.assertIsInstance(holder.table, MappingProxyType)
        self.assertEqual(holder.table["a"], (1,))
        self.assertEqual(holder.tags, frozenset({"x"}))

    def testMirrorRequiresString(self):
        with self.assertRaises(TypeError):
            mirror(3)


class TestOrdinal(TestCase):
    """Position labels used in fault hints."""

    def testSpelledOutUpToTen(self):
        self.assertEqual(ordinal(1), "first")
        self.assertEqual(ordinal(3), "third")
        self.assertEqual(ordinal(10), "tenth")

    def testNumericSuffixes(self):
        self.assertEqual(ordinal(11), "11th")
        self.assertEqual(ordinal(12), "12th")
        self.assertEqual(ordinal(13), "13th")
        self.assertEqual(ordinal(21), "21st")
        self.assertEqual(ordinal(22), "22nd")
        self.assertEqual(ordinal(23), "23rd")
        self.assertEqual(ordinal(101), "101st")
        self.assertEqual(ordinal(112), "112th")

    def testRejectsInvalidNumbers(self):
        with self.assertRaises(ValueError):
            ordinal(0)
        with self.assertRaises(TypeError):
            ordinal(True)
        with self.assertRaises(TypeError):
            ordinal("1")


if __name__ == "__main__":
    unittest.main()
