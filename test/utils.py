"""
Tests for the shared utilities.

This module verifies:
- The Unset sentinel: singleton identity, falsy semantics, copying, finality and
  its use inside isinstance() unions.
- coalesce(), rename() and pluralize() behavior.
- mirror() properties handing out copies of container state.
"""
import copy
import unittest
from unittest import TestCase

from argstack.utils import *


class UnsetTest(TestCase):
    """
    Test suite for the `Unset` sentinel.
    """

    def testSingleton(self) -> None:
        self.assertIs(UnsetType(), Unset)

    def testFalsyButDistinct(self) -> None:
        self.assertFalse(Unset)
        self.assertIsNot(Unset, None)
        self.assertNotEqual(Unset, 0)
        self.assertEqual(repr(Unset), "Unset")

    def testCopyPreservesIdentity(self) -> None:
        self.assertIs(copy.copy(Unset), Unset)
        self.assertIs(copy.deepcopy([Unset])[0], Unset)

    def testFinal(self) -> None:
        with self.assertRaises(TypeError):
            type("Subclass", (UnsetType,), {})

    def testUnionWithTypes(self) -> None:
        self.assertIsInstance(Unset, str | Unset)
        self.assertIsInstance("text", str | Unset)
        self.assertNotIsInstance(1, str | Unset)


class HelpersTest(TestCase):
    """
    Test suite for coalesce, rename, mirror and pluralize.
    """

    def testCoalesce(self) -> None:
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(Unset))
        self.assertIsNone(coalesce(None, "fallback"))
        self.assertEqual(coalesce(0, 1), 0)

    def testRename(self) -> None:
        @rename("renamed")
        def original():
            pass

        self.assertEqual(original.__name__, "renamed")
        self.assertEqual(original.__qualname__, "renamed")
        with self.assertRaises(TypeError):
            rename(42, "x")
        with self.assertRaises(TypeError):
            rename()

    def testMirrorCopiesContainers(self) -> None:
        class Holder:
            items = mirror("items")
            frozen = mirror("frozen")

            def __init__(self):
                self._items = [1, [2]]
                self._frozen = (1, 2)

        holder = Holder()
        holder.items.append(3)
        holder.items[1].append(4)
        self.assertEqual(holder.items, [1, [2]])
        self.assertIs(holder.frozen, holder._frozen)
        with self.assertRaises(AttributeError):
            holder.items = []

    def testPluralize(self) -> None:
        self.assertEqual(pluralize("argument"), "arguments")
        self.assertEqual(pluralize("entry"), "entries")
        self.assertEqual(pluralize("box"), "boxes")
        self.assertEqual(pluralize("ENTRY"), "ENTRIES")
        self.assertEqual(pluralize("trigger option"), "trigger options")
        self.assertEqual(pluralize(""), "")


if __name__ == "__main__":
    unittest.main()
