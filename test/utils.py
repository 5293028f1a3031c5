"""
Tests for the internal helpers.

This module verifies:
- The Unset sentinel (singleton identity, falsy semantics, copying, finality).
- coalesce() and rename().
- mirror() read-only properties returning fresh containers.
- kebab() and negated() option naming.
"""
import copy
import unittest
from unittest import TestCase

from sextant.utils import Unset, UnsetType, coalesce, kebab, mirror, negated, rename


class UnsetTest(TestCase):
    """
    Test suite for the `Unset` singleton.
    """

    def testSingleton(self) -> None:
        """
        The constructor returns the exported instance on every call.
        """
        self.assertIs(UnsetType(), Unset)
        self.assertIs(UnsetType(), UnsetType())

    def testRepr(self) -> None:
        self.assertEqual(repr(Unset), "Unset")

    def testFalsy(self) -> None:
        """
        The sentinel is falsy but never equal to other falsy values.
        """
        self.assertFalse(bool(Unset))
        self.assertNotEqual(Unset, None)
        self.assertNotEqual(Unset, False)  # noqa: E712

    def testCopyDeepcopyPreserveSingleton(self) -> None:
        self.assertIs(copy.copy(Unset), Unset)
        self.assertIs(copy.deepcopy(Unset), Unset)
        self.assertIs(copy.deepcopy({"default": Unset})["default"], Unset)

    def testUnionWithTypes(self) -> None:
        """
        `str | Unset` builds a union usable with isinstance().
        """
        self.assertIsInstance("text", str | Unset)
        self.assertIsInstance(Unset, str | Unset)
        self.assertNotIsInstance(3, str | Unset)

    def testFinalClass(self) -> None:
        with self.assertRaises(TypeError):
            type("UnsetSubtype", (UnsetType,), {})


class HelpersTest(TestCase):
    """
    Test suite for coalesce(), rename() and mirror().
    """

    def testCoalesce(self) -> None:
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(Unset))
        self.assertIsNone(coalesce(None, "fallback"))
        self.assertEqual(coalesce(0, 1), 0)

    def testRenameFunctionForm(self) -> None:
        def function():
            pass

        self.assertIs(rename(function, "renamed"), function)
        self.assertEqual(function.__name__, "renamed")
        self.assertEqual(function.__qualname__, "renamed")

    def testRenameDecoratorForm(self) -> None:
        @rename("decorated")
        def function():
            pass

        self.assertEqual(function.__name__, "decorated")

    def testRenameRejectsBadArguments(self) -> None:
        with self.assertRaises(TypeError):
            rename("not callable", "name")
        with self.assertRaises(TypeError):
            rename(print, 42)
        with self.assertRaises(TypeError):
            rename()

    def testMirrorReturnsFreshContainers(self) -> None:
        class Holder:
            items = mirror("items")
            table = mirror("table")

            def __init__(self):
                self._items = ("a", ["b"])
                self._table = {"key": ("value",)}

        holder = Holder()
        items = holder.items
        self.assertEqual(items, ["a", ["b"]])
        items[1].append("c")
        self.assertEqual(holder.items, ["a", ["b"]])
        self.assertEqual(holder.table, {"key": ["value"]})
        with self.assertRaises(AttributeError):
            holder.items = ()


class NamingTest(TestCase):
    """
    Test suite for kebab() and negated().
    """

    def testKebab(self) -> None:
        cases = {
            "verbose": "verbose",
            "dryRun": "dry-run",
            "noColor": "no-color",
            "dry_run": "dry-run",
            "DeviceType": "device-type",
            "already-kebab": "already-kebab",
        }
        for name, expected in cases.items():
            with self.subTest(name=name):
                self.assertEqual(kebab(name), expected)

    def testKebabRejectsNonStrings(self) -> None:
        with self.assertRaises(TypeError):
            kebab(3)

    def testNegated(self) -> None:
        self.assertTrue(negated("no-color"))
        self.assertFalse(negated("notify"))
        self.assertFalse(negated("color"))


if __name__ == '__main__':
    unittest.main()
