"""
Declaration validator behavioral tests.

Scope
- Positional ordering rules (variadic last, required before optional).
- Flag shape rules (char length, param/negation conflicts, "no-" keys).
- Uniqueness of canonical keys and chars.
- declare(): freezing, read-only results and idempotence.

Conventions
- Test method names follow CamelCase per project convention.
"""
import unittest
from types import MappingProxyType
from unittest import TestCase

from sextant import (
    FaultReason,
    InvalidArgumentError,
    InvalidFlagError,
    Parametric,
    Positional,
    Switch,
    arg,
    declare,
    flag,
)


class TestArgumentRules(TestCase):
    """Ordering rules of positional declarations."""

    def testRequiredAfterOptionalFails(self):
        with self.assertRaises(InvalidArgumentError) as context:
            declare({"bar": arg().optional(), "baz": arg()})
        self.assertIn("cannot appear after an optional argument", str(context.exception))
        self.assertIn("`<baz>`", str(context.exception))
        self.assertEqual(context.exception.reason, FaultReason.INVALID_ARG)

    def testAnythingAfterVariadicFails(self):
        with self.assertRaises(InvalidArgumentError) as context:
            declare({"files": arg().variadic(), "extra": arg().optional()})
        self.assertEqual(
            str(context.exception),
            "positional argument `[extra]` cannot appear after a variadic argument",
        )

    def testOptionalAfterRequiredIsFine(self):
        declaration = declare({"bar": arg(), "baz": arg().optional(), "rest": arg().optional().variadic()})
        self.assertEqual(list(declaration.args), ["bar", "baz", "rest"])

    def testArgumentsMustBeDeclaredWithArg(self):
        with self.assertRaises(TypeError):
            declare({"bar": flag()})


class TestFlagRules(TestCase):
    """Shape and pairing rules of option declarations."""

    def assertFlagError(self, flags, fragment):
        with self.assertRaises(InvalidFlagError) as context:
            declare(None, flags)
        self.assertIn(fragment, str(context.exception))
        self.assertEqual(context.exception.reason, FaultReason.INVALID_FLAG)
        return context.exception

    def testCharMustBeOneCharacter(self):
        error = self.assertFlagError({"color": flag().char("co")}, "char must be 1 character")
        self.assertIn("`-co, --color`", str(error))

    def testEmptyCharIsRejected(self):
        self.assertFlagError({"color": flag().char("")}, "char must be 1 character")

    def testParamWithNegationFails(self):
        self.assertFlagError(
            {"format": flag().required_param("string").with_negated("no format")},
            "cannot have param",
        )

    def testNegatedKeyCannotHaveParam(self):
        self.assertFlagError({"noColor": flag().required_param("string")}, "cannot have param")

    def testNegatedKeyCannotHaveChar(self):
        self.assertFlagError({"noColor": flag().char("n")}, "cannot have char")

    def testNegatedKeyCannotBeNegatedAgain(self):
        self.assertFlagError({"noColor": flag().with_negated("color")}, "is already negated")

    def testNegatedKeyOnlyPairsWithBooleans(self):
        self.assertFlagError(
            {"count": flag().required_param("number"), "noCount": flag()},
            "can only be used with boolean flags",
        )

    def testNegatedKeyPairsWithSwitch(self):
        declaration = declare(None, {"color": flag(), "noColor": flag("plain output")})
        self.assertIsInstance(declaration.flags["noColor"], Switch)

    def testDuplicateCanonicalKey(self):
        self.assertFlagError({"dryRun": flag(), "dry_run": flag()}, "is declared more than once")

    def testPreservedCaseKeysDoNotCollide(self):
        declaration = declare(None, {"dryRun": flag().preserve_case(), "dry_run": flag()})
        self.assertEqual(len(declaration.flags), 2)

    def testDuplicateChar(self):
        self.assertFlagError({"color": flag().char("c"), "count": flag().char("c")}, "char is already in use")

    def testCharCannotNameAnotherKey(self):
        for flags in (
            {"verbose": flag().char("v"), "v": flag().optional_param("string")},
            {"v": flag().optional_param("string"), "verbose": flag().char("v")},
        ):
            with self.subTest(flags=list(flags)):
                error = self.assertFlagError(flags, "char is already in use")
                self.assertIn("`-v, --verbose`", str(error))

    def testCharMatchingOwnKeyIsFine(self):
        declaration = declare(None, {"v": flag().char("v")})
        self.assertEqual(declaration.flags["v"].char, "v")

    def testFlagsMustBeDeclaredWithFlag(self):
        with self.assertRaises(TypeError):
            declare(None, {"color": arg()})


class TestDeclare(TestCase):
    """Freezing and idempotence of declare()."""

    def testFreezesBuilders(self):
        declaration = declare(
            {"target": arg()},
            {"count": flag().optional_param("number", 1), "quiet": flag()},
        )
        self.assertIsInstance(declaration.args["target"], Positional)
        self.assertIsInstance(declaration.flags["count"], Parametric)
        self.assertIsInstance(declaration.flags["quiet"], Switch)

    def testResultIsReadOnly(self):
        declaration = declare({"target": arg()})
        self.assertIsInstance(declaration.args, MappingProxyType)
        with self.assertRaises(TypeError):
            declaration.args["other"] = arg().freeze()

    def testEmptyDeclaration(self):
        declaration = declare()
        self.assertEqual(dict(declaration.args), {})
        self.assertEqual(dict(declaration.flags), {})

    def testRedeclaringIsIdempotent(self):
        first = declare(
            {"bar": arg(), "baz": arg().optional().variadic()},
            {"abort": flag().with_negated("keep going"), "noColor": flag(), "tags": flag().char("t").required_param("array")},
        )
        second = declare(first.args, first.flags)
        self.assertEqual(dict(first.args), dict(second.args))
        self.assertEqual(dict(first.flags), dict(second.flags))


if __name__ == "__main__":
    unittest.main()
