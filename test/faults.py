"""
Fault taxonomy and surfacing tests.

Scope
- Reason tags carried by every CommandError subclass.
- copy.replace support and trigger() in shell and non-shell modes.
- Rich rendering of a fault (plain and fancy).

Conventions
- Test method names follow CamelCase per project convention.
"""
import copy
import io
import unittest
from contextlib import redirect_stderr
from unittest import TestCase

from rich.console import Console

from sextant import (
    CommandError,
    FaultReason,
    InvalidArgumentError,
    InvalidFlagError,
    UsageError,
    trigger,
)


def render(renderable):
    console = Console(file=io.StringIO(), width=80, color_system=None)
    console.print(renderable)
    return console.file.getvalue()


class TestCommandError(TestCase):
    """Reason tags, messages and options."""

    def testReasons(self):
        self.assertEqual(InvalidArgumentError("x").reason, FaultReason.INVALID_ARG)
        self.assertEqual(InvalidFlagError("x").reason, FaultReason.INVALID_FLAG)
        self.assertEqual(UsageError("x").reason, FaultReason.INVALID_USAGE)
        self.assertEqual(str(FaultReason.INVALID_FLAG), "invalid_flag")

    def testBaseRequiresReason(self):
        with self.assertRaises(TypeError):
            CommandError("something broke")
        self.assertEqual(CommandError("broken", "invalid_flag").reason, FaultReason.INVALID_FLAG)

    def testUnknownReasonRejected(self):
        with self.assertRaises(ValueError):
            CommandError("broken", "invalid_everything")

    def testMessage(self):
        error = InvalidFlagError("option `--count` value is not a number")
        self.assertEqual(str(error), "option `--count` value is not a number")
        self.assertEqual(error.message, str(error))
        with self.assertRaises(TypeError):
            InvalidFlagError(42)

    def testReplaceMergesOptions(self):
        error = UsageError("no command specified", shell=True)
        replaced = copy.replace(error, prog="tool")
        self.assertIsInstance(replaced, UsageError)
        self.assertEqual(replaced.message, error.message)
        self.assertEqual(dict(replaced.options), {"shell": True, "prog": "tool"})
        self.assertEqual(dict(error.options), {"shell": True})


class TestTrigger(TestCase):
    """Surfacing faults through trigger()."""

    def testNonShellRaises(self):
        with self.assertRaises(InvalidFlagError) as context:
            trigger(InvalidFlagError("bad value"), shell=False)
        self.assertEqual(str(context.exception), "bad value")
        self.assertIs(context.exception.options["shell"], False)

    def testShellRendersAndExits(self):
        stream = io.StringIO()
        with redirect_stderr(stream), self.assertRaises(SystemExit) as context:
            trigger(UsageError("invalid command: nope"), shell=True, colorful=False, prog="tool")
        self.assertEqual(context.exception.code, 1)
        self.assertIn("tool: error: invalid command: nope", stream.getvalue())

    def testDeferredDoesNotExit(self):
        stream = io.StringIO()
        with redirect_stderr(stream):
            trigger(UsageError("no command specified"), shell=True, deferred=True, colorful=False)
        self.assertIn("error: no command specified", stream.getvalue())

    def testRejectsNonFaults(self):
        with self.assertRaises(TypeError):
            trigger(ValueError("plain"))


class TestRendering(TestCase):
    """Rich rendering of faults."""

    def testPlain(self):
        output = render(InvalidFlagError("option `--count` value is missing", prog="tool", colorful=False))
        self.assertEqual(output.strip(), "tool: error: option `--count` value is missing")

    def testWithoutProg(self):
        output = render(InvalidFlagError("option `--count` value is missing", colorful=False))
        self.assertEqual(output.strip(), "error: option `--count` value is missing")

    def testFancyShowsReason(self):
        output = render(UsageError("no command specified", prog="tool", fancy=True, colorful=False))
        self.assertIn("[ tool | invalid_usage ]", output)
        self.assertIn("error: no command specified", output)


if __name__ == "__main__":
    unittest.main()
