"""
Sextant faults (errors) and rendering.

Scope
- FaultReason: the closed set of reason tags carried by every fault.
  • invalid_arg:   positional declarations out of order (registration time).
  • invalid_flag:  malformed option declarations (registration time) and
                    option values that cannot be normalized (invocation time).
  • invalid_usage: routing/tokenizer level problems (unknown command,
                    unknown option, insufficient arguments).
- CommandError: base type that carries reason + message + options and knows how
  to render itself in a friendly, lowercased way.
- trigger(): central entry point to surface any fault (respecting shell/deferred/fancy/colorful).

Messages
- Every message names the offending argument or option by its display string
  in back-ticks, e.g. "option `-c, --count` value is not a number".

Integration
- The declaration validator and the normalization engine only raise.
- The runner catches CommandError and calls trigger(fault, **ctx): in non-shell
  mode the fault is raised again, in shell mode it is rendered via rich and the
  process exits with status 1 (unless deferred).
"""
import copy
import sys
from collections import defaultdict
from enum import StrEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultReason(StrEnum):
    """
    canonical reason tags for every fault raised by sextant.

    declaration faults (invalid_arg, invalid_flag) are programmer errors and
    surface when a command is registered; invalid_flag is also used for option
    values that fail normalization, and invalid_usage for input the tokenizer
    or the router cannot place.
    """
    INVALID_ARG = "invalid_arg"
    INVALID_FLAG = "invalid_flag"
    INVALID_USAGE = "invalid_usage"


class CommandError(Exception):
    """
    base fault: a reason tag plus a human-readable message.

    options are runtime rendering hints merged in by trigger() (shell, fancy,
    colorful, deferred, prog); they never affect the message itself.
    """
    reason = Unset

    def __init__(self, message, /, reason=Unset, **options):
        if not isinstance(message, str):
            raise TypeError(f"{type(self).__name__}() message must be a string")
        super().__init__(message)
        self.message = message
        if reason is not Unset:
            self.reason = FaultReason(reason)
        if self.reason is Unset:
            raise TypeError(f"{type(self).__name__}() requires a reason")
        self.options = MappingProxyType(options)

    def __str__(self):
        return self.message

    def __rich__(self):
        main = __import__("__main__")

        styles = defaultdict(str, {
            "prog-name": "bold #E6E6F0",  # near-white program name
            "reason": "bold #00E5FF",  # neon cyan reason tag
            "error-label": "bold #FF4DA6",  # friendly pinky label
            "error-message": "#C8C8D0",  # soft light gray message
        } | getattr(main, "__styles__", {}))

        colorful = self.options.get("colorful", True)

        def styler(style):
            return styles[style] if colorful else ""

        prog = self.options.get("prog") or getattr(main, "__prog__", None)

        message = Text.assemble(
            *((Text(str(prog), styler("prog-name")), ": ") if prog and not self.options.get("fancy") else ()),
            Text("error", styler("error-label")),
            ": ",
            Text(self.message, styler("error-message")),
        )

        if self.options.get("fancy"):
            header = Text.assemble(
                "[ ",
                Text(str(prog or "error"), styler("prog-name")),
                " | ",
                Text(str(self.reason), styler("reason")),
                " ]",
            )
            return Panel(Group(message), title=header, title_align="left")

        return message

    def __trigger__(self):
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        if self.options.get("deferred", False):
            return
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        fault = type(self)(self.message, self.reason, **{**self.options, **overrides})
        fault.__traceback__ = self.__traceback__
        return fault


class InvalidArgumentError(CommandError):
    reason = FaultReason.INVALID_ARG


class InvalidFlagError(CommandError):
    reason = FaultReason.INVALID_FLAG


class UsageError(CommandError):
    reason = FaultReason.INVALID_USAGE


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see CommandError).
    - options are merged into the fault via copy.replace before triggering.
    - in shell mode, rendering happens via the rich console; otherwise the fault
      is raised.

    typical options
    - shell, fancy, colorful, deferred, prog.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


__all__ = (
    "FaultReason",
    "CommandError",
    "InvalidArgumentError",
    "InvalidFlagError",
    "UsageError",
    "trigger",
)
