"""
Sextant command layer: build, compose, and run CLI commands.

What this module provides
- command(name): builder for one command (.describe, .alias, .example, .args,
  .flags, .subcommands) closed by .action(callback) which returns a Command.
- program(name): builder for a multi-command program (.version, .describe,
  .example, .flags, .commands, .default) closed by .build() -> Program.
- single(name): builder for a program that is a single command
  (.version, .describe, .example, .args, .flags) closed by .action(callback).

Registration
- A command's own declarations are validated when .action() binds its callback.
- Program.build() mounts every command route ("base sub"), merges the program
  flags into each command's flags (the command's declaration wins) and validates
  the merged set. A misconfigured program therefore fails before any input.

Invocation (see sextant.runner.run)
- The longest run of leading tokens naming a route selects the command,
  otherwise the default command is used.
- "--help" / "-h" renders help and "--version" the version; the action is not called.
- Remaining tokens go through the tokenizer and the normalization engine and the
  resulting Context is handed to the action, whose return value is returned.

Quick start
    from sextant import command, program, arg, flag

    greet = (
        command("greet")
        .describe("say hello")
        .args(name=arg("who to greet"))
        .flags(shout=flag("use capitals").char("s"))
        .action(lambda ctx: print(ctx.args["name"].upper() if ctx.flags["shout"] else ctx.args["name"]))
    )

    if __name__ == "__main__":
        program("tool").version("1.0.0").commands(greet).build().run()
"""
from collections import defaultdict
from typing import NamedTuple

from rich.box import ROUNDED
from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .arguments import Parametric, Switch, canonical, display, negated_display
from .faults import UsageError
from .normalization import normalize
from .runner import run
from .tokenizer import Grammar, tokenize
from .utils import *
from .validation import declare


class Route(NamedTuple):
    """
    One mounted command: its full path, the command, and its validated
    declaration (program flags merged in).
    """
    path: tuple
    command: object
    declaration: object


def _arguments(mapping, options, /):
    if mapping is not None and not hasattr(mapping, "items"):
        raise TypeError("declarations must be given as a mapping or as keyword arguments")
    return {**(mapping or {}), **options}


class Command:
    """
    A registered command: metadata, declarations, subcommands and its action.

    Instances are produced by command(name)....action(callback). Every field is
    exposed read-only; the declaration is validated at construction.
    """

    name = mirror("name")
    descr = mirror("descr")
    aliases = mirror("aliases")
    examples = mirror("examples")
    args = mirror("args")
    flags = mirror("flags")
    subcommands = mirror("subcommands")
    callback = mirror("callback")
    declaration = mirror("declaration")

    def __init__(self, name, /, descr=None, aliases=(), examples=(), args=None, flags=None, subcommands=(), callback=None):
        if not isinstance(name, str) or not (name := name.strip()) or " " in name:
            raise ValueError("command name must be a non-empty string without spaces")
        if not callable(callback):
            raise TypeError("command action must be callable")

        self._name = name
        self._descr = descr
        self._aliases = tuple(aliases)
        self._examples = tuple(examples)
        self._subcommands = tuple(subcommands)
        self._callback = callback

        # validated and frozen before the command can be mounted
        self._declaration = declare(args, flags)
        self._args = self._declaration.args
        self._flags = self._declaration.flags

    def __repr__(self):
        return f"command(name={self._name!r}, args={list(self._args)!r}, flags={list(self._flags)!r})"


class CommandBuilder:
    """
    Mutable authoring form of a command; see command().
    """

    def __init__(self, name, /):
        self._options = {
            "descr": None,
            "aliases": [],
            "examples": [],
            "args": {},
            "flags": {},
            "subcommands": [],
        }
        self._name = name

    def describe(self, descr, /):
        self._options["descr"] = descr
        return self

    def alias(self, *aliases):
        self._options["aliases"].extend(aliases)
        return self

    def example(self, example, /):
        self._options["examples"].append(example)
        return self

    def args(self, mapping=None, /, **args):
        self._options["args"] = _arguments(mapping, args)
        return self

    def flags(self, mapping=None, /, **flags):
        self._options["flags"] = _arguments(mapping, flags)
        return self

    def subcommands(self, *commands):
        for subcommand in commands:
            if not isinstance(subcommand, Command):
                raise TypeError("subcommands() arguments must be commands")
        self._options["subcommands"].extend(commands)
        return self

    def action(self, callback, /):
        """
        Bind the action and register the command. Usable as a decorator.
        """
        return Command(self._name, callback=callback, **self._options)


def _styles():
    return defaultdict(str, {
        "usage-label": "bold #00E6FF",
        "program-name": "bold #FF4D94",
        "usage-section": "bold #36C5F0",
        "description-section": "italic #A3A3A3",
        "group-label": "bold #FFFFFF",
        "argument-description": "#9CA3AF",
        "option-name": "bold #00E6FF",
        "flag-name": "bold #22C55E",
        "metavar": "bold #FFD600",
        "children-title": "bold #FFFFFF",
        "children-table": "#4B5563",
        "children": "bold #36C5F0",
        "children-description": "#9CA3AF",
        "examples-label": "bold #22C55E",
        "examples-dot": "#22C55E dim",
        "example": "#E5E7EB",
        "version": "bold #FFD600",
        "panel-title": "bold #FF4D94",
    } | getattr(__import__("__main__"), "__styles__", {}))


class Invocable:
    """
    Shared invocation machinery of Program and SingleProgram.

    Subclasses provide _routes (name -> Route), _default (Route | None),
    _name, _descr, _version, _examples and _flags (program-level flags).
    """

    name = mirror("name")
    descr = mirror("descr")
    version = mirror("version")
    examples = mirror("examples")

    @property
    def routes(self):
        return dict(self._routes)

    def run(self, argv=None, /, **options):
        """
        Run the program with argv (default: sys.argv[1:]); see sextant.runner.run.
        """
        return run(self, argv, **options)

    def _mount(self, command, base, flags, /):
        path = (*base, command.name)
        route = Route(path, command, declare(command.args, {**flags, **command.flags}))

        for name in (command.name, *command.aliases):
            if self._routes.setdefault(key := " ".join((*base, name)), route) is not route:
                raise ValueError(f"command name {key!r} is already in use")

        for subcommand in command.subcommands:
            self._mount(subcommand, path, flags)
        return route

    def _resolve(self, tokens):
        leading = []
        for token in tokens:
            if token.startswith("-"):
                break
            leading.append(token)

        for count in range(len(leading), 0, -1):
            if (route := self._routes.get(" ".join(leading[:count]))) is not None:
                return route, tokens[count:]

        if self._default is not None:
            return self._default, tokens
        if leading:
            raise UsageError(f"invalid command: {leading[0]}")
        return None, tokens

    def _builtins(self, declaration):
        keys = {canonical(spec, name) for name, spec in declaration.flags.items()}
        chars = {spec.char for spec in declaration.flags.values() if spec.char}
        switches = {}
        aliases = {}
        if "help" not in keys:
            switches["help"] = self._helper
            if "h" not in chars and "h" not in keys:
                aliases["h"] = "help"
        if self._version is not None and "version" not in keys:
            switches["version"] = self._versioner
        return switches, aliases

    def __invoke__(self, tokens, /, *, error_on_unknown=False, colorful=True, fancy=False):
        """
        Route, tokenize, normalize and run the selected action.

        Returns the action's return value (None when help or version was shown).
        Raises CommandError subclasses; the runner decides how to surface them.
        """
        tokens = list(tokens)
        route, tokens = self._resolve(tokens)
        declaration = route.declaration if route is not None else declare(None, self._flags)

        switches, aliases = self._builtins(declaration)
        grammar = Grammar.compile(declaration, switches=switches)
        grammar = grammar._replace(aliases=grammar.aliases | aliases)
        raw = tokenize(tokens, grammar)

        for key, render in switches.items():
            if raw.options.get(key) is True:
                render(route, colorful=colorful, fancy=fancy)
                return None

        if route is None:
            raise UsageError("no command specified")

        if error_on_unknown:
            known = set(grammar.switches) | set(switches)
            for name, spec in declaration.flags.items():
                known.add(key := canonical(spec, name))
                if isinstance(spec, Switch) and spec.negation is not None:
                    known.add(f"no-{key}")
            for key in raw.options:
                if key in known:
                    continue
                string = ("-" if len(key) == 1 else "--") + key
                if callable(error_on_unknown):
                    raise UsageError(str(error_on_unknown(string)))
                raise UsageError(f"unknown option `{string}`")

        required = sum(1 for spec in declaration.args.values() if spec.required)
        if len(raw.positionals) < required:
            raise UsageError(f"insufficient arguments for `{self._usage(route)}`")

        context = normalize(declaration, raw)
        return route.command.callback(context)

    def _usage(self, route):
        words = [self._name]
        if route is not None:
            words.extend(route.path)
            words.extend(display(spec, name) for name, spec in route.declaration.args.items())
        return " ".join(words)

    def _helper(self, route, /, *, colorful=True, fancy=False):
        """
        Render help for the program (route is None) or for one command route.

        Palette keys can be overridden through a __styles__ mapping in __main__.
        """
        console = Console()
        styles = _styles()

        def styler(style):
            return styles[style] if colorful else ""

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            return Text(str(fragment), styler(style))

        command = route.command if route is not None else None
        declaration = route.declaration if route is not None else declare(None, self._flags)
        renders = []

        usage = Text()
        usage.append("usage", styler("usage-label")).append(": ")
        usage.append(text(self._name, "program-name"))
        for word in self._usage(route).split(" ")[1:]:
            usage.append(" ").append(text(word, "usage-section"))
        if route is None and self._routes:
            usage.append(" ").append(text("<command>", "usage-section"))
        usage.append(" ").append(text("[options]", "usage-section"))
        renders.append(usage.append("\n"))

        if descr := (command.descr if command is not None else self._descr):
            renders.append(text(descr, "description-section").append("\n"))

        base = route.path if route is not None else ()
        children = {
            name: child for name, child in self._routes.items()
            if name == " ".join(child.path) and len(child.path) == len(base) + 1 and child.path[:len(base)] == base
        }
        if children:
            table = Table(
                "name", "help",
                title=text("subcommands" if route is not None else "commands", "children-title"),
                box=ROUNDED,
                style=styler("children-table"),
                header_style=styler("children-title"),
            )
            for name, child in children.items():
                table.add_row(text(name, "children"), text(child.command.descr or "", "children-description"))
            renders.append(table)

        sections = Text()
        if declaration.args:
            sections.append(text("arguments", "group-label")).append(":\n")
            for name, spec in declaration.args.items():
                sections.append("  ").append(text(display(spec, name), "metavar"))
                if spec.descr:
                    sections.append("  ").append(text(spec.descr, "argument-description"))
                sections.append("\n")
            sections.append("\n")

        sections.append(text("options", "group-label")).append(":\n")
        lines = []
        for name, spec in declaration.flags.items():
            label = text(display(spec, name), "flag-name" if isinstance(spec, Switch) else "option-name")
            if isinstance(spec, Parametric):
                label.append(" ").append(text(f"<{spec.param.type}>", "metavar"))
            lines.append((label, spec.descr))
            if isinstance(spec, Switch) and spec.negation is not None:
                lines.append((text(negated_display(spec, name), "flag-name"), spec.negation))
        switches, aliases = self._builtins(declaration)
        if "help" in switches:
            lines.append((text("-h, --help" if "h" in aliases else "--help", "flag-name"), "display this message"))
        if "version" in switches:
            lines.append((text("--version", "flag-name"), "display the version number"))

        width = max((len(label) for label, _ in lines), default=0) + 4
        for label, descr in lines:
            sections.append("  ").append(label)
            if descr:
                sections.append(" " * (width - len(label))).append(text(descr, "argument-description"))
            sections.append("\n")
        renders.append(sections)

        if examples := (command.examples if command is not None else self._examples):
            block = Text()
            block.append(text("examples", "examples-label")).append(":\n")
            for example in examples:
                block.append(text(" • ", "examples-dot")).append(text(example, "example")).append("\n")
            renders.append(block)

        renders[-1].rstrip()

        renderable = Group(*renders)
        if fancy:
            renderable = Panel(
                renderable,
                title=Text.assemble("[ ", f"{self._name} HELP".upper(), " ]", style=styler("panel-title")),
                title_align="left",
            )
        console.print(renderable)

    def _versioner(self, route, /, *, colorful=True, fancy=False):
        """
        Render "<name> <version>" to the console.
        """
        styles = _styles()
        rendered = Text.assemble(
            (self._name, styles["program-name"] if colorful else ""),
            " ",
            (str(self._version), styles["version"] if colorful else ""),
        )
        Console().print(Panel(rendered, title_align="left") if fancy else rendered)


class Program(Invocable):
    """
    A built multi-command program; see program().
    """

    def __init__(self, name, /, version=None, descr=None, examples=(), flags=None, commands=(), default=None):
        self._name = name
        self._version = version
        self._descr = descr
        self._examples = tuple(examples)
        self._flags = declare(None, flags).flags
        self._routes = {}
        self._default = None

        mounted = {}
        for command in commands:
            mounted[command] = self._mount(command, (), self._flags)

        if default is not None:
            if default not in mounted:
                raise ValueError("default command must be one of the program commands")
            self._default = mounted[default]

    def __repr__(self):
        return f"program(name={self._name!r}, commands={list(self._routes)!r})"


class ProgramBuilder:
    """
    Mutable authoring form of a program; see program().
    """

    def __init__(self, name, /):
        self._name = name
        self._options = {
            "version": None,
            "descr": None,
            "examples": [],
            "flags": {},
            "commands": [],
            "default": None,
        }

    def version(self, version, /):
        self._options["version"] = version
        return self

    def describe(self, descr, /):
        self._options["descr"] = descr
        return self

    def example(self, example, /):
        self._options["examples"].append(example)
        return self

    def flags(self, mapping=None, /, **flags):
        self._options["flags"] = _arguments(mapping, flags)
        return self

    def commands(self, *commands):
        for command in commands:
            if not isinstance(command, Command):
                raise TypeError("commands() arguments must be commands")
        self._options["commands"].extend(commands)
        return self

    def default(self, command, /):
        self._options["default"] = command
        return self

    def build(self):
        return Program(self._name, **self._options)


class SingleProgram(Invocable):
    """
    A program made of one command whose usage is the program name itself.
    """

    def __init__(self, name, /, version=None, descr=None, examples=(), args=None, flags=None, callback=None):
        command = Command(name, descr=descr, examples=examples, args=args, flags=flags, callback=callback)
        self._name = name
        self._version = version
        self._descr = descr
        self._examples = tuple(examples)
        self._flags = command.flags
        self._routes = {}
        self._default = Route((), command, command.declaration)

    def __repr__(self):
        return f"single(name={self._name!r})"


class SingleProgramBuilder:
    """
    Mutable authoring form of a single-command program; see single().
    """

    def __init__(self, name, /):
        self._name = name
        self._options = {
            "version": None,
            "descr": None,
            "examples": [],
            "args": {},
            "flags": {},
        }

    def version(self, version, /):
        self._options["version"] = version
        return self

    def describe(self, descr, /):
        self._options["descr"] = descr
        return self

    def example(self, example, /):
        self._options["examples"].append(example)
        return self

    def args(self, mapping=None, /, **args):
        self._options["args"] = _arguments(mapping, args)
        return self

    def flags(self, mapping=None, /, **flags):
        self._options["flags"] = _arguments(mapping, flags)
        return self

    def action(self, callback, /):
        return SingleProgram(self._name, callback=callback, **self._options)


def command(name, /):
    """
    Start declaring a command named `name`.
    """
    return CommandBuilder(name)


def program(name, /):
    """
    Start declaring a program made of commands.
    """
    return ProgramBuilder(name)


def single(name, /):
    """
    Start declaring a program that is a single command.
    """
    return SingleProgramBuilder(name)


__all__ = (
    "Route",
    "Command",
    "Program",
    "SingleProgram",
    "command",
    "program",
    "single",
)
