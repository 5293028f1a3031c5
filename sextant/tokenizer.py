"""
Sextant tokenizer: argv tokens -> RawParse.

Grammar
- "--"              ends option parsing; every following token lands in rest.
- "--name=value"    value-bearing long option.
- "--name value"    value-bearing long option, unless name is a known switch or
                    the next token looks like an option.
- "--name"          True.
- "--no-name"       name -> False.
- "-abc"            grouped short options; each char is True, except the last
                    one which may take the next token as its value.
- "-c=value"        value-bearing short option.
- "-5", "-1.5e3"    negative numbers are values/positionals, never options.

Char aliases are folded onto their canonical key (both "-c" and "--c"), so the
normalization engine sees a single entry per option. A value-bearing option
given more than once collects its values into a list; a repeated switch keeps
its last value.
"""
import re
from types import MappingProxyType
from typing import NamedTuple

from .arguments import Switch, canonical
from .normalization import RawParse
from .utils import negated

_NUMBER = re.compile(r"-(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


class Grammar(NamedTuple):
    """
    What the tokenizer needs to know about a command's options.

    - switches: canonical keys that never take a value.
    - aliases: char -> canonical key.
    """
    switches: frozenset = frozenset()
    aliases: MappingProxyType = MappingProxyType({})

    @classmethod
    def compile(cls, declaration, /, switches=()):
        """
        Derive the grammar of a Declaration; extra switches (e.g. "help") may be added.
        """
        keys = set(switches)
        aliases = {}
        for name, spec in declaration.flags.items():
            key = canonical(spec, name)
            if spec.char:
                aliases[spec.char] = key
            if not isinstance(spec, Switch):
                continue
            keys.add(key)
            if negated(key):
                keys.add(key[3:])
        return cls(frozenset(keys), MappingProxyType(aliases))


def _option(token):
    return token.startswith("-") and token != "-" and not _NUMBER.fullmatch(token)


def _store(options, grammar, key, value):
    key = grammar.aliases.get(key, key)
    if key not in options or key in grammar.switches:
        options[key] = value
    elif isinstance(previous := options[key], list):
        previous.append(value)
    else:
        options[key] = [previous, value]


def _consume(options, grammar, name, tokens, index):
    """
    Store a value-less option, taking the next token as its value when the
    option is not a switch. Returns the index of the next unread token.
    """
    if grammar.aliases.get(name, name) not in grammar.switches and index < len(tokens) and not _option(tokens[index]):
        _store(options, grammar, name, tokens[index])
        return index + 1
    _store(options, grammar, name, True)
    return index


def tokenize(argv, grammar=Grammar(), /):
    """
    Split argv into positionals, an option bag and the rest after "--".

    Parameters
    - argv: sequence of already shell-split tokens.
    - grammar: Grammar describing switches and char aliases.

    Returns
    - RawParse(positionals, options, rest)
    """
    tokens = list(argv)
    positionals = []
    options = {}
    rest = ()
    index = 0

    while index < len(tokens):
        token = tokens[index]
        index += 1

        if token == "--":
            rest = tuple(tokens[index:])
            break

        if not _option(token):
            positionals.append(token)
            continue

        if token.startswith("--"):
            name, equals, value = token[2:].partition("=")
            if equals:
                _store(options, grammar, name, value)
            elif name.startswith("no-"):
                _store(options, grammar, name[3:], False)
            else:
                index = _consume(options, grammar, name, tokens, index)
            continue

        chars, equals, value = token[1:].partition("=")
        if not chars:
            positionals.append(token)
            continue
        for char in chars[:-1]:
            _store(options, grammar, char, True)
        if equals:
            _store(options, grammar, chars[-1], value)
        else:
            index = _consume(options, grammar, chars[-1], tokens, index)

    return RawParse(tuple(positionals), options, rest)


__all__ = (
    "Grammar",
    "tokenize",
)
