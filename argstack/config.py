"""
Argstack registry: the read-only description a parse runs against.

ParserConfig takes the descriptors of one command level (Argument, Positional,
Trigger, Verb) plus its conventions, validates them once, and exposes lookup
tables the engine reads during a parse:

- short: {"v": Argument | Trigger}     # prefix + one character
- long: {"verbose": Argument | Trigger} # doubled prefix + name
- positionals: (Positional, ...)        # declaration order
- verbs: {"name": Verb}
- required: (Argument, ...)             # required named arguments, declaration order
- required_groups: frozenset[str]       # mutually exclusive groups that must be satisfied
- hooks: (callable, ...)                # post-parse hooks, registration order

Nothing here changes after construction; concurrent parses may share a config.
"""
import copy
from types import MappingProxyType, SimpleNamespace

from rich.text import Text

from .arguments import Argument, Positional, Trigger, Verb
from .utils import *


class ParserConfig:
    """
    Registry of one command level.

    Parameters
    - arguments: iterable of Argument | Positional | Trigger | Verb.
    - name/descr/version/epilog: metadata used by help and version triggers.
    - prefix: argument prefix character ("-").
    - separator: long-option inline value separator ("=").
    - required_groups: mutually exclusive groups of which one member must be given.
    - hooks: callables run with the target after a successful scan.

    Errors
    - TypeError: wrong descriptor/metadata types, duplicated names or verbs, a
      positional declared after an unbounded one.
    - ValueError: names not matching the prefix conventions, digit short names,
      required groups no argument belongs to.
    """

    def __init__(
            self,
            arguments=(),
            /,
            *,
            name=Unset,
            descr=Unset,
            version=Unset,
            epilog=Unset,
            prefix="-",
            separator="=",
            required_groups=(),
            hooks=(),
    ):
        for field, object in (("name", name), ("descr", descr), ("version", version), ("epilog", epilog)):
            if not isinstance(object, str | Text | Unset):
                raise TypeError(f"parser-config {field!r} must be a string")
            if isinstance(object, str) and not (object := object.strip()):
                raise ValueError(f"parser-config {field!r} cannot be empty")
            setattr(self, "_" + field, coalesce(object))

        if not isinstance(prefix, str) or len(prefix) != 1 or prefix.isalnum() or prefix.isspace():
            raise ValueError("parser-config 'prefix' must be a single punctuation character")
        if not isinstance(separator, str) or len(separator) != 1 or separator.isspace() or separator == prefix:
            raise ValueError("parser-config 'separator' must be a single character other than the prefix")
        self._prefix = prefix
        self._separator = separator

        short = {}
        long = {}
        positionals = []
        verbs = {}
        declared = []
        unbounded = None

        def _register(table, key, argument, name):
            if key in table:
                raise TypeError(f"parser-config name {name!r} is already in use")
            table[key] = argument

        for argument in arguments:
            if isinstance(argument, Argument | Trigger):
                for name in argument.names:
                    if name.startswith(prefix * 2):
                        if not (key := name[2:]) or key.startswith(prefix) or separator in key:
                            raise ValueError(f"parser-config long name {name!r} is malformed")
                        _register(long, key, argument, name)
                    elif name.startswith(prefix) and len(name) == 2:
                        if (key := name[1]).isdecimal():
                            raise ValueError(f"parser-config short name {name!r} cannot be a digit")
                        _register(short, key, argument, name)
                    else:
                        raise ValueError(f"parser-config name {name!r} must look like {prefix}x or {prefix * 2}name")
            elif isinstance(argument, Positional):
                if unbounded:
                    raise TypeError(f"parser-config positional {argument.metavar!r} cannot follow the unbounded positional {unbounded!r}")
                if argument.nargs.bounds[1] is None:
                    unbounded = argument.metavar
                positionals.append(argument)
            elif isinstance(argument, Verb):
                if argument.name.startswith(prefix):
                    raise ValueError(f"parser-config verb {argument.name!r} cannot start with the prefix")
                if argument.name in verbs:
                    raise TypeError(f"parser-config verb {argument.name!r} is already in use")
                verbs[argument.name] = argument
            else:
                raise TypeError("parser-config arguments must be arguments, positionals, triggers or verbs")
            declared.append(argument)

        if isinstance(required_groups, str):
            required_groups = (required_groups,)
        groups = frozenset().union(*(x.exclusive for x in declared if isinstance(x, Argument)))
        for group in required_groups:
            if not isinstance(group, str):
                raise TypeError("parser-config 'required_groups' must contain strings")
            if group not in groups:
                raise ValueError(f"parser-config required group {group!r} has no members")

        hooks = tuple(hooks)
        if not all(map(callable, hooks)):
            raise TypeError("parser-config 'hooks' must be callables")

        self._short = MappingProxyType(short)
        self._long = MappingProxyType(long)
        self._positionals = tuple(positionals)
        self._verbs = MappingProxyType(verbs)
        self._arguments = tuple(declared)
        self._required = tuple(x for x in declared if isinstance(x, Argument) and x.required)
        self._required_groups = frozenset(required_groups)
        self._hooks = hooks

    name = property(lambda self: self._name)
    descr = property(lambda self: self._descr)
    version = property(lambda self: self._version)
    epilog = property(lambda self: self._epilog)
    prefix = property(lambda self: self._prefix)
    separator = property(lambda self: self._separator)
    short = property(lambda self: self._short)
    long = property(lambda self: self._long)
    positionals = property(lambda self: self._positionals)
    verbs = property(lambda self: self._verbs)
    arguments = property(lambda self: self._arguments)
    required = property(lambda self: self._required)
    required_groups = property(lambda self: self._required_groups)
    hooks = property(lambda self: self._hooks)

    @property
    def delimiter(self):
        """The token after which everything is positional ("--")."""
        return self._prefix * 2

    def namespace(self):
        """
        Build a fresh target holding every slot's default.

        The first descriptor declaring a dest provides its default; verb slots
        start as None. Defaults are shallow-copied so parses never share a list.
        """
        slots = {}
        for argument in self._arguments:
            match argument:
                case Argument() | Positional():
                    slots.setdefault(argument.dest, copy.copy(argument.default))
                case Verb():
                    slots.setdefault(argument.dest, None)
        return SimpleNamespace(**slots)

    def __repr__(self):
        return f"parser-config(name={self._name!r}, arguments={len(self._arguments)})"


__all__ = (
    "ParserConfig",
)
