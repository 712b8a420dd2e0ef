r"""
Argstack argument descriptors.

Overview
- Descriptors
  • Argument: named argument with short (-x) and/or long (--name) spellings.
  • Positional: value supplied by position, consumed in declaration order.
  • Trigger: named argument running a side effect (help, version, ...) and
    aborting the parse instead of storing a value.
  • Verb: subcommand name delegating all remaining tokens to a nested registry.

- Building blocks
  • Action: what happens when an argument is matched (store, append, count, ...).
  • Arity: how many values a multi-value argument consumes (Constraint + count).
  • Store: explicit getter/setter pair writing into the target object.

- Introspection & representation
  • ArgumentType metaclass provides stable __repr__/__rich_repr__ and exposes the
    fields listed in __introspectable__ as read-only properties.

Metadata (sanitized on construction)
- Shared (all descriptors)
  • group: Unset | str (defaults to the pluralized typename), non-empty when provided.
  • descr: Unset | str | Text (short help), non-empty when provided.
  • hidden: bool (suppresses from help).
- Named (Argument/Trigger)
  • names: one or more non-empty strings starting with a prefix character, without
    whitespace; duplicates rejected. The registry checks them against its prefix.
- Value-bearing (Argument/Positional)
  • action, nargs (Arity or "?" | "*" | "+" | int), type, converter, container,
    const, default, exclusive, required, metavar, dest, store.

Quick example:
    >>> from argstack.arguments import Argument, Positional, Action
    >>> verbose = Argument("-v", "--verbose", action=Action.COUNT)
    >>> items = Argument("-i", "--items", nargs="+", type=int)
    >>> source = Positional("SOURCE")
"""
import functools
import operator
import re
from collections.abc import Iterable
from enum import Enum
from typing import NamedTuple

from rich.text import Text

from . import converters
from .utils import *


class Action(Enum):
    """
    What the engine does with a matched argument.

    Only STORE and APPEND consume values from the token stream; every other
    action is a zero-value action and may appear inside a short-flag cluster.
    """
    STORE = "store"
    STORE_CONST = "store-const"
    STORE_TRUE = "store-true"
    STORE_FALSE = "store-false"
    APPEND = "append"
    APPEND_CONST = "append-const"
    COUNT = "count"

    @property
    def consumes(self):
        return self in (Action.STORE, Action.APPEND)

    @property
    def constant(self):
        return self in (Action.STORE_CONST, Action.APPEND_CONST)


class Constraint(Enum):
    EXACTLY = "exactly"
    AT_LEAST = "at least"
    AT_MOST = "at most"


class Arity(NamedTuple):
    """
    Arity of a value-consuming argument: a bound kind plus a count.

    bounds
    - EXACTLY(n)  -> (n, n)
    - AT_LEAST(n) -> (n, None)   # None means unbounded
    - AT_MOST(n)  -> (0, n)

    EXACTLY(1) is the single-value arity; every other arity makes the argument a
    collection (stored through the descriptor's container).
    """
    constraint: Constraint
    count: int

    @classmethod
    def exactly(cls, count, /):
        return cls(Constraint.EXACTLY, count)

    @classmethod
    def at_least(cls, count, /):
        return cls(Constraint.AT_LEAST, count)

    @classmethod
    def at_most(cls, count, /):
        return cls(Constraint.AT_MOST, count)

    @classmethod
    def coerce(cls, nargs, /):
        """
        Normalize the shorthand forms into an Arity.

        - Unset -> EXACTLY(1)
        - int n -> EXACTLY(n)
        - "?"   -> AT_MOST(1)
        - "*"   -> AT_LEAST(0)
        - "+"   -> AT_LEAST(1)
        """
        match nargs:
            case Arity():
                arity = nargs
            case UnsetType():
                arity = cls.exactly(1)
            case bool():
                raise TypeError("arity must be an Arity, an integer, or one of '?', '*', '+'")
            case int():
                arity = cls.exactly(nargs)
            case "?":
                arity = cls.at_most(1)
            case "*":
                arity = cls.at_least(0)
            case "+":
                arity = cls.at_least(1)
            case str():
                raise ValueError("arity must be one of '?', '*', or '+'")
            case _:
                raise TypeError("arity must be an Arity, an integer, or one of '?', '*', '+'")

        if not isinstance(arity.constraint, Constraint) or not isinstance(arity.count, int):
            raise TypeError("arity must pair a Constraint with an integer count")
        if arity.count < (0 if arity.constraint is Constraint.AT_LEAST else 1):
            raise ValueError(f"arity {arity.constraint.value} {arity.count} cannot be satisfied")
        return arity

    @property
    def bounds(self):
        match self.constraint:
            case Constraint.EXACTLY:
                return self.count, self.count
            case Constraint.AT_LEAST:
                return self.count, None
            case Constraint.AT_MOST:
                return 0, self.count

    @property
    def multiple(self):
        return not (self.constraint is Constraint.EXACTLY and self.count == 1)

    def __str__(self):
        return f"{self.constraint.value} {self.count}"


class Store:
    """
    Explicit value slot: a getter/setter pair bound to one field of the target.

    Built once per descriptor when the registry is constructed, so the engine
    never discovers fields by reflection during a parse.

    Factories
    - Store.attribute(name): getattr/setattr on the target (missing reads as None).
    - Store.item(key): mapping access on the target (missing reads as None).
    - Store(get, set): any pair of callables.
    """
    __slots__ = ("_get", "_set", "_name")

    def __init__(self, get, set, /, name=Unset):
        if not callable(get) or not callable(set):
            raise TypeError("store 'get' and 'set' must be callable")
        self._get = get
        self._set = set
        self._name = name

    @property
    def name(self):
        return coalesce(self._name)

    def get(self, target, /):
        return self._get(target)

    def set(self, target, value, /):
        self._set(target, value)

    @classmethod
    def attribute(cls, name, /):
        if not isinstance(name, str) or not name.isidentifier():
            raise ValueError("store attribute name must be a valid identifier")

        @rename(f"get_{name}")
        def getter(target):
            return getattr(target, name, None)

        @rename(f"set_{name}")
        def setter(target, value):
            setattr(target, name, value)

        return cls(getter, setter, name)

    @classmethod
    def item(cls, key, /):
        @rename(f"get_{key}")
        def getter(target):
            return target.get(key)

        @rename(f"set_{key}")
        def setter(target, value):
            target[key] = value

        return cls(getter, setter, key)

    def __repr__(self):
        return f"store({self._name!r})"


class ArgumentType(type):
    """
    Metaclass that gives descriptors a stable shape and representation.

    Responsibilities
    - Expose selected fields as read-only properties using mirror() for all names
      listed in __introspectable__.
    - Provide stable, readable __repr__/__rich_repr__ for diagnostics.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens)
      and used in messages and help output.
    - __displayable__ (if set) narrows which properties are shown by __rich_repr__.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            """
            Return a concise, stable representation with key metadata.

            Example
            - argument(names=('-v', '--verbose'), dest='verbose', ...)
            """
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: normalize 'group', 'descr' and 'hidden', shared by every descriptor.

    - group: defaults to the pluralized typename (e.g. "arguments", "positionals").
    - descr: defaults to None.

    Raises TypeError on wrong types and ValueError on empty strings.
    """
    if not isinstance(group := metadata["group"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'group' must be a string")
    elif isinstance(group, str) and not (group := group.strip()):
        raise ValueError(f"{cls.__typename__} 'group' cannot be empty")
    metadata["group"] = coalesce(group, pluralize(cls.__typename__.replace("-", " ")))

    if not isinstance(descr := metadata["descr"], str | Text | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    metadata["descr"] = coalesce(descr)

    metadata["hidden"] = bool(metadata["hidden"])


def _sanitize_named_metadata(cls, metadata, /):
    r"""
    Internal: validate 'names' for named descriptors (Argument, Trigger).

    Each name must be a string of at least two characters, start with a
    non-alphanumeric prefix character and contain no whitespace. Whether the
    prefix matches the registry (and whether a name is short or long) is decided
    by the registry, since the prefix is a registry convention. Order is kept.
    """
    names = []
    if not metadata["names"]:
        raise TypeError(f"{cls.__typename__} must specify at least one name")

    for name in metadata["names"]:
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} names must be strings")
        elif not (name := name.strip()):
            raise ValueError(f"{cls.__typename__} names cannot be empty-strings")
        elif len(name) < 2 or name[0].isalnum() or re.search(r"\s", name):
            raise ValueError(f"{cls.__typename__} name {name!r} must be a prefixed name without whitespace")
        elif name in names:
            raise ValueError(f"{cls.__typename__} names cannot contain duplicates")
        names.append(name)

    metadata["names"] = tuple(names)


def _sanitize_dest(cls, metadata, source, /):
    if isinstance(dest := metadata["dest"], UnsetType):
        dest = "_".join(source.replace("-", "_").split())
    if not isinstance(dest, str):
        raise TypeError(f"{cls.__typename__} 'dest' must be a string")
    if not dest.isidentifier():
        raise ValueError(f"{cls.__typename__} 'dest' {dest!r} must be a valid identifier")
    metadata["dest"] = dest

    if isinstance(store := metadata["store"], UnsetType):
        store = Store.attribute(dest)
    if not isinstance(store, Store):
        raise TypeError(f"{cls.__typename__} 'store' must be a Store")
    metadata["store"] = store


def _sanitize_parametric_metadata(cls, metadata, /):
    """
    Internal: validate and normalize metadata for value-bearing descriptors.

    Responsibilities
    - action: Action or its string value.
    - nargs: only for value-consuming actions; normalized into an Arity.
    - type/converter: converter must be callable when given; otherwise a converter
      for 'type' must exist (see converters.lookup).
    - container: callable building the collection from a list of values.
    - const: required by (and only allowed for) constant actions.
    - default: derived from the action when omitted.
    - metavar: non-empty string, defaults to the upper-cased dest.
    """
    try:
        action = metadata["action"] = Action(metadata["action"])
    except ValueError:
        raise ValueError(f"{cls.__typename__} 'action' must be one of {', '.join(x.value for x in Action)}") from None

    if action.consumes:
        metadata["nargs"] = Arity.coerce(metadata["nargs"])
    elif metadata["nargs"] is not Unset:
        raise TypeError(f"{cls.__typename__} 'nargs' is not allowed for action {action.value!r}")
    else:
        metadata["nargs"] = Arity.exactly(1) if action is not Action.APPEND_CONST else Arity.at_least(0)

    if not isinstance(converter := metadata["converter"], UnsetType) and not callable(converter):
        raise TypeError(f"{cls.__typename__} 'converter' must be callable")
    metadata["converter"] = coalesce(converter)
    if action.consumes and converter is Unset:
        converters.lookup(metadata["type"])

    if not callable(container := metadata["container"]):
        raise TypeError(f"{cls.__typename__} 'container' must be callable")

    if action.constant and metadata["const"] is Unset:
        raise TypeError(f"{cls.__typename__} 'const' is required for action {action.value!r}")
    if not action.constant and metadata["const"] is not Unset:
        raise TypeError(f"{cls.__typename__} 'const' is not allowed for action {action.value!r}")
    metadata["const"] = coalesce(metadata["const"])

    if metadata["default"] is Unset:
        match action:
            case Action.STORE_TRUE:
                metadata["default"] = False
            case Action.STORE_FALSE:
                metadata["default"] = True
            case Action.COUNT:
                metadata["default"] = 0
            case Action.APPEND | Action.APPEND_CONST:
                metadata["default"] = container()
            case Action.STORE if metadata["nargs"].multiple:
                metadata["default"] = container()
            case _:
                metadata["default"] = None

    if not isinstance(metavar := metadata["metavar"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'metavar' must be a string")
    elif isinstance(metavar, str) and not (metavar := metavar.strip()):
        raise ValueError(f"{cls.__typename__} 'metavar' cannot be empty")
    metadata["metavar"] = coalesce(metavar, metadata["dest"].upper())


class Argument(metaclass=ArgumentType):
    """
    Named argument descriptor (e.g. -o/--output, -v, --dry-run).

    Highlights
    - Short names are the prefix plus one character; long names start with the
      doubled prefix. Which is which is checked by the registry.
    - Any Action; value-consuming actions take an arity (single or collection).
    - exclusive: names of the mutually exclusive groups this argument belongs to.
    - required: the parse fails at the end if the argument was never supplied.

    Properties
    - The names listed in __introspectable__ are exposed as read-only attributes.
    """

    __introspectable__ = (
        "names",
        "dest",
        "action",
        "nargs",
        "type",
        "converter",
        "container",
        "const",
        "default",
        "exclusive",
        "required",
        "metavar",
        "group",
        "descr",
        "hidden",
        "store",
    )
    __displayable__ = (
        "names",
        "dest",
        "action",
        "nargs",
        "default",
        "exclusive",
        "required",
    )

    def __new__(
            cls,
            *names,
            dest=Unset,
            action=Action.STORE,
            nargs=Unset,
            type=str,
            converter=Unset,
            container=list,
            const=Unset,
            default=Unset,
            exclusive=(),
            required=False,
            metavar=Unset,
            group=Unset,
            descr=Unset,
            hidden=False,
            store=Unset,
    ):
        """
        Construct an Argument with the provided metadata.

        Parameters
        - names: one or more str, e.g. "-o", "--output".
        - dest: slot identity; defaults to the longest name without its prefix and
          with hyphens turned into underscores ("--dry-run" -> "dry_run").
        - action: Action (or its value string), STORE by default.
        - nargs: Arity | int | "?" | "*" | "+" (value-consuming actions only).
        - type: conversion target (the element type for collections).
        - converter: callable(text) consulted before the built-in converters.
        - container: collection builder for multi-value and append actions.
        - const: payload of STORE_CONST/APPEND_CONST.
        - default: initial slot value in generated namespaces.
        - exclusive: str | Iterable[str], mutually exclusive group names.
        - required: bool.
        - metavar/group/descr/hidden: help metadata.
        - store: explicit Store; defaults to Store.attribute(dest).
        """
        metadata = {
            "names": names,
            "dest": dest,
            "action": action,
            "nargs": nargs,
            "type": type,
            "converter": converter,
            "container": container,
            "const": const,
            "default": default,
            "exclusive": exclusive,
            "required": bool(required),
            "metavar": metavar,
            "group": group,
            "descr": descr,
            "hidden": hidden,
            "store": store,
        }
        _sanitize_metadata(cls, metadata)
        _sanitize_named_metadata(cls, metadata)
        longest = max(metadata["names"], key=len)
        _sanitize_dest(cls, metadata, longest.lstrip(longest[0]))
        _sanitize_parametric_metadata(cls, metadata)

        if isinstance(exclusive := metadata["exclusive"], str):
            exclusive = (exclusive,)
        if not isinstance(exclusive, Iterable) or not all(isinstance(x, str) and x.strip() for x in exclusive):
            raise TypeError(f"{cls.__typename__} 'exclusive' must be a group name or an iterable of group names")
        metadata["exclusive"] = frozenset(x.strip() for x in exclusive)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @property
    def consumes(self):
        return self._action.consumes

    @property
    def multiple(self):
        return self._action.consumes and self._nargs.multiple

    @property
    def display(self):
        """The spelling used in messages: the longest name."""
        return max(self._names, key=len)


class Positional(metaclass=ArgumentType):
    """
    Positional, value-bearing descriptor.

    Positionals are fed, in declaration order, with the tokens the tokenizer left
    over. Only value-consuming actions (STORE, APPEND) make sense here. A
    positional with an arity other than EXACTLY(1) collects a run of values; one
    with an unbounded arity must be the last positional of its registry.
    """

    __introspectable__ = (
        "dest",
        "action",
        "nargs",
        "type",
        "converter",
        "container",
        "const",
        "default",
        "metavar",
        "group",
        "descr",
        "hidden",
        "store",
    )
    __displayable__ = (
        "metavar",
        "dest",
        "action",
        "nargs",
        "default",
    )

    def __new__(
            cls,
            metavar=Unset,
            /,
            dest=Unset,
            action=Action.STORE,
            nargs=Unset,
            type=str,
            converter=Unset,
            container=list,
            default=Unset,
            group=Unset,
            descr=Unset,
            hidden=False,
            store=Unset,
    ):
        if metavar is Unset and dest is Unset:
            raise TypeError(f"{cls.__typename__} must specify a 'metavar' or a 'dest'")
        if not isinstance(metavar, str | Unset):
            raise TypeError(f"{cls.__typename__} 'metavar' must be a string")

        metadata = {
            "dest": dest,
            "action": action,
            "nargs": nargs,
            "type": type,
            "converter": converter,
            "container": container,
            "const": Unset,
            "default": default,
            "metavar": metavar,
            "group": group,
            "descr": descr,
            "hidden": hidden,
            "store": store,
        }
        _sanitize_metadata(cls, metadata)
        _sanitize_dest(cls, metadata, coalesce(metavar, "").strip().lower())
        _sanitize_parametric_metadata(cls, metadata)

        if not metadata["action"].consumes:
            raise TypeError(f"{cls.__typename__} 'action' must consume values (store or append)")

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @property
    def consumes(self):
        return True

    @property
    def multiple(self):
        return self._nargs.multiple

    @property
    def display(self):
        return self._metavar


class Trigger(metaclass=ArgumentType):
    """
    Named descriptor whose resolution runs callback(config) and aborts the parse.

    Triggers never store a value, never count as a satisfied named argument and
    never take part in mutually exclusive groups. See argstack.triggers for the
    built-in help and version triggers.
    """

    __introspectable__ = (
        "names",
        "callback",
        "group",
        "descr",
        "hidden",
    )
    __displayable__ = (
        "names",
        "callback",
    )

    def __new__(cls, *names, callback, group=Unset, descr=Unset, hidden=False):
        metadata = {
            "names": names,
            "callback": callback,
            "group": group,
            "descr": descr,
            "hidden": hidden,
        }
        _sanitize_metadata(cls, metadata)
        _sanitize_named_metadata(cls, metadata)
        if not callable(callback):
            raise TypeError(f"{cls.__typename__} 'callback' must be callable")

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @property
    def consumes(self):
        return False

    @property
    def display(self):
        return max(self._names, key=len)

    def fire(self, config, /):
        """Run the callback with the live registry."""
        self._callback(config)


class Verb(metaclass=ArgumentType):
    """
    Subcommand descriptor: 'name' routes every remaining token to 'config'.

    Parameters
    - name: the verb token (no whitespace, no leading prefix character).
    - config: the nested registry (a ParserConfig).
    - dest: slot receiving the nested target ("verb" by default).
    - factory: zero-argument callable building a fresh nested target; defaults to
      config.namespace.
    """

    __introspectable__ = (
        "name",
        "config",
        "dest",
        "factory",
        "group",
        "descr",
        "hidden",
        "store",
    )
    __displayable__ = (
        "name",
        "dest",
    )

    def __new__(cls, name, config, /, dest="verb", factory=Unset, group=Unset, descr=Unset, hidden=False, store=Unset):
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} 'name' must be a string")
        elif not (name := name.strip()) or re.search(r"\s", name):
            raise ValueError(f"{cls.__typename__} 'name' must be a non-empty word")
        if not callable(getattr(config, "namespace", None)):
            raise TypeError(f"{cls.__typename__} 'config' must be a parser config")
        if not callable(factory := coalesce(factory, config.namespace)):
            raise TypeError(f"{cls.__typename__} 'factory' must be callable")

        metadata = {
            "name": name,
            "config": config,
            "dest": dest,
            "factory": factory,
            "group": group,
            "descr": descr,
            "hidden": hidden,
            "store": store,
        }
        _sanitize_metadata(cls, metadata)
        _sanitize_dest(cls, metadata, name)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self


__all__ = (
    # Building blocks
    "Action",
    "Constraint",
    "Arity",
    "Store",

    # Descriptors
    "Argument",
    "Positional",
    "Trigger",
    "Verb",
)

# Remove the internal metaclass from the module namespace to avoid accidental
# exposure in docs, autocompletion, or star-imports. Not part of the public API.
del ArgumentType
