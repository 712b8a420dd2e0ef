"""
Argstack facade: turn a prompt into a populated target.

- Parser(config, shell=..., fancy=..., colorful=...): binds a registry to runtime
  rendering flags.
  • parse(prompt, target) -> Outcome: never raises for user input; failures and
    early exits come back as data.
  • __invoke__(prompt): parse and act (return the target, surface the fault, or
    stop after a trigger).
- invoke(object, prompt): runs anything implementing __invoke__; a bare
  ParserConfig is wrapped into a Parser first.

Prompt forms (same as every entry point here)
- Unset: sys.argv[1:]
- str: shell-like string, split with shlex.split
- Iterable[str]: pre-tokenized items; each one is trimmed, empty ones dropped
"""
import shlex
import sys
from collections.abc import Iterable
from enum import Enum
from typing import NamedTuple

from .arguments import Trigger
from .config import ParserConfig
from .context import ParsingContext
from .faults import *
from .utils import *


class Status(Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    EXIT = "exit"


class Outcome(NamedTuple):
    """
    Result of Parser.parse().

    - status: Status.
    - target: the populated object (partially populated on failure or exit).
    - fault: the ParseException on failure, else None.
    - trigger: the Trigger that ended the parse on exit, else None.

    Truthy only on success.
    """
    status: Status
    target: object = None
    fault: ParseException | None = None
    trigger: Trigger | None = None

    def __bool__(self):
        return self.status is Status.SUCCESS

    def unwrap(self):
        """Return the target, or raise the fault of a failed parse."""
        if self.status is Status.FAILURE:
            raise self.fault
        return self.target


def _tokenize(prompt, /):
    if prompt is Unset:
        return sys.argv[1:]
    if isinstance(prompt, str):
        return shlex.split(prompt)
    if isinstance(prompt, Iterable):
        tokens = []
        for item in prompt:
            if not isinstance(item, str):
                raise TypeError("prompt must be a string or an iterable of strings")
            if item := item.strip():
                tokens.append(item)
        return tokens
    raise TypeError("prompt must be a string or an iterable of strings")


class Parser:
    """
    Runtime front-end of a ParserConfig.

    Flags
    - shell: render faults to stderr and exit the process (status 1 on faults,
      0 after a trigger) instead of raising/returning.
    - fancy: render faults inside a panel.
    - colorful: enable styles.

    The registry is only read; one Parser may serve any number of parses.
    """

    def __init__(self, config, /, *, shell=False, fancy=False, colorful=True):
        if not isinstance(config, ParserConfig):
            raise TypeError("parser 'config' must be a parser-config")
        self._config = config
        self._shell = bool(shell)
        self._fancy = bool(fancy)
        self._colorful = bool(colorful)

    config = property(lambda self: self._config)
    shell = property(lambda self: self._shell)
    fancy = property(lambda self: self._fancy)
    colorful = property(lambda self: self._colorful)

    def parse(self, prompt=Unset, /, target=Unset):
        """
        Parse 'prompt' into 'target' (a fresh config.namespace() when Unset).

        Exceptions raised by post-parse hooks are not parse faults and propagate
        unchanged.
        """
        tokens = _tokenize(prompt)
        if target is Unset:
            target = self._config.namespace()

        try:
            signal = ParsingContext(target, self._config).parse(tokens)
        except ParseException as fault:
            return Outcome(Status.FAILURE, target, fault=fault)

        if signal is not None:
            return Outcome(Status.EXIT, target, trigger=signal.trigger)
        return Outcome(Status.SUCCESS, target)

    def trigger(self, fault, /, **options):
        """Surface 'fault' with this parser's rendering flags (see faults.trigger)."""
        trigger(fault, **{
            "prog": self._config.name,
            "shell": self._shell,
            "fancy": self._fancy,
            "colorful": self._colorful,
        } | options)

    def __invoke__(self, prompt=Unset):
        outcome = self.parse(prompt)

        match outcome.status:
            case Status.SUCCESS:
                return outcome.target
            case Status.FAILURE:
                self.trigger(outcome.fault)
            case Status.EXIT if self._shell:
                sys.exit(0)
        return None

    def __repr__(self):
        return f"parser(config={self._config!r}, shell={self._shell!r})"


def invoke(object, prompt=Unset, /):
    """
    Run 'object' with 'prompt' and return what its __invoke__ returns.

    - Parser (or anything implementing __invoke__): called directly.
    - ParserConfig: wrapped into Parser(object, shell=True) first, so faults are
      rendered and the process exits the way a command line expects.
    """
    if isinstance(object, ParserConfig):
        object = Parser(object, shell=True)

    if hasattr(object, "__invoke__") and callable(object.__invoke__):
        return object.__invoke__(prompt)

    target = "argument" if prompt is Unset else "first argument"
    raise TypeError(f"invoke() {target} must implement __invoke__ method")


__all__ = (
    "Status",
    "Outcome",
    "Parser",
    "invoke",
)
