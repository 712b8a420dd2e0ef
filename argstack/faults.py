"""
Argstack faults (parse errors and the early-exit signal) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every user-facing parse error.
- ParseException: base type carrying a message + read-only options; knows how to
  render itself (rich) and how to surface itself (raise, or print and exit).
- ParserExit: the early-exit signal returned by the engine when a trigger fires.
  It is NOT an exception: callers stop parsing and treat it as a success-like end.
- trigger(): central entry point to surface any fault.
- getdoc(): optional description for a code from the host application, shown under the hint.

UX goals
- Token-first messages: every message quotes the offending token or name.
- Short titles and one-sentence bodies with a single hint.
- Lowercased tone with readable styling (configurable via __styles__ in __main__).

Integration
- The engine raises ParseException subclasses; the Parser facade turns them into an
  Outcome and, when asked to act, calls trigger(fault, **options).
- Outside shell mode faults are raised; in shell mode they are rendered via rich.
"""
import inspect
import sys
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the parser (stable identifiers).

    grouping (by high-level domain)
    - named arguments (1111x/1112x)
      • BAD_PREFIX_USAGE, UNKNOWN_ARGUMENT, FLAG_ASSIGNMENT,
        GROUPED_ARGUMENT_REQUIRES_VALUE, MUTUALLY_EXCLUSIVE_VIOLATION
    - values (1113x)
      • MISSING_VALUE, CONVERSION_ERROR, ARITY_VIOLATION
    - positionals (1114x)
      • EXTRA_POSITIONAL_ARGUMENTS
    - requirements (1115x)
      • MISSING_REQUIRED_GROUP, MISSING_REQUIRED_ARGUMENT

    normalize() lets hosts remap codes to custom labels while keeping them stable.
    """
    # --- named argument errors (111xx) ---
    BAD_PREFIX_USAGE                = 11111
    UNKNOWN_ARGUMENT                = 11112
    FLAG_ASSIGNMENT                 = 11113
    GROUPED_ARGUMENT_REQUIRES_VALUE = 11114
    MUTUALLY_EXCLUSIVE_VIOLATION    = 11115

    # --- value errors (111xx) ---
    MISSING_VALUE                   = 11131
    CONVERSION_ERROR                = 11132
    ARITY_VIOLATION                 = 11133

    # --- positional errors (111xx) ---
    EXTRA_POSITIONAL_ARGUMENTS      = 11141

    # --- requirement errors (111xx) ---
    MISSING_REQUIRED_GROUP          = 11151
    MISSING_REQUIRED_ARGUMENT       = 11152

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class ParseException(Exception):
    """
    base class of every parse error.

    attributes
    - message: lowercased, one-sentence description quoting the offending token/name.
    - options: read-only mapping; always holds 'code' and 'title', usually 'hint' and
      'token', plus fault-specific payload (e.g. 'missing', 'group', 'minimum').

    subclasses declare __code__ and __title__ so raise sites only pass the specifics.
    """
    __code__ = Unset
    __title__ = "parse error"

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType({"code": type(self).__code__, "title": type(self).__title__} | options)

    @property
    def code(self):
        return self.options["code"]

    @property
    def token(self):
        return self.options.get("token")

    def __str__(self):
        return str(self.message) if self.message is not Unset else type(self).__title__

    def __rich__(self):
        main = __import__("__main__")

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
            "doc": "dim #C8C8D0",  # host documentation
        } | getattr(main, "__styles__", {}))

        colorful = self.options.get("colorful", False)
        fancy = self.options.get("fancy", False)

        def styler(style):
            return styles[style] if colorful else ""

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if not colorful:
                return Text(str(fragment))
            if isinstance(fragment, Text):
                return fragment
            return Text(str(fragment), style)

        prog = text(getattr(main, "__prog__", self.options.get("prog") or "argstack"), styler("prog-name"))
        code = self.code.normalize() if isinstance(self.code, FaultCode) else "-"

        header = Text.assemble(
            "[ ",
            prog,
            " — ",
            text(code, styler("code")),
            " | ",
            text(self.options["title"].title(), styler("error-title")),
            " ]"
        )
        message = text(str(self), styler("error-message"))
        hint = Text.assemble(text(" → ", styler("hint-arrow")), text(self.options.get("hint"), styler("hint")))
        body = [message, hint]
        if isinstance(self.code, FaultCode) and (doc := getdoc(self.code)):
            body.append(text(doc, styler("doc")))

        if fancy:
            return Panel(Group(*body), title=header, title_align="left")

        return Group(header, *body)

    def __trigger__(self) -> None:
        if not self.options.get("shell"):
            raise self
        console.print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        replaced = type(self)(self.message, **{**self.options, **overrides})
        replaced.__cause__ = self.__cause__
        return replaced


class BadPrefixUsageError(ParseException):
    __code__ = FaultCode.BAD_PREFIX_USAGE
    __title__ = "bare prefix"


class UnknownArgumentError(ParseException):
    __code__ = FaultCode.UNKNOWN_ARGUMENT
    __title__ = "unknown argument"


class FlagAssignmentError(ParseException):
    __code__ = FaultCode.FLAG_ASSIGNMENT
    __title__ = "argument cannot take a value"


class GroupedArgumentRequiresValueError(ParseException):
    __code__ = FaultCode.GROUPED_ARGUMENT_REQUIRES_VALUE
    __title__ = "grouped argument requires a value"


class MutuallyExclusiveViolationError(ParseException):
    __code__ = FaultCode.MUTUALLY_EXCLUSIVE_VIOLATION
    __title__ = "mutually exclusive arguments"


class MissingValueError(ParseException):
    __code__ = FaultCode.MISSING_VALUE
    __title__ = "missing value"


class ConversionError(ParseException):
    __code__ = FaultCode.CONVERSION_ERROR
    __title__ = "bad value"


class ArityViolationError(ParseException):
    __code__ = FaultCode.ARITY_VIOLATION
    __title__ = "not enough values"


class ExtraPositionalArgumentsError(ParseException):
    __code__ = FaultCode.EXTRA_POSITIONAL_ARGUMENTS
    __title__ = "extra positional arguments"


class MissingRequiredGroupError(ParseException):
    __code__ = FaultCode.MISSING_REQUIRED_GROUP
    __title__ = "missing required group"


class MissingRequiredArgumentError(ParseException):
    __code__ = FaultCode.MISSING_REQUIRED_ARGUMENT
    __title__ = "missing required argument"


class ParserExit:
    """
    early-exit signal: a trigger fired and parsing was intentionally aborted.

    not an error and never raised; the engine returns it and every caller up the
    chain (including nested verb parses) returns it unchanged.
    """
    __slots__ = ("trigger", "options")

    def __init__(self, trigger, /, **options):
        self.trigger = trigger
        self.options = MappingProxyType(options)

    def __repr__(self):
        return f"parser-exit(trigger={self.trigger!r})"


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see ParseException).
    - options are merged into the fault via __replace__(**options) before triggering.
    - in shell mode, rendering happens via the rich console; otherwise it is raised.

    typical options
    - prog, shell, fancy, colorful, and any context the renderer may want to show.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    fault.__replace__(**options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    the host application may expose a __docs__ mapping in __main__ where keys are
    FaultCode instances and values are short documentation strings.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    return inspect.cleandoc(doc) if (doc := getattr(__import__("__main__"), "__docs__", {}).get(code)) else None


__all__ = (
    "ParseException",
    "BadPrefixUsageError",
    "UnknownArgumentError",
    "FlagAssignmentError",
    "GroupedArgumentRequiresValueError",
    "MutuallyExclusiveViolationError",
    "MissingValueError",
    "ConversionError",
    "ArityViolationError",
    "ExtraPositionalArgumentsError",
    "MissingRequiredGroupError",
    "MissingRequiredArgumentError",
    "ParserExit",
    "FaultCode",
    "trigger",
    "getdoc",
)
