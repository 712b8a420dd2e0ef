"""
Text-to-value conversion used by the parsing engine.

Lookup order for convert(text, type, converter)
1. the argument's own converter (any callable taking the raw text), when given;
2. the built-in table (str, int, float, complex, bool, Decimal, Fraction, Path);
3. enumerations, matched by member name (case-insensitive) then by member value;
4. any other callable type, called with the raw text (e.g. a user class).

Every converter signals failure by raising; the engine wraps whatever was raised
into a ConversionError and keeps it as the __cause__.
"""
import builtins
import functools
from decimal import Decimal
from enum import Enum
from fractions import Fraction
from pathlib import Path

_TRUTHS = frozenset({"1", "true", "t", "yes", "y", "on"})
_FALSITIES = frozenset({"0", "false", "f", "no", "n", "off"})


def _parse_int(text):
    sign, digits = (-1, text[1:]) if text[:1] == "-" else (1, text.removeprefix("+"))
    match digits[:2].lower():
        case "0x":
            radix = 16
        case "0o":
            radix = 8
        case "0b":
            radix = 2
        case _:
            return sign * int(digits, 10)
    return sign * int(digits[2:], radix)


def _parse_bool(text):
    if (lowered := text.strip().lower()) in _TRUTHS:
        return True
    if lowered in _FALSITIES:
        return False
    raise ValueError(f"invalid boolean literal {text!r}")


def _parse_enum(type, text, /):
    lowered = text.lower()
    for member in type:
        if member.name.lower() == lowered:
            return member
    for member in type:
        if str(member.value) == text:
            return member
    raise ValueError(f"{text!r} is not one of {', '.join(member.name.lower() for member in type)}")


_builtins = {
    str: str,
    int: _parse_int,
    float: float,
    complex: complex,
    bool: _parse_bool,
    Decimal: Decimal,
    Fraction: Fraction,
    Path: Path,
}


def lookup(type, /):
    """
    Return the converter used for 'type' when an argument declares none.

    Raises TypeError when nothing can build 'type' from text.
    """
    try:
        return _builtins[type]
    except (KeyError, TypeError):
        pass
    if isinstance(type, builtins.type) and issubclass(type, Enum):
        return functools.partial(_parse_enum, type)
    if callable(type):
        return type
    raise TypeError(f"no converter can build {type!r} from text")


def convert(text, type=str, converter=None, /):
    """
    Convert 'text' to 'type', consulting 'converter' first when given.
    """
    if converter is not None:
        return converter(text)
    return lookup(type)(text)


__all__ = (
    "lookup",
    "convert",
)
