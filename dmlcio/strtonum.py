"""Lenient number parsing used by the text data parsers."""

from __future__ import annotations

import math
import re
import struct
from typing import Callable, Optional, Union

Number = Union[int, float]

_SPACE = re.compile(r"[ \t\r\n\f]*")
_DIGITS = re.compile(r"[0-9]*")
_NON_DIGITCHARS = re.compile(r"[^0-9+\-.eE]*")
_DIGITCHAR_RUN = re.compile(r"[0-9+\-.eE]*")
_BLANKS = re.compile(r"[ \t]*")
_MAX_EXPONENT = 38


def _to_float32(value: float) -> float:
    try:
        return struct.unpack("<f", struct.pack("<f", value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


def _read_sign(text: str, pos: int) -> tuple[bool, int]:
    """Return (negative, position after the sign)."""
    if text.startswith("-", pos):
        return True, pos + 1
    if text.startswith("+", pos):
        return False, pos + 1
    return False, pos


def _read_digits(text: str, pos: int) -> tuple[str, int]:
    match = _DIGITS.match(text, pos)
    return match.group(), match.end()


def strtof(text: str) -> tuple[float, int]:
    """Parse a single-precision float; return it with the index where parsing stopped.

    Infinity, NaN and hexadecimal forms are not recognised.
    """
    pos = _SPACE.match(text).end()
    negative, pos = _read_sign(text, pos)
    digits, pos = _read_digits(text, pos)
    value = float(int(digits)) if digits else 0.0

    if text.startswith(".", pos):
        frac, pos = _read_digits(text, pos + 1)
        if frac:
            value += int(frac) / 10 ** len(frac)

    if text.startswith(("e", "E"), pos):
        exp_negative, pos = _read_sign(text, pos + 1)
        exp_digits, pos = _read_digits(text, pos)
        expon = min(int(exp_digits) if exp_digits else 0, _MAX_EXPONENT)
        scale = 10.0 ** expon
        value = value / scale if exp_negative else value * scale

    return _to_float32(-value if negative else value), pos


def _parse_integer(text: str) -> tuple[bool, int, int]:
    pos = _SPACE.match(text).end()
    negative, pos = _read_sign(text, pos)
    digits, pos = _read_digits(text, pos)
    return negative, int(digits) if digits else 0, pos


def strtoint(text: str) -> tuple[int, int]:
    """Parse a signed decimal integer; return it with the index where parsing stopped."""
    negative, value, pos = _parse_integer(text)
    return (-value if negative else value), pos


def strtouint(text: str) -> tuple[int, int]:
    """Parse an unsigned decimal integer; a minus sign is an error."""
    negative, value, pos = _parse_integer(text)
    if negative:
        raise ValueError(f"unexpected minus sign in unsigned number {text!r}")
    return value, pos


def atol(text: str) -> int:
    """Parse a signed decimal integer, ignoring trailing text."""
    return strtoint(text)[0]


def atof(text: str) -> float:
    """Parse a float, ignoring trailing text."""
    return strtof(text)[0]


_CONVERTERS: dict[object, Callable[[str], Number]] = {int: atol, float: atof}


def parse_pair(
    text: str,
    first_kind: Union[type, Callable[[str], Number]] = float,
    second_kind: Union[type, Callable[[str], Number]] = float,
) -> tuple[int, Optional[Number], Optional[Number], int]:
    """Parse a colon separated pair ``v1[:v2]``.

    ``first_kind`` and ``second_kind`` are ``int``, ``float`` or a callable
    converting a string.  Returns ``(count, v1, v2, end)`` where ``count`` is
    the number of values found and ``end`` the index where parsing stopped.
    """
    first = _CONVERTERS.get(first_kind, first_kind)
    second = _CONVERTERS.get(second_kind, second_kind)
    end = len(text)

    p = _NON_DIGITCHARS.match(text).end()
    if p == end:
        return 0, None, None, end
    q = _DIGITCHAR_RUN.match(text, p).end()
    v1 = first(text[p:q])
    p = _BLANKS.match(text, q).end()
    if p == end or text[p] != ":":
        return 1, v1, None, p
    p = _NON_DIGITCHARS.match(text, p + 1).end()
    q = _DIGITCHAR_RUN.match(text, p).end()
    return 2, v1, second(text[p:q]), q