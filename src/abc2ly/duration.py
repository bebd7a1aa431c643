r"""Exact note-length arithmetic.

All durations are :class:`~fractions.Fraction` values where a whole note is 1.
Fractions are always stored in lowest terms, and only multiplication is used to
compose them, so no floating point value ever enters a duration.

Durations are written in LilyPond as a base value plus dots, for example::

    >>> to_string(Fraction(3, 8))
    '4.'
    >>> to_string(Fraction(2))
    '\\breve'

"""

from __future__ import annotations

import re
from fractions import Fraction

from abc2ly.ast_nodes import Meter
from abc2ly.errors import FieldValueError, UnhandledDurationError

ZERO = Fraction(0)
HALF = Fraction(1, 2)
DOTTED = Fraction(3, 2)

#: Default unit note length when a tune has no L: field.
DEFAULT_UNIT_NOTE_LENGTH = Fraction(1, 4)

NAMED_DURATIONS = ('breve', 'longa', 'maxima')

_RE_FRACTION = re.compile(r"^\s*(\d+)\s*/\s*(\d+)\s*$")


def compose(multiplier: str = "", slashes: str = "", divisor: str = "") -> Fraction:
    """Build a symbol's duration from its ABC length suffix.

    ``A3`` -> 3, ``A/`` -> 1/2, ``A//`` -> 1/4, ``A3/4`` -> 3/4. The explicit
    divisor only applies together with exactly one slash; otherwise each slash
    halves the length.

        >>> compose("", "//")
        Fraction(1, 4)
        >>> compose("3", "/", "8")
        Fraction(3, 8)

    """
    dur = Fraction(1)
    if multiplier:
        dur *= int(multiplier)
    if len(slashes) == 1 and divisor:
        dur *= Fraction(1, int(divisor))
    else:
        for _ in slashes:
            dur *= HALF
    return dur


def syncopation(markers: str) -> int:
    """Count broken-rhythm markers: '>' counts +1, '<' counts -1."""
    count = 0
    for ch in markers:
        if ch == ">":
            count += 1
        elif ch == "<":
            count -= 1
    return count


def calculate(unit: Fraction, duration: Fraction, sync: int = 0,
              previous_sync: int = 0) -> Fraction:
    """Return the written length of a note or rest.

    ``sync`` is the symbol's own broken-rhythm count and ``previous_sync``
    that of the note or rest before it in the same bar. ``a>b`` makes ``a``
    dotted (x 3/2) and ``b`` half as long; ``a<b`` is the mirror image.
    """
    dur = unit * duration
    for _ in range(max(sync, 0)):
        dur *= DOTTED
    for _ in range(max(-previous_sync, 0)):
        dur *= DOTTED
    for _ in range(max(-sync, 0)):
        dur *= HALF
    for _ in range(max(previous_sync, 0)):
        dur *= HALF
    return dur


def parse_note_length(value: str) -> Fraction:
    """Parse an L: value such as ``1/8``.

    Raises FieldValueError if the value is not a positive ``a/b`` fraction.
    """
    m = _RE_FRACTION.match(value)
    if not m or int(m.group(1)) == 0 or int(m.group(2)) == 0:
        raise FieldValueError(f"invalid unit note length {value!r}", token=value)
    return Fraction(int(m.group(1)), int(m.group(2)))


def parse_meter(value: str) -> Meter | None:
    """Parse an M: value. ``C`` is 4/4, ``C|`` is 2/2, ``none`` is no meter."""
    text = value.strip()
    if text == "C":
        return Meter(4, 4)
    if text == "C|":
        return Meter(2, 2)
    if text.lower() == "none" or not text:
        return None
    m = _RE_FRACTION.match(text)
    if not m or int(m.group(2)) == 0:
        raise FieldValueError(f"invalid meter {value!r}", token=value)
    return Meter(int(m.group(1)), int(m.group(2)))


def _is_power_of_two(n: int) -> bool:
    return n > 0 and n & (n - 1) == 0


def log_dotcount(value: Fraction) -> tuple[int, int] | None:
    r"""Return (log, dotcount) if ``value`` is a plain or dotted note value.

    The log is 0 for a whole note, 2 for a crotchet, -1 for a ``\breve``.
    Returns None for values such as 5/8 that need a multiplier.

        >>> log_dotcount(Fraction(3, 8))
        (2, 1)
        >>> log_dotcount(Fraction(7, 16))
        (2, 2)

    """
    num, den = value.numerator, value.denominator
    if num <= 0 or not _is_power_of_two(den):
        return None
    shift = (num & -num).bit_length() - 1
    odd = num >> shift
    if not _is_power_of_two(odd + 1):
        return None
    dotcount = (odd + 1).bit_length() - 2
    log = (den.bit_length() - 1) - shift - dotcount
    return log, dotcount


def to_string(value: Fraction) -> str:
    r"""Convert a duration to LilyPond notation.

    Values that are not a (dotted) note value use a multiplier:

        >>> to_string(Fraction(5, 8))
        '8*5'
        >>> to_string(Fraction(1, 6))
        '1*1/6'

    Raises UnhandledDurationError for zero or negative values.
    """
    if value <= ZERO:
        raise UnhandledDurationError(f"unhandled duration {value}", token=str(value))
    ld = log_dotcount(value)
    if ld is not None:
        log, dotcount = ld
        if log >= 0:
            return f"{1 << log}{'.' * dotcount}"
        if -log <= len(NAMED_DURATIONS):
            return f"\\{NAMED_DURATIONS[-1 - log]}{'.' * dotcount}"
    if _is_power_of_two(value.denominator):
        return f"{value.denominator}*{value.numerator}"
    return f"1*{value.numerator}/{value.denominator}"
