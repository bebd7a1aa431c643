"""Tokenizer for one line of ABC music.

Symbols are matched greedily from the left, trying in a fixed order:
inline field, decoration, note/rest/chord, quoted text, barline. After each
match the consumed text and any following blanks are dropped and matching
restarts from the first pattern. Tokenizing stops at the end of the line or
at the first text no pattern accepts; that remainder is returned to the
caller, which reports it.

Not handled (left in the remainder): slurs, tuplets, grace-note groups.
"""

from __future__ import annotations

import re

from abc2ly.ast_nodes import (
    Symbol, Text, Note, Rest, RestKind, Bar, Decoration, InlineField,
)
from abc2ly.duration import compose, syncopation
from abc2ly.pitch import parse_pitches


# ---------- Regex patterns ----------

RE_INLINE_FIELD = re.compile(r"^\[([a-zA-Z]):([^\]]*)\]")
RE_DECORATION = re.compile(r"^([.~HLMOPSTuv]|![^!]+!)")
RE_NOTE = re.compile(
    r"^([_^=]*[a-gA-G][,']*"                 # single pitch
    r"|\[(?:[_^=]*[a-gA-G][,']*)+\]"         # chord
    r"|[xyzXZ])"                             # rest
    r"([1-9][0-9]*)?"                        # multiplier
    r"(/*)"                                  # halving slashes
    r"([1-9][0-9]*)?"                        # divisor
    r"([<>]*)"                               # broken rhythm
    r"(-?)"                                  # tie
)
# No escape handling: an embedded quote ends the text.
RE_TEXT = re.compile(r'^"([^"]*)"')
# `:|: [1-2` or `|]` or `:|]`
RE_BAR = re.compile(r"^([:|\[\]]*[:|\]])(?:(?:\s*\[)?([0-9\-,]+)|(\])|)")

RE_BLANK = re.compile(r"^[ \t]+")

REST_KINDS = {
    "z": RestKind.VISIBLE,
    "Z": RestKind.FULL_MEASURE,
    "x": RestKind.INVISIBLE,
    "X": RestKind.INVISIBLE,
    "y": RestKind.INVISIBLE,
}


def tokenize_line(line: str) -> tuple[list[Symbol], str]:
    """Tokenize one comment-free line of music.

    Returns the symbols in source order and the unparsed remainder ("" when
    the whole line was consumed).
    """
    symbols: list[Symbol] = []
    rest = line.lstrip(" \t")

    while rest:
        consumed, found = _try_parse_symbol(rest)
        if not consumed:
            break
        symbols.extend(found)
        rest = RE_BLANK.sub("", rest[consumed:], count=1)

    return symbols, rest


def _try_parse_symbol(text: str) -> tuple[int, list[Symbol]]:
    """Try each pattern in priority order. Returns (chars consumed, symbols)."""
    # Inline field [K:G]
    m = RE_INLINE_FIELD.match(text)
    if m:
        return m.end(), [InlineField(tag=m.group(1), value=m.group(2).strip())]

    # Decoration . ~ H ... or !trill!
    m = RE_DECORATION.match(text)
    if m:
        return m.end(), [Decoration(token=m.group(1).strip())]

    # Note, chord or rest
    m = RE_NOTE.match(text)
    if m:
        return m.end(), [_note_from_match(m)]

    # Quoted text
    m = RE_TEXT.match(text)
    if m:
        return m.end(), [Text(text=m.group(1))]

    # Barline
    m = RE_BAR.match(text)
    if m:
        volta = (m.group(2) or "").lstrip(" [")
        return m.end(), [Bar(token=m.group(1), volta=volta,
                             close_volta=m.group(3) is not None)]

    return 0, []


def _note_from_match(m: re.Match) -> Note | Rest:
    """Build a Note or Rest from a RE_NOTE match."""
    body, multiplier, slashes, divisor, broken, tie = m.groups()
    duration = compose(multiplier or "", slashes, divisor or "")
    sync = syncopation(broken)

    if body in REST_KINDS:
        return Rest(kind=REST_KINDS[body], literal=body, duration=duration,
                    syncopation=sync, tie=tie != "")

    return Note(pitches=parse_pitches(body), duration=duration,
                syncopation=sync, tie=tie != "")
