"""Convert ABC pitches to LilyPond note names.

ABC accidental markers precede the letter: ``^`` sharp, ``_`` flat,
``=`` natural. In LilyPond they become suffixes: ``is`` / ``es`` (Dutch names).

Octaves: ABC ``C`` is middle C and ``c`` the octave above; each ``'`` raises
and each ``,`` lowers by one octave. With the default octave offset of 1,
ABC ``C`` becomes LilyPond ``c'``.
"""

from __future__ import annotations

import re

from abc2ly.ast_nodes import Pitch

ACCIDENTAL_FLAT = "_"
ACCIDENTAL_SHARP = "^"
ACCIDENTAL_NATURAL = "="

RE_PITCH = re.compile(r"([_^=]*)([a-gA-G])([,']*)")


def parse_pitches(text: str) -> tuple[Pitch, ...]:
    """Parse every pitch in a note or chord text: ``^F,`` or ``[CEg]``."""
    pitches = []
    for m in RE_PITCH.finditer(text):
        letter = m.group(2)
        octave = 1 if letter.islower() else 0
        for mark in m.group(3):
            if mark == "'":
                octave += 1
            elif mark == ",":
                octave -= 1
        pitches.append(Pitch(m.group(1), letter.lower(), octave))
    return tuple(pitches)


def accidental_suffix(markers: str) -> str:
    """LilyPond suffix for ABC markers: ``^^`` -> ``isis``, ``=`` -> ``""``."""
    suffix = ""
    for acc in markers:
        if acc == ACCIDENTAL_FLAT:
            suffix += "es"
        elif acc == ACCIDENTAL_SHARP:
            suffix += "is"
        elif acc == ACCIDENTAL_NATURAL:
            suffix = ""
    return suffix


def octave_marks(octave: int) -> str:
    """``'`` per octave above, ``,`` per octave below LilyPond's c."""
    if octave > 0:
        return "'" * octave
    return "," * -octave


def to_lilypond(letter: str, suffix: str, octave: int) -> str:
    """Format one LilyPond pitch: ``to_lilypond("f", "is", 2)`` -> ``fis''``."""
    return f"{letter}{suffix}{octave_marks(octave)}"
