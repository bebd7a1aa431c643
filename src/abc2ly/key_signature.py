"""Key signature resolution for ABC K: fields.

A K: value such as ``D``, ``F#m``, ``Ador`` or ``Bb octave=-1`` is resolved to:
1. a canonical lowercase key name ("d", "f#m", "ador", "bb")
2. the accidentals the key implies per natural letter ({"f": "is", "c": "is"})
3. the octave offset applied to every written pitch (default 1)

The key name is looked up in a circle-of-fifths table. Sharps are taken
from the letter order ``fcgdaeb``, flats from ``beadgcf``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from abc2ly.errors import FieldValueError, UnknownKeyError

SHARP_ORDER = "fcgdaeb"
FLAT_ORDER = "beadgcf"

# sharps (> 0) or flats (< 0) for each key spelling
_CIRCLE: tuple[tuple[int, tuple[str, ...]], ...] = (
    (7, ("c#", "a#m", "g#mix", "d#dor", "e#phr", "f#lyd", "b#loc")),
    (6, ("f#", "d#m", "c#mix", "g#dor", "a#phr", "blyd", "e#loc")),
    (5, ("b", "g#m", "f#mix", "c#dor", "d#phr", "elyd", "a#loc")),
    (4, ("e", "c#m", "bmix", "f#dor", "g#phr", "alyd", "d#loc")),
    (3, ("a", "f#m", "emix", "bdor", "c#phr", "dlyd", "g#loc")),
    (2, ("d", "bm", "amix", "edor", "f#phr", "glyd", "c#loc")),
    (1, ("g", "em", "dmix", "ador", "bphr", "clyd", "f#loc")),
    (0, ("c", "am", "gmix", "ddor", "ephr", "flyd", "bloc")),
    (-1, ("f", "dm", "cmix", "gdor", "aphr", "bblyd", "eloc")),
    (-2, ("bb", "gm", "fmix", "cdor", "dphr", "eblyd", "aloc")),
    (-3, ("eb", "cm", "bbmix", "fdor", "gphr", "ablyd", "dloc")),
    (-4, ("ab", "fm", "ebmix", "bbdor", "cphr", "dblyd", "gloc")),
    (-5, ("db", "bbm", "abmix", "ebdor", "fphr", "gblyd", "cloc")),
    (-6, ("gb", "ebm", "dbmix", "abdor", "bbphr", "cblyd", "floc")),
    (-7, ("cb", "abm", "gbmix", "dbdor", "ebphr", "fblyd", "bbloc")),
)

KEY_SIGNATURES: dict[str, int] = {
    name: count for count, names in _CIRCLE for name in names
}

# ABC mode spellings: case-insensitive, first three letters significant
_MODES = {
    "": "", "maj": "", "ion": "",
    "m": "m", "min": "m", "aeo": "m",
    "mix": "mix", "dor": "dor", "phr": "phr", "lyd": "lyd", "loc": "loc",
}

_LY_MODES = {
    "": "major", "m": "minor", "mix": "mixolydian", "dor": "dorian",
    "phr": "phrygian", "lyd": "lydian", "loc": "locrian",
}

_RE_KEY = re.compile(r"^([a-g])([#b]?)([a-z]*)$")

NO_KEY = "none"


@dataclass(frozen=True)
class KeySignature:
    name: str
    accidentals: dict[str, str] = field(default_factory=dict)
    octave_offset: int = 1

    @property
    def declaration(self) -> str | None:
        r"""LilyPond ``\key`` command for this key, or None without a key."""
        if not self.name or self.name == NO_KEY:
            return None
        m = _RE_KEY.match(self.name)
        root = m.group(1) + {"#": "is", "b": "es"}.get(m.group(2), "")
        return f"\\key {root} \\{_LY_MODES[m.group(3)]}"


def accidental_map(count: int) -> dict[str, str]:
    """Map the first ``count`` sharped (or ``-count`` flatted) letters."""
    if count >= 0:
        return {letter: "is" for letter in SHARP_ORDER[:count]}
    return {letter: "es" for letter in FLAT_ORDER[:-count]}


def canonical_key(token: str) -> str:
    """Normalise a key token: ``F#Minor`` -> ``f#m``, ``AMix`` -> ``amix``.

    Raises UnknownKeyError if the token is not a key name.
    """
    text = token.lower()
    if text == NO_KEY:
        return NO_KEY
    m = _RE_KEY.match(text)
    if not m or m.group(3)[:3] not in _MODES:
        raise UnknownKeyError(f"unknown key {token!r}", token=token)
    name = m.group(1) + m.group(2) + _MODES[m.group(3)[:3]]
    if name not in KEY_SIGNATURES:
        raise UnknownKeyError(f"unknown key {token!r}", token=token)
    return name


def resolve_key(keysig: str, octave_offset: int = 1) -> KeySignature:
    """Resolve a K: value.

    An empty value gives no accidentals and keeps ``octave_offset``. An
    ``octave=N`` modifier sets the offset to N + 1.
    """
    tokens = keysig.split()
    if not tokens:
        return KeySignature("", {}, octave_offset)

    # "A minor": mode written as a separate word
    lead = _RE_KEY.match(tokens[0].lower())
    if (lead and not lead.group(3) and len(tokens) > 1
            and "=" not in tokens[1] and tokens[1].lower()[:3] in _MODES):
        tokens = [tokens[0] + tokens[1]] + tokens[2:]

    name = canonical_key(tokens[0])
    accidentals = {} if name == NO_KEY else accidental_map(KEY_SIGNATURES[name])

    for tok in tokens[1:]:
        if tok.startswith("octave="):
            value = tok[len("octave="):]
            try:
                octave_offset = int(value) + 1
            except ValueError:
                raise FieldValueError(
                    f"invalid octave {value!r} in key {keysig!r}", token=tok
                ) from None

    return KeySignature(name, accidentals, octave_offset)
