"""AST node definitions for parsed ABC tune books.

A TuneBook holds Tunes; a Tune holds header Fields and a Body of Staves;
a Stave is one source line of music as an ordered list of Symbols.
Durations are exact Fractions, relative to the tune's unit note length.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from fractions import Fraction


# --- Pitch ---

@dataclass(frozen=True)
class Pitch:
    accidentals: str    # raw markers: "", "^", "__", "=", ...
    letter: str         # "a".."g", always lowercase
    octave: int = 0     # 0 for C..B, 1 for c..b, then ' and , marks


# --- Rest kind enum ---

class RestKind(Enum):
    VISIBLE = "visible"         # z
    INVISIBLE = "invisible"     # x, X, y
    FULL_MEASURE = "measure"    # Z


# --- Symbols ---

@dataclass(frozen=True)
class Text:
    """Quoted annotation or chord name: "Am"."""
    text: str


@dataclass(frozen=True)
class Note:
    """A single note or a [chord]."""
    pitches: tuple[Pitch, ...]
    duration: Fraction = Fraction(1)
    syncopation: int = 0    # +1 per '>', -1 per '<'
    tie: bool = False


@dataclass(frozen=True)
class Rest:
    kind: RestKind
    literal: str            # "z", "Z", "x", "X", "y"
    duration: Fraction = Fraction(1)
    syncopation: int = 0
    tie: bool = False


@dataclass(frozen=True)
class Bar:
    """Barline token with optional volta: "|", ":|", "|:" ... [1 / ]"""
    token: str
    volta: str = ""         # "1", "1,3", "2-3"
    # never set by the tokenizer: a bar run absorbs a trailing ]
    close_volta: bool = False


@dataclass(frozen=True)
class Decoration:
    token: str              # "." or "!trill!"


@dataclass(frozen=True)
class InlineField:
    """[K:G] inside a music line, or a field line inside the body."""
    tag: str
    value: str


Symbol = Text | Note | Rest | Bar | Decoration | InlineField


# --- Containers ---

@dataclass
class Stave:
    symbols: list[Symbol] = field(default_factory=list)


@dataclass
class Body:
    staves: list[Stave] = field(default_factory=list)


@dataclass
class Field:
    tag: str
    value: str


@dataclass(frozen=True)
class Meter:
    beats_per_measure: int
    beat_length: int

    def __str__(self) -> str:
        return f"{self.beats_per_measure}/{self.beat_length}"


@dataclass
class Tune:
    id: str = ""
    title: str = ""
    key: str = ""
    meter: Meter | None = None
    unit_note_length: Fraction | None = None  # None when no L: was given
    fields: list[Field] = field(default_factory=list)
    body: Body = field(default_factory=Body)
    raw: str = ""

    def field_by_tag(self, tag: str) -> Field | None:
        """Return the first field with ``tag``, or None."""
        for f in self.fields:
            if f.tag == tag:
                return f
        return None


@dataclass
class TuneBook:
    tunes: list[Tune] = field(default_factory=list)


# --- Diagnostics ---

@dataclass
class ParseWarning:
    """A recoverable problem found while parsing (unparsed line remainder)."""
    message: str
    category: str = "unparsed"
    tune: str | None = None     # tune X: id, when known

    def __str__(self) -> str:
        loc = f"X:{self.tune} " if self.tune else ""
        return f"[{self.category}] {loc}{self.message}"
