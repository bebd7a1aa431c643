"""ABC information field registry.

Static table of the field tags defined by the ABC 2.1 standard. Tags are
case-sensitive: ``w`` (aligned words) and ``W`` (words after the tune) are
different fields. The table is read-only; lookup goes through FIELDS.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, Flag
from types import MappingProxyType


class FieldContext(Flag):
    FILE_HEADER = 1
    TUNE_HEADER = 2
    TUNE_BODY = 4
    INLINE = 8


class FieldKind(Enum):
    STRING = "string"            # free text
    INSTRUCTION = "instruction"  # interpreted by the converter
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class FieldDef:
    tag: str
    name: str
    contexts: FieldContext
    kind: FieldKind
    example: str = ""

    def allowed_in(self, context: FieldContext) -> bool:
        return bool(self.contexts & context)


_FH = FieldContext.FILE_HEADER
_TH = FieldContext.TUNE_HEADER
_TB = FieldContext.TUNE_BODY
_IN = FieldContext.INLINE

FIELD_AREA = FieldDef("A", "area", _FH | _TH, FieldKind.STRING, "A:Donegal")
FIELD_BOOK = FieldDef("B", "book", _FH | _TH, FieldKind.STRING, "B:O'Neills")
FIELD_COMPOSER = FieldDef("C", "composer", _FH | _TH, FieldKind.STRING, "C:Trad.")
FIELD_DISCOGRAPHY = FieldDef("D", "discography", _FH | _TH, FieldKind.STRING,
                             "D:Chieftains IV")
FIELD_FILE = FieldDef("F", "file url", _FH | _TH, FieldKind.STRING,
                      "F:http://a.b.c/file.abc")
FIELD_GROUP = FieldDef("G", "group", _FH | _TH, FieldKind.STRING, "G:flute")
FIELD_HISTORY = FieldDef("H", "history", _FH | _TH, FieldKind.STRING,
                         "H:The story behind this tune ...")
FIELD_INSTRUCTION = FieldDef("I", "instruction", _FH | _TH | _TB | _IN,
                             FieldKind.INSTRUCTION, "I:papersize A4")
FIELD_KEY = FieldDef("K", "key", _TH | _TB | _IN, FieldKind.INSTRUCTION,
                     "K:G, K:Dm, K:AMix")
FIELD_UNIT_NOTE_LENGTH = FieldDef("L", "unit note length", _FH | _TH | _TB | _IN,
                                  FieldKind.INSTRUCTION, "L:1/4")
FIELD_METER = FieldDef("M", "meter", _FH | _TH | _TB | _IN,
                       FieldKind.INSTRUCTION, "M:3/4, M:4/4")
FIELD_MACRO = FieldDef("m", "macro", _FH | _TH | _TB | _IN,
                       FieldKind.INSTRUCTION, "m: ~G2 = {A}G{F}G")
FIELD_NOTES = FieldDef("N", "notes", _FH | _TH | _TB | _IN, FieldKind.STRING,
                       "N:see also O'Neills - 234")
FIELD_ORIGIN = FieldDef("O", "origin", _FH | _TH, FieldKind.STRING,
                        "O:UK; Yorkshire; Bradford")
FIELD_PARTS = FieldDef("P", "parts", _TH | _TB | _IN, FieldKind.INSTRUCTION,
                       "P:A, P:ABAC")
FIELD_TEMPO = FieldDef("Q", "tempo", _TH | _TB | _IN, FieldKind.INSTRUCTION,
                       'Q:"allegro" 1/4=120')
FIELD_RHYTHM = FieldDef("R", "rhythm", _FH | _TH | _TB | _IN, FieldKind.STRING,
                        "R:reel")
FIELD_REMARK = FieldDef("r", "remark", _FH | _TH | _TB | _IN, FieldKind.UNKNOWN,
                        "r:I love abc")
FIELD_SOURCE = FieldDef("S", "source", _FH | _TH, FieldKind.STRING,
                        "S:collected in Brittany")
FIELD_SYMBOL_LINE = FieldDef("s", "symbol line", _TB, FieldKind.INSTRUCTION,
                             "s: !pp! ** !f!")
FIELD_TITLE = FieldDef("T", "tune title", _TH | _TB, FieldKind.STRING,
                       "T:Paddy O'Rafferty")
FIELD_USER_DEFINED = FieldDef("U", "user defined", _FH | _TH | _TB | _IN,
                              FieldKind.INSTRUCTION, "U: T = !trill!")
FIELD_VOICE = FieldDef("V", "voice", _TH | _TB | _IN, FieldKind.INSTRUCTION,
                       "V:4 clef=bass")
FIELD_WORDS = FieldDef("W", "words", _TH | _TB, FieldKind.STRING,
                       "W:lyrics printed after the end of the tune")
FIELD_ALIGNED_WORDS = FieldDef("w", "words", _TB, FieldKind.STRING,
                               "w:lyrics aligned under the notes")
FIELD_REFERENCE_NUMBER = FieldDef("X", "reference number", _TH,
                                  FieldKind.INSTRUCTION, "X:1")
FIELD_TRANSCRIPTION = FieldDef("Z", "transcription", _FH | _TH, FieldKind.STRING,
                               "Z:John Smith, <j.s@example.com>")

FIELD_DEFS: tuple[FieldDef, ...] = (
    FIELD_AREA, FIELD_BOOK, FIELD_COMPOSER, FIELD_DISCOGRAPHY, FIELD_FILE,
    FIELD_GROUP, FIELD_HISTORY, FIELD_INSTRUCTION, FIELD_KEY,
    FIELD_UNIT_NOTE_LENGTH, FIELD_METER, FIELD_MACRO, FIELD_NOTES,
    FIELD_ORIGIN, FIELD_PARTS, FIELD_TEMPO, FIELD_RHYTHM, FIELD_REMARK,
    FIELD_SOURCE, FIELD_SYMBOL_LINE, FIELD_TITLE, FIELD_USER_DEFINED,
    FIELD_VOICE, FIELD_WORDS, FIELD_ALIGNED_WORDS, FIELD_REFERENCE_NUMBER,
    FIELD_TRANSCRIPTION,
)

FIELDS: MappingProxyType[str, FieldDef] = MappingProxyType(
    {fd.tag: fd for fd in FIELD_DEFS}
)


def lookup_field(tag: str) -> FieldDef | None:
    """Return the registry entry for ``tag`` (case-sensitive), or None."""
    return FIELDS.get(tag)
