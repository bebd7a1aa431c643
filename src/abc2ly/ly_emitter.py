"""AST -> LilyPond emitter.

Walks a parsed Tune stave by stave and symbol by symbol and writes one
``\\score`` block. State carried across the whole tune lives in RenderState:
- accidentals: key signature plus explicit accidentals of the current bar
- tie: the pitch text of a tied note, reused verbatim by the next note
- repeat/volta: whether a repeat or volta bracket is open
- broken rhythm: syncopation of the previous note or rest in the bar

Any symbol that cannot be rendered raises a ConversionError subclass and
aborts the tune.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from fractions import Fraction

from abc2ly.ast_nodes import (
    Tune, TuneBook, Stave, Symbol, Pitch,
    Text, Note, Rest, RestKind, Bar, Decoration, InlineField,
)
from abc2ly.duration import calculate, parse_meter, parse_note_length, to_string
from abc2ly.errors import (
    ConversionError, InvalidNoteError, RepeatStateError, UnhandledSymbolError,
    UnknownKeyError,
)
from abc2ly.fields import (
    FIELD_ALIGNED_WORDS, FIELD_COMPOSER, FIELD_HISTORY, FIELD_KEY,
    FIELD_METER, FIELD_NOTES, FIELD_REMARK, FIELD_TEMPO, FIELD_TITLE,
    FIELD_UNIT_NOTE_LENGTH, FIELD_WORDS,
)
from abc2ly.key_signature import KeySignature, resolve_key
from abc2ly.ly_templates import (
    VOLTA_END, ly_bar, ly_header, ly_mark, ly_repeat_commands, ly_score,
    ly_staff, ly_string, ly_time, ly_version, ly_volta,
)
from abc2ly.pitch import accidental_suffix, to_lilypond
from abc2ly.settings import ConvertSettings


# ABC decoration -> LilyPond post-event
DECORATIONS: dict[str, str] = {
    ".": "-.",
    "!staccato!": "-.",
    "!marcato!": "-^",
    "L": "->",
    "!accent!": "->",
    "!>!": "->",
    "!tenuto!": "--",
    "H": "\\fermata",
    "!fermata!": "\\fermata",
    "T": "\\trill",
    "!trill!": "\\trill",
    "M": "\\mordent",
    "!mordent!": "\\mordent",
    "P": "\\prall",
    "!pralltriller!": "\\prall",
    "~": "\\turn",
    "!roll!": "\\turn",
    "u": "\\upbow",
    "!upbow!": "\\upbow",
    "v": "\\downbow",
    "!downbow!": "\\downbow",
    "S": " \\segnoMark 1",
    "!segno!": " \\segnoMark 1",
    "O": " \\codaMark 1",
    "!coda!": " \\codaMark 1",
}

# header field tag -> \header variable
HEADER_KEYS: dict[str, str] = {
    FIELD_COMPOSER.tag: "composer",
    FIELD_HISTORY.tag: "history",
    FIELD_TEMPO.tag: "tempo",
}

# inline fields that do not affect the output
IGNORED_FIELDS = frozenset({
    FIELD_REMARK.tag, FIELD_NOTES.tag, FIELD_WORDS.tag, FIELD_ALIGNED_WORDS.tag,
})

PLAIN_BARS = {"|": None, "||": "||", "[|": ".|"}
START_REPEATS = {"|:", "||:", "::", ":|:", ":||:"}
END_REPEATS = {":|", ":||", ":|]", ":]"}
FINAL_BAR = "|]"


@dataclass
class RenderState:
    """Mutable state of one tune's rendering."""
    unit_note_length: Fraction
    key: KeySignature
    # explicit accidentals of the current bar, by (letter, octave)
    bar_accidentals: dict[tuple[str, int], str] = field(default_factory=dict)
    tied_pitch: str = ""
    previous_syncopation: int = 0
    in_repeat: bool = False
    in_volta: bool = False

    def accidental(self, pitch: Pitch) -> str:
        """Accidental suffix that applies to an unmarked ``pitch``."""
        return self.bar_accidentals.get(
            (pitch.letter, pitch.octave), self.key.accidentals.get(pitch.letter, "")
        )

    def reset_accidentals(self) -> None:
        """Drop explicit accidentals; only the key signature applies."""
        self.bar_accidentals = {}

    def reset_bar(self) -> None:
        self.reset_accidentals()
        self.previous_syncopation = 0


def order_annotations(symbols: list[Symbol]) -> list[Symbol]:
    """Move each note/rest in front of the decorations and texts preceding it.

    LilyPond writes articulations and text scripts after the note. Only the
    run directly before a note or rest moves; order within it is kept.
    """
    ordered: list[Symbol] = []
    pending: list[Symbol] = []
    for sym in symbols:
        if isinstance(sym, (Decoration, Text)):
            pending.append(sym)
            continue
        if isinstance(sym, (Note, Rest)):
            ordered.append(sym)
            ordered.extend(pending)
        else:
            ordered.extend(pending)
            ordered.append(sym)
        pending = []
    ordered.extend(pending)
    return ordered


class LyEmitter:
    """Emit a LilyPond score from one ABC tune."""

    def __init__(self, tune: Tune, settings: ConvertSettings | None = None):
        self.tune = tune
        self.settings = settings or ConvertSettings()
        self.state: RenderState | None = None

    def emit(self) -> str:
        """Generate the ``\\score`` block for the tune."""
        try:
            return self._emit_score()
        except ConversionError as e:
            if e.tune_id is None and self.tune.id:
                e.tune_id = self.tune.id
            raise

    def _emit_score(self) -> str:
        tune = self.tune
        unit = tune.unit_note_length or self.settings.unit_note_length
        key = resolve_key(tune.key, self.settings.octave_offset)
        self.state = RenderState(unit_note_length=unit, key=key)

        lines: list[str] = []
        if self.settings.staff_setup:
            lines.append(self.settings.staff_setup)

        preamble = []
        if tune.meter is not None:
            preamble.append(ly_time(tune.meter))
        if key.declaration:
            preamble.append(key.declaration)
        if preamble:
            lines.append(" ".join(preamble))

        staves = [s for s in (self._emit_stave(st) for st in tune.body.staves) if s]
        if self.settings.line_breaks:
            staves = [s + " \\break" for s in staves[:-1]] + staves[-1:]
        lines.extend(staves)

        return ly_score(self._emit_header(), ly_staff(lines))

    def _emit_header(self) -> str:
        entries = [("piece", self.tune.title)]
        for f in self.tune.fields:
            if f.tag in HEADER_KEYS:
                entries.append((HEADER_KEYS[f.tag], f.value))
        return ly_header(entries)

    def _emit_stave(self, stave: Stave) -> str:
        out = "".join(self._emit_symbol(sym) for sym in order_annotations(stave.symbols))
        return out.strip()

    def _emit_symbol(self, sym: Symbol) -> str:
        """Emit one symbol; the result carries its own leading space."""
        if isinstance(sym, Text):
            return f" ^{ly_string(sym.text)}"

        if isinstance(sym, Note):
            out = self._emit_note(sym)
            self.state.previous_syncopation = sym.syncopation
            return out

        if isinstance(sym, Rest):
            out = self._emit_rest(sym)
            self.state.previous_syncopation = sym.syncopation
            return out

        if isinstance(sym, Bar):
            return self._emit_bar(sym)

        if isinstance(sym, Decoration):
            return self._emit_decoration(sym)

        if isinstance(sym, InlineField):
            return self._emit_field(sym)

        raise UnhandledSymbolError(f"unhandled symbol {sym!r}")

    # ------------------------------------------------------------------
    # Notes and rests
    # ------------------------------------------------------------------

    def _duration(self, sym: Note | Rest) -> Fraction:
        return calculate(self.state.unit_note_length, sym.duration,
                         sym.syncopation, self.state.previous_syncopation)

    def _emit_note(self, note: Note) -> str:
        state = self.state
        dur = self._duration(note)

        if state.tied_pitch:
            pitch = state.tied_pitch
            state.tied_pitch = ""
        else:
            pitch = self._note_pitch(note)

        tie = ""
        if note.tie:
            tie = "~"
            state.tied_pitch = pitch

        return f" {pitch}{to_string(dur)}{tie}"

    def _note_pitch(self, note: Note) -> str:
        """Resolve accidentals and octaves; chords become ``<...>``."""
        if not note.pitches:
            raise InvalidNoteError("note without pitches", token=repr(note))

        state = self.state
        names = []
        # accidentals inside a chord take effect after the chord
        explicit: dict[tuple[str, int], str] = {}
        for p in note.pitches:
            if p.accidentals:
                suffix = accidental_suffix(p.accidentals)
                explicit[(p.letter, p.octave)] = suffix
            else:
                suffix = state.accidental(p)
            names.append(to_lilypond(p.letter, suffix, p.octave + state.key.octave_offset))
        state.bar_accidentals.update(explicit)

        if len(names) > 1:
            return "<" + " ".join(names) + ">"
        return names[0]

    def _emit_rest(self, rest: Rest) -> str:
        self.state.tied_pitch = ""
        dur = self._duration(rest)

        if rest.kind == RestKind.VISIBLE:
            return f" r{to_string(dur)}"
        if rest.kind == RestKind.FULL_MEASURE:
            # simplification: twice the written length, not the meter's bar length
            return f" r{to_string(dur * 2)}"
        return ""

    # ------------------------------------------------------------------
    # Barlines, repeats and voltas
    # ------------------------------------------------------------------

    def _emit_bar(self, bar: Bar) -> str:
        state = self.state
        state.reset_bar()
        token = bar.token

        if token in PLAIN_BARS:
            glyph = PLAIN_BARS[token]
            out = " |" if glyph is None else f" {ly_bar(glyph)}"
            commands: list[str] = []
            # a plain | only closes a volta when asked to with ]
            self._volta_commands(bar, commands, close_open=glyph is not None)
            if commands:
                out += f" {ly_repeat_commands(commands)}"
            return out

        if token == FINAL_BAR:
            if state.in_repeat:
                raise RepeatStateError("still in repeat at final barline", token=token)
            if bar.volta:
                raise RepeatStateError(
                    f"did not expect volta {bar.volta!r} on {token}", token=token
                )
            out = ""
            if state.in_volta or bar.close_volta:
                out += f" {ly_repeat_commands([VOLTA_END])}"
                state.in_volta = False
            return out + f" {ly_bar('|.')}"

        if token in START_REPEATS:
            commands = []
            if state.in_repeat:
                commands.append("end-repeat")
            commands.append("start-repeat")
            state.in_repeat = True
            self._volta_commands(bar, commands)
            return f" {ly_repeat_commands(commands)}"

        if token in END_REPEATS:
            if not state.in_repeat:
                raise RepeatStateError(f"{token} without an open repeat", token=token)
            commands = ["end-repeat"]
            state.in_repeat = False
            self._volta_commands(bar, commands)
            return f" {ly_repeat_commands(commands)}"

        raise UnhandledSymbolError(f"unhandled bar {token}", token=token)

    def _volta_commands(self, bar: Bar, commands: list[str],
                        close_open: bool = True) -> None:
        """Append the volta open/close command for ``bar``, if any."""
        state = self.state
        if bar.volta:
            commands.append(ly_volta(bar.volta))
            state.in_volta = True
        elif bar.close_volta or (close_open and state.in_volta):
            commands.append(VOLTA_END)
            state.in_volta = False

    # ------------------------------------------------------------------
    # Decorations and inline fields
    # ------------------------------------------------------------------

    def _emit_decoration(self, deco: Decoration) -> str:
        if deco.token not in DECORATIONS:
            raise UnhandledSymbolError(f"unhandled decoration {deco.token}",
                                       token=deco.token)
        return DECORATIONS[deco.token]

    def _emit_field(self, fld: InlineField) -> str:
        state = self.state
        tag = fld.tag

        if tag in IGNORED_FIELDS:
            return ""

        if tag == FIELD_UNIT_NOTE_LENGTH.tag:
            state.unit_note_length = parse_note_length(fld.value)
            return ""

        if tag == FIELD_METER.tag:
            meter = parse_meter(fld.value)
            return f" {ly_time(meter)}" if meter is not None else ""

        if tag == FIELD_KEY.tag:
            # an empty value names no key to change to
            if not fld.value.strip():
                raise UnknownKeyError("empty inline key", token=f"{tag}:")
            state.key = resolve_key(fld.value, state.key.octave_offset)
            state.reset_accidentals()
            decl = state.key.declaration
            return f" {decl}" if decl else ""

        if tag == FIELD_TITLE.tag:
            return f" {ly_mark(fld.value)}"

        raise UnhandledSymbolError(f"unhandled field {tag}:{fld.value}",
                                   token=f"{tag}:{fld.value}")


def render_tune(tune: Tune, settings: ConvertSettings | None = None) -> str:
    """Convenience function to render one tune as a LilyPond score."""
    return LyEmitter(tune, settings).emit()


def render_book(book: TuneBook, settings: ConvertSettings | None = None) -> str:
    """Render every tune of a book, in order, as one LilyPond document."""
    settings = settings or ConvertSettings()
    parts: list[str] = []
    if settings.lilypond_version:
        parts.append(ly_version(settings.lilypond_version) + "\n")
    parts.extend(render_tune(tune, settings) for tune in book.tunes)
    return "\n".join(parts)
