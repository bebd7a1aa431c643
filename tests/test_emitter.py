"""Tests for the LilyPond emitter."""

from fractions import Fraction

import pytest
from abc2ly.ast_nodes import (
    Tune, Body, Stave, Note, Rest, RestKind, Bar, Decoration, Text,
)
from abc2ly.errors import (
    ConversionError, InvalidNoteError, RepeatStateError, UnhandledSymbolError,
    UnknownKeyError,
)
from abc2ly.grammar.parser import parse_text
from abc2ly.key_signature import resolve_key
from abc2ly.pitch import parse_pitches
from abc2ly.ly_emitter import (
    LyEmitter, RenderState, order_annotations, render_book, render_tune,
)
from abc2ly.settings import ConvertSettings

HEAD = "X:1\nL:1/4\nK:C\n"


def _render(abc, settings=None):
    book, _ = parse_text(abc)
    return render_tune(book.tunes[0], settings)


def _staff_lines(ly):
    """Lines inside the \\new Staff block, without indentation."""
    lines = ly.split("\n")
    start = lines.index("  \\new Staff {") + 1
    end = lines.index("  }", start)
    return [line.strip() for line in lines[start:end]]


def _music(abc, settings=None):
    return _staff_lines(_render(abc, settings))


def _symbols_stave(symbols):
    """Rendered music of a C major tune built from symbols."""
    tune = Tune(id="1", key="C", body=Body(staves=[Stave(symbols=symbols)]))
    return _staff_lines(render_tune(tune))[-1]


def _note(text):
    return Note(pitches=parse_pitches(text))


def _stave(body, head=HEAD):
    """Rendered music of a single-line body."""
    return _music(head + body)[-1]


class TestScore:
    def test_full_score(self):
        ly = _render("X:1\nT:Test\nM:4/4\nL:1/4\nK:D\nABcd|\n")
        assert ly == (
            "\\score {\n"
            "  \\header {\n"
            "    piece = \"Test\"\n"
            "  }\n"
            "  \\new Staff {\n"
            "    \\time 4/4 \\key d \\major\n"
            "    a'4 b'4 cis''4 d''4 |\n"
            "  }\n"
            "}\n"
        )

    def test_header_fields(self):
        ly = _render("X:1\nT:Reel\nC:Trad.\nQ:1/4=120\nK:G\nA|\n")
        assert '    composer = "Trad."\n' in ly
        assert '    tempo = "1/4=120"\n' in ly

    def test_untitled(self):
        assert '    piece = ""\n' in _render(HEAD + "A|\n")

    def test_title_is_escaped(self):
        ly = _render('X:1\nT:The "Big" One\nK:C\nA|\n')
        assert 'piece = "The \\"Big\\" One"' in ly

    def test_no_key(self):
        assert _music("X:1\nM:3/4\nK:none\nA|\n") == ["\\time 3/4", "a'4 |"]

    def test_unknown_key_is_fatal(self):
        with pytest.raises(UnknownKeyError) as exc:
            _render("X:9\nK:Q\nA|\n")
        assert exc.value.tune_id == "9"

    def test_line_breaks(self):
        music = _music(HEAD + "A|\nB|\nc|\n")
        assert music[1:] == ["a'4 | \\break", "b'4 | \\break", "c''4 |"]

    def test_no_line_breaks(self):
        settings = ConvertSettings(line_breaks=False)
        assert _music(HEAD + "A|\nB|\n", settings)[1:] == ["a'4 |", "b'4 |"]


class TestNotes:
    def test_durations(self):
        assert _stave("A/ A A2 A3 A4 A5|") == "a'8 a'4 a'2 a'2. a'1 a'4*5 |"

    def test_octaves(self):
        assert _stave("C, C c c'|") == "c4 c'4 c''4 c'''4 |"

    def test_key_accidentals(self):
        assert _stave("FcG|", head="X:1\nL:1/4\nK:D\n") == "fis'4 cis''4 g'4 |"

    def test_flat_key(self):
        assert _stave("Be|", head="X:1\nL:1/4\nK:Bb\n") == "bes'4 ees''4 |"

    def test_chord(self):
        assert _stave("[CEG]2|") == "<c' e' g'>2 |"

    def test_chord_accidental_applies_after_chord(self):
        assert _stave("[^FA]F|") == "<fis' a'>4 fis'4 |"

    def test_invalid_note(self):
        tune = Tune(id="5", key="C",
                    body=Body(staves=[Stave(symbols=[Note(pitches=())])]))
        with pytest.raises(InvalidNoteError):
            render_tune(tune)


class TestAccidentals:
    def test_accidental_lasts_for_the_bar(self):
        assert _stave("^FF|F|") == "fis'4 fis'4 | f'4 |"

    def test_accidental_is_per_octave(self):
        assert _stave("^Ff|") == "fis'4 f''4 |"

    def test_natural_overrides_key(self):
        assert _stave("=FF|F|", head="X:1\nL:1/4\nK:D\n") == "f'4 f'4 | fis'4 |"

    def test_double_accidentals(self):
        assert _stave("^^C__B|") == "cisis'4 beses'4 |"

    def test_key_change_drops_accidentals(self):
        assert _stave("^F[K:C]F|") == "fis'4 \\key c \\major f'4 |"

    def test_state_reset_keeps_key_map(self):
        key = resolve_key("D")
        state = RenderState(unit_note_length=Fraction(1, 4), key=key)
        state.bar_accidentals[("f", 0)] = ""
        state.reset_bar()
        assert state.bar_accidentals == {}
        assert key.accidentals == {"f": "is", "c": "is"}


class TestTies:
    def test_tied_pitch_is_reused(self):
        assert _stave("^F2-=F|") == "fis'2~ fis'4 |"

    def test_tie_across_bar(self):
        assert _stave("F-|F|") == "f'4~ | f'4 |"

    def test_rest_clears_tie(self):
        assert _stave("F-zG|") == "f'4~ r4 g'4 |"


class TestBrokenRhythm:
    def test_dotted_pairs(self):
        head = "X:1\nL:1/8\nK:C\n"
        assert _stave("A>B C<D|", head=head) == "a'8. b'16 c'16 d'8. |"

    def test_bar_resets_previous(self):
        head = "X:1\nL:1/8\nK:C\n"
        assert _stave("A>|B|", head=head) == "a'8. | b'8 |"

    def test_rest_counts_as_previous(self):
        head = "X:1\nL:1/8\nK:C\n"
        assert _stave("z>B|", head=head) == "r8. b'16 |"


class TestRests:
    def test_rest_kinds(self):
        assert _stave("z Z x y|") == "r4 r2 |"

    def test_full_measure_rest_doubles(self):
        assert _stave("Z2|") == "r1 |"


class TestAnnotations:
    def test_decorations_follow_note(self):
        assert _stave(".A !trill!B|") == "a'4-. b'4\\trill |"

    def test_text_follows_note(self):
        assert _stave('"Am"A|') == "a'4 ^\"Am\" |"

    def test_segno(self):
        assert _stave("SA|") == "a'4 \\segnoMark 1 |"

    def test_unknown_decoration(self):
        with pytest.raises(UnhandledSymbolError):
            _render(HEAD + "!wiggle!A|\n")

    def test_order_annotations(self):
        a = Note(pitches=())
        deco, text = Decoration("."), Text("x")
        bar = Bar("|")
        assert order_annotations([deco, text, a, bar]) == [a, deco, text, bar]

    def test_order_annotations_before_bar(self):
        deco = Decoration(".")
        bar = Bar("|")
        rest = Rest(kind=RestKind.VISIBLE, literal="z")
        assert order_annotations([deco, bar, rest]) == [deco, bar, rest]


class TestBars:
    def test_plain_bars(self):
        assert _stave("A||B[|C|]") == (
            "a'4 \\bar \"||\" b'4 \\bar \".|\" c''4 \\bar \"|.\""
        )

    def test_repeat(self):
        assert _stave("|:A:|") == (
            "\\set Score.repeatCommands = #'(start-repeat) a'4 "
            "\\set Score.repeatCommands = #'(end-repeat)"
        )

    def test_double_repeat_without_open_repeat(self):
        assert _stave("A:|:[1B") == (
            "a'4 \\set Score.repeatCommands = #'(start-repeat (volta \"1\")) b'4"
        )

    def test_double_repeat_closes_open_repeat(self):
        assert _stave("|:A:|:B:|") == (
            "\\set Score.repeatCommands = #'(start-repeat) a'4 "
            "\\set Score.repeatCommands = #'(end-repeat start-repeat) b'4 "
            "\\set Score.repeatCommands = #'(end-repeat)"
        )

    def test_voltas(self):
        assert _stave("|:A|1B:|2C|]") == (
            "\\set Score.repeatCommands = #'(start-repeat) a'4 "
            "| \\set Score.repeatCommands = #'((volta \"1\")) b'4 "
            "\\set Score.repeatCommands = #'(end-repeat (volta \"2\")) c''4 "
            "\\set Score.repeatCommands = #'((volta #f)) \\bar \"|.\""
        )

    def test_end_repeat_without_open_repeat(self):
        with pytest.raises(RepeatStateError):
            _render(HEAD + "A:|\n")

    def test_final_bar_inside_repeat(self):
        with pytest.raises(RepeatStateError) as exc:
            _render(HEAD + "|:A|]\n")
        assert "X:1" in str(exc.value)

    def test_final_bar_with_volta(self):
        with pytest.raises(RepeatStateError):
            _render(HEAD + "A|]1\n")

    def test_unknown_bar(self):
        with pytest.raises(UnhandledSymbolError):
            _render(HEAD + "A|||\n")


class TestVoltaClose:
    def test_plain_bar_keeps_volta_open(self):
        assert _stave("|1B|c|]") == (
            "| \\set Score.repeatCommands = #'((volta \"1\")) b'4 | c''4 "
            "\\set Score.repeatCommands = #'((volta #f)) \\bar \"|.\""
        )

    def test_double_bar_closes_volta(self):
        assert _stave("|1B||c|") == (
            "| \\set Score.repeatCommands = #'((volta \"1\")) b'4 "
            "\\bar \"||\" \\set Score.repeatCommands = #'((volta #f)) c''4 |"
        )

    def test_close_volta_flag_on_plain_bar(self):
        symbols = [Bar("|", volta="1"), _note("A"), Bar("|", close_volta=True),
                   _note("B"), Bar("|")]
        assert _symbols_stave(symbols) == (
            "| \\set Score.repeatCommands = #'((volta \"1\")) a'4 "
            "| \\set Score.repeatCommands = #'((volta #f)) b'4 |"
        )

    def test_close_volta_flag_on_final_bar(self):
        symbols = [_note("A"), Bar("|]", close_volta=True)]
        assert _symbols_stave(symbols) == (
            "a'4 \\set Score.repeatCommands = #'((volta #f)) \\bar \"|.\""
        )

    def test_volta_closed_once(self):
        symbols = [Bar("|", volta="1"), _note("A"), Bar("||"), _note("B"), Bar("||")]
        assert _symbols_stave(symbols) == (
            "| \\set Score.repeatCommands = #'((volta \"1\")) a'4 "
            "\\bar \"||\" \\set Score.repeatCommands = #'((volta #f)) b'4 \\bar \"||\""
        )


class TestInlineFields:
    def test_key_change_to_minor(self):
        assert _stave("[K:Dm]B|") == "\\key d \\minor bes'4 |"

    def test_key_octave(self):
        assert _stave("[K:C octave=1]C|") == "\\key c \\major c''4 |"

    def test_unit_note_length(self):
        assert _stave("A[L:1/8]A|") == "a'4 a'8 |"

    def test_meter(self):
        assert _stave("[M:3/4]A|") == "\\time 3/4 a'4 |"

    def test_title_mark(self):
        assert _stave("[T:Part B]A|") == "\\mark \"Part B\" a'4 |"

    def test_ignored_fields(self):
        assert _stave("[r:remark][N:note]A|") == "a'4 |"

    def test_body_field_line(self):
        music = _music(HEAD + "A|\nK:G\nF|\n")
        assert music[-1] == "\\key g \\major fis'4 |"

    def test_unsupported_field(self):
        with pytest.raises(UnhandledSymbolError):
            _render(HEAD + "[V:1]A|\n")

    def test_empty_key_is_fatal(self):
        with pytest.raises(UnknownKeyError) as exc:
            _render("X:6\nL:1/4\nK:D\nF[K:]F|\n")
        assert exc.value.tune_id == "6"

    def test_empty_key_line_is_fatal(self):
        with pytest.raises(UnknownKeyError):
            _render("X:1\nL:1/4\nK:D\nF|\nK:\nF|\n")


class TestSettings:
    def test_default_unit_length(self):
        settings = ConvertSettings(unit_note_length=Fraction(1, 8))
        assert _music("X:1\nK:C\nA|\n", settings)[-1] == "a'8 |"

    def test_octave_offset(self):
        settings = ConvertSettings(octave_offset=0)
        assert _music(HEAD + "Ac|\n", settings)[-1] == "a4 c'4 |"

    def test_staff_setup(self):
        settings = ConvertSettings(staff_setup="\\clef treble")
        assert _music(HEAD + "A|\n", settings)[0] == "\\clef treble"


class TestRenderBook:
    ABC = "X:1\nK:C\nA|\n\nX:2\nK:G\nB|\n"

    def test_tunes_in_order(self):
        book, _ = parse_text(self.ABC)
        ly = render_book(book)
        assert ly.count("\\score {") == 2
        assert ly.index("\\key c") < ly.index("\\key g")
        assert "}\n\n\\score {" in ly

    def test_version_line(self):
        book, _ = parse_text(self.ABC)
        ly = render_book(book, ConvertSettings(lilypond_version="2.24.0"))
        assert ly.startswith("\\version \"2.24.0\"\n\n\\score {")

    def test_render_is_repeatable(self):
        book, _ = parse_text(self.ABC)
        assert render_book(book) == render_book(book)

    def test_error_names_tune(self):
        book, _ = parse_text("X:1\nK:C\nA|\n\nX:2\nK:C\nA:|\n")
        with pytest.raises(ConversionError) as exc:
            render_book(book)
        assert exc.value.tune_id == "2"

    def test_emitter_class(self):
        book, _ = parse_text(self.ABC)
        assert LyEmitter(book.tunes[0]).emit() == render_tune(book.tunes[0])
