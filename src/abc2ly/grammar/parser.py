"""Parser for ABC tune books.

Uses a two-phase approach:
1. The book is split into tunes at every line starting with ``X:``
2. Each tune is read line by line. Header lines (``T:Title``) fill the tune
   metadata until the ``K:`` line; every later line is a stave, tokenized by
   grammar.tokenizer

Unparsable line remainders do not stop parsing; they are collected as
ParseWarning. Malformed M:/L: values raise FieldValueError.
"""

from __future__ import annotations

import re
from pathlib import Path

from abc2ly.ast_nodes import (
    TuneBook, Tune, Field, Stave, InlineField, ParseWarning,
)
from abc2ly.duration import parse_meter, parse_note_length
from abc2ly.errors import ConversionError
from abc2ly.fields import (
    FieldContext, lookup_field,
    FIELD_KEY, FIELD_METER, FIELD_REFERENCE_NUMBER, FIELD_TITLE,
    FIELD_UNIT_NOTE_LENGTH,
)
from abc2ly.grammar.tokenizer import tokenize_line


# ---------- Regex patterns ----------

RE_NEW_TUNE = re.compile(r"^X:", re.MULTILINE)
RE_HEADER = re.compile(r"^([a-zA-Z]):(.*)$")
# Comment runs from the first unescaped % to the end of the line
RE_COMMENT = re.compile(r"(?<!\\)%.*$")


def parse_file(path: str | Path) -> tuple[TuneBook, list[ParseWarning]]:
    """Parse an ABC file and return the tune book and warnings."""
    text = Path(path).read_text(encoding="utf-8", errors="replace")
    return parse_text(text)


def parse_text(text: str) -> tuple[TuneBook, list[ParseWarning]]:
    """Parse ABC text and return the tune book and warnings."""
    book = TuneBook()
    warnings: list[ParseWarning] = []

    for chunk in split_tune_book(text):
        if not any(_clean_line(line) for line in chunk.split("\n")):
            continue
        book.tunes.append(parse_tune(chunk, warnings))

    return book, warnings


def split_tune_book(text: str) -> list[str]:
    """Split a book into per-tune texts, each starting at its ``X:`` line."""
    tunes: list[str] = []
    start = 0
    for m in RE_NEW_TUNE.finditer(text):
        tune = text[start:m.start()].strip()
        if tune:
            tunes.append(tune)
        start = m.start()
    tune = text[start:].strip()
    if tune:
        tunes.append(tune)
    return tunes


def parse_tune(text: str, warnings: list[ParseWarning]) -> Tune:
    """Parse the text of a single tune, appending warnings to ``warnings``."""
    tune = Tune(raw=text)
    try:
        _read_tune_lines(tune, text, warnings)
    except ConversionError as e:
        if e.tune_id is None and tune.id:
            e.tune_id = tune.id
        raise
    return tune


def _read_tune_lines(tune: Tune, text: str,
                     warnings: list[ParseWarning]) -> None:
    in_header = True
    # body field lines waiting for the next stave
    pending: list[InlineField] = []

    for line in text.split("\n"):
        line = _clean_line(line)
        if not line:
            continue

        m = RE_HEADER.match(line)

        if in_header:
            if m:
                tag, value = m.group(1), m.group(2).strip()
                _apply_field(tune, tag, value)
                if tag == FIELD_KEY.tag:
                    in_header = False
                continue
            # music line without a preceding K: field
            in_header = False

        if m and _is_body_field(m.group(1)):
            tag, value = m.group(1), m.group(2).strip()
            if tune.body.staves:
                pending.append(InlineField(tag=tag, value=value))
            else:
                _apply_field(tune, tag, value)
            continue

        symbols, leftover = tokenize_line(line)
        if symbols:
            tune.body.staves.append(Stave(symbols=pending + symbols))
            pending = []
        if leftover:
            warnings.append(ParseWarning(
                message=f"unable to parse {leftover!r}",
                tune=tune.id or None,
            ))

    if pending:
        tune.body.staves[-1].symbols.extend(pending)


def _apply_field(tune: Tune, tag: str, value: str) -> None:
    """Record a header field and update the tune's canonical attributes."""
    if tag == FIELD_REFERENCE_NUMBER.tag:
        tune.id = value
    elif tag == FIELD_TITLE.tag:
        if not tune.title:
            tune.title = value
    elif tag == FIELD_METER.tag:
        tune.meter = parse_meter(value)
    elif tag == FIELD_UNIT_NOTE_LENGTH.tag:
        tune.unit_note_length = parse_note_length(value)
    elif tag == FIELD_KEY.tag:
        tune.key = value
    tune.fields.append(Field(tag=tag, value=value))


def _is_body_field(tag: str) -> bool:
    fd = lookup_field(tag)
    return fd is not None and fd.allowed_in(FieldContext.TUNE_BODY)


def _clean_line(line: str) -> str:
    """Strip the trailing comment and whitespace; unescape ``\\%``."""
    line = RE_COMMENT.sub("", line, count=1)
    return line.rstrip(" \t\r\n").replace("\\%", "%")
