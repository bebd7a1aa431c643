"""Structural checks of a parsed tune book against the field registry.

Nothing here is fatal: the converter renders what it can and these checks
only report suspicious input (fields in the wrong place, missing X:/K:).
"""

from __future__ import annotations

from abc2ly.ast_nodes import TuneBook, Tune, InlineField
from abc2ly.fields import FieldContext, lookup_field, FIELD_KEY


def validate_book(book: TuneBook) -> list[str]:
    """Validate a tune book.

    Returns a list of warning messages (empty if valid).
    """
    warnings: list[str] = []

    if not book.tunes:
        warnings.append("No tunes found")

    for index, tune in enumerate(book.tunes, 1):
        label = f"X:{tune.id}" if tune.id else f"tune #{index}"
        if not tune.id:
            warnings.append(f"{label}: missing X: reference number")
        if tune.field_by_tag(FIELD_KEY.tag) is None:
            warnings.append(f"{label}: missing K: field")
        _validate_header(tune, label, warnings)
        _validate_body(tune, label, warnings)

    return warnings


def _validate_header(tune: Tune, label: str, warnings: list[str]) -> None:
    for f in tune.fields:
        fd = lookup_field(f.tag)
        if fd is None:
            warnings.append(f"{label}: unknown field {f.tag}:")
        elif not fd.allowed_in(FieldContext.TUNE_HEADER | FieldContext.TUNE_BODY):
            warnings.append(f"{label}: {f.tag}: ({fd.name}) not allowed in a tune")


def _validate_body(tune: Tune, label: str, warnings: list[str]) -> None:
    for stave in tune.body.staves:
        for sym in stave.symbols:
            if not isinstance(sym, InlineField):
                continue
            fd = lookup_field(sym.tag)
            if fd is None:
                warnings.append(f"{label}: unknown field [{sym.tag}:]")
            elif not fd.allowed_in(FieldContext.INLINE | FieldContext.TUNE_BODY):
                warnings.append(
                    f"{label}: {sym.tag}: ({fd.name}) not allowed in the tune body"
                )

