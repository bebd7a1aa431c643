"""Conversion settings.

Settings files are JSON documents. Each entry is either a bare value or
wrapped as ``{"value": ...}``:
- UnitNoteLength: unit note length for tunes without an L: field ("1/4")
- OctaveOffset: octave offset before any K: octave= modifier (1)
- StaffSetup: extra command emitted at the top of each staff ("\\configureStaff")
- LineBreaks: emit \\break between staves (true)
- LilypondVersion: emit \\version "..." at the top of the output
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from fractions import Fraction
from pathlib import Path
from typing import Any

from abc2ly.duration import DEFAULT_UNIT_NOTE_LENGTH, parse_note_length
from abc2ly.errors import FieldValueError


@dataclass
class ConvertSettings:
    """Options for rendering tunes as LilyPond."""
    name: str = "default"

    # Note lengths
    unit_note_length: Fraction = DEFAULT_UNIT_NOTE_LENGTH
    octave_offset: int = 1  # ABC C -> LilyPond c'

    # Layout
    staff_setup: str = ""
    line_breaks: bool = True
    lilypond_version: str | None = None


def _get_value(data: dict, key: str, default: Any = None) -> Any:
    """Extract a value, unwrapping ``{"value": ...}`` entries."""
    if key not in data:
        return default
    entry = data[key]
    if isinstance(entry, dict) and "value" in entry:
        return entry["value"]
    return entry


def parse_settings(data: dict, name: str = "default") -> ConvertSettings:
    """Build settings from a decoded JSON object. Bad values keep the default."""
    settings = ConvertSettings(name=name)

    val = _get_value(data, "UnitNoteLength")
    if val is not None:
        try:
            settings.unit_note_length = parse_note_length(str(val))
        except FieldValueError:
            pass

    val = _get_value(data, "OctaveOffset")
    if val is not None:
        try:
            settings.octave_offset = int(val)
        except (ValueError, TypeError):
            pass

    val = _get_value(data, "StaffSetup")
    if isinstance(val, str):
        settings.staff_setup = val.strip()

    val = _get_value(data, "LineBreaks")
    if isinstance(val, bool):
        settings.line_breaks = val

    val = _get_value(data, "LilypondVersion")
    if val is not None:
        settings.lilypond_version = str(val)

    return settings


def parse_settings_file(path: str | Path) -> ConvertSettings:
    """Parse a JSON settings file.

    Raises OSError if the file cannot be read and json.JSONDecodeError if it
    is not valid JSON.
    """
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return parse_settings(data, name=path.stem)
