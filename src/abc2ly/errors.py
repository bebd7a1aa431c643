"""Fatal conversion errors.

Every condition the key resolver or the renderer cannot interpret raises a
subclass of ConversionError. Rendering of the owning tune stops at the first
one; there is no partial-tune recovery.
"""

from __future__ import annotations


class ConversionError(ValueError):
    """Base class for unrecoverable ABC -> LilyPond conversion errors."""

    def __init__(self, message: str, token: str | None = None,
                 tune_id: str | None = None):
        super().__init__(message)
        self.message = message
        self.token = token
        self.tune_id = tune_id

    def __str__(self) -> str:
        if self.tune_id:
            return f"{self.message} (tune X:{self.tune_id})"
        return self.message


class UnknownKeyError(ConversionError):
    """The lead token of a key signature is not in the key table."""


class UnhandledSymbolError(ConversionError):
    """A barline, decoration or field token with no LilyPond counterpart."""


class RepeatStateError(ConversionError):
    """Inconsistent repeat/volta transition."""


class InvalidNoteError(ConversionError):
    """A note symbol without pitch components."""


class FieldValueError(ConversionError):
    """Malformed numeric field value (M:, L:, octave=)."""


class UnhandledDurationError(ConversionError):
    """A computed duration that cannot be written (zero or negative)."""
