"""
FlashDeck – Exception hierarchy
================================
``FormatError`` aborts a whole import. ``ValidationError``,
``AudioImportError`` and ``StoreError`` are raised per card and, inside an
import run, downgraded to a row error message.
"""

from __future__ import annotations


class FlashDeckError(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, *, context: dict[str, object] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}


class FormatError(FlashDeckError):
    """Malformed CSV structure (missing header column, no data rows)."""


class ValidationError(FlashDeckError):
    """A required field is missing or a value is out of range."""


class AudioImportError(FlashDeckError):
    """An audio file could not be brought into the private audio store."""


class AudioNotFoundError(AudioImportError, FileNotFoundError):
    """The source audio file does not exist."""


class InvalidAudioFormatError(AudioImportError, ValueError):
    """Unsupported extension, or an empty / unreadable file."""


class StoreError(FlashDeckError):
    """A create / update / delete against the database failed."""
