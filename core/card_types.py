"""
FlashDeck – Card type rules
============================
Every place that needs to know what a text, audio or mixed card carries
goes through the tables here.
"""

from __future__ import annotations

from typing import Tuple

from db.models import Card, CardType
from core.errors import ValidationError

# Attribute names that must be non-empty for each card type
_REQUIRED_FIELDS: dict[CardType, Tuple[str, ...]] = {
    CardType.TEXT: ("front",),
    CardType.AUDIO: ("front_audio_path",),
    CardType.MIXED: ("front", "front_audio_path"),
}

_FIELD_LABELS = {
    "front": "Front text",
    "front_audio_path": "Front audio file",
}


def required_fields(card_type: CardType) -> Tuple[str, ...]:
    try:
        return _REQUIRED_FIELDS[card_type]
    except KeyError:
        raise ValueError(f"Unknown card type: {card_type!r}") from None


def needs_audio(card_type: CardType) -> bool:
    return "front_audio_path" in required_fields(card_type)


def needs_front_text(card_type: CardType) -> bool:
    return "front" in required_fields(card_type)


def parse_card_type(value: str | None) -> CardType:
    """``'Audio'`` → ``CardType.AUDIO``; empty → ``CardType.TEXT``."""
    raw = (value or "").strip().lower()
    if not raw:
        return CardType.TEXT
    try:
        return CardType(raw)
    except ValueError:
        allowed = ", ".join(t.value for t in CardType)
        raise ValidationError(
            f"Unknown card type '{value}' (expected one of: {allowed})",
            context={"type": value},
        ) from None


def check_required(card_type: CardType, **fields: str | None) -> None:
    """Raise ``ValidationError`` for the first required field left empty."""
    for name in required_fields(card_type):
        if not (fields.get(name) or "").strip():
            raise ValidationError(
                f"{_FIELD_LABELS[name]} is required for {card_type.value} cards",
                context={"type": card_type.value, "field": name},
            )


def front_label(card: Card) -> str:
    """Short human-readable front, used in lists and the study view."""
    audio = f"🔊 {card.front_audio_name or card.front_audio_path or ''}".rstrip()
    if card.card_type is CardType.TEXT:
        return card.front or ""
    if card.card_type is CardType.AUDIO:
        return audio
    if card.card_type is CardType.MIXED:
        return f"{card.front or ''}  {audio}".strip()
    raise ValueError(f"Unknown card type: {card.card_type!r}")
