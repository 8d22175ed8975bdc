"""
FlashDeck – Deck & card operations
===================================
Store calls that also touch the audio directory. The store never removes
audio files itself: whoever deletes a card deletes its asset here.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from db.models import Card, CardType, Deck
from db.store import Store
from core.audio_files import AudioFileManager
from core.card_types import check_required, needs_audio, needs_front_text
from core.errors import StoreError, ValidationError

log = logging.getLogger(__name__)


# ── Decks ─────────────────────────────────────────────────────────────

def create_deck(
    store: Store,
    name: str,
    description: str | None = None,
    emoji: str | None = None,
    tags: Sequence[str] = (),
) -> Deck:
    if not name or not name.strip():
        raise ValidationError("Deck name is required")
    return store.create_deck(name.strip(), description, emoji, tags)


def rename_deck(store: Store, deck_id: int, new_name: str) -> Deck:
    if not new_name or not new_name.strip():
        raise ValidationError("Deck name is required")
    deck = store.update_deck(deck_id, name=new_name.strip())
    log.info("Renamed deck %d → %r", deck_id, deck.name)
    return deck


def update_deck_details(
    store: Store,
    deck_id: int,
    name: str,
    description: str | None = None,
    emoji: str | None = None,
    tags: Sequence[str] = (),
) -> Deck:
    """Replace a deck's name, description, emoji and tags."""
    if not name or not name.strip():
        raise ValidationError("Deck name is required")
    deck = store.update_deck(
        deck_id,
        name=name.strip(),
        description=(description or "").strip() or None,
        emoji=(emoji or "").strip() or None,
        tags=[t.strip() for t in tags if t.strip()],
    )
    log.info("Updated deck %d (%r)", deck_id, deck.name)
    return deck


def delete_deck(store: Store, audio: AudioFileManager, deck_id: int) -> int:
    """Delete a deck, its cards, and their audio files. Returns cards removed."""
    cards = store.list_cards_by_deck(deck_id)
    store.delete_deck(deck_id)
    for card in cards:
        if card.front_audio_path:
            audio.delete_audio_file(card.front_audio_path)
    log.info("Deleted deck %d with %d cards", deck_id, len(cards))
    return len(cards)


# ── Cards ─────────────────────────────────────────────────────────────

def create_card_from_file(
    store: Store,
    audio: AudioFileManager,
    deck_id: int,
    back: str,
    card_type: CardType = CardType.TEXT,
    front: str | None = None,
    audio_source: str | Path | None = None,
    audio_name: str | None = None,
    tags: Sequence[str] = (),
) -> Card:
    """Create a card, copying *audio_source* into the audio store when the type needs it."""
    if not (back or "").strip():
        raise ValidationError("Back field is required")
    check_required(
        card_type,
        front=front,
        front_audio_path=str(audio_source) if audio_source else None,
    )

    audio_path = display_name = None
    if needs_audio(card_type):
        copied = audio.copy_audio_file(audio_source)
        audio_path = copied.internal_path
        display_name = audio_name or Path(audio_source).name

    try:
        return store.create_card(
            deck_id=deck_id,
            card_type=card_type,
            front=front.strip() if needs_front_text(card_type) else None,
            front_audio_path=audio_path,
            front_audio_name=display_name,
            back=back.strip(),
            tags=tags,
        )
    except StoreError:
        if audio_path:
            audio.delete_audio_file(audio_path)
        raise


def delete_card(store: Store, audio: AudioFileManager, card_id: int) -> Card:
    """Delete a card and then its audio file, if any."""
    card = store.delete_card(card_id)
    if card.front_audio_path:
        audio.delete_audio_file(card.front_audio_path)
    return card


def update_card(
    store: Store,
    audio: AudioFileManager,
    card_id: int,
    back: str,
    card_type: CardType = CardType.TEXT,
    front: str | None = None,
    audio_source: str | Path | None = None,
    audio_name: str | None = None,
    tags: Sequence[str] = (),
) -> Card:
    """Rewrite a card in place.

    A new *audio_source* is copied in and replaces the stored asset; without
    one, an audio or mixed card keeps its current file. The old file is
    deleted only after the store accepted the change, and also when the
    new type carries no audio at all.
    """
    card = store.get_card(card_id)
    if card is None:
        raise StoreError(f"Card {card_id} not found", context={"card_id": card_id})
    if not (back or "").strip():
        raise ValidationError("Back field is required")

    old_path = card.front_audio_path
    check_required(
        card_type,
        front=front,
        front_audio_path=str(audio_source) if audio_source else old_path,
    )

    copied_path = None
    audio_path = display_name = None
    if needs_audio(card_type):
        if audio_source:
            copied_path = audio.copy_audio_file(audio_source).internal_path
            audio_path = copied_path
            display_name = audio_name or Path(audio_source).name
        else:
            audio_path = old_path
            display_name = audio_name or card.front_audio_name

    try:
        updated = store.update_card(
            card_id,
            card_type=card_type,
            front=front.strip() if needs_front_text(card_type) else None,
            front_audio_path=audio_path,
            front_audio_name=display_name,
            back=back.strip(),
            tags=list(tags),
        )
    except StoreError:
        if copied_path:
            audio.delete_audio_file(copied_path)
        raise

    if old_path and old_path != audio_path:
        audio.delete_audio_file(old_path)
    log.info("Updated %s card %d", card_type.value, card_id)
    return updated
