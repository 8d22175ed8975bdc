"""
FlashDeck – Store
==================
Explicit handle over the SQLite database for decks, cards, study sessions
and settings. Each call opens its own session and commits or rolls back
before returning; returned objects are detached and stay readable.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterator, List, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from db.models import Card, CardType, Deck, Setting, StudySession
from core.errors import StoreError

log = logging.getLogger(__name__)

_DECK_FIELDS = {"name", "description", "emoji", "tags"}
_CARD_FIELDS = {
    "card_type", "front", "front_audio_path", "front_audio_name", "back", "tags",
    "last_studied", "study_count", "difficulty", "interval", "ease_factor",
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Store:
    """Create / read / update / delete operations over the app database."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    @contextmanager
    def _session(self, action: str) -> Iterator[Session]:
        s = self._session_factory()
        try:
            yield s
            s.commit()
        except SQLAlchemyError as exc:
            s.rollback()
            log.error("Store %s failed: %s", action, exc)
            raise StoreError(f"Failed to {action}: {exc}", context={"action": action}) from exc
        except Exception:
            s.rollback()
            raise
        finally:
            s.close()

    # ── Decks ─────────────────────────────────────────────────────────

    def list_decks(self) -> List[Deck]:
        """All decks, most recently updated first."""
        with self._session("list decks") as s:
            return (
                s.query(Deck)
                .order_by(Deck.updated_at.desc(), Deck.id.desc())
                .all()
            )

    def get_deck(self, deck_id: int) -> Deck | None:
        with self._session("get deck") as s:
            return s.get(Deck, deck_id)

    def find_deck_by_name(self, name: str) -> Deck | None:
        """Exact-name lookup; the oldest deck wins when names repeat."""
        with self._session("find deck") as s:
            return (
                s.query(Deck)
                .filter(Deck.name == name)
                .order_by(Deck.created_at, Deck.id)
                .first()
            )

    def create_deck(
        self,
        name: str,
        description: str | None = None,
        emoji: str | None = None,
        tags: Sequence[str] = (),
    ) -> Deck:
        if not name or not name.strip():
            raise StoreError("Deck name must not be empty")
        with self._session("create deck") as s:
            deck = Deck(
                name=name.strip(),
                description=description,
                emoji=emoji,
                tags=list(tags),
                card_count=0,
            )
            s.add(deck)
            s.flush()
            log.info("Created deck %d %r", deck.id, deck.name)
            return deck

    def update_deck(self, deck_id: int, **patch: Any) -> Deck:
        unknown = set(patch) - _DECK_FIELDS
        if unknown:
            raise StoreError(f"Cannot update deck fields: {', '.join(sorted(unknown))}")
        with self._session("update deck") as s:
            deck = s.get(Deck, deck_id)
            if deck is None:
                raise StoreError(f"Deck {deck_id} not found")
            for key, value in patch.items():
                setattr(deck, key, list(value) if key == "tags" else value)
            deck.updated_at = _now()
            return deck

    def delete_deck(self, deck_id: int) -> Deck:
        """Delete a deck together with its cards and study sessions."""
        with self._session("delete deck") as s:
            deck = s.get(Deck, deck_id)
            if deck is None:
                raise StoreError(f"Deck {deck_id} not found")
            s.delete(deck)
            log.info("Deleted deck %d", deck_id)
            return deck

    # ── Cards ─────────────────────────────────────────────────────────

    def list_cards_by_deck(self, deck_id: int) -> List[Card]:
        """Cards of one deck in creation order."""
        with self._session("list cards") as s:
            return (
                s.query(Card)
                .filter(Card.deck_id == deck_id)
                .order_by(Card.created_at, Card.id)
                .all()
            )

    def list_all_cards(self) -> List[Card]:
        with self._session("list cards") as s:
            return s.query(Card).order_by(Card.created_at, Card.id).all()

    def get_card(self, card_id: int) -> Card | None:
        with self._session("get card") as s:
            return s.get(Card, card_id)

    def create_card(
        self,
        deck_id: int,
        back: str,
        card_type: CardType = CardType.TEXT,
        front: str | None = None,
        front_audio_path: str | None = None,
        front_audio_name: str | None = None,
        tags: Sequence[str] = (),
        difficulty: float = 0.0,
        interval: int = 1,
        study_count: int = 0,
        ease_factor: float = 2.5,
    ) -> Card:
        """Insert a card and bump the owning deck's counter in one transaction."""
        with self._session("create card") as s:
            deck = s.get(Deck, deck_id)
            if deck is None:
                raise StoreError(f"Deck {deck_id} not found", context={"deck_id": deck_id})
            card = Card(
                deck_id=deck_id,
                card_type=card_type,
                front=front,
                front_audio_path=front_audio_path,
                front_audio_name=front_audio_name,
                back=back,
                tags=list(tags),
                difficulty=difficulty,
                interval=interval,
                study_count=study_count,
                ease_factor=ease_factor,
            )
            s.add(card)
            deck.card_count = (deck.card_count or 0) + 1
            deck.updated_at = _now()
            s.flush()
            log.debug("Created %s card %d in deck %d", card_type.value, card.id, deck_id)
            return card

    def update_card(self, card_id: int, **patch: Any) -> Card:
        unknown = set(patch) - _CARD_FIELDS
        if unknown:
            raise StoreError(f"Cannot update card fields: {', '.join(sorted(unknown))}")
        with self._session("update card") as s:
            card = s.get(Card, card_id)
            if card is None:
                raise StoreError(f"Card {card_id} not found")
            for key, value in patch.items():
                setattr(card, key, list(value) if key == "tags" else value)
            card.updated_at = _now()
            return card

    def delete_card(self, card_id: int) -> Card:
        """Delete a card and return it; the audio asset is left to the caller."""
        with self._session("delete card") as s:
            card = s.get(Card, card_id)
            if card is None:
                raise StoreError(f"Card {card_id} not found")
            deck = s.get(Deck, card.deck_id)
            if deck is not None:
                deck.card_count = max(0, (deck.card_count or 0) - 1)
                deck.updated_at = _now()
            s.delete(card)
            log.info("Deleted card %d from deck %d", card_id, card.deck_id)
            return card

    # ── Study sessions ────────────────────────────────────────────────

    def list_study_sessions(self, deck_id: int | None = None) -> List[StudySession]:
        with self._session("list study sessions") as s:
            q = s.query(StudySession)
            if deck_id is not None:
                q = q.filter(StudySession.deck_id == deck_id)
            return q.order_by(StudySession.studied_at, StudySession.id).all()

    def create_study_session(
        self,
        deck_id: int,
        card_id: int,
        confidence: int,
        response_time: int,
        studied_at: datetime | None = None,
    ) -> StudySession:
        """Append a session and mark the card as studied."""
        studied_at = studied_at or _now()
        with self._session("record study session") as s:
            card = s.get(Card, card_id)
            if card is None or card.deck_id != deck_id:
                raise StoreError(
                    f"Card {card_id} not found in deck {deck_id}",
                    context={"deck_id": deck_id, "card_id": card_id},
                )
            entry = StudySession(
                deck_id=deck_id,
                card_id=card_id,
                confidence=confidence,
                response_time=response_time,
                studied_at=studied_at,
            )
            s.add(entry)
            card.last_studied = studied_at
            card.study_count = (card.study_count or 0) + 1
            s.flush()
            return entry

    # ── Settings ──────────────────────────────────────────────────────

    def get_setting(self, key: str, default: Any = None) -> Any:
        with self._session("read setting") as s:
            row = s.get(Setting, key)
            return default if row is None else row.value

    def get_settings(self) -> dict[str, Any]:
        with self._session("read settings") as s:
            return {row.key: row.value for row in s.query(Setting).all()}

    def set_setting(self, key: str, value: Any) -> None:
        with self._session("write setting") as s:
            s.merge(Setting(key=key, value=value))
