"""
FlashDeck – SQLAlchemy ORM Models
==================================
Defines the data schema: Decks, Cards (text / audio / mixed front, with
SM-2 scheduling fields), StudySessions and key/value Settings.
"""

from __future__ import annotations

import enum
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.types import TypeDecorator

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """Stores naive UTC in SQLite, hands back timezone-aware UTC datetimes."""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value


class CardType(str, enum.Enum):
    """Discriminant for the three card variants."""

    TEXT = "text"
    AUDIO = "audio"
    MIXED = "mixed"


# ---------------------------------------------------------------------------
# Deck – a named collection of flashcards
# ---------------------------------------------------------------------------
class Deck(Base):
    __tablename__ = "decks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    emoji = Column(String(16), nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    created_at = Column(UTCDateTime, default=_utcnow)
    updated_at = Column(UTCDateTime, default=_utcnow)

    # Denormalised; maintained by the store on card create / delete
    card_count = Column(Integer, nullable=False, default=0)

    # Relationships
    cards = relationship(
        "Card", back_populates="deck", cascade="all, delete-orphan", passive_deletes=True
    )
    study_sessions = relationship(
        "StudySession", back_populates="deck", cascade="all, delete-orphan", passive_deletes=True
    )

    __table_args__ = (
        CheckConstraint("card_count >= 0", name="ck_deck_card_count"),
    )

    def __repr__(self) -> str:
        return f"<Deck id={self.id} name={self.name!r} cards={self.card_count}>"


# ---------------------------------------------------------------------------
# Card – one question / answer unit with SM-2 scheduling metadata
# ---------------------------------------------------------------------------
class Card(Base):
    __tablename__ = "cards"

    id = Column(Integer, primary_key=True, autoincrement=True)
    deck_id = Column(Integer, ForeignKey("decks.id", ondelete="CASCADE"), nullable=False)
    card_type = Column(
        "type",
        Enum(CardType, native_enum=False, length=10,
             values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=CardType.TEXT,
    )

    # Content – which front fields are required depends on card_type
    front = Column(Text, nullable=True)
    front_audio_path = Column(String(255), nullable=True)   # generated name in the audio dir
    front_audio_name = Column(String(255), nullable=True)   # display label
    back = Column(Text, nullable=False)
    tags = Column(JSON, nullable=False, default=list)

    created_at = Column(UTCDateTime, default=_utcnow)
    updated_at = Column(UTCDateTime, default=_utcnow)
    last_studied = Column(UTCDateTime, nullable=True)
    study_count = Column(Integer, nullable=False, default=0)

    # SM-2 scheduling fields (stored, not yet derived from study sessions)
    difficulty = Column(Float, nullable=False, default=0.0)
    interval = Column(Integer, nullable=False, default=1)   # days
    ease_factor = Column(Float, nullable=False, default=2.5)

    # Relationships
    deck = relationship("Deck", back_populates="cards")
    study_sessions = relationship(
        "StudySession", back_populates="card", cascade="all, delete-orphan", passive_deletes=True
    )

    __table_args__ = (
        CheckConstraint("study_count >= 0", name="ck_card_study_count"),
        CheckConstraint("interval >= 1", name="ck_card_interval"),
    )

    def __repr__(self) -> str:
        return f"<Card id={self.id} type={self.card_type.value} deck_id={self.deck_id}>"


# ---------------------------------------------------------------------------
# StudySession – append-only log of review events
# ---------------------------------------------------------------------------
class StudySession(Base):
    __tablename__ = "study_sessions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    deck_id = Column(Integer, ForeignKey("decks.id", ondelete="CASCADE"), nullable=False)
    card_id = Column(Integer, ForeignKey("cards.id", ondelete="CASCADE"), nullable=False)
    confidence = Column(Integer, nullable=False)      # 1-5
    response_time = Column(Integer, nullable=False)   # milliseconds
    studied_at = Column(UTCDateTime, default=_utcnow)

    # Relationships
    deck = relationship("Deck", back_populates="study_sessions")
    card = relationship("Card", back_populates="study_sessions")

    __table_args__ = (
        CheckConstraint("confidence BETWEEN 1 AND 5", name="ck_session_confidence"),
        CheckConstraint("response_time >= 0", name="ck_session_response_time"),
    )

    def __repr__(self) -> str:
        return f"<StudySession card_id={self.card_id} c={self.confidence} at={self.studied_at}>"


# ---------------------------------------------------------------------------
# Setting – JSON value keyed by name
# ---------------------------------------------------------------------------
class Setting(Base):
    __tablename__ = "settings"

    key = Column(String(64), primary_key=True)
    value = Column(JSON, nullable=True)

    def __repr__(self) -> str:
        return f"<Setting {self.key}={self.value!r}>"
