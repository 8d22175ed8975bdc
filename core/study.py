"""
FlashDeck – Study sessions & statistics
========================================
Picks the cards for a study run, records confidence ratings, and computes
the numbers shown on the stats cards.

Ratings are stored as-is. ``difficulty``, ``interval`` and ``ease_factor``
are left untouched: no scheduling formula derives them from confidence yet.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import List, Sequence

from db.models import Card, StudySession
from db.store import Store
from core.errors import ValidationError
from core.settings import STUDY_MODES

log = logging.getLogger(__name__)

MIN_CONFIDENCE = 1
MAX_CONFIDENCE = 5

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; they were written as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# ---------------------------------------------------------------------------
# Card selection
# ---------------------------------------------------------------------------

def select_study_cards(
    cards: Sequence[Card],
    mode: str = "spaced-repetition",
    limit: int | None = None,
    *,
    rng: random.Random | None = None,
) -> List[Card]:
    """Order *cards* for a study run and cut the list to *limit*.

    ``standard``            creation order
    ``shuffle``             random order
    ``spaced-repetition``   never-studied cards first, then least recently studied
    """
    if mode not in STUDY_MODES:
        raise ValueError(f"Unknown study mode: {mode!r}")

    ordered = list(cards)
    if mode == "shuffle":
        (rng or random).shuffle(ordered)
    elif mode == "spaced-repetition":
        ordered.sort(key=lambda c: (
            c.last_studied is not None,
            _as_utc(c.last_studied) if c.last_studied else _EPOCH,
            c.id or 0,
        ))
    else:
        ordered.sort(key=lambda c: (_as_utc(c.created_at) if c.created_at else _EPOCH, c.id or 0))

    if limit is not None:
        ordered = ordered[:max(limit, 0)]
    return ordered


# ---------------------------------------------------------------------------
# Recording
# ---------------------------------------------------------------------------

def record_study_session(
    store: Store,
    deck_id: int,
    card_id: int,
    confidence: int,
    response_time: int,
) -> StudySession:
    """Append one review event and bump the card's study counter."""
    if isinstance(confidence, bool) or not isinstance(confidence, int) \
            or not MIN_CONFIDENCE <= confidence <= MAX_CONFIDENCE:
        raise ValidationError(
            f"confidence must be between {MIN_CONFIDENCE} and {MAX_CONFIDENCE}, got {confidence!r}"
        )
    if response_time < 0:
        raise ValidationError(f"response_time must be >= 0, got {response_time!r}")

    entry = store.create_study_session(
        deck_id=deck_id,
        card_id=card_id,
        confidence=confidence,
        response_time=int(response_time),
    )
    log.info(
        "Studied card %d (deck %d): confidence=%d in %d ms",
        card_id, deck_id, confidence, response_time,
    )
    return entry


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StudyStats:
    total_cards: int
    cards_studied_today: int
    accuracy: float      # percent, mean confidence × 20
    time_spent: float    # minutes
    streak: int          # consecutive days with at least one session


def _streak(days: set[date], today: date) -> int:
    """Consecutive study days ending today (or yesterday if nothing yet today)."""
    day = today if today in days else today - timedelta(days=1)
    count = 0
    while day in days:
        count += 1
        day -= timedelta(days=1)
    return count


def get_study_stats(
    store: Store,
    deck_id: int | None = None,
    now: datetime | None = None,
) -> StudyStats:
    now = _as_utc(now) if now else datetime.now(timezone.utc)
    sessions = store.list_study_sessions(deck_id)

    if deck_id is not None:
        total = len(store.list_cards_by_deck(deck_id))
    else:
        total = len(store.list_all_cards())

    today = now.date()
    studied_days = {_as_utc(s.studied_at).date() for s in sessions}
    today_count = sum(1 for s in sessions if _as_utc(s.studied_at).date() == today)

    if sessions:
        accuracy = sum(s.confidence for s in sessions) / len(sessions) * 20
    else:
        accuracy = 0.0
    time_spent = sum(s.response_time for s in sessions) / 60000

    return StudyStats(
        total_cards=total,
        cards_studied_today=today_count,
        accuracy=accuracy,
        time_spent=time_spent,
        streak=_streak(studied_days, today),
    )
