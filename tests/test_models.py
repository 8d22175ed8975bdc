"""
Tests for SQLAlchemy models – cascade deletes, card defaults, constraints.
"""

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from db.models import Card, CardType, Deck, Setting, StudySession


@pytest.fixture
def session(engine):
    with Session(engine) as s:
        yield s


def _deck(session, name="D"):
    d = Deck(name=name)
    session.add(d)
    session.flush()
    return d


class TestCascade:
    def test_delete_deck_removes_cards_and_sessions(self, session):
        deck = _deck(session)
        card = Card(deck_id=deck.id, front="Haus", back="house")
        session.add(card)
        session.flush()
        session.add(StudySession(deck_id=deck.id, card_id=card.id, confidence=4, response_time=900))
        session.commit()

        session.delete(deck)
        session.commit()

        assert session.query(Card).count() == 0
        assert session.query(StudySession).count() == 0

    def test_delete_card_removes_its_sessions(self, session):
        deck = _deck(session)
        card = Card(deck_id=deck.id, front="Hund", back="dog")
        session.add(card)
        session.flush()
        session.add(StudySession(deck_id=deck.id, card_id=card.id, confidence=2, response_time=10))
        session.commit()

        session.delete(card)
        session.commit()

        assert session.query(StudySession).count() == 0
        assert session.query(Deck).count() == 1


class TestDefaults:
    def test_card_defaults(self, session):
        deck = _deck(session)
        c = Card(deck_id=deck.id, front="Katze", back="cat")
        session.add(c)
        session.commit()

        assert c.card_type is CardType.TEXT
        assert c.difficulty == 0.0
        assert c.interval == 1
        assert c.ease_factor == 2.5
        assert c.study_count == 0
        assert c.last_studied is None
        assert c.tags == []
        assert c.created_at is not None

    def test_deck_defaults(self, session):
        deck = _deck(session)
        session.commit()
        assert deck.card_count == 0
        assert deck.tags == []

    def test_card_type_is_stored_as_plain_string(self, session, engine):
        deck = _deck(session)
        session.add(Card(deck_id=deck.id, card_type=CardType.AUDIO,
                         front_audio_path="1_a.mp3", back="x"))
        session.commit()

        with engine.connect() as conn:
            raw = conn.exec_driver_sql("SELECT type FROM cards").scalar_one()
        assert raw == "audio"

    def test_setting_holds_json(self, session):
        session.add(Setting(key="cardsPerSession", value=15))
        session.add(Setting(key="showTimer", value=False))
        session.commit()
        assert session.get(Setting, "cardsPerSession").value == 15
        assert session.get(Setting, "showTimer").value is False


class TestConstraints:
    def test_confidence_out_of_range_rejected(self, session):
        deck = _deck(session)
        card = Card(deck_id=deck.id, front="q", back="a")
        session.add(card)
        session.flush()
        session.add(StudySession(deck_id=deck.id, card_id=card.id, confidence=9, response_time=1))
        with pytest.raises(IntegrityError):
            session.commit()

    def test_card_requires_existing_deck(self, session):
        session.add(Card(deck_id=999, front="q", back="a"))
        with pytest.raises(IntegrityError):
            session.commit()
