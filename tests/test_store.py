"""
Tests for the Store – card counters, updates, deletes and settings.
"""

import time

import pytest

from db.models import CardType
from core.errors import StoreError


class TestDecks:
    def test_create_and_get(self, store):
        deck = store.create_deck("Chemistry", description="Atoms", emoji="🧪", tags=["sci"])
        loaded = store.get_deck(deck.id)
        assert loaded.name == "Chemistry"
        assert loaded.emoji == "🧪"
        assert loaded.tags == ["sci"]
        assert loaded.card_count == 0

    def test_empty_name_rejected(self, store):
        with pytest.raises(StoreError):
            store.create_deck("   ")

    def test_find_by_exact_name(self, store):
        store.create_deck("Biology")
        assert store.find_deck_by_name("Biology") is not None
        assert store.find_deck_by_name("biology") is None

    def test_update_bumps_updated_at(self, store):
        deck = store.create_deck("Old")
        time.sleep(0.01)
        updated = store.update_deck(deck.id, name="New", tags=("a", "b"))
        assert updated.name == "New"
        assert updated.tags == ["a", "b"]
        assert updated.updated_at > deck.updated_at

    def test_update_unknown_field_rejected(self, store):
        deck = store.create_deck("D")
        with pytest.raises(StoreError):
            store.update_deck(deck.id, card_count=99)

    def test_update_missing_deck(self, store):
        with pytest.raises(StoreError):
            store.update_deck(12345, name="x")

    def test_delete_cascades_to_cards(self, store):
        deck = store.create_deck("D")
        store.create_card(deck.id, back="a", front="q")
        store.delete_deck(deck.id)
        assert store.get_deck(deck.id) is None
        assert store.list_all_cards() == []


class TestCards:
    def test_card_count_tracks_creates_and_deletes(self, store):
        deck = store.create_deck("D")
        cards = [store.create_card(deck.id, back=f"a{i}", front=f"q{i}") for i in range(3)]
        assert store.get_deck(deck.id).card_count == 3

        store.delete_card(cards[1].id)
        assert store.get_deck(deck.id).card_count == 2
        assert len(store.list_cards_by_deck(deck.id)) == 2

    def test_create_card_bumps_deck_updated_at(self, store):
        deck = store.create_deck("D")
        time.sleep(0.01)
        store.create_card(deck.id, back="a", front="q")
        assert store.get_deck(deck.id).updated_at > deck.updated_at

    def test_create_card_for_missing_deck(self, store):
        with pytest.raises(StoreError):
            store.create_card(999, back="a", front="q")

    def test_cards_listed_in_creation_order(self, store):
        deck = store.create_deck("D")
        for i in range(5):
            store.create_card(deck.id, back=f"a{i}", front=f"q{i}")
        assert [c.front for c in store.list_cards_by_deck(deck.id)] == [f"q{i}" for i in range(5)]

    def test_audio_card_fields(self, store):
        deck = store.create_deck("D")
        card = store.create_card(
            deck.id, back="a", card_type=CardType.MIXED, front="q",
            front_audio_path="1_x.mp3", front_audio_name="Greeting",
        )
        loaded = store.get_card(card.id)
        assert loaded.card_type is CardType.MIXED
        assert loaded.front_audio_path == "1_x.mp3"
        assert loaded.front_audio_name == "Greeting"

    def test_update_card(self, store):
        deck = store.create_deck("D")
        card = store.create_card(deck.id, back="a", front="q")
        updated = store.update_card(card.id, back="answer", tags=["t"])
        assert updated.back == "answer"
        assert updated.tags == ["t"]

    def test_delete_missing_card(self, store):
        with pytest.raises(StoreError):
            store.delete_card(42)


class TestStudySessions:
    def test_create_session_marks_card(self, store):
        deck = store.create_deck("D")
        card = store.create_card(deck.id, back="a", front="q")
        store.create_study_session(deck.id, card.id, confidence=3, response_time=1500)

        loaded = store.get_card(card.id)
        assert loaded.study_count == 1
        assert loaded.last_studied is not None
        assert len(store.list_study_sessions(deck.id)) == 1

    def test_session_card_must_belong_to_deck(self, store):
        a = store.create_deck("A")
        b = store.create_deck("B")
        card = store.create_card(a.id, back="a", front="q")
        with pytest.raises(StoreError):
            store.create_study_session(b.id, card.id, confidence=3, response_time=1)

    def test_invalid_confidence_becomes_store_error(self, store):
        deck = store.create_deck("D")
        card = store.create_card(deck.id, back="a", front="q")
        with pytest.raises(StoreError):
            store.create_study_session(deck.id, card.id, confidence=0, response_time=1)
        assert store.get_card(card.id).study_count == 0

    def test_list_filters_by_deck(self, store):
        a = store.create_deck("A")
        b = store.create_deck("B")
        ca = store.create_card(a.id, back="a", front="q")
        cb = store.create_card(b.id, back="a", front="q")
        store.create_study_session(a.id, ca.id, 4, 10)
        store.create_study_session(b.id, cb.id, 4, 10)
        assert len(store.list_study_sessions()) == 2
        assert [s.card_id for s in store.list_study_sessions(b.id)] == [cb.id]


class TestSettings:
    def test_default_when_missing(self, store):
        assert store.get_setting("theme", "system") == "system"

    def test_set_and_overwrite(self, store):
        store.set_setting("cardsPerSession", 10)
        store.set_setting("cardsPerSession", 30)
        assert store.get_setting("cardsPerSession") == 30
        assert store.get_settings() == {"cardsPerSession": 30}
