"""
Tests for card type rules – parsing, required fields, display labels.
"""

import pytest

from db.models import Card, CardType
from core.card_types import (
    check_required,
    front_label,
    needs_audio,
    needs_front_text,
    parse_card_type,
    required_fields,
)
from core.errors import ValidationError


class TestParse:
    @pytest.mark.parametrize("raw,expected", [
        ("text", CardType.TEXT), ("AUDIO", CardType.AUDIO), (" Mixed ", CardType.MIXED),
        ("", CardType.TEXT), (None, CardType.TEXT),
    ])
    def test_known(self, raw, expected):
        assert parse_card_type(raw) is expected

    def test_unknown(self):
        with pytest.raises(ValidationError, match="Unknown card type 'image'"):
            parse_card_type("image")


class TestRequired:
    def test_tables(self):
        assert required_fields(CardType.TEXT) == ("front",)
        assert needs_audio(CardType.AUDIO) and not needs_front_text(CardType.AUDIO)
        assert needs_audio(CardType.MIXED) and needs_front_text(CardType.MIXED)
        assert not needs_audio(CardType.TEXT)

    def test_text_ok(self):
        check_required(CardType.TEXT, front="q", front_audio_path=None)

    def test_blank_front_rejected(self):
        with pytest.raises(ValidationError, match="Front text is required for text cards"):
            check_required(CardType.TEXT, front="   ")

    def test_mixed_needs_both(self):
        with pytest.raises(ValidationError, match="Front audio file is required for mixed cards"):
            check_required(CardType.MIXED, front="q", front_audio_path="")
        with pytest.raises(ValidationError, match="Front text is required for mixed cards"):
            check_required(CardType.MIXED, front=None, front_audio_path="a.mp3")

    def test_unknown_type(self):
        with pytest.raises(ValueError):
            required_fields("video")


class TestFrontLabel:
    def test_text(self):
        assert front_label(Card(card_type=CardType.TEXT, front="Haus", back="house")) == "Haus"

    def test_audio_prefers_display_name(self):
        card = Card(card_type=CardType.AUDIO, front_audio_path="1_x.mp3",
                    front_audio_name="Greeting", back="hi")
        assert front_label(card) == "🔊 Greeting"

    def test_mixed(self):
        card = Card(card_type=CardType.MIXED, front="Hola", front_audio_path="1_x.mp3", back="hi")
        assert front_label(card) == "Hola  🔊 1_x.mp3"
