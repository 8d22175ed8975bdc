"""
Tests for CSV import / export against a real store and audio directory.
"""

from pathlib import Path

import pytest

from db.database import make_engine, make_session_factory
from db.models import Base, CardType
from db.store import Store
from core.audio_files import AudioFileManager
from core.csv_transfer import (
    default_export_filename,
    export_csv,
    import_csv,
    import_csv_file,
    sanitize_filename,
)
from core.errors import StoreError

HEADER = "Deck Name,Deck Emoji,Type,Front,Front Audio File,Front Audio Name,Back,Tags,Difficulty,Interval,Study Count\n"


class TestImport:
    def test_creates_deck_once(self, store, audio):
        content = HEADER + "".join(
            f"Chemistry,🧪,text,Q{i},,,A{i},,0,1,0\n" for i in range(10)
        )
        result = import_csv(store, audio, content)

        assert result.success
        assert result.imported == 10
        assert result.errors == []
        assert result.decks_created == ["Chemistry"]

        decks = store.list_decks()
        assert len(decks) == 1
        assert decks[0].emoji == "🧪"
        assert decks[0].description == "Imported from CSV"
        assert decks[0].card_count == 10

    def test_existing_deck_reused(self, store, audio):
        existing = store.create_deck("Chemistry")
        result = import_csv(store, audio, HEADER + "Chemistry,,text,Q,,,A,,0,1,0\n")
        assert result.decks_created == []
        assert store.get_deck(existing.id).card_count == 1

    def test_default_emoji_for_new_deck(self, store, audio):
        import_csv(store, audio, "Deck Name,Front,Back\nBio,q,a\n")
        assert store.find_deck_by_name("Bio").emoji == "📚"

    def test_bad_row_is_isolated(self, store, audio):
        rows = [f"D,,text,Q{i},,,A{i},,0,1,0\n" for i in range(1, 6)]
        rows[2] = "D,,text,Q3,,,,,0,1,0\n"
        result = import_csv(store, audio, HEADER + "".join(rows))

        assert result.success
        assert result.imported == 4
        assert result.errors == ["Row 3: Back field is required"]

    def test_unknown_type_reported(self, store, audio):
        result = import_csv(store, audio, HEADER + "D,,video,Q,,,A,,0,1,0\n")
        assert result.imported == 0
        assert len(result.errors) == 1
        assert result.errors[0].startswith("Row 1: Unknown card type 'video'")

    def test_text_card_needs_front(self, store, audio):
        result = import_csv(store, audio, HEADER + "D,,text,,,,A,,0,1,0\n")
        assert result.errors == ["Row 1: Front text is required for text cards"]

    def test_audio_card_needs_file(self, store, audio):
        result = import_csv(store, audio, HEADER + "D,,audio,,,,A,,0,1,0\n")
        assert result.errors == ["Row 1: Front audio file is required for audio cards"]

    def test_missing_type_defaults_to_text(self, store, audio):
        result = import_csv(store, audio, "Deck Name,Front,Back\nD,q,a\n")
        assert result.imported == 1
        assert store.list_all_cards()[0].card_type is CardType.TEXT

    def test_missing_back_column_aborts(self, store, audio):
        result = import_csv(store, audio, "Deck Name,Front,Answer\nD,q,a\n")
        assert not result.success
        assert result.error == "CSV must contain Back column"
        assert result.imported == 0
        assert store.list_decks() == []

    def test_header_only_aborts(self, store, audio):
        result = import_csv(store, audio, HEADER)
        assert not result.success
        assert "at least one data row" in result.error

    def test_numeric_fallbacks(self, store, audio):
        import_csv(store, audio, HEADER + "D,,text,Q,,,A,,abc,-3,x\n")
        card = store.list_all_cards()[0]
        assert card.difficulty == 0.0
        assert card.interval == 1
        assert card.study_count == 0

    def test_numeric_values_kept(self, store, audio):
        import_csv(store, audio, HEADER + "D,,text,Q,,,A,t1;t2,0.4,6,3\n")
        card = store.list_all_cards()[0]
        assert card.difficulty == 0.4
        assert card.interval == 6
        assert card.study_count == 3
        assert card.tags == ["t1", "t2"]

    def test_long_back_imports(self, store, audio):
        back = "lorem " * 40_000
        result = import_csv(store, audio, f'Deck Name,Front,Back\nD,q,"{back}"\n')
        assert result.success, result.error
        assert result.imported == 1
        assert store.list_all_cards()[0].back == back.strip()

    def test_deck_name_required_without_target(self, store, audio):
        result = import_csv(store, audio, "Front,Back\nq,a\n")
        assert result.errors == ["Row 1: Deck name is required when no target deck is selected"]

    def test_target_deck_overrides_deck_column(self, store, audio):
        target = store.create_deck("Target")
        result = import_csv(store, audio, HEADER + "Other,,text,Q,,,A,,0,1,0\n",
                            target_deck_id=target.id)
        assert result.imported == 1
        assert result.decks_created == []
        assert store.find_deck_by_name("Other") is None
        assert store.get_deck(target.id).card_count == 1

    def test_missing_target_deck_fails(self, store, audio):
        result = import_csv(store, audio, "Front,Back\nq,a\n", target_deck_id=404)
        assert not result.success
        assert "404" in result.error


class TestImportAudio:
    def test_relative_path_resolved_against_base_dir(self, store, audio, make_audio, tmp_path):
        src = make_audio("hola.mp3", directory=tmp_path / "pack" / "sounds")
        content = HEADER + "Spanish,,audio,,sounds/hola.mp3,,hello,,0,1,0\n"
        result = import_csv(store, audio, content, base_dir=tmp_path / "pack")

        assert result.imported == 1, result.errors
        card = store.list_all_cards()[0]
        assert card.front is None
        assert card.front_audio_name == "hola.mp3"
        stored = audio.get_audio_file_path(card.front_audio_path)
        assert stored.read_bytes() == src.read_bytes()
        assert stored.parent == audio.audio_dir.resolve()

    def test_mixed_card_with_display_name(self, store, audio, make_audio):
        src = make_audio("bonjour.wav")
        content = HEADER + f"French,,mixed,Bonjour,{src},Greeting,hello,,0,1,0\n"
        result = import_csv(store, audio, content)

        assert result.imported == 1, result.errors
        card = store.list_all_cards()[0]
        assert card.card_type is CardType.MIXED
        assert card.front == "Bonjour"
        assert card.front_audio_name == "Greeting"
        assert card.front_audio_path.endswith(".wav")

    def test_missing_audio_file_reported(self, store, audio, tmp_path):
        content = HEADER + "D,,audio,,nowhere.mp3,,A,,0,1,0\nD,,text,Q,,,A,,0,1,0\n"
        result = import_csv(store, audio, content, base_dir=tmp_path)

        assert result.imported == 1
        assert len(result.errors) == 1
        assert result.errors[0].startswith("Row 1: Failed to import audio file 'nowhere.mp3'")

    def test_unsupported_extension_reported(self, store, audio, make_audio):
        src = make_audio("notes.txt", b"not audio")
        result = import_csv(store, audio, HEADER + f"D,,audio,,{src},,A,,0,1,0\n")
        assert result.imported == 0
        assert "Failed to import audio file" in result.errors[0]

    def test_copied_audio_removed_when_insert_fails(self, store, audio, make_audio, monkeypatch):
        src = make_audio("x.mp3")

        def boom(**kwargs):
            raise StoreError("disk full")

        monkeypatch.setattr(store, "create_card", boom)
        result = import_csv(store, audio, HEADER + f"D,,audio,,{src},,A,,0,1,0\n")

        assert result.errors == ["Row 1: disk full"]
        assert list(audio.audio_dir.iterdir()) == []

    def test_unresolvable_home_path_is_row_error(self, store, audio):
        content = (
            "Deck Name,Type,Front,Front Audio File,Back\n"
            "D,text,q1,,a1\n"
            "D,audio,,~nosuchuser_zz/clip.mp3,a2\n"
            "D,text,q3,,a3\n"
        )
        result = import_csv(store, audio, content)

        assert result.success
        assert result.imported == 2
        assert len(result.errors) == 1
        assert result.errors[0].startswith("Row 2: Failed to import audio file '~nosuchuser_zz/clip.mp3'")

    def test_inaccessible_audio_is_row_error(self, store, audio, make_audio, monkeypatch):
        src = make_audio("locked.mp3")
        original = Path.exists

        def exists(self, *args, **kwargs):
            if self.name == "locked.mp3":
                raise PermissionError("permission denied")
            return original(self, *args, **kwargs)

        monkeypatch.setattr(Path, "exists", exists)
        content = HEADER + f"D,,audio,,{src},,A,,0,1,0\nD,,text,Q,,,A,,0,1,0\n"
        result = import_csv(store, audio, content)

        assert result.imported == 1
        assert len(result.errors) == 1
        assert result.errors[0].startswith("Row 1: Failed to import audio file")
        assert "permission denied" in result.errors[0]


class TestImportFile:
    def test_cancelled(self, store, audio):
        result = import_csv_file(store, audio, None)
        assert result.cancelled
        assert not result.success

    def test_unreadable_file(self, store, audio, tmp_path):
        result = import_csv_file(store, audio, tmp_path / "missing.csv")
        assert not result.success
        assert result.error.startswith("Failed to read file")

    def test_bom_and_cp1252(self, store, audio, tmp_path):
        utf8 = tmp_path / "bom.csv"
        utf8.write_bytes("\ufeffDeck Name,Front,Back\nD,café,coffee\n".encode("utf-8"))
        legacy = tmp_path / "legacy.csv"
        legacy.write_bytes("Deck Name,Front,Back\nD,naïve,naive\n".encode("cp1252"))

        assert import_csv_file(store, audio, utf8).imported == 1
        assert import_csv_file(store, audio, legacy).imported == 1
        fronts = sorted(c.front for c in store.list_all_cards())
        assert fronts == ["café", "naïve"]


class TestExport:
    def test_cancelled(self, store, audio):
        result = export_csv(store, audio, None)
        assert result.cancelled
        assert not result.success

    def test_missing_deck(self, store, audio, tmp_path):
        result = export_csv(store, audio, tmp_path / "x.csv", deck_id=99)
        assert not result.success

    def test_round_trip_all_decks(self, store, audio, make_audio, tmp_path):
        chem = store.create_deck("Chemistry", emoji="🧪")
        lang = store.create_deck("Languages", emoji="🗣")
        store.create_card(chem.id, back='He said "hi", and left\n', front="H2O, water",
                          tags=["a", "b"], difficulty=0.35, interval=4, study_count=2)
        copied = audio.copy_audio_file(make_audio("hola.mp3"))
        store.create_card(lang.id, back="hello", card_type=CardType.AUDIO,
                          front_audio_path=copied.internal_path, front_audio_name="Hola")

        out = tmp_path / "all.csv"
        exported = export_csv(store, audio, out)
        assert exported.success
        assert exported.exported == 2

        # fresh store on a second in-memory database
        engine = make_engine("sqlite://")
        Base.metadata.create_all(engine)
        try:
            other = Store(make_session_factory(engine))
            other_audio = AudioFileManager(tmp_path / "other-audio")
            result = import_csv_file(other, other_audio, out)

            assert result.success, result.errors
            assert result.imported == 2
            assert sorted(result.decks_created) == ["Chemistry", "Languages"]

            text = other.list_cards_by_deck(other.find_deck_by_name("Chemistry").id)[0]
            assert text.front == "H2O, water"
            assert text.back == 'He said "hi", and left\n'
            assert text.tags == ["a", "b"]
            assert text.difficulty == 0.35
            assert text.interval == 4
            assert text.study_count == 2

            lang_deck = other.find_deck_by_name("Languages")
            assert lang_deck.emoji == "🗣"
            sound = other.list_cards_by_deck(lang_deck.id)[0]
            assert sound.card_type is CardType.AUDIO
            assert sound.front_audio_name == "Hola"
            assert other_audio.audio_file_exists(sound.front_audio_path)
        finally:
            engine.dispose()

    def test_single_deck_has_no_deck_columns(self, store, audio, tmp_path):
        deck = store.create_deck("Solo")
        store.create_card(deck.id, back="a", front="q")
        out = tmp_path / "solo.csv"
        assert export_csv(store, audio, out, deck_id=deck.id).success
        assert out.read_text(encoding="utf-8").splitlines()[0].startswith("Type,Front,")

    def test_absolute_audio_path_written(self, store, audio, make_audio, tmp_path):
        deck = store.create_deck("D")
        copied = audio.copy_audio_file(make_audio())
        store.create_card(deck.id, back="a", card_type=CardType.AUDIO,
                          front_audio_path=copied.internal_path)
        out = tmp_path / "d.csv"
        export_csv(store, audio, out, deck_id=deck.id)
        line = out.read_text(encoding="utf-8").splitlines()[1]
        assert str(audio.get_audio_file_path(copied.internal_path)) in line
        assert Path(line.split(",")[2]).is_absolute()


    def test_single_deck_round_trip_into_empty_deck(self, store, audio, make_audio, tmp_path):
        deck = store.create_deck("Source")
        store.create_card(deck.id, back="water", front="agua", tags=["es", "basics"],
                          difficulty=0.6, interval=9, study_count=5)
        copied = audio.copy_audio_file(make_audio("gato.mp3"))
        store.create_card(deck.id, back="cat", card_type=CardType.MIXED, front="gato",
                          front_audio_path=copied.internal_path, front_audio_name="Gato",
                          interval=3, study_count=1)

        out = tmp_path / "source.csv"
        assert export_csv(store, audio, out, deck_id=deck.id).exported == 2

        empty = store.create_deck("Copy")
        result = import_csv_file(store, audio, out, target_deck_id=empty.id)

        assert result.success, result.errors
        assert result.imported == 2
        assert result.decks_created == []
        assert store.get_deck(empty.id).card_count == 2

        cards = {c.back: c for c in store.list_cards_by_deck(empty.id)}
        text = cards["water"]
        assert text.card_type is CardType.TEXT
        assert text.front == "agua"
        assert text.tags == ["es", "basics"]
        assert text.difficulty == 0.6
        assert text.interval == 9
        assert text.study_count == 5

        mixed = cards["cat"]
        assert mixed.card_type is CardType.MIXED
        assert mixed.front == "gato"
        assert mixed.front_audio_name == "Gato"
        assert mixed.difficulty == 0.0
        assert mixed.interval == 3
        assert mixed.study_count == 1
        assert mixed.front_audio_path != copied.internal_path
        assert audio.audio_file_exists(mixed.front_audio_path)


class TestFilenames:
    @pytest.mark.parametrize("name,expected", [
        ("Spanish: Verbs (A1)", "Spanish-Verbs-A1"),
        ("  --  ", "deck"),
        ("", "deck"),
        ("Ünïcode Deck", "n-code-Deck"),
    ])
    def test_sanitize(self, name, expected):
        assert sanitize_filename(name) == expected

    def test_default_names(self, store):
        deck = store.create_deck("My Deck!")
        assert default_export_filename(store) == "all-decks.csv"
        assert default_export_filename(store, deck.id) == "My-Deck.csv"
