"""
Tests for engine creation and schema initialisation.
"""

from sqlalchemy import inspect

from db.database import AUDIO_DIR, DATA_DIR, init_db, make_engine


class TestEngine:
    def test_foreign_keys_enabled(self, engine):
        with engine.connect() as conn:
            assert conn.exec_driver_sql("PRAGMA foreign_keys").scalar_one() == 1

    def test_init_db_creates_tables(self, tmp_path):
        engine = make_engine(f"sqlite:///{tmp_path / 'app.db'}")
        try:
            init_db(engine)
            tables = set(inspect(engine).get_table_names())
            assert {"decks", "cards", "study_sessions", "settings"} <= tables
        finally:
            engine.dispose()

    def test_audio_dir_inside_data_dir(self):
        assert AUDIO_DIR.parent == DATA_DIR
