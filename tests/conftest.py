"""
Shared fixtures: a fresh in-memory database and a private audio directory
per test.
"""

import pytest

from db.database import make_engine, make_session_factory
from db.models import Base
from db.store import Store
from core.audio_files import AudioFileManager


@pytest.fixture
def engine():
    engine = make_engine("sqlite://")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine):
    return Store(make_session_factory(engine))


@pytest.fixture
def audio(tmp_path):
    return AudioFileManager(tmp_path / "app-data" / "audio")


@pytest.fixture
def make_audio(tmp_path):
    """Write a small fake audio file and return its path."""
    def _make(name="clip.mp3", data=b"ID3\x03\x00fake-audio-bytes", directory=None):
        folder = directory or (tmp_path / "media")
        folder.mkdir(parents=True, exist_ok=True)
        path = folder / name
        path.write_bytes(data)
        return path
    return _make
