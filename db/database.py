"""
FlashDeck – Database initialisation & session management
=========================================================
Resolves the application data directory, creates the SQLite engine and
provides a session factory for the rest of the app.
"""

from __future__ import annotations

import sys
from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from db.models import Base

# ---------------------------------------------------------------------------
# Resolve a user-data directory that survives packaging with PyInstaller.
# ---------------------------------------------------------------------------

def _app_data_dir() -> Path:
    """Return a stable directory for the SQLite file and audio assets."""
    if getattr(sys, "frozen", False):
        # Running as a PyInstaller bundle
        base = Path(sys.executable).parent
    else:
        base = Path(__file__).resolve().parent.parent
    return base / "data"


DATA_DIR = _app_data_dir()
DB_PATH = DATA_DIR / "flashdeck.db"
AUDIO_DIR = DATA_DIR / "audio"
DATABASE_URL = f"sqlite:///{DB_PATH}"


def _set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key enforcement for every SQLite connection."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def make_engine(url: str = DATABASE_URL) -> Engine:
    """Create an engine with foreign keys enabled.

    ``sqlite://`` (in-memory) engines share a single connection so that
    every session sees the same database.
    """
    if url in ("sqlite://", "sqlite:///:memory:"):
        engine = create_engine(
            url,
            echo=False,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(
            url,
            echo=False,
            connect_args={"check_same_thread": False},
        )
    event.listen(engine, "connect", _set_sqlite_pragma)
    return engine


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, expire_on_commit=False)


# ---------------------------------------------------------------------------
# Application-wide default engine (created on first use)
# ---------------------------------------------------------------------------

_engine: Engine | None = None
_session_factory: sessionmaker | None = None


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        DATA_DIR.mkdir(parents=True, exist_ok=True)
        _engine = make_engine(DATABASE_URL)
    return _engine


def get_session_factory() -> sessionmaker:
    global _session_factory
    if _session_factory is None:
        _session_factory = make_session_factory(get_engine())
    return _session_factory


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------

def init_db(engine: Engine | None = None) -> None:
    """Create all tables if they do not exist yet."""
    Base.metadata.create_all(bind=engine or get_engine())
