"""
FlashDeck – CSV import / export
================================
Drives the CSV codec against the store and the audio manager.

Import is row-by-row: a bad row is skipped and reported as
``"Row N: message"`` while the rest of the file is still imported. Only a
structural problem (unreadable file, no Back column, no data rows) fails
the whole import.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List

from db.models import CardType
from db.store import Store
from core.audio_files import AudioFileManager
from core.card_types import check_required, needs_audio, needs_front_text, parse_card_type
from core.csv_codec import CsvCardRow, ExportScope, read_card_rows, serialize_cards
from core.errors import AudioImportError, FormatError, StoreError, ValidationError

log = logging.getLogger(__name__)

IMPORTED_DECK_DESCRIPTION = "Imported from CSV"
DEFAULT_DECK_EMOJI = "📚"
ALL_DECKS_FILENAME = "all-decks"

# Tried in order when reading a CSV file from disk
_ENCODINGS = ("utf-8-sig", "utf-8", "cp1252", "latin-1")


# ──────────────────────────────────────────────────────────────────────
# Results
# ──────────────────────────────────────────────────────────────────────

@dataclass
class ImportResult:
    success: bool
    imported: int = 0
    errors: List[str] = field(default_factory=list)
    decks_created: List[str] = field(default_factory=list)
    error: str | None = None        # top-level failure reason
    cancelled: bool = False


@dataclass
class ExportResult:
    success: bool
    path: Path | None = None
    exported: int = 0
    error: str | None = None
    cancelled: bool = False


# ──────────────────────────────────────────────────────────────────────
# Export
# ──────────────────────────────────────────────────────────────────────

def sanitize_filename(name: str) -> str:
    """``'Spanish: Verbs (A1)'`` → ``'Spanish-Verbs-A1'``; empty → ``'deck'``."""
    safe = re.sub(r"[^A-Za-z0-9]+", "-", name).strip("-")
    return safe or "deck"


def default_export_filename(store: Store, deck_id: int | None = None) -> str:
    if deck_id is None:
        return f"{ALL_DECKS_FILENAME}.csv"
    deck = store.get_deck(deck_id)
    return f"{sanitize_filename(deck.name if deck else '')}.csv"


def export_csv(
    store: Store,
    audio: AudioFileManager,
    path: str | Path | None,
    deck_id: int | None = None,
) -> ExportResult:
    """Write one deck (or every deck when *deck_id* is ``None``) to *path*.

    ``path=None`` means the user cancelled the save dialog.
    """
    if path is None:
        return ExportResult(success=False, cancelled=True, error="Export cancelled")

    path = Path(path)
    try:
        if deck_id is not None:
            deck = store.get_deck(deck_id)
            if deck is None:
                return ExportResult(success=False, error=f"Deck {deck_id} not found")
            decks = [deck]
            cards = store.list_cards_by_deck(deck_id)
            scope = ExportScope.DECK
        else:
            decks = store.list_decks()
            cards = store.list_all_cards()
            scope = ExportScope.ALL_DECKS
    except StoreError as exc:
        log.error("Export failed while reading the store: %s", exc)
        return ExportResult(success=False, path=path, error=str(exc))

    content = serialize_cards(
        cards, decks, scope,
        resolve_audio=lambda name: str(audio.get_audio_file_path(name)),
    )

    try:
        path.write_text(content, encoding="utf-8", newline="")
    except OSError as exc:
        log.error("Could not write %s: %s", path, exc)
        return ExportResult(success=False, path=path, error=f"Failed to write file: {exc}")

    log.info("Exported %d cards (%s) → %s", len(cards), scope.value, path)
    return ExportResult(success=True, path=path, exported=len(cards))


# ──────────────────────────────────────────────────────────────────────
# Import
# ──────────────────────────────────────────────────────────────────────

def read_csv_file(path: str | Path) -> str:
    """Read a CSV file, trying the usual encodings in turn."""
    path = Path(path)
    data = path.read_bytes()
    for encoding in _ENCODINGS:
        try:
            text = data.decode(encoding)
            log.info("Read %d chars from %s (encoding=%s)", len(text), path.name, encoding)
            return text
        except UnicodeDecodeError:
            continue
    # latin-1 decodes any byte sequence, so this is unreachable in practice
    raise UnicodeDecodeError("all", data, 0, len(data), f"Could not decode {path.name}")


def import_csv_file(
    store: Store,
    audio: AudioFileManager,
    path: str | Path | None,
    target_deck_id: int | None = None,
) -> ImportResult:
    """Import a CSV file from disk; ``path=None`` means the dialog was cancelled."""
    if path is None:
        return ImportResult(success=False, cancelled=True, error="Import cancelled")

    path = Path(path)
    try:
        content = read_csv_file(path)
    except (OSError, UnicodeDecodeError) as exc:
        log.error("Could not read %s: %s", path, exc)
        return ImportResult(success=False, error=f"Failed to read file: {exc}")

    return import_csv(store, audio, content, base_dir=path.parent, target_deck_id=target_deck_id)


class _DeckResolver:
    """Find-or-create decks by name, memoised for one import run."""

    def __init__(self, store: Store) -> None:
        self._store = store
        self._ids: Dict[str, int] = {}
        self.created: List[str] = []

    def resolve(self, name: str, emoji: str) -> int:
        if name in self._ids:
            return self._ids[name]

        deck = self._store.find_deck_by_name(name)
        if deck is None:
            deck = self._store.create_deck(
                name=name,
                description=IMPORTED_DECK_DESCRIPTION,
                emoji=emoji or DEFAULT_DECK_EMOJI,
                tags=[],
            )
            self.created.append(deck.name)
            log.info("Created deck %r during import", deck.name)

        self._ids[name] = deck.id
        return deck.id


def import_csv(
    store: Store,
    audio: AudioFileManager,
    content: str,
    base_dir: str | Path | None = None,
    target_deck_id: int | None = None,
) -> ImportResult:
    """Import CSV *content* into the store.

    Parameters
    ----------
    base_dir
        Directory that relative ``Front Audio File`` paths are resolved
        against (normally the CSV file's own directory).
    target_deck_id
        Put every card into this deck. Without it each row must name its
        deck in a ``Deck Name`` column; missing decks are created.
    """
    try:
        rows = read_card_rows(content)
    except FormatError as exc:
        log.warning("CSV import rejected: %s", exc)
        return ImportResult(success=False, error=str(exc))

    try:
        if target_deck_id is not None and store.get_deck(target_deck_id) is None:
            return ImportResult(success=False, error=f"Deck {target_deck_id} not found")
    except StoreError as exc:
        return ImportResult(success=False, error=str(exc))

    result = ImportResult(success=True)
    decks = _DeckResolver(store)
    base = Path(base_dir) if base_dir is not None else Path.cwd()

    for row in rows:
        try:
            _import_row(store, audio, row, decks, base, target_deck_id)
        except (ValidationError, AudioImportError, StoreError) as exc:
            result.errors.append(f"Row {row.row_number}: {exc}")
            continue
        result.imported += 1

    result.decks_created = list(decks.created)
    log.info(
        "CSV import finished: %d imported, %d errors, %d decks created",
        result.imported, len(result.errors), len(result.decks_created),
    )
    return result


def _resolve_audio_source(reference: str, base_dir: Path) -> Path:
    """Absolute path for a CSV audio reference; relative paths hang off *base_dir*."""
    try:
        source = Path(reference).expanduser()
        if not source.is_absolute():
            source = base_dir / source
    except (RuntimeError, ValueError, OSError) as exc:
        raise AudioImportError(f"Cannot resolve path: {exc}", context={"source": reference}) from exc
    return source


def _import_row(
    store: Store,
    audio: AudioFileManager,
    row: CsvCardRow,
    decks: _DeckResolver,
    base_dir: Path,
    target_deck_id: int | None,
) -> None:
    if not row.back:
        raise ValidationError("Back field is required")

    card_type = parse_card_type(row.card_type)
    check_required(card_type, front=row.front, front_audio_path=row.front_audio_file)

    if target_deck_id is not None:
        deck_id = target_deck_id
    elif row.deck_name:
        deck_id = decks.resolve(row.deck_name, row.deck_emoji)
    else:
        raise ValidationError("Deck name is required when no target deck is selected")

    audio_path = audio_name = None
    if needs_audio(card_type):
        try:
            source = _resolve_audio_source(row.front_audio_file, base_dir)
            copied = audio.copy_audio_file(source)
        except AudioImportError as exc:
            raise AudioImportError(
                f"Failed to import audio file '{row.front_audio_file}': {exc}",
                context={"source": row.front_audio_file},
            ) from exc
        audio_path = copied.internal_path
        audio_name = row.front_audio_name or source.name

    try:
        store.create_card(
            deck_id=deck_id,
            card_type=card_type,
            front=row.front if needs_front_text(card_type) else None,
            front_audio_path=audio_path,
            front_audio_name=audio_name,
            back=row.back,
            tags=row.tags,
            difficulty=row.difficulty,
            interval=row.interval,
            study_count=row.study_count,
        )
    except StoreError:
        if audio_path:
            audio.delete_audio_file(audio_path)
        raise
