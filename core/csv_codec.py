"""
FlashDeck – CSV codec
======================
Reads and writes the deck exchange format::

    Deck Name,Deck Emoji,Type,Front,Front Audio File,Front Audio Name,Back,Tags,Difficulty,Interval,Study Count
    Chemistry,🧪,text,H2O,,,Water,basics;molecules,0,1,0
    Chemistry,🧪,audio,,/music/na.mp3,Sodium,"Na, sodium",,0,1,0

* Fields are comma separated; quoted fields may contain commas, doubled
  quotes and line breaks.
* Columns are found by header *substring* (case-insensitive), so column
  order is free and optional columns may be missing.
* ``Tags`` holds a ``;``-separated list.
* Single-deck exports leave out the two ``Deck …`` columns.
"""

from __future__ import annotations

import csv
import enum
import io
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Sequence

from db.models import Card, Deck
from core.errors import FormatError

log = logging.getLogger(__name__)

CARD_COLUMNS = [
    "Type", "Front", "Front Audio File", "Front Audio Name", "Back",
    "Tags", "Difficulty", "Interval", "Study Count",
]
DECK_COLUMNS = ["Deck Name", "Deck Emoji"]

TAG_SEPARATOR = ";"

DEFAULT_DIFFICULTY = 0.0
DEFAULT_INTERVAL = 1
DEFAULT_STUDY_COUNT = 0

# Only spaces and tabs are trimmed so that line breaks inside a quoted
# field survive a round trip.
_TRIM = " \t"

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)

# Cells may exceed the csv module's default 128 KiB field limit.
_FIELD_SIZE_LIMIT = 2**31 - 1


class ExportScope(str, enum.Enum):
    DECK = "deck"
    ALL_DECKS = "all"


# ──────────────────────────────────────────────────────────────────────
# Parsing
# ──────────────────────────────────────────────────────────────────────

def parse_csv(content: str) -> List[List[str]]:
    """Split *content* into rows of trimmed fields, dropping blank rows."""
    if csv.field_size_limit() < _FIELD_SIZE_LIMIT:
        csv.field_size_limit(_FIELD_SIZE_LIMIT)
    reader = csv.reader(
        io.StringIO(content.replace("\r", ""), newline=""),
        delimiter=",",
        quotechar='"',
        doublequote=True,
        skipinitialspace=True,
        strict=False,
    )
    rows: List[List[str]] = []
    try:
        for raw in reader:
            fields = [f.strip(_TRIM) for f in raw]
            if any(fields):
                rows.append(fields)
    except csv.Error as exc:
        raise FormatError(f"Malformed CSV: {exc}") from exc
    return rows


def parse_tags(value: str) -> List[str]:
    """``'a; b;;c'`` → ``['a', 'b', 'c']``."""
    return [t.strip() for t in value.split(TAG_SEPARATOR) if t.strip()]


def parse_float(value: str, default: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if math.isfinite(number) else default


def parse_int(value: str, default: int, minimum: int) -> int:
    """Integer with fallback; ``'3.0'`` is accepted, ``'-2'`` below *minimum* is not."""
    try:
        number = int(value)
    except (TypeError, ValueError):
        try:
            as_float = float(value)
        except (TypeError, ValueError):
            return default
        if not math.isfinite(as_float) or not as_float.is_integer():
            return default
        number = int(as_float)
    return number if number >= minimum else default


@dataclass
class CsvCardRow:
    """One data row, with every recognised column pulled out."""

    row_number: int
    card_type: str = ""
    front: str = ""
    front_audio_file: str = ""
    front_audio_name: str = ""
    back: str = ""
    tags: List[str] = field(default_factory=list)
    deck_name: str = ""
    deck_emoji: str = ""
    difficulty: float = DEFAULT_DIFFICULTY
    interval: int = DEFAULT_INTERVAL
    study_count: int = DEFAULT_STUDY_COUNT


def _first(header: Sequence[str], predicate: Callable[[str], bool]) -> int | None:
    for index, name in enumerate(header):
        if predicate(name):
            return index
    return None


@dataclass(frozen=True)
class ColumnMap:
    """Column index per role; ``None`` for columns the file does not have."""

    back: int
    card_type: int | None = None
    front: int | None = None
    front_audio_file: int | None = None
    front_audio_name: int | None = None
    tags: int | None = None
    deck_name: int | None = None
    deck_emoji: int | None = None
    difficulty: int | None = None
    interval: int | None = None
    study_count: int | None = None

    @classmethod
    def from_header(cls, header_row: Sequence[str]) -> "ColumnMap":
        header = [h.strip().lower() for h in header_row]

        back = _first(header, lambda h: "back" in h)
        if back is None:
            raise FormatError("CSV must contain Back column", context={"header": list(header_row)})

        return cls(
            back=back,
            card_type=_first(header, lambda h: "type" in h),
            front=_first(header, lambda h: "front" in h and "audio" not in h),
            front_audio_file=_first(header, lambda h: "front" in h and "audio" in h and "file" in h),
            front_audio_name=_first(header, lambda h: "front" in h and "audio" in h and "name" in h),
            tags=_first(header, lambda h: "tag" in h),
            deck_name=_first(header, lambda h: "deck" in h and "name" in h),
            deck_emoji=_first(header, lambda h: "deck" in h and "emoji" in h),
            difficulty=_first(header, lambda h: "difficulty" in h),
            interval=_first(header, lambda h: "interval" in h),
            study_count=_first(header, lambda h: "study" in h and "count" in h),
        )

    def extract(self, row: Sequence[str], row_number: int) -> CsvCardRow:
        def cell(index: int | None) -> str:
            if index is None or index >= len(row):
                return ""
            return row[index]

        return CsvCardRow(
            row_number=row_number,
            card_type=cell(self.card_type),
            front=cell(self.front),
            front_audio_file=cell(self.front_audio_file),
            front_audio_name=cell(self.front_audio_name),
            back=cell(self.back),
            tags=parse_tags(cell(self.tags)),
            deck_name=cell(self.deck_name),
            deck_emoji=cell(self.deck_emoji),
            difficulty=parse_float(cell(self.difficulty), DEFAULT_DIFFICULTY),
            interval=parse_int(cell(self.interval), DEFAULT_INTERVAL, minimum=1),
            study_count=parse_int(cell(self.study_count), DEFAULT_STUDY_COUNT, minimum=0),
        )


def read_card_rows(content: str) -> List[CsvCardRow]:
    """Parse a whole file into card rows numbered from 1 (the header is row 0).

    Raises ``FormatError`` when there is no data row or no Back column.
    """
    rows = parse_csv(content)
    if len(rows) < 2:
        raise FormatError("CSV file must contain a header row and at least one data row")

    columns = ColumnMap.from_header(rows[0])
    cards = [columns.extract(row, number) for number, row in enumerate(rows[1:], start=1)]
    log.debug("Read %d data rows (columns=%s)", len(cards), columns)
    return cards


# ──────────────────────────────────────────────────────────────────────
# Serialisation
# ──────────────────────────────────────────────────────────────────────

def format_number(value: float | int | None) -> str:
    """``2.0`` → ``'2'``, ``0.35`` → ``'0.35'``."""
    if value is None:
        return "0"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _card_order(card: Card) -> tuple:
    return (card.created_at or _EPOCH, card.id or 0)


def serialize_cards(
    cards: Iterable[Card],
    decks: Iterable[Deck],
    scope: ExportScope,
    resolve_audio: Callable[[str], str] | None = None,
) -> str:
    """Render *cards* in the exchange format.

    *resolve_audio* maps a stored audio name to the value written into the
    ``Front Audio File`` column; by default the stored name is written.
    """
    decks_by_id = {d.id: d for d in decks}
    include_deck = scope is ExportScope.ALL_DECKS

    def deck_of(card: Card) -> Deck | None:
        return decks_by_id.get(card.deck_id)

    if include_deck:
        def sort_key(card: Card) -> tuple:
            name = deck_of(card).name if deck_of(card) else ""
            return (name.casefold(), name, card.deck_id) + _card_order(card)
    else:
        sort_key = _card_order

    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n", quoting=csv.QUOTE_MINIMAL)
    writer.writerow((DECK_COLUMNS if include_deck else []) + CARD_COLUMNS)

    count = 0
    for card in sorted(cards, key=sort_key):
        audio_file = card.front_audio_path or ""
        if audio_file and resolve_audio is not None:
            audio_file = resolve_audio(audio_file)

        row = [
            card.card_type.value,
            card.front or "",
            audio_file,
            card.front_audio_name or "",
            card.back or "",
            TAG_SEPARATOR.join(card.tags or []),
            format_number(card.difficulty),
            format_number(card.interval),
            format_number(card.study_count),
        ]
        if include_deck:
            deck = deck_of(card)
            row = [deck.name if deck else "", (deck.emoji or "") if deck else ""] + row
        writer.writerow(row)
        count += 1

    log.debug("Serialised %d cards (scope=%s)", count, scope.value)
    return buf.getvalue()
