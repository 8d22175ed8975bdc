"""
FlashDeck – Application settings
=================================
Typed view over the store's key/value ``settings`` table. Attributes are
snake_case; rows are stored under the documented camelCase keys
(``cardsPerSession`` …).
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any

from db.store import Store
from core.errors import ValidationError

log = logging.getLogger(__name__)

THEMES = ("light", "dark", "system")
STUDY_MODES = ("standard", "spaced-repetition", "shuffle")


@dataclass(frozen=True)
class AppSettings:
    theme: str = "system"
    study_mode: str = "spaced-repetition"
    cards_per_session: int = 20
    show_timer: bool = True
    enable_sounds: bool = False


DEFAULTS = AppSettings()

# attribute → storage key
STORAGE_KEYS = {
    "theme": "theme",
    "study_mode": "studyMode",
    "cards_per_session": "cardsPerSession",
    "show_timer": "showTimer",
    "enable_sounds": "enableSounds",
}


def _validate(name: str, value: Any) -> Any:
    if name == "theme":
        if value not in THEMES:
            raise ValidationError(f"theme must be one of {', '.join(THEMES)}")
    elif name == "study_mode":
        if value not in STUDY_MODES:
            raise ValidationError(f"study mode must be one of {', '.join(STUDY_MODES)}")
    elif name == "cards_per_session":
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise ValidationError("cards per session must be a positive integer")
    elif name in ("show_timer", "enable_sounds"):
        if not isinstance(value, bool):
            raise ValidationError(f"{name} must be true or false")
    else:
        raise ValidationError(f"Unknown setting: {name}")
    return value


def load_settings(store: Store) -> AppSettings:
    """Stored values over defaults; invalid stored values fall back to the default."""
    stored = store.get_settings()
    values = asdict(DEFAULTS)
    for name in values:
        key = STORAGE_KEYS[name]
        if key not in stored:
            continue
        try:
            values[name] = _validate(name, stored[key])
        except ValidationError as exc:
            log.warning("Ignoring stored setting %s=%r: %s", key, stored[key], exc)
    return AppSettings(**values)


def update_settings(store: Store, **changes: Any) -> AppSettings:
    """Validate every change first, then write them under their storage keys."""
    for name, value in changes.items():
        _validate(name, value)
    for name, value in changes.items():
        store.set_setting(STORAGE_KEYS[name], value)
    log.info("Updated settings: %s", ", ".join(sorted(changes)))
    return load_settings(store)
