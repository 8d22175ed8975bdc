"""
FlashDeck – Card dialog
========================
Form for creating or editing a text, audio or mixed card. Audio is picked
from disk and copied into the private audio store when the card is saved;
when editing, a card keeps its current audio unless a new file is picked.
"""

from __future__ import annotations

from pathlib import Path
from tkinter import filedialog, messagebox
from typing import Callable

import customtkinter as ctk

from db.models import Card, CardType
from db.store import Store
from core.audio_files import SUPPORTED_AUDIO_EXTENSIONS, AudioFileManager
from core.card_types import needs_audio, needs_front_text
from core.csv_codec import TAG_SEPARATOR, parse_tags
from core.deck_ops import create_card_from_file, update_card
from core.errors import FlashDeckError
from ui.widgets import Theme, AccentButton, DangerButton, GhostButton, font


class CardDialog(ctk.CTkToplevel):

    WIDTH = 520
    HEIGHT = 460

    def __init__(
        self,
        master,
        store: Store,
        audio: AudioFileManager,
        deck_id: int,
        card: Card | None = None,
        on_saved: Callable[[], None] | None = None,
        **kw,
    ):
        super().__init__(master, **kw)
        self.title(("Edit Card" if card else "New Card") + " — FlashDeck")
        self.geometry(f"{self.WIDTH}x{self.HEIGHT}")
        self.resizable(False, False)
        self.configure(fg_color=Theme.BG)
        self.grab_set()

        self._store = store
        self._audio = audio
        self._deck_id = deck_id
        self._card = card
        self._on_saved = on_saved
        self._audio_source: str | None = None

        wrap = ctk.CTkFrame(self, fg_color="transparent")
        wrap.pack(fill="both", expand=True, padx=24, pady=20)

        ctk.CTkLabel(wrap, text="Card type", font=font(12, "bold"),
                     text_color=Theme.TEXT_SECONDARY).pack(anchor="w")
        self._type = ctk.CTkSegmentedButton(
            wrap, values=[t.value for t in CardType], command=self._on_type_change,
        )
        self._type.set(CardType.TEXT.value)
        self._type.pack(anchor="w", pady=(2, 12))

        self._front = self._entry(wrap, "Front")
        self._audio_row = ctk.CTkFrame(wrap, fg_color="transparent")
        self._audio_label = ctk.CTkLabel(self._audio_row, text="No audio file selected",
                                         font=font(12), text_color=Theme.TEXT_MUTED)
        self._audio_label.pack(side="left")
        GhostButton(self._audio_row, text="🎵 Choose…", width=110,
                    command=self._pick_audio).pack(side="right")
        self._back = self._entry(wrap, "Back")
        self._tags = self._entry(wrap, "Tags (separated by ;)")

        btns = ctk.CTkFrame(wrap, fg_color="transparent")
        btns.pack(fill="x", side="bottom")
        AccentButton(btns, text="Save", command=self._save, width=110).pack(side="right")
        DangerButton(btns, text="Cancel", command=self.destroy, width=90).pack(side="right", padx=8)

        if card is not None:
            self._fill(card)
        self._on_type_change(self._type.get())

    def _entry(self, parent, label: str) -> ctk.CTkEntry:
        ctk.CTkLabel(parent, text=label, font=font(12, "bold"),
                     text_color=Theme.TEXT_SECONDARY).pack(anchor="w")
        entry = ctk.CTkEntry(parent, font=font(13), width=460)
        entry.pack(anchor="w", pady=(2, 10))
        return entry

    def _fill(self, card: Card) -> None:
        self._type.set(card.card_type.value)
        self._front.insert(0, card.front or "")
        self._back.insert(0, card.back or "")
        self._tags.insert(0, f"{TAG_SEPARATOR} ".join(card.tags or []))
        if card.front_audio_path:
            self._audio_label.configure(
                text=card.front_audio_name or card.front_audio_path,
                text_color=Theme.TEXT_PRIMARY,
            )

    def _on_type_change(self, value: str) -> None:
        card_type = CardType(value)
        self._front.configure(state="normal" if needs_front_text(card_type) else "disabled")
        if needs_audio(card_type):
            self._audio_row.pack(fill="x", pady=(0, 10), after=self._front)
        else:
            self._audio_row.pack_forget()

    def _pick_audio(self) -> None:
        pattern = " ".join(f"*{ext}" for ext in SUPPORTED_AUDIO_EXTENSIONS)
        path = filedialog.askopenfilename(
            parent=self, title="Select an audio file",
            filetypes=[("Audio", pattern), ("All files", "*.*")],
        )
        if path:
            self._audio_source = path
            self._audio_label.configure(text=Path(path).name, text_color=Theme.TEXT_PRIMARY)

    def _save(self) -> None:
        card_type = CardType(self._type.get())
        fields = dict(
            back=self._back.get(),
            card_type=card_type,
            front=self._front.get() if needs_front_text(card_type) else None,
            audio_source=self._audio_source if needs_audio(card_type) else None,
            tags=parse_tags(self._tags.get()),
        )
        try:
            if self._card is None:
                create_card_from_file(self._store, self._audio, self._deck_id, **fields)
            else:
                update_card(self._store, self._audio, self._card.id, **fields)
        except (FlashDeckError, OSError) as exc:
            messagebox.showerror("Could not save card", str(exc), parent=self)
            return
        if self._on_saved:
            self._on_saved()
        self.destroy()
