"""
FlashDeck – Deck details dialog
================================
Edits a deck's name, emoji, description and tags.
"""

from __future__ import annotations

from tkinter import messagebox
from typing import Callable

import customtkinter as ctk

from db.models import Deck
from db.store import Store
from core.csv_codec import TAG_SEPARATOR, parse_tags
from core.deck_ops import update_deck_details
from core.errors import FlashDeckError
from ui.widgets import Theme, AccentButton, DangerButton, font


class DeckDialog(ctk.CTkToplevel):

    WIDTH = 480
    HEIGHT = 400

    def __init__(
        self,
        master,
        store: Store,
        deck: Deck,
        on_saved: Callable[[], None] | None = None,
        **kw,
    ):
        super().__init__(master, **kw)
        self.title("Edit Deck — FlashDeck")
        self.geometry(f"{self.WIDTH}x{self.HEIGHT}")
        self.resizable(False, False)
        self.configure(fg_color=Theme.BG)
        self.grab_set()

        self._store = store
        self._deck_id = deck.id
        self._on_saved = on_saved

        wrap = ctk.CTkFrame(self, fg_color="transparent")
        wrap.pack(fill="both", expand=True, padx=24, pady=20)

        self._name = self._entry(wrap, "Name", deck.name)
        self._emoji = self._entry(wrap, "Emoji", deck.emoji or "", width=80)
        self._description = self._entry(wrap, "Description", deck.description or "")
        self._tags = self._entry(wrap, "Tags (separated by ;)",
                                 f"{TAG_SEPARATOR} ".join(deck.tags or []))

        btns = ctk.CTkFrame(wrap, fg_color="transparent")
        btns.pack(fill="x", side="bottom")
        AccentButton(btns, text="Save", command=self._save, width=110).pack(side="right")
        DangerButton(btns, text="Cancel", command=self.destroy, width=90).pack(side="right", padx=8)

    def _entry(self, parent, label: str, value: str, width: int = 420) -> ctk.CTkEntry:
        ctk.CTkLabel(parent, text=label, font=font(12, "bold"),
                     text_color=Theme.TEXT_SECONDARY).pack(anchor="w")
        entry = ctk.CTkEntry(parent, font=font(13), width=width)
        entry.insert(0, value)
        entry.pack(anchor="w", pady=(2, 10))
        return entry

    def _save(self) -> None:
        try:
            update_deck_details(
                self._store, self._deck_id,
                name=self._name.get(),
                description=self._description.get(),
                emoji=self._emoji.get(),
                tags=parse_tags(self._tags.get()),
            )
        except FlashDeckError as exc:
            messagebox.showerror("Could not save deck", str(exc), parent=self)
            return
        if self._on_saved:
            self._on_saved()
        self.destroy()
