"""
FlashDeck – Deck viewer (card table)
=====================================
Shows a deck's stats and cards, and offers Study, deck editing and
adding, editing or deleting cards.
"""

from __future__ import annotations

from tkinter import messagebox
from typing import Callable

import customtkinter as ctk

from db.models import Card, Deck
from db.store import Store
from core.audio_files import AudioFileManager
from core.card_types import front_label
from core.deck_ops import delete_card
from core.errors import FlashDeckError
from core.study import StudyStats, get_study_stats
from ui.card_dialog import CardDialog
from ui.deck_dialog import DeckDialog
from ui.widgets import Theme, AccentButton, GhostButton, StatCard, Separator, font

_PLACEHOLDER = "← Select a deck from the sidebar to view its cards"


class DeckView(ctk.CTkFrame):
    """Content panel that shows deck metadata, stats, and card list."""

    def __init__(
        self,
        master,
        store: Store,
        audio: AudioFileManager,
        on_study: Callable[[int], None] | None = None,
        on_cards_changed: Callable[[], None] | None = None,
        **kw,
    ):
        kw.setdefault("fg_color", Theme.BG)
        kw.setdefault("corner_radius", 0)
        super().__init__(master, **kw)

        self._store = store
        self._audio = audio
        self._on_study = on_study
        self._on_cards_changed = on_cards_changed
        self._deck_id: int | None = None

        self.clear()

    # ------------------------------------------------------------------
    # Public
    # ------------------------------------------------------------------

    def show_deck(self, deck_id: int) -> None:
        """Populate the view with a specific deck's data."""
        deck = self._store.get_deck(deck_id)
        if deck is None:
            self.clear()
            return

        self._deck_id = deck_id
        for w in self.winfo_children():
            w.destroy()

        stats = get_study_stats(self._store, deck_id)
        cards = self._store.list_cards_by_deck(deck_id)
        self._build_header(deck, stats, has_cards=bool(cards))
        self._build_card_list(cards)

    def clear(self) -> None:
        self._deck_id = None
        for w in self.winfo_children():
            w.destroy()
        ctk.CTkLabel(
            self, text=_PLACEHOLDER, font=font(15), text_color=Theme.TEXT_MUTED,
        ).pack(expand=True)

    @property
    def deck_id(self) -> int | None:
        return self._deck_id

    # ------------------------------------------------------------------
    # Internal builders
    # ------------------------------------------------------------------

    def _build_header(self, deck: Deck, stats: StudyStats, has_cards: bool) -> None:
        header = ctk.CTkFrame(self, fg_color="transparent")
        header.pack(fill="x", padx=28, pady=(24, 0))

        title_row = ctk.CTkFrame(header, fg_color="transparent")
        title_row.pack(fill="x")

        ctk.CTkLabel(
            title_row, text=f"{deck.emoji or '📚'}  {deck.name}",
            font=font(22, "bold"), text_color=Theme.TEXT_PRIMARY,
        ).pack(side="left")

        if has_cards:
            AccentButton(
                title_row, text="▶  Study",
                command=lambda: self._on_study(deck.id) if self._on_study else None,
                width=120,
            ).pack(side="right")
        AccentButton(
            title_row, text="＋ Card", command=self._add_card, width=100,
            fg_color=Theme.BG_CARD, hover_color=Theme.BG_CARD_HOVER,
            text_color=Theme.TEXT_PRIMARY,
        ).pack(side="right", padx=8)
        GhostButton(
            title_row, text="✎ Edit deck", width=100,
            command=lambda: DeckDialog(self, self._store, deck, on_saved=self._changed),
        ).pack(side="right")

        if deck.description:
            ctk.CTkLabel(
                header, text=deck.description, font=font(12), text_color=Theme.TEXT_MUTED,
            ).pack(anchor="w", pady=(4, 0))

        stat_row = ctk.CTkFrame(header, fg_color="transparent")
        stat_row.pack(fill="x", pady=(16, 0))

        for label, value, color in [
            ("Cards", str(stats.total_cards), Theme.TEXT_PRIMARY),
            ("Studied today", str(stats.cards_studied_today), Theme.ACCENT),
            ("Accuracy", f"{round(stats.accuracy)}%", Theme.SUCCESS),
            ("Time", f"{round(stats.time_spent)}m", Theme.WARNING),
        ]:
            StatCard(stat_row, label=label, value=value, color=color).pack(
                side="left", padx=(0, 12), fill="x", expand=True)

        Separator(self).pack(fill="x", padx=28, pady=(20, 0))

    def _build_card_list(self, cards: list[Card]) -> None:
        if not cards:
            ctk.CTkLabel(
                self, text="No cards yet. Add one or import a CSV file.",
                font=font(14), text_color=Theme.TEXT_MUTED,
            ).pack(pady=40)
            return

        scroll = ctk.CTkScrollableFrame(
            self, fg_color="transparent",
            scrollbar_button_color=Theme.BORDER,
            scrollbar_button_hover_color=Theme.ACCENT,
        )
        scroll.pack(fill="both", expand=True, padx=24, pady=12)

        columns = [("Type", 60), ("Front", 220), ("Back", 220), ("Tags", 120), ("Studied", 60)]

        hdr = ctk.CTkFrame(scroll, fg_color=Theme.BG_CARD, corner_radius=8, height=36)
        hdr.pack(fill="x", pady=(0, 6))
        for col, w in columns:
            ctk.CTkLabel(
                hdr, text=col, width=w, font=font(12, "bold"), text_color=Theme.TEXT_MUTED,
            ).pack(side="left", padx=8, pady=6)

        for card in cards:
            row = ctk.CTkFrame(scroll, fg_color=Theme.BG_CARD, corner_radius=8, height=36)
            row.pack(fill="x", pady=2)

            values = [
                card.card_type.value,
                front_label(card),
                card.back,
                ", ".join(card.tags or []),
                str(card.study_count),
            ]
            for text, (_, w) in zip(values, columns):
                ctk.CTkLabel(
                    row, text=text, width=w, font=font(13),
                    text_color=Theme.TEXT_PRIMARY, anchor="w",
                ).pack(side="left", padx=8, pady=6)

            GhostButton(
                row, text="🗑", width=32, anchor="center",
                command=lambda cid=card.id: self._delete_card(cid),
            ).pack(side="right", padx=6)
            GhostButton(
                row, text="✏", width=32, anchor="center",
                command=lambda c=card: self._edit_card(c),
            ).pack(side="right")

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def _add_card(self) -> None:
        if self._deck_id is None:
            return
        CardDialog(self, self._store, self._audio, self._deck_id, on_saved=self._changed)

    def _edit_card(self, card: Card) -> None:
        CardDialog(self, self._store, self._audio, card.deck_id, card=card, on_saved=self._changed)

    def _delete_card(self, card_id: int) -> None:
        if not messagebox.askyesno("Delete card", "Delete this card?", icon="warning"):
            return
        try:
            delete_card(self._store, self._audio, card_id)
        except FlashDeckError as exc:
            messagebox.showerror("Delete failed", str(exc))
        self._changed()

    def _changed(self) -> None:
        if self._deck_id is not None:
            self.show_deck(self._deck_id)
        if self._on_cards_changed:
            self._on_cards_changed()
