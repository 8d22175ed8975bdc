"""
FlashDeck – Main application window
====================================
Ties together the sidebar, deck viewer, study screen and the import and
settings dialogs into a single CustomTkinter application.
"""

from __future__ import annotations

import customtkinter as ctk

from db.store import Store
from core.audio_files import AudioFileManager
from core.settings import load_settings
from ui.widgets import Theme, apply_appearance
from ui.sidebar import Sidebar
from ui.deck_view import DeckView
from ui.study_view import StudyView
from ui.import_dialog import ImportDialog
from ui.settings_dialog import SettingsDialog


class FlashDeckApp(ctk.CTk):
    """Root application window."""

    APP_TITLE = "FlashDeck — Flashcards"
    WIDTH = 1200
    HEIGHT = 800

    def __init__(self, store: Store, audio: AudioFileManager) -> None:
        super().__init__()

        self._store = store
        self._audio = audio

        # ── Window setup ──
        self.title(self.APP_TITLE)
        self.geometry(f"{self.WIDTH}x{self.HEIGHT}")
        self.minsize(800, 600)
        self.configure(fg_color=Theme.BG)

        apply_appearance(load_settings(store).theme)
        ctk.set_default_color_theme("blue")

        # ── Layout: sidebar | content ──
        self.grid_rowconfigure(0, weight=1)
        self.grid_columnconfigure(1, weight=1)

        self._sidebar = Sidebar(
            self, store, audio,
            on_deck_select=self._on_deck_select,
            on_deck_deleted=self._on_deck_deleted,
            on_import=self._on_import,
            on_settings=self._on_settings,
            on_deck_changed=self._on_deck_changed,
        )
        self._sidebar.grid(row=0, column=0, sticky="ns")

        self._content = ctk.CTkFrame(self, fg_color=Theme.BG, corner_radius=0)
        self._content.grid(row=0, column=1, sticky="nsew")
        self._content.grid_rowconfigure(0, weight=1)
        self._content.grid_columnconfigure(0, weight=1)

        self._deck_view = DeckView(
            self._content, store, audio,
            on_study=self._on_study,
            on_cards_changed=self._sidebar.refresh,
        )
        self._deck_view.grid(row=0, column=0, sticky="nsew")

        self._study_view = StudyView(self._content, store, audio, on_finish=self._on_study_finish)

        self._current_deck_id: int | None = None

    # ------------------------------------------------------------------
    # Callbacks
    # ------------------------------------------------------------------

    def _on_deck_select(self, deck_id: int) -> None:
        self._current_deck_id = deck_id
        self._study_view.grid_forget()
        self._deck_view.grid(row=0, column=0, sticky="nsew")
        self._deck_view.show_deck(deck_id)

    def _on_deck_deleted(self, deck_id: int) -> None:
        if self._current_deck_id == deck_id:
            self._current_deck_id = None
            self._deck_view.clear()

    def _on_deck_changed(self, deck_id: int) -> None:
        if self._current_deck_id == deck_id:
            self._deck_view.show_deck(deck_id)

    def _on_study(self, deck_id: int) -> None:
        self._current_deck_id = deck_id
        self._deck_view.grid_forget()
        self._study_view.grid(row=0, column=0, sticky="nsew")
        self._study_view.start_session(deck_id)

    def _on_study_finish(self) -> None:
        """Back to the deck view, with refreshed counters."""
        self._study_view.grid_forget()
        self._deck_view.grid(row=0, column=0, sticky="nsew")
        if self._current_deck_id:
            self._deck_view.show_deck(self._current_deck_id)
        self._sidebar.refresh()

    def _on_import(self) -> None:
        ImportDialog(
            self, self._store, self._audio,
            target_deck_id=self._current_deck_id,
            on_complete=self._after_import,
        )

    def _on_settings(self) -> None:
        SettingsDialog(self, self._store)

    def _after_import(self) -> None:
        self._sidebar.refresh()
        if self._current_deck_id:
            self._deck_view.show_deck(self._current_deck_id)
