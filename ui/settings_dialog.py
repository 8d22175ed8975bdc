"""
FlashDeck – Settings dialog
============================
Theme, study mode, cards per session, the study timer and sounds.
"""

from __future__ import annotations

from tkinter import messagebox
from typing import Callable

import customtkinter as ctk

from db.store import Store
from core.errors import FlashDeckError
from core.settings import STUDY_MODES, THEMES, load_settings, update_settings
from ui.widgets import Theme, AccentButton, DangerButton, apply_appearance, font


class SettingsDialog(ctk.CTkToplevel):

    WIDTH = 440
    HEIGHT = 420

    def __init__(
        self,
        master,
        store: Store,
        on_saved: Callable[[], None] | None = None,
        **kw,
    ):
        super().__init__(master, **kw)
        self.title("Settings — FlashDeck")
        self.geometry(f"{self.WIDTH}x{self.HEIGHT}")
        self.resizable(False, False)
        self.configure(fg_color=Theme.BG)
        self.grab_set()

        self._store = store
        self._on_saved = on_saved
        current = load_settings(store)

        wrap = ctk.CTkFrame(self, fg_color="transparent")
        wrap.pack(fill="both", expand=True, padx=24, pady=20)

        self._label(wrap, "Theme")
        self._theme = ctk.CTkSegmentedButton(wrap, values=list(THEMES))
        self._theme.set(current.theme)
        self._theme.pack(anchor="w", pady=(2, 12))

        self._label(wrap, "Study mode")
        self._study_mode = ctk.CTkOptionMenu(wrap, values=list(STUDY_MODES), width=220,
                                             fg_color=Theme.ACCENT, font=font(13))
        self._study_mode.set(current.study_mode)
        self._study_mode.pack(anchor="w", pady=(2, 12))

        self._label(wrap, "Cards per session")
        self._cards = ctk.CTkEntry(wrap, width=80, font=font(13))
        self._cards.insert(0, str(current.cards_per_session))
        self._cards.pack(anchor="w", pady=(2, 12))

        self._show_timer = ctk.CTkSwitch(wrap, text="Show timer while studying", font=font(13))
        if current.show_timer:
            self._show_timer.select()
        self._show_timer.pack(anchor="w", pady=4)

        self._enable_sounds = ctk.CTkSwitch(wrap, text="Play card audio automatically",
                                            font=font(13))
        if current.enable_sounds:
            self._enable_sounds.select()
        self._enable_sounds.pack(anchor="w", pady=4)

        btns = ctk.CTkFrame(wrap, fg_color="transparent")
        btns.pack(fill="x", side="bottom")
        AccentButton(btns, text="Save", command=self._save, width=110).pack(side="right")
        DangerButton(btns, text="Cancel", command=self.destroy, width=90).pack(side="right", padx=8)

    @staticmethod
    def _label(parent, text: str) -> None:
        ctk.CTkLabel(parent, text=text, font=font(12, "bold"),
                     text_color=Theme.TEXT_SECONDARY).pack(anchor="w")

    def _save(self) -> None:
        raw_cards = self._cards.get().strip()
        if not raw_cards.isdigit():
            messagebox.showerror("Invalid value", "Cards per session must be a whole number.",
                                 parent=self)
            return
        try:
            saved = update_settings(
                self._store,
                theme=self._theme.get(),
                study_mode=self._study_mode.get(),
                cards_per_session=int(raw_cards),
                show_timer=bool(self._show_timer.get()),
                enable_sounds=bool(self._enable_sounds.get()),
            )
        except FlashDeckError as exc:
            messagebox.showerror("Could not save settings", str(exc), parent=self)
            return
        apply_appearance(saved.theme)
        if self._on_saved:
            self._on_saved()
        self.destroy()
