"""
FlashDeck – CSV import dialog
==============================
Modal-style workflow:
  pick a CSV file → choose the destination → import → summary.

The destination is either one existing deck, or the ``Deck Name`` column
of the file (decks that do not exist yet are created).
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from tkinter import filedialog
from typing import Callable

import customtkinter as ctk

from db.store import Store
from core.audio_files import AudioFileManager
from core.csv_codec import CARD_COLUMNS, DECK_COLUMNS
from core.csv_transfer import ImportResult, import_csv_file
from ui.widgets import Theme, AccentButton, DangerButton, GhostButton, Separator, font

log = logging.getLogger(__name__)

_FROM_FILE = "Use the 'Deck Name' column"


class ImportDialog(ctk.CTkToplevel):
    """Top-level window that imports one CSV file."""

    WIDTH = 760
    HEIGHT = 560

    def __init__(
        self,
        master,
        store: Store,
        audio: AudioFileManager,
        target_deck_id: int | None = None,
        on_complete: Callable[[], None] | None = None,
        **kw,
    ):
        super().__init__(master, **kw)

        self.title("Import CSV — FlashDeck")
        self.geometry(f"{self.WIDTH}x{self.HEIGHT}")
        self.resizable(False, False)
        self.configure(fg_color=Theme.BG)
        self.grab_set()

        self._store = store
        self._audio = audio
        self._target_deck_id = target_deck_id
        self._on_complete = on_complete
        self._filepath: str | None = None

        self._build_step_pick()

    # ==================================================================
    # Step 1 – Pick file
    # ==================================================================

    def _build_step_pick(self) -> None:
        self._clear()

        wrap = ctk.CTkFrame(self, fg_color="transparent")
        wrap.pack(expand=True)

        ctk.CTkLabel(wrap, text="📥  Import a CSV file", font=font(22, "bold"),
                     text_color=Theme.TEXT_PRIMARY).pack(pady=(0, 8))
        ctk.CTkLabel(
            wrap,
            text="The first row must be a header with at least a Back column.\n"
                 "Columns are matched by name, so their order does not matter.",
            font=font(14), text_color=Theme.TEXT_SECONDARY, justify="center",
        ).pack(pady=(0, 12))

        hint_frame = ctk.CTkFrame(wrap, fg_color=Theme.BG_CARD, corner_radius=12)
        hint_frame.pack(padx=24, pady=(0, 20), fill="x")
        ctk.CTkLabel(hint_frame, text="📋  Recognised columns:", font=font(13, "bold"),
                     text_color=Theme.ACCENT).pack(anchor="w", padx=16, pady=(12, 4))
        ctk.CTkLabel(
            hint_frame,
            text=",".join(DECK_COLUMNS + CARD_COLUMNS) + "\n"
                 "Type is text, audio or mixed · Tags are separated by ;\n"
                 "Audio paths may be relative to the CSV file",
            font=ctk.CTkFont(family="Consolas", size=12),
            text_color=Theme.TEXT_SECONDARY, justify="left",
        ).pack(anchor="w", padx=24, pady=(0, 12))

        AccentButton(wrap, text="Choose File…", command=self._pick_file, width=180).pack()

    def _pick_file(self) -> None:
        path = filedialog.askopenfilename(
            parent=self,
            title="Select a CSV file",
            filetypes=[("CSV", "*.csv"), ("Text", "*.txt"), ("All files", "*.*")],
        )
        if not path:
            return
        self._filepath = path
        self._build_step_target()

    # ==================================================================
    # Step 2 – Destination
    # ==================================================================

    def _build_step_target(self) -> None:
        self._clear()

        wrap = ctk.CTkFrame(self, fg_color="transparent")
        wrap.pack(expand=True)

        ctk.CTkLabel(wrap, text=f"📄  {Path(self._filepath).name}", font=font(18, "bold"),
                     text_color=Theme.TEXT_PRIMARY).pack(pady=(0, 16))
        ctk.CTkLabel(wrap, text="Import cards into:", font=font(13),
                     text_color=Theme.TEXT_SECONDARY).pack(anchor="w")

        decks = sorted(self._store.list_decks(), key=lambda d: d.name.casefold())
        self._deck_choices = {_FROM_FILE: None}
        for deck in decks:
            self._deck_choices[f"{deck.emoji or '📚'} {deck.name}  (#{deck.id})"] = deck.id

        combo = ctk.CTkComboBox(
            wrap, values=list(self._deck_choices), width=380, state="readonly",
            font=font(13), dropdown_font=font(13),
            fg_color=Theme.BG_CARD, border_color=Theme.BORDER, button_color=Theme.ACCENT,
        )
        preselected = next(
            (label for label, did in self._deck_choices.items() if did == self._target_deck_id),
            _FROM_FILE,
        )
        combo.set(preselected)
        combo.pack(pady=(4, 20))

        btns = ctk.CTkFrame(wrap, fg_color="transparent")
        btns.pack()
        DangerButton(btns, text="Cancel", command=self.destroy, width=90).pack(side="left", padx=6)
        AccentButton(btns, text="Import", width=140,
                     command=lambda: self._start(self._deck_choices[combo.get()])).pack(side="left", padx=6)

    # ==================================================================
    # Step 3 – Processing
    # ==================================================================

    def _start(self, target_deck_id: int | None) -> None:
        self._clear()

        wrap = ctk.CTkFrame(self, fg_color="transparent")
        wrap.pack(expand=True)
        ctk.CTkLabel(wrap, text="⏳  Importing…", font=font(20, "bold"),
                     text_color=Theme.ACCENT).pack(pady=(0, 12))
        pbar = ctk.CTkProgressBar(
            wrap, fg_color=Theme.BG_CARD, progress_color=Theme.ACCENT,
            width=400, height=8, corner_radius=4, mode="indeterminate",
        )
        pbar.pack(pady=(16, 0))
        pbar.start()

        threading.Thread(target=self._run_import, args=(target_deck_id,), daemon=True).start()

    def _run_import(self, target_deck_id: int | None) -> None:
        try:
            result = import_csv_file(self._store, self._audio, self._filepath, target_deck_id)
        except Exception as exc:
            log.exception("CSV import of %s crashed", self._filepath)
            message = str(exc) or type(exc).__name__
            self.after(0, lambda: self._show_error(message))
            return
        self.after(0, lambda: self._build_step_summary(result))

    # ==================================================================
    # Step 4 – Summary
    # ==================================================================

    def _build_step_summary(self, result: ImportResult) -> None:
        if not result.success:
            self._show_error(result.error or "Import failed")
            return

        self._clear()
        if self._on_complete:
            self._on_complete()

        hdr = ctk.CTkFrame(self, fg_color="transparent")
        hdr.pack(fill="x", padx=24, pady=(20, 0))
        ctk.CTkLabel(hdr, text=f"✔  Imported {result.imported} cards", font=font(18, "bold"),
                     text_color=Theme.SUCCESS).pack(side="left")
        AccentButton(hdr, text="Close", command=self.destroy, width=100).pack(side="right")

        if result.decks_created:
            ctk.CTkLabel(
                self, text="New decks: " + ", ".join(result.decks_created),
                font=font(13), text_color=Theme.TEXT_SECONDARY, wraplength=700, justify="left",
            ).pack(anchor="w", padx=24, pady=(8, 0))

        Separator(self).pack(fill="x", padx=24, pady=(12, 0))

        if not result.errors:
            ctk.CTkLabel(self, text="No rows were skipped.", font=font(13),
                         text_color=Theme.TEXT_MUTED).pack(pady=24)
            return

        ctk.CTkLabel(self, text=f"⚠  {len(result.errors)} rows skipped:", font=font(13, "bold"),
                     text_color=Theme.WARNING).pack(anchor="w", padx=24, pady=(12, 4))
        scroll = ctk.CTkScrollableFrame(
            self, fg_color="transparent",
            scrollbar_button_color=Theme.BORDER,
            scrollbar_button_hover_color=Theme.ACCENT,
        )
        scroll.pack(fill="both", expand=True, padx=20, pady=8)
        for message in result.errors:
            ctk.CTkLabel(scroll, text=message, font=font(12), text_color=Theme.TEXT_PRIMARY,
                         anchor="w", justify="left", wraplength=680).pack(fill="x", pady=1)

    # ==================================================================
    # Helpers
    # ==================================================================

    def _show_error(self, msg: str) -> None:
        self._clear()
        wrap = ctk.CTkFrame(self, fg_color="transparent")
        wrap.pack(expand=True)
        ctk.CTkLabel(wrap, text="❌  Import failed", font=font(20, "bold"),
                     text_color=Theme.DANGER).pack(pady=(0, 8))
        ctk.CTkLabel(wrap, text=msg, wraplength=600, font=font(13),
                     text_color=Theme.TEXT_SECONDARY).pack(pady=(0, 20))
        GhostButton(wrap, text="← Try again", command=self._build_step_pick).pack()

    def _clear(self) -> None:
        for w in self.winfo_children():
            w.destroy()
