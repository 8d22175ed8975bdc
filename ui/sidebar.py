"""
FlashDeck – Sidebar
====================
Deck list with a context menu per deck (rename, edit details, export,
delete) and the global actions: new deck, CSV import, export of every
deck, settings.
"""

from __future__ import annotations

import logging
import threading
import tkinter as tk
from tkinter import filedialog, messagebox
from typing import Callable

import customtkinter as ctk

from db.models import Deck
from db.store import Store
from core.audio_files import AudioFileManager
from core.csv_transfer import ExportResult, default_export_filename, export_csv
from core.deck_ops import create_deck, delete_deck, rename_deck
from core.errors import FlashDeckError
from ui.deck_dialog import DeckDialog
from ui.widgets import Theme, AccentButton, GhostButton, Separator, font


log = logging.getLogger(__name__)


class Sidebar(ctk.CTkFrame):
    """Left-hand navigation listing every deck."""

    def __init__(
        self,
        master,
        store: Store,
        audio: AudioFileManager,
        on_deck_select: Callable[[int], None] | None = None,
        on_deck_deleted: Callable[[int], None] | None = None,
        on_import: Callable[[], None] | None = None,
        on_settings: Callable[[], None] | None = None,
        on_deck_changed: Callable[[int], None] | None = None,
        **kw,
    ):
        kw.setdefault("fg_color", Theme.BG_SIDEBAR)
        kw.setdefault("corner_radius", 0)
        kw.setdefault("width", 270)
        super().__init__(master, **kw)

        self._store = store
        self._audio = audio
        self._on_deck_select = on_deck_select
        self._on_deck_deleted = on_deck_deleted
        self._on_import = on_import
        self._on_settings = on_settings
        self._on_deck_changed = on_deck_changed
        self._selected_deck_id: int | None = None

        # ── Header ──
        ctk.CTkLabel(
            self, text="🃏  FlashDeck", font=font(18, "bold"), text_color=Theme.TEXT_PRIMARY,
        ).pack(anchor="w", padx=16, pady=(20, 6))

        Separator(self).pack(fill="x", padx=16, pady=(6, 8))

        # ── Action buttons ──
        btn_row = ctk.CTkFrame(self, fg_color="transparent")
        btn_row.pack(fill="x", padx=12, pady=(0, 4))
        AccentButton(btn_row, text="＋ Deck", command=self._create_deck,
                     width=110).pack(side="left", padx=4)
        AccentButton(btn_row, text="📥 Import", command=self._trigger_import,
                     width=110).pack(side="left", padx=4)

        GhostButton(self, text="📤  Export all decks…",
                    command=lambda: self._export(None)).pack(fill="x", padx=12, pady=(6, 0))
        GhostButton(self, text="⚙  Settings",
                    command=self._open_settings).pack(fill="x", padx=12, pady=(2, 0))

        Separator(self).pack(fill="x", padx=16, pady=(8, 4))

        # ── Scrollable deck list ──
        self._list_frame = ctk.CTkScrollableFrame(
            self, fg_color="transparent", corner_radius=0,
            scrollbar_button_color=Theme.BORDER,
            scrollbar_button_hover_color=Theme.ACCENT,
        )
        self._list_frame.pack(fill="both", expand=True, padx=4, pady=4)

        self.refresh()

    # ==================================================================
    #  PUBLIC
    # ==================================================================

    def refresh(self) -> None:
        """Rebuild the deck list from the store."""
        for w in self._list_frame.winfo_children():
            w.destroy()

        decks = sorted(self._store.list_decks(), key=lambda d: d.name.casefold())
        if not decks:
            ctk.CTkLabel(
                self._list_frame,
                text="No decks yet.\nCreate one or import a CSV file.",
                text_color=Theme.TEXT_MUTED, font=font(13), justify="center",
            ).pack(pady=40)
            return

        for deck in decks:
            self._render_deck(deck)

    # ==================================================================
    #  RENDER
    # ==================================================================

    def _render_deck(self, deck: Deck) -> None:
        is_sel = self._selected_deck_id == deck.id
        btn = GhostButton(
            self._list_frame,
            text=f"{deck.emoji or '📚'}  {deck.name}   ({deck.card_count})",
            command=lambda did=deck.id: self._select_deck(did),
            fg_color=Theme.BG_CARD if is_sel else "transparent",
        )
        btn.pack(fill="x", padx=(4, 0), pady=1)
        btn.bind("<Button-3>",
                 lambda e, did=deck.id, dn=deck.name: self._deck_context_menu(e, did, dn))

    # ==================================================================
    #  CONTEXT MENU
    # ==================================================================

    def _deck_context_menu(self, event, deck_id: int, deck_name: str):
        menu = tk.Menu(self, tearoff=0, font=(Theme.FONT_FAMILY, 10), relief="flat", bd=0)
        menu.add_command(label="✏️  Rename",
                         command=lambda: self._rename_deck_dialog(deck_id, deck_name))
        menu.add_command(label="🏷️  Edit details…", command=lambda: self._edit_deck_dialog(deck_id))
        menu.add_command(label="📤  Export CSV…", command=lambda: self._export(deck_id))
        menu.add_separator()
        menu.add_command(label="🗑️  Delete deck",
                         command=lambda: self._confirm_delete_deck(deck_id, deck_name))
        menu.tk_popup(event.x_root, event.y_root)

    def _rename_deck_dialog(self, deck_id: int, current_name: str):
        dialog = ctk.CTkInputDialog(
            text=f"New name for '{current_name}':", title="Rename deck",
        )
        name = dialog.get_input()
        if name and name.strip():
            try:
                rename_deck(self._store, deck_id, name)
            except FlashDeckError as exc:
                messagebox.showerror("Rename failed", str(exc))
            self.refresh()

    def _edit_deck_dialog(self, deck_id: int):
        deck = self._store.get_deck(deck_id)
        if deck is None:
            return
        DeckDialog(self, self._store, deck, on_saved=lambda: self._deck_edited(deck_id))

    def _deck_edited(self, deck_id: int) -> None:
        self.refresh()
        if self._on_deck_changed:
            self._on_deck_changed(deck_id)

    def _confirm_delete_deck(self, deck_id: int, name: str):
        ok = messagebox.askyesno(
            "Delete deck",
            f"Delete the deck '{name}' and all of its cards?\n\n"
            "Study history and audio files of these cards are removed as well.",
            icon="warning",
        )
        if not ok:
            return
        try:
            delete_deck(self._store, self._audio, deck_id)
        except FlashDeckError as exc:
            messagebox.showerror("Delete failed", str(exc))
            return
        if self._selected_deck_id == deck_id:
            self._selected_deck_id = None
        self.refresh()
        if self._on_deck_deleted:
            self._on_deck_deleted(deck_id)

    # ==================================================================
    #  EXPORT
    # ==================================================================

    def _export(self, deck_id: int | None) -> None:
        fp = filedialog.asksaveasfilename(
            title="Export deck as CSV" if deck_id is not None else "Export all decks as CSV",
            defaultextension=".csv",
            initialfile=default_export_filename(self._store, deck_id),
            filetypes=[("CSV", "*.csv"), ("All files", "*.*")],
        )

        threading.Thread(target=self._run_export, args=(fp or None, deck_id), daemon=True).start()

    def _run_export(self, path: str | None, deck_id: int | None) -> None:
        try:
            result = export_csv(self._store, self._audio, path, deck_id)
        except Exception as exc:
            log.exception("CSV export to %s crashed", path)
            result = ExportResult(success=False, error=str(exc) or type(exc).__name__)
        self.after(0, lambda: self._show_export_result(result))

    def _show_export_result(self, result: ExportResult) -> None:
        if result.cancelled:
            return
        if result.success:
            messagebox.showinfo("Export complete",
                                f"Exported {result.exported} cards to:\n{result.path}")
        else:
            messagebox.showerror("Export failed", result.error or "Unknown error")

    # ==================================================================
    #  BASIC ACTIONS
    # ==================================================================

    def _open_settings(self) -> None:
        if self._on_settings:
            self._on_settings()

    def _trigger_import(self) -> None:
        if self._on_import:
            self._on_import()

    def _select_deck(self, deck_id: int) -> None:
        self._selected_deck_id = deck_id
        self.refresh()   # re-render to highlight selected
        if self._on_deck_select:
            self._on_deck_select(deck_id)

    def _create_deck(self) -> None:
        dialog = ctk.CTkInputDialog(text="Deck name:", title="New Deck")
        name = dialog.get_input()
        if not name or not name.strip():
            return
        try:
            deck = create_deck(self._store, name)
        except FlashDeckError as exc:
            messagebox.showerror("Could not create deck", str(exc))
            return
        self._select_deck(deck.id)
