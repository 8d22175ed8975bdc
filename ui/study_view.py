"""
FlashDeck – Study screen
=========================
Shows one card at a time, flips on click, and records a 1–5 confidence
rating plus the time it took to answer.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import sys
import time
from pathlib import Path
from typing import Callable, List

import customtkinter as ctk

from db.models import Card
from db.store import Store
from core.audio_files import AudioFileManager
from core.card_types import front_label
from core.errors import FlashDeckError
from core.settings import load_settings
from core.study import record_study_session, select_study_cards
from ui.widgets import Theme, AccentButton, GhostButton, font

log = logging.getLogger(__name__)

# Tried in order on Linux and other Unix systems
_PLAYERS = (
    ("ffplay", "-nodisp", "-autoexit", "-loglevel", "quiet"),
    ("mpg123", "-q"),
    ("paplay",),
    ("aplay", "-q"),
)


def play_audio_file(path: Path) -> None:
    """Start the platform's audio player on *path* without waiting for it."""
    if sys.platform.startswith("win"):
        args = (
            f'powershell -WindowStyle Hidden -Command "'
            f"Add-Type -AssemblyName presentationCore;"
            f"$p=New-Object System.Windows.Media.MediaPlayer;"
            f"$p.Open('{path}');$p.Play();Start-Sleep -Seconds 10\""
        )
        shell = True
    elif sys.platform == "darwin":
        args, shell = ["afplay", str(path)], False
    else:
        player = next((p for p in _PLAYERS if shutil.which(p[0])), None)
        if player is None:
            log.warning("No audio player found (tried %s)", ", ".join(p[0] for p in _PLAYERS))
            return
        args, shell = [*player, str(path)], False
    try:
        subprocess.Popen(args, shell=shell,
                         stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
    except OSError as exc:
        log.warning("Audio playback failed for %s: %s", path, exc)


class StudyView(ctk.CTkFrame):
    """Interactive study run over a single deck."""

    CONFIDENCE_LABELS = ["1 · Hard", "2", "3", "4", "5 · Easy"]

    def __init__(
        self,
        master,
        store: Store,
        audio: AudioFileManager,
        on_finish: Callable[[], None] | None = None,
        **kw,
    ):
        kw.setdefault("fg_color", Theme.BG)
        kw.setdefault("corner_radius", 0)
        super().__init__(master, **kw)

        self._store = store
        self._audio = audio
        self._on_finish = on_finish
        self._deck_id: int | None = None
        self._cards: List[Card] = []
        self._index = 0
        self._flipped = False
        self._shown_at = 0.0
        self._show_timer = True
        self._enable_sounds = False
        self._ratings: List[int] = []
        self._tick_job: str | None = None

    # ------------------------------------------------------------------
    # Public
    # ------------------------------------------------------------------

    def start_session(self, deck_id: int) -> None:
        """Select cards according to the study settings and begin."""
        settings = load_settings(self._store)
        self._show_timer = settings.show_timer
        self._enable_sounds = settings.enable_sounds
        self._deck_id = deck_id
        self._cards = select_study_cards(
            self._store.list_cards_by_deck(deck_id),
            mode=settings.study_mode,
            limit=settings.cards_per_session,
        )
        if not self._cards:
            self._show_empty()
            return

        self._index = 0
        self._ratings = []
        self._build_ui()
        self._show_card()

    # ------------------------------------------------------------------
    # UI construction
    # ------------------------------------------------------------------

    def _build_ui(self) -> None:
        for w in self.winfo_children():
            w.destroy()

        top = ctk.CTkFrame(self, fg_color="transparent")
        top.pack(fill="x", padx=28, pady=(20, 0))
        GhostButton(top, text="✕  Exit", command=self._exit_session).pack(side="left")

        self._progress_label = ctk.CTkLabel(top, text="", font=font(13),
                                            text_color=Theme.TEXT_SECONDARY)
        self._progress_label.pack(side="right")
        self._timer_label = ctk.CTkLabel(top, text="", font=font(13),
                                         text_color=Theme.TEXT_MUTED)
        if self._show_timer:
            self._timer_label.pack(side="right", padx=16)

        self._progress_bar = ctk.CTkProgressBar(
            self, fg_color=Theme.BG_CARD, progress_color=Theme.ACCENT,
            corner_radius=6, height=6,
        )
        self._progress_bar.pack(fill="x", padx=28, pady=(12, 0))
        self._progress_bar.set(0)

        # ── Card area ──
        self._card_frame = ctk.CTkFrame(
            self, fg_color=Theme.BG_CARD, corner_radius=20,
            border_width=1, border_color=Theme.BORDER,
        )
        self._card_frame.pack(padx=60, pady=(30, 16), fill="both", expand=True)
        self._card_frame.bind("<Button-1>", lambda _: self._flip())

        self._main_label = ctk.CTkLabel(
            self._card_frame, text="", font=font(34, "bold"),
            text_color=Theme.TEXT_PRIMARY, wraplength=600,
        )
        self._main_label.pack(expand=True, pady=(40, 0))
        self._main_label.bind("<Button-1>", lambda _: self._flip())

        self._hint_label = ctk.CTkLabel(
            self._card_frame, text="Click to reveal", font=font(13),
            text_color=Theme.TEXT_MUTED,
        )
        self._hint_label.pack(pady=(0, 30))
        self._hint_label.bind("<Button-1>", lambda _: self._flip())

        self._play_btn = GhostButton(self._card_frame, text="▶  Play audio",
                                     command=self._play_current)

        # ── Confidence buttons ──
        self._rating_frame = ctk.CTkFrame(self, fg_color="transparent")
        for confidence, label in enumerate(self.CONFIDENCE_LABELS, start=1):
            ctk.CTkButton(
                self._rating_frame,
                text=label, width=100, height=44,
                fg_color=Theme.BG_CARD,
                hover_color=Theme.CONFIDENCE[confidence - 1],
                text_color=Theme.TEXT_PRIMARY,
                border_width=1, border_color=Theme.BORDER, corner_radius=10,
                font=font(14, "bold"),
                command=lambda c=confidence: self._rate(c),
            ).pack(side="left", padx=6, expand=True, fill="x")

    # ------------------------------------------------------------------
    # Card display
    # ------------------------------------------------------------------

    def _show_card(self) -> None:
        card = self._cards[self._index]
        self._main_label.configure(text=front_label(card))
        if card.front_audio_path:
            self._play_btn.pack(before=self._hint_label, pady=(0, 12))
        else:
            self._play_btn.pack_forget()
        self._hint_label.configure(text="Click to reveal")
        self._flipped = False
        self._rating_frame.pack_forget()
        self._update_progress()
        self._shown_at = time.monotonic()
        self._cancel_tick()
        self._tick()
        if card.front_audio_path and self._enable_sounds:
            self._play_current()

    def _play_current(self) -> None:
        card = self._cards[self._index]
        if not card.front_audio_path:
            return
        path = self._audio.get_audio_file_path(card.front_audio_path)
        if not path.is_file():
            log.warning("Audio for card %d is missing: %s", card.id, path)
            return
        play_audio_file(path)

    def _tick(self) -> None:
        if not self._show_timer or self._flipped or not self.winfo_exists():
            return
        elapsed = int(time.monotonic() - self._shown_at)
        self._timer_label.configure(text=f"⏱ {elapsed // 60}:{elapsed % 60:02d}")
        self._tick_job = self.after(1000, self._tick)

    def _cancel_tick(self) -> None:
        if self._tick_job is not None:
            self.after_cancel(self._tick_job)
            self._tick_job = None

    def _flip(self) -> None:
        if self._flipped:
            return
        self._flipped = True
        self._main_label.configure(text=self._cards[self._index].back or "—")
        self._hint_label.configure(text="How confident were you?")
        self._rating_frame.pack(fill="x", padx=60, pady=(0, 28))

    # ------------------------------------------------------------------
    # Rating
    # ------------------------------------------------------------------

    def _rate(self, confidence: int) -> None:
        card = self._cards[self._index]
        response_ms = int((time.monotonic() - self._shown_at) * 1000)
        try:
            record_study_session(self._store, card.deck_id, card.id, confidence, response_ms)
        except FlashDeckError as exc:
            log.error("Could not record study session for card %d: %s", card.id, exc)
        self._ratings.append(confidence)

        self._index += 1
        if self._index >= len(self._cards):
            self._show_summary()
        else:
            self._show_card()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _update_progress(self) -> None:
        total = len(self._cards)
        done = self._index
        self._progress_bar.set(done / total if total else 0)
        self._progress_label.configure(text=f"Card {done + 1} of {total}")

    def _show_summary(self) -> None:
        for w in self.winfo_children():
            w.destroy()

        avg = sum(self._ratings) / len(self._ratings) if self._ratings else 0

        wrap = ctk.CTkFrame(self, fg_color="transparent")
        wrap.pack(expand=True)
        ctk.CTkLabel(wrap, text="🎉  Session complete!", font=font(28, "bold"),
                     text_color=Theme.SUCCESS).pack(pady=(0, 16))
        ctk.CTkLabel(
            wrap,
            text=f"{len(self._ratings)} cards reviewed    ·    average confidence {avg:.1f} / 5",
            font=font(16), text_color=Theme.TEXT_PRIMARY,
        ).pack(pady=(0, 28))
        AccentButton(wrap, text="Done", command=self._exit_session, width=140).pack()

    def _show_empty(self) -> None:
        for w in self.winfo_children():
            w.destroy()
        ctk.CTkLabel(self, text="📚  This deck has no cards to study.", font=font(18),
                     text_color=Theme.TEXT_SECONDARY).pack(expand=True)
        GhostButton(self, text="← Back", command=self._exit_session).pack(pady=16)

    def _exit_session(self) -> None:
        self._cancel_tick()
        for w in self.winfo_children():
            w.destroy()
        if self._on_finish:
            self._on_finish()
