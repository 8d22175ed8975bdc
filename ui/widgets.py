"""
FlashDeck – Reusable CustomTkinter widgets
===========================================
Shared UI primitives used across multiple views.
"""

from __future__ import annotations

import customtkinter as ctk


# ---------------------------------------------------------------------------
# Colours / design tokens
# ---------------------------------------------------------------------------
class Theme:
    """Centralised palette. Tuples are (light, dark) pairs for customtkinter."""
    BG            = ("#f4f5f9", "#111318")
    BG_SIDEBAR    = ("#e9ebf2", "#171a22")
    BG_CARD       = ("#ffffff", "#1f2230")
    BG_CARD_HOVER = ("#eef0f6", "#282c3d")
    ACCENT        = "#2f7de1"
    ACCENT_HOVER  = "#2566bb"
    SUCCESS       = "#2fb67c"
    DANGER        = "#e0525f"
    WARNING       = "#e7a93a"
    TEXT_PRIMARY   = ("#1b1d26", "#e4e6f0")
    TEXT_SECONDARY = ("#50546a", "#9094ab")
    TEXT_MUTED     = ("#8a8ea3", "#5d6179")
    BORDER         = ("#d6d9e4", "#2b2f42")
    FONT_FAMILY    = "Segoe UI"

    # Confidence 1 … 5
    CONFIDENCE = (DANGER, DANGER, WARNING, SUCCESS, SUCCESS)


def font(size: int = 13, weight: str = "normal") -> ctk.CTkFont:
    return ctk.CTkFont(family=Theme.FONT_FAMILY, size=size, weight=weight)


def apply_appearance(theme: str) -> None:
    """Map the ``theme`` setting (light / dark / system) onto customtkinter."""
    ctk.set_appearance_mode(theme if theme in ("light", "dark", "system") else "system")


# ---------------------------------------------------------------------------
# Styled buttons
# ---------------------------------------------------------------------------
class AccentButton(ctk.CTkButton):
    """Primary action button."""

    def __init__(self, master, text: str = "", command=None, **kw):
        kw.setdefault("fg_color", Theme.ACCENT)
        kw.setdefault("hover_color", Theme.ACCENT_HOVER)
        kw.setdefault("text_color", "#ffffff")
        kw.setdefault("corner_radius", 8)
        kw.setdefault("font", font(14, "bold"))
        kw.setdefault("height", 36)
        super().__init__(master, text=text, command=command, **kw)


class DangerButton(ctk.CTkButton):
    """Red-toned button for destructive actions."""

    def __init__(self, master, text: str = "", command=None, **kw):
        kw.setdefault("fg_color", Theme.DANGER)
        kw.setdefault("hover_color", "#c2404c")
        kw.setdefault("text_color", "#ffffff")
        kw.setdefault("corner_radius", 8)
        kw.setdefault("font", font(13))
        kw.setdefault("height", 32)
        super().__init__(master, text=text, command=command, **kw)


class GhostButton(ctk.CTkButton):
    """Transparent, left-aligned button (sidebar rows, back links)."""

    def __init__(self, master, text: str = "", command=None, **kw):
        kw.setdefault("fg_color", "transparent")
        kw.setdefault("hover_color", Theme.BG_CARD_HOVER)
        kw.setdefault("text_color", Theme.TEXT_PRIMARY)
        kw.setdefault("anchor", "w")
        kw.setdefault("corner_radius", 6)
        kw.setdefault("font", font(13))
        kw.setdefault("height", 32)
        super().__init__(master, text=text, command=command, **kw)


# ---------------------------------------------------------------------------
# Stat card (mini dashboard widget)
# ---------------------------------------------------------------------------
class StatCard(ctk.CTkFrame):
    """Rounded tile with a caption and a large value."""

    def __init__(self, master, label: str = "", value: str = "0", color=Theme.ACCENT, **kw):
        kw.setdefault("fg_color", Theme.BG_CARD)
        kw.setdefault("corner_radius", 12)
        super().__init__(master, **kw)

        ctk.CTkLabel(
            self, text=label.upper(), font=font(11, "bold"), text_color=Theme.TEXT_MUTED,
        ).pack(padx=16, pady=(14, 0), anchor="w")

        self._value = ctk.CTkLabel(self, text=value, font=font(26, "bold"), text_color=color)
        self._value.pack(padx=16, pady=(2, 14), anchor="w")

    def set_value(self, v: str) -> None:
        self._value.configure(text=v)


# ---------------------------------------------------------------------------
# Separator
# ---------------------------------------------------------------------------
class Separator(ctk.CTkFrame):
    def __init__(self, master, **kw):
        kw.setdefault("fg_color", Theme.BORDER)
        kw.setdefault("height", 1)
        super().__init__(master, **kw)
