"""UI Theme Constants for Flight Login.

Centralises all colour, font, and sizing constants for the
CustomTkinter interface.  Single light card on a neutral background.

This file contains **zero logic** — only ``Final`` constants.
"""

from __future__ import annotations

from typing import Final

# ---------------------------------------------------------------------------
# Colour palette
# ---------------------------------------------------------------------------

CONTENT_BG: Final[str] = "#eef2f7"
CONTENT_CARD_BG: Final[str] = "#ffffff"
CARD_BORDER: Final[str] = "#dde3ea"

ACCENT_PRIMARY: Final[str] = "#1f6feb"
ACCENT_HOVER: Final[str] = "#1858c0"
ACCENT_DISABLED: Final[str] = "#9bb8e6"
TEXT_PRIMARY: Final[str] = "#14213d"
TEXT_SECONDARY: Final[str] = "#6c757d"
TEXT_LIGHT: Final[str] = "#ffffff"

# Banners
OFFLINE_BG: Final[str] = "#fdecea"
LOCKOUT_BG: Final[str] = "#fff4e5"
LOCKOUT_TEXT: Final[str] = "#b35c00"

# Input / form
INPUT_BG: Final[str] = "#ffffff"
INPUT_BORDER: Final[str] = "#ced4da"
ERROR_TEXT: Final[str] = "#dc3545"
SUCCESS_TEXT: Final[str] = "#27ae60"
LINK_HOVER: Final[str] = "#f0f0f0"

LOGOUT_PRIMARY: Final[str] = "#e74c3c"
LOGOUT_HOVER: Final[str] = "#c0392b"

# ---------------------------------------------------------------------------
# Fonts (Segoe UI on Windows, system fallback elsewhere)
# ---------------------------------------------------------------------------

FONT_FAMILY: Final[str] = "Segoe UI"
FONT_BRAND: Final[tuple[str, int, str]] = (FONT_FAMILY, 22, "bold")
FONT_ICON_LG: Final[tuple[str, int, str]] = (FONT_FAMILY, 24, "bold")
FONT_HEADING: Final[tuple[str, int, str]] = (FONT_FAMILY, 20, "bold")
FONT_SUBTITLE: Final[tuple[str, int]] = (FONT_FAMILY, 12)
FONT_BODY: Final[tuple[str, int]] = (FONT_FAMILY, 13)
FONT_LABEL: Final[tuple[str, int, str]] = (FONT_FAMILY, 11, "bold")
FONT_SMALL: Final[tuple[str, int]] = (FONT_FAMILY, 11)
FONT_BUTTON: Final[tuple[str, int, str]] = (FONT_FAMILY, 13, "bold")

# ---------------------------------------------------------------------------
# Dimensions
# ---------------------------------------------------------------------------

WINDOW_WIDTH: Final[int] = 520
WINDOW_HEIGHT: Final[int] = 680
CARD_WIDTH: Final[int] = 420
INPUT_HEIGHT: Final[int] = 44
BUTTON_HEIGHT: Final[int] = 48
BRAND_ICON_SIZE: Final[int] = 56
CORNER_RADIUS: Final[int] = 8
PADDING_SM: Final[int] = 8
PADDING_MD: Final[int] = 16
PADDING_LG: Final[int] = 24
