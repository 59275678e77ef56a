"""Font discovery and text rendering helpers."""

from __future__ import annotations

import os
import threading
from typing import List, Optional, Tuple

from fpdf import FPDF  # type: ignore

from .logging_config import get_logger

logger = get_logger(__name__)


def find_font_path(env_var: str, candidates: List[str]) -> Optional[str]:
    override = os.getenv(env_var)
    if override and os.path.exists(override):
        return override

    for path in candidates:
        if os.path.exists(path):
            return path
    return None


FONT_INIT_LOCK = threading.Lock()


class FontManager:
    """Registers a Unicode TTF when one is available, else uses core Helvetica.

    Core fonts only cover Latin-1, so text is down-converted before drawing
    when no TTF could be registered.
    """

    FAMILY = "InvoiceFont"
    CORE_FAMILY = "Helvetica"
    SYSTEM_REGULAR_CANDIDATES = [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
        "/usr/share/fonts/dejavu/DejaVuSans.ttf",
        "/Library/Fonts/DejaVuSans.ttf",
    ]
    SYSTEM_BOLD_CANDIDATES = [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
        "/usr/share/fonts/dejavu/DejaVuSans-Bold.ttf",
        "/Library/Fonts/DejaVuSans-Bold.ttf",
    ]

    def __init__(self, pdf: FPDF) -> None:
        self.pdf = pdf
        self.family = self.CORE_FAMILY
        self.use_unicode = False
        self.has_bold = True

        regular_path = find_font_path("INVOICE_FONT_PATH", self.SYSTEM_REGULAR_CANDIDATES)
        if not regular_path:
            return

        bold_path = find_font_path("INVOICE_FONT_BOLD_PATH", self.SYSTEM_BOLD_CANDIDATES)

        # Font registration parses the TTF and touches shared state; serialize it.
        with FONT_INIT_LOCK:
            try:
                self.pdf.add_font(self.FAMILY, "", regular_path)
                self.has_bold = False
                if bold_path:
                    self.pdf.add_font(self.FAMILY, "B", bold_path)
                    self.has_bold = True
            except Exception:
                logger.warning("Could not register font %s; using %s", regular_path, self.CORE_FAMILY, exc_info=True)
                self.has_bold = True
                return
        self.family = self.FAMILY
        self.use_unicode = True

    def prepare(self, text: str) -> str:
        if self.use_unicode:
            return text
        return text.encode("latin-1", "replace").decode("latin-1")

    def set_font(self, size: int, bold: bool = False) -> None:
        style = "B" if bold and self.has_bold else ""
        self.pdf.set_font(self.family, style, size)

    def text_width(self, text: str, size: int, bold: bool = False) -> float:
        self.set_font(size, bold=bold)
        return self.pdf.get_string_width(self.prepare(text))

    def draw_text(
        self,
        x: float,
        y: float,
        text: str,
        size: int,
        color: Tuple[int, int, int],
        bold: bool = False,
    ) -> None:
        if not text:
            return
        text = self.prepare(text)
        self.pdf.set_text_color(*color)
        self.set_font(size, bold=bold)
        if bold and not self.has_bold:
            self.pdf.text(x, y, text)
            self.pdf.text(x + 0.4, y, text)
        else:
            self.pdf.text(x, y, text)

    def draw_text_right(
        self,
        right: float,
        y: float,
        text: str,
        size: int,
        color: Tuple[int, int, int],
        bold: bool = False,
    ) -> None:
        self.draw_text(right - self.text_width(text, size, bold=bold), y, text, size, color, bold=bold)
