"""PDF text linearization."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

import pdfplumber


class TextExtractor(Protocol):
    def extract_lines(self, path: Path) -> list[str]: ...


def linearize_text(text: str) -> list[str]:
    """Split extracted text into ordered, trimmed, non-empty lines."""
    lines: list[str] = []
    for raw in text.splitlines():
        line = " ".join(raw.split())
        if line:
            lines.append(line)
    return lines


class PdfPlumberTextExtractor:
    def __init__(self, *, x_tolerance: float = 3, y_tolerance: float = 3) -> None:
        self.x_tolerance = x_tolerance
        self.y_tolerance = y_tolerance

    def extract_lines(self, path: Path) -> list[str]:
        lines: list[str] = []
        with pdfplumber.open(path) as pdf:
            for page in pdf.pages:
                text = page.extract_text(x_tolerance=self.x_tolerance, y_tolerance=self.y_tolerance) or ""
                lines.extend(linearize_text(text))
        return lines
