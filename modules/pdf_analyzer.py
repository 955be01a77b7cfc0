"""Page counting for uploaded PDFs."""

from __future__ import annotations

from pathlib import Path

from pypdf import PdfReader
from pypdf.errors import PdfReadError


class PDFAnalyzer:
    """Read the page count of an uploaded PDF, rejecting unreadable files."""

    def count_pages(self, pdf_path: str | Path) -> int:
        """
        Number of pages in the PDF.

        Raises:
            ValueError: If the file is not a readable PDF
        """
        try:
            return len(PdfReader(str(pdf_path)).pages)
        except (PdfReadError, OSError) as exc:
            raise ValueError(f"Unreadable PDF: {exc}") from exc
