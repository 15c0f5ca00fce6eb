"""PDF text extraction."""

import asyncio
import io
import logging
from typing import Protocol

from PyPDF2 import PdfReader
from PyPDF2.errors import PdfReadError

logger = logging.getLogger(__name__)


class ExtractionFailedError(Exception):
    """Raw bytes could not be turned into usable text."""

    pass


class TextExtractor(Protocol):
    """Protocol for turning uploaded bytes into plain text."""

    async def extract(self, data: bytes) -> str:
        """Extract plain text.

        Raises:
            ExtractionFailedError: Input unreadable
        """
        ...


class PdfTextExtractor:
    """PyPDF2-based extractor; parsing runs in a worker thread."""

    async def extract(self, data: bytes) -> str:
        """Extract text of all pages joined by newlines."""
        return await asyncio.to_thread(self._extract_sync, data)

    def _extract_sync(self, data: bytes) -> str:
        if not data:
            raise ExtractionFailedError("PDF is empty")

        try:
            reader = PdfReader(io.BytesIO(data))
            pages = list(reader.pages)
        except (PdfReadError, ValueError, OSError) as e:
            raise ExtractionFailedError(f"Unreadable PDF: {e}") from e

        texts: list[str] = []
        for index, page in enumerate(pages, start=1):
            try:
                texts.append(page.extract_text() or "")
            except Exception as e:  # pragma: no cover - depends on PDF content
                logger.warning(f"Failed to extract text from PDF page {index}: {e}")

        return "\n".join(texts)
