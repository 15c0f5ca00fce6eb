"""Tests for blob storage and PDF text extraction."""

import io
from pathlib import Path

import pytest
from PyPDF2 import PdfWriter

from studyflow.app.extraction.pdf import ExtractionFailedError, PdfTextExtractor
from studyflow.app.storage import InMemoryBlobStore, LocalFileBlobStore


@pytest.mark.asyncio
async def test_in_memory_blob_store_roundtrip() -> None:
    """Stored bytes are fetched back; missing paths fail extraction."""
    store = InMemoryBlobStore()
    store.put("a.pdf", b"data")

    assert await store.fetch("a.pdf") == b"data"
    with pytest.raises(ExtractionFailedError, match="Failed to download"):
        await store.fetch("missing.pdf")


@pytest.mark.asyncio
async def test_local_blob_store_reads_files(tmp_path: Path) -> None:
    """Files under the root are readable by relative path."""
    (tmp_path / "uploads").mkdir()
    (tmp_path / "uploads" / "course.pdf").write_bytes(b"%PDF")
    store = LocalFileBlobStore(tmp_path)

    assert await store.fetch("uploads/course.pdf") == b"%PDF"
    with pytest.raises(ExtractionFailedError):
        await store.fetch("uploads/other.pdf")


@pytest.mark.asyncio
async def test_local_blob_store_rejects_escaping_paths(tmp_path: Path) -> None:
    """Paths outside the storage root are refused."""
    store = LocalFileBlobStore(tmp_path / "root")

    with pytest.raises(ExtractionFailedError, match="escapes"):
        await store.fetch("../secret.pdf")


@pytest.mark.asyncio
async def test_empty_pdf_bytes_fail() -> None:
    """No bytes is an extraction failure."""
    with pytest.raises(ExtractionFailedError):
        await PdfTextExtractor().extract(b"")


@pytest.mark.asyncio
async def test_garbage_bytes_fail() -> None:
    """Non-PDF bytes are an extraction failure."""
    with pytest.raises(ExtractionFailedError):
        await PdfTextExtractor().extract(b"this is definitely not a pdf document")


@pytest.mark.asyncio
async def test_blank_pdf_extracts_empty_text() -> None:
    """A readable PDF without text yields an empty string."""
    writer = PdfWriter()
    writer.add_blank_page(width=72, height=72)
    buffer = io.BytesIO()
    writer.write(buffer)

    text = await PdfTextExtractor().extract(buffer.getvalue())

    assert text.strip() == ""
