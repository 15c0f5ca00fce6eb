"""Blob storage for uploaded files."""

import asyncio
from pathlib import Path
from typing import Protocol

from studyflow.app.extraction.pdf import ExtractionFailedError


class BlobStore(Protocol):
    """Read access to uploaded file bytes."""

    async def fetch(self, storage_path: str) -> bytes:
        """Fetch stored bytes.

        Raises:
            ExtractionFailedError: Blob missing or unreadable
        """
        ...


class InMemoryBlobStore:
    """In-memory implementation of BlobStore."""

    def __init__(self) -> None:
        self._blobs: dict[str, bytes] = {}

    def put(self, storage_path: str, data: bytes) -> None:
        """Store bytes under a path."""
        self._blobs[storage_path] = data

    async def fetch(self, storage_path: str) -> bytes:
        """Fetch stored bytes."""
        data = self._blobs.get(storage_path)
        if data is None:
            raise ExtractionFailedError(f"Failed to download {storage_path}")
        return data


class LocalFileBlobStore:
    """Blob store rooted at a local directory."""

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root).resolve()

    def _resolve(self, storage_path: str) -> Path:
        path = (self._root / storage_path).resolve()
        if not path.is_relative_to(self._root):
            raise ExtractionFailedError(f"Storage path escapes storage root: {storage_path}")
        return path

    async def fetch(self, storage_path: str) -> bytes:
        """Read file bytes in a worker thread."""
        path = self._resolve(storage_path)
        try:
            return await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            raise ExtractionFailedError(f"Failed to download {storage_path}") from e
