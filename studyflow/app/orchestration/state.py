"""Per-run orchestration state: cancellation token and run handle."""

import asyncio
from dataclasses import dataclass, field
from uuid import UUID


class JobCancelledError(Exception):
    """Raised inside a pipeline when its cancellation token is observed."""

    pass


class CancelToken:
    """Cooperative cancellation signal passed through a pipeline run."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        """Request cancellation."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        """Whether cancellation was requested."""
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        """Checkpoint.

        Raises:
            JobCancelledError: If cancellation was requested
        """
        if self._event.is_set():
            raise JobCancelledError()


@dataclass
class JobRun:
    """Handle for one background processing run of a document."""

    document_id: UUID
    token: CancelToken = field(default_factory=CancelToken)
    task: "asyncio.Task[None] | None" = None
    # Chapters persisted by this run, in order
    persisted: int = 0
