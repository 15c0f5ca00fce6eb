"""Job orchestrator - one cancellable background processing run per document.

State machine per document:

    uploaded -> processing -> ready | error
    processing -> uploaded            (cancel)

A run moves through the progress steps extracting -> detecting ->
saving_chapters -> done. Progress lives in a ProgressStore so a polling
client can follow it; the orchestrator is its only writer.
"""

import asyncio
import logging
from uuid import UUID

from studyflow.app.config import Settings, get_settings
from studyflow.app.db.repositories import (
    ChapterRepository,
    DocumentRecord,
    DocumentRepository,
    ProgressStore,
)
from studyflow.app.enrichment.chapters import enrich_chapter
from studyflow.app.extraction.pdf import ExtractionFailedError, TextExtractor
from studyflow.app.llm.client import AuthenticationFailedError, StructuredGenerationClient
from studyflow.app.models.documents import DocumentStatus, JobProgress, ProgressStep
from studyflow.app.orchestration.state import JobCancelledError, JobRun
from studyflow.app.segmentation.detector import detect_chapters
from studyflow.app.storage import BlobStore
from studyflow.app.utils.logging import StructuredJobLogger
from studyflow.app.utils.metrics import PrometheusJobMetrics

logger = logging.getLogger(__name__)


class DocumentNotFoundError(Exception):
    """No document with the given ID."""

    pass


class AlreadyProcessingError(Exception):
    """A processing run for the document is already in progress."""

    pass


class NotProcessingError(Exception):
    """Document has no processing run to cancel."""

    pass


class JobOrchestrator:
    """Owns background processing runs, keyed by document ID.

    At most one run per document: start() checks and claims the document
    without suspending in between, so concurrent starts cannot both pass.
    """

    def __init__(
        self,
        *,
        documents: DocumentRepository,
        chapters: ChapterRepository,
        progress: ProgressStore,
        blobs: BlobStore,
        extractor: TextExtractor,
        client: StructuredGenerationClient,
        settings: Settings | None = None,
        metrics: PrometheusJobMetrics | None = None,
        job_logger: StructuredJobLogger | None = None,
    ) -> None:
        self._documents = documents
        self._chapters = chapters
        self._progress = progress
        self._blobs = blobs
        self._extractor = extractor
        self._client = client
        self._settings = settings or get_settings()
        self._metrics = metrics or PrometheusJobMetrics()
        self._job_logger = job_logger or StructuredJobLogger()

        self._runs: dict[UUID, JobRun] = {}
        self._cleanup_tasks: set[asyncio.Task[None]] = set()

    async def start(self, document_id: UUID) -> None:
        """Accept a processing request and launch the pipeline in the background.

        Returns as soon as the document is marked processing.

        Raises:
            DocumentNotFoundError: Unknown document
            AlreadyProcessingError: A run for this document is in progress
        """
        record = await self._documents.get_document(document_id)
        if record is None:
            self._metrics.inc_rejection("not_found")
            raise DocumentNotFoundError(f"Document {document_id} not found")

        # Check and claim without awaiting in between
        previous = self._runs.get(document_id)
        if record.status == DocumentStatus.processing or (
            previous is not None and not previous.token.cancelled
        ):
            self._metrics.inc_rejection("already_processing")
            raise AlreadyProcessingError(f"Document {document_id} is already processing")

        run = JobRun(document_id=document_id)
        self._runs[document_id] = run

        try:
            removed = await self._chapters.delete_segments_for(document_id)
            if removed:
                logger.info(f"Purged {removed} chapters of a previous run for {document_id}")
            await self._progress.delete(document_id)
            await self._documents.set_status(document_id, DocumentStatus.processing)
        except Exception:
            self._release(run)
            raise

        self._job_logger.log_transition(
            document_id,
            status=DocumentStatus.processing.value,
            step=ProgressStep.extracting.value,
            outcome="started",
        )

        run.task = asyncio.create_task(
            self._run(run, record, previous), name=f"process-document-{document_id}"
        )
        run.task.add_done_callback(lambda _: self._release(run))

    async def cancel(self, document_id: UUID) -> None:
        """Cancel a processing run.

        Status is reverted and persisted chapters are removed before this
        returns; the background task stops at its next checkpoint.

        Raises:
            DocumentNotFoundError: Unknown document
            NotProcessingError: Document is not processing
        """
        record = await self._documents.get_document(document_id)
        if record is None:
            self._metrics.inc_rejection("not_found")
            raise DocumentNotFoundError(f"Document {document_id} not found")

        if record.status != DocumentStatus.processing:
            self._metrics.inc_rejection("not_processing")
            raise NotProcessingError(f"Document {document_id} is not processing")

        run = self._runs.get(document_id)
        if run is not None:
            run.token.cancel()
        else:
            logger.warning(f"Cancelling {document_id} with no live run in this process")

        await self._progress.delete(document_id)
        await self._documents.set_status(document_id, DocumentStatus.uploaded)
        removed = await self._chapters.delete_segments_for(document_id)

        self._job_logger.log_transition(
            document_id,
            status=DocumentStatus.uploaded.value,
            step=ProgressStep.unknown.value,
            outcome="cancel_requested",
        )
        if removed:
            logger.info(f"Removed {removed} partial chapters of cancelled run for {document_id}")

    async def get_progress(self, document_id: UUID) -> JobProgress:
        """Current progress, or step=unknown when no run is tracked."""
        progress = await self._progress.get(document_id)
        return progress if progress is not None else JobProgress.unknown()

    def is_running(self, document_id: UUID) -> bool:
        """Whether a background task for the document is still alive."""
        run = self._runs.get(document_id)
        return run is not None and run.task is not None and not run.task.done()

    async def join(self, document_id: UUID) -> None:
        """Wait for the current run of a document to finish."""
        run = self._runs.get(document_id)
        if run is not None and run.task is not None:
            await asyncio.gather(run.task, return_exceptions=True)

    async def shutdown(self) -> None:
        """Cancel outstanding runs and pending progress cleanups."""
        tasks = [run.task for run in self._runs.values() if run.task is not None]
        tasks.extend(self._cleanup_tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def _release(self, run: JobRun) -> None:
        if self._runs.get(run.document_id) is run:
            del self._runs[run.document_id]

    async def _run(self, run: JobRun, record: DocumentRecord, previous: JobRun | None) -> None:
        document_id = run.document_id
        step = ProgressStep.extracting

        try:
            if previous is not None and previous.task is not None:
                # A cancelled run may still be finishing an external call
                await asyncio.gather(previous.task, return_exceptions=True)
                await self._chapters.delete_segments_for(document_id)

            step = ProgressStep.extracting
            await self._progress.set(document_id, JobProgress(step=step))
            text = await self._extract(record)
            run.token.raise_if_cancelled()

            step = ProgressStep.detecting
            await self._progress.set(document_id, JobProgress(step=step))
            segments = await detect_chapters(text, self._client, self._settings)
            run.token.raise_if_cancelled()

            step = ProgressStep.saving_chapters
            total = len(segments)
            for index, segment in enumerate(segments):
                run.token.raise_if_cancelled()
                await self._progress.set(
                    document_id,
                    JobProgress(
                        step=step,
                        current_unit=index + 1,
                        total_units=total,
                        current_label=segment.title,
                    ),
                )

                summary = questions = None
                if self._settings.enrich_chapters:
                    enrichment = await enrich_chapter(
                        self._client,
                        segment.title,
                        segment.content,
                        max_input_chars=self._settings.enrichment_input_chars,
                    )
                    summary, questions = enrichment.summary, enrichment.questions

                run.token.raise_if_cancelled()
                await self._chapters.persist_segment(
                    document_id, segment, index, summary=summary, questions=questions
                )
                run.persisted += 1

            run.token.raise_if_cancelled()
            step = ProgressStep.done
            done = JobProgress(step=step, current_unit=total, total_units=total)
            await self._progress.set(document_id, done)
            await self._documents.set_status(document_id, DocumentStatus.ready)
            if run.token.cancelled:
                # cancel() landed during the ready write and may have been overwritten
                await self._documents.set_status(document_id, DocumentStatus.uploaded)
                raise JobCancelledError()

        except JobCancelledError:
            await self._finish_cancelled(run, step)
            return
        except asyncio.CancelledError:
            # Process shutdown: leave the document retryable
            await self._finish_cancelled(run, step)
            await self._documents.set_status(document_id, DocumentStatus.uploaded)
            raise
        except Exception as e:
            if run.token.cancelled:
                await self._finish_cancelled(run, step)
                return
            await self._finish_failed(run, step, e)
            return

        self._metrics.record_outcome("ready")
        self._job_logger.log_transition(
            document_id,
            status=DocumentStatus.ready.value,
            step=ProgressStep.done.value,
            outcome="ready",
        )
        self._schedule_progress_removal(document_id, done)

    async def _extract(self, record: DocumentRecord) -> str:
        data = await self._blobs.fetch(record.storage_path)
        text = await self._extractor.extract(data)
        if len(text.strip()) < self._settings.min_extracted_chars:
            raise ExtractionFailedError("Could not extract enough text from the document")
        return text

    async def _finish_cancelled(self, run: JobRun, step: ProgressStep) -> None:
        # cancel() already reverted status; only this run's leftovers remain
        await self._progress.delete(run.document_id)
        if run.persisted:
            await self._chapters.delete_segments_for(run.document_id)

        self._metrics.record_outcome("cancelled")
        self._job_logger.log_transition(
            run.document_id,
            status=DocumentStatus.uploaded.value,
            step=step.value,
            outcome="cancelled",
        )

    async def _finish_failed(self, run: JobRun, step: ProgressStep, error: Exception) -> None:
        document_id = run.document_id

        if isinstance(error, AuthenticationFailedError):
            self._job_logger.log_auth_failure(document_id, step.value)
        else:
            self._job_logger.log_transition(
                document_id,
                status=DocumentStatus.error.value,
                step=step.value,
                outcome="error",
                error_reason=type(error).__name__,
                exc_info=True,
            )

        try:
            await self._progress.delete(document_id)
            if run.persisted:
                await self._chapters.delete_segments_for(document_id)
            await self._documents.set_status(document_id, DocumentStatus.error)
        except Exception:
            logger.exception(f"Failed to record error state for {document_id}")
        self._metrics.record_outcome("error")

    def _schedule_progress_removal(self, document_id: UUID, done: JobProgress) -> None:
        task = asyncio.create_task(self._remove_done_progress(document_id, done))
        self._cleanup_tasks.add(task)
        task.add_done_callback(self._cleanup_tasks.discard)

    async def _remove_done_progress(self, document_id: UUID, done: JobProgress) -> None:
        await asyncio.sleep(self._settings.progress_grace_seconds)
        # A newer run owns the record now
        if document_id in self._runs:
            return
        if await self._progress.get(document_id) == done:
            await self._progress.delete(document_id)
