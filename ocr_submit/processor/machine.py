"""FSM driving one document from selection to a processing outcome."""

from __future__ import annotations

import asyncio
from typing import Optional, Sequence, Union

import httpx

from ocr_submit.config.settings import ClientConfig
from ocr_submit.models import Document
from ocr_submit.pipeline.client import SubmissionClient
from ocr_submit.pipeline.validator import FileValidator, ValidationOutcome
from ocr_submit.processor.progress import ProgressEstimator, ProgressHandle
from ocr_submit.processor.states import ProcessingSession, SessionStatus
from ocr_submit.reporter.exporter import ExportArtifact, ResultExporter
from ocr_submit.reporter.notifications import NotificationKind, Notifier
from ocr_submit.utils.logging import (
    clear_submission_context,
    get_logger,
    set_submission_context,
)
from ocr_submit.utils.result import RejectionReason

logger = get_logger("processor.machine")

UNKNOWN_ERROR_MESSAGE = "Unknown error occurred"


class ProcessingStateMachine:
    """
    Single source of truth for the processing lifecycle.

    IDLE -> PROCESSING -> SUCCESS | ERROR -> IDLE

    Every submission is stamped with the session's attempt counter. A
    completion is applied only while its attempt is still the current one,
    so a superseded submission can never overwrite newer state.
    """

    def __init__(
        self,
        client: SubmissionClient,
        estimator: Optional[ProgressEstimator] = None,
        validator: Optional[FileValidator] = None,
        notifier: Optional[Notifier] = None,
        exporter: Optional[ResultExporter] = None,
    ) -> None:
        """
        Initialize the machine.

        Args:
            client: Transmits documents to the processing endpoint
            estimator: Synthetic progress ticker
            validator: File acceptance rules
            notifier: Receives user-facing notifications
            exporter: Serializes stored results
        """
        self.client = client
        self.estimator = estimator or ProgressEstimator()
        self.validator = validator or FileValidator()
        self.notifier = notifier or Notifier()
        self.exporter = exporter or ResultExporter()

        self._session = ProcessingSession()
        self._progress_handle: Optional[ProgressHandle] = None

    @classmethod
    def from_config(
        cls,
        config: ClientConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        notifier: Optional[Notifier] = None,
    ) -> "ProcessingStateMachine":
        """Build a machine and its collaborators from configuration."""
        return cls(
            client=SubmissionClient(config.endpoint, transport=transport),
            estimator=ProgressEstimator(
                interval_seconds=config.progress.interval_seconds,
                max_increment=config.progress.max_increment,
                cap=config.progress.cap,
            ),
            validator=FileValidator(
                max_file_size_bytes=config.upload.max_file_size_bytes,
                accepted_types=config.upload.accepted_types,
            ),
            notifier=notifier,
        )

    @property
    def session(self) -> ProcessingSession:
        """Snapshot of the live session."""
        return self._session.snapshot()

    @property
    def status(self) -> SessionStatus:
        return self._session.status

    @property
    def document(self) -> Optional[Document]:
        return self._session.document

    def select_file(
        self,
        candidates: Union[Document, Sequence[Document]],
    ) -> Optional[ValidationOutcome]:
        """
        Validate and stage a file. Only the first candidate is considered.

        A rejected file leaves the session untouched. An accepted file
        replaces the staged document and returns the session to IDLE.

        Returns:
            The validation outcome, or None when no candidates were given
        """
        if isinstance(candidates, Document):
            candidates = [candidates]

        outcome = self.validator.select(candidates)
        if outcome is None:
            return None

        if outcome.is_err():
            rejection = outcome.unwrap_err()
            kind = (
                NotificationKind.FILE_TOO_LARGE
                if rejection.reason is RejectionReason.TOO_LARGE
                else NotificationKind.UNSUPPORTED_TYPE
            )
            self.notifier.emit(kind, message=str(rejection), file_name=rejection.file_name)
            return outcome

        document = outcome.unwrap()
        self._abandon_current("file_selected")
        self._session.document = document
        self._transition(SessionStatus.IDLE)
        self.notifier.emit(NotificationKind.FILE_ACCEPTED, file_name=document.name)
        return outcome

    async def submit(self) -> ProcessingSession:
        """
        Submit the staged document and wait for the outcome.

        With no staged document this only emits NO_FILE_SELECTED. Otherwise
        the session moves to PROCESSING, then to SUCCESS or ERROR unless a
        newer action superseded this submission in the meantime.

        Returns:
            Snapshot of the session after this call
        """
        document = self._session.document
        if document is None:
            logger.info("submit_without_file")
            self.notifier.emit(NotificationKind.NO_FILE_SELECTED)
            return self.session

        self._stop_progress()
        self._session.attempt += 1
        attempt = self._session.attempt
        set_submission_context(attempt, document.name)
        try:
            return await self._run_attempt(document, attempt)
        finally:
            clear_submission_context()

    async def _run_attempt(self, document: Document, attempt: int) -> ProcessingSession:
        self._transition(SessionStatus.PROCESSING)

        async with self.estimator.track(
            lambda value: self._on_progress(attempt, value)
        ) as handle:
            self._progress_handle = handle
            try:
                result = await self.client.submit(document)
            except asyncio.CancelledError:
                if self._is_current(attempt):
                    logger.info("submission_cancelled")
                    self._progress_handle = None
                    self._transition(SessionStatus.IDLE)
                raise
            except Exception as e:
                logger.error("submission_crashed", error=str(e), exc_info=True)
                if self._is_current(attempt):
                    self._fail(str(e) or UNKNOWN_ERROR_MESSAGE)
                return self.session

        if not self._is_current(attempt):
            logger.debug(
                "stale_completion_discarded",
                attempt=attempt,
                current_attempt=self._session.attempt,
            )
            return self.session

        self._progress_handle = None

        if result.is_ok():
            self._transition(
                SessionStatus.SUCCESS,
                progress=100.0,
                result=result.unwrap(),
            )
            self.notifier.emit(NotificationKind.PROCESSING_SUCCEEDED)
        else:
            self._fail(str(result.unwrap_err()))

        return self.session

    def reset(self) -> ProcessingSession:
        """Return to IDLE, keeping the staged document."""
        self._abandon_current("reset")
        self._transition(SessionStatus.IDLE)
        return self.session

    def remove_file(self) -> ProcessingSession:
        """Return to IDLE and drop the staged document."""
        self._abandon_current("file_removed")
        self._session.document = None
        self._transition(SessionStatus.IDLE)
        return self.session

    def export(self) -> Optional[ExportArtifact]:
        """
        Serialize the stored result.

        Returns:
            The artifact, or None when there is no result to export
        """
        result = self._session.result
        if result is None:
            logger.debug("export_skipped", reason="no_result")
            return None

        document = self._session.document
        artifact = self.exporter.export(result, document.name if document else None)
        self.notifier.emit(NotificationKind.EXPORT_STARTED, filename=artifact.filename)
        return artifact

    def _is_current(self, attempt: int) -> bool:
        return attempt == self._session.attempt

    def _on_progress(self, attempt: int, value: float) -> None:
        if not self._is_current(attempt):
            return
        if self._session.status is not SessionStatus.PROCESSING:
            return
        self._session.progress = max(self._session.progress, value)

    def _fail(self, message: str) -> None:
        self._progress_handle = None
        self._transition(
            SessionStatus.ERROR,
            progress=100.0,
            error_message=message,
        )
        self.notifier.emit(NotificationKind.PROCESSING_FAILED, message=message)

    def _stop_progress(self) -> None:
        if self._progress_handle is not None:
            self.estimator.stop(self._progress_handle)
            self._progress_handle = None

    def _abandon_current(self, reason: str) -> None:
        """Stop the ticker and supersede any in-flight submission."""
        self._stop_progress()
        if self._session.status is SessionStatus.PROCESSING:
            self._session.attempt += 1
            logger.info(
                "submission_superseded",
                reason=reason,
                superseded_attempt=self._session.attempt - 1,
            )
        clear_submission_context()

    def _transition(self, new_status: SessionStatus, **fields) -> None:
        old_status = self._session.status
        self._session.transition_to(new_status, **fields)
        logger.info(
            "state_transition",
            from_state=old_status.name,
            to_state=new_status.name,
            attempt=self._session.attempt,
        )
