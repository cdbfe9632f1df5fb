"""The todo workflow: capture, persist, split, deliver."""

import logging
from datetime import datetime, timezone
from typing import Callable

from .capture import InteractiveCapture
from .delivery import DeliveryClient
from .errors import CaptureCanceled
from .history import HistoryStore
from .models.workflow import WorkflowResult, WorkflowState
from .splitter import MAX_SEGMENT_SIZE, split_segments

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NoteWorkflow:
    """Runs one todo from capture to delivery.

    The note is appended to history before any email is sent, so it is
    recoverable even if every delivery attempt fails.
    """

    def __init__(
        self,
        capture: InteractiveCapture,
        history: HistoryStore,
        client: DeliveryClient,
        max_segment_size: int = MAX_SEGMENT_SIZE,
        clock: Callable[[], datetime] | None = None,
    ):
        self.capture = capture
        self.history = history
        self.client = client
        self.max_segment_size = max_segment_size
        self.clock = clock or _utcnow

    def run(self, title: str) -> WorkflowResult:
        """Capture a note titled `title`, record it, then send it.

        Returns:
            WorkflowResult in state CANCELED (nothing written or sent) or
            DONE (record written, delivery report attached)

        Raises:
            PersistenceError: If the note could not be recorded; nothing is sent
        """
        try:
            note = self.capture.capture(title)
        except CaptureCanceled:
            logger.info("capture of %r canceled", title)
            return WorkflowResult(state=WorkflowState.CANCELED)

        record = self.history.record_note(note, now=self.clock())

        segments = split_segments(note.title, note.text, self.max_segment_size)
        if len(segments) > 1:
            logger.info("note %r split into %d segments", note.title, len(segments))

        report = self.client.send_each(segments)
        if not report.all_delivered:
            logger.warning(
                "%d of %d segment(s) were not delivered; the note is kept in %s",
                len(report.failed),
                len(segments),
                self.history.path,
            )

        return WorkflowResult(
            state=WorkflowState.DONE,
            record=record,
            segments=segments,
            report=report,
        )
