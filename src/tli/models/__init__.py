"""Pydantic models for tli."""

from .delivery import DeliveryEnvelope, DeliveryReport, SegmentOutcome
from .history import HistoryRecord
from .note import Note, Segment
from .workflow import WorkflowResult, WorkflowState

__all__ = [
    "Note",
    "Segment",
    "HistoryRecord",
    # Delivery
    "DeliveryEnvelope",
    "SegmentOutcome",
    "DeliveryReport",
    # Workflow
    "WorkflowState",
    "WorkflowResult",
]
