"""Pydantic models for the note workflow result."""

from enum import Enum

from pydantic import BaseModel, Field

from .delivery import DeliveryReport
from .history import HistoryRecord
from .note import Segment


class WorkflowState(str, Enum):
    """Terminal states of one todo invocation."""

    CANCELED = "canceled"
    DONE = "done"


class WorkflowResult(BaseModel):
    """What happened to a note: canceled, or persisted and delivered."""

    state: WorkflowState
    record: HistoryRecord | None = Field(default=None, description="Persisted record (None when canceled)")
    segments: list[Segment] = Field(default_factory=list)
    report: DeliveryReport = Field(default_factory=DeliveryReport)
