"""Pydantic models for history records."""

from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_serializer, field_validator


class HistoryRecord(BaseModel):
    """Append-only history entry, one per captured note.

    Written as a YAML document to ~/.tli_history.
    Never mutate or delete; only append.
    """

    time: datetime = Field(description="Capture completion timestamp (ISO8601 UTC)")
    title: str = Field(description="Note title")
    body: str = Field(description="Body lines joined with newlines")

    model_config = {"frozen": True}

    @field_validator("time")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    @field_validator("body", mode="before")
    @classmethod
    def empty_body(cls, v):
        # An empty body is dumped as '' but hand-edited files may leave it null
        return "" if v is None else v

    @field_serializer("time")
    def serialize_time(self, v: datetime) -> str:
        return v.strftime("%Y-%m-%dT%H:%M:%S.%fZ")
