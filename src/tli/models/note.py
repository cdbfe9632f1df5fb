"""Pydantic models for captured notes and their deliverable segments."""

from pydantic import BaseModel, Field


class Note(BaseModel):
    """A title plus the multi-line body typed during capture.

    Titles should stay under ~72 characters; this is a convention and is
    not enforced.
    """

    title: str = Field(description="Note title, used as the email subject")
    body: list[str] = Field(default_factory=list, description="Body lines in the order received")

    model_config = {"frozen": True}

    @property
    def text(self) -> str:
        """Body lines joined with newlines."""
        return "\n".join(self.body)


class Segment(BaseModel):
    """A size-bounded slice of a note body, sent as one email."""

    title: str = Field(description="Segment title, numbered when the note was split")
    text: str = Field(description="Segment text (bounded in UTF-8 bytes)")

    model_config = {"frozen": True}
