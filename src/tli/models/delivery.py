"""Pydantic models for email delivery."""

import re

from pydantic import BaseModel, Field

CRLF = "\r\n"


class DeliveryEnvelope(BaseModel):
    """Fully formatted message handed to a transport.

    Derived per segment at send time; never persisted.
    """

    subject: str = Field(description="RFC 2047 encoded subject")
    from_display: str = Field(description="Sender display name")
    from_address: str = Field(description="Sender email address")
    to_address: str = Field(description="Recipient inbox address")
    content_type: str = Field(default='text/plain; charset="UTF-8"')
    body: str = Field(default="")

    model_config = {"frozen": True}

    def to_message(self) -> str:
        """Render RFC822 headers, a blank line, then the body with CRLF line ends."""
        headers = [
            f"Subject: {self.subject}",
            f"From: {self.from_display} <{self.from_address}>",
            f"To: {self.to_address}",
            f"Content-Type: {self.content_type}",
        ]
        body = re.sub(r"\r?\n", CRLF, self.body)
        return CRLF.join(headers) + CRLF + CRLF + body

    def as_bytes(self) -> bytes:
        return self.to_message().encode("utf-8")


class SegmentOutcome(BaseModel):
    """Result of delivering one segment with retries."""

    title: str
    attempts: int = Field(description="Number of send attempts made")
    delivered: bool
    error: str | None = Field(default=None, description="Last error if delivery failed")


class DeliveryReport(BaseModel):
    """Per-segment outcomes of one delivery run, in segment order."""

    outcomes: list[SegmentOutcome] = Field(default_factory=list)

    @property
    def all_delivered(self) -> bool:
        return all(o.delivered for o in self.outcomes)

    @property
    def failed(self) -> list[SegmentOutcome]:
        return [o for o in self.outcomes if not o.delivered]

    @property
    def total_attempts(self) -> int:
        return sum(o.attempts for o in self.outcomes)
