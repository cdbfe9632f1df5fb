"""Email delivery to the Things inbox.

Each segment becomes one plain-text email. Sending is retried a fixed
number of times; failures are logged per attempt and collected into a
report instead of aborting the remaining segments.
"""

import logging
import smtplib
import ssl
import time
from email.charset import BASE64, QP, Charset
from email.header import Header
from typing import Callable, Iterable, Protocol

from .config import TliConfig
from .errors import DeliveryError
from .models.delivery import DeliveryEnvelope, DeliveryReport, SegmentOutcome
from .models.note import Segment

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 5

# Text in an encoded-word in a display-name must not contain these
# characters (RFC 2047 section 5.3).
SPECIAL_CHARACTERS = frozenset("\"#$%&'(),.:;<>@[]^\\`{|}~")


def _charset(header_encoding: int) -> Charset:
    charset = Charset("utf-8")
    charset.header_encoding = header_encoding
    return charset


B_CHARSET = _charset(BASE64)
Q_CHARSET = _charset(QP)


def encode_subject(title: str) -> str:
    """Encode a title as RFC 2047 encoded words.

    Titles containing special characters use the base64 ("B") encoding,
    all others the quoted-printable ("Q") encoding. Long titles are split
    into several encoded words of at most 75 characters, folded with CRLF.
    """
    charset = B_CHARSET if any(c in SPECIAL_CHARACTERS for c in title) else Q_CHARSET
    return Header(title, charset, header_name="Subject").encode(linesep="\r\n")


def build_envelope(config: TliConfig, segment: Segment) -> DeliveryEnvelope:
    """Build the message for one segment."""
    return DeliveryEnvelope(
        subject=encode_subject(segment.title),
        from_display=config.avatar,
        from_address=config.email_addr,
        to_address=config.things_addr,
        body=segment.text,
    )


class Transport(Protocol):
    """Anything that can hand an envelope to a mail server."""

    def send(self, envelope: DeliveryEnvelope) -> None:
        """Send the envelope, raising on failure."""
        ...


class SmtpTransport:
    """SMTP transport with PLAIN login.

    Port 465 uses implicit TLS; other ports upgrade with STARTTLS when the
    server offers it.
    """

    def __init__(self, config: TliConfig, timeout: float = 30.0):
        self.config = config
        self.timeout = timeout

    def _connect(self) -> smtplib.SMTP:
        context = ssl.create_default_context()
        if self.config.smtp_port == 465:
            return smtplib.SMTP_SSL(
                self.config.smtp_host, self.config.smtp_port, timeout=self.timeout, context=context
            )

        server = smtplib.SMTP(self.config.smtp_host, self.config.smtp_port, timeout=self.timeout)
        server.ehlo()
        if server.has_extn("starttls"):
            server.starttls(context=context)
            server.ehlo()
        return server

    def send(self, envelope: DeliveryEnvelope) -> None:
        server = self._connect()
        try:
            server.login(self.config.username, self.config.password)
            server.sendmail(envelope.from_address, [envelope.to_address], envelope.as_bytes())
        finally:
            try:
                server.quit()
            except smtplib.SMTPException as e:
                logger.debug("SMTP quit failed: %s", e)


class DeliveryClient:
    """Sends segments through a transport with bounded retries."""

    def __init__(
        self,
        transport: Transport,
        config: TliConfig,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        retry_delay: float = 0.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize the delivery client.

        Args:
            transport: Transport used for every attempt
            config: Sender and recipient settings
            max_attempts: Attempts per segment before giving up
            retry_delay: Seconds to wait between attempts (0 retries at once)
            sleep: Sleep function, replaceable in tests
        """
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
        self.transport = transport
        self.config = config
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self._sleep = sleep

    def send(self, segment: Segment) -> None:
        """Make one delivery attempt.

        Raises:
            DeliveryError: Wrapping whatever the transport raised
        """
        envelope = build_envelope(self.config, segment)
        try:
            self.transport.send(envelope)
        except Exception as e:
            raise DeliveryError(segment.title, e) from e

    def send_with_retry(self, segment: Segment, max_attempts: int | None = None) -> SegmentOutcome:
        """Deliver a segment, retrying until success or the attempt bound.

        Attempts are strictly sequential.

        Args:
            segment: Segment to deliver
            max_attempts: Override for the client's attempt bound

        Returns:
            SegmentOutcome with the number of attempts and the last error

        Raises:
            ValueError: If the attempt bound is less than 1
        """
        limit = self.max_attempts if max_attempts is None else max_attempts
        if limit < 1:
            raise ValueError(f"max_attempts must be at least 1, got {limit}")
        last_error: DeliveryError | None = None

        for attempt in range(1, limit + 1):
            try:
                self.send(segment)
            except DeliveryError as e:
                last_error = e
                logger.warning(
                    "failed to send inbox (attempt %d/%d), err: %s. Retry...",
                    attempt,
                    limit,
                    e.cause,
                )
                if attempt < limit and self.retry_delay > 0:
                    self._sleep(self.retry_delay)
                continue

            logger.info("sent %r (attempt %d)", segment.title, attempt)
            return SegmentOutcome(title=segment.title, attempts=attempt, delivered=True)

        logger.error("giving up on %r after %d attempts: %s", segment.title, limit, last_error)
        return SegmentOutcome(
            title=segment.title,
            attempts=limit,
            delivered=False,
            error=str(last_error.cause) if last_error else None,
        )

    def send_each(self, segments: Iterable[Segment]) -> DeliveryReport:
        """Deliver segments in order; one failure never stops the rest."""
        report = DeliveryReport()
        for segment in segments:
            report.outcomes.append(self.send_with_retry(segment))
        return report
