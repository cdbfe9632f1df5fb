"""Append-only note history for tli.

The history file (~/.tli_history by default) is a stream of YAML
documents, one per captured note, each introduced by a "---" line.
A note is recorded here before any delivery attempt so it can always be
recovered, even if every email fails.
"""

import logging
import os
import re
from datetime import datetime, timezone
from pathlib import Path

import yaml
from pydantic import ValidationError

from .errors import CorruptHistoryError, PersistenceError
from .models.history import HistoryRecord
from .models.note import Note

logger = logging.getLogger(__name__)

DOCUMENT_MARKER = "---"
_MARKER_RE = re.compile(r"^---[ \t]*$", re.MULTILINE)


def dump_record(record: HistoryRecord) -> str:
    """Serialize a record as one self-delimited YAML document."""
    data = yaml.safe_dump(
        record.model_dump(),
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
    )
    return f"{DOCUMENT_MARKER}\n{data}\n"


class HistoryStore:
    """Append-only history writer and tail reader.

    Never truncates or rewrites; only appends.
    """

    def __init__(self, path: Path):
        """Initialize history store.

        Args:
            path: Path to the history file
        """
        self.path = Path(path)

    def append(self, record: HistoryRecord) -> HistoryRecord:
        """Append a record to the end of the history file.

        The document is written with a single write, then flushed and
        fsynced before returning.

        Args:
            record: Record to append

        Returns:
            The appended record

        Raises:
            PersistenceError: If the file cannot be created or written
        """
        document = dump_record(record).encode("utf-8")

        try:
            # Ensure parent directory exists
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self.path, os.O_APPEND | os.O_CREAT | os.O_WRONLY, 0o600)
            with os.fdopen(fd, "wb") as f:
                f.write(document)
                f.flush()
                os.fsync(f.fileno())
        except OSError as e:
            raise PersistenceError(f"cannot save your TODO to {self.path}: {e}") from e

        logger.debug("appended history record %r to %s", record.title, self.path)
        return record

    def record_note(self, note: Note, now: datetime | None = None) -> HistoryRecord:
        """Build a record for a captured note and append it.

        Args:
            note: Completed note
            now: Capture completion time; defaults to the current UTC time

        Returns:
            The appended record
        """
        record = HistoryRecord(
            time=now or datetime.now(timezone.utc),
            title=note.title,
            body=note.text,
        )
        return self.append(record)

    def read_all(self) -> list[HistoryRecord]:
        """Decode every record, oldest first.

        A damaged final document (an interrupted append) is skipped with a
        warning. Damage anywhere else is fatal.

        Returns:
            Records in append order; empty if the file does not exist

        Raises:
            CorruptHistoryError: If a document before the last cannot be decoded
        """
        if not self.path.exists():
            return []

        with open(self.path, "r", encoding="utf-8") as f:
            content = f.read()

        chunks = [c for c in _MARKER_RE.split(content) if c.strip()]

        records: list[HistoryRecord] = []
        for index, chunk in enumerate(chunks, 1):
            try:
                data = yaml.safe_load(chunk)
                if not isinstance(data, dict):
                    raise ValueError(f"expected a mapping, got {type(data).__name__}")
                records.append(HistoryRecord(**data))
            except (yaml.YAMLError, ValidationError, ValueError, TypeError) as e:
                if index == len(chunks):
                    logger.warning(
                        "ignoring incomplete last document in %s: %s", self.path, e
                    )
                    break
                raise CorruptHistoryError(self.path, index, str(e)) from e

        return records

    def read_tail(self, n: int = 0) -> list[HistoryRecord]:
        """Read the most recent records, newest first.

        Args:
            n: Number of records to return; 0 returns all

        Returns:
            Up to n records, newest first

        Raises:
            ValueError: If n is negative
            CorruptHistoryError: If the history is damaged before its tail
        """
        if n < 0:
            raise ValueError(f"n must not be negative, got {n}")

        records = self.read_all()
        if n:
            records = records[-n:]
        return list(reversed(records))
