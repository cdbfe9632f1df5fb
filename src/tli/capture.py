"""Interactive note capture for tli.

Body lines are read on a background thread so that Ctrl+C can still be
observed while the reader is blocked on standard input. Both producers
post onto one queue that a single coordinating loop drains in order.
"""

import logging
import queue
import signal
import sys
import threading
from dataclasses import dataclass
from enum import Enum
from typing import TextIO

from rich.console import Console

from .errors import CaptureCanceled
from .models.note import Note

logger = logging.getLogger(__name__)

BANNER = "(Enter an empty line to complete; Ctrl+C/Ctrl+D to cancel)"
PROMPT = "> "


class EventKind(Enum):
    LINE = "line"
    DONE = "done"
    INTERRUPT = "interrupt"


@dataclass(frozen=True)
class CaptureEvent:
    kind: EventKind
    text: str = ""


class InteractiveCapture:
    """Reads a multi-line note body from a terminal.

    An empty line completes the note. Ctrl+C, Ctrl+D or a closed input
    stream cancel it.
    """

    def __init__(
        self,
        stdin: TextIO | None = None,
        console: Console | None = None,
        handle_sigint: bool = True,
    ):
        """Initialize capture.

        Args:
            stdin: Input stream; defaults to sys.stdin
            console: Rich console for the banner and prompts
            handle_sigint: Route SIGINT into the event queue while capturing
                (only possible on the main thread)
        """
        self.stdin = stdin if stdin is not None else sys.stdin
        self.console = console or Console()
        self.handle_sigint = handle_sigint
        self._events: queue.SimpleQueue[CaptureEvent] | None = None

    def interrupt(self) -> None:
        """Cancel the capture in progress, if any.

        Safe to call from a signal handler or another thread.
        """
        events = self._events
        if events is not None:
            events.put(CaptureEvent(EventKind.INTERRUPT))

    def capture(self, title: str) -> Note:
        """Prompt for body lines until an empty line is entered.

        Args:
            title: Note title (must be non-empty)

        Returns:
            The completed Note; its body may be empty

        Raises:
            CaptureCanceled: If the user interrupted or input ended
            ValueError: If title is empty
        """
        if not title or not title.strip():
            raise ValueError("title must not be empty")

        events: queue.SimpleQueue[CaptureEvent] = queue.SimpleQueue()
        self._events = events
        self.console.print(BANNER)

        previous_handler = self._install_sigint()
        reader = threading.Thread(
            target=self._read_lines,
            args=(events,),
            name="tli-capture-reader",
            daemon=True,
        )
        try:
            reader.start()
            body: list[str] = []
            while True:
                event = events.get()
                if event.kind is EventKind.INTERRUPT:
                    logger.debug("capture of %r canceled after %d line(s)", title, len(body))
                    raise CaptureCanceled()
                if event.kind is EventKind.DONE:
                    return Note(title=title, body=body)
                body.append(event.text)
        finally:
            self._events = None
            self._restore_sigint(previous_handler)

    def _read_lines(self, events: "queue.SimpleQueue[CaptureEvent]") -> None:
        """Reader thread: post one event per line until done or end-of-input."""
        while True:
            self.console.print(PROMPT, end="")
            try:
                line = self.stdin.readline()
            except (OSError, ValueError) as e:
                logger.debug("stdin closed while reading: %s", e)
                events.put(CaptureEvent(EventKind.INTERRUPT))
                return

            if not line:
                # End of input (Ctrl+D)
                events.put(CaptureEvent(EventKind.INTERRUPT))
                return

            line = line.rstrip("\r\n")
            if not line:
                events.put(CaptureEvent(EventKind.DONE))
                return
            events.put(CaptureEvent(EventKind.LINE, line))

    def _install_sigint(self):
        if not self.handle_sigint or threading.current_thread() is not threading.main_thread():
            return None
        return signal.signal(signal.SIGINT, lambda signum, frame: self.interrupt())

    def _restore_sigint(self, previous_handler) -> None:
        if previous_handler is not None:
            signal.signal(signal.SIGINT, previous_handler)
