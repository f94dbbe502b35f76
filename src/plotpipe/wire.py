"""Echo wire — the logging sink shared by sessions and output readers.

Sessions and background readers report what goes in and out of each
process as ``(tier, session_id, text)`` events. The wire drops events above
the configured verbosity, forwards the rest to the ``plotpipe.echo`` logger
and broadcasts them to any subscribers (a UI, a test, a transcript writer).
"""

from __future__ import annotations

import enum
import logging
import queue
import threading
from dataclasses import dataclass

echo_logger = logging.getLogger("plotpipe.echo")


class Tier(enum.IntEnum):
    """Verbosity tier of an echo event."""

    LIFECYCLE = 1
    IO = 2
    CAPTURED = 3
    PROTOCOL = 4


@dataclass(frozen=True)
class EchoEvent:
    """An event on the wire."""

    tier: Tier
    session_id: int | None
    text: str


class Wire:
    """Thread-safe broadcast of echo events.

    Reader threads emit concurrently with the caller's thread, so the
    subscriber list is guarded and subscribers receive ``queue.Queue``s.
    """

    def __init__(self, verbosity: int = 3) -> None:
        self.verbosity = verbosity
        self._subscribers: list[queue.Queue[EchoEvent | None]] = []
        self._lock = threading.Lock()
        self._closed: bool = False

    def emit(self, tier: Tier | int, session_id: int | None, text: str) -> None:
        """Send an event, one log record per line of ``text``.

        Silently drops events above the verbosity threshold or after
        ``close()`` has been called.
        """
        if self._closed or tier > self.verbosity:
            return
        tier = Tier(tier)
        level = logging.INFO if tier == Tier.LIFECYCLE else logging.DEBUG
        for line in text.split("\n"):
            echo_logger.log(level, "GP(%s) %s", session_id, line)

        event = EchoEvent(tier=tier, session_id=session_id, text=text)
        with self._lock:
            subscribers = list(self._subscribers)
        for q in subscribers:
            q.put_nowait(event)

    def lifecycle(self, session_id: int | None, text: str) -> None:
        self.emit(Tier.LIFECYCLE, session_id, text)

    def subscribe(self) -> queue.Queue[EchoEvent | None]:
        """Subscribe to events. Returns a queue to read from."""
        q: queue.Queue[EchoEvent | None] = queue.Queue()
        with self._lock:
            self._subscribers.append(q)
        return q

    def unsubscribe(self, q: queue.Queue) -> None:
        """Unsubscribe from events."""
        with self._lock:
            if q in self._subscribers:
                self._subscribers.remove(q)

    def close(self) -> None:
        """Signal all subscribers that the wire is closing."""
        self._closed = True
        with self._lock:
            subscribers = list(self._subscribers)
        for q in subscribers:
            q.put_nowait(None)
