"""Output reader — background draining of a process's stdout/stderr.

Capture protocol: the caller asks the process to print ``CAPTURE_BEGIN``
before and ``CAPTURE_END`` after the text whose reply it wants. Between the
two markers the reader pushes every line onto the process's capture queue
(and echoes it at the captured tier); everything else only goes to the
wire. The end marker itself is queued as the terminator that
``drain_capture`` waits for.
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import IO

from plotpipe.errors import ProtocolStallError
from plotpipe.wire import Tier, Wire

logger = logging.getLogger(__name__)

CAPTURE_BEGIN = "GNUPLOT_JL_SAVE_OUTPUT"
CAPTURE_END = "GNUPLOT_JL_SAVE_OUTPUT_END"


class _StreamClosed:
    """Queue item put by a reader whose stream reached EOF."""

    def __repr__(self) -> str:
        return "<stream closed>"


STREAM_CLOSED = _StreamClosed()


class OutputReader:
    """Reads one output stream line by line on a daemon thread.

    The reader only touches its own process's capture queue and the wire;
    it never raises out of its thread. Failures end the loop with a
    "pipe closed" notice and a ``STREAM_CLOSED`` item on the queue so a
    blocked ``drain_capture`` fails instead of hanging.
    """

    def __init__(
        self,
        stream: IO[bytes],
        captured: queue.Queue,
        wire: Wire,
        session_id: int | None = None,
        name: str = "stdout",
    ) -> None:
        self.stream = stream
        self.captured = captured
        self.wire = wire
        self.session_id = session_id
        self.name = name
        self.capturing = False
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        self._thread = threading.Thread(
            target=self._read_loop,
            daemon=True,
            name=f"plotpipe-{self.name}-{self.session_id}",
        )
        self._thread.start()

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    @property
    def alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _read_loop(self) -> None:
        """Continuously read lines until the stream closes."""
        try:
            for raw in iter(self.stream.readline, b""):
                line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
                self.handle_line(line)
        except Exception as e:
            logger.debug("Reader %s of session %s ended: %s", self.name, self.session_id, e)
        finally:
            self.wire.emit(Tier.LIFECYCLE, self.session_id, f"{self.name} pipe closed")
            self.captured.put(STREAM_CLOSED)

    def handle_line(self, line: str) -> None:
        """Classify one line read from the stream."""
        if line == CAPTURE_BEGIN:
            self.capturing = True
            self.wire.emit(
                Tier.PROTOCOL,
                self.session_id,
                "|start of captured data =========================",
            )
            return

        if not self.capturing:
            if line and line != CAPTURE_END:
                self.wire.emit(Tier.IO, self.session_id, "   " + line)
            return

        # Blocks while the queue is full
        self.captured.put(line)
        if line == CAPTURE_END:
            self.capturing = False
            self.wire.emit(
                Tier.PROTOCOL,
                self.session_id,
                "|end of captured data ===========================",
            )
        elif line:
            self.wire.emit(Tier.CAPTURED, self.session_id, "|  " + line)


def drain_capture(captured: queue.Queue) -> list[str]:
    """Pop captured lines until the end terminator (excluded).

    Raises:
        ProtocolStallError: the stream closed before the terminator arrived.
    """
    lines: list[str] = []
    while True:
        item = captured.get()
        if item is STREAM_CLOSED:
            raise ProtocolStallError(
                f"Output stream closed after {len(lines)} captured line(s) "
                "without an end marker"
            )
        if item == CAPTURE_END:
            return lines
        lines.append(item)
