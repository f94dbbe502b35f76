"""Pipe process — one external plotting process driven over stdin."""

from __future__ import annotations

import enum
import logging
import queue
import shlex
import subprocess
from typing import IO

from plotpipe.errors import PipeIOError, SpawnError

logger = logging.getLogger(__name__)

CAPTURE_QUEUE_SIZE = 32


class ProcessStatus(enum.Enum):
    """Lifecycle states for a pipe process."""

    RUNNING = "running"
    EXITED = "exited"  # Process exited on its own, streams still open
    CLOSED = "closed"  # Closed by us, exit code cached


class PipeProcess:
    """An external process with stdin, stdout and stderr redirected to pipes.

    The process owns the bounded capture queue that both of its output
    readers feed; a full queue blocks the readers until a caller drains it.
    Input is written verbatim, so callers add their own newlines.
    """

    def __init__(self, command: str, proc: subprocess.Popen) -> None:
        self.command = command
        self._proc = proc
        self._exit_code: int | None = None
        self._closed = False
        self.captured: queue.Queue = queue.Queue(maxsize=CAPTURE_QUEUE_SIZE)

    @classmethod
    def spawn(cls, command: str) -> PipeProcess:
        """Start ``command`` (a shell-style command line) with piped streams."""
        argv = shlex.split(command)
        if not argv:
            raise SpawnError("Empty process command")
        try:
            proc = subprocess.Popen(
                argv,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except OSError as e:
            raise SpawnError(f"Cannot start {command!r}: {e}") from e

        logger.info("Spawned process pid=%d cmd=%s", proc.pid, command)
        return cls(command, proc)

    @property
    def pid(self) -> int:
        return self._proc.pid

    @property
    def stdout(self) -> IO[bytes]:
        return self._proc.stdout  # type: ignore[return-value]

    @property
    def stderr(self) -> IO[bytes]:
        return self._proc.stderr  # type: ignore[return-value]

    @property
    def status(self) -> ProcessStatus:
        if self._closed:
            return ProcessStatus.CLOSED
        if self._proc.poll() is not None:
            return ProcessStatus.EXITED
        return ProcessStatus.RUNNING

    def is_running(self) -> bool:
        """Non-blocking liveness check."""
        return self.status == ProcessStatus.RUNNING

    def write(self, text: str) -> int:
        """Write ``text`` to the process's stdin and flush it.

        Returns the number of bytes written.
        """
        stdin = self._proc.stdin
        if self._closed or stdin is None or stdin.closed:
            raise PipeIOError(f"stdin of pid {self.pid} is closed")

        try:
            written = stdin.write(text.encode("utf-8"))
            stdin.flush()
        except (OSError, ValueError) as e:
            raise PipeIOError(f"Writing to stdin of pid {self.pid} failed: {e}") from e

        if written is None or written <= 0:
            raise PipeIOError(
                f"Writing to stdin of pid {self.pid} returned {written}"
            )
        return written

    def close(self) -> int:
        """Close all three streams and wait for the process to exit.

        Closing an already closed process returns the cached exit code.
        """
        if self._closed:
            return self._exit_code  # type: ignore[return-value]

        if self._proc.stdin is not None:
            try:
                self._proc.stdin.close()
            except OSError as e:
                # Process already gone, nothing left to flush
                logger.debug("Closing stdin of pid %d: %s", self.pid, e)

        self._exit_code = self._proc.wait()

        for stream in (self._proc.stdout, self._proc.stderr):
            if stream is not None:
                stream.close()

        self._closed = True
        logger.info("Process pid=%d exited (code=%s)", self.pid, self._exit_code)
        return self._exit_code
