"""Session registry — manages multiple plotting sessions."""

from __future__ import annotations

import logging
import threading
from typing import Callable

from plotpipe.config import PlotpipeConfig
from plotpipe.errors import (
    NotRunningError,
    PlotpipeError,
    SessionNotFoundError,
    SpawnError,
)
from plotpipe.pipe.process import PipeProcess
from plotpipe.session.session import Session
from plotpipe.wire import Wire

logger = logging.getLogger(__name__)

ProcessFactory = Callable[[str], PipeProcess]


class SessionRegistry:
    """Owns the live sessions and the pointer to the current one.

    The registry ensures:
    - IDs are unique among live sessions; a new one is ``max(ids) + 1``
    - A new session becomes current and gets the startup script
    - Closing the current session moves the pointer to the highest ID left
    - Creation, selection and closing are serialised by one lock

    Output readers never touch the registry.
    """

    def __init__(
        self,
        config: PlotpipeConfig | None = None,
        wire: Wire | None = None,
        process_factory: ProcessFactory | None = None,
    ) -> None:
        self.config = config or PlotpipeConfig()
        self.wire = wire or Wire(self.config.verbosity)
        self._spawn = process_factory or PipeProcess.spawn
        self._sessions: dict[int, Session] = {}
        self._current: int | None = None
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def ids(self) -> list[int]:
        with self._lock:
            return list(self._sessions)

    @property
    def current_id(self) -> int | None:
        return self._current

    @property
    def current(self) -> Session | None:
        with self._lock:
            if self._current is None:
                return None
            return self._sessions[self._current]

    def get(self, session_id: int) -> Session:
        with self._lock:
            try:
                return self._sessions[session_id]
            except KeyError:
                raise SessionNotFoundError(f"No session with ID {session_id}") from None

    def __len__(self) -> int:
        return len(self._sessions)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def new_session(self, command: str | None = None) -> int:
        """Start a new process, make it the current session and return its ID.

        Raises:
            SpawnError: the process could not be started, or it failed while
                the startup script was being sent. The registry is left as it
                was before the call.
        """
        with self._lock:
            new_id = max(self._sessions) + 1 if self._sessions else 1
            process = self._spawn(command or self.config.command)

            session = Session(new_id, process, self.wire)
            previous = self._current
            self._sessions[new_id] = session
            self._current = new_id
            try:
                session.start_readers()
                if self.config.startup:
                    session.command(self.config.startup)
            except PlotpipeError as e:
                session.close()
                del self._sessions[new_id]
                self._current = previous
                raise SpawnError(f"Session {new_id} failed during startup: {e}") from e

            self.wire.lifecycle(new_id, f"New session started with ID {new_id}")
            return new_id

    def set_current(self, session_id: int) -> None:
        """Make an existing, running session the current one.

        Raises:
            SessionNotFoundError: no session has this ID.
            NotRunningError: its process has already exited.
        """
        with self._lock:
            session = self.get(session_id)
            if not session.alive:
                raise NotRunningError(f"The process of session {session_id} is no longer running")
            self._current = session_id

    def ensure_current(self) -> Session:
        """Return the current session, starting one if there is none.

        Raises:
            NotRunningError: the current session's process has died.
        """
        with self._lock:
            if self._current is None:
                self.wire.lifecycle(None, "Starting a new gnuplot process...")
                self.new_session()

            session = self._sessions[self._current]  # type: ignore[index]
            if not session.alive:
                raise NotRunningError(
                    f"The process of session {session.id} is no longer running"
                )
            return session

    def close(self, session_id: int) -> int:
        """Close a session and remove it from tracking.

        Blocks until the process has exited. If it was the current session,
        the session with the highest remaining ID becomes current.
        """
        with self._lock:
            session = self.get(session_id)
            exit_code = session.close()

            del self._sessions[session_id]
            if self._current == session_id:
                self._current = max(self._sessions) if self._sessions else None
            return exit_code

    def close_current(self) -> int | None:
        """Close the current session; does nothing when there is none."""
        with self._lock:
            if self._current is None:
                return None
            return self.close(self._current)

    def close_all(self) -> None:
        """Close sessions until none remain. Called on shutdown."""
        with self._lock:
            while self._current is not None:
                self.close_current()
        logger.info("All plotting sessions closed")
