"""Session — one plotting process plus the script it has been sent."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import IO, TYPE_CHECKING

from plotpipe.errors import PlotpipeError
from plotpipe.pipe.reader import CAPTURE_BEGIN, CAPTURE_END, OutputReader, drain_capture
from plotpipe.session.log import DumpMode, SessionLog, data_rows
from plotpipe.wire import Tier, Wire

if TYPE_CHECKING:
    from plotpipe.pipe.process import PipeProcess

logger = logging.getLogger(__name__)

READER_JOIN_TIMEOUT = 2.0


class Session:
    """A live process, its output readers and its session log.

    All operations run on the caller's thread; only the two readers run in
    the background. Liveness is checked by the registry before a session is
    handed out, not here.
    """

    def __init__(self, session_id: int, process: PipeProcess, wire: Wire) -> None:
        self.id = session_id
        self.process = process
        self.wire = wire
        self.log = SessionLog()
        self.readers = [
            OutputReader(process.stdout, process.captured, wire, session_id, "stdout"),
            OutputReader(process.stderr, process.captured, wire, session_id, "stderr"),
        ]

    def start_readers(self) -> None:
        for reader in self.readers:
            reader.start()

    @property
    def alive(self) -> bool:
        return self.process.is_running()

    # ------------------------------------------------------------------
    # Raw I/O
    # ------------------------------------------------------------------

    def send(self, text: str, capture: bool = False) -> list[str] | None:
        """Send text to the process without recording it in the log.

        Each line is stripped and terminated with a newline. With
        ``capture``, the text is wrapped in the capture markers and the
        lines printed in reply are returned.
        """
        if capture:
            self.process.write(f"print '{CAPTURE_BEGIN}'\n")
            self.wire.emit(Tier.PROTOCOL, self.id, "-> Start capture")

        for line in text.split("\n"):
            self.process.write(line.strip() + "\n")
            self.wire.emit(Tier.IO, self.id, f"-> {line}")

        if not capture:
            return None

        self.process.write(f"print '{CAPTURE_END}'\n")
        self.wire.emit(Tier.PROTOCOL, self.id, "-> End capture")
        return drain_capture(self.process.captured)

    # ------------------------------------------------------------------
    # Logged operations
    # ------------------------------------------------------------------

    def command(self, text: str, multiplot_index: int | None = None) -> None:
        """Record a command; panel 0 commands take effect immediately.

        A panel 0 command that cannot be written is not recorded.
        """
        if multiplot_index is None:
            multiplot_index = self.log.multiplot_index
        if multiplot_index == 0:
            self.send(text)
        self.log.add_command(text, multiplot_index)

    def data(
        self,
        *columns: Sequence[object],
        name: str | None = None,
        prefix: str | None = None,
    ) -> str:
        """Send columns as an inline data block and return its ``$name``.

        Raises:
            ShapeMismatchError: columns are missing or of unequal length.
                Nothing is written or recorded in that case.
        """
        rows = data_rows(columns)
        block = "$" + (name or self.log.block_name(self.id, prefix))

        for line in (f"{block} << EOD", *rows, "EOD"):
            self.send(line)
            self.log.data.append(line)

        self.log.last_data_name = block
        return block

    def plot(
        self,
        spec: str,
        multiplot_index: int | None = None,
        last_data: bool = False,
        file: str | None = None,
        splot: bool | None = None,
    ) -> None:
        if splot is not None:
            self.log.splot = splot
        self.log.add_plot(spec, multiplot_index, last_data=last_data, file=file)

    def start_multiplot(self, options: str = "") -> None:
        """Enter multiplot mode; panels are drawn at dump time.

        Raises:
            MultiplotStateError: a multiplot is already active.
            PipeIOError: the command could not be written; the log is left
                outside multiplot mode.
        """
        self.log.begin_multiplot()
        try:
            self.command(f"set multiplot {options}".rstrip(), multiplot_index=0)
        except PlotpipeError:
            self.log.multiplot_index = 0
            raise

    def advance_multiplot(self) -> int:
        return self.log.advance_multiplot()

    def reset(self, startup: str = "") -> None:
        """Reset the process and start a fresh log, replaying ``startup``."""
        self.send("reset session", capture=True)
        self.log = SessionLog()
        if startup:
            self.command(startup)

    def dump(
        self,
        full: bool = False,
        dry: bool = False,
        data: bool = False,
        sink: IO[bytes] | None = None,
    ) -> str:
        """Rebuild the session script and replay and/or write it.

        A ``sink`` implies ``full`` and ``dry``. When the script is sent, a
        final capture round-trip makes sure the process consumed every line
        before returning.
        """
        if sink is not None:
            full = dry = True

        mode = DumpMode(full=full, data=data, dry=dry)
        lines = self.log.script(mode)

        if sink is not None:
            for line in lines:
                sink.write((line + "\n").encode("utf-8"))

        if not mode.dry:
            for line in lines:
                self.send(line)
            self.send("", capture=True)

        return "\n".join(lines)

    def close(self) -> int:
        """Close the process, wait for it and for its readers to finish."""
        exit_code = self.process.close()
        for reader in self.readers:
            reader.join(READER_JOIN_TIMEOUT)
        self.wire.lifecycle(self.id, f"Process exited with status {exit_code}")
        return exit_code
