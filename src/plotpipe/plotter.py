"""Plotter — the scripting entry point on top of the session registry.

Example::

    with Plotter() as gp:
        gp.cmd("set grid")
        gp.data([1, 2, 3], [1, 4, 9])
        gp.plot("w lp tit 'squares'", last_data=True)
        gp.dump()

Every operation targets the current session, starting one on first use.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import IO, Any

from plotpipe.config import PlotpipeConfig
from plotpipe.session.registry import ProcessFactory, SessionRegistry
from plotpipe.wire import Wire


class Plotter:
    """Explicit context object owning a set of plotting sessions."""

    def __init__(
        self,
        config: PlotpipeConfig | None = None,
        wire: Wire | None = None,
        process_factory: ProcessFactory | None = None,
    ) -> None:
        self.config = config or PlotpipeConfig()
        self.wire = wire or Wire(self.config.verbosity)
        self.registry = SessionRegistry(self.config, self.wire, process_factory)

    def __enter__(self) -> Plotter:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.exit_all()

    # ------------------------------------------------------------------
    # Options
    # ------------------------------------------------------------------

    def set_option(
        self,
        command: str | None = None,
        startup: str | None = None,
        verbosity: int | None = None,
    ) -> None:
        """Change settings; a new command applies to sessions started later."""
        if command is not None:
            self.config.command = command
        if startup is not None:
            self.config.startup = startup
        if verbosity is not None:
            self.config.verbosity = verbosity
            self.wire.verbosity = verbosity

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def ids(self) -> list[int]:
        return self.registry.ids()

    def current(self) -> int | None:
        return self.registry.current_id

    def set_current(self, session_id: int) -> None:
        self.registry.set_current(session_id)

    def new_session(self) -> int:
        return self.registry.new_session()

    def exit(self) -> int | None:
        """Close the current session and return its exit code."""
        return self.registry.close_current()

    def exit_all(self) -> None:
        self.registry.close_all()

    # ------------------------------------------------------------------
    # Scripting
    # ------------------------------------------------------------------

    def send(self, text: str, capture: bool = False) -> list[str] | None:
        """Send raw text to the current process; it is not recorded."""
        return self.registry.ensure_current().send(text, capture=capture)

    def reset(self) -> None:
        """Reset the process and forget everything recorded so far."""
        self.registry.ensure_current().reset(self.config.startup)

    def cmd(self, text: str, multiplot_index: int | None = None) -> None:
        self.registry.ensure_current().command(text, multiplot_index)

    def data(
        self,
        *columns: Sequence[object],
        name: str | None = None,
        prefix: str | None = None,
    ) -> str:
        return self.registry.ensure_current().data(*columns, name=name, prefix=prefix)

    def plot(
        self,
        spec: str = "",
        last_data: bool = False,
        file: str | None = None,
        multiplot_index: int | None = None,
        splot: bool | None = None,
    ) -> None:
        self.registry.ensure_current().plot(
            spec,
            multiplot_index=multiplot_index,
            last_data=last_data,
            file=file,
            splot=splot,
        )

    def multi(self, options: str = "") -> None:
        self.registry.ensure_current().start_multiplot(options)

    def next_panel(self) -> int:
        return self.registry.ensure_current().advance_multiplot()

    def dump(
        self,
        full: bool = False,
        dry: bool = False,
        data: bool = False,
        sink: IO[bytes] | None = None,
    ) -> str:
        """Replay the current session's script; empty when no session exists."""
        if self.registry.current is None:
            return ""
        if dry or sink is not None:
            session = self.registry.current
        else:
            session = self.registry.ensure_current()
        return session.dump(full=full, dry=dry, data=data, sink=sink)

    # ------------------------------------------------------------------
    # Facilities
    # ------------------------------------------------------------------

    def load(self, path: str) -> list[str]:
        return self.send(f"load '{path}'", capture=True) or []

    def terminals(self) -> str:
        return "\n".join(self.send("print GPVAL_TERMINALS", capture=True) or [])

    def terminal(self) -> str:
        return "\n".join(self.send("print GPVAL_TERM", capture=True) or [])
