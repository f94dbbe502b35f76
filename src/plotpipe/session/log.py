"""Session log — the replayable script accumulated by one session."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from plotpipe.errors import MultiplotStateError, ShapeMismatchError

RESET_COMMAND = "reset session"
END_MULTIPLOT = "unset multiplot"


@dataclass
class MultiCmd:
    """A command or plot fragment and the multiplot panel it belongs to."""

    text: str
    multiplot_index: int


@dataclass(frozen=True)
class DumpMode:
    """What a dump includes and where it goes.

    ``full`` adds the reset instruction, the data blocks and the commands of
    panel 0 (which were already applied when first sent). ``data`` adds the
    data blocks only. ``dry`` leaves the script unchanged; ``Session.dump``
    reads it to skip sending the script to the process.
    """

    full: bool = False
    data: bool = False
    dry: bool = False


@dataclass
class SessionLog:
    """Ordered storage of commands, data blocks and plot fragments.

    Commands and plot fragments are tagged with the multiplot index active
    when they were added; data-block lines are kept in insertion order and
    belong to no panel. ``script()`` rebuilds the whole thing
    deterministically, regardless of how the entries were produced.
    """

    multiplot_index: int = 0
    commands: list[MultiCmd] = field(default_factory=list)
    data: list[str] = field(default_factory=list)
    plots: list[MultiCmd] = field(default_factory=list)
    splot: bool = False
    block_counter: int = 1
    last_data_name: str = ""

    def add_command(self, text: str, multiplot_index: int | None = None) -> MultiCmd:
        entry = MultiCmd(text, self._index(multiplot_index))
        self.commands.append(entry)
        return entry

    def add_plot(
        self,
        spec: str,
        multiplot_index: int | None = None,
        last_data: bool = False,
        file: str | None = None,
    ) -> MultiCmd:
        """Append a plot fragment, prefixed by its data source.

        The source is the last data block when ``last_data`` is set, a quoted
        file name when ``file`` is given, or nothing (``spec`` names its own
        source).
        """
        source = ""
        if last_data:
            source = self.last_data_name
        elif file is not None:
            source = f"'{file}'"

        text = " ".join(part for part in (source, spec) if part)
        entry = MultiCmd(text, self._index(multiplot_index))
        self.plots.append(entry)
        return entry

    def block_name(self, session_id: int, prefix: str | None = None) -> str:
        """Return a fresh data-block name (without the ``$`` sigil)."""
        name = f"{prefix or f'd{session_id}'}_{self.block_counter}"
        self.block_counter += 1
        return name

    def advance_multiplot(self) -> int:
        self.multiplot_index += 1
        return self.multiplot_index

    def begin_multiplot(self) -> None:
        if self.multiplot_index != 0:
            raise MultiplotStateError(
                f"Current multiplot index is {self.multiplot_index}, while it should be 0"
            )
        self.advance_multiplot()

    def script(self, mode: DumpMode = DumpMode()) -> list[str]:
        """Reconstruct the session script, one instruction per entry."""
        out: list[str] = []

        if mode.full:
            out.append(RESET_COMMAND)

        if mode.full or mode.data:
            out.extend(self.data)

        for index in range(self.multiplot_index + 1):
            if index > 0 or mode.full:
                out.extend(c.text for c in self.commands if c.multiplot_index == index)

            fragments = [p.text for p in self.plots if p.multiplot_index == index]
            if fragments:
                verb = "splot" if self.splot else "plot"
                out.append(f"{verb} \\\n  " + ", \\\n  ".join(fragments))

        if self.multiplot_index > 0:
            out.append(END_MULTIPLOT)

        return out

    def _index(self, multiplot_index: int | None) -> int:
        return self.multiplot_index if multiplot_index is None else multiplot_index


def data_rows(columns: Sequence[Sequence[object]]) -> list[str]:
    """Format equal-length columns as space-separated rows.

    Raises:
        ShapeMismatchError: no columns were given or their lengths differ.
    """
    if not columns:
        raise ShapeMismatchError("At least one data column is required")

    lengths = [len(c) for c in columns]
    if any(n != lengths[0] for n in lengths):
        raise ShapeMismatchError(f"Data columns have different lengths: {lengths}")

    return [" ".join(str(c[i]) for c in columns) for i in range(lengths[0])]
