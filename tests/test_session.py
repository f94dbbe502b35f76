"""Tests for plotpipe.session.session (Session operations over a fake process)."""

from __future__ import annotations

import io

import pytest

from fakes import FakeProcess
from plotpipe.errors import (
    MultiplotStateError,
    PipeIOError,
    ProtocolStallError,
    ShapeMismatchError,
)
from plotpipe.pipe.reader import CAPTURE_BEGIN, CAPTURE_END
from plotpipe.session.log import MultiCmd
from plotpipe.session.session import Session
from plotpipe.wire import Tier, Wire

BEGIN = f"print '{CAPTURE_BEGIN}'"
END = f"print '{CAPTURE_END}'"


# ---------------------------------------------------------------------------
# send
# ---------------------------------------------------------------------------


class TestSend:
    def test_lines_stripped_and_terminated(
        self, session: Session, fake_process: FakeProcess
    ) -> None:
        assert session.send("  set grid \nset key left") is None
        assert fake_process.writes == ["set grid\n", "set key left\n"]

    def test_not_recorded(self, session: Session) -> None:
        session.send("set grid")
        assert session.log.commands == []

    def test_capture_round_trip(
        self, session: Session, fake_process: FakeProcess
    ) -> None:
        assert session.send("print 'hello'", capture=True) == ["hello"]
        assert fake_process.lines == [BEGIN, "print 'hello'", END]

    def test_capture_preserves_order(self, session: Session) -> None:
        reply = session.send("print 'a'\nprint 'b'\nprint 'c'", capture=True)
        assert reply == ["a", "b", "c"]

    def test_capture_nothing(self, session: Session) -> None:
        assert session.send("", capture=True) == []

    def test_uncaptured_output_not_returned(
        self, session: Session, fake_process: FakeProcess
    ) -> None:
        fake_process.emit("noise", stream="stdout")
        assert session.send("print 'x'", capture=True) == ["x"]

    def test_echo(self, session: Session, wire: Wire) -> None:
        q = wire.subscribe()
        session.send("set grid")
        event = q.get_nowait()
        assert event.tier == Tier.IO
        assert event.session_id == 1
        assert event.text == "-> set grid"

    def test_stream_closed_during_capture(self, session: Session) -> None:
        with pytest.raises(ProtocolStallError):
            session.send("exit", capture=True)

    def test_write_after_close(
        self, session: Session, fake_process: FakeProcess
    ) -> None:
        fake_process.close()
        with pytest.raises(PipeIOError):
            session.send("set grid")


# ---------------------------------------------------------------------------
# command / data / plot
# ---------------------------------------------------------------------------


class TestCommand:
    def test_panel_zero_sent_immediately(
        self, session: Session, fake_process: FakeProcess
    ) -> None:
        session.command("set title 'x'")
        assert fake_process.lines == ["set title 'x'"]
        assert session.log.commands == [MultiCmd("set title 'x'", 0)]

    def test_multiplot_panel_deferred(
        self, session: Session, fake_process: FakeProcess
    ) -> None:
        session.advance_multiplot()
        session.command("set xlabel 'a'")
        assert fake_process.writes == []
        assert session.log.commands == [MultiCmd("set xlabel 'a'", 1)]

    def test_explicit_panel_zero_while_in_multiplot(
        self, session: Session, fake_process: FakeProcess
    ) -> None:
        session.advance_multiplot()
        session.command("set grid", multiplot_index=0)
        assert fake_process.lines == ["set grid"]

    def test_unwritten_command_not_recorded(
        self, session: Session, fake_process: FakeProcess
    ) -> None:
        fake_process.close()
        with pytest.raises(PipeIOError):
            session.command("set grid")
        assert session.log.commands == []


class TestData:
    def test_block_sent_and_recorded(
        self, session: Session, fake_process: FakeProcess
    ) -> None:
        name = session.data([1, 2, 3], [1, 4, 9])
        expected = ["$d1_1 << EOD", "1 1", "2 4", "3 9", "EOD"]
        assert name == "$d1_1"
        assert fake_process.lines == expected
        assert session.log.data == expected
        assert session.log.last_data_name == "$d1_1"

    def test_line_count_is_rows_plus_two(
        self, session: Session, fake_process: FakeProcess
    ) -> None:
        session.data(list(range(10)), list(range(10)), list(range(10)))
        assert len(fake_process.lines) == 12

    def test_names_increment(self, session: Session) -> None:
        assert session.data([1]) == "$d1_1"
        assert session.data([1]) == "$d1_2"
        assert session.data([1], prefix="grid") == "$grid_3"

    def test_explicit_name(self, session: Session) -> None:
        assert session.data([1], name="mine") == "$mine"
        assert session.log.block_counter == 1

    def test_mismatch_has_no_side_effects(
        self, session: Session, fake_process: FakeProcess
    ) -> None:
        with pytest.raises(ShapeMismatchError):
            session.data([1, 2, 3], [1, 2])
        assert fake_process.writes == []
        assert session.log.data == []
        assert session.log.block_counter == 1
        assert session.log.last_data_name == ""


class TestPlot:
    def test_recorded_not_sent(
        self, session: Session, fake_process: FakeProcess
    ) -> None:
        session.plot("sin(x)")
        assert fake_process.writes == []
        assert session.log.plots == [MultiCmd("sin(x)", 0)]

    def test_splot_toggle(self, session: Session) -> None:
        session.plot("x*y", splot=True)
        assert session.log.splot is True
        session.plot("x+y")
        assert session.log.splot is True
        session.plot("x", splot=False)
        assert session.log.splot is False


class TestMultiplot:
    def test_start(self, session: Session, fake_process: FakeProcess) -> None:
        session.start_multiplot("layout 1,2")
        assert fake_process.lines == ["set multiplot layout 1,2"]
        assert session.log.commands == [MultiCmd("set multiplot layout 1,2", 0)]
        assert session.log.multiplot_index == 1

    def test_start_without_options(
        self, session: Session, fake_process: FakeProcess
    ) -> None:
        session.start_multiplot()
        assert fake_process.lines == ["set multiplot"]

    def test_start_twice(self, session: Session, fake_process: FakeProcess) -> None:
        session.start_multiplot()
        with pytest.raises(MultiplotStateError):
            session.start_multiplot()
        assert fake_process.lines == ["set multiplot"]

    def test_failed_start_leaves_log_untouched(
        self, session: Session, fake_process: FakeProcess
    ) -> None:
        fake_process.close()
        with pytest.raises(PipeIOError):
            session.start_multiplot("layout 2,1")
        assert session.log.multiplot_index == 0
        assert session.log.commands == []

    def test_full_multiplot_dump(self, session: Session) -> None:
        session.start_multiplot("layout 1,2")
        session.plot("sin(x)")
        session.advance_multiplot()
        session.command("set grid")
        session.plot("cos(x)")
        assert session.dump(full=True, dry=True).split("\n") == [
            "reset session",
            "set multiplot layout 1,2",
            "plot \\",
            "  sin(x)",
            "set grid",
            "plot \\",
            "  cos(x)",
            "unset multiplot",
        ]


# ---------------------------------------------------------------------------
# reset / dump
# ---------------------------------------------------------------------------


class TestReset:
    def test_clears_log(self, session: Session, fake_process: FakeProcess) -> None:
        session.command("set grid")
        session.data([1, 2])
        session.plot("w l", last_data=True)
        session.start_multiplot()

        session.reset()

        assert "reset session" in fake_process.lines
        assert session.log.commands == []
        assert session.log.data == []
        assert session.log.plots == []
        assert session.log.multiplot_index == 0
        assert session.log.block_counter == 1

    def test_dump_after_reset_is_empty(self, session: Session) -> None:
        session.command("set grid")
        session.reset()
        assert session.dump(full=True, dry=True) == "reset session"

    def test_startup_replayed(self, session: Session, fake_process: FakeProcess) -> None:
        session.reset(startup="set term dumb")
        assert fake_process.lines[-1] == "set term dumb"
        assert session.dump(full=True, dry=True) == "reset session\nset term dumb"


class TestDump:
    def _example(self, session: Session) -> None:
        session.command("set title 'x'")
        session.data([1, 2, 3], [1, 4, 9])
        session.plot("w l", last_data=True)

    def test_worked_example(self, session: Session) -> None:
        self._example(session)
        assert session.dump(full=True, dry=True).split("\n") == [
            "reset session",
            "$d1_1 << EOD",
            "1 1",
            "2 4",
            "3 9",
            "EOD",
            "set title 'x'",
            "plot \\",
            "  $d1_1 w l",
        ]

    def test_dry_writes_nothing(
        self, session: Session, fake_process: FakeProcess
    ) -> None:
        self._example(session)
        before = list(fake_process.writes)
        session.dump(full=True, dry=True)
        assert fake_process.writes == before

    def test_send_ends_with_round_trip(
        self, session: Session, fake_process: FakeProcess
    ) -> None:
        self._example(session)
        before = len(fake_process.lines)
        session.dump()
        assert fake_process.lines[before:] == ["plot \\", "$d1_1 w l", BEGIN, "", END]

    def test_data_dump_includes_block_in_order(self, session: Session) -> None:
        self._example(session)
        out = session.dump(data=True, dry=True).split("\n")
        assert out[:5] == ["$d1_1 << EOD", "1 1", "2 4", "3 9", "EOD"]

    def test_sink_implies_full_and_dry(
        self, session: Session, fake_process: FakeProcess
    ) -> None:
        self._example(session)
        before = list(fake_process.writes)
        sink = io.BytesIO()

        text = session.dump(sink=sink)

        assert fake_process.writes == before
        assert text.startswith("reset session\n")
        assert sink.getvalue() == (text + "\n").encode()

    def test_sink_and_send_share_the_same_lines(self, session: Session) -> None:
        self._example(session)
        sink = io.BytesIO()
        assert session.dump(sink=sink) == session.dump(full=True, dry=True)
