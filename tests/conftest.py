"""Shared fixtures: in-memory sessions and plotters on the fake gnuplot."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from fakes import FAKE_GNUPLOT_COMMAND, FakeProcess
from plotpipe.config import PlotpipeConfig
from plotpipe.plotter import Plotter
from plotpipe.session.session import Session
from plotpipe.wire import Wire


@pytest.fixture
def wire() -> Wire:
    return Wire(verbosity=4)


@pytest.fixture
def fake_process() -> Iterator[FakeProcess]:
    proc = FakeProcess()
    yield proc
    proc.close()
    proc.stdout.close()
    proc.stderr.close()


@pytest.fixture
def session(fake_process: FakeProcess, wire: Wire) -> Iterator[Session]:
    s = Session(1, fake_process, wire)  # type: ignore[arg-type]
    s.start_readers()
    yield s
    s.close()


@pytest.fixture
def gp() -> Iterator[Plotter]:
    """A plotter whose sessions run the fake gnuplot script."""
    with Plotter(PlotpipeConfig(command=FAKE_GNUPLOT_COMMAND)) as plotter:
        yield plotter
