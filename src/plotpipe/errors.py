"""Exception taxonomy for plotpipe.

Every error aborts only the call that raised it; sessions and the registry
are left structurally intact.
"""

from __future__ import annotations


class PlotpipeError(Exception):
    """Base class for all plotpipe errors."""


class SpawnError(PlotpipeError):
    """The external process could not be started."""


class NotRunningError(PlotpipeError):
    """An operation targeted a process that has already exited."""


class SessionNotFoundError(PlotpipeError, LookupError):
    """No live session has the requested ID."""


class MultiplotStateError(PlotpipeError):
    """A multiplot was started while another one is active."""


class ShapeMismatchError(PlotpipeError, ValueError):
    """Data columns passed for one block have different lengths."""


class PipeIOError(PlotpipeError, OSError):
    """Writing to a process's stdin failed."""


class ProtocolStallError(PlotpipeError):
    """A capture drain hit a closed stream before the end marker.

    Raised instead of returning partial data: the reply can never complete.
    """
