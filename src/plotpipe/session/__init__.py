"""Plotting sessions — a process, its script log and the registry of both.

Every session accumulates the commands, data blocks and plot fragments it
was given, grouped by multiplot panel, and can replay them as one script.
"""

from plotpipe.session.log import DumpMode, MultiCmd, SessionLog
from plotpipe.session.registry import SessionRegistry
from plotpipe.session.session import Session

__all__ = [
    "DumpMode",
    "MultiCmd",
    "Session",
    "SessionLog",
    "SessionRegistry",
]
