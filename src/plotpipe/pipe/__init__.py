"""Pipe process management — external processes driven over stdin.

Each process gets two background output readers (stdout and stderr) that
share one bounded capture queue.
"""

from plotpipe.pipe.process import CAPTURE_QUEUE_SIZE, PipeProcess, ProcessStatus
from plotpipe.pipe.reader import (
    CAPTURE_BEGIN,
    CAPTURE_END,
    STREAM_CLOSED,
    OutputReader,
    drain_capture,
)

__all__ = [
    "CAPTURE_BEGIN",
    "CAPTURE_END",
    "CAPTURE_QUEUE_SIZE",
    "STREAM_CLOSED",
    "OutputReader",
    "PipeProcess",
    "ProcessStatus",
    "drain_capture",
]
