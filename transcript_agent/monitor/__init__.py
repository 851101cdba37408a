"""
Monitor - Real-time Orchestration

Observes the transcript store, debounces changes, serializes analysis and
generation, and keeps bounded conversation history.
"""

from .events import EventEmitter
from .monitor import MonitorState, TranscriptMonitor, next_poll_interval

__all__ = [
    "EventEmitter",
    "MonitorState",
    "TranscriptMonitor",
    "next_poll_interval",
]
