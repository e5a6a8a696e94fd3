"""Structured event logging for tessera.

Provides a unified event schema, filesystem NDJSON sink, and safe
emit helpers that never raise uncaught exceptions.
"""

from tessera.logging.events import (
    EventLevel,
    EventType,
    TesseraEvent,
    emit,
    emit_error,
    emit_info,
    emit_warning,
    get_sink,
    redact_context,
    reset_sink,
    set_project_dir,
)
from tessera.logging.sink import EventSink

__all__ = [
    "EventLevel",
    "EventSink",
    "EventType",
    "TesseraEvent",
    "emit",
    "emit_error",
    "emit_info",
    "emit_warning",
    "get_sink",
    "redact_context",
    "reset_sink",
    "set_project_dir",
]
