"""
Events Module - Event source model and trace loading.
"""

from jfrnorm.events.model import (
    STACK_TRACE_KEY,
    Attribute,
    EventCollection,
    EventGroup,
    EventType,
    Frame,
    StackTrace,
    Thread,
    TraceEvent,
)
from jfrnorm.events.loader import TraceLoader

__all__ = [
    "STACK_TRACE_KEY",
    "Attribute",
    "EventCollection",
    "EventGroup",
    "EventType",
    "Frame",
    "StackTrace",
    "Thread",
    "TraceEvent",
    "TraceLoader",
]
