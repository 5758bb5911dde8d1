"""
jfrnorm Test Configuration and Fixtures
=======================================
Shared fixtures and configuration for all tests.
"""

import json
import pytest
from pathlib import Path
from typing import Any, Dict, List
from unittest.mock import MagicMock

from jfrnorm.core.schema import ContentKind
from jfrnorm.core.units import COUNT, EPOCH_NS, NANOSECOND, Quantity
from jfrnorm.events.model import (
    Attribute,
    EventCollection,
    EventType,
    Frame,
    StackTrace,
    Thread,
    TraceEvent,
)
from jfrnorm.handlers.base import EventHandler


# 2023-11-14T22:13:20Z in epoch nanoseconds
BASE_EPOCH_NS = 1_700_000_000_000_000_000


def make_stack(*methods: str) -> StackTrace:
    """Stack trace from method names, innermost first."""
    return StackTrace(frames=tuple(Frame(method=m) for m in methods))


# =============================================================================
# Event types
# =============================================================================

@pytest.fixture
def profile_type() -> EventType:
    """Execution sample type with timestamp, thread and stack trace."""
    return EventType(
        identifier="jdk.ExecutionSample",
        attributes=(
            Attribute("startTime", ContentKind.TIMESTAMP, EPOCH_NS),
            Attribute("sampledThread", ContentKind.THREAD),
            Attribute("stackTrace", ContentKind.OTHER),
            Attribute("state", ContentKind.OTHER),
        ),
    )


@pytest.fixture
def custom_type() -> EventType:
    """Application log context type: thread, timestamp, text."""
    return EventType(
        identifier="app.LogContext",
        attributes=(
            Attribute("eventThread", ContentKind.THREAD),
            Attribute("startTime", ContentKind.TIMESTAMP, EPOCH_NS),
            Attribute("message", ContentKind.TEXT),
        ),
    )


@pytest.fixture
def cpu_event_type() -> EventType:
    """Custom type carrying a timespan and a number."""
    return EventType(
        identifier="app.CPUEvent",
        attributes=(
            Attribute("startTime", ContentKind.TIMESTAMP, EPOCH_NS),
            Attribute("duration", ContentKind.TIMESPAN, NANOSECOND),
            Attribute("eventThread", ContentKind.THREAD),
            Attribute("load", ContentKind.NUMBER, COUNT),
            Attribute("stackTrace", ContentKind.OTHER),
        ),
    )


# =============================================================================
# Traces
# =============================================================================

@pytest.fixture
def profile_events(profile_type) -> List[TraceEvent]:
    """Three samples across two threads."""
    samples = [
        (0, Thread(11, "main"), make_stack("a.Worker.run", "java.lang.Thread.run")),
        (10_000_000, Thread(12, "pool-1"), make_stack("a.Io.read", "java.lang.Thread.run")),
        (20_000_000, Thread(11, "main"), make_stack("a.Worker.run", "java.lang.Thread.run")),
    ]
    return [
        TraceEvent(
            event_type=profile_type,
            values={
                "startTime": Quantity(BASE_EPOCH_NS + offset, EPOCH_NS),
                "sampledThread": thread,
                "stackTrace": stack,
            },
        )
        for offset, thread, stack in samples
    ]


@pytest.fixture
def custom_events(custom_type) -> List[TraceEvent]:
    """Five log context instances."""
    return [
        TraceEvent(
            event_type=custom_type,
            values={
                "eventThread": Thread(20 + i % 2, f"worker-{i % 2}"),
                "startTime": Quantity(BASE_EPOCH_NS + i * 1_000_000, EPOCH_NS),
                "message": f"request {i}",
            },
        )
        for i in range(5)
    ]


@pytest.fixture
def profile_trace(profile_events) -> EventCollection:
    return EventCollection.from_events(profile_events)


@pytest.fixture
def custom_trace(custom_events) -> EventCollection:
    return EventCollection.from_events(custom_events)


@pytest.fixture
def mixed_trace(profile_events, custom_events) -> EventCollection:
    """Profile, custom and an ignored type."""
    ignored_type = EventType(
        identifier="jdk.GarbageCollection",
        attributes=(Attribute("startTime", ContentKind.TIMESTAMP, EPOCH_NS),),
    )
    ignored = TraceEvent(
        event_type=ignored_type,
        values={"startTime": Quantity(BASE_EPOCH_NS, EPOCH_NS)},
    )
    return EventCollection.from_events(profile_events + [ignored] + custom_events)


@pytest.fixture
def mock_handler():
    """Handler mock recording every callback in order."""
    return MagicMock(spec=EventHandler)


# =============================================================================
# Serialized trace documents
# =============================================================================

@pytest.fixture
def trace_document() -> Dict[str, Any]:
    """JSON trace document with profile, custom and ignored types."""
    return {
        "types": [
            {
                "id": "jdk.ExecutionSample",
                "attributes": [
                    {"id": "startTime", "kind": "timestamp", "unit": "epochns"},
                    {"id": "sampledThread", "kind": "thread"},
                    {"id": "stackTrace", "kind": "stacktrace"},
                ],
            },
            {
                "id": "app.MemoryEvent",
                "attributes": [
                    {"id": "startTime", "kind": "timestamp"},
                    {"id": "duration", "kind": "timespan", "unit": "ms"},
                    {"id": "eventThread", "kind": "thread"},
                    {"id": "heapUsed", "kind": "number", "unit": "count"},
                    {"id": "pool", "kind": "text"},
                ],
            },
            {
                "id": "jdk.ClassLoad",
                "attributes": [{"id": "startTime", "kind": "timestamp"}],
            },
        ],
        "events": [
            {
                "type": "jdk.ExecutionSample",
                "values": {
                    "startTime": BASE_EPOCH_NS,
                    "sampledThread": {"id": 1, "name": "main"},
                    "stackTrace": {"frames": [{"method": "a.B.run", "line": 7}]},
                },
            },
            {"type": "jdk.ClassLoad", "values": {"startTime": BASE_EPOCH_NS}},
            {
                "type": "app.MemoryEvent",
                "values": {
                    "startTime": BASE_EPOCH_NS + 1_500_000,
                    "duration": 250,
                    "eventThread": {"id": 2, "name": "gc"},
                    "heapUsed": 1024,
                    "pool": "old",
                },
            },
            {
                "type": "jdk.ExecutionSample",
                "values": {
                    "startTime": BASE_EPOCH_NS + 5_000_000,
                    "sampledThread": {"id": 2, "name": "gc"},
                    "stackTrace": {
                        "frames": [
                            {"method": "a.C.sweep", "line": 3},
                            {"method": "a.B.run", "line": 7},
                        ]
                    },
                },
            },
        ],
    }


@pytest.fixture
def trace_file(tmp_path, trace_document) -> Path:
    path = tmp_path / "recording.json"
    path.write_text(json.dumps(trace_document))
    return path


# =============================================================================
# Test Markers
# =============================================================================

def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow running")
    config.addinivalue_line("markers", "integration: marks integration tests")
