"""
Parser Data Schema Definitions
Enums and dataclasses for event classification, column schemas, samples and jobs.
"""

import time
import uuid
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, List, Optional, Tuple


class ContentKind(str, Enum):
    """Semantic content kind attached to an event attribute."""

    THREAD = "thread"
    TIMESTAMP = "timestamp"
    TIMESPAN = "timespan"
    TEXT = "text"
    NUMBER = "number"
    OTHER = "other"

    @classmethod
    def parse(cls, value: str) -> "ContentKind":
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER


class SemanticTag(str, Enum):
    """Column tag emitted in headers."""

    TEXT = "text"
    NUMBER = "number"
    TIMESTAMP = "timestamp"


class EventClass(Enum):
    """Outcome of event type classification."""

    PROFILE = auto()  # Stack sample
    CUSTOM = auto()  # Structured application event
    IGNORE = auto()


@dataclass(frozen=True)
class Column:
    """Single column of a custom event table."""

    name: str
    tag: SemanticTag

    @property
    def header(self) -> str:
        return f"{self.name}:{self.tag.value}"


@dataclass(frozen=True)
class ColumnSchema:
    """Ordered column layout for one event type, fixed once built."""

    type_id: str
    columns: Tuple[Column, ...]

    @property
    def headers(self) -> List[str]:
        return [c.header for c in self.columns]

    def __len__(self) -> int:
        return len(self.columns)


@dataclass
class StackSample:
    """One delivered profile sample."""

    thread_id: int
    epoch_timestamp: int
    stack_trace: Any
    event_type_id: str


@dataclass
class SessionStats:
    """Counters for a single normalization pass."""

    profile_types: int = 0
    custom_types: int = 0
    ignored_types: int = 0
    samples: int = 0
    records: int = 0
    dropped_samples: int = 0


class JobStatus(Enum):
    """Status of a parse job."""

    QUEUED = auto()
    RUNNING = auto()
    COMPLETED = auto()
    FAILED = auto()
    REJECTED = auto()  # Pool saturated


@dataclass
class ParseJob:
    """
    A parse request: the sink to populate and the trace to read.

    source is a filesystem path (str or Path), bytes, or a binary stream.
    """

    handler: Any
    source: Any

    job_id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    status: JobStatus = JobStatus.QUEUED
    error: Optional[BaseException] = None
    stats: Optional[SessionStats] = None

    submitted_at: float = field(default_factory=time.time)
    started_at: Optional[float] = None
    completed_at: Optional[float] = None

    @property
    def queue_time_s(self) -> float:
        if self.started_at and self.submitted_at:
            return self.started_at - self.submitted_at
        return 0.0

    @property
    def execution_time_s(self) -> float:
        if self.completed_at and self.started_at:
            return self.completed_at - self.started_at
        return 0.0
