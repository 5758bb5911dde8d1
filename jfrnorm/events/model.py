"""
Event Source Model
In-memory view of a decoded trace: event types with typed attributes,
grouped instances, threads and stack traces.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Tuple

from jfrnorm.core.schema import ContentKind
from jfrnorm.core.units import Unit

# Accessor key of the dedicated stack trace attribute
STACK_TRACE_KEY = "stackTrace"


@dataclass(frozen=True)
class Thread:
    """Java thread identity."""

    thread_id: int
    name: str = ""


@dataclass(frozen=True)
class Frame:
    """Single stack frame."""

    method: str
    line: int = -1
    frame_type: str = ""

    def __str__(self) -> str:
        return self.method


@dataclass(frozen=True)
class StackTrace:
    """Stack snapshot, innermost frame first."""

    frames: Tuple[Frame, ...] = ()
    truncated: bool = False

    def __len__(self) -> int:
        return len(self.frames)

    def __iter__(self) -> Iterator[Frame]:
        return iter(self.frames)


@dataclass(frozen=True)
class Attribute:
    """Named, typed attribute of an event type."""

    identifier: str
    content_kind: ContentKind
    unit: Optional[Unit] = None
    label: str = ""

    def get(self, event: "TraceEvent") -> Any:
        """Extract this attribute's value from an event instance."""
        return event.values.get(self.identifier)


Accessor = Callable[["TraceEvent"], Any]


@dataclass
class EventType:
    """Event type definition with its ordered attributes."""

    identifier: str
    attributes: Tuple[Attribute, ...] = ()
    label: str = ""

    def __post_init__(self):
        self.attributes = tuple(self.attributes)
        self._by_key: Dict[str, Attribute] = {a.identifier: a for a in self.attributes}

    def has_attribute(self, key: str) -> bool:
        return key in self._by_key

    def get_accessor(self, key: str) -> Optional[Accessor]:
        """Return a per-instance accessor for the attribute, or None if undefined."""
        attribute = self._by_key.get(key)
        return attribute.get if attribute else None

    @property
    def stack_trace_accessor(self) -> Accessor:
        accessor = self.get_accessor(STACK_TRACE_KEY)
        if accessor is None:
            return lambda event: None
        return accessor


@dataclass
class TraceEvent:
    """Single event instance."""

    event_type: EventType
    values: Dict[str, Any] = field(default_factory=dict)


@dataclass
class EventGroup:
    """All instances of one event type, in delivery order."""

    event_type: EventType
    events: List[TraceEvent] = field(default_factory=list)

    @property
    def type_id(self) -> str:
        return self.event_type.identifier

    def __iter__(self) -> Iterator[TraceEvent]:
        return iter(self.events)

    def __len__(self) -> int:
        return len(self.events)


class EventCollection:
    """
    Decoded trace as an iterable of per-type event groups.

    Groups appear in the order they were added; a type may span several
    groups. Instances keep delivery order within a group.
    """

    def __init__(self, groups: Optional[Iterable[EventGroup]] = None):
        self._groups: List[EventGroup] = list(groups or [])
        self._latest: Dict[str, EventGroup] = {g.type_id: g for g in self._groups}

    @classmethod
    def from_events(cls, events: Iterable[TraceEvent]) -> "EventCollection":
        collection = cls()
        for event in events:
            collection.add(event)
        return collection

    def add(self, event: TraceEvent) -> None:
        type_id = event.event_type.identifier
        group = self._latest.get(type_id)
        if group is None:
            group = EventGroup(event_type=event.event_type)
            self._groups.append(group)
            self._latest[type_id] = group
        group.events.append(event)

    @property
    def type_ids(self) -> List[str]:
        return list(dict.fromkeys(g.type_id for g in self._groups))

    @property
    def event_count(self) -> int:
        return sum(len(g) for g in self._groups)

    def __iter__(self) -> Iterator[EventGroup]:
        return iter(list(self._groups))

    def __len__(self) -> int:
        return len(self._groups)
