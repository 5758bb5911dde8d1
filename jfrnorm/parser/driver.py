"""
Normalization Driver
Single pass over a decoded trace that classifies each event group and pushes
stack samples and structured records into an EventHandler.
"""

import io
import logging
from fractions import Fraction
from typing import Optional, Set, Tuple

from jfrnorm.core.config import ParserConfig
from jfrnorm.core.schema import ContentKind, EventClass, SessionStats
from jfrnorm.core.units import EPOCH_NS, Quantity, unit_fraction
from jfrnorm.events.model import EventCollection, EventGroup, Thread, TraceEvent
from jfrnorm.handlers.base import EventHandler
from jfrnorm.parser.classify import TypeClassifier
from jfrnorm.parser.extract import NO_THREAD, FieldExtractor
from jfrnorm.parser.registry import SchemaRegistry

logger = logging.getLogger(__name__)

NO_TIMESTAMP = -1


class _Session:
    """State scoped to one run() call."""

    def __init__(self):
        self.registry = SchemaRegistry()
        self.buffer = io.StringIO()
        self.initialized_profiles: Set[str] = set()
        self.window_start_ns: Optional[Fraction] = None
        self.stats = SessionStats()


class NormalizationDriver:
    """
    Walks an EventCollection once and feeds the handler.

    Groups are processed in collection order and instances in delivery
    order. Nothing is buffered beyond the record being built. All per-run
    state lives in a fresh session, so one driver may serve concurrent runs.
    """

    def __init__(self, config: Optional[ParserConfig] = None):
        self.config = config or ParserConfig()
        self.classifier = TypeClassifier(self.config)
        self.extractor = FieldExtractor()

    def run(self, events: EventCollection, handler: EventHandler) -> SessionStats:
        session = _Session()

        for group in events:
            event_class = self.classifier.classify(group.type_id)

            if event_class == EventClass.PROFILE:
                session.stats.profile_types += 1
                self._process_profile_group(group, handler, session)
            elif event_class == EventClass.CUSTOM:
                session.stats.custom_types += 1
                self._process_custom_group(group, handler, session)
            else:
                session.stats.ignored_types += 1
                logger.debug(f"Ignoring event type {group.type_id}")

        if session.stats.dropped_samples:
            logger.info(
                f"Dropped {session.stats.dropped_samples} samples outside the "
                f"{self.config.sample_window_ns / 1e9:.0f}s sample window"
            )
        return session.stats

    # ==========================================================================
    # Profile samples
    # ==========================================================================

    def _process_profile_group(
        self, group: EventGroup, handler: EventHandler, session: _Session
    ) -> None:
        type_id = group.type_id
        event_type = group.event_type

        if type_id not in session.initialized_profiles:
            logger.debug(f"Initializing profile {type_id}")
            handler.initialize_profile(type_id)
            handler.initialize_pid(type_id)
            session.initialized_profiles.add(type_id)

        stack_accessor = event_type.stack_trace_accessor
        for event in group:
            thread_id, timestamp = self._resolve_sample_context(event)

            if timestamp is not None and self._outside_window(timestamp, session):
                session.stats.dropped_samples += 1
                continue

            epoch = timestamp.long_value() if timestamp is not None else NO_TIMESTAMP
            handler.process_event(session.buffer, stack_accessor(event), type_id, thread_id, epoch)
            session.stats.samples += 1

    @staticmethod
    def _resolve_sample_context(event: TraceEvent) -> Tuple[int, Optional[Quantity]]:
        thread_id = NO_THREAD
        timestamp = None
        for attribute in event.event_type.attributes:
            if attribute.content_kind == ContentKind.THREAD:
                value = attribute.get(event)
                if isinstance(value, Thread):
                    thread_id = value.thread_id
            elif attribute.content_kind == ContentKind.TIMESTAMP:
                value = attribute.get(event)
                if value is not None:
                    timestamp = value
        return thread_id, timestamp

    def _outside_window(self, timestamp: Quantity, session: _Session) -> bool:
        if not self.config.window_enabled:
            return False
        # Kept exact; epoch nanoseconds exceed float precision
        epoch_ns = timestamp.long_value() * unit_fraction(timestamp.unit, EPOCH_NS)
        if session.window_start_ns is None:
            session.window_start_ns = epoch_ns
            return False
        return epoch_ns - session.window_start_ns > self.config.sample_window_ns

    # ==========================================================================
    # Custom structured events
    # ==========================================================================

    def _process_custom_group(
        self, group: EventGroup, handler: EventHandler, session: _Session
    ) -> None:
        type_id = group.type_id
        schema, _ = session.registry.get_or_build(type_id, group.event_type.attributes)
        # Later groups of the same type reuse the attributes the schema came from
        attributes = session.registry.attributes_for(type_id)

        for event in group:
            record, thread_id = self.extractor.extract(event, attributes)

            if not session.registry.header_emitted(type_id):
                handler.initialize_event(type_id)
                handler.add_header(type_id, schema.headers)
                session.registry.mark_header_emitted(type_id)

            handler.process_context(record, thread_id, type_id)
            session.stats.records += 1
