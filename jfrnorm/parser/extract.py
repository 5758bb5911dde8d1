"""
Field Extractor
Turns one custom event instance into a record aligned with its ColumnSchema,
applying unit-aware conversion per attribute content kind.
"""

import logging
from typing import Any, Iterable, List, Optional, Tuple

from jfrnorm.core.schema import ContentKind
from jfrnorm.core.units import NANOSECOND, Quantity, Unit, unit_ratio
from jfrnorm.core.utils import epoch_ns_to_ms, round_half_up
from jfrnorm.events.model import Attribute, Thread, TraceEvent

logger = logging.getLogger(__name__)

NO_THREAD = -1

# Timestamps are epoch nanoseconds unless a preceding timestamp says otherwise
DEFAULT_REFERENCE_UNIT: Unit = NANOSECOND


def convert_timestamp(quantity: Quantity) -> int:
    """Raw native timestamp value to epoch milliseconds."""
    return epoch_ns_to_ms(quantity.long_value())


def convert_timespan(quantity: Quantity, reference_unit: Unit) -> int:
    """
    Timespan to milliseconds relative to a reference timestamp unit.

    duration_ms = round(unit_ratio(span_unit, reference.delta_unit) * raw / 1e6)
    """
    ratio = unit_ratio(quantity.unit, reference_unit.delta_unit)
    return round_half_up(ratio * quantity.long_value() / 1_000_000)


class FieldExtractor:
    """
    Extracts ordered record values from event instances.

    Attributes are visited in the event type's declared order. A timespan is
    scaled against the unit of the most recent timestamp in the same record;
    without one it falls back to nanoseconds. Missing values become None so the
    record keeps the schema's column count.
    """

    def extract(
        self, event: TraceEvent, attributes: Iterable[Attribute]
    ) -> Tuple[List[Any], int]:
        """Return (record, resolved_thread_id)."""
        record: List[Any] = []
        thread_id = NO_THREAD
        reference_unit: Optional[Unit] = None

        for attribute in attributes:
            kind = attribute.content_kind
            value = attribute.get(event)

            if kind == ContentKind.THREAD:
                if isinstance(value, Thread):
                    thread_id = value.thread_id
                    record.append(value.thread_id)
                    record.append(value.name)
                else:
                    record.extend([None, None])

            elif kind == ContentKind.TIMESTAMP:
                if value is None:
                    reference_unit = attribute.unit or reference_unit
                    record.append(None)
                else:
                    reference_unit = value.unit
                    record.append(convert_timestamp(value))

            elif kind == ContentKind.TIMESPAN:
                if value is None:
                    record.append(None)
                    continue
                if reference_unit is None:
                    logger.debug(
                        f"{event.event_type.identifier}.{attribute.identifier}: no preceding "
                        f"timestamp, converting against {DEFAULT_REFERENCE_UNIT}"
                    )
                record.append(convert_timespan(value, reference_unit or DEFAULT_REFERENCE_UNIT))

            elif kind == ContentKind.TEXT:
                record.append(value)

            elif kind == ContentKind.NUMBER:
                record.append(value.long_value() if value is not None else None)

        return record, thread_id
