"""
Trace Loader
Decodes JSON trace documents (plain or gzip) into an EventCollection.

Document layout:
    {
      "types": [
        {"id": "jdk.ExecutionSample",
         "attributes": [
           {"id": "startTime", "kind": "timestamp", "unit": "epochns"},
           {"id": "sampledThread", "kind": "thread"},
           {"id": "stackTrace", "kind": "stacktrace"}
         ]}
      ],
      "events": [
        {"type": "jdk.ExecutionSample",
         "values": {"startTime": 1700000000000000000,
                    "sampledThread": {"id": 12, "name": "main"},
                    "stackTrace": {"frames": [{"method": "a.B.run", "line": 10}]}}}
      ]
    }
"""

import gzip
import json
import logging
import math
from pathlib import Path
from typing import Any, BinaryIO, Dict, Union

from jfrnorm.core.errors import TraceDecodeError
from jfrnorm.core.schema import ContentKind
from jfrnorm.core.units import (
    COUNT,
    EPOCH_NS,
    NANOSECOND,
    EpochUnit,
    Quantity,
    Unit,
    get_unit,
)
from jfrnorm.events.model import (
    STACK_TRACE_KEY,
    Attribute,
    EventCollection,
    EventType,
    Frame,
    StackTrace,
    Thread,
    TraceEvent,
)

logger = logging.getLogger(__name__)

GZIP_MAGIC = b"\x1f\x8b"

DEFAULT_UNITS = {
    ContentKind.TIMESTAMP: EPOCH_NS,
    ContentKind.TIMESPAN: NANOSECOND,
    ContentKind.NUMBER: COUNT,
}


class TraceLoader:
    """
    Loads decoded trace documents from a path or an in-memory byte stream.
    All decoding problems surface as TraceDecodeError.
    """

    def load_path(self, path: Union[str, Path]) -> EventCollection:
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise TraceDecodeError(f"Could not read trace {path}: {e}") from e
        return self.load_bytes(data)

    def load_stream(self, stream: Union[bytes, bytearray, BinaryIO]) -> EventCollection:
        if isinstance(stream, (bytes, bytearray)):
            return self.load_bytes(bytes(stream))
        try:
            data = stream.read()
        except (OSError, ValueError) as e:
            raise TraceDecodeError(f"Could not read trace stream: {e}") from e
        if not isinstance(data, bytes):
            raise TraceDecodeError("Trace stream must be opened in binary mode")
        return self.load_bytes(data)

    def load_bytes(self, data: bytes) -> EventCollection:
        if data.startswith(GZIP_MAGIC):
            try:
                data = gzip.decompress(data)
            except (OSError, EOFError) as e:
                raise TraceDecodeError(f"Corrupt gzip trace: {e}") from e

        try:
            document = json.loads(data)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise TraceDecodeError(f"Trace is not valid JSON: {e}") from e

        return self.decode(document)

    def decode(self, document: Dict[str, Any]) -> EventCollection:
        """Decode an already-parsed trace document."""
        if not isinstance(document, dict):
            raise TraceDecodeError("Trace document must be a JSON object")

        try:
            types = {}
            for type_doc in document.get("types", []):
                event_type = self._decode_type(type_doc)
                types[event_type.identifier] = event_type

            collection = EventCollection()
            for event_doc in document.get("events", []):
                type_id = event_doc["type"]
                event_type = types.get(type_id)
                if event_type is None:
                    raise TraceDecodeError(f"Event references undeclared type: {type_id}")
                collection.add(self._decode_event(event_type, event_doc.get("values", {})))
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise TraceDecodeError(f"Malformed trace document: {e!r}") from e

        logger.debug(
            f"Decoded {collection.event_count} events across {len(collection)} types"
        )
        return collection

    def _decode_type(self, type_doc: Dict[str, Any]) -> EventType:
        attributes = []
        for attr_doc in type_doc.get("attributes", []):
            kind = ContentKind.parse(attr_doc.get("kind", "other"))
            unit = self._resolve_unit(kind, attr_doc.get("unit"))
            attributes.append(
                Attribute(
                    identifier=attr_doc["id"],
                    content_kind=kind,
                    unit=unit,
                    label=attr_doc.get("label", ""),
                )
            )
        return EventType(
            identifier=type_doc["id"],
            attributes=tuple(attributes),
            label=type_doc.get("label", ""),
        )

    def _resolve_unit(self, kind: ContentKind, symbol: Any) -> Unit:
        if symbol is None:
            return DEFAULT_UNITS.get(kind)
        try:
            unit = get_unit(symbol)
        except KeyError:
            raise TraceDecodeError(f"Unknown unit: {symbol}") from None

        if kind == ContentKind.TIMESTAMP and not isinstance(unit, EpochUnit):
            raise TraceDecodeError(f"Timestamp attributes need an epoch unit, got {symbol}")
        if kind == ContentKind.TIMESPAN and unit.dimension != "time":
            raise TraceDecodeError(f"Timespan attributes need a time unit, got {symbol}")
        return unit

    def _decode_event(self, event_type: EventType, values: Dict[str, Any]) -> TraceEvent:
        if not isinstance(values, dict):
            raise TraceDecodeError(f"Values of {event_type.identifier} must be an object")
        decoded = {}
        for attribute in event_type.attributes:
            raw = values.get(attribute.identifier)
            if raw is None:
                continue
            decoded[attribute.identifier] = self._decode_value(attribute, raw)
        return TraceEvent(event_type=event_type, values=decoded)

    def _decode_value(self, attribute: Attribute, raw: Any) -> Any:
        kind = attribute.content_kind

        if kind == ContentKind.THREAD:
            return Thread(thread_id=int(raw["id"]), name=raw.get("name", ""))
        if kind in (ContentKind.TIMESTAMP, ContentKind.TIMESPAN, ContentKind.NUMBER):
            if isinstance(raw, bool) or not isinstance(raw, (int, float)):
                raise TraceDecodeError(
                    f"Attribute {attribute.identifier} expects a number, got {raw!r}"
                )
            if isinstance(raw, float) and not math.isfinite(raw):
                raise TraceDecodeError(
                    f"Attribute {attribute.identifier} expects a finite number, got {raw!r}"
                )
            return Quantity(raw, attribute.unit)
        if kind == ContentKind.TEXT:
            return str(raw)
        if attribute.identifier == STACK_TRACE_KEY:
            return self._decode_stack_trace(raw)
        return raw

    def _decode_stack_trace(self, raw: Dict[str, Any]) -> StackTrace:
        if not isinstance(raw, dict):
            raise TraceDecodeError(f"Stack trace must be an object, got {type(raw).__name__}")
        frames = tuple(
            Frame(
                method=f["method"],
                line=int(f.get("line", -1)),
                frame_type=f.get("type", ""),
            )
            for f in raw.get("frames", [])
        )
        return StackTrace(frames=frames, truncated=bool(raw.get("truncated", False)))
