"""
Schema Registry
Per-session, build-once column schemas for custom event types.
"""

import logging
from typing import Dict, Iterable, List, Optional, Set, Tuple

from jfrnorm.core.schema import Column, ColumnSchema, ContentKind, SemanticTag
from jfrnorm.events.model import Attribute

logger = logging.getLogger(__name__)


THREAD_ID_COLUMN = Column("tid", SemanticTag.NUMBER)
THREAD_NAME_COLUMN = Column("threadname", SemanticTag.TEXT)

_TAGS = {
    ContentKind.TIMESTAMP: SemanticTag.TIMESTAMP,
    ContentKind.TIMESPAN: SemanticTag.NUMBER,
    ContentKind.TEXT: SemanticTag.TEXT,
    ContentKind.NUMBER: SemanticTag.NUMBER,
}


def columns_for(attribute: Attribute) -> List[Column]:
    """Columns contributed by one attribute (empty for unsupported kinds)."""
    if attribute.content_kind == ContentKind.THREAD:
        return [THREAD_ID_COLUMN, THREAD_NAME_COLUMN]
    tag = _TAGS.get(attribute.content_kind)
    if tag is None:
        return []
    return [Column(attribute.identifier, tag)]


class SchemaRegistry:
    """
    Maps event type id to its ColumnSchema.

    A schema is derived from the type's attribute order on first request and
    returned unchanged afterwards. Header emission is tracked separately so
    callers can emit headers exactly once per type. One instance per parse
    session; not shared between threads.
    """

    def __init__(self):
        self._schemas: Dict[str, ColumnSchema] = {}
        self._attributes: Dict[str, Tuple[Attribute, ...]] = {}
        self._emitted: Set[str] = set()

    def get_or_build(
        self, type_id: str, attributes: Iterable[Attribute]
    ) -> Tuple[ColumnSchema, bool]:
        """Return (schema, is_newly_built)."""
        schema = self._schemas.get(type_id)
        if schema is not None:
            return schema, False

        attributes = tuple(attributes)
        columns: List[Column] = []
        for attribute in attributes:
            columns.extend(columns_for(attribute))

        schema = ColumnSchema(type_id=type_id, columns=tuple(columns))
        self._schemas[type_id] = schema
        self._attributes[type_id] = attributes
        logger.debug(f"Built schema for {type_id}: {schema.headers}")
        return schema, True

    def get(self, type_id: str) -> Optional[ColumnSchema]:
        return self._schemas.get(type_id)

    def attributes_for(self, type_id: str) -> Tuple[Attribute, ...]:
        """Attributes the schema was built from, in column order."""
        return self._attributes[type_id]

    def header_emitted(self, type_id: str) -> bool:
        return type_id in self._emitted

    def mark_header_emitted(self, type_id: str) -> None:
        self._emitted.add(type_id)

    def __contains__(self, type_id: str) -> bool:
        return type_id in self._schemas

    def __len__(self) -> int:
        return len(self._schemas)
