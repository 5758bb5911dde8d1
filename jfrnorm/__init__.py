"""
jfrnorm - Flight recording trace normalizer

Converts decoded flight recordings into per-sample stack records for
flame graphs and per-type tables of structured application events.
"""

__version__ = "1.0.0"

from jfrnorm.core.config import ParserConfig
from jfrnorm.core.errors import (
    JfrNormError,
    InvalidArgumentError,
    ParserBusyError,
    ParseJobError,
    TraceDecodeError,
)
from jfrnorm.core.schema import (
    ColumnSchema,
    ContentKind,
    EventClass,
    ParseJob,
    SemanticTag,
    StackSample,
)
from jfrnorm.events import EventCollection, TraceLoader
from jfrnorm.handlers import CollectingHandler, EventHandler
from jfrnorm.parser import (
    FieldExtractor,
    NormalizationDriver,
    ParseGateway,
    SchemaRegistry,
    TypeClassifier,
)

__all__ = [
    # Core
    "ParserConfig",
    "JfrNormError",
    "InvalidArgumentError",
    "ParserBusyError",
    "ParseJobError",
    "TraceDecodeError",
    "ColumnSchema",
    "ContentKind",
    "EventClass",
    "ParseJob",
    "SemanticTag",
    "StackSample",
    # Events
    "EventCollection",
    "TraceLoader",
    # Handlers
    "EventHandler",
    "CollectingHandler",
    # Parser
    "TypeClassifier",
    "SchemaRegistry",
    "FieldExtractor",
    "NormalizationDriver",
    "ParseGateway",
    # Version
    "__version__",
]
