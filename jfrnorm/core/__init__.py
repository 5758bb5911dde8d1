"""
Core Module - Configuration, schemas, units, errors and utilities.
"""

from jfrnorm.core.config import ParserConfig
from jfrnorm.core.errors import (
    JfrNormError,
    InvalidArgumentError,
    ParserBusyError,
    ParseJobError,
    TraceDecodeError,
)
from jfrnorm.core.schema import *

__all__ = [
    "ParserConfig",
    "JfrNormError",
    "InvalidArgumentError",
    "ParserBusyError",
    "ParseJobError",
    "TraceDecodeError",
]
