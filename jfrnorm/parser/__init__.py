"""
Parser Module - Classification, schema inference, extraction and the parse gateway.
"""

from jfrnorm.parser.classify import TypeClassifier
from jfrnorm.parser.registry import SchemaRegistry
from jfrnorm.parser.extract import FieldExtractor, convert_timespan, convert_timestamp
from jfrnorm.parser.driver import NormalizationDriver
from jfrnorm.parser.gateway import BoundedWorkerPool, ParseGateway, PoolSaturatedError

__all__ = [
    "TypeClassifier",
    "SchemaRegistry",
    "FieldExtractor",
    "convert_timespan",
    "convert_timestamp",
    "NormalizationDriver",
    "BoundedWorkerPool",
    "ParseGateway",
    "PoolSaturatedError",
]
