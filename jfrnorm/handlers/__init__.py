"""
Handlers Module - Sinks receiving normalized samples and records.
"""

from jfrnorm.handlers.base import EventHandler
from jfrnorm.handlers.collecting import CollectingHandler

__all__ = ["EventHandler", "CollectingHandler"]
