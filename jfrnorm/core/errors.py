"""
Parser Exceptions
Error taxonomy surfaced by the parse gateway.
"""


class JfrNormError(Exception):
    """Base class for all parser errors."""


class InvalidArgumentError(JfrNormError, ValueError):
    """A required argument (handler, source, config value) is missing or invalid."""


class ParserBusyError(JfrNormError):
    """Worker pool and queue are saturated. No work was accepted; retry later."""


class ParseJobError(JfrNormError):
    """A parse job failed after it started running."""


class TraceDecodeError(ParseJobError):
    """The event source could not decode the trace input."""
