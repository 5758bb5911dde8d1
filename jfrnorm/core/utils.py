"""
Parser Utilities
Timing helpers and JSON output.
"""

import json
import logging
import math
import time
from pathlib import Path
from typing import Any, Union

logger = logging.getLogger(__name__)


def get_monotonic_ns() -> int:
    """Get monotonic clock time in nanoseconds."""
    return time.monotonic_ns()


def ns_to_ms(ns: int) -> float:
    """Convert nanoseconds to milliseconds."""
    return ns / 1_000_000


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves rounded up."""
    return math.floor(value + 0.5)


def epoch_ns_to_ms(epoch_ns: Union[int, float]) -> int:
    """Convert an epoch nanosecond timestamp to rounded epoch milliseconds."""
    if isinstance(epoch_ns, int):
        return (epoch_ns + 500_000) // 1_000_000
    return round_half_up(epoch_ns / 1_000_000)


def safe_json_dump(data: Any, path: Union[str, Path], indent: int = 2) -> None:
    """Safely write JSON to file with atomic write pattern."""
    path = Path(path)
    temp_path = path.with_suffix(".tmp")

    try:
        with open(temp_path, "w") as f:
            json.dump(data, f, indent=indent, default=str)
        temp_path.replace(path)
    except Exception as e:
        logger.error(f"Failed to write JSON to {path}: {e}")
        if temp_path.exists():
            temp_path.unlink()
        raise


class Timer:
    """Context manager for timing code blocks."""

    def __init__(self, name: str = ""):
        self.name = name
        self.start_ns = 0
        self.end_ns = 0
        self.duration_ns = 0
        self.duration_ms = 0.0

    @property
    def duration_s(self) -> float:
        return self.duration_ns / 1e9

    def __enter__(self) -> "Timer":
        self.start_ns = get_monotonic_ns()
        return self

    def __exit__(self, *args) -> None:
        self.end_ns = get_monotonic_ns()
        self.duration_ns = self.end_ns - self.start_ns
        self.duration_ms = ns_to_ms(self.duration_ns)

        if self.name:
            logger.debug(f"{self.name}: {self.duration_ms:.2f} ms")
