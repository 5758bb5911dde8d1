"""
Parser Configuration
Type matchers, sample filters and worker pool sizing. Loadable from YAML.
"""

import logging
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import yaml

from jfrnorm.core.errors import InvalidArgumentError

logger = logging.getLogger(__name__)


DEFAULT_PROFILE_MATCHERS = ("ExecutionS", "Socket")
DEFAULT_CUSTOM_EVENT_MATCHERS = ("LogContext", "MqFrm", "CPUEvent", "MemoryEvent")

# 10 minutes starting at the first sample
DEFAULT_SAMPLE_WINDOW_NS = 600_000_000_000


@dataclass(frozen=True)
class ParserConfig:
    """
    Process-wide parser configuration. Immutable after construction.

    Matchers are substring tests against event type identifiers. Profile
    matchers take precedence over custom event matchers.
    """

    profile_matchers: Tuple[str, ...] = DEFAULT_PROFILE_MATCHERS
    custom_event_matchers: Tuple[str, ...] = DEFAULT_CUSTOM_EVENT_MATCHERS

    # Flame graph nodes below this fraction of all samples are pruned
    threshold: float = 0.005
    # Profile samples later than first sample + window are dropped; None disables
    sample_window_ns: Optional[int] = DEFAULT_SAMPLE_WINDOW_NS

    # Worker pool
    min_workers: int = 1
    max_workers: int = 2
    queue_capacity: int = 10
    idle_timeout_s: float = 300.0

    def __post_init__(self):
        # Accept any sequence but store tuples
        object.__setattr__(self, "profile_matchers", tuple(self.profile_matchers))
        object.__setattr__(self, "custom_event_matchers", tuple(self.custom_event_matchers))
        self._validate()

    def _validate(self) -> None:
        if self.min_workers < 1:
            raise InvalidArgumentError(f"min_workers must be >= 1, got {self.min_workers}")
        if self.max_workers < self.min_workers:
            raise InvalidArgumentError(
                f"max_workers ({self.max_workers}) must be >= min_workers ({self.min_workers})"
            )
        if self.queue_capacity < 0:
            raise InvalidArgumentError(f"queue_capacity must be >= 0, got {self.queue_capacity}")
        if self.idle_timeout_s <= 0:
            raise InvalidArgumentError(f"idle_timeout_s must be > 0, got {self.idle_timeout_s}")
        if not 0.0 <= self.threshold < 1.0:
            raise InvalidArgumentError(f"threshold must be in [0, 1), got {self.threshold}")
        if self.sample_window_ns is not None and self.sample_window_ns < 0:
            raise InvalidArgumentError(
                f"sample_window_ns must be >= 0, got {self.sample_window_ns}"
            )
        if any(not m for m in self.profile_matchers + self.custom_event_matchers):
            raise InvalidArgumentError("Empty matcher would match every event type")

        overlap = set(self.profile_matchers) & set(self.custom_event_matchers)
        if overlap:
            logger.warning(
                f"Matchers configured as both profile and custom event: {sorted(overlap)} "
                f"(profile takes precedence)"
            )

    @property
    def window_enabled(self) -> bool:
        return bool(self.sample_window_ns)

    def with_overrides(self, **overrides: Any) -> "ParserConfig":
        """Return a copy with the given fields replaced."""
        return replace(self, **overrides)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["profile_matchers"] = list(self.profile_matchers)
        data["custom_event_matchers"] = list(self.custom_event_matchers)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParserConfig":
        """Build a config from a mapping; unknown keys are ignored with a warning."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            logger.warning(f"Ignoring unknown parser config keys: {sorted(unknown)}")
        try:
            return cls(**{k: v for k, v in data.items() if k in known})
        except TypeError as e:
            raise InvalidArgumentError(f"Invalid parser config value: {e}") from e

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "ParserConfig":
        """
        Load configuration from a YAML file.

        The parser settings may live at the top level or under a `parser:` key.
        """
        path = Path(path)
        if not path.exists():
            raise InvalidArgumentError(f"Config file not found: {path}")

        with open(path, "r") as f:
            config = yaml.safe_load(f) or {}

        if not isinstance(config, dict):
            raise InvalidArgumentError(f"Config file must contain a mapping: {path}")

        section = config.get("parser", config)
        if section is None:
            section = {}
        if not isinstance(section, dict):
            raise InvalidArgumentError(f"parser section must be a mapping: {path}")
        logger.info(f"Loaded parser config from {path}")
        return cls.from_dict(section)
