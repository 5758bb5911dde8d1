"""
Event Type Classifier
Substring rules deciding whether an event type is a profile sample,
a custom structured event, or ignored.
"""

from typing import Optional, Sequence

from jfrnorm.core.config import ParserConfig
from jfrnorm.core.schema import EventClass


class TypeClassifier:
    """
    Classifies event type identifiers against configured matchers.

    Matching is case-sensitive substring containment, so a matcher such as
    "Socket" also matches "jdk.SocketRead" and "my.WebSocketFrame". Profile
    matchers are checked before custom event matchers; the first hit wins.
    """

    def __init__(self, config: Optional[ParserConfig] = None):
        config = config or ParserConfig()
        self.profile_matchers: Sequence[str] = config.profile_matchers
        self.custom_event_matchers: Sequence[str] = config.custom_event_matchers

    @staticmethod
    def _first_match(type_id: str, matchers: Sequence[str]) -> Optional[str]:
        for matcher in matchers:
            if matcher in type_id:
                return matcher
        return None

    def is_profile(self, type_id: str) -> bool:
        return self._first_match(type_id, self.profile_matchers) is not None

    def is_custom_event(self, type_id: str) -> bool:
        return self._first_match(type_id, self.custom_event_matchers) is not None

    def classify(self, type_id: str) -> EventClass:
        if self.is_profile(type_id):
            return EventClass.PROFILE
        if self.is_custom_event(type_id):
            return EventClass.CUSTOM
        return EventClass.IGNORE

    def matched_by(self, type_id: str) -> Optional[str]:
        """Return the matcher responsible for the classification, if any."""
        return self._first_match(type_id, self.profile_matchers) or self._first_match(
            type_id, self.custom_event_matchers
        )
