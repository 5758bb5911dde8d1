"""
Event Handler Interface
Callback surface the normalization driver pushes results into.
"""

import io
from abc import ABC, abstractmethod
from typing import Any, List


class EventHandler(ABC):
    """
    Sink for normalized trace output.

    Profile types: initialize_profile and initialize_pid fire once per type,
    then process_event once per sample. Custom types: initialize_event and
    add_header fire once per type, then process_context once per instance.
    """

    @abstractmethod
    def initialize_profile(self, type_id: str) -> None:
        ...

    @abstractmethod
    def initialize_pid(self, type_id: str) -> None:
        ...

    @abstractmethod
    def process_event(
        self,
        buffer: io.StringIO,
        stack_trace: Any,
        type_id: str,
        thread_id: int,
        epoch_timestamp: int,
    ) -> None:
        """
        Receive one profile sample.

        buffer is a scratch area owned by the parse session; handlers may
        use it to render frames and must not keep references to it.
        """

    @abstractmethod
    def initialize_event(self, type_id: str) -> None:
        ...

    @abstractmethod
    def add_header(self, type_id: str, columns: List[str]) -> None:
        ...

    @abstractmethod
    def process_context(self, record: List[Any], thread_id: int, type_id: str) -> None:
        ...
