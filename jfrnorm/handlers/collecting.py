"""
Collecting Handler
In-memory EventHandler that keeps every sample and record, with JSON and
Parquet export and thresholded flame graph folding.
"""

import io
import logging
from collections import Counter, defaultdict
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import pyarrow as pa
import pyarrow.parquet as pq

from jfrnorm.core.schema import SemanticTag, StackSample
from jfrnorm.core.utils import safe_json_dump
from jfrnorm.handlers.base import EventHandler

logger = logging.getLogger(__name__)

ROOT_FRAME = "all"

_ARROW_TYPES = {
    SemanticTag.TEXT.value: pa.string(),
    SemanticTag.NUMBER.value: pa.int64(),
    SemanticTag.TIMESTAMP.value: pa.timestamp("ms"),
}


def _frame_names(stack_trace: Any) -> List[str]:
    """Frame names of a stack trace, innermost first."""
    if stack_trace is None:
        return []
    return [str(frame) for frame in stack_trace]


class CollectingHandler(EventHandler):
    """
    Keeps normalized output in memory.

    samples: profile type -> StackSample list
    headers: custom type -> "name:tag" column list
    records: custom type -> list of (thread_id, record)
    """

    def __init__(self):
        self.profiles: List[str] = []
        self.pids: List[str] = []
        self.samples: Dict[str, List[StackSample]] = defaultdict(list)
        self.events: List[str] = []
        self.headers: Dict[str, List[str]] = {}
        self.records: Dict[str, List[Tuple[int, List[Any]]]] = defaultdict(list)

    # ==========================================================================
    # EventHandler callbacks
    # ==========================================================================

    def initialize_profile(self, type_id: str) -> None:
        self.profiles.append(type_id)

    def initialize_pid(self, type_id: str) -> None:
        self.pids.append(type_id)

    def process_event(
        self,
        buffer: io.StringIO,
        stack_trace: Any,
        type_id: str,
        thread_id: int,
        epoch_timestamp: int,
    ) -> None:
        self.samples[type_id].append(
            StackSample(
                thread_id=thread_id,
                epoch_timestamp=epoch_timestamp,
                stack_trace=stack_trace,
                event_type_id=type_id,
            )
        )

    def initialize_event(self, type_id: str) -> None:
        self.events.append(type_id)

    def add_header(self, type_id: str, columns: List[str]) -> None:
        self.headers[type_id] = list(columns)

    def process_context(self, record: List[Any], thread_id: int, type_id: str) -> None:
        self.records[type_id].append((thread_id, list(record)))

    # ==========================================================================
    # Queries
    # ==========================================================================

    @property
    def sample_count(self) -> int:
        return sum(len(s) for s in self.samples.values())

    @property
    def record_count(self) -> int:
        return sum(len(r) for r in self.records.values())

    def thread_sample_counts(self, type_id: Optional[str] = None) -> Dict[int, int]:
        """Samples per thread id, for one profile type or all of them."""
        counts: Counter = Counter()
        for sample in self._samples_for(type_id):
            counts[sample.thread_id] += 1
        return dict(counts)

    def _samples_for(self, type_id: Optional[str]) -> List[StackSample]:
        if type_id is not None:
            return self.samples.get(type_id, [])
        return [s for samples in self.samples.values() for s in samples]

    def flame_graph(self, type_id: Optional[str] = None, threshold: float = 0.0) -> Dict[str, Any]:
        """
        Fold samples into a root-first call tree.

        Returns {"name", "value", "children": [...]} where value counts samples
        passing through the node. Nodes carrying less than threshold of all
        samples are pruned.
        """
        root: Dict[str, Any] = {"name": ROOT_FRAME, "value": 0, "children": {}}
        samples = self._samples_for(type_id)
        for sample in samples:
            root["value"] += 1
            node = root
            for name in reversed(_frame_names(sample.stack_trace)):
                children = node["children"]
                child = children.get(name)
                if child is None:
                    child = {"name": name, "value": 0, "children": {}}
                    children[name] = child
                child["value"] += 1
                node = child

        min_value = threshold * root["value"]
        pruned = self._prune(root, min_value)
        logger.debug(f"Folded {len(samples)} samples into flame graph (min value {min_value:.1f})")
        return pruned

    def _prune(self, node: Dict[str, Any], min_value: float) -> Dict[str, Any]:
        children = [
            self._prune(child, min_value)
            for child in sorted(node["children"].values(), key=lambda c: -c["value"])
            if child["value"] >= min_value
        ]
        return {"name": node["name"], "value": node["value"], "children": children}

    # ==========================================================================
    # Export
    # ==========================================================================

    def to_dict(self) -> Dict[str, Any]:
        return {
            "profiles": {
                type_id: [
                    {
                        "tid": s.thread_id,
                        "epoch": s.epoch_timestamp,
                        "frames": _frame_names(s.stack_trace),
                    }
                    for s in samples
                ]
                for type_id, samples in self.samples.items()
            },
            "events": {
                type_id: {
                    "header": self.headers.get(type_id, []),
                    "records": [record for _, record in records],
                }
                for type_id, records in self.records.items()
            },
        }

    def write_json(self, path: Union[str, Path]) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        safe_json_dump(self.to_dict(), path)
        logger.info(f"Wrote {self.sample_count} samples and {self.record_count} records to {path}")
        return path

    def to_arrow(self, type_id: str) -> pa.Table:
        """Build an Arrow table for one custom event type from its header tags."""
        header = self.headers.get(type_id)
        if header is None:
            raise KeyError(f"No header for event type {type_id}")

        fields = []
        seen: Counter = Counter()
        for column in header:
            name, _, tag = column.rpartition(":")
            seen[name] += 1
            if seen[name] > 1:
                name = f"{name}_{seen[name]}"
            fields.append(pa.field(name, _ARROW_TYPES.get(tag, pa.string())))
        schema = pa.schema(fields)

        rows = [record for _, record in self.records.get(type_id, [])]
        arrays = [
            pa.array([row[i] for row in rows], type=field.type)
            for i, field in enumerate(schema)
        ]
        return pa.Table.from_arrays(arrays, schema=schema)

    def write_parquet(self, directory: Union[str, Path]) -> List[Path]:
        """Write one Parquet file per custom event type."""
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)

        written = []
        for type_id in self.headers:
            path = directory / f"{type_id}.parquet"
            pq.write_table(self.to_arrow(type_id), path)
            written.append(path)

        logger.info(f"Wrote {len(written)} Parquet tables to {directory}")
        return written

