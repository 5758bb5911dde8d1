"""
Parse Gateway
Bounded worker pool fronting the normalization driver. Callers block until
their own job finishes; saturation is reported immediately as ParserBusyError.
"""

import json
import logging
import threading
import time
from collections import deque
from concurrent.futures import Future
from pathlib import Path
from typing import Any, Callable, Deque, Optional, Set, Tuple, Union

from jfrnorm.core.config import ParserConfig
from jfrnorm.core.errors import (
    InvalidArgumentError,
    ParseJobError,
    ParserBusyError,
    TraceDecodeError,
)
from jfrnorm.core.schema import JobStatus, ParseJob
from jfrnorm.core.utils import Timer
from jfrnorm.events.loader import TraceLoader
from jfrnorm.events.model import EventCollection
from jfrnorm.handlers.base import EventHandler
from jfrnorm.parser.driver import NormalizationDriver

logger = logging.getLogger(__name__)

BUSY_MESSAGE = "parser is busy, please try again later"


class PoolSaturatedError(RuntimeError):
    """Raised by BoundedWorkerPool.submit when no worker or queue slot is free."""


_Task = Tuple[Future, Callable[..., Any], tuple, dict]


class BoundedWorkerPool:
    """
    Thread pool with a bounded FIFO queue and immediate rejection.

    Admission, under one lock:
    1. fewer than min_workers alive: start a worker for the task
    2. queue has room (counting idle workers as free slots): enqueue
    3. fewer than max_workers alive: start a worker for the task
    4. otherwise raise PoolSaturatedError

    At most max_workers + queue_capacity tasks exist at once. Workers above
    min_workers retire after idle_timeout_s without work.
    """

    def __init__(
        self,
        min_workers: int = 1,
        max_workers: int = 2,
        queue_capacity: int = 10,
        idle_timeout_s: float = 300.0,
        name: str = "jfrnorm-worker",
    ):
        if min_workers < 1 or max_workers < min_workers:
            raise InvalidArgumentError(
                f"Invalid pool bounds: min_workers={min_workers}, max_workers={max_workers}"
            )
        if queue_capacity < 0:
            raise InvalidArgumentError(f"queue_capacity must be >= 0, got {queue_capacity}")

        self.min_workers = min_workers
        self.max_workers = max_workers
        self.queue_capacity = queue_capacity
        self.idle_timeout_s = idle_timeout_s
        self.name = name

        self._lock = threading.Lock()
        self._work_available = threading.Condition(self._lock)
        self._queue: Deque[_Task] = deque()
        self._threads: Set[threading.Thread] = set()
        self._idle = 0
        self._shutdown = False
        self._counter = 0

    @classmethod
    def from_config(cls, config: ParserConfig) -> "BoundedWorkerPool":
        return cls(
            min_workers=config.min_workers,
            max_workers=config.max_workers,
            queue_capacity=config.queue_capacity,
            idle_timeout_s=config.idle_timeout_s,
        )

    @property
    def worker_count(self) -> int:
        with self._lock:
            return len(self._threads)

    @property
    def queued(self) -> int:
        with self._lock:
            return len(self._queue)

    def submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Future:
        """Schedule fn(*args, **kwargs). Raises PoolSaturatedError when full."""
        future: Future = Future()
        task = (future, fn, args, kwargs)

        with self._lock:
            if self._shutdown:
                raise RuntimeError("cannot submit to a pool that has been shut down")

            workers = len(self._threads)
            if workers < self.min_workers:
                self._start_worker(task)
            elif len(self._queue) < self.queue_capacity + self._idle:
                self._queue.append(task)
                self._work_available.notify()
            elif workers < self.max_workers:
                self._start_worker(task)
            else:
                raise PoolSaturatedError(
                    f"{workers} workers busy and {len(self._queue)} tasks queued"
                )

        return future

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting work. Queued tasks still run before workers exit."""
        with self._lock:
            self._shutdown = True
            self._work_available.notify_all()
            threads = list(self._threads)

        if wait:
            for thread in threads:
                thread.join()

    def __enter__(self) -> "BoundedWorkerPool":
        return self

    def __exit__(self, *args) -> None:
        self.shutdown(wait=True)

    # Caller holds the lock
    def _start_worker(self, task: _Task) -> None:
        self._counter += 1
        thread = threading.Thread(
            target=self._worker_loop,
            args=(task,),
            name=f"{self.name}-{self._counter}",
            daemon=True,
        )
        self._threads.add(thread)
        thread.start()

    def _worker_loop(self, task: Optional[_Task]) -> None:
        while task is not None:
            self._run_task(task)
            task = self._next_task()

    @staticmethod
    def _run_task(task: _Task) -> None:
        future, fn, args, kwargs = task
        if not future.set_running_or_notify_cancel():
            return
        try:
            result = fn(*args, **kwargs)
        except BaseException as e:
            future.set_exception(e)
        else:
            future.set_result(result)

    def _next_task(self) -> Optional[_Task]:
        """Block for the next queued task; None means this worker retires."""
        with self._lock:
            self._idle += 1
            try:
                deadline = time.monotonic() + self.idle_timeout_s
                while not self._queue:
                    if self._shutdown:
                        return self._retire()

                    excess = len(self._threads) > self.min_workers
                    remaining = deadline - time.monotonic()
                    if excess and remaining <= 0:
                        return self._retire()

                    self._work_available.wait(remaining if excess else None)
                return self._queue.popleft()
            finally:
                self._idle -= 1

    # Caller holds the lock
    def _retire(self) -> None:
        self._threads.discard(threading.current_thread())
        logger.debug(f"Worker {threading.current_thread().name} retired")
        return None


class ParseGateway:
    """
    Synchronous parse entrypoints over a bounded worker pool.

    Each job loads its trace and runs a full normalization pass on one
    worker. Errors:
    - InvalidArgumentError: missing handler or source, raised before scheduling
    - ParserBusyError: pool and queue saturated, nothing was accepted
    - TraceDecodeError: the trace could not be decoded
    - ParseJobError: any other failure while the job ran

    A failed job's handler may already hold a prefix of the callbacks and
    should be discarded.
    """

    def __init__(
        self,
        config: Optional[ParserConfig] = None,
        loader: Optional[TraceLoader] = None,
        pool: Optional[BoundedWorkerPool] = None,
    ):
        self.config = config or ParserConfig()
        self.loader = loader or TraceLoader()
        self.driver = NormalizationDriver(self.config)
        self.pool = pool or BoundedWorkerPool.from_config(self.config)

        logger.info(f"Parse gateway configuration: {json.dumps(self.config.to_dict())}")

    def parse_path(self, handler: EventHandler, path: Union[str, Path]) -> EventHandler:
        """Parse a trace file and return the populated handler."""
        if not isinstance(path, (str, Path)) or not str(path):
            raise InvalidArgumentError(f"null/empty path argument: {path!r}")
        return self.submit(ParseJob(handler=handler, source=path))

    def parse_stream(self, handler: EventHandler, stream: Any) -> EventHandler:
        """Parse an in-memory trace (bytes or binary stream) and return the handler."""
        if isinstance(stream, (str, Path)):
            raise InvalidArgumentError("parse_stream expects bytes or a binary stream")
        return self.submit(ParseJob(handler=handler, source=stream))

    def submit(self, job: ParseJob) -> EventHandler:
        """Run job on the pool and block until it completes or is rejected."""
        self._validate(job)

        try:
            future = self.pool.submit(self._execute, job)
        except PoolSaturatedError:
            job.status = JobStatus.REJECTED
            logger.warning(BUSY_MESSAGE)
            raise ParserBusyError(BUSY_MESSAGE) from None

        try:
            return future.result()
        except ParseJobError:
            raise
        except Exception as e:
            raise ParseJobError(f"Parse job {job.job_id} failed: {e}") from e

    def close(self) -> None:
        self.pool.shutdown(wait=True)

    def __enter__(self) -> "ParseGateway":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    @staticmethod
    def _validate(job: ParseJob) -> None:
        if job is None:
            raise InvalidArgumentError("null job argument")
        if job.handler is None:
            raise InvalidArgumentError("null/empty handler argument")
        if job.source is None:
            raise InvalidArgumentError("null/empty source argument")

    def _load(self, source: Any) -> EventCollection:
        if isinstance(source, (str, Path)):
            return self.loader.load_path(source)
        return self.loader.load_stream(source)

    def _execute(self, job: ParseJob) -> EventHandler:
        job.status = JobStatus.RUNNING
        job.started_at = time.time()

        try:
            with Timer() as timer:
                events = self._load(job.source)
                job.stats = self.driver.run(events, job.handler)
        except Exception as e:
            job.status = JobStatus.FAILED
            job.error = e
            job.completed_at = time.time()
            if isinstance(e, TraceDecodeError):
                logger.error(f"Job {job.job_id}: could not decode trace: {e}")
            else:
                logger.error(f"Job {job.job_id} failed: {e}")
            raise

        job.status = JobStatus.COMPLETED
        job.completed_at = time.time()
        logger.info(
            f"Job {job.job_id} parse time sec: {timer.duration_s:.3f} "
            f"({job.stats.samples} samples, {job.stats.records} records, "
            f"queued {job.queue_time_s:.3f}s)"
        )
        return job.handler
