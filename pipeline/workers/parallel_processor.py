"""
Parallel classification of discovered files by a fixed pool of worker threads.
"""

import logging
import multiprocessing as mp
import queue
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, List, Mapping, Optional

from base_classes import FaultyFileRecord, WorkItem
from lexers.line_classifier import LineClassifier
from pipeline.stages.aggregation import ContentAggregator, FaultyFiles
from pipeline_errors import FileClassificationError

logger = logging.getLogger(__name__)

MAX_WORKERS = 32

# Sentinel marking the end of the stream, one per consumer
_END_OF_STREAM = object()


class WorkChannel:
    """
    Multi-producer/multi-consumer channel of WorkItems.

    close() pushes one end-of-stream marker per consumer, so a consumer
    blocked on get() wakes up either with an item or with None once
    discovery is over, without polling.
    """

    def __init__(self, consumers: int):
        self._queue: "queue.Queue" = queue.Queue()
        self._consumers = consumers
        self._closed = False
        self._lock = threading.Lock()
        self._items_put = 0

    def put(self, item: WorkItem):
        with self._lock:
            if self._closed:
                raise RuntimeError("Cannot put on a closed channel")
            self._items_put += 1
        self._queue.put(item)

    def close(self):
        """Signal end of stream; later calls are no-ops"""
        with self._lock:
            if self._closed:
                return
            self._closed = True
        for _ in range(self._consumers):
            self._queue.put(_END_OF_STREAM)

    def get(self) -> Optional[WorkItem]:
        """Next item, or None once the stream has ended"""
        item = self._queue.get()
        if item is _END_OF_STREAM:
            return None
        return item

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def items_put(self) -> int:
        return self._items_put


class ParallelProcessor:
    """Manages the worker threads classifying files pulled from the channel."""

    def __init__(self,
                 classifiers: Mapping[str, LineClassifier],
                 aggregator: ContentAggregator,
                 faulty_files: FaultyFiles,
                 num_workers: Optional[int] = None,
                 progress_callback: Optional[Callable[[WorkItem], None]] = None):
        """Initialize the processor; workers start with start()."""
        self.num_workers = min(num_workers or mp.cpu_count(), MAX_WORKERS)
        self.classifiers = classifiers
        self.aggregator = aggregator
        self.faulty_files = faulty_files
        self.progress_callback = progress_callback
        self.channel = WorkChannel(self.num_workers)
        self.executor = ThreadPoolExecutor(max_workers=self.num_workers,
                                           thread_name_prefix='line-counter-worker')
        self._futures: List[Future] = []

        logger.info(f"Initialized ParallelProcessor with {self.num_workers} workers")

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - ensure cleanup."""
        self.shutdown()
        return False

    def start(self):
        """Start every worker; they block on the channel until items arrive."""
        if self._futures:
            raise RuntimeError("Workers already started")
        self._futures = [self.executor.submit(self._worker_loop, worker_id)
                         for worker_id in range(self.num_workers)]

    def join(self) -> int:
        """
        Wait for every worker to drain the channel.

        Returns:
            Number of work items processed by the pool

        Raises:
            Any exception that escaped a worker loop
        """
        processed = sum(future.result() for future in self._futures)
        logger.debug(f"All workers completed, {processed} items processed")
        return processed

    def shutdown(self):
        """Close the channel and shut the executor down gracefully."""
        self.channel.close()
        try:
            self.executor.shutdown(wait=True)
        except Exception as e:
            logger.error(f"Error shutting down executor: {e}")

    def _worker_loop(self, worker_id: int) -> int:
        """Process items until end of stream."""
        processed = 0
        while True:
            item = self.channel.get()
            if item is None:
                break
            self._process_item(item)
            processed += 1

        logger.debug(f"Worker {worker_id} finished after {processed} items")
        return processed

    def _process_item(self, item: WorkItem):
        """
        Classify one file and fold the result into shared state.

        A failing file lands in the faulty list; its content statistics
        are never merged.
        """
        try:
            stats = self.classifiers[item.extension].classify_file(item.path)
        except FileClassificationError as e:
            logger.debug(f"Faulty file {item.path}: {e}")
            self.faulty_files.add(FaultyFileRecord(path=item.path, error=e.reason(), size=item.size))
        except Exception as e:
            logger.error(f"Unexpected error classifying {item.path}: {e}", exc_info=True)
            self.faulty_files.add(FaultyFileRecord(path=item.path, error=f"{type(e).__name__}: {e}",
                                                   size=item.size))
        else:
            self.aggregator.merge(item.extension, stats)

        if self.progress_callback is not None:
            self.progress_callback(item)
