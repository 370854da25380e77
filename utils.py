"""Errors, logging and the partition worker pool used by parallel streams."""

import logging
from typing import Any, Callable, List, Optional, Sequence
from concurrent.futures import Executor, ThreadPoolExecutor, ProcessPoolExecutor, as_completed

from models import ExecutorKind, ParallelSettings

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class StreamError(Exception):
    """Base class for stream contract violations."""
    pass


class EmptyResultError(StreamError, LookupError):
    """Raised when the value of an empty Option is accessed."""
    pass


class UnboundedStreamError(StreamError):
    """Raised when a terminal operation would never halt on an unbounded stream."""
    pass


class StreamConsumedError(StreamError):
    """Raised when a stream is used after it was linked or consumed."""
    pass


def partition(items: Sequence[Any], parts: int) -> List[Sequence[Any]]:
    """Split items into at most `parts` contiguous slices whose sizes differ by at most one."""
    size = len(items)
    if size == 0:
        return []
    parts = max(1, min(parts, size))
    base, extra = divmod(size, parts)

    chunks = []
    start = 0
    for index in range(parts):
        end = start + base + (1 if index < extra else 0)
        chunks.append(items[start:end])
        start = end
    return chunks


class PartitionPool:
    """Runs one worker call per partition on a thread or process pool."""

    def __init__(self, settings: Optional[ParallelSettings] = None):
        self.settings = settings or ParallelSettings()

    def _executor(self) -> Executor:
        if self.settings.executor == ExecutorKind.PROCESS:
            return ProcessPoolExecutor(max_workers=self.settings.max_workers)
        return ThreadPoolExecutor(max_workers=self.settings.max_workers)

    def _log_dispatch(self, chunks: List[Sequence[Any]]):
        logger.info(
            f"Dispatching {len(chunks)} partitions to "
            f"{self.settings.max_workers} {self.settings.executor.value} workers"
        )

    def map_ordered(self, worker: Callable[..., Any], chunks: List[Sequence[Any]], *args) -> List[Any]:
        """Call worker(chunk, *args) for every chunk; results come back in partition order."""
        if not chunks:
            return []
        self._log_dispatch(chunks)
        with self._executor() as executor:
            futures = [executor.submit(worker, chunk, *args) for chunk in chunks]
            return [future.result() for future in futures]

    def first_decisive(self, worker: Callable[..., Any], chunks: List[Sequence[Any]],
                       is_decisive: Callable[[Any], bool], *args) -> Any:
        """Return the first partition result (by completion) accepted by is_decisive.

        Pending partitions are cancelled once a decisive result arrives.
        Returns None when no partition produces a decisive result.
        """
        if not chunks:
            return None
        self._log_dispatch(chunks)
        decided = None
        with self._executor() as executor:
            futures = [executor.submit(worker, chunk, *args) for chunk in chunks]
            try:
                for future in as_completed(futures):
                    result = future.result()
                    if is_decisive(result):
                        decided = result
                        break
            finally:
                cancelled = sum(1 for future in futures if future.cancel())
                if cancelled:
                    logger.debug(f"Short-circuited, cancelled {cancelled} pending partitions")
        return decided
