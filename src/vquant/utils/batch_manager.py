"""
Batch operations manager for the vquant library.

This module provides an order-preserving thread pool used for the
data-parallel loops of the quantizers: per-subspace training, per-subspace
encoding and row-wise batch quantize/dequantize.
"""

import os
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, TypeVar

from ..exceptions import InvalidHyperparameterError

T = TypeVar("T")
R = TypeVar("R")


def resolve_workers(n_jobs: Optional[int]) -> int:
    """
    Translate an ``n_jobs`` setting into a worker count.

    ``None`` and ``1`` mean sequential execution, ``-1`` means one worker per CPU.
    """
    if n_jobs is None:
        return 1
    if n_jobs == -1:
        return os.cpu_count() or 1
    if n_jobs < 1:
        raise InvalidHyperparameterError(f"n_jobs must be positive or -1, got {n_jobs}")
    return int(n_jobs)


class BatchManager:
    """
    Runs independent work items on a shared-memory worker pool.

    Results always come back in input order. The first exception raised by a
    worker is re-raised in the caller once the pool has drained.
    """

    def __init__(self, max_workers: Optional[int] = None, batch_size: int = 1024):
        """
        Initialize batch manager.

        Args:
            max_workers: Number of worker threads (``n_jobs`` semantics)
            batch_size: Number of rows handed to a worker at once
        """
        if batch_size < 1:
            raise InvalidHyperparameterError(f"batch_size must be positive, got {batch_size}")
        self.max_workers = resolve_workers(max_workers)
        self.batch_size = batch_size
        self._stats: Dict[str, Any] = {
            "total_items": 0,
            "processed_items": 0,
            "start_time": None,
            "end_time": None,
        }

    def map(self, func: Callable[[T], R], items: Iterable[T]) -> List[R]:
        """
        Apply ``func`` to every item.

        Args:
            func: Function applied to each item
            items: Work items

        Returns:
            List of results in the same order as ``items``
        """
        items = list(items)
        self._stats["total_items"] = len(items)
        self._stats["processed_items"] = 0
        self._stats["start_time"] = time.time()

        try:
            if self.max_workers == 1 or len(items) <= 1:
                results = [func(item) for item in items]
            else:
                with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                    results = list(executor.map(func, items))
            self._stats["processed_items"] = len(results)
            return results
        finally:
            self._stats["end_time"] = time.time()

    def map_batches(self, func: Callable[[Sequence[T]], List[R]], items: Sequence[T]) -> List[R]:
        """
        Apply ``func`` to consecutive chunks of ``batch_size`` items and flatten.

        Args:
            func: Function taking a chunk and returning one result per element
            items: Sequence supporting slicing (list or numpy array)

        Returns:
            Flattened list of results in input order
        """
        chunks = [items[i:i + self.batch_size] for i in range(0, len(items), self.batch_size)]
        results: List[R] = []
        for chunk_result in self.map(func, chunks):
            results.extend(chunk_result)
        return results

    def get_stats(self) -> Dict[str, Any]:
        """Get statistics of the last run."""
        stats = self._stats.copy()
        if stats["start_time"] is not None and stats["end_time"] is not None:
            stats["duration"] = stats["end_time"] - stats["start_time"]
        stats["max_workers"] = self.max_workers
        return stats
