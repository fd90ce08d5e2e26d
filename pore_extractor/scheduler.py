"""
Static work partitioning and the fixed-size worker pool.

Label ids 1..N are split into contiguous ranges, one per worker. The same
partitions are used for every phase, so a worker's second-phase range
matches the extents it computed in the first phase.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Any, Callable, List, Sequence

from tqdm import tqdm

from pore_extractor.errors import ConfigError, WorkerError

logger = logging.getLogger(__name__)

# Files written per label: identity plus three rotations
VARIANTS_PER_LABEL = 4


@dataclass(frozen=True)
class Partition:
    """Contiguous label id range ``[start, end)`` handled by one worker."""

    index: int
    start: int
    end: int

    @property
    def label_ids(self) -> range:
        return range(self.start, self.end)

    @property
    def file_offset(self) -> int:
        """First output file number; disjoint across partitions."""
        return self.start * VARIANTS_PER_LABEL

    def __len__(self) -> int:
        return max(self.end - self.start, 0)


def partition_labels(total_objects: int, nthreads: int) -> List[Partition]:
    """
    Split label ids ``1..total_objects`` into ``nthreads`` contiguous ranges.

    Each range holds ``total_objects // nthreads`` ids and the last one also
    takes the remainder. Background (0) is never included.

    Args:
        total_objects: Highest label id
        nthreads: Number of workers

    Returns:
        List of ``nthreads`` partitions in id order
    """
    if nthreads < 1:
        raise ConfigError(f"Thread count must be at least 1, got {nthreads}")

    total_objects = max(int(total_objects), 0)
    per_worker = total_objects // nthreads
    spare = total_objects % nthreads

    partitions = []
    for t in range(nthreads):
        start = t * per_worker + 1
        end = (t + 1) * per_worker + 1
        if t == nthreads - 1:
            end += spare
        partitions.append(Partition(index=t, start=start, end=end))

    return partitions


class WorkScheduler:
    """
    Run one task per partition on a fixed-size thread pool.

    :meth:`run` is a join barrier: it returns only after every partition has
    reported. Shared inputs are passed by reference; tasks must not modify
    them.

    Args:
        nthreads: Pool size
        show_progress: Show a progress bar while waiting on workers
    """

    def __init__(self, nthreads: int, show_progress: bool = False):
        if nthreads < 1:
            raise ConfigError(f"Thread count must be at least 1, got {nthreads}")
        self.nthreads = nthreads
        self.show_progress = show_progress

    def run(
        self,
        partitions: Sequence[Partition],
        task: Callable[..., Any],
        *args: Any,
        desc: str = "Workers",
    ) -> List[Any]:
        """
        Execute ``task(*args, partition)`` for every partition.

        Args:
            partitions: Partitions from :func:`partition_labels`
            task: Callable run once per partition
            *args: Shared, read-only arguments placed before the partition
            desc: Progress bar label

        Returns:
            Task results ordered by partition index

        Raises:
            WorkerError: If any task raised; pending tasks are cancelled
        """
        results: List[Any] = [None] * len(partitions)

        with ThreadPoolExecutor(max_workers=self.nthreads) as executor:
            futures = {
                executor.submit(task, *args, partition): i
                for i, partition in enumerate(partitions)
            }

            with tqdm(
                as_completed(futures),
                total=len(futures),
                desc=desc,
                disable=not self.show_progress,
            ) as completed:
                for future in completed:
                    i = futures[future]
                    try:
                        results[i] = future.result()
                    except Exception as e:
                        for pending in futures:
                            pending.cancel()
                        partition = partitions[i]
                        raise WorkerError(
                            f"Worker {partition.index} failed on labels "
                            f"[{partition.start}, {partition.end}): {e}",
                            partition.index,
                        ) from e
                    logger.debug(f"{desc}: partition {partitions[i].index} done")

        return results
