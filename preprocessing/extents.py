"""
Bounding-box discovery for labeled objects.

Extents keep the ``max - min`` width/height convention, so a single-pixel
object has width = height = 0. Labels that never occur in the mask get an
empty extent (width = height = 0, min at the raster's far corner).
"""

from dataclasses import dataclass
from typing import Iterable, List

import numpy as np
from scipy import ndimage


@dataclass(frozen=True)
class Extent:
    """Axis-aligned bounding box of one label's pixels."""

    width: int
    height: int
    min_x: int
    min_y: int
    label_id: int
    empty: bool = False

    @property
    def max_x(self) -> int:
        return self.min_x + self.width

    @property
    def max_y(self) -> int:
        return self.min_y + self.height

    @property
    def size(self) -> int:
        """Side length this extent asks of a square patch."""
        return max(self.width, self.height)

    @property
    def is_empty(self) -> bool:
        return self.empty


def empty_extent(label_id: int, mask_shape) -> Extent:
    height, width = mask_shape[:2]
    return Extent(0, 0, width, height, label_id, empty=True)


def find_extents(mask: np.ndarray, start: int, end: int) -> List[Extent]:
    """
    Compute the extent of every label id in ``[start, end)``.

    Each id is found by a full scan of the mask.

    Args:
        mask: 2D label mask
        start: First label id (inclusive)
        end: Last label id (exclusive)

    Returns:
        One Extent per id, ascending
    """
    extents = []

    for label_id in range(start, end):
        ys, xs = np.nonzero(mask == label_id)

        if ys.size == 0:
            extents.append(empty_extent(label_id, mask.shape))
            continue

        min_x, max_x = int(xs.min()), int(xs.max())
        min_y, max_y = int(ys.min()), int(ys.max())
        extents.append(Extent(max_x - min_x, max_y - min_y, min_x, min_y, label_id))

    return extents


def find_extents_single_pass(mask: np.ndarray, start: int, end: int) -> List[Extent]:
    """
    Compute the same extents as :func:`find_extents` in one traversal.

    Uses ``scipy.ndimage.find_objects``, which accumulates the bounding
    slices of every label while walking the mask once.
    """
    if end <= start:
        return []

    slices = ndimage.find_objects(mask, max_label=end - 1)
    extents = []

    for label_id in range(start, end):
        found = slices[label_id - 1] if label_id - 1 < len(slices) else None

        if found is None:
            extents.append(empty_extent(label_id, mask.shape))
            continue

        rows, cols = found
        extents.append(Extent(
            width=cols.stop - 1 - cols.start,
            height=rows.stop - 1 - rows.start,
            min_x=cols.start,
            min_y=rows.start,
            label_id=label_id,
        ))

    return extents


def merge_extents(per_worker: Iterable[List[Extent]]) -> List[Extent]:
    """Concatenate per-worker extent lists into one list ordered by label id."""
    merged = [e for extents in per_worker for e in extents]
    merged.sort(key=lambda e: e.label_id)
    return merged


def global_patch_size(extents: Iterable[Extent]) -> int:
    """Largest ``max(width, height)`` over all extents, 0 if there are none."""
    return max((e.size for e in extents), default=0)
