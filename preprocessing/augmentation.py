"""
Lossless geometric augmentation for extracted patches.

Each variant is an exact pixel permutation described by an integer 2x2
matrix acting on (x, y) coordinates, with y pointing down the rows.
"""

from enum import Enum
from typing import Dict, List, Tuple

import numpy as np


class Direction(Enum):
    """Which way the top of the patch ends up facing."""

    IDENTITY = 0
    LEFT = 1
    RIGHT = 2
    DOWN = 3


TRANSFORMS: Dict[Direction, np.ndarray] = {
    Direction.IDENTITY: np.array([[1, 0], [0, 1]]),
    Direction.LEFT: np.array([[0, 1], [-1, 0]]),
    Direction.RIGHT: np.array([[0, -1], [1, 0]]),
    Direction.DOWN: np.array([[-1, 0], [0, -1]]),
}

# Output order for every label
VARIANT_ORDER = (Direction.IDENTITY, Direction.LEFT, Direction.RIGHT, Direction.DOWN)


def apply_matrix(patch: np.ndarray, matrix: np.ndarray) -> np.ndarray:
    """
    Permute the pixels of a square patch by an integer coordinate transform.

    Coordinates are transformed, then shifted so the smallest lands on 0.
    No interpolation: every output pixel is one input pixel.

    Args:
        patch: Square 2D array
        matrix: Integer 2x2 matrix acting on column vectors (x, y)

    Returns:
        Transformed patch, same shape and dtype
    """
    if patch.ndim != 2 or patch.shape[0] != patch.shape[1]:
        raise ValueError(f"Augmentation needs a square 2D patch, got shape {patch.shape}")

    ys, xs = np.indices(patch.shape)
    src = np.stack([xs.ravel(), ys.ravel()])
    dst = matrix @ src
    dst -= dst.min(axis=1, keepdims=True)

    result = np.empty_like(patch)
    result[dst[1], dst[0]] = patch[src[1], src[0]]
    return result


class DataAugmentor:
    """
    Produce the rotated variants of a patch.

    Supports:
    - Quarter turn left (counter-clockwise)
    - Quarter turn right (clockwise)
    - Half turn (down)
    """

    def transform(self, patch: np.ndarray, direction: Direction) -> np.ndarray:
        """Apply the transform for one direction."""
        return apply_matrix(patch, TRANSFORMS[direction])

    def invert(self, patch: np.ndarray, direction: Direction) -> np.ndarray:
        """
        Undo :meth:`transform` for the given direction.

        The matrices are rotations, so the transpose is the inverse.
        """
        return apply_matrix(patch, TRANSFORMS[direction].T)

    def augment(self, patch: np.ndarray) -> List[Tuple[Direction, np.ndarray]]:
        """
        Generate all variants of a patch.

        Args:
            patch: Square 2D patch

        Returns:
            List of (direction, patch) in IDENTITY, LEFT, RIGHT, DOWN order
        """
        return [(d, self.transform(patch, d)) for d in VARIANT_ORDER]
