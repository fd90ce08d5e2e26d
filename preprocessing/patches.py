"""
Fixed-size patch extraction around labeled objects.
"""

import numpy as np

from preprocessing.extents import Extent


class PatchExtractor:
    """
    Crop objects out of the raw raster into zero-padded square patches.

    Every patch in a run has the same side length. The object's pixels sit
    in the top-left corner regardless of where the object lies in the raster.

    Args:
        raw: 2D intensity raster (read only)
        patch_size: Side length shared by all patches in the run
    """

    def __init__(self, raw: np.ndarray, patch_size: int):
        self.raw = raw
        self.patch_size = max(int(patch_size), 1)

    def extract(self, extent: Extent) -> np.ndarray:
        """
        Extract the patch for one extent.

        The copied span runs from ``min`` through ``max`` inclusive and is
        clipped to the patch and to the raster, so samples that fall outside
        either are skipped. Intensities are copied unscaled.

        Args:
            extent: Bounding box of the object

        Returns:
            float32 array of shape (patch_size, patch_size)
        """
        side = self.patch_size
        patch = np.zeros((side, side), dtype=np.float32)

        raster_h, raster_w = self.raw.shape[:2]
        y0, x0 = extent.min_y, extent.min_x
        y1 = min(y0 + min(extent.height + 1, side), raster_h)
        x1 = min(x0 + min(extent.width + 1, side), raster_w)

        if y1 <= y0 or x1 <= x0:
            return patch

        patch[:y1 - y0, :x1 - x0] = self.raw[y0:y1, x0:x1]
        return patch
