"""
Raster loading and patch denoising for pore extraction.

Supports:
- TIFF loading via tifffile, other formats via Pillow
- Shape and pixel-type checks for raw intensity and label mask rasters
- Edge-clamped Gaussian blur of extracted patches
"""

import logging
import math
from pathlib import Path
from typing import Optional, Union

import numpy as np
import tifffile
from PIL import Image
from scipy import ndimage

from pore_extractor.config import ExtractionConfig
from pore_extractor.errors import DecodeError

logger = logging.getLogger(__name__)

# Kernel radius in units of sigma
KERNEL_EXTENT = 2.57

RAW_DTYPE = np.float32
MASK_DTYPE = np.uint16


def gaussian_kernel(sigma: float) -> np.ndarray:
    """
    Build the (2r+1) x (2r+1) Gaussian weight grid, r = ceil(2.57 * sigma).

    Weights are ``exp(-d^2 / (2 sigma^2)) / (2 pi sigma^2)`` and are left
    unnormalized.
    """
    radius = int(math.ceil(sigma * KERNEL_EXTENT))
    offsets = np.arange(-radius, radius + 1, dtype=np.float64)
    yy, xx = np.meshgrid(offsets, offsets, indexing="ij")
    dist_sq = xx ** 2 + yy ** 2
    return np.exp(-dist_sq / (2.0 * sigma ** 2)) / (2.0 * math.pi * sigma ** 2)


class ImagePreprocessor:
    """
    Input loading and patch filtering.

    Args:
        config: Extraction configuration (expected raster size, blur sigma)
    """

    def __init__(self, config: Optional[ExtractionConfig] = None):
        self.config = config or ExtractionConfig()

    def load(self, path: Union[str, Path]) -> np.ndarray:
        """
        Load image from file.

        Args:
            path: Path to image file

        Returns:
            Image as numpy array, single-channel axes squeezed out
        """
        path = Path(path)

        if not path.exists():
            raise DecodeError(f"Image not found: {path}")

        try:
            if path.suffix.lower() in [".tif", ".tiff"]:
                image = tifffile.imread(str(path))
            else:
                image = np.array(Image.open(path))
        except (OSError, ValueError) as e:
            raise DecodeError(f"Cannot decode {path}: {e}") from e

        if image.ndim == 3 and 1 in (image.shape[0], image.shape[-1]):
            image = np.squeeze(image, axis=0 if image.shape[0] == 1 else -1)

        return image

    def check_raster(self, image: np.ndarray, dtype, name: str) -> np.ndarray:
        """
        Verify a raster is single channel, of the given type and expected size.

        Raises:
            DecodeError: On any mismatch
        """
        if image.ndim != 2:
            raise DecodeError(f"{name} must be single channel, got shape {image.shape}")

        if image.dtype != dtype:
            raise DecodeError(f"{name} must be {np.dtype(dtype).name}, got {image.dtype}")

        expected = (self.config.height, self.config.width)
        if image.shape != expected:
            raise DecodeError(
                f"{name} is {image.shape[1]}x{image.shape[0]}, "
                f"expected {expected[1]}x{expected[0]}"
            )

        return image

    def load_raw(self, path: Union[str, Path]) -> np.ndarray:
        """Load the 32-bit float intensity raster."""
        raw = self.check_raster(self.load(path), RAW_DTYPE, "Raw image")
        logger.info(f"Raw image loaded: {path}")
        return raw

    def load_mask(self, path: Union[str, Path]) -> np.ndarray:
        """Load the 16-bit label mask."""
        mask = self.check_raster(self.load(path), MASK_DTYPE, "Label mask")
        logger.info(f"Label mask loaded: {path}")
        return mask

    @staticmethod
    def count_objects(mask: np.ndarray) -> int:
        """Number of objects, taken as the highest label id in the mask."""
        return int(mask.max()) if mask.size else 0

    def denoise(
        self,
        patch: np.ndarray,
        sigma: Optional[float] = None,
    ) -> np.ndarray:
        """
        Apply Gaussian blur with edge clamping.

        Neighbours outside the patch are read from the nearest edge pixel,
        and the weighted sum is divided by the total weight, so a constant
        patch comes out unchanged. The input is never modified.

        Args:
            patch: 2D patch
            sigma: Blur sigma (uses config if None); <= 0 disables blurring

        Returns:
            Blurred patch with the input dtype
        """
        sigma = self.config.sigma if sigma is None else sigma

        if sigma <= 0:
            return patch

        weights = gaussian_kernel(sigma)
        blurred = ndimage.correlate(patch.astype(np.float64), weights, mode="nearest")
        return (blurred / weights.sum()).astype(patch.dtype)
