"""
Preprocessing module for Pore Extractor.

Contains:
- Raster loading with shape and type checks
- Per-label extent discovery
- Fixed-size patch extraction
- Edge-clamped Gaussian denoising
- Lossless rotation augmentation
"""

from preprocessing.image_processor import ImagePreprocessor, gaussian_kernel
from preprocessing.extents import (
    Extent,
    find_extents,
    find_extents_single_pass,
    merge_extents,
    global_patch_size,
)
from preprocessing.patches import PatchExtractor
from preprocessing.augmentation import DataAugmentor, Direction

__all__ = [
    "ImagePreprocessor",
    "gaussian_kernel",
    "Extent",
    "find_extents",
    "find_extents_single_pass",
    "merge_extents",
    "global_patch_size",
    "PatchExtractor",
    "DataAugmentor",
    "Direction",
]
