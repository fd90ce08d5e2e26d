"""
Pore Extractor
==============

Extracts labeled pores from large microscopy rasters as fixed-size,
augmented FITS patches for training data.

Main Components:
- Extent discovery: per-label bounding boxes over a label mask
- Scheduling: static label partitions on a fixed worker pool
- Preprocessing: cropping, Gaussian denoising and rotation augmentation
- Postprocessing: FITS export
"""

__version__ = "0.1.0"

from pore_extractor.core import PoreExtractor, ExtractionResult
from pore_extractor.config import Config

__all__ = [
    "PoreExtractor",
    "ExtractionResult",
    "Config",
    "__version__",
]
