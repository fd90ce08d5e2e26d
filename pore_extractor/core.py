"""
Core module for Pore Extractor.

Provides the PoreExtractor class that runs the two-phase pipeline:
1. Extent discovery per label, in parallel partitions
2. Global patch size reduction (join barrier)
3. Patch cropping, optional denoising, augmentation and FITS export,
   over the same partitions
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Sequence, Union
import numpy as np
import logging

from pore_extractor.config import Config
from pore_extractor.errors import DecodeError
from pore_extractor.scheduler import (
    VARIANTS_PER_LABEL,
    Partition,
    WorkScheduler,
    partition_labels,
)

logger = logging.getLogger(__name__)


@dataclass
class ExtractionResult:
    """Summary of one pipeline run."""

    num_objects: int
    patch_size: int
    extents: list = field(default_factory=list)
    files_written: int = 0
    output_dir: Optional[Path] = None


class PoreExtractor:
    """
    Extract every labeled pore as a fixed-size, augmented patch.

    Example:
        >>> from pore_extractor import PoreExtractor, Config
        >>> config = Config.from_yaml("configs/default.yaml")
        >>> extractor = PoreExtractor(config)
        >>> result = extractor.run_from_files("raw.tif", "objects.tif")
    """

    def __init__(self, config: Optional[Config] = None):
        """
        Initialize the PoreExtractor.

        Args:
            config: Configuration object. If None, uses default config.
        """
        self.config = config or Config()
        self.config.validate()

        self._preprocessor = None
        self._augmentor = None
        self._writer = None

        self.scheduler = WorkScheduler(
            self.config.extraction.nthreads,
            show_progress=self.config.show_progress,
        )

    @property
    def preprocessor(self):
        """Lazy load preprocessor."""
        if self._preprocessor is None:
            from preprocessing import ImagePreprocessor
            self._preprocessor = ImagePreprocessor(self.config.extraction)
        return self._preprocessor

    @property
    def augmentor(self):
        """Lazy load augmentor."""
        if self._augmentor is None:
            from preprocessing import DataAugmentor
            self._augmentor = DataAugmentor()
        return self._augmentor

    @property
    def writer(self):
        """Lazy load patch writer."""
        if self._writer is None:
            from postprocessing import PatchWriter
            self._writer = PatchWriter(self.config.output_dir, self.config.export)
        return self._writer

    def _extent_task(self, mask: np.ndarray, partition: Partition) -> list:
        from preprocessing.extents import find_extents, find_extents_single_pass

        if self.config.extraction.extent_method == "single_pass":
            return find_extents_single_pass(mask, partition.start, partition.end)
        return find_extents(mask, partition.start, partition.end)

    def find_extents(self, mask: np.ndarray, partitions: Sequence[Partition]) -> list:
        """
        Phase 1: compute the extent of every label.

        Args:
            mask: Label mask
            partitions: Label id partitions

        Returns:
            All extents, ordered by label id
        """
        from preprocessing.extents import merge_extents

        per_worker = self.scheduler.run(partitions, self._extent_task, mask, desc="Extents")
        return merge_extents(per_worker)

    def _patch_task(
        self,
        raw: np.ndarray,
        extents_by_label: Dict[int, object],
        patch_size: int,
        partition: Partition,
    ) -> int:
        from preprocessing.patches import PatchExtractor

        extractor = PatchExtractor(raw, patch_size)
        skip_empty = self.config.extraction.skip_empty_labels
        count = partition.file_offset
        written = 0

        for label_id in partition.label_ids:
            extent = extents_by_label[label_id]

            if not (skip_empty and extent.is_empty):
                patch = self.preprocessor.denoise(extractor.extract(extent))
                variants = [v for _, v in self.augmentor.augment(patch)]
                written += self.writer.write_variants(variants, count)

            count += VARIANTS_PER_LABEL

        return written

    def extract_patches(
        self,
        raw: np.ndarray,
        extents: list,
        patch_size: int,
        partitions: Sequence[Partition],
    ) -> int:
        """
        Phase 2: crop, denoise, augment and write the patch of every label.

        Args:
            raw: Raw intensity raster
            extents: Extents from phase 1
            patch_size: Global patch size
            partitions: The partitions used in phase 1

        Returns:
            Total number of files written
        """
        self.config.ensure_dirs()
        # Build shared helpers before workers start
        _ = self.preprocessor, self.augmentor, self.writer
        extents_by_label = {e.label_id: e for e in extents}

        counts = self.scheduler.run(
            partitions,
            self._patch_task,
            raw,
            extents_by_label,
            patch_size,
            desc="Patches",
        )
        return sum(counts)

    def check_inputs(self, raw: np.ndarray, mask: np.ndarray) -> None:
        """
        Verify the rasters agree with each other and with the configured size.

        Raises:
            DecodeError: On any mismatch
        """
        if raw.shape != mask.shape:
            raise DecodeError(f"Raw image shape {raw.shape} does not match mask shape {mask.shape}")
        self.preprocessor.check_raster(raw, np.float32, "Raw image")
        self.preprocessor.check_raster(mask, np.uint16, "Label mask")

    def run(self, raw: np.ndarray, mask: np.ndarray) -> ExtractionResult:
        """
        Run the complete two-phase pipeline on in-memory rasters.

        Args:
            raw: float32 intensity raster
            mask: uint16 label mask of the same shape

        Returns:
            ExtractionResult for the run
        """
        from preprocessing.extents import global_patch_size

        self.check_inputs(raw, mask)

        total_objects = self.preprocessor.count_objects(mask)
        logger.info(f"Number of objects {total_objects}")

        partitions = partition_labels(total_objects, self.config.extraction.nthreads)

        extents = self.find_extents(mask, partitions)
        max_w = max((e.width for e in extents), default=0)
        max_h = max((e.height for e in extents), default=0)
        logger.info(f"Max extent (w, h) {max_w}, {max_h}")

        patch_size = global_patch_size(extents)
        logger.info(f"Global patch size {patch_size}")

        files_written = self.extract_patches(raw, extents, patch_size, partitions)
        logger.info(f"Wrote {files_written} files to {self.config.output_dir}")

        return ExtractionResult(
            num_objects=total_objects,
            patch_size=patch_size,
            extents=extents,
            files_written=files_written,
            output_dir=self.config.output_dir,
        )

    def run_from_files(
        self,
        raw_path: Union[str, Path],
        mask_path: Union[str, Path],
    ) -> ExtractionResult:
        """
        Load both rasters and run the pipeline.

        Args:
            raw_path: Path to the float32 intensity TIFF
            mask_path: Path to the uint16 object identity TIFF

        Returns:
            ExtractionResult for the run
        """
        raw = self.preprocessor.load_raw(raw_path)
        mask = self.preprocessor.load_mask(mask_path)
        return self.run(raw, mask)
