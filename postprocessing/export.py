"""
FITS export for extracted patches.
"""

from pathlib import Path
from typing import Iterable, Optional, Tuple, Union

import numpy as np
from astropy.io import fits

from pore_extractor.config import ExportConfig


class PatchWriter:
    """
    Write patches as numbered FITS images.

    Files are named ``{prefix}_{count:06d}{extension}``. Rows are stored
    bottom-up: file row 0 is the last row of the in-memory patch. The header
    carries NORMALISATION, WIDTH and HEIGHT.

    Args:
        output_dir: Directory receiving the files
        config: Export configuration
    """

    def __init__(
        self,
        output_dir: Union[str, Path],
        config: Optional[ExportConfig] = None,
    ):
        self.output_dir = Path(output_dir)
        self.config = config or ExportConfig()

    def filename(self, count: int) -> Path:
        """Path for the file with sequence number ``count``."""
        return self.output_dir / f"{self.config.prefix}_{count:06d}{self.config.extension}"

    def write(self, patch: np.ndarray, count: int) -> Path:
        """
        Write one patch.

        Args:
            patch: 2D float patch (height, width)
            count: Sequence number used in the file name

        Returns:
            Path to the written file
        """
        height, width = patch.shape
        path = self.filename(count)

        hdu = fits.PrimaryHDU(data=np.flipud(patch).astype(np.float32))
        hdu.header["HIERARCH NORMALISATION"] = self.config.normalisation
        hdu.header["WIDTH"] = int(width)
        hdu.header["HEIGHT"] = int(height)
        hdu.writeto(path, overwrite=self.config.overwrite)

        return path

    def write_variants(self, variants: Iterable[np.ndarray], offset: int) -> int:
        """
        Write patches under consecutive sequence numbers starting at ``offset``.

        Returns:
            Number of files written
        """
        written = 0
        for patch in variants:
            self.write(patch, offset + written)
            written += 1
        return written

    @staticmethod
    def read(path: Union[str, Path]) -> Tuple[np.ndarray, fits.Header]:
        """
        Read a patch back into in-memory row order.

        Returns:
            Tuple of (patch, header)
        """
        with fits.open(path) as hdul:
            data = np.flipud(np.asarray(hdul[0].data, dtype=np.float32)).copy()
            header = hdul[0].header.copy()
        return data, header
