"""
Command-line interface for Pore Extractor.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from pore_extractor import PoreExtractor, Config
from pore_extractor.config import EXTENT_METHODS
from pore_extractor.errors import ConfigError, PoreExtractionError


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="pore-extract",
        description="Extract labeled pores from a raw TIFF as augmented FITS patches",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument("raw", type=str, help="Path to raw 32-bit float TIFF")
    parser.add_argument("mask", type=str, help="Path to 16-bit object identity TIFF")
    parser.add_argument("threads", type=int, help="Number of worker threads")
    parser.add_argument("sigma", type=float, nargs="?", default=None,
                        help="Gaussian blur sigma (0 disables blurring)")
    parser.add_argument("--config", type=str, help="Path to config file")
    parser.add_argument("--output", type=str, help="Output directory")
    parser.add_argument("--width", type=int, help="Expected raster width")
    parser.add_argument("--height", type=int, help="Expected raster height")
    parser.add_argument("--extent-method", type=str, choices=EXTENT_METHODS,
                        help="Extent discovery strategy")
    parser.add_argument("--skip-empty", action="store_true",
                        help="Do not write patches for label ids absent from the mask")
    parser.add_argument("--no-progress", action="store_true", help="Hide progress bars")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    return parser


def config_from_args(args: argparse.Namespace) -> Config:
    """Merge command-line values over the config file (or defaults)."""
    config = Config.from_yaml(args.config) if args.config else Config()

    config.extraction.nthreads = args.threads
    if args.sigma is not None:
        config.extraction.sigma = args.sigma

    if args.output:
        config.output_dir = Path(args.output)
    if args.width is not None:
        config.extraction.width = args.width
    if args.height is not None:
        config.extraction.height = args.height
    if args.extent_method:
        config.extraction.extent_method = args.extent_method
    if args.skip_empty:
        config.extraction.skip_empty_labels = True
    if args.no_progress:
        config.show_progress = False

    config.validate()
    return config


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    try:
        config = config_from_args(args)
    except ConfigError as e:
        parser.error(str(e))

    extractor = PoreExtractor(config)

    try:
        result = extractor.run_from_files(args.raw, args.mask)
    except PoreExtractionError as e:
        logger.error(f"Error: {e}")
        return 1

    logger.info(
        f"Extraction completed. {result.num_objects} objects, "
        f"patch size {result.patch_size}, {result.files_written} files"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
