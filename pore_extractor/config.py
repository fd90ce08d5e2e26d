"""
Configuration management for Pore Extractor.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Any
import yaml

from pore_extractor.errors import ConfigError


EXTENT_METHODS = ("scan", "single_pass")


@dataclass
class ExtractionConfig:
    """Two-phase extraction configuration."""

    # Expected raster dimensions
    width: int = 1280
    height: int = 1280

    # Parallelism
    nthreads: int = 1

    # Gaussian blur sigma (0 disables denoising)
    sigma: float = 0.0

    # Extent discovery
    extent_method: str = "scan"  # "scan", "single_pass"
    skip_empty_labels: bool = False


@dataclass
class ExportConfig:
    """FITS export configuration."""

    prefix: str = "image"
    extension: str = ".fits"
    normalisation: str = "NONE"
    overwrite: bool = True


@dataclass
class Config:
    """Main configuration class."""

    output_dir: Path = field(default_factory=lambda: Path("output"))
    show_progress: bool = True

    # Sub-configurations
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    export: ExportConfig = field(default_factory=ExportConfig)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Config":
        """Load configuration from YAML file."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except OSError as e:
            raise ConfigError(f"Cannot read config file {path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in config file {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")
        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create config from dictionary."""
        config = cls()

        if "output_dir" in data:
            config.output_dir = Path(data["output_dir"])
        if "show_progress" in data:
            config.show_progress = bool(data["show_progress"])

        if "extraction" in data:
            for k, v in data["extraction"].items():
                if hasattr(config.extraction, k):
                    setattr(config.extraction, k, v)

        if "export" in data:
            for k, v in data["export"].items():
                if hasattr(config.export, k):
                    setattr(config.export, k, v)

        return config

    def to_yaml(self, path: str | Path) -> None:
        """Save configuration to YAML file."""
        data = {
            "output_dir": str(self.output_dir),
            "show_progress": self.show_progress,
            "extraction": {
                "width": self.extraction.width,
                "height": self.extraction.height,
                "nthreads": self.extraction.nthreads,
                "sigma": self.extraction.sigma,
                "extent_method": self.extraction.extent_method,
                "skip_empty_labels": self.extraction.skip_empty_labels,
            },
            "export": {
                "prefix": self.export.prefix,
                "extension": self.export.extension,
                "normalisation": self.export.normalisation,
                "overwrite": self.export.overwrite,
            },
        }

        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(data, f, default_flow_style=False, allow_unicode=True)

    def validate(self) -> None:
        """Raise ConfigError on values the pipeline cannot run with."""
        ext = self.extraction
        for name in ("nthreads", "width", "height"):
            value = getattr(ext, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigError(f"{name} must be an integer, got {value!r}")
        if isinstance(ext.sigma, bool) or not isinstance(ext.sigma, (int, float)):
            raise ConfigError(f"sigma must be a number, got {ext.sigma!r}")

        if ext.nthreads < 1:
            raise ConfigError(f"Thread count must be at least 1, got {ext.nthreads}")
        if ext.sigma < 0:
            raise ConfigError(f"Gaussian sigma must not be negative, got {ext.sigma}")
        if ext.width < 1 or ext.height < 1:
            raise ConfigError(f"Invalid raster dimensions: {ext.width}x{ext.height}")
        if ext.extent_method not in EXTENT_METHODS:
            raise ConfigError(
                f"Unknown extent method: {ext.extent_method}. "
                f"Expected one of {', '.join(EXTENT_METHODS)}"
            )

    def ensure_dirs(self) -> None:
        """Create the output directory."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
