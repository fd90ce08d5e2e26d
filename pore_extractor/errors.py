"""
Exceptions raised by the pore extraction pipeline.
"""


class PoreExtractionError(Exception):
    """Base class for pipeline errors."""


class ConfigError(PoreExtractionError, ValueError):
    """Invalid configuration or command-line values."""


class DecodeError(PoreExtractionError, ValueError):
    """Input raster does not match the expected shape or pixel type."""


class WorkerError(PoreExtractionError, RuntimeError):
    """A partitioned task failed; the run is aborted."""

    def __init__(self, message: str, partition_index: int):
        super().__init__(message)
        self.partition_index = partition_index
