"""
Pytest configuration and fixtures.
"""

import numpy as np
import pytest


@pytest.fixture
def small_raw():
    """4x4 float32 raster with distinct nonzero values."""
    return (np.arange(16, dtype=np.float32) + 1.0).reshape(4, 4)


@pytest.fixture
def diagonal_mask():
    """4x4 mask with label 1 at (1, 1) and (2, 2)."""
    mask = np.zeros((4, 4), dtype=np.uint16)
    mask[1, 1] = 1
    mask[2, 2] = 1
    return mask


@pytest.fixture
def sample_mask():
    """32x32 mask with ten rectangular objects of varying size."""
    mask = np.zeros((32, 32), dtype=np.uint16)
    label = 1
    for row in range(2):
        for col in range(5):
            y, x = 2 + row * 15, 1 + col * 6
            h, w = 2 + label % 4, 1 + label % 5
            mask[y:y + h, x:x + w] = label
            label += 1
    return mask


@pytest.fixture
def sample_raw():
    """32x32 float32 raster."""
    np.random.seed(42)
    return np.random.rand(32, 32).astype(np.float32) + 0.5


@pytest.fixture
def make_config(tmp_path):
    """Factory for configs writing into a temporary directory."""
    from pore_extractor.config import Config

    def _make(width=4, height=4, nthreads=1, sigma=0.0, **extraction):
        config = Config(output_dir=tmp_path / "out", show_progress=False)
        config.extraction.width = width
        config.extraction.height = height
        config.extraction.nthreads = nthreads
        config.extraction.sigma = sigma
        for k, v in extraction.items():
            setattr(config.extraction, k, v)
        return config

    return _make
