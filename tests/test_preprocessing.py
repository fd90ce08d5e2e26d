"""
Tests for preprocessing module.
"""

import numpy as np
import pytest
import tifffile
from PIL import Image

from pore_extractor.config import ExtractionConfig
from pore_extractor.errors import DecodeError
from preprocessing.augmentation import DataAugmentor, Direction
from preprocessing.extents import Extent
from preprocessing.image_processor import ImagePreprocessor, gaussian_kernel
from preprocessing.patches import PatchExtractor


class TestImagePreprocessor:
    """Tests for raster loading and checks."""

    @pytest.fixture
    def preprocessor(self):
        """Create preprocessor instance for 4x4 rasters."""
        return ImagePreprocessor(ExtractionConfig(width=4, height=4))

    def test_load_raw_tiff(self, preprocessor, tmp_path, small_raw):
        path = tmp_path / "raw.tif"
        tifffile.imwrite(path, small_raw)

        loaded = preprocessor.load_raw(path)

        assert loaded.dtype == np.float32
        np.testing.assert_array_equal(loaded, small_raw)

    def test_load_mask_tiff(self, preprocessor, tmp_path, diagonal_mask):
        path = tmp_path / "mask.tiff"
        tifffile.imwrite(path, diagonal_mask)

        loaded = preprocessor.load_mask(path)

        assert loaded.dtype == np.uint16
        np.testing.assert_array_equal(loaded, diagonal_mask)

    def test_load_png(self, preprocessor, tmp_path):
        """Test loading non-TIFF images through Pillow."""
        path = tmp_path / "test.png"
        Image.fromarray(np.zeros((10, 12), dtype=np.uint8)).save(path)

        assert preprocessor.load(path).shape == (10, 12)

    def test_single_channel_axis_squeezed(self, preprocessor, tmp_path, small_raw):
        path = tmp_path / "raw.tif"
        tifffile.imwrite(path, small_raw[np.newaxis, ...])

        assert preprocessor.load(path).shape == (4, 4)

    def test_wrong_dtype(self, preprocessor, tmp_path):
        path = tmp_path / "raw.tif"
        tifffile.imwrite(path, np.zeros((4, 4), dtype=np.uint16))

        with pytest.raises(DecodeError, match="float32"):
            preprocessor.load_raw(path)

    def test_wrong_shape(self, preprocessor, tmp_path):
        path = tmp_path / "mask.tif"
        tifffile.imwrite(path, np.zeros((5, 4), dtype=np.uint16))

        with pytest.raises(DecodeError, match="expected 4x4"):
            preprocessor.load_mask(path)

    def test_multichannel_rejected(self, preprocessor):
        with pytest.raises(DecodeError, match="single channel"):
            preprocessor.check_raster(np.zeros((4, 4, 3), dtype=np.float32), np.float32, "Raw image")

    def test_missing_file(self, preprocessor, tmp_path):
        with pytest.raises(DecodeError, match="not found"):
            preprocessor.load(tmp_path / "nope.tif")

    def test_count_objects(self, sample_mask):
        assert ImagePreprocessor.count_objects(sample_mask) == 10
        assert ImagePreprocessor.count_objects(np.zeros((3, 3), dtype=np.uint16)) == 0


class TestDenoise:
    """Tests for edge-clamped Gaussian blur."""

    @pytest.fixture
    def preprocessor(self):
        return ImagePreprocessor(ExtractionConfig(sigma=1.0))

    def test_kernel_radius(self):
        """Radius is ceil(2.57 * sigma)."""
        assert gaussian_kernel(1.0).shape == (7, 7)
        assert gaussian_kernel(0.5).shape == (5, 5)
        assert gaussian_kernel(2.0).shape == (13, 13)

    def test_kernel_weights(self):
        sigma = 1.5
        kernel = gaussian_kernel(sigma)
        r = kernel.shape[0] // 2

        assert kernel[r, r] == pytest.approx(1.0 / (2 * np.pi * sigma ** 2))
        assert kernel[r, r + 1] == pytest.approx(
            np.exp(-1.0 / (2 * sigma ** 2)) / (2 * np.pi * sigma ** 2)
        )
        np.testing.assert_allclose(kernel, kernel.T)

    @pytest.mark.parametrize("sigma", [0.3, 1.0, 2.5, 6.0])
    def test_constant_patch_unchanged(self, preprocessor, sigma):
        """A constant patch stays exactly constant, even when the kernel exceeds it."""
        patch = np.full((5, 5), 3.7, dtype=np.float32)

        blurred = preprocessor.denoise(patch, sigma=sigma)

        assert blurred.dtype == np.float32
        np.testing.assert_array_equal(blurred, patch)

    def test_zero_sigma_disables(self, sample_raw):
        preprocessor = ImagePreprocessor(ExtractionConfig(sigma=0.0))

        np.testing.assert_array_equal(preprocessor.denoise(sample_raw), sample_raw)

    def test_uses_config_sigma(self, preprocessor, sample_raw):
        np.testing.assert_array_equal(
            preprocessor.denoise(sample_raw),
            preprocessor.denoise(sample_raw, sigma=1.0),
        )

    def test_input_not_modified(self, preprocessor, sample_raw):
        original = sample_raw.copy()
        preprocessor.denoise(sample_raw, sigma=2.0)

        np.testing.assert_array_equal(sample_raw, original)

    def test_smooths_noise(self, preprocessor, sample_raw):
        denoised = preprocessor.denoise(sample_raw, sigma=2.0)

        assert np.std(denoised) < np.std(sample_raw)

    def test_output_within_input_range(self, preprocessor, sample_raw):
        """Renormalized weights keep values inside the input range."""
        denoised = preprocessor.denoise(sample_raw, sigma=1.5)

        assert denoised.min() >= sample_raw.min()
        assert denoised.max() <= sample_raw.max()


class TestPatchExtractor:
    """Tests for fixed-size cropping."""

    def test_patch_shape_and_zero_padding(self, sample_raw):
        extractor = PatchExtractor(sample_raw, patch_size=6)

        patch = extractor.extract(Extent(width=2, height=1, min_x=10, min_y=20, label_id=1))

        assert patch.shape == (6, 6)
        assert patch.dtype == np.float32
        np.testing.assert_array_equal(patch[:2, :3], sample_raw[20:22, 10:13])
        assert not patch[2:, :].any()
        assert not patch[:, 3:].any()

    def test_single_pixel_object(self, sample_raw):
        """A width=height=0 object keeps only its own intensity at (0, 0)."""
        extractor = PatchExtractor(sample_raw, patch_size=4)

        patch = extractor.extract(Extent(width=0, height=0, min_x=7, min_y=3, label_id=1))

        assert patch[0, 0] == sample_raw[3, 7]
        assert np.count_nonzero(patch) == 1

    def test_span_clipped_to_patch(self, small_raw):
        """Objects larger than the patch are cut at the patch border."""
        extractor = PatchExtractor(small_raw, patch_size=1)

        patch = extractor.extract(Extent(width=1, height=1, min_x=1, min_y=1, label_id=1))

        assert patch.shape == (1, 1)
        assert patch[0, 0] == small_raw[1, 1]

    def test_out_of_raster_samples_skipped(self, small_raw):
        """Coordinates past the raster edge are skipped, not raised."""
        extractor = PatchExtractor(small_raw, patch_size=4)

        patch = extractor.extract(Extent(width=3, height=3, min_x=2, min_y=3, label_id=1))

        np.testing.assert_array_equal(patch[0, :2], small_raw[3, 2:4])
        assert np.count_nonzero(patch) == 2

    def test_empty_extent_gives_zero_patch(self, small_raw):
        extractor = PatchExtractor(small_raw, patch_size=3)

        patch = extractor.extract(Extent(0, 0, 4, 4, label_id=5, empty=True))

        assert not patch.any()

    def test_copied_span_is_inclusive(self, sample_raw):
        """
        The copy covers min through max inclusive, one more column and row
        than the max - min width and height, when the patch has room.

        A half-open [0, width) copy would drop the last column and row and
        leave single-pixel objects empty.
        """
        extractor = PatchExtractor(sample_raw, patch_size=5)

        patch = extractor.extract(Extent(width=2, height=1, min_x=4, min_y=6, label_id=1))

        assert np.count_nonzero(patch.any(axis=0)) == 3
        assert np.count_nonzero(patch.any(axis=1)) == 2
        np.testing.assert_array_equal(patch[:2, :3], sample_raw[6:8, 4:7])

    def test_no_rescaling(self):
        raw = np.full((8, 8), 1234.5, dtype=np.float32)
        extractor = PatchExtractor(raw, patch_size=3)

        patch = extractor.extract(Extent(2, 2, 1, 1, label_id=1))

        np.testing.assert_array_equal(patch, raw[:3, :3])


class TestDataAugmentor:
    """Tests for DataAugmentor class."""

    @pytest.fixture
    def augmentor(self):
        return DataAugmentor()

    @pytest.fixture(params=[1, 2, 5, 6])
    def sample_patch(self, request):
        np.random.seed(request.param)
        n = request.param
        return np.random.rand(n, n).astype(np.float32)

    @pytest.mark.parametrize("direction", [Direction.LEFT, Direction.RIGHT, Direction.DOWN])
    def test_inverse_restores_patch(self, augmentor, sample_patch, direction):
        """Transform followed by its inverse is exact."""
        restored = augmentor.invert(augmentor.transform(sample_patch, direction), direction)

        np.testing.assert_array_equal(restored, sample_patch)

    def test_directions_are_rotations(self, augmentor):
        patch = np.arange(9, dtype=np.float32).reshape(3, 3)

        np.testing.assert_array_equal(augmentor.transform(patch, Direction.LEFT), np.rot90(patch, 1))
        np.testing.assert_array_equal(augmentor.transform(patch, Direction.RIGHT), np.rot90(patch, -1))
        np.testing.assert_array_equal(augmentor.transform(patch, Direction.DOWN), np.rot90(patch, 2))

    def test_augment_order_and_count(self, augmentor, sample_patch):
        variants = augmentor.augment(sample_patch)

        assert [d for d, _ in variants] == [
            Direction.IDENTITY, Direction.LEFT, Direction.RIGHT, Direction.DOWN,
        ]
        np.testing.assert_array_equal(variants[0][1], sample_patch)

    def test_variants_are_permutations(self, augmentor, sample_patch):
        """No interpolation: every variant holds exactly the same values."""
        expected = np.sort(sample_patch, axis=None)
        for _, variant in augmentor.augment(sample_patch):
            assert variant.dtype == sample_patch.dtype
            np.testing.assert_array_equal(np.sort(variant, axis=None), expected)

    def test_variants_are_independent(self, augmentor):
        patch = np.ones((3, 3), dtype=np.float32)
        variants = augmentor.augment(patch)

        variants[0][1][0, 0] = 9.0

        assert patch[0, 0] == 1.0

    def test_non_square_rejected(self, augmentor):
        with pytest.raises(ValueError, match="square"):
            augmentor.augment(np.zeros((3, 4), dtype=np.float32))
