"""
test_intensity_normalizer.py - Tests for min-max normalization to RGBA
"""

import numpy as np
import pytest

from slicing import Slice2D, Raster8, normalize, extract, ViewKind


def make_slice(values, width=None, height=1):
    values = np.asarray(values)
    return Slice2D(width or values.size, height, values)


class TestNormalize:
    """Tests for normalize()"""

    def test_uniform_slice_is_black(self):
        """A slice whose min equals max maps to all zeros"""
        raster = normalize(make_slice([7.0, 7.0, 7.0, 7.0], 2, 2))

        assert (raster.width, raster.height) == (2, 2)
        np.testing.assert_array_equal(raster.pixels[:, :3], 0)
        np.testing.assert_array_equal(raster.pixels[:, 3], 255)

    def test_min_max_mapping(self):
        """[0, 100, 50] maps to gray levels [0, 255, 127]"""
        raster = normalize(make_slice([0.0, 100.0, 50.0]))

        np.testing.assert_array_equal(raster.pixels[:, 0], [0, 255, 127])

    def test_gray_channels_equal_and_opaque(self):
        raster = normalize(make_slice(np.arange(16, dtype=np.int16), 4, 4))

        np.testing.assert_array_equal(raster.pixels[:, 0], raster.pixels[:, 1])
        np.testing.assert_array_equal(raster.pixels[:, 1], raster.pixels[:, 2])
        assert np.all(raster.pixels[:, 3] == 255)

    def test_extremes(self):
        """Minimum maps to 0 and maximum to 255"""
        values = np.array([-40.0, 3.5, 12.0, 1000.0])
        raster = normalize(make_slice(values))

        assert raster.pixels[0, 0] == 0
        assert raster.pixels[3, 0] == 255
        assert np.all(raster.pixels[:, 0] <= 255)

    def test_monotonic(self):
        values = np.array([5, 1, 4, 2, 3], dtype=np.uint16)
        gray = normalize(make_slice(values)).pixels[:, 0]
        order = np.argsort(values)
        assert np.all(np.diff(gray[order].astype(int)) >= 0)

    def test_floor_rounding(self):
        """Scaled values are truncated, not rounded"""
        # 255 * 1 / 3 = 85.0, 255 * 2 / 3 = 170.0, 255 * 1 / 4 = 63.75
        raster = normalize(make_slice([0.0, 1.0, 2.0, 3.0]))
        np.testing.assert_array_equal(raster.pixels[:, 0], [0, 85, 170, 255])

        raster = normalize(make_slice([0.0, 1.0, 4.0]))
        np.testing.assert_array_equal(raster.pixels[:, 0], [0, 63, 255])

    def test_nan_maps_to_zero(self):
        """NaN does not affect the range and is rendered black"""
        raster = normalize(make_slice([0.0, np.nan, 10.0]))
        np.testing.assert_array_equal(raster.pixels[:, 0], [0, 0, 255])

    def test_infinities(self):
        """+inf is white, -inf is black, finite values keep their range"""
        raster = normalize(make_slice([np.inf, 0.0, 5.0, 10.0, -np.inf]))
        np.testing.assert_array_equal(raster.pixels[:, 0], [255, 0, 127, 255, 0])

    def test_all_nan_is_black(self):
        raster = normalize(make_slice([np.nan, np.nan]))
        np.testing.assert_array_equal(raster.pixels[:, :3], 0)
        np.testing.assert_array_equal(raster.pixels[:, 3], 255)

    def test_pixel_order_follows_slice(self, odd_volume):
        """Pixel i of the raster is value i of the slice"""
        slice2d = extract(odd_volume, ViewKind.SAGITTAL, 2, 1)
        raster = normalize(slice2d)

        lo, hi = slice2d.values.min(), slice2d.values.max()
        expected = np.floor(255 * (slice2d.values - lo) / (hi - lo)).astype(np.uint8)
        np.testing.assert_array_equal(raster.pixels[:, 0], expected)

    def test_integer_input_without_overflow(self):
        """int16 extremes are scaled in floating point"""
        raster = normalize(make_slice(np.array([-32768, 0, 32767], dtype=np.int16)))
        assert raster.pixels[0, 0] == 0
        assert raster.pixels[1, 0] == 127
        assert raster.pixels[2, 0] == 255

    def test_range_near_float64_limit(self):
        """A span wider than the largest float64 still maps onto 0..255"""
        raster = normalize(make_slice([-1e308, 0.0, 1e308]))
        np.testing.assert_array_equal(raster.pixels[:, 0], [0, 127, 255])

        raster = normalize(make_slice([-2.0 ** 1023, -2.0 ** 1022, 0.0, 2.0 ** 1023]))
        np.testing.assert_array_equal(raster.pixels[:, 0], [0, 63, 127, 255])

    def test_maximum_is_always_white(self):
        values = np.array([0.1, 0.7, 3.3, 1e-3])
        raster = normalize(make_slice(values))
        assert raster.pixels[2, 0] == 255


class TestRaster8:
    """Tests for the Raster8 container"""

    def test_as_image_and_gray(self):
        raster = normalize(make_slice([0.0, 1.0, 2.0, 3.0, 4.0, 5.0], 3, 2))

        assert raster.as_image().shape == (2, 3, 4)
        assert raster.gray().shape == (2, 3)
        assert raster.gray()[1, 2] == 255

    def test_tobytes_length(self):
        raster = normalize(make_slice(np.zeros(6), 3, 2))
        assert len(raster.tobytes()) == 3 * 2 * 4

    def test_read_only(self):
        raster = normalize(make_slice([0.0, 1.0]))
        with pytest.raises(ValueError):
            raster.pixels[0, 0] = 1

    def test_shape_checked(self):
        with pytest.raises(ValueError):
            Raster8(2, 2, np.zeros((3, 4)))
