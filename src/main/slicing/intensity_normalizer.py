import numpy as np
from numba import njit

OPAQUE = 255

# Power of two, so scaling by it is exact; small enough that 255 * span cannot overflow
WIDE_RANGE_SCALE = 2.0 ** -10


@njit
def _finite_min_max(values):
    """
    Single pass over `values` returning (min, max, found) over finite entries.
    `found` is False when the slice holds no finite value at all.
    """
    lo = 0.0
    hi = 0.0
    found = False
    for i in range(values.size):
        v = float(values[i])
        if not np.isfinite(v):
            continue
        if not found:
            lo = v
            hi = v
            found = True
        elif v < lo:
            lo = v
        elif v > hi:
            hi = v
    return lo, hi, found


class Raster8:
    """
    8-bit grayscale RGBA raster ready to be blitted onto a display surface.

    Attributes:
        width (int): Pixel columns.
        height (int): Pixel rows.
        pixels (np.ndarray): (width * height, 4) uint8 array of R, G, B, A
            quadruplets, in the row-major order of the source slice.
    """

    __slots__ = ("width", "height", "pixels")

    def __init__(self, width, height, pixels):
        pixels = np.asarray(pixels, dtype=np.uint8)
        if pixels.shape != (width * height, 4):
            raise ValueError(f"Raster of {width}x{height} needs shape ({width * height}, 4), got {pixels.shape}")
        pixels.setflags(write=False)
        self.width = width
        self.height = height
        self.pixels = pixels

    def as_image(self):
        """(height, width, 4) view of the pixels."""
        return self.pixels.reshape(self.height, self.width, 4)

    def gray(self):
        """(height, width) view of the gray level (the red channel)."""
        return self.as_image()[:, :, 0]

    def tobytes(self):
        """Packed RGBA bytes, 4 * width bytes per row."""
        return self.pixels.tobytes()

    def __repr__(self):
        return f"Raster8(width={self.width}, height={self.height})"


def normalize(slice2d):
    """
    Map a slice onto the 0-255 gray range using its own min and max.

    Each value becomes ``floor(255 * (v - min) / (max - min))`` clamped into
    [0, 255]. A uniform slice (max == min) maps to all zeros. Non-finite
    samples never poison the range: NaN maps to 0, +inf to 255 and -inf to 0.
    Alpha is always 255.

    Args:
        slice2d (Slice2D): Slice to normalize.

    Returns:
        Raster8: Raster with the same width, height and pixel order.
    """
    values = np.asarray(slice2d.values, dtype=np.float64)
    lo, hi, found = _finite_min_max(values)

    if not found or hi == lo:
        gray = np.zeros(values.size, dtype=np.uint8)
    else:
        with np.errstate(invalid="ignore", over="ignore"):
            if np.isfinite(255.0 * (hi - lo)):
                scaled = np.floor(255.0 * (values - lo) / (hi - lo))
            else:
                # Ranges near the float64 limit: shift every exponent down first
                s = WIDE_RANGE_SCALE
                scaled = np.floor(255.0 * (values * s - lo * s) / (hi * s - lo * s))
        scaled[values == hi] = 255.0
        scaled = np.nan_to_num(scaled, nan=0.0, posinf=255.0, neginf=0.0)
        gray = np.clip(scaled, 0, 255).astype(np.uint8)

    pixels = np.empty((values.size, 4), dtype=np.uint8)
    pixels[:, 0] = gray
    pixels[:, 1] = gray
    pixels[:, 2] = gray
    pixels[:, 3] = OPAQUE
    return Raster8(slice2d.width, slice2d.height, pixels)
