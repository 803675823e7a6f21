import operator

import numpy as np
from numba import njit, prange

from .errors import IndexOutOfRange
from .view_kind import ViewKind
from .volume_buffer import linear_index


@njit(parallel=True)
def _gather_coronal(samples, nx, ny, nz, y, t, out):
    """Copy the fixed-y plane into `out` so that out[x + z*nx] = volume(x, y, z, t)."""
    for z in prange(nz):
        for x in range(nx):
            out[x + z * nx] = samples[linear_index(x, y, z, t, nx, ny, nz)]
    return out


@njit(parallel=True)
def _gather_sagittal(samples, nx, ny, nz, x, t, out):
    """Copy the fixed-x plane into `out` so that out[y + z*ny] = volume(x, y, z, t)."""
    for z in prange(nz):
        for y in range(ny):
            out[y + z * ny] = samples[linear_index(x, y, z, t, nx, ny, nz)]
    return out


class Slice2D:
    """
    A 2D cross-section of a volume.

    Attributes:
        width (int): Number of columns.
        height (int): Number of rows.
        values (np.ndarray): Flat, read-only, row-major samples
            (`index = col + row * width`).
    """

    __slots__ = ("width", "height", "values")

    def __init__(self, width, height, values):
        values = np.asarray(values)
        if values.ndim != 1 or values.size != width * height:
            raise ValueError(
                f"Slice of {width}x{height} needs {width * height} values, got shape {values.shape}"
            )
        values.setflags(write=False)
        self.width = width
        self.height = height
        self.values = values

    def as_image(self):
        """(height, width) view of the values."""
        return self.values.reshape(self.height, self.width)

    def __len__(self):
        return self.values.size

    def __repr__(self):
        return f"Slice2D(width={self.width}, height={self.height}, dtype={self.values.dtype})"


def extract(volume, view, orthogonal_index, scan_index=0):
    """
    Extract the plane of `view` at `orthogonal_index` for scan sample `scan_index`.

    Axial planes are contiguous in the flat buffer and are copied as a single
    sub-range; coronal and sagittal planes are gathered element by element.

    Args:
        volume (VolumeBuffer): Source volume.
        view (ViewKind): Plane to extract.
        orthogonal_index (int): Index along the axis the view holds fixed
            (z for axial, y for coronal, x for sagittal).
        scan_index (int): Index along the scan axis.

    Returns:
        Slice2D: width/height follow the view's in-plane axes.

    Raises:
        IndexOutOfRange: If either index lies outside its extent.
    """
    view = ViewKind.parse(view)
    orthogonal_index = operator.index(orthogonal_index)
    scan_index = operator.index(scan_index)

    extents = volume.spatial_extents
    fixed_extent = view.fixed_extent(extents)
    if not 0 <= orthogonal_index < fixed_extent:
        raise IndexOutOfRange(
            f"{view} slice index {orthogonal_index} outside [0, {fixed_extent})"
        )
    if not 0 <= scan_index < volume.nt:
        raise IndexOutOfRange(f"Scan index {scan_index} outside [0, {volume.nt})")

    nx, ny, nz = extents
    width, height = view.plane_shape(extents)
    samples = volume.samples

    if view is ViewKind.AXIAL:
        offset = volume.index(0, 0, orthogonal_index, scan_index)
        values = samples[offset:offset + width * height].copy()
    elif view is ViewKind.CORONAL:
        out = np.empty(width * height, dtype=samples.dtype)
        values = _gather_coronal(samples, nx, ny, nz, orthogonal_index, scan_index, out)
    else:
        out = np.empty(width * height, dtype=samples.dtype)
        values = _gather_sagittal(samples, nx, ny, nz, orthogonal_index, scan_index, out)

    return Slice2D(width, height, values)
