import numpy as np
from numba import njit

from .volume_buffer import linear_index


@njit
def _gather_series(samples, nx, ny, nz, nt, x, y, z, out):
    for t in range(nt):
        out[t] = samples[linear_index(x, y, z, t, nx, ny, nz)]
    return out


def extract_series(volume, x, y, z):
    """
    Scan-axis series of voxel (x, y, z): ``series[t] == volume.get(x, y, z, t)``.

    Args:
        volume (VolumeBuffer): Source volume.
        x, y, z (int): Voxel coordinate.

    Returns:
        np.ndarray: `nt` samples in the volume's dtype.

    Raises:
        IndexOutOfRange: If the voxel lies outside the volume.
    """
    x, y, z, _ = volume.check(x, y, z, 0)
    nx, ny, nz, nt = volume.extents
    out = np.empty(nt, dtype=volume.dtype)
    return _gather_series(volume.samples, nx, ny, nz, nt, x, y, z, out)
