import operator

import numpy as np
from numba import njit

from .errors import ShapeMismatch, IndexOutOfRange


@njit
def linear_index(x, y, z, t, nx, ny, nz):
    """
    Linear position of voxel (x, y, z, t) in a flat buffer whose x axis varies
    fastest, then y, then z, then the scan axis t.

    Every component that addresses the flat buffer goes through this function.
    """
    return x + y * nx + z * nx * ny + t * nx * ny * nz


def _extent(name, value):
    try:
        value = operator.index(value)
    except TypeError:
        raise ShapeMismatch(f"Extent {name} must be an integer, got {value!r}") from None
    if value <= 0:
        raise ShapeMismatch(f"Extent {name} must be positive, got {value}")
    return value


class VolumeBuffer:
    """
    Immutable 4D scalar volume (three spatial axes plus a scan axis) stored as
    a single flat numeric array.

    Args:
        samples: One-dimensional sequence of scalars of length nx*ny*nz*nt,
            x varying fastest.
        nx, ny, nz (int): Spatial extents.
        nt (int): Scan-axis extent, 1 when the source has no fourth axis.

    Raises:
        ShapeMismatch: If the sample count disagrees with the extents.
    """

    def __init__(self, samples, nx, ny, nz, nt=1):
        self._nx = _extent("nx", nx)
        self._ny = _extent("ny", ny)
        self._nz = _extent("nz", nz)
        self._nt = _extent("nt", 1 if nt is None else nt)

        array = np.array(samples, copy=True)
        if array.ndim != 1:
            raise ShapeMismatch(f"Samples must be one-dimensional, got shape {array.shape}")
        if not array.dtype.isnative:
            # JIT kernels only read native byte order
            array = array.astype(array.dtype.newbyteorder("="))
        if array.dtype == np.float16:
            # numba has no half-precision type
            array = array.astype(np.float32)

        expected = self._nx * self._ny * self._nz * self._nt
        if array.size != expected:
            raise ShapeMismatch(
                f"Buffer holds {array.size} samples but extents "
                f"{self._nx}x{self._ny}x{self._nz}x{self._nt} require {expected}"
            )

        array.setflags(write=False)
        self._samples = array

    @classmethod
    def from_array(cls, data):
        """
        Build a buffer from an (X, Y, Z) or (X, Y, Z, T) array, as returned by
        nibabel, keeping x as the fastest-varying axis.
        """
        data = np.asanyarray(data)
        if data.ndim == 3:
            nx, ny, nz = data.shape
            nt = 1
        elif data.ndim == 4:
            nx, ny, nz, nt = data.shape
        else:
            raise ShapeMismatch(f"Expected a 3D or 4D array, got {data.ndim} dimensions")
        return cls(np.ravel(data, order="F"), nx, ny, nz, nt)

    # ------------------------------------------------------------------
    # Shape
    # ------------------------------------------------------------------
    @property
    def samples(self) -> np.ndarray:
        """Read-only flat sample array."""
        return self._samples

    @property
    def nx(self) -> int:
        return self._nx

    @property
    def ny(self) -> int:
        return self._ny

    @property
    def nz(self) -> int:
        return self._nz

    @property
    def nt(self) -> int:
        return self._nt

    @property
    def extents(self):
        """(nx, ny, nz, nt)"""
        return self._nx, self._ny, self._nz, self._nt

    @property
    def spatial_extents(self):
        """(nx, ny, nz)"""
        return self._nx, self._ny, self._nz

    @property
    def volume_stride(self) -> int:
        """Distance in the flat buffer between consecutive scan-axis samples."""
        return self._nx * self._ny * self._nz

    @property
    def dtype(self):
        return self._samples.dtype

    def __len__(self):
        return self._samples.size

    def __repr__(self):
        return (f"VolumeBuffer(nx={self._nx}, ny={self._ny}, nz={self._nz}, "
                f"nt={self._nt}, dtype={self._samples.dtype})")

    # ------------------------------------------------------------------
    # Addressing
    # ------------------------------------------------------------------
    def check(self, x, y, z, t=0):
        """
        Validate a voxel coordinate and return it as plain ints.

        Raises:
            IndexOutOfRange: If any coordinate lies outside its extent.
        """
        coords = []
        for axis, value, extent in zip("xyzt", (x, y, z, t), self.extents):
            value = operator.index(value)
            if not 0 <= value < extent:
                raise IndexOutOfRange(f"{axis}={value} outside [0, {extent})")
            coords.append(value)
        return tuple(coords)

    def index(self, x, y, z, t=0) -> int:
        """Bounds-checked linear index of voxel (x, y, z, t)."""
        x, y, z, t = self.check(x, y, z, t)
        return int(linear_index(x, y, z, t, self._nx, self._ny, self._nz))

    def get(self, x, y, z, t=0):
        """
        Scalar sample at voxel (x, y, z, t).

        Raises:
            IndexOutOfRange: If any coordinate lies outside its extent.
        """
        return self._samples[self.index(x, y, z, t)]
