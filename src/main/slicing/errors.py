class VolumeError(Exception):
    """Base class for errors raised by the slicing core."""


class ShapeMismatch(VolumeError, ValueError):
    """
    The flat sample buffer does not agree with the declared axis extents.

    Raised when a `VolumeBuffer` is built; there is no recovery.
    """


class IndexOutOfRange(VolumeError, IndexError):
    """
    A voxel, slice or scan index lies outside its axis extent.

    This is a caller contract violation: indices handed to the core are
    expected to be validated (or clamped) beforehand.
    """
