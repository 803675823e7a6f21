"""
Slicing core: flat 4D volume addressing, orthogonal slice extraction,
per-slice intensity normalization, click-to-voxel mapping and scan-axis
series extraction.

All functions here are pure and operate on immutable inputs.
"""

from .errors import VolumeError, ShapeMismatch, IndexOutOfRange
from .view_kind import ViewKind
from .volume_buffer import VolumeBuffer, linear_index
from .slice_extractor import Slice2D, extract
from .intensity_normalizer import Raster8, normalize
from .voxel_locator import VoxelCoord, locate
from .time_series import extract_series
from .session import ViewerSession, VoxelSelection

__all__ = [
    "VolumeError",
    "ShapeMismatch",
    "IndexOutOfRange",
    "ViewKind",
    "VolumeBuffer",
    "linear_index",
    "Slice2D",
    "extract",
    "Raster8",
    "normalize",
    "VoxelCoord",
    "locate",
    "extract_series",
    "ViewerSession",
    "VoxelSelection",
]
