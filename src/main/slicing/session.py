import operator
from typing import NamedTuple

import numpy as np

from logger import get_logger
from .errors import IndexOutOfRange
from .intensity_normalizer import normalize
from .slice_extractor import extract
from .time_series import extract_series
from .view_kind import ViewKind
from .voxel_locator import VoxelCoord, locate

log = get_logger()


def _format_value(value):
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class VoxelSelection(NamedTuple):
    """Result of a click: the located voxel and its scan-axis series."""
    coord: VoxelCoord
    series: np.ndarray

    def describe(self):
        """Human readable summary, e.g. ``Voxel [1, 2, 3]: Values: 4, 5``."""
        values = ", ".join(_format_value(v) for v in self.series.tolist())
        return f"Voxel [{self.coord.x}, {self.coord.y}, {self.coord.z}]: Values: {values}"


class ViewerSession:
    """
    Caller-owned state for one loaded volume.

    Holds the current `VolumeBuffer`, the slice index shown by each view and the
    scan index, and runs the pure slicing functions against them. The slice
    index a view renders with is the same one its clicks are located with.

    The volume is replaced wholesale by `load`; it is never mutated.
    """

    def __init__(self, volume=None):
        self._volume = None
        self._orthogonal = {view: 0 for view in ViewKind}
        self._scan_index = 0
        if volume is not None:
            self.load(volume)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    @property
    def volume(self):
        return self._volume

    @property
    def has_volume(self) -> bool:
        return self._volume is not None

    @property
    def scan_index(self) -> int:
        return self._scan_index

    def orthogonal_index(self, view) -> int:
        """Slice index currently shown by `view`."""
        return self._orthogonal[ViewKind.parse(view)]

    def _require_volume(self):
        if self._volume is None:
            raise RuntimeError("No volume loaded")
        return self._volume

    def load(self, volume):
        """
        Replace the current volume and reset every view to its middle slice
        and the scan index to 0.
        """
        self._volume = volume
        extents = volume.spatial_extents
        self._orthogonal = {view: view.fixed_extent(extents) // 2 for view in ViewKind}
        self._scan_index = 0
        log.debug(f"Session loaded {volume!r}, slices {self._orthogonal}")

    def clear(self):
        self._volume = None
        self._orthogonal = {view: 0 for view in ViewKind}
        self._scan_index = 0

    def set_orthogonal_index(self, view, index):
        """
        Set the slice index shown by `view`.

        Raises:
            IndexOutOfRange: If `index` lies outside the view's fixed axis.
        """
        volume = self._require_volume()
        view = ViewKind.parse(view)
        index = operator.index(index)
        extent = view.fixed_extent(volume.spatial_extents)
        if not 0 <= index < extent:
            raise IndexOutOfRange(f"{view} slice index {index} outside [0, {extent})")
        self._orthogonal[view] = index

    def set_scan_index(self, index):
        """
        Set the scan-axis index used for rendering.

        Raises:
            IndexOutOfRange: If `index` lies outside [0, nt).
        """
        volume = self._require_volume()
        index = operator.index(index)
        if not 0 <= index < volume.nt:
            raise IndexOutOfRange(f"Scan index {index} outside [0, {volume.nt})")
        self._scan_index = index

    def follow(self, coord):
        """Move each view's slice onto voxel `coord`."""
        volume = self._require_volume()
        volume.check(*coord)
        for view in ViewKind:
            self._orthogonal[view] = coord[view.fixed_axis]

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    def slice_shape(self, view):
        """(width, height) of the raster rendered for `view`."""
        volume = self._require_volume()
        return ViewKind.parse(view).plane_shape(volume.spatial_extents)

    def render(self, view):
        """Extract and normalize the current slice of `view`."""
        volume = self._require_volume()
        view = ViewKind.parse(view)
        slice2d = extract(volume, view, self._orthogonal[view], self._scan_index)
        return normalize(slice2d)

    def render_all(self):
        return {view: self.render(view) for view in ViewKind}

    def select(self, view, click_x, click_y, surface_width, surface_height):
        """
        Locate the voxel under a click on `view` and extract its series.

        Returns:
            VoxelSelection
        """
        volume = self._require_volume()
        view = ViewKind.parse(view)
        coord = locate(view, click_x, click_y, surface_width, surface_height,
                       volume.spatial_extents, self._orthogonal[view])
        series = extract_series(volume, *coord)
        log.debug(f"Selected {coord} on {view}")
        return VoxelSelection(coord, series)
