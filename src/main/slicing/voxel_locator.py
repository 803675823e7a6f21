import math
import operator
from typing import NamedTuple

from .view_kind import ViewKind


class VoxelCoord(NamedTuple):
    """Spatial voxel coordinate, always inside the volume after `locate`."""
    x: int
    y: int
    z: int


def _clamp(value, extent):
    return min(max(value, 0), extent - 1)


def _scale(position, surface, extent):
    """floor(position / surface * extent), clamped into [0, extent - 1]."""
    if math.isnan(position):
        return 0
    scaled = position / surface * extent
    if math.isinf(scaled):
        return 0 if scaled < 0 else extent - 1
    return _clamp(math.floor(scaled), extent)


def locate(view, click_x, click_y, surface_width, surface_height, extents, orthogonal_index):
    """
    Inverse-map a click on a rendered slice back to a voxel.

    The click is given in pixels relative to the top-left corner of a surface
    of `surface_width` x `surface_height` pixels showing the slice of `view`
    at `orthogonal_index`. The click's column selects the view's width axis,
    its row the height axis; the fixed axis takes `orthogonal_index`.

    Every coordinate is clamped into the volume, so clicks that land outside
    the surface (negative, past the edge, non-finite) still yield a valid voxel.

    Args:
        view (ViewKind): View the click happened on.
        click_x (float): Horizontal pixel offset.
        click_y (float): Vertical pixel offset.
        surface_width (float): Surface width in pixels.
        surface_height (float): Surface height in pixels.
        extents (tuple[int, ...]): (nx, ny, nz) or (nx, ny, nz, nt); the scan
            extent is ignored.
        orthogonal_index (int): Slice index currently shown by `view`.

    Returns:
        VoxelCoord: Clamped (x, y, z).

    Raises:
        ValueError: If a surface dimension is not positive.
    """
    view = ViewKind.parse(view)
    if not surface_width > 0 or not surface_height > 0:
        raise ValueError(f"Surface dimensions must be positive, got {surface_width}x{surface_height}")

    spatial = tuple(operator.index(e) for e in extents[:3])

    coord = [0, 0, 0]
    coord[view.width_axis] = _scale(float(click_x), surface_width, spatial[view.width_axis])
    coord[view.height_axis] = _scale(float(click_y), surface_height, spatial[view.height_axis])
    coord[view.fixed_axis] = _clamp(operator.index(orthogonal_index), spatial[view.fixed_axis])
    return VoxelCoord(*coord)
