"""
test_session.py - Tests for ViewerSession

The session owns the loaded volume, the slice index of each view and the
scan index, and wires extraction, normalization and location together.
"""

import numpy as np
import pytest

from slicing import (
    ViewerSession, VoxelSelection, VoxelCoord, ViewKind, IndexOutOfRange, extract, normalize,
)


@pytest.fixture
def session(small_volume):
    return ViewerSession(small_volume)


class TestSessionState:
    """Tests for the session state"""

    def test_empty_session(self):
        session = ViewerSession()
        assert not session.has_volume
        assert session.volume is None
        with pytest.raises(RuntimeError):
            session.render(ViewKind.AXIAL)
        with pytest.raises(RuntimeError):
            session.select(ViewKind.AXIAL, 0, 0, 10, 10)

    def test_load_resets_to_middle_slices(self, odd_volume):
        session = ViewerSession()
        session.load(odd_volume)

        assert session.has_volume
        assert session.orthogonal_index(ViewKind.AXIAL) == 2
        assert session.orthogonal_index(ViewKind.CORONAL) == 1
        assert session.orthogonal_index(ViewKind.SAGITTAL) == 2
        assert session.scan_index == 0

    def test_reload_resets_indices(self, session, odd_volume):
        session.set_scan_index(1)
        session.set_orthogonal_index(ViewKind.AXIAL, 3)
        session.load(odd_volume)

        assert session.scan_index == 0
        assert session.orthogonal_index("axial") == 2

    def test_clear(self, session):
        session.clear()
        assert not session.has_volume

    def test_set_orthogonal_index(self, session):
        session.set_orthogonal_index(ViewKind.SAGITTAL, 3)
        assert session.orthogonal_index(ViewKind.SAGITTAL) == 3

    @pytest.mark.parametrize("index", [-1, 4])
    def test_set_orthogonal_index_out_of_range(self, session, index):
        with pytest.raises(IndexOutOfRange):
            session.set_orthogonal_index(ViewKind.CORONAL, index)
        assert session.orthogonal_index(ViewKind.CORONAL) == 2

    def test_set_scan_index_out_of_range(self, session):
        with pytest.raises(IndexOutOfRange):
            session.set_scan_index(2)
        assert session.scan_index == 0

    def test_follow(self, session):
        session.follow(VoxelCoord(3, 0, 1))

        assert session.orthogonal_index(ViewKind.SAGITTAL) == 3
        assert session.orthogonal_index(ViewKind.CORONAL) == 0
        assert session.orthogonal_index(ViewKind.AXIAL) == 1

    def test_follow_outside_volume(self, session):
        with pytest.raises(IndexOutOfRange):
            session.follow(VoxelCoord(4, 0, 0))

    def test_slice_shape(self, odd_volume):
        session = ViewerSession(odd_volume)
        assert session.slice_shape(ViewKind.AXIAL) == (5, 3)
        assert session.slice_shape(ViewKind.CORONAL) == (5, 4)
        assert session.slice_shape(ViewKind.SAGITTAL) == (3, 4)


class TestSessionRendering:
    """Tests for render / render_all"""

    def test_render_uses_session_indices(self, session, small_volume):
        session.set_scan_index(1)
        session.set_orthogonal_index(ViewKind.CORONAL, 3)

        raster = session.render(ViewKind.CORONAL)
        expected = normalize(extract(small_volume, ViewKind.CORONAL, 3, 1))
        np.testing.assert_array_equal(raster.pixels, expected.pixels)

    def test_render_all(self, session):
        rasters = session.render_all()
        assert set(rasters) == set(ViewKind)
        for raster in rasters.values():
            assert (raster.width, raster.height) == (4, 4)


class TestSessionSelection:
    """Tests for select()"""

    def test_click_to_series(self, session, value_of):
        """4x4x4x2 volume, axial at z=2, click (1, 1) on a 4x4 surface"""
        selection = session.select(ViewKind.AXIAL, 1, 1, 4, 4)

        assert isinstance(selection, VoxelSelection)
        assert selection.coord == VoxelCoord(1, 1, 2)
        assert len(selection.series) == 2
        np.testing.assert_array_equal(
            selection.series, [value_of(1, 1, 2, 0), value_of(1, 1, 2, 1)]
        )

    def test_click_uses_orthogonal_index_of_view(self, session):
        session.set_orthogonal_index(ViewKind.SAGITTAL, 0)
        selection = session.select(ViewKind.SAGITTAL, 99, 0, 100, 100)
        assert selection.coord == VoxelCoord(0, 3, 0)

    def test_click_outside_surface_is_clamped(self, session):
        selection = session.select(ViewKind.CORONAL, -20, 500, 100, 100)
        assert selection.coord == VoxelCoord(0, 2, 3)

    def test_select_does_not_move_views(self, session):
        session.select(ViewKind.AXIAL, 0, 0, 4, 4)
        assert session.orthogonal_index(ViewKind.SAGITTAL) == 2

    def test_describe(self, session):
        selection = session.select(ViewKind.AXIAL, 1, 1, 4, 4)
        assert selection.describe() == "Voxel [1, 1, 2]: Values: 20101, 1020101"

    def test_describe_fractional_values(self):
        selection = VoxelSelection(VoxelCoord(0, 1, 2), np.array([0.5, 2.0]))
        assert selection.describe() == "Voxel [0, 1, 2]: Values: 0.5, 2"
