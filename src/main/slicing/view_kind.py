from enum import Enum

# Spatial axis numbers used by the plane table below
X_AXIS, Y_AXIS, Z_AXIS = 0, 1, 2


class ViewKind(Enum):
    """
    The three canonical orthogonal viewing planes.

    Each member carries `(width_axis, height_axis, fixed_axis)`. Forward slice
    extraction and inverse click location both read this table, so the two
    mappings cannot drift apart.
    """

    AXIAL = ("axial", X_AXIS, Y_AXIS, Z_AXIS)
    CORONAL = ("coronal", X_AXIS, Z_AXIS, Y_AXIS)
    SAGITTAL = ("sagittal", Y_AXIS, Z_AXIS, X_AXIS)

    def __init__(self, label, width_axis, height_axis, fixed_axis):
        self.label = label
        self.width_axis = width_axis
        self.height_axis = height_axis
        self.fixed_axis = fixed_axis

    def plane_shape(self, extents):
        """Return `(width, height)` of this plane for spatial extents `(nx, ny, nz)`."""
        return extents[self.width_axis], extents[self.height_axis]

    def fixed_extent(self, extents):
        """Extent of the axis this view holds constant."""
        return extents[self.fixed_axis]

    @classmethod
    def parse(cls, name):
        """Look a view up by its lower-case label ("axial", "coronal", "sagittal")."""
        if isinstance(name, cls):
            return name
        for view in cls:
            if view.label == str(name).lower():
                return view
        raise ValueError(f"Unknown view kind: {name!r}")

    def __str__(self):
        return self.label
