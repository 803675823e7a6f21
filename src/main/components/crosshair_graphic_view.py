from PyQt6.QtCore import pyqtSignal, Qt
from PyQt6.QtGui import QPainter, QPen, QColor, QMouseEvent, QWheelEvent
from PyQt6.QtWidgets import QGraphicsView


class CrosshairGraphicsView(QGraphicsView):
    """QGraphicsView showing one slice of the volume.

       - Draws a crosshair that follows the mouse
       - Emits hover positions in scene (raster pixel) coordinates
       - Forwards left clicks and wheel steps to the parent viewer
    """

    coordinate_changed = pyqtSignal(object, float, float)
    """**Signal(object, float, float):** Emitted whenever the mouse moves over the slice.
    Parameters represent:
    - `view`: The `ViewKind` shown by this widget.
    - `x`, `y`: Mouse position in raster pixels.
    """

    def __init__(self, view, parent=None):
        """
        Args:
            view (ViewKind): Plane displayed by this widget.
            parent (QWidget): Viewer owning the session; must provide
                `session`, `handle_click_coordinates`, `handle_scroll` and
                `update_cross_view_lines`.
        """
        super().__init__(parent)
        self.view = view
        self.parent_viewer = parent

        self.setMouseTracking(True)
        self.setDragMode(QGraphicsView.DragMode.NoDrag)

        self.crosshair_h = None
        self.crosshair_v = None
        self.crosshair_visible = False

        # Smooth crosshair lines; pixmaps keep the default nearest-neighbour transform
        self.setRenderHints(QPainter.RenderHint.Antialiasing)

    def has_image(self):
        """True when the parent viewer has a volume loaded and a scene is set."""
        session = getattr(self.parent_viewer, "session", None)
        return self.scene() is not None and session is not None and session.has_volume

    def surface_size(self):
        """(width, height) of the rendered raster, i.e. the scene rectangle."""
        rect = self.scene().sceneRect()
        return rect.width(), rect.height()

    # -------------------------------------------------------------------------
    # Crosshair
    # -------------------------------------------------------------------------
    def setup_crosshairs(self):
        """
        Add two hidden crosshair lines to the current scene.
        Must be called again whenever the scene is cleared.
        """
        if self.scene():
            pen = QPen(QColor(255, 255, 0, 180), 0)
            self.crosshair_h = self.scene().addLine(0, 0, 0, 0, pen)
            self.crosshair_v = self.scene().addLine(0, 0, 0, 0, pen)
            self.crosshair_h.setZValue(1)
            self.crosshair_v.setZValue(1)
            self.crosshair_h.setVisible(False)
            self.crosshair_v.setVisible(False)
            self.crosshair_visible = False

    def update_crosshairs(self, x, y):
        """Move the crosshair to (x, y) in scene coordinates and show it."""
        if self.crosshair_h and self.crosshair_v and self.scene():
            width, height = self.surface_size()
            self.crosshair_h.setLine(0, y, width, y)
            self.crosshair_v.setLine(x, 0, x, height)

            if not self.crosshair_visible:
                self.crosshair_h.setVisible(True)
                self.crosshair_v.setVisible(True)
                self.crosshair_visible = True

    def set_crosshair_position(self, x, y):
        """Place the crosshair from outside (linked views); ignored when out of the scene."""
        if self.crosshair_h and self.crosshair_v and self.scene():
            width, height = self.surface_size()
            if 0 <= x <= width and 0 <= y <= height:
                self.update_crosshairs(x, y)

    # -------------------------------------------------------------------------
    # Mouse handling
    # -------------------------------------------------------------------------
    def mouseMoveEvent(self, event: QMouseEvent):
        if self.has_image():
            pos = self.mapToScene(event.position().toPoint())
            width, height = self.surface_size()
            if 0 <= pos.x() < width and 0 <= pos.y() < height:
                self.update_crosshairs(pos.x(), pos.y())
                self.coordinate_changed.emit(self.view, pos.x(), pos.y())

        super().mouseMoveEvent(event)

    def mousePressEvent(self, event: QMouseEvent):
        """
        On left click, hand the click position and the surface size to the
        viewer, which maps them back to a voxel. Positions outside the raster
        are forwarded as well; the voxel mapping clamps them.
        """
        if event.button() == Qt.MouseButton.LeftButton and self.has_image():
            pos = self.mapToScene(event.position().toPoint())
            width, height = self.surface_size()
            self.parent_viewer.handle_click_coordinates(self.view, pos.x(), pos.y(), width, height)

        super().mousePressEvent(event)

    def wheelEvent(self, event: QWheelEvent):
        delta = int(event.angleDelta().y() / 120)
        if delta and self.has_image():
            self.parent_viewer.handle_scroll(self.view, delta)
        event.accept()

    def leaveEvent(self, event):
        # Snap the crosshair back onto the selected voxel
        if self.crosshair_h and self.crosshair_v and self.parent_viewer is not None:
            self.parent_viewer.update_cross_view_lines()

        super().leaveEvent(event)
