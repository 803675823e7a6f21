import os

from PyQt6 import QtCore
from PyQt6.QtCore import Qt
from PyQt6.QtGui import QImage, QPixmap, QResizeEvent
from PyQt6.QtWidgets import (QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QGridLayout,
                             QLabel, QSlider, QPushButton, QFileDialog, QGraphicsScene,
                             QGraphicsPixmapItem, QStatusBar, QMessageBox, QProgressDialog,
                             QSplitter, QFrame, QCheckBox, QGroupBox, QScrollArea)

from components.crosshair_graphic_view import CrosshairGraphicsView
from components.time_series_canvas import TimeSeriesCanvas
from logger import get_logger
from slicing import ViewKind, ViewerSession, VolumeError, locate
from threads.nifti_utils_threads import ImageLoadThread
from utils import parse_scan_labels, is_nifti_file

log = get_logger()

VIEW_TITLES = {
    ViewKind.AXIAL: "Axial",
    ViewKind.CORONAL: "Coronal",
    ViewKind.SAGITTAL: "Sagittal",
}


def raster_to_qimage(raster):
    """
    Wrap a `Raster8` in a QImage. The returned image owns its pixels.
    """
    image = QImage(raster.tobytes(), raster.width, raster.height,
                   raster.width * 4, QImage.Format.Format_RGBA8888)
    return image.copy()


class NiftiViewer(QMainWindow):
    """
    Triplanar viewer for 3D/4D NIfTI volumes.

    Shows the axial, coronal and sagittal slices of the loaded volume and, on
    every click, the clicked voxel's values along the scan axis as a scatter
    chart against the configured scan labels (b-values).

    All slicing goes through a `ViewerSession`; the widget only converts its
    rasters to pixmaps and forwards clicks.

    Attributes:
        context (dict): Optional shared context (`settings`, `language_changed`).
        session (ViewerSession): Current volume and slice/scan indices.
        selection (VoxelSelection | None): Last clicked voxel and its series.
        scan_labels (tuple[float, ...]): X-axis labels for the series chart.
        link_views (bool): Move every view onto the clicked voxel.
    """

    def __init__(self, context=None):
        """
        Args:
            context (dict, optional): Shared context providing `settings`
                (QSettings) and `language_changed` (signal).
        """
        super().__init__()

        self.threads = []
        self.context = context or {}
        self.progress_dialog = None

        self.setWindowTitle(QtCore.QCoreApplication.translate("NIfTIViewer", "NIfTI Voxel Viewer"))
        self.setMinimumSize(900, 650)
        self.resize(1300, 900)

        # === Data ===
        self.session = ViewerSession()
        self.selection = None
        self.file_path = None
        self.dims = None

        # === Settings ===
        settings = self.context.get("settings")
        if settings is not None:
            self.scan_labels = parse_scan_labels(settings.value("scan_labels", None))
            self.link_views = settings.value("link_views", False, type=bool)
        else:
            self.scan_labels = parse_scan_labels(None)
            self.link_views = False

        # === Widgets ===
        self.views = {}
        self.scenes = {}
        self.pixmap_items = {}
        self.view_titles = {}
        self.slice_sliders = {}
        self.slice_labels = {}
        self.time_slider = None
        self.time_label = None
        self.link_checkbox = None
        self.open_btn = None
        self.file_info_label = None
        self.voxel_info_label = None
        self.plot_canvas = None
        self.status_bar = None
        self.coord_label = None
        self.value_label = None

        self.init_ui()
        self.setup_connections()

        self._translate_ui()
        if "language_changed" in self.context:
            self.context["language_changed"].connect(self._translate_ui)

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------
    def init_ui(self):
        """Build the control panel, the 2x2 image grid and the status bar."""
        central_widget = QWidget()
        self.setCentralWidget(central_widget)

        main_splitter = QSplitter(Qt.Orientation.Horizontal)
        layout = QHBoxLayout(central_widget)
        layout.setContentsMargins(5, 5, 5, 5)
        layout.addWidget(main_splitter)

        self.create_control_panel(main_splitter)
        self.create_image_display(main_splitter)

        main_splitter.setSizes([280, 1020])
        main_splitter.setStretchFactor(0, 0)
        main_splitter.setStretchFactor(1, 1)

        self.status_bar = QStatusBar()
        self.setStatusBar(self.status_bar)
        self.coord_label = QLabel()
        self.value_label = QLabel()
        self.status_bar.addWidget(self.coord_label)
        self.status_bar.addPermanentWidget(self.value_label)

    def create_control_panel(self, parent):
        """
        Left panel: file loading, one slice slider per view, the scan-index
        slider, the linked-views toggle and the selected voxel read-out.
        """
        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        panel = QWidget()
        layout = QVBoxLayout(panel)

        self.open_btn = QPushButton()
        layout.addWidget(self.open_btn)

        self.file_info_label = QLabel()
        self.file_info_label.setWordWrap(True)
        layout.addWidget(self.file_info_label)

        self.slice_group = QGroupBox()
        slice_layout = QVBoxLayout(self.slice_group)
        for view in ViewKind:
            label = QLabel()
            slider = QSlider(Qt.Orientation.Horizontal)
            slider.setEnabled(False)
            slice_layout.addWidget(label)
            slice_layout.addWidget(slider)
            self.slice_labels[view] = label
            self.slice_sliders[view] = slider
        layout.addWidget(self.slice_group)

        self.time_group = QGroupBox()
        time_layout = QVBoxLayout(self.time_group)
        self.time_label = QLabel()
        self.time_slider = QSlider(Qt.Orientation.Horizontal)
        self.time_slider.setEnabled(False)
        time_layout.addWidget(self.time_label)
        time_layout.addWidget(self.time_slider)
        layout.addWidget(self.time_group)

        self.link_checkbox = QCheckBox()
        self.link_checkbox.setChecked(self.link_views)
        layout.addWidget(self.link_checkbox)

        self.voxel_info_label = QLabel()
        self.voxel_info_label.setWordWrap(True)
        self.voxel_info_label.setTextInteractionFlags(Qt.TextInteractionFlag.TextSelectableByMouse)
        layout.addWidget(self.voxel_info_label)

        layout.addStretch()
        scroll.setWidget(panel)
        parent.addWidget(scroll)

    def create_image_display(self, parent):
        """Right area: the three slice views and the series chart in a 2x2 grid."""
        display = QWidget()
        grid = QGridLayout(display)
        grid.setSpacing(4)

        positions = {
            ViewKind.AXIAL: (0, 0),
            ViewKind.CORONAL: (0, 1),
            ViewKind.SAGITTAL: (1, 0),
        }
        for view, (row, col) in positions.items():
            frame = QFrame()
            frame.setFrameStyle(QFrame.Shape.StyledPanel)
            frame_layout = QVBoxLayout(frame)
            frame_layout.setContentsMargins(2, 2, 2, 2)

            title = QLabel()
            title.setAlignment(Qt.AlignmentFlag.AlignCenter)
            frame_layout.addWidget(title)

            scene = QGraphicsScene()
            graphics_view = CrosshairGraphicsView(view, self)
            graphics_view.setScene(scene)
            graphics_view.setStyleSheet("background-color: black;")
            pixmap_item = QGraphicsPixmapItem()
            scene.addItem(pixmap_item)
            graphics_view.setup_crosshairs()
            frame_layout.addWidget(graphics_view)

            self.view_titles[view] = title
            self.scenes[view] = scene
            self.views[view] = graphics_view
            self.pixmap_items[view] = pixmap_item
            grid.addWidget(frame, row, col)

        self.plot_canvas = TimeSeriesCanvas(self.scan_labels)
        grid.addWidget(self.plot_canvas, 1, 1)

        parent.addWidget(display)

    def setup_connections(self):
        self.open_btn.clicked.connect(lambda: self.open_file())
        for view, slider in self.slice_sliders.items():
            slider.valueChanged.connect(lambda value, v=view: self.slice_changed(v, value))
        self.time_slider.valueChanged.connect(self.time_changed)
        self.link_checkbox.toggled.connect(self.toggle_link_views)
        for graphics_view in self.views.values():
            graphics_view.coordinate_changed.connect(self.update_coordinates)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    def open_file(self, file_path=None):
        """
        Load a NIfTI file in a background thread.

        Args:
            file_path (str, optional): File to open; a file dialog is shown when omitted.
        """
        if file_path is None:
            settings = self.context.get("settings")
            start_dir = settings.value("last_directory", "", type=str) if settings is not None else ""
            file_path, _ = QFileDialog.getOpenFileName(
                self,
                QtCore.QCoreApplication.translate("NIfTIViewer", "Open NIfTI file"),
                start_dir,
                QtCore.QCoreApplication.translate("NIfTIViewer", "NIfTI files") + " (*.nii *.nii.gz)"
            )
            if not file_path:
                return
            if settings is not None:
                settings.setValue("last_directory", os.path.dirname(file_path))

        if not is_nifti_file(file_path):
            QMessageBox.warning(
                self,
                QtCore.QCoreApplication.translate("NIfTIViewer", "Warning"),
                QtCore.QCoreApplication.translate("NIfTIViewer", "Please select a .nii or .nii.gz file")
            )
            log.warning(f"Not a NIfTI file: {file_path}")
            return

        self.progress_dialog = QProgressDialog(
            QtCore.QCoreApplication.translate("NIfTIViewer", "Loading NIfTI file..."),
            QtCore.QCoreApplication.translate("NIfTIViewer", "Cancel"), 0, 100, self
        )
        self.progress_dialog.setWindowModality(Qt.WindowModality.WindowModal)
        self.progress_dialog.setMinimumDuration(0)

        thread = ImageLoadThread(file_path)
        thread.finished.connect(self.on_file_loaded)
        thread.error.connect(self.on_load_error)
        thread.progress.connect(self.progress_dialog.setValue)
        self.threads.append(thread)
        self.progress_dialog.canceled.connect(self.on_load_canceled)
        self.file_path = file_path
        thread.start()

    def _close_progress(self):
        if self.progress_dialog is not None:
            self.progress_dialog.canceled.disconnect()
            self.progress_dialog.close()
            self.progress_dialog = None

        finished_thread = self.sender()
        if finished_thread in self.threads:
            # run() emits right before returning; let it exit before the last reference goes
            finished_thread.wait()
            self.threads.remove(finished_thread)

    def on_file_loaded(self, volume, dims):
        """
        Install a freshly decoded volume: reset the session, the sliders, the
        selection and redraw the three views.

        Args:
            volume (VolumeBuffer): Decoded volume.
            dims (tuple[int, int, int, int]): (nx, ny, nz, nt).
        """
        self._close_progress()

        self.session.load(volume)
        self.dims = tuple(dims)
        self.selection = None
        self.voxel_info_label.clear()
        self.plot_canvas.clear_plot()

        filename = os.path.basename(self.file_path) if self.file_path else ""
        nx, ny, nz, nt = volume.extents
        self.file_info_label.setText(
            QtCore.QCoreApplication.translate("NIfTIViewer", "File") + f": {filename}\n" +
            QtCore.QCoreApplication.translate("NIfTIViewer", "Dimensions") + f": {nx}×{ny}×{nz}×{nt}\n" +
            QtCore.QCoreApplication.translate("NIfTIViewer", "Datatype") + f": {volume.dtype}"
        )

        self.initialize_display()
        self.status_bar.showMessage(
            QtCore.QCoreApplication.translate("NIfTIViewer", "Loaded") + f": {filename}", 5000
        )
        log.info(f"Loaded {filename} {nx}x{ny}x{nz}x{nt}")

    def on_load_error(self, error_message):
        self._close_progress()
        QMessageBox.critical(
            self,
            QtCore.QCoreApplication.translate("NIfTIViewer", "Error Loading File"),
            QtCore.QCoreApplication.translate("NIfTIViewer", "Failed to load NIfTI file") + f":\n{error_message}"
        )
        log.critical(f"Error loading NIfTI file: {error_message}")

    def on_load_canceled(self):
        if self.threads:
            thread = self.threads.pop()
            thread.terminate()
            thread.wait()
        self.progress_dialog = None

    def initialize_display(self):
        """Configure sliders for the loaded volume and draw every view."""
        if not self.session.has_volume:
            return

        volume = self.session.volume
        for view, slider in self.slice_sliders.items():
            slider.blockSignals(True)
            slider.setRange(0, view.fixed_extent(volume.spatial_extents) - 1)
            slider.setValue(self.session.orthogonal_index(view))
            slider.setEnabled(True)
            slider.blockSignals(False)

        self.time_slider.blockSignals(True)
        self.time_slider.setRange(0, volume.nt - 1)
        self.time_slider.setValue(self.session.scan_index)
        self.time_slider.setEnabled(volume.nt > 1)
        self.time_slider.blockSignals(False)

        self.update_slider_labels()
        self.update_all_displays()

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------
    def slice_changed(self, view, value):
        """Show slice `value` in `view`."""
        if not self.session.has_volume:
            return
        try:
            self.session.set_orthogonal_index(view, value)
        except VolumeError as e:
            log.error(f"Invalid slice for {view}: {e}")
            return
        self.update_slider_labels()
        self.update_display(view)
        self.update_cross_view_lines()

    def time_changed(self, value):
        """Render every view at scan index `value`."""
        if not self.session.has_volume:
            return
        try:
            self.session.set_scan_index(value)
        except VolumeError as e:
            log.error(f"Invalid scan index: {e}")
            return
        self.update_slider_labels()
        self.update_all_displays()

    def handle_scroll(self, view, delta):
        """Step the slice of `view` by `delta`, staying inside the volume."""
        slider = self.slice_sliders[view]
        slider.setValue(min(max(slider.value() + delta, slider.minimum()), slider.maximum()))

    def toggle_link_views(self, enabled):
        self.link_views = bool(enabled)
        settings = self.context.get("settings")
        if settings is not None:
            settings.setValue("link_views", self.link_views)

    def set_scan_labels(self, labels):
        self.scan_labels = parse_scan_labels(labels)
        self.plot_canvas.set_labels(self.scan_labels)
        self.update_time_series_plot()

    # ------------------------------------------------------------------
    # Voxel selection
    # ------------------------------------------------------------------
    def handle_click_coordinates(self, view, x, y, surface_width, surface_height):
        """
        Select the voxel under a click and plot its scan-axis series.

        Args:
            view (ViewKind): View that was clicked.
            x, y (float): Click position in raster pixels.
            surface_width, surface_height (float): Raster size in pixels.
        """
        if not self.session.has_volume:
            return

        try:
            self.selection = self.session.select(view, x, y, surface_width, surface_height)
        except (VolumeError, ValueError) as e:
            log.error(f"Voxel selection failed on {view}: {e}")
            return

        self.voxel_info_label.setText(self.selection.describe())
        log.debug(self.selection.describe())

        if self.link_views:
            self.session.follow(self.selection.coord)
            for other, slider in self.slice_sliders.items():
                slider.blockSignals(True)
                slider.setValue(self.session.orthogonal_index(other))
                slider.blockSignals(False)
            self.update_slider_labels()
            self.update_all_displays()

        self.update_cross_view_lines()
        self.update_time_series_plot()

    def update_coordinates(self, view, x, y):
        """Show the voxel under the mouse and its value in the status bar."""
        if not self.session.has_volume:
            return
        volume = self.session.volume
        width, height = self.session.slice_shape(view)
        coord = locate(view, x, y, width, height, volume.spatial_extents,
                       self.session.orthogonal_index(view))
        value = volume.get(coord.x, coord.y, coord.z, self.session.scan_index)
        self.coord_label.setText(
            QtCore.QCoreApplication.translate("NIfTIViewer", "Coordinates") + f": ({coord.x}, {coord.y}, {coord.z})"
        )
        self.value_label.setText(QtCore.QCoreApplication.translate("NIfTIViewer", "Value") + f": {value}")

    def update_time_series_plot(self):
        if self.selection is None:
            self.plot_canvas.clear_plot()
            return
        self.plot_canvas.plot_series(self.selection.series)

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------
    def update_display(self, view):
        """Render the current slice of `view` into its scene."""
        if not self.session.has_volume:
            return
        raster = self.session.render(view)
        pixmap = QPixmap.fromImage(raster_to_qimage(raster))
        self.pixmap_items[view].setPixmap(pixmap)
        self.scenes[view].setSceneRect(0, 0, raster.width, raster.height)
        self.views[view].fitInView(self.scenes[view].sceneRect(), Qt.AspectRatioMode.KeepAspectRatio)

    def update_all_displays(self):
        for view in ViewKind:
            self.update_display(view)
        self.update_cross_view_lines()

    def update_cross_view_lines(self):
        """Put every view's crosshair on the selected voxel."""
        if self.selection is None:
            return
        coord = self.selection.coord
        for view, graphics_view in self.views.items():
            graphics_view.set_crosshair_position(coord[view.width_axis] + 0.5,
                                                 coord[view.height_axis] + 0.5)

    def update_slider_labels(self):
        for view, label in self.slice_labels.items():
            title = QtCore.QCoreApplication.translate("NIfTIViewer", VIEW_TITLES[view])
            if self.session.has_volume:
                extent = view.fixed_extent(self.session.volume.spatial_extents)
                label.setText(f"{title}: {self.session.orthogonal_index(view)}/{extent - 1}")
            else:
                label.setText(f"{title}: -/-")

        scan_title = QtCore.QCoreApplication.translate("NIfTIViewer", "Scan index")
        if self.session.has_volume:
            label_text = f"{scan_title}: {self.session.scan_index}/{self.session.volume.nt - 1}"
            if len(self.scan_labels) == self.session.volume.nt:
                label_text += f" (b = {self.scan_labels[self.session.scan_index]:g})"
            self.time_label.setText(label_text)
        else:
            self.time_label.setText(f"{scan_title}: -/-")

    def resizeEvent(self, event: QResizeEvent):
        super().resizeEvent(event)
        for view, graphics_view in self.views.items():
            if not self.scenes[view].sceneRect().isEmpty():
                graphics_view.fitInView(self.scenes[view].sceneRect(), Qt.AspectRatioMode.KeepAspectRatio)

    def closeEvent(self, event):
        for thread in self.threads:
            if thread.isRunning():
                thread.terminate()
                thread.wait()
        self.threads.clear()
        super().closeEvent(event)

    def _translate_ui(self):
        self.setWindowTitle(QtCore.QCoreApplication.translate("NIfTIViewer", "NIfTI Voxel Viewer"))
        self.open_btn.setText(QtCore.QCoreApplication.translate("NIfTIViewer", "Open NIfTI File"))
        self.slice_group.setTitle(QtCore.QCoreApplication.translate("NIfTIViewer", "Slice Navigation"))
        self.time_group.setTitle(QtCore.QCoreApplication.translate("NIfTIViewer", "Scan Axis"))
        self.link_checkbox.setText(QtCore.QCoreApplication.translate("NIfTIViewer", "Move all views to clicked voxel"))
        for view, title in self.view_titles.items():
            title.setText(QtCore.QCoreApplication.translate("NIfTIViewer", VIEW_TITLES[view]))
        if not self.session.has_volume:
            self.file_info_label.setText(QtCore.QCoreApplication.translate("NIfTIViewer", "No file loaded"))
            self.coord_label.setText(QtCore.QCoreApplication.translate("NIfTIViewer", "Coordinates: (-, -, -)"))
            self.value_label.setText(QtCore.QCoreApplication.translate("NIfTIViewer", "Value: -"))
        self.update_slider_labels()
