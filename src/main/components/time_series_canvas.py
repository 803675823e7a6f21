import numpy as np
from matplotlib.figure import Figure
from matplotlib.backends.backend_qtagg import FigureCanvasQTAgg as FigureCanvas
from PyQt6 import QtCore

from logger import get_logger

log = get_logger()


def scan_axis_values(labels, length):
    """
    X-axis values for a series of `length` samples.

    The configured labels (b-values) are used when their count matches the
    series; otherwise the samples are numbered 0..length-1.
    """
    if labels is not None and len(labels) == length:
        return np.asarray(labels, dtype=float)
    return np.arange(length)


class TimeSeriesCanvas(FigureCanvas):
    """
    Scatter chart of a voxel's intensity along the scan axis.

    Args:
        labels (Sequence[float] | None): Scan parameter per sample (e.g. b-values).
        parent (QWidget, optional): Parent widget.
    """

    def __init__(self, labels=None, parent=None):
        self.figure = Figure(figsize=(4, 3))
        self.figure.set_layout_engine('tight')
        super().__init__(self.figure)
        self.setParent(parent)
        self.axes = self.figure.add_subplot(111)
        self.labels = labels
        self.x_values = None
        self.y_values = None
        self.clear_plot()

    def set_labels(self, labels):
        self.labels = labels

    def _decorate(self, title):
        self.axes.set_title(title)
        self.axes.set_xlabel(QtCore.QCoreApplication.translate("TimeSeriesCanvas", "B-Values"))
        self.axes.set_ylabel(QtCore.QCoreApplication.translate("TimeSeriesCanvas", "Intensity"))
        self.axes.grid(True, alpha=0.3)

    def clear_plot(self):
        """Remove any plotted series."""
        self.axes.clear()
        self.x_values = None
        self.y_values = None
        self._decorate(QtCore.QCoreApplication.translate("TimeSeriesCanvas", "Voxel Intensity vs. B-Values"))
        self.draw_idle()

    def plot_series(self, series, title=None):
        """
        Draw `series` as markers against the scan-axis labels.

        Args:
            series (Sequence[float]): Values along the scan axis.
            title (str, optional): Chart title; defaults to "Voxel Intensity vs. B-Values".
        """
        y_values = np.asarray(series, dtype=float)
        x_values = scan_axis_values(self.labels, y_values.size)
        if self.labels is not None and len(self.labels) != y_values.size:
            log.debug(f"{len(self.labels)} scan labels for {y_values.size} samples, using indices")

        self.axes.clear()
        self.axes.scatter(x_values, y_values, s=18)
        self._decorate(title or QtCore.QCoreApplication.translate("TimeSeriesCanvas", "Voxel Intensity vs. B-Values"))
        self.x_values = x_values
        self.y_values = y_values
        self.draw_idle()
