import os
import sys
from pathlib import Path

from PyQt6.QtCore import QStandardPaths, QCoreApplication

APP_NAME = "NiftiVoxelViewer"

NIFTI_EXTENSIONS = (".nii", ".nii.gz")

# Diffusion b-values of the acquisitions the viewer was built around; used as
# scan-axis labels whenever a series has exactly this many samples.
DEFAULT_B_VALUES = (
    0.0, 1.0, 2.0, 5.0, 10.0, 20.0, 30.0, 50.0, 75.0, 100.0, 150.0, 250.0,
    350.0, 400.0, 550.0, 700.0, 850.0, 1000.0, 1150.0, 1300.0,
)


def get_app_dir():
    """
    Get the writable directory used to store user-specific application data
    (`~/NiftiVoxelViewer`), creating it if needed.

    Returns:
        pathlib.Path: The absolute path to the application data directory.

    Raises:
        PermissionError: If the directory cannot be created.
    """
    base = Path(QStandardPaths.writableLocation(QStandardPaths.StandardLocation.HomeLocation)) / APP_NAME

    try:
        base.mkdir(parents=True, exist_ok=True)
    except PermissionError:
        raise
    except OSError as e:
        # Errno 30 = read-only filesystem, 13 = forbidden
        if getattr(e, "errno", None) in (13, 30):
            raise PermissionError(QCoreApplication.translate("Utils", "Error while creating the app working directory")) from e
        raise

    return base


def is_nifti_file(path):
    """Return True if `path` names a `.nii` or `.nii.gz` file."""
    return str(path).lower().endswith(NIFTI_EXTENSIONS)


def parse_scan_labels(value):
    """
    Convert a scan label setting into a tuple of floats.

    QSettings hands lists back as lists of strings (or a single string when the
    list had one element); comma separated strings are accepted too.

    Args:
        value (str | list | tuple | None): Raw setting value.

    Returns:
        tuple[float, ...]: The parsed labels, or `DEFAULT_B_VALUES` when the
        value is empty or cannot be parsed.
    """
    if value is None or value == "" or value == []:
        return DEFAULT_B_VALUES
    if isinstance(value, str):
        value = [part for part in value.split(",") if part.strip()]
    try:
        labels = tuple(float(v) for v in value)
    except (TypeError, ValueError):
        return DEFAULT_B_VALUES
    return labels or DEFAULT_B_VALUES


def resource_path(relative_path):
    """
    Resolve a bundled resource (e.g. `translations/`) relative to this package,
    or to the PyInstaller extraction directory when frozen.
    """
    base = getattr(sys, "_MEIPASS", os.path.dirname(os.path.abspath(__file__)))
    return os.path.join(base, relative_path)
