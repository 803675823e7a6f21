import nibabel as nib
import numpy as np

from PyQt6.QtCore import QThread, pyqtSignal, QCoreApplication

from logger import get_logger
from slicing import VolumeBuffer


log = get_logger()

SUPPORTED_DATATYPES = ("float64", "float32", "int16", "uint16")
"""On-disk NIfTI datatypes the viewer decodes (by numpy dtype name)."""


def volume_shape(dims):
    """
    Normalize a NIfTI data shape to `(nx, ny, nz, nt)`.

    A missing scan axis counts as 1 and trailing singleton axes past the
    fourth are dropped.

    Args:
        dims (tuple[int, ...]): Shape reported by the NIfTI header.

    Returns:
        tuple[int, int, int, int]

    Raises:
        ValueError: If the image has fewer than three axes or a non-trivial
            axis past the fourth.
    """
    dims = tuple(int(d) for d in dims)
    if len(dims) < 3:
        raise ValueError(
            QCoreApplication.translate("Threads", "Image must have 3 or 4 dimensions") + f": {dims}"
        )
    if len(dims) > 4:
        if any(d != 1 for d in dims[4:]):
            raise ValueError(
                QCoreApplication.translate("Threads", "Unsupported image dimensions") + f": {dims}"
            )
        dims = dims[:4]
    dims = dims + (1,) * (4 - len(dims))
    return dims


def load_volume(file_path):
    """
    Decode a `.nii` / `.nii.gz` file into a `VolumeBuffer`.

    Compressed files are inflated by nibabel. The buffer keeps the file's own
    voxel order (x fastest), without reorientation.

    Args:
        file_path (str): NIfTI file to read.

    Returns:
        tuple[VolumeBuffer, tuple[int, int, int, int]]: The volume and its extents.

    Raises:
        ValueError: If the file is not NIfTI or uses an unsupported datatype.
    """
    img = nib.load(file_path)
    if not isinstance(img, (nib.Nifti1Image, nib.Nifti2Image)):
        raise ValueError(QCoreApplication.translate("Threads", "Not a valid NIfTI file"))

    datatype = img.get_data_dtype()
    if datatype.name not in SUPPORTED_DATATYPES:
        raise ValueError(
            QCoreApplication.translate("Threads", "Unsupported datatype") + f": {datatype.name}"
        )

    dims = volume_shape(img.header.get_data_shape())
    log.debug(f"Header dims {dims}, datatype {datatype.name}")

    data = np.asanyarray(img.dataobj).reshape(dims, order="F")
    return VolumeBuffer.from_array(data), dims


class ImageLoadThread(QThread):
    """
    Thread decoding a NIfTI file into a `VolumeBuffer` without blocking the UI.

    Signals:
        finished (object, object): Emitted with (volume, dims) once the file is decoded.
        error (str): Emitted if the file cannot be read or decoded.
        progress (int): Loading progress updates (0–100).

    Args:
        file_path (str): Path to the NIfTI file to load.
    """

    finished = pyqtSignal(object, object)
    """**Signal(object, object):**
    Emitted when the file is successfully decoded.

    Parameters:
    - `object`: the `VolumeBuffer`.
    - `object`: the `(nx, ny, nz, nt)` extents.
    """

    error = pyqtSignal(str)
    """**Signal(str):**
    Emitted when loading fails.

    Parameters:
    - `str`: Description of the failure.
    """

    progress = pyqtSignal(int)
    """**Signal(int):**
    Emitted to report loading progress (0–100).
    """

    def __init__(self, file_path):
        super().__init__()
        self.file_path = file_path

    def run(self):
        """
        Load the file and emit either `finished` or `error`.
        """
        try:
            self.progress.emit(10)
            log.debug(f"Loading {self.file_path}")
            volume, dims = load_volume(self.file_path)
            self.progress.emit(100)
            log.debug(f"Loaded {volume!r}")
            self.finished.emit(volume, dims)

        except Exception as e:
            log.error(f"Failed to load {self.file_path}: {e}")
            self.error.emit(str(e))
