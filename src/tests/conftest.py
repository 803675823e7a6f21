import os
import shutil
import sys
import tempfile
from unittest.mock import Mock

import numpy as np
import pytest

# Qt widgets are created without a display
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

# Add the application sources to PYTHONPATH
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'main')))

from PyQt6.QtCore import QSettings, QObject, pyqtSignal

from slicing import VolumeBuffer


def encode(x, y, z, t):
    """Unique value of voxel (x, y, z, t) in the synthetic test volumes."""
    return x + 100 * y + 10000 * z + 1000000 * t


def make_volume(nx, ny, nz, nt=1, dtype=np.float64):
    """Synthetic volume whose samples are `encode(x, y, z, t)`."""
    samples = np.empty(nx * ny * nz * nt, dtype=dtype)
    for t in range(nt):
        for z in range(nz):
            for y in range(ny):
                for x in range(nx):
                    samples[x + y * nx + z * nx * ny + t * nx * ny * nz] = encode(x, y, z, t)
    return VolumeBuffer(samples, nx, ny, nz, nt)


class SignalEmitter(QObject):
    """Helper class for mocked signals"""
    language_changed = pyqtSignal(str)


@pytest.fixture
def volume_factory():
    return make_volume


@pytest.fixture
def value_of():
    """The encoding used by `volume_factory` volumes."""
    return encode


@pytest.fixture
def small_volume():
    """4x4x4 volume with two scan samples."""
    return make_volume(4, 4, 4, 2)


@pytest.fixture
def odd_volume():
    """Volume with a distinct extent on every axis."""
    return make_volume(5, 3, 4, 3)


@pytest.fixture
def temp_workspace():
    """Create a temporary directory for test files"""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def settings():
    """Throwaway QSettings, cleared before and after the test"""
    store = QSettings("TestOrg", "NiftiVoxelViewerTests")
    store.clear()
    yield store
    store.clear()


@pytest.fixture
def signal_emitter():
    return SignalEmitter()


@pytest.fixture
def mock_context(settings, signal_emitter):
    """Context dictionary as built by the Controller"""
    return {
        "settings": settings,
        "language_changed": signal_emitter.language_changed,
        "open_nifti_viewer": Mock(),
    }
