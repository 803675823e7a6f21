import logging
import pytest
from unittest.mock import Mock, patch

from controller import Controller
from logger import get_logger


@pytest.fixture
def mock_viewer():
    """Mock the viewer window"""
    with patch('controller.NiftiViewer') as MockNiftiViewer:
        MockNiftiViewer.return_value = Mock()
        yield MockNiftiViewer


@pytest.fixture
def restore_log_level():
    logger = get_logger()
    level = logger.level
    yield
    logger.setLevel(level)


class TestControllerInitialization:
    """Tests for Controller initialization"""

    def test_context_contains_required_keys(self, qtbot, settings, mock_viewer):
        """Verify that the context contains all necessary keys"""
        controller = Controller(settings)

        for key in ["settings", "language_changed", "open_nifti_viewer", "nifti_viewer"]:
            assert key in controller.context

    def test_viewer_created_with_context(self, qtbot, settings, mock_viewer):
        controller = Controller(settings)

        mock_viewer.assert_called_once_with(controller.context)
        assert controller.context["nifti_viewer"] is controller.viewer

    def test_settings_shared(self, qtbot, settings, mock_viewer):
        controller = Controller(settings)
        assert controller.context["settings"] is settings

    def test_debug_log_setting_applied(self, qtbot, settings, mock_viewer, restore_log_level):
        settings.setValue("debug_log", True)
        Controller(settings)

        assert get_logger().level == logging.DEBUG

    def test_saved_language_restored(self, qtbot, settings, mock_viewer):
        settings.setValue("language", "it")
        controller = Controller(settings)

        assert controller.saved_lang == "it"


class TestControllerActions:
    """Tests for Controller methods"""

    def test_start_without_path(self, qtbot, settings, mock_viewer):
        controller = Controller(settings)
        controller.start()

        controller.viewer.show.assert_called_once()
        controller.viewer.open_file.assert_not_called()

    def test_start_with_path(self, qtbot, settings, mock_viewer):
        controller = Controller(settings)
        controller.start("/data/brain.nii.gz")

        controller.viewer.open_file.assert_called_once_with("/data/brain.nii.gz")

    def test_open_nifti_viewer_through_context(self, qtbot, settings, mock_viewer):
        controller = Controller(settings)
        controller.context["open_nifti_viewer"]("/data/dwi.nii")

        controller.viewer.open_file.assert_called_once_with("/data/dwi.nii")
        controller.viewer.show.assert_called()

    def test_set_language_persists(self, qtbot, settings, mock_viewer):
        controller = Controller(settings)
        controller.set_language("it")

        assert settings.value("language") == "it"

    def test_language_changed_signal(self, qtbot, settings, mock_viewer):
        controller = Controller(settings)
        controller.language_changed.emit("en")

        assert settings.value("language") == "en"

    def test_set_debug_log(self, qtbot, settings, mock_viewer, restore_log_level):
        controller = Controller(settings)

        controller.set_debug_log(True)
        assert settings.value("debug_log", type=bool) is True
        assert get_logger().level == logging.DEBUG

        controller.set_debug_log(False)
        assert get_logger().level == logging.INFO


class TestControllerWithViewer:
    """Controller wired to a real viewer window"""

    def test_real_viewer(self, qtbot, settings):
        controller = Controller(settings)
        qtbot.addWidget(controller.viewer)

        assert controller.viewer.context is controller.context
        assert not controller.viewer.session.has_volume
