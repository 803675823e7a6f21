import logging
from typing import Any

from PyQt6.QtCore import pyqtSignal, QObject, QTranslator, QSettings
from PyQt6.QtWidgets import QApplication

from logger import set_log_level, get_logger
from ui.nifti_viewer import NiftiViewer
from utils import APP_NAME, resource_path

log = get_logger()


class Controller(QObject):
    """
    Application controller: owns the settings, the language and the viewer
    window, and shares them through a context dictionary.
    """

    language_changed = pyqtSignal(str)
    """pyqtSignal(str): Emitted when the application's language changes, with the code as parameter."""

    def __init__(self, settings=None):
        """
        Args:
            settings (QSettings, optional): Settings store; the application's
                own `QSettings("NiftiVoxelViewer")` when omitted.
        """
        super().__init__(None)

        self.translator = QTranslator()
        self.settings = settings if settings is not None else QSettings(APP_NAME)
        self.saved_lang = self.settings.value("language", "en", type=str)

        if self.settings.value("debug_log", False, type=bool):
            set_log_level(logging.DEBUG)

        self.set_language(self.saved_lang)
        self.language_changed.connect(self.set_language)

        self.context: dict[str, Any] = {
            "settings"        : self.settings,
            "language_changed": self.language_changed,
            "open_nifti_viewer": self.open_nifti_viewer,
        }
        self.viewer = NiftiViewer(self.context)
        self.context["nifti_viewer"] = self.viewer

    def start(self, path=None):
        """Show the viewer, optionally loading `path` straight away."""
        self.viewer.show()
        if path:
            self.open_nifti_viewer(path)

    def open_nifti_viewer(self, path: str):
        """
        Open a NIfTI file in the viewer window.

        Args:
            path (str): The file path to open.
        """
        log.info(f"Opening {path}")
        self.viewer.open_file(path)
        self.viewer.show()

    def set_language(self, lang_code: str):
        """
        Install the translation for `lang_code` if one is bundled, and remember it.

        Args:
            lang_code (str): The language code (e.g., 'en', 'it').
        """
        self.settings.setValue("language", lang_code)
        translation_file = f"{resource_path('translations')}/{lang_code}.qm"
        app = QApplication.instance()
        if app is not None and self.translator.load(translation_file):
            app.installTranslator(self.translator)
            log.debug(f"Installed translation {translation_file}")

    def set_debug_log(self, enabled: bool):
        """Persist the debug logging preference and apply it immediately."""
        self.settings.setValue("debug_log", bool(enabled))
        set_log_level(logging.DEBUG if enabled else logging.INFO)
