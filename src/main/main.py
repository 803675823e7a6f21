"""
Entry point of the NIfTI voxel viewer.

Sets up logging, creates the Qt application and the `Controller`, and opens
the file given on the command line, if any.
"""

import sys

from PyQt6.QtWidgets import QApplication

from controller import Controller
from logger import setup_logger


def main():
    app = QApplication(sys.argv)
    app.setApplicationName("NiftiVoxelViewer")

    # Logs to both console and compressed rotating file
    log = setup_logger(console=True)
    log.info("Program started")

    path = sys.argv[1] if len(sys.argv) > 1 else None
    controller = Controller()
    controller.start(path)

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
