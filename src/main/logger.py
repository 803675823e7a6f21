import sys
from datetime import datetime
import logging
import os
import gzip
import shutil
from logging.handlers import BaseRotatingHandler
from pathlib import Path

from utils import APP_NAME, get_app_dir

FILE_FORMAT = "%(asctime)s\t%(levelname)s\t%(filename)s:%(lineno)d\t%(funcName)s\t%(message)s"
CONSOLE_FORMAT = "%(levelname)s\t%(filename)s:%(lineno)d\t%(funcName)s\t%(message)s"


class CompressedRotatingFileHandler(BaseRotatingHandler):
    """
    Size-based rotating log handler that gzips every rotated file.

    Rotated files are named `<logfile>.<timestamp>.gz` and kept next to the
    live log; only the `backupCount` most recent archives survive a rollover.

    Attributes
    ----------
    maxBytes : int
        Size in bytes that triggers a rollover. 0 disables rotation.
    backupCount : int
        Number of compressed archives to keep.
    log_dir : Path
        Directory holding the live log and its archives.
    """

    def __init__(self, filename, mode="a", maxBytes=5 * 1024 * 1024,
                 backupCount=5, encoding="utf-8", delay=False):
        self.maxBytes = maxBytes
        self.backupCount = backupCount
        self.log_dir = Path(filename).parent
        self.log_dir.mkdir(parents=True, exist_ok=True)

        super().__init__(filename, mode, encoding=encoding, delay=delay)

    def shouldRollover(self, record):
        """
        Return True when writing `record` would push the file past `maxBytes`.
        """
        if self.maxBytes <= 0:
            return False

        if self.stream is None:
            self.stream = self._open()

        msg = f"{self.format(record)}\n"
        self.stream.seek(0, os.SEEK_END)
        return self.stream.tell() + len(msg.encode(self.encoding or "utf-8")) >= self.maxBytes

    def doRollover(self):
        """
        Close the live file, gzip it under a timestamped name, prune old
        archives and reopen an empty log.
        """
        if self.stream:
            self.stream.close()
            self.stream = None

        ts = datetime.now().strftime("%Y-%m-%d_%H-%M-%S-%f")
        archive = self.log_dir / f"{Path(self.baseFilename).name}.{ts}.gz"

        if os.path.exists(self.baseFilename):
            with open(self.baseFilename, "rb") as f_in, gzip.open(archive, "wb") as f_out:
                shutil.copyfileobj(f_in, f_out)
            os.remove(self.baseFilename)

        self._prune_archives()

        if not self.delay:
            self.stream = self._open()

    def _prune_archives(self):
        prefix = f"{Path(self.baseFilename).name}."
        archives = sorted(
            (f for f in self.log_dir.glob(f"{prefix}*.gz") if f.is_file()),
            key=lambda f: f.stat().st_mtime
        )
        if len(archives) > self.backupCount:
            for old in archives[:len(archives) - self.backupCount]:
                old.unlink()


def setup_logger(console,
                 logger_name=APP_NAME,
                 logfile=None,
                 level=logging.INFO,
                 maxBytes=5 * 1024 * 1024,
                 backupCount=5):
    """
    Configure and return the application logger.

    Parameters
    ----------
    console : bool
        Also write records to stdout.
    logger_name : str, optional
        Logger name shared by every module through `get_logger`.
    logfile : str or Path, optional
        Log file path, `<app dir>/.log/log.txt` when omitted.
    level : int, optional
        Logger level (default: logging.INFO).
    maxBytes : int, optional
        Size that triggers a rotation of the log file.
    backupCount : int, optional
        Number of compressed rotations to keep.

    Returns
    -------
    logging.Logger
    """
    if logfile is None:
        log_dir = get_app_dir() / ".log"
        log_dir.mkdir(parents=True, exist_ok=True)
        logfile = log_dir / "log.txt"

    logger = logging.getLogger(logger_name)
    logger.setLevel(level)

    # Repeated calls must not stack handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    file_handler = CompressedRotatingFileHandler(
        logfile,
        maxBytes=maxBytes,
        backupCount=backupCount
    )
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
    logger.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.DEBUG)
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        logger.addHandler(console_handler)

    return logger


def get_logger(logger_name=APP_NAME):
    """Return the named application logger (configured or not)."""
    return logging.getLogger(logger_name)


def set_log_level(level, logger_name=APP_NAME):
    """Change the level of an existing logger, e.g. when debug logging is toggled."""
    logging.getLogger(logger_name).setLevel(level)
