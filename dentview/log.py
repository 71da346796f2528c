"""A small logger that echoes to the logging module and appends to a file."""

from __future__ import annotations

import logging
import os
import threading
from typing import IO

_logger = logging.getLogger("dentview")


class Log:
    """Writes tagged messages to a log file opened on first use."""

    def __init__(self, path: str | os.PathLike[str] = "opengl.log") -> None:
        self.path = path
        self._lock = threading.Lock()
        self._file: IO[str] | None = None

    def _save(self, tag: str, kind: str, msg: str) -> None:
        with self._lock:
            if self._file is None:
                self._file = open(self.path, "w", encoding="utf-8")
            self._file.write(f"{tag}{kind}{msg}\n")
            self._file.flush()

    def d(self, tag: str, msg: str) -> None:
        """Record a debug message."""
        _logger.debug("%s DEBUG: %s", tag, msg)
        self._save(tag, "DEBUG: ", msg)

    def i(self, tag: str, msg: str) -> None:
        """Record an informational message."""
        _logger.info("%s INFO: %s", tag, msg)
        self._save(tag, "INFO: ", msg)

    def e(self, tag: str, msg: str) -> None:
        """Record an error message."""
        _logger.warning("%s ERROR: %s", tag, msg)
        self._save(tag, "ERROR: ", msg)

    def close(self) -> None:
        """Close the log file; a later message opens it afresh."""
        with self._lock:
            if self._file is not None:
                self._file.close()
                self._file = None

    def __enter__(self) -> Log:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()