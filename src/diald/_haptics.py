"""hidraw haptic output."""

from __future__ import annotations

import logging
import os
import threading

from diald._constants import HAPTIC_PULSE_REPORT
from diald.exceptions import DialHapticError


class HidrawHaptic:
    """Fire-and-forget haptic pulses on a hidraw node.

    ``open()`` and ``buzz()`` never raise to the caller: a device that cannot
    be opened leaves the sink disabled, and a failed write disables it until
    the next ``open()``.
    """

    def __init__(
        self,
        path: str,
        *,
        report: bytes = HAPTIC_PULSE_REPORT,
        logger: logging.Logger | None = None,
    ) -> None:
        self._path = path
        self._report = report
        self._logger = logger or logging.getLogger(__name__)
        self._fd: int | None = None
        self._lock = threading.Lock()

    @property
    def path(self) -> str:
        return self._path

    @property
    def is_open(self) -> bool:
        return self._fd is not None

    def open(self) -> bool:
        """Open the device for writing; return whether it is usable."""
        with self._lock:
            if self._fd is not None:
                return True
            try:
                self._fd = os.open(self._path, os.O_WRONLY | os.O_NONBLOCK)
            except OSError as exc:
                self._logger.warning("Failed to open haptics %s (%s)", self._path, exc)
                return False
        self._logger.info("Opened haptics %s", self._path)
        return True

    def close(self) -> None:
        with self._lock:
            fd = self._fd
            self._fd = None
        if fd is not None:
            os.close(fd)

    def write_pulse(self) -> None:
        """Write one pulse report.

        Raises :class:`DialHapticError` if the sink is closed or the write fails.
        """
        with self._lock:
            if self._fd is None:
                raise DialHapticError("haptic device is not open", path=self._path)
            try:
                os.write(self._fd, self._report)
            except OSError as exc:
                raise DialHapticError(f"haptics write failed ({exc})", path=self._path) from exc

    def buzz(self) -> None:
        if self._fd is None:
            return
        try:
            self.write_pulse()
        except DialHapticError as exc:
            self._logger.warning("%s; disabling haptics", exc)
            self.close()
