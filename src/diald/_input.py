"""evdev input reader with automatic reopen."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

import evdev

from diald.engine.events import ButtonEvent, RawEvent
from diald.exceptions import DialDeviceError
from diald.ingestion.device import decode_input_event


def open_input_device(path: str) -> evdev.InputDevice:
    """Open the dial's evdev node.

    Raises :class:`DialDeviceError` when the node is missing or unreadable.
    """
    try:
        return evdev.InputDevice(path)
    except OSError as exc:
        raise DialDeviceError(f"failed to open {path} ({exc})", path=path) from exc


class DialInputReader:
    """Read rotation and button events from an evdev device.

    Events are handed to ``on_event`` on the running loop, in arrival order,
    with a monotonically increasing sequence number that survives reopens.
    A lost or missing device is retried every ``retry_interval`` seconds;
    the failure is logged once per outage.
    """

    def __init__(
        self,
        path: str,
        *,
        on_event: Callable[[RawEvent | ButtonEvent], None],
        retry_interval: float = 1.0,
        logger: logging.Logger | None = None,
    ) -> None:
        self._path = path
        self._on_event = on_event
        self._retry_interval = retry_interval
        self._logger = logger or logging.getLogger(__name__)
        self._sequence = 0

    @property
    def path(self) -> str:
        return self._path

    async def run(self) -> None:
        """Read until cancelled."""
        open_error_logged = False
        while True:
            try:
                device = open_input_device(self._path)
            except DialDeviceError as exc:
                if not open_error_logged:
                    self._logger.warning("%s, retrying...", exc)
                    open_error_logged = True
                await asyncio.sleep(self._retry_interval)
                continue

            open_error_logged = False
            self._logger.info("Opened input device %s name=%r", self._path, device.name)
            try:
                await self._pump(device)
            except OSError as exc:
                self._logger.warning("Lost input device %s (%s), reopening...", self._path, exc)
            finally:
                device.close()
            await asyncio.sleep(self._retry_interval)

    async def _pump(self, device: evdev.InputDevice) -> None:
        async for raw in device.async_read_loop():
            self.feed(raw.type, raw.code, raw.value)

    def feed(self, event_type: int, code: int, value: int) -> None:
        """Decode one raw evdev triple and forward it if the engine consumes it."""
        decoded = decode_input_event(event_type, code, value, sequence=self._sequence)
        if decoded is None:
            return
        self._sequence += 1
        self._on_event(decoded)
