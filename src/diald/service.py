"""Async service wiring the engine to its producers and sinks."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import Callable
from typing import Any, Protocol

from diald._haptics import HidrawHaptic
from diald._mqtt import DialMqttRuntime
from diald.config import DialConfig
from diald.engine.core import DialEngine, EngineSnapshot, Outcome
from diald.engine.events import Buzz, ClickCounted, EngineInput, TickEvent, VolumeChanged
from diald.exceptions import DialError

_logger = logging.getLogger(__name__)


class Publisher(Protocol):
    """Structural interface of the volume/click publisher sink."""

    def publish_volume(self, volume: int) -> None: ...

    def publish_click(self, count: int) -> None: ...


class HapticSink(Protocol):
    """Structural interface of the haptic sink."""

    def buzz(self) -> None: ...


class DialService:
    """Serialize every producer onto one queue consumed by the engine.

    Usage::

        async with DialService(DialConfig.from_env()) as service:
            await service.run_forever()

    Hardware ticks, remote sets and inactivity pulses all pass through
    :meth:`submit`; a single consumer task applies them in order, so a remote
    write is never applied in the middle of a hardware commit. Publishing is
    non-blocking and haptic writes run in the default executor; sink failures
    are logged and never reach the engine.
    """

    def __init__(
        self,
        config: DialConfig,
        *,
        engine: DialEngine | None = None,
        publisher: Publisher | None = None,
        haptic: HapticSink | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config
        self._engine = engine or DialEngine(config.tuning)
        self._publisher = publisher
        self._haptic = haptic
        self._clock = clock
        self._loop: asyncio.AbstractEventLoop | None = None
        self._queue: asyncio.Queue[EngineInput] | None = None
        self._tasks: list[asyncio.Task[None]] = []
        self._pending_buzzes: set[asyncio.Future[None]] = set()
        self._mqtt_runtime: DialMqttRuntime | None = None
        self._owned_haptic: HidrawHaptic | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> DialService:
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        if self._haptic is None and self._config.haptic_enabled:
            await self._start_haptics()
        if self._publisher is None and self._config.mqtt_enabled:
            self._start_mqtt()

        self._tasks.append(asyncio.create_task(self._consume(), name="diald-engine"))
        self._tasks.append(asyncio.create_task(self._tick(), name="diald-ticker"))
        if self._config.device:
            self._tasks.append(asyncio.create_task(self._read_input(self._config.device), name="diald-input"))
        _logger.debug("Service started volume=%d", self._engine.volume)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        for task in self._tasks:
            task.cancel()
        for task in self._tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._tasks.clear()
        if self._pending_buzzes:
            await asyncio.gather(*self._pending_buzzes, return_exceptions=True)
        self._stop_mqtt()
        if self._owned_haptic is not None:
            self._owned_haptic.close()
            self._owned_haptic = None
            self._haptic = None
        self._queue = None
        self._loop = None

    # ------------------------------------------------------------------
    # Producers
    # ------------------------------------------------------------------

    def _require_queue(self) -> asyncio.Queue[EngineInput]:
        if self._queue is None:
            raise DialError("Service not started. Use 'async with DialService(...) as service:'")
        return self._queue

    def submit(self, event: EngineInput) -> None:
        """Enqueue *event*; must be called from the service's loop."""
        self._require_queue().put_nowait(event)

    def submit_threadsafe(self, event: EngineInput) -> None:
        """Enqueue *event* from a foreign thread."""
        loop = self._loop
        if loop is None:
            raise DialError("Service not started. Use 'async with DialService(...) as service:'")
        loop.call_soon_threadsafe(self.submit, event)

    async def join(self) -> None:
        """Wait until every queued event is processed and every pulse written."""
        await self._require_queue().join()
        while self._pending_buzzes:
            await asyncio.gather(*list(self._pending_buzzes), return_exceptions=True)

    def snapshot(self) -> EngineSnapshot:
        return self._engine.snapshot()

    async def run_forever(self) -> None:
        """Block until the engine task stops (i.e. the service is cancelled)."""
        if not self._tasks:
            raise DialError("Service not started. Use 'async with DialService(...) as service:'")
        await self._tasks[0]

    async def _tick(self) -> None:
        interval = self._config.tick_interval
        while True:
            await asyncio.sleep(interval)
            self.submit(TickEvent(at=self._clock()))

    async def _read_input(self, path: str) -> None:
        from diald._input import DialInputReader

        reader = DialInputReader(
            path,
            on_event=self.submit,
            retry_interval=self._config.device_retry_interval,
            logger=_logger,
        )
        await reader.run()

    # ------------------------------------------------------------------
    # Consumer
    # ------------------------------------------------------------------

    async def _consume(self) -> None:
        queue = self._require_queue()
        while True:
            event = await queue.get()
            try:
                outcome = self._engine.process(event)
                self._dispatch(outcome)
            except Exception:
                _logger.exception("Failed to process %s", type(event).__name__)
            finally:
                queue.task_done()

    def _dispatch(self, outcome: Outcome) -> None:
        for effect in outcome.effects:
            if isinstance(effect, VolumeChanged):
                _logger.info("Volume %d (mode=%s)", effect.volume, outcome.mode)
                self._publish("volume", effect.volume)
            elif isinstance(effect, ClickCounted):
                count = effect.count
                if self._config.click_wrap > 0:
                    count %= self._config.click_wrap
                _logger.info("Click %d", count)
                self._publish("click", count)
            elif isinstance(effect, Buzz):
                self._buzz(effect.reason)

    def _publish(self, kind: str, value: int) -> None:
        publisher = self._publisher
        if publisher is None:
            return
        try:
            if kind == "volume":
                publisher.publish_volume(value)
            else:
                publisher.publish_click(value)
        except Exception:
            _logger.warning("Publishing %s=%d failed", kind, value, exc_info=True)

    def _buzz(self, reason: str) -> None:
        haptic = self._haptic
        loop = self._loop
        if haptic is None or loop is None:
            return
        _logger.debug("Haptic pulse reason=%s", reason)
        future = loop.run_in_executor(None, haptic.buzz)
        self._pending_buzzes.add(future)
        future.add_done_callback(self._on_buzz_done)

    def _on_buzz_done(self, future: asyncio.Future[None]) -> None:
        self._pending_buzzes.discard(future)
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            _logger.warning("Haptic pulse failed: %s", exc)

    # ------------------------------------------------------------------
    # Sinks
    # ------------------------------------------------------------------

    async def _start_haptics(self) -> None:
        haptic = HidrawHaptic(self._config.haptic_device, logger=_logger)
        loop = self._loop or asyncio.get_running_loop()
        if await loop.run_in_executor(None, haptic.open):
            self._owned_haptic = haptic
            self._haptic = haptic

    def _start_mqtt(self) -> None:
        """Best-effort MQTT startup (failures must not stop the dial)."""
        loop = self._loop or asyncio.get_running_loop()
        runtime = DialMqttRuntime(
            self._config,
            loop=loop,
            on_remote_set=self.submit,
            logger=_logger,
        )
        try:
            runtime.start()
        except DialError:
            _logger.warning("MQTT startup failed", exc_info=True)
            return
        self._mqtt_runtime = runtime
        self._publisher = runtime

    def _stop_mqtt(self) -> None:
        runtime = self._mqtt_runtime
        self._mqtt_runtime = None
        if runtime is None:
            return
        try:
            runtime.stop()
        except Exception:
            _logger.debug("MQTT runtime stop failed", exc_info=True)
        if self._publisher is runtime:
            self._publisher = None
