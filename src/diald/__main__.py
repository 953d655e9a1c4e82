"""Command-line entry point: ``diald --device /dev/input/eventN``."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import signal
import sys
from typing import Any

from diald.config import DialConfig
from diald.exceptions import DialConfigError
from diald.service import DialService

_LOG = logging.getLogger("diald")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="diald",
        description="Rotary dial volume daemon with backlash compensation and haptic feedback.",
    )
    parser.add_argument(
        "--device",
        help="evdev input device of the dial (default: $DIALD_DEVICE).",
    )
    parser.add_argument(
        "--haptic-device",
        help="hidraw node for haptic pulses (default: $DIALD_HAPTIC_DEV or /dev/hidraw0).",
    )
    parser.add_argument(
        "--no-haptics",
        action="store_true",
        help="Never open the haptic device.",
    )
    parser.add_argument(
        "--mqtt-host",
        help="MQTT broker host; enables the MQTT bridge (default: $DIALD_MQTT_HOST).",
    )
    parser.add_argument(
        "--mqtt-port",
        type=int,
        help="MQTT broker port (default: $DIALD_MQTT_PORT or 1883).",
    )
    parser.add_argument(
        "--topic-prefix",
        help="Prefix of the volume/click topics (default: $DIALD_MQTT_TOPIC_PREFIX or 'diald').",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logs.",
    )
    return parser.parse_args(argv)


def _build_config(args: argparse.Namespace) -> DialConfig:
    overrides: dict[str, Any] = {}
    if args.device:
        overrides["device"] = args.device
    if args.haptic_device:
        overrides["haptic_device"] = args.haptic_device
    if args.no_haptics:
        overrides["haptic_enabled"] = False
    if args.mqtt_host:
        overrides["mqtt_host"] = args.mqtt_host
    if args.mqtt_port is not None:
        overrides["mqtt_port"] = args.mqtt_port
    if args.topic_prefix is not None:
        overrides["mqtt_topic_prefix"] = args.topic_prefix
    return DialConfig.from_env(**overrides)


async def _serve(config: DialConfig) -> None:
    loop = asyncio.get_running_loop()
    async with DialService(config) as service:
        main_task = asyncio.current_task()
        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError):
                loop.add_signal_handler(sig, main_task.cancel)  # type: ignore[union-attr]
        _LOG.info("diald running device=%s mqtt=%s", config.device, config.mqtt_enabled)
        with contextlib.suppress(asyncio.CancelledError):
            await service.run_forever()
    _LOG.info("diald stopped")


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = _build_config(args)
    except DialConfigError as exc:
        _LOG.error("%s", exc)
        return 2
    if not config.device:
        _LOG.error("missing device path; pass --device or set DIALD_DEVICE")
        return 2

    asyncio.run(_serve(config))
    return 0


if __name__ == "__main__":
    sys.exit(main())
