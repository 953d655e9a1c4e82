"""Daemon configuration for diald."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Callable, Mapping
from typing import Any

from diald._constants import (
    CANCEL_THRESHOLD,
    CONFIRM_THRESHOLD,
    DEFAULT_HAPTIC_DEVICE,
    DEFAULT_TOPIC_PREFIX,
    IDLE_TIMEOUT_SECONDS,
    MAX_RAW_MAGNITUDE,
    UNIT_SIZE,
    VOLUME_MAX,
    VOLUME_MIN,
)
from diald.exceptions import DialConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _convert(env_key: str, raw: str, kind: Callable[[str], Any]) -> Any:
    try:
        return kind(raw.strip())
    except ValueError as exc:
        raise DialConfigError(f"{env_key} must be a valid {kind.__name__}, got {raw!r}") from exc


def _collect(
    env: Mapping[str, str],
    mapping: Mapping[str, tuple[str, Callable[[str], Any]]],
    overrides: Mapping[str, Any],
) -> dict[str, Any]:
    kwargs: dict[str, Any] = {}
    for env_key, (field_name, kind) in mapping.items():
        val = env.get(env_key)
        if val is None or field_name in overrides:
            continue
        kwargs[field_name] = _convert(env_key, val, kind)
    return kwargs


@dataclasses.dataclass(frozen=True)
class EngineTuning:
    """Thresholds of the event-processing engine.

    Parameters
    ----------
    unit_size : int
        Raw encoder units per volume point.
    confirm_threshold : int
        Consecutive new-direction ticks that confirm a reversal.
    cancel_threshold : int
        Consecutive original-direction ticks that cancel a reversal.
    idle_timeout : float
        Seconds without activity before Active falls back to Idle.
    max_raw_magnitude : int
        Ticks with a larger absolute value are treated as noise.
        ``0`` disables the check.
    initial_volume : int
        Volume the engine starts with.
    """

    unit_size: int = UNIT_SIZE
    confirm_threshold: int = CONFIRM_THRESHOLD
    cancel_threshold: int = CANCEL_THRESHOLD
    idle_timeout: float = IDLE_TIMEOUT_SECONDS
    max_raw_magnitude: int = MAX_RAW_MAGNITUDE
    initial_volume: int = VOLUME_MIN

    def __post_init__(self) -> None:
        if self.unit_size <= 0:
            raise DialConfigError(f"unit_size must be positive, got {self.unit_size}")
        if self.confirm_threshold <= 0 or self.cancel_threshold <= 0:
            raise DialConfigError("backlash thresholds must be positive")
        if self.idle_timeout <= 0:
            raise DialConfigError(f"idle_timeout must be positive, got {self.idle_timeout}")
        if self.max_raw_magnitude < 0:
            raise DialConfigError(f"max_raw_magnitude must not be negative, got {self.max_raw_magnitude}")
        if not VOLUME_MIN <= self.initial_volume <= VOLUME_MAX:
            raise DialConfigError(f"initial_volume must be within {VOLUME_MIN}-{VOLUME_MAX}, got {self.initial_volume}")


_ENV_TUNING_MAP: dict[str, tuple[str, Callable[[str], Any]]] = {
    "DIALD_UNIT_SIZE": ("unit_size", int),
    "DIALD_CONFIRM_THRESHOLD": ("confirm_threshold", int),
    "DIALD_CANCEL_THRESHOLD": ("cancel_threshold", int),
    "DIALD_IDLE_TIMEOUT": ("idle_timeout", float),
    "DIALD_MAX_RAW_MAGNITUDE": ("max_raw_magnitude", int),
    "DIALD_INITIAL_VOLUME": ("initial_volume", int),
}

_ENV_CONFIG_MAP: dict[str, tuple[str, Callable[[str], Any]]] = {
    "DIALD_DEVICE": ("device", str),
    "DIALD_HAPTIC_DEV": ("haptic_device", str),
    "DIALD_DEVICE_RETRY_INTERVAL": ("device_retry_interval", float),
    "DIALD_TICK_INTERVAL": ("tick_interval", float),
    "DIALD_CLICK_WRAP": ("click_wrap", int),
    "DIALD_MQTT_HOST": ("mqtt_host", str),
    "DIALD_MQTT_PORT": ("mqtt_port", int),
    "DIALD_MQTT_USERNAME": ("mqtt_username", str),
    "DIALD_MQTT_PASSWORD": ("mqtt_password", str),
    "DIALD_MQTT_CLIENT_ID": ("mqtt_client_id", str),
    "DIALD_MQTT_KEEPALIVE": ("mqtt_keepalive", int),
    "DIALD_MQTT_TOPIC_PREFIX": ("mqtt_topic_prefix", str),
}


@dataclasses.dataclass(frozen=True)
class DialConfig:
    """Daemon configuration.

    Parameters
    ----------
    device : str or None
        Path of the evdev input device (e.g. ``/dev/input/event5``).
        ``None`` runs the service without a hardware reader.
    haptic_device : str
        hidraw node that receives haptic output reports.
    haptic_enabled : bool
        Disable to never open the haptic device.
    device_retry_interval : float
        Seconds between attempts to (re)open the input device.
    tick_interval : float
        Cadence of the inactivity check, in seconds.
    click_wrap : int
        Published click counts wrap at this value. ``0`` disables wrapping.
    mqtt_enabled : bool
        Enable the MQTT bridge (volume/click publishing, remote set).
    mqtt_host : str
        Broker host name.
    mqtt_port : int
        Broker port.
    mqtt_username : str or None
        Broker user name, if the broker requires authentication.
    mqtt_password : str or None
        Broker password.
    mqtt_client_id : str
        MQTT client identifier.
    mqtt_keepalive : int
        MQTT keepalive in seconds.
    mqtt_tls : bool
        Let paho negotiate TLS with the system trust store.
    mqtt_topic_prefix : str
        Prefix of every topic the bridge publishes or subscribes to.
    tuning : EngineTuning
        Engine thresholds.
    """

    device: str | None = None
    haptic_device: str = DEFAULT_HAPTIC_DEVICE
    haptic_enabled: bool = True
    device_retry_interval: float = 1.0
    tick_interval: float = 0.25
    click_wrap: int = 0
    mqtt_enabled: bool = False
    mqtt_host: str = "localhost"
    mqtt_port: int = 1883
    mqtt_username: str | None = None
    mqtt_password: str | None = None
    mqtt_client_id: str = "diald"
    mqtt_keepalive: int = 60
    mqtt_tls: bool = False
    mqtt_topic_prefix: str = DEFAULT_TOPIC_PREFIX
    tuning: EngineTuning = dataclasses.field(default_factory=EngineTuning)

    def __post_init__(self) -> None:
        if self.tick_interval <= 0:
            raise DialConfigError(f"tick_interval must be positive, got {self.tick_interval}")
        if self.click_wrap < 0:
            raise DialConfigError(f"click_wrap must not be negative, got {self.click_wrap}")

    def topic(self, suffix: str) -> str:
        """Return the full MQTT topic for *suffix* under the configured prefix."""
        prefix = self.mqtt_topic_prefix.strip("/")
        return f"{prefix}/{suffix}" if prefix else suffix

    @classmethod
    def from_env(cls, **overrides: Any) -> DialConfig:
        """Create configuration from environment variables.

        Reads ``DIALD_*`` variables. Explicit keyword arguments override
        environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.
            ``tuning`` may be an :class:`EngineTuning` or a dict of its fields.

        Returns
        -------
        DialConfig
            Populated configuration.

        Raises
        ------
        DialConfigError
            If a numeric variable cannot be parsed or a value is out of range.
        """
        env = os.environ

        tuning_overrides = overrides.pop("tuning", None)
        if isinstance(tuning_overrides, EngineTuning):
            tuning = tuning_overrides
        else:
            tuning_kwargs = _collect(env, _ENV_TUNING_MAP, {})
            if isinstance(tuning_overrides, dict):
                tuning_kwargs.update(tuning_overrides)
            tuning = EngineTuning(**tuning_kwargs)

        config_kwargs: dict[str, Any] = {"tuning": tuning}
        config_kwargs.update(_collect(env, _ENV_CONFIG_MAP, overrides))

        if "haptic_enabled" not in overrides:
            config_kwargs["haptic_enabled"] = _env_bool(env.get("DIALD_HAPTIC_ENABLED"), True)

        # The bridge turns itself on when a broker host is configured.
        if "mqtt_enabled" not in overrides:
            default_enabled = bool(overrides.get("mqtt_host") or env.get("DIALD_MQTT_HOST"))
            config_kwargs["mqtt_enabled"] = _env_bool(env.get("DIALD_MQTT_ENABLED"), default_enabled)

        if "mqtt_tls" not in overrides:
            config_kwargs["mqtt_tls"] = _env_bool(env.get("DIALD_MQTT_TLS"), False)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
