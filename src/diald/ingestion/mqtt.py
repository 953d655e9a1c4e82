"""MQTT remote-set payload parsing."""

from __future__ import annotations

import json
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from diald.engine.events import RemoteSetEvent

_Level = Annotated[float, Field(allow_inf_nan=False)]
_LEVEL_ADAPTER: TypeAdapter[float] = TypeAdapter(_Level)


class VolumeSetPayload(BaseModel):
    """JSON object form of a remote set, e.g. ``{"volume": 55}``."""

    model_config = ConfigDict(extra="ignore")

    volume: _Level

    @field_validator("volume", mode="before")
    @classmethod
    def _reject_bool(cls, value: Any) -> Any:
        if isinstance(value, bool):
            raise ValueError("volume must be a number")
        return value


def _decode(payload: bytes | str) -> Any:
    text = payload.decode("utf-8") if isinstance(payload, bytes) else payload
    text = text.strip()
    if not text:
        raise ValueError("empty volume payload")
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text


def parse_volume_level(payload: bytes | str) -> float:
    """Extract the requested level from a bare number or a JSON object.

    Raises :class:`ValueError` (including pydantic's ``ValidationError``) when
    the payload carries no usable number.
    """
    decoded = _decode(payload)
    if isinstance(decoded, dict):
        return VolumeSetPayload.model_validate(decoded).volume
    if isinstance(decoded, bool):
        raise ValueError("volume must be a number")
    return _LEVEL_ADAPTER.validate_python(decoded)


def build_remote_set_event(payload: bytes | str, *, source: str = "mqtt") -> RemoteSetEvent:
    """Build a clamped :class:`RemoteSetEvent` from a raw MQTT payload."""
    return RemoteSetEvent(value=parse_volume_level(payload), source=source)
