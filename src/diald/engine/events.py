"""Normalized engine inputs and outputs.

Every producer (evdev reader, MQTT remote source, inactivity ticker) converts
its inputs into these events. Only :class:`~diald.engine.core.DialEngine` is
allowed to apply them.
"""

from __future__ import annotations

import time
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from diald._constants import clamp_volume


class Direction(StrEnum):
    POSITIVE = "positive"
    NEGATIVE = "negative"

    @property
    def opposite(self) -> Direction:
        return Direction.NEGATIVE if self is Direction.POSITIVE else Direction.POSITIVE


class _EngineEvent(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    at: float = Field(default_factory=time.monotonic, description="Monotonic arrival time (seconds)")


class RawEvent(_EngineEvent):
    """One decoded encoder tick.

    ``delta`` carries the signed raw magnitude; a zero delta has no direction
    and is treated as a bare activity pulse.
    """

    delta: int
    sequence: int = Field(default=0, ge=0, description="Arrival order assigned by the input source")

    @property
    def direction(self) -> Direction | None:
        if self.delta > 0:
            return Direction.POSITIVE
        if self.delta < 0:
            return Direction.NEGATIVE
        return None

    @property
    def magnitude(self) -> int:
        return abs(self.delta)


class ButtonEvent(_EngineEvent):
    """A button press (key down)."""

    sequence: int = Field(default=0, ge=0)


class RemoteSetEvent(_EngineEvent):
    """An out-of-band request to set the absolute volume."""

    value: int
    source: str = "remote"

    @field_validator("value", mode="before")
    @classmethod
    def _clamp_value(cls, value: Any) -> int:
        if isinstance(value, bool):
            raise ValueError("value must be a number")
        if isinstance(value, float):
            value = round(value)
        return clamp_volume(int(value))


class TickEvent(_EngineEvent):
    """Timer pulse used to evaluate the inactivity timeout."""


EngineInput = RawEvent | ButtonEvent | RemoteSetEvent | TickEvent


# ---------------------------------------------------------------------------
# Outputs
# ---------------------------------------------------------------------------


class VolumeChanged(BaseModel):
    model_config = ConfigDict(frozen=True)

    volume: int


class ClickCounted(BaseModel):
    model_config = ConfigDict(frozen=True)

    count: int


class Buzz(BaseModel):
    model_config = ConfigDict(frozen=True)

    reason: str


Effect = VolumeChanged | ClickCounted | Buzz
