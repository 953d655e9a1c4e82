"""Dial event-processing engine.

This package is the single source of truth for how hardware ticks, button
presses, remote volume writes and timer pulses are merged into one
deterministic volume/mode state.
"""

from diald.engine.core import DialEngine, EngineSnapshot, Outcome, RawLedger
from diald.engine.events import (
    Buzz,
    ButtonEvent,
    ClickCounted,
    Direction,
    Effect,
    EngineInput,
    RawEvent,
    RemoteSetEvent,
    TickEvent,
    VolumeChanged,
)
from diald.engine.modes import Active, Backlash, Idle, Mode, ModeName, Transition

__all__ = [
    "Active",
    "Backlash",
    "Buzz",
    "ButtonEvent",
    "ClickCounted",
    "DialEngine",
    "Direction",
    "Effect",
    "EngineInput",
    "EngineSnapshot",
    "Idle",
    "Mode",
    "ModeName",
    "Outcome",
    "RawEvent",
    "RawLedger",
    "RemoteSetEvent",
    "TickEvent",
    "Transition",
    "VolumeChanged",
]
