"""diald - rotary dial volume daemon with backlash compensation."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("diald")
except PackageNotFoundError:
    __version__ = "0+local"

from diald.config import DialConfig, EngineTuning
from diald.engine import (
    Buzz,
    ButtonEvent,
    ClickCounted,
    DialEngine,
    Direction,
    EngineSnapshot,
    ModeName,
    Outcome,
    RawEvent,
    RemoteSetEvent,
    TickEvent,
    Transition,
    VolumeChanged,
)
from diald.exceptions import (
    DialConfigError,
    DialDeviceError,
    DialError,
    DialHapticError,
    DialTransportError,
)
from diald.service import DialService

__all__ = [
    "__version__",
    "Buzz",
    "ButtonEvent",
    "ClickCounted",
    "DialConfig",
    "DialConfigError",
    "DialDeviceError",
    "DialEngine",
    "DialError",
    "DialHapticError",
    "DialService",
    "DialTransportError",
    "Direction",
    "EngineSnapshot",
    "EngineTuning",
    "ModeName",
    "Outcome",
    "RawEvent",
    "RemoteSetEvent",
    "TickEvent",
    "Transition",
    "VolumeChanged",
]
