"""Custom exception hierarchy for diald."""

from __future__ import annotations


class DialError(Exception):
    """Base exception for all diald errors."""


class DialConfigError(DialError):
    """Invalid or missing configuration."""


class DialDeviceError(DialError):
    """The rotary input device could not be opened or read."""

    def __init__(self, message: str, *, path: str = "") -> None:
        self.path = path
        super().__init__(message)


class DialHapticError(DialError):
    """The haptic output device could not be opened or written."""

    def __init__(self, message: str, *, path: str = "") -> None:
        self.path = path
        super().__init__(message)


class DialTransportError(DialError):
    """MQTT-level failure (connect, subscribe, publish)."""

    def __init__(self, message: str, *, topic: str = "") -> None:
        self.topic = topic
        super().__init__(message)
