"""evdev input event decoding."""

from __future__ import annotations

import time

from evdev import ecodes

from diald.engine.events import ButtonEvent, RawEvent

#: Relative axis reported by the dial for rotation.
ROTATION_CODE = ecodes.REL_DIAL
#: Key reported by the dial for a press.
BUTTON_CODE = ecodes.BTN_0

_KEY_DOWN = 1


def decode_input_event(
    event_type: int,
    code: int,
    value: int,
    *,
    sequence: int,
    at: float | None = None,
) -> RawEvent | ButtonEvent | None:
    """Map one evdev event onto an engine event.

    Returns ``None`` for anything the engine does not consume: sync reports,
    other axes, key releases and autorepeat.
    """
    stamp = time.monotonic() if at is None else at
    if event_type == ecodes.EV_REL and code == ROTATION_CODE:
        return RawEvent(delta=value, sequence=sequence, at=stamp)
    if event_type == ecodes.EV_KEY and code == BUTTON_CODE and value == _KEY_DOWN:
        return ButtonEvent(sequence=sequence, at=stamp)
    return None
