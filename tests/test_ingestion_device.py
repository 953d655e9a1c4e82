from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import pytest

ecodes = pytest.importorskip("evdev").ecodes

from diald._input import DialInputReader  # noqa: E402
from diald.engine.events import ButtonEvent, Direction, RawEvent  # noqa: E402
from diald.ingestion.device import decode_input_event  # noqa: E402


def test_rotation_decodes_to_raw_event() -> None:
    event = decode_input_event(ecodes.EV_REL, ecodes.REL_DIAL, -3, sequence=4, at=1.5)

    assert isinstance(event, RawEvent)
    assert event.delta == -3
    assert event.direction is Direction.NEGATIVE
    assert event.magnitude == 3
    assert event.sequence == 4
    assert event.at == 1.5


def test_key_down_decodes_to_button() -> None:
    event = decode_input_event(ecodes.EV_KEY, ecodes.BTN_0, 1, sequence=0, at=0.0)

    assert isinstance(event, ButtonEvent)


@pytest.mark.parametrize(
    ("event_type", "code", "value"),
    [
        ("EV_KEY", "BTN_0", 0),
        ("EV_KEY", "BTN_0", 2),
        ("EV_REL", "REL_WHEEL", 1),
        ("EV_SYN", "SYN_REPORT", 0),
    ],
)
def test_ignored_events(event_type: str, code: str, value: int) -> None:
    decoded = decode_input_event(
        getattr(ecodes, event_type),
        getattr(ecodes, code),
        value,
        sequence=0,
    )

    assert decoded is None


def test_reader_assigns_increasing_sequence() -> None:
    received: list[RawEvent | ButtonEvent] = []
    reader = DialInputReader("/dev/input/event-test", on_event=received.append)

    reader.feed(ecodes.EV_REL, ecodes.REL_DIAL, 2)
    reader.feed(ecodes.EV_SYN, ecodes.SYN_REPORT, 0)
    reader.feed(ecodes.EV_KEY, ecodes.BTN_0, 1)
    reader.feed(ecodes.EV_REL, ecodes.REL_DIAL, -2)

    assert [event.sequence for event in received] == [0, 1, 2]
    assert isinstance(received[1], ButtonEvent)


@pytest.mark.asyncio
async def test_reader_retries_missing_device(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    reader = DialInputReader(str(tmp_path / "missing"), on_event=lambda _e: None, retry_interval=0.01)

    with caplog.at_level(logging.WARNING):
        task = asyncio.create_task(reader.run())
        await asyncio.sleep(0.1)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    warnings = [r for r in caplog.records if "retrying" in r.getMessage()]
    assert len(warnings) == 1
