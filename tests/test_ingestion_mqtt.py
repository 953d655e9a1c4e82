from __future__ import annotations

import pytest

from diald.ingestion.mqtt import build_remote_set_event, parse_volume_level


@pytest.mark.parametrize(
    ("payload", "expected"),
    [
        (b"55", 55.0),
        (b" 42.5 ", 42.5),
        ("70", 70.0),
        (b'{"volume": 30}', 30.0),
        (b'{"volume": "12", "source": "ha"}', 12.0),
    ],
)
def test_parse_volume_level(payload: bytes | str, expected: float) -> None:
    assert parse_volume_level(payload) == expected


@pytest.mark.parametrize(
    "payload",
    [b"", b"   ", b"loud", b"true", b'{"level": 3}', b'{"volume": true}', b"NaN", b"[1, 2]"],
)
def test_parse_volume_level_rejects(payload: bytes) -> None:
    with pytest.raises(ValueError):
        parse_volume_level(payload)


def test_build_remote_set_event_clamps_and_rounds() -> None:
    assert build_remote_set_event(b"250").value == 100
    assert build_remote_set_event(b"-4").value == 0
    assert build_remote_set_event(b"54.6").value == 55


def test_build_remote_set_event_source() -> None:
    event = build_remote_set_event(b"10")

    assert event.source == "mqtt"
    assert build_remote_set_event(b"10", source="cli").source == "cli"
