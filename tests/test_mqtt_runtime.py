from __future__ import annotations

import asyncio
from types import SimpleNamespace
from typing import Any

import paho.mqtt.client as mqtt
import pytest

from diald._mqtt import DialMqttRuntime
from diald.config import DialConfig
from diald.engine.events import RemoteSetEvent
from diald.exceptions import DialTransportError


class _FakeClient:
    def __init__(self, **kwargs: Any) -> None:
        self.kwargs = kwargs
        self.published: list[tuple[str, str, bool]] = []
        self.subscribed: list[str] = []
        self.rc = mqtt.MQTT_ERR_SUCCESS
        self.credentials: tuple[str, str | None] | None = None
        self.connected_to: tuple[str, int] | None = None
        self.loop_running = False
        self.on_connect: Any = None
        self.on_message: Any = None
        self.on_disconnect: Any = None

    def enable_logger(self, _logger: Any) -> None:
        pass

    def username_pw_set(self, username: str, password: str | None) -> None:
        self.credentials = (username, password)

    def tls_set(self) -> None:
        pass

    def connect_async(self, host: str, port: int, keepalive: int = 60) -> None:
        self.connected_to = (host, port)

    def loop_start(self) -> None:
        self.loop_running = True

    def loop_stop(self) -> None:
        self.loop_running = False

    def disconnect(self) -> None:
        pass

    def subscribe(self, topic: str, qos: int = 0) -> None:
        self.subscribed.append(topic)

    def publish(self, topic: str, payload: str, qos: int = 0, retain: bool = False) -> SimpleNamespace:
        self.published.append((topic, payload, retain))
        return SimpleNamespace(rc=self.rc)


def _runtime(
    loop: asyncio.AbstractEventLoop,
    received: list[RemoteSetEvent] | None = None,
    **config: Any,
) -> DialMqttRuntime:
    sink = received if received is not None else []
    return DialMqttRuntime(DialConfig(mqtt_enabled=True, **config), loop=loop, on_remote_set=sink.append)


@pytest.mark.asyncio
async def test_publish_topics_and_retain() -> None:
    runtime = _runtime(asyncio.get_running_loop(), mqtt_topic_prefix="home/dial")
    client = _FakeClient()
    runtime._client = client  # type: ignore[assignment]

    runtime.publish_volume(55)
    runtime.publish_click(3)

    assert client.published == [("home/dial/volume", "55", True), ("home/dial/click", "3", False)]


@pytest.mark.asyncio
async def test_publish_while_disconnected_is_dropped() -> None:
    runtime = _runtime(asyncio.get_running_loop())
    client = _FakeClient()
    client.rc = mqtt.MQTT_ERR_NO_CONN
    runtime._client = client  # type: ignore[assignment]

    runtime.publish_volume(10)


@pytest.mark.asyncio
async def test_publish_failure_raises() -> None:
    runtime = _runtime(asyncio.get_running_loop())
    client = _FakeClient()
    client.rc = mqtt.MQTT_ERR_QUEUE_SIZE
    runtime._client = client  # type: ignore[assignment]

    with pytest.raises(DialTransportError) as excinfo:
        runtime.publish_volume(10)
    assert excinfo.value.topic == "diald/volume"


@pytest.mark.asyncio
async def test_publish_before_start_raises() -> None:
    runtime = _runtime(asyncio.get_running_loop())

    with pytest.raises(DialTransportError):
        runtime.publish_click(1)


@pytest.mark.asyncio
async def test_start_subscribes_and_forwards_remote_sets(monkeypatch: pytest.MonkeyPatch) -> None:
    created: list[_FakeClient] = []

    def _factory(**kwargs: Any) -> _FakeClient:
        client = _FakeClient(**kwargs)
        created.append(client)
        return client

    monkeypatch.setattr(mqtt, "Client", _factory)
    received: list[RemoteSetEvent] = []
    runtime = _runtime(
        asyncio.get_running_loop(),
        received,
        mqtt_host="broker.local",
        mqtt_username="dial",
        mqtt_password="secret",
    )

    runtime.start()
    client = created[0]
    assert runtime.is_running
    assert client.loop_running
    assert client.connected_to == ("broker.local", 1883)
    assert client.credentials == ("dial", "secret")
    assert client.kwargs["protocol"] == mqtt.MQTTv5

    client.on_connect(client, None, None, SimpleNamespace(value=0), None)
    assert client.subscribed == ["diald/volume/set"]

    client.on_message(client, None, SimpleNamespace(topic="diald/volume/set", payload=b'{"volume": 64}'))
    client.on_message(client, None, SimpleNamespace(topic="diald/volume/set", payload=b"garbage"))
    await asyncio.sleep(0)

    assert [event.value for event in received] == [64]
    assert received[0].source == "mqtt"

    runtime.stop()
    assert not runtime.is_running
    assert not client.loop_running


@pytest.mark.asyncio
async def test_failed_connect_does_not_subscribe(monkeypatch: pytest.MonkeyPatch) -> None:
    created: list[_FakeClient] = []

    def _factory(**kwargs: Any) -> _FakeClient:
        client = _FakeClient(**kwargs)
        created.append(client)
        return client

    monkeypatch.setattr(mqtt, "Client", _factory)
    runtime = _runtime(asyncio.get_running_loop())
    runtime.start()

    created[0].on_connect(created[0], None, None, SimpleNamespace(value=135), None)

    assert created[0].subscribed == []
    runtime.stop()
