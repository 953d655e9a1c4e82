"""MQTT bridge: volume/click publishing and remote volume-set ingestion."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any, cast

import paho.mqtt.client as mqtt

from diald._constants import CLICK_TOPIC, VOLUME_SET_TOPIC, VOLUME_TOPIC
from diald.config import DialConfig
from diald.engine.events import RemoteSetEvent
from diald.exceptions import DialTransportError
from diald.ingestion.mqtt import build_remote_set_event


class DialMqttRuntime:
    """Threaded paho-mqtt runtime that emits remote sets onto an asyncio loop.

    paho owns the connection: it connects in the background, reconnects on
    loss, and queues outgoing messages, so ``publish_*`` never blocks.
    """

    def __init__(
        self,
        config: DialConfig,
        *,
        loop: asyncio.AbstractEventLoop,
        on_remote_set: Callable[[RemoteSetEvent], None],
        logger: logging.Logger | None = None,
    ) -> None:
        self._config = config
        self._loop = loop
        self._on_remote_set = on_remote_set
        self._logger = logger or logging.getLogger(__name__)
        self._client: mqtt.Client | None = None
        self._running = False
        self._volume_topic = config.topic(VOLUME_TOPIC)
        self._set_topic = config.topic(VOLUME_SET_TOPIC)
        self._click_topic = config.topic(CLICK_TOPIC)

    @property
    def is_running(self) -> bool:
        """Whether the MQTT runtime is actively running."""
        return self._running

    @property
    def set_topic(self) -> str:
        return self._set_topic

    def start(self) -> None:
        """Start connecting in the background and subscribe once connected.

        Raises :class:`DialTransportError` when the connection cannot even be
        initiated (e.g. invalid host).
        """
        self.stop()
        config = self._config
        self._logger.debug(
            "MQTT runtime start requested host=%s port=%s client_id=%s",
            config.mqtt_host,
            config.mqtt_port,
            config.mqtt_client_id,
        )

        client = mqtt.Client(
            callback_api_version=cast(Any, mqtt).CallbackAPIVersion.VERSION2,
            client_id=config.mqtt_client_id,
            protocol=mqtt.MQTTv5,
        )
        client.enable_logger(self._logger)
        if config.mqtt_username:
            client.username_pw_set(config.mqtt_username, config.mqtt_password)
        if config.mqtt_tls:
            client.tls_set()

        def on_connect(
            c: mqtt.Client,
            _userdata: Any,
            _flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if reason_code.value != 0:
                self._logger.warning("MQTT connect failed: %s", reason_code)
                return
            self._logger.info("MQTT connected to %s:%s", config.mqtt_host, config.mqtt_port)
            c.subscribe(self._set_topic, qos=0)

        def on_message(_c: mqtt.Client, _userdata: Any, msg: mqtt.MQTTMessage) -> None:
            try:
                event = build_remote_set_event(msg.payload)
            except ValueError:
                self._logger.debug("MQTT volume set parse failure topic=%s", msg.topic, exc_info=True)
                return
            self._logger.debug("MQTT volume set topic=%s value=%d", msg.topic, event.value)
            self._loop.call_soon_threadsafe(self._on_remote_set, event)

        def on_disconnect(
            _client: mqtt.Client,
            _userdata: Any,
            _disconnect_flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if self._running:
                self._logger.info("MQTT disconnected: %s", reason_code)

        client.on_connect = on_connect
        client.on_message = on_message
        client.on_disconnect = on_disconnect

        try:
            client.connect_async(config.mqtt_host, config.mqtt_port, keepalive=config.mqtt_keepalive)
        except (OSError, ValueError) as exc:
            raise DialTransportError(f"MQTT connect to {config.mqtt_host} failed ({exc})") from exc
        client.loop_start()

        self._client = client
        self._running = True
        self._logger.debug("MQTT network loop started")

    def stop(self) -> None:
        """Stop and disconnect current MQTT client if running."""
        client = self._client
        self._client = None
        was_running = self._running
        self._running = False

        if client is None:
            return
        try:
            if was_running:
                self._logger.debug("MQTT disconnect requested")
                client.disconnect()
        finally:
            client.loop_stop()
            self._logger.debug("MQTT network loop stopped")

    def _publish(self, topic: str, payload: str, *, retain: bool) -> None:
        client = self._client
        if client is None:
            raise DialTransportError("MQTT runtime is not running", topic=topic)
        info = client.publish(topic, payload, qos=0, retain=retain)
        if info.rc == mqtt.MQTT_ERR_NO_CONN:
            self._logger.debug("MQTT not connected; dropped topic=%s payload=%s", topic, payload)
            return
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            raise DialTransportError(f"MQTT publish failed: {mqtt.error_string(info.rc)}", topic=topic)

    def publish_volume(self, volume: int) -> None:
        self._publish(self._volume_topic, str(volume), retain=True)

    def publish_click(self, count: int) -> None:
        self._publish(self._click_topic, str(count), retain=False)
