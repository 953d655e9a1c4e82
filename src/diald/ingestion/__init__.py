"""Ingestion layer.

This package contains adapters that turn what the collaborators receive
(evdev input events, MQTT payloads) into normalized engine events.
"""

__all__: list[str] = []
