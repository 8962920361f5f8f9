#!/usr/bin/env python3

"""MQTT transport: client construction and a publish wrapper with error reporting."""

import threading
from typing import Optional

import paho.mqtt.client as mqtt

from .logger import log_message
from .publisher import PublishError


def is_mqtt_success(reason_code) -> bool:
    """Interpret a paho reason code (ReasonCode object or legacy int)."""
    if hasattr(reason_code, "is_failure"):
        return not reason_code.is_failure
    if hasattr(reason_code, "value"):
        reason_code = reason_code.value
    try:
        return int(reason_code) == 0
    except (TypeError, ValueError):
        return False


def create_client(mqtt_config, password: Optional[str] = None) -> mqtt.Client:
    """Build a paho client from MqttConfig; callbacks are attached by the caller."""
    client = mqtt.Client(
        callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
        client_id=mqtt_config.client_id
    )
    if mqtt_config.username:
        client.username_pw_set(mqtt_config.username, password if password is not None else mqtt_config.password)
    client.reconnect_delay_set(min_delay=1, max_delay=60)
    return client


class MqttBus:
    """Publishes raw UTF-8 payloads through a paho client."""

    def __init__(self, client: mqtt.Client, qos: int = 0, retain: bool = False):
        self.client = client
        self.qos = qos
        self.retain = retain
        self._publish_lock = threading.Lock()

    def publish(self, topic: str, payload: str) -> None:
        """
        Hand a message to the client for delivery.

        Raises:
            PublishError: if the client rejects the message
        """
        try:
            with self._publish_lock:
                result = self.client.publish(topic, payload=payload.encode('utf-8'), qos=self.qos, retain=self.retain)
        except (ValueError, OSError) as e:
            raise PublishError(f"Publish to {topic} failed: {e}") from e

        if result.rc != mqtt.MQTT_ERR_SUCCESS:
            raise PublishError(f"Publish to {topic} failed: {mqtt.error_string(result.rc)} (rc={result.rc})")
        log_message(5, f"Published to {topic}: {payload}")

    def subscribe(self, topic: str) -> None:
        result, _mid = self.client.subscribe(topic, qos=self.qos)
        if result != mqtt.MQTT_ERR_SUCCESS:
            log_message(1, f"Failed to subscribe to {topic}: {mqtt.error_string(result)}")
        else:
            log_message(3, f"Subscribed to {topic}")
