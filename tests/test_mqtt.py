"""Tests for the MQTT transport helpers."""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import paho.mqtt.client as mqtt
import pytest

from vpnbridge.config import MqttConfig
from vpnbridge.mqtt import MqttBus, create_client, is_mqtt_success
from vpnbridge.publisher import PublishError


class TestIsMqttSuccess:
    @pytest.mark.parametrize("code, expected", [
        (0, True),
        (5, False),
        (mqtt.MQTT_ERR_SUCCESS, True),
        (SimpleNamespace(is_failure=False), True),
        (SimpleNamespace(is_failure=True), False),
        ("not-a-code", False),
    ])
    def test_codes(self, code, expected):
        assert is_mqtt_success(code) is expected


class TestMqttBus:
    def setup_method(self):
        self.client = MagicMock()
        self.client.publish.return_value = SimpleNamespace(rc=mqtt.MQTT_ERR_SUCCESS)
        self.bus = MqttBus(self.client, qos=1, retain=True)

    def test_publish_encodes_payload(self):
        self.bus.publish("vpn/status", "UK - London")

        self.client.publish.assert_called_once_with(
            "vpn/status", payload=b"UK - London", qos=1, retain=True
        )

    def test_publish_rejected_by_client(self):
        self.client.publish.return_value = SimpleNamespace(rc=mqtt.MQTT_ERR_NO_CONN)

        with pytest.raises(PublishError):
            self.bus.publish("vpn/status", "Not connected")

    def test_publish_raises_value_error(self):
        self.client.publish.side_effect = ValueError("Invalid topic")

        with pytest.raises(PublishError):
            self.bus.publish("vpn/#", "Not connected")

    def test_subscribe(self):
        self.client.subscribe.return_value = (mqtt.MQTT_ERR_SUCCESS, 1)

        self.bus.subscribe("vpn/location")

        self.client.subscribe.assert_called_once_with("vpn/location", qos=1)


class TestCreateClient:
    @patch("vpnbridge.mqtt.mqtt.Client")
    def test_credentials_applied(self, mock_client_cls):
        config = MqttConfig(username="bridge", password="enc:ciphertext", client_id="vpn-test")

        client = create_client(config, password="plain")

        assert client is mock_client_cls.return_value
        _, kwargs = mock_client_cls.call_args
        assert kwargs["callback_api_version"] == mqtt.CallbackAPIVersion.VERSION2
        assert kwargs["client_id"] == "vpn-test"
        client.username_pw_set.assert_called_once_with("bridge", "plain")

    @patch("vpnbridge.mqtt.mqtt.Client")
    def test_anonymous(self, mock_client_cls):
        client = create_client(MqttConfig())
        client.username_pw_set.assert_not_called()
