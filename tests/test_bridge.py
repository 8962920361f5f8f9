"""Tests for the bridge controller wiring."""

from types import SimpleNamespace
from unittest.mock import MagicMock, call, patch

import pytest

from vpnbridge.bridge import VpnBridge
from vpnbridge.config import Config
from vpnbridge.expressvpn import NONE_OPTION, Status


def _message(topic, payload):
    return SimpleNamespace(topic=topic, payload=payload)


@pytest.fixture
def mqtt_client():
    client = MagicMock()
    client.publish.return_value = SimpleNamespace(rc=0)
    client.subscribe.return_value = (0, 1)
    return client


@pytest.fixture
def bridge(fake_cli, mqtt_client):
    bridge = VpnBridge(Config(environ={}), client=mqtt_client, cli=fake_cli)
    bridge.initialize()
    yield bridge
    bridge.stop_workers()


class TestInitialize:
    def test_catalog_and_status_loaded(self, bridge, fake_cli):
        # seven default favorites plus three locations only found in the listing
        assert len(bridge.catalog) == 10
        assert "Japan - Tokyo" in bridge.catalog
        assert bridge.state.last_status == Status.not_connected()
        fake_cli.list_all.assert_called_once_with()

    def test_controllers_use_provider_settings(self, bridge):
        assert bridge.transitions.retry_attempts == 3
        assert bridge.transitions.retry_delay == 0.0
        assert bridge.loop.catalog is bridge.catalog


class TestSecrets:
    def test_mqtt_password_is_decrypted(self, fake_cli):
        config = Config(environ={"VPNBRIDGE_MQTT_USERNAME": "bridge", "VPNBRIDGE_MQTT_PASSWORD": "enc:token"})
        credentials = MagicMock()
        credentials.resolve_secret.return_value = "hunter2"

        with patch("vpnbridge.bridge.create_client") as mock_create:
            VpnBridge(config, cli=fake_cli, credential_manager=credentials)

        credentials.resolve_secret.assert_called_once_with("enc:token")
        mock_create.assert_called_once_with(config.mqtt, password="hunter2")


class TestInboundMessages:
    def test_request_is_queued(self, bridge):
        bridge.on_message(None, None, _message("vpn/location", b" UK - London \n"))
        assert bridge._requests.get_nowait() == "UK - London"

    def test_both_command_topics_accepted(self, bridge):
        bridge.on_message(None, None, _message("vpn/connect", b"None"))
        assert bridge._requests.get_nowait() == NONE_OPTION

    def test_second_pending_request_is_rejected(self, bridge, vpnbridge_logs):
        assert bridge.submit("UK - London") is True
        assert bridge.submit("Japan - Tokyo") is False

        assert bridge._requests.get_nowait() == "UK - London"
        assert bridge._requests.empty()
        assert "already pending" in vpnbridge_logs.text

    def test_other_topics_are_ignored(self, bridge):
        bridge.on_message(None, None, _message("vpn/status", b"UK - London"))
        assert bridge._requests.empty()

    def test_non_utf8_payload_is_dropped(self, bridge):
        bridge.on_message(None, None, _message("vpn/location", b"\xff\xfe"))
        assert bridge._requests.empty()


class TestOnConnect:
    def test_publishes_state_and_subscribes(self, bridge, mqtt_client):
        with patch.object(bridge, "start_workers") as mock_start:
            bridge.on_connect(mqtt_client, None, {}, 0)

        mqtt_client.publish.assert_called_once_with(
            "vpn/status", payload=b"Not connected", qos=0, retain=False
        )
        assert mqtt_client.subscribe.call_args_list == [
            call("vpn/location", qos=0),
            call("vpn/connect", qos=0),
        ]
        mock_start.assert_called_once_with()

    def test_failed_connect_does_nothing(self, bridge, mqtt_client):
        with patch.object(bridge, "start_workers") as mock_start:
            bridge.on_connect(mqtt_client, None, {}, 5)

        mqtt_client.publish.assert_not_called()
        mqtt_client.subscribe.assert_not_called()
        mock_start.assert_not_called()


class TestPublishAll:
    def setup_method(self):
        self.home_assistant = MagicMock()

    def _bridge(self, fake_cli, mqtt_client):
        bridge = VpnBridge(Config(environ={}), client=mqtt_client, cli=fake_cli,
                           home_assistant=self.home_assistant)
        bridge.initialize()
        return bridge

    def test_publishes_options_location_and_status(self, fake_cli, mqtt_client):
        bridge = self._bridge(fake_cli, mqtt_client)

        bridge.publish_all()

        options = self.home_assistant.set_options.call_args[0][0]
        assert options[0] == NONE_OPTION
        assert len(options) == 11
        self.home_assistant.select_option.assert_called_once_with(NONE_OPTION)
        mqtt_client.publish.assert_called_once()

    def test_busy_bridge_only_publishes_options(self, fake_cli, mqtt_client):
        bridge = self._bridge(fake_cli, mqtt_client)
        bridge.state.busy = True

        bridge.publish_all()

        self.home_assistant.set_options.assert_called_once()
        self.home_assistant.select_option.assert_not_called()
        mqtt_client.publish.assert_not_called()


class TestWorkers:
    def test_start_is_idempotent_and_stop_joins(self, bridge):
        bridge.start_workers()
        bridge.start_workers()
        threads = list(bridge._threads)

        assert len(threads) == 2
        assert all(thread.is_alive() for thread in threads)

        bridge.stop_workers()

        assert not any(thread.is_alive() for thread in threads)
        assert bridge._threads == []

    def test_queued_request_runs_transition(self, bridge, fake_cli, make_result):
        def connect(location):
            fake_cli.status.return_value = make_result(f"Connected to {location}\n")
        fake_cli.connect.side_effect = connect

        bridge.start_workers()
        bridge.submit("Japan - Tokyo")
        bridge._requests.join()

        fake_cli.disconnect.assert_called_once_with()
        fake_cli.connect.assert_called_once_with("Japan - Tokyo")
        assert bridge.state.last_status == Status.connected_to("Japan - Tokyo")
        assert bridge.state.busy is False


class TestLifecycle:
    def test_start_connects_asynchronously(self, bridge, mqtt_client, fake_cli):
        bridge.start()

        assert mqtt_client.on_connect == bridge.on_connect
        assert mqtt_client.on_message == bridge.on_message
        mqtt_client.connect_async.assert_called_once_with("localhost", 1883, keepalive=60)
        mqtt_client.loop_start.assert_called_once_with()
        # already initialized by the fixture
        fake_cli.list_all.assert_called_once_with()

    def test_stop_closes_connections(self, fake_cli, mqtt_client):
        home_assistant = MagicMock()
        bridge = VpnBridge(Config(environ={}), client=mqtt_client, cli=fake_cli,
                           home_assistant=home_assistant)

        bridge.stop()

        mqtt_client.disconnect.assert_called_once_with()
        mqtt_client.loop_stop.assert_called_once_with()
        home_assistant.close.assert_called_once_with()

    def test_request_stop_releases_wait(self, bridge):
        assert bridge.wait(timeout=0) is False
        bridge.request_stop()
        assert bridge.wait(timeout=0) is True
