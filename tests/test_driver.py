"""Tests for the ExpressVPN connection driver."""

from unittest.mock import MagicMock

import pytest

from vpnbridge.expressvpn import ConnectError, ConnectionDriver
from vpnbridge.utils import CommandFailedError, ProcessError


class TestConnectionDriver:
    def setup_method(self):
        self.cli = MagicMock()
        self.driver = ConnectionDriver(self.cli)

    def test_disconnect_success(self):
        assert self.driver.disconnect() is True
        self.cli.disconnect.assert_called_once_with()

    def test_disconnect_when_already_disconnected(self):
        self.cli.disconnect.side_effect = CommandFailedError("exit 1", returncode=1)
        assert self.driver.disconnect() is False

    def test_disconnect_when_client_missing(self):
        self.cli.disconnect.side_effect = ProcessError("Command not found: expressvpn")
        assert self.driver.disconnect() is False

    def test_connect_success(self):
        self.driver.connect("UK - London")
        self.cli.connect.assert_called_once_with("UK - London")

    def test_connect_failure_raises_connect_error(self):
        self.cli.connect.side_effect = CommandFailedError(
            "exit 1", returncode=1, stderr="We were unable to connect to this VPN location."
        )

        with pytest.raises(ConnectError) as exc_info:
            self.driver.connect("UK - London")

        assert exc_info.value.location == "UK - London"
        assert exc_info.value.returncode == 1
        assert "unable to connect" in str(exc_info.value)

    def test_connect_timeout_propagates_process_error(self):
        self.cli.connect.side_effect = ProcessError("Command timed out after 60s")

        with pytest.raises(ProcessError):
            self.driver.connect("UK - London")
