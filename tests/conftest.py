"""Shared test fixtures."""

import logging
import subprocess
from unittest.mock import MagicMock

import pytest

from vpnbridge.expressvpn import LocationCatalog, Status
from vpnbridge.state import BridgeState

# Three header lines, then rows in the client's tab separated layout
SAMPLE_LISTING = (
    "ALIAS\tCOUNTRY\t\t\tLOCATION\t\t\tRECOMMENDED\n"
    "-----\t-------\t\t\t--------\t\t\t-----------\n"
    "\n"
    "nl\tNetherlands (NL)\t\tNetherlands - Amsterdam\tY\n"
    "\t\t\tNetherlands - The Hague\n"
    "uklo\tUnited Kingdom (UK)\t\tUK - London\tY\n"
    "\t\t\tUK - Docklands\n"
    "jp\tJapan (JP)\t\tJapan - Tokyo\n"
    "no-tabs-on-this-row\n"
    "\t\t\tUK - London\n"
)


@pytest.fixture
def make_result():
    """Factory for CompletedProcess results returned by a mocked VPN client."""
    def _make(stdout="", returncode=0, stderr=""):
        return subprocess.CompletedProcess(
            args=["expressvpn"], returncode=returncode, stdout=stdout, stderr=stderr
        )
    return _make


@pytest.fixture
def fake_cli(make_result):
    """Mocked ExpressVpnCli reporting 'Not connected' and the sample listing."""
    cli = MagicMock()
    cli.status.return_value = make_result("Not connected\n")
    cli.list_all.return_value = make_result(SAMPLE_LISTING)
    return cli


@pytest.fixture
def catalog():
    return LocationCatalog(["NL-A", "NL-B"])


@pytest.fixture
def state():
    return BridgeState(last_status=Status.not_connected())


@pytest.fixture
def vpnbridge_logs(caplog):
    """caplog capturing every verbosity level of the bridge logger."""
    caplog.set_level(logging.DEBUG, logger="vpnbridge")
    return caplog
