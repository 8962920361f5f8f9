#!/usr/bin/env python3

"""
ExpressVPN connection driver.

Issues connect/disconnect commands and nothing else: it never retries and
never checks whether a connect actually took effect. Both decisions belong
to the transition controller, which re-polls ground truth after connecting.
"""

from ..logger import log_message
from ..utils import CommandFailedError, ProcessError


class ConnectError(Exception):
    """Raised when the VPN client reports a failed connect."""
    def __init__(self, message: str, location: str, returncode=None, stderr=None):
        super().__init__(message)
        self.location = location
        self.returncode = returncode
        self.stderr = stderr


class ConnectionDriver:
    """Imperative connect/disconnect wrapper around the VPN client."""

    def __init__(self, cli):
        self.cli = cli

    def disconnect(self) -> bool:
        """
        Disconnect the VPN client.

        The client exits non-zero when already disconnected, so failures are
        expected; they are logged and reported through the return value.

        Returns:
            True if the command succeeded, False otherwise
        """
        log_message(3, "Disconnecting VPN")
        try:
            self.cli.disconnect()
            return True
        except ProcessError as e:
            log_message(5, f"Disconnect failed (ignored): {e}")
            return False

    def connect(self, location: str) -> None:
        """
        Connect the VPN client to a location.

        Raises:
            ConnectError: if the client exits with a failure status
            ProcessError: if the client cannot be run or times out
        """
        log_message(3, f"Connecting to: {location}")
        try:
            self.cli.connect(location)
        except CommandFailedError as e:
            raise ConnectError(
                f"Connect to {location!r} failed (exit code {e.returncode}): {e.stderr or 'no details'}",
                location=location,
                returncode=e.returncode,
                stderr=e.stderr
            ) from e
