#!/usr/bin/env python3

"""
ExpressVPN status classification.

`expressvpn status` prints free-form text; only three shapes matter:
"Not connected", "Connecting..." and "Connected to <location>". Anything
else is treated as not connected and logged as an anomaly so that an
unexpected client upgrade never leaks an arbitrary string onto the bus.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..logger import log_message
from ..utils import ProcessError, strip_ansi

NOT_CONNECTED_TEXT = "Not connected"
CONNECTING_TEXT = "Connecting..."

CONNECTED_PATTERN = re.compile(r'Connected\sto\s(.*)')


class StatusKind(Enum):
    NOT_CONNECTED = "not_connected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


@dataclass(frozen=True)
class Status:
    """Canonical VPN status; `location` is only set for CONNECTED."""
    kind: StatusKind
    location: Optional[str] = None

    @classmethod
    def not_connected(cls) -> "Status":
        return cls(StatusKind.NOT_CONNECTED)

    @classmethod
    def connecting(cls) -> "Status":
        return cls(StatusKind.CONNECTING)

    @classmethod
    def connected_to(cls, location: str) -> "Status":
        return cls(StatusKind.CONNECTED, location)

    @property
    def is_connected(self) -> bool:
        return self.kind is StatusKind.CONNECTED

    def __str__(self) -> str:
        if self.kind is StatusKind.CONNECTED:
            return self.location or ""
        if self.kind is StatusKind.CONNECTING:
            return CONNECTING_TEXT
        return NOT_CONNECTED_TEXT


def classify_status(raw_output: str) -> Status:
    """Classify raw `expressvpn status` output into a Status."""
    text = strip_ansi(raw_output)

    if "Not connected" in text:
        return Status.not_connected()
    if "Connecting" in text:
        return Status.connecting()

    match = CONNECTED_PATTERN.search(text)
    if match and match.group(1).strip():
        return Status.connected_to(match.group(1).strip())

    summary = text.strip().replace('\n', ' ')[:100]
    log_message(1, f"Warning: unrecognized VPN status output, treating as not connected: {summary!r}")
    return Status.not_connected()


class StatusReader:
    """Polls the VPN client for its ground-truth status."""

    def __init__(self, cli):
        self.cli = cli

    def poll(self) -> Status:
        """
        Query the VPN client and classify its output.

        Raises:
            ProcessError: client missing, timed out, or failed without output
        """
        result = self.cli.status()
        output = result.stdout or ""

        if result.returncode != 0 and not output.strip():
            stderr = (result.stderr or "").strip()
            raise ProcessError(
                f"Status query exited with code {result.returncode}: {stderr or 'no output'}",
                returncode=result.returncode,
                stderr=stderr
            )

        status = classify_status(output)
        log_message(5, f"Polled VPN status: {status}")
        return status
