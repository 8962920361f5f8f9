#!/usr/bin/env python3

"""Thin wrapper around the `expressvpn` command line client."""

import subprocess
from typing import Optional

from ..utils import run_command


class ExpressVpnCli:
    """Builds and runs `expressvpn` subcommands with explicit timeouts."""

    def __init__(self, binary: str = "expressvpn", command_timeout: float = 15,
                 connect_timeout: float = 60, sudo: bool = False):
        self.binary = binary
        self.command_timeout = command_timeout
        self.connect_timeout = connect_timeout
        self.sudo = sudo

    def run(self, *args: str, timeout: Optional[float] = None, check: bool = True) -> subprocess.CompletedProcess:
        return run_command(
            [self.binary, *args],
            check=check,
            capture_output=True,
            timeout=timeout or self.command_timeout,
            sudo=self.sudo
        )

    def status(self) -> subprocess.CompletedProcess:
        return self.run("status", check=False)

    def list_all(self) -> subprocess.CompletedProcess:
        return self.run("list", "all")

    def connect(self, location: str) -> subprocess.CompletedProcess:
        return self.run("connect", location, timeout=self.connect_timeout)

    def disconnect(self) -> subprocess.CompletedProcess:
        return self.run("disconnect")

    @classmethod
    def from_config(cls, provider_config) -> "ExpressVpnCli":
        return cls(
            binary=provider_config.binary,
            command_timeout=provider_config.command_timeout,
            connect_timeout=provider_config.connect_timeout
        )
