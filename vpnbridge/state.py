#!/usr/bin/env python3

"""Shared controller state for the reconciliation loop and transition controller."""

import threading
from dataclasses import dataclass, field

from .expressvpn.status import Status


@dataclass
class BridgeState:
    """
    Last observed VPN status plus the busy flag.

    `busy` is written only by the transition controller and is true exactly
    while a transition runs. `lock` guards both fields and is held by the
    reconciliation tick for its whole compare/update/publish step.
    """
    last_status: Status = field(default_factory=Status.not_connected)
    busy: bool = False
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)
