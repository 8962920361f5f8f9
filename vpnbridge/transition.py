#!/usr/bin/env python3

"""
Location transitions.

A transition validates the requested location, marks the bridge busy,
disconnects, then connects with a bounded number of attempts, verifying
each attempt against a fresh status poll rather than the connect command's
exit code. While busy, the reconciliation loop records status changes but
does not publish them; the settle step publishes the final state.
"""

import threading
import time
from enum import Enum

from .expressvpn.driver import ConnectError
from .expressvpn.locations import NONE_OPTION, UnknownLocationError
from .expressvpn.status import Status
from .logger import log_message
from .utils import ProcessError


class TransitionPhase(Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    DISCONNECTING = "disconnecting"
    CONNECTING_RETRY = "connecting_retry"
    SETTLED = "settled"


class TransitionOutcome(Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    FAILED = "failed"                  # connect attempts exhausted
    ABORTED = "aborted"                # VPN client unusable mid-transition
    UNKNOWN_LOCATION = "unknown_location"
    ALREADY_ACTIVE = "already_active"
    BUSY = "busy"


class TransitionController:
    """Runs one location transition at a time."""

    def __init__(self, state, reader, driver, catalog, publisher,
                 retry_attempts: int = 3, retry_delay: float = 0.0, sleep=time.sleep):
        self.state = state
        self.reader = reader
        self.driver = driver
        self.catalog = catalog
        self.publisher = publisher
        self.retry_attempts = retry_attempts
        self.retry_delay = retry_delay
        self._sleep = sleep

        self.phase = TransitionPhase.IDLE
        self._guard = threading.Lock()

    def request(self, requested: str) -> TransitionOutcome:
        """
        Handle one desired-location request.

        Never raises for VPN client or publishing failures; the outcome
        describes what happened.
        """
        if not self._guard.acquire(blocking=False):
            log_message(1, f"Warning: transition already in progress ({self.phase.value}), rejecting {requested!r}")
            return TransitionOutcome.BUSY
        try:
            return self._run(requested)
        finally:
            self.phase = TransitionPhase.IDLE
            self._guard.release()

    def _run(self, requested: str) -> TransitionOutcome:
        self.phase = TransitionPhase.VALIDATING
        try:
            target = self.catalog.require(requested)
        except UnknownLocationError as e:
            log_message(1, f"Warning: {e}")
            return TransitionOutcome.UNKNOWN_LOCATION

        with self.state.lock:
            current = self.catalog.resolve(self.state.last_status)
            if target == current:
                log_message(1, f"Warning: Location is already: {target}")
                return TransitionOutcome.ALREADY_ACTIVE
            self.state.busy = True

        log_message(0, f"Switching VPN location: {current} -> {target}")
        outcome = TransitionOutcome.ABORTED
        try:
            if target != NONE_OPTION:
                self.publisher.publish_status(Status.connecting())

            self.phase = TransitionPhase.DISCONNECTING
            self.driver.disconnect()

            if target == NONE_OPTION:
                outcome = TransitionOutcome.DISCONNECTED
            else:
                self.phase = TransitionPhase.CONNECTING_RETRY
                if self._connect_with_retry(target):
                    outcome = TransitionOutcome.CONNECTED
                else:
                    outcome = TransitionOutcome.FAILED
        except ProcessError as e:
            log_message(1, f"Transition to {target!r} aborted: {e}")
        finally:
            self.phase = TransitionPhase.SETTLED
            self._settle()

        log_message(0, f"Transition to {target!r} finished: {outcome.value}")
        return outcome

    def _connect_with_retry(self, target: str) -> bool:
        """
        Connect and verify up to retry_attempts times.

        Raises:
            ProcessError: if the VPN client cannot be run at all
        """
        for attempt in range(1, self.retry_attempts + 1):
            verb = "Reconnecting" if attempt > 1 else "Connecting"
            log_message(3, f"{verb} to: {target} (attempt {attempt}/{self.retry_attempts})")

            try:
                self.driver.connect(target)
            except ConnectError as e:
                log_message(1, f"Warning: {e}")

            status = self.reader.poll()
            if self.catalog.resolve(status) == target:
                log_message(2, f"Connected to: {target}")
                return True

            log_message(1, f"Warning: Cannot connect to: {target} (status: {status})")
            if attempt < self.retry_attempts and self.retry_delay > 0:
                self._sleep(self.retry_delay)

        log_message(1, f"Giving up on {target} after {self.retry_attempts} attempts")
        return False

    def _settle(self):
        """Clear the busy flag and publish the ground-truth state."""
        with self.state.lock:
            self.state.busy = False
            try:
                self.state.last_status = self.reader.poll()
            except ProcessError as e:
                log_message(1, f"Status poll after transition failed: {e}")
            status = self.state.last_status
            self.publisher.publish_location(self.catalog.resolve(status))
            self.publisher.publish_status(status)
