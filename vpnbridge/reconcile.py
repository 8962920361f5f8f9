#!/usr/bin/env python3

"""
Status reconciliation.

Each tick polls the VPN client and compares the result with the last known
status. Changes are published (location first, then status) unless a
transition is in flight; in that case the new status is only recorded and
the transition controller publishes the settled state itself.
"""

from .logger import log_message
from .utils import ProcessError


class ReconciliationLoop:
    """Detects drift between the VPN client and the last published status."""

    def __init__(self, state, reader, catalog, publisher):
        self.state = state
        self.reader = reader
        self.catalog = catalog
        self.publisher = publisher

    def tick(self) -> bool:
        """
        Poll once and publish on change.

        Returns:
            True if the status changed, False otherwise (including poll failures)
        """
        try:
            status = self.reader.poll()
        except ProcessError as e:
            log_message(1, f"Status poll failed: {e}")
            return False

        with self.state.lock:
            if status == self.state.last_status:
                return False

            previous = self.state.last_status
            self.state.last_status = status
            log_message(3, f"VPN status changed: {previous} -> {status}")

            if self.state.busy:
                log_message(4, f"Transition in progress, deferring publish of {status}")
                return True

            self.publisher.publish_location(self.catalog.resolve(status))
            self.publisher.publish_status(status)
        return True
