#!/usr/bin/env python3

"""
Outbound publishing for the VPN bridge.

Publishing is best effort: a lost status or location update is repaired by
the next change or transition, so every method logs failures and returns
False instead of raising. Callers that care can check the return value.
"""

from typing import Iterable

from .homeassistant import HomeAssistantError
from .logger import log_message


class PublishError(Exception):
    """Raised by a bus transport when a message cannot be handed off."""
    pass


class Publisher:
    """
    Publishes VPN state to the message bus and (optionally) Home Assistant.

    - publish_status: status text on the bus status topic
    - publish_location: selected option of the Home Assistant input_select
    - publish_location_options: option list of the Home Assistant input_select
    """

    def __init__(self, bus, status_topic: str, home_assistant=None):
        self.bus = bus
        self.status_topic = status_topic
        self.home_assistant = home_assistant

    def publish_status(self, status) -> bool:
        payload = str(status)
        try:
            self.bus.publish(self.status_topic, payload)
        except PublishError as e:
            log_message(1, f"Failed to publish status {payload!r}: {e}")
            return False
        log_message(3, f"Published status: {payload}")
        return True

    def publish_location(self, location: str) -> bool:
        if self.home_assistant is None:
            log_message(5, f"Home Assistant disabled, not publishing location {location!r}")
            return True
        try:
            self.home_assistant.select_option(location)
        except HomeAssistantError as e:
            log_message(1, f"Failed to publish location {location!r}: {e}")
            return False
        log_message(3, f"Published location: {location}")
        return True

    def publish_location_options(self, options: Iterable[str]) -> bool:
        options = list(options)
        if self.home_assistant is None:
            log_message(5, "Home Assistant disabled, not publishing location options")
            return True
        try:
            self.home_assistant.set_options(options)
        except HomeAssistantError as e:
            log_message(1, f"Failed to publish {len(options)} location options: {e}")
            return False
        log_message(3, f"Published {len(options)} location options")
        return True
