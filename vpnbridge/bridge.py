#!/usr/bin/env python3

"""
VPN bridge controller.

Owns the single BridgeState instance and the two workers that touch it:

- the tick worker runs ReconciliationLoop.tick every poll interval
- the transition worker drains a single-slot request queue fed by MQTT

MQTT callbacks run on the paho network thread and never block on the VPN
client; inbound requests are queued, and a request that finds the slot
occupied is rejected.
"""

import queue
import threading
from typing import List, Optional

from .credentials import CredentialManager
from .expressvpn import ConnectionDriver, ExpressVpnCli, LocationCatalog, StatusReader
from .homeassistant import HomeAssistantClient
from .logger import log_message
from .mqtt import MqttBus, create_client, is_mqtt_success
from .publisher import Publisher
from .reconcile import ReconciliationLoop
from .state import BridgeState
from .transition import TransitionController

WORKER_JOIN_TIMEOUT = 5  # seconds
QUEUE_POLL_INTERVAL = 0.5  # seconds


class VpnBridge:
    """Connects the VPN client to MQTT and Home Assistant."""

    def __init__(self, config, client=None, cli=None, home_assistant=None,
                 credential_manager: Optional[CredentialManager] = None):
        """
        Build the bridge from configuration.

        Args:
            config: Config instance
            client: Optional paho client (built from config when omitted)
            cli: Optional ExpressVpnCli (built from config when omitted)
            home_assistant: Optional HomeAssistantClient (built from config when enabled)
            credential_manager: Optional CredentialManager for "enc:" secrets
        """
        self.config = config
        self.credentials = credential_manager or CredentialManager(
            config.security.key_file, config.security.key_file_permissions
        )

        self.cli = cli or ExpressVpnCli.from_config(config.provider)
        self.reader = StatusReader(self.cli)
        self.driver = ConnectionDriver(self.cli)

        if client is None:
            client = create_client(config.mqtt, password=self.credentials.resolve_secret(config.mqtt.password))
        self.client = client
        self.bus = MqttBus(self.client, qos=config.mqtt.qos, retain=config.mqtt.retain)

        if home_assistant is None and config.home_assistant.enabled:
            home_assistant = HomeAssistantClient.from_config(
                config.home_assistant,
                token=self.credentials.resolve_secret(config.home_assistant.token)
            )
        self.home_assistant = home_assistant
        self.publisher = Publisher(self.bus, config.mqtt.status_topic, home_assistant)

        self.state = BridgeState()
        self.catalog: Optional[LocationCatalog] = None
        self.loop: Optional[ReconciliationLoop] = None
        self.transitions: Optional[TransitionController] = None

        self._requests: "queue.Queue[str]" = queue.Queue(maxsize=1)
        self._stop_event = threading.Event()
        self._threads: List[threading.Thread] = []
        self._workers_lock = threading.Lock()

    def initialize(self):
        """
        Load the catalog and the initial status.

        Raises:
            ProcessError: if the VPN client cannot be queried
        """
        provider = self.config.provider
        self.catalog = LocationCatalog.load(self.cli, provider.favorites, provider.header_lines)
        self.state.last_status = self.reader.poll()
        log_message(0, f"Initial VPN status: {self.state.last_status}")

        self.loop = ReconciliationLoop(self.state, self.reader, self.catalog, self.publisher)
        self.transitions = TransitionController(
            self.state, self.reader, self.driver, self.catalog, self.publisher,
            retry_attempts=provider.retry_attempts,
            retry_delay=provider.retry_delay
        )

    # --- MQTT callbacks ---

    def on_connect(self, client, userdata, flags, reason_code, properties=None):
        if not is_mqtt_success(reason_code):
            log_message(1, f"MQTT connection failed (reason={reason_code})")
            return
        log_message(0, "Connected to MQTT.")

        self.publish_all()
        for topic in self.config.mqtt.command_topics:
            self.bus.subscribe(topic)
        self.start_workers()

    def on_disconnect(self, client, userdata, flags, reason_code, properties=None):
        if is_mqtt_success(reason_code):
            log_message(3, "Disconnected from MQTT.")
        else:
            log_message(1, f"Lost MQTT connection (reason={reason_code}), reconnecting")

    def on_message(self, client, userdata, message):
        if message.topic not in self.config.mqtt.command_topics:
            log_message(5, f"Ignoring message on {message.topic}")
            return
        try:
            requested = message.payload.decode('utf-8').strip()
        except UnicodeDecodeError:
            log_message(1, f"Warning: dropping non UTF-8 payload on {message.topic}")
            return
        log_message(3, f"Location requested on {message.topic}: {requested!r}")
        self.submit(requested)

    # --- Entry points ---

    def submit(self, requested: str) -> bool:
        """Queue a location request; False if a request is already pending."""
        try:
            self._requests.put_nowait(requested)
        except queue.Full:
            log_message(1, f"Warning: a location request is already pending, rejecting {requested!r}")
            return False
        return True

    def publish_all(self):
        """Publish status, the option list and the current location."""
        with self.state.lock:
            if not self.state.busy:
                self.publisher.publish_status(self.state.last_status)
            self.publisher.publish_location_options(self.catalog.options())
            if not self.state.busy:
                self.publisher.publish_location(self.catalog.resolve(self.state.last_status))

    # --- Workers ---

    def _tick_worker(self):
        log_message(3, f"Status watcher started (every {self.config.provider.poll_interval}s)")
        while not self._stop_event.wait(self.config.provider.poll_interval):
            try:
                self.loop.tick()
            except Exception as e:
                log_message(1, f"Unexpected error in status watcher: {e}")
        log_message(3, "Status watcher stopped")

    def _transition_worker(self):
        log_message(3, "Transition worker started")
        while not self._stop_event.is_set():
            try:
                requested = self._requests.get(timeout=QUEUE_POLL_INTERVAL)
            except queue.Empty:
                continue
            try:
                self.transitions.request(requested)
            except Exception as e:
                log_message(1, f"Unexpected error during transition to {requested!r}: {e}")
            finally:
                self._requests.task_done()
        log_message(3, "Transition worker stopped")

    def start_workers(self):
        """Start the tick and transition workers (once)."""
        with self._workers_lock:
            if self._threads:
                return
            for name, target in (("status-watcher", self._tick_worker),
                                 ("transition-worker", self._transition_worker)):
                thread = threading.Thread(target=target, name=name, daemon=True)
                thread.start()
                self._threads.append(thread)

    def stop_workers(self):
        self._stop_event.set()
        with self._workers_lock:
            for thread in self._threads:
                thread.join(timeout=WORKER_JOIN_TIMEOUT)
                if thread.is_alive():
                    log_message(1, f"Worker {thread.name} did not stop gracefully")
            self._threads = []

    # --- Lifecycle ---

    def start(self):
        """Initialize, connect to the broker and start the network loop."""
        if self.catalog is None:
            self.initialize()

        self.client.on_connect = self.on_connect
        self.client.on_disconnect = self.on_disconnect
        self.client.on_message = self.on_message

        mqtt_config = self.config.mqtt
        log_message(3, f"Connecting to MQTT broker {mqtt_config.host}:{mqtt_config.port}")
        self.client.connect_async(mqtt_config.host, mqtt_config.port, keepalive=mqtt_config.keepalive)
        self.client.loop_start()

    def stop(self):
        """Stop workers and close the broker and REST connections."""
        log_message(3, "Stopping VPN bridge")
        self.stop_workers()
        try:
            self.client.disconnect()
        finally:
            self.client.loop_stop()
        if self.home_assistant is not None:
            self.home_assistant.close()
        log_message(0, "VPN bridge stopped.")

    def request_stop(self):
        """Ask the bridge to stop; safe to call from a signal handler."""
        self._stop_event.set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until a stop is requested; True if stopped."""
        return self._stop_event.wait(timeout)
