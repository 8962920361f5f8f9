"""
ExpressVPN MQTT Bridge

This module exposes the state of a local ExpressVPN client on an MQTT bus and
a Home Assistant input_select, and lets remote actors change the VPN location
by publishing the desired location. It breaks down the functionality into
logical components:

- logger: Logging setup and configuration
- config: Configuration sections, file and environment loading
- utils: External command execution
- credentials: Encrypted secrets in the configuration file
- expressvpn: VPN client status, location catalog and connection driver
- reconcile: Periodic status reconciliation
- transition: Location change state machine
- publisher, mqtt, homeassistant: Outbound publishing
- bridge: Controller wiring MQTT callbacks to the workers
"""

from .logger import setup_logging, log_message
from .utils import run_command, ProcessError, CommandFailedError
from .config import (
    Config, ConfigError, get_config, reset_config,
    MqttConfig, HomeAssistantConfig, ProviderConfig,
    LoggingConfig, SecurityConfig, EnvironmentConfig
)
from .credentials import CredentialManager, CredentialError
from .expressvpn import (
    ExpressVpnCli, Status, StatusKind, StatusReader, classify_status,
    LocationCatalog, UnknownLocationError, parse_locations, NONE_OPTION,
    ConnectionDriver, ConnectError
)
from .homeassistant import HomeAssistantClient, HomeAssistantError
from .publisher import Publisher, PublishError
from .state import BridgeState
from .reconcile import ReconciliationLoop
from .transition import TransitionController, TransitionOutcome, TransitionPhase
from .bridge import VpnBridge

__all__ = [
    # Logger functions
    'setup_logging',
    'log_message',

    # Utility functions
    'run_command',
    'ProcessError',
    'CommandFailedError',

    # Configuration management
    'Config',
    'ConfigError',
    'get_config',
    'reset_config',
    'MqttConfig',
    'HomeAssistantConfig',
    'ProviderConfig',
    'LoggingConfig',
    'SecurityConfig',
    'EnvironmentConfig',

    # Secrets
    'CredentialManager',
    'CredentialError',

    # VPN client
    'ExpressVpnCli',
    'Status',
    'StatusKind',
    'StatusReader',
    'classify_status',
    'LocationCatalog',
    'UnknownLocationError',
    'parse_locations',
    'NONE_OPTION',
    'ConnectionDriver',
    'ConnectError',

    # Publishing
    'HomeAssistantClient',
    'HomeAssistantError',
    'Publisher',
    'PublishError',

    # Controller
    'BridgeState',
    'ReconciliationLoop',
    'TransitionController',
    'TransitionOutcome',
    'TransitionPhase',
    'VpnBridge',
]

__version__ = "1.0.0"
__description__ = "Bridge between the ExpressVPN client, MQTT and Home Assistant"
