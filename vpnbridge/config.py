#!/usr/bin/env python3

"""
Configuration Management Module for the ExpressVPN MQTT bridge

This module provides centralized configuration management with:
- Single source of truth for all settings
- Environment-specific configurations
- Configuration validation and type checking
- Support for JSON configuration files and environment overrides
"""

import os
import sys
import json
from pathlib import Path
from typing import Dict, Any, List, Optional, Union
from dataclasses import dataclass, field, asdict
from urllib.parse import urlparse
# Note: log_message is not used here, configuration is loaded before logging is set up


DEFAULT_FAVORITES = [
    'Netherlands - The Hague',
    'UK - Docklands',
    'USA - New Jersey - 3',
    'USA - New Jersey - 2',
    'USA - Washington DC - 2',
    'Australia - Sydney - 3',
    'Canada - Toronto - 2',
]

ENV_PREFIX = "VPNBRIDGE_"


class ConfigError(ValueError):
    """Raised for invalid or unreadable configuration."""
    pass


@dataclass
class MqttConfig:
    """MQTT broker connection and topic configuration."""
    host: str = "localhost"
    port: int = 1883
    username: Optional[str] = None
    password: Optional[str] = None
    client_id: str = ""
    keepalive: int = 60

    # Topics
    status_topic: str = "vpn/status"
    command_topics: List[str] = field(default_factory=lambda: ["vpn/location", "vpn/connect"])
    qos: int = 0
    retain: bool = False

    def __post_init__(self):
        """Validate broker settings and topics."""
        if not isinstance(self.host, str) or not self.host.strip():
            raise ConfigError(f"Invalid MQTT host: {self.host!r}")
        if not (1 <= int(self.port) <= 65535):
            raise ConfigError(f"Invalid MQTT port: {self.port}")
        if self.keepalive <= 0:
            raise ConfigError(f"Invalid MQTT keepalive: {self.keepalive}")
        if self.qos not in (0, 1, 2):
            raise ConfigError(f"Invalid MQTT QoS: {self.qos}")
        if not self.status_topic:
            raise ConfigError("MQTT status topic must not be empty")
        if not self.command_topics or not all(self.command_topics):
            raise ConfigError("At least one non-empty MQTT command topic is required")


@dataclass
class HomeAssistantConfig:
    """Home Assistant REST endpoint configuration. An empty base_url disables it."""
    base_url: str = ""
    token: Optional[str] = None
    entity_id: str = "input_select.vpn_location"
    timeout: float = 10
    max_retries: int = 3
    verify_ssl: bool = True

    def __post_init__(self):
        if self.base_url:
            parsed = urlparse(self.base_url)
            if parsed.scheme not in ("http", "https") or not parsed.netloc:
                raise ConfigError(f"Invalid Home Assistant base URL: {self.base_url}")
            self.base_url = self.base_url.rstrip('/')
        if self.timeout <= 0:
            raise ConfigError(f"Invalid Home Assistant timeout: {self.timeout}")
        if self.max_retries < 0:
            raise ConfigError(f"Invalid Home Assistant retry count: {self.max_retries}")

    @property
    def enabled(self) -> bool:
        return bool(self.base_url)


@dataclass
class ProviderConfig:
    """VPN client process configuration."""
    binary: str = "expressvpn"
    favorites: List[str] = field(default_factory=lambda: list(DEFAULT_FAVORITES))
    header_lines: int = 3

    # Reconciliation and transition settings
    poll_interval: float = 1.0  # seconds
    retry_attempts: int = 3
    retry_delay: float = 0.0  # seconds
    command_timeout: float = 15  # seconds
    connect_timeout: float = 60  # seconds

    def __post_init__(self):
        """Validate provider configuration."""
        if not self.binary:
            raise ConfigError("VPN client binary must not be empty")
        if self.header_lines < 0:
            raise ConfigError(f"Invalid header line count: {self.header_lines}")
        if self.retry_attempts < 1:
            raise ConfigError(f"Invalid retry attempts: {self.retry_attempts}")
        if self.retry_delay < 0:
            raise ConfigError(f"Invalid retry delay: {self.retry_delay}")
        for timeout in (self.poll_interval, self.command_timeout, self.connect_timeout):
            if timeout <= 0:
                raise ConfigError(f"Invalid timeout value: {timeout}")
        if len(set(self.favorites)) != len(self.favorites):
            raise ConfigError("Favorite locations must not contain duplicates")


@dataclass
class LoggingConfig:
    """Logging configuration settings."""
    default_verbosity: int = 3
    log_file: Optional[str] = None
    log_format: str = '%(asctime)s - %(levelname)s: %(message)s'
    log_date_format: str = '%Y-%m-%d %H:%M:%S'

    def __post_init__(self):
        """Validate logging configuration."""
        if not (0 <= self.default_verbosity <= 5):
            raise ConfigError(f"Invalid default verbosity: {self.default_verbosity}")


@dataclass
class SecurityConfig:
    """Secret handling settings."""
    key_file: Path = field(default_factory=lambda: Path.home() / ".config" / "vpnbridge" / "secret.key")
    key_file_permissions: int = 0o600

    def __post_init__(self):
        self.key_file = Path(self.key_file)
        if not isinstance(self.key_file_permissions, int):
            raise ConfigError("key_file_permissions must be an integer (octal)")


@dataclass
class EnvironmentConfig:
    """Environment-specific configuration."""
    environment: str = "production"  # production, development, testing
    debug_mode: bool = False

    def __post_init__(self):
        """Validate environment configuration."""
        valid_environments = ["production", "development", "testing"]
        if self.environment not in valid_environments:
            raise ConfigError(f"Invalid environment: {self.environment}. Must be one of {valid_environments}")

        # Auto-enable debug mode for development
        if self.environment == "development":
            self.debug_mode = True


class Config:
    """
    Main configuration class that aggregates all configuration sections.

    Values come from the dataclass defaults, then the optional JSON file,
    then VPNBRIDGE_* environment variables.
    """

    def __init__(self, config_file: Optional[Union[str, Path]] = None, environment: str = "production",
                 environ: Optional[Dict[str, str]] = None):
        """
        Initialize configuration.

        Args:
            config_file: Optional path to configuration file
            environment: Target environment (production, development, testing)
            environ: Environment mapping to read overrides from (defaults to os.environ)
        """
        self.environment = environment
        self._environ = os.environ if environ is None else environ
        self._load_configuration(config_file)

    def _load_configuration(self, config_file: Optional[Union[str, Path]] = None):
        """Load configuration from file or use defaults."""
        config_data: Dict[str, Any] = {}

        if config_file:
            config_data = self._load_config_file(config_file)

        # Environment overrides are merged per section
        for section, values in self._load_environment_config().items():
            config_data.setdefault(section, {}).update(values)

        try:
            self.mqtt = MqttConfig(**config_data.get('mqtt', {}))
            self.home_assistant = HomeAssistantConfig(**config_data.get('home_assistant', {}))
            self.provider = ProviderConfig(**config_data.get('provider', {}))
            self.logging = LoggingConfig(**config_data.get('logging', {}))
            self.security = SecurityConfig(**config_data.get('security', {}))
            self.environment_config = EnvironmentConfig(
                environment=self.environment,
                **config_data.get('environment', {})
            )
        except TypeError as e:
            raise ConfigError(f"Unknown configuration key: {e}") from e

    def _load_config_file(self, config_file: Union[str, Path]) -> Dict[str, Any]:
        """Load configuration from JSON file."""
        config_path = Path(config_file)

        if not config_path.exists():
            print(f"Configuration file not found: {config_path}", file=sys.stderr)
            return {}

        try:
            with open(config_path, 'r') as f:
                config_data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in configuration file {config_path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Error loading configuration file {config_path}: {e}") from e

        if not isinstance(config_data, dict):
            raise ConfigError(f"Configuration file {config_path} must contain a JSON object")
        return config_data

    def _getenv(self, name: str) -> Optional[str]:
        value = self._environ.get(ENV_PREFIX + name)
        return value if value else None

    def _load_environment_config(self) -> Dict[str, Dict[str, Any]]:
        """Load environment-specific configuration from environment variables."""
        env_config: Dict[str, Dict[str, Any]] = {}

        string_overrides = [
            ('MQTT_HOST', 'mqtt', 'host'),
            ('MQTT_USERNAME', 'mqtt', 'username'),
            ('MQTT_PASSWORD', 'mqtt', 'password'),
            ('HA_URL', 'home_assistant', 'base_url'),
            ('HA_TOKEN', 'home_assistant', 'token'),
            ('VPN_BINARY', 'provider', 'binary'),
            ('LOG_FILE', 'logging', 'log_file'),
            ('KEY_FILE', 'security', 'key_file'),
        ]
        for name, section, key in string_overrides:
            value = self._getenv(name)
            if value is not None:
                env_config.setdefault(section, {})[key] = value

        numeric_overrides = [
            ('MQTT_PORT', 'mqtt', 'port', int),
            ('POLL_INTERVAL', 'provider', 'poll_interval', float),
            ('RETRY_ATTEMPTS', 'provider', 'retry_attempts', int),
        ]
        for name, section, key, cast in numeric_overrides:
            value = self._getenv(name)
            if value is None:
                continue
            try:
                env_config.setdefault(section, {})[key] = cast(value)
            except ValueError as e:
                raise ConfigError(f"Invalid {ENV_PREFIX}{name} environment variable: {value!r}") from e

        favorites = self._getenv('FAVORITES')
        if favorites is not None:
            env_config.setdefault('provider', {})['favorites'] = [
                item.strip() for item in favorites.split(';') if item.strip()
            ]

        # Debug mode from environment
        if self._getenv('DEBUG') in ['1', 'true', 'True', 'TRUE']:
            env_config.setdefault('environment', {})['debug_mode'] = True

        return env_config

    def to_dict(self) -> Dict[str, Any]:
        """Export configuration as dictionary for serialization, secrets redacted."""
        mqtt = asdict(self.mqtt)
        if mqtt.get('password'):
            mqtt['password'] = '[REDACTED]'
        home_assistant = asdict(self.home_assistant)
        if home_assistant.get('token'):
            home_assistant['token'] = '[REDACTED]'
        security = asdict(self.security)
        security['key_file'] = str(self.security.key_file)
        return {
            'mqtt': mqtt,
            'home_assistant': home_assistant,
            'provider': asdict(self.provider),
            'logging': asdict(self.logging),
            'security': security,
            'environment': {
                'environment': self.environment_config.environment,
                'debug_mode': self.environment_config.debug_mode,
            }
        }


# Global configuration instance
_config_instance: Optional[Config] = None


def get_config(config_file: Optional[Union[str, Path]] = None, environment: str = "production") -> Config:
    """
    Get the global configuration instance.

    Args:
        config_file: Optional path to configuration file
        environment: Target environment

    Returns:
        Configuration instance
    """
    global _config_instance

    if _config_instance is None:
        _config_instance = Config(config_file, environment)

    return _config_instance


def reset_config():
    """Reset the global configuration instance (primarily for testing)."""
    global _config_instance
    _config_instance = None
