#!/usr/bin/env python3

"""
Secret handling for the bridge configuration.

The MQTT password and the Home Assistant token may be written into the
configuration file encrypted, as "enc:<token>" values produced with
`expressvpn-mqtt --encrypt`. They are decrypted with a Fernet key kept in a
separate key file that is created on first use with owner-only permissions.
"""

import os
from pathlib import Path
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

from .logger import log_message

ENCRYPTED_PREFIX = "enc:"


class CredentialError(Exception):
    """Raised when a secret cannot be encrypted or decrypted."""
    pass


class CredentialManager:
    """
    Fernet-based secret encryption backed by a key file.

    Handles:
    - Key file creation with restricted permissions
    - Encryption of plain secrets into "enc:" values
    - Transparent decryption of "enc:" values from the configuration
    """

    def __init__(self, key_file: Path, key_file_permissions: int = 0o600):
        """Initialize credential manager; the key is loaded lazily."""
        self.key_file = Path(key_file)
        self.key_file_permissions = key_file_permissions
        self._encryption_key: Optional[bytes] = None

    def _get_or_create_encryption_key(self) -> bytes:
        """Get or create encryption key for secret storage."""
        if self._encryption_key is not None:
            return self._encryption_key

        if self.key_file.exists():
            try:
                with open(self.key_file, 'rb') as f:
                    self._encryption_key = f.read().strip()
                log_message(5, f"Loaded encryption key from {self.key_file}")
                return self._encryption_key
            except OSError as e:
                raise CredentialError(f"Failed to load encryption key {self.key_file}: {e}") from e

        key = Fernet.generate_key()
        try:
            self.key_file.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
            with open(self.key_file, 'wb') as f:
                f.write(key)
            os.chmod(self.key_file, self.key_file_permissions)
        except OSError as e:
            raise CredentialError(f"Failed to save encryption key {self.key_file}: {e}") from e

        log_message(3, f"Created new encryption key at {self.key_file}")
        self._encryption_key = key
        return key

    def encrypt_data(self, data: str) -> str:
        """Encrypt a secret and return it as an "enc:" configuration value."""
        cipher = Fernet(self._get_or_create_encryption_key())
        return ENCRYPTED_PREFIX + cipher.encrypt(data.encode()).decode()

    def decrypt_data(self, encrypted_data: str) -> str:
        """Decrypt an "enc:" configuration value (the prefix is optional)."""
        if encrypted_data.startswith(ENCRYPTED_PREFIX):
            encrypted_data = encrypted_data[len(ENCRYPTED_PREFIX):]
        if not self.key_file.exists() and self._encryption_key is None:
            raise CredentialError(f"Encryption key not found: {self.key_file}")
        try:
            cipher = Fernet(self._get_or_create_encryption_key())
            return cipher.decrypt(encrypted_data.encode()).decode()
        except (InvalidToken, ValueError) as e:
            raise CredentialError("Decryption failed: invalid token or wrong key") from e

    def resolve_secret(self, value: Optional[str]) -> Optional[str]:
        """Return plain values unchanged and decrypt "enc:" values."""
        if value is None or not value.startswith(ENCRYPTED_PREFIX):
            return value
        secret = self.decrypt_data(value)
        log_message(4, "Decrypted secret from configuration: [REDACTED]")
        return secret
