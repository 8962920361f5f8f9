#!/usr/bin/env python3

"""
Home Assistant REST Client Module

Keeps a Home Assistant `input_select` entity in sync with the VPN bridge:
the option list mirrors the location catalog and the selected option mirrors
the current location.

Features:
- Connection pooling through a shared requests session
- Automatic retry with backoff on 5xx responses
- Optional long-lived access token authentication
- Timeout handling for reliability
"""

from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .logger import log_message


class HomeAssistantError(Exception):
    """Base exception for Home Assistant REST errors."""
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class HomeAssistantClient:
    """
    Minimal Home Assistant REST client for the input_select services.

    Provides methods for:
    - Selecting the current location option
    - Replacing the option list
    """

    SELECT_OPTION_PATH = "/services/input_select/select_option"
    SET_OPTIONS_PATH = "/services/input_select/set_options"

    # Default timeouts (in seconds)
    CONNECT_TIMEOUT = 5

    # Retry configuration
    BACKOFF_FACTOR = 0.5
    RETRY_STATUS_CODES = [500, 502, 503, 504]

    def __init__(self, base_url: str, entity_id: str, token: Optional[str] = None,
                 timeout: float = 10, max_retries: int = 3, verify_ssl: bool = True,
                 session: Optional[requests.Session] = None):
        """
        Initialize the client.

        Args:
            base_url: API base URL, e.g. http://homeassistant:8123/api
            entity_id: input_select entity holding the VPN location
            token: Optional long-lived access token
            timeout: Read timeout for requests
            max_retries: Retries on connection errors and 5xx responses
            verify_ssl: Verify TLS certificates
            session: Optional preconfigured session
        """
        self.base_url = base_url.rstrip('/')
        self.entity_id = entity_id
        self.timeout = timeout
        self.max_retries = max_retries
        self.verify_ssl = verify_ssl

        self.session = session or requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"
        if session is None:
            self._setup_retry_strategy()

        log_message(3, f"Home Assistant client initialized for {self.base_url} ({self.entity_id})")

    def _setup_retry_strategy(self):
        """Configure retry strategy for HTTP requests."""
        retry_strategy = Retry(
            total=self.max_retries,
            backoff_factor=self.BACKOFF_FACTOR,
            status_forcelist=self.RETRY_STATUS_CODES,
            allowed_methods=["POST"],
            raise_on_status=False
        )

        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

        log_message(5, f"Configured retry strategy: {self.max_retries} retries, backoff factor: {self.BACKOFF_FACTOR}")

    def _post(self, path: str, body: Dict[str, Any]) -> requests.Response:
        """
        POST a JSON body to a service endpoint.

        Raises:
            HomeAssistantError: for network errors and non-2xx responses
        """
        url = self.base_url + path
        log_message(5, f"Making POST request to: {url} body={body}")

        try:
            response = self.session.post(
                url,
                json=body,
                timeout=(self.CONNECT_TIMEOUT, self.timeout),
                verify=self.verify_ssl
            )
        except requests.exceptions.Timeout as e:
            raise HomeAssistantError(f"Timeout error for {url}: {e}") from e
        except requests.exceptions.ConnectionError as e:
            raise HomeAssistantError(f"Connection error for {url}: {e}") from e
        except requests.exceptions.RequestException as e:
            raise HomeAssistantError(f"Request error for {url}: {e}") from e

        log_message(5, f"Response status: {response.status_code}")
        if response.status_code == 401:
            raise HomeAssistantError("Authentication failed: check the access token", status_code=401)
        if not response.ok:
            raise HomeAssistantError(
                f"{url} returned HTTP {response.status_code}: {response.text[:200]}",
                status_code=response.status_code
            )
        return response

    def select_option(self, option: str) -> None:
        """Select the given option on the location input_select."""
        self._post(self.SELECT_OPTION_PATH, {"entity_id": self.entity_id, "option": option})

    def set_options(self, options: List[str]) -> None:
        """Replace the option list of the location input_select."""
        self._post(self.SET_OPTIONS_PATH, {"entity_id": self.entity_id, "options": list(options)})

    @classmethod
    def from_config(cls, ha_config, token: Optional[str] = None) -> "HomeAssistantClient":
        return cls(
            base_url=ha_config.base_url,
            entity_id=ha_config.entity_id,
            token=token if token is not None else ha_config.token,
            timeout=ha_config.timeout,
            max_retries=ha_config.max_retries,
            verify_ssl=ha_config.verify_ssl
        )

    def close(self):
        """Close the underlying session."""
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
