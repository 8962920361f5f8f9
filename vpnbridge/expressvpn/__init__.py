"""
ExpressVPN client integration.

- cli: command construction and execution for the `expressvpn` binary
- status: status classification and polling
- locations: location listing parser and catalog
- driver: connect/disconnect commands
"""

from .cli import ExpressVpnCli
from .status import (
    Status, StatusKind, StatusReader, classify_status,
    NOT_CONNECTED_TEXT, CONNECTING_TEXT
)
from .locations import (
    LocationCatalog, UnknownLocationError, parse_locations, extract_location,
    NONE_OPTION
)
from .driver import ConnectionDriver, ConnectError

__all__ = [
    'ExpressVpnCli',

    # Status
    'Status',
    'StatusKind',
    'StatusReader',
    'classify_status',
    'NOT_CONNECTED_TEXT',
    'CONNECTING_TEXT',

    # Locations
    'LocationCatalog',
    'UnknownLocationError',
    'parse_locations',
    'extract_location',
    'NONE_OPTION',

    # Connection
    'ConnectionDriver',
    'ConnectError',
]
