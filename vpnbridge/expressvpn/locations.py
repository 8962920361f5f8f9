#!/usr/bin/env python3

"""
ExpressVPN Location Catalog Module

Parses the `expressvpn list all` listing into the ordered set of locations
offered to Home Assistant, with configured favorites pinned first.

The listing is tab separated and its column layout varies per row: rows of
the first server in a country carry extra columns, so the location field is
found by trying progressively looser tab patterns.
"""

import re
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

from ..logger import log_message

NONE_OPTION = "None"
HEADER_LINES = 3

# Ordered from strictest to loosest; the first match wins
LOCATION_PATTERNS = [
    re.compile(r'\t{2,}(.*)'),        # field preceded by 2+ tabs
    re.compile(r'\t+(.*)\t{2,}'),     # field after a tab, followed by 2+ tabs
    re.compile(r'\t+(.*)'),           # field after a tab
]


class UnknownLocationError(LookupError):
    """Raised when a requested location is not part of the catalog."""
    def __init__(self, location: str):
        super().__init__(f"Unknown location: {location!r}")
        self.location = location


def extract_location(line: str) -> str:
    """Extract the location field from one listing row ('' if none)."""
    for pattern in LOCATION_PATTERNS:
        match = pattern.search(line)
        if match:
            field = match.group(1)
            # Trailing per-row metadata shares the line after the next tab
            return field.split('\t', 1)[0].strip()
    return ''


def parse_locations(raw_listing: str, favorites: Sequence[str] = (),
                    header_lines: int = HEADER_LINES) -> Tuple[str, ...]:
    """
    Parse a raw provider listing into an ordered, duplicate-free tuple.

    Favorites come first in their configured order, whether or not they
    appear in the listing; the remaining parsed locations follow in listing
    order. Rows without a location field are logged and skipped.
    """
    rows = (raw_listing or '').splitlines()[header_lines:]

    parsed: List[str] = []
    unparsable: List[str] = []
    for row in rows:
        if not row.strip():
            continue
        location = extract_location(row)
        if location:
            parsed.append(location)
        else:
            unparsable.append(row)

    if unparsable:
        log_message(1, f"Warning: cannot parse {len(unparsable)} location row(s): {unparsable}")

    ordered = dict.fromkeys(favorites)
    for location in parsed:
        ordered.setdefault(location)
    return tuple(ordered)


class LocationCatalog:
    """
    Immutable catalog of selectable locations.

    Provides methods for:
    - Validating requested locations (NONE_OPTION is always valid)
    - Resolving a Status to a catalog member or NONE_OPTION
    - Building the option list published to Home Assistant
    """

    def __init__(self, locations: Iterable[str]):
        self._locations: Tuple[str, ...] = tuple(dict.fromkeys(locations))
        self._members = frozenset(self._locations)

    @classmethod
    def from_listing(cls, raw_listing: str, favorites: Sequence[str] = (),
                     header_lines: int = HEADER_LINES) -> "LocationCatalog":
        return cls(parse_locations(raw_listing, favorites, header_lines))

    @classmethod
    def load(cls, cli, favorites: Sequence[str] = (), header_lines: int = HEADER_LINES) -> "LocationCatalog":
        """
        Load the catalog from the VPN client.

        Raises:
            ProcessError: if the listing command cannot be run
        """
        log_message(3, "Loading location list from VPN client")
        result = cli.list_all()
        catalog = cls.from_listing(result.stdout or '', favorites, header_lines)
        log_message(2, f"Loaded {len(catalog)} locations ({len(favorites)} favorites)")
        return catalog

    @property
    def locations(self) -> Tuple[str, ...]:
        return self._locations

    def find(self, query: str) -> Optional[str]:
        """Return the catalog entry for query, NONE_OPTION for the sentinel, None if unknown."""
        if query == NONE_OPTION:
            return NONE_OPTION
        if query in self._members:
            return query
        return None

    def require(self, query: str) -> str:
        """Like find() but raises UnknownLocationError for unknown input."""
        location = self.find(query)
        if location is None:
            raise UnknownLocationError(query)
        return location

    def resolve(self, status) -> str:
        """Location implied by a Status: a catalog member or NONE_OPTION."""
        location = getattr(status, "location", None)
        if getattr(status, "is_connected", False) and location in self._members:
            return location
        return NONE_OPTION

    def options(self) -> List[str]:
        """Option list for the Home Assistant input_select."""
        return [NONE_OPTION, *self._locations]

    def __contains__(self, location) -> bool:
        return location in self._members

    def __iter__(self) -> Iterator[str]:
        return iter(self._locations)

    def __len__(self) -> int:
        return len(self._locations)

    def __repr__(self) -> str:
        return f"LocationCatalog({len(self._locations)} locations)"
