# vehiclesim/formats/route_json.py
"""
JSON route input.

Expected shape: an array of records, each with numeric `latitude` and
`longitude` (degrees) and an optional ISO-8601 `timestamp`:

    [
      {"latitude": 17.385044, "longitude": 78.486671, "timestamp": "2024-07-20T10:00:00Z"},
      ...
    ]

Loading a file is the caller's concern; the traversal core never touches disk.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from vehiclesim.errors import RouteFormatError
from vehiclesim.route.model import Route

# Demo trace used when a caller explicitly opts into a fallback route.
FALLBACK_RECORDS: tuple[dict[str, Any], ...] = (
    {"latitude": 17.385044, "longitude": 78.486671, "timestamp": "2024-07-20T10:00:00Z"},
    {"latitude": 17.385045, "longitude": 78.486672, "timestamp": "2024-07-20T10:00:05Z"},
    {"latitude": 17.385050, "longitude": 78.486680, "timestamp": "2024-07-20T10:00:10Z"},
    {"latitude": 17.385060, "longitude": 78.486690, "timestamp": "2024-07-20T10:00:15Z"},
    {"latitude": 17.385070, "longitude": 78.486700, "timestamp": "2024-07-20T10:00:20Z"},
)


def parse_route_records(records: Iterable[Mapping[str, Any]]) -> Route:
    return Route.from_records(records)


def load_route_json(path: Path) -> Route:
    """
    Read a JSON route file.

    Raises:
      RouteFormatError: unreadable file, invalid JSON, non-array document,
        or malformed records
      InvalidRouteError: fewer than two records
    """
    try:
        doc = json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as e:
        raise RouteFormatError(f"Cannot read route file: {path} ({e})") from e
    except json.JSONDecodeError as e:
        raise RouteFormatError(f"Route file is not valid JSON: {path} ({e})") from e

    if not isinstance(doc, list):
        raise RouteFormatError(f"Route file must contain a JSON array: {path}")
    return parse_route_records(doc)


def fallback_route() -> Route:
    """The five-point demo route (about 4 m long, 5 s between points)."""
    return parse_route_records(FALLBACK_RECORDS)
