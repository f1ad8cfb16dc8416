# vehiclesim/formats/gpx.py
"""
GPX route input for vehiclesim

This module is intentionally format-focused:
- GPX namespace handling
- safely reading an ElementTree
- extracting ordered points (and their times) into a Route

Track points (<trkpt>) are preferred. Files with no track points fall back
to route points (<rtept>). Elevation is ignored.
"""

from __future__ import annotations

import datetime as _dt
from pathlib import Path
from typing import Optional
from xml.etree import ElementTree as ET

from vehiclesim.errors import InvalidGpxError
from vehiclesim.geo.geodesy import GeoPoint
from vehiclesim.route.model import Route
from vehiclesim.util.timefmt import parse_time_utc

# GPX 1.1 default namespace
GPX_NS = {"gpx": "http://www.topografix.com/GPX/1/1"}


def qn(tag: str) -> str:
    """
    Build an ElementTree-qualified name for a GPX tag.

    ElementTree represents namespaced tags internally as
      "{namespace-uri}tag"
    """
    return f"{{{GPX_NS['gpx']}}}{tag}"


def read_gpx(path: Path) -> ET.ElementTree:
    """
    Read a GPX file into an ElementTree.

    Raises:
      InvalidGpxError
    """
    try:
        return ET.parse(path)
    except (ET.ParseError, OSError) as e:
        raise InvalidGpxError(f"Cannot parse GPX file: {path} ({e})") from e


def extract_points(
    tree: ET.ElementTree,
) -> tuple[list[GeoPoint], list[Optional[_dt.datetime]]]:
    """Extract ordered (points, times) from trkpt, or rtept if no trkpt exists."""
    root = tree.getroot()
    nodes = root.findall(".//gpx:trkpt", GPX_NS) or root.findall(".//gpx:rtept", GPX_NS)

    points: list[GeoPoint] = []
    times: list[Optional[_dt.datetime]] = []
    for node in nodes:
        try:
            lat = float(node.get("lat"))
            lon = float(node.get("lon"))
        except (TypeError, ValueError):
            continue  # skip points without usable coordinates

        points.append(GeoPoint(lat, lon))
        times.append(parse_time_utc(node.findtext("gpx:time", default="", namespaces=GPX_NS)))

    return points, times


def read_gpx_route(path: Path) -> Route:
    """
    Load a GPX file as a Route.

    Timestamps are attached only when every point has one.
    """
    points, times = extract_points(read_gpx(path))
    if len(points) < 2:
        raise InvalidGpxError(f"GPX file has {len(points)} usable point(s), need at least 2: {path}")

    timed = all(t is not None for t in times)
    return Route(points, times if timed else None)
