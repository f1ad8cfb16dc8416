# vehiclesim/geo/geodesy.py
"""
Great-circle helpers for vehiclesim.

All functions are total over floats: latitude/longitude values are not range
checked, so out-of-range input produces whatever the trigonometry yields.
"""

from __future__ import annotations

import datetime as _dt
import math
from dataclasses import dataclass
from typing import Optional

from haversine import Unit, haversine

EARTH_RADIUS_M = 6_371_000.0


@dataclass(frozen=True)
class GeoPoint:
    latitude: float
    longitude: float

    def as_tuple(self) -> tuple[float, float]:
        return (self.latitude, self.longitude)


def distance_m(a: GeoPoint, b: GeoPoint) -> float:
    """
    Haversine distance in meters on a sphere of radius EARTH_RADIUS_M.

    The haversine package returns the central angle when asked for radians;
    its coordinate range check is disabled so invalid input is not rejected.
    When rounding pushes the kernel outside asin's domain (near-antipodal
    points) the result is NaN instead of an exception.
    """
    try:
        angle = haversine(a.as_tuple(), b.as_tuple(), unit=Unit.RADIANS, check=False)
    except ValueError:
        return math.nan
    return EARTH_RADIUS_M * angle


def bearing_deg(a: GeoPoint, b: GeoPoint) -> float:
    """
    Initial compass bearing from a to b in degrees, normalized to [0, 360).

    For a == b both atan2 arguments are 0 and the result is 0.0.
    """
    lat1, lon1 = math.radians(a.latitude), math.radians(a.longitude)
    lat2, lon2 = math.radians(b.latitude), math.radians(b.longitude)
    d_lon = lon2 - lon1
    y = math.sin(d_lon) * math.cos(lat2)
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(d_lon)
    bearing = math.degrees(math.atan2(y, x)) % 360.0
    # -tiny % 360 rounds up to exactly 360.0
    return 0.0 if bearing >= 360.0 else bearing


def interpolate(a: GeoPoint, b: GeoPoint, fraction: float) -> GeoPoint:
    """Linear interpolation in latitude/longitude; fraction 0 is a, 1 is b."""
    if fraction <= 0.0:
        return a
    if fraction >= 1.0:
        return b
    return GeoPoint(
        latitude=a.latitude + (b.latitude - a.latitude) * fraction,
        longitude=a.longitude + (b.longitude - a.longitude) * fraction,
    )


def speed_kmh(distance: float, seconds: float) -> float:
    """Convert meters over seconds to km/h; 0 when no time elapsed."""
    return (distance / seconds) * 3.6 if seconds > 0 else 0.0


def segment_speed_kmh(
    a: GeoPoint,
    b: GeoPoint,
    t1: Optional[_dt.datetime],
    t2: Optional[_dt.datetime],
) -> float:
    """Recorded speed between two timestamped waypoints, in km/h."""
    if t1 is None or t2 is None:
        return 0.0
    return speed_kmh(distance_m(a, b), (t2 - t1).total_seconds())
