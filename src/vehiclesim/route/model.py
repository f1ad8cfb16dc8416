# vehiclesim/route/model.py
"""
Route model for vehiclesim.

A Route is an immutable, ordered sequence of at least two waypoints. Segment
lengths and bearings are computed once at construction so the traversal
engine never recomputes geometry per tick.

Waypoints may carry timestamps (from a recorded trace). Timestamps are not
used for traversal; they only feed the recorded-speed helpers.
"""

from __future__ import annotations

import datetime as _dt
from collections.abc import Iterable, Iterator, Mapping, Sequence
from typing import Any, Optional

from vehiclesim.errors import InvalidRouteError, RouteFormatError
from vehiclesim.geo.geodesy import GeoPoint, bearing_deg, distance_m, segment_speed_kmh
from vehiclesim.util.timefmt import parse_time_utc


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


class Route:
    """
    Ordered, immutable sequence of GeoPoint waypoints (length >= 2).

    Construction validates the points and raises InvalidRouteError rather
    than substituting placeholder geography.
    """

    __slots__ = ("_points", "_timestamps", "_lengths", "_bearings", "_total")

    def __init__(
        self,
        points: Iterable[GeoPoint],
        timestamps: Optional[Sequence[Optional[_dt.datetime]]] = None,
    ) -> None:
        self._points: tuple[GeoPoint, ...] = tuple(points)
        self._timestamps: Optional[tuple[Optional[_dt.datetime], ...]] = (
            tuple(timestamps) if timestamps is not None else None
        )
        self.validate()

        pairs = list(zip(self._points, self._points[1:]))
        self._lengths = tuple(distance_m(a, b) for a, b in pairs)
        self._bearings = tuple(bearing_deg(a, b) for a, b in pairs)
        self._total = sum(self._lengths)

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, Any]]) -> Route:
        """
        Build a route from records with numeric `latitude`/`longitude` and an
        optional ISO-8601 `timestamp`.

        Raises RouteFormatError for malformed records and InvalidRouteError
        when fewer than two records are supplied.
        """
        points: list[GeoPoint] = []
        stamps: list[Optional[_dt.datetime]] = []
        for i, rec in enumerate(records):
            if not isinstance(rec, Mapping):
                raise RouteFormatError(f"Record {i} is not an object: {rec!r}")
            try:
                lat = rec["latitude"]
                lon = rec["longitude"]
            except KeyError as e:
                raise RouteFormatError(f"Record {i} is missing field {e}") from e
            if not (_is_number(lat) and _is_number(lon)):
                raise RouteFormatError(f"Record {i} has non-numeric coordinates: {lat!r}, {lon!r}")

            raw_ts = rec.get("timestamp")
            ts = parse_time_utc(raw_ts) if isinstance(raw_ts, str) else None
            if raw_ts is not None and ts is None:
                raise RouteFormatError(f"Record {i} has an unparseable timestamp: {raw_ts!r}")

            points.append(GeoPoint(float(lat), float(lon)))
            stamps.append(ts)

        has_time = any(ts is not None for ts in stamps)
        return cls(points, stamps if has_time else None)

    def validate(self) -> None:
        if len(self._points) < 2:
            raise InvalidRouteError(
                f"A route needs at least 2 waypoints, got {len(self._points)}"
            )
        if self._timestamps is not None and len(self._timestamps) != len(self._points):
            raise InvalidRouteError(
                f"Got {len(self._timestamps)} timestamps for {len(self._points)} waypoints"
            )

    # ------------------------------------------------------------------
    # Read-only accessors
    # ------------------------------------------------------------------
    def __len__(self) -> int:
        return len(self._points)

    def __getitem__(self, index: int) -> GeoPoint:
        return self._points[index]

    def __iter__(self) -> Iterator[GeoPoint]:
        return iter(self._points)

    def __repr__(self) -> str:
        return f"Route({len(self._points)} points, {self._total:.1f} m)"

    def point(self, index: int) -> GeoPoint:
        return self._points[index]

    @property
    def points(self) -> tuple[GeoPoint, ...]:
        return self._points

    @property
    def first(self) -> GeoPoint:
        return self._points[0]

    @property
    def last(self) -> GeoPoint:
        return self._points[-1]

    @property
    def segment_count(self) -> int:
        return len(self._points) - 1

    @property
    def segment_lengths_m(self) -> tuple[float, ...]:
        return self._lengths

    @property
    def segment_bearings_deg(self) -> tuple[float, ...]:
        return self._bearings

    @property
    def total_distance_m(self) -> float:
        return self._total

    @property
    def has_timestamps(self) -> bool:
        return self._timestamps is not None

    def timestamp(self, index: int) -> Optional[_dt.datetime]:
        if self._timestamps is None:
            return None
        return self._timestamps[index]

    def recorded_speed_kmh(self, index: int) -> float:
        """
        Recorded speed arriving at waypoint `index` (from index-1), in km/h.

        0.0 for the first waypoint, for untimed routes, and for steps whose
        timestamps do not increase.
        """
        if index <= 0 or index >= len(self._points):
            return 0.0
        return segment_speed_kmh(
            self._points[index - 1],
            self._points[index],
            self.timestamp(index - 1),
            self.timestamp(index),
        )
