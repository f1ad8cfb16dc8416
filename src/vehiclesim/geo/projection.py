# vehiclesim/geo/projection.py
"""
Nearest-point-on-route projection.

Given a route and an arbitrary position, find the closest point lying on any
route segment and the part of the route still ahead of it. This is computed
from scratch on every call, independent of the traversal engine's own
segment bookkeeping.

Coordinate space:
  All distances for one route are measured in a single local planar frame
  (equirectangular meters anchored at the route's first waypoint). The frame
  is derived from the route alone, so every comparison made for that route
  uses the same space. The frame is a linear map of latitude/longitude, so a
  foot parameter found in the plane interpolates identically in degrees.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from vehiclesim.geo.geodesy import EARTH_RADIUS_M, GeoPoint, interpolate
from vehiclesim.route.model import Route

_M_PER_DEG = math.pi / 180.0 * EARTH_RADIUS_M


@dataclass(frozen=True)
class LocalFrame:
    """Equirectangular tangent plane in meters around an origin point."""

    origin: GeoPoint
    lon_scale: float

    @classmethod
    def for_route(cls, route: Route) -> LocalFrame:
        origin = route.first
        return cls(origin=origin, lon_scale=math.cos(math.radians(origin.latitude)))

    def to_xy(self, p: GeoPoint) -> tuple[float, float]:
        x = (p.longitude - self.origin.longitude) * self.lon_scale * _M_PER_DEG
        y = (p.latitude - self.origin.latitude) * _M_PER_DEG
        return x, y


@dataclass(frozen=True)
class ProjectionResult:
    segment_index: int
    fraction: float
    closest_point: GeoPoint
    distance_sq: float  # squared meters in the route's LocalFrame


def project(route: Route, point: GeoPoint) -> ProjectionResult:
    """
    Closest point to `point` on any segment of `route`.

    The foot parameter is clamped to [0, 1] (point-to-segment, not
    point-to-line). On equal squared distances the earliest segment wins, so
    routes that revisit the same geography resolve deterministically.
    Zero-length segments project to their start (t = 0).
    """
    frame = LocalFrame.for_route(route)
    px, py = frame.to_xy(point)
    xy = [frame.to_xy(p) for p in route]

    best_index = 0
    best_t = 0.0
    best_d2 = math.inf

    for i, ((ax, ay), (bx, by)) in enumerate(zip(xy, xy[1:])):
        dx = bx - ax
        dy = by - ay
        seg2 = dx * dx + dy * dy
        if seg2 == 0.0:
            t = 0.0
        else:
            t = max(0.0, min(1.0, ((px - ax) * dx + (py - ay) * dy) / seg2))
        fx = ax + t * dx
        fy = ay + t * dy
        d2 = (px - fx) ** 2 + (py - fy) ** 2

        # strict: ties keep the earlier segment
        if d2 < best_d2:
            best_index, best_t, best_d2 = i, t, d2

    closest = interpolate(route[best_index], route[best_index + 1], best_t)
    return ProjectionResult(
        segment_index=best_index,
        fraction=best_t,
        closest_point=closest,
        distance_sq=best_d2,
    )


def remaining_path(route: Route, point: GeoPoint) -> tuple[GeoPoint, ...]:
    """
    The route from the projection of `point` to the route's end.

    Returns the closest point followed by every waypoint after the matched
    segment's start. Waypoints identical to the closest point are not
    repeated. An empty tuple means fewer than two points remain and the
    rendered trail should be hidden.
    """
    res = project(route, point)
    tail = route.points[res.segment_index + 1:]
    while tail and tail[0] == res.closest_point:
        tail = tail[1:]
    path = (res.closest_point,) + tail
    return path if len(path) >= 2 else ()
