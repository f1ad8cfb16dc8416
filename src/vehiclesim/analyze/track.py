# vehiclesim/analyze/track.py
"""
Route statistics for vehiclesim
"""

from __future__ import annotations

from vehiclesim.geo.geodesy import speed_kmh
from vehiclesim.route.model import Route


def compute_step_metrics(route: Route):
    """Return per-step dt (s), distance (m), speed (km/h) for timed steps."""
    dts = []
    ds = []
    vs = []

    for i, d_m in enumerate(route.segment_lengths_m):
        t0 = route.timestamp(i)
        t1 = route.timestamp(i + 1)
        if t0 is None or t1 is None:
            continue
        dt_s = (t1 - t0).total_seconds()
        if dt_s <= 0:
            continue

        dts.append(dt_s)
        ds.append(d_m)
        vs.append(speed_kmh(d_m, dt_s))

    return dts, ds, vs


def analyze_route(route: Route):
    dts, ds, vs = compute_step_metrics(route)
    duration = sum(dts)

    return {
        "points": len(route),
        "segments": route.segment_count,
        "distance_m": route.total_distance_m,
        "duration_s": duration,
        "avg_speed_kmh": speed_kmh(sum(ds), duration),
        "max_speed_kmh": max(vs) if vs else 0.0,
    }
