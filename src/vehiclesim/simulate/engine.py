# vehiclesim/simulate/engine.py
"""
Traversal engine: the single source of truth for where the vehicle is.

The engine advances a cursor along a Route by distance, driven by elapsed
time supplied by the host:

    distance = speed_multiplier * base_speed_mps * delta_seconds

It owns no timer. The host (or vehiclesim.simulate.driver.drive) calls
advance() once per tick, and only after the previous call returned.

States:
    Paused  <-> Running
    Finished is a Paused sub-state, entered by reaching the last waypoint
    and left only through reset().

Every state change (advance, reset, speed change) publishes a StateSnapshot
on the engine's NotificationChannel under STATE_UPDATED. Reaching the end
additionally publishes a CompletionSummary under ROUTE_COMPLETED.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from vehiclesim.config import SimulationConfig
from vehiclesim.errors import InvalidSpeedError, ReentrantAdvanceError
from vehiclesim.geo.geodesy import GeoPoint, interpolate
from vehiclesim.route.model import Route
from vehiclesim.simulate.events import ROUTE_COMPLETED, STATE_UPDATED, NotificationChannel
from vehiclesim.util.logging import log
from vehiclesim.util.timefmt import format_duration


@dataclass(frozen=True)
class StateSnapshot:
    position: GeoPoint
    bearing_deg: float
    speed_kmh: float
    cumulative_distance_km: float
    segment_index: int
    running: bool
    finished: bool
    elapsed_seconds: float


@dataclass(frozen=True)
class CompletionSummary:
    total_distance_km: float
    duration_seconds: float

    @property
    def duration_text(self) -> str:
        return format_duration(self.duration_seconds)


def _check_speed(value: float, name: str) -> float:
    """Return `value` as a float, or raise InvalidSpeedError unless finite and >= 0."""
    if not (value >= 0) or math.isinf(value):
        raise InvalidSpeedError(f"{name} must be a finite number >= 0, got {value}")
    return float(value)


class TraversalEngine:
    """
    Continuous, distance-based traversal of a Route.

    Each instance owns its own state; instances never share mutable state.
    """

    def __init__(
        self,
        route: Route,
        config: Optional[SimulationConfig] = None,
        *,
        channel: Optional[NotificationChannel] = None,
    ) -> None:
        self._route = route
        self._config = config or SimulationConfig()
        self._channel = channel or NotificationChannel()
        self._lengths = route.segment_lengths_m
        self._bearings = route.segment_bearings_deg
        self._last_segment = route.segment_count - 1

        _check_speed(self._config.base_speed_mps, "Base speed")
        self._speed_multiplier = _check_speed(self._config.speed_multiplier, "Speed multiplier")
        self._running = False
        self._finished = False
        self._advancing = False
        self._rewind()

    def _rewind(self) -> None:
        self._segment_index = 0
        self._distance_into_segment = 0.0
        self._cumulative = 0.0
        self._elapsed = 0.0
        self._finished = False
        self._position = self._route.first

    def _log(self, msg: str) -> None:
        if self._config.debug:
            log(msg, prefix=self._config.log_prefix)

    # ------------------------------------------------------------------
    # Read-only properties
    # ------------------------------------------------------------------
    @property
    def route(self) -> Route:
        return self._route

    @property
    def channel(self) -> NotificationChannel:
        return self._channel

    @property
    def config(self) -> SimulationConfig:
        return self._config

    @property
    def running(self) -> bool:
        return self._running

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def speed_multiplier(self) -> float:
        return self._speed_multiplier

    @property
    def segment_index(self) -> int:
        return self._segment_index

    @property
    def distance_into_segment_m(self) -> float:
        return self._distance_into_segment

    @property
    def cumulative_distance_m(self) -> float:
        return self._cumulative

    @property
    def position(self) -> GeoPoint:
        return self._position

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def start(self) -> None:
        if self._running or self._finished:
            return
        self._running = True
        self._log(f"Started at segment {self._segment_index}")

    def pause(self) -> None:
        if not self._running:
            return
        self._running = False
        self._log(f"Paused at {self._cumulative / 1000.0:.3f} km")

    def reset(self) -> StateSnapshot:
        """Pause, rewind to the first waypoint, and publish immediately."""
        self.pause()
        self._rewind()
        self._log("Reset to start of route")
        return self._publish()

    def set_speed_multiplier(self, value: float) -> StateSnapshot:
        """
        Set the speed multiplier used from the next advance on.

        Raises InvalidSpeedError for negative, NaN or infinite values; the
        previous multiplier is kept in that case.
        """
        self._speed_multiplier = _check_speed(value, "Speed multiplier")
        self._log(f"Speed multiplier set to {self._speed_multiplier}")
        return self._publish()

    # ------------------------------------------------------------------
    # Core step
    # ------------------------------------------------------------------
    def advance(self, delta_seconds: float) -> Optional[StateSnapshot]:
        """
        Move the cursor by the distance covered in `delta_seconds`.

        Returns the published snapshot, or None when the engine is not
        running (nothing is published then). Negative deltas move nothing.
        """
        if self._advancing:
            raise ReentrantAdvanceError("advance() called while another advance() is in flight")
        if not self._running or self._finished:
            return None

        self._advancing = True
        try:
            just_finished = self._step(max(0.0, delta_seconds))
            # Captured before dispatch: subscribers may reset the engine.
            summary = self.completion_summary() if just_finished else None
            snapshot = self._publish()
            if summary is not None:
                self._log(f"Route completed: {summary.total_distance_km:.3f} km")
                self._channel.publish(ROUTE_COMPLETED, summary)
            return snapshot
        finally:
            self._advancing = False

    def _step(self, delta_seconds: float) -> bool:
        move = self._speed_multiplier * self._config.base_speed_mps * delta_seconds
        self._elapsed += delta_seconds
        self._distance_into_segment += move
        self._cumulative += move

        # Whole segments covered by the budget; zero-length ones cost nothing.
        while (
            self._segment_index < self._last_segment
            and self._distance_into_segment >= self._lengths[self._segment_index]
        ):
            self._distance_into_segment -= self._lengths[self._segment_index]
            self._segment_index += 1

        length = self._lengths[self._segment_index]
        if self._distance_into_segment >= length:
            # Reached the final waypoint
            self._position = self._route.last
            self._distance_into_segment = 0.0
            self._cumulative = self._route.total_distance_m
            self._running = False
            self._finished = True
            return True

        self._cumulative = min(self._cumulative, self._route.total_distance_m)
        fraction = self._distance_into_segment / length if length > 0 else 1.0
        self._position = interpolate(
            self._route[self._segment_index],
            self._route[self._segment_index + 1],
            fraction,
        )
        return False

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------
    def snapshot(self) -> StateSnapshot:
        """Build the current snapshot without publishing it."""
        speed_kmh = (
            self._speed_multiplier * self._config.base_speed_mps * 3.6
            if self._running
            else 0.0
        )
        return StateSnapshot(
            position=self._position,
            bearing_deg=self._bearings[self._segment_index],
            speed_kmh=speed_kmh,
            cumulative_distance_km=self._cumulative / 1000.0,
            segment_index=self._segment_index,
            running=self._running,
            finished=self._finished,
            elapsed_seconds=self._elapsed,
        )

    def completion_summary(self) -> CompletionSummary:
        return CompletionSummary(
            total_distance_km=self._cumulative / 1000.0,
            duration_seconds=self._elapsed,
        )

    def _publish(self) -> StateSnapshot:
        snapshot = self.snapshot()
        self._channel.publish(STATE_UPDATED, snapshot)
        return snapshot
