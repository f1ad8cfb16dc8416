import pytest

from vehiclesim.config import SimulationConfig
from vehiclesim.errors import InvalidSpeedError, ReentrantAdvanceError
from vehiclesim.geo.geodesy import GeoPoint, distance_m
from vehiclesim.route.model import Route
from vehiclesim.simulate.engine import CompletionSummary, StateSnapshot, TraversalEngine
from vehiclesim.simulate.events import ROUTE_COMPLETED, STATE_UPDATED


def _running(route, **cfg):
    engine = TraversalEngine(route, SimulationConfig(**cfg))
    engine.start()
    return engine


def test_new_engine_sits_on_first_point(l_route):
    engine = TraversalEngine(l_route)
    snap = engine.snapshot()
    assert snap.position == l_route.first
    assert snap.cumulative_distance_km == 0.0
    assert snap.speed_kmh == 0.0
    assert not engine.running and not engine.finished


def test_advance_is_noop_when_not_running(l_route):
    engine = TraversalEngine(l_route)
    seen = []
    engine.channel.subscribe(seen.append)
    assert engine.advance(5.0) is None
    assert engine.cumulative_distance_m == 0.0
    assert seen == []


def test_advance_interpolates_within_segment(l_route):
    engine = _running(l_route)
    half = l_route.segment_lengths_m[0] / 2
    snap = engine.advance(half / 10.0)

    assert isinstance(snap, StateSnapshot)
    assert snap.segment_index == 0
    assert snap.position.latitude == pytest.approx(0.0005, abs=1e-9)
    assert snap.position.longitude == 0.0
    assert snap.bearing_deg == pytest.approx(0.0, abs=1e-9)
    assert snap.speed_kmh == pytest.approx(36.0)
    assert snap.cumulative_distance_km == pytest.approx(half / 1000.0)
    assert snap.running and not snap.finished


def test_advance_crosses_into_next_segment(l_route):
    engine = _running(l_route)
    budget = l_route.segment_lengths_m[0] + 30.0
    snap = engine.advance(budget / 10.0)

    assert snap.segment_index == 1
    assert engine.distance_into_segment_m == pytest.approx(30.0)
    assert snap.bearing_deg == pytest.approx(90.0, abs=1e-3)
    assert snap.position.latitude == pytest.approx(0.001, abs=1e-12)


def test_speed_multiplier_scales_distance(l_route):
    engine = _running(l_route, speed_multiplier=2.5)
    engine.advance(2.0)
    assert engine.cumulative_distance_m == pytest.approx(50.0)


def test_short_route_finishes_in_one_step():
    route = Route([GeoPoint(17.385044, 78.486671), GeoPoint(17.385070, 78.486700)])
    engine = _running(route)

    snap = engine.advance(1.0)

    assert engine.finished
    assert not engine.running
    assert snap.position == route.last
    assert snap.finished and not snap.running
    assert snap.speed_kmh == 0.0
    assert snap.cumulative_distance_km * 1000.0 == pytest.approx(distance_m(route.first, route.last))
    assert engine.distance_into_segment_m == 0.0


def test_zero_length_segment_is_skipped_within_one_call():
    a = GeoPoint(0.0, 0.0)
    b = GeoPoint(0.001, 0.0)
    c = GeoPoint(0.002, 0.0)
    route = Route([a, b, b, c])
    engine = _running(route)

    engine.advance((route.segment_lengths_m[0] + 50.0) / 10.0)

    assert engine.segment_index == 2
    assert engine.distance_into_segment_m == pytest.approx(50.0)
    assert engine.running


def test_zero_length_first_segment_does_not_stall():
    a = GeoPoint(0.0, 0.0)
    route = Route([a, a, GeoPoint(0.001, 0.0)])
    engine = _running(route)

    engine.advance(0.0)
    assert engine.segment_index == 1
    engine.advance(1.0)
    assert engine.cumulative_distance_m == pytest.approx(10.0)


def test_coincident_route_finishes_immediately():
    a = GeoPoint(5.0, 5.0)
    engine = _running(Route([a, a]))
    snap = engine.advance(0.1)
    assert engine.finished
    assert snap.position == a
    assert snap.cumulative_distance_km == 0.0


def test_cumulative_distance_is_monotonic_and_bounded(l_route):
    engine = _running(l_route)
    total = l_route.total_distance_m
    previous = 0.0
    for delta in [0.3, 1.7, 0.0, 4.2, 2.9, 8.8, 0.05, 3.3, 6.1, 100.0, 1.0]:
        engine.advance(delta)
        assert previous <= engine.cumulative_distance_m <= total
        previous = engine.cumulative_distance_m
    assert engine.finished


def test_negative_delta_moves_nothing(l_route):
    engine = _running(l_route)
    engine.advance(1.0)
    engine.advance(-5.0)
    assert engine.cumulative_distance_m == pytest.approx(10.0)


def test_one_big_step_matches_many_small_steps(l_route):
    big = _running(l_route)
    big.advance(30.0)

    small = _running(l_route)
    for _ in range(300):
        small.advance(0.1)

    for engine in (big, small):
        assert engine.finished
        assert not engine.running
        assert engine.position == l_route.last
    assert small.cumulative_distance_m == pytest.approx(big.cumulative_distance_m)


def test_start_is_noop_when_finished(l_route):
    engine = _running(l_route)
    engine.advance(1000.0)
    engine.start()
    assert not engine.running
    assert engine.advance(1.0) is None


def test_pause_is_idempotent_and_stops_progress(l_route):
    engine = _running(l_route)
    engine.advance(1.0)
    engine.pause()
    engine.pause()
    assert engine.advance(1.0) is None
    assert engine.cumulative_distance_m == pytest.approx(10.0)
    engine.start()
    engine.advance(1.0)
    assert engine.cumulative_distance_m == pytest.approx(20.0)


def test_reset_rewinds_and_publishes(l_route):
    engine = _running(l_route)
    engine.advance(15.0)
    seen = []
    engine.channel.subscribe(seen.append)

    snap = engine.reset()

    assert seen == [snap]
    assert snap.position == l_route.first
    assert snap.cumulative_distance_km == 0.0
    assert snap.bearing_deg == l_route.segment_bearings_deg[0]
    assert snap.elapsed_seconds == 0.0
    assert not engine.running
    assert engine.segment_index == 0


def test_reset_makes_finished_engine_runnable_again(l_route):
    engine = _running(l_route)
    engine.advance(1000.0)
    engine.reset()
    assert not engine.finished
    engine.start()
    assert engine.running
    engine.advance(1.0)
    assert engine.cumulative_distance_m == pytest.approx(10.0)


def test_negative_speed_is_rejected_and_prior_kept(l_route):
    engine = TraversalEngine(l_route)
    engine.set_speed_multiplier(3.0)
    with pytest.raises(InvalidSpeedError):
        engine.set_speed_multiplier(-0.5)
    assert engine.speed_multiplier == 3.0


@pytest.mark.parametrize("value", [float("nan"), float("inf")])
def test_non_finite_speed_is_rejected_and_prior_kept(l_route, value):
    engine = _running(l_route)
    with pytest.raises(InvalidSpeedError):
        engine.set_speed_multiplier(value)
    assert engine.speed_multiplier == 1.0

    engine.advance(1.0)
    assert engine.cumulative_distance_m == pytest.approx(10.0)


@pytest.mark.parametrize(
    "cfg",
    [
        {"speed_multiplier": -2.0},
        {"speed_multiplier": float("nan")},
        {"base_speed_mps": -1.0},
        {"base_speed_mps": float("inf")},
    ],
)
def test_invalid_configured_speed_is_rejected(l_route, cfg):
    with pytest.raises(InvalidSpeedError):
        TraversalEngine(l_route, SimulationConfig(**cfg))


def test_speed_change_publishes_and_applies_next_advance(l_route):
    engine = _running(l_route)
    engine.advance(1.0)
    seen = []
    engine.channel.subscribe(seen.append)

    snap = engine.set_speed_multiplier(0.0)
    assert seen == [snap]
    assert snap.speed_kmh == 0.0
    assert snap.cumulative_distance_km == pytest.approx(0.01)

    engine.advance(5.0)
    assert engine.cumulative_distance_m == pytest.approx(10.0)


def test_completion_summary_published_once(l_route):
    engine = _running(l_route)
    done = []
    engine.channel.subscribe(done.append, ROUTE_COMPLETED)

    engine.advance(10.0)
    engine.advance(100.0)
    engine.advance(100.0)

    assert len(done) == 1
    summary = done[0]
    assert isinstance(summary, CompletionSummary)
    assert summary.total_distance_km == pytest.approx(l_route.total_distance_m / 1000.0)
    assert summary.duration_seconds == pytest.approx(110.0)
    assert summary.duration_text == "1:50"


def test_completion_summary_survives_reset_from_subscriber(l_route):
    engine = _running(l_route)
    engine.channel.subscribe(lambda snap: engine.reset() if snap.finished else None)
    done = []
    engine.channel.subscribe(done.append, ROUTE_COMPLETED)

    engine.advance(1000.0)

    assert engine.cumulative_distance_m == 0.0
    assert done == [CompletionSummary(l_route.total_distance_m / 1000.0, 1000.0)]


def test_nested_advance_from_subscriber_is_rejected(l_route):
    engine = _running(l_route)
    handle = engine.channel.subscribe(lambda _snap: engine.advance(1.0), STATE_UPDATED)

    with pytest.raises(ReentrantAdvanceError):
        engine.advance(1.0)

    # the guard is released afterwards
    engine.channel.unsubscribe(handle)
    assert engine.advance(1.0) is not None


def test_subscriber_can_pause_during_dispatch(l_route):
    engine = _running(l_route)
    engine.channel.subscribe(lambda snap: engine.pause() if snap.cumulative_distance_km > 0.02 else None)

    for _ in range(10):
        engine.advance(1.0)

    assert not engine.running
    assert engine.cumulative_distance_m == pytest.approx(30.0)


def test_engines_are_independent(l_route):
    first = _running(l_route)
    second = _running(l_route)
    first.advance(3.0)
    assert second.cumulative_distance_m == 0.0
    assert first.channel is not second.channel


def test_debug_logging_uses_prefix(l_route, capsys):
    engine = TraversalEngine(l_route, SimulationConfig(debug=True, log_prefix="[T]"))
    engine.start()
    engine.advance(1.0)
    out = capsys.readouterr().out
    assert "[T] Started at segment 0" in out
    assert out.count("\n") == 1


def test_no_logging_by_default(l_route, capsys):
    engine = _running(l_route)
    engine.advance(1000.0)
    engine.reset()
    assert capsys.readouterr().out == ""
