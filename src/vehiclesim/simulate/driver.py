# vehiclesim/simulate/driver.py
"""
Self-chaining tick loop for hosts without their own frame scheduler.

The next tick is scheduled only after the previous advance() returned, so at
most one advance is ever in flight. Time is read from `clock` and waiting is
done with `sleep`; both are injectable so tests can feed synthetic time.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Optional

from vehiclesim.simulate.engine import TraversalEngine
from vehiclesim.util.logging import log_error


def drive(
    engine: TraversalEngine,
    *,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
    interval: Optional[float] = None,
    max_ticks: Optional[int] = None,
) -> int:
    """
    Start `engine` and advance it on a fixed cadence until it pauses or
    finishes (or `max_ticks` ticks have run, after which it is paused).
    Returns the number of ticks.

    The first tick advances by 0 s so observers get an initial snapshot.
    If a tick raises, the engine is paused and the error re-raised.
    """
    if interval is None:
        interval = engine.config.tick_interval_s

    engine.start()
    ticks = 0
    last = clock()
    while engine.running:
        if max_ticks is not None and ticks >= max_ticks:
            engine.pause()
            break
        now = clock()
        try:
            engine.advance(now - last)
        except Exception as e:
            engine.pause()
            log_error(f"Tick {ticks + 1} failed; simulation paused", e, prefix=engine.config.log_prefix)
            raise
        last = now
        ticks += 1
        if not engine.running:
            break
        sleep(max(0.0, interval - (clock() - now)))
    return ticks
