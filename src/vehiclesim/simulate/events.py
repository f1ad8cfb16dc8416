# vehiclesim/simulate/events.py
"""
Publish/subscribe channel between the traversal engine and its observers.

Handlers are called synchronously, in registration order, on the
publisher's stack. Dispatch iterates over a copy of the handler list, so a
handler may unsubscribe itself (or others) while being called; such changes
apply from the next publish. Exceptions raised by handlers propagate to the
caller of publish().
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

STATE_UPDATED = "state_updated"
ROUTE_COMPLETED = "route_completed"

Handler = Callable[[Any], None]


@dataclass(frozen=True, eq=False)
class SubscriptionHandle:
    """Token returned by subscribe(); compares by identity."""

    event: str
    handler: Handler = field(repr=False)


class NotificationChannel:
    def __init__(self) -> None:
        self._handles: dict[str, list[SubscriptionHandle]] = {}

    def subscribe(self, handler: Handler, event: str = STATE_UPDATED) -> SubscriptionHandle:
        handle = SubscriptionHandle(event=event, handler=handler)
        self._handles.setdefault(event, []).append(handle)
        return handle

    def unsubscribe(self, handle: SubscriptionHandle) -> bool:
        """Remove a subscription. Returns False if it was not registered."""
        handles = self._handles.get(handle.event, [])
        for i, h in enumerate(handles):
            if h is handle:
                del handles[i]
                return True
        return False

    def publish(self, event: str, payload: Any) -> int:
        """Deliver `payload` to every handler of `event`; returns the count."""
        snapshot = list(self._handles.get(event, ()))
        for handle in snapshot:
            handle.handler(payload)
        return len(snapshot)

    def subscriber_count(self, event: str = STATE_UPDATED) -> int:
        return len(self._handles.get(event, ()))
