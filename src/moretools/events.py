"""Change notifications for views that show registry or layout data.

Views display derived fields (item text, icons, placement) and re-read them
when told that a service was (re-)registered or that a user layout changed.
Events are published synchronously after the state change is complete, so a
listener always observes the new state.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable
from weakref import WeakMethod

logger = logging.getLogger(__name__)

Listener = Callable[[Any], None]


@dataclass(slots=True)
class Event:
    """Base class for all moretools events.

    Subscribing to :class:`Event` itself delivers every event.
    """


@dataclass(slots=True)
class ServiceRegistered(Event):
    """Emitted once a service has been located and its record stored.

    Attributes:
        unique_id: The registry the service belongs to.
        desktop_entry_name: Identifier of the registered service.
        installed: Whether the service was found on this system.
        replaced: True when an earlier record for the same identifier was replaced.
    """

    unique_id: str
    desktop_entry_name: str
    installed: bool
    replaced: bool = False


@dataclass(slots=True)
class UserLayoutChanged(Event):
    """Emitted after persisted placement overrides of a namespace were written.

    Attributes:
        namespace: The configuration namespace that changed.
        item_id: The item whose placement changed, or ``None`` after a reset.
        section: The new section value, or ``None`` when the override was removed.
    """

    namespace: str
    item_id: str | None = None
    section: str | None = None


class _Subscription:
    """One listener registration. Bound methods are held weakly."""

    __slots__ = ("event_type", "active", "_target", "_weak")

    def __init__(self, event_type: type[Event], listener: Listener) -> None:
        self.event_type = event_type
        self.active = True
        self._weak = inspect.ismethod(listener)
        self._target: Any = WeakMethod(listener) if self._weak else listener

    def listener(self) -> Listener | None:
        return self._target() if self._weak else self._target

    def is_for(self, event_type: type[Event], listener: Listener) -> bool:
        return self.event_type is event_type and self.listener() == listener


class EventBus:
    """Delivers :class:`ServiceRegistered` and :class:`UserLayoutChanged` events.

    Listeners run in subscription order. A listener that raises is logged and
    the remaining listeners still run. Views that go away without
    unsubscribing are dropped once their bound method is collected.

    Not thread-safe; use it from the thread that owns the registry.
    """

    __slots__ = ("_subscriptions",)

    def __init__(self) -> None:
        self._subscriptions: list[_Subscription] = []

    def subscribe(self, event_type: type[Event], listener: Listener) -> None:
        """Call ``listener`` for every published instance of ``event_type``."""

        self._subscriptions.append(_Subscription(event_type, listener))
        logger.debug("Subscribed %s to %s", _describe(listener), event_type.__name__)

    def unsubscribe(self, event_type: type[Event], listener: Listener) -> bool:
        """Remove the first matching registration; return whether one was found."""

        for subscription in self._subscriptions:
            if subscription.is_for(event_type, listener):
                subscription.active = False
                self._subscriptions.remove(subscription)
                return True
        return False

    def publish(self, event: Event) -> int:
        """Deliver ``event`` and return how many listeners were called."""

        delivered = 0
        # listeners may subscribe or unsubscribe while the event is delivered
        for subscription in list(self._subscriptions):
            if not subscription.active or not isinstance(event, subscription.event_type):
                continue
            listener = subscription.listener()
            if listener is None:
                continue
            delivered += 1
            try:
                listener(event)
            except Exception:
                logger.exception("Listener %s failed on %s", _describe(listener), type(event).__name__)
        self._subscriptions = [item for item in self._subscriptions if item.listener() is not None]
        logger.debug("Delivered %s to %d listener(s)", type(event).__name__, delivered)
        return delivered

    def clear(self) -> None:
        for subscription in self._subscriptions:
            subscription.active = False
        self._subscriptions = []

    def handler_count(self, event_type: type[Event] | None = None) -> int:
        """Count live registrations, optionally only those for ``event_type``."""

        return sum(
            1
            for subscription in self._subscriptions
            if subscription.listener() is not None and (event_type is None or subscription.event_type is event_type)
        )


def _describe(listener: Listener) -> str:
    return getattr(listener, "__qualname__", None) or repr(listener)


__all__ = [
    "Event",
    "EventBus",
    "Listener",
    "ServiceRegistered",
    "UserLayoutChanged",
]
