"""Simple publish/subscribe event bus used between the game and its views."""
from __future__ import annotations

from collections import defaultdict
from types import MethodType
from typing import Any, Callable, Dict, List, Union
from weakref import WeakMethod

EventCallback = Callable[..., None]
Subscriber = Union[EventCallback, WeakMethod]


class EventBus:
    """Minimalistic event dispatcher.

    Subscribers register callbacks for string based event identifiers.  When an
    event is published all callbacks for that name are invoked with the supplied
    positional and keyword arguments.  Callbacks run synchronously and their
    exceptions propagate to the publisher.  Bound methods are held weakly so a
    discarded view does not keep receiving events.
    """

    def __init__(self) -> None:
        self._subscribers: Dict[str, List[Subscriber]] = defaultdict(list)

    def subscribe(self, event: str, callback: EventCallback) -> None:
        """Register ``callback`` to be invoked when ``event`` is published."""

        # Builtin bound methods such as ``list.append`` cannot be weakly referenced
        if isinstance(callback, MethodType):
            self._subscribers[event].append(WeakMethod(callback))
        else:
            self._subscribers[event].append(callback)

    def unsubscribe(self, event: str, callback: EventCallback) -> None:
        subs = self._subscribers.get(event, [])
        for cb in list(subs):
            target = cb() if isinstance(cb, WeakMethod) else cb
            if target == callback:
                subs.remove(cb)

    def publish(self, event: str, *args: Any, **kwargs: Any) -> None:
        """Invoke all callbacks subscribed to ``event``."""

        subs = self._subscribers.get(event, [])
        for cb in list(subs):
            if isinstance(cb, WeakMethod):
                func = cb()
                if func is None:
                    subs.remove(cb)
                    continue
                func(*args, **kwargs)
            else:
                cb(*args, **kwargs)

    def reset(self) -> None:
        """Drop every subscription."""
        self._subscribers.clear()


# Global bus instance used by modules -----------------------------------
EVENT_BUS = EventBus()

# Event name constants ---------------------------------------------------
ON_UNIT_SPAWNED = "on_unit_spawned"
ON_ABILITY_USED = "on_ability_used"
ON_NEXUS_CAPTURED = "on_nexus_captured"
ON_TURN_END = "on_turn_end"
ON_GAME_OVER = "on_game_over"
ON_INFO_MESSAGE = "on_info_message"
