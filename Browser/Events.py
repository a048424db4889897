"""
Browser/Events.py — Synchronous observer used by the browser to announce
navigation milestones.

Listeners are plain callables taking an :class:`Event`. They run in
registration order on the caller's stack; a listener may call
``event.args.stop_propagation()`` to keep later listeners from running.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

ON_ERROR = "error"
ON_LOAD = "load"
ON_UNLOAD = "unload"
ON_REQUEST = "request"
ON_RESPONSE = "response"


@dataclass
class EventArgs:
    """Arguments passed along with an event."""

    values: dict[str, Any] = field(default_factory=dict)
    error: Optional[BaseException] = None
    _stopped: bool = field(default=False, repr=False)

    def stop_propagation(self) -> None:
        """Prevent any further listener from receiving this event."""
        self._stopped = True

    @property
    def is_stopped(self) -> bool:
        return self._stopped

    def get(self, key: str, default: Any = None) -> Any:
        return self.values.get(key, default)


@dataclass
class Event:
    """A dispatched event: its name, the object that raised it, and its args."""

    name: str
    target: Any
    args: EventArgs


Listener = Callable[[Event], None]


class EventTarget:
    """Ordered per-event listener lists with synchronous dispatch."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = {}

    def add_event_listener(self, event: str, listener: Listener) -> None:
        """Register *listener* for *event*; a listener may be added more than once."""
        self._listeners.setdefault(event, []).append(listener)

    def remove_event_listener(self, event: str, listener: Listener) -> bool:
        """Remove the first registration of *listener*; return whether one was found."""
        listeners = self._listeners.get(event, [])
        try:
            listeners.remove(listener)
        except ValueError:
            return False
        return True

    def listeners(self, event: str) -> list[Listener]:
        return list(self._listeners.get(event, []))

    def dispatch_event(
        self,
        event: str,
        target: Any,
        args: Optional[EventArgs] = None,
    ) -> Event:
        """Call every listener of *event* in order and return the dispatched :class:`Event`.

        Exceptions raised by a listener propagate to the dispatcher's caller.
        The browser dispatches ``load`` after a navigation is committed, so a
        raising load listener does not roll the navigation back.
        """
        dispatched = Event(name=event, target=target, args=args or EventArgs())
        listeners = self.listeners(event)
        if listeners:
            logger.debug("Dispatching '%s' to %d listener(s)", event, len(listeners))
        for listener in listeners:
            listener(dispatched)
            if dispatched.args.is_stopped:
                break
        return dispatched
