from __future__ import annotations

from collections import defaultdict
from typing import Any, Callable, DefaultDict, TypeAlias

import structlog

log = structlog.get_logger()

EventHandler: TypeAlias = Callable[..., Any]


def _handler_name(handler: EventHandler) -> str:
    return getattr(handler, "__qualname__", None) or getattr(handler, "__name__", "handler")


class EventTable:
    """
    Deterministic synchronous handler table.

    - notify(event, *args) calls handlers registered for `event`
    - dispatch order is registration order
    - failures are fail-fast (raised to the notifier)
    """

    def __init__(self) -> None:
        self._handlers: DefaultDict[str, list[EventHandler]] = defaultdict(list)

    def on(self, event: str, handler: EventHandler) -> None:
        if not event:
            raise ValueError("event must be non-empty")
        if not callable(handler):
            raise TypeError(f"handler for {event!r} must be callable")
        self._handlers[event].append(handler)
        log.debug("events.subscribed", event_name=event, handler=_handler_name(handler))

    def off(self, event: str, handler: EventHandler) -> None:
        """
        Remove every registration of `handler` (by identity) for `event`.
        Survivors keep their relative order.
        """
        current = self._handlers.get(event)
        if not current:
            return
        survivors = [h for h in current if h is not handler]
        removed = len(current) - len(survivors)
        self._handlers[event] = survivors
        if removed:
            log.debug("events.unsubscribed", event_name=event, removed=removed)

    def notify(self, event: str, *args: Any) -> int:
        """
        Invoke handlers in registration order. Returns how many ran.
        """
        # Snapshot: handlers added or removed mid-dispatch apply to the next notify
        handlers = tuple(self._handlers.get(event, ()))
        if not handlers:
            return 0
        log.debug("events.notify", event_name=event, handlers=len(handlers))
        for handler in handlers:
            handler(*args)
        return len(handlers)

    def has_handlers(self, event: str) -> bool:
        return bool(self._handlers.get(event))

    def handlers_for(self, event: str) -> tuple[EventHandler, ...]:
        return tuple(self._handlers.get(event, ()))
