from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence

import structlog

from taskdeque.core.engine.sequencer import Sequencer
from taskdeque.core.events.table import EventHandler

log = structlog.get_logger()


class EventComponent(Protocol):
    """
    An object bundling several sequencer event handlers, e.g. JournalWriter.
    """

    def subscriptions(self) -> Sequence[tuple[str, EventHandler]]:
        ...


@dataclass(frozen=True, slots=True)
class Attachment:
    """
    The handlers attach() registered on one sequencer.
    """

    sequencer: Sequencer
    bindings: tuple[tuple[str, EventHandler], ...]

    def detach(self) -> None:
        # off() matches by identity, so these must be the objects that were registered
        for event, handler in self.bindings:
            self.sequencer.off(event, handler)
        log.debug("sequencer.detached", sequencer=self.sequencer.name, handlers=len(self.bindings))


def attach(sequencer: Sequencer, *components: EventComponent) -> Attachment:
    """
    Register every component's handlers on `sequencer`, components in the
    given order. A component listing the same handler twice for one event
    is rejected before anything is registered.
    """
    bindings: list[tuple[str, EventHandler]] = []
    for component in components:
        own: list[tuple[str, EventHandler]] = []
        for event, handler in component.subscriptions():
            # Bound methods compare equal when they wrap the same function and object
            if (event, handler) in own:
                raise ValueError(f"{type(component).__name__} subscribes {event!r} twice with the same handler")
            own.append((event, handler))
        bindings.extend(own)

    for event, handler in bindings:
        sequencer.on(event, handler)

    log.debug("sequencer.attached", sequencer=sequencer.name, handlers=len(bindings))
    return Attachment(sequencer=sequencer, bindings=tuple(bindings))
