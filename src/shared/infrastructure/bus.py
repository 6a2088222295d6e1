"""In-memory event bus and the post-commit publishing hook."""

from __future__ import annotations

from functools import partial
from typing import Dict, Iterable, List, Type

import structlog
from django.db import transaction

from shared.domain.bus import IEventBus, IEventHandler
from shared.domain.events import DomainEvent

logger = structlog.get_logger(__name__)


class InMemoryEventBus(IEventBus):
    """Simple in-process event bus.

    Handlers run synchronously in subscription order.
    """

    def __init__(self) -> None:
        self._handlers: Dict[Type[DomainEvent], List[IEventHandler]] = {}

    def subscribe(self, event_class: Type[DomainEvent], handler: IEventHandler) -> None:
        handlers = self._handlers.setdefault(event_class, [])
        if handler not in handlers:
            handlers.append(handler)

    def publish(self, event: DomainEvent) -> None:
        handlers = self._handlers.get(type(event), [])
        logger.debug(
            "event_bus.publish",
            event_name=event.event_name,
            aggregate_id=str(event.aggregate_id),
            handler_count=len(handlers),
        )
        for handler in handlers:
            handler.handle(event)


def publish_on_commit(events: Iterable[DomainEvent], bus: IEventBus | None = None) -> None:
    """Publish *events* once the surrounding transaction commits.

    Outside a transaction Django runs the callback immediately.  A failing
    handler is logged by Django and does not affect the committed work.
    """
    target = bus or event_bus
    for event in events:
        transaction.on_commit(partial(target.publish, event), robust=True)


# Global bus instance (singleton)

event_bus = InMemoryEventBus()
