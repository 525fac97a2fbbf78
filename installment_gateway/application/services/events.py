"""In-process domain event bus."""

from collections import defaultdict
from typing import Any, Awaitable, Callable, Dict, List, Type

import structlog

logger = structlog.get_logger(__name__)

EventHandler = Callable[[Any], Awaitable[Any]]


class DomainEventBus:
    """
    Synchronous publish/subscribe for domain events.

    Handlers run in subscription order inside the publisher's unit of
    work; a handler error propagates to the publisher.
    """

    def __init__(self) -> None:
        self._handlers: Dict[Type, List[EventHandler]] = defaultdict(list)

    def subscribe(self, event_type: Type, handler: EventHandler) -> None:
        self._handlers[event_type].append(handler)

    async def publish(self, event: Any) -> List[Any]:
        """Deliver ``event`` to its handlers and return their results."""
        handlers = self._handlers.get(type(event), [])
        if not handlers:
            logger.debug("event_unhandled", event_type=type(event).__name__)
            return []

        results = []
        for handler in handlers:
            results.append(await handler(event))
        return results
