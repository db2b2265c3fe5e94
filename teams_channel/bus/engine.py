"""In-process event bus with ordered, short-circuiting middleware chains."""

import logging
from collections.abc import Awaitable, Callable

from teams_channel.bus.models import (
    DispatchOutcome,
    Event,
    EventDirection,
    MiddlewareDefinition,
)

logger = logging.getLogger(__name__)

DefaultHandler = Callable[[Event], Awaitable[None]]


class MiddlewareError(Exception):
    """Raised when a middleware registration is invalid."""

    pass


class EventBus:
    """Routes events through the middleware registered for their direction.

    Middleware run in ascending ``order``. Each returns one MiddlewareResult:
    an error or ``forward=False`` stops the chain, and ``continue_default=False``
    marks the event as handled so the default handler for its direction is
    skipped.
    """

    def __init__(self):
        self._middleware: dict[EventDirection, list[MiddlewareDefinition]] = {
            EventDirection.INCOMING: [],
            EventDirection.OUTGOING: [],
        }
        self._default_handlers: dict[EventDirection, DefaultHandler] = {}

    def register_middleware(self, middleware: MiddlewareDefinition) -> None:
        """Add a middleware to the chain of its direction.

        Args:
            middleware: Middleware definition

        Raises:
            MiddlewareError: If a middleware with the same name is already registered
        """
        chain = self._middleware[middleware.direction]
        if any(m.name == middleware.name for m in chain):
            raise MiddlewareError(f"Middleware already registered: {middleware.name}")

        chain.append(middleware)
        chain.sort(key=lambda m: m.order)
        logger.info(
            f"Registered {middleware.direction.value} middleware {middleware.name} "
            f"(order={middleware.order})"
        )

    def unregister_middleware(self, name: str) -> None:
        """Remove a middleware by name from every chain."""
        for direction, chain in self._middleware.items():
            self._middleware[direction] = [m for m in chain if m.name != name]

    def list_middleware(self, direction: EventDirection) -> list[str]:
        """Get the names of the middleware of a direction, in execution order."""
        return [m.name for m in self._middleware[direction]]

    def set_default_handler(self, direction: EventDirection, handler: DefaultHandler) -> None:
        """Set the handler run for events no middleware fully handled."""
        self._default_handlers[direction] = handler

    async def send_event(self, event: Event) -> DispatchOutcome:
        """Run an event through its middleware chain.

        Args:
            event: Event to dispatch

        Returns:
            DispatchOutcome describing who handled the event and any error
        """
        outcome = DispatchOutcome(event_id=event.id)

        for middleware in list(self._middleware[event.direction]):
            result = await middleware.handler(event)
            outcome.processed_by.append(middleware.name)

            if result.error is not None:
                logger.error(
                    f"Middleware {middleware.name} failed on {event.direction.value} "
                    f"event {event.id} (channel={event.channel}, type={event.type}): "
                    f"{result.error}",
                    exc_info=result.error,
                )
                outcome.error = result.error
                return outcome

            if not result.continue_default:
                outcome.handled = True

            if not result.forward:
                break

        if not outcome.handled:
            default_handler = self._default_handlers.get(event.direction)
            if default_handler is not None:
                await default_handler(event)
                outcome.handled = True
            else:
                logger.debug(
                    f"No handler took {event.direction.value} event {event.id} "
                    f"(channel={event.channel}, type={event.type})"
                )

        return outcome
