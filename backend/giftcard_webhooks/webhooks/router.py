"""Event-type routing for Square webhook events.

Handlers are plain callables ``handler(event, db)`` registered against an
exact event-type string. A router is populated once at startup; unknown
types are logged and acknowledged without side effects.
"""

import enum
import logging
from typing import Callable, Iterable

from giftcard_webhooks.schemas.square import WebhookEvent
from giftcard_webhooks.webhooks.errors import HandlerFailure, UnhandledEventType
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

Handler = Callable[[WebhookEvent, Session], None]


class DispatchOutcome(str, enum.Enum):
    HANDLED = "handled"
    UNHANDLED = "unhandled"
    DUPLICATE = "duplicate"
    FAILED = "failed"


class EventRouter:
    def __init__(self, handlers: dict[str, Handler] | None = None):
        self._handlers: dict[str, Handler] = {}
        for event_type, handler in (handlers or {}).items():
            self.add(event_type, handler)

    def add(self, event_type: str, handler: Handler) -> None:
        if event_type in self._handlers:
            raise ValueError(f"Handler already registered for {event_type}")
        self._handlers[event_type] = handler

    def register(self, event_type: str) -> Callable[[Handler], Handler]:
        def decorator(handler: Handler) -> Handler:
            self.add(event_type, handler)
            return handler

        return decorator

    def update(self, handlers: dict[str, Handler]) -> None:
        for event_type, handler in handlers.items():
            self.add(event_type, handler)

    def resolve(self, event_type: str) -> Handler:
        try:
            return self._handlers[event_type]
        except KeyError:
            raise UnhandledEventType(event_type) from None

    def event_types(self) -> Iterable[str]:
        return sorted(self._handlers)

    def __contains__(self, event_type: str) -> bool:
        return event_type in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)

    def dispatch(self, event: WebhookEvent, db: Session) -> DispatchOutcome:
        """Run the handler registered for ``event.type``.

        Returns UNHANDLED for unknown types. Raises HandlerFailure, chained to
        the original error, when the handler fails; the session is rolled back
        first so the caller can keep using it.
        """
        try:
            handler = self.resolve(event.type)
        except UnhandledEventType:
            logger.info(f"Unhandled webhook event type: {event.type} (event {event.id})")
            return DispatchOutcome.UNHANDLED

        logger.info(f"Processing webhook event: {event.type} (event {event.id})")
        try:
            handler(event, db)
        except Exception as exc:
            db.rollback()
            raise HandlerFailure(event.type, event.id) from exc
        return DispatchOutcome.HANDLED
