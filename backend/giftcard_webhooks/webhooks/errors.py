"""Failure taxonomy for inbound webhook processing."""


class SignatureInvalid(Exception):
    """The delivery could not be authenticated; nothing is processed."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class UnhandledEventType(LookupError):
    """No handler is registered for the event type."""

    def __init__(self, event_type: str):
        super().__init__(f"No handler registered for event type {event_type!r}")
        self.event_type = event_type


class HandlerFailure(Exception):
    """A handler raised while applying an event's side effects."""

    def __init__(self, event_type: str, event_id: str | None):
        super().__init__(f"Handler for {event_type} failed (event {event_id})")
        self.event_type = event_type
        self.event_id = event_id
