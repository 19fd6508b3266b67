import logging
from functools import lru_cache

from giftcard_webhooks.schemas.square import WebhookEvent
from giftcard_webhooks.webhooks.errors import HandlerFailure
from giftcard_webhooks.webhooks.idempotency import IdempotencyStore, get_idempotency_store
from giftcard_webhooks.webhooks.registry import build_default_router
from giftcard_webhooks.webhooks.router import DispatchOutcome, EventRouter
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


class WebhookProcessor:
    """Deduplicates an event, dispatches it and absorbs handler failures.

    Handler failures are logged and acknowledged rather than retried, so the
    provider is never pushed into a redelivery storm.
    """

    def __init__(self, router: EventRouter, store: IdempotencyStore | None = None):
        self.router = router
        self.store = store

    def process(self, event: WebhookEvent, db: Session) -> DispatchOutcome:
        claimed = False
        if self.store is not None and event.id:
            if not self.store.claim(event.id):
                logger.info(f"Duplicate webhook skipped: {event.type} (event {event.id})")
                return DispatchOutcome.DUPLICATE
            claimed = True

        try:
            return self.router.dispatch(event, db)
        except HandlerFailure as failure:
            logger.error(
                f"Error processing webhook event {event.type} (event {event.id})",
                exc_info=failure.__cause__ or failure,
            )
            if claimed:
                self.store.release(event.id)
            return DispatchOutcome.FAILED
        except BaseException:
            # Let the provider's retry through
            if claimed:
                self.store.release(event.id)
            raise


@lru_cache
def get_router() -> EventRouter:
    return build_default_router()


def get_processor() -> WebhookProcessor:
    return WebhookProcessor(get_router(), get_idempotency_store())
