import logging

from giftcard_webhooks.celery_app import celery
from giftcard_webhooks.db.session import SessionLocal
from giftcard_webhooks.schemas.square import WebhookEvent
from giftcard_webhooks.webhooks.processor import get_processor

logger = logging.getLogger(__name__)


@celery.task(bind=True)
def process_webhook_event(self, payload: dict, session=None):
    """Dispatch a verified webhook payload outside the request cycle."""
    if self.request.id:
        logger.info(f"Task ID: {self.request.id}")
    if session is None:
        session = SessionLocal()
        should_close = True
    else:
        should_close = False

    try:
        event = WebhookEvent.model_validate(payload)
        outcome = get_processor().process(event, session)
        logger.info(f"Webhook event {event.type} (event {event.id}) {outcome.value}")
        return {"event_id": event.id, "outcome": outcome.value}
    finally:
        if should_close:
            session.close()
