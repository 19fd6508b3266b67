import logging

from giftcard_webhooks.schemas.square import Payout, WebhookEvent
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


def handle_payout_created(event: WebhookEvent, db: Session) -> None:
    payout = event.decode_object(Payout, "payout")
    logger.info(f"Payout created: {payout.id}, Amount: {payout.amount_money}")


def handle_payout_updated(event: WebhookEvent, db: Session) -> None:
    payout = event.decode_object(Payout, "payout")
    logger.info(f"Payout updated: {payout.id}, Status: {payout.status}")


HANDLERS = {
    "payout.created": handle_payout_created,
    "payout.updated": handle_payout_updated,
}
