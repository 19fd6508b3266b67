import logging

from giftcard_webhooks.db import crud, schemas
from giftcard_webhooks.schemas.square import Refund, WebhookEvent
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


def handle_refund_created(event: WebhookEvent, db: Session) -> None:
    refund = event.decode_object(Refund, "refund")
    logger.info(f"Refund created: {refund.id}, Amount: {refund.amount_money}")
    crud.create_fraud_alert(
        db,
        schemas.FraudAlertCreate(
            alert_type="refund_created",
            severity="low",
            description=f"Refund created for {refund.amount_money}",
            metadata={"refundId": refund.id, "paymentId": refund.payment_id},
        ),
    )


def handle_refund_updated(event: WebhookEvent, db: Session) -> None:
    refund = event.decode_object(Refund, "refund")
    logger.info(f"Refund updated: {refund.id}, Status: {refund.status}")


HANDLERS = {
    "refund.created": handle_refund_created,
    "refund.updated": handle_refund_updated,
}
