import logging

from giftcard_webhooks.db import crud
from giftcard_webhooks.schemas.square import Payment, WebhookEvent
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


def map_payment_status(square_status: str | None) -> str:
    if square_status == "COMPLETED":
        return "completed"
    if square_status == "FAILED":
        return "failed"
    return "pending"


def _sync_order_status(db: Session, payment: Payment) -> None:
    if not payment.order_id:
        return
    status = map_payment_status(payment.status)
    crud.update_transaction_status(db, payment.order_id, status, payment_id=payment.id)
    logger.info(f"Order {payment.order_id} marked {status}")


def handle_payment_created(event: WebhookEvent, db: Session) -> None:
    payment = event.decode_object(Payment, "payment")
    logger.info(
        f"Payment created: {payment.id}, Amount: {payment.amount_money}, "
        f"Status: {payment.status}, Order ID: {payment.order_id}"
    )
    if payment.card_details and payment.card_details.card:
        card = payment.card_details.card
        logger.info(f"  Card: {card.card_brand} ****{card.last_4}")
    if payment.risk_evaluation:
        logger.info(f"  Risk Level: {payment.risk_evaluation.risk_level}")
    _sync_order_status(db, payment)


def handle_payment_updated(event: WebhookEvent, db: Session) -> None:
    payment = event.decode_object(Payment, "payment")
    logger.info(f"Payment updated: {payment.id}, Status: {payment.status}")
    _sync_order_status(db, payment)


HANDLERS = {
    "payment.created": handle_payment_created,
    "payment.updated": handle_payment_updated,
}
