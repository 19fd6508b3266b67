import logging

from giftcard_webhooks.db import crud, schemas
from giftcard_webhooks.schemas.square import Dispute, DisputeEvidence, WebhookEvent
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


def _upsert(db: Session, dispute: Dispute) -> None:
    money = dispute.amount_money
    crud.upsert_dispute(
        db,
        schemas.DisputeUpsert(
            square_dispute_id=dispute.id,
            state=dispute.state,
            payment_id=dispute.payment_id,
            reason=dispute.reason,
            amount=money.to_decimal() if money else None,
            currency=money.currency if money else None,
        ),
    )


def handle_dispute_created(event: WebhookEvent, db: Session) -> None:
    dispute = event.decode_object(Dispute, "dispute")
    amount = dispute.amount_money or "an unknown amount"
    logger.warning(f"Dispute created: {dispute.id}, Amount: {amount}, Reason: {dispute.reason}")
    _upsert(db, dispute)
    crud.create_fraud_alert(
        db,
        schemas.FraudAlertCreate(
            alert_type="dispute_created",
            severity="high",
            description=f"Dispute created for {amount}. Reason: {dispute.reason}",
            metadata={"disputeId": dispute.id, "paymentId": dispute.payment_id},
        ),
    )


def handle_dispute_updated(event: WebhookEvent, db: Session) -> None:
    dispute = event.decode_object(Dispute, "dispute")
    logger.info(f"Dispute updated: {dispute.id}, State: {dispute.state}")
    _upsert(db, dispute)


def handle_dispute_evidence_created(event: WebhookEvent, db: Session) -> None:
    evidence = event.decode_object(DisputeEvidence, "evidence")
    dispute_id = evidence.dispute_id or event.data.id
    logger.info(f"Dispute evidence created: {evidence.evidence_id} for dispute {dispute_id}")
    if dispute_id and crud.add_dispute_evidence(db, dispute_id) is None:
        logger.info(f"Evidence received for unknown dispute {dispute_id}")


HANDLERS = {
    "dispute.created": handle_dispute_created,
    "dispute.updated": handle_dispute_updated,
    "dispute.evidence.created": handle_dispute_evidence_created,
}
