import logging

from giftcard_webhooks.db import crud, schemas
from giftcard_webhooks.schemas.square import Revocation, WebhookEvent
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


def handle_oauth_revoked(event: WebhookEvent, db: Session) -> None:
    """Payment processing stops working until the merchant re-authorizes."""
    revocation = event.decode_object(Revocation, "revocation")
    logger.critical(
        f"Square OAuth authorization revoked by {revocation.revoker_type} "
        f"for merchant {event.merchant_id}. Payment processing will fail until re-authorized."
    )
    crud.create_fraud_alert(
        db,
        schemas.FraudAlertCreate(
            alert_type="oauth_revoked",
            severity="critical",
            description=(
                f"Square OAuth authorization revoked by {revocation.revoker_type}. "
                "Payment processing may be affected."
            ),
            metadata={
                "merchantId": event.merchant_id,
                "revokedAt": (
                    revocation.revoked_at.isoformat() if revocation.revoked_at else None
                ),
                "revokerType": revocation.revoker_type,
                "eventId": event.id,
            },
        ),
    )


HANDLERS = {
    "oauth.authorization.revoked": handle_oauth_revoked,
}
