import logging

from giftcard_webhooks.db import crud
from giftcard_webhooks.schemas.square import Customer, WebhookEvent
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


def handle_customer_created(event: WebhookEvent, db: Session) -> None:
    customer = event.decode_object(Customer, "customer")
    logger.info(f"Customer created: {customer.id}, Source: {customer.creation_source}")


def handle_customer_updated(event: WebhookEvent, db: Session) -> None:
    customer = event.decode_object(Customer, "customer")
    logger.info(f"Customer updated: {customer.id}, Version: {customer.version}")
    if not customer.email_address:
        return
    user = crud.get_user_by_email(db, customer.email_address)
    if user and not user.square_customer_id:
        crud.update_user_square_customer_id(db, user.id, customer.id)
        logger.info(f"Updated local user {user.id} with Square customer ID")


def handle_customer_deleted(event: WebhookEvent, db: Session) -> None:
    logger.info(f"Customer deleted: {event.data.id}, Deleted status: {event.data.deleted}")


HANDLERS = {
    "customer.created": handle_customer_created,
    "customer.updated": handle_customer_updated,
    "customer.deleted": handle_customer_deleted,
}
