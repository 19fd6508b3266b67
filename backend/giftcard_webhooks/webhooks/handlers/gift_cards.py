import logging
from decimal import Decimal

from giftcard_webhooks.db import crud, schemas
from giftcard_webhooks.schemas.square import (
    GiftCard,
    GiftCardActivity,
    GiftCardCustomerLink,
    Money,
    WebhookEvent,
    minor_to_decimal,
)
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


def _balance(money: Money | None) -> Decimal:
    return minor_to_decimal(money.amount if money else None)


def handle_gift_card_created(event: WebhookEvent, db: Session) -> None:
    gift_card = event.decode_object(GiftCard, "gift_card")
    logger.info(
        f"Gift card created via webhook: {gift_card.id}, Type: {gift_card.type}, "
        f"State: {gift_card.state}, Balance: {_balance(gift_card.balance_money)}"
    )
    if not gift_card.gan:
        return
    local_card = crud.get_gift_card_by_code(db, gift_card.gan)
    if local_card and not local_card.square_gift_card_id:
        crud.update_gift_card_square_id(db, local_card.id, gift_card.id)
        logger.info(f"Linked local gift card {local_card.id} to Square card {gift_card.id}")


def handle_gift_card_updated(event: WebhookEvent, db: Session) -> None:
    gift_card = event.decode_object(GiftCard, "gift_card")
    balance = _balance(gift_card.balance_money)
    logger.info(f"Gift card updated: {gift_card.id}, Balance: {balance}")
    if not gift_card.gan:
        return
    local_card = crud.get_gift_card_by_code(db, gift_card.gan)
    if local_card is None:
        logger.info(f"No local gift card for Square card {gift_card.id}")
        return
    crud.update_gift_card_balance(db, local_card.id, balance)


def handle_gift_card_activity_created(event: WebhookEvent, db: Session) -> None:
    activity = event.decode_object(GiftCardActivity, "gift_card_activity")
    balance = _balance(activity.gift_card_balance_money)
    logger.info(
        f"Gift card activity created: {activity.type} (activity {activity.id}), "
        f"New Balance: {balance}"
    )
    if activity.activate_activity_details:
        details = activity.activate_activity_details
        logger.info(
            f"  Activation Amount: {_balance(details.amount_money)}, Order ID: {details.order_id}"
        )
    if not activity.gift_card_gan:
        return
    local_card = crud.get_gift_card_by_code(db, activity.gift_card_gan)
    if local_card is None:
        return
    crud.create_gift_card_transaction(
        db,
        schemas.GiftCardTransactionCreate(
            gift_card_id=local_card.id,
            type=activity.type.lower(),
            amount=balance,
            balance_after=balance,
            notes=f"Square activity: {activity.type}, Activity ID: {activity.id}",
            square_transaction_id=activity.id,
        ),
    )


def handle_gift_card_activity_updated(event: WebhookEvent, db: Session) -> None:
    activity = event.decode_object(GiftCardActivity, "gift_card_activity")
    balance = _balance(activity.gift_card_balance_money)
    logger.info(
        f"Gift card activity updated: {activity.type} (activity {activity.id}), "
        f"New Balance: {balance}"
    )
    if not activity.gift_card_gan:
        return
    local_card = crud.get_gift_card_by_code(db, activity.gift_card_gan)
    if local_card:
        crud.update_gift_card_balance(db, local_card.id, balance)


def handle_gift_card_customer_linked(event: WebhookEvent, db: Session) -> None:
    link = event.decode_object(GiftCardCustomerLink)
    logger.info(
        f"Gift card {link.gift_card.id} linked to customer {link.linked_customer_id}"
    )


def handle_gift_card_customer_unlinked(event: WebhookEvent, db: Session) -> None:
    link = event.decode_object(GiftCardCustomerLink)
    logger.info(
        f"Gift card {link.gift_card.id} unlinked from customer {link.unlinked_customer_id}"
    )


HANDLERS = {
    "gift_card.created": handle_gift_card_created,
    "gift_card.updated": handle_gift_card_updated,
    "gift_card.activity.created": handle_gift_card_activity_created,
    "gift_card.activity.updated": handle_gift_card_activity_updated,
    "gift_card.customer_linked": handle_gift_card_customer_linked,
    "gift_card.customer_unlinked": handle_gift_card_customer_unlinked,
}
