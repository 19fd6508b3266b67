import logging

from giftcard_webhooks.db import crud, schemas
from giftcard_webhooks.schemas.square import (
    OrderCreated,
    OrderFulfillmentUpdated,
    OrderUpdated,
    WebhookEvent,
)
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

ORDER_STATE_STATUS = {"COMPLETED": "completed", "CANCELED": "failed"}


def handle_order_created(event: WebhookEvent, db: Session) -> None:
    order = event.decode_object(OrderCreated, "order_created")
    logger.info(
        f"Order created: {order.order_id}, Location ID: {order.location_id}, "
        f"State: {order.state}, Version: {order.version}"
    )
    crud.record_order(
        db,
        schemas.PaymentRecordCreate(
            order_id=order.order_id,
            location_id=order.location_id,
            state=order.state,
            type="order_created",
            metadata=event.model_dump(mode="json"),
        ),
    )


def handle_order_updated(event: WebhookEvent, db: Session) -> None:
    order = event.decode_object(OrderUpdated, "order_updated")
    logger.info(
        f"Order updated: {order.order_id}, State: {order.state}, Version: {order.version}"
    )
    status = ORDER_STATE_STATUS.get(order.state or "")
    if status:
        crud.update_transaction_status(db, order.order_id, status)


def handle_order_fulfillment_updated(event: WebhookEvent, db: Session) -> None:
    order = event.decode_object(OrderFulfillmentUpdated, "order_fulfillment_updated")
    logger.info(f"Order fulfillment updated: {order.order_id}, State: {order.state}")
    for update in order.fulfillment_update:
        logger.info(
            f"  Fulfillment {update.fulfillment_uid}: {update.old_state} -> {update.new_state}"
        )
        if update.new_state == "FAILED":
            crud.create_fraud_alert(
                db,
                schemas.FraudAlertCreate(
                    alert_type="fulfillment_failed",
                    severity="medium",
                    description=f"Order fulfillment failed for order {order.order_id}",
                    metadata={
                        "orderId": order.order_id,
                        "fulfillmentUid": update.fulfillment_uid,
                    },
                ),
            )


HANDLERS = {
    "order.created": handle_order_created,
    "order.updated": handle_order_updated,
    "order.fulfillment.updated": handle_order_fulfillment_updated,
}
