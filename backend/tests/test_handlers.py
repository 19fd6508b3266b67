from decimal import Decimal

import pytest
from giftcard_webhooks.db import crud, models, schemas
from giftcard_webhooks.schemas.square import WebhookEvent
from giftcard_webhooks.webhooks.router import DispatchOutcome


def _dispatch(router, db, payload: dict) -> DispatchOutcome:
    return router.dispatch(WebhookEvent.model_validate(payload), db)


def _alerts(db) -> list[models.FraudAlert]:
    return db.query(models.FraudAlert).all()


# ---------- payments ----------
@pytest.mark.parametrize(
    "square_status, expected",
    [
        ("COMPLETED", "completed"),
        ("FAILED", "failed"),
        ("APPROVED", "pending"),
        ("PENDING", "pending"),
        ("CANCELED", "pending"),
        (None, "pending"),
    ],
)
def test_payment_updated_maps_status(db, router, square_event, square_status, expected):
    crud.create_payment_record(db, schemas.PaymentRecordCreate(order_id="order-1"))
    payment = {"id": "pay-1", "order_id": "order-1", "status": square_status}

    _dispatch(router, db, square_event("payment.updated", {"payment": payment}))

    assert crud.get_transaction_status(db, "order-1") == expected


def test_payment_created_records_order_status(db, router, square_event):
    payment = {
        "id": "pay-1",
        "order_id": "order-9",
        "status": "COMPLETED",
        "amount_money": {"amount": 2500, "currency": "USD"},
        "card_details": {"card": {"card_brand": "VISA", "last_4": "1111"}},
        "risk_evaluation": {"risk_level": "NORMAL"},
    }

    _dispatch(router, db, square_event("payment.created", {"payment": payment}))

    record = db.query(models.PaymentRecord).filter_by(order_id="order-9").one()
    assert record.status == "completed"
    assert record.payment_id == "pay-1"


def test_payment_without_order_is_logged_only(db, router, square_event):
    payment = {"id": "pay-1", "status": "COMPLETED"}
    outcome = _dispatch(router, db, square_event("payment.updated", {"payment": payment}))

    assert outcome is DispatchOutcome.HANDLED
    assert db.query(models.PaymentRecord).count() == 0


def test_payment_updates_every_record_for_order(db, router, square_event):
    for record_type in ("order_created", "payment"):
        crud.create_payment_record(
            db, schemas.PaymentRecordCreate(order_id="order-1", type=record_type)
        )
    payment = {"id": "pay-1", "order_id": "order-1", "status": "FAILED"}

    _dispatch(router, db, square_event("payment.updated", {"payment": payment}))

    statuses = {r.status for r in db.query(models.PaymentRecord).filter_by(order_id="order-1")}
    assert statuses == {"failed"}


def test_camel_case_flattened_payment(db, router, square_event):
    payment = {"id": "pay-1", "orderId": "order-7", "status": "COMPLETED"}

    _dispatch(router, db, square_event("payment.updated", payment))

    assert crud.get_transaction_status(db, "order-7") == "completed"


# ---------- gift cards ----------
def test_gift_card_updated_sets_balance(db, router, square_event):
    card = crud.create_gift_card(db, "7783320001001635", Decimal("50.00"))
    gift_card = {
        "id": "gftc:1",
        "gan": "7783320001001635",
        "balance_money": {"amount": 3000, "currency": "USD"},
    }

    _dispatch(router, db, square_event("gift_card.updated", {"gift_card": gift_card}))

    db.refresh(card)
    assert card.current_balance == Decimal("30.00")
    assert card.initial_amount == Decimal("50.00")


def test_gift_card_updated_for_unknown_gan_is_noop(db, router, square_event):
    crud.create_gift_card(db, "1111", Decimal("10.00"))
    gift_card = {"id": "gftc:2", "gan": "2222", "balance_money": {"amount": 100}}

    outcome = _dispatch(router, db, square_event("gift_card.updated", {"gift_card": gift_card}))

    assert outcome is DispatchOutcome.HANDLED
    assert crud.get_gift_card_by_code(db, "1111").current_balance == Decimal("10.00")


def test_gift_card_created_links_square_id(db, router, square_event):
    card = crud.create_gift_card(db, "7783320001001635", Decimal("25.00"))
    gift_card = {"id": "gftc:abc", "gan": "7783320001001635", "state": "ACTIVE"}

    _dispatch(router, db, square_event("gift_card.created", {"gift_card": gift_card}))

    db.refresh(card)
    assert card.square_gift_card_id == "gftc:abc"


def test_gift_card_created_keeps_existing_link(db, router, square_event):
    card = crud.create_gift_card(db, "1234", Decimal("25.00"), square_gift_card_id="gftc:old")
    gift_card = {"id": "gftc:new", "gan": "1234"}

    _dispatch(router, db, square_event("gift_card.created", {"gift_card": gift_card}))

    db.refresh(card)
    assert card.square_gift_card_id == "gftc:old"


def test_gift_card_activity_created_records_transaction(db, router, square_event):
    card = crud.create_gift_card(db, "1234", Decimal("0.00"))
    activity = {
        "id": "gcact-1",
        "type": "ACTIVATE",
        "gift_card_gan": "1234",
        "gift_card_balance_money": {"amount": 5000, "currency": "USD"},
        "activate_activity_details": {"amount_money": {"amount": 5000}, "order_id": "o-1"},
    }

    _dispatch(
        router, db, square_event("gift_card.activity.created", {"gift_card_activity": activity})
    )

    txn = db.query(models.GiftCardTransaction).one()
    assert txn.gift_card_id == card.id
    assert txn.type == "activate"
    assert txn.amount == Decimal("50.00")
    assert txn.balance_after == Decimal("50.00")
    assert txn.square_transaction_id == "gcact-1"


def test_gift_card_activity_updated_sets_balance(db, router, square_event):
    card = crud.create_gift_card(db, "1234", Decimal("50.00"))
    activity = {
        "id": "gcact-2",
        "type": "REDEEM",
        "gift_card_gan": "1234",
        "gift_card_balance_money": {"amount": 1250},
    }

    _dispatch(
        router, db, square_event("gift_card.activity.updated", {"gift_card_activity": activity})
    )

    db.refresh(card)
    assert card.current_balance == Decimal("12.50")
    assert db.query(models.GiftCardTransaction).count() == 0


def test_gift_card_customer_link_is_log_only(db, router, square_event):
    obj = {"gift_card": {"id": "gftc:1"}, "linked_customer_id": "cust-1"}

    outcome = _dispatch(router, db, square_event("gift_card.customer_linked", obj))

    assert outcome is DispatchOutcome.HANDLED
    assert db.query(models.GiftCard).count() == 0


# ---------- refunds and disputes ----------
def test_refund_created_raises_low_alert(db, router, square_event):
    refund = {"id": "ref-1", "payment_id": "pay-1", "amount_money": {"amount": 1500}}

    _dispatch(router, db, square_event("refund.created", {"refund": refund}))

    (alert,) = _alerts(db)
    assert alert.alert_type == "refund_created"
    assert alert.severity == "low"
    assert alert.meta == {"refundId": "ref-1", "paymentId": "pay-1"}
    assert "15.00 USD" in alert.description


def test_refund_created_accepts_flattened_camel_case(db, router, square_event):
    refund = {"id": "ref-2", "paymentId": "pay-2", "amountMoney": {"amount": 999}}

    _dispatch(router, db, square_event("refund.created", refund))

    (alert,) = _alerts(db)
    assert alert.meta["paymentId"] == "pay-2"
    assert "9.99 USD" in alert.description


def test_refund_updated_is_log_only(db, router, square_event):
    _dispatch(router, db, square_event("refund.updated", {"refund": {"id": "ref-1"}}))
    assert _alerts(db) == []


def test_dispute_created_raises_single_high_alert(db, router, square_event):
    dispute = {
        "dispute_id": "dp-1",
        "state": "EVIDENCE_REQUIRED",
        "reason": "NOT_AS_DESCRIBED",
        "amount_money": {"amount": 4200, "currency": "USD"},
        "disputed_payment": {"payment_id": "pay-1"},
    }

    _dispatch(router, db, square_event("dispute.created", {"dispute": dispute}))

    (alert,) = _alerts(db)
    assert alert.severity == "high"
    assert alert.alert_type == "dispute_created"
    assert alert.meta == {"disputeId": "dp-1", "paymentId": "pay-1"}

    row = crud.get_dispute(db, "dp-1")
    assert row.state == "EVIDENCE_REQUIRED"
    assert row.amount == Decimal("42.00")
    assert row.payment_id == "pay-1"


def test_dispute_updated_upserts_without_alert(db, router, square_event):
    dispute = {"id": "dp-1", "state": "PROCESSING"}
    _dispatch(router, db, square_event("dispute.updated", {"dispute": dispute}))

    dispute["state"] = "WON"
    _dispatch(router, db, square_event("dispute.updated", {"dispute": dispute}, event_id="evt-2"))

    assert db.query(models.Dispute).count() == 1
    assert crud.get_dispute(db, "dp-1").state == "WON"
    assert _alerts(db) == []


def test_partial_dispute_update_keeps_amount(db, router, square_event):
    created = {
        "dispute_id": "dp-1",
        "state": "EVIDENCE_REQUIRED",
        "amount_money": {"amount": 4200, "currency": "EUR"},
    }
    _dispatch(router, db, square_event("dispute.created", {"dispute": created}))

    updated = {"id": "dp-1", "state": "WON"}
    _dispatch(router, db, square_event("dispute.updated", {"dispute": updated}, event_id="evt-2"))

    row = crud.get_dispute(db, "dp-1")
    assert row.state == "WON"
    assert row.amount == Decimal("42.00")
    assert row.currency == "EUR"


def test_dispute_created_without_amount(db, router, square_event):
    _dispatch(router, db, square_event("dispute.created", {"dispute": {"id": "dp-3"}}))

    (alert,) = _alerts(db)
    assert "unknown amount" in alert.description
    assert crud.get_dispute(db, "dp-3").amount is None


def test_dispute_evidence_increments_count(db, router, square_event):
    crud.upsert_dispute(db, schemas.DisputeUpsert(square_dispute_id="dp-1"))
    evidence = {"dispute_id": "dp-1", "evidence_id": "ev-1"}

    _dispatch(router, db, square_event("dispute.evidence.created", {"evidence": evidence}))

    assert crud.get_dispute(db, "dp-1").evidence_count == 1


def test_dispute_evidence_for_unknown_dispute_is_noop(db, router, square_event):
    outcome = _dispatch(
        router, db, square_event("dispute.evidence.created", {"evidence": {"dispute_id": "nope"}})
    )
    assert outcome is DispatchOutcome.HANDLED
    assert db.query(models.Dispute).count() == 0


# ---------- orders ----------
def test_order_created_stores_record(db, router, square_event):
    order = {"order_id": "order-1", "location_id": "L1", "state": "OPEN", "version": 1}

    _dispatch(router, db, square_event("order.created", {"order_created": order}))

    record = db.query(models.PaymentRecord).one()
    assert record.type == "order_created"
    assert record.state == "OPEN"
    assert record.status == "pending"
    assert record.meta["type"] == "order.created"


def test_order_created_after_payment_keeps_status(db, router, square_event):
    payment = {"id": "pay-1", "order_id": "order-1", "status": "COMPLETED"}
    _dispatch(router, db, square_event("payment.updated", {"payment": payment}))

    order = {"order_id": "order-1", "location_id": "L1", "state": "OPEN"}
    _dispatch(
        router, db, square_event("order.created", {"order_created": order}, event_id="evt-2")
    )

    record = db.query(models.PaymentRecord).filter_by(order_id="order-1").one()
    assert record.status == "completed"
    assert record.state == "OPEN"
    assert record.location_id == "L1"
    assert crud.get_transaction_status(db, "order-1") == "completed"


@pytest.mark.parametrize(
    "state, expected",
    [("COMPLETED", "completed"), ("CANCELED", "failed"), ("OPEN", "pending")],
)
def test_order_updated_maps_state(db, router, square_event, state, expected):
    crud.create_payment_record(db, schemas.PaymentRecordCreate(order_id="order-1"))
    order = {"order_id": "order-1", "state": state, "version": 2}

    _dispatch(router, db, square_event("order.updated", {"order_updated": order}))

    assert crud.get_transaction_status(db, "order-1") == expected


def test_failed_fulfillment_raises_medium_alert(db, router, square_event):
    order = {
        "order_id": "order-1",
        "state": "OPEN",
        "fulfillment_update": [
            {"fulfillment_uid": "f-1", "old_state": "PROPOSED", "new_state": "RESERVED"},
            {"fulfillment_uid": "f-2", "old_state": "RESERVED", "new_state": "FAILED"},
        ],
    }

    _dispatch(
        router, db, square_event("order.fulfillment.updated", {"order_fulfillment_updated": order})
    )

    (alert,) = _alerts(db)
    assert alert.severity == "medium"
    assert alert.meta == {"orderId": "order-1", "fulfillmentUid": "f-2"}


# ---------- oauth, payouts, checkout ----------
def test_oauth_revoked_raises_critical_alert(db, router, square_event, caplog):
    revocation = {"revoked_at": "2026-10-19T09:00:00Z", "revoker_type": "MERCHANT"}

    with caplog.at_level("CRITICAL"):
        _dispatch(
            router, db, square_event("oauth.authorization.revoked", {"revocation": revocation})
        )

    (alert,) = _alerts(db)
    assert alert.severity == "critical"
    assert alert.meta["merchantId"] == "5S9MXCS9Y99KK"
    assert alert.meta["revokerType"] == "MERCHANT"
    assert any(r.levelname == "CRITICAL" for r in caplog.records)


@pytest.mark.parametrize(
    "event_type, obj",
    [
        ("payout.created", {"payout": {"id": "po-1", "amount_money": {"amount": 100}}}),
        ("payout.updated", {"payout": {"id": "po-1", "status": "PAID"}}),
        (
            "online_checkout.location_settings.updated",
            {"location_settings": {"location_id": "L1", "coupons": {"enabled": True}}},
        ),
        (
            "online_checkout.merchant_settings.updated",
            {"merchant_settings": {"payment_methods": {"apple_pay": {"enabled": True}}}},
        ),
        ("customer.created", {"customer": {"id": "cust-1", "creation_source": "THIRD_PARTY"}}),
        ("customer.deleted", {"customer": {"id": "cust-1"}}),
    ],
)
def test_log_only_events_write_nothing(db, router, square_event, event_type, obj):
    outcome = _dispatch(router, db, square_event(event_type, obj))

    assert outcome is DispatchOutcome.HANDLED
    assert _alerts(db) == []
    assert db.query(models.PaymentRecord).count() == 0


# ---------- customers ----------
def test_customer_updated_links_local_user(db, router, square_event):
    user = models.User(email="ana@example.com")
    db.add(user)
    db.commit()
    customer = {"id": "cust-1", "email_address": "ana@example.com", "version": 3}

    _dispatch(router, db, square_event("customer.updated", {"customer": customer}))

    db.refresh(user)
    assert user.square_customer_id == "cust-1"


def test_customer_updated_without_local_user_is_noop(db, router, square_event):
    customer = {"id": "cust-1", "email_address": "nobody@example.com"}
    outcome = _dispatch(router, db, square_event("customer.updated", {"customer": customer}))
    assert outcome is DispatchOutcome.HANDLED
    assert db.query(models.User).count() == 0
