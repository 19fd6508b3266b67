from decimal import Decimal

from giftcard_webhooks.db import models, schemas
from sqlalchemy.orm import Session


# ---------- gift cards ----------
def create_gift_card(
    db: Session, code: str, amount: Decimal, square_gift_card_id: str | None = None
) -> models.GiftCard:
    card = models.GiftCard(
        code=code,
        initial_amount=amount,
        current_balance=amount,
        square_gift_card_id=square_gift_card_id,
    )
    db.add(card)
    db.commit()
    db.refresh(card)
    return card


def get_gift_card_by_code(db: Session, code: str) -> models.GiftCard | None:
    return db.query(models.GiftCard).filter_by(code=code).first()


def update_gift_card_balance(
    db: Session, gift_card_id: int, balance: Decimal
) -> models.GiftCard | None:
    card = db.get(models.GiftCard, gift_card_id)
    if card is None:
        return None
    card.current_balance = balance
    db.commit()
    db.refresh(card)
    return card


def update_gift_card_square_id(
    db: Session, gift_card_id: int, square_gift_card_id: str
) -> models.GiftCard | None:
    card = db.get(models.GiftCard, gift_card_id)
    if card is None:
        return None
    card.square_gift_card_id = square_gift_card_id
    db.commit()
    db.refresh(card)
    return card


def create_gift_card_transaction(
    db: Session, data: schemas.GiftCardTransactionCreate
) -> models.GiftCardTransaction:
    txn = models.GiftCardTransaction(**data.model_dump())
    db.add(txn)
    db.commit()
    db.refresh(txn)
    return txn


# ---------- payment records ----------
def create_payment_record(
    db: Session, data: schemas.PaymentRecordCreate
) -> models.PaymentRecord:
    values = data.model_dump(exclude={"metadata"})
    record = models.PaymentRecord(**values, meta=data.metadata)
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def record_order(db: Session, data: schemas.PaymentRecordCreate) -> list[models.PaymentRecord]:
    """Store order details, keeping any status a payment already set."""
    records = db.query(models.PaymentRecord).filter_by(order_id=data.order_id).all()
    if not records:
        return [create_payment_record(db, data)]
    for record in records:
        if data.state is not None:
            record.state = data.state
        if data.location_id is not None:
            record.location_id = data.location_id
        if data.metadata is not None:
            record.meta = data.metadata
    db.commit()
    return records


def update_transaction_status(
    db: Session, order_id: str, status: str, payment_id: str | None = None
) -> list[models.PaymentRecord]:
    """Set the status of every record for *order_id*.

    A record is created when the order has not been seen yet, so a payment
    webhook that arrives before ``order.created`` is not lost.
    """
    records = db.query(models.PaymentRecord).filter_by(order_id=order_id).all()
    if not records:
        records = [models.PaymentRecord(order_id=order_id, type="payment")]
        db.add(records[0])
    for record in records:
        record.status = status
        if payment_id and not record.payment_id:
            record.payment_id = payment_id
    db.commit()
    return records


def get_transaction_status(db: Session, order_id: str) -> str | None:
    record = (
        db.query(models.PaymentRecord)
        .filter_by(order_id=order_id)
        .order_by(models.PaymentRecord.updated_at.desc())
        .first()
    )
    return record.status if record else None


# ---------- disputes ----------
def get_dispute(db: Session, square_dispute_id: str) -> models.Dispute | None:
    return db.query(models.Dispute).filter_by(square_dispute_id=square_dispute_id).first()


def upsert_dispute(db: Session, data: schemas.DisputeUpsert) -> models.Dispute:
    dispute = get_dispute(db, data.square_dispute_id)
    values = data.model_dump(exclude_none=True)
    if dispute:
        for key, value in values.items():
            setattr(dispute, key, value)
    else:
        dispute = models.Dispute(**values)
        db.add(dispute)
    db.commit()
    db.refresh(dispute)
    return dispute


def add_dispute_evidence(db: Session, square_dispute_id: str) -> models.Dispute | None:
    dispute = get_dispute(db, square_dispute_id)
    if dispute is None:
        return None
    dispute.evidence_count = (dispute.evidence_count or 0) + 1
    db.commit()
    db.refresh(dispute)
    return dispute


# ---------- fraud alerts ----------
def create_fraud_alert(db: Session, data: schemas.FraudAlertCreate) -> models.FraudAlert:
    alert = models.FraudAlert(
        alert_type=data.alert_type,
        severity=data.severity,
        description=data.description,
        gift_card_id=data.gift_card_id,
        meta=data.metadata,
    )
    db.add(alert)
    db.commit()
    db.refresh(alert)
    return alert


# ---------- users ----------
def get_user_by_email(db: Session, email: str) -> models.User | None:
    return db.query(models.User).filter_by(email=email).first()


def update_user_square_customer_id(
    db: Session, user_id: int, square_customer_id: str
) -> models.User:
    user = db.get(models.User, user_id)
    if user is None:
        raise ValueError("User not found")
    user.square_customer_id = square_customer_id
    db.commit()
    db.refresh(user)
    return user
