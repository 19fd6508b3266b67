from datetime import timezone as tz
from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def utc_now():
    return datetime.now(tz.utc)


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True)
    email = Column(String, unique=True, nullable=True)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    square_customer_id = Column(String, unique=True, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)


class GiftCard(Base):
    __tablename__ = "gift_cards"
    id = Column(Integer, primary_key=True)
    square_gift_card_id = Column(String, unique=True, nullable=True)
    # The Square GAN doubles as the local card code
    code = Column(String, unique=True, nullable=False)
    initial_amount = Column(Numeric(10, 2), nullable=False)
    current_balance = Column(Numeric(10, 2), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    transactions = relationship("GiftCardTransaction", back_populates="gift_card")


class GiftCardTransaction(Base):
    __tablename__ = "gift_card_transactions"
    id = Column(Integer, primary_key=True)
    gift_card_id = Column(
        Integer, ForeignKey("gift_cards.id", ondelete="CASCADE"), nullable=False
    )
    type = Column(String, nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    balance_after = Column(Numeric(10, 2), nullable=False)
    square_transaction_id = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now)

    gift_card = relationship("GiftCard", back_populates="transactions")


class PaymentRecord(Base):
    """Transaction-status record keyed by the Square order id."""

    __tablename__ = "payment_records"
    id = Column(Integer, primary_key=True)
    order_id = Column(String, nullable=False)
    payment_id = Column(String, nullable=True)
    location_id = Column(String, nullable=True)
    type = Column(String, nullable=False, default="payment")
    state = Column(String, nullable=True)
    status = Column(String, nullable=False, default="pending")
    amount = Column(Numeric(10, 2), nullable=True)
    currency = Column(String, nullable=True)
    # "metadata" is reserved on declarative classes
    meta = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    __table_args__ = (Index("ix_payment_records_order_id", "order_id"),)


class Dispute(Base):
    __tablename__ = "disputes"
    id = Column(Integer, primary_key=True)
    square_dispute_id = Column(String, unique=True, nullable=False)
    payment_id = Column(String, nullable=True)
    state = Column(String, nullable=True)
    reason = Column(String, nullable=True)
    amount = Column(Numeric(10, 2), nullable=True)
    currency = Column(String, nullable=True)
    evidence_count = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)


class FraudAlert(Base):
    __tablename__ = "fraud_alerts"
    id = Column(Integer, primary_key=True)
    gift_card_id = Column(
        Integer, ForeignKey("gift_cards.id", ondelete="SET NULL"), nullable=True
    )
    alert_type = Column(String, nullable=False)
    severity = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    meta = Column("metadata", JSON, nullable=True)
    resolved = Column(Boolean, default=False, nullable=False)
    resolved_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now)

    __table_args__ = (Index("ix_fraud_alerts_severity", "severity"),)
