from decimal import Decimal
from typing import Any, Literal, Optional

from pydantic import BaseModel

Severity = Literal["low", "medium", "high", "critical"]
TransactionStatus = Literal["pending", "completed", "failed"]


class FraudAlertCreate(BaseModel):
    alert_type: str
    severity: Severity
    description: str
    metadata: Optional[dict[str, Any]] = None
    gift_card_id: Optional[int] = None


class PaymentRecordCreate(BaseModel):
    order_id: str
    type: str = "payment"
    payment_id: Optional[str] = None
    location_id: Optional[str] = None
    state: Optional[str] = None
    status: TransactionStatus = "pending"
    amount: Optional[Decimal] = None
    currency: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None


class GiftCardTransactionCreate(BaseModel):
    gift_card_id: int
    type: str
    amount: Decimal
    balance_after: Decimal
    square_transaction_id: Optional[str] = None
    notes: Optional[str] = None


class DisputeUpsert(BaseModel):
    square_dispute_id: str
    state: Optional[str] = None
    payment_id: Optional[str] = None
    reason: Optional[str] = None
    amount: Optional[Decimal] = None
    currency: Optional[str] = None
