"""Typed views of Square webhook deliveries.

Square nests event payloads inconsistently: most objects live under
``data.object.<name>`` (``payment``, ``gift_card``, ``order_created``...),
while some deliveries carry the object flattened directly in
``data.object``. Field names also arrive in both snake_case (the wire
format) and camelCase (SDK-serialised payloads). Every model here accepts
either spelling and ignores fields it does not use.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

CENTS = Decimal("0.01")


def minor_to_decimal(amount: int | None) -> Decimal:
    """Convert an amount in minor units (cents) to a two-place decimal."""
    if not amount:
        return Decimal("0.00")
    return (Decimal(int(amount)) / 100).quantize(CENTS)


class SquareModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )


Model = TypeVar("Model", bound=SquareModel)


class Money(SquareModel):
    amount: int = 0
    currency: str = "USD"

    def to_decimal(self) -> Decimal:
        return minor_to_decimal(self.amount)

    def __str__(self) -> str:
        return f"{self.to_decimal()} {self.currency}"


# ---------- envelope ----------
class EventData(SquareModel):
    type: Optional[str] = None
    id: Optional[str] = None
    object: dict[str, Any] = Field(default_factory=dict)
    deleted: Optional[bool] = None


class WebhookEvent(SquareModel):
    id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("event_id", "eventId", "id")
    )
    type: str
    created_at: Optional[datetime] = None
    merchant_id: Optional[str] = None
    data: EventData

    def decode_object(self, model: type[Model], key: str | None = None) -> Model:
        """Validate the event's domain object into *model*.

        Looks for ``data.object[key]`` first and falls back to ``data.object``
        itself when the payload is flattened.
        """
        obj = self.data.object
        if key and isinstance(obj.get(key), dict):
            obj = obj[key]
        return model.model_validate(obj)


# ---------- payments ----------
class Card(SquareModel):
    card_brand: Optional[str] = None
    last_4: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("last_4", "last4")
    )


class CardDetails(SquareModel):
    status: Optional[str] = None
    card: Optional[Card] = None


class RiskEvaluation(SquareModel):
    risk_level: Optional[str] = None


class Payment(SquareModel):
    id: str
    status: Optional[str] = None
    order_id: Optional[str] = None
    location_id: Optional[str] = None
    amount_money: Optional[Money] = None
    receipt_url: Optional[str] = None
    card_details: Optional[CardDetails] = None
    risk_evaluation: Optional[RiskEvaluation] = None


# ---------- gift cards ----------
class GiftCard(SquareModel):
    id: str
    gan: Optional[str] = None
    type: Optional[str] = None
    state: Optional[str] = None
    balance_money: Optional[Money] = None
    customer_ids: list[str] = Field(default_factory=list)


class ActivityDetails(SquareModel):
    amount_money: Optional[Money] = None
    order_id: Optional[str] = None


class GiftCardActivity(SquareModel):
    id: str
    type: str
    gift_card_id: Optional[str] = None
    gift_card_gan: Optional[str] = None
    gift_card_balance_money: Optional[Money] = None
    activate_activity_details: Optional[ActivityDetails] = None
    import_activity_details: Optional[ActivityDetails] = None


class GiftCardCustomerLink(SquareModel):
    gift_card: GiftCard
    linked_customer_id: Optional[str] = None
    unlinked_customer_id: Optional[str] = None


# ---------- refunds ----------
class Refund(SquareModel):
    id: str
    status: Optional[str] = None
    payment_id: Optional[str] = None
    order_id: Optional[str] = None
    amount_money: Money = Field(default_factory=Money)
    reason: Optional[str] = None


# ---------- disputes ----------
class DisputedPayment(SquareModel):
    payment_id: Optional[str] = None


class Dispute(SquareModel):
    id: str = Field(validation_alias=AliasChoices("dispute_id", "disputeId", "id"))
    state: Optional[str] = None
    reason: Optional[str] = None
    amount_money: Optional[Money] = None
    disputed_payment: Optional[DisputedPayment] = None

    @property
    def payment_id(self) -> str | None:
        return self.disputed_payment.payment_id if self.disputed_payment else None


class DisputeEvidence(SquareModel):
    dispute_id: Optional[str] = None
    evidence_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("evidence_id", "evidenceId", "id")
    )
    evidence_type: Optional[str] = None


# ---------- orders ----------
class OrderCreated(SquareModel):
    order_id: str
    location_id: Optional[str] = None
    state: Optional[str] = None
    version: Optional[int] = None
    created_at: Optional[datetime] = None


class OrderUpdated(SquareModel):
    order_id: str
    location_id: Optional[str] = None
    state: Optional[str] = None
    version: Optional[int] = None
    updated_at: Optional[datetime] = None


class FulfillmentUpdate(SquareModel):
    fulfillment_uid: Optional[str] = None
    old_state: Optional[str] = None
    new_state: Optional[str] = None


class OrderFulfillmentUpdated(SquareModel):
    order_id: str
    location_id: Optional[str] = None
    state: Optional[str] = None
    fulfillment_update: list[FulfillmentUpdate] = Field(default_factory=list)


# ---------- oauth ----------
class Revocation(SquareModel):
    revoked_at: Optional[datetime] = None
    revoker_type: Optional[str] = None


# ---------- payouts ----------
class Payout(SquareModel):
    id: str
    status: Optional[str] = None
    location_id: Optional[str] = None
    amount_money: Optional[Money] = None


# ---------- online checkout ----------
class LocationSettings(SquareModel):
    location_id: Optional[str] = None
    customer_notes_enabled: Optional[bool] = None
    branding: dict[str, Any] = Field(default_factory=dict)
    tipping: dict[str, Any] = Field(default_factory=dict)
    coupons: dict[str, Any] = Field(default_factory=dict)
    updated_at: Optional[datetime] = None


class MerchantSettings(SquareModel):
    payment_methods: dict[str, Any] = Field(default_factory=dict)
    updated_at: Optional[datetime] = None

    def enabled_methods(self) -> list[str]:
        return sorted(
            name
            for name, method in self.payment_methods.items()
            if isinstance(method, dict) and method.get("enabled")
        )


# ---------- customers ----------
class Customer(SquareModel):
    id: str
    given_name: Optional[str] = None
    family_name: Optional[str] = None
    email_address: Optional[str] = None
    creation_source: Optional[str] = None
    version: Optional[int] = None
