from giftcard_webhooks.webhooks.handlers import (
    checkout,
    customers,
    disputes,
    gift_cards,
    oauth,
    orders,
    payments,
    payouts,
    refunds,
)
from giftcard_webhooks.webhooks.router import EventRouter

HANDLER_MODULES = (
    payments,
    gift_cards,
    orders,
    refunds,
    disputes,
    oauth,
    payouts,
    checkout,
    customers,
)


def build_default_router() -> EventRouter:
    """Router with every built-in Square event handler registered."""
    router = EventRouter()
    for module in HANDLER_MODULES:
        router.update(module.HANDLERS)
    return router
