import logging

from giftcard_webhooks.schemas.square import LocationSettings, MerchantSettings, WebhookEvent
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


def handle_location_settings_updated(event: WebhookEvent, db: Session) -> None:
    settings = event.decode_object(LocationSettings, "location_settings")
    logger.info(
        f"Online checkout location settings updated for location {settings.location_id}: "
        f"coupons={settings.coupons.get('enabled')}, "
        f"customer_notes={settings.customer_notes_enabled}, "
        f"tipping={bool(settings.tipping)}"
    )


def handle_merchant_settings_updated(event: WebhookEvent, db: Session) -> None:
    settings = event.decode_object(MerchantSettings, "merchant_settings")
    enabled = ", ".join(settings.enabled_methods()) or "none"
    logger.info(f"Online checkout merchant settings updated, enabled methods: {enabled}")


HANDLERS = {
    "online_checkout.location_settings.updated": handle_location_settings_updated,
    "online_checkout.merchant_settings.updated": handle_merchant_settings_updated,
}
