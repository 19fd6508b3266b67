from celery import Celery
from giftcard_webhooks.core.config import get_settings

settings = get_settings()

celery = Celery(
    "giftcard_webhooks",
    broker=settings.redis_url,
    backend=settings.redis_url,
)

# Import tasks
celery.conf.imports = ["giftcard_webhooks.tasks"]

# Set task routes
celery.conf.task_routes = {
    "giftcard_webhooks.tasks.process_webhook_event": {"queue": "webhooks"}
}
