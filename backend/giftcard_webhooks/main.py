import json
import logging
from datetime import datetime, timezone
from functools import lru_cache

import redis.asyncio as redis
import sqlalchemy.exc
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import Depends, FastAPI, HTTPException, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi_limiter import FastAPILimiter
from fastapi_limiter.depends import RateLimiter
from kombu.exceptions import OperationalError as BrokerError
from pydantic import ValidationError
from redis.exceptions import RedisError
from sqlalchemy.orm import Session

from giftcard_webhooks.core.config import get_settings
from giftcard_webhooks.core.logging_config import configure_logging
from giftcard_webhooks.db.session import SessionLocal
from giftcard_webhooks.middleware.body_size import BodySizeLimitMiddleware
from giftcard_webhooks.middleware.security_headers import SecurityHeadersMiddleware
from giftcard_webhooks.schemas.square import WebhookEvent
from giftcard_webhooks.services.square_verify import (
    SquareSignatureVerifier,
    signature_from_headers,
)
from giftcard_webhooks.storage.boot_s3 import ensure_secure_bucket
from giftcard_webhooks.storage.s3_client import archive_key, get_s3_client, store_event_payload
from giftcard_webhooks.tasks import process_webhook_event
from giftcard_webhooks.webhooks.errors import SignatureInvalid
from giftcard_webhooks.webhooks.processor import WebhookProcessor, get_processor, get_router

settings = get_settings()
configure_logging(settings.log_level)

logger = logging.getLogger(__name__)

WEBHOOK_PATH = "/api/webhooks/square"

app = FastAPI(
    title="Gift Card Webhook Service",
    description="Receives Square webhooks and applies them to the gift card store",
    version="1.0.0",
)

app.add_middleware(BodySizeLimitMiddleware, max_bytes=settings.max_body_bytes)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins.split(","),
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    allow_credentials=True,
)


@app.on_event("startup")
async def startup():
    """Initialize optional services; the webhook endpoint works without them."""
    if settings.rate_limit_enabled:
        try:
            redis_conn = redis.from_url(settings.redis_url, decode_responses=True)
            await redis_conn.ping()
            await FastAPILimiter.init(redis_conn)
        except (RedisError, OSError) as e:
            logger.warning(f"Rate limiting disabled, Redis unavailable: {e}")

    if settings.events_bucket:
        try:
            ensure_secure_bucket(settings)
        except (BotoCoreError, ClientError) as e:
            logger.warning(f"Failed to prepare events bucket {settings.events_bucket}: {e}")

    logger.info(f"Registered {len(get_router())} Square webhook event handlers")


@app.on_event("shutdown")
async def shutdown():
    if FastAPILimiter.redis is not None:
        await FastAPILimiter.close()


# ---------- dependencies ----------
def db_session():
    db: Session = SessionLocal()
    try:
        yield db
    except sqlalchemy.exc.OperationalError as e:
        logger.error(f"Database error: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database connection failed",
        )
    finally:
        db.close()


@lru_cache
def get_verifier() -> SquareSignatureVerifier:
    return SquareSignatureVerifier(
        settings.square_webhook_signature_key,
        settings.square_webhook_notification_url,
    )


def get_archive_client():
    if not settings.events_bucket:
        return None
    return get_s3_client(settings)


_webhook_limiter = RateLimiter(times=settings.webhook_rate_limit_per_minute, seconds=60)


async def webhook_rate_limit(request: Request, response: Response):
    if not settings.rate_limit_enabled or FastAPILimiter.redis is None:
        return
    await _webhook_limiter(request, response)


# ---------- health ----------
@app.get("/health", include_in_schema=False)
async def health():
    return {"status": "ok"}


@app.get(f"{WEBHOOK_PATH}/health")
def square_webhook_health(verifier: SquareSignatureVerifier = Depends(get_verifier)):
    return {
        "status": "configured" if verifier.is_configured else "not_configured",
        "endpoint": WEBHOOK_PATH,
        "signature_key_present": verifier.is_configured,
        "registered_events": len(get_router()),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# ---------- square webhooks ----------
@app.post(WEBHOOK_PATH, dependencies=[Depends(webhook_rate_limit)])
async def square_webhook(
    request: Request,
    db: Session = Depends(db_session),
    verifier: SquareSignatureVerifier = Depends(get_verifier),
    processor: WebhookProcessor = Depends(get_processor),
    s3=Depends(get_archive_client),
):
    # Signature covers the exact bytes Square sent
    raw = await request.body()

    try:
        verifier.ensure_valid(raw, signature_from_headers(request.headers))
    except SignatureInvalid as exc:
        logger.warning(f"Webhook signature verification failed: {exc.reason}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid webhook signature",
        )

    try:
        event = WebhookEvent.model_validate_json(raw)
    except ValidationError as ve:
        logger.warning(f"Rejected malformed webhook payload: {ve.error_count()} errors")
        raise HTTPException(status_code=400, detail="Invalid webhook payload")

    logger.info(f"Received Square webhook: {event.type} (event {event.id})")

    if s3 is not None:
        try:
            store_event_payload(s3, settings, archive_key(raw, event.id), raw)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to archive webhook payload: {e}")

    if settings.webhook_dispatch_async:
        try:
            result = process_webhook_event.delay(json.loads(raw))
            logger.info(f"Queued webhook event {event.id} as task {result.id}")
            return {"received": True}
        except BrokerError as e:
            logger.error(f"Failed to queue webhook event {event.id}, processing inline: {e}")

    processor.process(event, db)
    return {"received": True}
