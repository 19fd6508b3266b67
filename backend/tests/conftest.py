import json
import os
from typing import Iterator

import boto3
import fakeredis
import pytest
from fastapi.testclient import TestClient
from moto import mock_aws
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

SIGNATURE_KEY = "test-signature-key"

# Set test environment variables before the app reads its settings
os.environ.update(
    {
        "DATABASE_URL": "sqlite://",
        "SQUARE_WEBHOOK_SIGNATURE_KEY": SIGNATURE_KEY,
        "SQUARE_WEBHOOK_NOTIFICATION_URL": "",
        "RATE_LIMIT_ENABLED": "false",
        "WEBHOOK_DEDUP_ENABLED": "false",
        "WEBHOOK_DISPATCH_ASYNC": "false",
        "EVENTS_BUCKET": "",
        "REDIS_URL": "redis://localhost:6379/15",
    }
)

from giftcard_webhooks.db.models import Base
from giftcard_webhooks.main import app, db_session, get_archive_client
from giftcard_webhooks.services.square_verify import SIGNATURE_HEADER, compute_signature
from giftcard_webhooks.webhooks.idempotency import IdempotencyStore
from giftcard_webhooks.webhooks.processor import WebhookProcessor, get_processor
from giftcard_webhooks.webhooks.registry import build_default_router

WEBHOOK_URL = "/api/webhooks/square"


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(db_engine) -> Iterator[Session]:
    session = sessionmaker(bind=db_engine, autoflush=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def redis_client():
    return fakeredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)


@pytest.fixture
def store(redis_client) -> IdempotencyStore:
    return IdempotencyStore(redis_client, ttl_seconds=60)


@pytest.fixture
def router():
    return build_default_router()


@pytest.fixture
def processor(router, store) -> WebhookProcessor:
    return WebhookProcessor(router, store)


@pytest.fixture
def client(db, processor):
    app.dependency_overrides[db_session] = lambda: db
    app.dependency_overrides[get_processor] = lambda: processor
    app.dependency_overrides[get_archive_client] = lambda: None
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def square_event():
    """Build a Square webhook envelope around a domain object."""

    def _build(event_type: str, obj: dict, event_id: str = "evt-1", data_id: str = "obj-1"):
        return {
            "merchant_id": "5S9MXCS9Y99KK",
            "type": event_type,
            "event_id": event_id,
            "created_at": "2026-10-19T10:00:00Z",
            "data": {"type": event_type.split(".")[0], "id": data_id, "object": obj},
        }

    return _build


@pytest.fixture
def send_webhook(client):
    def _send(payload: dict, key: str = SIGNATURE_KEY, headers: dict | None = None):
        body = json.dumps(payload).encode()
        request_headers = {
            "Content-Type": "application/json",
            SIGNATURE_HEADER: compute_signature(key, body),
        }
        request_headers.update(headers or {})
        return client.post(WEBHOOK_URL, content=body, headers=request_headers)

    return _send


@pytest.fixture
def mock_aws_s3():
    with mock_aws():
        s3 = boto3.client("s3", region_name="us-east-1")
        s3.create_bucket(Bucket="events-test")
        yield s3
