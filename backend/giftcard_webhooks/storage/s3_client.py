import hashlib
from datetime import datetime, timezone

import boto3
from giftcard_webhooks.core.config import Settings, get_settings


def get_s3_client(settings: Settings | None = None):
    """Get a configured S3 client."""
    settings = settings or get_settings()
    return boto3.client(
        "s3",
        region_name=settings.aws_region,
        aws_access_key_id=settings.aws_access_key_id,
        aws_secret_access_key=settings.aws_secret_access_key,
        endpoint_url=settings.aws_endpoint_url,
    )


def archive_key(raw_body: bytes, event_id: str | None, received_at: datetime | None = None) -> str:
    received_at = received_at or datetime.now(timezone.utc)
    name = event_id or hashlib.sha256(raw_body).hexdigest()
    return f"square/{received_at:%Y/%m/%d}/{name}.json"


def store_event_payload(s3, settings: Settings, key: str, raw_body: bytes) -> None:
    """
    Store a verified webhook body in the events bucket with server-side encryption.

    Args:
        s3: boto3 S3 client
        settings: Settings carrying the bucket and KMS key
        key: The S3 object key
        raw_body: The raw event payload bytes
    """
    s3.put_object(
        Bucket=settings.events_bucket,
        Key=key,
        Body=raw_body,
        ContentType="application/json",
        ServerSideEncryption="aws:kms" if settings.aws_sse_kms_key_id else "AES256",
        **(
            {"SSEKMSKeyId": settings.aws_sse_kms_key_id}
            if settings.aws_sse_kms_key_id
            else {}
        ),
    )
