from botocore.exceptions import ClientError
from giftcard_webhooks.core.config import Settings
from giftcard_webhooks.storage.s3_client import get_s3_client


def ensure_secure_bucket(settings: Settings, s3=None) -> None:
    """Create the events bucket if needed and lock it down.

    Public access is blocked and default encryption is SSE-KMS when a key is
    configured, AES256 otherwise.
    """
    s3 = s3 or get_s3_client(settings)
    bucket = settings.events_bucket
    try:
        s3.head_bucket(Bucket=bucket)
    except ClientError:
        create_kwargs = {"Bucket": bucket}
        if settings.aws_region != "us-east-1":
            create_kwargs["CreateBucketConfiguration"] = {
                "LocationConstraint": settings.aws_region
            }
        s3.create_bucket(**create_kwargs)

    s3.put_public_access_block(
        Bucket=bucket,
        PublicAccessBlockConfiguration={
            "BlockPublicAcls": True,
            "IgnorePublicAcls": True,
            "BlockPublicPolicy": True,
            "RestrictPublicBuckets": True,
        },
    )

    default_encryption = {
        "SSEAlgorithm": "aws:kms" if settings.aws_sse_kms_key_id else "AES256"
    }
    if settings.aws_sse_kms_key_id:
        default_encryption["KMSMasterKeyID"] = settings.aws_sse_kms_key_id
    s3.put_bucket_encryption(
        Bucket=bucket,
        ServerSideEncryptionConfiguration={
            "Rules": [
                {
                    "ApplyServerSideEncryptionByDefault": default_encryption,
                    "BucketKeyEnabled": True,
                }
            ]
        },
    )
