import base64
import hashlib
import hmac
import logging
from dataclasses import dataclass
from typing import Optional

from giftcard_webhooks.webhooks.errors import SignatureInvalid

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "x-square-hmacsha256-signature"
LEGACY_SIGNATURE_HEADER = "x-square-signature"


@dataclass(frozen=True)
class VerificationResult:
    is_valid: bool
    error: Optional[str] = None


def _as_bytes(value: bytes | str) -> bytes:
    return value.encode("utf-8") if isinstance(value, str) else value


def compute_signature(
    signature_key: str, raw_body: bytes | str, notification_url: str = ""
) -> str:
    """Base64 HMAC-SHA256 of ``notification_url + raw_body``."""
    payload = _as_bytes(notification_url) + _as_bytes(raw_body)
    digest = hmac.new(signature_key.encode("utf-8"), payload, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


class SquareSignatureVerifier:
    """Authenticates Square webhook deliveries.

    Verification fails closed: a missing key, a missing header or a digest
    mismatch all reject the delivery. Digests are compared in constant time.
    """

    def __init__(self, signature_key: str, notification_url: str = ""):
        self.signature_key = signature_key
        self.notification_url = notification_url
        if not signature_key:
            logger.warning(
                "Square webhook signature key not configured. Webhook verification will fail."
            )

    @property
    def is_configured(self) -> bool:
        return bool(self.signature_key)

    def verify(
        self, raw_body: bytes | str, signature_header: Optional[str]
    ) -> VerificationResult:
        if not self.signature_key:
            return VerificationResult(False, "Webhook signature key not configured")
        if not signature_header:
            return VerificationResult(False, "No signature header provided")

        expected = compute_signature(
            self.signature_key, raw_body, self.notification_url
        )
        if not hmac.compare_digest(
            expected.encode("ascii"), signature_header.strip().encode("utf-8")
        ):
            return VerificationResult(False, "Invalid signature")
        return VerificationResult(True)

    def ensure_valid(self, raw_body: bytes | str, signature_header: Optional[str]) -> None:
        """Raise SignatureInvalid unless the delivery is authentic."""
        result = self.verify(raw_body, signature_header)
        if not result.is_valid:
            raise SignatureInvalid(result.error or "Invalid signature")


def signature_from_headers(headers) -> Optional[str]:
    return headers.get(SIGNATURE_HEADER) or headers.get(LEGACY_SIGNATURE_HEADER)
