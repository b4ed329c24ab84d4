"""Signed payment status notifications to Zeus"""
import hashlib
import hmac
import json
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Dict, Optional

import httpx

from billing.core.config import settings, ZEUS_WEBHOOK_PATH, ZEUS_SIGNATURE_HEADER, ZEUS_USER_AGENT
from billing.core.exceptions import NotificationDeliveryError
from billing.core.logging import zeus_logger
from billing.core.metrics import zeus_notifications_counter


def compute_signature(body: bytes, secret: str) -> str:
    """Hex HMAC-SHA256 of the exact request body"""
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def build_payload(
    subscription_id: int,
    user_id: int,
    payment_intent_id: str,
    status: str,
    amount: int,
    currency: str,
    paid_at: Optional[datetime] = None,
    error_message: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """Build the JSON payload Zeus expects. Optional fields are left out when unset."""
    payload = {
        "subscription_id": subscription_id,
        "user_id": user_id,
        "payment_intent_id": payment_intent_id,
        "status": status,
        "amount": amount,
        "currency": currency,
    }
    if paid_at is not None:
        payload["paid_at"] = paid_at.isoformat()
    if error_message is not None:
        payload["error_message"] = error_message
    payload["metadata"] = metadata or {}
    payload["timestamp"] = datetime.now(timezone.utc).isoformat()
    return payload


class ZeusNotificationClient:
    """Delivers payment outcomes to the Zeus subscription webhook.

    With no base URL configured, notifications are logged and dropped. With no
    secret configured, requests go out unsigned.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        secret: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None
    ):
        base_url = settings.ZEUS_WEBHOOK_URL if base_url is None else base_url.rstrip("/")
        self.url = f"{base_url}{ZEUS_WEBHOOK_PATH}" if base_url else ""
        self.secret = settings.ZEUS_WEBHOOK_SECRET if secret is None else secret
        self.timeout = settings.ZEUS_NOTIFICATION_TIMEOUT if timeout is None else timeout
        self.transport = transport

        if not self.url:
            zeus_logger.warning("ZEUS_WEBHOOK_URL not configured - notifications will be logged only")
        if not self.secret:
            zeus_logger.warning("ZEUS_WEBHOOK_SECRET not configured - notifications will be unsigned")

    def notify_payment_status(self, status: str, **notification) -> None:
        """Send one notification.

        Raises:
            NotificationDeliveryError: non-2xx response, timeout or network failure
        """
        payload = build_payload(status=status, **notification)
        subscription_id = payload["subscription_id"]

        if not self.url:
            zeus_logger.info(f"Zeus notification (webhook URL not configured): {payload}")
            zeus_notifications_counter.labels(status=status, result="skipped").inc()
            return

        # Serialize once so the signature covers the exact bytes sent
        body = json.dumps(payload).encode("utf-8")
        headers = {
            "Content-Type": "application/json",
            "User-Agent": ZEUS_USER_AGENT,
        }
        if self.secret:
            headers[ZEUS_SIGNATURE_HEADER] = compute_signature(body, self.secret)

        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.post(self.url, content=body, headers=headers)
        except httpx.HTTPError as e:
            zeus_notifications_counter.labels(status=status, result="failed").inc()
            zeus_logger.error(f"Failed to send Zeus notification for subscription {subscription_id}: {e}")
            raise NotificationDeliveryError(f"Zeus notification failed: {e}") from e

        if not response.is_success:
            zeus_notifications_counter.labels(status=status, result="failed").inc()
            zeus_logger.error(
                f"Zeus notification for subscription {subscription_id} rejected: "
                f"{response.status_code} {response.reason_phrase}"
            )
            raise NotificationDeliveryError(
                f"Zeus notification failed: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code
            )

        zeus_notifications_counter.labels(status=status, result="sent").inc()
        zeus_logger.info(
            f"Zeus notification sent for subscription {subscription_id} "
            f"(status={status}, response={response.status_code})"
        )

    def notify_payment_succeeded(self, **notification) -> None:
        self.notify_payment_status("succeeded", **notification)

    def notify_payment_failed(self, **notification) -> None:
        self.notify_payment_status("failed", **notification)

    def notify_payment_canceled(self, **notification) -> None:
        self.notify_payment_status("canceled", **notification)


@lru_cache(maxsize=1)
def get_zeus_notifier() -> ZeusNotificationClient:
    """Process-wide client built from settings"""
    return ZeusNotificationClient()
