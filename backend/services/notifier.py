"""Outbound email with bounded retries.

Every attempt sends the identical payload and no idempotency key is attached,
so a transport timeout followed by a retry can deliver the message twice.
"""
import logging
from typing import Optional

from fastapi.concurrency import run_in_threadpool

from core.config import settings
from core.errors import DeliveryFailed, Unavailable
from core.retry import RetryPolicy, exponential_backoff
from utils.email import OutboundEmail, SmtpTransport

logger = logging.getLogger(__name__)


class Notifier:
    def __init__(self, transport: SmtpTransport, policy: Optional[RetryPolicy] = None):
        self.transport = transport
        self.policy = policy or RetryPolicy(
            max_attempts=settings.EMAIL_MAX_ATTEMPTS,
            backoff=exponential_backoff(settings.EMAIL_BACKOFF_SECONDS),
            label="email send",
        )

    @property
    def configured(self) -> bool:
        return self.transport.configured

    async def send(self, message: OutboundEmail) -> dict:
        if not self.transport.configured:
            raise Unavailable(
                "Email service not configured",
                details="Check SMTP_HOST, SMTP_PORT, SMTP_USERNAME and SMTP_PASSWORD in .env",
            )

        async def _attempt() -> str:
            return await run_in_threadpool(self.transport.deliver, message)

        try:
            delivery_id = await self.policy.run(_attempt)
        except Exception as exc:
            raise DeliveryFailed("Failed to send email", details=str(exc)) from exc
        return {"delivery_id": delivery_id}
