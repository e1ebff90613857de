from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional
import logging
import re
import secrets

from core.config import settings
from core.errors import DeliveryFailed, Expired, InvalidInput, Mismatch, NotFound, Unavailable
from core.outcome import Outcome
from services.notifier import Notifier
from utils.email import build_otp_email
from utils.timing import timeit

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
CODE_MIN = 100000
CODE_MAX = 999999


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_email(email: Optional[str]) -> str:
    """Trim and lower-case ``email``; raise InvalidInput unless it looks like local@domain.tld."""
    cleaned = (email or "").strip().lower()
    if not cleaned:
        raise InvalidInput("Email is required")
    if not EMAIL_PATTERN.match(cleaned):
        raise InvalidInput("Invalid email address")
    return cleaned


def generate_code() -> str:
    return f"{CODE_MIN + secrets.randbelow(CODE_MAX - CODE_MIN + 1):06d}"


@dataclass(frozen=True)
class OtpRecord:
    identity: str
    code: str
    issued_at: datetime
    expires_at: datetime
    purpose: str

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


class OtpStore:
    """Process-local keyed store, at most one record per identity.

    Owned by whoever constructs it so a shared cache can replace it later.
    """

    def __init__(self) -> None:
        self._records: Dict[str, OtpRecord] = {}

    def get(self, identity: str) -> Optional[OtpRecord]:
        return self._records.get(identity)

    def set(self, record: OtpRecord) -> None:
        self._records[record.identity] = record

    def delete(self, identity: str) -> None:
        self._records.pop(identity, None)

    def purge_expired(self, now: datetime) -> int:
        stale = [key for key, record in self._records.items() if record.is_expired(now)]
        for key in stale:
            del self._records[key]
        return len(stale)

    def __len__(self) -> int:
        return len(self._records)


class OtpManager:
    def __init__(
        self,
        store: OtpStore,
        notifier: Notifier,
        ttl_seconds: int = settings.OTP_TTL_SECONDS,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.notifier = notifier
        self.ttl = timedelta(seconds=ttl_seconds)
        self.clock = clock

    @timeit("otp_issue")
    async def issue(self, identity: str, purpose: str = "verification") -> Outcome[str]:
        email = normalize_email(identity)
        now = self.clock()
        self.store.purge_expired(now)
        record = OtpRecord(
            identity=email,
            code=generate_code(),
            issued_at=now,
            expires_at=now + self.ttl,
            purpose=purpose or "verification",
        )
        self.store.set(record)
        logger.info(f"[OTP] Issued {record.purpose} code for {email}")

        outcome = Outcome(value=record.code)
        message = build_otp_email(email, record.code, record.purpose, int(self.ttl.total_seconds()))
        try:
            await self.notifier.send(message)
        except (DeliveryFailed, Unavailable) as exc:
            # The code stays valid; the caller is not told the provider failed
            logger.error(f"[OTP] Delivery to {email} failed: {exc.message} {exc.details or ''}".rstrip())
            outcome.warn(f"email delivery failed: {exc.message}")
        return outcome

    async def verify(self, identity: str, submitted_code: Optional[str]) -> dict:
        email = normalize_email(identity)
        code = (submitted_code or "").strip()
        if not code:
            raise InvalidInput("Email and code are required")

        record = self.store.get(email)
        if record is None:
            raise NotFound("No code found for this email. Request a new one.")
        if record.is_expired(self.clock()):
            self.store.delete(email)
            logger.info(f"[OTP] Expired code presented for {email}")
            raise Expired("Code has expired. Request a new one.")
        if not secrets.compare_digest(code, record.code):
            logger.info(f"[OTP] Mismatched code for {email}")
            raise Mismatch("Invalid code")

        self.store.delete(email)
        logger.info(f"[OTP] Verified {record.purpose} code for {email}")
        return {"verified": True}
