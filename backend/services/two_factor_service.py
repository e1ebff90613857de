"""TOTP two-factor authentication backed by the ``user_2fa`` table.

Generation and verification share one parameter set: SHA-1, 30 second step,
6 digits. Verification accepts the current step and ``valid_window`` steps
either side.
"""
import binascii
import hashlib
import logging
import re
from datetime import datetime
from typing import Callable, Optional
from urllib.parse import quote

import pyotp

from core.config import settings
from core.errors import InvalidCode, InvalidInput, NotEnrolled, ServiceError, StoreFailed, Unavailable
from core.outcome import Outcome
from db.models.two_factor import TwoFactorCredential
from db.store import DataStore
from services.otp_service import utcnow

logger = logging.getLogger(__name__)

TOKEN_PATTERN = re.compile(r"^\d{6}$")
DIGITS = 6
INTERVAL = 30
DIGEST = hashlib.sha1


def _require_username(username: Optional[str]) -> str:
    cleaned = (username or "").strip()
    if not cleaned:
        raise InvalidInput("Username required")
    return cleaned


def _require_token(token: Optional[str]) -> str:
    token = token or ""
    if not TOKEN_PATTERN.fullmatch(token):
        raise InvalidInput("Invalid token format")
    return token


class TwoFactorManager:
    def __init__(
        self,
        store: DataStore,
        issuer: str = settings.TOTP_ISSUER,
        valid_window: int = settings.TOTP_VALID_WINDOW,
        qr_base_url: str = settings.QR_CODE_BASE_URL,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.issuer = issuer
        self.valid_window = valid_window
        self.qr_base_url = qr_base_url
        self.clock = clock

    def totp(self, secret: str) -> pyotp.TOTP:
        return pyotp.TOTP(secret, digits=DIGITS, interval=INTERVAL, digest=DIGEST)

    def provisioning_uri(self, username: str, secret: str) -> str:
        return self.totp(secret).provisioning_uri(name=username, issuer_name=self.issuer)

    def qr_code_url(self, provisioning_uri: str) -> str:
        return f"{self.qr_base_url}{quote(provisioning_uri, safe='')}"

    def check_token(self, secret: str, token: str) -> bool:
        try:
            return self.totp(secret).verify(token, for_time=self.clock(), valid_window=self.valid_window)
        except (binascii.Error, ValueError) as exc:
            raise InvalidInput("Invalid secret") from exc

    async def setup(self, username: Optional[str]) -> Outcome[dict]:
        username = _require_username(username)
        secret = pyotp.random_base32()
        uri = self.provisioning_uri(username, secret)
        outcome = Outcome(value={
            "secret": secret,
            "provisioning_uri": uri,
            "qr_code_url": self.qr_code_url(uri),
        })
        try:
            await self.store.upsert(
                TwoFactorCredential,
                {"username": username, "secret": secret, "enabled": False, "updated_at": self.clock()},
                error_message="Failed to save 2FA secret",
            )
        except (Unavailable, StoreFailed) as exc:
            logger.error(f"[2FA] Could not persist secret for {username}: {exc.message}")
            outcome.warn(f"secret not persisted: {exc.message}")
        logger.info(f"[2FA] Setup initiated for user: {username}")
        return outcome

    async def verify_setup(self, username: Optional[str], secret: Optional[str], token: Optional[str]) -> Outcome[dict]:
        username = _require_username(username)
        secret = (secret or "").strip().replace(" ", "").upper()
        if not secret:
            raise InvalidInput("Missing required fields")
        token = _require_token(token)

        # The caller's copy of the secret is authoritative here; setup may not have persisted it
        if not self.check_token(secret, token):
            raise InvalidCode("Invalid authentication code")

        outcome = Outcome(value={"enabled": True})
        try:
            record = await self.store.fetch_one(TwoFactorCredential, username, error_message="Failed to enable 2FA")
            if record is None:
                # setup never reached the store; persist the verified secret now
                await self.store.upsert(
                    TwoFactorCredential,
                    {"username": username, "secret": secret, "enabled": True, "updated_at": self.clock()},
                    error_message="Failed to enable 2FA",
                )
            elif record["secret"] == secret:
                await self.store.update(
                    TwoFactorCredential,
                    username,
                    {"enabled": True, "updated_at": self.clock()},
                    error_message="Failed to enable 2FA",
                )
            else:
                logger.warning(f"[2FA] Secret for {username} was replaced by a newer setup; not enabling")
                raise InvalidCode("Secret was replaced by a newer setup. Scan the latest QR code.")
        except (Unavailable, StoreFailed) as exc:
            logger.error(f"[2FA] Could not persist enablement for {username}: {exc.message}")
            outcome.warn(f"enablement not persisted: {exc.message}")
        logger.info(f"[2FA] Enabled for user: {username}")
        return outcome

    async def verify_login(self, username: Optional[str], token: Optional[str]) -> dict:
        username = _require_username(username)
        token = _require_token(token)

        record = await self.store.fetch_one(TwoFactorCredential, username, error_message="Failed to load 2FA settings")
        if record is None or record.get("enabled") is not True:
            raise NotEnrolled("Two-factor authentication is not enabled for this user")
        if not self.check_token(record["secret"], token):
            logger.info(f"[2FA Login] Invalid code for user: {username}")
            raise InvalidCode("Invalid authentication code", status_code=401)

        logger.info(f"[2FA Login] Verified for user: {username}")
        return {"verified": True}

    async def disable(self, username: Optional[str]) -> None:
        username = _require_username(username)
        removed = await self.store.delete(TwoFactorCredential, username, error_message="Failed to disable 2FA")
        logger.info(f"[2FA] Disabled for user: {username} (removed={removed})")

    async def is_enabled(self, username: Optional[str]) -> bool:
        """Non-authoritative hint for the UI; any lookup problem reads as disabled."""
        try:
            username = _require_username(username)
            record = await self.store.fetch_one(TwoFactorCredential, username)
        except ServiceError as exc:
            logger.warning(f"[2FA] Status lookup failed, reporting disabled: {exc.message}")
            return False
        except Exception as exc:
            logger.warning(f"[2FA] Status lookup error, reporting disabled: {exc}")
            return False
        return bool(record and record.get("enabled"))
