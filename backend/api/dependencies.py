from datetime import datetime
from functools import lru_cache
from typing import Callable

from fastapi import Depends

from core.config import settings
from db.session import SessionLocal
from db.store import DataStore
from services.notifier import Notifier
from services.otp_service import OtpManager, OtpStore, utcnow
from services.two_factor_service import TwoFactorManager
from utils.email import SmtpTransport


def get_clock() -> Callable[[], datetime]:
    return utcnow


@lru_cache()
def get_notifier() -> Notifier:
    return Notifier(SmtpTransport.from_settings())


@lru_cache()
def get_otp_store() -> OtpStore:
    # One store per process; every request shares it
    return OtpStore()


@lru_cache()
def get_data_store() -> DataStore:
    return DataStore(SessionLocal)


def get_otp_manager(
    store: OtpStore = Depends(get_otp_store),
    notifier: Notifier = Depends(get_notifier),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> OtpManager:
    return OtpManager(store, notifier, ttl_seconds=settings.OTP_TTL_SECONDS, clock=clock)


def get_two_factor_manager(
    store: DataStore = Depends(get_data_store),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> TwoFactorManager:
    return TwoFactorManager(store, clock=clock)
