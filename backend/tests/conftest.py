"""
Pytest configuration and fixtures for the backend tests.
"""
import os

# Keep test runs off the filesystem log handlers and away from any real relay
os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("DATABASE_URL", "")
os.environ.setdefault("SMTP_HOST", "")

from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, List

import pytest
from faker import Faker
from httpx import ASGITransport, AsyncClient

from main import app
from api.dependencies import get_clock, get_data_store, get_notifier, get_otp_store
from core.retry import RetryPolicy, exponential_backoff
from db.base import initialize_database
from db.session import build_engine, build_session_factory
from db.store import DataStore
from services.notifier import Notifier
from services.otp_service import OtpManager, OtpStore
from services.two_factor_service import TwoFactorManager
from utils.email import OutboundEmail

# Initialize Faker for test data generation
fake = Faker()

# Middle of a 30 second TOTP step so +-N step offsets never straddle a boundary
START_TIME = datetime(2026, 1, 15, 12, 0, 15, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime = START_TIME):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


class FakeTransport:
    """Stands in for SmtpTransport; fails the first ``failures`` deliveries."""

    def __init__(self, failures: int = 0, configured: bool = True):
        self.failures = failures
        self._configured = configured
        self.attempts = 0
        self.sent: List[OutboundEmail] = []

    @property
    def configured(self) -> bool:
        return self._configured

    def deliver(self, message: OutboundEmail) -> str:
        self.attempts += 1
        if self.attempts <= self.failures:
            raise ConnectionError(f"smtp relay refused attempt {self.attempts}")
        self.sent.append(message)
        return f"<msg-{self.attempts}@test>"

    def verify(self) -> bool:
        return self._configured


class RecordingSleep:
    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)

    @property
    def total(self) -> float:
        return sum(self.delays)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def notifier(transport: FakeTransport, recording_sleep: RecordingSleep) -> Notifier:
    policy = RetryPolicy(max_attempts=3, backoff=exponential_backoff(1.0), sleep=recording_sleep, label="email send")
    return Notifier(transport, policy)


@pytest.fixture
def otp_store() -> OtpStore:
    return OtpStore()


@pytest.fixture
def otp_manager(otp_store: OtpStore, notifier: Notifier, clock: FakeClock) -> OtpManager:
    return OtpManager(otp_store, notifier, ttl_seconds=600, clock=clock)


@pytest.fixture
async def data_store(tmp_path) -> AsyncGenerator[DataStore, None]:
    """DataStore backed by a throwaway SQLite file."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await initialize_database(engine)
    yield DataStore(build_session_factory(engine))
    await engine.dispose()


@pytest.fixture
def unconfigured_store() -> DataStore:
    return DataStore(None)


@pytest.fixture
def two_factor_manager(data_store: DataStore, clock: FakeClock) -> TwoFactorManager:
    return TwoFactorManager(data_store, issuer="Nommia", valid_window=2, clock=clock)


@pytest.fixture
async def async_client(data_store: DataStore, notifier: Notifier, otp_store: OtpStore, clock: FakeClock) -> AsyncGenerator[AsyncClient, None]:
    """Async client against the app with collaborators swapped for fakes."""
    app.dependency_overrides[get_data_store] = lambda: data_store
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_otp_store] = lambda: otp_store
    app.dependency_overrides[get_clock] = lambda: clock

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def sample_email() -> str:
    return fake.email()


@pytest.fixture
def sample_payout_data():
    """Sample payout details as the dashboard posts them."""
    return {
        "partnerId": f"IB-{fake.pyint(min_value=1000, max_value=9999)}",
        "bankName": fake.company(),
        "accountNumber": fake.bban(),
        "iban": fake.iban(),
        "swiftCode": fake.swift(),
        "usdtTrc20": "T" + fake.pystr(min_chars=33, max_chars=33),
        "preferredMethod": "bank",
    }


@pytest.fixture
def sample_nudge_data():
    return {
        "recipientEmail": fake.email(),
        "recipientName": fake.name(),
        "referrerName": fake.name(),
        "nudgeType": "Complete KYC",
        "tier": "gold",
        "partnerId": "IB-1001",
    }
