"""
Unit tests for OTP issuance and verification, service and endpoints.
"""
import pytest
from httpx import AsyncClient

from core.errors import Expired, InvalidInput, Mismatch, NotFound
from services.otp_service import OtpManager, OtpStore, generate_code, normalize_email


class TestNormalization:
    """Identity normalization rules."""

    def test_trims_and_lowercases(self):
        assert normalize_email("  USER@Example.COM ") == "user@example.com"

    @pytest.mark.parametrize("value", ["", "   ", None, "no-at-sign.com", "a@b", "two words@example.com", "@example.com"])
    def test_rejects_malformed(self, value):
        with pytest.raises(InvalidInput):
            normalize_email(value)

    def test_codes_are_six_digits_in_range(self):
        for _ in range(200):
            code = generate_code()
            assert len(code) == 6 and code.isdigit()
            assert 100000 <= int(code) <= 999999


class TestOtpManager:
    """OTP state machine: issue, verify, expire, consume."""

    @pytest.mark.asyncio
    async def test_issue_then_verify_succeeds_exactly_once(self, otp_manager: OtpManager):
        outcome = await otp_manager.issue("user@example.com")
        code = outcome.value

        assert await otp_manager.verify("user@example.com", code) == {"verified": True}
        with pytest.raises(NotFound):
            await otp_manager.verify("user@example.com", code)

    @pytest.mark.asyncio
    async def test_verify_normalizes_identity(self, otp_manager: OtpManager):
        code = (await otp_manager.issue("user@example.com")).value
        assert await otp_manager.verify("USER@example.com ", code) == {"verified": True}

    @pytest.mark.asyncio
    async def test_expired_code_is_rejected_and_removed(self, otp_manager: OtpManager, otp_store: OtpStore, clock):
        code = (await otp_manager.issue("user@example.com")).value
        clock.advance(600)

        with pytest.raises(Expired):
            await otp_manager.verify("user@example.com", code)
        assert otp_store.get("user@example.com") is None
        with pytest.raises(NotFound):
            await otp_manager.verify("user@example.com", code)

    @pytest.mark.asyncio
    async def test_code_still_valid_just_before_ttl(self, otp_manager: OtpManager, clock):
        code = (await otp_manager.issue("user@example.com")).value
        clock.advance(599)
        assert await otp_manager.verify("user@example.com", code) == {"verified": True}

    @pytest.mark.asyncio
    async def test_mismatch_keeps_record_for_retry(self, otp_manager: OtpManager, otp_store: OtpStore):
        code = (await otp_manager.issue("user@example.com")).value
        wrong = "000000" if code != "000000" else "111111"

        for _ in range(5):
            with pytest.raises(Mismatch):
                await otp_manager.verify("user@example.com", wrong)
        assert otp_store.get("user@example.com") is not None
        assert await otp_manager.verify("user@example.com", code) == {"verified": True}

    @pytest.mark.asyncio
    async def test_reissue_overwrites_previous_code(self, otp_manager: OtpManager, otp_store: OtpStore):
        first = (await otp_manager.issue("user@example.com")).value
        second = (await otp_manager.issue("user@example.com")).value

        assert len(otp_store) == 1
        assert otp_store.get("user@example.com").code == second
        if first != second:
            with pytest.raises(Mismatch):
                await otp_manager.verify("user@example.com", first)

    @pytest.mark.asyncio
    async def test_issue_sends_code_by_email(self, otp_manager: OtpManager, transport):
        code = (await otp_manager.issue("User@Example.com", purpose="password-reset")).value

        assert len(transport.sent) == 1
        message = transport.sent[0]
        assert message.recipients == ["user@example.com"]
        assert code in message.text_body
        assert "password" in message.subject.lower()

    @pytest.mark.asyncio
    async def test_delivery_failure_is_a_warning_not_an_error(self, otp_manager: OtpManager, transport, recording_sleep):
        transport.failures = 10

        outcome = await otp_manager.issue("user@example.com")

        assert outcome.degraded
        assert "delivery failed" in outcome.warnings[0]
        assert transport.attempts == 3
        assert await otp_manager.verify("user@example.com", outcome.value) == {"verified": True}

    @pytest.mark.asyncio
    async def test_unconfigured_email_is_a_warning(self, otp_manager: OtpManager, transport):
        transport._configured = False

        outcome = await otp_manager.issue("user@example.com")

        assert outcome.degraded
        assert transport.attempts == 0

    @pytest.mark.asyncio
    async def test_issue_purges_expired_records(self, otp_manager: OtpManager, otp_store: OtpStore, clock):
        await otp_manager.issue("old@example.com")
        clock.advance(601)
        await otp_manager.issue("new@example.com")

        assert otp_store.get("old@example.com") is None
        assert otp_store.get("new@example.com") is not None

    @pytest.mark.asyncio
    async def test_issue_rejects_invalid_email(self, otp_manager: OtpManager, transport):
        with pytest.raises(InvalidInput):
            await otp_manager.issue("not-an-email")
        assert transport.attempts == 0

    @pytest.mark.asyncio
    async def test_verify_requires_code(self, otp_manager: OtpManager):
        await otp_manager.issue("user@example.com")
        with pytest.raises(InvalidInput):
            await otp_manager.verify("user@example.com", "  ")


class TestOtpEndpoints:
    """OTP API endpoints."""

    @pytest.mark.asyncio
    async def test_send_and_verify(self, async_client: AsyncClient, otp_store: OtpStore):
        response = await async_client.post("/api/otp/send", json={"email": "Partner@Example.com", "type": "verification"})
        assert response.status_code == 200
        assert response.json()["success"] is True
        assert response.headers["cache-control"].startswith("no-store")

        code = otp_store.get("partner@example.com").code
        response = await async_client.post("/api/otp/verify", json={"email": "partner@example.com", "code": code})
        assert response.status_code == 200
        assert response.json() == {"success": True, "verified": True, "message": "Code verified successfully"}

    @pytest.mark.asyncio
    async def test_send_succeeds_when_delivery_fails(self, async_client: AsyncClient, transport):
        transport.failures = 10
        response = await async_client.post("/api/otp/send", json={"email": "partner@example.com"})
        assert response.status_code == 200
        assert "error" not in response.json()

    @pytest.mark.asyncio
    async def test_send_rejects_missing_email(self, async_client: AsyncClient):
        response = await async_client.post("/api/otp/send", json={})
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_input"

    @pytest.mark.asyncio
    async def test_verify_error_kinds_are_distinguishable(self, async_client: AsyncClient, otp_store: OtpStore, clock):
        response = await async_client.post("/api/otp/verify", json={"email": "partner@example.com", "code": "123456"})
        assert response.status_code == 400
        assert response.json()["error"] == "not_found"

        await async_client.post("/api/otp/send", json={"email": "partner@example.com"})
        code = otp_store.get("partner@example.com").code
        wrong = "000000" if code != "000000" else "111111"
        response = await async_client.post("/api/otp/verify", json={"email": "partner@example.com", "code": wrong})
        assert response.status_code == 400
        assert response.json()["error"] == "mismatch"

        clock.advance(601)
        response = await async_client.post("/api/otp/verify", json={"email": "partner@example.com", "code": code})
        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "expired"
        assert body["message"]

    @pytest.mark.asyncio
    async def test_verify_rejects_missing_fields(self, async_client: AsyncClient):
        response = await async_client.post("/api/otp/verify", json={"email": "partner@example.com"})
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_input"
