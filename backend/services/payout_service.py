from datetime import datetime, timezone
from typing import Optional
import logging

from core.errors import InvalidInput
from db.models.payout_detail import PayoutDetail
from db.store import DataStore
from schemas.partner_schema import PayoutDetailsRequest

logger = logging.getLogger(__name__)

PAYOUT_FIELDS = [
    "bank_name",
    "account_number",
    "iban",
    "swift_code",
    "usdt_trc20",
    "usdt_erc20",
    "usdc_polygon",
    "usdc_erc20",
    "preferred_method",
]


def _require_partner_id(partner_id: Optional[str]) -> str:
    cleaned = (partner_id or "").strip()
    if not cleaned:
        raise InvalidInput("Missing required field: partnerId")
    return cleaned


async def save_payout(request: PayoutDetailsRequest, store: DataStore) -> dict:
    partner_id = _require_partner_id(request.partner_id)
    logger.info(f"[Payouts] Saving payout details for partner: {partner_id}")
    values = {name: (getattr(request, name) or None) for name in PAYOUT_FIELDS}
    values["partner_id"] = partner_id
    values["updated_at"] = datetime.now(timezone.utc)
    row = await store.upsert(PayoutDetail, values, error_message="Failed to save payout details")
    logger.info(f"[Payouts] Saved payout details for partner: {partner_id}")
    return {"success": True, "message": "Payout details saved successfully", "data": row}


async def get_payout(partner_id: str, store: DataStore) -> dict:
    partner_id = _require_partner_id(partner_id)
    logger.info(f"[Payouts] Fetching payout details for partner: {partner_id}")
    row = await store.fetch_one(PayoutDetail, partner_id, error_message="Failed to fetch payout details")
    return {
        "success": True,
        "data": row,
        "message": "Payout details found" if row else "No payout details saved yet",
    }


async def delete_payout(partner_id: str, store: DataStore) -> dict:
    partner_id = _require_partner_id(partner_id)
    logger.info(f"[Payouts] Deleting payout details for partner: {partner_id}")
    await store.delete(PayoutDetail, partner_id, error_message="Failed to delete payout details")
    return {"success": True, "message": "Payout details deleted successfully"}
