from fastapi import APIRouter, Depends
from api.dependencies import get_data_store
from db.store import DataStore
from schemas.partner_schema import PayoutDetailsRequest
from services.payout_service import save_payout, get_payout, delete_payout
from utils.responses import no_store_json
from utils.timing import timeit

router = APIRouter(prefix="/payouts")

@router.post("/save")
@timeit("payout_save")
async def save_payout_details(payload: PayoutDetailsRequest, store: DataStore = Depends(get_data_store)):
    return no_store_json(await save_payout(payload, store))

@router.get("/{partner_id}")
@timeit("payout_get")
async def get_payout_details(partner_id: str, store: DataStore = Depends(get_data_store)):
    return no_store_json(await get_payout(partner_id, store))

@router.delete("/{partner_id}")
@timeit("payout_delete")
async def delete_payout_details(partner_id: str, store: DataStore = Depends(get_data_store)):
    return no_store_json(await delete_payout(partner_id, store))
