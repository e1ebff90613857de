from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from api.dependencies import get_notifier
from schemas.partner_schema import NudgeRequest
from services.notifier import Notifier
from services.nudge_service import send_nudge, nudge_health
from utils.timing import timeit

router = APIRouter(prefix="/nudges")

@router.post("/send")
@timeit("nudge_send")
async def send_nudge_email(payload: NudgeRequest, notifier: Notifier = Depends(get_notifier)):
    return await send_nudge(payload, notifier)

@router.get("/health")
async def nudge_health_check(notifier: Notifier = Depends(get_notifier)):
    body, status_code = nudge_health(notifier)
    return JSONResponse(content=body, status_code=status_code)
