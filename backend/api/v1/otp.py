from fastapi import APIRouter, Depends
from api.dependencies import get_otp_manager
from schemas.otp_schema import OtpSendRequest, OtpVerifyRequest
from services.otp_service import OtpManager
from utils.responses import no_store_json
from utils.timing import timeit

router = APIRouter(prefix="/otp")

@router.post("/send")
@timeit("otp_send")
async def send_otp(payload: OtpSendRequest, manager: OtpManager = Depends(get_otp_manager)):
    # Delivery warnings stay in the logs; the code is valid either way
    await manager.issue(payload.email, purpose=payload.type or "verification")
    return no_store_json({
        "success": True,
        "message": "A verification code has been sent to your email",
    })

@router.post("/verify")
@timeit("otp_verify")
async def verify_otp(payload: OtpVerifyRequest, manager: OtpManager = Depends(get_otp_manager)):
    result = await manager.verify(payload.email, payload.code)
    return no_store_json({
        "success": True,
        "verified": result["verified"],
        "message": "Code verified successfully",
    })
