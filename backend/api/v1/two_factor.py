from fastapi import APIRouter, Depends
from api.dependencies import get_two_factor_manager
from schemas.two_factor_schema import TwoFactorLoginRequest, TwoFactorSetupVerifyRequest, TwoFactorUserRequest
from services.two_factor_service import TwoFactorManager
from utils.responses import no_store_json
from utils.timing import timeit

router = APIRouter(prefix="/2fa")

@router.post("/setup")
@timeit("2fa_setup")
async def setup_two_factor(payload: TwoFactorUserRequest, manager: TwoFactorManager = Depends(get_two_factor_manager)):
    outcome = await manager.setup(payload.username)
    return no_store_json({
        "success": True,
        "secret": outcome.value["secret"],
        "provisioningUri": outcome.value["provisioning_uri"],
        "qrCodeUrl": outcome.value["qr_code_url"],
        "message": "Secret generated. Scan QR code with authenticator app.",
    })

@router.post("/verify")
@timeit("2fa_verify")
async def verify_two_factor_setup(payload: TwoFactorSetupVerifyRequest, manager: TwoFactorManager = Depends(get_two_factor_manager)):
    outcome = await manager.verify_setup(payload.username, payload.secret, payload.token)
    return no_store_json({
        "success": True,
        "enabled": outcome.value["enabled"],
        "message": "2FA enabled successfully",
    })

@router.post("/verify-login")
@timeit("2fa_verify_login")
async def verify_two_factor_login(payload: TwoFactorLoginRequest, manager: TwoFactorManager = Depends(get_two_factor_manager)):
    result = await manager.verify_login(payload.username, payload.token)
    return no_store_json({
        "success": True,
        "verified": result["verified"],
        "message": "Login verified with 2FA",
    })

@router.post("/disable")
@timeit("2fa_disable")
async def disable_two_factor(payload: TwoFactorUserRequest, manager: TwoFactorManager = Depends(get_two_factor_manager)):
    await manager.disable(payload.username)
    return no_store_json({"success": True, "message": "2FA disabled successfully"})

@router.post("/check")
async def check_two_factor(payload: TwoFactorUserRequest, manager: TwoFactorManager = Depends(get_two_factor_manager)):
    enabled = await manager.is_enabled(payload.username)
    return no_store_json({"success": True, "enabled": enabled})
