from datetime import datetime, timezone
from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from api.v1 import otp, two_factor, payouts, nudges
from api.dependencies import get_notifier
from core.config import settings
from core.errors import ServiceError
from db.base import initialize_database
from db.session import engine
from utils.logging_config import configure_logging, RequestContextMiddleware
from utils.responses import error_json

# Configure logging with date-based files and TTL retention
logger = configure_logging("ib_partner")

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    debug=settings.DEBUG
)

@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.error(f"{exc.kind} at {request.url.path}: {exc.message} {exc.details or ''}".rstrip())
    else:
        logger.info(f"{exc.kind} at {request.url.path}: {exc.message}")
    return error_json(exc.to_dict(), exc.status_code)

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    fields = sorted({".".join(str(p) for p in err.get("loc", ())[1:]) or "body" for err in exc.errors()})
    return error_json(
        {"success": False, "error": "invalid_input", "message": f"Invalid request fields: {', '.join(fields)}"},
        400,
    )

@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        return error_json(
            {"success": False, "error": "not_found", "message": "Not found", "path": request.url.path, "method": request.method},
            404,
        )
    return error_json({"success": False, "error": "http_error", "message": str(exc.detail)}, exc.status_code)

# Global exception handler to ensure 500s for unexpected errors
@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error at {request.url.path}: {exc}")
    return error_json({"success": False, "error": "internal", "message": "Internal server error"}, 500)

# Add logging context middleware to capture request id and API path
app.add_middleware(RequestContextMiddleware)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(otp.router, prefix="/api", tags=["OTP"])
app.include_router(two_factor.router, prefix="/api", tags=["2FA"])
app.include_router(payouts.router, prefix="/api", tags=["Payouts"])
app.include_router(nudges.router, prefix="/api", tags=["Nudges"])

@app.on_event("startup")
async def startup():
    """Create tables and probe the SMTP relay; neither failure stops the app."""
    try:
        await initialize_database()
    except Exception as e:
        logger.warning(f"SQL init skipped or failed: {e}")
    notifier = get_notifier()
    if notifier.configured:
        if await run_in_threadpool(notifier.transport.verify):
            logger.info("[Email] SMTP connection verified")
    else:
        logger.warning("[Email] SMTP_HOST not set - email sending disabled")
    logger.info("Application startup complete")

@app.on_event("shutdown")
async def shutdown():
    if engine is not None:
        await engine.dispose()
        logger.info("Disposed SQL engine")
    logger.info("Application shutdown complete")

@app.get("/api/health")
async def health_check():
    return {
        "status": "ok",
        "service": settings.SERVICE_NAME,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
