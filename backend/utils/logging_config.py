import logging
import logging.handlers
import contextvars
import uuid
from pathlib import Path
from typing import Optional

from core.config import settings
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request


def _ensure_log_dir(directory: Path) -> None:
    directory.mkdir(parents=True, exist_ok=True)


def map_log_level(level_name: str) -> int:
    level = logging.getLevelName((level_name or "INFO").upper())
    return level if isinstance(level, int) else logging.INFO


request_id_var = contextvars.ContextVar("request_id", default="-")
api_var = contextvars.ContextVar("api", default="-")


class ContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        # Inject per-request context variables
        record.request_id = request_id_var.get()
        record.api = api_var.get()
        return True


def _build_rotating_file_handler(filename: str, level: int, formatter: logging.Formatter, log_dir: Path) -> logging.Handler:
    handler = logging.handlers.TimedRotatingFileHandler(
        filename=str(log_dir / filename),
        when="midnight",
        interval=1,
        backupCount=max(int(settings.LOG_TTL_DAYS), 0),
        encoding="utf-8",
        utc=True,
    )
    handler.suffix = "%Y-%m-%d"
    handler.setLevel(level)
    handler.setFormatter(formatter)
    handler.addFilter(ContextFilter())
    return handler


def _build_handlers(level: int, log_dir: Optional[Path]) -> dict[str, logging.Handler]:
    formatter = logging.Formatter(
        fmt="%(levelname)s - %(asctime)s - %(request_id)s - %(api)s - %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(ContextFilter())

    handlers = {"console": console_handler}
    if log_dir is not None:
        handlers["app"] = _build_rotating_file_handler("app.log", level, formatter, log_dir)
        handlers["access"] = _build_rotating_file_handler("access.log", level, formatter, log_dir)
        handlers["error"] = _build_rotating_file_handler("error.log", logging.WARNING, formatter, log_dir)
    return handlers


def _reset_handlers(target_logger: logging.Logger, handlers: list[logging.Handler], level: int) -> None:
    for h in list(target_logger.handlers):
        target_logger.removeHandler(h)
    for h in handlers:
        target_logger.addHandler(h)
    target_logger.setLevel(level)


def configure_logging(app_logger_name: Optional[str] = None) -> logging.Logger:
    """Configure logging with daily rotation and TTL-based retention.

    - Rotates at midnight; keeps last LOG_TTL_DAYS files
    - LOG_TO_FILE=false keeps console output only
    - Applies handlers to root, app, and Uvicorn loggers
    """
    level = map_log_level(settings.LOG_LEVEL)
    log_dir = None
    if settings.LOG_TO_FILE:
        log_dir = Path(settings.LOG_DIR)
        _ensure_log_dir(log_dir)
    handlers = _build_handlers(level, log_dir)

    general = [h for key, h in handlers.items() if key in ("app", "error", "console")]
    access = [h for key, h in handlers.items() if key in ("access", "console")]

    root_logger = logging.getLogger()
    _reset_handlers(root_logger, general, level)

    app_logger = logging.getLogger(app_logger_name or "ib_partner")
    app_logger.propagate = False
    _reset_handlers(app_logger, general, level)

    for name in ("uvicorn", "uvicorn.error", "fastapi"):
        lgr = logging.getLogger(name)
        lgr.propagate = False
        _reset_handlers(lgr, general, level)
    access_logger = logging.getLogger("uvicorn.access")
    access_logger.propagate = False
    _reset_handlers(access_logger, access, level)

    return app_logger


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:12]
        context_token_request = request_id_var.set(request_id)
        context_token_api = api_var.set(f"{request.method} {request.url.path}")
        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            request_id_var.reset(context_token_request)
            api_var.reset(context_token_api)
