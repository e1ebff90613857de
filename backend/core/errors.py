"""Error kinds raised by the service layer.

Every error carries a machine-readable ``kind`` and the HTTP status the API
layer answers with, so handlers never have to match on message text.
"""
from typing import Optional


class ServiceError(Exception):
    kind = "error"
    status_code = 500
    default_message = "Request failed"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None, details: Optional[str] = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body = {"success": False, "error": self.kind, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class InvalidInput(ServiceError):
    kind = "invalid_input"
    status_code = 400
    default_message = "Invalid request"


class NotFound(ServiceError):
    kind = "not_found"
    status_code = 400
    default_message = "No code found. Request a new one."


class NotEnrolled(ServiceError):
    kind = "not_enrolled"
    status_code = 401
    default_message = "Two-factor authentication is not enabled"


class Expired(ServiceError):
    kind = "expired"
    status_code = 400
    default_message = "Code has expired. Request a new one."


class Mismatch(ServiceError):
    kind = "mismatch"
    status_code = 400
    default_message = "Invalid code"


class InvalidCode(ServiceError):
    kind = "invalid_code"
    status_code = 400
    default_message = "Invalid authentication code"


class DeliveryFailed(ServiceError):
    kind = "delivery_failed"
    status_code = 500
    default_message = "Failed to send email"


class Unavailable(ServiceError):
    kind = "unavailable"
    status_code = 503
    default_message = "Service not configured"


class StoreFailed(ServiceError):
    kind = "store_failed"
    status_code = 400
    default_message = "Data store request failed"
