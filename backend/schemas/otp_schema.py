from pydantic import BaseModel
from typing import Optional

class OtpSendRequest(BaseModel):
    email: Optional[str] = None
    type: Optional[str] = "verification"

class OtpVerifyRequest(BaseModel):
    email: Optional[str] = None
    code: Optional[str] = None
