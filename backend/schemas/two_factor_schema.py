from pydantic import BaseModel
from typing import Optional

class TwoFactorUserRequest(BaseModel):
    username: Optional[str] = None

class TwoFactorSetupVerifyRequest(BaseModel):
    username: Optional[str] = None
    secret: Optional[str] = None
    token: Optional[str] = None

class TwoFactorLoginRequest(BaseModel):
    username: Optional[str] = None
    token: Optional[str] = None
