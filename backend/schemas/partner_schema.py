from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Optional


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class PayoutDetailsRequest(CamelModel):
    partner_id: Optional[str] = None
    bank_name: Optional[str] = None
    account_number: Optional[str] = None
    iban: Optional[str] = None
    swift_code: Optional[str] = None
    usdt_trc20: Optional[str] = None
    usdt_erc20: Optional[str] = None
    usdc_polygon: Optional[str] = None
    usdc_erc20: Optional[str] = None
    preferred_method: Optional[str] = None


class NudgeRequest(CamelModel):
    recipient_email: Optional[str] = None
    recipient_name: Optional[str] = None
    referrer_name: Optional[str] = None
    nudge_type: Optional[str] = None
    tier: Optional[str] = None
    partner_id: Optional[str] = None
