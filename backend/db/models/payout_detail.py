from sqlalchemy import Column, String, DateTime
from db.session import Base


class PayoutDetail(Base):
    __tablename__ = "payout_details"

    partner_id = Column(String(255), primary_key=True)
    bank_name = Column(String(255), nullable=True)
    account_number = Column(String(64), nullable=True)
    iban = Column(String(64), nullable=True)
    swift_code = Column(String(32), nullable=True)
    usdt_trc20 = Column(String(128), nullable=True)
    usdt_erc20 = Column(String(128), nullable=True)
    usdc_polygon = Column(String(128), nullable=True)
    usdc_erc20 = Column(String(128), nullable=True)
    preferred_method = Column(String(64), nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    def to_dict(self) -> dict:
        data = {c.name: getattr(self, c.name) for c in self.__table__.columns}
        if data.get("updated_at") is not None:
            data["updated_at"] = data["updated_at"].isoformat()
        return data
