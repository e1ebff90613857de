from sqlalchemy import Column, String, Boolean, DateTime
from db.session import Base


class TwoFactorCredential(Base):
    __tablename__ = "user_2fa"

    username = Column(String(255), primary_key=True)
    secret = Column(String(64), nullable=False)
    enabled = Column(Boolean, default=False, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    def to_dict(self) -> dict:
        return {
            "username": self.username,
            "secret": self.secret,
            "enabled": bool(self.enabled),
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
