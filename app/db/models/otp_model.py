from sqlalchemy import Column, DateTime, Index, Integer, String, func
from app.db.base import Base


class OneTimeCode(Base):
    __tablename__ = "otps"

    id = Column(Integer, primary_key=True)
    phone = Column(String(32), nullable=False)
    code = Column(String(6), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_otps_phone_code", "phone", "code"),
    )

    def __repr__(self):
        return f"<OneTimeCode(phone={self.phone}, expires_at={self.expires_at})>"
