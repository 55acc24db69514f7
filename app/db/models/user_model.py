from sqlalchemy import CheckConstraint, Column, DateTime, Index, Integer, String, func, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from app.db.base import Base

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(254), nullable=True, doc="stored lowercased")
    phone = Column(String(32), unique=True, nullable=True)
    hashed_password = Column(String(255), nullable=True)
    name = Column(String(100), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    preferences = Column(JSONB, nullable=False, server_default=text("'{}'::jsonb"))

    tasks = relationship("Task", back_populates="owner", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("email IS NOT NULL OR phone IS NOT NULL", name="ck_users_contact"),
        Index("ix_users_email_lower", func.lower(email), unique=True),
    )
