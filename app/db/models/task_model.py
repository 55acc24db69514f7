from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import relationship
from app.db.base import Base


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, server_default="")
    priority = Column(String(10), nullable=False, server_default="medium", doc="low | medium | high")
    category = Column(String(50), nullable=False, server_default="general")
    completed = Column(Boolean, nullable=False, server_default="false")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    due_date = Column(DateTime(timezone=True), nullable=True)

    owner = relationship("User", back_populates="tasks")

    def __repr__(self):
        return f"<Task(title={self.title!r}, completed={self.completed})>"
