# app/schemas/task_schema.py

from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field

Priority = Literal["low", "medium", "high"]


class TaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    priority: Priority = "medium"
    category: str = "general"
    due_date: Optional[datetime] = None


class TaskUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    priority: Optional[Priority] = None
    category: Optional[str] = None
    completed: Optional[bool] = None
    due_date: Optional[datetime] = None


class TaskOut(BaseModel):
    id: int
    user_id: int
    title: str
    description: str
    priority: Priority
    category: str
    completed: bool
    created_at: datetime
    due_date: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }
