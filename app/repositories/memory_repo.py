"""In-memory repositories for local development and tests.

All methods complete without suspending, so each call is atomic with
respect to other requests on the same event loop.
"""

import itertools
from datetime import datetime, timezone
from typing import Optional

from app.core.exceptions import UserAlreadyExistsException
from app.repositories.base import (
    ConversationRepository,
    OTPRepository,
    TaskRepository,
    UserRepository,
)
from app.schemas.chat_schema import ChatMessage, ConversationRecord
from app.schemas.task_schema import TaskCreate, TaskOut
from app.schemas.user_schema import OneTimeCode, Preferences, UserRecord


def _now() -> datetime:
    return datetime.now(timezone.utc)


class MemoryTables:
    """The rows behind every in-memory repository."""

    def __init__(self):
        self.users: dict[int, UserRecord] = {}
        self.otps: dict[int, OneTimeCode] = {}
        self.tasks: dict[int, TaskOut] = {}
        self.conversations: dict[int, ConversationRecord] = {}
        self._ids = {name: itertools.count(1) for name in ("users", "otps", "tasks", "conversations")}

    def next_id(self, table: str) -> int:
        return next(self._ids[table])


class MemoryUserRepository(UserRepository):

    def __init__(self, tables: MemoryTables):
        self.tables = tables

    async def find_by_email(self, email: str) -> Optional[UserRecord]:
        email = email.lower()
        return next((u for u in self.tables.users.values() if u.email == email), None)

    async def find_by_phone(self, phone: str) -> Optional[UserRecord]:
        return next((u for u in self.tables.users.values() if u.phone == phone), None)

    async def find_by_id(self, user_id: int) -> Optional[UserRecord]:
        return self.tables.users.get(user_id)

    async def insert(
        self,
        *,
        name: str,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        hashed_password: Optional[str] = None,
        preferences: Optional[Preferences] = None,
    ) -> UserRecord:
        if email is None and phone is None:
            raise ValueError("a user needs an email or a phone number")
        email = email.lower() if email else None
        if email and await self.find_by_email(email):
            raise UserAlreadyExistsException("email")
        if phone and await self.find_by_phone(phone):
            raise UserAlreadyExistsException("phone number")
        user = UserRecord(
            id=self.tables.next_id("users"),
            email=email,
            phone=phone,
            hashed_password=hashed_password,
            name=name,
            created_at=_now(),
            preferences=preferences or Preferences(),
        )
        self.tables.users[user.id] = user
        return user

    async def update_preferences(self, user_id: int, preferences: Preferences) -> Optional[UserRecord]:
        user = self.tables.users.get(user_id)
        if user is None:
            return None
        user = user.model_copy(update={"preferences": preferences})
        self.tables.users[user_id] = user
        return user


class MemoryOTPRepository(OTPRepository):

    def __init__(self, tables: MemoryTables):
        self.tables = tables

    async def insert(self, phone: str, code: str, created_at: datetime, expires_at: datetime) -> OneTimeCode:
        otp = OneTimeCode(
            id=self.tables.next_id("otps"),
            phone=phone,
            code=code,
            created_at=created_at,
            expires_at=expires_at,
        )
        self.tables.otps[otp.id] = otp
        return otp

    async def find_valid(self, phone: str, code: str, now: datetime) -> Optional[OneTimeCode]:
        matches = [
            otp for otp in self.tables.otps.values()
            if otp.phone == phone and otp.code == code and otp.expires_at > now
        ]
        return max(matches, key=lambda otp: (otp.created_at, otp.id), default=None)

    async def delete_by_id(self, otp_id: int) -> bool:
        return self.tables.otps.pop(otp_id, None) is not None


class MemoryTaskRepository(TaskRepository):

    def __init__(self, tables: MemoryTables):
        self.tables = tables

    def _owned(self, user_id: int) -> list[TaskOut]:
        tasks = [t for t in self.tables.tasks.values() if t.user_id == user_id]
        return sorted(tasks, key=lambda t: (t.created_at, t.id), reverse=True)

    async def list_by_user(self, user_id: int) -> list[TaskOut]:
        return self._owned(user_id)

    async def list_recent(self, user_id: int, since: datetime, limit: int) -> list[TaskOut]:
        return [t for t in self._owned(user_id) if t.created_at >= since][:limit]

    async def get(self, user_id: int, task_id: int) -> Optional[TaskOut]:
        task = self.tables.tasks.get(task_id)
        return task if task and task.user_id == user_id else None

    async def create(self, user_id: int, task_in: TaskCreate) -> TaskOut:
        task = TaskOut(
            id=self.tables.next_id("tasks"),
            user_id=user_id,
            completed=False,
            created_at=_now(),
            **task_in.model_dump(),
        )
        self.tables.tasks[task.id] = task
        return task

    async def update(self, user_id: int, task_id: int, changes: dict) -> Optional[TaskOut]:
        task = await self.get(user_id, task_id)
        if task is None:
            return None
        task = task.model_copy(update=changes)
        self.tables.tasks[task_id] = task
        return task

    async def delete(self, user_id: int, task_id: int) -> bool:
        if await self.get(user_id, task_id) is None:
            return False
        del self.tables.tasks[task_id]
        return True


class MemoryConversationRepository(ConversationRepository):

    def __init__(self, tables: MemoryTables):
        self.tables = tables

    async def create(self, user_id: int, messages: list[ChatMessage]) -> ConversationRecord:
        conversation = ConversationRecord(
            id=self.tables.next_id("conversations"),
            user_id=user_id,
            messages=messages,
            created_at=_now(),
        )
        self.tables.conversations[conversation.id] = conversation
        return conversation
