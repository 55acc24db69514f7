"""Repository interfaces shared by the asyncpg and in-memory implementations."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import AsyncContextManager, Callable, Optional

from app.schemas.chat_schema import ChatMessage, ConversationRecord
from app.schemas.task_schema import TaskCreate, TaskOut
from app.schemas.user_schema import OneTimeCode, Preferences, UserRecord


class UserRepository(ABC):

    @abstractmethod
    async def find_by_email(self, email: str) -> Optional[UserRecord]:
        """Case-insensitive lookup."""

    @abstractmethod
    async def find_by_phone(self, phone: str) -> Optional[UserRecord]: ...

    @abstractmethod
    async def find_by_id(self, user_id: int) -> Optional[UserRecord]: ...

    @abstractmethod
    async def insert(
        self,
        *,
        name: str,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        hashed_password: Optional[str] = None,
        preferences: Optional[Preferences] = None,
    ) -> UserRecord:
        """Store a new user; raises ``UserAlreadyExistsException`` on a duplicate email or phone."""

    @abstractmethod
    async def update_preferences(self, user_id: int, preferences: Preferences) -> Optional[UserRecord]: ...


class OTPRepository(ABC):

    @abstractmethod
    async def insert(self, phone: str, code: str, created_at: datetime, expires_at: datetime) -> OneTimeCode: ...

    @abstractmethod
    async def find_valid(self, phone: str, code: str, now: datetime) -> Optional[OneTimeCode]:
        """Newest matching code whose expiry is after ``now``."""

    @abstractmethod
    async def delete_by_id(self, otp_id: int) -> bool:
        """Returns ``False`` when the row was already gone."""


class TaskRepository(ABC):

    @abstractmethod
    async def list_by_user(self, user_id: int) -> list[TaskOut]:
        """Newest first."""

    @abstractmethod
    async def list_recent(self, user_id: int, since: datetime, limit: int) -> list[TaskOut]: ...

    @abstractmethod
    async def get(self, user_id: int, task_id: int) -> Optional[TaskOut]: ...

    @abstractmethod
    async def create(self, user_id: int, task_in: TaskCreate) -> TaskOut: ...

    @abstractmethod
    async def update(self, user_id: int, task_id: int, changes: dict) -> Optional[TaskOut]: ...

    @abstractmethod
    async def delete(self, user_id: int, task_id: int) -> bool: ...


class ConversationRepository(ABC):

    @abstractmethod
    async def create(self, user_id: int, messages: list[ChatMessage]) -> ConversationRecord: ...


@dataclass
class Repositories:
    """Repositories bound to one unit of work (a pooled connection, or the in-memory tables)."""

    users: UserRepository
    otps: OTPRepository
    tasks: TaskRepository
    conversations: ConversationRepository
    transaction: Callable[[], AsyncContextManager]
