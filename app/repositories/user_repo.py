from typing import Optional
from asyncpg import Connection, UniqueViolationError

from app.core.exceptions import UserAlreadyExistsException
from app.repositories.base import UserRepository
from app.schemas.user_schema import Preferences, UserRecord


class PgUserRepository(UserRepository):

    def __init__(self, conn: Connection):
        self.conn = conn

    async def find_by_email(self, email: str) -> Optional[UserRecord]:
        sql = "SELECT * FROM users WHERE lower(email) = lower($1);"
        record = await self.conn.fetchrow(sql, email)
        return UserRecord(**dict(record)) if record else None

    async def find_by_phone(self, phone: str) -> Optional[UserRecord]:
        sql = "SELECT * FROM users WHERE phone = $1;"
        record = await self.conn.fetchrow(sql, phone)
        return UserRecord(**dict(record)) if record else None

    async def find_by_id(self, user_id: int) -> Optional[UserRecord]:
        sql = "SELECT * FROM users WHERE id = $1;"
        record = await self.conn.fetchrow(sql, user_id)
        return UserRecord(**dict(record)) if record else None

    async def insert(
        self,
        *,
        name: str,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        hashed_password: Optional[str] = None,
        preferences: Optional[Preferences] = None,
    ) -> UserRecord:
        sql = """
            INSERT INTO users (email, phone, hashed_password, name, preferences)
            VALUES ($1, $2, $3, $4, $5)
            RETURNING *;
        """
        preferences = preferences or Preferences()
        try:
            record = await self.conn.fetchrow(
                sql,
                email.lower() if email else None,
                phone,
                hashed_password,
                name,
                preferences.model_dump(),
            )
        except UniqueViolationError as e:
            field = "phone number" if "phone" in (getattr(e, "constraint_name", None) or "") else "email"
            raise UserAlreadyExistsException(field)
        return UserRecord(**dict(record))

    async def update_preferences(self, user_id: int, preferences: Preferences) -> Optional[UserRecord]:
        sql = "UPDATE users SET preferences = $1 WHERE id = $2 RETURNING *;"
        record = await self.conn.fetchrow(sql, preferences.model_dump(), user_id)
        return UserRecord(**dict(record)) if record else None
