from datetime import datetime
from typing import Optional
from asyncpg import Connection

from app.repositories.base import OTPRepository
from app.schemas.user_schema import OneTimeCode


class PgOTPRepository(OTPRepository):

    def __init__(self, conn: Connection):
        self.conn = conn

    async def insert(self, phone: str, code: str, created_at: datetime, expires_at: datetime) -> OneTimeCode:
        sql = """
            INSERT INTO otps (phone, code, created_at, expires_at)
            VALUES ($1, $2, $3, $4)
            RETURNING *;
        """
        record = await self.conn.fetchrow(sql, phone, code, created_at, expires_at)
        return OneTimeCode(**dict(record))

    async def find_valid(self, phone: str, code: str, now: datetime) -> Optional[OneTimeCode]:
        sql = """
            SELECT * FROM otps
            WHERE phone = $1 AND code = $2 AND expires_at > $3
            ORDER BY created_at DESC
            LIMIT 1;
        """
        record = await self.conn.fetchrow(sql, phone, code, now)
        return OneTimeCode(**dict(record)) if record else None

    async def delete_by_id(self, otp_id: int) -> bool:
        sql = "DELETE FROM otps WHERE id = $1 RETURNING id;"
        deleted = await self.conn.fetchval(sql, otp_id)
        return deleted is not None
