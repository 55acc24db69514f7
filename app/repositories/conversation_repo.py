from asyncpg import Connection

from app.repositories.base import ConversationRepository
from app.schemas.chat_schema import ChatMessage, ConversationRecord


class PgConversationRepository(ConversationRepository):

    def __init__(self, conn: Connection):
        self.conn = conn

    async def create(self, user_id: int, messages: list[ChatMessage]) -> ConversationRecord:
        sql = """
            INSERT INTO conversations (user_id, messages)
            VALUES ($1, $2)
            RETURNING *;
        """
        record = await self.conn.fetchrow(sql, user_id, [m.model_dump() for m in messages])
        return ConversationRecord(**dict(record))
