from datetime import datetime
from typing import Optional
from asyncpg import Connection

from app.repositories.base import TaskRepository
from app.schemas.task_schema import TaskCreate, TaskOut

UPDATABLE_COLUMNS = ("title", "description", "priority", "category", "completed", "due_date")


class PgTaskRepository(TaskRepository):
    """Repository for a user's tasks, backed by asyncpg."""

    def __init__(self, conn: Connection):
        self.conn = conn

    # ------------------ Retrieval Methods ------------------ #

    async def list_by_user(self, user_id: int) -> list[TaskOut]:
        sql = "SELECT * FROM tasks WHERE user_id = $1 ORDER BY created_at DESC, id DESC;"
        records = await self.conn.fetch(sql, user_id)
        return [TaskOut(**dict(record)) for record in records]

    async def list_recent(self, user_id: int, since: datetime, limit: int) -> list[TaskOut]:
        sql = """
            SELECT * FROM tasks
            WHERE user_id = $1 AND created_at >= $2
            ORDER BY created_at DESC
            LIMIT $3;
        """
        records = await self.conn.fetch(sql, user_id, since, limit)
        return [TaskOut(**dict(record)) for record in records]

    async def get(self, user_id: int, task_id: int) -> Optional[TaskOut]:
        sql = "SELECT * FROM tasks WHERE id = $1 AND user_id = $2;"
        record = await self.conn.fetchrow(sql, task_id, user_id)
        return TaskOut(**dict(record)) if record else None

    # ------------------ Creation ------------------ #

    async def create(self, user_id: int, task_in: TaskCreate) -> TaskOut:
        sql = """
            INSERT INTO tasks (user_id, title, description, priority, category, completed, due_date)
            VALUES ($1, $2, $3, $4, $5, FALSE, $6)
            RETURNING *;
        """
        record = await self.conn.fetchrow(
            sql,
            user_id,
            task_in.title,
            task_in.description,
            task_in.priority,
            task_in.category,
            task_in.due_date,
        )
        return TaskOut(**dict(record))

    # ------------------ Update / Delete ------------------ #

    async def update(self, user_id: int, task_id: int, changes: dict) -> Optional[TaskOut]:
        columns = [c for c in UPDATABLE_COLUMNS if c in changes]
        if not columns:
            return await self.get(user_id, task_id)
        assignments = ", ".join(f"{col} = ${i}" for i, col in enumerate(columns, start=3))
        sql = f"UPDATE tasks SET {assignments} WHERE id = $1 AND user_id = $2 RETURNING *;"
        record = await self.conn.fetchrow(sql, task_id, user_id, *(changes[c] for c in columns))
        return TaskOut(**dict(record)) if record else None

    async def delete(self, user_id: int, task_id: int) -> bool:
        sql = "DELETE FROM tasks WHERE id = $1 AND user_id = $2 RETURNING id;"
        deleted = await self.conn.fetchval(sql, task_id, user_id)
        return deleted is not None
