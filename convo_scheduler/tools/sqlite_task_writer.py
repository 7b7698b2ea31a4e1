"""SQLite task store."""

import logging
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List

import aiosqlite

from .base import BaseTaskWriter, ToolResult

logger = logging.getLogger(__name__)


class SQLiteTaskWriter(BaseTaskWriter):
    """Persists confirmed tasks in a SQLite database."""

    def __init__(self, db_path: str = "data/tasks.db"):
        """
        Initialize the task store.

        Args:
            db_path: Path to SQLite database file
        """
        super().__init__(
            name="sqlite_task_writer",
            description="Stores tasks in a SQLite database.",
        )
        self.db_path = db_path
        self._initialized = False

    async def initialize(self) -> None:
        """Initialize database schema."""
        if self._initialized:
            return

        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    title TEXT NOT NULL,
                    priority TEXT NOT NULL DEFAULT 'medium',
                    time_slot_start TEXT NOT NULL,
                    time_slot_end TEXT NOT NULL,
                    created_at TEXT NOT NULL
                )
                """
            )
            await db.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_tasks_user_start
                ON tasks(user_id, time_slot_start)
                """
            )
            await db.commit()

        self._initialized = True
        logger.debug(f"Task database ready at {self.db_path}")

    async def create_task(
        self,
        user_id: str,
        title: str,
        start: datetime,
        end: datetime,
        priority: str,
    ) -> ToolResult:
        """
        Insert a task row.

        Returns:
            ToolResult with {"task_id": ...}, or an error result when the
            input is invalid or the database rejects the insert
        """
        if not self.validate_input(title, start, end):
            return ToolResult(
                success=False,
                data=None,
                error=f"Invalid task: title={title!r}, start={start}, end={end}",
            )

        await self.initialize()
        task_id = str(uuid.uuid4())

        try:
            async with aiosqlite.connect(self.db_path) as db:
                await db.execute(
                    """
                    INSERT INTO tasks (id, user_id, title, priority, time_slot_start, time_slot_end, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        task_id,
                        user_id,
                        title,
                        priority,
                        start.isoformat(timespec="seconds"),
                        end.isoformat(timespec="seconds"),
                        datetime.now().isoformat(timespec="seconds"),
                    ),
                )
                await db.commit()
        except aiosqlite.Error as e:
            logger.error(f"Failed to insert task '{title}': {e}", exc_info=True)
            return ToolResult(
                success=False,
                data=None,
                error=f"Database error: {str(e)}",
            )

        return ToolResult(
            success=True,
            data={"task_id": task_id},
            message=f"Created task '{title}'",
        )

    async def list_tasks(self, user_id: str) -> List[Dict[str, Any]]:
        """
        Get a user's tasks.

        Args:
            user_id: Owner of the tasks

        Returns:
            Task rows as dicts, ordered by start time
        """
        await self.initialize()

        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute(
                """
                SELECT id, user_id, title, priority, time_slot_start, time_slot_end, created_at
                FROM tasks
                WHERE user_id = ?
                ORDER BY time_slot_start ASC
                """,
                (user_id,),
            ) as cursor:
                rows = await cursor.fetchall()

        return [
            {
                "id": row["id"],
                "user_id": row["user_id"],
                "title": row["title"],
                "priority": row["priority"],
                "time_slot_start": datetime.fromisoformat(row["time_slot_start"]),
                "time_slot_end": datetime.fromisoformat(row["time_slot_end"]),
                "created_at": datetime.fromisoformat(row["created_at"]),
            }
            for row in rows
        ]
