"""In-memory task writer."""

import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List

from .base import BaseTaskWriter, ToolResult

logger = logging.getLogger(__name__)


class InMemoryTaskWriter(BaseTaskWriter):
    """Keeps created tasks in a list; useful for tests and dry runs."""

    def __init__(self):
        super().__init__(
            name="memory_task_writer",
            description="Stores tasks in process memory.",
        )
        self.tasks: List[Dict[str, Any]] = []

    async def create_task(
        self,
        user_id: str,
        title: str,
        start: datetime,
        end: datetime,
        priority: str,
    ) -> ToolResult:
        if not self.validate_input(title, start, end):
            return ToolResult(
                success=False,
                data=None,
                error=f"Invalid task: title={title!r}, start={start}, end={end}",
            )

        task_id = str(uuid.uuid4())
        self.tasks.append(
            {
                "id": task_id,
                "user_id": user_id,
                "title": title,
                "priority": priority,
                "time_slot_start": start,
                "time_slot_end": end,
            }
        )
        logger.debug(f"Stored task {task_id} '{title}' for user {user_id}")
        return ToolResult(
            success=True,
            data={"task_id": task_id},
            message=f"Created task '{title}'",
        )

    def list_tasks(self, user_id: str) -> List[Dict[str, Any]]:
        """Tasks created for a user, in creation order."""
        return [task for task in self.tasks if task["user_id"] == user_id]
