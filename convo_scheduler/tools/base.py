"""Task-creation capability interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional


@dataclass
class ToolResult:
    """Result from a task writer call."""

    success: bool
    data: Any
    error: Optional[str] = None
    message: Optional[str] = None


class BaseTaskWriter(ABC):
    """Abstract base class for anything that persists confirmed tasks."""

    def __init__(self, name: str, description: str):
        """
        Initialize writer.

        Args:
            name: Writer name (used in logs)
            description: Writer description
        """
        self.name = name
        self.description = description

    @abstractmethod
    async def create_task(
        self,
        user_id: str,
        title: str,
        start: datetime,
        end: datetime,
        priority: str,
    ) -> ToolResult:
        """
        Persist one task.

        Args:
            user_id: Owner of the task
            title: Task title
            start: Local start time
            end: Local end time
            priority: "low", "medium" or "high"

        Returns:
            ToolResult whose data is {"task_id": ...} on success
        """
        pass

    def validate_input(self, title: str, start: datetime, end: datetime) -> bool:
        """
        Validate task parameters.

        Returns:
            True if valid, False otherwise
        """
        return bool(title and title.strip()) and end > start
