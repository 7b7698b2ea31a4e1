"""Task-creation capability."""

from .base import BaseTaskWriter, ToolResult
from .memory_task_writer import InMemoryTaskWriter
from .sqlite_task_writer import SQLiteTaskWriter

__all__ = ["BaseTaskWriter", "ToolResult", "InMemoryTaskWriter", "SQLiteTaskWriter"]
