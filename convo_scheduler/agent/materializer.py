"""Turns confirmed proposals into persisted tasks."""

import logging
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

from ..tools.base import BaseTaskWriter
from .errors import MaterializationFailure
from .proposals import ValidatedTask

logger = logging.getLogger(__name__)


@dataclass
class MaterializationReport:
    """Outcome of materializing every sub-task of a proposal."""

    created: List[Tuple[ValidatedTask, str]] = field(default_factory=list)
    failed: List[MaterializationFailure] = field(default_factory=list)

    @property
    def created_ids(self) -> List[str]:
        return [task_id for _, task_id in self.created]

    @property
    def all_succeeded(self) -> bool:
        return not self.failed


class TaskMaterializer:
    """Calls the task writer for confirmed tasks.

    Plans are materialized best-effort: each sub-task is created
    independently and nothing is rolled back when a later one fails.
    """

    def __init__(self, task_writer: BaseTaskWriter):
        self.task_writer = task_writer

    async def materialize(self, user_id: str, task: ValidatedTask) -> str:
        """
        Create one task.

        Args:
            user_id: Owner of the task
            task: Validated task

        Returns:
            Identifier of the created task

        Raises:
            MaterializationFailure: If the writer rejects the task
        """
        try:
            result = await self.task_writer.create_task(
                user_id=user_id,
                title=task.title,
                start=task.start,
                end=task.end,
                priority=task.priority,
            )
        except Exception as e:
            raise MaterializationFailure(task.title, str(e)) from e

        if not result.success:
            raise MaterializationFailure(task.title, result.error)

        task_id = str((result.data or {}).get("task_id", ""))
        if not task_id:
            raise MaterializationFailure(task.title, "writer returned no task id")

        logger.info(f"Created task {task_id} '{task.title}' for user {user_id} via {self.task_writer.name}")
        return task_id

    async def materialize_all(self, user_id: str, tasks: Sequence[ValidatedTask]) -> MaterializationReport:
        """
        Create every task in order, collecting failures.

        Args:
            user_id: Owner of the tasks
            tasks: Validated tasks in creation order

        Returns:
            MaterializationReport
        """
        report = MaterializationReport()
        for task in tasks:
            try:
                task_id = await self.materialize(user_id, task)
            except MaterializationFailure as e:
                logger.error(f"Materialization failed for user {user_id}: {e}", exc_info=True)
                report.failed.append(e)
                continue
            report.created.append((task, task_id))
        return report
