"""Tests for task materialization."""

from datetime import datetime

import pytest

from convo_scheduler.agent.errors import MaterializationFailure
from convo_scheduler.agent.materializer import TaskMaterializer
from convo_scheduler.agent.proposals import ValidatedTask
from convo_scheduler.tools.base import ToolResult
from convo_scheduler.tools.memory_task_writer import InMemoryTaskWriter


class FlakyTaskWriter(InMemoryTaskWriter):
    """Fails for the titles it is told to fail."""

    def __init__(self, failing_titles=(), raising_titles=()):
        super().__init__()
        self.failing_titles = set(failing_titles)
        self.raising_titles = set(raising_titles)

    async def create_task(self, user_id, title, start, end, priority):
        if title in self.raising_titles:
            raise ConnectionError("store offline")
        if title in self.failing_titles:
            return ToolResult(success=False, data=None, error="quota exceeded")
        return await super().create_task(user_id, title, start, end, priority)


class NoIdTaskWriter(InMemoryTaskWriter):
    async def create_task(self, user_id, title, start, end, priority):
        return ToolResult(success=True, data={})


def _task(title):
    return ValidatedTask(title, datetime(2025, 1, 2, 7, 0), datetime(2025, 1, 2, 8, 0), "medium")


class TestMaterialize:
    @pytest.mark.asyncio
    async def test_success_returns_id(self):
        writer = InMemoryTaskWriter()
        task_id = await TaskMaterializer(writer).materialize("u1", _task("Gym"))

        assert writer.tasks[0]["id"] == task_id
        assert writer.tasks[0]["time_slot_start"] == datetime(2025, 1, 2, 7, 0)
        assert writer.list_tasks("u1")[0]["title"] == "Gym"

    @pytest.mark.asyncio
    async def test_failed_result(self):
        materializer = TaskMaterializer(FlakyTaskWriter(failing_titles={"Gym"}))
        with pytest.raises(MaterializationFailure) as exc_info:
            await materializer.materialize("u1", _task("Gym"))
        assert exc_info.value.title == "Gym"
        assert exc_info.value.reason == "quota exceeded"
        assert str(exc_info.value) == "Failed to create task 'Gym': quota exceeded"

    @pytest.mark.asyncio
    async def test_writer_exception(self):
        materializer = TaskMaterializer(FlakyTaskWriter(raising_titles={"Gym"}))
        with pytest.raises(MaterializationFailure) as exc_info:
            await materializer.materialize("u1", _task("Gym"))
        assert "store offline" in exc_info.value.reason

    @pytest.mark.asyncio
    async def test_missing_id(self):
        with pytest.raises(MaterializationFailure):
            await TaskMaterializer(NoIdTaskWriter()).materialize("u1", _task("Gym"))

    @pytest.mark.asyncio
    async def test_writer_rejects_invalid_window(self):
        bad = ValidatedTask("Gym", datetime(2025, 1, 2, 8, 0), datetime(2025, 1, 2, 7, 0), "medium")
        with pytest.raises(MaterializationFailure):
            await TaskMaterializer(InMemoryTaskWriter()).materialize("u1", bad)


class TestMaterializeAll:
    @pytest.mark.asyncio
    async def test_best_effort_without_rollback(self):
        writer = FlakyTaskWriter(failing_titles={"B"})
        report = await TaskMaterializer(writer).materialize_all("u1", [_task("A"), _task("B"), _task("C")])

        assert [task.title for task, _ in report.created] == ["A", "C"]
        assert [failure.title for failure in report.failed] == ["B"]
        assert report.all_succeeded is False
        assert len(report.created_ids) == 2
        assert [t["title"] for t in writer.tasks] == ["A", "C"]

    @pytest.mark.asyncio
    async def test_all_succeed(self):
        report = await TaskMaterializer(InMemoryTaskWriter()).materialize_all("u1", [_task("A")])
        assert report.all_succeeded

    @pytest.mark.asyncio
    async def test_log_names_the_writer(self, caplog):
        caplog.set_level("INFO", logger="convo_scheduler.agent.materializer")

        task_id = await TaskMaterializer(InMemoryTaskWriter()).materialize("u1", _task("Gym"))

        assert f"Created task {task_id} 'Gym' for user u1 via memory_task_writer" in caplog.text
