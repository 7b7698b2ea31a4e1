"""Pydantic models for the structured scheduling extraction.

The same shape is produced by the deterministic heuristics and by the
model's structured parsing contract, so both feed the same resolver.
"""

from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SchedulingIntent(str, Enum):
    """What the user asked for."""

    CREATE_TASK = "create_task"
    SCHEDULE_ONLY = "schedule_only"
    RESCHEDULE = "reschedule"
    MULTI_SCHEDULE = "multi_schedule"


class SchedulingTask(BaseModel):
    """One task mentioned in a request, with unresolved scheduling fields."""

    model_config = ConfigDict(populate_by_name=True)

    task_title: str = Field(alias="taskTitle", description="Task title")
    date_expression: Optional[str] = Field(
        default=None, alias="dateExpression", description="Date words as the user wrote them"
    )
    month: Optional[int] = Field(default=None, description="Month number (1-12)")
    weekday: Optional[str] = Field(default=None, description="Weekday name")
    weekday_ordinal: Optional[int] = Field(
        default=None, alias="weekdayOrdinal", description="Ordinal of the weekday within the month"
    )
    time: Optional[str] = Field(default=None, description="Time string, e.g. '10 pm' or '22:00'")
    priority: Literal["low", "medium", "high"] = Field(..., description="Task priority")

    @field_validator("task_title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """Titles must contain something other than whitespace."""
        v = v.strip()
        if not v:
            raise ValueError("taskTitle must be a non-empty string")
        return v

    @field_validator("priority", mode="before")
    @classmethod
    def normalize_priority(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v


class SchedulingExtraction(BaseModel):
    """Normalized scheduling intent for one utterance."""

    model_config = ConfigDict(populate_by_name=True)

    intent: SchedulingIntent
    tasks: List[SchedulingTask] = Field(..., min_length=1)
    requires_time_confirmation: bool = Field(default=False, alias="requiresTimeConfirmation")
    requires_clarification: bool = Field(default=False, alias="requiresClarification")
