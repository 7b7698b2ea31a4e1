"""Pydantic models for the conversational assist response contract."""

from typing import Any, Dict, List, Literal

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

ActionType = Literal["propose_task", "propose_plan", "clarify", "none", "create_task"]
Priority = Literal["low", "medium", "high"]


def normalize_priority(v):
    if isinstance(v, str):
        return v.strip().lower()
    return v


def require_text(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("must be a non-empty string")
    return v


class ProposeTaskPayload(BaseModel):
    """Payload of a propose_task action."""

    title: str
    suggested_start: str
    suggested_end: str
    priority: Priority

    check_text = field_validator("title", "suggested_start", "suggested_end")(require_text)
    check_priority = field_validator("priority", mode="before")(normalize_priority)


class CreateTaskPayload(BaseModel):
    """Payload of the legacy create_task action."""

    title: str
    start: str
    end: str
    priority: Priority

    check_text = field_validator("title", "start", "end")(require_text)
    check_priority = field_validator("priority", mode="before")(normalize_priority)

    def as_proposal(self) -> ProposeTaskPayload:
        """Legacy create_task is handled as a proposal."""
        return ProposeTaskPayload(
            title=self.title,
            suggested_start=self.start,
            suggested_end=self.end,
            priority=self.priority,
        )


class PlanTaskPayload(BaseModel):
    """One block of a propose_plan action."""

    title: str
    start: str
    end: str
    priority: Priority = "medium"

    check_text = field_validator("title", "start", "end")(require_text)
    check_priority = field_validator("priority", mode="before")(normalize_priority)


class PlanPayload(BaseModel):
    """Payload of a propose_plan action."""

    plan_title: str
    tasks: List[PlanTaskPayload] = Field(..., min_length=1)

    check_text = field_validator("plan_title")(require_text)


PAYLOAD_MODELS = {
    "propose_task": ProposeTaskPayload,
    "create_task": CreateTaskPayload,
    "propose_plan": PlanPayload,
}


class AssistAction(BaseModel):
    """Action declared by the model."""

    type: ActionType
    payload: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("payload", mode="before")
    @classmethod
    def default_payload(cls, v):
        return {} if v is None else v

    @model_validator(mode="after")
    def check_payload_shape(self):
        """Task and plan actions must carry a payload of their own shape."""
        model = PAYLOAD_MODELS.get(self.type)
        if model is not None:
            try:
                model.model_validate(self.payload)
            except ValidationError as e:
                raise ValueError(f"invalid {self.type} payload: {e.error_count()} error(s)") from e
        return self


class AssistantReply(BaseModel):
    """A complete conversational assist response."""

    assistant_message: str
    action: AssistAction

    check_message = field_validator("assistant_message")(require_text)

    def task_payload(self) -> ProposeTaskPayload:
        """Typed payload for propose_task and legacy create_task actions."""
        if self.action.type == "create_task":
            return CreateTaskPayload.model_validate(self.action.payload).as_proposal()
        return ProposeTaskPayload.model_validate(self.action.payload)

    def plan_payload(self) -> PlanPayload:
        """Typed payload for propose_plan actions."""
        return PlanPayload.model_validate(self.action.payload)
