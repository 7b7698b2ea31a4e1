"""Conversational scheduling engine."""

from .classifier import Classification, UtteranceKind, classify
from .errors import (
    AssistUnavailable,
    GenerativeAssistError,
    MalformedAssistOutput,
    MaterializationFailure,
    SchedulingError,
    StaleOrInvalidConfirmation,
    UnparseableRequest,
)
from .generative_assist import GenerativeAssist
from .materializer import MaterializationReport, TaskMaterializer
from .proposals import SlotPolicy
from .state_machine import MessageResult, SchedulingStateMachine

__all__ = [
    "Classification",
    "UtteranceKind",
    "classify",
    "AssistUnavailable",
    "GenerativeAssistError",
    "MalformedAssistOutput",
    "MaterializationFailure",
    "SchedulingError",
    "StaleOrInvalidConfirmation",
    "UnparseableRequest",
    "GenerativeAssist",
    "MaterializationReport",
    "TaskMaterializer",
    "SlotPolicy",
    "MessageResult",
    "SchedulingStateMachine",
]
