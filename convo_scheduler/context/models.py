"""Data models for conversation turns and pending proposals."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Union


@dataclass(frozen=True)
class ConversationTurn:
    """A single recorded message in a conversation."""

    role: str  # "user" or "assistant"
    content: str

    def __post_init__(self):
        if self.role not in ("user", "assistant"):
            raise ValueError(f"Invalid conversation role: {self.role}")

    def to_dict(self) -> Dict[str, str]:
        """Format the turn as a chat message dict."""
        return {"role": self.role, "content": self.content}


class ProposalKind(str, Enum):
    """Kind of proposal awaiting confirmation."""

    TASK = "task"
    PLAN = "plan"


@dataclass
class TaskProposal:
    """A candidate task. Timestamps are ISO 8601 local date-times."""

    title: str
    suggested_start: str
    suggested_end: str
    priority: str = "medium"


@dataclass
class PlanProposal:
    """A candidate set of tasks confirmed together."""

    plan_title: str
    tasks: List[TaskProposal] = field(default_factory=list)


@dataclass
class PendingProposal:
    """The single proposal a user may have outstanding."""

    kind: ProposalKind
    payload: Union[TaskProposal, PlanProposal]
    created_at: datetime = field(default_factory=datetime.now)

    def sub_tasks(self) -> List[TaskProposal]:
        """Return the task payloads in creation order."""
        if isinstance(self.payload, PlanProposal):
            return list(self.payload.tasks)
        return [self.payload]
