"""Conversation history and pending proposal storage."""

from .models import ConversationTurn, PendingProposal, PlanProposal, ProposalKind, TaskProposal
from .session_store import InMemorySessionStore, SessionStore

__all__ = [
    "ConversationTurn",
    "PendingProposal",
    "PlanProposal",
    "ProposalKind",
    "TaskProposal",
    "InMemorySessionStore",
    "SessionStore",
]
