"""Per-user conversation history and pending proposal storage."""

import logging
from abc import ABC, abstractmethod
from collections import deque
from typing import Deque, Dict, List, Optional

from .models import ConversationTurn, PendingProposal

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 10


class SessionStore(ABC):
    """Keyed storage for conversation history and the pending proposal.

    Implementations hold state for the lifetime of the process only.
    No locking is done; concurrent turns for the same user race and the
    last write wins.
    """

    @abstractmethod
    def get_history(self, user_id: str) -> List[ConversationTurn]:
        """
        Get the user's conversation history, oldest first.

        Args:
            user_id: User identifier

        Returns:
            List of ConversationTurn (empty for unknown users)
        """
        pass

    @abstractmethod
    def append_turn(self, user_id: str, turn: ConversationTurn) -> None:
        """
        Record a turn, evicting the oldest ones beyond the history limit.

        Args:
            user_id: User identifier
            turn: Turn to record
        """
        pass

    @abstractmethod
    def get_pending(self, user_id: str) -> Optional[PendingProposal]:
        """Get the user's pending proposal, if any."""
        pass

    @abstractmethod
    def set_pending(self, user_id: str, proposal: PendingProposal) -> None:
        """Replace the user's pending proposal."""
        pass

    @abstractmethod
    def clear_pending(self, user_id: str) -> None:
        """Drop the user's pending proposal (no-op if none)."""
        pass


class InMemorySessionStore(SessionStore):
    """Process-local session store backed by dictionaries."""

    def __init__(self, history_limit: int = DEFAULT_HISTORY_LIMIT):
        """
        Initialize the store.

        Args:
            history_limit: Maximum number of turns kept per user
        """
        if history_limit < 1:
            raise ValueError("history_limit must be at least 1")
        self.history_limit = history_limit
        self._histories: Dict[str, Deque[ConversationTurn]] = {}
        self._pending: Dict[str, PendingProposal] = {}

    def get_history(self, user_id: str) -> List[ConversationTurn]:
        return list(self._histories.get(user_id, ()))

    def append_turn(self, user_id: str, turn: ConversationTurn) -> None:
        history = self._histories.get(user_id)
        if history is None:
            history = deque(maxlen=self.history_limit)
            self._histories[user_id] = history
        history.append(turn)

    def get_pending(self, user_id: str) -> Optional[PendingProposal]:
        return self._pending.get(user_id)

    def set_pending(self, user_id: str, proposal: PendingProposal) -> None:
        if user_id in self._pending:
            logger.debug(f"Replacing pending {self._pending[user_id].kind.value} proposal for user {user_id}")
        self._pending[user_id] = proposal

    def clear_pending(self, user_id: str) -> None:
        self._pending.pop(user_id, None)
