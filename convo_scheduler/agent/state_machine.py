"""Confirmation state machine for conversational scheduling.

Each user is either idle or has exactly one pending proposal (a task or
a plan). Tasks are only ever created from a pending proposal after an
explicit confirmation, and only from payloads validated at that moment.
"""

import logging
import time as time_module
from datetime import datetime
from typing import Callable, List, Literal, Optional, Sequence

from pydantic import BaseModel, Field

from ..context.models import (
    ConversationTurn,
    PendingProposal,
    PlanProposal,
    ProposalKind,
    TaskProposal,
)
from ..context.session_store import SessionStore
from ..parsing.datetime_extractor import DateTimeExtractor
from ..parsing.heuristics import derive_plan_topic, detect_priority, extract_title
from ..parsing.resolver import ExtractionResolver, heuristic_extraction
from ..parsing.schemas import SchedulingExtraction
from .classifier import Classification, UtteranceKind, classify
from .errors import (
    AssistUnavailable,
    MalformedAssistOutput,
    StaleOrInvalidConfirmation,
    UnparseableRequest,
)
from .generative_assist import FALLBACK_MESSAGE, GenerativeAssist
from .materializer import TaskMaterializer
from .proposals import (
    SlotPolicy,
    ValidatedTask,
    apply_adjustment,
    build_default_plan,
    describe_plan,
    describe_task,
    make_task_proposal,
    plan_from_assist,
    plan_from_resolved,
    proposal_from_assist,
    proposal_from_resolved,
    topic_proposal,
    validate_task_payload,
)

logger = logging.getLogger(__name__)

ASSIST_MODES = ("conversational", "structured")

EMPTY_MESSAGE_REPLY = "Please describe what you want to schedule."
GREETING_REPLY = "Hi! What would you like to schedule? For example: 'study tomorrow at 5pm'."
BARE_REQUEST_REPLY = "Sure! What is the task, and when should it happen?"
CLARIFY_REPLY = (
    "I couldn't work out what to schedule. "
    "Could you tell me the task and when, for example 'gym tomorrow at 7am'?"
)
UNREADABLE_DATE_REPLY = (
    "I couldn't read that date or time. "
    "Could you say it another way, for example 'tomorrow at 5pm'?"
)
REJECTED_REPLY = "Okay, I dropped that proposal. What would you like to schedule instead?"
RESTATE_REPLY = (
    "That proposal is no longer valid, so I dropped it. "
    "Please tell me again what you want to schedule."
)
CONFIRM_QUESTION = "Should I schedule it?"
PLAN_CONFIRM_QUESTION = "Should I schedule this plan?"


class MessageResult(BaseModel):
    """Reply to one inbound message."""

    success: bool
    message: str
    requires_confirmation: bool = False
    created_task_ids: List[str] = Field(default_factory=list)
    state: Literal["idle", "task_pending", "plan_pending"] = "idle"
    processing_time_ms: float = 0.0


class SchedulingStateMachine:
    """Orchestrates classification, extraction, assist and materialization."""

    def __init__(
        self,
        session_store: SessionStore,
        materializer: TaskMaterializer,
        assist: Optional[GenerativeAssist] = None,
        policy: Optional[SlotPolicy] = None,
        assist_mode: str = "conversational",
        assist_history_turns: int = 6,
        clock: Callable[[], datetime] = datetime.now,
        extractor: Optional[DateTimeExtractor] = None,
    ):
        """
        Initialize the state machine.

        Args:
            session_store: Per-user history and pending proposal storage
            materializer: Creates confirmed tasks
            assist: Optional generative assist; None means deterministic only
            policy: Default slot policy
            assist_mode: "conversational" (action contract) or "structured"
                (extraction contract with retries)
            assist_history_turns: Number of recent turns sent to the model
            clock: Returns the current local moment
            extractor: Date/time extractor
        """
        if assist_mode not in ASSIST_MODES:
            raise ValueError(f"Unknown assist mode: {assist_mode}. Supported: {', '.join(ASSIST_MODES)}")
        self.session_store = session_store
        self.materializer = materializer
        self.assist = assist
        self.policy = policy or SlotPolicy()
        self.assist_mode = assist_mode
        self.assist_history_turns = assist_history_turns
        self.clock = clock
        self.extractor = extractor or DateTimeExtractor()
        self.resolver = ExtractionResolver(self.extractor)

    async def handle_message(self, user_id: str, text: str) -> MessageResult:
        """
        Handle one inbound message.

        Args:
            user_id: User identifier
            text: Raw message text

        Returns:
            MessageResult with the reply and the user's resulting state
        """
        started = time_module.perf_counter()

        if not text or not text.strip():
            return MessageResult(
                success=False,
                message=EMPTY_MESSAGE_REPLY,
                state=self._state_name(user_id),
                processing_time_ms=_elapsed_ms(started),
            )

        now = self.clock()
        history = self.session_store.get_history(user_id)
        pending = self.session_store.get_pending(user_id)
        classification = classify(text, pending is not None)
        logger.info(f"Message from user {user_id} classified as {classification.kind.value}")

        if pending is None:
            result = await self._handle_idle(user_id, text, classification, history, now)
        else:
            result = await self._handle_pending(user_id, text, classification, pending, history, now)

        self.session_store.append_turn(user_id, ConversationTurn(role="user", content=text))
        self.session_store.append_turn(user_id, ConversationTurn(role="assistant", content=result.message))

        result.state = self._state_name(user_id)
        result.processing_time_ms = _elapsed_ms(started)
        return result

    def _state_name(self, user_id: str) -> str:
        pending = self.session_store.get_pending(user_id)
        if pending is None:
            return "idle"
        return "plan_pending" if pending.kind == ProposalKind.PLAN else "task_pending"

    # Pending state

    async def _handle_pending(
        self,
        user_id: str,
        text: str,
        classification: Classification,
        pending: PendingProposal,
        history: Sequence[ConversationTurn],
        now: datetime,
    ) -> MessageResult:
        kind = classification.kind

        if kind == UtteranceKind.CONFIRMATION:
            return await self._confirm(user_id, pending)

        if kind == UtteranceKind.REJECTION:
            self.session_store.clear_pending(user_id)
            logger.info(f"User {user_id} rejected pending {pending.kind.value} proposal")
            return MessageResult(success=True, message=REJECTED_REPLY)

        if kind == UtteranceKind.GREETING:
            return self._restate_pending(pending)

        if kind == UtteranceKind.ADJUSTMENT and pending.kind == ProposalKind.TASK:
            return self._adjust(user_id, text, pending, now)

        # Unrelated text supersedes the proposal; handle it as if idle.
        self.session_store.clear_pending(user_id)
        logger.info(f"Dropped pending {pending.kind.value} proposal for user {user_id}: superseded")
        return await self._handle_idle(user_id, text, classify(text, False), history, now)

    def _restate_pending(self, pending: PendingProposal) -> MessageResult:
        if isinstance(pending.payload, PlanProposal):
            message = f"Hi! Your plan '{pending.payload.plan_title}' is still waiting. {PLAN_CONFIRM_QUESTION}"
        else:
            message = f"Hi! You still have {describe_task(pending.payload)} waiting. {CONFIRM_QUESTION}"
        return MessageResult(success=True, message=message, requires_confirmation=True)

    def _adjust(self, user_id: str, text: str, pending: PendingProposal, now: datetime) -> MessageResult:
        reading = self.extractor.extract(text, now)
        if reading.is_empty:
            logger.debug(f"Adjustment '{text}' had tokens but nothing resolvable")
            return MessageResult(
                success=True,
                message=f"{UNREADABLE_DATE_REPLY} You still have {describe_task(pending.payload)} waiting.",
                requires_confirmation=True,
            )

        try:
            adjusted = apply_adjustment(pending.payload, reading, now, self.policy)
        except StaleOrInvalidConfirmation as e:
            logger.warning(f"Dropping invalid proposal for user {user_id}: {e}")
            self.session_store.clear_pending(user_id)
            return MessageResult(success=False, message=RESTATE_REPLY)

        updated = PendingProposal(kind=ProposalKind.TASK, payload=adjusted, created_at=now)
        self.session_store.set_pending(user_id, updated)
        logger.info(f"Adjusted proposal for user {user_id}: {adjusted.suggested_start}")
        return MessageResult(
            success=True,
            message=f"Updated: {describe_task(adjusted)}. {CONFIRM_QUESTION}",
            requires_confirmation=True,
        )

    async def _confirm(self, user_id: str, pending: PendingProposal) -> MessageResult:
        valid: List[ValidatedTask] = []
        skipped = 0
        for task in pending.sub_tasks():
            try:
                valid.append(validate_task_payload(task))
            except StaleOrInvalidConfirmation as e:
                logger.warning(f"Skipping invalid sub-task for user {user_id}: {e}")
                skipped += 1

        if not valid:
            self.session_store.clear_pending(user_id)
            return MessageResult(success=False, message=RESTATE_REPLY)

        report = await self.materializer.materialize_all(user_id, valid)

        if not report.created:
            # Nothing was created; keep the proposal so "confirm" can retry.
            reasons = "; ".join(e.reason for e in report.failed)
            return MessageResult(
                success=False,
                message=f"Sorry, I couldn't create the task ({reasons}). Reply 'confirm' to try again or 'cancel' to drop it.",
                requires_confirmation=True,
            )

        self.session_store.clear_pending(user_id)
        count = len(report.created)
        noun = "task" if count == 1 else "tasks"
        lines = [f"Done! I've scheduled {count} {noun}:"]
        lines.extend(
            f"- {describe_task(make_task_proposal(task.title, task.start, task.end, task.priority))}"
            for task, _ in report.created
        )
        if report.failed:
            lines.append("These could not be created:")
            lines.extend(f"- '{e.title}': {e.reason}" for e in report.failed)
        if skipped:
            lines.append(f"Skipped {skipped} invalid {'entry' if skipped == 1 else 'entries'}.")

        logger.info(f"Confirmed proposal for user {user_id}: {count} created, {len(report.failed)} failed")
        return MessageResult(
            success=not report.failed,
            message="\n".join(lines),
            created_task_ids=report.created_ids,
        )

    # Idle state

    async def _handle_idle(
        self,
        user_id: str,
        text: str,
        classification: Classification,
        history: Sequence[ConversationTurn],
        now: datetime,
    ) -> MessageResult:
        kind = classification.kind

        if kind == UtteranceKind.GREETING:
            return MessageResult(success=True, message=GREETING_REPLY)

        if kind == UtteranceKind.BARE_CREATE_REQUEST:
            return MessageResult(success=True, message=BARE_REQUEST_REPLY)

        if kind == UtteranceKind.PLAN_REQUEST:
            if self.assist is not None and self.assist_mode == "conversational":
                return await self._converse(user_id, text, history, now)
            topic = derive_plan_topic(text)
            plan = build_default_plan(
                topic,
                now,
                self.policy,
                priority=detect_priority(text),
                reading=self.extractor.extract(text, now),
            )
            return self._propose_plan(user_id, plan, now)

        if kind == UtteranceKind.TOPIC_ONLY:
            title = extract_title(text) or text.strip()
            proposal = topic_proposal(title, detect_priority(text), now, self.policy)
            return self._propose_task(user_id, proposal, now)

        return await self._run_pipeline(user_id, text, history, now)

    async def _run_pipeline(
        self,
        user_id: str,
        text: str,
        history: Sequence[ConversationTurn],
        now: datetime,
    ) -> MessageResult:
        if self.assist is None:
            extraction = heuristic_extraction(text, now, self.extractor)
            if extraction is None:
                return MessageResult(success=True, message=CLARIFY_REPLY)
            return self._propose_extraction(user_id, text, extraction, now)

        if self.assist_mode == "conversational":
            return await self._converse(user_id, text, history, now)

        try:
            extraction = await self.assist.parse_request(text, self._short_history(history))
        except AssistUnavailable as e:
            logger.warning(f"Structured parse unavailable for user {user_id}: {e}")
            return MessageResult(success=False, message=FALLBACK_MESSAGE)
        except UnparseableRequest as e:
            logger.warning(f"Structured parse gave up for user {user_id} after {e.attempts} attempts")
            return MessageResult(success=False, message=CLARIFY_REPLY)
        return self._propose_extraction(user_id, text, extraction, now)

    def _propose_extraction(
        self,
        user_id: str,
        text: str,
        extraction: SchedulingExtraction,
        now: datetime,
    ) -> MessageResult:
        if extraction.requires_clarification:
            return MessageResult(success=True, message=UNREADABLE_DATE_REPLY)

        resolved = self.resolver.resolve(extraction, text, now)
        if len(resolved) > 1:
            return self._propose_plan(user_id, plan_from_resolved(resolved, now, self.policy), now)

        result = self._propose_task(user_id, proposal_from_resolved(resolved[0], now, self.policy), now)
        if extraction.requires_time_confirmation:
            result.message += " I picked a default time; tell me another one if you prefer."
        return result

    async def _converse(
        self,
        user_id: str,
        text: str,
        history: Sequence[ConversationTurn],
        now: datetime,
    ) -> MessageResult:
        try:
            reply = await self.assist.respond(text, self._short_history(history), now)
            action = reply.action.type

            if action in ("propose_task", "create_task"):
                if action == "create_task":
                    logger.info("Treating legacy create_task action as a proposal")
                proposal = self._anchor(proposal_from_assist(reply.task_payload()), text, now)
                return self._propose_task(user_id, proposal, now)

            if action == "propose_plan":
                return self._propose_plan(user_id, plan_from_assist(reply.plan_payload()), now)
        except MalformedAssistOutput as e:
            logger.warning(f"Malformed assist output for user {user_id}: {e}")
            return MessageResult(success=False, message=CLARIFY_REPLY)

        # clarify and none are shown verbatim
        return MessageResult(success=reply.assistant_message != FALLBACK_MESSAGE, message=reply.assistant_message)

    def _anchor(self, proposal: TaskProposal, text: str, now: datetime) -> TaskProposal:
        """Let dates and times written in the user's text override the model's window."""
        reading = self.extractor.extract(text, now)
        anchored = proposal
        if not reading.is_empty:
            anchored = apply_adjustment(proposal, reading, now, self.policy)
            if anchored.suggested_start != proposal.suggested_start:
                logger.debug(f"Anchored model window {proposal.suggested_start} -> {anchored.suggested_start}")
        anchored.priority = detect_priority(text, anchored.priority)
        return anchored

    def _short_history(self, history: Sequence[ConversationTurn]) -> List[ConversationTurn]:
        if self.assist_history_turns <= 0:
            return []
        return list(history)[-self.assist_history_turns :]

    def _propose_task(self, user_id: str, proposal: TaskProposal, now: datetime) -> MessageResult:
        pending = PendingProposal(kind=ProposalKind.TASK, payload=proposal, created_at=now)
        self.session_store.set_pending(user_id, pending)
        logger.info(f"Proposed task '{proposal.title}' at {proposal.suggested_start} for user {user_id}")
        return MessageResult(
            success=True,
            message=f"How about {describe_task(proposal)}? {CONFIRM_QUESTION}",
            requires_confirmation=True,
        )

    def _propose_plan(self, user_id: str, plan: PlanProposal, now: datetime) -> MessageResult:
        pending = PendingProposal(kind=ProposalKind.PLAN, payload=plan, created_at=now)
        self.session_store.set_pending(user_id, pending)
        logger.info(f"Proposed plan '{plan.plan_title}' with {len(plan.tasks)} tasks for user {user_id}")
        return MessageResult(
            success=True,
            message=f"Here is a plan: {describe_plan(plan)}\n{PLAN_CONFIRM_QUESTION}",
            requires_confirmation=True,
        )


def _elapsed_ms(started: float) -> float:
    return (time_module.perf_counter() - started) * 1000.0
