"""Building, adjusting and validating task and plan proposals.

All timestamps are local, naive ISO 8601 strings with second precision
("2025-01-07T16:00:00"). Nothing here talks to a model or a store.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Tuple

from ..context.models import PlanProposal, TaskProposal
from ..parsing.datetime_extractor import DateTimeExtraction
from ..parsing.heuristics import PRIORITIES
from ..parsing.resolver import ResolvedTask
from .assist_models import PlanPayload, ProposeTaskPayload
from .errors import MalformedAssistOutput, StaleOrInvalidConfirmation

logger = logging.getLogger(__name__)


@dataclass
class SlotPolicy:
    """Default scheduling slot used when the user leaves fields out."""

    weekday_hour: int = 16
    weekend_hour: int = 10
    duration_minutes: int = 60
    min_duration_minutes: int = 30
    plan_session_count: int = 3

    @property
    def duration(self) -> timedelta:
        return timedelta(minutes=self.duration_minutes)

    @property
    def min_duration(self) -> timedelta:
        return timedelta(minutes=self.min_duration_minutes)

    def default_time_for(self, day: date) -> time:
        """Default start time for a day: weekend mornings, weekday afternoons."""
        hour = self.weekend_hour if day.weekday() >= 5 else self.weekday_hour
        return time(hour, 0)

    def default_slot(self, now: datetime) -> Tuple[datetime, datetime]:
        """
        Default slot for a request with no date or time.

        Today at the default time, or tomorrow when that time has passed.

        Args:
            now: Current local moment

        Returns:
            (start, end) tuple
        """
        start = datetime.combine(now.date(), self.default_time_for(now.date()))
        if start <= now:
            tomorrow = now.date() + timedelta(days=1)
            start = datetime.combine(tomorrow, self.default_time_for(tomorrow))
        return start, start + self.duration


@dataclass
class ValidatedTask:
    """A sub-task that passed confirmation-time validation."""

    title: str
    start: datetime
    end: datetime
    priority: str


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO 8601 timestamp into a local naive datetime.

    Accepts a trailing "Z"; zone-aware values are converted to local time.

    Returns:
        datetime, or None when the value cannot be parsed
    """
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def format_timestamp(value: datetime) -> str:
    return value.isoformat(timespec="seconds")


def make_task_proposal(title: str, start: datetime, end: datetime, priority: str) -> TaskProposal:
    return TaskProposal(
        title=title,
        suggested_start=format_timestamp(start),
        suggested_end=format_timestamp(end),
        priority=priority,
    )


def _roll_past_today(start: datetime, now: datetime, explicit_today: bool) -> datetime:
    # "today at 5pm" said at 8pm means tomorrow at 5pm
    if explicit_today and start <= now:
        return start + timedelta(days=1)
    return start


def resolve_start(
    day: Optional[date],
    clock_time: Optional[time],
    explicit_today: bool,
    now: datetime,
    policy: SlotPolicy,
) -> datetime:
    """
    Start moment for a partially specified date/time.

    - date and time: used as given (explicit "today" rolls over when passed)
    - date only: that day's default time
    - time only: today, or tomorrow when the time has passed
    - neither: the default slot
    """
    if day and clock_time:
        return _roll_past_today(datetime.combine(day, clock_time), now, explicit_today)
    if day:
        return _roll_past_today(datetime.combine(day, policy.default_time_for(day)), now, explicit_today)
    if clock_time:
        start = datetime.combine(now.date(), clock_time)
        if start <= now:
            start += timedelta(days=1)
        return start
    start, _ = policy.default_slot(now)
    return start


def proposal_from_resolved(resolved: ResolvedTask, now: datetime, policy: SlotPolicy) -> TaskProposal:
    """
    Build a task proposal from a resolved task, filling gaps from the policy.

    Args:
        resolved: Task with whatever date/time the text gave
        now: Current local moment
        policy: Slot policy

    Returns:
        TaskProposal with a policy-length window
    """
    start = resolve_start(resolved.date, resolved.time, resolved.explicit_today, now, policy)
    return make_task_proposal(resolved.title, start, start + policy.duration, resolved.priority)


def topic_proposal(title: str, priority: str, now: datetime, policy: SlotPolicy) -> TaskProposal:
    """Proposal for a request that named a task but no schedule."""
    start, end = policy.default_slot(now)
    return make_task_proposal(title, start, end, priority)


def apply_adjustment(
    proposal: TaskProposal,
    reading: DateTimeExtraction,
    now: datetime,
    policy: SlotPolicy,
) -> TaskProposal:
    """
    Merge a new date and/or time into an existing proposal.

    The span is preserved (never shorter than the policy minimum). A date
    alone keeps the clock time; a time alone keeps the day, moving to the
    next day when that time has already passed.

    Args:
        proposal: Proposal being adjusted
        reading: Date/time read from the user's message
        now: Current local moment
        policy: Slot policy

    Returns:
        New TaskProposal with the same title and priority

    Raises:
        StaleOrInvalidConfirmation: If the existing window cannot be parsed
    """
    start = parse_timestamp(proposal.suggested_start)
    end = parse_timestamp(proposal.suggested_end)
    if start is None or end is None:
        raise StaleOrInvalidConfirmation(f"Pending proposal '{proposal.title}' has an invalid window")

    duration = max(end - start, policy.min_duration)
    new_start = datetime.combine(reading.date or start.date(), reading.time or start.time())
    new_start = _roll_past_today(new_start, now, reading.explicit_today)
    if reading.date is None and new_start <= now:
        new_start += timedelta(days=1)

    logger.debug(f"Adjusted '{proposal.title}': {start} -> {new_start} ({duration})")
    return make_task_proposal(proposal.title, new_start, new_start + duration, proposal.priority)


def proposal_from_assist(payload: ProposeTaskPayload) -> TaskProposal:
    """
    Normalize a model task payload into a proposal.

    Raises:
        MalformedAssistOutput: If the window cannot be parsed or is empty
    """
    start = parse_timestamp(payload.suggested_start)
    end = parse_timestamp(payload.suggested_end)
    if start is None or end is None:
        raise MalformedAssistOutput(f"Unparseable window for '{payload.title}'")
    if end <= start:
        raise MalformedAssistOutput(f"Window for '{payload.title}' ends before it starts")
    return make_task_proposal(payload.title, start, end, payload.priority)


def plan_from_assist(payload: PlanPayload) -> PlanProposal:
    """
    Normalize a model plan payload into a plan proposal.

    Raises:
        MalformedAssistOutput: If any block has an unusable window
    """
    tasks = [
        proposal_from_assist(
            ProposeTaskPayload(
                title=block.title,
                suggested_start=block.start,
                suggested_end=block.end,
                priority=block.priority,
            )
        )
        for block in payload.tasks
    ]
    return PlanProposal(plan_title=payload.plan_title, tasks=tasks)


def build_default_plan(
    topic: str,
    now: datetime,
    policy: SlotPolicy,
    priority: str = "medium",
    reading: Optional[DateTimeExtraction] = None,
) -> PlanProposal:
    """
    Build a plan of sessions on alternating days.

    A date and/or time read from the request places the first session;
    otherwise it goes on the default slot. Later sessions keep the
    requested clock time, or use their own day's default time.

    Args:
        topic: Plan subject, e.g. "Chest workout"
        now: Current local moment
        policy: Slot policy (session count and length)
        priority: Priority of every session
        reading: Date/time read from the request, if any

    Returns:
        PlanProposal titled "<topic> plan"
    """
    reading = reading or DateTimeExtraction()
    first_start = resolve_start(reading.date, reading.time, reading.explicit_today, now, policy)
    tasks = []
    for index in range(policy.plan_session_count):
        day = first_start.date() + timedelta(days=2 * index)
        if index == 0:
            start = first_start
        else:
            start = datetime.combine(day, reading.time or policy.default_time_for(day))
        tasks.append(make_task_proposal(f"{topic} session {index + 1}", start, start + policy.duration, priority))
    return PlanProposal(plan_title=f"{topic} plan", tasks=tasks)


def plan_from_resolved(tasks: List[ResolvedTask], now: datetime, policy: SlotPolicy) -> PlanProposal:
    """Plan proposal for several tasks named in one message."""
    proposals = [proposal_from_resolved(task, now, policy) for task in tasks]
    title = " and ".join(p.title for p in proposals)
    return PlanProposal(plan_title=title, tasks=proposals)


def validate_task_payload(task: TaskProposal) -> ValidatedTask:
    """
    Check a stored sub-task right before it is materialized.

    Raises:
        StaleOrInvalidConfirmation: If the title, window or priority is invalid
    """
    title = (task.title or "").strip()
    if not title:
        raise StaleOrInvalidConfirmation("Task title is empty")

    start = parse_timestamp(task.suggested_start)
    end = parse_timestamp(task.suggested_end)
    if start is None or end is None:
        raise StaleOrInvalidConfirmation(f"Task '{title}' has an unparseable window")
    if end <= start:
        raise StaleOrInvalidConfirmation(f"Task '{title}' ends before it starts")

    if task.priority not in PRIORITIES:
        raise StaleOrInvalidConfirmation(f"Task '{title}' has invalid priority '{task.priority}'")

    return ValidatedTask(title=title, start=start, end=end, priority=task.priority)


def describe_window(start: datetime, end: datetime) -> str:
    """Human-readable window, e.g. "Tuesday, Jan 07 from 16:00 to 17:00"."""
    day = start.strftime("%A, %b %d")
    if start.date() == end.date():
        return f"{day} from {start:%H:%M} to {end:%H:%M}"
    return f"{day} {start:%H:%M} to {end.strftime('%A, %b %d')} {end:%H:%M}"


def describe_task(task: TaskProposal) -> str:
    start = parse_timestamp(task.suggested_start)
    end = parse_timestamp(task.suggested_end)
    if start is None or end is None:
        return f"'{task.title}'"
    return f"'{task.title}' on {describe_window(start, end)} ({task.priority} priority)"


def describe_plan(plan: PlanProposal) -> str:
    lines = [f"'{plan.plan_title}' with {len(plan.tasks)} sessions:"]
    lines.extend(f"- {describe_task(task)}" for task in plan.tasks)
    return "\n".join(lines)
