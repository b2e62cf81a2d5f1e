"""Keep the day buckets in step with the outing's date range.

Two steps, both pure:

  propose_date_edit()  validates a single date-field edit against the other
                       field's stored value and yields the new DateRange (or
                       a rejection; the stored range is then left alone).
  reconcile()          resizes the schedule for a new range. Growing appends
                       empty days; shrinking drops trailing days, but only
                       without asking when none of them holds an occupied
                       activity. Otherwise it returns a PendingTruncation and
                       leaves the schedule alone until someone decides.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any

from src.outings.logging import get_logger
from src.outings.models import DateRange, Schedule, ScheduleDay, to_calendar_date

log = get_logger(__name__)

DATE_FIELDS = ("start", "end")


class ReconcileOutcome(str, Enum):
    CREATED = "created"
    GREW = "grew"
    TRUNCATED = "truncated"
    UNCHANGED = "unchanged"
    PENDING = "pending"
    CANCELLED = "cancelled"  # pending edit the dialog declined (editor only)
    INCOMPLETE = "incomplete"
    REJECTED = "rejected"


@dataclass(frozen=True)
class DateRangeRejection:
    """A date edit that would put end before start.

    ``boundary`` is the other field's date the proposal conflicts with.
    """

    field: str
    proposed: date
    boundary: date

    @property
    def message(self) -> str:
        if self.field == "end":
            return f"End date must be on or after the start date ({self.boundary.isoformat()})"
        return f"Start date must be on or before the end date ({self.boundary.isoformat()})"


@dataclass(frozen=True)
class DateEdit:
    """Outcome of validating one date-field edit."""

    date_range: DateRange
    rejection: DateRangeRejection | None = None

    @property
    def accepted(self) -> bool:
        return self.rejection is None


@dataclass(frozen=True)
class PendingTruncation:
    """A shrink that would discard occupied days, waiting for a decision."""

    previous_schedule: Schedule
    previous_range: DateRange
    new_range: DateRange
    target_day_count: int

    @property
    def days_to_lose(self) -> int:
        return len(self.previous_schedule) - self.target_day_count

    def confirm(self) -> Schedule:
        """The truncated schedule (same result as a lossless shrink)."""
        return list(self.previous_schedule[: self.target_day_count])

    def cancel(self) -> Schedule:
        return list(self.previous_schedule)


@dataclass(frozen=True)
class ReconcileResult:
    schedule: Schedule
    outcome: ReconcileOutcome
    pending: PendingTruncation | None = None
    rejection: DateRangeRejection | None = None
    days_added: int = 0
    days_removed: int = 0


def propose_date_edit(current: DateRange, field: str, value: Any) -> DateEdit:
    """Validate a single date-field edit.

    The proposal is checked only against the other field's stored value, so
    moving both dates past each other has to happen one valid edit at a time.
    Malformed values are accepted as "not set".
    """
    if field not in DATE_FIELDS:
        raise ValueError(f"Unknown date field {field!r}")

    proposed = to_calendar_date(value)
    if field == "end":
        boundary = current.start
        out_of_order = proposed is not None and boundary is not None and proposed < boundary
    else:
        boundary = current.end
        out_of_order = proposed is not None and boundary is not None and proposed > boundary

    if out_of_order:
        rejection = DateRangeRejection(field=field, proposed=proposed, boundary=boundary)
        log.info(
            "date_edit_rejected",
            field=field,
            proposed=proposed.isoformat(),
            boundary=boundary.isoformat(),
        )
        return DateEdit(date_range=current, rejection=rejection)

    return DateEdit(date_range=current.with_value(field, proposed))


def _new_days(existing: Sequence[ScheduleDay], count: int) -> Schedule:
    """``count`` empty days numbered on from ``len(existing) + 1``.

    A number whose ``day-<n>`` id survives from before a deletion is skipped,
    so ids stay unique.
    """
    taken = {day.id for day in existing}
    days: Schedule = []
    number = len(existing)
    while len(days) < count:
        number += 1
        if f"day-{number}" not in taken:
            days.append(ScheduleDay.create(number))
    return days


def reconcile(
    previous_schedule: Sequence[ScheduleDay],
    previous_range: DateRange,
    new_range: DateRange,
) -> ReconcileResult:
    """Compute the day buckets for ``new_range``.

    Args:
        previous_schedule: Current days (possibly empty).
        previous_range: Range the current days were built for. Carried on a
            PendingTruncation so a cancel can restore it.
        new_range: Range after the edit.

    Returns:
        ReconcileResult. For PENDING the schedule is the previous one and
        ``pending`` holds the confirm/cancel actions.
    """
    current = len(previous_schedule)
    unchanged = list(previous_schedule)

    if not new_range.is_complete:
        return ReconcileResult(schedule=unchanged, outcome=ReconcileOutcome.INCOMPLETE)

    if new_range.start > new_range.end:
        rejection = DateRangeRejection(
            field="end", proposed=new_range.end, boundary=new_range.start
        )
        log.info("reconcile_rejected", start=str(new_range.start), end=str(new_range.end))
        return ReconcileResult(
            schedule=unchanged, outcome=ReconcileOutcome.REJECTED, rejection=rejection
        )

    target = new_range.day_count

    if current == 0:
        result = ReconcileResult(
            schedule=_new_days([], target),
            outcome=ReconcileOutcome.CREATED,
            days_added=target,
        )
    elif target > current:
        result = ReconcileResult(
            schedule=[*previous_schedule, *_new_days(previous_schedule, target - current)],
            outcome=ReconcileOutcome.GREW,
            days_added=target - current,
        )
    elif target < current:
        candidates = previous_schedule[target:]
        occupied = [day.id for day in candidates if day.is_occupied]
        if occupied:
            pending = PendingTruncation(
                previous_schedule=unchanged,
                previous_range=previous_range,
                new_range=new_range,
                target_day_count=target,
            )
            log.info(
                "truncation_pending",
                current_days=current,
                target_days=target,
                days_to_lose=pending.days_to_lose,
                occupied_days=occupied,
            )
            return ReconcileResult(
                schedule=unchanged, outcome=ReconcileOutcome.PENDING, pending=pending
            )
        result = ReconcileResult(
            schedule=list(previous_schedule[:target]),
            outcome=ReconcileOutcome.TRUNCATED,
            days_removed=current - target,
        )
    else:
        result = ReconcileResult(schedule=unchanged, outcome=ReconcileOutcome.UNCHANGED)

    log.info(
        "schedule_reconciled",
        outcome=result.outcome.value,
        previous_days=current,
        days=len(result.schedule),
    )
    return result
