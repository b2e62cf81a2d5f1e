"""OutingEditor - the controller behind the outing edit form.

Owns the current schedule and date range for one outing record and routes
UI events to the schedule engine:

    date field change   -> propose_date_edit / reconcile (may open the gate)
    drop / keyboard move -> move_activity
    add / edit / delete  -> schedule operations
    save                 -> storage collaborator

Each event replaces the schedule with a new list; nothing outside the editor
holds a mutable reference to it.

While a destructive change awaits confirmation the editor behaves like the
modal dialog it drives: date edits and schedule edits raise
ConfirmationPendingError until the request is confirmed or cancelled.
Cancelling keeps the schedule and also puts the edited date back, so the
range always matches the day buckets.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from src.outings import schedule as ops
from src.outings.errors import (
    ConfirmationPendingError,
    RecordNotFoundError,
    StoreNotConfiguredError,
)
from src.outings.gate import ConfirmationGate, ConfirmationRequest
from src.outings.logging import get_logger
from src.outings.models import (
    Activity,
    DateRange,
    MoveIntent,
    OutingRecord,
    Schedule,
    new_activity_id,
    to_datetime,
)
from src.outings.reconcile import (
    DateRangeRejection,
    PendingTruncation,
    ReconcileOutcome,
    propose_date_edit,
    reconcile,
)
from src.outings.store import OutingStore

logger = get_logger(__name__)

# Record fields managed through dedicated editor operations
_ENGINE_FIELDS = frozenset({"id", "schedule_days", "start_date_time", "end_date_time"})


@dataclass(frozen=True)
class DateEditResult:
    """What happened to a date-field edit.

    ``rejection`` is set (and nothing changed) when the date was out of
    order; ``request`` is set when the edit went through the gate. The
    outcome stays PENDING only while that request is unanswered; a dialog
    that answers straight away yields TRUNCATED or CANCELLED.
    """

    outcome: ReconcileOutcome
    rejection: DateRangeRejection | None = None
    request: ConfirmationRequest | None = None

    @property
    def accepted(self) -> bool:
        return self.rejection is None


class OutingEditor:
    """Edit session for one outing record."""

    def __init__(
        self,
        record: OutingRecord | None = None,
        *,
        store: OutingStore | None = None,
        gate: ConfirmationGate | None = None,
        id_factory: Callable[[], str] = new_activity_id,
    ) -> None:
        """Initialize the editor.

        Args:
            record: Record to edit. A blank record starts a new outing.
            store: Storage collaborator used by save().
            gate: Confirmation gate; its on_request listener is the dialog.
            id_factory: Source of fresh activity ids.
        """
        record = record if record is not None else OutingRecord()
        self._record = record
        self._schedule: Schedule = list(record.schedule_days)
        self._moments: dict[str, datetime | None] = {
            "start": record.start_date_time,
            "end": record.end_date_time,
        }
        self._range = record.date_range
        self.store = store
        self.gate = gate if gate is not None else ConfirmationGate()
        self._id_factory = id_factory

    @classmethod
    def load(cls, store: OutingStore, outing_id: str, **kwargs: Any) -> "OutingEditor":
        """Open an existing outing.

        Raises:
            RecordNotFoundError: If the store has no such outing.
        """
        record = store.get(outing_id)
        if record is None:
            raise RecordNotFoundError(outing_id)
        logger.info("outing_loaded", outing_id=outing_id, days=len(record.schedule_days))
        return cls(record, store=store, **kwargs)

    # -- state ---------------------------------------------------------------

    @property
    def schedule(self) -> Schedule:
        return list(self._schedule)

    @property
    def date_range(self) -> DateRange:
        return self._range

    @property
    def outing_id(self) -> str | None:
        return self._record.id

    @property
    def pending(self) -> ConfirmationRequest | None:
        return self.gate.request

    @property
    def can_delete_day(self) -> bool:
        """At least one day must remain once the schedule exists."""
        return len(self._schedule) > 1

    @property
    def record(self) -> OutingRecord:
        """The record as it would be saved right now."""
        return self._record.model_copy(
            update={
                "schedule_days": list(self._schedule),
                "start_date_time": self._moments["start"],
                "end_date_time": self._moments["end"],
            }
        )

    def set_details(self, **changes: Any) -> None:
        """Update plain record fields (event name, destination, ...).

        Keys may use the field name or the stored camelCase key; unknown keys
        become extra fields on the record. The result is validated.
        """
        by_alias = {
            info.alias: name
            for name, info in OutingRecord.model_fields.items()
            if info.alias
        }
        normalized = {by_alias.get(key, key): value for key, value in changes.items()}
        blocked = _ENGINE_FIELDS.intersection(normalized)
        if blocked:
            raise ValueError(f"Use the editor operations to change {sorted(blocked)}")
        self._record = OutingRecord.model_validate(
            {**self._record.model_dump(), **normalized}
        )

    # -- date fields ---------------------------------------------------------

    def set_start(self, value: Any) -> DateEditResult:
        return self._edit_date("start", value)

    def set_end(self, value: Any) -> DateEditResult:
        return self._edit_date("end", value)

    def _edit_date(self, field: str, value: Any) -> DateEditResult:
        self._ensure_idle()

        edit = propose_date_edit(self._range, field, value)
        if not edit.accepted:
            return DateEditResult(outcome=ReconcileOutcome.REJECTED, rejection=edit.rejection)

        previous_range = self._range
        previous_moment = self._moments[field]
        self._range = edit.date_range
        self._moments[field] = to_datetime(value)

        result = reconcile(self._schedule, previous_range, self._range)

        if result.outcome is ReconcileOutcome.REJECTED:
            self._range = previous_range
            self._moments[field] = previous_moment
            return DateEditResult(outcome=result.outcome, rejection=result.rejection)

        if result.pending is None:
            self._schedule = result.schedule
            return DateEditResult(outcome=result.outcome)

        pending = result.pending
        request = self.gate.open(
            pending.days_to_lose,
            on_confirm=lambda: self._apply_truncation(pending),
            on_cancel=lambda: self._abandon_truncation(pending, field, previous_moment),
        )
        if request.confirmed:
            outcome = ReconcileOutcome.TRUNCATED
        elif request.cancelled:
            outcome = ReconcileOutcome.CANCELLED
        else:
            outcome = ReconcileOutcome.PENDING
        return DateEditResult(outcome=outcome, request=request)

    def _apply_truncation(self, pending: PendingTruncation) -> None:
        self._schedule = pending.confirm()
        logger.info(
            "truncation_applied",
            outing_id=self.outing_id,
            days=len(self._schedule),
            days_removed=pending.days_to_lose,
        )

    def _abandon_truncation(
        self, pending: PendingTruncation, field: str, previous_moment: datetime | None
    ) -> None:
        self._schedule = pending.cancel()
        self._range = pending.previous_range
        self._moments[field] = previous_moment
        logger.info(
            "truncation_cancelled",
            outing_id=self.outing_id,
            days=len(self._schedule),
            field_reverted=field,
        )

    def confirm_pending(self) -> None:
        self.gate.confirm()

    def cancel_pending(self) -> None:
        self.gate.cancel()

    def _ensure_idle(self) -> None:
        if self.gate.is_awaiting:
            raise ConfirmationPendingError(
                "Resolve the pending confirmation before editing the outing"
            )

    # -- schedule edits ------------------------------------------------------

    def move(self, activity_id: str, anchor_id: str) -> None:
        self._ensure_idle()
        self._schedule = ops.move_activity(self._schedule, activity_id, anchor_id)

    def apply_move(self, intent: MoveIntent) -> None:
        self.move(intent.activity_id, intent.anchor_id)

    def add_activity(self, day_id: str) -> str | None:
        """Append a blank activity to a day.

        Returns:
            The new activity's id, or None if the day does not exist.
        """
        self._ensure_idle()
        activity_id = self._id_factory()
        updated = ops.add_activity(self._schedule, day_id, id_factory=lambda: activity_id)
        if ops.find_activity(updated, activity_id) is None:
            return None
        self._schedule = updated
        return activity_id

    def update_activity(self, day_id: str, activity: Activity) -> None:
        self._ensure_idle()
        self._schedule = ops.update_activity(self._schedule, day_id, activity)

    def delete_activity(self, day_id: str, activity_id: str) -> None:
        self._ensure_idle()
        self._schedule = ops.delete_activity(self._schedule, day_id, activity_id)

    def delete_day(self, day_id: str) -> None:
        """Remove a day. Callers should check can_delete_day first."""
        self._ensure_idle()
        self._schedule = ops.delete_day(self._schedule, day_id)
        logger.info("day_deleted", outing_id=self.outing_id, day_id=day_id)

    # -- persistence ---------------------------------------------------------

    def save(self) -> str:
        """Create or update the record in the store.

        Returns:
            The outing id (newly assigned on first save).

        Raises:
            StoreNotConfiguredError: If the editor has no store.
        """
        if self.store is None:
            raise StoreNotConfiguredError("No outing store configured")

        record = self.record
        if record.id is None:
            outing_id = self.store.create(record)
            self._record = self._record.model_copy(update={"id": outing_id})
        else:
            outing_id = record.id
            self.store.update(outing_id, record)

        logger.info("outing_saved", outing_id=outing_id, days=len(self._schedule))
        return outing_id
