"""Outing schedule engine for the troop planner.

Keeps an outing's day buckets in step with its date range, gates any
change that would discard entered activities behind a confirmation, and
relocates activities within and across days.
"""

from src.outings.editor import DateEditResult, OutingEditor
from src.outings.gate import ConfirmationGate, ConfirmationRequest
from src.outings.models import (
    Activity,
    DateRange,
    MoveIntent,
    OutingRecord,
    Person,
    ScheduleDay,
)
from src.outings.reconcile import ReconcileOutcome, propose_date_edit, reconcile
from src.outings.schedule import (
    add_activity,
    delete_activity,
    delete_day,
    move_activity,
    update_activity,
)

__all__ = [
    "OutingEditor",
    "DateEditResult",
    "ConfirmationGate",
    "ConfirmationRequest",
    "Activity",
    "DateRange",
    "MoveIntent",
    "OutingRecord",
    "Person",
    "ScheduleDay",
    "ReconcileOutcome",
    "propose_date_edit",
    "reconcile",
    "add_activity",
    "delete_activity",
    "delete_day",
    "move_activity",
    "update_activity",
]
