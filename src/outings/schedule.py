"""Pure operations over a schedule (an ordered list of ScheduleDay).

Every function returns a new list and leaves its input alone. Days that an
operation does not touch are carried over as the same objects, so callers
can compare by identity to see what changed.

Unknown day or activity ids are no-ops rather than errors: UI events can
arrive after the item they refer to was deleted.
"""

from collections.abc import Callable, Sequence

from src.outings.logging import get_logger
from src.outings.models import Activity, MoveIntent, Schedule, ScheduleDay, new_activity_id

log = get_logger(__name__)


def _day_index(schedule: Sequence[ScheduleDay], day_id: str) -> int | None:
    for index, day in enumerate(schedule):
        if day.id == day_id:
            return index
    return None


def _activity_index(day: ScheduleDay, activity_id: str) -> int | None:
    for index, activity in enumerate(day.activities):
        if activity.id == activity_id:
            return index
    return None


def _replace_day(
    schedule: Sequence[ScheduleDay], index: int, activities: list[Activity]
) -> Schedule:
    updated = list(schedule)
    updated[index] = schedule[index].model_copy(update={"activities": activities})
    return updated


def find_activity(
    schedule: Sequence[ScheduleDay], activity_id: str
) -> tuple[int, int] | None:
    """Locate an activity.

    Returns:
        (day index, activity index) or None if no day holds the id.
    """
    for day_index, day in enumerate(schedule):
        activity_index = _activity_index(day, activity_id)
        if activity_index is not None:
            return day_index, activity_index
    return None


def count_activities(schedule: Sequence[ScheduleDay]) -> int:
    return sum(len(day.activities) for day in schedule)


def add_activity(
    schedule: Sequence[ScheduleDay],
    day_id: str,
    id_factory: Callable[[], str] = new_activity_id,
) -> Schedule:
    """Append a blank activity to a day."""
    index = _day_index(schedule, day_id)
    if index is None:
        log.debug("add_activity_skipped", day_id=day_id, reason="unknown_day")
        return list(schedule)
    activities = [*schedule[index].activities, Activity(id=id_factory())]
    return _replace_day(schedule, index, activities)


def update_activity(
    schedule: Sequence[ScheduleDay], day_id: str, activity: Activity
) -> Schedule:
    """Replace the activity with the same id inside ``day_id``, keeping its position."""
    index = _day_index(schedule, day_id)
    if index is None:
        log.debug("update_activity_skipped", day_id=day_id, reason="unknown_day")
        return list(schedule)
    position = _activity_index(schedule[index], activity.id)
    if position is None:
        log.debug(
            "update_activity_skipped",
            day_id=day_id,
            activity_id=activity.id,
            reason="unknown_activity",
        )
        return list(schedule)
    activities = list(schedule[index].activities)
    activities[position] = activity
    return _replace_day(schedule, index, activities)


def delete_activity(
    schedule: Sequence[ScheduleDay], day_id: str, activity_id: str
) -> Schedule:
    index = _day_index(schedule, day_id)
    if index is None or _activity_index(schedule[index], activity_id) is None:
        log.debug("delete_activity_skipped", day_id=day_id, activity_id=activity_id)
        return list(schedule)
    activities = [a for a in schedule[index].activities if a.id != activity_id]
    return _replace_day(schedule, index, activities)


def delete_day(schedule: Sequence[ScheduleDay], day_id: str) -> Schedule:
    """Remove a day.

    Total: this will remove the last remaining day if asked. Keeping at least
    one day is the editor's policy (see OutingEditor.can_delete_day).
    """
    return [day for day in schedule if day.id != day_id]


def move_activity(
    schedule: Sequence[ScheduleDay], activity_id: str, anchor_id: str
) -> Schedule:
    """Move one activity to where another one (the anchor) sits.

    Within a day the moved activity takes over the anchor's position, so
    [A, B, C] with A dropped on C becomes [B, C, A]. Across days it is
    inserted immediately before the anchor. Only the source and target days
    are replaced in the result.
    """
    source = find_activity(schedule, activity_id)
    target = find_activity(schedule, anchor_id)
    if source is None or target is None or activity_id == anchor_id:
        log.debug(
            "move_skipped",
            activity_id=activity_id,
            anchor_id=anchor_id,
            source_found=source is not None,
            anchor_found=target is not None,
        )
        return list(schedule)

    source_day, source_index = source
    target_day, target_index = target

    source_activities = list(schedule[source_day].activities)
    moved = source_activities.pop(source_index)

    updated = list(schedule)
    if source_day == target_day:
        # After the pop the anchor's old index is exactly where the moved item belongs
        source_activities.insert(target_index, moved)
        updated[source_day] = schedule[source_day].model_copy(
            update={"activities": source_activities}
        )
    else:
        target_activities = list(schedule[target_day].activities)
        target_activities.insert(target_index, moved)
        updated[source_day] = schedule[source_day].model_copy(
            update={"activities": source_activities}
        )
        updated[target_day] = schedule[target_day].model_copy(
            update={"activities": target_activities}
        )

    log.debug(
        "activity_moved",
        activity_id=activity_id,
        anchor_id=anchor_id,
        from_day=schedule[source_day].id,
        to_day=schedule[target_day].id,
        index=target_index,
    )
    return updated


def apply_move(schedule: Sequence[ScheduleDay], intent: MoveIntent) -> Schedule:
    """move_activity driven by a drag-and-drop message."""
    return move_activity(schedule, intent.activity_id, intent.anchor_id)
