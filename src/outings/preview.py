"""Read-only view of a schedule for the outing preview and exports.

Day labels are derived here, from the range start and the day's position,
rather than stored: a day's title stays "Day 3" after edits, while its label
follows the current start date.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, timedelta

from src.outings.models import Person, ScheduleDay


@dataclass(frozen=True)
class PreviewRow:
    time: str
    activity: str
    location: str
    lead: str


@dataclass(frozen=True)
class PreviewDay:
    label: str
    rows: list[PreviewRow]


def day_dates(schedule: Sequence[ScheduleDay], start: date | None) -> list[date | None]:
    """Calendar date of each day bucket, or None when the start is unknown."""
    if start is None:
        return [None] * len(schedule)
    return [start + timedelta(days=index) for index in range(len(schedule))]


def day_label(day: ScheduleDay, index: int, start: date | None) -> str:
    """e.g. "Monday, October 19" when the start is known, else the day's title."""
    if start is None:
        return day.title or "Day"
    current = start + timedelta(days=index)
    return f"{current:%A}, {current:%B} {current.day}"


def lead_display(lead: Sequence[Person]) -> str:
    return ", ".join(person.name for person in lead if person.name)


def group_activities_by_day(
    schedule: Sequence[ScheduleDay], start: date | None = None
) -> list[PreviewDay]:
    """One PreviewDay per day bucket, in order, empty days included."""
    return [
        PreviewDay(
            label=day_label(day, index, start),
            rows=[
                PreviewRow(
                    time=activity.time,
                    activity=activity.activity,
                    location=activity.location,
                    lead=lead_display(activity.lead),
                )
                for activity in day.activities
            ],
        )
        for index, day in enumerate(schedule)
    ]


def render_text(schedule: Sequence[ScheduleDay], start: date | None = None) -> str:
    """Plain-text schedule, one block per day."""
    if not schedule:
        return "(no schedule yet: set both start and end dates)"

    blocks: list[str] = []
    for day, preview in zip(schedule, group_activities_by_day(schedule, start)):
        lines = [f"{preview.label}  [{day.id}]"]
        if not preview.rows:
            lines.append("    (no activities)")
        for activity, row in zip(day.activities, preview.rows):
            parts = [row.time or "--", row.activity or "(untitled)"]
            if row.location:
                parts.append(f"@ {row.location}")
            if row.lead:
                parts.append(f"lead: {row.lead}")
            lines.append(f"    {'  '.join(parts)}  [{activity.id}]")
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)
