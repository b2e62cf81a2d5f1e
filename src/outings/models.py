"""Pydantic models for outing schedules.

All data structures use Pydantic v2 for validation, serialization, and type safety.
Models are frozen: schedule operations build new values instead of editing in place.
Field aliases match the camelCase keys of the stored outing document.
"""

import uuid
from datetime import date, datetime, time
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def new_activity_id() -> str:
    """Fresh opaque activity id (never reused)."""
    return uuid.uuid4().hex


def to_calendar_date(value: Any) -> date | None:
    """Normalize a date-picker value to a calendar date.

    Datetimes lose their time of day, ISO strings are parsed, and anything
    malformed (bad string, NaN, wrong type) counts as "not set".
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return datetime.fromisoformat(value.strip().replace("Z", "+00:00")).date()
        except ValueError:
            return None
    return None


def to_datetime(value: Any) -> datetime | None:
    """Like to_calendar_date, but keeps the time of day when there is one."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    if isinstance(value, str) and value.strip():
        try:
            return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    return None


class Person(BaseModel):
    """A leader reference as entered on the outing form."""

    model_config = ConfigDict(frozen=True, extra="allow")

    name: str = Field(default="", validation_alias=AliasChoices("name", "displayName"))
    role: str = Field(default="", validation_alias=AliasChoices("role", "rank"))


class Activity(BaseModel):
    """One entry in a day's itinerary.

    Only ``activity`` decides whether the entry holds user data worth
    protecting; time, location and leads are free-form and never parsed.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    id: str = Field(default_factory=new_activity_id)
    time: str = ""  # display string, e.g. "9:00 AM"
    activity: str = ""
    location: str = ""
    lead: list[Person] = Field(default_factory=list)

    @field_validator("time", "activity", "location", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("lead", mode="before")
    @classmethod
    def _coerce_lead(cls, value: Any) -> Any:
        # Older records stored a single leader object or a bare name
        if value is None:
            return []
        if isinstance(value, str):
            return [{"name": value}] if value.strip() else []
        if isinstance(value, (dict, Person)):
            return [value]
        return [{"name": item} if isinstance(item, str) else item for item in value]

    @property
    def is_occupied(self) -> bool:
        return bool(self.activity.strip())


class ScheduleDay(BaseModel):
    """A day bucket holding an ordered list of activities.

    ``id`` and ``title`` are fixed when the day is created and are not
    renumbered when earlier days are deleted.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    id: str
    title: str
    activities: list[Activity] = Field(default_factory=list)

    @classmethod
    def create(cls, number: int) -> "ScheduleDay":
        """Empty day for 1-based position ``number``."""
        return cls(id=f"day-{number}", title=f"Day {number}")

    @property
    def is_occupied(self) -> bool:
        return any(activity.is_occupied for activity in self.activities)


Schedule = list[ScheduleDay]


class DateRange(BaseModel):
    """The outing's (start, end) dates, normalized to calendar days."""

    model_config = ConfigDict(frozen=True)

    start: date | None = None
    end: date | None = None

    @field_validator("start", "end", mode="before")
    @classmethod
    def _normalize(cls, value: Any) -> date | None:
        return to_calendar_date(value)

    @property
    def is_complete(self) -> bool:
        return self.start is not None and self.end is not None

    @property
    def is_valid(self) -> bool:
        return self.is_complete and self.start <= self.end

    @property
    def day_count(self) -> int | None:
        """Number of days covered, both endpoints included."""
        if not self.is_valid:
            return None
        return (self.end - self.start).days + 1

    def with_value(self, field: str, value: Any) -> "DateRange":
        """Copy with one boundary replaced (normalized like construction)."""
        if field not in ("start", "end"):
            raise ValueError(f"Unknown date field {field!r}")
        return self.model_copy(update={field: to_calendar_date(value)})


class MoveIntent(BaseModel):
    """Result of a drag/drop (or keyboard) gesture: move one activity onto another."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    activity_id: str = Field(alias="activityId")
    anchor_id: str = Field(alias="anchorId")


class OutingRecord(BaseModel):
    """The stored outing document.

    Only the fields the schedule engine touches are modelled; everything
    else on the document (packing list, contacts, images, ...) is carried
    through untouched as extra fields.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")

    id: str | None = None
    event_name: str = Field(default="", alias="eventName")
    start_date_time: datetime | None = Field(default=None, alias="startDateTime")
    end_date_time: datetime | None = Field(default=None, alias="endDateTime")
    destination: str = ""
    is_public: bool = Field(default=True, alias="isPublic")
    schedule_days: list[ScheduleDay] = Field(default_factory=list, alias="scheduleDays")
    created_by: str | None = Field(default=None, alias="createdBy")
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")

    @field_validator(
        "start_date_time", "end_date_time", "created_at", "updated_at", mode="before"
    )
    @classmethod
    def _drop_invalid_dates(cls, value: Any) -> datetime | None:
        return to_datetime(value)

    @field_validator("schedule_days", mode="before")
    @classmethod
    def _none_to_empty_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def date_range(self) -> DateRange:
        return DateRange(start=self.start_date_time, end=self.end_date_time)

    def to_document(self, keep_nulls: bool = False) -> dict[str, Any]:
        """Serialize for storage: camelCase keys and JSON types.

        Null fields are left out unless ``keep_nulls`` is set; updates keep
        them so a cleared field also clears the stored value.
        """
        return self.model_dump(mode="json", by_alias=True, exclude_none=not keep_nulls)

    @classmethod
    def from_document(
        cls, data: dict[str, Any], outing_id: str | None = None
    ) -> "OutingRecord":
        """Build a record from a stored document, optionally forcing its id."""
        if outing_id is not None:
            data = {**data, "id": outing_id}
        return cls.model_validate(data)
