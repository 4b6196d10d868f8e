from __future__ import annotations

from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from .models import DisplayFormat, TaskRecord, TaskStatus, UrgencyLevel
from .timezone_utils import parse_local


# PUBLIC_INTERFACE
class TaskRecordIn(BaseModel):
    """
    A task record as delivered by the remote task store.

    The store and the browser use camelCase names and the store calls the due
    field ``timeDue``; all of these are accepted.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "42",
                "title": "Submit report",
                "tag": "work",
                "details": "Quarterly numbers",
                "dueDate": "2025-09-29T02:00:00.000Z",
                "status": "todo",
                "createdAt": "2025-09-20T15:04:00.000Z",
                "timezone": "America/New_York",
            }
        }
    )

    id: Optional[str] = Field(default=None, description="Identifier assigned by the task store")
    title: str = Field(..., description="Short title for the task", min_length=1)
    tag: str = Field(default="", description="Grouping label")
    details: str = Field(default="", description="Free-form description")
    due_date: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("dueDate", "timeDue", "due_date"),
        description="Canonical UTC instant the task is due",
    )
    status: TaskStatus = Field(default=TaskStatus.TODO, description="Kanban status")
    created_at: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("createdAt", "created_at"),
        description="Canonical UTC instant the task was created",
    )
    timezone: Optional[str] = Field(default=None, description="Zone the creator was in")

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Optional[str]:
        """
        Stores hand out numeric or string ids; keep them as strings.
        """
        return None if v is None else str(v)

    @field_validator("tag", "details", mode="before")
    @classmethod
    def blank_for_null(cls, v: Any) -> Any:
        return "" if v is None else v

    def to_record(self) -> TaskRecord:
        return {
            "id": self.id,
            "title": self.title,
            "tag": self.tag,
            "details": self.details,
            "due_date": self.due_date,
            "status": self.status,
            "created_at": self.created_at,
            "timezone": self.timezone,
        }


# PUBLIC_INTERFACE
class TaskForm(BaseModel):
    """
    Schema for the create-task form.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Submit report",
                "tag": "work",
                "details": "Quarterly numbers",
                "time": "2025-09-28T22:00",
            }
        }
    )

    title: str = Field(default="", description="Short title for the task")
    tag: str = Field(default="", description="Grouping label")
    details: str = Field(default="", description="Free-form description")
    time: str = Field(
        default="",
        description="Due time as wall-clock YYYY-MM-DDTHH:mm in the creator's zone; empty for none",
    )

    @field_validator("title", "tag", "time")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()

    @field_validator("time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        """
        Reject a due time the date-time picker could not have produced.
        """
        if v and parse_local(v) is None:
            raise ValueError("time must be a local date-time like '2025-09-28T22:00'")
        return v

    @model_validator(mode="after")
    def require_title_and_tag(self) -> "TaskForm":
        if not self.title or not self.tag:
            raise ValueError("Please fill in title and tag")
        return self


# PUBLIC_INTERFACE
class PreparedTask(BaseModel):
    """
    Task payload ready to be sent to the task store. Serialized with the store's
    camelCase field names.
    """

    title: str = Field(..., description="Short title for the task")
    tag: str = Field(..., description="Grouping label")
    details: str = Field(..., description="Free-form description")
    time_due: Optional[str] = Field(
        default=None,
        serialization_alias="timeDue",
        description="Canonical UTC due instant, or null when no time was entered",
    )
    created_at: str = Field(..., serialization_alias="createdAt", description="Canonical UTC creation instant")
    timezone: str = Field(..., description="Zone the due time was entered in")
    original_local_time: Optional[str] = Field(
        default=None,
        serialization_alias="originalLocalTime",
        description="Due time exactly as entered",
    )


# PUBLIC_INTERFACE
class TimezoneInfoOut(BaseModel):
    """
    Schema returned for timezone lookups.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "timezone": "America/New_York",
                "offset": -240,
                "is_dst": True,
                "abbreviation": "EDT",
            }
        }
    )

    timezone: str = Field(..., description="IANA zone name")
    offset: int = Field(..., description="Minutes east of UTC")
    is_dst: bool = Field(..., description="Whether daylight saving time is in effect")
    abbreviation: str = Field(..., description="Short zone name")


# PUBLIC_INTERFACE
class DisplayOut(BaseModel):
    """
    A single instant rendered for a viewer.
    """

    instant: str = Field(..., description="Instant as supplied")
    timezone: str = Field(..., description="Zone the text was rendered in")
    mode: DisplayFormat = Field(..., description="Display format used")
    text: str = Field(..., description="Rendered text")
    urgency: UrgencyLevel = Field(..., description="Urgency bucket of the instant")
    is_overdue: bool = Field(..., description="Whether the instant is already past")


# PUBLIC_INTERFACE
class CardOut(BaseModel):
    """
    A task decorated for display on the board.
    """

    id: Optional[str] = Field(default=None, description="Identifier assigned by the task store")
    title: str = Field(..., description="Short title for the task")
    tag: str = Field(..., description="Grouping label")
    details: str = Field(..., description="Free-form description")
    status: TaskStatus = Field(..., description="Kanban status")
    status_label: str = Field(..., description="Status as shown on the card")
    due_date: Optional[str] = Field(default=None, description="Canonical UTC due instant")
    urgency: UrgencyLevel = Field(..., description="Urgency bucket in the viewer's zone")
    is_overdue: bool = Field(..., description="Whether the due time has passed")
    due_display: Optional[str] = Field(default=None, description="Full due date/time with zone abbreviation")
    due_relative: Optional[str] = Field(default=None, description="Due time relative to now")
    created_display: Optional[str] = Field(default=None, description="Creation date, or null when unknown")
    created_timezone: Optional[str] = Field(default=None, description="Zone the creator was in")


# PUBLIC_INTERFACE
class ColumnOut(BaseModel):
    """
    One kanban column.
    """

    status: TaskStatus = Field(..., description="Status shown in this column")
    title: str = Field(..., description="Column heading")
    count: int = Field(..., description="Number of cards in the column")
    cards: List[CardOut] = Field(..., description="Cards in input order")


# PUBLIC_INTERFACE
class BoardOut(BaseModel):
    """
    The whole board as seen from one zone at one moment.
    """

    timezone: str = Field(..., description="Zone every card was rendered in")
    generated_at: str = Field(..., description="Canonical UTC instant used as 'now'")
    columns: List[ColumnOut] = Field(..., description="Columns in board order")
