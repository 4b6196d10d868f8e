from __future__ import annotations

from enum import Enum
from typing import Optional, TypedDict


# PUBLIC_INTERFACE
class UrgencyLevel(str, Enum):
    """How close a due date is, ordered from most to least pressing."""

    OVERDUE = "overdue"
    URGENT = "urgent"
    SOON = "soon"
    NORMAL = "normal"


# PUBLIC_INTERFACE
class DisplayFormat(str, Enum):
    """Rendering modes understood by the display formatter."""

    FULL = "full"
    DATE = "date"
    TIME = "time"
    RELATIVE = "relative"


# PUBLIC_INTERFACE
class TaskStatus(str, Enum):
    """Kanban column a task belongs to."""

    TODO = "todo"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


# PUBLIC_INTERFACE
class TimezoneInfo(TypedDict):
    """
    Snapshot of a zone at a given moment.

    Fields:
    - timezone: IANA zone name
    - offset: minutes east of UTC
    - is_dst: whether daylight saving time is in effect
    - abbreviation: short zone name (EST, PDT, UTC, ...)
    """

    timezone: str
    offset: int
    is_dst: bool
    abbreviation: str


# PUBLIC_INTERFACE
class TaskRecord(TypedDict):
    """
    A task as supplied by the remote task store.

    Fields:
    - id: Identifier assigned by the store
    - title: Short title
    - tag: Grouping label
    - details: Free-form description
    - due_date: Canonical UTC instant string, or None when the task has no due time
    - status: Kanban status
    - created_at: Canonical UTC instant string of creation
    - timezone: Zone the creator was in; kept for display only
    """

    id: Optional[str]
    title: str
    tag: str
    details: str
    due_date: Optional[str]
    status: TaskStatus
    created_at: Optional[str]
    timezone: Optional[str]
