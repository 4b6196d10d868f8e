"""
To-do board package.

The timezone and urgency helpers are re-exported here for library use; the
FastAPI app lives in ``src.board.main``.
"""

from .models import DisplayFormat, TaskStatus, UrgencyLevel
from .timezone_utils import (
    format_for_display,
    is_overdue,
    resolve_timezone,
    to_canonical_instant,
    to_editable_local,
    urgency_level,
)

__all__ = [
    "DisplayFormat",
    "TaskStatus",
    "UrgencyLevel",
    "format_for_display",
    "is_overdue",
    "resolve_timezone",
    "to_canonical_instant",
    "to_editable_local",
    "urgency_level",
]
