from __future__ import annotations

from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from fastapi import APIRouter, Depends, Query, status

from ..board import build_board
from ..forms import prepare_task
from ..models import DisplayFormat, TaskStatus
from ..schemas import BoardOut, DisplayOut, PreparedTask, TaskForm, TaskRecordIn, TimezoneInfoOut
from ..timezone_utils import format_for_display, is_overdue, resolve_timezone, timezone_info, urgency_level

router = APIRouter(
    prefix="/api/v1",
    tags=["board"],
)


def _viewer_zone(
    tz: Optional[str] = Query(None, description="IANA zone to act in; defaults to the server's environment zone"),
) -> str:
    """
    Dependency resolving the acting zone and checking it exists, so an unknown
    zone is reported before any work is done.
    """
    zone = resolve_timezone(tz)
    try:
        ZoneInfo(zone)
    except ValueError as exc:
        # Malformed keys (absolute paths, '..') are unknown zones too
        raise ZoneInfoNotFoundError(f"No time zone found with key {zone}") from exc
    return zone


# PUBLIC_INTERFACE
@router.get(
    "/timezone",
    response_model=TimezoneInfoOut,
    summary="Timezone Info",
    description="Current offset, DST flag and abbreviation of the acting zone.",
    responses={
        200: {"description": "Zone resolved"},
        400: {"description": "Unknown timezone"},
    },
)
def get_timezone(zone: str = Depends(_viewer_zone)) -> TimezoneInfoOut:
    """
    Describe the acting zone as of now.
    """
    return TimezoneInfoOut(**timezone_info(zone))


# PUBLIC_INTERFACE
@router.get(
    "/display",
    response_model=DisplayOut,
    summary="Format Instant",
    description=(
        "Render a stored instant for a viewer.\n\n"
        "Query parameters:\n"
        "- instant: canonical UTC instant; empty renders as 'No due date'\n"
        "- mode: one of full, date, time, relative\n"
        "- include_zone_abbrev: append the zone abbreviation in full/time modes\n"
        "- tz: zone to render in"
    ),
    responses={
        200: {"description": "Instant rendered"},
        400: {"description": "Unknown timezone"},
    },
)
def display_instant(
    instant: str = Query("", description="Canonical UTC instant"),
    mode: DisplayFormat = Query(DisplayFormat.FULL, description="Display format"),
    include_zone_abbrev: bool = Query(True, description="Append the zone abbreviation"),
    zone: str = Depends(_viewer_zone),
) -> DisplayOut:
    """
    Format one instant and classify its urgency.
    """
    return DisplayOut(
        instant=instant,
        timezone=zone,
        mode=mode,
        text=format_for_display(instant, zone=zone, mode=mode, include_zone_abbrev=include_zone_abbrev),
        urgency=urgency_level(instant, zone),
        is_overdue=is_overdue(instant, zone),
    )


# PUBLIC_INTERFACE
@router.post(
    "/tasks/prepare",
    response_model=PreparedTask,
    status_code=status.HTTP_201_CREATED,
    summary="Prepare Task",
    description=(
        "Validate the create-task form and return the payload for the task store, "
        "with the due time converted from the creator's zone to UTC."
    ),
    responses={
        201: {"description": "Task payload prepared"},
        400: {"description": "Unknown timezone"},
        422: {"description": "Validation error"},
    },
)
def prepare(payload: TaskForm, zone: str = Depends(_viewer_zone)) -> PreparedTask:
    """
    Prepare a new task for storage.
    """
    return prepare_task(payload, zone)


# PUBLIC_INTERFACE
@router.post(
    "/board",
    response_model=BoardOut,
    summary="Build Board",
    description=(
        "Group task records into kanban columns and decorate each card with urgency, "
        "overdue flag and due/created strings in the viewer's zone.\n\n"
        "Query parameters:\n"
        "- tz: viewer's zone\n"
        "- status: repeatable; restricts the board to these columns"
    ),
    responses={
        200: {"description": "Board built"},
        400: {"description": "Unknown timezone"},
        422: {"description": "Validation error"},
    },
)
def board(
    records: List[TaskRecordIn],
    statuses: Optional[List[TaskStatus]] = Query(None, alias="status", description="Columns to include"),
    zone: str = Depends(_viewer_zone),
) -> BoardOut:
    """
    Build the board for the supplied records.
    """
    return build_board([r.to_record() for r in records], zone, statuses=statuses)
