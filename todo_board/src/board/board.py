from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from .models import DisplayFormat, TaskRecord, TaskStatus
from .schemas import BoardOut, CardOut, ColumnOut
from .timezone_utils import (
    format_for_display,
    is_overdue,
    resolve_timezone,
    to_canonical,
    urgency_level,
    utc_now,
)

COLUMN_TITLES = {
    TaskStatus.TODO: "To-do",
    TaskStatus.IN_PROGRESS: "In Progress",
    TaskStatus.COMPLETED: "Completed",
}


# PUBLIC_INTERFACE
def build_card(record: TaskRecord, zone: str, now: datetime) -> CardOut:
    """
    Decorate one task for display in ``zone`` as of ``now``.

    Due and creation strings are only filled in when the task has those dates;
    urgency and the overdue flag always compare in the viewer's zone, not the
    creator's.
    """
    due = record["due_date"]
    created = record["created_at"]
    status = TaskStatus(record["status"])

    return CardOut(
        id=record["id"],
        title=record["title"],
        tag=record["tag"],
        details=record["details"],
        status=status,
        status_label=status.value.replace("-", " "),
        due_date=due,
        urgency=urgency_level(due, zone, now),
        is_overdue=is_overdue(due, zone, now),
        due_display=format_for_display(due, zone=zone, mode=DisplayFormat.FULL) if due else None,
        due_relative=format_for_display(due, zone=zone, mode=DisplayFormat.RELATIVE, now=now) if due else None,
        created_display=format_for_display(
            created, zone=zone, mode=DisplayFormat.DATE, include_zone_abbrev=False
        ) if created else None,
        created_timezone=record["timezone"],
    )


# PUBLIC_INTERFACE
def build_board(
    records: Iterable[TaskRecord],
    zone: Optional[str] = None,
    now: Optional[datetime] = None,
    statuses: Optional[Sequence[TaskStatus]] = None,
) -> BoardOut:
    """
    Group tasks into kanban columns and decorate every card.

    The zone is resolved and "now" is read once so every card on the board is
    rendered against the same reference. Columns follow board order (To-do, In
    Progress, Completed) unless ``statuses`` picks a subset; cards keep input order.
    """
    viewer_zone = resolve_timezone(zone)
    reference = now or utc_now()
    wanted: List[TaskStatus] = list(statuses) if statuses else list(COLUMN_TITLES)

    cards = [build_card(r, viewer_zone, reference) for r in records]
    columns = []
    for status in wanted:
        in_column = [c for c in cards if c.status == status]
        columns.append(
            ColumnOut(status=status, title=COLUMN_TITLES[status], count=len(in_column), cards=in_column)
        )

    return BoardOut(timezone=viewer_zone, generated_at=to_canonical(reference), columns=columns)
