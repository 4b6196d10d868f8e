from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from .schemas import PreparedTask, TaskForm
from .timezone_utils import resolve_timezone, to_canonical, to_canonical_instant, utc_now

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
def prepare_task(
    form: TaskForm,
    zone: Optional[str] = None,
    now: Optional[datetime] = None,
) -> PreparedTask:
    """
    Turn a submitted create-task form into the payload stored by the task store.

    The due time is read as wall-clock time in the creator's zone and stored as
    a UTC instant; the zone and the raw input are kept alongside it.

    Args:
        form: Validated form fields.
        zone: Creator's zone; defaults to the environment zone.
        now: Creation time; defaults to the current time.

    Returns:
        PreparedTask with ``time_due`` set to None when no due time was entered.
    """
    creator_zone = resolve_timezone(zone)
    time_due = to_canonical_instant(form.time, creator_zone) if form.time else None

    prepared = PreparedTask(
        title=form.title,
        tag=form.tag,
        details=form.details,
        time_due=time_due,
        created_at=to_canonical(now or utc_now()),
        timezone=creator_zone,
        original_local_time=form.time or None,
    )
    logger.info("Prepared task %r due %s (%s)", prepared.title, time_due or "never", creator_zone)
    return prepared
