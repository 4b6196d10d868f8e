"""
Timezone and urgency helpers for the to-do board.

Every function here is stateless. The current time and the viewer's zone are
read once per call and can be passed in explicitly (``now=`` / ``zone=``) so the
results are deterministic under test.

Stored instants are ISO-8601 UTC strings with millisecond precision and a ``Z``
suffix, e.g. ``2025-09-29T02:00:00.000Z``. Local inputs are wall-clock strings
without a zone, as produced by a ``datetime-local`` picker (``YYYY-MM-DDTHH:mm``).
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Union
from zoneinfo import ZoneInfo

from tzlocal import get_localzone_name

from .models import DisplayFormat, TimezoneInfo, UrgencyLevel
from .settings import get_settings

logger = logging.getLogger(__name__)

NO_DUE_DATE = "No due date"
INVALID_DATE = "Invalid date"

InstantInput = Union[str, datetime, None]


class ParseStatus(str, Enum):
    OK = "ok"
    EMPTY = "empty"
    INVALID = "invalid"


@dataclass(frozen=True)
class ParsedInstant:
    """Outcome of reading a stored instant; ``value`` is set only when ``status`` is OK."""

    status: ParseStatus
    value: Optional[datetime] = None

    @property
    def ok(self) -> bool:
        return self.status is ParseStatus.OK


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def _round_half_up(value: float) -> int:
    # Halves round towards +infinity: 1.5 -> 2, -1.5 -> -1
    return int(math.floor(value + 0.5))


def _ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _project(value: datetime, tz: ZoneInfo) -> Optional[datetime]:
    """Wall-clock view of ``value`` in ``tz``, or None when it falls outside the datetime range."""
    try:
        return value.astimezone(tz)
    except OverflowError:
        logger.debug("Instant %s cannot be shown in %s", value, tz.key)
        return None


# PUBLIC_INTERFACE
def to_canonical(value: datetime) -> str:
    """Serialize an aware datetime as a canonical UTC instant string."""
    utc_value = _ensure_utc(value)
    return utc_value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


# PUBLIC_INTERFACE
def parse_instant(value: InstantInput) -> ParsedInstant:
    """
    Read a stored instant into an aware UTC datetime.

    Accepts ISO-8601 strings with a ``Z`` or numeric offset, or already-parsed
    datetimes. Strings without an offset are taken to be UTC. Never raises:
    blank input is EMPTY and anything unreadable is INVALID.
    """
    if value is None:
        return ParsedInstant(ParseStatus.EMPTY)
    if isinstance(value, datetime):
        return ParsedInstant(ParseStatus.OK, _ensure_utc(value))

    s = str(value).strip()
    if not s:
        return ParsedInstant(ParseStatus.EMPTY)
    if s[-1] in "Zz":
        s = s[:-1] + "+00:00"
    try:
        parsed = _ensure_utc(datetime.fromisoformat(s))
    except (ValueError, OverflowError):
        logger.debug("Unparsable instant %r", value)
        return ParsedInstant(ParseStatus.INVALID)
    return ParsedInstant(ParseStatus.OK, parsed)


# ---------------------------------------------------------------------------
# Timezone resolution
# ---------------------------------------------------------------------------

# PUBLIC_INTERFACE
def environment_timezone() -> str:
    """Zone of the current environment: BOARD_TIMEZONE if set, else the host zone."""
    configured = get_settings().board_timezone
    if configured:
        return configured
    return get_localzone_name()


# PUBLIC_INTERFACE
def resolve_timezone(explicit: Optional[str] = None) -> str:
    """
    Return the zone an operation should act in.

    A non-empty ``explicit`` name is returned unchanged; it is not checked
    against the zone database here, so an unknown name fails later when it is
    looked up. Otherwise the environment zone is returned. Nothing is cached.
    """
    if explicit:
        return explicit
    return environment_timezone()


def _zone_abbreviation(local: datetime, zone: str) -> str:
    name = local.tzname()
    if name:
        return name
    return zone.rsplit("/", 1)[-1] or "UTC"


# PUBLIC_INTERFACE
def timezone_info(zone: Optional[str] = None, now: Optional[datetime] = None) -> TimezoneInfo:
    """Describe the resolved zone (offset, DST flag, abbreviation) at ``now``."""
    name = resolve_timezone(zone)
    local = _ensure_utc(now or utc_now()).astimezone(ZoneInfo(name))
    offset = local.utcoffset()
    dst = local.dst()
    return {
        "timezone": name,
        "offset": int(offset.total_seconds() // 60) if offset is not None else 0,
        "is_dst": bool(dst),
        "abbreviation": _zone_abbreviation(local, name),
    }


# ---------------------------------------------------------------------------
# Local <-> canonical conversion
# ---------------------------------------------------------------------------

# PUBLIC_INTERFACE
def parse_local(local: str) -> Optional[datetime]:
    """Read a wall-clock string; a bare date is local midnight. None if unreadable."""
    try:
        return datetime.fromisoformat(local.strip())
    except ValueError:
        return None


# PUBLIC_INTERFACE
def to_canonical_instant(local: Optional[str], zone: Optional[str] = None) -> Optional[str]:
    """
    Convert a wall-clock string entered in ``zone`` to a canonical UTC instant.

    The wall-clock fields are kept as given and paired with the offset the zone
    had just before any transition at that moment (``fold=0``). A time inside a
    spring-forward gap therefore lands one gap-length later in real time, and a
    repeated fall-back time resolves to its first occurrence.

    Returns None for empty or unparsable input.
    """
    if not local or not local.strip():
        return None

    parsed = parse_local(local)
    if parsed is None:
        logger.debug("Unparsable local date-time %r", local)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=ZoneInfo(resolve_timezone(zone)), fold=0)
    try:
        return to_canonical(parsed)
    except OverflowError:
        logger.debug("Local date-time %r is outside the representable range", local)
        return None


# PUBLIC_INTERFACE
def to_editable_local(instant: InstantInput, zone: Optional[str] = None) -> str:
    """
    Wall-clock form of ``instant`` in ``zone`` for a date-time picker
    (``YYYY-MM-DDTHH:mm``). Empty or unparsable input gives "".
    """
    parsed = parse_instant(instant)
    if not parsed.ok:
        return ""
    local = _project(parsed.value, ZoneInfo(resolve_timezone(zone)))
    if local is None:
        return ""
    # Always a four-digit year
    return local.replace(tzinfo=None).isoformat(timespec="minutes")


# ---------------------------------------------------------------------------
# Display
# ---------------------------------------------------------------------------

def _format_date(local: datetime) -> str:
    return f"{local:%b} {local.day}, {local.year}"


def _format_time(local: datetime) -> str:
    return local.strftime("%I:%M %p")


# PUBLIC_INTERFACE
def format_relative_time(
    target: datetime,
    zone: Optional[str] = None,
    now: Optional[datetime] = None,
) -> str:
    """
    Label ``target`` relative to ``now`` ("In 5m", "3h ago", "Tomorrow",
    "4 days ago"), falling back to an absolute date a week or more out.

    Minutes and hours come from elapsed time. Days compare wall-clock values in
    ``zone`` so calendar days follow the viewer's zone across DST changes.
    """
    name = resolve_timezone(zone)
    tz = ZoneInfo(name)
    now_utc = _ensure_utc(now or utc_now())
    try:
        target_utc = _ensure_utc(target)
    except OverflowError:
        return INVALID_DATE
    local_target = _project(target_utc, tz)
    local_now = _project(now_utc, tz)
    if local_target is None or local_now is None:
        return INVALID_DATE

    elapsed = (target_utc - now_utc).total_seconds()
    diff_minutes = _round_half_up(elapsed / 60)
    diff_hours = _round_half_up(elapsed / 3600)

    wall = (local_target.replace(tzinfo=None) - local_now.replace(tzinfo=None)).total_seconds()
    diff_days = _round_half_up(wall / 86400)

    if abs(diff_days) < 1:
        if abs(diff_minutes) < 60:
            if diff_minutes == 0:
                return "Now"
            return f"In {diff_minutes}m" if diff_minutes > 0 else f"{abs(diff_minutes)}m ago"
        if diff_hours == 0:
            return "Now"
        return f"In {diff_hours}h" if diff_hours > 0 else f"{abs(diff_hours)}h ago"

    if abs(diff_days) < 7:
        if diff_days == 1:
            return "Tomorrow"
        if diff_days == -1:
            return "Yesterday"
        return f"In {diff_days} days" if diff_days > 0 else f"{abs(diff_days)} days ago"

    return _format_date(local_target)


# PUBLIC_INTERFACE
def format_for_display(
    instant: InstantInput,
    *,
    zone: Optional[str] = None,
    mode: Union[DisplayFormat, str] = DisplayFormat.FULL,
    include_zone_abbrev: bool = True,
    now: Optional[datetime] = None,
) -> str:
    """
    Render a stored instant for the viewer.

    Args:
        instant: Canonical instant string (or datetime).
        zone: Zone to render in; defaults to the environment zone.
        mode: One of full, date, time, relative.
        include_zone_abbrev: Append the zone abbreviation in full/time modes.
        now: Reference time for relative mode.

    Returns:
        The formatted string, "No due date" for empty input, or "Invalid date"
        for input that cannot be parsed or shown in the zone.

    Raises:
        ValueError: if ``mode`` is not a known display format.
        zoneinfo.ZoneInfoNotFoundError: if the zone is unknown.
    """
    display = DisplayFormat(mode)
    parsed = parse_instant(instant)
    if parsed.status is ParseStatus.EMPTY:
        return NO_DUE_DATE
    if parsed.status is ParseStatus.INVALID:
        return INVALID_DATE

    name = resolve_timezone(zone)
    if display is DisplayFormat.RELATIVE:
        return format_relative_time(parsed.value, name, now)

    local = _project(parsed.value, ZoneInfo(name))
    if local is None:
        return INVALID_DATE
    if display is DisplayFormat.DATE:
        return _format_date(local)

    if display is DisplayFormat.TIME:
        text = _format_time(local)
    else:
        text = f"{_format_date(local)}, {_format_time(local)}"
    if include_zone_abbrev:
        text = f"{text} {_zone_abbreviation(local, name)}"
    return text


# ---------------------------------------------------------------------------
# Urgency
# ---------------------------------------------------------------------------

def _hours_until(due: datetime, zone: Optional[str], now: Optional[datetime]) -> float:
    # Unknown zones raise here
    tz = ZoneInfo(resolve_timezone(zone))
    reference = _ensure_utc(now or utc_now()).astimezone(tz)
    return (due - reference).total_seconds() / 3600


# PUBLIC_INTERFACE
def is_overdue(instant: InstantInput, zone: Optional[str] = None, now: Optional[datetime] = None) -> bool:
    """True if ``instant`` is strictly before now. Missing or unreadable dates are never overdue."""
    parsed = parse_instant(instant)
    if not parsed.ok:
        return False
    return _hours_until(parsed.value, zone, now) < 0


# PUBLIC_INTERFACE
def urgency_level(
    instant: InstantInput,
    zone: Optional[str] = None,
    now: Optional[datetime] = None,
) -> UrgencyLevel:
    """
    Bucket a due date: overdue (past), urgent (< 24h), soon (< 72h), else normal.
    Missing or unreadable dates are normal.
    """
    parsed = parse_instant(instant)
    if not parsed.ok:
        return UrgencyLevel.NORMAL

    hours = _hours_until(parsed.value, zone, now)
    if hours < 0:
        return UrgencyLevel.OVERDUE
    if hours < 24:
        return UrgencyLevel.URGENT
    if hours < 72:
        return UrgencyLevel.SOON
    return UrgencyLevel.NORMAL
