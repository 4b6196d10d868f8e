from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfoNotFoundError

import pytest

from src.board import timezone_utils
from src.board.models import DisplayFormat, UrgencyLevel
from src.board.timezone_utils import (
    ParseStatus,
    format_for_display,
    is_overdue,
    parse_instant,
    resolve_timezone,
    timezone_info,
    to_canonical,
    to_canonical_instant,
    to_editable_local,
    urgency_level,
)

NOW = datetime(2025, 1, 10, 12, 0, 0, tzinfo=timezone.utc)
NY = "America/New_York"


def at(**delta):
    """Canonical instant at NOW shifted by the given timedelta fields."""
    return to_canonical(NOW + timedelta(**delta))


def relative(instant, zone="UTC", now=NOW):
    return format_for_display(instant, zone=zone, mode="relative", now=now)


class TestResolveTimezone:
    def test_explicit_zone_returned_unchanged(self, monkeypatch):
        monkeypatch.setenv("BOARD_TIMEZONE", "Asia/Tokyo")
        assert resolve_timezone("Europe/Paris") == "Europe/Paris"

    def test_explicit_zone_not_validated(self):
        assert resolve_timezone("Not/AZone") == "Not/AZone"

    def test_environment_zone_from_settings(self, monkeypatch):
        monkeypatch.setenv("BOARD_TIMEZONE", "Asia/Tokyo")
        assert resolve_timezone() == "Asia/Tokyo"
        assert resolve_timezone("") == "Asia/Tokyo"

    def test_host_zone_when_unconfigured(self, monkeypatch):
        monkeypatch.delenv("BOARD_TIMEZONE", raising=False)
        monkeypatch.setattr(timezone_utils, "get_localzone_name", lambda: "America/Chicago")
        assert resolve_timezone(None) == "America/Chicago"

    def test_environment_change_seen_on_next_call(self, monkeypatch):
        monkeypatch.setenv("BOARD_TIMEZONE", "Europe/London")
        assert resolve_timezone() == "Europe/London"
        monkeypatch.setenv("BOARD_TIMEZONE", "Australia/Sydney")
        assert resolve_timezone() == "Australia/Sydney"


class TestTimezoneInfo:
    def test_standard_time(self):
        info = timezone_info(NY, now=NOW)
        assert info == {"timezone": NY, "offset": -300, "is_dst": False, "abbreviation": "EST"}

    def test_daylight_time(self):
        summer = datetime(2025, 7, 1, 12, 0, tzinfo=timezone.utc)
        info = timezone_info(NY, now=summer)
        assert info["offset"] == -240
        assert info["is_dst"] is True
        assert info["abbreviation"] == "EDT"

    def test_utc(self):
        info = timezone_info("UTC", now=NOW)
        assert info["offset"] == 0
        assert info["is_dst"] is False
        assert info["abbreviation"] == "UTC"

    def test_unknown_zone_raises(self):
        with pytest.raises(ZoneInfoNotFoundError):
            timezone_info("Not/AZone", now=NOW)


class TestParseInstant:
    def test_zulu_and_offset_forms(self):
        zulu = parse_instant("2025-01-10T12:00:00.000Z")
        offset = parse_instant("2025-01-10T14:00:00+02:00")
        assert zulu.status is ParseStatus.OK
        assert zulu.value == offset.value == NOW

    def test_naive_string_is_utc(self):
        assert parse_instant("2025-01-10T12:00:00").value == NOW

    def test_empty_and_invalid(self):
        assert parse_instant(None).status is ParseStatus.EMPTY
        assert parse_instant("   ").status is ParseStatus.EMPTY
        assert parse_instant("next tuesday").status is ParseStatus.INVALID
        assert parse_instant("next tuesday").value is None


class TestToCanonicalInstant:
    def test_evening_in_new_york(self):
        assert to_canonical_instant("2025-09-28T22:00", NY) == "2025-09-29T02:00:00.000Z"

    def test_utc(self):
        assert to_canonical_instant("2025-01-10T12:00", "UTC") == "2025-01-10T12:00:00.000Z"

    def test_bare_date_is_local_midnight(self):
        assert to_canonical_instant("2025-01-10", "Asia/Tokyo") == "2025-01-09T15:00:00.000Z"

    def test_input_with_offset_is_already_absolute(self):
        assert to_canonical_instant("2025-01-10T12:00+02:00", NY) == "2025-01-10T10:00:00.000Z"

    def test_spring_forward_gap_shifts_forward(self):
        stored = to_canonical_instant("2025-03-09T02:30", NY)
        assert stored == "2025-03-09T07:30:00.000Z"
        assert to_editable_local(stored, NY) == "2025-03-09T03:30"

    def test_fall_back_overlap_takes_first_occurrence(self):
        assert to_canonical_instant("2025-11-02T01:30", NY) == "2025-11-02T05:30:00.000Z"

    def test_defaults_to_environment_zone(self, monkeypatch):
        monkeypatch.setenv("BOARD_TIMEZONE", "Europe/London")
        assert to_canonical_instant("2025-07-01T09:00") == "2025-07-01T08:00:00.000Z"

    @pytest.mark.parametrize("value", ["", "   ", None, "not-a-date", "2025-13-40T10:00"])
    def test_empty_or_unparsable_gives_none(self, value):
        assert to_canonical_instant(value, NY) is None


class TestToEditableLocal:
    def test_projects_into_zone(self):
        assert to_editable_local("2025-09-29T02:00:00.000Z", NY) == "2025-09-28T22:00"

    def test_drops_seconds(self):
        assert to_editable_local("2025-01-10T12:34:56.789Z", "UTC") == "2025-01-10T12:34"

    def test_empty_and_invalid(self):
        assert to_editable_local("", NY) == ""
        assert to_editable_local("garbage", NY) == ""

    def test_year_below_1000_is_zero_padded(self):
        assert to_editable_local("0999-06-01T12:00:00.000Z", "UTC") == "0999-06-01T12:00"

    def test_instant_outside_zone_range(self):
        assert to_editable_local("0001-01-01T00:00:00Z", NY) == ""
        assert to_editable_local("9999-12-31T23:59:00Z", "Asia/Tokyo") == ""

    @pytest.mark.parametrize(
        "instant,zone",
        [
            ("2025-06-15T14:45:00.000Z", NY),
            ("2025-01-10T12:00:00.000Z", "Asia/Kolkata"),
            ("2025-12-31T23:59:00.000Z", "Australia/Sydney"),
            ("0999-06-01T12:00:00.000Z", "UTC"),
        ],
    )
    def test_round_trip(self, instant, zone):
        assert to_canonical_instant(to_editable_local(instant, zone), zone) == instant


class TestFormatForDisplay:
    STORED = "2025-09-29T02:00:00.000Z"

    def test_sentinels(self):
        assert format_for_display("", mode="full") == "No due date"
        assert format_for_display(None, zone=NY) == "No due date"
        assert format_for_display("31/02/2025", zone=NY) == "Invalid date"

    def test_date(self):
        assert format_for_display(self.STORED, zone=NY, mode="date") == "Sep 28, 2025"
        assert format_for_display("2025-01-05T12:00:00Z", zone="UTC", mode=DisplayFormat.DATE) == "Jan 5, 2025"

    def test_time(self):
        assert format_for_display(self.STORED, zone=NY, mode="time") == "10:00 PM EDT"
        assert format_for_display(self.STORED, zone=NY, mode="time", include_zone_abbrev=False) == "10:00 PM"
        assert format_for_display("2025-01-10T14:05:00Z", zone="UTC", mode="time") == "02:05 PM UTC"

    def test_full_defaults_to_abbreviation(self):
        assert format_for_display(self.STORED, zone=NY) == "Sep 28, 2025, 10:00 PM EDT"
        assert format_for_display(self.STORED, zone=NY, include_zone_abbrev=False) == "Sep 28, 2025, 10:00 PM"

    def test_same_instant_in_other_zone(self):
        assert format_for_display("2025-01-10T20:00:00.000Z", zone="America/Los_Angeles") == "Jan 10, 2025, 12:00 PM PST"

    def test_defaults_to_environment_zone(self, monkeypatch):
        monkeypatch.setenv("BOARD_TIMEZONE", "Asia/Tokyo")
        assert format_for_display(self.STORED, mode="time") == "11:00 AM JST"

    def test_instant_outside_zone_range(self):
        for mode in ("full", "date", "time"):
            assert format_for_display("0001-01-01T00:00:00Z", zone=NY, mode=mode) == "Invalid date"
            assert format_for_display("9999-12-31T23:59:00Z", zone="Asia/Tokyo", mode=mode) == "Invalid date"
        assert format_for_display("0001-01-01T00:00:00Z", zone="UTC", mode="date") == "Jan 1, 1"

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            format_for_display(self.STORED, zone=NY, mode="weekly")

    def test_unknown_zone_surfaces(self):
        with pytest.raises(ZoneInfoNotFoundError):
            format_for_display(self.STORED, zone="Not/AZone")


class TestRelativeTime:
    def test_now(self):
        assert relative(at(seconds=0)) == "Now"
        assert relative(at(seconds=20)) == "Now"

    def test_minutes(self):
        assert relative(at(minutes=45)) == "In 45m"
        assert relative(at(minutes=-45)) == "45m ago"

    def test_switches_to_hours_at_sixty_minutes(self):
        assert relative(at(minutes=59)) == "In 59m"
        assert relative(at(minutes=90)) == "In 2h"
        assert relative(at(hours=-3)) == "3h ago"
        assert relative(at(hours=11)) == "In 11h"

    def test_tomorrow_and_yesterday(self):
        assert relative(at(hours=25)) == "Tomorrow"
        assert relative(at(hours=-25)) == "Yesterday"

    def test_days(self):
        assert relative(at(days=3)) == "In 3 days"
        assert relative(at(days=-6)) == "6 days ago"

    def test_week_or_more_falls_back_to_date(self):
        assert relative(at(days=7)) == "Jan 17, 2025"
        assert relative(at(days=-10)) == "Dec 31, 2024"

    def test_days_follow_the_zone_calendar(self):
        # 11.5 elapsed hours that span the New York spring-forward night
        now = datetime(2025, 3, 9, 1, 0, tzinfo=timezone.utc)
        target = "2025-03-09T12:30:00.000Z"
        assert relative(target, zone="UTC", now=now) == "In 12h"
        assert relative(target, zone=NY, now=now) == "Tomorrow"

    def test_sentinels_apply(self):
        assert relative("") == "No due date"
        assert relative("soon") == "Invalid date"

    def test_instant_outside_zone_range(self):
        assert relative("9999-12-31T23:59:00Z", zone="Asia/Tokyo") == "Invalid date"
        assert relative("0001-01-01T00:00:00Z", zone=NY) == "Invalid date"


class TestUrgency:
    def test_boundaries_are_half_open(self):
        assert urgency_level(at(hours=0), "UTC", NOW) is UrgencyLevel.URGENT
        assert urgency_level(at(hours=24), "UTC", NOW) is UrgencyLevel.SOON
        assert urgency_level(at(hours=72), "UTC", NOW) is UrgencyLevel.NORMAL

    def test_buckets(self):
        assert urgency_level(at(seconds=-1), "UTC", NOW) is UrgencyLevel.OVERDUE
        assert urgency_level(at(hours=23, minutes=59), "UTC", NOW) is UrgencyLevel.URGENT
        assert urgency_level(at(hours=71), "UTC", NOW) is UrgencyLevel.SOON
        assert urgency_level(at(days=30), "UTC", NOW) is UrgencyLevel.NORMAL

    def test_levels_ordered_by_time_to_due(self):
        order = [UrgencyLevel.OVERDUE, UrgencyLevel.URGENT, UrgencyLevel.SOON, UrgencyLevel.NORMAL]
        levels = [urgency_level(at(hours=h), NY, NOW) for h in (-48, -1, 0, 12, 30, 60, 100)]
        ranks = [order.index(level) for level in levels]
        assert ranks == sorted(ranks)

    def test_is_overdue(self):
        assert is_overdue(at(minutes=-1), "UTC", NOW) is True
        assert is_overdue(at(seconds=0), "UTC", NOW) is False
        assert is_overdue(at(days=2), NY, NOW) is False

    def test_missing_or_invalid_dates_are_safe(self):
        assert is_overdue("", now=NOW) is False
        assert is_overdue("yesterday", now=NOW) is False
        assert urgency_level("", now=NOW) is UrgencyLevel.NORMAL
        assert urgency_level("yesterday", now=NOW) is UrgencyLevel.NORMAL

    def test_missing_date_never_looks_up_zone(self):
        assert urgency_level(None, "Not/AZone", NOW) is UrgencyLevel.NORMAL
        assert is_overdue(None, "Not/AZone", NOW) is False

    def test_unknown_zone_surfaces_for_real_dates(self):
        with pytest.raises(ZoneInfoNotFoundError):
            urgency_level(at(hours=1), "Not/AZone", NOW)
