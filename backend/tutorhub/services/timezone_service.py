"""
Centralized timezone handling.

Rules:
- Availability rules and bookings are expressed in the teacher's zone
- All storage: UTC
- All comparisons: UTC
- A wall-clock time that DST makes ambiguous or skips is an error, never a guess
"""

from datetime import date, datetime, time, timezone
from typing import Optional, Tuple

import pytz

from ..core.config import settings
from ..core.exceptions import (
    AmbiguousLocalTimeException,
    NonexistentLocalTimeException,
    ValidationException,
)


class TimezoneService:
    """Converts (local date, wall-clock time, IANA zone) triples to and from UTC."""

    @staticmethod
    def get_timezone(tz_str: Optional[str]) -> pytz.BaseTzInfo:
        """Get timezone object; an unknown zone id is a validation error."""
        zone_id = tz_str or settings.default_timezone
        try:
            return pytz.timezone(zone_id)
        except pytz.UnknownTimeZoneError as exc:
            raise ValidationException(
                f"Unknown time zone '{zone_id}'", code="UNKNOWN_TIMEZONE", details={"zone": zone_id}
            ) from exc

    @staticmethod
    def validate_zone(tz_str: str) -> str:
        """Return the canonical zone id or raise ValidationException."""
        return str(TimezoneService.get_timezone(tz_str).zone)

    @staticmethod
    def to_utc(local_date: date, wall_time: time, zone_id: str) -> datetime:
        """
        Convert a local date/time to an aware UTC datetime.

        Uses the zone rules valid on ``local_date`` (not today).

        Raises:
            NonexistentLocalTimeException: the time falls in a spring-forward gap
            AmbiguousLocalTimeException: the time occurs twice (fall back)
        """
        tz = TimezoneService.get_timezone(zone_id)
        naive_dt = datetime.combine(local_date, wall_time)  # naive on purpose for localize()

        try:
            # is_dst=None raises for ambiguous/nonexistent times
            local_dt = tz.localize(naive_dt, is_dst=None)
        except pytz.exceptions.NonExistentTimeError as exc:
            raise NonexistentLocalTimeException(
                local_date.isoformat(), wall_time.strftime("%H:%M"), zone_id
            ) from exc
        except pytz.exceptions.AmbiguousTimeError as exc:
            raise AmbiguousLocalTimeException(
                local_date.isoformat(), wall_time.strftime("%H:%M"), zone_id
            ) from exc

        return local_dt.astimezone(timezone.utc)

    @staticmethod
    def from_utc(instant: datetime, zone_id: str) -> Tuple[date, time]:
        """Inverse of ``to_utc``: the local (date, wall-clock time) of a UTC instant."""
        local_dt = TimezoneService.utc_to_local(instant, zone_id)
        return local_dt.date(), local_dt.time().replace(tzinfo=None)

    @staticmethod
    def window_to_utc(
        local_date: date, start_time: time, end_time: time, zone_id: str
    ) -> Tuple[datetime, datetime]:
        """UTC bounds of a same-day local window."""
        start_utc = TimezoneService.to_utc(local_date, start_time, zone_id)
        end_utc = TimezoneService.to_utc(local_date, end_time, zone_id)
        return start_utc, end_utc

    @staticmethod
    def utc_to_local(utc_dt: datetime, timezone_str: str) -> datetime:
        """Convert UTC datetime to local timezone."""
        if utc_dt.tzinfo is None:
            utc_dt = utc_dt.replace(tzinfo=timezone.utc)

        tz = TimezoneService.get_timezone(timezone_str)
        return utc_dt.astimezone(tz)

    @staticmethod
    def today_in_zone(zone_id: str, now: Optional[datetime] = None) -> date:
        """Current calendar date in ``zone_id``."""
        current = now or datetime.now(timezone.utc)
        return TimezoneService.utc_to_local(current, zone_id).date()

    @staticmethod
    def format_for_display(
        utc_dt: datetime, timezone_str: str, include_tz_abbrev: bool = True
    ) -> str:
        """
        Format a UTC datetime for display in a specific timezone.

        Returns: e.g., "Jun 17, 2024 at 09:00 AM EDT"
        """
        local_dt = TimezoneService.utc_to_local(utc_dt, timezone_str)

        if include_tz_abbrev:
            return local_dt.strftime("%b %d, %Y at %I:%M %p %Z")
        return local_dt.strftime("%b %d, %Y at %I:%M %p")
