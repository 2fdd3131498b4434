"""Clock abstraction for "must be future" checks and token timestamps."""

from datetime import UTC, datetime
from zoneinfo import ZoneInfo

from clinic_portal.config import settings


class Clock:
    """System clock.

    Appointment times are naive wall-clock times in the clinic's timezone,
    the same way the doctors' slot labels are. Token timestamps use UTC.
    """

    def __init__(self, timezone: str | None = None):
        self.tz = ZoneInfo(timezone or settings.clinic_timezone)

    def now(self) -> datetime:
        """Current aware UTC time."""
        return datetime.now(UTC)

    def local_now(self) -> datetime:
        """Current naive clinic-local time."""
        return self.to_local(self.now())

    def to_local(self, value: datetime) -> datetime:
        """Convert an aware datetime to naive clinic-local time.

        Naive values are assumed to be clinic-local already.
        """
        if value.tzinfo is None:
            return value
        return value.astimezone(self.tz).replace(tzinfo=None)


def get_clock() -> Clock:
    """Dependency returning the system clock."""
    return Clock()
