"""Slot label parsing.

Doctors declare availability as time-of-day labels. Accepted forms:
``"09:00"``, ``"9:00 AM"``, ``"02:30 pm"`` and ranges such as
``"09:00-10:00"`` or ``"09:00 AM - 10:00 AM"``.
"""

import re
from dataclasses import dataclass
from datetime import time

_TIME = r"(\d{1,2}):(\d{2})\s*([AaPp][Mm])?"
_SLOT_RE = re.compile(rf"^\s*{_TIME}\s*(?:-\s*{_TIME}\s*)?$")


@dataclass(frozen=True)
class Slot:
    """A parsed slot label."""

    label: str
    start: time
    end: time | None = None

    @property
    def start_minute(self) -> int:
        return minute_of_day(self.start)

    def end_minute(self, default_duration: int) -> int:
        """End of the slot in minutes since midnight."""
        if self.end is not None:
            return minute_of_day(self.end)
        return self.start_minute + default_duration


def minute_of_day(value: time) -> int:
    return value.hour * 60 + value.minute


def _to_time(hour: str, minute: str, meridiem: str | None) -> time:
    h, m = int(hour), int(minute)
    if m > 59:
        raise ValueError(f"invalid minute: {minute}")

    if meridiem:
        if not 1 <= h <= 12:
            raise ValueError(f"invalid 12-hour clock hour: {hour}")
        h = h % 12 + (12 if meridiem.lower() == "pm" else 0)
    elif h > 23:
        raise ValueError(f"invalid hour: {hour}")

    return time(h, m)


def parse_slot(label: str) -> Slot:
    """Parse a slot label, raising ValueError when it is malformed."""
    match = _SLOT_RE.match(label)
    if not match:
        raise ValueError(f"invalid slot label: {label!r}")

    start = _to_time(*match.group(1, 2, 3))
    end = None
    if match.group(4) is not None:
        end = _to_time(*match.group(4, 5, 6))
        if end <= start:
            raise ValueError(f"slot end must be after start: {label!r}")

    return Slot(label=label, start=start, end=end)
