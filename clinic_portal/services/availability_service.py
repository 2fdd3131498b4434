"""Availability calculator: free slots of a doctor on a date."""

from collections.abc import Iterator
from datetime import date, datetime, time, timedelta

import structlog
from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_portal.config import settings
from clinic_portal.core.slots import Slot, minute_of_day, parse_slot
from clinic_portal.models.appointments import appointments
from clinic_portal.models.doctors import doctors

logger = structlog.get_logger(__name__)


def day_window(day: date) -> tuple[datetime, datetime]:
    """Half-open range [day 00:00, day+1 00:00)."""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def parse_slots(labels: list[str] | None, doctor_id: int | None = None) -> list[Slot]:
    """Parse stored slot labels, skipping any that are malformed."""
    slots = []
    for label in labels or []:
        try:
            slots.append(parse_slot(label))
        except ValueError:
            logger.warning("invalid_slot_label", doctor_id=doctor_id, label=label)
    return slots


class AvailableSlots:
    """
    Lazily filtered free slots, sorted by time of day.

    Iterating yields the configured slot labels that do not overlap a booked
    appointment. Every ``iter()`` starts over, so the sequence can be
    consumed more than once.
    """

    def __init__(
        self,
        slots: list[Slot],
        booked_starts: list[time],
        duration_minutes: int,
    ):
        self._slots = sorted(slots, key=lambda slot: slot.start_minute)
        self._duration = duration_minutes
        self._booked = [
            (minute_of_day(start), minute_of_day(start) + duration_minutes)
            for start in booked_starts
        ]

    def _is_free(self, slot: Slot) -> bool:
        start = slot.start_minute
        end = slot.end_minute(self._duration)
        return not any(start < b_end and b_start < end for b_start, b_end in self._booked)

    def free_slots(self) -> Iterator[Slot]:
        return (slot for slot in self._slots if self._is_free(slot))

    def __iter__(self) -> Iterator[str]:
        return (slot.label for slot in self.free_slots())

    def starts_at(self, value: time) -> bool:
        """Whether a free slot starts exactly at ``value``."""
        return any(slot.start == value for slot in self.free_slots())


class AvailabilityService:
    """Derives free slots from configured slots minus booked appointments."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def get_available_slots(
        self,
        doctor_id: int,
        day: date,
        exclude_appointment_id: int | None = None,
    ) -> AvailableSlots:
        """
        Get the free slots of a doctor on a date.

        Args:
            doctor_id: Doctor ID
            day: Calendar date
            exclude_appointment_id: Booking to ignore, e.g. the one being rescheduled

        Returns:
            Free slots; empty when the doctor does not exist
        """
        duration = settings.appointment_duration_minutes

        result = await self.db.execute(
            select(doctors.c.available_times).where(doctors.c.id == doctor_id)
        )
        labels = result.scalar_one_or_none()
        if labels is None:
            return AvailableSlots([], [], duration)

        start, end = day_window(day)
        conditions = [
            appointments.c.doctor_id == doctor_id,
            appointments.c.appointment_time >= start,
            appointments.c.appointment_time < end,
        ]
        if exclude_appointment_id is not None:
            conditions.append(appointments.c.id != exclude_appointment_id)

        booked = await self.db.execute(
            select(appointments.c.appointment_time).where(and_(*conditions))
        )
        # Date component is stripped; comparison is by time of day
        booked_starts = [value.time() for value in booked.scalars().all()]

        return AvailableSlots(parse_slots(labels, doctor_id), booked_starts, duration)
