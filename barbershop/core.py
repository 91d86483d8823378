# barbershop/core.py
"""
Time arithmetic for slot allocation.

Times of day are plain integers: minutes since midnight. A day runs from 0
to MINUTES_PER_DAY, and ranges are half-open so back-to-back bookings never
collide.
"""

from dataclasses import dataclass
from typing import Iterable, List

from barbershop.errors import ValidationError

MINUTES_PER_DAY = 24 * 60


def parse_hhmm(value: str) -> int:
    """Turn "HH:MM" into minutes since midnight."""
    try:
        hours, minutes = value.split(":")
        hours, minutes = int(hours), int(minutes)
    except (AttributeError, ValueError):
        raise ValidationError(f"Invalid time {value!r}, expected HH:MM")
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        raise ValidationError(f"Invalid time {value!r}, expected HH:MM")
    return hours * 60 + minutes


def format_hhmm(minute: int) -> str:
    return f"{minute // 60:02d}:{minute % 60:02d}"


@dataclass(frozen=True)
class TimeRange:
    """
    Half-open interval [start, end) of minutes within one day.

    Invariant: 0 <= start < end <= MINUTES_PER_DAY.
    """
    start: int
    end: int

    def __post_init__(self):
        if not (0 <= self.start < MINUTES_PER_DAY):
            raise ValidationError(f"Start {self.start} is not a time of day")
        if self.end > MINUTES_PER_DAY:
            raise ValidationError("Range cannot cross midnight")
        if self.start >= self.end:
            raise ValidationError(
                f"Start {format_hhmm(self.start)} must be before end {format_hhmm(self.end)}"
            )

    @classmethod
    def from_start(cls, start: int, duration_minutes: int) -> "TimeRange":
        if duration_minutes <= 0:
            raise ValidationError("Duration must be positive")
        return cls(start, start + duration_minutes)

    def duration_minutes(self) -> int:
        return self.end - self.start

    def overlaps(self, other: "TimeRange") -> bool:
        return overlaps(self, other)

    def __str__(self) -> str:
        return f"{format_hhmm(self.start)}-{format_hhmm(self.end)}"


def overlaps(a: TimeRange, b: TimeRange) -> bool:
    # half-open: touching endpoints are not a conflict
    return a.start < b.end and b.start < a.end


@dataclass(frozen=True)
class WorkingHours:
    """A barber's opening window [start, end). May be degenerate."""
    start: int
    end: int

    def contains(self, rng: TimeRange) -> bool:
        return self.start <= rng.start and rng.end <= self.end


def available_slots(
    hours: WorkingHours,
    occupied: Iterable[TimeRange],
    granularity: int = 30,
) -> List[int]:
    """
    Start minutes of every free slot of `granularity` minutes inside `hours`.

    Slots are generated from the opening time onwards; a trailing slot that
    would run past closing is dropped. Degenerate hours give no slots.
    """
    if granularity <= 0:
        raise ValidationError("Slot granularity must be positive")

    busy = list(occupied)
    available = []
    current = hours.start
    while current + granularity <= hours.end:
        slot = TimeRange(current, current + granularity)
        if not any(overlaps(slot, b) for b in busy):
            available.append(current)
        current += granularity
    return available
