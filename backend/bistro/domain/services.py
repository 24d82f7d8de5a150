from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Optional, Protocol, Sequence

from ..utils.time import add_months
from .errors import BookingTooFarError, BookingTooSoonError, ClosedError

MIN_BOOKING_LEAD = timedelta(hours=1)
MAX_BOOKING_MONTHS = 1
SLOT_STEP = timedelta(minutes=30)
LAST_SEATING_BEFORE_CLOSE = timedelta(hours=1)
ALTERNATIVE_OFFSETS_MINUTES = (-30, 30, -60, 60)


@dataclass(frozen=True)
class TableSnapshot:
    table_id: int
    capacity: int


@dataclass(frozen=True)
class ReservationSnapshot:
    party_size: int
    scheduled_at: datetime


@dataclass(frozen=True)
class OpeningWindow:
    open_time: Optional[time]
    close_time: Optional[time]
    is_closed: bool = False

    @classmethod
    def closed(cls) -> "OpeningWindow":
        return cls(open_time=None, close_time=None, is_closed=True)

    @property
    def is_open(self) -> bool:
        return not self.is_closed and self.open_time is not None and self.close_time is not None

    def contains(self, at: time) -> bool:
        if not self.is_open:
            return False
        return self.open_time <= at <= self.close_time  # type: ignore[operator]


@dataclass(frozen=True)
class OrderRef:
    order_number: int
    scheduled_at: datetime
    party_size: int
    confirmation_code: Optional[int] = None
    seated_at: Optional[datetime] = None
    phone: Optional[str] = None
    email: Optional[str] = None


class SeatingStrategy(Protocol):
    def can_seat(self, tables: Sequence[TableSnapshot], party_sizes: Sequence[int]) -> bool: ...


class BestFitStrategy:
    """
    Greedy placement: largest party first, each on the smallest table that still fits.
    Ties go to the table listed first in the catalog. Every table seats one party.
    """

    def assign(
        self,
        tables: Sequence[TableSnapshot],
        party_sizes: Sequence[int],
    ) -> Optional[list[tuple[int, TableSnapshot]]]:
        pool = list(tables)
        placements: list[tuple[int, TableSnapshot]] = []
        for size in sorted(party_sizes, reverse=True):
            candidates = [table for table in pool if table.capacity >= size]
            if not candidates:
                return None
            best = min(candidates, key=lambda table: table.capacity)
            pool.remove(best)
            placements.append((size, best))
        return placements

    def can_seat(self, tables: Sequence[TableSnapshot], party_sizes: Sequence[int]) -> bool:
        return self.assign(tables, party_sizes) is not None


def validate_opening_hours(window: Optional[OpeningWindow], requested_at: datetime) -> None:
    """Raise ClosedError unless requested_at's time of day is within [open, close]."""
    if window is None or not window.is_open:
        raise ClosedError("restaurant is closed on this date")
    if not window.contains(requested_at.time()):
        raise ClosedError(
            f"time outside opening hours ({window.open_time:%H:%M}-{window.close_time:%H:%M})"
        )


def validate_booking_window(requested_at: datetime, *, now: datetime) -> None:
    if requested_at < now + MIN_BOOKING_LEAD:
        raise BookingTooSoonError("must book at least 1 hour in advance")
    if requested_at > add_months(now, MAX_BOOKING_MONTHS):
        raise BookingTooFarError("cannot book more than 1 month ahead")


def alternative_times(requested_at: datetime) -> list[datetime]:
    return [requested_at + timedelta(minutes=offset) for offset in ALTERNATIVE_OFFSETS_MINUTES]


def day_slot_times(day: date, window: OpeningWindow, tz) -> list[datetime]:
    """Every 30-minute seating start from opening up to one hour before closing."""
    if not window.is_open:
        return []
    current = datetime.combine(day, window.open_time, tzinfo=tz)  # type: ignore[arg-type]
    last = datetime.combine(day, window.close_time, tzinfo=tz) - LAST_SEATING_BEFORE_CLOSE  # type: ignore[arg-type]
    slots: list[datetime] = []
    while current <= last:
        slots.append(current)
        current += SLOT_STEP
    return slots
