import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional, Sequence

from ..domain.errors import NoTablesConfiguredError
from ..domain.repositories import OpeningHoursRepository, OrderRepository, TableRepository
from ..domain.services import (
    MIN_BOOKING_LEAD,
    BestFitStrategy,
    SeatingStrategy,
    TableSnapshot,
    alternative_times,
    day_slot_times,
    validate_booking_window,
    validate_opening_hours,
)

logger = logging.getLogger(__name__)

CLOSED = "CLOSED"
FULL = "FULL"

_default_strategy = BestFitStrategy()


@dataclass(frozen=True)
class AvailabilityResult:
    accepted: bool
    alternatives: list[datetime] = field(default_factory=list)


async def is_feasible(
    table_repo: TableRepository,
    order_repo: OrderRepository,
    *,
    at: datetime,
    party_size: int,
    strategy: Optional[SeatingStrategy] = None,
) -> bool:
    """Can every party overlapping `at`, plus the new one, get its own table?"""
    tables = await table_repo.get_all_tables()
    return await _is_feasible(tables, order_repo, at=at, party_size=party_size, strategy=strategy)


async def _is_feasible(
    tables: Sequence[TableSnapshot],
    order_repo: OrderRepository,
    *,
    at: datetime,
    party_size: int,
    strategy: Optional[SeatingStrategy],
) -> bool:
    if not tables:
        logger.error("no tables configured; every feasibility check fails")
        return False
    overlapping = await order_repo.get_overlapping_reservations(at)
    demand = [reservation.party_size for reservation in overlapping]
    demand.append(party_size)
    seated = (strategy or _default_strategy).can_seat(tables, demand)
    if not seated:
        logger.debug("no seating at %s for demand %s over %d tables", at.isoformat(), demand, len(tables))
    return seated


async def check_availability(
    table_repo: TableRepository,
    order_repo: OrderRepository,
    hours_repo: OpeningHoursRepository,
    *,
    requested_at: datetime,
    party_size: int,
    now: datetime,
    strategy: Optional[SeatingStrategy] = None,
) -> AvailabilityResult:
    """
    Accept the request or propose alternatives 30 and 60 minutes around it.
    Raises ClosedError, BookingTooSoonError, BookingTooFarError or NoTablesConfiguredError.
    Alternatives are only run through the feasibility check, not through opening hours
    or the booking window.
    """
    day = requested_at.date()
    window = await hours_repo.get_opening_window(day, day.weekday())
    validate_opening_hours(window, requested_at)
    validate_booking_window(requested_at, now=now)

    tables = await table_repo.get_all_tables()
    if not tables:
        raise NoTablesConfiguredError("no tables configured")

    if await _is_feasible(tables, order_repo, at=requested_at, party_size=party_size, strategy=strategy):
        logger.info("accepted %s for party of %d", requested_at.isoformat(), party_size)
        return AvailabilityResult(accepted=True)

    alternatives = [
        candidate
        for candidate in alternative_times(requested_at)
        if await _is_feasible(tables, order_repo, at=candidate, party_size=party_size, strategy=strategy)
    ]
    logger.info(
        "no table at %s for party of %d; %d alternatives",
        requested_at.isoformat(),
        party_size,
        len(alternatives),
    )
    return AvailabilityResult(accepted=False, alternatives=alternatives)


async def enumerate_day_slots(
    table_repo: TableRepository,
    order_repo: OrderRepository,
    hours_repo: OpeningHoursRepository,
    *,
    day: date,
    party_size: int,
    now: datetime,
    strategy: Optional[SeatingStrategy] = None,
) -> list[str]:
    """
    Bookable "HH:MM" starts for the day, in restaurant time (now's timezone).
    Returns ["CLOSED"] for a closed day and ["FULL"] when nothing qualifies.
    """
    window = await hours_repo.get_opening_window(day, day.weekday())
    if window is None or not window.is_open:
        return [CLOSED]

    tables = await table_repo.get_all_tables()
    earliest = now + MIN_BOOKING_LEAD
    slots = [
        f"{slot:%H:%M}"
        for slot in day_slot_times(day, window, now.tzinfo)
        if slot >= earliest
        and await _is_feasible(tables, order_repo, at=slot, party_size=party_size, strategy=strategy)
    ]
    return slots or [FULL]
