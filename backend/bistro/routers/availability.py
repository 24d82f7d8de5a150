from datetime import date, datetime, tzinfo

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings
from ..deps import get_now, get_restaurant_tz, get_session
from ..domain.errors import (
    BookingTooFarError,
    BookingTooSoonError,
    ClosedError,
    NoTablesConfiguredError,
    RepositoryError,
)
from ..infrastructure.repositories import (
    SqlAlchemyOpeningHoursRepository,
    SqlAlchemyOrderRepository,
    SqlAlchemyTableRepository,
)
from ..schemas import AvailabilityCheck, AvailabilityRead, DaySlotsRead
from ..usecases import availability as availability_usecase

router = APIRouter(prefix="/availability", tags=["availability"])


@router.post("/check", response_model=AvailabilityRead)
async def check_availability(
    payload: AvailabilityCheck,
    session: AsyncSession = Depends(get_session),
    tz: tzinfo = Depends(get_restaurant_tz),
    now: datetime = Depends(get_now),
) -> AvailabilityRead:
    requested_at = payload.requested_at
    if requested_at.tzinfo is None:
        requested_at = requested_at.replace(tzinfo=tz)
    else:
        requested_at = requested_at.astimezone(tz)

    try:
        result = await availability_usecase.check_availability(
            SqlAlchemyTableRepository(session),
            SqlAlchemyOrderRepository(session, tz=tz, occupancy_minutes=get_settings().occupancy_minutes),
            SqlAlchemyOpeningHoursRepository(session),
            requested_at=requested_at,
            party_size=payload.party_size,
            now=now,
        )
    except ClosedError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    except (BookingTooSoonError, BookingTooFarError) as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    except NoTablesConfiguredError:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="no tables configured")
    except RepositoryError:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="storage unavailable")

    return AvailabilityRead.from_result(result)


@router.get("/{day}/slots", response_model=DaySlotsRead)
async def list_day_slots(
    day: date = Path(..., description="Calendar date (YYYY-MM-DD)"),
    party_size: int = Query(..., ge=1),
    session: AsyncSession = Depends(get_session),
    tz: tzinfo = Depends(get_restaurant_tz),
    now: datetime = Depends(get_now),
) -> DaySlotsRead:
    try:
        slots = await availability_usecase.enumerate_day_slots(
            SqlAlchemyTableRepository(session),
            SqlAlchemyOrderRepository(session, tz=tz, occupancy_minutes=get_settings().occupancy_minutes),
            SqlAlchemyOpeningHoursRepository(session),
            day=day,
            party_size=party_size,
            now=now,
        )
    except RepositoryError:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="storage unavailable")
    return DaySlotsRead.from_slots(day=day, party_size=party_size, slots=slots)
