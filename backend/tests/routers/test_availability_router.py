from datetime import date, datetime, time
from typing import Any, AsyncIterator, cast
from zoneinfo import ZoneInfo

import pytest
from bistro.deps import get_now, get_session
from bistro.domain.errors import BookingTooSoonError, ClosedError, NoTablesConfiguredError, RepositoryError
from bistro.main import app
from bistro.models import Base, OpeningHour, Order, OrderStatus, RestaurantTable
from bistro.routers import availability as router
from bistro.schemas import AvailabilityCheck
from bistro.usecases.availability import AvailabilityResult
from bistro.utils.time import to_utc_naive
from fastapi import HTTPException
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

TZ = ZoneInfo("Asia/Jerusalem")
NOW = datetime(2026, 3, 2, 10, 0, tzinfo=TZ)
DAY = date(2026, 3, 4)


def _patch_repos(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(router, "SqlAlchemyTableRepository", lambda s: s)
    monkeypatch.setattr(router, "SqlAlchemyOrderRepository", lambda s, **_: s)
    monkeypatch.setattr(router, "SqlAlchemyOpeningHoursRepository", lambda s: s)


@pytest.mark.asyncio
async def test_check_localizes_naive_request_time(monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_repos(monkeypatch)
    seen: dict[str, Any] = {}

    async def fake_check(*args: object, **kwargs: Any) -> AvailabilityResult:
        seen.update(kwargs)
        return AvailabilityResult(accepted=True)

    monkeypatch.setattr(router.availability_usecase, "check_availability", fake_check)

    result = await router.check_availability(
        payload=AvailabilityCheck(requested_at=datetime(2026, 3, 4, 19, 0), party_size=2),
        session=cast(AsyncSession, object()),
        tz=TZ,
        now=NOW,
    )

    assert result.accepted is True
    assert seen["requested_at"] == datetime(2026, 3, 4, 19, 0, tzinfo=TZ)
    assert seen["now"] == NOW


@pytest.mark.parametrize(
    "error, status_code",
    [
        (ClosedError("closed"), 409),
        (BookingTooSoonError("soon"), 422),
        (NoTablesConfiguredError("none"), 503),
        (RepositoryError("down"), 503),
    ],
)
@pytest.mark.asyncio
async def test_check_maps_domain_errors(
    monkeypatch: pytest.MonkeyPatch, error: Exception, status_code: int
) -> None:
    _patch_repos(monkeypatch)

    async def fake_check(*args: object, **kwargs: object) -> AvailabilityResult:
        raise error

    monkeypatch.setattr(router.availability_usecase, "check_availability", fake_check)

    with pytest.raises(HTTPException) as exc_info:
        await router.check_availability(
            payload=AvailabilityCheck(requested_at=datetime(2026, 3, 4, 19, 0, tzinfo=TZ), party_size=2),
            session=cast(AsyncSession, object()),
            tz=TZ,
            now=NOW,
        )
    assert exc_info.value.status_code == status_code


@pytest.mark.asyncio
async def test_day_slots_storage_failure_is_503(monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_repos(monkeypatch)

    async def fake_enumerate(*args: object, **kwargs: object) -> list[str]:
        raise RepositoryError("down")

    monkeypatch.setattr(router.availability_usecase, "enumerate_day_slots", fake_enumerate)

    with pytest.raises(HTTPException) as exc_info:
        await router.list_day_slots(
            day=DAY, party_size=2, session=cast(AsyncSession, object()), tz=TZ, now=NOW
        )
    assert exc_info.value.status_code == 503


@pytest.mark.parametrize(
    "slots, status, listed",
    [
        (["CLOSED"], "closed", []),
        (["FULL"], "full", []),
        (["18:00", "18:30"], "open", ["18:00", "18:30"]),
    ],
)
@pytest.mark.asyncio
async def test_day_slots_status(
    monkeypatch: pytest.MonkeyPatch, slots: list[str], status: str, listed: list[str]
) -> None:
    _patch_repos(monkeypatch)

    async def fake_enumerate(*args: object, **kwargs: object) -> list[str]:
        return slots

    monkeypatch.setattr(router.availability_usecase, "enumerate_day_slots", fake_enumerate)

    result = await router.list_day_slots(
        day=DAY, party_size=2, session=cast(AsyncSession, object()), tz=TZ, now=NOW
    )
    assert result.status == status
    assert result.slots == listed


@pytest.mark.asyncio
async def test_end_to_end_over_sqlite() -> None:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)

    busy_at = datetime(2026, 3, 4, 19, 0, tzinfo=TZ)
    async with factory() as session:
        session.add_all(
            [
                RestaurantTable(table_id=1, capacity=4),
                OpeningHour(day_of_week=DAY.weekday(), open_time=time(18, 0), close_time=time(21, 0)),
                Order(
                    order_number=1,
                    scheduled_at=to_utc_naive(busy_at),
                    placed_at=to_utc_naive(NOW),
                    party_size=4,
                    confirmation_code=1234,
                    status=OrderStatus.PENDING,
                ),
            ]
        )
        await session.commit()

    async def override_session() -> AsyncIterator[AsyncSession]:
        async with factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_now] = lambda: NOW
    try:
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            check = await client.post(
                "/availability/check",
                json={"requested_at": "2026-03-04T19:00:00", "party_size": 2},
            )
            slots = await client.get(f"/availability/{DAY.isoformat()}/slots", params={"party_size": 2})
            closed = await client.get("/availability/2026-03-05/slots", params={"party_size": 2})
    finally:
        app.dependency_overrides.clear()
        await engine.dispose()

    assert check.status_code == 200
    body = check.json()
    assert body["accepted"] is False
    # 19:00 is held until 21:00, so only times two hours away from it are free.
    assert body["alternatives"] == []
    assert check.headers.get("X-Request-ID")

    assert slots.status_code == 200
    # 17:00-21:00 is blocked by the 19:00 order (occupancy window of two hours each side).
    assert slots.json()["status"] == "full"

    assert closed.json()["status"] == "closed"
