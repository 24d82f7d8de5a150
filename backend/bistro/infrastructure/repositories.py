from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import date, datetime, timedelta, tzinfo
from typing import AsyncIterator, Optional

from sqlalchemy import and_, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.errors import RepositoryError
from ..domain.repositories import LifecycleRepository, OpeningHoursRepository, OrderRepository, TableRepository
from ..domain.services import OpeningWindow, OrderRef, ReservationSnapshot, TableSnapshot
from ..models import ACTIVE_ORDER_STATUSES, OpeningHour, Order, OrderStatus, RestaurantTable
from ..utils.time import to_utc_naive, utc_naive_to_local


@asynccontextmanager
async def _storage_errors(session: AsyncSession, operation: str) -> AsyncIterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        await session.rollback()
        raise RepositoryError(f"{operation} failed") from exc


class SqlAlchemyTableRepository(TableRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_all_tables(self) -> list[TableSnapshot]:
        async with _storage_errors(self.session, "get_all_tables"):
            rows = await self.session.scalars(select(RestaurantTable).order_by(RestaurantTable.table_id))
            return [TableSnapshot(table_id=t.table_id, capacity=t.capacity) for t in rows]


class SqlAlchemyOpeningHoursRepository(OpeningHoursRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_opening_window(self, day: date, weekday: int) -> OpeningWindow | None:
        # A row for the exact date beats the weekday default.
        stmt = (
            select(OpeningHour)
            .where(
                or_(
                    OpeningHour.specific_date == day,
                    and_(OpeningHour.specific_date.is_(None), OpeningHour.day_of_week == weekday),
                )
            )
            .order_by(OpeningHour.specific_date.is_(None).asc())
            .limit(1)
        )
        async with _storage_errors(self.session, "get_opening_window"):
            hour = await self.session.scalar(stmt)
        if hour is None:
            return None
        if hour.is_closed:
            return OpeningWindow.closed()
        return OpeningWindow(open_time=hour.open_time, close_time=hour.close_time)


class SqlAlchemyOrderRepository(OrderRepository, LifecycleRepository):
    def __init__(self, session: AsyncSession, *, tz: tzinfo, occupancy_minutes: int = 120) -> None:
        self.session = session
        self.tz = tz
        self.occupancy = timedelta(minutes=occupancy_minutes)

    def _to_ref(self, order: Order) -> OrderRef:
        return OrderRef(
            order_number=order.order_number,
            scheduled_at=utc_naive_to_local(order.scheduled_at, self.tz),
            party_size=order.party_size,
            confirmation_code=order.confirmation_code,
            seated_at=utc_naive_to_local(order.seated_at, self.tz) if order.seated_at else None,
            phone=order.phone,
            email=order.email,
        )

    async def get_overlapping_reservations(self, at: datetime) -> list[ReservationSnapshot]:
        """Active orders whose occupancy window intersects the one that would start at `at`."""
        at_utc = to_utc_naive(at)
        stmt = select(Order).where(
            Order.status.in_(ACTIVE_ORDER_STATUSES),
            Order.scheduled_at > at_utc - self.occupancy,
            Order.scheduled_at < at_utc + self.occupancy,
        )
        async with _storage_errors(self.session, "get_overlapping_reservations"):
            orders = await self.session.scalars(stmt)
            return [
                ReservationSnapshot(
                    party_size=o.party_size,
                    scheduled_at=utc_naive_to_local(o.scheduled_at, self.tz),
                )
                for o in orders
            ]

    async def cancel_late_orders(self, *, grace_minutes: int, now: datetime) -> list[OrderRef]:
        cutoff = to_utc_naive(now) - timedelta(minutes=grace_minutes)
        stmt = (
            select(Order)
            .where(Order.status == OrderStatus.PENDING, Order.scheduled_at < cutoff)
            .order_by(Order.scheduled_at)
            .with_for_update()
        )
        return await self._transition(stmt, "cancel_late_orders", status=OrderStatus.CANCELLED)

    async def find_orders_due_for_reminder(self, *, lead_hours: int, now: datetime) -> list[OrderRef]:
        now_utc = to_utc_naive(now)
        stmt = (
            select(Order)
            .where(
                Order.status == OrderStatus.PENDING,
                Order.reminder_sent_at.is_(None),
                Order.scheduled_at > now_utc,
                Order.scheduled_at <= now_utc + timedelta(hours=lead_hours),
            )
            .order_by(Order.scheduled_at)
            .with_for_update()
        )
        return await self._transition(stmt, "find_orders_due_for_reminder", reminder_sent_at=now_utc)

    async def find_orders_due_for_invoice(self, *, seated_hours: int, now: datetime) -> list[OrderRef]:
        now_utc = to_utc_naive(now)
        stmt = (
            select(Order)
            .where(
                Order.status == OrderStatus.SEATED,
                Order.invoice_sent_at.is_(None),
                Order.seated_at.is_not(None),
                Order.seated_at < now_utc - timedelta(hours=seated_hours),
            )
            .order_by(Order.seated_at)
            .with_for_update()
        )
        return await self._transition(stmt, "find_orders_due_for_invoice", invoice_sent_at=now_utc)

    async def _transition(
        self,
        stmt,
        operation: str,
        *,
        status: Optional[OrderStatus] = None,
        reminder_sent_at: Optional[datetime] = None,
        invoice_sent_at: Optional[datetime] = None,
    ) -> list[OrderRef]:
        """Apply one bookkeeping change to every selected order and commit it on its own."""
        async with _storage_errors(self.session, operation):
            orders = list(await self.session.scalars(stmt))
            for order in orders:
                if status is not None:
                    order.status = status
                if reminder_sent_at is not None:
                    order.reminder_sent_at = reminder_sent_at
                if invoice_sent_at is not None:
                    order.invoice_sent_at = invoice_sent_at
            refs = [self._to_ref(order) for order in orders]
            await self.session.commit()
        return refs
