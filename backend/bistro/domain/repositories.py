from __future__ import annotations

from datetime import date, datetime
from typing import Protocol

from .services import OpeningWindow, OrderRef, ReservationSnapshot, TableSnapshot


class TableRepository(Protocol):
    async def get_all_tables(self) -> list[TableSnapshot]: ...


class OpeningHoursRepository(Protocol):
    async def get_opening_window(self, day: date, weekday: int) -> OpeningWindow | None: ...


class OrderRepository(Protocol):
    async def get_overlapping_reservations(self, at: datetime) -> list[ReservationSnapshot]: ...


class LifecycleRepository(Protocol):
    async def cancel_late_orders(self, *, grace_minutes: int, now: datetime) -> list[OrderRef]: ...

    async def find_orders_due_for_reminder(self, *, lead_hours: int, now: datetime) -> list[OrderRef]: ...

    async def find_orders_due_for_invoice(self, *, seated_hours: int, now: datetime) -> list[OrderRef]: ...


class Notifier(Protocol):
    async def send_reminder(self, order: OrderRef) -> None: ...

    async def send_invoice(self, order: OrderRef) -> None: ...
