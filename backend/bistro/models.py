from __future__ import annotations

from datetime import date, datetime, time
from enum import StrEnum
from typing import Optional

from sqlalchemy import CheckConstraint, Enum, Index, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql.sqltypes import BigInteger, Boolean, Date, DateTime, Integer, SmallInteger, String, Time

# SQLite only autoincrements INTEGER primary keys.
BigIntPK = BigInteger().with_variant(Integer(), "sqlite")


class Base(DeclarativeBase):
    pass


class OrderStatus(StrEnum):
    PENDING = "pending"
    SEATED = "seated"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    PAID = "paid"


# Statuses whose party still holds (or will hold) a table.
ACTIVE_ORDER_STATUSES = (OrderStatus.PENDING, OrderStatus.SEATED)


class RestaurantTable(Base):
    __tablename__ = "tables"
    __table_args__ = (CheckConstraint("capacity >= 1", name="chk_tables_capacity"),)

    table_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)


class OpeningHour(Base):
    __tablename__ = "opening_hours"
    __table_args__ = (
        UniqueConstraint("specific_date", name="uq_opening_hours_date"),
        Index("idx_opening_hours_weekday", "day_of_week"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    # 0 = Monday ... 6 = Sunday, matching date.weekday(). Ignored for date overrides.
    day_of_week: Mapped[int] = mapped_column(SmallInteger, nullable=False, default=0)
    specific_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    open_time: Mapped[Optional[time]] = mapped_column(Time, nullable=True)
    close_time: Mapped[Optional[time]] = mapped_column(Time, nullable=True)
    is_closed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class Order(Base):
    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint("party_size >= 1", name="chk_orders_party_size"),
        Index("idx_orders_scheduled", "scheduled_at"),
        Index("idx_orders_status", "status"),
    )

    order_number: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    # All datetimes are naive UTC.
    scheduled_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    placed_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    seated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=False), nullable=True)
    party_size: Mapped[int] = mapped_column(Integer, nullable=False)
    confirmation_code: Mapped[int] = mapped_column(Integer, nullable=False)
    subscriber_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    status: Mapped[OrderStatus] = mapped_column(
        Enum(
            OrderStatus,
            values_callable=lambda enum_cls: [e.value for e in enum_cls],
            native_enum=False,
        ),
        nullable=False,
        default=OrderStatus.PENDING,
    )
    reminder_sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=False), nullable=True)
    invoice_sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=False), nullable=True)
