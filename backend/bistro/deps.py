from datetime import datetime, tzinfo
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession

from .config import get_settings
from .database import async_session
from .utils.time import now_in, restaurant_tz


async def get_session() -> AsyncIterator[AsyncSession]:
    async with async_session() as session:
        yield session


def get_restaurant_tz() -> tzinfo:
    return restaurant_tz(get_settings().restaurant_tz)


def get_now() -> datetime:
    """Current instant in restaurant time. Overridden in tests to pin the clock."""
    return now_in(get_restaurant_tz())
