from datetime import datetime
from zoneinfo import ZoneInfo

import pytest
from bistro.utils.time import add_months, to_utc_naive, utc_naive_to_local

TZ = ZoneInfo("Asia/Jerusalem")


@pytest.mark.parametrize(
    "start, months, expected",
    [
        (datetime(2026, 1, 31, 19, 0), 1, datetime(2026, 2, 28, 19, 0)),
        (datetime(2028, 1, 31, 19, 0), 1, datetime(2028, 2, 29, 19, 0)),
        (datetime(2026, 12, 15, 12, 0), 1, datetime(2027, 1, 15, 12, 0)),
        (datetime(2026, 3, 10, 12, 0), 0, datetime(2026, 3, 10, 12, 0)),
    ],
)
def test_add_months_clamps_to_month_end(start: datetime, months: int, expected: datetime) -> None:
    assert add_months(start, months) == expected


def test_to_utc_naive_rejects_naive_datetimes() -> None:
    with pytest.raises(ValueError):
        to_utc_naive(datetime(2026, 3, 4, 19, 0))


def test_utc_storage_keeps_the_instant() -> None:
    local = datetime(2026, 7, 1, 19, 0, tzinfo=TZ)
    stored = to_utc_naive(local)
    assert stored == datetime(2026, 7, 1, 16, 0)
    assert utc_naive_to_local(stored, TZ) == local
