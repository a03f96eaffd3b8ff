from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Set, Union

DateLike = Union[date, str]


def _as_date(value: DateLike) -> date:
    if isinstance(value, date):
        return value
    # Accept full ISO datetimes ("2024-05-01T00:00:00") as well as plain dates
    return date.fromisoformat(str(value).split("T")[0])


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


def is_holiday(day: date, holidays: Set[date]) -> bool:
    return day in holidays


def calculate_working_days(
    start_date: DateLike,
    end_date: DateLike,
    holidays: Iterable[DateLike] = (),
    half_days: Iterable[DateLike] = (),
) -> Decimal:
    """
    Counts the days of [start_date, end_date] that are neither weekend days nor
    holidays. Days listed in half_days count for 0.5.
    """
    start, end = _as_date(start_date), _as_date(end_date)
    holiday_set = {_as_date(h) for h in holidays}
    half_day_set = {_as_date(h) for h in half_days}

    days = Decimal("0")
    current = start
    while current <= end:
        if not is_weekend(current) and not is_holiday(current, holiday_set):
            days += Decimal("0.5") if current in half_day_set else Decimal("1")
        current += timedelta(days=1)
    return days
