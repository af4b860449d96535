import calendar
from dataclasses import dataclass
from datetime import MAXYEAR, MINYEAR, date, datetime, time
from typing import Optional


@dataclass(frozen=True)
class Window:
    """Inclusive calendar-month range, ``start <= date <= end``."""

    start: datetime
    end: datetime

    def contains(self, value: datetime) -> bool:
        return self.start <= value <= self.end


# start > end, so nothing is contained and the SQL bounds match no row
EMPTY_WINDOW = Window(datetime.max, datetime.min)


def month_start(year: int, month: int) -> date:
    return date(year, month, 1)


def month_end(year: int, month: int) -> date:
    return date(year, month, calendar.monthrange(year, month)[1])


def resolve_month_window(
    month: Optional[int], year: Optional[int]
) -> Optional[Window]:
    """Return the window covering ``month`` of ``year``.

    ``None`` means "no bound" and is returned when either part is missing.
    A month or year no calendar date can fall in yields ``EMPTY_WINDOW``.
    """
    if month is None or year is None:
        return None
    if not (MINYEAR <= year <= MAXYEAR and 1 <= month <= 12):
        return EMPTY_WINDOW
    first = month_start(year, month)
    last = month_end(year, month)
    return Window(datetime.combine(first, time.min), datetime.combine(last, time.max))
