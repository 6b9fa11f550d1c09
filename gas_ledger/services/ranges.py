"""Calendar windows for reporting range selectors."""

import calendar
from datetime import datetime, timedelta

from gas_ledger.models.enums import RangeSelector

LAST_DAYS_WINDOW = 90


def _month_start(year: int, month: int) -> datetime:
    return datetime(year, month, 1)


def _month_end(year: int, month: int) -> datetime:
    last_day = calendar.monthrange(year, month)[1]
    return datetime(year, month, last_day, 23, 59, 59)


def resolve_range(
    selector: RangeSelector,
    now: datetime,
) -> tuple[datetime | None, datetime | None]:
    """Return the inclusive (start, end) window for a selector.

    Bounds are ``None`` when the window is open on that side.
    """
    if selector == RangeSelector.LAST_90_DAYS:
        return now - timedelta(days=LAST_DAYS_WINDOW), now

    if selector == RangeSelector.THIS_MONTH:
        return _month_start(now.year, now.month), _month_end(now.year, now.month)

    if selector == RangeSelector.LAST_MONTH:
        year, month = (now.year - 1, 12) if now.month == 1 else (now.year, now.month - 1)
        return _month_start(year, month), _month_end(year, month)

    if selector == RangeSelector.THIS_YEAR:
        return _month_start(now.year, 1), _month_end(now.year, 12)

    if selector == RangeSelector.LAST_YEAR:
        return _month_start(now.year - 1, 1), _month_end(now.year - 1, 12)

    return None, None
