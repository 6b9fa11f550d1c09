"""Ledger rules: candidate validation, derived metrics and index bands.

Everything here is a pure function of its arguments. ``candidate`` is a
parsed :class:`~gas_ledger.schemas.reading.ReadingCreate` and ``previous`` is
the chronologically previous stored :class:`~gas_ledger.models.reading.Reading`
(or ``None`` when the ledger is empty).
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

from gas_ledger.core.exceptions import (
    ExcessiveOffDaysError,
    InvalidRangeError,
    MissingFieldError,
    OutOfOrderError,
)
from gas_ledger.models.enums import IndexBand, Trend
from gas_ledger.models.reading import Reading
from gas_ledger.schemas.reading import ReadingCreate

ZERO = Decimal("0")
HUNDRED = Decimal("100")
SECONDS_PER_DAY = 86400
QUANTUM = Decimal("0.0001")


@dataclass(frozen=True)
class DerivedMetrics:
    """Metrics computed for a reading against its predecessor."""

    consumed: Decimal = ZERO
    purchased: Decimal = ZERO
    elapsed: str = ""
    index: Decimal = ZERO
    index_change: Decimal = ZERO
    trend: Trend = Trend.FLAT


def whole_days_between(start: datetime, end: datetime) -> int:
    """Number of complete days from start to end."""
    return (end - start).days


def validate_reading(candidate: ReadingCreate, previous: Reading | None) -> None:
    """Check a candidate reading against the ledger tail.

    Rules are applied in order and the first failure is raised.

    Raises:
        MissingFieldError: timestamp or a level is missing
        InvalidRangeError: final level is below the initial level
        OutOfOrderError: candidate is older than the previous reading
        ExcessiveOffDaysError: off days exceed the days elapsed since the previous reading

    """
    if candidate.timestamp is None:
        raise MissingFieldError("timestamp")
    if candidate.level_start is None:
        raise MissingFieldError("level_start")
    if candidate.level_end is None:
        raise MissingFieldError("level_end")

    if candidate.level_end < candidate.level_start:
        raise InvalidRangeError("final < initial")

    if previous is None:
        return

    if candidate.timestamp < previous.reading_timestamp:
        raise OutOfOrderError(previous.reading_timestamp)

    if candidate.off_days is not None:
        elapsed_days = whole_days_between(previous.reading_timestamp, candidate.timestamp)
        if candidate.off_days > elapsed_days:
            raise ExcessiveOffDaysError(elapsed_days, candidate.off_days)


def format_elapsed(duration: timedelta) -> str:
    """Format a duration for display, e.g. ``"4d 6h 30m"``."""
    total_minutes = max(duration // timedelta(minutes=1), 0)
    days, remainder = divmod(total_minutes, 24 * 60)
    hours, minutes = divmod(remainder, 60)
    return f"{days}d {hours}h {minutes}m"


def _quantize(value: Decimal) -> Decimal:
    return value.quantize(QUANTUM, rounding=ROUND_HALF_UP)


def _to_volume(points: Decimal, tank_capacity: Decimal) -> Decimal:
    """Convert percentage points of the tank into volume."""
    return _quantize(points * tank_capacity / HUNDRED)


def derive_metrics(
    candidate: ReadingCreate,
    previous: Reading | None,
    tank_capacity: Decimal,
) -> DerivedMetrics:
    """Compute consumption, purchase, elapsed time, index and trend.

    Consumption is the drop from the previous final level to the candidate's
    initial level; a rise between the two is a refill and counts as purchased.
    The index is consumption per effective day (elapsed time minus off days).
    The candidate must already have passed :func:`validate_reading`.
    """
    if previous is None:
        return DerivedMetrics()

    drop = previous.level_end - candidate.level_start
    consumed = _to_volume(max(drop, ZERO), tank_capacity)
    purchased = _to_volume(max(-drop, ZERO), tank_capacity)

    off_days = candidate.off_days if candidate.off_days is not None else ZERO
    gap_seconds = (candidate.timestamp - previous.reading_timestamp) // timedelta(seconds=1)
    effective_seconds = max(Decimal(gap_seconds) - off_days * SECONDS_PER_DAY, ZERO)

    if effective_seconds > 0:
        index = _quantize(consumed * SECONDS_PER_DAY / effective_seconds)
    else:
        index = _quantize(ZERO)

    previous_index = previous.consumption_index if previous.consumption_index is not None else ZERO
    index_change = _quantize(index - previous_index)
    if index > previous_index:
        trend = Trend.UP
    elif index < previous_index:
        trend = Trend.DOWN
    else:
        trend = Trend.FLAT

    return DerivedMetrics(
        consumed=consumed,
        purchased=purchased,
        elapsed=format_elapsed(timedelta(seconds=int(effective_seconds))),
        index=index,
        index_change=index_change,
        trend=trend,
    )


def classify_index(index: Decimal, low: Decimal, high: Decimal) -> IndexBand:
    """Map a consumption index onto a band."""
    if index < low:
        return IndexBand.LOW
    if index >= high:
        return IndexBand.HIGH
    return IndexBand.MEDIUM
