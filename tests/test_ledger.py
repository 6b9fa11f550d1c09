"""Tests for ledger validation, derived metrics and index bands."""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from pydantic import ValidationError

from gas_ledger.core.exceptions import (
    ExcessiveOffDaysError,
    InvalidRangeError,
    MissingFieldError,
    OutOfOrderError,
)
from gas_ledger.models.enums import IndexBand, Trend
from gas_ledger.models.reading import Reading
from gas_ledger.schemas.reading import ReadingCreate
from gas_ledger.services.ledger import (
    DerivedMetrics,
    classify_index,
    derive_metrics,
    format_elapsed,
    validate_reading,
)

T0 = datetime(2024, 3, 1, 8, 0, 0)
CAPACITY = Decimal("100")


def candidate(**overrides) -> ReadingCreate:
    """Helper: build a candidate reading with sensible defaults."""
    fields = {
        "timestamp": T0,
        "vendor": "Tropigas",
        "invoice_ref": "INV-1",
        "level_start": Decimal("20"),
        "level_end": Decimal("80"),
        "off_days": Decimal("0"),
    }
    fields.update(overrides)
    return ReadingCreate(**fields)


def stored(
    timestamp: datetime = T0,
    level_end: Decimal = Decimal("80"),
    index: Decimal = Decimal("0"),
) -> Reading:
    """Helper: build an unsaved ledger row to act as the previous reading."""
    return Reading(
        reading_timestamp=timestamp,
        level_start=Decimal("20"),
        level_end=level_end,
        consumption_index=index,
    )


class TestReadingCreate:
    """Tests for parsing candidate readings."""

    def test_levels_are_clamped(self) -> None:
        """Test that out-of-range levels are clamped rather than rejected."""
        data = candidate(level_start="-5", level_end="150")
        assert data.level_start == Decimal("0")
        assert data.level_end == Decimal("100")

    def test_numeric_strings_are_coerced(self) -> None:
        """Test that numbers arriving as strings become decimals."""
        data = candidate(level_start="30.5", off_days="2")
        assert data.level_start == Decimal("30.5")
        assert data.off_days == Decimal("2")

    def test_aware_timestamp_converted_to_naive_utc(self) -> None:
        """Test that timezone-aware timestamps are stored as naive UTC."""
        data = candidate(timestamp="2024-03-01T10:00:00.123456+02:00")
        assert data.timestamp == datetime(2024, 3, 1, 8, 0, 0)

    def test_missing_levels_are_not_defaulted(self) -> None:
        """Test that omitted levels stay missing instead of becoming zero."""
        data = ReadingCreate(timestamp=T0, vendor="Tropigas", invoice_ref="INV-1")
        assert data.level_start is None
        assert data.level_end is None

    def test_vendor_required(self) -> None:
        """Test that a blank vendor is rejected."""
        with pytest.raises(ValidationError):
            candidate(vendor="   ")

    def test_invoice_ref_length(self) -> None:
        """Test that invoice references are limited to 20 characters."""
        with pytest.raises(ValidationError):
            candidate(invoice_ref="X" * 21)

    def test_negative_off_days_rejected(self) -> None:
        """Test that off days cannot be negative."""
        with pytest.raises(ValidationError):
            candidate(off_days="-1")

    def test_levels_rounded_to_stored_precision(self) -> None:
        """Test that levels are rounded half up to four decimal places."""
        data = candidate(level_start="33.33335", level_end="66.66664")
        assert data.level_start == Decimal("33.3334")
        assert data.level_end == Decimal("66.6666")

    def test_off_days_rounded_to_stored_precision(self) -> None:
        """Test that off days are rounded half up to two decimal places."""
        assert candidate(off_days="1.005").off_days == Decimal("1.01")
        assert candidate(off_days="0.004").off_days == Decimal("0.00")

    def test_off_days_upper_bound(self) -> None:
        """Test that off days beyond the stored column width are rejected."""
        with pytest.raises(ValidationError):
            candidate(off_days="100000")


class TestValidateReading:
    """Unit tests for the ledger validator."""

    def test_first_reading_accepted(self) -> None:
        """Test that any well-formed reading is accepted by an empty ledger."""
        validate_reading(candidate(), None)

    def test_missing_timestamp(self) -> None:
        """Test that a missing timestamp is reported first."""
        with pytest.raises(MissingFieldError) as exc_info:
            validate_reading(candidate(timestamp=None, level_end=Decimal("10")), None)
        assert exc_info.value.field == "timestamp"

    @pytest.mark.parametrize("field", ["level_start", "level_end"])
    def test_missing_level(self, field: str) -> None:
        """Test that missing levels are reported by name."""
        with pytest.raises(MissingFieldError) as exc_info:
            validate_reading(candidate(**{field: None}), None)
        assert exc_info.value.field == field

    def test_final_below_initial(self) -> None:
        """Test that a final level below the initial level is rejected."""
        with pytest.raises(InvalidRangeError) as exc_info:
            validate_reading(candidate(level_start=Decimal("60"), level_end=Decimal("40")), None)
        assert exc_info.value.field == "level_end"

    def test_invalid_range_checked_before_order(self) -> None:
        """Test that inverted levels win over an out-of-order timestamp."""
        with pytest.raises(InvalidRangeError):
            validate_reading(
                candidate(
                    timestamp=T0 - timedelta(days=1),
                    level_start=Decimal("60"),
                    level_end=Decimal("40"),
                ),
                stored(),
            )

    def test_out_of_order(self) -> None:
        """Test that a reading older than the tail is rejected."""
        with pytest.raises(OutOfOrderError) as exc_info:
            validate_reading(candidate(timestamp=T0 - timedelta(days=1)), stored())
        assert exc_info.value.previous_timestamp == T0

    def test_same_timestamp_accepted(self) -> None:
        """Test that a reading at the tail's timestamp is not out of order."""
        validate_reading(candidate(timestamp=T0), stored())

    def test_excessive_off_days(self) -> None:
        """Test that off days beyond the gap are rejected with the gap in days."""
        with pytest.raises(ExcessiveOffDaysError) as exc_info:
            validate_reading(
                candidate(timestamp=T0 + timedelta(days=3), off_days=Decimal("5")),
                stored(),
            )
        assert exc_info.value.elapsed_days == 3
        assert "3 day(s)" in exc_info.value.detail

    def test_off_days_use_whole_days(self) -> None:
        """Test that a partial day does not count towards the allowed off days."""
        with pytest.raises(ExcessiveOffDaysError) as exc_info:
            validate_reading(
                candidate(timestamp=T0 + timedelta(days=3, hours=20), off_days=Decimal("4")),
                stored(),
            )
        assert exc_info.value.elapsed_days == 3

    def test_off_days_equal_to_gap_accepted(self) -> None:
        """Test that off days may cover the whole gap."""
        validate_reading(
            candidate(timestamp=T0 + timedelta(days=3), off_days=Decimal("3")),
            stored(),
        )

    def test_off_days_omitted_accepted(self) -> None:
        """Test that the off-days rule only applies when off days are given."""
        validate_reading(candidate(timestamp=T0 + timedelta(hours=1), off_days=None), stored())

    def test_legitimate_sequence_never_rejected(self) -> None:
        """Test that readings submitted in timestamp order are all accepted."""
        previous = None
        for day in range(0, 60, 6):
            data = candidate(
                timestamp=T0 + timedelta(days=day),
                level_start=Decimal(40 - day % 30),
                level_end=Decimal(90),
                off_days=Decimal(day % 4),
            )
            validate_reading(data, previous)
            previous = stored(timestamp=data.timestamp, level_end=data.level_end)


class TestDeriveMetrics:
    """Unit tests for the metrics deriver."""

    def test_first_reading_is_neutral(self) -> None:
        """Test that the first reading gets zero metrics and a flat trend."""
        metrics = derive_metrics(candidate(), None, CAPACITY)
        assert metrics == DerivedMetrics()
        assert metrics.consumed == 0
        assert metrics.purchased == 0
        assert metrics.elapsed == ""
        assert metrics.trend == Trend.FLAT

    def test_consumption_since_previous(self) -> None:
        """Test consumption from the previous final level to the new initial level."""
        metrics = derive_metrics(
            candidate(
                timestamp=T0 + timedelta(days=5),
                level_start=Decimal("30"),
                level_end=Decimal("90"),
            ),
            stored(level_end=Decimal("80")),
            CAPACITY,
        )
        assert metrics.consumed == Decimal("50")
        assert metrics.purchased == Decimal("0")
        assert metrics.elapsed == "5d 0h 0m"
        assert metrics.index == Decimal("10")
        assert metrics.index_change == Decimal("10")
        assert metrics.trend == Trend.UP

    def test_refill_between_readings_is_purchased(self) -> None:
        """Test that a rise in level between readings counts as purchased."""
        metrics = derive_metrics(
            candidate(
                timestamp=T0 + timedelta(days=2),
                level_start=Decimal("60"),
                level_end=Decimal("60"),
            ),
            stored(level_end=Decimal("20")),
            CAPACITY,
        )
        assert metrics.consumed == Decimal("0")
        assert metrics.purchased == Decimal("40")

    def test_volume_uses_tank_capacity(self) -> None:
        """Test that percentage points are converted with the tank capacity."""
        metrics = derive_metrics(
            candidate(timestamp=T0 + timedelta(days=5), level_start=Decimal("30")),
            stored(level_end=Decimal("80")),
            Decimal("120"),
        )
        assert metrics.consumed == Decimal("60")

    def test_off_days_reduce_effective_time(self) -> None:
        """Test that off days are subtracted before computing the index."""
        metrics = derive_metrics(
            candidate(
                timestamp=T0 + timedelta(days=5),
                level_start=Decimal("30"),
                off_days=Decimal("2"),
            ),
            stored(level_end=Decimal("80")),
            CAPACITY,
        )
        assert metrics.elapsed == "3d 0h 0m"
        assert metrics.index == Decimal("16.6667")

    def test_zero_effective_time_gives_zero_index(self) -> None:
        """Test that the index is zero when no effective time has passed."""
        metrics = derive_metrics(
            candidate(timestamp=T0 + timedelta(days=2), level_start=Decimal("50"), off_days=Decimal("2")),
            stored(level_end=Decimal("80")),
            CAPACITY,
        )
        assert metrics.consumed == Decimal("30")
        assert metrics.index == Decimal("0")
        assert metrics.elapsed == "0d 0h 0m"

    def test_trend_down(self) -> None:
        """Test that a lower index than the previous one trends down."""
        metrics = derive_metrics(
            candidate(timestamp=T0 + timedelta(days=5), level_start=Decimal("30")),
            stored(level_end=Decimal("80"), index=Decimal("20")),
            CAPACITY,
        )
        assert metrics.trend == Trend.DOWN
        assert metrics.index_change == Decimal("-10")

    def test_trend_flat_on_exact_equality(self) -> None:
        """Test that an unchanged index is flat."""
        metrics = derive_metrics(
            candidate(timestamp=T0 + timedelta(days=5), level_start=Decimal("30")),
            stored(level_end=Decimal("80"), index=Decimal("10.0000")),
            CAPACITY,
        )
        assert metrics.trend == Trend.FLAT
        assert metrics.index_change == Decimal("0")

    def test_deterministic(self) -> None:
        """Test that deriving twice from the same inputs gives identical output."""
        data = candidate(timestamp=T0 + timedelta(days=4, hours=7), level_start=Decimal("33.3"))
        previous = stored(level_end=Decimal("71.9"), index=Decimal("4.2"))
        first = derive_metrics(data, previous, CAPACITY)
        second = derive_metrics(data, previous, CAPACITY)
        assert first == second
        assert repr(first) == repr(second)


class TestFormatElapsed:
    """Tests for elapsed time formatting."""

    def test_days_hours_minutes(self) -> None:
        assert format_elapsed(timedelta(days=1, hours=2, minutes=3, seconds=59)) == "1d 2h 3m"

    def test_negative_is_zero(self) -> None:
        assert format_elapsed(timedelta(hours=-3)) == "0d 0h 0m"


class TestClassifyIndex:
    """Tests for index band classification."""

    @pytest.mark.parametrize(
        ("index", "band"),
        [
            (Decimal("0.5"), IndexBand.LOW),
            (Decimal("1"), IndexBand.MEDIUM),
            (Decimal("2.9999"), IndexBand.MEDIUM),
            (Decimal("3"), IndexBand.HIGH),
            (Decimal("12"), IndexBand.HIGH),
        ],
    )
    def test_bands(self, index: Decimal, band: IndexBand) -> None:
        assert classify_index(index, Decimal("1"), Decimal("3")) == band


class TestErrorStatus:
    """Tests for the HTTP status carried by ledger errors."""

    @pytest.mark.parametrize(
        "error",
        [
            MissingFieldError("timestamp"),
            InvalidRangeError(),
            OutOfOrderError(T0),
            ExcessiveOffDaysError(3, Decimal("5")),
        ],
    )
    def test_validation_errors_are_unprocessable(self, error: Exception) -> None:
        assert error.status_code == 422
        assert error.to_dict()["code"] == error.code
