"""Reading Pydantic schemas for request/response validation."""

from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal

from pydantic import BaseModel, Field, field_validator

from gas_ledger.models.enums import IndexBand, Trend
from gas_ledger.models.reading import Reading

LEVEL_MIN = Decimal("0")
LEVEL_MAX = Decimal("100")
OFF_DAYS_MAX = Decimal("99999.99")

# Precision of the stored columns, so derived fields match what is persisted
LEVEL_QUANTUM = Decimal("0.0001")
OFF_DAYS_QUANTUM = Decimal("0.01")


class ReadingCreate(BaseModel):
    """Schema for submitting a reading.

    Timestamp and levels are optional here so that the ledger validator can
    report them as missing fields; they are never defaulted.
    """

    model_config = {"str_strip_whitespace": True}

    timestamp: datetime | None = None
    vendor: str = Field(min_length=1, max_length=100)
    invoice_ref: str = Field(min_length=1, max_length=20)
    level_start: Decimal | None = None
    level_end: Decimal | None = None
    off_days: Decimal | None = Field(default=None, ge=0, le=OFF_DAYS_MAX)
    submitted_by: str | None = Field(default=None, max_length=50)

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, v: datetime | None) -> datetime | None:
        """Store naive UTC with second precision."""
        if v is None:
            return None
        if v.tzinfo is not None:
            v = v.astimezone(UTC).replace(tzinfo=None)
        return v.replace(microsecond=0)

    @field_validator("level_start", "level_end")
    @classmethod
    def clamp_level(cls, v: Decimal | None) -> Decimal | None:
        """Clamp tank levels into 0..100 percent at stored precision."""
        if v is None:
            return None
        clamped = min(max(v, LEVEL_MIN), LEVEL_MAX)
        return clamped.quantize(LEVEL_QUANTUM, rounding=ROUND_HALF_UP)

    @field_validator("off_days")
    @classmethod
    def round_off_days(cls, v: Decimal | None) -> Decimal | None:
        """Round off days to stored precision."""
        if v is None:
            return None
        return v.quantize(OFF_DAYS_QUANTUM, rounding=ROUND_HALF_UP)


class ReadingUpdate(ReadingCreate):
    """Schema for overwriting an existing reading."""


class ReadingCreated(BaseModel):
    """Identifier assigned to a new reading."""

    id: int


class ReadingSummary(BaseModel):
    """Report row: a reading's derived metrics."""

    id: int
    timestamp: datetime
    consumed: Decimal
    purchased: Decimal
    elapsed: str
    index: Decimal
    trend: Trend
    band: IndexBand

    @classmethod
    def from_reading(cls, reading: Reading, band: IndexBand) -> "ReadingSummary":
        return cls(
            id=reading.id,
            timestamp=reading.reading_timestamp,
            consumed=reading.consumed,
            purchased=reading.purchased,
            elapsed=reading.elapsed,
            index=reading.consumption_index,
            trend=reading.trend,
            band=band,
        )


class ReadingDetail(BaseModel):
    """Full stored row, used to pre-populate edit forms."""

    id: int
    timestamp: datetime
    vendor: str
    invoice_ref: str
    level_start: Decimal
    level_end: Decimal
    off_days: Decimal
    submitted_by: str
    created_at: datetime
    consumed: Decimal
    purchased: Decimal
    elapsed: str
    index: Decimal
    index_change: Decimal
    trend: Trend

    @classmethod
    def from_reading(cls, reading: Reading) -> "ReadingDetail":
        return cls(
            id=reading.id,
            timestamp=reading.reading_timestamp,
            vendor=reading.vendor,
            invoice_ref=reading.invoice_ref,
            level_start=reading.level_start,
            level_end=reading.level_end,
            off_days=reading.off_days,
            submitted_by=reading.submitted_by,
            created_at=reading.created_at,
            consumed=reading.consumed,
            purchased=reading.purchased,
            elapsed=reading.elapsed,
            index=reading.consumption_index,
            index_change=reading.index_change,
            trend=reading.trend,
        )
