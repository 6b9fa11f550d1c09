"""Reading database model - the central ledger."""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from gas_ledger.core.database import Base
from gas_ledger.models.enums import Trend


class Reading(Base):
    """Tank level reading ledger entry."""

    __tablename__ = "readings"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        default=lambda: datetime.now(UTC),
    )  # When added to database
    reading_timestamp: Mapped[datetime] = mapped_column(index=True)  # When reading was taken

    # Invoice metadata
    vendor: Mapped[str] = mapped_column(String(100))
    invoice_ref: Mapped[str] = mapped_column(String(20))

    # Tank levels in percent
    level_start: Mapped[Decimal] = mapped_column(Numeric(precision=10, scale=4))
    level_end: Mapped[Decimal] = mapped_column(Numeric(precision=10, scale=4))
    off_days: Mapped[Decimal] = mapped_column(Numeric(precision=7, scale=2), default=Decimal("0"))

    submitted_by: Mapped[str] = mapped_column(String(50))

    # Derived at submission time
    consumed: Mapped[Decimal] = mapped_column(Numeric(precision=12, scale=4), default=Decimal("0"))
    purchased: Mapped[Decimal] = mapped_column(Numeric(precision=12, scale=4), default=Decimal("0"))
    elapsed: Mapped[str] = mapped_column(String(50), default="")
    consumption_index: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=4),
        default=Decimal("0"),
    )
    index_change: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=4),
        default=Decimal("0"),
    )
    trend: Mapped[Trend] = mapped_column(String(10), default=Trend.FLAT)
