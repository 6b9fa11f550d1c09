"""Seed script to populate the database with a sample ledger."""

from datetime import UTC, datetime, timedelta
from decimal import Decimal

from gas_ledger.core.database import Base, SessionLocal, engine
from gas_ledger.core.identity import Identity
from gas_ledger.core.logging_config import configure_logging
from gas_ledger.models.reading import Reading
from gas_ledger.schemas.reading import ReadingCreate
from gas_ledger.services.readings import create_reading

VENDORS = ["Tropigas", "Propagas", "Sunix Gas"]
WEEKS = 27
REFILL_LEVEL = Decimal("85")
REFILL_BELOW = Decimal("30")


def build_seed_readings(base_date: datetime, weeks: int = WEEKS) -> list[ReadingCreate]:
    """Weekly readings burning 8-14% a week.

    When the tank would fall below 30% a delivery arrives between two visits,
    so the next reading starts back at 85%, above the previous final level.
    """
    readings = []
    level = REFILL_LEVEL

    for week in range(weeks):
        level -= Decimal(8 + week % 7)
        if level < REFILL_BELOW:
            level = REFILL_LEVEL

        readings.append(
            ReadingCreate(
                timestamp=base_date + timedelta(weeks=week),
                vendor=VENDORS[week % len(VENDORS)],
                invoice_ref=f"INV-{1000 + week}",
                level_start=level,
                level_end=level,
                off_days=Decimal(week % 3),
            )
        )

    return readings


def seed_database() -> None:
    """Seed the database with roughly six months of weekly readings."""
    configure_logging()
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        if db.query(Reading).first():
            print("Database already has data. Skipping seed.")
            return

        print("Seeding database...")
        seeder = Identity(username="seed")

        base_date = datetime.now(UTC).replace(tzinfo=None, microsecond=0) - timedelta(weeks=WEEKS - 1)
        readings = build_seed_readings(base_date)
        for data in readings:
            create_reading(db, data, seeder)

        print(f"Created {len(readings)} readings (one per week)")
        print("\nSeed data created successfully!")
    finally:
        db.close()


if __name__ == "__main__":
    seed_database()
