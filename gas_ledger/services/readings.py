"""Reading service: append, edit and query the ledger."""

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import and_, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from gas_ledger.core.config import settings
from gas_ledger.core.exceptions import NotFoundError, StorageUnavailableError
from gas_ledger.core.identity import ANONYMOUS, Identity
from gas_ledger.models.enums import IndexBand, RangeSelector
from gas_ledger.models.reading import Reading
from gas_ledger.schemas.reading import ReadingCreate, ReadingUpdate
from gas_ledger.services.ledger import (
    DerivedMetrics,
    classify_index,
    derive_metrics,
    validate_reading,
)
from gas_ledger.services.ranges import resolve_range

logger = logging.getLogger(__name__)

# Held from tail lookup through commit so submissions never share a stale tail
_ledger_write_lock = threading.Lock()


@contextmanager
def _storage_guard(db: Session, operation: str, **context: object) -> Iterator[None]:
    """Roll back and surface storage failures as StorageUnavailableError."""
    try:
        yield
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Storage failure during %s (%s)", operation, context)
        raise StorageUnavailableError() from exc


def _resolve_submitter(data: ReadingCreate, identity: Identity) -> str:
    return data.submitted_by or identity.username or settings.DEFAULT_SUBMITTER


def _apply(reading: Reading, data: ReadingCreate, metrics: DerivedMetrics, submitter: str) -> None:
    """Copy raw inputs and derived fields onto a row."""
    reading.reading_timestamp = data.timestamp
    reading.vendor = data.vendor
    reading.invoice_ref = data.invoice_ref
    reading.level_start = data.level_start
    reading.level_end = data.level_end
    reading.off_days = data.off_days if data.off_days is not None else Decimal("0")
    reading.submitted_by = submitter
    reading.consumed = metrics.consumed
    reading.purchased = metrics.purchased
    reading.elapsed = metrics.elapsed
    reading.consumption_index = metrics.index
    reading.index_change = metrics.index_change
    reading.trend = metrics.trend


def get_previous_reading(db: Session) -> Reading | None:
    """Get the most recent reading in the ledger."""
    return (
        db.query(Reading)
        .order_by(Reading.reading_timestamp.desc(), Reading.id.desc())
        .first()
    )


def get_predecessor(db: Session, reading_id: int, reading_timestamp: datetime) -> Reading | None:
    """Get the reading chronologically before a given row.

    Rows sharing the timestamp count as earlier when they were stored first.
    """
    return (
        db.query(Reading)
        .filter(Reading.id != reading_id)
        .filter(
            or_(
                Reading.reading_timestamp < reading_timestamp,
                and_(
                    Reading.reading_timestamp == reading_timestamp,
                    Reading.id < reading_id,
                ),
            )
        )
        .order_by(Reading.reading_timestamp.desc(), Reading.id.desc())
        .first()
    )


def create_reading(
    db: Session,
    data: ReadingCreate,
    identity: Identity = ANONYMOUS,
) -> Reading:
    """
    Append a reading to the ledger.

    Args:
        db: Database session
        data: Parsed candidate reading
        identity: Caller resolved by the gateway, recorded for audit only

    Returns:
        Persisted reading with derived fields

    Raises:
        LedgerValidationError: If the candidate is rejected
        StorageUnavailableError: If the database write fails

    """
    with _ledger_write_lock, _storage_guard(db, "create", timestamp=data.timestamp):
        previous = get_previous_reading(db)
        validate_reading(data, previous)
        metrics = derive_metrics(data, previous, settings.TANK_CAPACITY)

        reading = Reading()
        _apply(reading, data, metrics, _resolve_submitter(data, identity))
        db.add(reading)
        db.commit()
        db.refresh(reading)

    logger.info(
        "Reading %s recorded at %s by %s (consumed=%s, index=%s)",
        reading.id,
        reading.reading_timestamp,
        reading.submitted_by,
        reading.consumed,
        reading.consumption_index,
    )
    return reading


def update_reading(
    db: Session,
    reading_id: int,
    data: ReadingUpdate,
    identity: Identity = ANONYMOUS,
) -> Reading:
    """
    Overwrite an existing reading.

    Field rules are enforced but neighbours are not re-validated. Derived
    fields of this row are recomputed against its predecessor; later rows are
    left untouched.

    Raises:
        NotFoundError: If the reading does not exist
        LedgerValidationError: If the new field values are invalid
        StorageUnavailableError: If the database write fails

    """
    with _ledger_write_lock, _storage_guard(db, "update", reading_id=reading_id):
        reading = db.query(Reading).filter(Reading.id == reading_id).first()
        if not reading:
            raise NotFoundError(reading_id)

        validate_reading(data, None)
        previous = get_predecessor(db, reading_id, data.timestamp)
        metrics = derive_metrics(data, previous, settings.TANK_CAPACITY)

        _apply(reading, data, metrics, _resolve_submitter(data, identity))
        db.commit()
        db.refresh(reading)

    logger.info("Reading %s updated by %s", reading.id, reading.submitted_by)
    return reading


def get_reading(db: Session, reading_id: int) -> Reading:
    """Get a reading by ID, raising NotFoundError if it does not exist."""
    with _storage_guard(db, "get", reading_id=reading_id):
        reading = db.query(Reading).filter(Reading.id == reading_id).first()
    if not reading:
        raise NotFoundError(reading_id)
    return reading


def list_readings(
    db: Session,
    selector: RangeSelector = RangeSelector.ALL,
    now: datetime | None = None,
) -> list[Reading]:
    """List readings inside a reporting window, newest first."""
    if now is None:
        now = datetime.now(UTC).replace(tzinfo=None)
    start, end = resolve_range(selector, now)

    query = db.query(Reading)
    if start is not None:
        query = query.filter(Reading.reading_timestamp >= start)
    if end is not None:
        query = query.filter(Reading.reading_timestamp <= end)

    with _storage_guard(db, "list", selector=selector.value):
        return query.order_by(Reading.reading_timestamp.desc(), Reading.id.desc()).all()


def index_band(reading: Reading) -> IndexBand:
    """Classify a reading's consumption index with the configured thresholds."""
    return classify_index(
        reading.consumption_index,
        settings.INDEX_LOW_THRESHOLD,
        settings.INDEX_HIGH_THRESHOLD,
    )
