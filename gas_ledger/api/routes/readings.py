"""Reading routes for ledger operations."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from gas_ledger.core.database import get_db
from gas_ledger.core.identity import Identity, require_capability
from gas_ledger.models.enums import Capability, RangeSelector
from gas_ledger.schemas.reading import (
    ReadingCreate,
    ReadingCreated,
    ReadingDetail,
    ReadingSummary,
    ReadingUpdate,
)
from gas_ledger.services import readings as reading_service

router = APIRouter(prefix="/readings", tags=["readings"])


@router.post(
    "/",
    response_model=ReadingCreated,
    status_code=status.HTTP_201_CREATED,
)
def create_reading(
    reading_data: ReadingCreate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_capability(Capability.DATA_ENTRY)),
) -> ReadingCreated:
    """Record a tank reading and derive its consumption metrics."""
    reading = reading_service.create_reading(db, reading_data, identity)
    return ReadingCreated(id=reading.id)


@router.get("/", response_model=list[ReadingSummary])
def list_readings(
    range_selector: RangeSelector = Query(
        RangeSelector.ALL,
        alias="range",
        description="Reporting window",
    ),
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_capability(Capability.REPORT)),
) -> list[ReadingSummary]:
    """List readings in a reporting window, newest first."""
    readings = reading_service.list_readings(db, range_selector)
    return [
        ReadingSummary.from_reading(r, reading_service.index_band(r)) for r in readings
    ]


@router.get("/{reading_id}", response_model=ReadingDetail)
def get_reading(
    reading_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(
        require_capability(Capability.REPORT, Capability.DATA_ENTRY)
    ),
) -> ReadingDetail:
    """Get a stored reading including its raw inputs."""
    return ReadingDetail.from_reading(reading_service.get_reading(db, reading_id))


@router.put("/{reading_id}", response_model=ReadingDetail)
def update_reading(
    reading_id: int,
    reading_data: ReadingUpdate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_capability(Capability.DATA_ENTRY)),
) -> ReadingDetail:
    """Overwrite a reading. Later readings are not recomputed."""
    reading = reading_service.update_reading(db, reading_id, reading_data, identity)
    return ReadingDetail.from_reading(reading)
