"""Ledger error taxonomy."""

from datetime import datetime
from decimal import Decimal
from typing import Any

from fastapi import status


class LedgerError(Exception):
    """Base class for errors raised by ledger operations."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "ledger_error"

    def __init__(self, detail: str, field: str | None = None) -> None:
        super().__init__(detail)
        self.detail = detail
        self.field = field

    def context(self) -> dict[str, Any]:
        """Extra values needed to render a precise message."""
        return {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "detail": self.detail,
            "code": self.code,
            "field": self.field,
            **self.context(),
        }


class LedgerValidationError(LedgerError):
    """A candidate reading was rejected. Nothing was persisted."""

    # Literal: the 422 constant was renamed across Starlette releases
    status_code = 422
    code = "validation_error"


class MissingFieldError(LedgerValidationError):
    code = "missing_field"

    def __init__(self, field: str) -> None:
        super().__init__(f"Field '{field}' is required", field=field)


class InvalidRangeError(LedgerValidationError):
    code = "invalid_range"

    def __init__(self, reason: str = "final < initial", field: str = "level_end") -> None:
        super().__init__(
            f"Final Reading must not be less than Initial Reading ({reason})",
            field=field,
        )
        self.reason = reason


class OutOfOrderError(LedgerValidationError):
    code = "out_of_order"

    def __init__(self, previous_timestamp: datetime) -> None:
        super().__init__(
            "Reading timestamp must not be earlier than the latest reading "
            f"({previous_timestamp.isoformat()})",
            field="timestamp",
        )
        self.previous_timestamp = previous_timestamp

    def context(self) -> dict[str, Any]:
        return {"previous_timestamp": self.previous_timestamp.isoformat()}


class ExcessiveOffDaysError(LedgerValidationError):
    code = "excessive_off_days"

    def __init__(self, elapsed_days: int, off_days: Decimal) -> None:
        super().__init__(
            f"Off days ({off_days}) cannot exceed the {elapsed_days} day(s) "
            "elapsed since the previous reading",
            field="off_days",
        )
        self.elapsed_days = elapsed_days
        self.off_days = off_days

    def context(self) -> dict[str, Any]:
        return {"elapsed_days": self.elapsed_days, "off_days": str(self.off_days)}


class NotFoundError(LedgerError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"

    def __init__(self, reading_id: int) -> None:
        super().__init__(f"Reading {reading_id} not found")
        self.reading_id = reading_id


class StorageUnavailableError(LedgerError):
    """The storage collaborator failed; the write was rolled back."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "storage_unavailable"

    def __init__(self, detail: str = "Storage is unavailable, please try again later") -> None:
        super().__init__(detail)
