"""Enum definitions for the gas ledger."""

from enum import Enum


class Trend(str, Enum):
    """Direction of the consumption index relative to the previous reading."""

    UP = "up"
    DOWN = "down"
    FLAT = "flat"


class IndexBand(str, Enum):
    """Classification of a consumption index against configured thresholds."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RangeSelector(str, Enum):
    """Named reporting windows."""

    LAST_90_DAYS = "last90Days"
    THIS_MONTH = "thisMonth"
    LAST_MONTH = "lastMonth"
    THIS_YEAR = "thisYear"
    LAST_YEAR = "lastYear"
    ALL = "all"


class Capability(str, Enum):
    """Modules a caller may be granted by the authentication gateway."""

    DASHBOARD = "Dashboard"
    DATA_ENTRY = "DataEntry"
    REPORT = "Report"
    SETTINGS = "Settings"
    USER_MANAGEMENT = "UserManagement"
