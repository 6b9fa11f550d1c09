"""Tests for engine configuration."""

import pytest

from gas_ledger.core.database import engine_options


@pytest.mark.parametrize(
    "url",
    ["sqlite:///./gas_ledger.db", "sqlite:////data/gas_ledger.db", "sqlite:///:memory:"],
)
def test_sqlite_allows_cross_thread_sessions(url: str) -> None:
    assert engine_options(url) == {"connect_args": {"check_same_thread": False}}


@pytest.mark.parametrize(
    "url",
    [
        "postgresql://ledger:secret@db:5432/gas_ledger",
        "postgresql+psycopg://ledger@localhost/gas_ledger",
        "mysql+pymysql://ledger@localhost/gas_ledger",
    ],
)
def test_server_backends_get_no_sqlite_arguments(url: str) -> None:
    """Test that the SQLite-only driver flag is never passed to other drivers."""
    options = engine_options(url)
    assert "connect_args" not in options
    assert options["pool_pre_ping"] is True
