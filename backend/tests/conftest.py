"""Pytest configuration and fixtures."""

from decimal import Decimal

import pytest

from config import settings
# Pytest fixtures - imported to make them available to tests
from tests.fixtures import (  # noqa: F401
    btc_asset,
    btc_trades,
)


@pytest.fixture(autouse=True)
def default_lot_epsilon(monkeypatch):
    """Pin the lot residue threshold so a local .env cannot change the math."""
    monkeypatch.setattr(settings, "LOT_QTY_EPSILON", Decimal("1e-12"))
