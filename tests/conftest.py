"""Shared pytest fixtures for TILL tests."""

from datetime import datetime
from decimal import Decimal

import pytest

from till.config.settings import Settings
from till.printing.receipt import LineItem, ReceiptRequest

FIXED_TIME = datetime(2025, 1, 15, 9, 30)


def fixed_clock() -> datetime:
    """Clock that always reports the same instant."""
    return FIXED_TIME


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings staging into a temp dir, with no grace delay."""
    return Settings(
        _env_file=None,
        staging_dir=tmp_path,
        cleanup_delay=0.0,
        keep_failed_artifacts=True,
    )


@pytest.fixture
def coffee_request() -> ReceiptRequest:
    """Two-item sale: coffee and a bagel, paid with 10.00."""
    return ReceiptRequest(
        items=(
            LineItem("Coffee", 2, Decimal("3.00"), Decimal("6.00")),
            LineItem("Bagel", 1, Decimal("2.50"), Decimal("2.50")),
        ),
        customer_name="Juan",
        total=Decimal("8.50"),
        amount_tendered=Decimal("10.00"),
        change_due=Decimal("1.50"),
        points=0,
    )


def staged_files(directory) -> list:
    """Receipt artifacts currently on disk."""
    return sorted(p.name for p in directory.glob("receipt_*.bin"))


@pytest.fixture
def clock():
    return fixed_clock


@pytest.fixture
def list_staged():
    return staged_files
