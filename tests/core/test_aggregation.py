import pytest
from decimal import Decimal

from agency_ledger.core.aggregation import summarize_commissions
from agency_ledger.models.commission import Commission

pytestmark = pytest.mark.core


def record(split_amount, status="PENDING", type="FIRST_YEAR"):
    return Commission(split_amount=Decimal(split_amount), status=status, type=type)


def test_empty_summary():
    summary = summarize_commissions([])
    assert summary.total_earned == 0
    assert summary.by_type == {}
    assert summary.by_status == {}


def test_totals_by_status_and_type():
    summary = summarize_commissions([
        record("100.00"),
        record("50.00", status="PAID"),
        record("25.00", status="PAID", type="RENEWAL"),
        record("10.00", status="CANCELLED", type="BONUS"),
        record("5.00", status="DISPUTED", type="RENEWAL"),
    ])

    assert summary.total_earned == Decimal("190.00")
    assert summary.total_paid == Decimal("75.00")
    assert summary.total_pending == Decimal("100.00")
    assert summary.by_type == {
        "FIRST_YEAR": Decimal("150.00"),
        "RENEWAL": Decimal("30.00"),
        "BONUS": Decimal("10.00"),
    }
    assert summary.by_status["PAID"].amount == Decimal("75.00")
    assert summary.by_status["PAID"].count == 2
    assert summary.by_status["DISPUTED"].count == 1
