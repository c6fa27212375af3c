from decimal import Decimal
from typing import Iterable

from agency_ledger.models.commission import Commission
from agency_ledger.schemas.commission import CommissionStatus, CommissionSummary, StatusTotal


def summarize_commissions(records: Iterable[Commission]) -> CommissionSummary:
    """Roll ledger rows up into earned/paid/pending totals, per type and per status."""
    summary = CommissionSummary()
    for record in records:
        split_amount = Decimal(record.split_amount or 0)
        summary.total_earned += split_amount
        if record.status == CommissionStatus.PAID.value:
            summary.total_paid += split_amount
        elif record.status == CommissionStatus.PENDING.value:
            summary.total_pending += split_amount

        summary.by_type[record.type] = summary.by_type.get(record.type, Decimal("0")) + split_amount

        status_total = summary.by_status.setdefault(record.status, StatusTotal())
        status_total.amount += split_amount
        status_total.count += 1
    return summary
