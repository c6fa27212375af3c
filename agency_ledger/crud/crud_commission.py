import logging
from datetime import datetime
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload
from typing import Optional, List, Iterable

from agency_ledger.core.aggregation import summarize_commissions
from agency_ledger.models.commission import Commission
from agency_ledger.schemas.commission import (
    CommissionCalculation,
    CommissionCreate,
    CommissionEvent,
    CommissionStatus,
    CommissionSummary,
)

logger = logging.getLogger(__name__)

def _build_commission(obj_in: CommissionCreate) -> Commission:
    return Commission(
        user_id=obj_in.user_id,
        case_id=obj_in.case_id,
        organization_id=obj_in.organization_id,
        type=obj_in.type.value,
        status=obj_in.status.value,
        carrier=obj_in.carrier,
        policy_number=obj_in.policy_number,
        amount=obj_in.amount,
        percentage=obj_in.percentage,
        split_amount=obj_in.split_amount,
        level=obj_in.level,
        period_start=obj_in.period_start,
        period_end=obj_in.period_end,
    )

def create_commission(db: Session, *, obj_in: CommissionCreate) -> Commission:
    """
    Create a single commission record.
    """
    db_obj = _build_commission(obj_in)
    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    return db_obj

def create_commission_records(
    db: Session, *, event: CommissionEvent, calculation: CommissionCalculation
) -> List[Commission]:
    """
    Write one PENDING record per split of a calculation, in a single transaction.
    Each record echoes the event's total pool in `amount` and the payee's share in `split_amount`.
    Nothing is written if any insert fails.
    """
    db_objs = [
        _build_commission(
            CommissionCreate(
                user_id=split.payee_id,
                case_id=event.case_id,
                organization_id=split.organization_id,
                type=event.type,
                status=CommissionStatus.PENDING,
                carrier=event.carrier,
                policy_number=event.policy_number,
                amount=calculation.total_amount,
                percentage=split.split_percentage,
                split_amount=split.amount,
                level=split.level,
                period_start=event.period_start,
                period_end=event.period_end,
            )
        )
        for split in calculation.splits
    ]
    try:
        db.add_all(db_objs)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error(f"Failed to write commission records for case ID: {event.case_id}", exc_info=True)
        raise
    for db_obj in db_objs:
        db.refresh(db_obj)
    logger.info(f"Wrote {len(db_objs)} PENDING commission record(s) for case ID: {event.case_id}")
    return db_objs

def get_commission(db: Session, commission_id: int) -> Optional[Commission]:
    """
    Get a single commission by ID with payee and organization eagerly loaded.
    """
    return (
        db.query(Commission)
        .options(
            joinedload(Commission.payee),
            joinedload(Commission.organization)
        )
        .filter(Commission.id == commission_id)
        .first()
    )

def get_commissions_by_user(
    db: Session, *, user_id: int, status: Optional[str] = None, skip: int = 0, limit: int = 100
) -> List[Commission]:
    """
    Get commissions for a specific payee, optionally filtered by status. Newest first.
    """
    query = db.query(Commission).filter(Commission.user_id == user_id)
    if status:
        query = query.filter(Commission.status == status)

    return query.order_by(Commission.created_at.desc(), Commission.id.desc()).offset(skip).limit(limit).all()

def get_commissions_by_case(db: Session, *, case_id: str) -> List[Commission]:
    """
    Get all commission records written for a case, agent level first.
    """
    return (
        db.query(Commission)
        .filter(Commission.case_id == case_id)
        .order_by(Commission.level.asc(), Commission.id.asc())
        .all()
    )

def update_commission_status(db: Session, *, commission_id: int, status: CommissionStatus) -> Optional[Commission]:
    """
    Move a commission to a new status. Moving to PAID stamps paid_at; any other status clears it.
    """
    db_commission = db.query(Commission).filter(Commission.id == commission_id).first()
    if db_commission:
        db_commission.status = status.value
        if status == CommissionStatus.PAID:
            db_commission.paid_at = func.now()
        else:
            db_commission.paid_at = None
        db.commit()
        db.refresh(db_commission)
        return db_commission
    return None

def mark_commissions_paid(db: Session, *, commission_ids: Iterable[int]) -> int:
    """
    Bulk-mark commissions as PAID. Returns the number of rows updated; unknown IDs are ignored.
    """
    ids = list(commission_ids)
    if not ids:
        return 0
    updated = (
        db.query(Commission)
        .filter(Commission.id.in_(ids))
        .update(
            {Commission.status: CommissionStatus.PAID.value, Commission.paid_at: func.now()},
            synchronize_session=False
        )
    )
    db.commit()
    logger.info(f"Marked {updated} of {len(ids)} requested commission(s) as PAID")
    return updated

def get_commissions_in_period(
    db: Session, *, user_id: int, start_date: datetime, end_date: datetime
) -> List[Commission]:
    """
    Commissions of a payee whose period lies entirely within [start_date, end_date].
    """
    return (
        db.query(Commission)
        .filter(
            Commission.user_id == user_id,
            Commission.period_start >= start_date,
            Commission.period_end <= end_date
        )
        .all()
    )

def get_user_commission_summary(
    db: Session, *, user_id: int, start_date: datetime, end_date: datetime
) -> CommissionSummary:
    records = get_commissions_in_period(db, user_id=user_id, start_date=start_date, end_date=end_date)
    return summarize_commissions(records)
