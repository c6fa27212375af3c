from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import datetime
import logging

from agency_ledger.crud import crud_commission, crud_user
from agency_ledger.core.commissions_calculator import calculate_commission, calculate_and_record_commissions
from agency_ledger.core.exceptions import NoMembershipError
from agency_ledger.db.session import get_db
from agency_ledger.schemas.commission import (
    Commission as CommissionSchema,
    CommissionCalculation,
    CommissionEvent,
    CommissionStatus,
    CommissionSummary,
    CommissionUpdate,
    MarkPaidRequest,
    MarkPaidResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter()

def _require_user(db: Session, user_id: int):
    user = crud_user.get_user(db, user_id=user_id)
    if not user:
        raise HTTPException(status_code=404, detail=f"User with id {user_id} not found.")
    return user

@router.post("/calculate", response_model=CommissionCalculation)
def preview_commission_split(event: CommissionEvent, db: Session = Depends(get_db)):
    """
    Preview the commission splits for an event without creating records.
    """
    _require_user(db, event.payee_id)
    try:
        return calculate_commission(db, event)
    except NoMembershipError as e:
        logger.info(f"Commission preview rejected for case ID: {event.case_id}: {e}")
        raise HTTPException(status_code=400, detail=str(e))

@router.post("/", response_model=List[CommissionSchema], status_code=201)
async def create_commission_records(event: CommissionEvent, db: Session = Depends(get_db)):
    """
    Calculate the splits for an issued case and create one PENDING record per split.
    Must be called at most once per (case_id, type, payee_id); repeats create duplicate rows.
    """
    _require_user(db, event.payee_id)
    try:
        return await calculate_and_record_commissions(db, event)
    except NoMembershipError as e:
        logger.info(f"Commission creation rejected for case ID: {event.case_id}: {e}")
        raise HTTPException(status_code=400, detail=str(e))

@router.post("/mark-paid", response_model=MarkPaidResponse)
def mark_commissions_paid(payload: MarkPaidRequest, db: Session = Depends(get_db)):
    """
    Batch mark commissions as paid.
    """
    updated = crud_commission.mark_commissions_paid(db, commission_ids=payload.commission_ids)
    return MarkPaidResponse(updated=updated, message=f"{updated} commission(s) marked as paid")

@router.get("/user/{user_id}", response_model=List[CommissionSchema])
def read_user_commissions(
    user_id: int,
    db: Session = Depends(get_db),
    status: Optional[CommissionStatus] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=200)
):
    """
    Retrieve commissions for a payee, newest first. Optionally filter by status.
    """
    _require_user(db, user_id)
    return crud_commission.get_commissions_by_user(
        db, user_id=user_id, status=status.value if status else None, skip=skip, limit=limit
    )

@router.get("/user/{user_id}/summary", response_model=CommissionSummary)
def read_user_commission_summary(
    user_id: int,
    start_date: datetime = Query(..., description="Earliest period_start to include."),
    end_date: datetime = Query(..., description="Latest period_end to include."),
    db: Session = Depends(get_db)
):
    """
    Earned, paid and pending totals for a payee over a date range, with per-type and per-status breakdowns.
    """
    if end_date < start_date:
        raise HTTPException(status_code=400, detail="end_date must not precede start_date")
    _require_user(db, user_id)
    return crud_commission.get_user_commission_summary(db, user_id=user_id, start_date=start_date, end_date=end_date)

@router.get("/case/{case_id}", response_model=List[CommissionSchema])
def read_case_commissions(case_id: str, db: Session = Depends(get_db)):
    """
    All records written for a case, agent level first.
    """
    return crud_commission.get_commissions_by_case(db, case_id=case_id)

@router.get("/{commission_id}", response_model=CommissionSchema)
def read_commission(commission_id: int, db: Session = Depends(get_db)):
    db_commission = crud_commission.get_commission(db, commission_id=commission_id)
    if not db_commission:
        raise HTTPException(status_code=404, detail="Commission not found")
    return db_commission

@router.patch("/{commission_id}", response_model=CommissionSchema)
def update_commission_status(commission_id: int, commission_in: CommissionUpdate, db: Session = Depends(get_db)):
    """
    Move a commission to a new status (PAID, CANCELLED, DISPUTED or back to PENDING).
    """
    db_commission = crud_commission.update_commission_status(db, commission_id=commission_id, status=commission_in.status)
    if not db_commission:
        raise HTTPException(status_code=404, detail="Commission not found")
    return db_commission
