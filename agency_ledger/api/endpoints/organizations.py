from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List
import logging

from agency_ledger.core.exceptions import CommissionSplitConfigError
from agency_ledger.crud import crud_organization, crud_user
from agency_ledger.db.session import get_db
from agency_ledger.schemas.organization import (
    CommissionConfig,
    CommissionConfigValidation,
    CommissionSplitUpdate,
    EffectiveSplit,
    MemberAdd,
    Membership,
    OrganizationCreate,
    OrganizationNode,
)

logger = logging.getLogger(__name__)
router = APIRouter()

def _require_organization(db: Session, organization_id: int):
    organization = crud_organization.get_organization(db, organization_id=organization_id)
    if not organization:
        raise HTTPException(status_code=404, detail=f"Organization with id {organization_id} not found.")
    return organization

@router.post("/", response_model=OrganizationNode, status_code=201)
def create_organization(organization_in: OrganizationCreate, db: Session = Depends(get_db)):
    if organization_in.parent_id is not None:
        _require_organization(db, organization_in.parent_id)
    return crud_organization.create_organization(db, obj_in=organization_in)

@router.get("/{organization_id}/path", response_model=List[OrganizationNode])
def read_organization_path(organization_id: int, db: Session = Depends(get_db)):
    """
    Ancestor chain of an organization, self first, bounded at the commission walk depth.
    """
    path = crud_organization.get_organization_path(db, organization_id=organization_id)
    if not path:
        raise HTTPException(status_code=404, detail=f"Organization with id {organization_id} not found.")
    return list(path)

@router.get("/{organization_id}/members", response_model=List[Membership])
def read_members(organization_id: int, db: Session = Depends(get_db)):
    _require_organization(db, organization_id)
    return crud_organization.get_members(db, organization_id=organization_id)

@router.post("/{organization_id}/members", response_model=Membership, status_code=201)
def add_member(organization_id: int, member_in: MemberAdd, db: Session = Depends(get_db)):
    """
    Add a user to an organization. An override split must keep the organization's total at or below 100%.
    """
    _require_organization(db, organization_id)
    if not crud_user.get_user(db, user_id=member_in.user_id):
        raise HTTPException(status_code=404, detail=f"User with id {member_in.user_id} not found.")
    if crud_organization.get_active_membership(db, organization_id=organization_id, user_id=member_in.user_id):
        raise HTTPException(status_code=400, detail="User is already a member of this organization")
    try:
        return crud_organization.add_member(db, organization_id=organization_id, obj_in=member_in)
    except CommissionSplitConfigError as e:
        raise HTTPException(status_code=400, detail=str(e))

@router.get("/{organization_id}/members/{user_id}/commission-split", response_model=EffectiveSplit)
def read_member_commission_split(organization_id: int, user_id: int, db: Session = Depends(get_db)):
    splits = crud_organization.get_user_effective_commission_splits(db, user_id=user_id)
    for split in splits:
        if split.organization_id == organization_id:
            return split
    raise HTTPException(status_code=404, detail="Organization member not found")

@router.put("/{organization_id}/members/{user_id}/commission-split", response_model=Membership)
def update_member_commission_split(
    organization_id: int, user_id: int, split_in: CommissionSplitUpdate, db: Session = Depends(get_db)
):
    """
    Set a member's override split. Rejected with 400 if the organization's total would exceed 100%.
    """
    try:
        member = crud_organization.update_member_commission_split(
            db, organization_id=organization_id, user_id=user_id, commission_split=split_in.commission_split
        )
    except CommissionSplitConfigError as e:
        logger.info(f"Commission split update rejected for user ID: {user_id}: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    if not member:
        raise HTTPException(status_code=404, detail="Organization member not found")
    return member

@router.get("/{organization_id}/commission-config", response_model=CommissionConfig)
def read_commission_config(organization_id: int, db: Session = Depends(get_db)):
    _require_organization(db, organization_id)
    return crud_organization.get_organization_commission_config(db, organization_id=organization_id)

@router.get("/{organization_id}/commission-config/validate", response_model=CommissionConfigValidation)
def validate_commission_config(organization_id: int, db: Session = Depends(get_db)):
    _require_organization(db, organization_id)
    return crud_organization.validate_commission_config(db, organization_id=organization_id)
