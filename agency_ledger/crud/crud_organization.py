import logging
from decimal import Decimal
from sqlalchemy.orm import Session, joinedload
from typing import Dict, Iterable, List, Optional, Tuple

from agency_ledger.core.config import MAX_HIERARCHY_DEPTH
from agency_ledger.core.exceptions import CommissionSplitConfigError
from agency_ledger.core.hierarchy import HierarchySnapshot, HierarchyWalker
from agency_ledger.models.organization import Organization, OrganizationMember
from agency_ledger.schemas.organization import (
    CommissionConfig,
    CommissionConfigMember,
    CommissionConfigValidation,
    EffectiveSplit,
    MemberAdd,
    MembershipCreate,
    MembershipNode,
    OrganizationCreate,
    OrganizationNode,
)

logger = logging.getLogger(__name__)

def get_organization(db: Session, organization_id: int) -> Optional[Organization]:
    return db.query(Organization).filter(Organization.id == organization_id).first()

def create_organization(db: Session, *, obj_in: OrganizationCreate) -> Organization:
    db_obj = Organization(
        name=obj_in.name,
        organization_type=obj_in.organization_type.value,
        parent_id=obj_in.parent_id,
    )
    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    return db_obj

def create_membership(db: Session, *, obj_in: MembershipCreate) -> OrganizationMember:
    db_obj = OrganizationMember(
        user_id=obj_in.user_id,
        organization_id=obj_in.organization_id,
        role=obj_in.role.value,
        commission_split=obj_in.commission_split,
        is_active=obj_in.is_active,
    )
    if obj_in.joined_at is not None:
        db_obj.joined_at = obj_in.joined_at
    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    return db_obj

def get_memberships_for_user(db: Session, *, user_id: int, active_only: bool = True) -> List[OrganizationMember]:
    """Memberships of a user, earliest joined first, with user and organization loaded."""
    query = (
        db.query(OrganizationMember)
        .options(joinedload(OrganizationMember.user), joinedload(OrganizationMember.organization))
        .filter(OrganizationMember.user_id == user_id)
    )
    if active_only:
        query = query.filter(OrganizationMember.is_active == True)
    return query.order_by(OrganizationMember.joined_at.asc(), OrganizationMember.id.asc()).all()

def get_active_memberships_for_organizations(db: Session, *, organization_ids: Iterable[int]) -> List[OrganizationMember]:
    ids = list(organization_ids)
    if not ids:
        return []
    return (
        db.query(OrganizationMember)
        .options(joinedload(OrganizationMember.user))
        .filter(
            OrganizationMember.organization_id.in_(ids),
            OrganizationMember.is_active == True
        )
        .all()
    )


def _to_membership_node(member: OrganizationMember) -> MembershipNode:
    return MembershipNode(
        id=member.id,
        user_id=member.user_id,
        user_name=member.user.full_name,
        organization_id=member.organization_id,
        role=member.role,
        commission_split=member.commission_split,
        is_active=member.is_active,
        joined_at=member.joined_at,
    )

def _load_ancestors(db: Session, organization_ids: Iterable[int], max_depth: int) -> Dict[int, OrganizationNode]:
    """
    Load the given organizations and their ancestors, one query per hierarchy level.
    Stops after max_depth levels, so nothing past the walker's bound is read.
    """
    loaded: Dict[int, OrganizationNode] = {}
    frontier = set(organization_ids)
    for _ in range(max_depth):
        if not frontier:
            break
        rows = db.query(Organization).filter(Organization.id.in_(frontier)).all()
        for row in rows:
            loaded[row.id] = OrganizationNode.model_validate(row)
        frontier = {row.parent_id for row in rows if row.parent_id is not None and row.parent_id not in loaded}
    return loaded

def load_hierarchy_snapshot(db: Session, *, user_id: int, max_depth: int = MAX_HIERARCHY_DEPTH) -> HierarchySnapshot:
    """
    Snapshot of everything a split calculation for this user can touch:
    the user's active memberships, their organizations and ancestors up to
    max_depth, and the active memberships of each of those organizations.
    """
    own_memberships = get_memberships_for_user(db, user_id=user_id)
    organizations = _load_ancestors(db, {m.organization_id for m in own_memberships}, max_depth)
    members = get_active_memberships_for_organizations(db, organization_ids=organizations.keys())

    nodes: Dict[int, MembershipNode] = {}
    for member in list(own_memberships) + list(members):
        nodes[member.id] = _to_membership_node(member)

    logger.debug(f"Loaded hierarchy snapshot for user ID: {user_id}: {len(organizations)} organization(s), {len(nodes)} membership(s)")
    return HierarchySnapshot(organizations=organizations.values(), memberships=nodes.values())

def get_organization_path(db: Session, *, organization_id: int, max_depth: int = MAX_HIERARCHY_DEPTH) -> Tuple[OrganizationNode, ...]:
    """Bounded ancestor chain of an organization, self first. Empty if the organization does not exist."""
    organizations = _load_ancestors(db, {organization_id}, max_depth)
    snapshot = HierarchySnapshot(organizations=organizations.values())
    return HierarchyWalker(snapshot, max_depth=max_depth).walk(organization_id)


# Override split management

def get_active_membership(db: Session, *, organization_id: int, user_id: int) -> Optional[OrganizationMember]:
    return (
        db.query(OrganizationMember)
        .filter(
            OrganizationMember.organization_id == organization_id,
            OrganizationMember.user_id == user_id,
            OrganizationMember.is_active == True
        )
        .first()
    )

def get_members(db: Session, *, organization_id: int) -> List[OrganizationMember]:
    """All memberships of an organization, newest joined first."""
    return (
        db.query(OrganizationMember)
        .filter(OrganizationMember.organization_id == organization_id)
        .order_by(OrganizationMember.joined_at.desc(), OrganizationMember.id.desc())
        .all()
    )

def _split_total(members: Iterable[OrganizationMember]) -> Decimal:
    return sum((m.commission_split or Decimal("0") for m in members), Decimal("0"))

def ensure_split_fits(
    db: Session, *, organization_id: int, commission_split: Optional[Decimal], membership_id: Optional[int] = None
) -> Decimal:
    """
    Check that setting commission_split on membership_id (or on a new member when
    membership_id is None) keeps the organization's active override total at or below 1.
    Returns the projected total.
    """
    if commission_split is not None and not (Decimal("0") <= commission_split <= Decimal("1")):
        raise CommissionSplitConfigError(f"Commission split must be between 0 and 1, got {commission_split}")
    others = [
        m for m in get_active_memberships_for_organizations(db, organization_ids=[organization_id])
        if m.id != membership_id
    ]
    new_total = _split_total(others) + (commission_split or Decimal("0"))
    if new_total > 1:
        raise CommissionSplitConfigError(
            f"Cannot set commission split: total for organization {organization_id} would be "
            f"{new_total:.2%}, which exceeds 100%"
        )
    return new_total

def add_member(db: Session, *, organization_id: int, obj_in: MemberAdd) -> OrganizationMember:
    """Add a user to an organization after checking the override total still fits."""
    ensure_split_fits(db, organization_id=organization_id, commission_split=obj_in.commission_split)
    return create_membership(db, obj_in=MembershipCreate(
        user_id=obj_in.user_id,
        organization_id=organization_id,
        role=obj_in.role,
        commission_split=obj_in.commission_split,
        joined_at=obj_in.joined_at,
    ))

def update_member_commission_split(
    db: Session, *, organization_id: int, user_id: int, commission_split: Decimal
) -> Optional[OrganizationMember]:
    """
    Set a member's override split. Returns None if the user has no active membership
    in the organization; raises CommissionSplitConfigError if the split is out of
    range or the organization's total would exceed 1.
    """
    member = get_active_membership(db, organization_id=organization_id, user_id=user_id)
    if not member:
        return None
    new_total = ensure_split_fits(
        db, organization_id=organization_id, commission_split=commission_split, membership_id=member.id
    )
    old_split = member.commission_split
    member.commission_split = commission_split
    db.commit()
    db.refresh(member)
    logger.info(
        f"Commission split for user ID: {user_id} in organization ID: {organization_id} "
        f"changed from {old_split} to {commission_split} (organization total {new_total})"
    )
    return member

def get_organization_commission_config(db: Session, *, organization_id: int) -> CommissionConfig:
    members = get_active_memberships_for_organizations(db, organization_ids=[organization_id])
    members = sorted(members, key=lambda m: (-(m.commission_split or Decimal("0")), m.id))
    total = _split_total(members)
    return CommissionConfig(
        organization_id=organization_id,
        members=[
            CommissionConfigMember(
                membership_id=m.id,
                user_id=m.user_id,
                user_name=m.user.full_name,
                role=m.role,
                commission_split=m.commission_split,
                joined_at=m.joined_at,
            )
            for m in members
        ],
        total_split=total,
        is_valid=total <= 1,
    )

def validate_commission_config(db: Session, *, organization_id: int) -> CommissionConfigValidation:
    """Report an over-allocated total and members with no override configured."""
    config = get_organization_commission_config(db, organization_id=organization_id)
    issues: List[str] = []
    if config.total_split > 1:
        issues.append(f"Total commission split ({config.total_split:.2%}) exceeds 100%")
    without_split = [m for m in config.members if not m.commission_split]
    if without_split:
        issues.append(f"{len(without_split)} member(s) have no commission split configured")
    return CommissionConfigValidation(
        is_valid=not issues,
        issues=issues,
        total_split=config.total_split,
        member_count=len(config.members),
    )

def get_user_effective_commission_splits(db: Session, *, user_id: int) -> List[EffectiveSplit]:
    return [
        EffectiveSplit(
            organization_id=m.organization_id,
            organization_name=m.organization.name,
            organization_type=m.organization.organization_type,
            role=m.role,
            commission_split=m.commission_split or Decimal("0"),
            joined_at=m.joined_at,
        )
        for m in get_memberships_for_user(db, user_id=user_id)
    ]
