"""
Hierarchical commission split calculation.

A commission event's pool (gross premium x commission rate) is split between
the payee (level 0) and the override recipients of each ancestor
organization (levels 1 and up). Every level's amount is capped by what is
left of the pool, so the splits never sum to more than the pool.

Whatever is left after the walk (a level without a recipient, a chain
shorter than the default table, or the depth bound) is not routed to any
house account. It is reported as ``unallocated_amount`` and logged. Whether
that remainder should go somewhere is an open business question.
"""
import logging
from decimal import Decimal
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from agency_ledger.core.config import (
    DEFAULT_AGENT_SPLIT,
    DEFAULT_LEVEL_SPLITS,
    MAX_HIERARCHY_DEPTH,
    DEFAULT_RENEWAL_RATE,
    DEFAULT_TRAIL_RATE,
)
from agency_ledger.core.exceptions import NoMembershipError
from agency_ledger.core.hierarchy import HierarchySnapshot, HierarchyWalker
from agency_ledger.core.recipients import RecipientSelector
from agency_ledger.crud import crud_commission, crud_organization
from agency_ledger.models.commission import Commission as CommissionModel
from agency_ledger.schemas.commission import CommissionCalculation, CommissionEvent, CommissionSplit
from agency_ledger.schemas.organization import MembershipNode

logger = logging.getLogger(__name__)

Number = Union[Decimal, int, float, str]


class SplitPolicy(BaseModel):
    """Default split percentages and the traversal bound. Overrides on a membership win over these."""
    agent_split: Decimal = Field(default=DEFAULT_AGENT_SPLIT, ge=0, le=1)
    level_splits: Dict[int, Decimal] = Field(default_factory=lambda: dict(DEFAULT_LEVEL_SPLITS))
    max_depth: int = Field(default=MAX_HIERARCHY_DEPTH, ge=1)

    class Config:
        frozen = True

    def split_for_level(self, level: int) -> Decimal:
        if level == 0:
            return self.agent_split
        return self.level_splits.get(level, Decimal("0"))


def resolve_home_membership(event: CommissionEvent, snapshot: HierarchySnapshot) -> MembershipNode:
    """
    The payee's agent-level membership.

    Uses event.home_organization_id when given; otherwise the payee's
    earliest active membership by (joined_at, id).
    """
    memberships = [m for m in snapshot.memberships_for_user(event.payee_id) if m.is_active]
    if event.home_organization_id is not None:
        memberships = [m for m in memberships if m.organization_id == event.home_organization_id]
        if not memberships:
            raise NoMembershipError(
                event.payee_id, f"no active membership in organization {event.home_organization_id}"
            )
    if not memberships:
        raise NoMembershipError(event.payee_id)
    return min(memberships, key=lambda m: (m.joined_at, m.id))


class SplitAllocator:
    """Pure allocation over a snapshot. Safe to share between independent events."""

    def __init__(self, snapshot: HierarchySnapshot, policy: Optional[SplitPolicy] = None):
        self.policy = policy or SplitPolicy()
        self.walker = HierarchyWalker(snapshot, max_depth=self.policy.max_depth)
        self.selector = RecipientSelector(snapshot)
        self.snapshot = snapshot

    def allocate(self, event: CommissionEvent) -> CommissionCalculation:
        total_amount = event.total_amount
        logger.info(
            f"Allocating commission for case ID: {event.case_id}, payee ID: {event.payee_id}, total: {total_amount}"
        )

        home = resolve_home_membership(event, self.snapshot)
        chain = self.walker.walk(home.organization_id)
        if not chain:
            raise NoMembershipError(event.payee_id, f"home organization {home.organization_id} not found")

        # Level 0: the payee is always the agent-level recipient
        agent_split = home.commission_split if home.commission_split is not None else self.policy.agent_split
        agent_amount = total_amount * agent_split
        splits: List[CommissionSplit] = [
            CommissionSplit(
                payee_id=home.user_id,
                payee_name=home.user_name,
                organization_id=chain[0].id,
                organization_name=chain[0].name,
                role=home.role,
                split_percentage=agent_split,
                amount=agent_amount,
                level=0,
            )
        ]
        remaining = total_amount - agent_amount

        for level, organization in enumerate(chain[1:], start=1):
            if remaining <= 0:
                break
            recipient = self.selector.select_recipient(organization.id)
            if recipient is None:
                logger.info(
                    f"Level {level} organization ID: {organization.id} has no override recipient. Skipping level for case ID: {event.case_id}."
                )
                continue

            if recipient.commission_split is not None:
                split_percentage = recipient.commission_split
            else:
                split_percentage = self.policy.split_for_level(level)
            amount = min(total_amount * split_percentage, remaining)
            splits.append(
                CommissionSplit(
                    payee_id=recipient.user_id,
                    payee_name=recipient.user_name,
                    organization_id=organization.id,
                    organization_name=organization.name,
                    role=recipient.role,
                    split_percentage=split_percentage,
                    amount=amount,
                    level=level,
                )
            )
            remaining -= amount
            logger.debug(
                f"Level {level}: {amount} to user ID: {recipient.user_id} at {split_percentage}, remaining {remaining}"
            )

        if remaining > 0:
            logger.warning(
                f"Case ID: {event.case_id} leaves {remaining} of {total_amount} unallocated after {len(splits)} split(s)."
            )
        return CommissionCalculation(total_amount=total_amount, splits=splits, unallocated_amount=remaining)


def _to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def calculate_renewal_commission(first_year_commission: Number, renewal_rate: Number = DEFAULT_RENEWAL_RATE) -> Decimal:
    """Renewal-year commission as a fraction of the first-year commission."""
    return _to_decimal(first_year_commission) * _to_decimal(renewal_rate)


def calculate_trail_commission(account_value: Number, trail_rate: Number = DEFAULT_TRAIL_RATE) -> Decimal:
    """Ongoing annuity trail on the account value."""
    return _to_decimal(account_value) * _to_decimal(trail_rate)


def calculate_commission(
    db: Session, event: CommissionEvent, policy: Optional[SplitPolicy] = None
) -> CommissionCalculation:
    """Load the payee's hierarchy and compute the splits without writing anything."""
    policy = policy or SplitPolicy()
    snapshot = crud_organization.load_hierarchy_snapshot(db, user_id=event.payee_id, max_depth=policy.max_depth)
    return SplitAllocator(snapshot, policy=policy).allocate(event)


async def calculate_and_record_commissions(
    db: Session, event: CommissionEvent, policy: Optional[SplitPolicy] = None
) -> List[CommissionModel]:
    """
    Compute the splits for an event and write one PENDING ledger row per split.

    Not idempotent: calling this twice for the same (case_id, type, payee_id)
    writes the rows twice. Callers must trigger it at most once per event.
    """
    logger.info(f"Starting commission calculation for case ID: {event.case_id}, type: {event.type.value}")
    calculation = calculate_commission(db, event, policy=policy)
    records = crud_commission.create_commission_records(db, event=event, calculation=calculation)
    logger.info(f"Commission calculation finished for case ID: {event.case_id}; {len(records)} record(s) written")
    return records
