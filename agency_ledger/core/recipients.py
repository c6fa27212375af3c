import logging
from typing import Optional

from agency_ledger.core.hierarchy import HierarchySnapshot
from agency_ledger.schemas.organization import MembershipNode, OVERRIDE_ROLES

logger = logging.getLogger(__name__)

_OVERRIDE_ROLE_VALUES = frozenset(role.value for role in OVERRIDE_ROLES)


class RecipientSelector:
    """Picks the member who receives the override commission for an organization."""

    def __init__(self, snapshot: HierarchySnapshot):
        self.snapshot = snapshot

    def select_recipient(self, organization_id: int) -> Optional[MembershipNode]:
        """
        Earliest-joined active manager, executive or administrator of the organization.
        Ties on joined_at go to the lower membership id. Returns None when nobody qualifies.
        """
        candidates = [
            membership
            for membership in self.snapshot.memberships_for_organization(organization_id)
            if membership.is_active and membership.role in _OVERRIDE_ROLE_VALUES
        ]
        if not candidates:
            logger.debug(f"No active override recipient for organization ID: {organization_id}.")
            return None
        return min(candidates, key=lambda m: (m.joined_at, m.id))
