"""
Organization hierarchy traversal.

The engine never follows ORM relationships while calculating. The CRUD layer
loads a HierarchySnapshot (organizations and memberships indexed by id) and
the walker/selector read from it, so a calculation sees one consistent view
of the tree and performs no I/O.
"""
import logging
from typing import Dict, Iterable, List, Optional, Tuple

from agency_ledger.core.config import MAX_HIERARCHY_DEPTH
from agency_ledger.schemas.organization import MembershipNode, OrganizationNode

logger = logging.getLogger(__name__)


class HierarchySnapshot:
    """Read-only arena of organizations and memberships, indexed for lookup."""

    def __init__(
        self,
        organizations: Iterable[OrganizationNode] = (),
        memberships: Iterable[MembershipNode] = (),
    ):
        self._organizations: Dict[int, OrganizationNode] = {org.id: org for org in organizations}
        self._by_organization: Dict[int, List[MembershipNode]] = {}
        self._by_user: Dict[int, List[MembershipNode]] = {}
        for membership in memberships:
            self._by_organization.setdefault(membership.organization_id, []).append(membership)
            self._by_user.setdefault(membership.user_id, []).append(membership)

    def get_organization(self, organization_id: int) -> Optional[OrganizationNode]:
        return self._organizations.get(organization_id)

    def memberships_for_organization(self, organization_id: int) -> List[MembershipNode]:
        return list(self._by_organization.get(organization_id, []))

    def memberships_for_user(self, user_id: int) -> List[MembershipNode]:
        return list(self._by_user.get(user_id, []))

    def __contains__(self, organization_id: int) -> bool:
        return organization_id in self._organizations

    def __len__(self) -> int:
        return len(self._organizations)


class HierarchyWalker:
    """
    Produces the ancestor chain of an organization, self first.

    The chain holds at most ``max_depth`` organizations (levels 0 to
    max_depth - 1). Ancestors past the bound are never looked up. A parent id
    that does not resolve, or one already on the chain, ends the walk.
    """

    def __init__(self, snapshot: HierarchySnapshot, max_depth: int = MAX_HIERARCHY_DEPTH):
        if max_depth < 1:
            raise ValueError("max_depth must be at least 1")
        self.snapshot = snapshot
        self.max_depth = max_depth

    def walk(self, start_organization_id: int) -> Tuple[OrganizationNode, ...]:
        start = self.snapshot.get_organization(start_organization_id)
        if start is None:
            logger.debug(f"Organization ID: {start_organization_id} not in snapshot; empty chain.")
            return ()

        chain = [start]
        seen = {start.id}
        while len(chain) < self.max_depth:
            parent_id = chain[-1].parent_id
            if parent_id is None:
                break
            if parent_id in seen:
                logger.warning(
                    f"Cycle detected in organization hierarchy at organization ID: {chain[-1].id} -> {parent_id}. Stopping walk."
                )
                break
            parent = self.snapshot.get_organization(parent_id)
            if parent is None:
                logger.debug(f"Parent organization ID: {parent_id} of {chain[-1].id} could not be resolved. Stopping walk.")
                break
            chain.append(parent)
            seen.add(parent.id)

        return tuple(chain)
