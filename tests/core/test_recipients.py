import pytest
from datetime import datetime

from agency_ledger.core.hierarchy import HierarchySnapshot
from agency_ledger.core.recipients import RecipientSelector
from agency_ledger.schemas.organization import MembershipNode, OrganizationNode

pytestmark = pytest.mark.core

ORG = OrganizationNode(id=10, name="Agency", organization_type="AGENCY")


def member(member_id, role="MANAGER", joined_at=datetime(2024, 1, 1), is_active=True, organization_id=10):
    return MembershipNode(
        id=member_id, user_id=100 + member_id, user_name=f"User {member_id}",
        organization_id=organization_id, role=role, is_active=is_active, joined_at=joined_at,
    )


def selector_for(*memberships):
    return RecipientSelector(HierarchySnapshot(organizations=[ORG], memberships=memberships))


def test_earliest_joined_manager_is_selected():
    selector = selector_for(
        member(1, joined_at=datetime(2024, 6, 1)),
        member(2, joined_at=datetime(2023, 3, 1)),
    )
    for _ in range(3):
        assert selector.select_recipient(10).id == 2


def test_tie_on_joined_at_goes_to_lower_membership_id():
    selector = selector_for(member(5), member(3))
    assert selector.select_recipient(10).id == 3


@pytest.mark.parametrize("role", ["MANAGER", "EXECUTIVE", "ADMINISTRATOR"])
def test_override_roles_qualify(role):
    assert selector_for(member(1, role=role)).select_recipient(10).id == 1


@pytest.mark.parametrize("role", ["AGENT", "SUPPORT"])
def test_other_roles_do_not_qualify(role):
    assert selector_for(member(1, role=role)).select_recipient(10) is None


def test_inactive_members_are_ignored():
    selector = selector_for(
        member(1, joined_at=datetime(2020, 1, 1), is_active=False),
        member(2, joined_at=datetime(2024, 1, 1)),
    )
    assert selector.select_recipient(10).id == 2


def test_members_of_other_organizations_are_ignored():
    selector = selector_for(member(1, organization_id=11))
    assert selector.select_recipient(10) is None


def test_organization_without_members_has_no_recipient():
    assert selector_for().select_recipient(10) is None
