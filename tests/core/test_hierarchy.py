import pytest

from agency_ledger.core.hierarchy import HierarchySnapshot, HierarchyWalker
from agency_ledger.schemas.organization import OrganizationNode

pytestmark = pytest.mark.core


class RecordingSnapshot(HierarchySnapshot):
    """Snapshot that remembers which organization IDs were looked up."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.lookups = []

    def get_organization(self, organization_id):
        self.lookups.append(organization_id)
        return super().get_organization(organization_id)


def linear_chain(length: int):
    """Organizations 1..length where organization n's parent is n + 1."""
    return [
        OrganizationNode(id=n, name=f"Org {n}", organization_type="AGENCY", parent_id=n + 1 if n < length else None)
        for n in range(1, length + 1)
    ]


def test_walk_returns_self_first_then_ancestors():
    walker = HierarchyWalker(HierarchySnapshot(organizations=linear_chain(3)))
    chain = walker.walk(1)
    assert [org.id for org in chain] == [1, 2, 3]


def test_walk_single_root_organization():
    walker = HierarchyWalker(HierarchySnapshot(organizations=linear_chain(1)))
    assert [org.id for org in walker.walk(1)] == [1]


def test_walk_unknown_start_is_empty():
    walker = HierarchyWalker(HierarchySnapshot(organizations=linear_chain(2)))
    assert walker.walk(99) == ()


def test_walk_is_bounded_and_never_looks_past_the_bound():
    snapshot = RecordingSnapshot(organizations=linear_chain(8))
    chain = HierarchyWalker(snapshot).walk(1)

    assert [org.id for org in chain] == [1, 2, 3, 4, 5]
    assert 6 not in snapshot.lookups
    assert max(snapshot.lookups) == 5


def test_walk_respects_custom_depth():
    walker = HierarchyWalker(HierarchySnapshot(organizations=linear_chain(8)), max_depth=2)
    assert [org.id for org in walker.walk(1)] == [1, 2]


def test_walk_rejects_non_positive_depth():
    with pytest.raises(ValueError):
        HierarchyWalker(HierarchySnapshot(), max_depth=0)


def test_walk_stops_at_unresolved_parent():
    organizations = [
        OrganizationNode(id=1, name="Agency", organization_type="AGENCY", parent_id=2),
        OrganizationNode(id=2, name="MGA", organization_type="MGA", parent_id=404),
    ]
    chain = HierarchyWalker(HierarchySnapshot(organizations=organizations)).walk(1)
    assert [org.id for org in chain] == [1, 2]


def test_walk_terminates_on_cycle():
    organizations = [
        OrganizationNode(id=1, name="A", organization_type="AGENCY", parent_id=2),
        OrganizationNode(id=2, name="B", organization_type="MGA", parent_id=3),
        OrganizationNode(id=3, name="C", organization_type="IMO", parent_id=1),
    ]
    chain = HierarchyWalker(HierarchySnapshot(organizations=organizations)).walk(1)
    assert [org.id for org in chain] == [1, 2, 3]


def test_walk_terminates_on_self_parent():
    organizations = [OrganizationNode(id=7, name="Loop", organization_type="AGENCY", parent_id=7)]
    chain = HierarchyWalker(HierarchySnapshot(organizations=organizations)).walk(7)
    assert [org.id for org in chain] == [7]


def test_walk_is_repeatable():
    walker = HierarchyWalker(HierarchySnapshot(organizations=linear_chain(4)))
    assert walker.walk(1) == walker.walk(1)
    assert isinstance(walker.walk(1), tuple)
