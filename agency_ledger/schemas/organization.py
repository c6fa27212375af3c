from enum import Enum
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from decimal import Decimal


class OrganizationType(str, Enum):
    AGENCY = "AGENCY"
    MGA = "MGA"
    IMO = "IMO"
    CARRIER = "CARRIER"
    OTHER = "OTHER"


class MemberRole(str, Enum):
    AGENT = "AGENT"
    MANAGER = "MANAGER"
    EXECUTIVE = "EXECUTIVE"
    ADMINISTRATOR = "ADMINISTRATOR"
    SUPPORT = "SUPPORT"


# Roles that may receive an override commission for their organization
OVERRIDE_ROLES = frozenset({MemberRole.MANAGER, MemberRole.EXECUTIVE, MemberRole.ADMINISTRATOR})


class OrganizationBase(BaseModel):
    name: str = Field(..., max_length=255)
    organization_type: OrganizationType = OrganizationType.AGENCY
    parent_id: Optional[int] = None

class OrganizationCreate(OrganizationBase):
    pass


class MembershipBase(BaseModel):
    user_id: int
    organization_id: int
    role: MemberRole = MemberRole.AGENT
    commission_split: Optional[Decimal] = Field(default=None, ge=0, le=1)
    is_active: bool = True

class MembershipCreate(MembershipBase):
    """joined_at is optional so imports can preserve the original join date."""
    joined_at: Optional[datetime] = None


class OrganizationNode(BaseModel):
    """Read-only view of an organization, as seen by the hierarchy walker."""
    id: int
    name: str
    organization_type: str
    parent_id: Optional[int] = None

    class Config:
        from_attributes = True
        frozen = True


class MembershipNode(BaseModel):
    """Read-only view of a membership, carrying the member's display name."""
    id: int
    user_id: int
    user_name: str
    organization_id: int
    role: str
    commission_split: Optional[Decimal] = Field(default=None, ge=0, le=1)
    is_active: bool = True
    joined_at: datetime

    class Config:
        from_attributes = True
        frozen = True


class Membership(BaseModel):
    id: int
    user_id: int
    organization_id: int
    role: str
    commission_split: Optional[Decimal] = None
    is_active: bool
    joined_at: datetime

    class Config:
        from_attributes = True


class MemberAdd(BaseModel):
    """Body for adding a user to an organization; the organization comes from the path."""
    user_id: int
    role: MemberRole = MemberRole.AGENT
    commission_split: Optional[Decimal] = Field(default=None, ge=0, le=1)
    joined_at: Optional[datetime] = None


class CommissionSplitUpdate(BaseModel):
    commission_split: Decimal = Field(..., ge=0, le=1)


class CommissionConfigMember(BaseModel):
    membership_id: int
    user_id: int
    user_name: str
    role: str
    commission_split: Optional[Decimal] = None
    joined_at: datetime


class CommissionConfig(BaseModel):
    """Override splits configured on an organization's active members."""
    organization_id: int
    members: List[CommissionConfigMember] = []
    total_split: Decimal
    is_valid: bool


class CommissionConfigValidation(BaseModel):
    is_valid: bool
    issues: List[str] = []
    total_split: Decimal
    member_count: int


class EffectiveSplit(BaseModel):
    """A user's stored override in one organization, 0 when none is set."""
    organization_id: int
    organization_name: str
    organization_type: str
    role: str
    commission_split: Decimal
    joined_at: datetime
