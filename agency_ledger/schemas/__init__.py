from .user import (
    UserBase,
    UserCreate
)
from .organization import (
    OrganizationType,
    MemberRole,
    OVERRIDE_ROLES,
    OrganizationBase,
    OrganizationCreate,
    MembershipBase,
    MembershipCreate,
    OrganizationNode,
    MembershipNode,
    Membership,
    MemberAdd,
    CommissionSplitUpdate,
    CommissionConfigMember,
    CommissionConfig,
    CommissionConfigValidation,
    EffectiveSplit
)
from .commission import (
    CommissionType,
    CommissionStatus,
    CommissionEvent,
    CommissionSplit,
    CommissionCalculation,
    CommissionBase,
    CommissionCreate,
    CommissionUpdate,
    Commission as CommissionSchema, # Alias to avoid clash if Commission model is also imported directly
    MarkPaidRequest,
    MarkPaidResponse,
    StatusTotal,
    CommissionSummary
)
