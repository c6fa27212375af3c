from enum import Enum
from pydantic import BaseModel, Field, model_validator
from typing import Optional, List, Dict
from datetime import datetime
from decimal import Decimal


class CommissionType(str, Enum):
    FIRST_YEAR = "FIRST_YEAR"
    RENEWAL = "RENEWAL"
    OVERRIDE = "OVERRIDE"
    BONUS = "BONUS"
    TRAIL = "TRAIL"


class CommissionStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    CANCELLED = "CANCELLED"
    DISPUTED = "DISPUTED"


class CommissionEvent(BaseModel):
    """
    A single premium/commission event to be split across the agency hierarchy.
    Ephemeral: it is never stored, only the resulting splits are.
    """
    payee_id: int
    case_id: str = Field(..., min_length=1, max_length=64)
    carrier: str = Field(..., min_length=1, max_length=255)
    policy_number: str = Field(..., min_length=1, max_length=100)
    gross_premium: Decimal = Field(..., gt=0)
    commission_rate: Decimal = Field(..., gt=0, le=1) # Fraction, e.g. 0.90 for 90%
    type: CommissionType
    period_start: datetime
    period_end: datetime
    # Explicit agent-level organization; falls back to the payee's earliest active membership
    home_organization_id: Optional[int] = None

    @model_validator(mode="after")
    def check_period(self):
        if self.period_end < self.period_start:
            raise ValueError("period_end must not precede period_start")
        return self

    @property
    def total_amount(self) -> Decimal:
        return self.gross_premium * self.commission_rate


class CommissionSplit(BaseModel):
    """One payee's share of a commission event at a given hierarchy level."""
    payee_id: int
    payee_name: str
    organization_id: int
    organization_name: str
    role: str
    split_percentage: Decimal
    amount: Decimal
    level: int # 0 = agent, 1 = agency, 2 = MGA, 3 = IMO


class CommissionCalculation(BaseModel):
    total_amount: Decimal
    splits: List[CommissionSplit] = []
    # Part of the pool no level received; it is reported, never paid out
    unallocated_amount: Decimal = Decimal("0")

    @property
    def allocated_amount(self) -> Decimal:
        return sum((split.amount for split in self.splits), Decimal("0"))


class CommissionBase(BaseModel):
    user_id: int
    case_id: str = Field(..., max_length=64)
    organization_id: Optional[int] = None
    type: CommissionType
    status: CommissionStatus = CommissionStatus.PENDING
    carrier: str = Field(..., max_length=255)
    policy_number: str = Field(..., max_length=100)
    amount: Decimal
    percentage: Decimal
    split_amount: Decimal
    level: int = 0
    period_start: datetime
    period_end: datetime

class CommissionCreate(CommissionBase):
    """Schema for creating a ledger row. Built by the record writer from a split."""
    pass

class CommissionUpdate(BaseModel):
    """Schema for updating a commission, limited to its status."""
    status: CommissionStatus

class Commission(CommissionBase):
    """Full schema for returning commission data to the client."""
    id: int
    paid_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class MarkPaidRequest(BaseModel):
    commission_ids: List[int] = Field(..., min_length=1)

class MarkPaidResponse(BaseModel):
    updated: int
    message: str


class StatusTotal(BaseModel):
    amount: Decimal = Decimal("0")
    count: int = 0

class CommissionSummary(BaseModel):
    total_earned: Decimal = Decimal("0")
    total_paid: Decimal = Decimal("0")
    total_pending: Decimal = Decimal("0")
    by_type: Dict[str, Decimal] = {}
    by_status: Dict[str, StatusTotal] = {}
