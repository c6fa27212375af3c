from sqlalchemy import Column, Integer, String, DateTime, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from agency_ledger.db.base_class import Base

class Commission(Base):
    __tablename__ = "commission"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("user.id"), nullable=False, index=True) # Payee who earned this split
    case_id = Column(String(64), nullable=False, index=True)
    organization_id = Column(Integer, ForeignKey("organization.id"), nullable=True, index=True) # Level at which the split was earned

    type = Column(String(20), nullable=False, index=True) # FIRST_YEAR, RENEWAL, OVERRIDE, BONUS, TRAIL
    status = Column(String(20), nullable=False, default="PENDING", index=True) # PENDING, PAID, CANCELLED, DISPUTED

    carrier = Column(String(255), nullable=False)
    policy_number = Column(String(100), nullable=False, index=True)

    amount = Column(Numeric(12, 2), nullable=False) # Total commission pool of the triggering event
    percentage = Column(Numeric(5, 4), nullable=False) # Split percentage applied at this level
    split_amount = Column(Numeric(12, 2), nullable=False) # Amount allocated to this payee
    level = Column(Integer, nullable=False, default=0) # 0 = agent, increasing toward the root

    period_start = Column(DateTime, nullable=False)
    period_end = Column(DateTime, nullable=False)
    paid_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    payee = relationship("User", backref="commissions")
    organization = relationship("Organization")

    def __repr__(self):
        return f"<Commission(id={self.id}, case_id='{self.case_id}', user_id={self.user_id}, type='{self.type}', split_amount={self.split_amount})>"
