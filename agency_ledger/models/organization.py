from sqlalchemy import Column, Integer, String, Boolean, DateTime, Numeric, ForeignKey, func
from sqlalchemy.orm import relationship
from agency_ledger.db.base_class import Base


class Organization(Base):
    __tablename__ = "organization"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(255), nullable=False, index=True)
    organization_type = Column(String(50), nullable=False, default="AGENCY")  # AGENCY, MGA, IMO, CARRIER, OTHER
    parent_id = Column(Integer, ForeignKey("organization.id"), nullable=True, index=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    # Self-referential relationship for the ownership tree
    parent = relationship("Organization", remote_side=[id], back_populates="children")
    children = relationship("Organization", back_populates="parent")

    members = relationship("OrganizationMember", back_populates="organization")

    def __repr__(self):
        return f"<Organization(id={self.id}, name='{self.name}', type='{self.organization_type}')>"


class OrganizationMember(Base):
    __tablename__ = "organization_member"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("user.id"), nullable=False, index=True)
    organization_id = Column(Integer, ForeignKey("organization.id"), nullable=False, index=True)
    role = Column(String(50), nullable=False, default="AGENT")  # AGENT, MANAGER, EXECUTIVE, ADMINISTRATOR, SUPPORT
    commission_split = Column(Numeric(5, 4), nullable=True)  # Override fraction in [0, 1]
    is_active = Column(Boolean, default=True, nullable=False)
    joined_at = Column(DateTime, server_default=func.now(), nullable=False)

    user = relationship("User", back_populates="memberships")
    organization = relationship("Organization", back_populates="members")

    def __repr__(self):
        return f"<OrganizationMember(id={self.id}, user_id={self.user_id}, organization_id={self.organization_id}, role='{self.role}')>"
