import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from fastapi.testclient import TestClient
from datetime import datetime, timedelta
from decimal import Decimal
from typing import List, Optional
import os
import uuid

# Add project root to sys.path to allow imports from agency_ledger
import sys
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))


from agency_ledger.main import app
from agency_ledger.db.base_class import Base
from agency_ledger.db.session import get_db, init_db
from agency_ledger.crud import crud_organization, crud_user
from agency_ledger.models.organization import Organization as OrganizationModel, OrganizationMember as MemberModel
from agency_ledger.models.user import User as UserModel
from agency_ledger.schemas.organization import MembershipCreate, MemberRole, OrganizationCreate, OrganizationType
from agency_ledger.schemas.user import UserCreate

# Use a separate SQLite database for testing
TEST_SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(
    TEST_SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

init_db(bind=engine)

def override_get_db():
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()

app.dependency_overrides[get_db] = override_get_db

@pytest.fixture(scope="session")
def test_engine():
    init_db(bind=engine)
    yield engine

@pytest.fixture(scope="function")
def db_session(test_engine):
    """
    Provides a database session for each test function.
    Tables are dropped and recreated first so every test starts empty.
    """
    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client():
    # The TestClient uses the app with the overridden get_db dependency
    with TestClient(app) as c:
        yield c


BASE_JOINED_AT = datetime(2024, 1, 1, 9, 0, 0)

# Helpers shared by the crud, core and api tests
def create_user(db: Session, first_name: str = "Test", last_name: Optional[str] = None) -> UserModel:
    last_name = last_name or uuid.uuid4().hex[:6]
    return crud_user.create_user(db, obj_in=UserCreate(
        email=f"{first_name.lower()}_{uuid.uuid4().hex[:6]}@example.com",
        first_name=first_name,
        last_name=last_name,
    ))

def create_organization(
    db: Session, name: str, parent: Optional[OrganizationModel] = None,
    organization_type: OrganizationType = OrganizationType.AGENCY
) -> OrganizationModel:
    return crud_organization.create_organization(db, obj_in=OrganizationCreate(
        name=name, organization_type=organization_type, parent_id=parent.id if parent else None
    ))

def add_member(
    db: Session, user: UserModel, organization: OrganizationModel,
    role: MemberRole = MemberRole.AGENT, commission_split: Optional[Decimal] = None,
    is_active: bool = True, joined_at: Optional[datetime] = None
) -> MemberModel:
    return crud_organization.create_membership(db, obj_in=MembershipCreate(
        user_id=user.id, organization_id=organization.id, role=role,
        commission_split=commission_split, is_active=is_active,
        joined_at=joined_at or BASE_JOINED_AT
    ))

def build_agency_chain(db: Session, depth: int, with_managers: bool = True) -> List[OrganizationModel]:
    """
    Agency -> MGA -> IMO ... chain of `depth` organizations, returned home-first.
    Every organization gets one MANAGER unless with_managers is False.
    """
    level_types = {0: OrganizationType.AGENCY, 1: OrganizationType.AGENCY, 2: OrganizationType.MGA, 3: OrganizationType.IMO}
    chain: List[OrganizationModel] = []
    parent = None
    # Root first, so each child can point at an existing parent
    for level in reversed(range(depth)):
        parent = create_organization(
            db, name=f"Org L{level}", parent=parent,
            organization_type=level_types.get(level, OrganizationType.OTHER)
        )
        chain.insert(0, parent)
    if with_managers:
        for level, organization in enumerate(chain[1:], start=1):
            manager = create_user(db, first_name=f"Manager{level}")
            add_member(db, manager, organization, role=MemberRole.MANAGER,
                       joined_at=BASE_JOINED_AT + timedelta(days=level))
    return chain

@pytest.fixture(scope="function")
def payee(db_session: Session) -> UserModel:
    return create_user(db_session, first_name="Agent", last_name="Smith")
