from sqlalchemy.orm import Session
from typing import Optional

from agency_ledger.models.user import User
from agency_ledger.schemas.user import UserCreate

def get_user(db: Session, user_id: int) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()

def create_user(db: Session, *, obj_in: UserCreate) -> User:
    db_obj = User(
        email=obj_in.email,
        first_name=obj_in.first_name,
        last_name=obj_in.last_name,
    )
    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    return db_obj
