import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from agency_ledger.core.config import SQLALCHEMY_DATABASE_URI

logger = logging.getLogger(__name__)

# Determine if we are using SQLite
is_sqlite = SQLALCHEMY_DATABASE_URI.startswith("sqlite")

connect_args = {}
if is_sqlite:
    connect_args = {"check_same_thread": False}

engine = create_engine(SQLALCHEMY_DATABASE_URI, pool_pre_ping=True, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind=None) -> None:
    """Create any missing ledger tables. Alembic-free deployments call this on startup."""
    from agency_ledger.db.base_class import Base
    import agency_ledger.models  # noqa: F401  registers every model on Base.metadata

    target = bind if bind is not None else engine
    Base.metadata.create_all(bind=target)
    logger.info(f"Ledger schema ensured on {target.url.render_as_string(hide_password=True)}")


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
