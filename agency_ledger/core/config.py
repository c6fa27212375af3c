import os
from decimal import Decimal
from typing import Dict

from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./agency_ledger.db")
SQLALCHEMY_DATABASE_URI = DATABASE_URL

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

# Commission split defaults
DEFAULT_AGENT_SPLIT: Decimal = Decimal(os.getenv("DEFAULT_AGENT_SPLIT", "0.85"))
# Comma separated, one entry per hierarchy level starting at level 1 (agency, MGA, IMO)
DEFAULT_LEVEL_SPLITS_RAW: str = os.getenv("DEFAULT_LEVEL_SPLITS", "0.10,0.03,0.02")
MAX_HIERARCHY_DEPTH: int = int(os.getenv("MAX_HIERARCHY_DEPTH", 5))

DEFAULT_RENEWAL_RATE: Decimal = Decimal(os.getenv("DEFAULT_RENEWAL_RATE", "0.05"))
DEFAULT_TRAIL_RATE: Decimal = Decimal(os.getenv("DEFAULT_TRAIL_RATE", "0.003"))


def parse_level_splits(raw: str) -> Dict[int, Decimal]:
    """Turn "0.10,0.03,0.02" into {1: Decimal("0.10"), 2: Decimal("0.03"), 3: Decimal("0.02")}."""
    values = [part.strip() for part in raw.split(",") if part.strip()]
    return {level: Decimal(value) for level, value in enumerate(values, start=1)}


DEFAULT_LEVEL_SPLITS: Dict[int, Decimal] = parse_level_splits(DEFAULT_LEVEL_SPLITS_RAW)
