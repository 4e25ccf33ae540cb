"""
Database Module
"""

from fiera.db.database import AsyncSessionLocal, create_tables, engine
from fiera.db.models import Base, LeadRecord

__all__ = [
    "AsyncSessionLocal",
    "Base",
    "LeadRecord",
    "create_tables",
    "engine",
]
