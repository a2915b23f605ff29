"""Storage layer package."""

from src.storage.database import (
    Base,
    Database,
    DecisionLogDB,
    DecisionLogStore,
)

__all__ = [
    "Base",
    "Database",
    "DecisionLogDB",
    "DecisionLogStore",
]
