"""
Model Escrow API: persistence backends behind one repository interface.
"""

from escrow.config import Settings
from escrow.store.base import ActivityLog, EscrowStore, ProjectRepository, UserRepository  # noqa: F401
from escrow.store.memory import MemoryStore
from escrow.store.sql import SqlStore


def build_store(config: Settings) -> EscrowStore:
    """Pick the backend named by ``config.storage_backend``."""
    if config.storage_backend == "memory":
        return MemoryStore()
    if config.storage_backend == "sql":
        from escrow.database import async_session
        return SqlStore(async_session)
    raise ValueError(f"Unknown storage backend: {config.storage_backend!r}")
