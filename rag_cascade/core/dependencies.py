"""
Dependencies - OKR RAG Cascade Engine
rag_cascade/core/dependencies.py

Process-wide providers for the default stores and the engine facade.
"""

from functools import lru_cache

from rag_cascade.config import get_settings
from rag_cascade.repositories.memory import InMemoryScoreStore, InMemorySnapshotStore
from rag_cascade.services.cascade_service import CascadeService


@lru_cache()
def get_score_store() -> InMemoryScoreStore:
    """Get cached InMemoryScoreStore instance."""
    return InMemoryScoreStore()


@lru_cache()
def get_snapshot_store() -> InMemorySnapshotStore:
    """Get cached InMemorySnapshotStore instance."""
    return InMemorySnapshotStore()


@lru_cache()
def get_cascade_service() -> CascadeService:
    """Get cached CascadeService wired to the default stores."""
    return CascadeService(get_score_store(), get_snapshot_store(), settings=get_settings())
