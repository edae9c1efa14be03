"""
Repositories Package - OKR RAG Cascade Engine
rag_cascade/repositories/__init__.py
"""

from rag_cascade.repositories.base import ScoreStore, SnapshotStore
from rag_cascade.repositories.memory import InMemoryScoreStore, InMemorySnapshotStore

__all__ = [
    "ScoreStore",
    "SnapshotStore",
    "InMemoryScoreStore",
    "InMemorySnapshotStore",
]
