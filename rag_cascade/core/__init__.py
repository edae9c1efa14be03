"""
Core Package - OKR RAG Cascade Engine
rag_cascade/core/__init__.py

Core infrastructure: exceptions.
"""

from rag_cascade.core.exceptions import (
    BandConfigurationException,
    BandValidationException,
    CascadeCancelledException,
    CascadeException,
    CascadeRunException,
    ConfigurationException,
    EntityNotFoundException,
    FormulaConfigurationException,
    HierarchyException,
    MalformedScoreException,
    SnapshotNotFoundException,
    StoreUnavailableException,
    ValidationException,
)

__all__ = [
    "BandConfigurationException",
    "BandValidationException",
    "CascadeCancelledException",
    "CascadeException",
    "CascadeRunException",
    "ConfigurationException",
    "EntityNotFoundException",
    "FormulaConfigurationException",
    "HierarchyException",
    "MalformedScoreException",
    "SnapshotNotFoundException",
    "StoreUnavailableException",
    "ValidationException",
]
