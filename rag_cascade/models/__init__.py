"""
Models Package - OKR RAG Cascade Engine
rag_cascade/models/__init__.py
"""

from rag_cascade.models.enumerations import FormulaType, NodeKind, RAGStatus, RejectionReason
from rag_cascade.models.hierarchy import Hierarchy, HierarchyNode
from rag_cascade.models.scoring import (
    BandDefinition,
    FormulaConfiguration,
    IndicatorLink,
    RawScore,
    ScoreRejection,
)
from rag_cascade.models.snapshot import (
    ChildContribution,
    Explainability,
    NodeValue,
    Snapshot,
)

__all__ = [
    # Enumerations
    "FormulaType",
    "NodeKind",
    "RAGStatus",
    "RejectionReason",
    # Hierarchy
    "Hierarchy",
    "HierarchyNode",
    # Inputs
    "BandDefinition",
    "FormulaConfiguration",
    "IndicatorLink",
    "RawScore",
    "ScoreRejection",
    # Outputs
    "ChildContribution",
    "Explainability",
    "NodeValue",
    "Snapshot",
]
