"""
OKR RAG Cascade Engine
rag_cascade/

Hierarchical, formula-driven Red/Amber/Green rollup of qualitative band scores
from KPI indicators up to business outcomes.
"""

__version__ = "1.0.0"
