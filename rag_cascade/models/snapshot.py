"""
Snapshot Model - OKR RAG Cascade Engine
rag_cascade/models/snapshot.py

NodeValue is the engine's computed output for (node, period). It holds no
timestamps or run ids, so recomputing unchanged inputs yields an equal value.
Snapshot wraps a NodeValue with its commit metadata.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from rag_cascade.models.enumerations import FormulaType, NodeKind, RAGStatus
from rag_cascade.models.scoring import ScoreRejection


class ChildContribution(BaseModel):
    """One row of an explainability breakdown."""

    model_config = ConfigDict(frozen=True)

    child_id: str = Field(..., description="Child node id, or customer id for indicators")
    value: Optional[Decimal] = Field(default=None, description="Value the child contributed")
    weight: Optional[Decimal] = Field(default=None, description="Weight applied (WEIGHTED_AVG only)")
    included: bool = Field(default=True, description="False when the child had no value")


class Explainability(BaseModel):
    """How a node value was derived."""

    model_config = ConfigDict(frozen=True)

    contributing_count: int = Field(default=0, ge=0, description="Children or customers with data")
    breakdown: List[ChildContribution] = Field(default_factory=list)
    band_histogram: Dict[str, int] = Field(
        default_factory=dict,
        description="Band label -> number of accepted scores (indicators only)",
    )
    rejections: List[ScoreRejection] = Field(default_factory=list)
    error: Optional[str] = Field(default=None, description="Configuration error annotation")


class NodeValue(BaseModel):
    """Computed value and status for one node in one period."""

    model_config = ConfigDict(frozen=True)

    node_id: str
    node_kind: NodeKind
    period: str
    value: Optional[Decimal] = Field(default=None, description="Percentage, or None when no data")
    status: RAGStatus = RAGStatus.NOT_SET
    formula: Optional[FormulaType] = Field(default=None, description="Formula applied (None for indicators)")
    formula_version: Optional[int] = Field(
        default=None,
        description="Active formula configuration version; None when the AVG default applied",
    )
    threshold_version: str = Field(..., description="RAG threshold set used for the status")
    inputs: List[Tuple[str, Optional[Decimal]]] = Field(
        default_factory=list,
        description="Ordered (child id, child value) pairs that fed the computation",
    )
    explainability: Explainability = Field(default_factory=Explainability)
    error: Optional[str] = Field(default=None, description="Set when the node failed to evaluate")

    @property
    def has_error(self) -> bool:
        return self.error is not None


class Snapshot(BaseModel):
    """Write-once record of a committed NodeValue."""

    model_config = ConfigDict(frozen=True)

    node_value: NodeValue
    run_id: str = Field(..., description="Cascade run that produced the value")
    run_started_at: datetime = Field(..., description="When that run started")
    sequence: int = Field(..., ge=1, description="Position in the (node, period) history")
    recorded_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def node_id(self) -> str:
        return self.node_value.node_id

    @property
    def period(self) -> str:
        return self.node_value.period
