from pydantic import BaseModel, ConfigDict, Field, field_validator
from decimal import Decimal
from typing import Dict, Optional, Tuple

from rag_cascade.models.enumerations import RejectionReason


class BandDefinition(BaseModel):
    """
    Qualitative label an evaluator picks for an indicator (e.g. "76-100%",
    "Promoter"), mapped to a fixed numeric weight.
    """

    model_config = ConfigDict(frozen=True)

    indicator_id: str = Field(..., min_length=1, description="Indicator the band belongs to")
    label: str = Field(..., min_length=1, description="Band label, unique per indicator")
    weight: Decimal = Field(..., ge=0, le=1, description="Numeric weight in [0, 1]")
    sort_order: int = Field(default=0, description="Display order of the band")
    rag_color: Optional[str] = Field(default=None, description="Colour hint shown beside the label")

    @field_validator("label")
    @classmethod
    def strip_label(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("label must not be blank")
        return v


class RawScore(BaseModel):
    """One band selection for (indicator, feature, customer, period)."""

    model_config = ConfigDict(frozen=True)

    indicator_id: str = Field(..., description="Indicator being scored")
    feature_id: str = Field(..., description="Feature the score applies to")
    customer_id: str = Field(..., description="Customer the score applies to")
    period: str = Field(..., description="Reporting period key, e.g. 2026-09")
    band_label: str = Field(..., description="Selected band label")

    @property
    def key(self) -> Tuple[str, str, str, str]:
        return (self.indicator_id, self.feature_id, self.customer_id, self.period)


class IndicatorLink(BaseModel):
    """An indicator is evaluated against this (customer, feature) pair in a period."""

    model_config = ConfigDict(frozen=True)

    indicator_id: str
    customer_id: str
    feature_id: str
    period: str


class FormulaConfiguration(BaseModel):
    """
    Aggregation formula attached to a non-leaf node.

    The formula is kept as the raw configured name; it is resolved to a
    FormulaType only at evaluation time so a bad name fails that one node.
    """

    model_config = ConfigDict(frozen=True)

    node_id: str = Field(..., min_length=1, description="Node the formula belongs to")
    formula: Optional[str] = Field(default=None, description="Formula name; absent means AVG")
    weights: Dict[str, Decimal] = Field(
        default_factory=dict,
        description="Per-child weights, used by WEIGHTED_AVG only",
    )
    version: int = Field(default=1, ge=1, description="Configuration version")

    @field_validator("weights")
    @classmethod
    def validate_weights(cls, v: Dict[str, Decimal]) -> Dict[str, Decimal]:
        for child_id, weight in v.items():
            if weight < 0:
                raise ValueError(f"weight for {child_id} must be >= 0, got {weight}")
        return v


class ScoreRejection(BaseModel):
    """A raw score excluded from aggregation, with the reason."""

    model_config = ConfigDict(frozen=True)

    score: RawScore
    reason: RejectionReason
    message: str
