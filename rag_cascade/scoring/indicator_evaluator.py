"""
Indicator Evaluator
rag_cascade/scoring/indicator_evaluator.py

Leaf computation that seeds the cascade.

Formula:
    value = mean(customer averages) × 100, clamped to [0, 100]

The value is a mean of customer means: every customer weighs the
same regardless of how many features it scored. No contributing customers
gives None (NOT_SET).
"""

import structlog
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional

from rag_cascade.models.scoring import ScoreRejection
from rag_cascade.models.snapshot import ChildContribution
from rag_cascade.scoring.customer_aggregator import CustomerAggregation
from rag_cascade.scoring.utils import HUNDRED, clamp, mean, quantize

logger = structlog.get_logger(__name__)


@dataclass
class IndicatorResult:
    """Output of IndicatorEvaluator.evaluate()."""
    indicator_id: str
    period: str
    value: Optional[Decimal]                 # [0, 100], None without data
    contributing_customers: int
    breakdown: List[ChildContribution] = field(default_factory=list)
    band_histogram: Dict[str, int] = field(default_factory=dict)
    rejections: List[ScoreRejection] = field(default_factory=list)


class IndicatorEvaluator:
    """Convert an indicator's customer averages into its percentage value."""

    def __init__(self, places: int = 2):
        self.places = places

    def evaluate(self, aggregation: CustomerAggregation) -> IndicatorResult:
        """
        Args:
            aggregation: Output of CustomerAggregator.aggregate() for the
                         indicator and period.

        Returns:
            IndicatorResult with the value and the per-customer breakdown.

        Examples:
            Customer A averages 0.75, customer B 0.5:
            value = mean(0.75, 0.5) × 100 = 62.50
        """
        contributing = aggregation.contributing
        avg = mean([c.average for c in contributing])

        value = None
        if avg is not None:
            value = quantize(clamp(avg * HUNDRED), self.places)

        breakdown = [
            ChildContribution(
                child_id=c.customer_id,
                value=quantize(c.average * HUNDRED, self.places) if c.average is not None else None,
                included=c.average is not None,
            )
            for c in aggregation.customers
        ]

        logger.info(
            "indicator_evaluated",
            indicator_id=aggregation.indicator_id,
            period=aggregation.period,
            contributing_customers=len(contributing),
            rejected_scores=len(aggregation.rejections),
            value=float(value) if value is not None else None,
        )

        return IndicatorResult(
            indicator_id=aggregation.indicator_id,
            period=aggregation.period,
            value=value,
            contributing_customers=len(contributing),
            breakdown=breakdown,
            band_histogram=dict(aggregation.band_histogram),
            rejections=list(aggregation.rejections),
        )
