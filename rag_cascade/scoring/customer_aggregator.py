"""
Customer Aggregator
rag_cascade/scoring/customer_aggregator.py

Turns one indicator's raw band selections for a period into one average per
customer:

    customer_avg = mean(weight(band) for each scored, linked feature)

Only features linked to the indicator for that customer and period count.
A customer with no accepted scores is excluded (no value), not zero.
A score with an unknown band label or a malformed shape is rejected on its
own; the rest of the batch is still aggregated.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Set, Tuple

from rag_cascade.core.exceptions import BandValidationException, MalformedScoreException
from rag_cascade.models.enumerations import RejectionReason
from rag_cascade.models.scoring import IndicatorLink, RawScore, ScoreRejection
from rag_cascade.scoring.band_registry import BandRegistry
from rag_cascade.scoring.utils import mean

logger = logging.getLogger(__name__)


@dataclass
class CustomerAverage:
    """Average band weight of one customer's linked features."""
    customer_id: str
    average: Optional[Decimal]      # in [0, 1], unrounded; None when nothing was scored
    feature_count: int              # accepted scores behind the average


@dataclass
class CustomerAggregation:
    """Output of CustomerAggregator.aggregate()."""
    indicator_id: str
    period: str
    customers: List[CustomerAverage] = field(default_factory=list)
    band_histogram: Dict[str, int] = field(default_factory=dict)
    rejections: List[ScoreRejection] = field(default_factory=list)
    ignored_count: int = 0          # scores on pairs the indicator is not linked to

    @property
    def contributing(self) -> List[CustomerAverage]:
        return [c for c in self.customers if c.average is not None]


class CustomerAggregator:
    """Average band weights per customer for one indicator and period."""

    def aggregate(
        self,
        indicator_id: str,
        period: str,
        registry: BandRegistry,
        links: Iterable[IndicatorLink],
        scores: Iterable[RawScore],
    ) -> CustomerAggregation:
        linked: Set[Tuple[str, str]] = {
            (link.customer_id, link.feature_id)
            for link in links
            if link.indicator_id == indicator_id and link.period == period
        }
        customer_ids = sorted({customer_id for customer_id, _ in linked})

        result = CustomerAggregation(indicator_id=indicator_id, period=period)

        # One score per key; later submissions replace earlier ones.
        latest: Dict[Tuple[str, str, str, str], RawScore] = {}
        for score in scores:
            latest[score.key] = score

        weights: Dict[str, List[Decimal]] = {customer_id: [] for customer_id in customer_ids}
        histogram: Counter = Counter()
        for key in sorted(latest):
            score = latest[key]
            try:
                self._validate_shape(score, indicator_id, period)
                if (score.customer_id, score.feature_id) not in linked:
                    result.ignored_count += 1
                    continue
                band = registry.resolve(score.band_label)
            except BandValidationException as e:
                result.rejections.append(
                    ScoreRejection(score=score, reason=RejectionReason.UNKNOWN_BAND, message=str(e))
                )
                continue
            except MalformedScoreException as e:
                result.rejections.append(
                    ScoreRejection(score=score, reason=RejectionReason.MALFORMED_SCORE, message=str(e))
                )
                continue

            weights[score.customer_id].append(band.weight)
            histogram[band.label] += 1

        for customer_id in customer_ids:
            values = weights[customer_id]
            avg = mean(values)
            result.customers.append(
                CustomerAverage(
                    customer_id=customer_id,
                    average=avg,
                    feature_count=len(values),
                )
            )
        result.band_histogram = dict(sorted(histogram.items()))

        if result.rejections:
            logger.warning(
                "scores_rejected",
                extra={
                    "indicator_id": indicator_id,
                    "period": period,
                    "rejected": len(result.rejections),
                },
            )
        return result

    @staticmethod
    def _validate_shape(score: RawScore, indicator_id: str, period: str) -> None:
        if score.indicator_id != indicator_id:
            raise MalformedScoreException(
                f"Score for indicator {score.indicator_id} submitted under {indicator_id}"
            )
        if score.period != period:
            raise MalformedScoreException(f"Score for period {score.period} submitted under {period}")
        if not score.band_label or not score.band_label.strip():
            raise MalformedScoreException("Score has a blank band label")
        if not score.customer_id or not score.feature_id:
            raise MalformedScoreException("Score is missing its customer or feature")
