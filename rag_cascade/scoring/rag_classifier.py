"""
RAG Classifier
rag_cascade/scoring/rag_classifier.py

Maps a percentage to a status colour using fixed, universal thresholds:

    null or 0       -> NOT_SET
    (0, 51)         -> RED      (1-50%)
    [51, 76)        -> AMBER    (51-75%)
    [76, 100]       -> GREEN    (76-100%; larger finite values clamp to 100)

NaN, infinities, negatives and non-numeric input classify as NOT_SET; the
classifier never raises. An unclamped SUM above 100 is GREEN. Input is
rounded to 2 places before comparison, so 0.004 is NOT_SET.
"""

from decimal import Decimal
from typing import Optional

from rag_cascade.models.enumerations import RAGStatus
from rag_cascade.scoring.utils import HUNDRED, ZERO, coerce_decimal, quantize

# Threshold set identifier recorded on every NodeValue
RAG_THRESHOLD_VERSION = "rag-76-51-v1"

GREEN_THRESHOLD = Decimal("76")
AMBER_THRESHOLD = Decimal("51")


def classify(percentage) -> RAGStatus:
    """
    Classify a nullable percentage.

    Examples:
        >>> classify(50)
        <RAGStatus.RED: 'red'>
        >>> classify(Decimal("75.5"))
        <RAGStatus.AMBER: 'amber'>
        >>> classify(None)
        <RAGStatus.NOT_SET: 'not_set'>
    """
    value = coerce_decimal(percentage)
    if value is None:
        return RAGStatus.NOT_SET
    if value < ZERO:
        return RAGStatus.NOT_SET
    value = quantize(min(value, HUNDRED), 2)
    if value == ZERO:
        return RAGStatus.NOT_SET
    if value >= GREEN_THRESHOLD:
        return RAGStatus.GREEN
    if value >= AMBER_THRESHOLD:
        return RAGStatus.AMBER
    return RAGStatus.RED


class RAGClassifier:
    """Object wrapper so the classifier can be injected like the other calculators."""

    threshold_version: str = RAG_THRESHOLD_VERSION

    def classify(self, percentage: Optional[Decimal]) -> RAGStatus:
        return classify(percentage)
