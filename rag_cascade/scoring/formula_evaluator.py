"""
Formula Evaluator
rag_cascade/scoring/formula_evaluator.py

Reduces the children of a non-leaf node (Key Result, Functional Objective,
Department, Org Objective, Business Outcome) to one value.

Formulas:
    AVG           mean of non-null children (default)
    SUM           sum of non-null children
    MIN / MAX     min / max of non-null children
    WEIGHTED_AVG  Σ(value × weight) / Σ(weight) over non-null children,
                  missing weight = 1

Null children are excluded from the arithmetic, never treated as zero.
Every formula returns None when all children are null; WEIGHTED_AVG also
returns None when the included weights sum to zero.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from rag_cascade.models.enumerations import FormulaType
from rag_cascade.models.snapshot import ChildContribution
from rag_cascade.scoring.utils import mean, quantize, weighted_mean

logger = logging.getLogger(__name__)

DEFAULT_CHILD_WEIGHT = Decimal("1")


@dataclass
class FormulaResult:
    """Output of FormulaEvaluator.evaluate()."""
    value: Optional[Decimal]               # quantized, None when no child has data
    formula: FormulaType
    contributions: List[ChildContribution] = field(default_factory=list)

    @property
    def contributing_count(self) -> int:
        return sum(1 for c in self.contributions if c.included)


class FormulaEvaluator:
    """Pure, stateless reducer over (child id, value) pairs."""

    def __init__(self, places: int = 2):
        self.places = places

    def evaluate(
        self,
        formula: FormulaType,
        children: Sequence[Tuple[str, Optional[Decimal]]],
        weights: Optional[Mapping[str, Decimal]] = None,
    ) -> FormulaResult:
        """
        Args:
            formula: Resolved formula (see FormulaType.parse).
            children: Ordered (child id, value-or-None) pairs.
            weights: Per-child weights, consulted by WEIGHTED_AVG only.

        Returns:
            FormulaResult with the value and one contribution row per child.

        Examples:
            >>> ev = FormulaEvaluator()
            >>> ev.evaluate(FormulaType.WEIGHTED_AVG,
            ...             [("a", Decimal("90")), ("b", Decimal("60"))],
            ...             {"a": Decimal("1"), "b": Decimal("3")}).value
            Decimal('67.50')
        """
        weights = weights or {}
        use_weights = formula is FormulaType.WEIGHTED_AVG

        contributions: List[ChildContribution] = []
        values: List[Decimal] = []
        applied_weights: List[Decimal] = []
        for child_id, value in children:
            weight = weights.get(child_id, DEFAULT_CHILD_WEIGHT) if use_weights else None
            included = value is not None
            contributions.append(
                ChildContribution(child_id=child_id, value=value, weight=weight, included=included)
            )
            if included:
                values.append(value)
                if use_weights:
                    applied_weights.append(weight)

        raw = self._reduce(formula, values, applied_weights)
        result = FormulaResult(
            value=quantize(raw, self.places) if raw is not None else None,
            formula=formula,
            contributions=contributions,
        )

        logger.debug(
            "formula_evaluated",
            extra={
                "formula": formula.value,
                "child_count": len(contributions),
                "contributing_count": result.contributing_count,
                "value": float(result.value) if result.value is not None else None,
            },
        )
        return result

    @staticmethod
    def _reduce(
        formula: FormulaType,
        values: List[Decimal],
        weights: List[Decimal],
    ) -> Optional[Decimal]:
        if not values:
            return None
        if formula is FormulaType.AVG:
            return mean(values)
        if formula is FormulaType.SUM:
            return sum(values, Decimal("0"))
        if formula is FormulaType.MIN:
            return min(values)
        if formula is FormulaType.MAX:
            return max(values)
        if formula is FormulaType.WEIGHTED_AVG:
            return weighted_mean(values, weights)
        raise ValueError(f"Unhandled formula {formula!r}")


def evaluate_formula(
    formula: FormulaType,
    children: Sequence[Tuple[str, Optional[Decimal]]],
    weights: Optional[Dict[str, Decimal]] = None,
    places: int = 2,
) -> Optional[Decimal]:
    """Convenience wrapper returning only the value."""
    return FormulaEvaluator(places).evaluate(formula, children, weights).value
