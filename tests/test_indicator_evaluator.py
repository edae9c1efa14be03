# tests/test_indicator_evaluator.py
"""
Band Registry, Customer Aggregator and Indicator Evaluator Tests
"""

from decimal import Decimal

import pytest

from rag_cascade.core.exceptions import BandConfigurationException, BandValidationException
from rag_cascade.models.enumerations import RejectionReason
from rag_cascade.models.scoring import BandDefinition
from rag_cascade.scoring.band_registry import DEFAULT_BAND_WEIGHTS, BandRegistry
from rag_cascade.scoring.customer_aggregator import CustomerAggregator
from rag_cascade.scoring.indicator_evaluator import IndicatorEvaluator

from tests.conftest import PERIOD, adoption_bands, link, score

D = Decimal


def evaluate(links, scores, bands=None, indicator_id="ind-1"):
    registry = BandRegistry.for_indicator(indicator_id, bands if bands is not None else adoption_bands(indicator_id))
    aggregation = CustomerAggregator().aggregate(indicator_id, PERIOD, registry, links, scores)
    return aggregation, IndicatorEvaluator().evaluate(aggregation)


class TestBandRegistry:

    def test_resolve_known_label(self):
        registry = BandRegistry("ind-1", adoption_bands("ind-1"))
        assert registry.weight_of("76-100%") == D("1.0")
        assert registry.weight_of(" 51-75% ") == D("0.5")
        assert "0-50%" in registry

    def test_unknown_label_raises(self):
        registry = BandRegistry("ind-1", adoption_bands("ind-1"))
        with pytest.raises(BandValidationException) as exc_info:
            registry.resolve("Promoter")
        assert exc_info.value.indicator_id == "ind-1"
        assert exc_info.value.band_label == "Promoter"

    def test_duplicate_label_is_configuration_error(self):
        bands = adoption_bands("ind-1") + [
            BandDefinition(indicator_id="ind-1", label="76-100%", weight=D("0.9"))
        ]
        with pytest.raises(BandConfigurationException):
            BandRegistry("ind-1", bands)

    def test_band_from_another_indicator_is_configuration_error(self):
        with pytest.raises(BandConfigurationException):
            BandRegistry("ind-1", adoption_bands("ind-2"))

    def test_default_bands_when_none_configured(self):
        registry = BandRegistry.for_indicator("ind-9", [])
        assert [b.label for b in registry.bands] == list(DEFAULT_BAND_WEIGHTS)
        assert registry.weight_of("Amber") == D("0.5")

    def test_no_default_bands_when_disabled(self):
        registry = BandRegistry.for_indicator("ind-9", [], use_defaults=False)
        assert len(registry) == 0
        with pytest.raises(BandValidationException):
            registry.resolve("Green")

    def test_arbitrary_weights_in_unit_interval(self):
        bands = [BandDefinition(indicator_id="ind-1", label="Mostly", weight=D("0.8"))]
        assert BandRegistry("ind-1", bands).weight_of("Mostly") == D("0.8")


class TestIndicatorScenario:
    """Two customers, two features each -> 62.5 Amber."""

    def test_mean_of_customer_means(self):
        links = [
            link("ind-1", "cust-a", "feat-1"),
            link("ind-1", "cust-a", "feat-2"),
            link("ind-1", "cust-b", "feat-1"),
            link("ind-1", "cust-b", "feat-2"),
        ]
        scores = [
            score("ind-1", "cust-a", "feat-1", "76-100%"),
            score("ind-1", "cust-a", "feat-2", "51-75%"),
            score("ind-1", "cust-b", "feat-1", "51-75%"),
            score("ind-1", "cust-b", "feat-2", "51-75%"),
        ]
        aggregation, result = evaluate(links, scores)

        averages = {c.customer_id: c.average for c in aggregation.customers}
        assert averages == {"cust-a": D("0.7500"), "cust-b": D("0.5000")}
        assert result.value == D("62.50")
        assert result.contributing_customers == 2
        assert result.band_histogram == {"51-75%": 3, "76-100%": 1}

    def test_customers_weigh_equally_regardless_of_feature_count(self):
        """cust-a: one feature at 1.0; cust-b: three features at 0.0 -> 50, not 25."""
        links = [link("ind-1", "cust-a", "feat-1")] + [
            link("ind-1", "cust-b", f"feat-{i}") for i in range(1, 4)
        ]
        scores = [score("ind-1", "cust-a", "feat-1", "76-100%")] + [
            score("ind-1", "cust-b", f"feat-{i}", "0-50%") for i in range(1, 4)
        ]
        _, result = evaluate(links, scores)
        assert result.value == D("50.00")

    def test_customer_averages_are_not_rounded_before_the_mean(self):
        """mean(1/6, 0) × 100 = 8.333... -> 8.33; rounding 1/6 to 0.1667 first gives 8.34."""
        links = [link("ind-1", "cust-a", f"feat-{i}") for i in range(1, 7)] + [
            link("ind-1", "cust-b", "feat-1")
        ]
        scores = [score("ind-1", "cust-a", "feat-1", "76-100%")] + [
            score("ind-1", "cust-a", f"feat-{i}", "0-50%") for i in range(2, 7)
        ] + [score("ind-1", "cust-b", "feat-1", "0-50%")]

        aggregation, result = evaluate(links, scores)

        cust_a = next(c for c in aggregation.customers if c.customer_id == "cust-a")
        assert cust_a.average == D(1) / D(6)
        assert result.value == D("8.33")
        # Breakdown rows are rounded for display only.
        assert result.breakdown[0].value == D("16.67")


class TestMissingData:

    def test_no_customers_is_none(self):
        _, result = evaluate([], [])
        assert result.value is None
        assert result.contributing_customers == 0

    def test_linked_customer_without_scores_is_excluded_not_zero(self):
        links = [link("ind-1", "cust-a", "feat-1"), link("ind-1", "cust-b", "feat-1")]
        scores = [score("ind-1", "cust-a", "feat-1", "76-100%")]
        aggregation, result = evaluate(links, scores)

        assert result.value == D("100.00")
        assert result.contributing_customers == 1
        cust_b = next(row for row in result.breakdown if row.child_id == "cust-b")
        assert cust_b.value is None and cust_b.included is False
        assert [c.customer_id for c in aggregation.contributing] == ["cust-a"]

    def test_scores_on_unlinked_features_are_ignored(self):
        links = [link("ind-1", "cust-a", "feat-1")]
        scores = [
            score("ind-1", "cust-a", "feat-1", "51-75%"),
            score("ind-1", "cust-a", "feat-7", "0-50%"),
        ]
        aggregation, result = evaluate(links, scores)
        assert result.value == D("50.00")
        assert aggregation.ignored_count == 1
        assert aggregation.rejections == []

    def test_links_for_other_periods_do_not_count(self):
        links = [link("ind-1", "cust-a", "feat-1", period="2026-08")]
        scores = [score("ind-1", "cust-a", "feat-1", "76-100%")]
        _, result = evaluate(links, scores)
        assert result.value is None


class TestRejections:
    """A bad score is rejected on its own; the batch still aggregates."""

    def test_unknown_band_rejected_rest_aggregated(self):
        links = [link("ind-1", "cust-a", "feat-1"), link("ind-1", "cust-a", "feat-2")]
        scores = [
            score("ind-1", "cust-a", "feat-1", "76-100%"),
            score("ind-1", "cust-a", "feat-2", "Excellent"),
        ]
        aggregation, result = evaluate(links, scores)

        assert result.value == D("100.00")
        assert len(result.rejections) == 1
        rejection = result.rejections[0]
        assert rejection.reason is RejectionReason.UNKNOWN_BAND
        assert rejection.score.band_label == "Excellent"
        assert "Excellent" in rejection.message

    def test_blank_label_is_malformed(self):
        links = [link("ind-1", "cust-a", "feat-1")]
        scores = [score("ind-1", "cust-a", "feat-1", "  ")]
        aggregation, result = evaluate(links, scores)
        assert result.value is None
        assert aggregation.rejections[0].reason is RejectionReason.MALFORMED_SCORE

    def test_score_for_another_indicator_is_malformed(self):
        links = [link("ind-1", "cust-a", "feat-1")]
        scores = [
            score("ind-1", "cust-a", "feat-1", "51-75%"),
            score("ind-2", "cust-a", "feat-1", "76-100%"),
        ]
        aggregation, result = evaluate(links, scores)
        assert result.value == D("50.00")
        assert [r.reason for r in aggregation.rejections] == [RejectionReason.MALFORMED_SCORE]

    def test_all_scores_rejected_is_none(self):
        links = [link("ind-1", "cust-a", "feat-1")]
        scores = [score("ind-1", "cust-a", "feat-1", "Promoter")]
        _, result = evaluate(links, scores)
        assert result.value is None


class TestOverwrite:

    def test_resubmission_replaces_prior_value(self, score_store):
        previous = score_store.upsert_score(score("ind-1", "cust-a", "feat-1", "0-50%"))
        assert previous.band_label == "76-100%"

    def test_later_duplicate_in_batch_wins(self):
        links = [link("ind-1", "cust-a", "feat-1")]
        scores = [
            score("ind-1", "cust-a", "feat-1", "76-100%"),
            score("ind-1", "cust-a", "feat-1", "0-50%"),
        ]
        _, result = evaluate(links, scores)
        assert result.value is not None
        assert result.value == D("0.00")
