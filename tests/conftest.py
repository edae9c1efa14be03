# tests/conftest.py

"""
Pytest Fixtures - Shared hierarchy, bands, links and scores for all tests

SAMPLE HIERARCHY (period 2026-09):

    bo-1 (Business Outcome)
    └── oo-1 (Org Objective)
        └── dept-1 (Department)
            ├── fo-1 (Functional Objective)
            │   └── kr-1 (Key Result)
            │       ├── ind-1   cust-a: 1.0, 0.5 | cust-b: 0.5, 0.5   -> 62.50 Amber
            │       ├── ind-2   cust-c: 1, 1, 1, 0.5, 0.5             -> 80.00 Green
            │       └── ind-3   no scores                             -> None  Not Set
            └── fo-2 (Functional Objective)
                └── kr-2 (Key Result)
                    └── ind-4   cust-a: Promoter | cust-b: Detractor  -> 50.00 Red

    kr-1 = AVG(62.50, 80.00)   = 71.25 Amber
    kr-2 = fo-2                = 50.00 Red
    dept-1 = AVG(71.25, 50.00) = 60.63 Amber  (= oo-1 = bo-1)
"""

from decimal import Decimal
from typing import List, Optional

import pytest

from rag_cascade.config import Settings
from rag_cascade.models.enumerations import NodeKind
from rag_cascade.models.hierarchy import HierarchyNode
from rag_cascade.models.scoring import BandDefinition, IndicatorLink, RawScore
from rag_cascade.repositories.memory import InMemoryScoreStore, InMemorySnapshotStore
from rag_cascade.services.cascade_service import CascadeService

PERIOD = "2026-09"


# =============================================================================
# BUILDERS
# =============================================================================

def node(node_id: str, kind: NodeKind, parent_id: Optional[str] = None, children: List[str] = ()) -> HierarchyNode:
    return HierarchyNode(id=node_id, kind=kind, name=node_id.upper(), parent_id=parent_id, children=list(children))


def adoption_bands(indicator_id: str) -> List[BandDefinition]:
    return [
        BandDefinition(indicator_id=indicator_id, label="76-100%", weight=Decimal("1.0"), sort_order=1),
        BandDefinition(indicator_id=indicator_id, label="51-75%", weight=Decimal("0.5"), sort_order=2),
        BandDefinition(indicator_id=indicator_id, label="0-50%", weight=Decimal("0.0"), sort_order=3),
    ]


def nps_bands(indicator_id: str) -> List[BandDefinition]:
    return [
        BandDefinition(indicator_id=indicator_id, label="Promoter", weight=Decimal("1.0"), sort_order=1),
        BandDefinition(indicator_id=indicator_id, label="Passive", weight=Decimal("0.5"), sort_order=2),
        BandDefinition(indicator_id=indicator_id, label="Detractor", weight=Decimal("0.0"), sort_order=3),
    ]


def link(indicator_id: str, customer_id: str, feature_id: str, period: str = PERIOD) -> IndicatorLink:
    return IndicatorLink(indicator_id=indicator_id, customer_id=customer_id, feature_id=feature_id, period=period)


def score(indicator_id: str, customer_id: str, feature_id: str, band: str, period: str = PERIOD) -> RawScore:
    return RawScore(
        indicator_id=indicator_id,
        customer_id=customer_id,
        feature_id=feature_id,
        period=period,
        band_label=band,
    )


def sample_nodes() -> List[HierarchyNode]:
    return [
        node("bo-1", NodeKind.BUSINESS_OUTCOME, None, ["oo-1"]),
        node("oo-1", NodeKind.ORG_OBJECTIVE, "bo-1", ["dept-1"]),
        node("dept-1", NodeKind.DEPARTMENT, "oo-1", ["fo-1", "fo-2"]),
        node("fo-1", NodeKind.FUNCTIONAL_OBJECTIVE, "dept-1", ["kr-1"]),
        node("fo-2", NodeKind.FUNCTIONAL_OBJECTIVE, "dept-1", ["kr-2"]),
        node("kr-1", NodeKind.KEY_RESULT, "fo-1", ["ind-1", "ind-2", "ind-3"]),
        node("kr-2", NodeKind.KEY_RESULT, "fo-2", ["ind-4"]),
        node("ind-1", NodeKind.INDICATOR, "kr-1"),
        node("ind-2", NodeKind.INDICATOR, "kr-1"),
        node("ind-3", NodeKind.INDICATOR, "kr-1"),
        node("ind-4", NodeKind.INDICATOR, "kr-2"),
    ]


def populate(store: InMemoryScoreStore) -> InMemoryScoreStore:
    store.add_nodes(sample_nodes())

    for indicator_id in ("ind-1", "ind-2", "ind-3"):
        store.set_bands(indicator_id, adoption_bands(indicator_id))
    store.set_bands("ind-4", nps_bands("ind-4"))

    store.add_links([
        link("ind-1", "cust-a", "feat-1"),
        link("ind-1", "cust-a", "feat-2"),
        link("ind-1", "cust-b", "feat-1"),
        link("ind-1", "cust-b", "feat-2"),
        *[link("ind-2", "cust-c", f"feat-{i}") for i in range(1, 6)],
        link("ind-3", "cust-a", "feat-1"),
        link("ind-4", "cust-a", "feat-1"),
        link("ind-4", "cust-b", "feat-1"),
    ])

    store.upsert_scores([
        score("ind-1", "cust-a", "feat-1", "76-100%"),
        score("ind-1", "cust-a", "feat-2", "51-75%"),
        score("ind-1", "cust-b", "feat-1", "51-75%"),
        score("ind-1", "cust-b", "feat-2", "51-75%"),
        score("ind-2", "cust-c", "feat-1", "76-100%"),
        score("ind-2", "cust-c", "feat-2", "76-100%"),
        score("ind-2", "cust-c", "feat-3", "76-100%"),
        score("ind-2", "cust-c", "feat-4", "51-75%"),
        score("ind-2", "cust-c", "feat-5", "51-75%"),
        score("ind-4", "cust-a", "feat-1", "Promoter"),
        score("ind-4", "cust-b", "feat-1", "Detractor"),
    ])
    return store


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def period():
    return PERIOD


@pytest.fixture
def settings():
    """Settings isolated from any local .env file."""
    return Settings(_env_file=None, CASCADE_MAX_CONCURRENCY=4)


@pytest.fixture
def score_store():
    """InMemoryScoreStore loaded with the sample hierarchy."""
    return populate(InMemoryScoreStore())


@pytest.fixture
def snapshot_store():
    return InMemorySnapshotStore()


@pytest.fixture
def service(score_store, snapshot_store, settings):
    return CascadeService(score_store, snapshot_store, settings=settings)
