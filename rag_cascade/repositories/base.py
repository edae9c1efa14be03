"""
Base Repositories - OKR RAG Cascade Engine
rag_cascade/repositories/base.py

Read-only input store and append-only snapshot store the cascade runs against.
Reads are async because they are the only points where a cascade waits on
I/O. Implementations raise StoreUnavailableException when they cannot be
reached at all; a raw OSError (ConnectionError, TimeoutError) from a driver is
treated the same way by the cascade.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Sequence

from rag_cascade.models.hierarchy import Hierarchy
from rag_cascade.models.scoring import BandDefinition, FormulaConfiguration, IndicatorLink, RawScore
from rag_cascade.models.snapshot import NodeValue, Snapshot


class ScoreStore(ABC):
    """Hierarchy, band, link, score and formula configuration reads."""

    @abstractmethod
    async def get_hierarchy(self, root_id: str) -> Hierarchy:
        """Tree rooted at root_id (EntityNotFoundException if unknown)."""

    @abstractmethod
    async def get_bands(self, indicator_id: str) -> List[BandDefinition]:
        """Band definitions configured for an indicator (may be empty)."""

    @abstractmethod
    async def get_links(self, indicator_id: str, period: str) -> List[IndicatorLink]:
        """(customer, feature) pairs the indicator is evaluated against."""

    @abstractmethod
    async def get_scores(self, indicator_id: str, period: str) -> List[RawScore]:
        """Current raw scores for an indicator and period."""

    @abstractmethod
    async def get_active_formula(self, node_id: str) -> Optional[FormulaConfiguration]:
        """Active formula configuration version for a node, if any."""


class SnapshotStore(ABC):
    """Append-only history of NodeValues per (node, period)."""

    @abstractmethod
    async def append_batch(
        self,
        run_id: str,
        run_started_at: datetime,
        node_values: Sequence[NodeValue],
    ) -> List[Snapshot]:
        """
        Append one snapshot per NodeValue, all or nothing.

        Appends for the same (node, period) are serialized; the last one
        committed becomes current.
        """

    @abstractmethod
    async def latest(self, node_id: str, period: str) -> Optional[Snapshot]:
        """Current snapshot for (node, period), or None."""

    @abstractmethod
    async def history(self, node_id: str, period: str) -> List[Snapshot]:
        """Every snapshot for (node, period), oldest first."""

    @abstractmethod
    async def at_sequence(self, node_id: str, period: str, sequence: int) -> Optional[Snapshot]:
        """Snapshot with the given sequence for (node, period), or None."""
