"""
Snapshot & Explainability Recorder
rag_cascade/scoring/snapshot_recorder.py

Builds the explainability record for each computed node and commits
NodeValues as write-once snapshots. A cascade stages its values in a
SnapshotBatch and commits them in one append at the end; a cancelled or
failed run simply discards the batch.
"""

import structlog
from datetime import datetime
from typing import Dict, List, Optional

from rag_cascade.core.exceptions import SnapshotNotFoundException
from rag_cascade.models.snapshot import Explainability, NodeValue, Snapshot
from rag_cascade.repositories.base import SnapshotStore
from rag_cascade.scoring.formula_evaluator import FormulaResult
from rag_cascade.scoring.indicator_evaluator import IndicatorResult

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Explainability
# ---------------------------------------------------------------------------

def explain_indicator(result: IndicatorResult) -> Explainability:
    """Customer breakdown, band histogram and rejections behind an indicator value."""
    return Explainability(
        contributing_count=result.contributing_customers,
        breakdown=result.breakdown,
        band_histogram=result.band_histogram,
        rejections=result.rejections,
    )


def explain_formula(result: FormulaResult) -> Explainability:
    """Child breakdown behind an aggregated node value."""
    return Explainability(
        contributing_count=result.contributing_count,
        breakdown=result.contributions,
    )


def explain_error(error: str) -> Explainability:
    return Explainability(error=error)


# ---------------------------------------------------------------------------
# Staging
# ---------------------------------------------------------------------------

class SnapshotBatch:
    """NodeValues produced by one cascade run, not yet visible to readers."""

    def __init__(self, run_id: str, run_started_at: datetime):
        self.run_id = run_id
        self.run_started_at = run_started_at
        self._values: Dict[str, NodeValue] = {}
        self.discarded = False

    def stage(self, node_value: NodeValue) -> None:
        if self.discarded:
            raise RuntimeError(f"Batch for run {self.run_id} was discarded")
        self._values[node_value.node_id] = node_value

    def get(self, node_id: str) -> Optional[NodeValue]:
        return self._values.get(node_id)

    def discard(self) -> None:
        self._values.clear()
        self.discarded = True

    @property
    def values(self) -> Dict[str, NodeValue]:
        return dict(self._values)

    def __len__(self) -> int:
        return len(self._values)


# ---------------------------------------------------------------------------
# Recorder
# ---------------------------------------------------------------------------

class SnapshotRecorder:
    """Commits staged NodeValues and answers snapshot queries."""

    def __init__(self, store: SnapshotStore):
        self.store = store

    async def commit(self, batch: SnapshotBatch) -> List[Snapshot]:
        """
        Append every staged NodeValue as a new snapshot.

        If the snapshot this commit superseded came from a run that started
        after this one, the newer run is overwritten (last committed wins);
        the conflict is logged. The superseded snapshot is looked up by
        sequence after the append, so racing commits cannot hide it.
        """
        node_values = list(batch.values.values())
        snapshots = await self.store.append_batch(batch.run_id, batch.run_started_at, node_values)

        for snapshot in snapshots:
            if snapshot.sequence == 1:
                continue
            previous = await self.store.at_sequence(snapshot.node_id, snapshot.period, snapshot.sequence - 1)
            if previous is not None and previous.run_started_at > batch.run_started_at:
                logger.warning(
                    "snapshot_concurrent_overwrite",
                    node_id=snapshot.node_id,
                    period=snapshot.period,
                    run_id=batch.run_id,
                    superseded_run_id=previous.run_id,
                )

        logger.info("snapshots_committed", run_id=batch.run_id, count=len(snapshots))
        return snapshots

    async def get_snapshot(self, node_id: str, period: str) -> Snapshot:
        snapshot = await self.store.latest(node_id, period)
        if snapshot is None:
            raise SnapshotNotFoundException(node_id, period)
        return snapshot

    async def find_snapshot(self, node_id: str, period: str) -> Optional[Snapshot]:
        return await self.store.latest(node_id, period)

    async def get_history(self, node_id: str, period: str) -> List[Snapshot]:
        return await self.store.history(node_id, period)
