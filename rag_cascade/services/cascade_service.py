"""
services/cascade_service.py

Engine facade exposed to the surrounding application.

Operations:
    recompute(root_id, period)      -> {node_id: NodeValue}
    get_snapshot(node_id, period)   -> Snapshot (NodeValue + explainability)
    get_history(node_id, period)    -> [Snapshot, ...] oldest first
    handle_event(event)             -> path recompute for a data change
"""

import logging
from typing import Dict, List, Optional

from rag_cascade.config import Settings, get_settings
from rag_cascade.models.snapshot import NodeValue, Snapshot
from rag_cascade.repositories.base import ScoreStore, SnapshotStore
from rag_cascade.scoring.cascade_orchestrator import (
    CancellationToken,
    CascadeOrchestrator,
    CascadeResult,
)
from rag_cascade.scoring.recompute_events import RecomputeDispatcher, RecomputeEvent
from rag_cascade.scoring.snapshot_recorder import SnapshotRecorder

logger = logging.getLogger(__name__)


class CascadeService:
    """Recompute and query RAG values for an OKR hierarchy."""

    def __init__(
        self,
        score_store: ScoreStore,
        snapshot_store: SnapshotStore,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.recorder = SnapshotRecorder(snapshot_store)
        self.orchestrator = CascadeOrchestrator(score_store, self.recorder, settings=self.settings)
        self.dispatcher = RecomputeDispatcher(self.orchestrator)

    async def recompute(
        self,
        root_id: str,
        period: str,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Dict[str, NodeValue]:
        """
        Run a full cascade for root_id and period.

        Raises:
            CascadeRunException: inputs could not be read; nothing committed.
            CascadeCancelledException: run was cancelled; nothing committed.
        """
        result = await self.run(root_id, period, cancel_token)
        return result.values

    async def run(
        self,
        root_id: str,
        period: str,
        cancel_token: Optional[CancellationToken] = None,
    ) -> CascadeResult:
        """Like recompute(), returning the full run result with committed snapshots."""
        result = await self.orchestrator.run(root_id, period, cancel_token)
        if result.failed_nodes:
            logger.warning(
                f"[{root_id}@{period}] {len(result.failed_nodes)} node(s) NOT_SET by configuration errors: "
                f"{', '.join(result.failed_nodes)}"
            )
        return result

    async def get_snapshot(self, node_id: str, period: str) -> Snapshot:
        """Current snapshot; SnapshotNotFoundException if never computed."""
        return await self.recorder.get_snapshot(node_id, period)

    async def get_history(self, node_id: str, period: str) -> List[Snapshot]:
        return await self.recorder.get_history(node_id, period)

    async def handle_event(self, event: RecomputeEvent) -> List[CascadeResult]:
        return await self.dispatcher.handle(event)
