"""
In-Memory Repositories - OKR RAG Cascade Engine
rag_cascade/repositories/memory.py

Process-local implementations of ScoreStore and SnapshotStore, used by tests
and by applications that load their inputs up front.
"""

import logging
import threading
from collections import defaultdict
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from rag_cascade.core.exceptions import EntityNotFoundException
from rag_cascade.models.hierarchy import Hierarchy, HierarchyNode
from rag_cascade.models.scoring import BandDefinition, FormulaConfiguration, IndicatorLink, RawScore
from rag_cascade.models.snapshot import NodeValue, Snapshot
from rag_cascade.repositories.base import ScoreStore, SnapshotStore

logger = logging.getLogger(__name__)


class InMemoryScoreStore(ScoreStore):
    """Inputs held in dictionaries; writers are the external collaborators."""

    def __init__(self):
        self._nodes: Dict[str, HierarchyNode] = {}
        self._bands: Dict[str, List[BandDefinition]] = defaultdict(list)
        self._links: Dict[Tuple[str, str], List[IndicatorLink]] = defaultdict(list)
        self._scores: Dict[Tuple[str, str, str, str], RawScore] = {}
        self._formulas: Dict[str, Dict[int, FormulaConfiguration]] = defaultdict(dict)
        self._active_formula: Dict[str, int] = {}

    # ------------------------------------------------------------------
    # Writes (external collaborators)
    # ------------------------------------------------------------------

    def add_nodes(self, nodes: Iterable[HierarchyNode]) -> None:
        for node in nodes:
            self._nodes[node.id] = node

    def set_bands(self, indicator_id: str, bands: Iterable[BandDefinition]) -> None:
        self._bands[indicator_id] = list(bands)

    def add_links(self, links: Iterable[IndicatorLink]) -> None:
        for link in links:
            bucket = self._links[(link.indicator_id, link.period)]
            if link not in bucket:
                bucket.append(link)

    def upsert_score(self, score: RawScore) -> Optional[RawScore]:
        """Store a score, replacing any prior score for the same key. Returns the replaced one."""
        previous = self._scores.get(score.key)
        self._scores[score.key] = score
        return previous

    def upsert_scores(self, scores: Iterable[RawScore]) -> None:
        for score in scores:
            self.upsert_score(score)

    def delete_score(self, key: Tuple[str, str, str, str]) -> None:
        self._scores.pop(key, None)

    def put_formula(self, config: FormulaConfiguration, activate: bool = True) -> FormulaConfiguration:
        """Store a formula configuration version, optionally making it active."""
        self._formulas[config.node_id][config.version] = config
        if activate:
            self._active_formula[config.node_id] = config.version
        return config

    def activate_formula(self, node_id: str, version: int) -> None:
        if version not in self._formulas.get(node_id, {}):
            raise EntityNotFoundException("FormulaConfiguration", f"{node_id}@v{version}")
        self._active_formula[node_id] = version

    def clear_formula(self, node_id: str) -> None:
        self._active_formula.pop(node_id, None)

    # ------------------------------------------------------------------
    # Reads (the engine)
    # ------------------------------------------------------------------

    async def get_hierarchy(self, root_id: str) -> Hierarchy:
        root = self._nodes.get(root_id)
        if root is None:
            raise EntityNotFoundException("HierarchyNode", root_id)

        collected: List[HierarchyNode] = []
        stack = [root_id]
        seen = set()
        while stack:
            node_id = stack.pop()
            if node_id in seen:
                continue
            seen.add(node_id)
            node = self._nodes.get(node_id)
            if node is None:
                # Let Hierarchy report the dangling reference.
                continue
            if node_id == root_id and node.parent_id is not None:
                node = node.model_copy(update={"parent_id": None})
            collected.append(node)
            stack.extend(node.children)
        return Hierarchy(collected)

    async def get_bands(self, indicator_id: str) -> List[BandDefinition]:
        return list(self._bands.get(indicator_id, []))

    async def get_links(self, indicator_id: str, period: str) -> List[IndicatorLink]:
        return list(self._links.get((indicator_id, period), []))

    async def get_scores(self, indicator_id: str, period: str) -> List[RawScore]:
        return [
            s for (ind, _, _, p), s in self._scores.items()
            if ind == indicator_id and p == period
        ]

    async def get_active_formula(self, node_id: str) -> Optional[FormulaConfiguration]:
        version = self._active_formula.get(node_id)
        if version is None:
            return None
        return self._formulas[node_id][version]


class InMemorySnapshotStore(SnapshotStore):
    """Append-only snapshot history guarded by a lock so each batch lands atomically."""

    def __init__(self):
        self._lock = threading.Lock()
        self._history: Dict[Tuple[str, str], List[Snapshot]] = defaultdict(list)

    async def append_batch(
        self,
        run_id: str,
        run_started_at: datetime,
        node_values: Sequence[NodeValue],
    ) -> List[Snapshot]:
        recorded_at = datetime.now(timezone.utc)
        with self._lock:
            written: List[Snapshot] = []
            pending: Dict[Tuple[str, str], int] = defaultdict(int)
            for node_value in node_values:
                key = (node_value.node_id, node_value.period)
                pending[key] += 1
                snapshot = Snapshot(
                    node_value=node_value,
                    run_id=run_id,
                    run_started_at=run_started_at,
                    sequence=len(self._history.get(key, ())) + pending[key],
                    recorded_at=recorded_at,
                )
                written.append(snapshot)
            # Build everything first so a validation error leaves the history untouched.
            for snapshot in written:
                self._history[(snapshot.node_id, snapshot.period)].append(snapshot)
        logger.debug("snapshots_appended", extra={"run_id": run_id, "count": len(written)})
        return written

    async def latest(self, node_id: str, period: str) -> Optional[Snapshot]:
        with self._lock:
            history = self._history.get((node_id, period))
            return history[-1] if history else None

    async def history(self, node_id: str, period: str) -> List[Snapshot]:
        with self._lock:
            return list(self._history.get((node_id, period), []))

    async def at_sequence(self, node_id: str, period: str, sequence: int) -> Optional[Snapshot]:
        with self._lock:
            history = self._history.get((node_id, period), [])
            return history[sequence - 1] if 1 <= sequence <= len(history) else None
