"""
Cascade Orchestrator
rag_cascade/scoring/cascade_orchestrator.py

Recomputes every node of a hierarchy for one period, leaves first.

Pipeline per node:
    Indicator      bands + links + scores -> CustomerAggregator
                   -> IndicatorEvaluator -> RAG classify -> NodeValue
    Internal node  children's values + active formula -> FormulaEvaluator
                   -> RAG classify -> NodeValue

Scheduling:
    Dependency counting. Every leaf is ready at start; a node becomes ready
    when its last child completes. Ready nodes are taken by a bounded pool of
    asyncio workers. Store reads are the only await points.

Failure policy:
    ConfigurationException (or arithmetic failure) at a node -> that node is
    NOT_SET with an error annotation; its parent sees a null child.
    Store failure (StoreUnavailableException or any OSError such as
    ConnectionError) or invalid tree -> CascadeRunException, nothing committed.
    Cancellation (token or task cancel) -> CascadeCancelledException or
    CancelledError re-raised, nothing committed.

All NodeValues of a run are committed in one batch at the end.
"""

import asyncio
import threading
import uuid
from decimal import Decimal
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Set, Tuple

import structlog

from rag_cascade.config import Settings, get_settings
from rag_cascade.core.exceptions import (
    CascadeCancelledException,
    CascadeRunException,
    ConfigurationException,
    EntityNotFoundException,
    FormulaConfigurationException,
    HierarchyException,
    StoreUnavailableException,
)
from rag_cascade.models.enumerations import FormulaType, RAGStatus
from rag_cascade.models.hierarchy import Hierarchy, HierarchyNode
from rag_cascade.models.scoring import FormulaConfiguration
from rag_cascade.models.snapshot import NodeValue, Snapshot
from rag_cascade.repositories.base import ScoreStore
from rag_cascade.scoring.band_registry import BandRegistry
from rag_cascade.scoring.customer_aggregator import CustomerAggregator
from rag_cascade.scoring.formula_evaluator import FormulaEvaluator
from rag_cascade.scoring.indicator_evaluator import IndicatorEvaluator
from rag_cascade.scoring.rag_classifier import RAGClassifier
from rag_cascade.scoring.snapshot_recorder import (
    SnapshotBatch,
    SnapshotRecorder,
    explain_error,
    explain_formula,
    explain_indicator,
)

logger = structlog.get_logger(__name__)


class CancellationToken:
    """Cooperative cancellation flag for one cascade run; safe to set from any thread."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass
class CascadeResult:
    """Output of CascadeOrchestrator.run() / recompute_path()."""
    run_id: str
    root_id: str
    period: str
    values: Dict[str, NodeValue] = field(default_factory=dict)
    snapshots: List[Snapshot] = field(default_factory=list)

    @property
    def failed_nodes(self) -> List[str]:
        return sorted(node_id for node_id, v in self.values.items() if v.has_error)


@dataclass
class _Plan:
    """Which nodes a run evaluates, and the committed values it may reuse."""
    targets: Set[str]
    reused: Dict[str, Optional[NodeValue]] = field(default_factory=dict)


class CascadeOrchestrator:
    """Bottom-up RAG cascade over one hierarchy and period."""

    def __init__(
        self,
        store: ScoreStore,
        recorder: SnapshotRecorder,
        settings: Optional[Settings] = None,
        max_concurrency: Optional[int] = None,
    ):
        settings = settings or get_settings()
        self.store = store
        self.recorder = recorder
        self.max_concurrency = max_concurrency or settings.CASCADE_MAX_CONCURRENCY
        self.use_default_bands = settings.USE_DEFAULT_BANDS

        self.customer_aggregator = CustomerAggregator()
        self.indicator_evaluator = IndicatorEvaluator(places=settings.VALUE_DECIMAL_PLACES)
        self.formula_evaluator = FormulaEvaluator(places=settings.VALUE_DECIMAL_PLACES)
        self.classifier = RAGClassifier()

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def run(
        self,
        root_id: str,
        period: str,
        cancel_token: Optional[CancellationToken] = None,
    ) -> CascadeResult:
        """Recompute every node under root_id for period."""

        async def plan(hierarchy: Hierarchy) -> _Plan:
            return _Plan(targets=set(hierarchy.subtree(hierarchy.root_id)))

        return await self._execute(root_id, period, plan, cancel_token, mode="full")

    async def recompute_path(
        self,
        root_id: str,
        node_id: str,
        period: str,
        cancel_token: Optional[CancellationToken] = None,
    ) -> CascadeResult:
        """
        Recompute node_id and its ancestors up to root_id.

        Off-path children reuse their current committed snapshot. A child that
        has never been computed for the period is evaluated with its whole
        subtree.
        """

        async def plan(hierarchy: Hierarchy) -> _Plan:
            path = hierarchy.path_to_root(node_id)
            targets: Set[str] = set(path)
            reused: Dict[str, Optional[NodeValue]] = {}
            for path_node_id in path:
                for child in hierarchy.children_of(path_node_id):
                    if child.id in targets:
                        continue
                    snapshot = await self.recorder.find_snapshot(child.id, period)
                    if snapshot is None:
                        targets.update(hierarchy.subtree(child.id))
                    else:
                        reused[child.id] = snapshot.node_value
            return _Plan(targets=targets, reused=reused)

        return await self._execute(root_id, period, plan, cancel_token, mode="path")

    # ------------------------------------------------------------------
    # Run lifecycle
    # ------------------------------------------------------------------

    async def _execute(self, root_id, period, plan_fn, cancel_token, mode: str) -> CascadeResult:
        token = cancel_token or CancellationToken()
        run_id = str(uuid.uuid4())
        batch = SnapshotBatch(run_id, datetime.now(timezone.utc))
        log = logger.bind(run_id=run_id, root_id=root_id, period=period, mode=mode)
        log.info("cascade_started")

        committed = False
        try:
            hierarchy = await self.store.get_hierarchy(root_id)
            plan = await plan_fn(hierarchy)
            await self._schedule(hierarchy, period, plan, batch, token)
            self._check_cancelled(token, run_id, root_id, period)
            snapshots = await self.recorder.commit(batch)
            committed = True
        except CascadeCancelledException:
            log.warning("cascade_cancelled", staged=len(batch))
            raise
        except asyncio.CancelledError:
            log.warning("cascade_cancelled", staged=len(batch))
            raise
        except (StoreUnavailableException, OSError, HierarchyException, EntityNotFoundException) as e:
            log.error("cascade_failed", error=str(e), error_type=type(e).__name__)
            raise CascadeRunException(run_id, root_id, period, e) from e
        finally:
            if not committed:
                batch.discard()

        result = CascadeResult(
            run_id=run_id,
            root_id=root_id,
            period=period,
            values=batch.values,
            snapshots=snapshots,
        )
        log.info(
            "cascade_completed",
            nodes=len(result.values),
            failed_nodes=result.failed_nodes,
            root_status=result.values[root_id].status.value if root_id in result.values else None,
        )
        return result

    @staticmethod
    def _check_cancelled(token: CancellationToken, run_id: str, root_id: str, period: str) -> None:
        if token.cancelled:
            raise CascadeCancelledException(run_id, root_id, period)

    # ------------------------------------------------------------------
    # Scheduler
    # ------------------------------------------------------------------

    async def _schedule(
        self,
        hierarchy: Hierarchy,
        period: str,
        plan: _Plan,
        batch: SnapshotBatch,
        token: CancellationToken,
    ) -> None:
        targets = plan.targets
        remaining: Dict[str, int] = {
            node_id: sum(1 for c in hierarchy.get(node_id).children if c in targets)
            for node_id in targets
        }
        ready: asyncio.Queue = asyncio.Queue()
        # Deterministic start order: leaves in post-order.
        for node in hierarchy.post_order():
            if node.id in targets and remaining[node.id] == 0:
                ready.put_nowait(node.id)

        worker_count = max(1, min(self.max_concurrency, len(targets)))
        completed = 0

        async def worker() -> None:
            nonlocal completed
            while True:
                node_id = await ready.get()
                if node_id is None:
                    return
                self._check_cancelled(token, batch.run_id, hierarchy.root_id, period)

                node = hierarchy.get(node_id)
                child_values = {
                    c: batch.get(c) if c in targets else plan.reused.get(c)
                    for c in node.children
                }
                node_value = await self._evaluate_node(node, period, child_values)
                batch.stage(node_value)

                parent = hierarchy.parent_of(node_id)
                if parent is not None and parent.id in targets:
                    remaining[parent.id] -= 1
                    if remaining[parent.id] == 0:
                        ready.put_nowait(parent.id)

                completed += 1
                if completed == len(targets):
                    for _ in range(worker_count):
                        ready.put_nowait(None)

        tasks = [asyncio.create_task(worker()) for _ in range(worker_count)]
        try:
            await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    # ------------------------------------------------------------------
    # Node evaluation
    # ------------------------------------------------------------------

    async def _evaluate_node(
        self,
        node: HierarchyNode,
        period: str,
        child_values: Dict[str, Optional[NodeValue]],
    ) -> NodeValue:
        config = await self.store.get_active_formula(node.id)
        if node.kind.is_leaf:
            return await self._evaluate_indicator(node, period, config)
        return self._evaluate_aggregate(node, period, config, child_values)

    async def _evaluate_indicator(
        self,
        node: HierarchyNode,
        period: str,
        config: Optional[FormulaConfiguration],
    ) -> NodeValue:
        try:
            if config is not None and (config.formula or config.weights):
                raise FormulaConfigurationException(
                    config.formula,
                    node_id=node.id,
                    reason="aggregation formulas apply to non-leaf nodes only",
                )
            bands, links, scores = await asyncio.gather(
                self.store.get_bands(node.id),
                self.store.get_links(node.id, period),
                self.store.get_scores(node.id, period),
            )
            registry = BandRegistry.for_indicator(node.id, bands, self.use_default_bands)
            aggregation = self.customer_aggregator.aggregate(node.id, period, registry, links, scores)
            result = self.indicator_evaluator.evaluate(aggregation)
        except ConfigurationException as e:
            return self._failed_value(node, period, e, config, inputs=[])

        return NodeValue(
            node_id=node.id,
            node_kind=node.kind,
            period=period,
            value=result.value,
            status=self.classifier.classify(result.value),
            threshold_version=self.classifier.threshold_version,
            inputs=[(row.child_id, row.value) for row in result.breakdown],
            explainability=explain_indicator(result),
        )

    def _evaluate_aggregate(
        self,
        node: HierarchyNode,
        period: str,
        config: Optional[FormulaConfiguration],
        child_values: Dict[str, Optional[NodeValue]],
    ) -> NodeValue:
        inputs: List[Tuple[str, Optional[Decimal]]] = [
            (child_id, child_values[child_id].value if child_values.get(child_id) is not None else None)
            for child_id in node.children
        ]
        try:
            formula = FormulaType.parse(config.formula if config else None, node_id=node.id)
            result = self.formula_evaluator.evaluate(
                formula, inputs, config.weights if config else None
            )
        except (ConfigurationException, ArithmeticError) as e:
            return self._failed_value(node, period, e, config, inputs=inputs)

        return NodeValue(
            node_id=node.id,
            node_kind=node.kind,
            period=period,
            value=result.value,
            status=self.classifier.classify(result.value),
            formula=formula,
            formula_version=config.version if config else None,
            threshold_version=self.classifier.threshold_version,
            inputs=inputs,
            explainability=explain_formula(result),
        )

    def _failed_value(
        self,
        node: HierarchyNode,
        period: str,
        error: Exception,
        config: Optional[FormulaConfiguration],
        inputs: List[Tuple[str, Optional[Decimal]]],
    ) -> NodeValue:
        logger.warning(
            "cascade_node_failed",
            node_id=node.id,
            node_kind=node.kind.value,
            period=period,
            error=str(error),
            error_type=type(error).__name__,
        )
        return NodeValue(
            node_id=node.id,
            node_kind=node.kind,
            period=period,
            value=None,
            status=RAGStatus.NOT_SET,
            formula_version=config.version if config else None,
            threshold_version=self.classifier.threshold_version,
            inputs=inputs,
            explainability=explain_error(str(error)),
            error=str(error),
        )
