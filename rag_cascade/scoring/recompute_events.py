"""
Recompute Events
rag_cascade/scoring/recompute_events.py

Data changes arrive as events. The dispatcher coalesces them per
(root, node, period) and recomputes only the affected node-to-root path.
"""

from dataclasses import dataclass
from typing import Dict, List, Tuple, Union

import structlog

from rag_cascade.scoring.cascade_orchestrator import CascadeOrchestrator, CascadeResult

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ScoreChangedEvent:
    """A raw score for an indicator was submitted, replaced or removed."""
    root_id: str
    indicator_id: str
    period: str

    @property
    def node_id(self) -> str:
        return self.indicator_id


@dataclass(frozen=True)
class ConfigChangedEvent:
    """A node's formula, an indicator's bands or its links changed."""
    root_id: str
    node_id: str
    period: str


RecomputeEvent = Union[ScoreChangedEvent, ConfigChangedEvent]


class RecomputeDispatcher:
    """Queues recompute events and replays them as path recomputes."""

    def __init__(self, orchestrator: CascadeOrchestrator):
        self.orchestrator = orchestrator
        self._pending: Dict[Tuple[str, str, str], RecomputeEvent] = {}

    def submit(self, event: RecomputeEvent) -> None:
        key = (event.root_id, event.node_id, event.period)
        if key in self._pending:
            logger.debug("recompute_event_coalesced", root_id=key[0], node_id=key[1], period=key[2])
        self._pending[key] = event

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> List[CascadeResult]:
        """Recompute every pending path, in a stable order."""
        results: List[CascadeResult] = []
        while self._pending:
            key = min(self._pending)
            event = self._pending.pop(key)
            results.append(
                await self.orchestrator.recompute_path(event.root_id, event.node_id, event.period)
            )
        return results

    async def handle(self, event: RecomputeEvent) -> List[CascadeResult]:
        """Submit one event and drain the queue, including anything already pending."""
        self.submit(event)
        return await self.drain()
