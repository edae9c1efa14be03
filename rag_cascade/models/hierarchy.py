"""
Hierarchy Model - OKR RAG Cascade Engine
rag_cascade/models/hierarchy.py

Business Outcome -> Org Objective -> Department -> Functional Objective
-> Key Result -> Indicator.

Each node owns an ordered list of child ids; the parent is a looked-up
back-reference used only for traversal.
"""

from typing import Dict, Iterable, Iterator, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from rag_cascade.core.exceptions import EntityNotFoundException, HierarchyException
from rag_cascade.models.enumerations import NodeKind


class HierarchyNode(BaseModel):
    """One node of the OKR tree."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Unique node identifier")
    kind: NodeKind = Field(..., description="Level of the node in the hierarchy")
    name: Optional[str] = Field(default=None, description="Display name")
    parent_id: Optional[str] = Field(default=None, description="Parent node id (absent for the root)")
    children: List[str] = Field(default_factory=list, description="Ordered child node ids")

    @field_validator("children")
    @classmethod
    def validate_unique_children(cls, v: List[str]) -> List[str]:
        if len(set(v)) != len(v):
            raise ValueError("children must not repeat a node id")
        return v


class Hierarchy:
    """
    Validated, read-only view of one OKR tree.

    Construction rejects anything that is not a tree: duplicate ids, dangling
    child references, nodes with two parents, parent_id disagreeing with the
    edges, more or fewer than one root, cycles, and children whose kind does
    not match the level ladder.
    """

    def __init__(self, nodes: Iterable[HierarchyNode]):
        self._nodes: Dict[str, HierarchyNode] = {}
        for node in nodes:
            if node.id in self._nodes:
                raise HierarchyException(f"Duplicate node id {node.id}")
            self._nodes[node.id] = node

        self._parents: Dict[str, str] = {}
        for node in self._nodes.values():
            if node.kind.is_leaf and node.children:
                raise HierarchyException(f"Indicator {node.id} cannot have children")
            for child_id in node.children:
                child = self._nodes.get(child_id)
                if child is None:
                    raise HierarchyException(f"Node {node.id} references unknown child {child_id}")
                if child_id in self._parents:
                    raise HierarchyException(
                        f"Node {child_id} has two parents: {self._parents[child_id]} and {node.id}"
                    )
                if child.kind is not node.kind.child_kind:
                    raise HierarchyException(
                        f"Node {child_id} of kind {child.kind.value} cannot be a child of "
                        f"{node.kind.value} {node.id}"
                    )
                self._parents[child_id] = node.id

        for node in self._nodes.values():
            if node.parent_id is not None and self._parents.get(node.id) != node.parent_id:
                raise HierarchyException(
                    f"Node {node.id} declares parent {node.parent_id} but is not listed among its children"
                )

        roots = [node_id for node_id in self._nodes if node_id not in self._parents]
        if len(roots) != 1:
            raise HierarchyException(f"Hierarchy must have exactly one root, found {len(roots)}")
        self.root_id = roots[0]

        # Every node must be reachable from the root; anything left over sits on a cycle.
        reachable = sum(1 for _ in self._walk_pre_order(self.root_id))
        if reachable != len(self._nodes):
            raise HierarchyException("Hierarchy contains a cycle")

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    @property
    def root(self) -> HierarchyNode:
        return self._nodes[self.root_id]

    def get(self, node_id: str) -> HierarchyNode:
        node = self._nodes.get(node_id)
        if node is None:
            raise EntityNotFoundException("HierarchyNode", node_id)
        return node

    def parent_of(self, node_id: str) -> Optional[HierarchyNode]:
        self.get(node_id)
        parent_id = self._parents.get(node_id)
        return self._nodes[parent_id] if parent_id else None

    def children_of(self, node_id: str) -> List[HierarchyNode]:
        return [self._nodes[c] for c in self.get(node_id).children]

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def _walk_pre_order(self, node_id: str) -> Iterator[str]:
        stack = [node_id]
        seen = set()
        while stack:
            current = stack.pop()
            if current in seen:
                continue
            seen.add(current)
            yield current
            stack.extend(reversed(self._nodes[current].children))

    def post_order(self, node_id: Optional[str] = None) -> List[HierarchyNode]:
        """Nodes of the subtree at node_id, every child before its parent."""
        start = node_id or self.root_id
        self.get(start)
        order: List[HierarchyNode] = []
        stack = [(start, False)]
        while stack:
            current, expanded = stack.pop()
            if expanded:
                order.append(self._nodes[current])
                continue
            stack.append((current, True))
            for child_id in reversed(self._nodes[current].children):
                stack.append((child_id, False))
        return order

    def subtree(self, node_id: str) -> List[str]:
        """Ids of node_id and all its descendants (pre-order)."""
        self.get(node_id)
        return list(self._walk_pre_order(node_id))

    def path_to_root(self, node_id: str) -> List[str]:
        """Ids from node_id up to and including the root."""
        self.get(node_id)
        path = [node_id]
        while path[-1] in self._parents:
            path.append(self._parents[path[-1]])
        return path

    def indicators(self, node_id: Optional[str] = None) -> List[HierarchyNode]:
        return [n for n in self.post_order(node_id) if n.kind.is_leaf]
