from enum import Enum
from typing import Optional, Tuple

from rag_cascade.core.exceptions import FormulaConfigurationException


class NodeKind(str, Enum):
    BUSINESS_OUTCOME = "business_outcome"
    ORG_OBJECTIVE = "org_objective"
    DEPARTMENT = "department"
    FUNCTIONAL_OBJECTIVE = "functional_objective"
    KEY_RESULT = "key_result"
    INDICATOR = "indicator"          # KPI, the only leaf kind

    @property
    def child_kind(self) -> Optional["NodeKind"]:
        """Kind every child of this node must have (None for leaves)."""
        return _CHILD_KIND[self]

    @property
    def is_leaf(self) -> bool:
        return self is NodeKind.INDICATOR


_CHILD_KIND = {
    NodeKind.BUSINESS_OUTCOME: NodeKind.ORG_OBJECTIVE,
    NodeKind.ORG_OBJECTIVE: NodeKind.DEPARTMENT,
    NodeKind.DEPARTMENT: NodeKind.FUNCTIONAL_OBJECTIVE,
    NodeKind.FUNCTIONAL_OBJECTIVE: NodeKind.KEY_RESULT,
    NodeKind.KEY_RESULT: NodeKind.INDICATOR,
    NodeKind.INDICATOR: None,
}


class RAGStatus(str, Enum):
    GREEN = "green"        # On Track
    AMBER = "amber"        # At Risk
    RED = "red"            # Critical
    NOT_SET = "not_set"    # No data

    @property
    def label(self) -> str:
        return _RAG_LABELS[self]


_RAG_LABELS = {
    RAGStatus.GREEN: "On Track",
    RAGStatus.AMBER: "At Risk",
    RAGStatus.RED: "Critical",
    RAGStatus.NOT_SET: "Not Set",
}


class FormulaType(str, Enum):
    AVG = "AVG"
    SUM = "SUM"
    MIN = "MIN"
    MAX = "MAX"
    WEIGHTED_AVG = "WEIGHTED_AVG"

    @classmethod
    def parse(cls, name: Optional[str], node_id: Optional[str] = None) -> "FormulaType":
        """
        Resolve a configured formula name.

        Absent or blank names default to AVG. Case, surrounding whitespace and
        "WEIGHTED AVG" / "weighted-avg" spellings are accepted; any other name
        raises FormulaConfigurationException.
        """
        formula, _ = cls.resolve(name, node_id)
        return formula

    @classmethod
    def resolve(cls, name: Optional[str], node_id: Optional[str] = None) -> Tuple["FormulaType", bool]:
        """Like parse(), also reporting whether the default was applied."""
        if name is None or not str(name).strip():
            return cls.AVG, True
        normalized = "_".join(str(name).upper().replace("-", " ").split())
        try:
            return cls(normalized), False
        except ValueError:
            raise FormulaConfigurationException(name, node_id=node_id) from None


class RejectionReason(str, Enum):
    UNKNOWN_BAND = "unknown_band"
    MALFORMED_SCORE = "malformed_score"
