"""
Custom Exceptions - OKR RAG Cascade Engine
rag_cascade/core/exceptions.py

Exception taxonomy for the cascade. Validation and configuration failures are
recovered at score or node scope and surfaced as annotations; only store and
run-level failures reach the caller.
"""

from typing import Optional


class CascadeException(Exception):
    """Base exception for cascade engine operations."""

    pass


# ---------------------------------------------------------------------------
# Validation (isolated to a single score)
# ---------------------------------------------------------------------------

class ValidationException(CascadeException):
    """A single raw score could not be accepted."""

    pass


class BandValidationException(ValidationException):
    """Score references a band label the indicator does not define."""

    def __init__(self, indicator_id: str, band_label: str):
        self.indicator_id = indicator_id
        self.band_label = band_label
        super().__init__(f"Unknown band label '{band_label}' for indicator {indicator_id}")


class MalformedScoreException(ValidationException):
    """Score is structurally unusable (blank label, wrong indicator or period)."""

    def __init__(self, message: str = "Malformed score"):
        self.message = message
        super().__init__(message)


# ---------------------------------------------------------------------------
# Configuration (isolated to a single node)
# ---------------------------------------------------------------------------

class ConfigurationException(CascadeException):
    """Node configuration cannot be evaluated."""

    pass


class FormulaConfigurationException(ConfigurationException):
    """Unsupported formula name, or a formula attached where none is allowed."""

    def __init__(self, formula: Optional[str], node_id: Optional[str] = None, reason: str = ""):
        self.formula = formula
        self.node_id = node_id
        message = f"Unsupported formula '{formula}'"
        if node_id:
            message += f" on node {node_id}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class BandConfigurationException(ConfigurationException):
    """Band definitions for an indicator are inconsistent."""

    def __init__(self, indicator_id: str, message: str):
        self.indicator_id = indicator_id
        self.message = message
        super().__init__(f"Invalid band configuration for indicator {indicator_id}: {message}")


# ---------------------------------------------------------------------------
# Structure
# ---------------------------------------------------------------------------

class HierarchyException(CascadeException):
    """Hierarchy is not a well-formed tree."""

    def __init__(self, message: str = "Invalid hierarchy"):
        self.message = message
        super().__init__(message)


class EntityNotFoundException(CascadeException):
    """Entity not found in the store."""

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} with ID {entity_id} not found")


class SnapshotNotFoundException(EntityNotFoundException):
    """No snapshot has been committed for (node, period)."""

    def __init__(self, node_id: str, period: str):
        self.node_id = node_id
        self.period = period
        super().__init__("Snapshot", f"{node_id}@{period}")


# ---------------------------------------------------------------------------
# Run level (fatal to one cascade run)
# ---------------------------------------------------------------------------

class StoreUnavailableException(CascadeException):
    """Score/link/config store could not be read."""

    def __init__(self, message: str = "Store unavailable"):
        self.message = message
        super().__init__(message)


class CascadeRunException(CascadeException):
    """A cascade run failed as a whole; nothing was committed."""

    def __init__(self, run_id: str, root_id: str, period: str, cause: Exception):
        self.run_id = run_id
        self.root_id = root_id
        self.period = period
        self.cause = cause
        super().__init__(
            f"Cascade run {run_id} for {root_id}@{period} failed: {cause}"
        )


class CascadeCancelledException(CascadeException):
    """A cascade run was cancelled; its staged snapshots were discarded."""

    def __init__(self, run_id: str, root_id: str, period: str):
        self.run_id = run_id
        self.root_id = root_id
        self.period = period
        super().__init__(f"Cascade run {run_id} for {root_id}@{period} was cancelled")
