"""Domain errors raised by the catalog core"""

from typing import Any, Dict, Optional


class CatalogError(Exception):
    """Base class for catalog domain errors"""

    error_type = "catalog_error"
    status_code = 409

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class StructuralViolation(CatalogError):
    """A tree or ownership change that would break the catalog structure.

    Raised for cycles, for deletion of entities that still have dependents and
    for action assignments that clash with the ancestor/descendant chain.
    Never auto-corrected.
    """

    error_type = "structural_violation"


class ConfigurationConflict(CatalogError):
    """An exclusion or settings edit that conflicts with the current setup."""

    error_type = "configuration_conflict"


class ConsistencyDrift(CatalogError):
    """Stored nested-set bounds disagree with the parent pointers."""

    error_type = "consistency_drift"


class CategoryNotFound(CatalogError):
    """A referenced category (e.g. a new parent) does not exist."""

    error_type = "not_found"
    status_code = 404
