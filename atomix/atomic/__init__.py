"""
Atomic data structures, parsers and the catalog loader.

This module provides:
- Element, ion, level, line and cross-section records
- Parsers for the plain-text data files
- The master file loader and its linking pass
- Consistency checks and derived quantities
"""

from atomix.atomic.structures import (
    Element,
    Ion,
    Level,
    Line,
    PhotoionizationEdge,
    InnerShellEdge,
    CollisionStrength,
)
from atomix.atomic.catalog import Catalog
from atomix.atomic.loader import CatalogHandle, load
from atomix.atomic.validation import ConsistencyError, ValidationReport, validate
from atomix.atomic.derived import einstein_a, upsilon

__all__ = [
    "Element",
    "Ion",
    "Level",
    "Line",
    "PhotoionizationEdge",
    "InnerShellEdge",
    "CollisionStrength",
    "Catalog",
    "CatalogHandle",
    "load",
    "ConsistencyError",
    "ValidationReport",
    "validate",
    "einstein_a",
    "upsilon",
]
