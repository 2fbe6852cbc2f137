"""
atomix: indexed, read-only access to multi-file atomic data sets

Loads the plain-text atomic data used by radiative transfer codes
(elements, ions, levels, lines, photoionization and inner-shell cross
sections, collision strengths), links the records into a ``Catalog`` and
serves range queries and interpolation on it.
"""

__version__ = "0.1.0"
__author__ = "atomix developers"

# Core imports for convenience
from atomix.core import constants
from atomix.core import units
from atomix.atomic.catalog import Catalog
from atomix.atomic.loader import CatalogHandle, load

__all__ = [
    "constants",
    "units",
    "Catalog",
    "CatalogHandle",
    "load",
]
