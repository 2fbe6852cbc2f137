"""
Core utilities shared by the atomic data modules.

This module provides:
- Physical constants
- Units and unit conversion
- Configuration and logging
- Error kinds
- Bracket search and interpolation
- Indirect sort indices
"""

from atomix.core import constants
from atomix.core import units
from atomix.core import config
from atomix.core import logging_config
from atomix.core.exceptions import (
    AtomixError,
    LoadError,
    MalformedRecord,
    BrokenReference,
    LoadIoFailure,
    LoadCancelled,
    QueryError,
    InsufficientSamples,
    InvalidRange,
    OutOfRange,
    CatalogInvalid,
)
from atomix.core.interpolation import LINEAR, LOG, locate, interpolate
from atomix.core.indexing import QueryWindow, SortIndex, build_index

__all__ = [
    # Modules
    "constants",
    "units",
    "config",
    "logging_config",
    # Errors
    "AtomixError",
    "LoadError",
    "MalformedRecord",
    "BrokenReference",
    "LoadIoFailure",
    "LoadCancelled",
    "QueryError",
    "InsufficientSamples",
    "InvalidRange",
    "OutOfRange",
    "CatalogInvalid",
    # Interpolation
    "LINEAR",
    "LOG",
    "locate",
    "interpolate",
    # Indexing
    "QueryWindow",
    "SortIndex",
    "build_index",
]
