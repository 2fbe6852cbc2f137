"""
Error kinds raised by atomix.

Every exception carries the structured context (file, line, record kind,
missing key, ...) as attributes so callers can render their own messages.
The formatted ``str()`` is a convenience only.
"""

from pathlib import Path
from typing import Any, List, Optional, Sequence, Union

PathLike = Union[str, Path]


class AtomixError(Exception):
    """Base class for all atomix errors."""


# ============================================================================
# Load errors: abort the whole load, nothing partial is published
# ============================================================================


class LoadError(AtomixError):
    """Base class for errors that abort a catalog load."""


class MalformedRecord(LoadError):
    """
    A line could not be decoded as a record of the expected kind.

    Attributes
    ----------
    path : Path or None
        File containing the offending line
    line_number : int
        1-based line number
    kind : str
        Record kind being parsed (e.g. 'levels', 'master')
    reason : str
        What was wrong with the line
    """

    def __init__(
        self, path: Optional[PathLike], line_number: int, kind: str, reason: str
    ):
        self.path = Path(path) if path is not None else None
        self.line_number = line_number
        self.kind = kind
        self.reason = reason
        super().__init__(f"{self.path or '<string>'}:{line_number}: malformed {kind} record: {reason}")


class BrokenReference(LoadError):
    """
    A record refers to a target that does not exist in the loaded tables.

    Attributes
    ----------
    path : Path or None
        File containing the referencing record
    line_number : int
        1-based line number of the referencing record
    kind : str
        Record kind of the referencing record
    target : str
        Name of the table that should contain the key ('element', 'level', ...)
    key : Any
        The key that could not be resolved
    """

    def __init__(
        self, path: Optional[PathLike], line_number: int, kind: str, target: str, key: Any
    ):
        self.path = Path(path) if path is not None else None
        self.line_number = line_number
        self.kind = kind
        self.target = target
        self.key = key
        super().__init__(
            f"{self.path or '<string>'}:{line_number}: {kind} record refers to missing "
            f"{target} {key}"
        )


class LoadIoFailure(LoadError):
    """A master or sub-file could not be found or read."""

    def __init__(self, path: PathLike, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Unable to read {self.path}: {reason}")


class LoadCancelled(LoadError):
    """The load was interrupted through its cancel event."""

    def __init__(self, path: PathLike):
        self.path = Path(path)
        super().__init__(f"Loading of {self.path} was cancelled")


# ============================================================================
# Query errors: local to one call, the catalog is unaffected
# ============================================================================


class QueryError(AtomixError, ValueError):
    """Base class for misuse of an interpolation or range query."""


class InsufficientSamples(QueryError):
    """A sample table is too short (or mismatched) to interpolate on."""

    def __init__(self, n_samples: int, reason: str = "at least 2 samples are required"):
        self.n_samples = n_samples
        super().__init__(f"{reason} (got {n_samples})")


class InvalidRange(QueryError):
    """The lower bound of a range exceeds the upper bound, or is unusable."""

    def __init__(self, lower: float, upper: float, reason: Optional[str] = None):
        self.lower = lower
        self.upper = upper
        super().__init__(reason or f"Invalid range: lower bound {lower} > upper bound {upper}")


class OutOfRange(QueryError):
    """A value lies outside the span of the sorted keys it was looked up in."""

    def __init__(self, value: float, lower: float, upper: float):
        self.value = value
        self.lower = lower
        self.upper = upper
        super().__init__(f"Value {value} outside of tabulated range [{lower}, {upper}]")


# ============================================================================
# Catalog state
# ============================================================================


class CatalogInvalid(AtomixError):
    """A query was attempted against a catalog that failed validation."""

    def __init__(self, errors: Sequence[Any]):
        self.errors: List[Any] = list(errors)
        super().__init__(
            f"Catalog failed validation with {len(self.errors)} error(s); queries are disabled"
        )
