"""
Post-load consistency checks.

``validate`` scans the whole catalog and reports every problem it finds,
so that a broken data set can be diagnosed in one pass. A catalog that
fails validation stays loaded but refuses numerical queries.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence, Tuple

import numpy as np

from atomix.atomic.structures import SourceRef
from atomix.core.logging_config import get_logger

if TYPE_CHECKING:
    from atomix.atomic.catalog import Catalog

logger = get_logger("atomic.validation")

# Relative tolerance when comparing a threshold with the first sample
THRESHOLD_RTOL = 1e-6


@dataclass(frozen=True)
class ConsistencyError:
    """
    One consistency problem found in a loaded catalog.

    Attributes
    ----------
    table : str
        Table holding the offending record ('ions', 'photo', 'inner',
        'collisions', or the name of a sort index)
    index : int
        Position of the record in its table
    message : str
        Description of the problem
    source : SourceRef, optional
        Where the record was read from
    """

    table: str
    index: int
    message: str
    source: Optional[SourceRef] = None

    def __str__(self) -> str:
        where = f"{self.source}: " if self.source is not None else ""
        return f"{where}{self.table}[{self.index}]: {self.message}"


@dataclass(frozen=True)
class ValidationReport:
    """Result of ``validate``: an empty error list means the catalog is usable."""

    errors: Tuple[ConsistencyError, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.errors

    def __len__(self) -> int:
        return len(self.errors)

    def for_table(self, table: str) -> List[ConsistencyError]:
        return [e for e in self.errors if e.table == table]


def check_samples(
    xs: np.ndarray, ys: np.ndarray, threshold: Optional[float] = None
) -> List[str]:
    """
    Check one tabulated cross section or collision strength.

    Parameters
    ----------
    xs : array
        Abscissae, which must be strictly increasing
    ys : array
        Values, same length as ``xs`` and non-negative
    threshold : float, optional
        If given, must equal ``xs[0]``

    Returns
    -------
    List[str]
        Problems found, empty if the table is consistent
    """
    problems = []
    if xs.size != ys.size:
        problems.append(f"{xs.size} abscissae but {ys.size} values")
    if xs.size < 2:
        problems.append(f"only {xs.size} sample(s), need at least 2")

    if xs.size >= 2:
        bad = np.nonzero(np.diff(xs) <= 0.0)[0]
        if bad.size:
            positions = ", ".join(str(int(i) + 1) for i in bad)
            problems.append(f"abscissae not strictly increasing at sample(s) {positions}")

    if ys.size and np.any(ys < 0.0):
        problems.append("negative values")

    if threshold is not None and xs.size:
        if not np.isclose(threshold, xs[0], rtol=THRESHOLD_RTOL, atol=0.0):
            problems.append(f"threshold {threshold:.6e} differs from first sample {xs[0]:.6e}")

    return problems


def _check_ions(catalog: "Catalog") -> List[ConsistencyError]:
    errors = []
    for i, ion in enumerate(catalog.ions):
        if ion.n_levels <= 0:
            errors.append(
                ConsistencyError("ions", i, f"ion z={ion.z} stage={ion.stage} has no levels", ion.source)
            )
            continue
        foreign = [j for j in ion.level_range if catalog.levels[j].ion != i]
        if foreign:
            errors.append(
                ConsistencyError(
                    "ions",
                    i,
                    f"levels of ion z={ion.z} stage={ion.stage} are not contiguous "
                    f"({len(foreign)} foreign level(s) inside its range)",
                    ion.source,
                )
            )
    return errors


def _check_edges(table: str, edges: Sequence) -> List[ConsistencyError]:
    errors = []
    for i, edge in enumerate(edges):
        for problem in check_samples(edge.frequencies, edge.cross_sections, edge.threshold):
            errors.append(ConsistencyError(table, i, problem, edge.source))
    return errors


def _check_collisions(catalog: "Catalog") -> List[ConsistencyError]:
    errors = []
    first_table: Dict[int, int] = {}
    for i, coll in enumerate(catalog.collisions):
        problems = check_samples(coll.energies, coll.upsilons)
        if coll.energies.size and coll.energies[0] <= 0.0:
            problems.append("scaled energies must be positive")
        if coll.line in first_table:
            problems.append(
                f"line {coll.line} already has collision table {first_table[coll.line]}"
            )
        else:
            first_table[coll.line] = i
        for problem in problems:
            errors.append(ConsistencyError("collisions", i, problem, coll.source))
    return errors


def _check_indices(catalog: "Catalog") -> List[ConsistencyError]:
    errors = []
    for name, index, table in (
        ("line_index", catalog.line_index, catalog.lines),
        ("photo_index", catalog.photo_index, catalog.photo_edges),
        ("inner_index", catalog.inner_index, catalog.inner_edges),
    ):
        if len(index) != len(table) or not index.is_permutation():
            errors.append(ConsistencyError(name, 0, "sort index is not a permutation of its table"))
    return errors


def validate(catalog: "Catalog") -> ValidationReport:
    """
    Check every table of ``catalog`` and collect all problems.

    Parameters
    ----------
    catalog : Catalog
        Loaded catalog

    Returns
    -------
    ValidationReport
        Every consistency error found, in table order
    """
    errors: List[ConsistencyError] = []
    errors.extend(_check_ions(catalog))
    errors.extend(_check_edges("photo", catalog.photo_edges))
    errors.extend(_check_edges("inner", catalog.inner_edges))
    errors.extend(_check_collisions(catalog))
    errors.extend(_check_indices(catalog))

    if errors:
        logger.info(f"Validation found {len(errors)} problem(s)")
        for error in errors:
            logger.debug(str(error))
    else:
        logger.debug("Validation passed")

    return ValidationReport(tuple(errors))
