"""
The loaded, read-only atomic data catalog.

A ``Catalog`` owns every table of one master file together with the sort
indices derived from them. Nothing in a catalog changes after it has been
built; reloading means building a new catalog.
"""

from dataclasses import fields
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

import numpy as np
import pandas as pd

from atomix.atomic import derived
from atomix.atomic.structures import (
    CollisionStrength,
    Element,
    InnerShellEdge,
    Ion,
    Level,
    Line,
    PhotoionizationEdge,
)
from atomix.atomic.validation import ValidationReport, validate
from atomix.core.exceptions import CatalogInvalid, InvalidRange
from atomix.core.indexing import QueryWindow, SortIndex, build_index
from atomix.core.interpolation import LOG, interpolate
from atomix.core.logging_config import get_logger
from atomix.core.units import wavelength_to_frequency

logger = get_logger("atomic.catalog")

TABLES = {
    "elements": Element,
    "ions": Ion,
    "levels": Level,
    "lines": Line,
    "photo": PhotoionizationEdge,
    "inner": InnerShellEdge,
    "collisions": CollisionStrength,
}


class Catalog:
    """
    Complete set of atomic data tables loaded from one master file.

    Parameters
    ----------
    elements, ions, levels, lines : iterable
        Record tables; foreign keys are positions in the target tables
    photo_edges, inner_edges, collisions : iterable
        Tabulated cross sections and collision strengths
    master_path : Path, optional
        Master file the catalog was loaded from
    run_validation : bool
        Run the consistency checks now. If False the catalog is treated
        as valid.
    """

    def __init__(
        self,
        elements: Iterable[Element] = (),
        ions: Iterable[Ion] = (),
        levels: Iterable[Level] = (),
        lines: Iterable[Line] = (),
        photo_edges: Iterable[PhotoionizationEdge] = (),
        inner_edges: Iterable[InnerShellEdge] = (),
        collisions: Iterable[CollisionStrength] = (),
        master_path: Optional[Path] = None,
        run_validation: bool = True,
    ):
        self.elements: Tuple[Element, ...] = tuple(elements)
        self.ions: Tuple[Ion, ...] = tuple(ions)
        self.levels: Tuple[Level, ...] = tuple(levels)
        self.lines: Tuple[Line, ...] = tuple(lines)
        self.photo_edges: Tuple[PhotoionizationEdge, ...] = tuple(photo_edges)
        self.inner_edges: Tuple[InnerShellEdge, ...] = tuple(inner_edges)
        self.collisions: Tuple[CollisionStrength, ...] = tuple(collisions)
        self.master_path = master_path

        self.line_index: SortIndex = build_index(self.lines, lambda line: line.frequency)
        self.photo_index: SortIndex = build_index(self.photo_edges, lambda edge: edge.threshold)
        self.inner_index: SortIndex = build_index(self.inner_edges, lambda edge: edge.threshold)

        self._element_by_z: Dict[int, int] = {e.z: i for i, e in enumerate(self.elements)}
        self._ion_by_species: Dict[Tuple[int, int], int] = {
            (ion.z, ion.stage): i for i, ion in enumerate(self.ions)
        }
        self._collision_by_line: Dict[int, int] = {}
        for i, c in enumerate(self.collisions):
            self._collision_by_line.setdefault(c.line, i)

        self.report = validate(self) if run_validation else ValidationReport()
        if not self.report.ok:
            logger.info(f"Catalog {master_path} is invalid: {len(self.report)} problem(s)")

    def __repr__(self) -> str:
        counts = ", ".join(f"{k}={v}" for k, v in self.summary().items())
        return f"Catalog({self.master_path}, {counts})"

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def is_valid(self) -> bool:
        return self.report.ok

    def _require_valid(self) -> None:
        if not self.report.ok:
            raise CatalogInvalid(self.report.errors)

    def summary(self) -> Dict[str, int]:
        """Number of records in every table."""
        return {
            "elements": len(self.elements),
            "ions": len(self.ions),
            "levels": len(self.levels),
            "lines": len(self.lines),
            "photo": len(self.photo_edges),
            "inner": len(self.inner_edges),
            "collisions": len(self.collisions),
        }

    # ------------------------------------------------------------------
    # Record lookups
    # ------------------------------------------------------------------

    def element_by_z(self, z: int) -> Optional[Element]:
        i = self._element_by_z.get(z)
        return self.elements[i] if i is not None else None

    def element_name(self, z: int) -> Optional[str]:
        """Symbol of the element with atomic number ``z``, or None."""
        element = self.element_by_z(z)
        return element.symbol if element is not None else None

    def ion_index(self, z: int, stage: int) -> Optional[int]:
        return self._ion_by_species.get((z, stage))

    def ion_by_species(self, z: int, stage: int) -> Optional[Ion]:
        i = self.ion_index(z, stage)
        return self.ions[i] if i is not None else None

    def ions_for_element(self, z: int) -> List[Ion]:
        return [ion for ion in self.ions if ion.z == z]

    def levels_for_ion(self, ion_index: int) -> Tuple[Level, ...]:
        ion = self.ions[ion_index]
        return self.levels[ion.first_level : ion.last_level]

    def lines_for_ion(self, ion_index: int) -> List[Line]:
        return [line for line in self.lines if line.ion == ion_index]

    def lines_for_element(self, z: int) -> List[Line]:
        ions = {i for i, ion in enumerate(self.ions) if ion.z == z}
        return [line for line in self.lines if line.ion in ions]

    def photo_edges_for_ion(self, ion_index: int) -> List[PhotoionizationEdge]:
        return [edge for edge in self.photo_edges if edge.ion == ion_index]

    def inner_edges_for_element(self, z: int) -> List[InnerShellEdge]:
        i = self._element_by_z.get(z)
        return [edge for edge in self.inner_edges if edge.element == i]

    def collision_for_line(self, line_index: int) -> Optional[CollisionStrength]:
        i = self._collision_by_line.get(line_index)
        return self.collisions[i] if i is not None else None

    # ------------------------------------------------------------------
    # Range queries
    # ------------------------------------------------------------------

    def restrict(self, frequency_min: float, frequency_max: float) -> QueryWindow:
        """
        Select the lines with ``frequency_min <= frequency <= frequency_max``.

        Parameters
        ----------
        frequency_min, frequency_max : float
            Inclusive frequency bounds in Hz

        Returns
        -------
        QueryWindow
            Positions in ``line_index``; empty if no line is in range

        Raises
        ------
        InvalidRange
            If ``frequency_min > frequency_max``
        CatalogInvalid
            If the catalog failed validation
        """
        self._require_valid()
        return self.line_index.restrict(frequency_min, frequency_max)

    @staticmethod
    def _frequency_bounds(wavelength_min: float, wavelength_max: float) -> Tuple[float, float]:
        if wavelength_min > wavelength_max or wavelength_min <= 0.0:
            raise InvalidRange(wavelength_min, wavelength_max)
        return (
            float(wavelength_to_frequency(wavelength_max)),
            float(wavelength_to_frequency(wavelength_min)),
        )

    def restrict_wavelength(self, wavelength_min: float, wavelength_max: float) -> QueryWindow:
        """Select the lines inside a vacuum wavelength range given in Angstrom."""
        return self.restrict(*self._frequency_bounds(wavelength_min, wavelength_max))

    def line_positions(self, window: QueryWindow) -> np.ndarray:
        """Line table positions inside ``window``, in ascending frequency."""
        self._require_valid()
        return self.line_index.table_positions(window)

    def lines_in_window(self, window: QueryWindow) -> Iterator[Line]:
        """Iterate over the lines inside ``window`` in ascending frequency."""
        positions = self.line_positions(window)
        return (self.lines[i] for i in positions)

    def photo_edges_in_range(
        self, frequency_min: float, frequency_max: float
    ) -> List[PhotoionizationEdge]:
        """Photoionization edges whose threshold lies in the frequency range."""
        self._require_valid()
        window = self.photo_index.restrict(frequency_min, frequency_max)
        return [self.photo_edges[i] for i in self.photo_index.table_positions(window)]

    def inner_edges_in_range(
        self, frequency_min: float, frequency_max: float
    ) -> List[InnerShellEdge]:
        """Inner-shell edges whose threshold lies in the frequency range."""
        self._require_valid()
        window = self.inner_index.restrict(frequency_min, frequency_max)
        return [self.inner_edges[i] for i in self.inner_index.table_positions(window)]

    def photo_edges_in_wavelength_range(
        self, wavelength_min: float, wavelength_max: float
    ) -> List[PhotoionizationEdge]:
        """
        Photoionization edges whose threshold lies in a wavelength range.

        Parameters
        ----------
        wavelength_min, wavelength_max : float
            Inclusive vacuum wavelength bounds in Angstrom

        Returns
        -------
        List[PhotoionizationEdge]
            Edges in ascending threshold frequency

        Raises
        ------
        InvalidRange
            If ``wavelength_min > wavelength_max`` or ``wavelength_min <= 0``
        """
        return self.photo_edges_in_range(*self._frequency_bounds(wavelength_min, wavelength_max))

    def inner_edges_in_wavelength_range(
        self, wavelength_min: float, wavelength_max: float
    ) -> List[InnerShellEdge]:
        """Inner-shell edges whose threshold lies in a wavelength range in Angstrom."""
        return self.inner_edges_in_range(*self._frequency_bounds(wavelength_min, wavelength_max))

    # ------------------------------------------------------------------
    # Numerical queries
    # ------------------------------------------------------------------

    def _cross_section(self, edge, frequency: float) -> float:
        self._require_valid()
        if frequency < edge.frequencies[0]:
            return 0.0
        return interpolate(frequency, edge.frequencies, edge.cross_sections, LOG)

    def photo_cross_section(self, edge_index: int, frequency: float) -> float:
        """
        Photoionization cross section in cm^2 of one edge at ``frequency``.

        Zero below the threshold; ``OutOfRange`` above the last sample.
        """
        return self._cross_section(self.photo_edges[edge_index], frequency)

    def inner_cross_section(self, edge_index: int, frequency: float) -> float:
        """Inner-shell cross section in cm^2, with the same conventions."""
        return self._cross_section(self.inner_edges[edge_index], frequency)

    def einstein_a(self, line_index: int) -> float:
        self._require_valid()
        return derived.einstein_a(self.lines[line_index])

    def line_upsilon(self, line_index: int, incident_energy: float) -> Optional[float]:
        """Collision strength of a line at a scaled energy, None if untabulated."""
        self._require_valid()
        table = self.collision_for_line(line_index)
        if table is None:
            return None
        return derived.upsilon(table, incident_energy)

    # ------------------------------------------------------------------
    # Tabular views
    # ------------------------------------------------------------------

    def _table(self, name: str) -> Tuple:
        return {
            "elements": self.elements,
            "ions": self.ions,
            "levels": self.levels,
            "lines": self.lines,
            "photo": self.photo_edges,
            "inner": self.inner_edges,
            "collisions": self.collisions,
        }[name]

    def to_dataframe(self, table: str) -> pd.DataFrame:
        """
        Tabular view of one table, one row per record.

        Sample arrays are summarised by their length. The line table gains
        ``wavelength`` and ``einstein_a`` columns.

        Parameters
        ----------
        table : str
            One of 'elements', 'ions', 'levels', 'lines', 'photo', 'inner',
            'collisions'

        Returns
        -------
        pd.DataFrame
            Frame indexed by record position
        """
        if table not in TABLES:
            raise ValueError(f"Unknown table: {table}. Must be one of {list(TABLES)}")

        records = self._table(table)
        columns = [
            f.name
            for f in fields(TABLES[table])
            if f.name != "source" and f.type not in ("np.ndarray", np.ndarray)
        ]
        df = pd.DataFrame(
            [[getattr(r, c) for c in columns] for r in records], columns=columns
        )

        if table == "lines":
            df["wavelength"] = [line.wavelength for line in records]
            df["einstein_a"] = [derived.einstein_a(line) for line in records]
        elif table in ("photo", "inner", "collisions"):
            df["n_samples"] = [r.n_samples for r in records]

        df.index.name = "index"
        return df
