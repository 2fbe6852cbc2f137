"""
Data structures for the loaded atomic data tables.

Every record is immutable. A record's position in its table is its
identity for the lifetime of a catalog, and foreign keys between tables
are stored as those positions.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import numpy as np

from atomix.core.units import frequency_to_wavelength

ALLOWED = "allowed"
FORBIDDEN = "forbidden"
TRANSITION_TYPES = (ALLOWED, FORBIDDEN)


@dataclass(frozen=True)
class SourceRef:
    """File and 1-based line number a record was read from."""

    path: Path
    line_number: int

    def __str__(self) -> str:
        return f"{self.path}:{self.line_number}"


@dataclass(frozen=True)
class Element:
    """
    Represents a chemical element.

    Attributes
    ----------
    z : int
        Atomic number (unique within a catalog)
    symbol : str
        Element symbol (e.g., 'H', 'Fe')
    abundance : float
        Solar abundance on the log scale where H = 12
    """

    z: int
    symbol: str
    abundance: float


@dataclass(frozen=True)
class Ion:
    """
    Represents one ionization stage of an element.

    Attributes
    ----------
    element : int
        Position of the owning element in the element table
    z : int
        Atomic number of the owning element
    stage : int
        Ionization stage (1=neutral, 2=singly ionized, etc.)
    ionization_potential_ev : float
        Ionization potential from this stage to the next in eV
    first_level : int
        Position of the ion's first level in the level table
    last_level : int
        One past the position of the ion's last level (half-open range)
    source : SourceRef, optional
        Where the record was read from
    """

    element: int
    z: int
    stage: int
    ionization_potential_ev: float
    first_level: int = 0
    last_level: int = 0
    source: Optional[SourceRef] = field(default=None, compare=False)

    @property
    def n_levels(self) -> int:
        return self.last_level - self.first_level

    @property
    def level_range(self) -> range:
        return range(self.first_level, self.last_level)


@dataclass(frozen=True)
class Level:
    """
    Represents an atomic energy level.

    Attributes
    ----------
    ion : int
        Position of the owning ion in the ion table
    number : int
        Level number, unique within the ion
    energy_ev : float
        Energy above the ion's ground state in eV
    g : float
        Statistical weight
    config : str
        Configuration label (may be empty)
    """

    ion: int
    number: int
    energy_ev: float
    g: float
    config: str = ""


@dataclass(frozen=True)
class Line:
    """
    Represents a bound-bound transition.

    Attributes
    ----------
    ion : int
        Position of the ion in the ion table
    lower : int
        Position of the lower level in the level table
    upper : int
        Position of the upper level in the level table
    frequency : float
        Transition frequency in Hz
    gf : float
        Weighted oscillator strength
    g_lower : float
        Statistical weight of the lower level
    g_upper : float
        Statistical weight of the upper level
    """

    ion: int
    lower: int
    upper: int
    frequency: float
    gf: float
    g_lower: float = 1.0
    g_upper: float = 1.0

    @property
    def wavelength(self) -> float:
        """Vacuum wavelength in Angstrom."""
        return float(frequency_to_wavelength(self.frequency))

    @property
    def f_absorption(self) -> float:
        """Absorption oscillator strength f_lu = gf / g_lower."""
        return self.gf / self.g_lower


@dataclass(frozen=True, eq=False)
class PhotoionizationEdge:
    """
    Photoionization cross section from one level of an ion.

    Attributes
    ----------
    ion : int
        Position of the ion in the ion table
    level : int
        Position of the ionized level in the level table
    threshold : float
        Threshold frequency in Hz
    frequencies : np.ndarray
        Sample frequencies in Hz, strictly increasing from the threshold
    cross_sections : np.ndarray
        Cross sections in cm^2 at ``frequencies``
    source : SourceRef, optional
        Where the edge header was read from
    """

    ion: int
    level: int
    threshold: float
    frequencies: np.ndarray
    cross_sections: np.ndarray
    source: Optional[SourceRef] = None

    @property
    def n_samples(self) -> int:
        return int(self.frequencies.size)


@dataclass(frozen=True, eq=False)
class InnerShellEdge:
    """
    Inner-shell ionization cross section of an ion.

    Attributes
    ----------
    ion : int
        Position of the ion in the ion table
    element : int
        Position of the ion's element in the element table
    n : int
        Principal quantum number of the ionized shell
    l : int
        Orbital quantum number of the ionized shell
    threshold : float
        Threshold frequency in Hz
    frequencies : np.ndarray
        Sample frequencies in Hz, strictly increasing from the threshold
    cross_sections : np.ndarray
        Cross sections in cm^2 at ``frequencies``
    source : SourceRef, optional
        Where the edge header was read from
    """

    ion: int
    element: int
    n: int
    l: int
    threshold: float
    frequencies: np.ndarray
    cross_sections: np.ndarray
    source: Optional[SourceRef] = None

    @property
    def n_samples(self) -> int:
        return int(self.frequencies.size)


@dataclass(frozen=True, eq=False)
class CollisionStrength:
    """
    Tabulated effective collision strength of a transition.

    Attributes
    ----------
    line : int
        Position of the transition in the line table
    transition_type : str
        'allowed' or 'forbidden'; selects the extrapolation beyond the grid
    energies : np.ndarray
        Incident energies in units of the transition energy, increasing
    upsilons : np.ndarray
        Collision strengths at ``energies``
    source : SourceRef, optional
        Where the table header was read from
    """

    line: int
    transition_type: str
    energies: np.ndarray
    upsilons: np.ndarray
    source: Optional[SourceRef] = None

    @property
    def n_samples(self) -> int:
        return int(self.energies.size)
