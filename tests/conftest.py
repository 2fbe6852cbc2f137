"""
Pytest configuration and shared fixtures for atomix tests.

This module provides:
- A small synthetic atomic data set written to a temporary directory
- A factory fixture for writing modified data sets
- An in-memory catalog built directly from records
"""

from pathlib import Path
from typing import Dict, Optional, Sequence, Tuple

import numpy as np
import pytest

from atomix.atomic.catalog import Catalog
from atomix.atomic.structures import (
    ALLOWED,
    FORBIDDEN,
    CollisionStrength,
    Element,
    InnerShellEdge,
    Ion,
    Level,
    Line,
    PhotoionizationEdge,
)

BASE_FILES: Dict[str, str] = {
    "elements.dat": """\
# z  symbol  abundance
Element 1 H 12.00
Element 2 He 10.93
Element 6 C 8.43
""",
    "ions.dat": """\
Ion 1 1 13.598
Ion 2 1 24.587
""",
    "levels.dat": """\
# z stage level energy_ev g config
Level 1 1 1 0.000 2 1s
Level 1 1 2 10.199 8 2p
Level 1 1 3 12.088 18 3p

Level 2 1 1 0.000 1 1s2
Level 2 1 2 19.820 3 1s2s
""",
    "lines.dat": """\
Line 1 1 1215.67 0.8328 1 2
Line 1 1 1025.72 0.1582 1 3
Line 2 1 1025.72 1.0e-3 1 2   # shares its wavelength with the line above
Line 1 1 6562.80 5.1256 2 3
""",
    "photo.dat": """\
PhotEdge 1 1 1 13.598 3
Phot 13.598 6.30e-18
Phot 27.196 7.9e-19
Phot 54.392 9.9e-20
PhotEdge 2 1 1 24.587 2
Phot 24.587 7.4e-18
Phot 49.174 1.5e-18
""",
    "inner.dat": """\
InnerEdge 2 1 1 0 24.587 2
Inner 24.587 7.4e-18
Inner 100.0 2.6e-19
""",
    "collisions.dat": """\
Coll 1 1 1 2 allowed 3
CollSamp 1.0 0.30
CollSamp 2.0 0.45
CollSamp 5.0 0.70
""",
}

BASE_MASTER: Tuple[Tuple[str, str], ...] = (
    ("elements.dat", "elements"),
    ("ions.dat", "ions"),
    ("levels.dat", "levels"),
    ("lines.dat", "lines"),
    ("photo.dat", "photo"),
    ("inner.dat", "inner"),
    ("collisions.dat", "collisions"),
)


@pytest.fixture
def write_dataset(tmp_path):
    """
    Factory fixture writing a data set to a temporary directory.

    Returns a function taking replacement file contents (merged over the
    base data set) and an optional master listing, and returning the path
    of the master file.
    """

    def _write(
        files: Optional[Dict[str, str]] = None,
        master: Optional[Sequence[Tuple[str, str]]] = None,
        master_name: str = "master.dat",
    ) -> Path:
        contents = dict(BASE_FILES)
        contents.update(files or {})
        for name, text in contents.items():
            (tmp_path / name).write_text(text)

        entries = BASE_MASTER if master is None else master
        master_path = tmp_path / master_name
        master_path.write_text(
            "# test data set\n" + "".join(f"{path} {kind}\n" for path, kind in entries)
        )
        return master_path

    return _write


@pytest.fixture
def master_file(write_dataset):
    """Master file of the unmodified base data set."""
    return write_dataset()


def _frozen(values) -> np.ndarray:
    array = np.array(values, dtype=float)
    array.setflags(write=False)
    return array


@pytest.fixture
def synthetic_catalog():
    """
    Catalog built from records: 3 elements, 2 ions, 4 levels and 4 lines
    with frequencies [1.0, 2.5, 2.5, 4.0].
    """
    elements = [Element(1, "H", 12.0), Element(2, "He", 10.93), Element(6, "C", 8.43)]
    ions = [
        Ion(element=0, z=1, stage=1, ionization_potential_ev=13.598, first_level=0, last_level=2),
        Ion(element=1, z=2, stage=1, ionization_potential_ev=24.587, first_level=2, last_level=4),
    ]
    levels = [
        Level(0, 1, 0.0, 2.0, "1s"),
        Level(0, 2, 10.2, 8.0, "2p"),
        Level(1, 1, 0.0, 1.0, "1s2"),
        Level(1, 2, 21.2, 3.0, "1s2p"),
    ]
    lines = [
        Line(0, 0, 1, 1.0, 0.5, 2.0, 8.0),
        Line(0, 0, 1, 2.5, 0.4, 2.0, 8.0),
        Line(1, 2, 3, 2.5, 0.3, 1.0, 3.0),
        Line(1, 2, 3, 4.0, 0.2, 1.0, 3.0),
    ]
    photo = [
        PhotoionizationEdge(0, 0, 5.0, _frozen([5.0, 10.0]), _frozen([1e-18, 4e-19])),
        PhotoionizationEdge(1, 2, 3.0, _frozen([3.0, 6.0, 9.0]), _frozen([2e-18, 1e-18, 0.0])),
    ]
    inner = [InnerShellEdge(1, 1, 1, 0, 7.0, _frozen([7.0, 14.0]), _frozen([3e-19, 1e-19]))]
    collisions = [
        CollisionStrength(0, ALLOWED, _frozen([1.0, 2.0, 4.0]), _frozen([1.0, 1.5, 2.0])),
        CollisionStrength(3, FORBIDDEN, _frozen([1.0, 3.0]), _frozen([0.2, 0.1])),
    ]
    return Catalog(elements, ions, levels, lines, photo, inner, collisions)
