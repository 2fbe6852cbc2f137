"""
Master catalog loader.

A master file lists sub-files and the kind of record each holds. Loading
reads every sub-file, parses each record line, and then runs a linking
pass that resolves every foreign key against the complete tables. Any
error aborts the whole load: a ``Catalog`` is only ever returned complete.
"""

import threading
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set, Tuple, Union

import numpy as np

from atomix.atomic.catalog import Catalog
from atomix.atomic.parsers import (
    ElementRecord,
    IonRecord,
    LevelRecord,
    LineRecord,
    MasterEntry,
    RawRecord,
    SampleRecord,
    is_header,
    parse_master_entry,
    parse_record,
    strip_comment,
)
from atomix.atomic.structures import (
    CollisionStrength,
    Element,
    InnerShellEdge,
    Ion,
    Level,
    Line,
    PhotoionizationEdge,
)
from atomix.core.config import LoaderSettings
from atomix.core.exceptions import (
    BrokenReference,
    LoadCancelled,
    LoadError,
    LoadIoFailure,
    MalformedRecord,
)
from atomix.core.logging_config import get_logger
from atomix.core.units import energy_to_frequency

logger = get_logger("atomic.loader")

DEFAULT_SUFFIX = ".dat"

Table = Tuple[RawRecord, List[SampleRecord]]


# ============================================================================
# File access
# ============================================================================


def _read_lines(path: Path) -> List[str]:
    try:
        return path.read_text().splitlines()
    except (OSError, UnicodeDecodeError) as e:
        raise LoadIoFailure(path, str(e)) from e


def _search(path: Path, directories: Sequence[Path]) -> Optional[Path]:
    if path.is_absolute():
        return path if path.is_file() else None
    for directory in directories:
        candidate = directory / path
        if candidate.is_file():
            return candidate
    return None


def resolve_master_path(
    master_path: Union[str, Path], settings: Optional[LoaderSettings] = None
) -> Path:
    """
    Locate a master file.

    A name not ending in ``.dat`` gets ``.dat`` appended. Relative names
    are looked up in the working directory, then in every configured data
    directory.

    Raises
    ------
    LoadIoFailure
        If the file cannot be found
    """
    settings = settings or LoaderSettings.from_config()
    path = Path(master_path)
    if path.suffix != DEFAULT_SUFFIX:
        path = path.with_name(path.name + DEFAULT_SUFFIX)

    found = _search(path, [Path.cwd(), *settings.data_dirs])
    if found is None:
        raise LoadIoFailure(path, "master file not found")
    return found


def read_master(master_path: Path) -> List[MasterEntry]:
    """Parse every entry of a master file."""
    entries = []
    for line_number, text in enumerate(_read_lines(master_path), start=1):
        text = strip_comment(text)
        if text:
            entries.append(parse_master_entry(text, line_number, master_path))
    return entries


# ============================================================================
# Reading sub-files
# ============================================================================


class _TableReader:
    """Collects the raw records of every sub-file, grouped by kind."""

    def __init__(self, cancel_event: Optional[threading.Event], master_path: Path):
        self.cancel_event = cancel_event
        self.master_path = master_path
        self.elements: List[ElementRecord] = []
        self.ions: List[IonRecord] = []
        self.levels: List[LevelRecord] = []
        self.lines: List[LineRecord] = []
        self.photo: List[Table] = []
        self.inner: List[Table] = []
        self.collisions: List[Table] = []

    def check_cancel(self) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise LoadCancelled(self.master_path)

    def read(self, path: Path, kind: str) -> int:
        """Read one sub-file, returning the number of records found."""
        self.check_cancel()
        tables = {"photo": self.photo, "inner": self.inner, "collisions": self.collisions}
        flat = {
            "elements": self.elements,
            "ions": self.ions,
            "levels": self.levels,
            "lines": self.lines,
        }

        n_records = 0
        open_table: Optional[Table] = None
        for line_number, text in enumerate(_read_lines(path), start=1):
            self.check_cancel()
            text = strip_comment(text)
            if not text:
                continue

            record = parse_record(text, kind, line_number, path)
            n_records += 1

            if kind in flat:
                flat[kind].append(record)
            elif is_header(record):
                if open_table is not None:
                    _incomplete(open_table, kind)
                open_table = (record, [])
                tables[kind].append(open_table)
            else:
                if open_table is None:
                    raise MalformedRecord(
                        path, line_number, kind, f"{record.keyword} sample without a table header"
                    )
                open_table[1].append(record)
                if len(open_table[1]) == open_table[0].npts:
                    open_table = None

        if open_table is not None:
            _incomplete(open_table, kind)

        logger.debug(f"Read {n_records} {kind} records from {path}")
        return n_records


def _incomplete(table: Table, kind: str) -> None:
    header, samples = table
    raise MalformedRecord(
        header.source.path if header.source else None,
        header.source.line_number if header.source else 0,
        kind,
        f"table header declares {header.npts} samples but only {len(samples)} follow",
    )


# ============================================================================
# Linking
# ============================================================================


def _where(record: RawRecord) -> Tuple[Optional[Path], int]:
    if record.source is None:
        return None, 0
    return record.source.path, record.source.line_number


def _broken(record: RawRecord, kind: str, target: str, key) -> BrokenReference:
    path, line_number = _where(record)
    return BrokenReference(path, line_number, kind, target, key)


def _duplicate(record: RawRecord, kind: str, what: str) -> MalformedRecord:
    path, line_number = _where(record)
    return MalformedRecord(path, line_number, kind, f"duplicate {what}")


def _frozen(values: Sequence[float]) -> np.ndarray:
    array = np.array(values, dtype=float)
    array.setflags(write=False)
    return array


class _Linker:
    """Resolves the keys of raw records into table positions."""

    def __init__(self, reader: _TableReader):
        self.reader = reader
        self.element_pos: Dict[int, int] = {}
        self.ion_pos: Dict[Tuple[int, int], int] = {}
        self.level_pos: Dict[Tuple[int, int], int] = {}
        self.line_pos: Dict[Tuple[int, int], int] = {}

    def elements(self) -> List[Element]:
        elements = []
        for record in self.reader.elements:
            if record.z in self.element_pos:
                raise _duplicate(record, "elements", f"element z={record.z}")
            self.element_pos[record.z] = len(elements)
            elements.append(Element(record.z, record.symbol, record.abundance))
        return elements

    def _ion(self, record, kind: str) -> int:
        key = (record.z, record.stage)
        if key not in self.ion_pos:
            raise _broken(record, kind, "ion", key)
        return self.ion_pos[key]

    def _level(self, record, kind: str, ion: int, number: int) -> int:
        if (ion, number) not in self.level_pos:
            raise _broken(record, kind, "level", number)
        return self.level_pos[(ion, number)]

    def ions_and_levels(self) -> Tuple[List[Ion], List[Level]]:
        for record in self.reader.ions:
            if record.z not in self.element_pos:
                raise _broken(record, "ions", "element", record.z)
            key = (record.z, record.stage)
            if key in self.ion_pos:
                raise _duplicate(record, "ions", f"ion z={record.z} stage={record.stage}")
            self.ion_pos[key] = len(self.ion_pos)

        levels = []
        ranges: Dict[int, List[int]] = {}
        for record in self.reader.levels:
            ion = self._ion(record, "levels")
            if (ion, record.number) in self.level_pos:
                raise _duplicate(
                    record, "levels", f"level {record.number} of ion z={record.z} stage={record.stage}"
                )
            position = len(levels)
            self.level_pos[(ion, record.number)] = position
            span = ranges.setdefault(ion, [position, position + 1])
            span[1] = position + 1
            levels.append(Level(ion, record.number, record.energy_ev, record.g, record.config))

        ions = []
        for i, record in enumerate(self.reader.ions):
            first, last = ranges.get(i, (0, 0))
            ions.append(
                Ion(
                    element=self.element_pos[record.z],
                    z=record.z,
                    stage=record.stage,
                    ionization_potential_ev=record.ionization_potential_ev,
                    first_level=first,
                    last_level=last,
                    source=record.source,
                )
            )
        return ions, levels

    def lines(self, levels: Sequence[Level]) -> List[Line]:
        lines = []
        for record in self.reader.lines:
            ion = self._ion(record, "lines")
            lower = self._level(record, "lines", ion, record.lower)
            upper = self._level(record, "lines", ion, record.upper)
            self.line_pos.setdefault((lower, upper), len(lines))
            lines.append(
                Line(
                    ion=ion,
                    lower=lower,
                    upper=upper,
                    frequency=record.frequency,
                    gf=record.gf,
                    g_lower=levels[lower].g,
                    g_upper=levels[upper].g,
                )
            )
        return lines

    def photo_edges(self) -> List[PhotoionizationEdge]:
        edges = []
        for header, samples in self.reader.photo:
            ion = self._ion(header, "photo")
            level = self._level(header, "photo", ion, header.level)
            edges.append(
                PhotoionizationEdge(
                    ion=ion,
                    level=level,
                    threshold=header.threshold,
                    frequencies=_frozen([energy_to_frequency(s.x) for s in samples]),
                    cross_sections=_frozen([s.y for s in samples]),
                    source=header.source,
                )
            )
        return edges

    def inner_edges(self, ions: Sequence[Ion]) -> List[InnerShellEdge]:
        edges = []
        for header, samples in self.reader.inner:
            ion = self._ion(header, "inner")
            edges.append(
                InnerShellEdge(
                    ion=ion,
                    element=ions[ion].element,
                    n=header.n,
                    l=header.l,
                    threshold=header.threshold,
                    frequencies=_frozen([energy_to_frequency(s.x) for s in samples]),
                    cross_sections=_frozen([s.y for s in samples]),
                    source=header.source,
                )
            )
        return edges

    def collisions(self) -> List[CollisionStrength]:
        tables = []
        seen: Set[int] = set()
        for header, samples in self.reader.collisions:
            ion = self._ion(header, "collisions")
            lower = self._level(header, "collisions", ion, header.lower)
            upper = self._level(header, "collisions", ion, header.upper)
            if (lower, upper) not in self.line_pos:
                raise _broken(
                    header, "collisions", "line", (header.z, header.stage, header.lower, header.upper)
                )
            line = self.line_pos[(lower, upper)]
            if line in seen:
                raise _duplicate(
                    header,
                    "collisions",
                    f"collision table for line z={header.z} stage={header.stage} "
                    f"{header.lower}-{header.upper}",
                )
            seen.add(line)
            tables.append(
                CollisionStrength(
                    line=line,
                    transition_type=header.transition_type,
                    energies=_frozen([s.x for s in samples]),
                    upsilons=_frozen([s.y for s in samples]),
                    source=header.source,
                )
            )
        return tables


# ============================================================================
# Public interface
# ============================================================================


def load(
    master_path: Union[str, Path],
    settings: Optional[LoaderSettings] = None,
    cancel_event: Optional[threading.Event] = None,
) -> Catalog:
    """
    Load a complete catalog from a master file.

    Parameters
    ----------
    master_path : str or Path
        Master file listing ``<sub-file> <kind>`` pairs
    settings : LoaderSettings, optional
        Search directories and validation switch. Defaults to
        ``LoaderSettings.from_config()``, which reads ``ATOMIX_DATA_DIR``.
    cancel_event : threading.Event, optional
        When set, the load stops at the next line with ``LoadCancelled``

    Returns
    -------
    Catalog
        The loaded catalog. It may be flagged invalid by the consistency
        checks; see ``Catalog.report``.

    Raises
    ------
    LoadError
        ``MalformedRecord``, ``BrokenReference``, ``LoadIoFailure`` or
        ``LoadCancelled``. No catalog is produced in that case.
    """
    settings = settings or LoaderSettings.from_config()
    master = resolve_master_path(master_path, settings)
    logger.info(f"Loading atomic data from {master}")

    reader = _TableReader(cancel_event, master)
    search_dirs = [master.parent, *settings.data_dirs]
    for entry in read_master(master):
        sub_path = _search(Path(entry.path), search_dirs)
        if sub_path is None:
            raise LoadIoFailure(Path(entry.path), f"sub-file listed in {entry.source} not found")
        reader.read(sub_path, entry.kind)

    reader.check_cancel()
    linker = _Linker(reader)
    elements = linker.elements()
    ions, levels = linker.ions_and_levels()
    lines = linker.lines(levels)
    photo_edges = linker.photo_edges()
    inner_edges = linker.inner_edges(ions)
    collisions = linker.collisions()

    catalog = Catalog(
        elements,
        ions,
        levels,
        lines,
        photo_edges,
        inner_edges,
        collisions,
        master_path=master,
        run_validation=settings.validate,
    )
    logger.info(f"Loaded {catalog!r}")
    return catalog


class CatalogHandle:
    """
    Holder of the currently published catalog.

    Readers take ``handle.current`` and keep using that catalog for as long
    as they like; it never changes. ``reload`` builds a new catalog off to
    the side and publishes it in one assignment, so readers see either the
    old or the new catalog. A failed reload leaves the old one in place.
    """

    def __init__(self, settings: Optional[LoaderSettings] = None):
        self.settings = settings or LoaderSettings.from_config()
        self._reload_lock = threading.Lock()
        self._catalog: Optional[Catalog] = None

    @property
    def current(self) -> Optional[Catalog]:
        return self._catalog

    def reload(
        self, master_path: Union[str, Path], cancel_event: Optional[threading.Event] = None
    ) -> Catalog:
        """
        Load ``master_path`` and publish it.

        Raises
        ------
        LoadError
            If the load fails; the previous catalog stays published
        """
        with self._reload_lock:
            try:
                catalog = load(master_path, self.settings, cancel_event)
            except LoadError:
                logger.info(f"Reload of {master_path} failed; keeping {self._catalog!r}")
                raise
            self._catalog = catalog
        return catalog
