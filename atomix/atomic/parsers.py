"""
Line-oriented parsers for the atomic data text files.

Each record line starts with a keyword followed by whitespace-delimited
fields. A parser turns one line into one raw record, or raises
``MalformedRecord``. Parsers never look at other records; resolving the
keys they carry (atomic number, ionization stage, level numbers) is the
loader's job.
"""

import math
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Callable, Dict, Optional, Sequence, Tuple, Union

from atomix.atomic.structures import TRANSITION_TYPES, SourceRef
from atomix.core.exceptions import MalformedRecord
from atomix.core.units import energy_to_frequency, wavelength_to_frequency

COMMENT = "#"
MASTER = "master"


# ============================================================================
# Raw records
# ============================================================================


@dataclass(frozen=True)
class ElementRecord:
    z: int
    symbol: str
    abundance: float
    source: Optional[SourceRef] = None


@dataclass(frozen=True)
class IonRecord:
    z: int
    stage: int
    ionization_potential_ev: float
    source: Optional[SourceRef] = None


@dataclass(frozen=True)
class LevelRecord:
    z: int
    stage: int
    number: int
    energy_ev: float
    g: float
    config: str = ""
    source: Optional[SourceRef] = None


@dataclass(frozen=True)
class LineRecord:
    z: int
    stage: int
    wavelength: float
    gf: float
    lower: int
    upper: int
    source: Optional[SourceRef] = None

    @property
    def frequency(self) -> float:
        return float(wavelength_to_frequency(self.wavelength))


@dataclass(frozen=True)
class PhotoEdgeRecord:
    z: int
    stage: int
    level: int
    threshold_ev: float
    npts: int
    source: Optional[SourceRef] = None

    @property
    def threshold(self) -> float:
        return float(energy_to_frequency(self.threshold_ev))


@dataclass(frozen=True)
class InnerEdgeRecord:
    z: int
    stage: int
    n: int
    l: int
    threshold_ev: float
    npts: int
    source: Optional[SourceRef] = None

    @property
    def threshold(self) -> float:
        return float(energy_to_frequency(self.threshold_ev))


@dataclass(frozen=True)
class CollisionRecord:
    z: int
    stage: int
    lower: int
    upper: int
    transition_type: str
    npts: int
    source: Optional[SourceRef] = None


@dataclass(frozen=True)
class SampleRecord:
    """One (x, y) sample belonging to the most recent table header."""

    keyword: str
    x: float
    y: float
    source: Optional[SourceRef] = None


@dataclass(frozen=True)
class MasterEntry:
    path: str
    kind: str
    source: Optional[SourceRef] = None


RawRecord = Union[
    ElementRecord,
    IonRecord,
    LevelRecord,
    LineRecord,
    PhotoEdgeRecord,
    InnerEdgeRecord,
    CollisionRecord,
    SampleRecord,
]


# ============================================================================
# Schemas
# ============================================================================


def _finite_float(token: str) -> float:
    value = float(token)
    if not math.isfinite(value):
        raise ValueError(f"non-finite value {token!r}")
    return value


def _transition_type(token: str) -> str:
    value = token.lower()
    if value not in TRANSITION_TYPES:
        raise ValueError(f"transition type must be one of {TRANSITION_TYPES}, got {token!r}")
    return value


@dataclass(frozen=True)
class _Schema:
    keyword: str
    record: Callable[..., RawRecord]
    fields: Tuple[Tuple[str, Callable[[str], object]], ...]
    n_required: int
    check: Optional[Callable[[dict], Optional[str]]] = None


def _positive(*names: str) -> Callable[[dict], Optional[str]]:
    def check(values: dict) -> Optional[str]:
        for name in names:
            if values[name] <= 0:
                return f"{name} must be positive, got {values[name]}"
        return None

    return check


def _check_table_header(values: dict) -> Optional[str]:
    if values["npts"] < 2:
        return f"a table needs at least 2 samples, header declares {values['npts']}"
    if "threshold_ev" in values and values["threshold_ev"] <= 0:
        return f"threshold_ev must be positive, got {values['threshold_ev']}"
    return None


def _check_line(values: dict) -> Optional[str]:
    if values["wavelength"] <= 0:
        return f"wavelength must be positive, got {values['wavelength']}"
    if values["lower"] == values["upper"]:
        return f"lower and upper level are both {values['lower']}"
    return None


def _check_collision(values: dict) -> Optional[str]:
    if values["lower"] == values["upper"]:
        return f"lower and upper level are both {values['lower']}"
    return _check_table_header(values)


def _sample(keyword: str) -> _Schema:
    return _Schema(
        keyword,
        lambda x, y: SampleRecord(keyword, x, y),
        (("x", _finite_float), ("y", _finite_float)),
        2,
    )


_SCHEMAS: Dict[str, _Schema] = {
    schema.keyword.lower(): schema
    for schema in (
        _Schema(
            "Element",
            ElementRecord,
            (("z", int), ("symbol", str), ("abundance", _finite_float)),
            3,
            _positive("z"),
        ),
        _Schema(
            "Ion",
            IonRecord,
            (("z", int), ("stage", int), ("ionization_potential_ev", _finite_float)),
            3,
            _positive("z", "stage"),
        ),
        _Schema(
            "Level",
            LevelRecord,
            (
                ("z", int),
                ("stage", int),
                ("number", int),
                ("energy_ev", _finite_float),
                ("g", _finite_float),
                ("config", str),
            ),
            5,
            _positive("z", "stage", "g"),
        ),
        _Schema(
            "Line",
            LineRecord,
            (
                ("z", int),
                ("stage", int),
                ("wavelength", _finite_float),
                ("gf", _finite_float),
                ("lower", int),
                ("upper", int),
            ),
            6,
            _check_line,
        ),
        _Schema(
            "PhotEdge",
            PhotoEdgeRecord,
            (
                ("z", int),
                ("stage", int),
                ("level", int),
                ("threshold_ev", _finite_float),
                ("npts", int),
            ),
            5,
            _check_table_header,
        ),
        _sample("Phot"),
        _Schema(
            "InnerEdge",
            InnerEdgeRecord,
            (
                ("z", int),
                ("stage", int),
                ("n", int),
                ("l", int),
                ("threshold_ev", _finite_float),
                ("npts", int),
            ),
            6,
            _check_table_header,
        ),
        _sample("Inner"),
        _Schema(
            "Coll",
            CollisionRecord,
            (
                ("z", int),
                ("stage", int),
                ("lower", int),
                ("upper", int),
                ("transition_type", _transition_type),
                ("npts", int),
            ),
            6,
            _check_collision,
        ),
        _sample("CollSamp"),
    )
}

# Keywords accepted in each kind of sub-file; headers come first
KIND_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "elements": ("Element",),
    "ions": ("Ion",),
    "levels": ("Level",),
    "lines": ("Line",),
    "photo": ("PhotEdge", "Phot"),
    "inner": ("InnerEdge", "Inner"),
    "collisions": ("Coll", "CollSamp"),
}

RECORD_KINDS = tuple(KIND_KEYWORDS)


# ============================================================================
# Parsing
# ============================================================================


def strip_comment(text: str) -> str:
    """Remove a trailing ``#`` comment and surrounding whitespace."""
    return text.split(COMMENT, 1)[0].strip()


def _source(path: Optional[Union[str, Path]], line_number: int) -> Optional[SourceRef]:
    if path is None:
        return None
    return SourceRef(Path(path), line_number)


def _convert(
    schema: _Schema,
    tokens: Sequence[str],
    kind: str,
    line_number: int,
    path: Optional[Union[str, Path]],
) -> dict:
    if len(tokens) < schema.n_required:
        raise MalformedRecord(
            path,
            line_number,
            kind,
            f"{schema.keyword} expects {schema.n_required} fields, got {len(tokens)}",
        )

    values = {}
    for (name, convert), token in zip(schema.fields, tokens):
        try:
            values[name] = convert(token)
        except ValueError as e:
            raise MalformedRecord(
                path, line_number, kind, f"bad value {token!r} for {name}: {e}"
            ) from e

    if schema.check is not None:
        reason = schema.check(values)
        if reason is not None:
            raise MalformedRecord(path, line_number, kind, reason)

    return values


def parse_record(
    text: str,
    kind: str,
    line_number: int = 0,
    path: Optional[Union[str, Path]] = None,
) -> RawRecord:
    """
    Parse one record line of a sub-file.

    Parameters
    ----------
    text : str
        The line, already stripped of comments and known to be non-blank
    kind : str
        Record kind of the sub-file ('elements', 'ions', 'levels', 'lines',
        'photo', 'inner', 'collisions')
    line_number : int
        1-based line number, used in error reports
    path : str or Path, optional
        File the line came from, used in error reports

    Returns
    -------
    RawRecord
        The decoded record

    Raises
    ------
    MalformedRecord
        If the keyword does not belong to ``kind``, a field is missing or a
        field does not parse as its declared type
    """
    if kind not in KIND_KEYWORDS:
        raise ValueError(f"Unknown record kind: {kind}. Must be one of {RECORD_KINDS}")

    tokens = text.split()
    if not tokens:
        raise MalformedRecord(path, line_number, kind, "empty record")

    keyword, fields = tokens[0], tokens[1:]
    allowed = KIND_KEYWORDS[kind]
    schema = _SCHEMAS.get(keyword.lower())
    if schema is None or schema.keyword not in allowed:
        raise MalformedRecord(
            path,
            line_number,
            kind,
            f"unexpected keyword {keyword!r}, expected one of {', '.join(allowed)}",
        )

    values = _convert(schema, fields, kind, line_number, path)
    record = schema.record(**values)
    source = _source(path, line_number)
    if source is not None:
        record = replace(record, source=source)
    return record


def parse_master_entry(
    text: str, line_number: int = 0, path: Optional[Union[str, Path]] = None
) -> MasterEntry:
    """
    Parse one line of a master file: ``<sub-file path> <kind>``.

    Raises
    ------
    MalformedRecord
        If either field is missing or the kind is unknown
    """
    tokens = text.split()
    if len(tokens) < 2:
        raise MalformedRecord(
            path, line_number, MASTER, f"expected '<path> <kind>', got {len(tokens)} field(s)"
        )

    sub_path, kind = tokens[0], tokens[1].lower()
    if kind not in KIND_KEYWORDS:
        raise MalformedRecord(
            path,
            line_number,
            MASTER,
            f"unknown record kind {tokens[1]!r}, expected one of {', '.join(RECORD_KINDS)}",
        )

    return MasterEntry(sub_path, kind, _source(path, line_number))


def is_header(record: RawRecord) -> bool:
    """True for records that open a table of samples."""
    return isinstance(record, (PhotoEdgeRecord, InnerEdgeRecord, CollisionRecord))
