"""
Tests for the master catalog loader.
"""

import threading
from pathlib import Path

import numpy as np
import pytest

from atomix.atomic.catalog import Catalog
from atomix.atomic.loader import CatalogHandle, load, read_master, resolve_master_path
from atomix.core.config import DATA_DIR_ENV, LoaderSettings
from atomix.core.constants import EV_TO_HZ
from atomix.core.exceptions import (
    BrokenReference,
    LoadCancelled,
    LoadError,
    LoadIoFailure,
    MalformedRecord,
)

EXAMPLE_MASTER = Path(__file__).parent.parent / "examples" / "data" / "demo.dat"


def _ten_levels() -> str:
    return "".join(
        f"Level 1 1 {n} {13.598 * (1.0 - 1.0 / n**2):.4f} {2 * n * n}\n" for n in range(1, 11)
    )


def test_load_base_dataset(master_file):
    catalog = load(master_file)

    assert isinstance(catalog, Catalog)
    assert catalog.summary() == {
        "elements": 3,
        "ions": 2,
        "levels": 5,
        "lines": 4,
        "photo": 2,
        "inner": 1,
        "collisions": 1,
    }
    assert catalog.is_valid
    assert catalog.master_path == master_file


def test_foreign_keys_resolve(master_file):
    catalog = load(master_file)

    for ion in catalog.ions:
        assert 0 <= ion.element < len(catalog.elements)
    for level in catalog.levels:
        assert 0 <= level.ion < len(catalog.ions)
    for line in catalog.lines:
        assert catalog.levels[line.lower].ion == line.ion
        assert catalog.levels[line.upper].ion == line.ion
    for edge in catalog.photo_edges:
        assert catalog.levels[edge.level].ion == edge.ion
    for edge in catalog.inner_edges:
        assert catalog.ions[edge.ion].element == edge.element
    for table in catalog.collisions:
        assert 0 <= table.line < len(catalog.lines)


def test_ion_level_ranges(master_file):
    catalog = load(master_file)
    h, he = catalog.ions
    assert (h.first_level, h.last_level) == (0, 3)
    assert (he.first_level, he.last_level) == (3, 5)
    assert [level.config for level in catalog.levels_for_ion(1)] == ["1s2", "1s2s"]


def test_line_weights_copied_from_levels(master_file):
    catalog = load(master_file)
    lyman_alpha = catalog.lines[0]
    assert lyman_alpha.g_lower == 2.0
    assert lyman_alpha.g_upper == 8.0
    assert lyman_alpha.wavelength == pytest.approx(1215.67)


def test_edges_are_stored_in_frequency(master_file):
    catalog = load(master_file)
    edge = catalog.photo_edges[0]
    assert edge.threshold == pytest.approx(13.598 * EV_TO_HZ)
    assert edge.frequencies[0] == edge.threshold
    assert edge.n_samples == 3
    with pytest.raises(ValueError):
        edge.frequencies[0] = 0.0


def test_sub_file_order_does_not_matter(write_dataset):
    master = write_dataset(
        master=[
            ("collisions.dat", "collisions"),
            ("lines.dat", "lines"),
            ("levels.dat", "levels"),
            ("ions.dat", "ions"),
            ("elements.dat", "elements"),
        ]
    )
    catalog = load(master)
    assert len(catalog.collisions) == 1
    assert catalog.collisions[0].line == 0


def test_empty_master(write_dataset):
    catalog = load(write_dataset(master=[]))
    assert sum(catalog.summary().values()) == 0
    assert catalog.is_valid
    assert catalog.restrict(0.0, 1e20).is_empty


def test_master_suffix_appended(write_dataset, tmp_path, monkeypatch):
    write_dataset(master_name="atomic.dat")
    monkeypatch.chdir(tmp_path)
    assert resolve_master_path("atomic").resolve() == (tmp_path / "atomic.dat").resolve()
    assert len(load("atomic").lines) == 4


def test_data_dirs_searched(write_dataset, tmp_path, monkeypatch):
    write_dataset(master_name="atomic.dat")
    monkeypatch.chdir(tmp_path.parent)
    settings = LoaderSettings(data_dirs=[tmp_path])
    assert load("atomic.dat", settings).summary()["ions"] == 2


def test_master_with_other_suffix_gets_dat(write_dataset, tmp_path, monkeypatch):
    write_dataset(master_name="atomic77.v2.dat")
    monkeypatch.chdir(tmp_path)
    assert resolve_master_path("atomic77.v2").name == "atomic77.v2.dat"
    assert resolve_master_path("atomic77.v2.dat").name == "atomic77.v2.dat"


def test_environment_data_dir(write_dataset, tmp_path, monkeypatch):
    write_dataset()
    elsewhere = tmp_path / "elsewhere"
    elsewhere.mkdir()
    monkeypatch.chdir(elsewhere)
    monkeypatch.setenv(DATA_DIR_ENV, str(tmp_path))

    assert load("master.dat").summary()["lines"] == 4
    assert load("master").summary()["lines"] == 4

    handle = CatalogHandle()
    assert handle.reload("master.dat").summary()["ions"] == 2


def test_read_master_skips_comments(master_file):
    entries = read_master(master_file)
    assert [e.kind for e in entries][:2] == ["elements", "ions"]
    assert entries[0].source.line_number == 2


class TestBrokenReferences:
    """Dangling foreign keys abort the load."""

    def test_line_to_missing_level(self, write_dataset):
        master = write_dataset(
            {
                "levels.dat": _ten_levels(),
                "lines.dat": "Line 1 1 1215.67 0.8328 1 999\n",
            },
            master=[
                ("elements.dat", "elements"),
                ("ions.dat", "ions"),
                ("levels.dat", "levels"),
                ("lines.dat", "lines"),
            ],
        )
        with pytest.raises(BrokenReference) as excinfo:
            load(master)

        error = excinfo.value
        assert error.target == "level"
        assert error.key == 999
        assert error.kind == "lines"
        assert error.line_number == 1
        assert error.path.name == "lines.dat"
        assert "999" in str(error)

    def test_ion_to_missing_element(self, write_dataset):
        master = write_dataset({"ions.dat": "Ion 1 1 13.598\nIon 8 1 13.618\n"})
        with pytest.raises(BrokenReference) as excinfo:
            load(master)
        assert excinfo.value.target == "element"
        assert excinfo.value.key == 8
        assert excinfo.value.line_number == 2

    def test_level_to_missing_ion(self, write_dataset):
        master = write_dataset({"levels.dat": BASE_LEVELS + "Level 2 2 1 0.0 2\n"})
        with pytest.raises(BrokenReference) as excinfo:
            load(master)
        assert excinfo.value.target == "ion"
        assert excinfo.value.key == (2, 2)

    def test_collision_without_line(self, write_dataset):
        master = write_dataset(
            {"collisions.dat": "Coll 2 1 1 2 forbidden 2\nCollSamp 1.0 0.1\nCollSamp 2.0 0.1\n"}
        )
        catalog = load(master)
        assert catalog.collisions[0].line == 2

        master = write_dataset(
            {"collisions.dat": "Coll 1 1 1 3 forbidden 2\nCollSamp 1.0 0.1\nCollSamp 2.0 0.1\n",
             "lines.dat": "Line 1 1 1215.67 0.8328 1 2\n"}
        )
        with pytest.raises(BrokenReference) as excinfo:
            load(master)
        assert excinfo.value.target == "line"
        assert excinfo.value.key == (1, 1, 1, 3)


BASE_LEVELS = """\
Level 1 1 1 0.000 2 1s
Level 1 1 2 10.199 8 2p
Level 1 1 3 12.088 18 3p
Level 2 1 1 0.000 1 1s2
Level 2 1 2 19.820 3 1s2s
"""


class TestMalformedData:
    """Malformed lines abort the load with their location."""

    def test_bad_field_reports_line(self, write_dataset):
        master = write_dataset({"ions.dat": "# ions\n\nIon 1 1 13.598\nIon 2 x 24.587\n"})
        with pytest.raises(MalformedRecord) as excinfo:
            load(master)
        assert excinfo.value.line_number == 4
        assert excinfo.value.kind == "ions"
        assert excinfo.value.path.name == "ions.dat"

    def test_missing_samples(self, write_dataset):
        master = write_dataset(
            {"photo.dat": "PhotEdge 1 1 1 13.598 3\nPhot 13.598 6.3e-18\nPhot 27.0 7.9e-19\n"}
        )
        with pytest.raises(MalformedRecord, match="declares 3 samples but only 2") as excinfo:
            load(master)
        assert excinfo.value.line_number == 1

    def test_header_interrupting_table(self, write_dataset):
        master = write_dataset(
            {
                "inner.dat": (
                    "InnerEdge 2 1 1 0 24.587 2\nInner 24.587 7.4e-18\n"
                    "InnerEdge 2 1 1 0 24.587 2\nInner 24.587 7.4e-18\nInner 100.0 2.6e-19\n"
                )
            }
        )
        with pytest.raises(MalformedRecord, match="only 1 follow"):
            load(master)

    def test_duplicate_collision_table(self, write_dataset):
        master = write_dataset(
            {
                "collisions.dat": (
                    "Coll 1 1 1 2 allowed 2\nCollSamp 1.0 0.30\nCollSamp 2.0 0.45\n"
                    "Coll 1 1 1 2 forbidden 2\nCollSamp 1.0 0.30\nCollSamp 2.0 0.45\n"
                )
            }
        )
        with pytest.raises(MalformedRecord, match="duplicate collision table") as excinfo:
            load(master)
        assert excinfo.value.line_number == 4
        assert excinfo.value.kind == "collisions"

    def test_sample_without_header(self, write_dataset):
        master = write_dataset({"collisions.dat": "CollSamp 1.0 0.3\n"})
        with pytest.raises(MalformedRecord, match="without a table header"):
            load(master)

    def test_extra_sample(self, write_dataset):
        master = write_dataset(
            {"photo.dat": "PhotEdge 1 1 1 13.6 2\nPhot 13.6 1e-18\nPhot 20.0 5e-19\nPhot 30.0 2e-19\n"}
        )
        with pytest.raises(MalformedRecord) as excinfo:
            load(master)
        assert excinfo.value.line_number == 4

    def test_duplicate_element(self, write_dataset):
        master = write_dataset({"elements.dat": "Element 1 H 12.0\nElement 1 D 7.0\n"})
        with pytest.raises(MalformedRecord, match="duplicate element z=1") as excinfo:
            load(master)
        assert excinfo.value.line_number == 2

    def test_duplicate_level(self, write_dataset):
        master = write_dataset({"levels.dat": BASE_LEVELS + "Level 1 1 2 10.2 8\n"})
        with pytest.raises(MalformedRecord, match="duplicate level 2"):
            load(master)

    def test_unknown_kind_in_master(self, write_dataset):
        master = write_dataset(master=[("elements.dat", "elements"), ("x.dat", "molecules")])
        with pytest.raises(MalformedRecord) as excinfo:
            load(master)
        assert excinfo.value.kind == "master"
        assert excinfo.value.line_number == 3


class TestIoFailures:
    def test_missing_master(self, tmp_path):
        with pytest.raises(LoadIoFailure):
            load(tmp_path / "nothing_here.dat")

    def test_missing_sub_file(self, write_dataset):
        master = write_dataset(master=[("elements.dat", "elements"), ("gone.dat", "ions")])
        with pytest.raises(LoadIoFailure) as excinfo:
            load(master)
        assert excinfo.value.path == Path("gone.dat")

    def test_load_errors_share_a_base(self, tmp_path):
        with pytest.raises(LoadError):
            load(tmp_path / "nothing_here.dat")


class TestCatalogHandle:
    """Reload publishes whole catalogs only."""

    def test_reload_publishes(self, master_file):
        handle = CatalogHandle()
        assert handle.current is None
        catalog = handle.reload(master_file)
        assert handle.current is catalog

    def test_failed_reload_keeps_previous(self, master_file, write_dataset):
        handle = CatalogHandle()
        first = handle.reload(master_file)

        broken = write_dataset(
            {"lines.dat": "Line 1 1 1215.67 0.8328 1 42\n"}, master_name="broken.dat"
        )
        with pytest.raises(BrokenReference):
            handle.reload(broken)
        assert handle.current is first

    def test_reload_replaces_everything(self, master_file, write_dataset):
        handle = CatalogHandle()
        first = handle.reload(master_file)
        smaller = write_dataset(
            master=[("elements.dat", "elements")], master_name="elements_only.dat"
        )
        second = handle.reload(smaller)

        assert second is not first
        assert handle.current is second
        assert len(second.lines) == 0
        assert len(second.line_index) == 0
        assert len(first.lines) == 4

    def test_cancelled_load_publishes_nothing(self, master_file):
        handle = CatalogHandle()
        cancel = threading.Event()
        cancel.set()
        with pytest.raises(LoadCancelled):
            handle.reload(master_file, cancel_event=cancel)
        assert handle.current is None


def test_identical_input_gives_identical_indices(master_file):
    first = load(master_file)
    second = load(master_file)
    assert np.array_equal(first.line_index.order, second.line_index.order)
    assert np.array_equal(first.photo_index.order, second.photo_index.order)


def test_example_dataset_loads():
    catalog = load(EXAMPLE_MASTER)
    assert catalog.is_valid
    assert catalog.element_name(2) == "He"
    assert len(catalog.lines) > 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
