"""
Example usage of the atomic data catalog.

Loads the demonstration data set in ``examples/data``, then runs a few
range queries and interpolations against it.
"""

import threading
from pathlib import Path

from atomix import CatalogHandle, load
from atomix.core.exceptions import LoadError
from atomix.core.logging_config import setup_logging
from atomix.core.units import energy_to_frequency, frequency_to_energy

# Setup logging
setup_logging()

DEMO_MASTER = Path(__file__).parent / "data" / "demo.dat"


def example_lines_in_window(catalog):
    """Example: All lines between 1000 and 2000 Angstrom."""
    print("\n=== Lines between 1000 and 2000 A ===")

    window = catalog.restrict_wavelength(1000.0, 2000.0)
    print(f"{len(window)} lines in window")
    for line in catalog.lines_in_window(window):
        ion = catalog.ions[line.ion]
        print(
            f"  {catalog.element_name(ion.z):>2} {ion.stage}  "
            f"{line.wavelength:9.3f} A  gf={line.gf:.3e}"
        )


def example_cross_sections(catalog):
    """Example: Photoionization cross sections of every ground-state edge."""
    print("\n=== Photoionization at 30 eV ===")

    frequency = float(energy_to_frequency(30.0))
    for i, edge in enumerate(catalog.photo_edges):
        ion = catalog.ions[edge.ion]
        level = catalog.levels[edge.level]
        sigma = catalog.photo_cross_section(i, frequency) if frequency <= edge.frequencies[-1] else None
        threshold = frequency_to_energy(edge.threshold)
        label = f"{catalog.element_name(ion.z)} {ion.stage} level {level.number}"
        if sigma is None:
            print(f"  {label:<14} threshold {threshold:7.3f} eV  beyond table")
        else:
            print(f"  {label:<14} threshold {threshold:7.3f} eV  sigma={sigma:.3e} cm^2")


def example_rates(catalog):
    """Example: Einstein A values and collision strengths."""
    print("\n=== Radiative and collisional data ===")

    df = catalog.to_dataframe("lines")
    print(df[["wavelength", "gf", "einstein_a"]].sort_values("wavelength").to_string())

    for coll in catalog.collisions:
        line = catalog.lines[coll.line]
        values = [catalog.line_upsilon(coll.line, u) for u in (1.0, 3.0, 20.0)]
        print(
            f"  {line.wavelength:9.3f} A ({coll.transition_type}): "
            + ", ".join(f"{v:.3f}" for v in values)
        )


def example_reload():
    """Example: Publishing catalogs through a handle."""
    print("\n=== Reload ===")

    handle = CatalogHandle()
    handle.reload(DEMO_MASTER)
    print(f"Published: {handle.current!r}")

    cancel = threading.Event()
    cancel.set()
    try:
        handle.reload(DEMO_MASTER, cancel_event=cancel)
    except LoadError as e:
        print(f"Reload failed ({e}); still serving {handle.current!r}")


if __name__ == "__main__":
    catalog = load(DEMO_MASTER)
    print(catalog)

    example_lines_in_window(catalog)
    example_cross_sections(catalog)
    example_rates(catalog)
    example_reload()
