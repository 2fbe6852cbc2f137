"""
Tests for derived radiative and collisional quantities.
"""

import math

import numpy as np
import pytest

from atomix.atomic.derived import einstein_a, scaled_energy, transition_energy_ev, upsilon
from atomix.atomic.structures import ALLOWED, FORBIDDEN, CollisionStrength, Line
from atomix.core.exceptions import InsufficientSamples, OutOfRange
from atomix.core.units import energy_to_frequency, wavelength_to_frequency


@pytest.fixture
def lyman_alpha():
    """H I 1s-2p with the NIST oscillator strength."""
    return Line(
        ion=0,
        lower=0,
        upper=1,
        frequency=float(wavelength_to_frequency(1215.67)),
        gf=0.8328,
        g_lower=2.0,
        g_upper=6.0,
    )


class TestEinsteinA:
    def test_lyman_alpha(self, lyman_alpha):
        # NIST: A = 6.2648e8 s^-1
        assert einstein_a(lyman_alpha) == pytest.approx(6.265e8, rel=1e-2)

    def test_scaling(self, lyman_alpha):
        base = einstein_a(lyman_alpha)
        doubled = Line(0, 0, 1, 2.0 * lyman_alpha.frequency, 0.8328, 2.0, 6.0)
        heavier = Line(0, 0, 1, lyman_alpha.frequency, 0.8328, 2.0, 12.0)
        assert einstein_a(doubled) == pytest.approx(4.0 * base)
        assert einstein_a(heavier) == pytest.approx(0.5 * base)

    def test_transition_energy(self):
        line = Line(0, 0, 1, float(energy_to_frequency(10.2)), 1.0)
        assert transition_energy_ev(line) == pytest.approx(10.2)
        assert scaled_energy(line, 20.4) == pytest.approx(2.0)


def _table(transition_type, energies, values):
    return CollisionStrength(0, transition_type, np.array(energies), np.array(values))


class TestUpsilon:
    @pytest.fixture
    def allowed(self):
        return _table(ALLOWED, [1.0, 2.0, 4.0], [1.0, 1.5, 2.0])

    def test_inside_grid_is_linear(self, allowed):
        assert upsilon(allowed, 1.5) == pytest.approx(1.25)
        assert upsilon(allowed, 3.0) == pytest.approx(1.75)

    def test_sample_points_are_exact(self, allowed):
        assert upsilon(allowed, 2.0) == 1.5
        assert upsilon(allowed, 4.0) == 2.0

    def test_below_grid_is_clamped(self, allowed):
        assert upsilon(allowed, 0.5) == 1.0

    def test_allowed_grows_with_log_energy(self, allowed):
        slope = 0.5 / math.log(2.0)
        assert upsilon(allowed, 8.0) == pytest.approx(2.5)
        assert upsilon(allowed, 40.0) == pytest.approx(2.0 + slope * math.log(10.0))

    def test_allowed_falling_tail_stays_flat(self):
        table = _table(ALLOWED, [1.0, 2.0], [2.0, 1.0])
        assert upsilon(table, 10.0) == 1.0

    def test_forbidden_stays_flat(self):
        table = _table(FORBIDDEN, [1.0, 3.0], [0.2, 0.1])
        assert upsilon(table, 3.0) == 0.1
        assert upsilon(table, 100.0) == 0.1

    def test_errors(self, allowed):
        with pytest.raises(InsufficientSamples):
            upsilon(_table(ALLOWED, [1.0], [1.0]), 1.0)
        with pytest.raises(ValueError, match="Unknown transition type"):
            upsilon(_table("resonant", [1.0, 2.0], [1.0, 1.0]), 1.5)
        with pytest.raises(OutOfRange):
            upsilon(allowed, float("nan"))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
