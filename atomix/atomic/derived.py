"""
Quantities derived from the loaded atomic data.

All functions here are pure: they read records and return numbers.
"""

import math

import numpy as np

from atomix.atomic.structures import ALLOWED, FORBIDDEN, CollisionStrength, Line
from atomix.core.constants import A21_CONSTANT
from atomix.core.exceptions import InsufficientSamples, InvalidRange, OutOfRange
from atomix.core.interpolation import LINEAR, interpolate
from atomix.core.units import frequency_to_energy


def einstein_a(line: Line) -> float:
    """
    Spontaneous emission rate of a transition.

    A_ul = 8 pi^2 e^2 nu^2 / (m_e c^3) * gf / g_u

    Parameters
    ----------
    line : Line
        Transition with frequency, gf and the upper level weight filled in

    Returns
    -------
    float
        Einstein A coefficient in s^-1
    """
    return A21_CONSTANT * line.frequency * line.frequency * line.gf / line.g_upper


def transition_energy_ev(line: Line) -> float:
    """Energy separation of the two levels of ``line`` in eV."""
    return float(frequency_to_energy(line.frequency))


def scaled_energy(line: Line, incident_energy_ev: float) -> float:
    """Incident electron energy in units of the transition energy."""
    return incident_energy_ev / transition_energy_ev(line)


def upsilon(table: CollisionStrength, incident_energy: float) -> float:
    """
    Effective collision strength at a scaled incident energy.

    Inside the tabulated grid the value is interpolated linearly. Below the
    grid the first sample is returned. Above the grid the transition type
    decides: forbidden transitions stay flat at the last sample, allowed
    transitions continue the last segment's trend in log(energy), which is
    the Bethe-like high-energy behaviour. A falling last segment is not
    extrapolated downwards.

    Parameters
    ----------
    table : CollisionStrength
        Tabulated collision strengths
    incident_energy : float
        Incident energy in units of the transition energy

    Returns
    -------
    float
        Collision strength (dimensionless)
    """
    energies = table.energies
    upsilons = table.upsilons

    if energies.size < 2 or energies.size != upsilons.size:
        raise InsufficientSamples(int(min(energies.size, upsilons.size)))
    if table.transition_type not in (ALLOWED, FORBIDDEN):
        raise ValueError(f"Unknown transition type: {table.transition_type}")
    if not math.isfinite(incident_energy):
        raise OutOfRange(incident_energy, float(energies[0]), float(energies[-1]))

    if incident_energy <= energies[0]:
        return float(upsilons[0])
    if incident_energy <= energies[-1]:
        return interpolate(incident_energy, energies, upsilons, LINEAR)

    if table.transition_type == FORBIDDEN:
        return float(upsilons[-1])

    e_prev, e_last = energies[-2], energies[-1]
    if e_prev <= 0.0:
        raise InvalidRange(
            float(e_prev), float(e_last), "Allowed extrapolation requires positive energies"
        )
    slope = (upsilons[-1] - upsilons[-2]) / np.log(e_last / e_prev)
    slope = max(0.0, float(slope))
    return float(upsilons[-1] + slope * np.log(incident_energy / e_last))
