"""
Unit conversion utilities for atomix.

The catalog stores every spectral key as a frequency in Hz. The data files
and most users think in Angstrom and eV, so these helpers convert between
the two views.
"""

import numpy as np
from typing import Union

from atomix.core.constants import ANGSTROM_CM, C_CGS, EV_TO_HZ, HZ_TO_EV

# ============================================================================
# Wavelength Conversions
# ============================================================================


def wavelength_to_frequency(wavelength_a: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
    """
    Convert a vacuum wavelength in Angstrom to a frequency in Hz.

    Parameters
    ----------
    wavelength_a : float or array
        Wavelength(s) in Angstrom, must be positive

    Returns
    -------
    float or array
        Frequency in Hz

    Examples
    --------
    >>> round(wavelength_to_frequency(1215.67) / 1e15, 4)
    2.4661
    """
    return C_CGS / (wavelength_a * ANGSTROM_CM)


def frequency_to_wavelength(frequency_hz: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
    """Convert a frequency in Hz to a vacuum wavelength in Angstrom."""
    return C_CGS / frequency_hz / ANGSTROM_CM


# ============================================================================
# Energy Conversions
# ============================================================================


def energy_to_frequency(energy_ev: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
    """Photon frequency in Hz for an energy in eV."""
    return energy_ev * EV_TO_HZ


def frequency_to_energy(frequency_hz: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
    """Photon energy in eV for a frequency in Hz."""
    return frequency_hz * HZ_TO_EV
