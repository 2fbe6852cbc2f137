"""
Physical constants for atomix calculations.

Constants are in SI base units unless otherwise specified. The atomic data
files and the derived radiative quantities use CGS, so a CGS block is
provided as well.
"""

import numpy as np

# ============================================================================
# Fundamental Constants
# ============================================================================

# Planck constant
H_PLANCK = 6.62607015e-34  # J·s
H_PLANCK_EV = 4.135667696e-15  # eV·s

# Speed of light
C_LIGHT = 2.99792458e8  # m/s

# Electron properties
M_E = 9.1093837015e-31  # kg (electron mass)
E_CHARGE = 1.602176634e-19  # C (elementary charge)

# ============================================================================
# CGS Constants
# ============================================================================

C_CGS = 2.99792458e10  # cm/s
H_CGS = 6.62607015e-27  # erg·s
M_E_CGS = 9.1093837015e-28  # g
E_CHARGE_ESU = 4.80320471e-10  # statC

# A_ul = A21_CONSTANT * nu^2 * gf / g_u
A21_CONSTANT = 8.0 * np.pi**2 * E_CHARGE_ESU**2 / (M_E_CGS * C_CGS**3)

# ============================================================================
# Conversion Factors
# ============================================================================

# Energy conversions
EV_TO_J = E_CHARGE  # 1 eV = E_CHARGE J
J_TO_EV = 1.0 / EV_TO_J
EV_TO_ERG = 1.602176634e-12

# Photon energy <-> frequency
EV_TO_HZ = 1.0 / H_PLANCK_EV
HZ_TO_EV = H_PLANCK_EV

# Wavelength conversions
CM_TO_EV = 1.23984193e-4  # cm^-1 to eV
EV_TO_CM = 1.0 / CM_TO_EV
ANGSTROM_CM = 1.0e-8

# ============================================================================
# Numerical Constants
# ============================================================================

# Small number for numerical stability
EPSILON = np.finfo(np.float64).eps
