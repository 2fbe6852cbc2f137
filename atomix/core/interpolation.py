"""
Bracket search and interpolation on tabulated data.

``locate`` finds the pair of sorted keys bracketing a value and the
fractional position of the value inside that bracket. ``interpolate``
blends tabulated values with that fraction. Both understand two spacings:

- ``"linear"``: fraction and blend are computed on the raw values
- ``"log"``: fraction is computed on log(x) and the blend on log(y), which
  suits geometrically sampled tables such as photoionization cross sections
"""

from typing import Sequence, Tuple, Union

import numpy as np

from atomix.core.exceptions import InsufficientSamples, InvalidRange, OutOfRange

LINEAR = "linear"
LOG = "log"

ArrayLike = Union[Sequence[float], np.ndarray]


def _check_mode(mode: str) -> None:
    if mode not in (LINEAR, LOG):
        raise ValueError(f"Unknown interpolation mode: {mode}. Use '{LINEAR}' or '{LOG}'")


def locate(value: float, sorted_keys: ArrayLike, mode: str = LINEAR) -> Tuple[int, float]:
    """
    Find the bracket containing ``value`` by binary search.

    Parameters
    ----------
    value : float
        Value to locate
    sorted_keys : array
        Keys in ascending order (at least two)
    mode : str
        'linear' or 'log' spacing of the keys

    Returns
    -------
    lower_index : int
        Index ``i`` such that ``sorted_keys[i] <= value <= sorted_keys[i + 1]``
    fraction : float
        Position of ``value`` within the bracket, 0 at the lower key and 1 at
        the upper key

    Raises
    ------
    InsufficientSamples
        If fewer than two keys are given
    OutOfRange
        If ``value`` lies below the first or above the last key
    InvalidRange
        If logarithmic spacing is requested on non-positive keys
    """
    _check_mode(mode)
    keys = np.asarray(sorted_keys, dtype=float)
    n = keys.size
    if n < 2:
        raise InsufficientSamples(n)

    # NaN fails both comparisons, so test for the in-range case
    if not (keys[0] <= value <= keys[-1]):
        raise OutOfRange(value, float(keys[0]), float(keys[-1]))

    i = int(np.searchsorted(keys, value, side="right")) - 1
    i = min(i, n - 2)
    lo = keys[i]
    hi = keys[i + 1]

    if value == lo:
        return i, 0.0
    if value == hi:
        return i, 1.0

    if mode == LOG:
        if lo <= 0.0:
            raise InvalidRange(
                float(lo), float(hi), "Logarithmic spacing requires strictly positive keys"
            )
        fraction = (np.log(value) - np.log(lo)) / (np.log(hi) - np.log(lo))
    else:
        fraction = (value - lo) / (hi - lo)

    return i, float(fraction)


def interpolate(x: float, xs: ArrayLike, ys: ArrayLike, mode: str = LINEAR) -> float:
    """
    Interpolate tabulated ``ys(xs)`` at ``x``.

    In logarithmic mode the values are blended in log space. If either of
    the two bracketing values is zero (or negative) the logarithm is
    undefined and the blend falls back to linear for that bracket. At an
    exact sample point the tabulated value is returned unchanged.

    Parameters
    ----------
    x : float
        Abscissa to evaluate at
    xs : array
        Ascending abscissae
    ys : array
        Tabulated values, same length as ``xs``
    mode : str
        'linear' or 'log'

    Returns
    -------
    float
        Interpolated value

    Raises
    ------
    InsufficientSamples
        If the tables are shorter than two samples or differ in length
    OutOfRange
        If ``x`` lies outside ``xs``
    """
    _check_mode(mode)
    xs = np.asarray(xs, dtype=float)
    ys = np.asarray(ys, dtype=float)

    if xs.ndim != 1 or xs.shape != ys.shape:
        raise InsufficientSamples(
            min(xs.size, ys.size), f"xs and ys must be 1-D with equal length ({xs.size} != {ys.size})"
        )

    i, fraction = locate(x, xs, mode)
    y0 = ys[i]
    y1 = ys[i + 1]

    if fraction == 0.0:
        return float(y0)
    if fraction == 1.0:
        return float(y1)

    if mode == LOG and y0 > 0.0 and y1 > 0.0:
        log_y = np.log(y0) + fraction * (np.log(y1) - np.log(y0))
        return float(np.exp(log_y))

    return float(y0 + fraction * (y1 - y0))
