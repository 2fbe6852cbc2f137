"""
Indirect sort indices over record tables.

A ``SortIndex`` is a permutation of table positions giving ascending order
by a key (frequency, threshold frequency, ...). The table itself is never
reordered: callers keep addressing records by their canonical position and
use the index only for ordered traversal and range queries.
"""

from dataclasses import dataclass
from typing import Callable, Iterator, Sequence, TypeVar

import numpy as np

from atomix.core.exceptions import InvalidRange

T = TypeVar("T")


@dataclass(frozen=True)
class QueryWindow:
    """
    Contiguous range of positions in a ``SortIndex``.

    Attributes
    ----------
    lo : int
        First index position inside the window
    hi : int
        Last index position inside the window (inclusive). A window with
        ``lo > hi`` is empty.
    """

    lo: int
    hi: int

    @property
    def is_empty(self) -> bool:
        return self.lo > self.hi

    def __len__(self) -> int:
        return max(0, self.hi - self.lo + 1)

    def positions(self) -> range:
        """Index positions covered by the window."""
        return range(self.lo, self.hi + 1)


class SortIndex:
    """
    Stable ascending permutation of a table by a scalar key.

    Parameters
    ----------
    order : array of int
        Table positions in ascending key order
    keys : array of float
        The keys in the same (ascending) order as ``order``
    """

    def __init__(self, order: np.ndarray, keys: np.ndarray):
        order = np.array(order, dtype=np.intp)
        keys = np.array(keys, dtype=float)
        if order.shape != keys.shape:
            raise ValueError(f"order and keys differ in length ({order.size} != {keys.size})")
        order.setflags(write=False)
        keys.setflags(write=False)
        self._order = order
        self._keys = keys

    @classmethod
    def build(cls, table: Sequence[T], key: Callable[[T], float]) -> "SortIndex":
        """
        Build the index for ``table`` ordered by ``key(record)``.

        Ties keep their original table order, so identical input always
        yields an identical index.
        """
        raw = np.fromiter((key(record) for record in table), dtype=float, count=len(table))
        order = np.argsort(raw, kind="stable")
        return cls(order, raw[order])

    @property
    def order(self) -> np.ndarray:
        """Table positions in ascending key order (read-only)."""
        return self._order

    @property
    def keys(self) -> np.ndarray:
        """Sorted keys (read-only)."""
        return self._keys

    def __len__(self) -> int:
        return int(self._order.size)

    def __getitem__(self, position: int) -> int:
        return int(self._order[position])

    def __iter__(self) -> Iterator[int]:
        return (int(i) for i in self._order)

    def restrict(self, key_min: float, key_max: float) -> QueryWindow:
        """
        Select the index positions whose keys fall in ``[key_min, key_max]``.

        Parameters
        ----------
        key_min, key_max : float
            Inclusive bounds on the key

        Returns
        -------
        QueryWindow
            Window of index positions; empty (``lo > hi``) if no key is in range

        Raises
        ------
        InvalidRange
            If ``key_min > key_max``
        """
        if key_min > key_max:
            raise InvalidRange(key_min, key_max)

        lo = int(np.searchsorted(self._keys, key_min, side="left"))
        hi = int(np.searchsorted(self._keys, key_max, side="right")) - 1
        return QueryWindow(lo, hi)

    def table_positions(self, window: QueryWindow) -> np.ndarray:
        """Table positions covered by ``window``, in ascending key order."""
        if window.is_empty:
            return self._order[:0]
        if window.lo < 0 or window.hi >= len(self):
            raise IndexError(f"Window {window} outside of index of size {len(self)}")
        return self._order[window.lo : window.hi + 1]

    def is_permutation(self) -> bool:
        """True if every table position appears exactly once."""
        n = len(self)
        if n == 0:
            return True
        return bool(np.array_equal(np.sort(self._order), np.arange(n)))


def build_index(table: Sequence[T], key_fn: Callable[[T], float]) -> SortIndex:
    """Build a stable ``SortIndex`` over ``table`` ordered by ``key_fn``."""
    return SortIndex.build(table, key_fn)
