"""Weighted samples stored as ``(value, count)`` clusters.

A cluster stands for ``count`` repeated observations of ``value``. Every
statistic in this package walks clusters instead of a flattened sample, so the
cost is proportional to the number of *distinct* values.

Float identity:
    Deduplication compares values by their IEEE-754 bit pattern. ``+0.0`` and
    ``-0.0`` are therefore two different values, and so are NaNs with different
    payloads. Sorting uses the IEEE-754 total order derived from the same bits
    (``-NaN < -inf < ... < -0.0 < +0.0 < ... < +inf < +NaN``).

Determinism:
    Sums are accumulated in cluster order. Results are reproducible for a fixed
    input order; reordering clusters may change the last bits of a sum.
"""

from __future__ import annotations

import functools
import math
import struct
from typing import Dict, Iterable, Iterator, List, NamedTuple, Sequence, Tuple

import numpy as np

from .errors import InsufficientDataError

_MAGNITUDE_MASK = 0x7FFF_FFFF_FFFF_FFFF


def float_bits(value: float) -> int:
    """Return the IEEE-754 bit pattern of ``value`` as a signed 64-bit integer."""
    return struct.unpack("<q", struct.pack("<d", float(value)))[0]


def total_order_key(value: float) -> int:
    """Integer key that sorts floats in IEEE-754 total order."""
    bits = float_bits(value)
    return bits ^ _MAGNITUDE_MASK if bits < 0 else bits


def total_order_keys(values: np.ndarray) -> np.ndarray:
    """Vectorised :func:`total_order_key` for a float array."""
    bits = np.ascontiguousarray(values, dtype=np.float64).view(np.int64)
    return np.where(bits < 0, bits ^ np.int64(_MAGNITUDE_MASK), bits)


@functools.total_ordering
class TotalOrderFloat:
    """Float wrapper with bit-pattern equality/hashing and a total order.

    You should rarely need this directly. It exists so that generic code
    (``min``, ``sorted``, sets, dict keys) can handle NaN and signed zeros
    without surprises. Two wrappers are equal only if their bits are equal.
    """

    __slots__ = ("value",)

    def __init__(self, value: float):
        self.value = float(value)

    @property
    def bits(self) -> int:
        return float_bits(self.value)

    def __eq__(self, other):
        if not isinstance(other, TotalOrderFloat):
            return NotImplemented
        return self.bits == other.bits

    def __lt__(self, other):
        if not isinstance(other, TotalOrderFloat):
            return NotImplemented
        return total_order_key(self.value) < total_order_key(other.value)

    def __hash__(self) -> int:
        return hash(self.bits)

    def __float__(self) -> float:
        return self.value

    def __repr__(self) -> str:
        return f"TotalOrderFloat({self.value!r})"


class Cluster(NamedTuple):
    """One value and the number of times it was observed."""

    value: float
    count: int


def _total_weight(clusters: Sequence[Tuple[float, int]]) -> int:
    total = 0
    for _, count in clusters:
        if count < 1:
            raise ValueError(f"Cluster count must be >= 1, got {count}.")
        total += count
    return int(total)


class ClusterList:
    """Read-only view over a sequence of clusters with a cached total weight.

    The sequence is referenced, not copied. Statistics that need order (median,
    percentiles) expect it sorted ascending by value; that is the caller's
    responsibility.

    ``len()`` is the number of clusters, :attr:`total_weight` the number of
    observations they represent.
    """

    def __init__(self, clusters: Sequence[Tuple[float, int]]):
        self._clusters = clusters
        self._total = _total_weight(clusters)

    @property
    def total_weight(self) -> int:
        """Sum of all counts. O(1)."""
        return self._total

    def __len__(self) -> int:
        return len(self._clusters)

    def __iter__(self) -> Iterator[Tuple[float, int]]:
        return iter(self._clusters)

    def __getitem__(self, index):
        return self._clusters[index]

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({list(self._clusters)!r}, "
            f"total_weight={self._total})"
        )

    def is_empty(self) -> bool:
        return len(self._clusters) == 0

    def _values(self) -> np.ndarray:
        return np.array([value for value, _ in self._clusters], dtype=np.float64)

    def is_sorted(self) -> bool:
        keys = total_order_keys(self._values())
        return bool(np.all(keys[:-1] <= keys[1:]))

    def sum(self) -> float:
        total = 0.0
        for value, count in self._clusters:
            total += value * count
        return total

    def sum_squared_diff(self, base: float) -> float:
        total = 0.0
        for value, count in self._clusters:
            total += (value - base) ** 2 * count
        return total

    def _check_split(self, length: int) -> None:
        if not 0 <= length <= self._total:
            raise InsufficientDataError(
                f"Cannot split {length} observations from a list of "
                f"total weight {self._total}."
            )

    def split_start(self, length: int) -> "OwnedClusterList":
        """Leading clusters holding exactly ``length`` observations.

        A cluster straddling the cut keeps only the part that fits.
        """
        self._check_split(length)
        out: List[Cluster] = []
        seen = 0
        if length:
            for value, count in self._clusters:
                seen += count
                if seen >= length:
                    out.append(Cluster(value, count - (seen - length)))
                    break
                out.append(Cluster(value, count))
        return OwnedClusterList._from_trusted(out, length)

    def split_end(self, length: int) -> "OwnedClusterList":
        """Trailing clusters holding exactly ``length`` observations."""
        self._check_split(length)
        out: List[Cluster] = []
        seen = 0
        if length:
            for value, count in reversed(self._clusters):
                seen += count
                if seen >= length:
                    out.append(Cluster(value, count - (seen - length)))
                    break
                out.append(Cluster(value, count))
        out.reverse()
        return OwnedClusterList._from_trusted(out, length)

    def optimize_values(self) -> "OwnedClusterList":
        """Merge clusters with bit-identical values by adding their counts.

        Clusters keep the order in which each value was first seen. The total
        weight is unchanged and the operation is idempotent. O(n).
        """
        collected: Dict[int, List] = {}
        for value, count in self._clusters:
            entry = collected.get(float_bits(value))
            if entry is None:
                collected[float_bits(value)] = [value, count]
            else:
                entry[1] += count
        merged = [Cluster(value, count) for value, count in collected.values()]
        return OwnedClusterList._from_trusted(merged, self._total)


class OwnedClusterList(ClusterList):
    """Cluster list that owns (and may reorder) its clusters."""

    def __init__(self, clusters: Iterable[Tuple[float, int]] = ()):
        owned = [Cluster(float(value), int(count)) for value, count in clusters]
        super().__init__(owned)

    @classmethod
    def _from_trusted(cls, clusters: List[Cluster], total: int) -> "OwnedClusterList":
        obj = cls.__new__(cls)
        obj._clusters = clusters
        obj._total = total
        return obj

    @classmethod
    def from_values(cls, values: Iterable[float]) -> "OwnedClusterList":
        """One cluster of count 1 per value."""
        return cls((value, 1) for value in values)

    @classmethod
    def from_rows(cls, rows: Iterable[Sequence[float]]) -> "OwnedClusterList":
        """Build clusters from pre-tokenised rows.

        A row is either ``[value]`` (count 1) or ``[value, count]``, where the
        count is rounded to the nearest integer.
        """
        clusters = []
        for row in rows:
            if len(row) == 1:
                clusters.append((row[0], 1))
            elif len(row) == 2:
                clusters.append((row[0], math.floor(float(row[1]) + 0.5)))
            else:
                raise ValueError(
                    f"Expected one or two values per row, got {len(row)}."
                )
        return cls(clusters)

    def borrow(self) -> ClusterList:
        """Read-only view sharing this list's storage."""
        view = ClusterList.__new__(ClusterList)
        view._clusters = self._clusters
        view._total = self._total
        return view

    def sort(self) -> None:
        """Sort in place, ascending by value in IEEE-754 total order."""
        order = np.argsort(total_order_keys(self._values()), kind="stable")
        self._clusters[:] = [self._clusters[i] for i in order]
